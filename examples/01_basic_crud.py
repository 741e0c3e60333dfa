"""
Example 01: Basic CRUD

This example demonstrates mapping a dataclass to a table and running
load / insert / update / upsert / delete through the EntityManager.
"""

import asyncio
from dataclasses import dataclass

from row_entity import (
    AsyncEngine,
    Command,
    ConflictError,
    ConnectionConfig,
    Dialect,
    EntityManager,
    NotFoundError,
    SchemaRegistry,
    db_field,
)


@dataclass
class User:
    __tablename__ = "users"

    id: int = db_field("id,primaryKey,autoIncrement", default=0)
    email: str = db_field("email", default="")
    name: str = db_field("name", default="")
    created_at: str = db_field("created_at,refuseUpdate", default="")


@dataclass
class Setting:
    __tablename__ = "settings"

    key: str = db_field("key,primaryKey", default="")
    value: str = db_field("value", default="")


async def main():
    config = ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)
    engine = AsyncEngine.from_config(config)
    await engine.execute("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
    """)
    await engine.execute("CREATE TABLE settings (key TEXT PRIMARY KEY, value TEXT NOT NULL)")

    # Resolve and validate mapped types at startup
    registry = SchemaRegistry(User, Setting)
    manager = EntityManager(registry)

    print("=== Generated SQL ===\n")
    md = registry.metadata(User)
    for command in (Command.SELECT, Command.INSERT, Command.UPDATE, Command.DELETE):
        print(f"   {command.value}: {registry.statement(command, md, Dialect.SQLITE)}")
    print()

    print("1. Insert:")
    user = User(email="alice@example.com", name="Alice", created_at="2024-01-01")
    user.id = await manager.insert(user, engine)
    print(f"   Inserted user id={user.id}\n")

    print("2. Load:")
    loaded = User(id=user.id)
    await manager.load(loaded, engine)
    print(f"   {loaded}\n")

    print("3. Update (created_at is refuse-update):")
    loaded.name = "Alice Smith"
    loaded.created_at = "ignored"
    await manager.update(loaded, engine)
    again = User(id=user.id)
    await manager.load(again, engine)
    print(f"   {again}\n")

    print("4. Conflict on duplicate email:")
    try:
        await manager.insert(User(email="alice@example.com", name="Other"), engine)
    except ConflictError as e:
        print(f"   {e}\n")

    print("5. Upsert:")
    await manager.upsert(Setting(key="theme", value="dark"), engine)
    await manager.upsert(Setting(key="theme", value="light"), engine)
    print(f"   {await engine.query('SELECT key, value FROM settings')}\n")

    print("6. Delete:")
    await manager.delete(again, engine)
    try:
        await manager.load(User(id=user.id), engine)
    except NotFoundError as e:
        print(f"   {e}\n")

    await engine.close()


if __name__ == "__main__":
    asyncio.run(main())
