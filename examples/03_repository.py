"""
Example 03: Repository Pattern

This example demonstrates the generic Repository for DDD-style code
organization: find / create / save / update-by-id and paged queries.
"""

import asyncio
from dataclasses import dataclass

from row_entity import AsyncEngine, ConnectionConfig, EntityManager, Repository, db_field


@dataclass
class User:
    """User entity"""

    __tablename__ = "users"

    id: int = db_field("id,primaryKey,autoIncrement", default=0)
    name: str = db_field("name", default="")
    active: bool = db_field("active", default=True)


class UserRepository(Repository[int, User]):
    """Repository for User entities"""

    def __init__(self, engine: AsyncEngine, manager: EntityManager):
        super().__init__(engine, User, lambda id: User(id=id), manager)

    async def deactivate(self, user_id: int) -> None:
        def apply(user: User) -> bool:
            if not user.active:
                return False
            user.active = False
            return True

        await self.update(user_id, apply)

    async def active_page(self, page: int, size: int):
        return await self.page_query(
            "SELECT id, name, active FROM users WHERE active = :active ORDER BY id",
            {"active": True},
            page,
            size,
        )


async def main():
    config = ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)
    engine = AsyncEngine.from_config(config)
    await engine.execute("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            active INTEGER NOT NULL
        )
    """)

    repo = UserRepository(engine, EntityManager())

    print("=== Repository Pattern ===\n")

    print("1. Create users:")
    for name in ("Alice", "Bob", "Charlie", "Dave", "Eve"):
        user_id = await repo.create(User(name=name))
        print(f"   Created {name} with id={user_id}")
    print()

    print("2. Find by id:")
    print(f"   {await repo.find(2)}\n")

    print("3. Deactivate Bob:")
    await repo.deactivate(2)
    print(f"   {await repo.find(2)}\n")

    print("4. Paged query of active users:")
    items, page = await repo.active_page(2, 2)
    print(f"   page: {page.model_dump()}")
    for user in items:
        print(f"   - {user.name}")
    print()

    await engine.close()


if __name__ == "__main__":
    asyncio.run(main())
