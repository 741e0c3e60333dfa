"""
Example 02: Lifecycle Hooks and Caching

This example demonstrates before/after hooks, the read-through cache and
prepared inserts inside a transaction.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone

from row_entity import (
    AsyncEngine,
    CacheOption,
    ConnectionConfig,
    EntityConfig,
    EntityManager,
    MemoryCache,
    SchemaRegistry,
    db_field,
    embedded,
    run_in_transaction,
)


@dataclass
class Timestamps:
    created_at: str = db_field("created_at,refuseUpdate", default="")
    updated_at: str = db_field("updated_at", default="")


@dataclass
class Article:
    __tablename__ = "articles"

    id: int = db_field("id,primaryKey", default=0)
    title: str = db_field("title", default="")
    stamps: Timestamps = embedded(default_factory=Timestamps)

    def before_insert(self):
        now = datetime.now(timezone.utc).isoformat()
        self.stamps.created_at = now
        self.stamps.updated_at = now

    async def before_update(self):
        self.stamps.updated_at = datetime.now(timezone.utc).isoformat()

    def cache_option(self):
        return CacheOption(key=f"article:{self.id}", expiration=60, compress=True)


async def main():
    config = ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)
    engine = AsyncEngine.from_config(config)
    await engine.execute("""
        CREATE TABLE articles (
            id INTEGER PRIMARY KEY,
            title TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)

    cache = MemoryCache()
    manager = EntityManager(
        SchemaRegistry(Article),
        config=EntityConfig(read_timeout=1, write_timeout=2),
        cacher=cache,
    )

    print("=== Hooks and Cache ===\n")

    print("1. Prepared insert inside a transaction:")

    async def seed(db):
        async with manager.prepare_insert(Article, db) as stmt:
            for i in range(1, 4):
                await stmt.execute(Article(id=i, title=f"Article {i}"))

    await run_in_transaction(engine, seed)
    print(f"   {await engine.query('SELECT COUNT(*) AS cnt FROM articles')}\n")

    print("2. Load populates the cache:")
    article = Article(id=1)
    await manager.load(article, engine)
    print(f"   {article}")
    print(f"   cached entries: {len(cache)}\n")

    print("3. Update runs before_update and invalidates the cache:")
    article.title = "Article 1 (edited)"
    await manager.update(article, engine)
    print(f"   {article.stamps}")
    print(f"   cached entries: {len(cache)}\n")

    await engine.close()


if __name__ == "__main__":
    asyncio.run(main())
