import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from yarnstock.db.init_db import ensure_tables_exist


@pytest.fixture()
def run_db(tmp_path):
    """
    在独立的临时 SQLite 数据库中运行 async 函数

    用法: run_db(lambda db: some_coroutine(db))
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    session_factory = sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )
    asyncio.run(ensure_tables_exist(engine))

    def run(fn):
        async def runner():
            async with session_factory() as db:
                return await fn(db)
        return asyncio.run(runner())

    yield run
    asyncio.run(engine.dispose())
