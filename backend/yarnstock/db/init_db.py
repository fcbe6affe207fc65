import asyncio
import copy
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from yarnstock.core.permissions import ADMIN_PERMISSIONS
from yarnstock.db.base import Base
from yarnstock.db.session import SessionLocal, engine

# 导入所有模型，确保表能被创建
from yarnstock.models import Party, Role, User, YarnCategory, YarnExEntry, YarnInEntry  # noqa: F401
from yarnstock.models.role import ADMIN_ROLE_NAME

logger = logging.getLogger(__name__)


async def ensure_tables_exist(bind: AsyncEngine = engine) -> None:
    """
    确保数据库表存在（应用启动时调用）
    """
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ensure_admin_role(db: AsyncSession) -> Role:
    """
    确保系统管理员角色存在，并拥有全部权限

    权限树结构有新增项时，启动时会自动补全管理员权限
    """
    result = await db.execute(select(Role).where(Role.name == ADMIN_ROLE_NAME))
    role = result.scalar_one_or_none()

    if role is None:
        role = Role(name=ADMIN_ROLE_NAME, permissions=copy.deepcopy(ADMIN_PERMISSIONS))
        db.add(role)
        await db.commit()
        await db.refresh(role)
        logger.info("已创建系统管理员角色")
    elif role.permissions != ADMIN_PERMISSIONS:
        role.permissions = copy.deepcopy(ADMIN_PERMISSIONS)
        await db.commit()
        logger.info("已补全系统管理员角色权限")

    return role


async def init_db() -> None:
    """
    初始化数据库 - 创建所有表和管理员角色
    """
    await ensure_tables_exist()
    async with SessionLocal() as db:
        await ensure_admin_role(db)


if __name__ == "__main__":
    asyncio.run(init_db())
