"""测试数据构造"""
import copy
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import select

from yarnstock.core.permissions import ADMIN_PERMISSIONS, empty_permissions
from yarnstock.core.security import get_password_hash
from yarnstock.models import Party, Role, User, YarnCategory, YarnExEntry, YarnInEntry
from yarnstock.models.user import USER_STATUS_JOINED

DEFAULT_PASSWORD = "secret123"


def permissions_with(*paths: str) -> Dict[str, Any]:
    """只打开指定权限点的权限树"""
    tree = empty_permissions()
    for path in paths:
        node = tree
        *parents, action = path.split(".")
        for key in parents:
            node = node[key]
        node[action] = True
    return tree


async def create_role(db, name: str = "Admin", permissions: Optional[Dict[str, Any]] = None) -> Role:
    role = Role(
        name=name,
        permissions=copy.deepcopy(ADMIN_PERMISSIONS if permissions is None else permissions),
    )
    db.add(role)
    await db.commit()
    return role


async def load_user(db, user_id: int) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def create_user(
    db,
    email: str = "admin@example.com",
    role: Optional[Role] = None,
    password: Optional[str] = DEFAULT_PASSWORD,
    status: str = USER_STATUS_JOINED,
    name: Optional[str] = "Admin User",
) -> User:
    user = User(
        email=email,
        name=name,
        password=get_password_hash(password) if password else None,
        status=status,
        role_id=role.id if role else None,
    )
    db.add(user)
    await db.commit()
    return await load_user(db, user.id)


async def create_admin(db) -> User:
    role = await create_role(db)
    return await create_user(db, role=role)


async def create_category(db, user: User, name: str = "Cotton 40s") -> YarnCategory:
    category = YarnCategory(name=name, created_by=user.id)
    db.add(category)
    await db.commit()
    return category


async def create_party(db, user: User, name: str = "Sri Mills") -> Party:
    party = Party(name=name, mobile_no="9876543210", email_id="mills@example.com", created_by=user.id)
    db.add(party)
    await db.commit()
    return party


async def add_in_entry(db, user, category, party, lot_no: str, boxes: int, weight: str) -> YarnInEntry:
    entry = YarnInEntry(
        entry_date=datetime(2024, 1, 10),
        category_id=category.id,
        lot_no=lot_no,
        purchase_date=datetime(2024, 1, 8),
        party_id=party.id,
        no_of_boxes=boxes,
        weight_in_kg=Decimal(weight),
        created_by=user.id,
    )
    db.add(entry)
    await db.commit()
    return entry


async def add_ex_entry(db, user, category, lot_no: str, weight: str) -> YarnExEntry:
    entry = YarnExEntry(
        entry_date=datetime(2024, 1, 12),
        category_id=category.id,
        lot_no=lot_no,
        taking_weight_in_kg=Decimal(weight),
        created_by=user.id,
    )
    db.add(entry)
    await db.commit()
    return entry
