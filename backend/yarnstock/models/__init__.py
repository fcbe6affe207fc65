# models包初始化文件

from yarnstock.models.user import User
from yarnstock.models.role import Role
from yarnstock.models.yarn_category import YarnCategory
from yarnstock.models.party import Party
from yarnstock.models.yarn_in_entry import YarnInEntry
from yarnstock.models.yarn_ex_entry import YarnExEntry

__all__ = [
    "User",
    "Role",
    "YarnCategory",
    "Party",
    "YarnInEntry",
    "YarnExEntry",
]
