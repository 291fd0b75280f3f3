from aceload.models.base import Base
from aceload.models.entities import (
    AccessControlEntry,
    Config,
    Group,
    Resource,
    User,
    UserGroup,
    UserType,
)

__all__ = [
    "Base",
    "AccessControlEntry",
    "Config",
    "Group",
    "Resource",
    "User",
    "UserGroup",
    "UserType",
]
