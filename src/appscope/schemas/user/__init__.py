from .address import AddressCreate, AddressRead
from .profile import ProfileCreate, ProfileRead, ProfileUpdate
from .user import (
    AddressWithUser,
    ProfileWithUser,
    RoleCreate,
    RoleRead,
    UserCreate,
    UserRead,
    UserSummary,
    UserUpdate,
)

__all__ = [
    "AddressCreate",
    "AddressRead",
    "AddressWithUser",
    "ProfileCreate",
    "ProfileRead",
    "ProfileUpdate",
    "ProfileWithUser",
    "RoleCreate",
    "RoleRead",
    "UserCreate",
    "UserRead",
    "UserSummary",
    "UserUpdate",
]
