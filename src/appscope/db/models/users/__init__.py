from .addresses import Addresses
from .profiles import Profiles
from .roles import UserRoles
from .users import JSONType, Users

__all__ = ["Addresses", "JSONType", "Profiles", "UserRoles", "Users"]
