"""
This module defines the specialized repository for managing User entities.

Users carry their application id themselves; the advanced filter preloads their
profiles and addresses, and bare nested filter columns target `profiles`.
"""

from appscope.schemas.response import QueryOptions
from appscope.schemas.user import UserRead

from ..db.models import utcnow
from ..db.models.users import Users
from .repository_generic import AppRepositoryGeneric


class RepositoryUsers(AppRepositoryGeneric[UserRead, Users]):
    """
    Specialized repository for User entities, scoped to one application.
    """

    options = QueryOptions(
        table_alias="user",
        preload=("profiles", "addresses"),
        nested_table="profiles",
        app_id=True,
    )

    def get_by_username(self, username: str) -> UserRead | None:
        return self.get_one(username, key="username")

    def touch(self, user_id: int) -> UserRead:
        """Records activity: sets `last_active` and clears `first_login`."""
        return self.update(user_id, {"last_active": utcnow(), "first_login": False})
