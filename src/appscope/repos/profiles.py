"""
Repositories for entities that hang off a user.

Profiles, addresses and roles have no application id of their own; they are
scoped by inner-joining the owning user and filtering on its application id.
"""

from appscope.schemas.response import QueryOptions
from appscope.schemas.user import AddressRead, ProfileRead, RoleRead

from ..db.models.users import Addresses, Profiles, UserRoles
from .repository_generic import AppRepositoryGeneric


class RepositoryProfiles(AppRepositoryGeneric[ProfileRead, Profiles]):
    options = QueryOptions(table_alias="profiles", parent_table="user", with_parent_app_id=True)

    def get_by_user(self, user_id: int) -> list[ProfileRead]:
        query, root = self._query()
        query = query.where(root.user_id == user_id).order_by(root.id)
        return [self.schema.model_validate(row) for row in self.session.execute(query).unique().scalars().all()]


class RepositoryAddresses(AppRepositoryGeneric[AddressRead, Addresses]):
    options = QueryOptions(table_alias="address", parent_table="user", with_parent_app_id=True)


class RepositoryRoles(AppRepositoryGeneric[RoleRead, UserRoles]):
    options = QueryOptions(table_alias="role", parent_table="user", with_parent_app_id=True)
