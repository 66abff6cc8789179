import pytest

from appscope.core.exceptions import MissingTenantContext, NoEntryFound, PermissionDenied
from appscope.db.models.users import Profiles
from appscope.repos import AllRepositories, get_repositories
from appscope.repos.query import AdvanceFilterEngine
from appscope.schemas.response import FilterQuery, QueryOptions
from appscope.schemas.user import ProfileCreate, UserCreate, UserRead


def test_repositories_require_tenant_context(session, seeded):
    with pytest.raises(ValueError):
        AllRepositories(session).users


def test_none_app_id_cannot_read_tenant_rows(session, seeded):
    repos = get_repositories(session, app_id=None)

    with pytest.raises(MissingTenantContext):
        repos.users.count_all()


def test_count_all(repos_a: AllRepositories, repos_b: AllRepositories):
    assert repos_a.users.count_all() == 15
    assert repos_b.users.count_all() == 3
    assert repos_a.profiles.count_all() == 16
    assert repos_b.profiles.count_all() == 3


def test_advance_filter_returns_schemas(repos_a: AllRepositories):
    result = repos_a.users.advance_filter(FilterQuery(filter_by=["username"], filter=[["user01"]]))

    assert result.total == 1
    assert isinstance(result.data[0], UserRead)
    assert len(result.data[0].profiles) == 2


def test_parent_scoped_profiles(repos_b: AllRepositories):
    result = repos_b.profiles.advance_filter(FilterQuery(sort_by=["first_name"]))

    assert result.total == 3
    assert [p.first_name for p in result.data] == ["Bob", "Carol", "User01"]


def test_parent_join_populates_parent(session, seeded):
    options = QueryOptions(table_alias="profiles", parent_table="user", with_parent_app_id=True)
    result = AdvanceFilterEngine(session).advance_filter(FilterQuery(), Profiles, options, app_id="app-b")

    assert {profile.user.app_id for profile in result.data} == {"app-b"}


def test_parent_scoped_filter_cannot_reach_other_tenant(repos_a: AllRepositories, seeded):
    bob = seeded["b:bob"]
    result = repos_a.profiles.advance_filter(FilterQuery(filter_by=["user_id"], filter=[[str(bob.id)]]))

    assert result.total == 0


def test_parent_scoped_group(repos_a: AllRepositories):
    result = repos_a.profiles.advance_filter(FilterQuery(group_by=["last_name"], group_sort_by="first_name", group_sort="MAX"))

    assert sorted((p.last_name, p.first_name) for p in result.data) == [("Jones", "First15"), ("Smith", "First05")]


def test_get_one_is_scoped(repos_a: AllRepositories, seeded):
    own = seeded["a:user01"]
    other = seeded["b:bob"]

    assert repos_a.users.get_one(own.id).username == "user01"
    assert repos_a.users.get_one(other.id) is None
    with pytest.raises(NoEntryFound):
        repos_a.users.get_one_or_raise(other.id)


def test_get_by_username(repos_b: AllRepositories):
    user = repos_b.users.get_by_username("user01")
    assert user.app_id == "app-b"


def test_create_stamps_app_id(repos_a: AllRepositories):
    user = repos_a.users.create(UserCreate(username="newbie", meta={"nickname": "nb"}))

    assert user.app_id == "app-a"
    assert repos_a.users.count_all() == 16


def test_create_for_other_app_is_denied(repos_a: AllRepositories):
    with pytest.raises(PermissionDenied):
        repos_a.users.create(UserCreate(app_id="app-b", username="intruder"))


def test_create_child_of_other_tenant_is_denied(repos_a: AllRepositories, seeded):
    with pytest.raises(PermissionDenied):
        repos_a.profiles.create(ProfileCreate(user_id=seeded["b:bob"].id, first_name="Mallory"))


def test_create_child(repos_a: AllRepositories, seeded):
    profile = repos_a.profiles.create(ProfileCreate(user_id=seeded["a:user02"].id, first_name="Second", email=" X@A.TEST "))

    assert profile.email == "x@a.test"
    assert len(repos_a.profiles.get_by_user(seeded["a:user02"].id)) == 2


def test_create_many(repos_b: AllRepositories):
    created = repos_b.users.create_many([{"username": "dave"}, UserCreate(username="erin")])

    assert [u.app_id for u in created] == ["app-b", "app-b"]
    assert repos_b.users.count_all() == 5


def test_update(repos_a: AllRepositories, seeded):
    user_id = seeded["a:user03"].id
    updated = repos_a.users.update(user_id, {"status": "inactive", "meta": {"nickname": "renamed"}})

    assert updated.status == "inactive"
    assert repos_a.users.advance_filter(FilterQuery(filter_by=["meta.nickname"], filter=[["renamed"]])).total == 1


def test_update_cannot_move_row_to_other_app(repos_a: AllRepositories, repos_b: AllRepositories, seeded):
    with pytest.raises(PermissionDenied):
        repos_a.users.update(seeded["a:user03"].id, {"app_id": "app-b"})

    assert repos_b.users.count_all() == 3
    assert repos_a.users.get_one(seeded["a:user03"].id).app_id == "app-a"
    assert repos_a.users.update(seeded["a:user03"].id, {"app_id": "app-a", "status": "inactive"}).status == "inactive"


def test_update_cannot_repoint_child_to_other_tenant(repos_a: AllRepositories, repos_b: AllRepositories, seeded):
    profile = seeded["a:user02"].profiles[0]

    with pytest.raises(PermissionDenied):
        repos_a.profiles.update(profile.id, {"user_id": seeded["b:bob"].id})

    assert repos_b.profiles.count_all() == 3
    moved = repos_a.profiles.update(profile.id, {"user_id": seeded["a:user03"].id, "first_name": "Moved"})
    assert moved.user_id == seeded["a:user03"].id
    assert repos_a.profiles.update(profile.id, {"first_name": "Kept"}).first_name == "Kept"


def test_update_missing(repos_a: AllRepositories, seeded):
    with pytest.raises(NoEntryFound):
        repos_a.users.update(seeded["b:bob"].id, {"status": "inactive"})


def test_touch(repos_a: AllRepositories, seeded):
    user = repos_a.users.touch(seeded["a:user01"].id)

    assert user.first_login is False
    assert user.last_active is not None


def test_soft_delete(repos_a: AllRepositories, seeded):
    user_id = seeded["a:user04"].id
    deleted = repos_a.users.delete(user_id)

    assert deleted.username == "user04"
    assert repos_a.users.get_one(user_id) is None
    assert repos_a.users.advance_filter(FilterQuery()).total == 14


def test_hard_delete(session, repos_a: AllRepositories, seeded):
    role = seeded["a:user03"].roles[0]
    repos_a.roles.delete(role.id, hard=True)

    assert repos_a.roles.count_all() == 3


def test_roles_are_scoped_through_user(repos_a: AllRepositories, repos_b: AllRepositories):
    assert repos_a.roles.count_all() == 4
    assert repos_b.roles.count_all() == 0
