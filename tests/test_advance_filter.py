import pytest

from appscope.core.exceptions import FilterValidationError, MissingTenantContext, UnknownColumnError, UnknownRelationError
from appscope.db.models.users import Users
from appscope.repos.query import AdvanceFilterEngine
from appscope.schemas.response import FilterQuery, QueryOptions

USER_OPTIONS = QueryOptions(table_alias="user", preload=("profiles", "addresses"), nested_table="profiles", app_id=True)


def usernames(result) -> list[str]:
    return [user.username for user in result.data]


def run(session, app_id="app-a", options=USER_OPTIONS, **descriptor):
    return AdvanceFilterEngine(session).advance_filter(FilterQuery(**descriptor), Users, options, app_id=app_id)


# ======================================================================================================================
# Empty descriptor and tenant scoping


def test_empty_descriptor_returns_every_visible_row(session, seeded):
    result = run(session)

    assert result.total == 15
    assert len(result.data) == 15
    assert result.total_page == 15
    assert {user.app_id for user in result.data} == {"app-a"}
    assert "ghost" not in usernames(result)


def test_tenant_isolation(session, seeded):
    result = run(session, app_id="app-b")

    assert result.total == 3
    assert sorted(usernames(result)) == ["bob", "carol", "user01"]


def test_same_username_in_two_tenants(session, seeded):
    result = run(session, filter_by=["username"], filter=[["user01"]])

    assert result.total == 1
    assert result.data[0].app_id == "app-a"


def test_scoping_without_app_id(session, seeded):
    with pytest.raises(MissingTenantContext):
        run(session, app_id=None)


def test_unscoped_entity_needs_no_app_id(session, seeded):
    result = run(session, app_id=None, options=QueryOptions(table_alias="user"), filter_by=["username"], filter=[["user01"]])

    assert sorted(user.app_id for user in result.data) == ["app-a", "app-b"]


def test_preload(session, seeded):
    result = run(session, filter_by=["username"], filter=[["user01"]])

    user = result.data[0]
    assert sorted(p.first_name for p in user.profiles) == ["Alt", "First01"]
    assert [a.province for a in user.addresses] == ["Bangkok"]


# ======================================================================================================================
# Basic filter


def test_include(session, seeded):
    assert run(session, filter_by=["status"], filter=[["active"]]).total == 10


def test_exclude(session, seeded):
    result = run(session, filter_by=["status"], filter=[["!inactive"]])

    assert result.total == 10
    assert all(user.status == "active" for user in result.data)


def test_include_and_exclude_in_one_entry(session, seeded):
    result = run(session, filter_by=["username"], filter=[["user01", "user02", "!user02"]])

    assert usernames(result) == ["user01"]


def test_entries_and(session, seeded):
    result = run(session, filter_by=["provider", "status"], filter=[["google"], ["active"]])

    assert sorted(usernames(result)) == ["user03", "user06", "user09"]


def test_entries_or(session, seeded):
    result = run(session, filter_by=["provider", "status"], filter=[["google"], ["active"]], filter_condition="or")

    assert result.total == 12


def test_empty_entry_is_skipped(session, seeded):
    assert run(session, filter_by=["status", "provider"], filter=[["inactive"], []]).total == 5


def test_boolean_and_json_filters(session, seeded):
    assert run(session, filter_by=["first_login"], filter=[["true"]]).total == 7
    assert run(session, filter_by=["meta.team"], filter=[["red"]]).total == 8


def test_unparseable_value(session, seeded):
    with pytest.raises(FilterValidationError):
        run(session, filter_by=["first_login"], filter=[["maybe"]])


# ======================================================================================================================
# Nested filter


def test_nested_and_same_row(session, seeded):
    result = run(session, filter_nested_by=["profiles.last_name", "profiles.first_name"], filter_nested=[["Smith"], ["First01"]])

    assert usernames(result) == ["user01"]


def test_nested_and_two_values_on_one_column_matches_nothing(session, seeded):
    result = run(session, filter_nested_by=["profiles.first_name"], filter_nested=[["First01", "First02"]])

    assert result.total == 0
    assert result.data == []


def test_nested_or(session, seeded):
    result = run(
        session,
        filter_nested_by=["profiles.first_name"],
        filter_nested=[["First01", "First02"]],
        filter_nested_condition="OR",
    )

    assert sorted(usernames(result)) == ["user01", "user02"]


def test_nested_bare_column_targets_default_relation(session, seeded):
    result = run(session, filter_nested_by=["last_name"], filter_nested=[["Smith"]])

    # user01 has two Smith profiles and still appears once.
    assert result.total == 5
    assert sorted(usernames(result)) == ["user01", "user02", "user03", "user04", "user05"]


def test_nested_across_relations(session, seeded):
    result = run(session, filter_nested_by=["profiles.last_name", "addresses.province"], filter_nested=[["Smith"], ["Bangkok"]])

    assert usernames(result) == ["user01"]


def test_nested_roles_need_one_row_per_condition(session, seeded):
    both = run(session, filter_nested_by=["roles.name", "roles.name"], filter_nested=[["admin"], ["editor"]])
    either = run(
        session, filter_nested_by=["roles.name", "roles.name"], filter_nested=[["admin"], ["editor"]], filter_nested_condition="or"
    )

    assert both.total == 0
    assert sorted(usernames(either)) == ["user01", "user02"]


def test_nested_does_not_cross_tenants(session, seeded):
    result = run(session, app_id="app-b", filter_nested_by=["addresses.province"], filter_nested=[["Bangkok"]])

    assert usernames(result) == ["bob"]


@pytest.mark.parametrize("column_spec", ["orders.total", "rolez.name"])
def test_unknown_relation(session, seeded, column_spec):
    with pytest.raises(UnknownRelationError):
        run(session, filter_nested_by=[column_spec], filter_nested=[["1"]])


def test_unknown_nested_column(session, seeded):
    with pytest.raises(UnknownColumnError):
        run(session, filter_nested_by=["profiles.salary"], filter_nested=[["1"]])


def test_bare_nested_column_without_default_relation(session, seeded):
    with pytest.raises(FilterValidationError):
        run(session, options=QueryOptions(table_alias="user", app_id=True), filter_nested_by=["last_name"], filter_nested=[["Smith"]])


# ======================================================================================================================
# Search and range


def test_search(session, seeded):
    result = run(session, search_by=["username"], search="user1")

    assert sorted(usernames(result)) == ["user10", "user11", "user12", "user13", "user14", "user15"]


def test_search_json_field(session, seeded):
    assert run(session, search_by=["meta.nickname"], search="nick0").total == 9


def test_search_any_column(session, seeded):
    result = run(session, search_by=["username", "provider"], search="goog")

    assert result.total == 5


def test_search_wildcards_are_literal(session, seeded):
    assert run(session, search_by=["username"], search="%").total == 0
    assert run(session, search_by=["username"], search="user_1").total == 0


def test_blank_search_is_ignored(session, seeded):
    assert run(session, search_by=["username"], search="   ").total == 15


def test_search_keeps_surrounding_spaces(session, seeded):
    assert run(session, search_by=["username"], search=" user1").total == 0
    assert run(session, search_by=["username"], search="user1").total == 6


def test_range_and(session, seeded):
    result = run(session, start_by="last_active", start="2024-01-05", end_by="last_active", end="2024-01-10")

    assert sorted(usernames(result)) == ["user05", "user06", "user07", "user08", "user09", "user10"]


def test_range_or(session, seeded):
    result = run(
        session,
        start_by="last_active",
        start="2024-01-14",
        end_by="last_active",
        end="2024-01-02",
        start_and_end_condition="or",
    )

    assert sorted(usernames(result)) == ["user01", "user02", "user14", "user15"]


def test_single_bound(session, seeded):
    assert run(session, start_by="last_active", start="2024-01-13").total == 3
    assert run(session, end_by="last_active", end="2024-01-03").total == 3


@pytest.mark.parametrize("bounds", [{"start": ""}, {"end": "  "}, {"start": "", "end": ""}])
def test_empty_bound_is_ignored(session, seeded, bounds):
    assert run(session, start_by="last_active", end_by="last_active", **bounds).total == 15


def test_range_with_original_field_names(session, seeded):
    query = FilterQuery.model_validate({"filter_date_start_by": "last_active", "start_date": "2024-01-15"})
    result = AdvanceFilterEngine(session).advance_filter(query, Users, USER_OPTIONS, app_id="app-a")

    assert usernames(result) == ["user15"]


# ======================================================================================================================
# Sort, pagination and group


def test_sort_desc(session, seeded):
    result = run(session, sort_by=["last_active"], sort=["DESC"], page=1, per_page=3)

    assert usernames(result) == ["user15", "user14", "user13"]


def test_sort_json_field(session, seeded):
    result = run(session, sort_by=["meta.nickname"], sort=["desc"])

    assert usernames(result)[0] == "user15"
    assert usernames(result)[-1] == "user01"


def test_sort_multi_column(session, seeded):
    result = run(session, sort_by=["status", "username"], sort=["DESC", "ASC"])

    assert usernames(result)[:2] == ["user11", "user12"]
    assert usernames(result)[-1] == "user10"


def test_sort_json_with_nested_filter(session, seeded):
    result = run(
        session,
        filter_nested_by=["last_name"],
        filter_nested=[["Smith"]],
        sort_by=["meta.nickname"],
        sort=["DESC"],
    )

    assert usernames(result) == ["user05", "user04", "user03", "user02", "user01"]


def test_unknown_sort_column(session, seeded):
    with pytest.raises(UnknownColumnError):
        run(session, sort_by=["password; drop table users"])


def test_pagination(session, seeded):
    first = run(session, sort_by=["username"], page=1, per_page=10)
    second = run(session, sort_by=["username"], page=2, per_page=10)

    assert (first.total, first.total_page, len(first.data)) == (15, 2, 10)
    assert (second.total, second.total_page, len(second.data)) == (15, 2, 5)
    assert set(usernames(first)).isdisjoint(usernames(second))
    assert len(set(usernames(first)) | set(usernames(second))) == 15


def test_pagination_without_sort_has_disjoint_pages(session, seeded):
    pages = [run(session, filter_by=["provider"], filter=[["credentials"]], page=page, per_page=4) for page in (1, 2, 3)]

    seen = [name for page in pages for name in usernames(page)]
    assert pages[0].total == 10
    assert len(seen) == len(set(seen)) == 10


def test_page_past_the_end(session, seeded):
    result = run(session, page=3, per_page=10)

    assert result.total == 15
    assert result.data == []


def test_page_zero_disables_pagination(session, seeded):
    assert len(run(session, page=0, per_page=10).data) == 15


def test_group_max(session, seeded):
    result = run(session, group_by=["status"], group_sort_by="id", group_sort="MAX")

    assert sorted(usernames(result)) == ["user10", "user15"]


def test_group_min(session, seeded):
    result = run(session, group_by=["status"], group_sort_by="id", group_sort="asc")

    assert sorted(usernames(result)) == ["user01", "user11"]


def test_group_is_tenant_scoped(session, seeded):
    result = run(session, app_id="app-b", group_by=["status"], group_sort_by="id", group_sort="MAX")

    assert usernames(result) == ["carol"]


def test_group_with_filter(session, seeded):
    result = run(session, filter_by=["provider"], filter=[["google"]], group_by=["status"], group_sort_by="last_active")

    assert sorted(usernames(result)) == ["user15"]


def test_group_on_json_field(session, seeded):
    result = run(session, group_by=["meta.team"], group_sort_by="id", group_sort="MIN")

    assert sorted(usernames(result)) == ["user01", "user02"]


def test_unknown_preload(session, seeded):
    with pytest.raises(UnknownRelationError):
        run(session, options=QueryOptions(table_alias="user", preload=("orders",), app_id=True))


@pytest.mark.parametrize("table_alias", ["g", "t2", "user_group", "user_extreme"])
def test_group_with_any_root_alias(session, seeded, table_alias):
    options = QueryOptions(table_alias=table_alias, nested_table="profiles", app_id=True)
    result = run(
        session,
        options=options,
        filter_nested_by=["last_name"],
        filter_nested=[["Jones"]],
        group_by=["status"],
        group_sort_by="id",
        group_sort="MAX",
    )

    assert sorted(usernames(result)) == ["user10", "user15"]
