"""
Sentinel for the tenant argument of repositories.

`app_id=None` is a legitimate value (an unscoped caller, which tenant-scoped
queries reject at execution time), so "never passed" needs its own marker.
"""


class NotSet:
    """Marks an `app_id` the caller never supplied. Falsy, like `None`."""

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_SET"


NOT_SET = NotSet()
