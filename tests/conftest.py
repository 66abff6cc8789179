from collections.abc import Generator
from datetime import datetime

from pytest import MonkeyPatch, fixture

mp = MonkeyPatch()
mp.setenv("PRODUCTION", "False")
mp.setenv("TESTING", "True")
mp.setenv("DB_ENGINE", "sqlite-memory")
mp.setenv("DEFAULT_APP_ID", "app-dev")

import sqlalchemy as sa  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from appscope.db.db_setup import SessionLocal, sql_global_init  # noqa: E402
from appscope.db.init_db import create_tables, drop_tables  # noqa: E402
from appscope.db.models import utcnow  # noqa: E402
from appscope.db.models.users import Addresses, Profiles, UserRoles, Users  # noqa: E402
from appscope.repos import AllRepositories, get_repositories  # noqa: E402

APP_A = "app-a"
APP_B = "app-b"


@fixture
def engine() -> Generator[sa.Engine, None, None]:
    eng = sql_global_init("sqlite://", {"check_same_thread": False})
    create_tables(eng)
    yield eng
    drop_tables(eng)
    eng.dispose()


@fixture
def session(engine: sa.Engine) -> Generator[Session, None, None]:
    sess = SessionLocal(bind=engine)
    try:
        yield sess
    finally:
        sess.close()


def _seed(session: Session) -> dict[str, Users]:
    """
    Two applications.

    app-a: user01..user15. user01..user10 are active, user11..user15 inactive.
    Every third user signs in with google. last_active is 2024-01-<n>.
    Profiles: one per user (last_name Smith for 1-5, Jones after), plus an
    extra "Alt Smith" profile for user01. Addresses for user01 (Bangkok) and
    user02 (Chiang Mai). Roles: user01 admin+editor, user02 editor, user03 viewer.
    A soft-deleted active user "ghost" is created last.

    app-b: user01, bob, carol, all active Smiths; bob lives in Bangkok.
    """
    users: dict[str, Users] = {}

    for i in range(1, 16):
        user = Users(
            app_id=APP_A,
            username=f"user{i:02d}",
            status="active" if i <= 10 else "inactive",
            provider="google" if i % 3 == 0 else "credentials",
            first_login=i % 2 == 0,
            last_active=datetime(2024, 1, i),
            meta={"nickname": f"nick{i:02d}", "team": "red" if i % 2 else "blue"},
        )
        user.profiles.append(
            Profiles(first_name=f"First{i:02d}", last_name="Smith" if i <= 5 else "Jones", email=f"user{i:02d}@a.test")
        )
        users[f"a:{user.username}"] = user

    users["a:user01"].profiles.append(Profiles(first_name="Alt", last_name="Smith"))
    users["a:user01"].addresses.append(Addresses(name="home", address_one="1 Main Rd", province="Bangkok"))
    users["a:user02"].addresses.append(Addresses(name="home", address_one="2 Hill Rd", province="Chiang Mai"))
    users["a:user01"].roles.extend([UserRoles(name="admin"), UserRoles(name="editor")])
    users["a:user02"].roles.append(UserRoles(name="editor"))
    users["a:user03"].roles.append(UserRoles(name="viewer"))

    session.add_all(users.values())
    session.flush()

    for name in ("user01", "bob", "carol"):
        user = Users(app_id=APP_B, username=name, status="active", meta={"nickname": "bnick"})
        user.profiles.append(Profiles(first_name=name.capitalize(), last_name="Smith"))
        users[f"b:{name}"] = user
    users["b:bob"].addresses.append(Addresses(name="office", address_one="9 River Rd", province="Bangkok"))
    session.add_all([users["b:user01"], users["b:bob"], users["b:carol"]])
    session.flush()

    ghost = Users(app_id=APP_A, username="ghost", status="active", deleted_at=utcnow(), meta={"nickname": "nick99"})
    ghost.profiles.append(Profiles(first_name="Ghost", last_name="Smith"))
    session.add(ghost)
    users["a:ghost"] = ghost

    session.commit()
    return users


@fixture
def seeded(session: Session) -> dict[str, Users]:
    return _seed(session)


@fixture
def repos_a(session: Session, seeded) -> AllRepositories:
    return get_repositories(session, app_id=APP_A)


@fixture
def repos_b(session: Session, seeded) -> AllRepositories:
    return get_repositories(session, app_id=APP_B)
