"""
Creates the appscope tables.

Schema migrations are not managed here; `create_tables` issues CREATE TABLE for
any missing table of the declared models, which is what local development and
the test suite need.
"""

import sqlalchemy as sa

from appscope.core import root_logger
from appscope.core.config import get_app_settings
from appscope.core.display import get_display
from appscope.db.models import SqlAlchemyBase

logger = root_logger.get_logger("init_db")


def create_tables(engine: sa.Engine) -> list[str]:
    """Creates every table declared on `SqlAlchemyBase` that does not exist yet."""
    SqlAlchemyBase.metadata.create_all(engine)
    tables = sorted(SqlAlchemyBase.metadata.tables)
    logger.info(f"Tables ready: {', '.join(tables)}")
    return tables


def drop_tables(engine: sa.Engine) -> None:
    SqlAlchemyBase.metadata.drop_all(engine)


def main() -> None:
    from appscope.db.db_setup import get_engine

    display = get_display()
    display.header("appscope", f"database: {get_app_settings().DB_URL_PUBLIC}")
    try:
        tables = create_tables(get_engine())
    except sa.exc.SQLAlchemyError as e:
        display.error(f"Table creation failed: {e}")
        raise
    display.success(f"{len(tables)} tables ready")


if __name__ == "__main__":
    main()
