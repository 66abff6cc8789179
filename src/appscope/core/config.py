import os
from functools import lru_cache
from pathlib import Path

import dotenv

from appscope.core.settings import AppSettings, app_settings_constructor

CWD = Path(__file__).parent
BASE_DIR = Path(os.getenv("BASE_DIR", CWD.parent.parent.parent))
ENV = BASE_DIR.joinpath(".env")

dotenv.load_dotenv(ENV)
PRODUCTION = os.getenv("PRODUCTION", "False").capitalize() == "True"
TESTING = os.getenv("TESTING", "False").capitalize() == "True"
DATA_DIR = os.getenv("DATA_DIR")


def determine_data_dir() -> Path:
    """Determine the data directory based on the environment."""
    global PRODUCTION, TESTING, BASE_DIR, DATA_DIR

    if TESTING:
        return BASE_DIR.joinpath(DATA_DIR if DATA_DIR else "tests", ".temp")

    if PRODUCTION:
        return Path(DATA_DIR if DATA_DIR else BASE_DIR.joinpath("app", "data"))

    return Path(DATA_DIR if DATA_DIR else BASE_DIR.joinpath("dev", "data"))


@lru_cache
def get_app_settings() -> AppSettings:
    """Get the application settings."""
    return app_settings_constructor(
        env_file=ENV,
        production=PRODUCTION,
        testing=TESTING,
        data_dir=determine_data_dir(),
    )
