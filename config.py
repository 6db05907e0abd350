import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
INSTANCE_DIR = os.path.join(BASE_DIR, "instance")


def _csv_env(name, default):
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(v.strip().lower() for v in raw.split(",") if v.strip())


class BaseConfig:
    # Security
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")

    # 🗄Database
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        f"sqlite:///{os.path.join(INSTANCE_DIR, 'portal.db')}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging
    LOG_DIR = os.getenv("LOG_DIR", os.path.join(BASE_DIR, "logs"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Requests
    REQUEST_NUMBER_PREFIX = os.getenv("REQUEST_NUMBER_PREFIX", "REQ")

    # Roles allowed to read any request, even outside its approval chain.
    # Empty it to restrict deans/registrars to requests they are involved in.
    REQUEST_VIEW_BLANKET_ROLES = _csv_env(
        "REQUEST_VIEW_BLANKET_ROLES", ("dean", "registrar")
    )


class DevConfig(BaseConfig):
    DEBUG = True


class ProdConfig(BaseConfig):
    DEBUG = False


class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SECRET_KEY = "test"


CONFIGS = {
    "dev": DevConfig,
    "prod": ProdConfig,
    "test": TestConfig,
}
