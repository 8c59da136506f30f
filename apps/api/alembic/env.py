from logging.config import fileConfig
from pathlib import Path
import os

from sqlalchemy import engine_from_config, pool
from alembic import context

from dotenv import load_dotenv

# apps/api/.env, whatever directory alembic is launched from
load_dotenv(Path(__file__).resolve().parents[1] / ".env")

config = context.config

# `alembic -x db_url=...` wins over DATABASE_URL (handy for a one-off restore target)
db_url = context.get_x_argument(as_dictionary=True).get("db_url") or os.getenv("DATABASE_URL")
if not db_url:
    raise RuntimeError("DATABASE_URL is not set. Check apps/api/.env or pass -x db_url=...")

config.set_main_option("sqlalchemy.url", db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# every table the night supervision service owns
from nightwatch.core.database import Base
from nightwatch.models.unit import Unit  # noqa: F401
from nightwatch.models.personnel import Personnel  # noqa: F401
from nightwatch.models.shift import NightShift  # noqa: F401
from nightwatch.models.call import NightCall  # noqa: F401
from nightwatch.models.camera_review import CameraReview  # noqa: F401
from nightwatch.models.alert import NightAlert  # noqa: F401

target_metadata = Base.metadata


def _configure_args(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        # call/review times and the 1..3 slot numbers live in typed columns
        "compare_type": True,
        # SQLite cannot ALTER constraints in place
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit the SQL for the night supervision tables without a connection."""
    url = config.get_main_option("sqlalchemy.url")

    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_args(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_args(str(connectable.url)))

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
