"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes database initialization for the application:
- Builds the SQLAlchemy connection URL from environment-backed settings.
- Creates the Engine (connection pool + SQL execution entry point).
- Defines shared MetaData for table and schema objects.
- Exposes a Declarative Base class for ORM models.
- Exposes the `SessionFactory` used by the transaction helpers.

Notes
-----
- Uses `URL.create(...)` to avoid hardcoding credentials and to keep configuration
  environment-driven (e.g., via `.env`, container secrets, or deployment vars).
- `SessionFactory` is a configurable `sessionmaker`; tests rebind it to an
  in-memory engine with ``SessionFactory.configure(bind=...)``.
- All ORM models must inherit from `declarativeBase` to participate in schema
  creation and ORM features.
"""


from sqlalchemy import create_engine
from sqlalchemy.engine import URL
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.schema import MetaData
from simta.database.config.config import settings

# --------------------------------------------------------------------
# Construct the SQLAlchemy connection URL using values from Settings.
# --------------------------------------------------------------------
connection_url = URL.create(
    drivername=settings.DB_DRIVER_NAME,   # e.g., "postgresql+psycopg2", "sqlite"
    username=settings.DB_USERNAME,        # Database username
    password=settings.DB_PASSWORD,        # Database password
    host=settings.DB_HOST,                # Hostname or IP of the DB server
    port=settings.DB_PORT,
    database=settings.DB_DATABASE_NAME    # Name of the database
)
"""Constructs the SQLAlchemy connection URL using values from Settings."""

_connect_args = {}
if settings.DB_DRIVER_NAME.startswith("sqlite"):
    # FastAPI serves sync endpoints from a thread pool
    _connect_args["check_same_thread"] = False

# --------------------------------------------------------------------
# Engine object: core interface to the database.
# --------------------------------------------------------------------
connection_engine = create_engine(connection_url, echo=settings.DB_ECHO, connect_args=_connect_args)
"""Engine object: Core interface to the database.
Responsible for managing connections, executing SQL, and pooling.
"""

# --------------------------------------------------------------------
# Metadata object: stores schema-level information about tables,
# constraints, indexes, etc. Shared across all models.
# --------------------------------------------------------------------
metadata = MetaData()
"""
Metadata object: Stores schema-level information about tables, constraints, indexes, etc. Shared across all models.
"""

# --------------------------------------------------------------------
# Declarative Base: root class for ORM models.
# --------------------------------------------------------------------
declarativeBase = declarative_base(metadata=metadata)
"""Declarative Base: Root class for ORM models.
All model classes should inherit from this to gain ORM features and automatic schema generation.
 """

SessionFactory = sessionmaker(bind=connection_engine)
"""Session factory used by `@transactional`. Rebindable for tests."""
