from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from .config import settings

DEFAULT_DATABASE_URL = "sqlite:///./courier_push.db"


def _normalized_database_url(raw_url: str) -> str:
    """Hosted Postgres hands out postgres:// URLs; route those through psycopg 3."""
    raw_url = (raw_url or "").strip() or DEFAULT_DATABASE_URL
    scheme, sep, rest = raw_url.partition("://")
    if scheme in ("postgres", "postgresql"):
        return f"postgresql+psycopg{sep}{rest}"
    return raw_url


def _engine_options(url: str) -> dict:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return {"pool_pre_ping": True}
    options = {"connect_args": {"check_same_thread": False}}
    if parsed.database in (None, "", ":memory:"):
        # one shared connection, otherwise every session sees an empty database
        options["poolclass"] = StaticPool
    return options


DATABASE_URL = _normalized_database_url(settings.database_url)
engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))


def get_db():
    with Session(engine) as session:
        yield session


def init_db():
    # orders and profiles belong to the marketplace schema; create_all skips them where they exist
    SQLModel.metadata.create_all(engine)


def database_ok() -> bool:
    """Round trip for /health; connection errors propagate."""
    with engine.connect() as conn:
        return conn.execute(text("SELECT 1")).scalar() == 1
