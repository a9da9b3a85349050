"""Database URL handling, rate-limit keys and logging setup."""
import logging

from sqlalchemy.pool import StaticPool
from starlette.requests import Request

from courier_push.core.database import _engine_options, _normalized_database_url
from courier_push.core.rate_limit import client_key
from courier_push.logging import setup_logging


def _request(headers: dict | None = None, client=("10.0.0.5", 51234)) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "POST", "path": "/", "headers": raw, "client": client})


def test_postgres_urls_use_psycopg():
    assert _normalized_database_url("postgres://u:p@db:5432/app") == "postgresql+psycopg://u:p@db:5432/app"
    assert _normalized_database_url(" postgresql://u:p@db/app\n") == "postgresql+psycopg://u:p@db/app"
    assert _normalized_database_url("postgresql+psycopg://u@db/app") == "postgresql+psycopg://u@db/app"


def test_blank_url_falls_back_to_sqlite_file():
    assert _normalized_database_url("") == "sqlite:///./courier_push.db"
    assert _normalized_database_url("sqlite:///:memory:") == "sqlite:///:memory:"


def test_in_memory_sqlite_shares_one_connection():
    assert _engine_options("sqlite:///:memory:")["poolclass"] is StaticPool
    file_opts = _engine_options("sqlite:///./courier_push.db")
    assert "poolclass" not in file_opts
    assert file_opts["connect_args"] == {"check_same_thread": False}
    assert _engine_options("postgresql+psycopg://u@db/app") == {"pool_pre_ping": True}


def test_client_key_prefers_first_forwarded_hop():
    req = _request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
    assert client_key(req) == "203.0.113.7"


def test_client_key_without_proxy_uses_peer():
    assert client_key(_request()) == "10.0.0.5"
    assert client_key(_request({"X-Forwarded-For": " "})) == "10.0.0.5"


def test_setup_logging_levels():
    root = logging.getLogger()
    app_logger = logging.getLogger("courier_push")
    access_logger = logging.getLogger("uvicorn.access")
    saved = (root.level, root.handlers[:], app_logger.level, access_logger.level)
    try:
        setup_logging("debug")
        assert app_logger.level == logging.DEBUG
        assert access_logger.level == logging.WARNING
    finally:
        root.setLevel(saved[0])
        root.handlers[:] = saved[1]
        app_logger.setLevel(saved[2])
        access_logger.setLevel(saved[3])
