# tests/unit/libs/price-common/test_db.py
import pytest

from price_common.db import get_sync_database_url, to_async_database_url, to_sync_database_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgresql://user:pw@db:5432/product_db", "postgresql+asyncpg://user:pw@db:5432/product_db"),
        ("postgresql+psycopg2://user:pw@db:5432/product_db", "postgresql+asyncpg://user:pw@db:5432/product_db"),
        ("postgresql+asyncpg://user:pw@db:5432/product_db", "postgresql+asyncpg://user:pw@db:5432/product_db"),
    ],
)
def test_to_async_database_url_switches_driver(url, expected):
    assert to_async_database_url(url) == expected


@pytest.mark.parametrize(
    "url",
    [
        "postgresql://user:pw@db:5432/product_db",
        "postgresql+asyncpg://user:pw@db:5432/product_db",
        "postgresql+psycopg2://user:pw@db:5432/product_db",
    ],
)
def test_to_sync_database_url_pins_psycopg2(url):
    assert to_sync_database_url(url) == "postgresql+psycopg2://user:pw@db:5432/product_db"


def test_get_sync_database_url_names_psycopg2_for_a_bare_url(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://user:pw@db:5432/product_db")

    assert get_sync_database_url() == "postgresql+psycopg2://user:pw@db:5432/product_db"
