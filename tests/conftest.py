# tests/conftest.py
import pytest
import pytest_asyncio
from confluent_kafka.admin import AdminClient
from sqlalchemy import create_engine, text
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from testcontainers.kafka import KafkaContainer
from testcontainers.postgres import PostgresContainer

from price_common.database_models import Base
from price_common.db import to_async_database_url
from price_common.kafka_admin import create_topics
from tests.test_support.containers import (
    docker_available, POSTGRES_IMAGE, KAFKA_IMAGE, PRICE_CHANGES_TOPIC, PRICE_UPDATE_DLQ_TOPIC,
)


def _require_docker():
    if not docker_available():
        pytest.skip("Docker is not available; skipping container-backed test.")


@pytest.fixture(scope="session")
def postgres_container():
    """Starts a throwaway PostgreSQL server for the whole test session."""
    _require_docker()
    container = PostgresContainer(POSTGRES_IMAGE)
    container.start()
    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def kafka_container():
    """Starts a throwaway Kafka broker and creates the price change topics."""
    _require_docker()
    container = KafkaContainer(KAFKA_IMAGE)
    container.start()
    try:
        admin_client = AdminClient({"bootstrap.servers": container.get_bootstrap_server()})
        create_topics(admin_client, [PRICE_CHANGES_TOPIC, PRICE_UPDATE_DLQ_TOPIC], num_partitions=3)
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def kafka_bootstrap_servers(kafka_container) -> str:
    return kafka_container.get_bootstrap_server()


@pytest.fixture(scope="session")
def db_engine(postgres_container):
    """
    Provides a synchronous SQLAlchemy Engine with the schema created.
    """
    engine = create_engine(postgres_container.get_connection_url())
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def clean_db(db_engine):
    """Empties the product store before each test."""
    with db_engine.begin() as connection:
        connection.execute(text("TRUNCATE TABLE products RESTART IDENTITY CASCADE;"))
    yield


@pytest_asyncio.fixture(scope="function")
async def async_session_factory(db_engine, clean_db):
    """
    A function-scoped AsyncSession factory bound to the container database.
    """
    async_url = to_async_database_url(db_engine.url.render_as_string(hide_password=False))
    async_engine = create_async_engine(async_url)
    factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    yield factory

    await async_engine.dispose()
