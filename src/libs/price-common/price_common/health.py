# src/libs/price-common/price_common/health.py
import logging
import asyncio
from typing import Awaitable, Callable, Dict, Optional

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import text
from confluent_kafka.admin import AdminClient

from .db import async_engine
from .config import KAFKA_BOOTSTRAP_SERVERS

logger = logging.getLogger(__name__)

DependencyCheck = Callable[[], Awaitable[bool]]

# Probe key -> name reported in the readiness body
DEPENDENCY_LABELS = {"db": "database", "kafka": "kafka"}


async def check_db_health() -> bool:
    try:
        async with async_engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Readiness: product store unreachable: {e}")
        return False


async def check_kafka_health() -> bool:
    try:
        admin_client = AdminClient({"bootstrap.servers": KAFKA_BOOTSTRAP_SERVERS})
        await asyncio.to_thread(admin_client.list_topics, timeout=5)
        return True
    except Exception as e:
        logger.warning(f"Readiness: Kafka unreachable: {e}")
        return False


def _builtin_checks() -> Dict[str, DependencyCheck]:
    return {"db": check_db_health, "kafka": check_kafka_health}


def create_health_router(*dependencies: str, checks: Optional[Dict[str, DependencyCheck]] = None) -> APIRouter:
    """
    Builds the /health/live and /health/ready probes.

    Readiness runs the checks named in `dependencies` ('db', 'kafka')
    concurrently and answers 503 listing each dependency's state when any
    of them fails. `checks` replaces the built-in probes, keyed the same way.
    """
    unknown = [dep for dep in dependencies if dep not in DEPENDENCY_LABELS]
    if unknown:
        raise ValueError(f"Unknown health dependencies: {unknown}")

    router = APIRouter(tags=["Health"])

    @router.get("/health/live", status_code=status.HTTP_200_OK)
    async def liveness_probe():
        return {"status": "alive"}

    @router.get("/health/ready", status_code=status.HTTP_200_OK)
    async def readiness_probe():
        probes = checks or _builtin_checks()
        results = await asyncio.gather(*(probes[dep]() for dep in dependencies))
        dep_status = {
            DEPENDENCY_LABELS[dep]: "ok" if ok else "unavailable"
            for dep, ok in zip(dependencies, results)
        }

        if not all(results):
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail={"status": "not_ready", "dependencies": dep_status},
            )
        return {"status": "ready", "dependencies": dep_status}

    return router
