"""
Health and readiness probes.

``/health`` is the liveness answer load balancers poll; ``/health/ready``
checks the database and host resources before traffic is routed here.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import Engine
from typing import Any, Callable, Dict, Iterable, Optional
import os
import time
from datetime import datetime, timezone
from enum import Enum
import psutil
import logging

logger = logging.getLogger(__name__)

class HealthStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

class ServiceHealth:
    """
    Builds the probe router for one service.

    Args:
        service_name: Name reported by the probes
        version: Service version
        engine: SQLAlchemy engine checked by the readiness probe
        missing_config: Callable returning the names of unset settings the
            service needs to talk to its collaborators
    """

    def __init__(
        self,
        service_name: str,
        version: str = "1.0.0",
        engine: Optional[Engine] = None,
        missing_config: Optional[Callable[[], Iterable[str]]] = None,
    ):
        self.service_name = service_name
        self.version = version
        self.engine = engine
        self.missing_config = missing_config
        self.start_time = time.time()
        self.checks_performed = 0

    def uptime(self) -> float:
        return time.time() - self.start_time

    def create_health_router(self) -> APIRouter:
        router = APIRouter(tags=["health"])

        @router.get("/health", status_code=status.HTTP_200_OK)
        def health_check() -> Dict[str, Any]:
            """Liveness only: the process is up and serving"""
            return {
                "status": "ok",
                "service": self.service_name,
                "version": self.version,
                "uptime": self.uptime(),
                "timestamp": _now(),
            }

        @router.get("/health/live", status_code=status.HTTP_200_OK)
        def liveness() -> Dict[str, Any]:
            return {"status": "alive"}

        @router.get("/health/ready")
        def readiness() -> JSONResponse:
            checks = self.perform_readiness_checks()
            overall_status = self.calculate_overall_status(checks)
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE if overall_status == HealthStatus.FAIL else status.HTTP_200_OK
            return JSONResponse(status_code=status_code, content={
                "status": overall_status.value,
                "version": self.version,
                "releaseId": os.getenv("RELEASE_ID", "unknown"),
                "serviceId": self.service_name,
                "checks": checks,
                "timestamp": _now(),
            })

        @router.get("/metrics")
        def metrics() -> Dict[str, Any]:
            process = psutil.Process()
            memory = process.memory_info()
            return {
                "service": self.service_name,
                "version": self.version,
                "uptime_seconds": self.uptime(),
                "checks_performed": self.checks_performed,
                "timestamp": _now(),
                "system": {
                    "memory_rss_bytes": memory.rss,
                    "memory_vms_bytes": memory.vms,
                    "cpu_percent": process.cpu_percent(),
                    "num_threads": process.num_threads(),
                },
            }

        return router

    def perform_readiness_checks(self) -> Dict[str, Dict[str, Any]]:
        self.checks_performed += 1
        checks = {}
        if self.engine is not None:
            checks["database:connectivity"] = self._check_database()
        if self.missing_config is not None:
            checks["config:collaborators"] = self._check_config()
        checks["storage:disk_space"] = self._check_disk_space()
        checks["system:memory"] = self._check_memory()
        return checks

    def _check_database(self) -> Dict[str, Any]:
        try:
            start_time = time.time()
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            return {
                "status": HealthStatus.PASS.value,
                "componentType": "datastore",
                "observedValue": f"{(time.time() - start_time) * 1000:.2f}",
                "observedUnit": "ms",
                "time": _now(),
            }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {"status": HealthStatus.FAIL.value, "componentType": "datastore", "output": str(e), "time": _now()}

    def _check_config(self) -> Dict[str, Any]:
        missing = sorted(self.missing_config())
        if missing:
            # Collaborator calls will fail, but catalog reads still work
            return {
                "status": HealthStatus.WARN.value,
                "componentType": "configuration",
                "output": f"Missing settings: {', '.join(missing)}",
                "time": _now(),
            }
        return {"status": HealthStatus.PASS.value, "componentType": "configuration", "time": _now()}

    def _check_disk_space(self) -> Dict[str, Any]:
        free_gb = psutil.disk_usage('/').free / (1024 ** 3)
        if free_gb < 1:
            status_val = HealthStatus.FAIL
        elif free_gb < 5:
            status_val = HealthStatus.WARN
        else:
            status_val = HealthStatus.PASS
        return {
            "status": status_val.value,
            "componentType": "system",
            "observedValue": f"{free_gb:.2f}",
            "observedUnit": "GB",
            "time": _now(),
        }

    def _check_memory(self) -> Dict[str, Any]:
        available_mb = psutil.virtual_memory().available / (1024 ** 2)
        if available_mb < 100:
            status_val = HealthStatus.FAIL
        elif available_mb < 500:
            status_val = HealthStatus.WARN
        else:
            status_val = HealthStatus.PASS
        return {
            "status": status_val.value,
            "componentType": "system",
            "observedValue": f"{available_mb:.2f}",
            "observedUnit": "MB",
            "time": _now(),
        }

    @staticmethod
    def calculate_overall_status(checks: Dict[str, Dict[str, Any]]) -> HealthStatus:
        statuses = {check.get("status") for check in checks.values()}
        if HealthStatus.FAIL.value in statuses:
            return HealthStatus.FAIL
        if HealthStatus.WARN.value in statuses:
            return HealthStatus.WARN
        return HealthStatus.PASS
