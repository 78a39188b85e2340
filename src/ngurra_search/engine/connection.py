"""
Search engine connection manager.

Owns the single Elasticsearch client handle for the process. "Engine down"
is an ordinary runtime state here: construction and probe failures are
logged and flip availability off instead of raising.
"""

import threading
import time
from typing import Any, Callable, Dict, Optional

import tenacity
from elasticsearch import (
    ApiError,
    ConnectionError as EngineConnectionError,
    ConnectionTimeout,
    Elasticsearch,
    TransportError,
)
from loguru import logger

from ngurra_search.config import Settings, settings as default_settings
from ngurra_search.schemas.outcomes import HealthStatus

# Errors any engine call may raise; callers catch these, never bare Exception.
ENGINE_ERRORS = (ApiError, TransportError)


def as_dict(response: Any) -> Dict[str, Any]:
    """Plain dict body of a client response"""
    body = getattr(response, "body", response)
    return body if isinstance(body, dict) else {}


def log_retry_attempt(retry_state: tenacity.RetryCallState) -> None:
    """Log probe retry attempts with context."""
    attempt = retry_state.attempt_number
    if retry_state.outcome and retry_state.outcome.failed:
        exception = retry_state.outcome.exception()
        logger.warning(
            f"Elasticsearch probe attempt {attempt}: {type(exception).__name__}: {exception}"
        )
    else:
        logger.info(f"Elasticsearch probe attempt {attempt}")


class ConnectionManager:
    """
    Lazily connects to the engine and caches its availability.

    Features:
    - Bounded health probe with a small tenacity retry
    - Non-blocking is_available() from the last probe
    - Lazy re-probe, rate limited by reconnect_interval
    - Injectable client / client factory for tests
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[Elasticsearch] = None,
        client_factory: Optional[Callable[[], Elasticsearch]] = None,
    ):
        """
        Initialize connection manager.

        Args:
            settings: Connection settings (defaults to global settings)
            client: Prebuilt client to use instead of constructing one
            client_factory: Callable returning a new client
        """
        self.settings = settings or default_settings
        self._client = client
        self._client_factory = client_factory or self._build_client
        self._available = False
        self._last_probe: Optional[float] = None
        self._lock = threading.Lock()

    def _build_client(self) -> Elasticsearch:
        """Construct an Elasticsearch client from settings"""
        options: Dict[str, Any] = {
            "request_timeout": self.settings.request_timeout,
            "max_retries": self.settings.max_retries,
            "retry_on_timeout": True,
        }

        if self.settings.elasticsearch_api_key:
            options["api_key"] = self.settings.elasticsearch_api_key
        elif self.settings.elasticsearch_username:
            options["basic_auth"] = (
                self.settings.elasticsearch_username,
                self.settings.elasticsearch_password or "",
            )

        if self.settings.elasticsearch_ssl:
            options["verify_certs"] = self.settings.elasticsearch_verify_certs

        return Elasticsearch(self.settings.elasticsearch_url, **options)

    def _probe(self, client: Elasticsearch) -> Dict[str, Any]:
        """Cluster health with a bounded timeout and a small retry"""
        retrying = tenacity.Retrying(
            stop=tenacity.stop_after_attempt(max(self.settings.probe_attempts, 1)),
            wait=tenacity.wait_exponential(multiplier=0.2, max=2.0) + tenacity.wait_random(0, 0.2),
            retry=tenacity.retry_if_exception_type(TransportError),
            before_sleep=log_retry_attempt,
            reraise=True,
        )
        return as_dict(
            retrying(
                lambda: client.options(request_timeout=self.settings.probe_timeout).cluster.health()
            )
        )

    def connect(self) -> Optional[Elasticsearch]:
        """
        Build the client if needed and probe the cluster.

        Never raises: any failure marks the engine unavailable.

        Returns:
            Connected client, or None if the engine is unavailable
        """
        with self._lock:
            self._last_probe = time.monotonic()

            try:
                if self._client is None:
                    self._client = self._client_factory()
                health = self._probe(self._client)
            except (ApiError, TransportError, ValueError) as e:
                logger.warning(
                    f"Elasticsearch connection failed, using fallback: {type(e).__name__}: {e}"
                )
                self._available = False
                return None

            status = health.get("status")
            self._available = status in ("green", "yellow")

            if self._available:
                logger.info(
                    f"Elasticsearch connected: {self.settings.elasticsearch_url} "
                    f"(status={status}, cluster={health.get('cluster_name')}, "
                    f"nodes={health.get('number_of_nodes')})"
                )
                return self._client

            logger.warning(f"Elasticsearch cluster status is {status}, using fallback")
            return None

    def is_available(self) -> bool:
        """Last known availability; never performs I/O"""
        return self._available

    def get_client(self) -> Optional[Elasticsearch]:
        """
        Client for the next engine call.

        Re-probes lazily when the engine was last seen down, at most once
        per reconnect_interval.

        Returns:
            Client, or None if the engine is unavailable
        """
        if self._available:
            return self._client

        if (
            self._last_probe is not None
            and time.monotonic() - self._last_probe < self.settings.reconnect_interval
        ):
            return None

        return self.connect()

    def report_failure(self, error: Exception) -> None:
        """
        Record a failed engine call.

        Connection-level failures flip availability; request-level API
        errors (bad query, rejected document) leave it untouched.
        """
        if isinstance(error, (EngineConnectionError, ConnectionTimeout)):
            self.mark_unavailable(f"{type(error).__name__}: {error}")

    def mark_unavailable(self, reason: str = "marked unavailable") -> None:
        """Force the unavailable state until the next probe"""
        if self._available:
            logger.warning(f"Elasticsearch marked unavailable: {reason}")
        self._available = False
        self._last_probe = time.monotonic()

    def cluster_health(self) -> HealthStatus:
        """Cluster health summary for health endpoints"""
        client = self.get_client()
        if client is None:
            return HealthStatus(
                status="unavailable",
                detail={"message": "Elasticsearch not connected"},
            )

        try:
            health = as_dict(client.cluster.health())
        except ENGINE_ERRORS as e:
            self.report_failure(e)
            return HealthStatus(status="error", detail={"message": str(e)})

        return HealthStatus(
            status=health.get("status", "unknown"),
            detail={
                "cluster": health.get("cluster_name"),
                "nodes": health.get("number_of_nodes"),
                "active_shards": health.get("active_shards"),
            },
        )

    def close(self) -> None:
        """Close the client"""
        if self._client is not None:
            self._client.close()
            logger.info("Elasticsearch client closed")
        self._client = None
        self._available = False
