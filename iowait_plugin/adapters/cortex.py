"""Startup storage probe against a Cortex/Prometheus query API.

The plugin logs the current OpenEBS write IOPS series once at startup so
operators can see that the storage metrics pipeline is reachable from the
node. The probe is optional and only runs when a Cortex URL is configured.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class SeriesMetric(BaseModel):
    """Label set of one returned series."""

    name: Optional[str] = Field(default=None, alias="__name__")
    instance: Optional[str] = None
    job: Optional[str] = None
    kubernetes_pod_name: Optional[str] = None
    openebs_pv: Optional[str] = None


class SeriesResult(BaseModel):
    """One series with its instant ``[timestamp, "value"]`` pair."""

    metric: SeriesMetric
    value: List[Any] = Field(default_factory=list)


class QueryData(BaseModel):
    result_type: str = Field(alias="resultType")
    result: List[SeriesResult] = Field(default_factory=list)


class QueryResponse(BaseModel):
    """Prometheus HTTP API instant query response."""

    status: str
    data: QueryData


class CortexClient:
    """Minimal Prometheus-compatible query client.

    Parameters
    ----------
    base_url: str
        Base URL of the Cortex query frontend (e.g.,
        ``http://cortex-agent-service.maya-system.svc.cluster.local:80``).
    timeout: float
        Request timeout in seconds.
    transport: Optional[httpx.AsyncBaseTransport]
        Transport override (tests inject ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def query(self, expr: str) -> QueryResponse:
        """Run an instant query and validate the response body."""
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            resp = await client.get("/api/v1/query", params={"query": expr})
            resp.raise_for_status()
            try:
                body = resp.json()
            except ValueError as exc:
                raise httpx.DecodingError(
                    f"cortex: response is not JSON: {exc}", request=resp.request
                ) from exc
            return QueryResponse.model_validate(body)


async def probe_storage_iops(client: CortexClient, expr: str) -> QueryResponse:
    """Query ``expr`` once and log the returned series."""
    result = await client.query(expr)
    series: List[Dict[str, Any]] = [
        {
            "pv": r.metric.openebs_pv,
            "pod": r.metric.kubernetes_pod_name,
            "value": r.value[1] if len(r.value) > 1 else None,
        }
        for r in result.data.result
    ]
    logger.info(
        "cortex.probe",
        extra={"query": expr, "status": result.status, "series": series},
    )
    return result
