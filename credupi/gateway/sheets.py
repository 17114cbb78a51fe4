"""Submission gateway — posts waitlist entries to the spreadsheet script endpoint.

Delivery is best-effort: every failure is logged and reported as
DeliveryOutcome.FAILED, nothing is raised to the caller.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Optional

import httpx
import structlog

from credupi.config import settings
from credupi.schemas.waitlist import DeliveryOutcome, WaitlistEntry

logger = structlog.get_logger()

JSON_HEADERS = {"Content-Type": "application/json"}

# Lazy singleton
_gateway: Optional["SubmissionGateway"] = None


def _valid_endpoint(endpoint_url: Optional[str]) -> Optional[str]:
    """The endpoint if httpx can parse it as an absolute http(s) URL, else None."""
    if not endpoint_url:
        return None
    try:
        url = httpx.URL(endpoint_url)
    except httpx.InvalidURL as e:
        logger.error("sheets_endpoint_invalid", error=str(e))
        return None
    if url.scheme not in ("http", "https") or not url.host:
        logger.error("sheets_endpoint_invalid", error=f"not an http(s) URL: {endpoint_url}")
        return None
    return endpoint_url


class DeliveryMode(str, Enum):
    """How the response of a submission is handled.

    OBSERVED reads status and body. OPAQUE fires the request and never looks
    at the response, the way a browser `no-cors` fetch behaves.
    """

    OBSERVED = "observed"
    OPAQUE = "opaque"


class SubmissionGateway:
    """Delivers entries to the remote append-only sheet."""

    def __init__(
        self,
        endpoint_url: Optional[str],
        mode: DeliveryMode = DeliveryMode.OBSERVED,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.endpoint_url = _valid_endpoint(endpoint_url)
        self.mode = mode
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(timeout=timeout)

    async def submit(self, entry: WaitlistEntry) -> DeliveryOutcome:
        """Send one entry to the sheet endpoint.

        Args:
            entry: The entry to deliver (complete or partial)

        Returns:
            DELIVERED if the endpoint accepted it (or, in opaque mode, the
            request went out), FAILED otherwise
        """
        if not self.endpoint_url:
            logger.error("sheets_endpoint_not_configured")
            return DeliveryOutcome.FAILED

        logger.info(
            "sheets_submitting",
            mode=self.mode.value,
            intent=entry.intent,
            user_type=entry.user_type,
            phone=entry.masked_phone(),
            timestamp=entry.timestamp,
        )

        if self.mode == DeliveryMode.OPAQUE:
            return await self._dispatch_opaque(entry)

        try:
            response = await self.http.post(
                self.endpoint_url,
                content=json.dumps(entry.to_wire()),
                headers=JSON_HEADERS,
                follow_redirects=True,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("sheets_observed_failed_falling_back", error=str(e))
            return await self._dispatch_opaque(entry)

        return self._read_outcome(response)

    async def _dispatch_opaque(self, entry: WaitlistEntry) -> DeliveryOutcome:
        """Fire the request without reading the response."""
        try:
            await self.http.post(
                self.endpoint_url,
                content=json.dumps(entry.to_wire()),
                headers=JSON_HEADERS,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("sheets_submit_failed", error=str(e), error_type=type(e).__name__)
            return DeliveryOutcome.FAILED

        # Opaque dispatch cannot verify the row was appended
        logger.info("sheets_request_dispatched", phone=entry.masked_phone())
        return DeliveryOutcome.DELIVERED

    def _read_outcome(self, response: httpx.Response) -> DeliveryOutcome:
        if not response.is_success:
            logger.error("sheets_http_error", status=response.status_code)
            return DeliveryOutcome.FAILED

        try:
            body = response.json()
        except ValueError:
            # Non-JSON 2xx: the status code decides
            logger.info("sheets_delivered", status=response.status_code, body="non_json")
            return DeliveryOutcome.DELIVERED

        if isinstance(body, dict) and body.get("success") is False:
            logger.error(
                "sheets_rejected",
                error=body.get("error"),
                message=body.get("message"),
            )
            return DeliveryOutcome.FAILED

        logger.info("sheets_delivered", status=response.status_code)
        return DeliveryOutcome.DELIVERED

    async def check_health(self) -> Optional[dict]:
        """GET the endpoint's status object.

        Returns:
            The decoded JSON status, or None if the endpoint is unset,
            unreachable or answers with something else
        """
        if not self.endpoint_url:
            return None
        try:
            response = await self.http.get(self.endpoint_url, follow_redirects=True)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.warning("sheets_health_check_failed", error=str(e))
            return None
        return body if isinstance(body, dict) else None

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http.aclose()


def get_gateway() -> SubmissionGateway:
    """Get or create the singleton gateway from settings."""
    global _gateway

    if _gateway is not None:
        return _gateway

    if not settings.sheets_endpoint_url:
        logger.warning("sheets_endpoint_not_configured")

    _gateway = SubmissionGateway(
        endpoint_url=settings.sheets_endpoint_url,
        mode=DeliveryMode(settings.sheets_delivery_mode),
        timeout=settings.sheets_timeout_seconds,
    )
    return _gateway
