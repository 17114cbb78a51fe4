"""Analytics sink — fire-and-forget funnel events (CTA clicks, form steps, signups)."""

from __future__ import annotations

import asyncio
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

import httpx
import structlog

from credupi.config import settings

logger = structlog.get_logger()

MEASUREMENT_PROTOCOL_URL = "https://www.google-analytics.com/mp/collect"

CTA_NAMES = {
    "hero_section": "join_waitlist_top",
    "bottom_section": "join_waitlist_bottom",
}


@dataclass(frozen=True)
class AnalyticsEvent:
    name: str
    params: dict = field(default_factory=dict)


# ─── Event builders ──────────────────────────────────────────────────


def cta_click(location: str) -> AnalyticsEvent:
    return AnalyticsEvent(
        "cta_click",
        {"cta_location": location, "cta_name": CTA_NAMES.get(location, location)},
    )


def form_step1(intent: str) -> AnalyticsEvent:
    return AnalyticsEvent(
        "form_step",
        {"step_number": 1, "step_name": "intent_selection", "selected_value": intent},
    )


def form_step2(user_type: str) -> AnalyticsEvent:
    return AnalyticsEvent(
        "form_step",
        {"step_number": 2, "step_name": "user_type_selection", "selected_value": user_type},
    )


def form_step3(phone: str, country_code: str) -> AnalyticsEvent:
    return AnalyticsEvent(
        "form_step",
        {"step_number": 3, "step_name": "phone_entry", "phone_number": f"{country_code}{phone}"},
    )


def form_completion(intent: str, user_type: str, phone: str, country_code: str) -> AnalyticsEvent:
    return AnalyticsEvent(
        "waitlist_signup_complete",
        {"intent": intent, "user_type": user_type, "phone": f"{country_code}{phone}"},
    )


# ─── Sinks ───────────────────────────────────────────────────────────


class AnalyticsSink(ABC):
    """Receives named events. Never raises, never returns anything useful."""

    @abstractmethod
    def track(self, event: AnalyticsEvent) -> None:
        ...

    async def drain(self) -> None:
        """Wait for in-flight deliveries (no-op for synchronous sinks)."""
        return None

    async def aclose(self) -> None:
        return None


class LoggingAnalyticsSink(AnalyticsSink):
    """Writes every event to the structured log."""

    def __init__(self):
        self.events: list[AnalyticsEvent] = []

    def track(self, event: AnalyticsEvent) -> None:
        self.events.append(event)
        logger.info("analytics_event", event_name=event.name, **event.params)


class MeasurementProtocolSink(AnalyticsSink):
    """Sends events to GA4 through the Measurement Protocol.

    Each event is posted from a detached task; delivery errors are logged.
    """

    def __init__(
        self,
        measurement_id: str,
        api_secret: str,
        client_id: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.measurement_id = measurement_id
        self.api_secret = api_secret
        self.client_id = client_id or str(uuid.uuid4())
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(timeout=5.0)
        self._tasks: set[asyncio.Task] = set()

    def track(self, event: AnalyticsEvent) -> None:
        try:
            task = asyncio.get_running_loop().create_task(self._send(event))
        except RuntimeError:
            logger.warning("analytics_no_event_loop", event_name=event.name)
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send(self, event: AnalyticsEvent) -> None:
        try:
            response = await self.http.post(
                MEASUREMENT_PROTOCOL_URL,
                params={"measurement_id": self.measurement_id, "api_secret": self.api_secret},
                json={
                    "client_id": self.client_id,
                    "events": [{"name": event.name, "params": event.params}],
                },
            )
            logger.debug("analytics_event_sent", event_name=event.name, status=response.status_code)
        except httpx.HTTPError as e:
            logger.warning("analytics_event_failed", event_name=event.name, error=str(e))

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        if self._owns_client:
            await self.http.aclose()


def get_analytics_sink() -> AnalyticsSink:
    """GA4 sink when credentials are configured, structured log otherwise."""
    if settings.ga_measurement_id and settings.ga_api_secret:
        return MeasurementProtocolSink(settings.ga_measurement_id, settings.ga_api_secret)
    logger.debug("analytics_ga_not_configured")
    return LoggingAnalyticsSink()
