"""Signup flow controller — drives the waitlist modal wizard.

intent → user_type → phone → done. Reaching `done` submits a finalized
entry; closing the modal early saves whatever was filled in as a partial
entry without waiting for delivery. A guard flag on the state keeps it to one
submission per modal lifecycle.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from credupi.analytics.tracker import AnalyticsSink, cta_click
from credupi.config import settings
from credupi.gateway.sheets import SubmissionGateway
from credupi.schemas.flow import FlowState, FlowStep
from credupi.schemas.waitlist import DeliveryOutcome, IntentOption, UserTypeOption, WaitlistEntry
from credupi.storage.cache import EntryCache
from credupi.waitlist.steps.base import BaseStep
from credupi.waitlist.steps.intent import IntentStep
from credupi.waitlist.steps.phone import PhoneStep, sanitize_phone
from credupi.waitlist.steps.user_type import UserTypeStep

logger = structlog.get_logger()


class FlowError(Exception):
    """Operation not allowed in the current flow state."""


class StepBlockedError(FlowError):
    """The current step's field does not allow moving forward yet."""

    def __init__(self, step: FlowStep, reason: str):
        super().__init__(f"{step.value}: {reason}")
        self.step = step
        self.reason = reason


class SignupFlowController:
    """State machine behind the waitlist modal."""

    def __init__(
        self,
        gateway: SubmissionGateway,
        cache: EntryCache,
        analytics: AnalyticsSink,
        country_code: Optional[str] = None,
        reset_delay_ms: Optional[int] = None,
        celebration_ms: Optional[int] = None,
    ):
        self.gateway = gateway
        self.cache = cache
        self.analytics = analytics
        self.country_code = country_code or settings.phone_country_code
        self.reset_delay = (settings.reset_delay_ms if reset_delay_ms is None else reset_delay_ms) / 1000
        self.celebration_delay = (
            settings.celebration_ms if celebration_ms is None else celebration_ms
        ) / 1000

        self.state = FlowState()
        self.steps: dict[FlowStep, BaseStep] = {
            FlowStep.INTENT: IntentStep(),
            FlowStep.USER_TYPE: UserTypeStep(),
            FlowStep.PHONE: PhoneStep(self.country_code),
        }

        # Detached partial-save submissions; never cancelled
        self._background: set[asyncio.Task] = set()
        self._reset_task: Optional[asyncio.Task] = None
        self._celebration_task: Optional[asyncio.Task] = None
        # Bumped on every open; a completion that outlives its modal must not touch the next one
        self._lifecycle = 0

    # ─── Modal lifecycle ─────────────────────────────────────────────

    def open(self, cta_location: Optional[str] = None) -> FlowState:
        """Open the modal, optionally from a call-to-action button."""
        if self.state.is_open:
            logger.debug("waitlist_already_open")
            return self.snapshot()

        # Reopened before the close animation finished: reset right away
        if self._reset_task is not None and not self._reset_task.done():
            self._reset_task.cancel()
            self._reset_fields()

        if cta_location:
            self.analytics.track(cta_click(cta_location))

        self._lifecycle += 1
        self.state.is_open = True
        self.state.already_submitted = False
        logger.info("waitlist_opened", cta_location=cta_location)
        return self.snapshot()

    def close(self) -> FlowState:
        """Dismiss the modal from any step.

        Before `done`, anything filled in is saved as a partial entry in the
        background. The wizard resets once the close animation is over.
        """
        if not self.state.is_open:
            return self.snapshot()

        self.state.is_open = False

        if not self.state.already_submitted and self.state.has_any_field():
            entry = WaitlistEntry.partial(
                intent=self.state.intent,
                user_type=self.state.user_type,
                digits=self.state.phone,
                prefix=self.country_code,
            )
            self.state.already_submitted = True
            task = asyncio.get_running_loop().create_task(self._deliver(entry, partial=True))
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            logger.info("waitlist_abandoned", step=self.state.step.value)

        self._reset_task = self._schedule(self.reset_delay, self._reset_fields)
        return self.snapshot()

    # ─── Field input ─────────────────────────────────────────────────

    def select_intent(self, value: str) -> None:
        self._require_step(FlowStep.INTENT)
        self.state.intent = IntentOption(value).value

    def select_user_type(self, value: str) -> None:
        self._require_step(FlowStep.USER_TYPE)
        self.state.user_type = UserTypeOption(value).value

    def input_phone(self, raw: str) -> str:
        """Keystroke handler: keep digits only, at most 10."""
        self._require_step(FlowStep.PHONE)
        self.state.phone = sanitize_phone(raw)
        return self.state.phone

    def can_advance(self) -> bool:
        handler = self.steps.get(self.state.step)
        return handler is not None and handler.is_complete(self.state)

    # ─── Transitions ─────────────────────────────────────────────────

    async def advance(self) -> FlowState:
        """Move to the next step.

        Raises:
            FlowError: if the modal is closed or the flow is already done
            StepBlockedError: if the current step's field is not acceptable
        """
        self._require_open()
        current = self.state.step
        handler = self.steps.get(current)
        if handler is None:
            raise FlowError("flow already complete")

        result = handler.advance(self.state)
        if result.blocked:
            raise StepBlockedError(current, result.reason or "blocked")

        if result.next_step == FlowStep.DONE and self.state.already_submitted:
            raise FlowError("signup already submitted")

        for event in result.events:
            self.analytics.track(event)

        if result.next_step == FlowStep.DONE:
            entry = WaitlistEntry.finalized(
                intent=self.state.intent,
                user_type=self.state.user_type,
                digits=self.state.phone,
                prefix=self.country_code,
            )
            self.state.already_submitted = True
            lifecycle = self._lifecycle
            await self._deliver(entry, partial=False)
            if not self.state.is_open or lifecycle != self._lifecycle:
                # Closed while the submission was in flight: the reset owns the state now
                logger.info("waitlist_completed_after_close", from_step=current.value)
                return self.snapshot()
            self._start_celebration()

        self.state.step = result.next_step
        logger.info("waitlist_step_advanced", from_step=current.value, to_step=self.state.step.value)
        return self.snapshot()

    async def _deliver(self, entry: WaitlistEntry, partial: bool) -> DeliveryOutcome:
        """Cache the entry locally, then hand it to the gateway."""
        await self.cache.append(entry)
        try:
            outcome = await self.gateway.submit(entry)
        except Exception as e:
            logger.error("waitlist_gateway_error", error=str(e), partial=partial)
            outcome = DeliveryOutcome.FAILED

        logger.info(
            "waitlist_submitted",
            outcome=outcome.value,
            partial=partial,
            phone=entry.masked_phone(),
        )
        return outcome

    # ─── Timers ──────────────────────────────────────────────────────

    def _start_celebration(self) -> None:
        if self._celebration_task is not None and not self._celebration_task.done():
            self._celebration_task.cancel()
        self.state.celebrating = True
        self._celebration_task = self._schedule(self.celebration_delay, self._end_celebration)

    def _end_celebration(self) -> None:
        self.state.celebrating = False

    def _reset_fields(self) -> None:
        self.state.step = FlowStep.INTENT
        self.state.celebrating = False
        self.state.intent = ""
        self.state.user_type = ""
        self.state.phone = ""

    def _schedule(self, delay: float, callback: Callable[[], None]) -> asyncio.Task:
        async def _later() -> None:
            await asyncio.sleep(delay)
            callback()

        return asyncio.get_running_loop().create_task(_later())

    async def drain(self) -> None:
        """Wait for background submissions and pending timers to finish."""
        pending: list[Awaitable] = list(self._background)
        for task in (self._reset_task, self._celebration_task):
            if task is not None and not task.done():
                pending.append(task)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        await self.analytics.drain()

    # ─── Helpers ─────────────────────────────────────────────────────

    def snapshot(self) -> FlowState:
        return self.state.model_copy()

    def _require_open(self) -> None:
        if not self.state.is_open:
            raise FlowError("waitlist modal is closed")

    def _require_step(self, step: FlowStep) -> None:
        self._require_open()
        if self.state.step != step:
            raise FlowError(f"expected step {step.value}, at {self.state.step.value}")
