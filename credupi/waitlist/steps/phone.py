"""Phone step: 10-digit national mobile number, country code added on submit."""

import re

from credupi.analytics.tracker import form_completion, form_step3
from credupi.schemas.flow import FlowState, FlowStep
from credupi.schemas.waitlist import PHONE_DIGITS, is_national_number
from credupi.waitlist.steps.base import BaseStep, StepResult

NON_DIGITS = re.compile(r"[^0-9]")


def sanitize_phone(raw: str) -> str:
    """Strip everything but ASCII digits and keep the first 10."""
    return NON_DIGITS.sub("", raw)[:PHONE_DIGITS]


class PhoneStep(BaseStep):
    step = FlowStep.PHONE

    def __init__(self, country_code: str):
        self.country_code = country_code

    def is_complete(self, state: FlowState) -> bool:
        return is_national_number(state.phone)

    def advance(self, state: FlowState) -> StepResult:
        if not self.is_complete(state):
            return StepResult(reason=f"phone must be exactly {PHONE_DIGITS} digits")
        return StepResult(
            next_step=FlowStep.DONE,
            events=[
                form_step3(state.phone, self.country_code),
                form_completion(state.intent, state.user_type, state.phone, self.country_code),
            ],
        )
