"""Signup flow state: the whole modal state as one inspectable value."""

from enum import Enum

from pydantic import BaseModel


class FlowStep(str, Enum):
    """Wizard steps.

    Order: intent → user_type → phone → done.
    """

    INTENT = "intent"
    USER_TYPE = "user_type"
    PHONE = "phone"
    DONE = "done"


class FlowState(BaseModel):
    """Full state of the waitlist modal."""

    step: FlowStep = FlowStep.INTENT
    intent: str = ""
    user_type: str = ""
    phone: str = ""  # national digits only, prefix is applied on submission
    already_submitted: bool = False
    is_open: bool = False
    celebrating: bool = False

    def has_any_field(self) -> bool:
        return bool(self.intent or self.user_type or self.phone)
