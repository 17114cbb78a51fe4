"""Waitlist entry schemas: the record sent to the sheet and kept in the local cache."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

PHONE_DIGITS = 10


class IntentOption(str, Enum):
    """Why the visitor wants to build a credit score (step 1)."""

    CREDIT_CARD = "I want to get a credit card someday"
    LOAN = "I want to take a loan in the future"
    CREDIT_SCORE = "I just want to build my credit score"
    CURIOUS = "I'm curious what this is about"


class UserTypeOption(str, Enum):
    """Visitor persona (step 2)."""

    STUDENT = "Student"
    WORKING_PROFESSIONAL = "Working professional"
    FREELANCER = "Freelancer / Self-employed"
    OTHER = "Other"


class DeliveryOutcome(str, Enum):
    """Result of a single gateway submission."""

    DELIVERED = "delivered"
    FAILED = "failed"


def utc_timestamp() -> str:
    """ISO-8601 UTC instant with millisecond precision, e.g. 2026-10-19T08:15:02.123Z."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def is_national_number(digits: str) -> bool:
    return len(digits) == PHONE_DIGITS and digits.isascii() and digits.isdigit()


class WaitlistEntry(BaseModel):
    """A single waitlist signup, complete or partial. Immutable once built."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    intent: str = ""
    user_type: str = Field(default="", alias="userType")
    phone: str = ""
    timestamp: str = Field(default_factory=utc_timestamp)

    @classmethod
    def finalized(cls, intent: str, user_type: str, digits: str, prefix: str) -> WaitlistEntry:
        """Build the entry for a completed signup.

        Raises:
            ValueError: if intent or user type is empty, or digits is not a
                10-digit national number
        """
        if not intent:
            raise ValueError("intent is required for a finalized entry")
        if not user_type:
            raise ValueError("user type is required for a finalized entry")
        if not is_national_number(digits):
            raise ValueError(f"phone must be exactly {PHONE_DIGITS} digits")
        return cls(intent=intent, user_type=user_type, phone=f"{prefix}{digits}")

    @classmethod
    def partial(cls, intent: str, user_type: str, digits: str, prefix: str) -> WaitlistEntry:
        """Build an entry from whatever the visitor filled in before leaving."""
        return cls(
            intent=intent,
            user_type=user_type,
            phone=f"{prefix}{digits}" if digits else "",
        )

    def is_empty(self) -> bool:
        return not (self.intent or self.user_type or self.phone)

    def to_wire(self) -> dict:
        """JSON object posted to the sheet endpoint."""
        return self.model_dump(by_alias=True)

    def masked_phone(self) -> str:
        if len(self.phone) <= 6:
            return self.phone
        return self.phone[:3] + "****" + self.phone[-3:]
