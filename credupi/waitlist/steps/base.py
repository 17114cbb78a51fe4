"""Base class for signup flow steps."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from credupi.analytics.tracker import AnalyticsEvent
from credupi.schemas.flow import FlowState, FlowStep


@dataclass
class StepResult:
    """Result of trying to leave a step."""

    next_step: Optional[FlowStep] = None  # None = transition blocked, stay on current step
    events: list[AnalyticsEvent] = field(default_factory=list)
    reason: Optional[str] = None  # why the transition is blocked

    @property
    def blocked(self) -> bool:
        return self.next_step is None


class BaseStep(ABC):
    """Abstract base class for all wizard steps."""

    step: FlowStep

    @abstractmethod
    def is_complete(self, state: FlowState) -> bool:
        """Whether the step's field holds an acceptable value."""
        ...

    @abstractmethod
    def advance(self, state: FlowState) -> StepResult:
        """Validate the step and describe the transition out of it.

        Args:
            state: Current flow state

        Returns:
            StepResult with the next step and analytics to emit, or a
            blocked result when the step's field is not acceptable yet
        """
        ...
