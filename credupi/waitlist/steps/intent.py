"""Intent step: why the visitor wants to build a credit score."""

from credupi.analytics.tracker import form_step1
from credupi.schemas.flow import FlowState, FlowStep
from credupi.waitlist.steps.base import BaseStep, StepResult


class IntentStep(BaseStep):
    step = FlowStep.INTENT

    def is_complete(self, state: FlowState) -> bool:
        return bool(state.intent)

    def advance(self, state: FlowState) -> StepResult:
        if not self.is_complete(state):
            return StepResult(reason="intent not selected")
        return StepResult(
            next_step=FlowStep.USER_TYPE,
            events=[form_step1(state.intent)],
        )
