"""User type step: student, professional, freelancer or other."""

from credupi.analytics.tracker import form_step2
from credupi.schemas.flow import FlowState, FlowStep
from credupi.waitlist.steps.base import BaseStep, StepResult


class UserTypeStep(BaseStep):
    step = FlowStep.USER_TYPE

    def is_complete(self, state: FlowState) -> bool:
        return bool(state.user_type)

    def advance(self, state: FlowState) -> StepResult:
        if not self.is_complete(state):
            return StepResult(reason="user type not selected")
        return StepResult(
            next_step=FlowStep.PHONE,
            events=[form_step2(state.user_type)],
        )
