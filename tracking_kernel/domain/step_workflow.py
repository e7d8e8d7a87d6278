"""
Step Status Workflow.

Explicit state machine for one unit's progress on one step.  Any status
may be applied at any time; the table below separates normal forward
progress from corrections so callers and tests can tell them apart.
"""

from tracking_kernel.domain.types import StepStatus
from tracking_kernel.domain.workflow import Transition, Workflow
from tracking_kernel.logging_config import get_logger

logger = get_logger("domain.step_workflow")

_NS = StepStatus.NOT_STARTED.value
_IP = StepStatus.IN_PROGRESS.value
_C = StepStatus.COMPLETE.value
_NA = StepStatus.NOT_APPLICABLE.value


STEP_STATUS_WORKFLOW = Workflow(
    name="unit_step_status",
    description="Progress of one production unit on one step",
    initial_state=_NS,
    states=(_NS, _IP, _C, _NA),
    transitions=(
        # Forward progress
        Transition(_NS, _IP, action="start"),
        Transition(_NS, _C, action="complete"),
        Transition(_NS, _NA, action="waive"),
        Transition(_IP, _C, action="complete"),
        Transition(_IP, _NA, action="waive"),
        # Corrections
        Transition(_IP, _NS, action="reset", correction=True),
        Transition(_C, _NS, action="reset", correction=True),
        Transition(_C, _IP, action="reopen", correction=True),
        Transition(_C, _NA, action="waive", correction=True),
        Transition(_NA, _NS, action="reset", correction=True),
        Transition(_NA, _IP, action="reinstate", correction=True),
        Transition(_NA, _C, action="complete", correction=True),
    ),
)

logger.debug(
    "step_status_workflow_registered",
    extra={
        "workflow_name": STEP_STATUS_WORKFLOW.name,
        "state_count": len(STEP_STATUS_WORKFLOW.states),
        "transition_count": len(STEP_STATUS_WORKFLOW.transitions),
    },
)


def classify_transition(from_status: StepStatus, to_status: StepStatus) -> Transition:
    """Return the declared transition between two step statuses.

    Applying the current status again is a ``reapply`` transition; for
    Complete this re-stamps the completion date and actor.
    """
    if from_status is to_status:
        return Transition(from_status.value, to_status.value, action="reapply")
    transition = STEP_STATUS_WORKFLOW.find(from_status.value, to_status.value)
    if transition is None:
        # Every ordered pair of distinct states is declared above.
        raise ValueError(f"Undeclared step transition {from_status} -> {to_status}")
    return transition
