"""Configuration of blocking operations and the identifiers they use."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from kubegres.blocking_operation import KubegresBlockingOperation

CompletionChecker = Callable[["KubegresBlockingOperation"], bool]

TRANSITION_OPERATION_STEP_ID = (
    "Transition step: waiting either for the next step to start or for the operation to be removed ..."
)

OPERATION_ID_BASE_CONFIG_COUNT_SPEC_ENFORCEMENT = "Base config count spec enforcement"
OPERATION_STEP_ID_BASE_CONFIG_DEPLOYING = "Base config is deploying"

OPERATION_ID_PRIMARY_DB_COUNT_SPEC_ENFORCEMENT = "Primary DB count spec enforcement"
OPERATION_STEP_ID_PRIMARY_DB_DEPLOYING = "Primary DB is deploying"
OPERATION_STEP_ID_PRIMARY_DB_WAITING_BEFORE_FAILING_OVER = (
    "Waiting few seconds before failing over by promoting a Replica DB as a Primary DB"
)
OPERATION_STEP_ID_PRIMARY_DB_FAILING_OVER = "Failing over by promoting a Replica DB as a Primary DB"

OPERATION_ID_REPLICA_DB_COUNT_SPEC_ENFORCEMENT = "Replica DB count spec enforcement"
OPERATION_STEP_ID_REPLICA_DB_DEPLOYING = "Replica DB is deploying"
OPERATION_STEP_ID_REPLICA_DB_UNDEPLOYING = "Replica DB is undeploying"

OPERATION_ID_STATEFULSET_SPEC_ENFORCING = "Enforcing StatefulSet's Spec"
OPERATION_STEP_ID_STATEFULSET_SPEC_UPDATING = "StatefulSet's spec is updating"
OPERATION_STEP_ID_STATEFULSET_POD_SPEC_UPDATING = "StatefulSet Pod's spec is updating"
OPERATION_STEP_ID_STATEFULSET_WAITING_ON_STUCK_POD = "Attempting to fix a stuck Pod by recreating it"


def make_config_id(operation_id: str, step_id: str) -> str:
    """Return the key under which a config for an operation step is stored."""
    return f"{operation_id}_{step_id}"


@dataclass(frozen=True)
class BlockingOperationConfig:
    """How long an operation step may run and how its completion is detected.

    Once a step completes it is removed as active operation and recorded as
    the previous one. If it times out while it has a completion checker, it
    stays active until removed by hand. With
    ``after_completion_move_to_transition_step`` set, a completed step is
    replaced by the transition step under the same operation id, which keeps
    other operations from starting.
    """

    operation_id: str = ""
    step_id: str = ""
    time_out_in_seconds: int = 0
    completion_checker: Optional[CompletionChecker] = None
    after_completion_move_to_transition_step: bool = False

    def config_id(self) -> str:
        return make_config_id(self.operation_id, self.step_id)