"""A single blocking operation that keeps other operations from starting."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Optional

from kubegres.operation_config import (
    TRANSITION_OPERATION_STEP_ID,
    BlockingOperationConfig,
    make_config_id,
)
from kubegres.operation_error import BlockingOperationError, BlockingOperationErrorType

_MAX_REQUEUE_SECONDS = 20
_NO_CONFIG = BlockingOperationConfig()


@dataclass(frozen=True)
class StatefulSetOperation:
    instance_index: int = 0
    name: str = ""


@dataclass(frozen=True)
class StatefulSetSpecUpdateOperation:
    spec_differences: str = ""


@dataclass(frozen=True)
class KubegresBlockingOperation:
    operation_id: str = ""
    step_id: str = ""
    time_out_epoc_in_seconds: int = 0
    has_timed_out: bool = False
    statefulset_operation: StatefulSetOperation = field(default_factory=StatefulSetOperation)
    statefulset_spec_update_operation: StatefulSetSpecUpdateOperation = field(
        default_factory=StatefulSetSpecUpdateOperation
    )


@dataclass
class OperationStatus:
    """The part of a Kubegres status that records blocking operations."""

    blocking_operation: KubegresBlockingOperation = field(default_factory=KubegresBlockingOperation)
    previous_blocking_operation: KubegresBlockingOperation = field(
        default_factory=KubegresBlockingOperation
    )


def _now() -> int:
    return int(time.time())


class BlockingOperation:
    """Tracks the one active blocking operation and the one before it."""

    def __init__(
        self,
        status: OperationStatus,
        kubegres_name: str = "",
        *,
        clock: Callable[[], int] = _now,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._status = status
        self._kubegres_name = kubegres_name
        self._clock = clock
        self._log = logger or logging.getLogger(__name__)
        self._configs: Dict[str, BlockingOperationConfig] = {}
        self._active = KubegresBlockingOperation()
        self._previous = KubegresBlockingOperation()

    def add_config(self, config: BlockingOperationConfig) -> None:
        self._configs[config.config_id()] = config

    def load_active_operation(self) -> int:
        """Load operations from the status; return seconds to wait, at most 20."""
        self._active = self._status.blocking_operation
        self._previous = self._status.previous_blocking_operation
        self._remove_operation_if_not_active()
        return min(self.seconds_left_before_timeout(), _MAX_REQUEUE_SECONDS)

    def is_active_operation_id_different_of(self, operation_id: str) -> bool:
        return self._is_there_active_operation() and self._active.operation_id != operation_id

    def is_active_operation_in_transition(self, operation_id: str) -> bool:
        return (
            self._active.operation_id == operation_id
            and self._active.step_id == TRANSITION_OPERATION_STEP_ID
        )

    def has_active_operation_id_timed_out(self, operation_id: str) -> bool:
        return self._active.operation_id == operation_id and self._active.has_timed_out

    @property
    def active_operation(self) -> KubegresBlockingOperation:
        return self._active

    @property
    def previously_active_operation(self) -> KubegresBlockingOperation:
        return self._previous

    def activate_operation(self, operation_id: str, step_id: str) -> None:
        self._activate(KubegresBlockingOperation(operation_id=operation_id, step_id=step_id))

    def activate_operation_on_statefulset(
        self, operation_id: str, step_id: str, instance_index: int
    ) -> None:
        self._activate(
            KubegresBlockingOperation(
                operation_id=operation_id,
                step_id=step_id,
                statefulset_operation=self._statefulset_operation(instance_index),
            )
        )

    def activate_operation_on_statefulset_spec_update(
        self, operation_id: str, step_id: str, instance_index: int, spec_differences: str
    ) -> None:
        self._activate(
            KubegresBlockingOperation(
                operation_id=operation_id,
                step_id=step_id,
                statefulset_operation=self._statefulset_operation(instance_index),
                statefulset_spec_update_operation=StatefulSetSpecUpdateOperation(spec_differences),
            )
        )

    def remove_active_operation(self) -> None:
        self._remove_active_operation(timed_out=False)

    def seconds_since_operation_started(self) -> int:
        timeout = self._config(self._active).time_out_in_seconds
        return timeout - self.seconds_left_before_timeout()

    def seconds_left_before_timeout(self) -> int:
        if self._active.time_out_epoc_in_seconds == 0:
            return 0
        return max(self._active.time_out_epoc_in_seconds - self._clock(), 0)

    def seconds_since_timed_out(self) -> int:
        return self._clock() - self._active.time_out_epoc_in_seconds

    def _is_there_active_operation(self) -> bool:
        return self._active.operation_id != ""

    def _is_operation_in_transition(self) -> bool:
        return self._active.step_id == TRANSITION_OPERATION_STEP_ID

    def _config(self, operation: KubegresBlockingOperation) -> BlockingOperationConfig:
        return self._configs.get(make_config_id(operation.operation_id, operation.step_id), _NO_CONFIG)

    def _statefulset_operation(self, instance_index: int) -> StatefulSetOperation:
        return StatefulSetOperation(
            instance_index=instance_index, name=f"{self._kubegres_name}-{instance_index}"
        )

    def _activate(self, operation: KubegresBlockingOperation) -> None:
        if self._is_there_active_operation() and self._active.operation_id != operation.operation_id:
            raise BlockingOperationError(
                BlockingOperationErrorType.THERE_IS_ALREADY_AN_ACTIVE_OPERATION,
                operation.operation_id,
            )
        config = self._config(operation)
        if config.operation_id != operation.operation_id:
            raise BlockingOperationError(
                BlockingOperationErrorType.OPERATION_ID_HAS_NO_ASSOCIATED_CONFIG,
                operation.operation_id,
            )
        operation = replace(
            operation, time_out_epoc_in_seconds=self._clock() + config.time_out_in_seconds
        )
        self._active = operation
        self._status.blocking_operation = operation

    def _remove_active_operation(self, timed_out: bool) -> None:
        if not self._is_operation_in_transition():
            self._previous = replace(self._active, has_timed_out=timed_out)
            self._status.previous_blocking_operation = self._previous
        self._active = KubegresBlockingOperation()
        self._status.blocking_operation = self._active

    def _set_active_operation_in_transition(self, timed_out: bool) -> None:
        self._previous = replace(self._active, has_timed_out=timed_out)
        self._status.previous_blocking_operation = self._previous
        self._active = replace(
            self._active,
            step_id=TRANSITION_OPERATION_STEP_ID,
            has_timed_out=False,
            time_out_epoc_in_seconds=0,
        )
        self._status.blocking_operation = self._active

    def _finish(self, timed_out: bool) -> None:
        if self._config(self._active).after_completion_move_to_transition_step:
            self._set_active_operation_in_transition(timed_out)
        else:
            self._remove_active_operation(timed_out)

    def _info_event(self, reason: str, message: str) -> None:
        self._log.info(
            "%s: %s OperationId=%s StepId=%s",
            reason,
            message,
            self._active.operation_id,
            self._active.step_id,
        )

    def _remove_operation_if_not_active(self) -> None:
        if not self._is_there_active_operation() or self._is_operation_in_transition():
            return

        timed_out = self._active.time_out_epoc_in_seconds - self._clock() <= 0
        config = self._config(self._active)

        if timed_out:
            self._active = replace(self._active, has_timed_out=True)
            if config.completion_checker is None:
                self._finish(timed_out)
            else:
                self._info_event("BlockingOperationTimedOut", "Blocking-Operation timed-out.")
        elif config.completion_checker is not None and config.completion_checker(self._active):
            self._info_event(
                "BlockingOperationCompleted", "Blocking-Operation is successfully completed."
            )
            self._finish(timed_out)