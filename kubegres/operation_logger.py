"""Logging of the active and the previously active blocking operations."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from kubegres.blocking_operation import BlockingOperation, KubegresBlockingOperation


def operation_fields(operation: KubegresBlockingOperation) -> Dict[str, Any]:
    """Return the fields of an operation worth logging, in logging order."""
    fields: Dict[str, Any] = {
        "OperationId": operation.operation_id,
        "StepId": operation.step_id,
        "HasTimedOut": operation.has_timed_out,
    }
    instance_index = operation.statefulset_operation.instance_index
    if instance_index != 0:
        fields["StatefulSetInstanceIndex"] = instance_index
    spec_differences = operation.statefulset_spec_update_operation.spec_differences
    if spec_differences != "":
        fields["StatefulSetSpecDifferences"] = spec_differences
    return fields


def _format_fields(fields: Dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in fields.items())


class BlockingOperationLogger:
    """Writes the state of a blocking operation to a logger."""

    def __init__(
        self,
        blocking_operation: BlockingOperation,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._blocking_operation = blocking_operation
        self._log = logger or logging.getLogger(__name__)

    def log(self) -> None:
        self._log_active_operation()
        self._log_previously_active_operation()

    def _log_active_operation(self) -> None:
        active = self._blocking_operation.active_operation
        if active.operation_id == "":
            self._log.info("Active Blocking-Operation: None")
            return
        fields = operation_fields(active)
        fields["NbreSecondsLeftBeforeTimeOut"] = (
            self._blocking_operation.seconds_left_before_timeout()
        )
        self._log.info("Active Blocking-Operation %s", _format_fields(fields))

    def _log_previously_active_operation(self) -> None:
        previous = self._blocking_operation.previously_active_operation
        if previous.operation_id == "":
            self._log.info("Previous Blocking-Operation: None")
            return
        self._log.info("Previous Blocking-Operation %s", _format_fields(operation_fields(previous)))