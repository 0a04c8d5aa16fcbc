"""Reconciliation of a Kubegres resource towards its spec."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Protocol, TypeVar

_SEPARATOR = "=" * 55
_T = TypeVar("_T")


class _Client(Protocol):
    def get(self, kind: str, namespace: str, name: str) -> Mapping[str, Any]:
        ...


@dataclass(frozen=True)
class ReconcileResult:
    requeue: bool = False
    requeue_after: int = 0


class KubegresReconciler:
    """Moves the deployed state of a Kubegres resource closer to its spec.

    ``context_factory`` builds, for a loaded Kubegres resource, an object with
    the attributes ``blocking_operation``, ``blocking_operation_logger``,
    ``resources_states_logger``, ``spec_checker``,
    ``resources_count_spec_enforcer``, ``all_statefulsets_spec_enforcer`` and
    ``status``.
    """

    def __init__(
        self,
        client: _Client,
        context_factory: Callable[[Mapping[str, Any]], Any],
        *,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._context_factory = context_factory
        self._log = logger or logging.getLogger(__name__)
        self._sleep = sleep

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        self._log.info(_SEPARATOR)
        self._log.info(_SEPARATOR)

        kubegres = self._get_deployed_kubegres(namespace, name)
        if kubegres is None:
            self._log.info("Kubegres resource does not exist")
            return ReconcileResult()

        context = self._context_factory(kubegres)

        seconds_left = context.blocking_operation.load_active_operation()
        context.blocking_operation_logger.log()
        context.resources_states_logger.log()

        if seconds_left > 0:
            result = ReconcileResult(requeue=True, requeue_after=seconds_left)
            return self._with_status_update(context, lambda: result)

        return self._with_status_update(context, lambda: self._check_and_enforce(context))

    def _get_deployed_kubegres(self, namespace: str, name: str) -> Optional[Mapping[str, Any]]:
        # Give Kubernetes time to persist its latest changes before reading.
        self._sleep(1)
        try:
            return self._client.get("Kubegres", namespace, name)
        except Exception:
            self._log.info("Kubegres resource does not exist")
            return None

    def _check_and_enforce(self, context: Any) -> ReconcileResult:
        check_result = context.spec_checker.check_spec()
        if check_result.has_spec_fatal_error:
            return ReconcileResult()
        context.resources_count_spec_enforcer.enforce_spec()
        context.all_statefulsets_spec_enforcer.enforce_spec()
        return ReconcileResult()

    @staticmethod
    def _with_status_update(context: Any, action: Callable[[], _T]) -> _T:
        try:
            result = action()
        except Exception:
            try:
                context.status.update_status_if_changed()
            except Exception:
                pass
            raise
        context.status.update_status_if_changed()
        return result