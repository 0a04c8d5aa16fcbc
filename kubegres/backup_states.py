"""State of the back-up resources deployed for a Kubegres resource."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

CRON_JOB_NAME_PREFIX = "backup-"


class ResourceNotFound(LookupError):
    """Raised by a client when a requested resource is not deployed."""


class _Client(Protocol):
    def get(self, kind: str, namespace: str, name: str) -> Mapping[str, Any]:
        ...


@dataclass
class BackUpStates:
    is_cronjob_deployed: bool = False
    is_pvc_deployed: bool = False
    config_map: str = ""
    cronjob_last_schedule_time: str = ""
    deployed_cronjob: Optional[Mapping[str, Any]] = None


def _path(obj: Optional[Mapping[str, Any]], *keys: str) -> Any:
    current: Any = obj
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _get_deployed(
    client: _Client,
    kind: str,
    namespace: str,
    name: str,
    reason: str,
    log: logging.Logger,
) -> Optional[Mapping[str, Any]]:
    try:
        return client.get(kind, namespace, name)
    except ResourceNotFound:
        return None
    except Exception:
        log.error(
            "%s: Unable to load any deployed BackUp %s. %s name=%s", reason, kind, kind, name
        )
        raise


def load_backup_states(
    kubegres: Mapping[str, Any],
    client: _Client,
    log: Optional[logging.Logger] = None,
) -> BackUpStates:
    """Look up the back-up CronJob and PVC of a Kubegres resource."""
    log = log or logging.getLogger(__name__)
    namespace = _path(kubegres, "metadata", "namespace") or ""
    name = _path(kubegres, "metadata", "name") or ""
    states = BackUpStates()

    cronjob = _get_deployed(
        client,
        "CronJob",
        namespace,
        CRON_JOB_NAME_PREFIX + name,
        "BackUpCronJobLoadingErr",
        log,
    )
    if cronjob and _path(cronjob, "metadata", "name"):
        states.deployed_cronjob = cronjob
        states.is_cronjob_deployed = True
        volumes = (
            _path(cronjob, "spec", "jobTemplate", "spec", "template", "spec", "volumes") or []
        )
        if len(volumes) >= 2:
            states.config_map = _path(volumes[1], "configMap", "name") or ""
        last_schedule_time = _path(cronjob, "status", "lastScheduleTime")
        if last_schedule_time is not None:
            states.cronjob_last_schedule_time = str(last_schedule_time)

    pvc_name = _path(kubegres, "spec", "backup", "pvcName") or ""
    pvc = _get_deployed(
        client,
        "PersistentVolumeClaim",
        namespace,
        pvc_name,
        "BackUpPersistentVolumeClaimLoadingErr",
        log,
    )
    if pvc and _path(pvc, "metadata", "name"):
        states.is_pvc_deployed = True

    return states