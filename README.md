# kubegres

This is the reconciliation core of an operator that runs a PostgreSQL cluster
with one primary and several replicas. The core keeps at most one *blocking
operation* active at a time. For example, a failover cannot start while a
StatefulSet spec update is still running. The core also drives one reconcile
pass over a cluster resource.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `kubegres.operation_config`: `BlockingOperationConfig`, `make_config_id`,
  and the operation and step id constants, such as
  `OPERATION_ID_PRIMARY_DB_COUNT_SPEC_ENFORCEMENT` and
  `TRANSITION_OPERATION_STEP_ID`.
- `kubegres.operation_error`: `BlockingOperationError` and
  `BlockingOperationErrorType`.
- `kubegres.blocking_operation`: `BlockingOperation`, `OperationStatus`,
  `KubegresBlockingOperation`, `StatefulSetOperation` and
  `StatefulSetSpecUpdateOperation`.
- `kubegres.operation_logger`: `BlockingOperationLogger` and
  `operation_fields`.
- `kubegres.backup_states`: `load_backup_states`, `BackUpStates` and
  `ResourceNotFound`.
- `kubegres.reconciler`: `KubegresReconciler` and `ReconcileResult`.

## Blocking operations

A blocking operation is named by an operation id and a step id. Each pair
needs a `BlockingOperationConfig`, which sets:

- how long the step may run (`time_out_in_seconds`);
- an optional `completion_checker`;
- whether a completed step moves the operation to the transition step
  (`after_completion_move_to_transition_step`).

`BlockingOperation` reads and writes its state through an `OperationStatus`.
The status holds the current blocking operation and the previous one.

```python
from kubegres.blocking_operation import BlockingOperation, OperationStatus
from kubegres.operation_config import (
    OPERATION_ID_PRIMARY_DB_COUNT_SPEC_ENFORCEMENT,
    OPERATION_STEP_ID_PRIMARY_DB_DEPLOYING,
    BlockingOperationConfig,
)

status = OperationStatus()
operations = BlockingOperation(status, "mypostgres")
operations.add_config(BlockingOperationConfig(
    operation_id=OPERATION_ID_PRIMARY_DB_COUNT_SPEC_ENFORCEMENT,
    step_id=OPERATION_STEP_ID_PRIMARY_DB_DEPLOYING,
    time_out_in_seconds=300,
    completion_checker=lambda operation: False,
))

wait = operations.load_active_operation()   # seconds to wait, at most 20
operations.activate_operation_on_statefulset(
    OPERATION_ID_PRIMARY_DB_COUNT_SPEC_ENFORCEMENT,
    OPERATION_STEP_ID_PRIMARY_DB_DEPLOYING,
    1,
)
operations.active_operation.statefulset_operation.name   # "mypostgres-1"
```

The constructor also takes two keyword arguments:

- `clock`: a function that returns the current time in epoch seconds. It
  defaults to `time.time` truncated to an integer.
- `logger`: a `logging.Logger`.

### Loading the active operation

`load_active_operation()` reads both operations from the status, then checks
the active operation, unless it is already in the transition step:

- If it has timed out and its config has no completion checker, it is
  finished.
- If it has timed out and its config has a completion checker, it stays
  active. It is marked as timed out and the timeout is logged.
- If it has not timed out and its completion checker returns true, it is
  finished.

A finished operation is recorded as the previous operation. Then one of two
things happens:

- If its config says so, the active operation moves to the transition step
  and its timeout is cleared.
- Otherwise, the active operation is cleared.

The method returns the seconds left before the timeout, capped at 20.

### Activating and removing operations

These methods store a new active operation in the status, with a timeout of
now plus the configured number of seconds:

- `activate_operation`
- `activate_operation_on_statefulset`
- `activate_operation_on_statefulset_spec_update`

The store fails with `BlockingOperationError` in two cases, which
`there_is_already_an_active_operation` and
`operation_id_has_no_associated_config` tell apart:

- Another operation id is already active.
- The operation id and step id pair has no config.

`remove_active_operation()` clears the active operation. It records the
cleared operation as the previous one, unless the operation was in the
transition step.

### Queries

The query methods are:

- `is_active_operation_id_different_of`
- `is_active_operation_in_transition`
- `has_active_operation_id_timed_out`
- `seconds_left_before_timeout`
- `seconds_since_operation_started`
- `seconds_since_timed_out`

### Logging operations

`BlockingOperationLogger(operations, logger).log()` writes the active and the
previous operation to the log. An empty operation is logged as `None`.

`operation_fields(operation)` returns the key and value pairs that are
logged:

- `OperationId`, `StepId` and `HasTimedOut` are always included.
- `StatefulSetInstanceIndex` is included only when it is not 0.
- `StatefulSetSpecDifferences` is included only when it is not empty.

## Backup state

`load_backup_states(kubegres, client, log)` takes a Kubegres resource as a
mapping, such as parsed YAML or JSON. It looks up two objects through
`client.get(kind, namespace, name)`:

- the CronJob `backup-<name>`;
- the PersistentVolumeClaim named in `spec.backup.pvcName`.

It returns a `BackUpStates` with these fields:

- `is_cronjob_deployed` and `is_pvc_deployed`.
- `deployed_cronjob`.
- `config_map`: the ConfigMap of the CronJob's second volume.
- `cronjob_last_schedule_time`.

A lookup that raises `ResourceNotFound` counts as "not deployed". Any other
error is logged and raised again.

## Reconciling

`KubegresReconciler(client, context_factory).reconcile(namespace, name)` runs
one reconcile pass:

1. It waits one second, then loads the Kubegres resource through the client.
   If that fails, it returns an empty `ReconcileResult`.
2. It builds a context with `context_factory(kubegres)`.
3. It calls `blocking_operation.load_active_operation()` on the context and
   logs through both loggers.
4. If seconds remain before the operation times out, it returns
   `ReconcileResult(requeue=True, requeue_after=seconds)`.
5. Otherwise it calls `spec_checker.check_spec()`. If the result has a fatal
   error, the pass stops there.
6. Otherwise it calls `enforce_spec()` on `resources_count_spec_enforcer` and
   then on `all_statefulsets_spec_enforcer`.
7. In every case, `status.update_status_if_changed()` is called before the
   pass returns or raises.

The `sleep` and `logger` keyword arguments replace `time.sleep` and the
module logger.

## What this package does not do

The package does not include:

- a Kubernetes client;
- a command or a running controller;
- the spec checker, the resource enforcers and the status writer that a
  reconcile pass calls.

Callers supply these: a client with a `get(kind, namespace, name)` method,
and a `context_factory` that builds the objects listed above.