import pytest

from kubegres.blocking_operation import (
    BlockingOperation,
    KubegresBlockingOperation,
    OperationStatus,
)
from kubegres.operation_config import (
    OPERATION_ID_PRIMARY_DB_COUNT_SPEC_ENFORCEMENT,
    OPERATION_ID_STATEFULSET_SPEC_ENFORCING,
    OPERATION_STEP_ID_PRIMARY_DB_DEPLOYING,
    OPERATION_STEP_ID_STATEFULSET_POD_SPEC_UPDATING,
    OPERATION_STEP_ID_STATEFULSET_SPEC_UPDATING,
    TRANSITION_OPERATION_STEP_ID,
    BlockingOperationConfig,
)
from kubegres.operation_error import BlockingOperationError

PRIMARY = OPERATION_ID_PRIMARY_DB_COUNT_SPEC_ENFORCEMENT
PRIMARY_STEP = OPERATION_STEP_ID_PRIMARY_DB_DEPLOYING
SPEC = OPERATION_ID_STATEFULSET_SPEC_ENFORCING
SPEC_STEP = OPERATION_STEP_ID_STATEFULSET_SPEC_UPDATING


class FakeClock:
    def __init__(self, now=1_000_000):
        self.now = now

    def __call__(self):
        return self.now


def make(configs=(), status=None, name="mydb"):
    clock = FakeClock()
    status = status or OperationStatus()
    operation = BlockingOperation(status, name, clock=clock)
    for config in configs:
        operation.add_config(config)
    return operation, status, clock


def test_activation_without_config_raises():
    operation, _, _ = make()
    with pytest.raises(BlockingOperationError) as info:
        operation.activate_operation(PRIMARY, PRIMARY_STEP)
    assert info.value.operation_id_has_no_associated_config


def test_activation_sets_timeout_and_status():
    config = BlockingOperationConfig(PRIMARY, PRIMARY_STEP, 300)
    operation, status, clock = make([config])
    operation.activate_operation(PRIMARY, PRIMARY_STEP)
    assert status.blocking_operation == operation.active_operation
    assert operation.active_operation.time_out_epoc_in_seconds == clock.now + 300
    assert operation.seconds_left_before_timeout() == 300


def test_load_caps_wait_at_twenty_seconds():
    config = BlockingOperationConfig(PRIMARY, PRIMARY_STEP, 300)
    operation, status, _ = make([config])
    operation.activate_operation(PRIMARY, PRIMARY_STEP)
    reloaded, _, _ = make([config], status=status)
    assert reloaded.load_active_operation() == 20


def test_load_returns_remaining_seconds_below_cap():
    config = BlockingOperationConfig(PRIMARY, PRIMARY_STEP, 300)
    operation, _, clock = make([config])
    operation.activate_operation(PRIMARY, PRIMARY_STEP)
    clock.now += 295
    assert operation.load_active_operation() == 5
    assert operation.active_operation.operation_id == PRIMARY


def test_other_operation_cannot_start_while_one_is_active():
    configs = [
        BlockingOperationConfig(PRIMARY, PRIMARY_STEP, 300),
        BlockingOperationConfig(SPEC, SPEC_STEP, 300),
    ]
    operation, _, _ = make(configs)
    operation.activate_operation(PRIMARY, PRIMARY_STEP)
    assert operation.is_active_operation_id_different_of(SPEC)
    assert not operation.is_active_operation_id_different_of(PRIMARY)
    with pytest.raises(BlockingOperationError) as info:
        operation.activate_operation(SPEC, SPEC_STEP)
    assert info.value.there_is_already_an_active_operation


def test_same_operation_can_move_to_another_step():
    configs = [
        BlockingOperationConfig(SPEC, SPEC_STEP, 300),
        BlockingOperationConfig(SPEC, OPERATION_STEP_ID_STATEFULSET_POD_SPEC_UPDATING, 300),
    ]
    operation, _, _ = make(configs)
    operation.activate_operation(SPEC, SPEC_STEP)
    operation.activate_operation(SPEC, OPERATION_STEP_ID_STATEFULSET_POD_SPEC_UPDATING)
    assert operation.active_operation.step_id == OPERATION_STEP_ID_STATEFULSET_POD_SPEC_UPDATING


def test_completed_operation_is_removed_and_becomes_previous():
    config = BlockingOperationConfig(PRIMARY, PRIMARY_STEP, 300, completion_checker=lambda op: True)
    operation, status, _ = make([config])
    operation.activate_operation(PRIMARY, PRIMARY_STEP)
    assert operation.load_active_operation() == 0
    assert operation.active_operation == KubegresBlockingOperation()
    assert status.blocking_operation == KubegresBlockingOperation()
    assert status.previous_blocking_operation.operation_id == PRIMARY
    assert status.previous_blocking_operation.has_timed_out is False


def test_incomplete_operation_stays_active():
    config = BlockingOperationConfig(PRIMARY, PRIMARY_STEP, 300, completion_checker=lambda op: False)
    operation, _, _ = make([config])
    operation.activate_operation(PRIMARY, PRIMARY_STEP)
    operation.load_active_operation()
    assert operation.active_operation.step_id == PRIMARY_STEP


def test_completed_operation_moves_to_transition_step():
    config = BlockingOperationConfig(
        SPEC, SPEC_STEP, 300, completion_checker=lambda op: True,
        after_completion_move_to_transition_step=True,
    )
    operation, status, _ = make([config])
    operation.activate_operation_on_statefulset_spec_update(SPEC, SPEC_STEP, 2, "Image")
    operation.load_active_operation()
    assert operation.is_active_operation_in_transition(SPEC)
    assert operation.active_operation.time_out_epoc_in_seconds == 0
    assert operation.seconds_left_before_timeout() == 0
    assert status.previous_blocking_operation.step_id == SPEC_STEP
    assert status.previous_blocking_operation.statefulset_operation.instance_index == 2


def test_remove_in_transition_keeps_previous_operation():
    config = BlockingOperationConfig(
        SPEC, SPEC_STEP, 300, completion_checker=lambda op: True,
        after_completion_move_to_transition_step=True,
    )
    operation, status, _ = make([config])
    operation.activate_operation(SPEC, SPEC_STEP)
    operation.load_active_operation()
    operation.remove_active_operation()
    assert operation.active_operation == KubegresBlockingOperation()
    assert status.previous_blocking_operation.step_id == SPEC_STEP


def test_timed_out_operation_without_checker_is_removed():
    config = BlockingOperationConfig(PRIMARY, PRIMARY_STEP, 30)
    operation, status, clock = make([config])
    operation.activate_operation(PRIMARY, PRIMARY_STEP)
    clock.now += 30
    operation.load_active_operation()
    assert operation.active_operation.operation_id == ""
    assert status.previous_blocking_operation.has_timed_out is True


def test_timed_out_operation_with_checker_stays_active():
    config = BlockingOperationConfig(PRIMARY, PRIMARY_STEP, 30, completion_checker=lambda op: False)
    operation, _, clock = make([config])
    operation.activate_operation(PRIMARY, PRIMARY_STEP)
    clock.now += 45
    assert operation.load_active_operation() == 0
    assert operation.has_active_operation_id_timed_out(PRIMARY)
    assert not operation.has_active_operation_id_timed_out(SPEC)
    assert operation.seconds_since_timed_out() == 15


def test_statefulset_operation_records_index_and_name():
    config = BlockingOperationConfig(PRIMARY, PRIMARY_STEP, 300)
    operation, _, _ = make([config], name="mydb")
    operation.activate_operation_on_statefulset(PRIMARY, PRIMARY_STEP, 3)
    assert operation.active_operation.statefulset_operation.instance_index == 3
    assert operation.active_operation.statefulset_operation.name == "mydb-3"


def test_spec_update_records_differences():
    config = BlockingOperationConfig(SPEC, SPEC_STEP, 300)
    operation, status, _ = make([config])
    operation.activate_operation_on_statefulset_spec_update(SPEC, SPEC_STEP, 1, "Affinity")
    spec_update = status.blocking_operation.statefulset_spec_update_operation
    assert spec_update.spec_differences == "Affinity"


def test_seconds_since_operation_started():
    config = BlockingOperationConfig(SPEC, SPEC_STEP, 300)
    operation, _, clock = make([config])
    operation.activate_operation(SPEC, SPEC_STEP)
    clock.now += 7
    assert operation.seconds_since_operation_started() == 7


def test_no_active_operation_means_nothing_to_wait_for():
    operation, _, _ = make()
    assert operation.load_active_operation() == 0
    assert operation.is_active_operation_id_different_of(PRIMARY) is False
    assert operation.previously_active_operation == KubegresBlockingOperation()