import time

from foundry import conditions
from foundry.models import (
    CONDITION_CLOUD_INIT_READY,
    CONDITION_NETWORK_CONFIGURED,
    CONDITION_READY,
    CONDITION_STORAGE_PROVISIONED,
    ConditionStatus,
    VMPhase,
    new_virtual_machine,
)


def test_set_condition_new_condition():
    vm = new_virtual_machine("test-vm")
    vm.generation = 5

    conditions.set_condition(vm, "TestCondition", ConditionStatus.TRUE, "TestReason", "Test message")

    assert len(vm.status.conditions) == 1
    cond = vm.status.conditions[0]
    assert cond.type == "TestCondition"
    assert cond.status == ConditionStatus.TRUE
    assert cond.reason == "TestReason"
    assert cond.message == "Test message"
    assert cond.observed_generation == 5
    assert cond.last_transition_time is not None


def test_set_condition_update_existing():
    vm = new_virtual_machine("test-vm")
    vm.generation = 1

    conditions.set_condition(vm, "Ready", ConditionStatus.FALSE, "NotReady", "VM not ready")
    initial_time = vm.status.conditions[0].last_transition_time

    time.sleep(0.01)
    conditions.set_condition(vm, "Ready", ConditionStatus.FALSE, "StillNotReady", "Still not ready")

    assert len(vm.status.conditions) == 1
    cond = vm.status.conditions[0]
    assert cond.reason == "StillNotReady"
    assert cond.message == "Still not ready"
    assert cond.last_transition_time == initial_time

    time.sleep(0.01)
    vm.generation = 2
    conditions.set_condition(vm, "Ready", ConditionStatus.TRUE, "NowReady", "VM is ready")

    assert len(vm.status.conditions) == 1
    cond = vm.status.conditions[0]
    assert cond.status == ConditionStatus.TRUE
    assert cond.observed_generation == 2
    assert cond.last_transition_time > initial_time


def test_get_condition():
    vm = new_virtual_machine("test-vm")
    assert conditions.get_condition(vm, "NonExistent") is None

    conditions.set_condition(vm, "Ready", ConditionStatus.TRUE, "Ready", "")
    conditions.set_condition(vm, "StorageProvisioned", ConditionStatus.TRUE, "Provisioned", "")

    cond = conditions.get_condition(vm, "Ready")
    assert cond is not None
    assert cond.type == "Ready"
    assert conditions.get_condition(vm, "NonExistent") is None


def test_is_condition_true():
    vm = new_virtual_machine("test-vm")
    assert conditions.is_condition_true(vm, "Ready") is False

    conditions.set_condition(vm, "Ready", ConditionStatus.FALSE, "NotReady", "")
    assert conditions.is_condition_true(vm, "Ready") is False

    conditions.set_condition(vm, "Ready", ConditionStatus.TRUE, "Ready", "")
    assert conditions.is_condition_true(vm, "Ready") is True

    conditions.set_condition(vm, "Ready", ConditionStatus.UNKNOWN, "Unknown", "")
    assert conditions.is_condition_true(vm, "Ready") is False


def test_is_condition_false():
    vm = new_virtual_machine("test-vm")
    assert conditions.is_condition_false(vm, "Ready") is False

    conditions.set_condition(vm, "Ready", ConditionStatus.TRUE, "Ready", "")
    assert conditions.is_condition_false(vm, "Ready") is False

    conditions.set_condition(vm, "Ready", ConditionStatus.FALSE, "NotReady", "")
    assert conditions.is_condition_false(vm, "Ready") is True

    conditions.set_condition(vm, "Ready", ConditionStatus.UNKNOWN, "Unknown", "")
    assert conditions.is_condition_false(vm, "Ready") is False


def test_remove_condition():
    vm = new_virtual_machine("test-vm")

    conditions.remove_condition(vm, "NonExistent")
    assert vm.status.conditions == []

    conditions.set_condition(vm, "Ready", ConditionStatus.TRUE, "Ready", "")
    conditions.set_condition(vm, "StorageProvisioned", ConditionStatus.TRUE, "Provisioned", "")
    conditions.set_condition(vm, "NetworkConfigured", ConditionStatus.TRUE, "Configured", "")
    assert len(vm.status.conditions) == 3

    conditions.remove_condition(vm, "StorageProvisioned")
    assert len(vm.status.conditions) == 2
    assert conditions.get_condition(vm, "StorageProvisioned") is None
    assert [c.type for c in vm.status.conditions] == ["Ready", "NetworkConfigured"]

    conditions.remove_condition(vm, "NonExistent")
    assert len(vm.status.conditions) == 2


def test_mark_ready():
    vm = new_virtual_machine("test-vm")
    vm.generation = 5

    conditions.mark_ready(vm)

    assert vm.status.phase == VMPhase.RUNNING
    assert vm.status.observed_generation == 5
    expected = [
        CONDITION_READY,
        CONDITION_STORAGE_PROVISIONED,
        CONDITION_NETWORK_CONFIGURED,
        CONDITION_CLOUD_INIT_READY,
    ]
    assert len(vm.status.conditions) == len(expected)
    for cond_type in expected:
        assert conditions.is_condition_true(vm, cond_type)


def test_mark_storage_provisioned():
    vm = new_virtual_machine("test-vm")
    conditions.mark_storage_provisioned(vm)

    assert conditions.is_condition_true(vm, CONDITION_STORAGE_PROVISIONED)
    assert conditions.get_condition(vm, CONDITION_STORAGE_PROVISIONED).reason == "StorageCreated"


def test_mark_storage_failed():
    vm = new_virtual_machine("test-vm")
    err = RuntimeError("storage creation failed")

    conditions.mark_storage_failed(vm, err)

    assert conditions.is_condition_false(vm, CONDITION_STORAGE_PROVISIONED)
    cond = conditions.get_condition(vm, CONDITION_STORAGE_PROVISIONED)
    assert cond.reason == "StorageFailed"
    assert cond.message == "storage creation failed"
    assert vm.status.phase == VMPhase.FAILED


def test_mark_network_configured():
    vm = new_virtual_machine("test-vm")
    conditions.mark_network_configured(vm)

    assert conditions.is_condition_true(vm, CONDITION_NETWORK_CONFIGURED)
    assert conditions.get_condition(vm, CONDITION_NETWORK_CONFIGURED).reason == "NetworkReady"


def test_mark_network_failed():
    vm = new_virtual_machine("test-vm")
    err = RuntimeError("network configuration failed")

    conditions.mark_network_failed(vm, err)

    assert conditions.is_condition_false(vm, CONDITION_NETWORK_CONFIGURED)
    cond = conditions.get_condition(vm, CONDITION_NETWORK_CONFIGURED)
    assert cond.reason == "NetworkFailed"
    assert cond.message == "network configuration failed"
    assert vm.status.phase == VMPhase.FAILED


def test_mark_cloud_init_ready():
    vm = new_virtual_machine("test-vm")
    conditions.mark_cloud_init_ready(vm)

    assert conditions.is_condition_true(vm, CONDITION_CLOUD_INIT_READY)
    assert conditions.get_condition(vm, CONDITION_CLOUD_INIT_READY).reason == "CloudInitGenerated"


def test_mark_cloud_init_failed():
    vm = new_virtual_machine("test-vm")
    err = RuntimeError("cloud-init generation failed")

    conditions.mark_cloud_init_failed(vm, err)

    assert conditions.is_condition_false(vm, CONDITION_CLOUD_INIT_READY)
    cond = conditions.get_condition(vm, CONDITION_CLOUD_INIT_READY)
    assert cond.reason == "CloudInitFailed"
    assert vm.status.phase == VMPhase.FAILED


def test_mark_failed():
    vm = new_virtual_machine("test-vm")

    conditions.mark_failed(vm, "TestFailure", "Something went wrong")

    assert conditions.is_condition_false(vm, CONDITION_READY)
    cond = conditions.get_condition(vm, CONDITION_READY)
    assert cond.reason == "TestFailure"
    assert cond.message == "Something went wrong"
    assert vm.status.phase == VMPhase.FAILED