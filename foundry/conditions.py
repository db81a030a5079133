"""Helpers for managing the conditions and phase recorded in a VM's status."""

from __future__ import annotations

from datetime import datetime, timezone

from foundry.models import (
    CONDITION_CLOUD_INIT_READY,
    CONDITION_NETWORK_CONFIGURED,
    CONDITION_READY,
    CONDITION_STORAGE_PROVISIONED,
    Condition,
    ConditionStatus,
    VirtualMachine,
    VMPhase,
)


def set_condition(
    vm: VirtualMachine,
    cond_type: str,
    status: ConditionStatus,
    reason: str,
    message: str,
) -> None:
    """Add or update a condition.

    The transition time only moves when the status actually changes.
    """
    now = datetime.now(timezone.utc)
    existing = get_condition(vm, cond_type)
    if existing is None:
        vm.status.conditions.append(
            Condition(
                type=cond_type,
                status=status,
                observed_generation=vm.generation,
                last_transition_time=now,
                reason=reason,
                message=message,
            )
        )
        return

    if existing.status != status:
        existing.last_transition_time = now
    existing.status = status
    existing.reason = reason
    existing.message = message
    existing.observed_generation = vm.generation


def get_condition(vm: VirtualMachine, cond_type: str) -> Condition | None:
    """Return the condition of the given type, or None if there is none."""
    return next((cond for cond in vm.status.conditions if cond.type == cond_type), None)


def is_condition_true(vm: VirtualMachine, cond_type: str) -> bool:
    """Whether the condition exists and has status True."""
    cond = get_condition(vm, cond_type)
    return cond is not None and cond.status == ConditionStatus.TRUE


def is_condition_false(vm: VirtualMachine, cond_type: str) -> bool:
    """Whether the condition exists and has status False."""
    cond = get_condition(vm, cond_type)
    return cond is not None and cond.status == ConditionStatus.FALSE


def remove_condition(vm: VirtualMachine, cond_type: str) -> None:
    """Remove every condition of the given type."""
    vm.status.conditions = [cond for cond in vm.status.conditions if cond.type != cond_type]


def mark_ready(vm: VirtualMachine) -> None:
    """Set all conditions True, the phase Running, and record the generation."""
    set_condition(vm, CONDITION_READY, ConditionStatus.TRUE, "VMReady", "VM is running and accessible")
    set_condition(
        vm,
        CONDITION_STORAGE_PROVISIONED,
        ConditionStatus.TRUE,
        "StorageReady",
        "All storage volumes created successfully",
    )
    set_condition(
        vm,
        CONDITION_NETWORK_CONFIGURED,
        ConditionStatus.TRUE,
        "NetworkReady",
        "Network interfaces configured",
    )
    set_condition(
        vm,
        CONDITION_CLOUD_INIT_READY,
        ConditionStatus.TRUE,
        "CloudInitReady",
        "Cloud-init ISO created and attached",
    )
    vm.status.phase = VMPhase.RUNNING
    vm.update_observed_generation()


def mark_storage_provisioned(vm: VirtualMachine) -> None:
    """Mark storage provisioning as done."""
    set_condition(
        vm,
        CONDITION_STORAGE_PROVISIONED,
        ConditionStatus.TRUE,
        "StorageCreated",
        "All storage volumes created successfully",
    )


def mark_storage_failed(vm: VirtualMachine, err: BaseException | str) -> None:
    """Mark storage provisioning as failed and the VM as Failed."""
    set_condition(vm, CONDITION_STORAGE_PROVISIONED, ConditionStatus.FALSE, "StorageFailed", str(err))
    vm.status.phase = VMPhase.FAILED


def mark_network_configured(vm: VirtualMachine) -> None:
    """Mark network configuration as done."""
    set_condition(
        vm,
        CONDITION_NETWORK_CONFIGURED,
        ConditionStatus.TRUE,
        "NetworkReady",
        "Network interfaces configured",
    )


def mark_network_failed(vm: VirtualMachine, err: BaseException | str) -> None:
    """Mark network configuration as failed and the VM as Failed."""
    set_condition(vm, CONDITION_NETWORK_CONFIGURED, ConditionStatus.FALSE, "NetworkFailed", str(err))
    vm.status.phase = VMPhase.FAILED


def mark_cloud_init_ready(vm: VirtualMachine) -> None:
    """Mark the cloud-init ISO as generated."""
    set_condition(
        vm,
        CONDITION_CLOUD_INIT_READY,
        ConditionStatus.TRUE,
        "CloudInitGenerated",
        "Cloud-init ISO created and attached",
    )


def mark_cloud_init_failed(vm: VirtualMachine, err: BaseException | str) -> None:
    """Mark cloud-init generation as failed and the VM as Failed."""
    set_condition(vm, CONDITION_CLOUD_INIT_READY, ConditionStatus.FALSE, "CloudInitFailed", str(err))
    vm.status.phase = VMPhase.FAILED


def mark_failed(vm: VirtualMachine, reason: str, message: str) -> None:
    """Set Ready to False and the phase to Failed."""
    set_condition(vm, CONDITION_READY, ConditionStatus.FALSE, reason, message)
    vm.status.phase = VMPhase.FAILED