"""Phase transitions of a virtual machine's lifecycle."""

from __future__ import annotations

from foundry.conditions import set_condition
from foundry.models import CONDITION_READY, ConditionStatus, VirtualMachine, VMPhase


class PhaseTransitionError(ValueError):
    """Raised when a VM cannot move to the requested phase from its current one."""


def _require_phase(vm: VirtualMachine, target: VMPhase, allowed: tuple[VMPhase, ...]) -> None:
    phase = vm.status.phase
    if phase not in allowed:
        shown = phase.value if phase is not None else ""
        raise PhaseTransitionError(f"cannot transition to {target.value} from phase {shown}")


def transition_to_creating(vm: VirtualMachine) -> None:
    """Move a Pending VM to Creating."""
    _require_phase(vm, VMPhase.CREATING, (VMPhase.PENDING,))
    vm.status.phase = VMPhase.CREATING
    set_condition(vm, CONDITION_READY, ConditionStatus.FALSE, "Creating", "VM creation in progress")


def transition_to_running(vm: VirtualMachine) -> None:
    """Move a Creating or Stopped VM to Running."""
    _require_phase(vm, VMPhase.RUNNING, (VMPhase.CREATING, VMPhase.STOPPED))
    vm.status.phase = VMPhase.RUNNING
    set_condition(vm, CONDITION_READY, ConditionStatus.TRUE, "VMReady", "VM is running and accessible")
    vm.update_observed_generation()


def transition_to_stopping(vm: VirtualMachine) -> None:
    """Move a Running VM to Stopping."""
    _require_phase(vm, VMPhase.STOPPING, (VMPhase.RUNNING,))
    vm.status.phase = VMPhase.STOPPING
    set_condition(vm, CONDITION_READY, ConditionStatus.FALSE, "Stopping", "VM shutdown in progress")


def transition_to_stopped(vm: VirtualMachine) -> None:
    """Move a Stopping (or, when forced, Running) VM to Stopped."""
    _require_phase(vm, VMPhase.STOPPED, (VMPhase.STOPPING, VMPhase.RUNNING))
    vm.status.phase = VMPhase.STOPPED
    set_condition(vm, CONDITION_READY, ConditionStatus.FALSE, "Stopped", "VM has been stopped")


def transition_to_failed(vm: VirtualMachine, reason: str, message: str) -> None:
    """Move the VM to Failed from any phase."""
    vm.status.phase = VMPhase.FAILED
    set_condition(vm, CONDITION_READY, ConditionStatus.FALSE, reason, message)


def is_terminal(phase: VMPhase | None) -> bool:
    """Whether the phase is Stopped or Failed."""
    return phase in (VMPhase.STOPPED, VMPhase.FAILED)


def is_running(phase: VMPhase | None) -> bool:
    """Whether the phase is Running."""
    return phase == VMPhase.RUNNING


def is_transitioning(phase: VMPhase | None) -> bool:
    """Whether the phase is Creating or Stopping."""
    return phase in (VMPhase.CREATING, VMPhase.STOPPING)