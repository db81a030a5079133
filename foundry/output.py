"""Formatters that render VirtualMachine resources as tables, YAML or JSON."""

from __future__ import annotations

import enum
import json
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Union

import yaml

from foundry.models import API_VERSION, VirtualMachine

_PADDING = 2
_TABLE_HEADER = ("NAME", "PHASE", "IP", "VCPUs", "MEMORY", "AGE")


class Format(str, enum.Enum):
    """Output format."""

    TABLE = "table"
    YAML = "yaml"
    JSON = "json"

    def __str__(self) -> str:
        return self.value


@dataclass
class Options:
    """Options controlling how resources are rendered."""

    format: Format | str
    no_headers: bool = False


def _align(rows: Sequence[Sequence[str]]) -> str:
    """Lay out rows in columns separated by at least two spaces."""
    columns = list(zip(*rows))
    widths = [max(map(len, column)) + _PADDING for column in columns[:-1]]
    lines = (
        "".join(cell.ljust(width) for cell, width in zip(row, widths)) + row[-1]
        for row in rows
    )
    return "".join(line + "\n" for line in lines)


def format_age(seconds: float | timedelta) -> str:
    """Render a duration as a short age such as 5s, 2m, 3h, 4d, 2w or 1y."""
    if isinstance(seconds, timedelta):
        seconds = seconds.total_seconds()
    if seconds < 0:
        return "unknown"

    total = int(seconds)
    if total < 60:
        return f"{total}s"
    minutes = total // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h"
    days = hours // 24
    if days < 7:
        return f"{days}d"
    weeks = days // 7
    if weeks < 8:
        return f"{weeks}w"
    years = days // 365
    if years > 0:
        return f"{years}y"
    return f"{days}d"


def _age_of(created: datetime | None) -> str:
    if created is None:
        return "-"
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return format_age(datetime.now(timezone.utc) - created)


@dataclass
class TableFormatter:
    """Renders resources as a human-readable table."""

    no_headers: bool = False

    def format_vm(self, vm: VirtualMachine) -> str:
        """Render a single VM as a one-row table."""
        return self.format_vm_list([vm])

    def format_vm_list(self, vms: Sequence[VirtualMachine]) -> str:
        """Render VMs as a table, one row each."""
        if not vms:
            return "No VMs found\n"

        rows: list[tuple[str, ...]] = [] if self.no_headers else [_TABLE_HEADER]
        for vm in vms:
            phase = vm.status.phase.value if vm.status.phase else "-"
            ip = vm.status.addresses[0].address if vm.status.addresses else "-"
            rows.append(
                (
                    vm.name,
                    phase,
                    ip,
                    str(vm.spec.vcpus),
                    f"{vm.spec.memory_gib} GiB",
                    _age_of(vm.creation_timestamp),
                )
            )
        return _align(rows)


class YAMLFormatter:
    """Renders resources as YAML documents."""

    def format_vm(self, vm: VirtualMachine) -> str:
        """Render a single VM as one YAML document."""
        vm.set_default_api_version()
        return yaml.safe_dump(vm.to_dict(), sort_keys=False)

    def format_vm_list(self, vms: Sequence[VirtualMachine]) -> str:
        """Render VMs as a YAML stream separated by '---'."""
        return "---\n".join(self.format_vm(vm) for vm in vms)


class JSONFormatter:
    """Renders resources as indented JSON."""

    def format_vm(self, vm: VirtualMachine) -> str:
        """Render a single VM as a JSON object."""
        vm.set_default_api_version()
        return json.dumps(vm.to_dict(), indent=2) + "\n"

    def format_vm_list(self, vms: Sequence[VirtualMachine]) -> str:
        """Render VMs as a JSON array."""
        if not vms:
            return "[]\n"
        for vm in vms:
            vm.set_default_api_version()
        return json.dumps([vm.to_dict() for vm in vms], indent=2) + "\n"

    def format_vm_list_as_items(self, vms: Sequence[VirtualMachine]) -> str:
        """Render VMs as a VirtualMachineList object with an items array."""
        for vm in vms:
            vm.set_default_api_version()
        wrapper = {
            "apiVersion": API_VERSION,
            "items": [vm.to_dict() for vm in vms],
            "kind": "VirtualMachineList",
        }
        return json.dumps(wrapper, indent=2) + "\n"


_Formatter = Union[TableFormatter, YAMLFormatter, JSONFormatter]


def new_formatter(options: Options) -> _Formatter:
    """Return the formatter for the requested format; raise ValueError if unknown."""
    try:
        fmt = Format(options.format)
    except ValueError:
        raise ValueError(
            f"unsupported output format: {options.format} (supported: table, yaml, json)"
        ) from None
    if fmt is Format.TABLE:
        return TableFormatter(no_headers=options.no_headers)
    if fmt is Format.YAML:
        return YAMLFormatter()
    return JSONFormatter()


def validate_format(format: str) -> None:
    """Raise ValueError unless the string names a supported format."""
    try:
        Format(format)
    except ValueError:
        raise ValueError(
            f"invalid format: {format} (valid formats: table, yaml, json)"
        ) from None