"""Naming conventions for libvirt resources: MACs, tap devices and volumes."""

from __future__ import annotations

import ipaddress


def _ipv4_octets(ip: str) -> bytes:
    """Return the four octets of an IPv4 address given bare or in CIDR form."""
    text = ip
    if "/" in ip:
        _, _, prefix = ip.partition("/")
        try:
            if not (prefix.isascii() and prefix.isdigit()):
                raise ValueError(f"invalid prefix length {prefix!r}")
            text = str(ipaddress.ip_interface(ip).ip)
        except ValueError as exc:
            raise ValueError(f"invalid IP/CIDR: {exc}") from exc

    try:
        parsed = ipaddress.ip_address(text)
    except ValueError:
        raise ValueError(f"invalid IP address: {text}") from None

    if isinstance(parsed, ipaddress.IPv6Address):
        mapped = parsed.ipv4_mapped
        if mapped is None:
            raise ValueError(f"not an IPv4 address: {text}")
        parsed = mapped
    return parsed.packed


def mac_from_ip(ip: str) -> str:
    """Derive a locally administered MAC (be:ef:...) from an IPv4 address."""
    return "be:ef:" + ":".join(f"{octet:02x}" for octet in _ipv4_octets(ip))


def interface_name_from_ip(ip: str) -> str:
    """Derive a tap interface name (vm + 8 hex digits) from an IPv4 address."""
    return "vm" + _ipv4_octets(ip).hex()


def volume_name_boot(vm_name: str) -> str:
    """Volume name of a VM's boot disk."""
    return f"{vm_name}_boot.qcow2"


def volume_name_data(vm_name: str, device: str) -> str:
    """Volume name of a VM's data disk on the given device."""
    return f"{vm_name}_data-{device}.qcow2"


def volume_name_cloud_init(vm_name: str) -> str:
    """Volume name of a VM's cloud-init ISO."""
    return f"{vm_name}_cloudinit.iso"