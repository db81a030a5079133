"""Declarative KVM virtual machine specs, domain XML generation, metadata storage and status tracking."""

__version__ = "0.1.0"

__all__ = [
    "conditions",
    "domain",
    "loader",
    "metadata",
    "models",
    "naming",
    "output",
    "phases",
]