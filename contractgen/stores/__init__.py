"""Persistence helpers: atomic writes and the contract registry."""

from .files import atomic_write_text
from .registry import ContractRegistry, append_registry

__all__ = ["ContractRegistry", "append_registry", "atomic_write_text"]
