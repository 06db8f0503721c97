"""Exception taxonomy shared by the analyzer, drift tooling and editors."""

from __future__ import annotations


class ContractError(Exception):
    """Base class for errors raised by contractgen operations."""


class ValidationError(ContractError):
    """Raised when a request is ill-formed: disallowed filename, path escaping the root, missing field."""


class ConflictError(ContractError):
    """Raised when a target document already exists and the operation must not overwrite it."""


class ParseError(ContractError):
    """Raised by best-effort parsers; callers recover by treating the field as absent."""


__all__ = ["ConflictError", "ContractError", "ParseError", "ValidationError"]
