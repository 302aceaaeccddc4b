"""
Error Definitions for Dockpool

This module defines the exception classes raised by the placement engine and
its collaborators. Host-communication failures derive from ``OSError`` so the
per-host boundary of the engine can treat them as I/O errors.
"""

from typing import Any, Dict, Optional


class DockpoolError(Exception):
    """Base exception class for all Dockpool errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(DockpoolError):
    """Raised when pool configuration is invalid or inconsistent."""

    def __init__(self, field: str, value: Any, expected: str, **details):
        message = f"Invalid configuration for {field}: got {value}, expected {expected}"

        super().__init__(message, {"field": field, "value": value, "expected": expected, **details})
        self.field = field
        self.value = value
        self.expected = expected


class BindingSyntaxError(ConfigurationError):
    """Raised when a directory mapping line cannot be parsed."""

    def __init__(self, line_number: int, line: str, reason: Optional[str] = None):
        DockpoolError.__init__(self, _binding_message(line_number, line, reason))
        self.field = "directory_mappings"
        self.value = line
        self.expected = reason or "hostDir[:containerDir][:r|rw]"
        self.line_number = line_number
        self.line = line
        self.reason = reason


def _binding_message(line_number: int, line: str, reason: Optional[str]) -> str:
    if reason:
        return f"Invalid directory mapping, {reason} (line {line_number}): {line}"
    return f"Invalid directory mapping (line {line_number}): {line}"


class LabelSyntaxError(DockpoolError):
    """Raised when a label expression cannot be parsed."""

    def __init__(self, expression: str, position: int, reason: str):
        message = f"Invalid label expression at position {position}: {reason}"

        super().__init__(message, {"expression": expression})
        self.expression = expression
        self.position = position
        self.reason = reason


class HostCommunicationError(DockpoolError, OSError):
    """Raised when a Docker host cannot be reached or answers with an error."""

    def __init__(self, host: str, operation: str, reason: str, **details):
        message = f"Docker host {host} failed during {operation}: {reason}"

        super().__init__(message, {"host": host, "operation": operation, **details})
        self.host = host
        self.operation = operation
        self.reason = reason


class CredentialsError(DockpoolError):
    """Raised when a credentials reference cannot be resolved or used."""

    def __init__(self, credentials_id: str, reason: str, **details):
        message = f"Credentials {credentials_id!r} unusable: {reason}"

        super().__init__(message, {"credentials_id": credentials_id, **details})
        self.credentials_id = credentials_id
        self.reason = reason

