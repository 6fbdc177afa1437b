"""Shared error types for llm-bridge.

Converters never raise for recoverable data defects (malformed JSON, missing
ids or names); these errors cover misuse and unreadable inputs.
"""


class BridgeError(Exception):
    """Base error for all llm-bridge failures."""


class UnsupportedFormatError(BridgeError):
    """Requested wire format has no transpiler."""

    def __init__(self, wire_format: str) -> None:
        self.wire_format = wire_format
        super().__init__(f"Unsupported wire format: {wire_format}")


class ReplayError(BridgeError):
    """A recorded stream could not be read."""

    def __init__(self, line: int, detail: str = "") -> None:
        self.line = line
        self.detail = detail
        super().__init__(f"Invalid stream event on line {line}" + (f": {detail}" if detail else ""))
