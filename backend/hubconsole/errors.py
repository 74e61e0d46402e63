from __future__ import annotations


class ConsoleError(Exception):
    pass


class AgentError(ConsoleError):
    """A call to the remote agent failed: transport, HTTP status or payload."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigStoreError(ConsoleError):
    pass


class UnknownSubsystemError(ConfigStoreError, KeyError):
    def __str__(self) -> str:
        return f"Unknown subsystem: {self.args[0]}"


class UnknownPortError(ConfigStoreError, KeyError):
    def __str__(self) -> str:
        return f"Unknown port: {self.args[0]}"


class EditSessionClosedError(ConfigStoreError):
    def __init__(self, kind: str) -> None:
        super().__init__(f"No edit session open for {kind}")
        self.kind = kind


class NotDirtyError(ConfigStoreError):
    def __init__(self, kind: str) -> None:
        super().__init__(f"Nothing to apply for {kind}")
        self.kind = kind


class SubsystemBlockedError(ConfigStoreError):
    def __init__(self, kind: str) -> None:
        super().__init__(f"{kind} is blocked by the agent")
        self.kind = kind


class InvalidFieldError(ConfigStoreError, ValueError):
    """A draft patch or toggle named a field the subsystem does not accept."""
