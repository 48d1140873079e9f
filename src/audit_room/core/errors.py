"""Custom exception hierarchy for the audit room engine."""


class AuditRoomError(Exception):
    """Base exception for all audit room errors."""


# --- Configuration ---
class ConfigError(AuditRoomError):
    """Invalid or missing configuration."""


# --- Storage ---
class StoreError(AuditRoomError):
    """Fill store or override store failure."""


class StoreUnavailable(StoreError):
    """A store cannot be reached. Fails the whole compute/save call."""

    def __init__(self, store: str, reason: str):
        self.store = store
        self.reason = reason
        super().__init__(f"Store [{store}] unavailable: {reason}")


# --- Data ---
class InvalidFillRecord(AuditRoomError):
    """A stored fill is missing required fields."""


class MalformedOverride(AuditRoomError):
    """An override snapshot field does not have the expected shape."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Override field [{field}] malformed: {reason}")
