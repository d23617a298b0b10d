"""Shared error types for the coordination engine."""


class BoardError(Exception):
    """Base error for all blackboard failures."""


class StoreError(BoardError):
    """Base error for storage collaborator failures."""


class StoreUnavailableError(StoreError):
    """The document store call itself failed."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Store {operation} failed" + (f": {detail}" if detail else ""))


class PreconditionFailedError(StoreError):
    """A conditional write found a different document than expected."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Precondition failed for {path}")


class DocumentParseError(BoardError):
    """A stored document does not match the expected shape."""

    def __init__(self, path: str, detail: str = "") -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Cannot parse {path}" + (f": {detail}" if detail else ""))


class InvalidTransitionError(BoardError):
    """A lifecycle operation asked for a status change the state machine forbids."""

    def __init__(self, entity_id: str, current: str, requested: str) -> None:
        self.entity_id = entity_id
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move {entity_id} from {current} to {requested}")


class ConfigError(BoardError):
    """Raised when a settings file fails parsing or validation."""
