"""Error taxonomy shared by every AsterVault component.

Each error names the operation that failed and a human-readable reason so
callers always see ``"<operation>: <reason>"``.
"""


class AsterVaultError(Exception):
    """Base class for all AsterVault failures."""

    status_code = 500

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation}: {reason}")

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "operation": self.operation,
            "detail": self.reason,
        }


class NotFoundError(AsterVaultError):
    """Model, version or dataset is absent."""

    status_code = 404


class ConflictError(AsterVaultError):
    """A unique key already exists."""

    status_code = 409


class ValidationError(AsterVaultError):
    """Malformed input: missing field, bad example, bad window."""

    status_code = 422


class BackingStoreError(AsterVaultError):
    """Connection, timeout or query failure in the backing store. Never retried."""

    status_code = 503


class ConsistencyWarning(UserWarning):
    """Non-fatal cross-record inconsistency, e.g. an unresolved ``trained_on``."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation}: {reason}")
