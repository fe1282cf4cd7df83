"""Error taxonomy shared by the ledger core, the store and the CLI."""

from __future__ import annotations

NOT_FOUND = "E_NOT_FOUND"
VALIDATION_INPUT = "E_VALIDATION_INPUT"
INTEGRITY_FAILURE = "E_INTEGRITY"
STORAGE_FAILURE = "E_STORAGE"
SEALING_EXHAUSTED = "E_SEALING_EXHAUSTED"


class LedgerError(Exception):
    code: str = "E_LEDGER"

    def __init__(self, detail: str, code: str | None = None):
        self.code = code or type(self).code
        self.detail = detail
        super().__init__(f"{self.code}: {detail}")


class NotFoundError(LedgerError):
    code = NOT_FOUND


class ValidationInputError(LedgerError):
    code = VALIDATION_INPUT


class StorageFailure(LedgerError):
    code = STORAGE_FAILURE


class SealingExhausted(LedgerError):
    code = SEALING_EXHAUSTED


__all__ = [
    "INTEGRITY_FAILURE",
    "NOT_FOUND",
    "SEALING_EXHAUSTED",
    "STORAGE_FAILURE",
    "VALIDATION_INPUT",
    "LedgerError",
    "NotFoundError",
    "SealingExhausted",
    "StorageFailure",
    "ValidationInputError",
]
