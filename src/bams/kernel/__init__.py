from bams.kernel.failures import (
    INTEGRITY_FAILURE,
    NOT_FOUND,
    SEALING_EXHAUSTED,
    STORAGE_FAILURE,
    VALIDATION_INPUT,
    LedgerError,
    NotFoundError,
    SealingExhausted,
    StorageFailure,
    ValidationInputError,
)
from bams.kernel.hashing import (
    ROOT_SENTINEL,
    block_digest,
    canonical_encode,
    canonical_json,
    meets_difficulty,
    sha256_hex,
)

__all__ = [
    "INTEGRITY_FAILURE",
    "NOT_FOUND",
    "ROOT_SENTINEL",
    "SEALING_EXHAUSTED",
    "STORAGE_FAILURE",
    "VALIDATION_INPUT",
    "LedgerError",
    "NotFoundError",
    "SealingExhausted",
    "StorageFailure",
    "ValidationInputError",
    "block_digest",
    "canonical_encode",
    "canonical_json",
    "meets_difficulty",
    "sha256_hex",
]
