"""Single-writer queue that keeps proof-of-work off the caller's thread."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, TypeVar

from bams.provenance.registry import LedgerRegistry

T = TypeVar("T")


class LedgerWorker:
    """Runs registry operations one at a time, in submission order, on a background thread.

    Every load/mutate/save cycle of the registry happens inside the worker, so
    callers that only go through ``submit`` never interleave writes.
    """

    def __init__(self, registry: LedgerRegistry):
        self.registry = registry
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bams-ledger")

    def submit(self, operation: Callable[..., T], *args: Any, **kwargs: Any) -> "Future[T]":
        return self._executor.submit(operation, *args, **kwargs)

    def call(self, method: str, *args: Any, **kwargs: Any) -> "Future[Any]":
        return self.submit(getattr(self.registry, method), *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "LedgerWorker":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown(wait=True)


__all__ = ["LedgerWorker"]
