"""Fixed-size batching between the normaliser and the output sink."""

from __future__ import annotations

from typing import Callable

from prg_convert.common.errors import UnsupportedConfigurationError
from prg_convert.common.models import CanonicalAddressRecord

Batch = list[CanonicalAddressRecord]


class BatchAccumulator:
    """Buffer records and hand them to ``emit`` in batches of ``batch_size``.

    The last batch may be shorter; an empty batch is never emitted.
    """

    def __init__(self, batch_size: int, emit: Callable[[Batch], None]) -> None:
        if not isinstance(batch_size, int) or isinstance(batch_size, bool) or batch_size <= 0:
            raise UnsupportedConfigurationError(f"batch_size must be a positive integer, got {batch_size!r}")
        self.batch_size = batch_size
        self.emit = emit
        self.batches_emitted = 0
        self.rows_emitted = 0
        self._buffer: Batch = []

    def __len__(self) -> int:
        return len(self._buffer)

    def _emit(self) -> None:
        batch = self._buffer
        self._buffer = []
        self.emit(batch)
        self.batches_emitted += 1
        self.rows_emitted += len(batch)

    def add(self, record: CanonicalAddressRecord) -> None:
        self._buffer.append(record)
        if len(self._buffer) >= self.batch_size:
            self._emit()

    def flush(self) -> None:
        if self._buffer:
            self._emit()
