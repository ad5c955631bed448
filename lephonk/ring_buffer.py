"""A one-second ring buffer of mono-summed audio, read as peak levels."""

from __future__ import annotations

import threading

import numpy as np


class RingBuffer:
    """Collects the mid signal of stereo blocks; reads report the loudest new sample."""

    def __init__(self) -> None:
        self._buffer = np.zeros(0, dtype=np.float32)
        self._write = 0
        self._read = 0
        self._lock = threading.Lock()

    def prepare(self, sample_rate: float) -> None:
        size = int(sample_rate)
        if size <= 0:
            raise ValueError("sample rate must be positive")
        with self._lock:
            self._buffer = np.zeros(size, dtype=np.float32)
            self._write = 0
            self._read = 0

    def write_samples(self, block) -> None:
        """Append a (2, n) stereo block, stored as the average of both channels."""
        block = np.asarray(block, dtype=np.float32)
        if block.ndim != 2 or block.shape[0] != 2:
            raise ValueError("ring buffer only accepts two-channel blocks")
        size = len(self._buffer)
        if size == 0:
            raise RuntimeError("ring buffer has not been prepared")
        mono = (block[0] + block[1]) * 0.5
        count = len(mono)
        if count > size:
            raise ValueError("block is larger than the ring buffer")
        with self._lock:
            start = self._write
            limit = start + count
            if limit < size:
                self._buffer[start:limit] = mono
                self._write = limit % size
                return
            first = size - start
            self._buffer[start:] = mono[:first]
            new_limit = limit - size
            self._buffer[:new_limit] = mono[first:]
            self._write = new_limit % size

    def read_samples(self) -> float:
        """Peak absolute value of everything written since the last read."""
        with self._lock:
            write = self._write
            read = self._read
            self._read = write
            if read == write:
                return 0.0
            if read < write:
                pending = self._buffer[read:write]
            else:
                pending = np.concatenate((self._buffer[read:], self._buffer[:write]))
        return float(np.max(np.abs(pending))) if len(pending) else 0.0