# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.
"""
Accumulators for the metrics collected while a single operation runs.

Every operation creates its own instances and drives them from one thread, so there
is no locking here. Once the operation is reported the accumulators are frozen and
any further update raises a MetricsFrozenError.
"""

from __future__ import annotations

import time
from bisect import bisect_right
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from pydelta.exceptions import MetricsFrozenError

KB = 1024
MB = 1024 * KB
GB = 1024 * MB


class _Metric:
    _frozen: bool
    _updated: bool

    def __init__(self) -> None:
        self._frozen = False
        self._updated = False

    def _before_update(self) -> None:
        if self._frozen:
            raise MetricsFrozenError(f"Cannot update {type(self).__name__} after the operation has been reported")
        self._updated = True

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def updated(self) -> bool:
        return self._updated


class Timer(_Metric):
    """Accumulates the number of recorded durations and their total in nanoseconds."""

    _count: int
    _total_duration_ns: int

    def __init__(self) -> None:
        super().__init__()
        self._count = 0
        self._total_duration_ns = 0

    @property
    def count(self) -> int:
        return self._count

    @property
    def total_duration_ns(self) -> int:
        return self._total_duration_ns

    def total_duration_if_recorded(self) -> Optional[int]:
        return self._total_duration_ns if self._count > 0 else None

    def record(self, duration_ns: int) -> None:
        if duration_ns < 0:
            raise ValueError(f"Duration must be non-negative: {duration_ns}")
        self._before_update()
        self._count += 1
        self._total_duration_ns += duration_ns

    @contextmanager
    def time(self) -> Iterator[None]:
        """Record the wall time spent in the block, also when the block raises."""
        start = time.monotonic_ns()
        try:
            yield
        finally:
            self.record(time.monotonic_ns() - start)

    def __repr__(self) -> str:
        """Return the string representation of the Timer class."""
        return f"Timer(count={self._count}, total_duration_ns={self._total_duration_ns})"


class Counter(_Metric):
    _value: int

    def __init__(self) -> None:
        super().__init__()
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def increment(self, delta: int = 1) -> None:
        if delta < 0:
            raise ValueError(f"Counter can only be incremented by a non-negative amount: {delta}")
        self._before_update()
        self._value += delta

    def reset(self) -> None:
        self._before_update()
        self._value = 0

    def __repr__(self) -> str:
        """Return the string representation of the Counter class."""
        return f"Counter(value={self._value})"


def _default_bin_boundaries() -> List[int]:
    # 0, then powers of two from 8KiB to 4MiB, 4MiB steps up to 256MiB, doubling up to 256GiB
    boundaries = [0]
    boundaries += [8 * KB * 2**i for i in range(10)]
    boundaries += list(range(8 * MB, 256 * MB + 1, 4 * MB))
    size = 512 * MB
    while size <= 256 * GB:
        boundaries.append(size)
        size *= 2
    return boundaries


DEFAULT_BIN_BOUNDARIES = tuple(_default_bin_boundaries())


class FileSizeHistogram(_Metric):
    """Number of files and their total size per size bin, bin i holds sizes in [boundary[i], boundary[i + 1])."""

    sorted_bin_boundaries: Sequence[int]
    _file_counts: List[int]
    _total_bytes: List[int]

    def __init__(
        self,
        sorted_bin_boundaries: Sequence[int] = DEFAULT_BIN_BOUNDARIES,
        file_counts: Optional[Sequence[int]] = None,
        total_bytes: Optional[Sequence[int]] = None,
    ) -> None:
        super().__init__()
        if len(sorted_bin_boundaries) == 0 or sorted_bin_boundaries[0] != 0:
            raise ValueError("The first bin boundary must be 0")
        if any(lower >= upper for lower, upper in zip(sorted_bin_boundaries, sorted_bin_boundaries[1:])):
            raise ValueError("Bin boundaries must be strictly increasing")
        self.sorted_bin_boundaries = tuple(sorted_bin_boundaries)
        self._file_counts = list(file_counts) if file_counts is not None else [0] * len(self.sorted_bin_boundaries)
        self._total_bytes = list(total_bytes) if total_bytes is not None else [0] * len(self.sorted_bin_boundaries)
        if len(self._file_counts) != len(self.sorted_bin_boundaries) or len(self._total_bytes) != len(self.sorted_bin_boundaries):
            raise ValueError("File counts and total bytes must have one entry per bin")

    @property
    def file_counts(self) -> List[int]:
        return list(self._file_counts)

    @property
    def total_bytes(self) -> List[int]:
        return list(self._total_bytes)

    def _bin_index(self, file_size: int) -> int:
        if file_size < 0:
            raise ValueError(f"File size must be non-negative: {file_size}")
        return bisect_right(self.sorted_bin_boundaries, file_size) - 1

    def insert(self, file_size: int) -> None:
        index = self._bin_index(file_size)
        self._before_update()
        self._file_counts[index] += 1
        self._total_bytes[index] += file_size

    def remove(self, file_size: int) -> None:
        index = self._bin_index(file_size)
        if self._file_counts[index] == 0 or self._total_bytes[index] < file_size:
            raise ValueError(f"Cannot remove a file of {file_size} bytes, its bin is already empty")
        self._before_update()
        self._file_counts[index] -= 1
        self._total_bytes[index] -= file_size

    def copy(self) -> FileSizeHistogram:
        return FileSizeHistogram(self.sorted_bin_boundaries, self._file_counts, self._total_bytes)

    def __eq__(self, other: object) -> bool:
        """Compare the bins of two histograms."""
        return (
            (self.sorted_bin_boundaries, self._file_counts, self._total_bytes)
            == (other.sorted_bin_boundaries, other._file_counts, other._total_bytes)
            if isinstance(other, FileSizeHistogram)
            else False
        )

    __hash__ = None  # type: ignore

    def __repr__(self) -> str:
        """Return the string representation of the FileSizeHistogram class."""
        return (
            f"FileSizeHistogram(sorted_bin_boundaries={list(self.sorted_bin_boundaries)}, "
            f"file_counts={self._file_counts}, total_bytes={self._total_bytes})"
        )


class OperationMetrics:
    """The accumulators of one operation, frozen all at once when the operation is reported."""

    def _metrics(self) -> List[_Metric]:
        return [value for value in vars(self).values() if isinstance(value, _Metric)]

    def freeze(self) -> None:
        for metric in self._metrics():
            metric.freeze()

    def is_updated(self) -> bool:
        return any(metric.updated for metric in self._metrics())

