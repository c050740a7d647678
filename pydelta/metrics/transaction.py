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
from __future__ import annotations

import uuid
from typing import ClassVar, Optional, Sequence, Tuple

from pydantic import Field

from pydelta.expressions import Column
from pydelta.metrics import Counter, FileSizeHistogram, OperationMetrics, Timer
from pydelta.metrics.reports import DeltaOperationReport, QueryContext, QueryContextState, exception_to_string
from pydelta.metrics.snapshot import SnapshotReport
from pydelta.typedef import DeltaBaseModel


class TransactionMetricsResult(DeltaBaseModel):
    total_commit_duration_ns: int = Field(default=0)
    num_commit_attempts: int = Field(default=0)
    num_add_files: int = Field(default=0)
    num_remove_files: int = Field(default=0)
    num_total_actions: int = Field(default=0)
    total_add_files_size_in_bytes: int = Field(default=0)
    total_remove_files_size_in_bytes: int = Field(default=0)


class TransactionMetrics(OperationMetrics):
    """
    Metrics of a single transaction.

    Use `for_new_table` when the transaction creates the table, and
    `with_existing_table_file_size_histogram` when it writes to an existing table. In the
    latter case the file size histogram of the table, when it is known, is kept up to date
    with the files that are added and removed.
    """

    table_file_size_histogram: Optional[FileSizeHistogram]
    _starting_table_file_size_histogram: Optional[FileSizeHistogram]

    def __init__(self, table_file_size_histogram: Optional[FileSizeHistogram]) -> None:
        self.total_commit_timer = Timer()
        self.commit_attempts_counter = Counter()
        self.add_files_counter = Counter()
        self.add_files_size_in_bytes_counter = Counter()
        self.remove_files_counter = Counter()
        self.remove_files_size_in_bytes_counter = Counter()
        self.total_actions_counter = Counter()
        self.table_file_size_histogram = table_file_size_histogram
        self._starting_table_file_size_histogram = (
            table_file_size_histogram.copy() if table_file_size_histogram is not None else None
        )

    @classmethod
    def for_new_table(cls) -> TransactionMetrics:
        return cls(FileSizeHistogram())

    @classmethod
    def with_existing_table_file_size_histogram(cls, histogram: Optional[FileSizeHistogram]) -> TransactionMetrics:
        return cls(histogram.copy() if histogram is not None else None)

    def update_for_add_file(self, add_file_size: int) -> None:
        """Count an added file, nothing is counted when the update is rejected."""
        if add_file_size < 0:
            raise ValueError(f"File size must be non-negative: {add_file_size}")
        if self.table_file_size_histogram is not None:
            self.table_file_size_histogram.insert(add_file_size)
        self.add_files_counter.increment()
        self.add_files_size_in_bytes_counter.increment(add_file_size)

    def update_for_remove_file(self, remove_file_size: int) -> None:
        """Count a removed file, nothing is counted when the update is rejected."""
        if remove_file_size < 0:
            raise ValueError(f"File size must be non-negative: {remove_file_size}")
        if self.table_file_size_histogram is not None:
            self.table_file_size_histogram.remove(remove_file_size)
        self.remove_files_counter.increment()
        self.remove_files_size_in_bytes_counter.increment(remove_file_size)

    def reset_action_counters(self) -> None:
        """
        Reset the per-attempt counters before a commit is retried with a rebuilt set of actions.

        The table file size histogram goes back to the state it had when the transaction started.
        """
        self.add_files_counter.reset()
        self.add_files_size_in_bytes_counter.reset()
        self.remove_files_counter.reset()
        self.remove_files_size_in_bytes_counter.reset()
        self.total_actions_counter.reset()
        if self._starting_table_file_size_histogram is not None:
            self.table_file_size_histogram = self._starting_table_file_size_histogram.copy()

    def capture(self) -> TransactionMetricsResult:
        return TransactionMetricsResult(
            total_commit_duration_ns=self.total_commit_timer.total_duration_ns,
            num_commit_attempts=self.commit_attempts_counter.value,
            num_add_files=self.add_files_counter.value,
            num_remove_files=self.remove_files_counter.value,
            num_total_actions=self.total_actions_counter.value,
            total_add_files_size_in_bytes=self.add_files_size_in_bytes_counter.value,
            total_remove_files_size_in_bytes=self.remove_files_size_in_bytes_counter.value,
        )


class TransactionReport(DeltaOperationReport):
    operation_type: ClassVar[str] = "Transaction"

    operation: str = Field()
    engine_info: str = Field()
    base_snapshot_version: int = Field()
    snapshot_report_uuid: Optional[uuid.UUID] = Field(default=None)
    committed_version: Optional[int] = Field(default=None)
    clustering_columns: Tuple[Tuple[str, ...], ...] = Field(default=())
    transaction_metrics: TransactionMetricsResult = Field(default_factory=TransactionMetricsResult)

    @classmethod
    def create(
        cls,
        table_path: str,
        operation: str,
        engine_info: str,
        committed_version: Optional[int],
        clustering_columns: Optional[Sequence[Column]],
        transaction_metrics: TransactionMetrics,
        snapshot_report: Optional[SnapshotReport],
        exception: Optional[BaseException] = None,
    ) -> TransactionReport:
        """
        Build the report of a transaction.

        Args:
            table_path: Path of the table the transaction committed to.
            operation: The operation that was committed, for example WRITE.
            engine_info: The engine that ran the transaction.
            committed_version: The version that was committed, None when the commit failed.
            clustering_columns: The clustering columns of the table, if any.
            transaction_metrics: The metrics collected while committing.
            snapshot_report: Report of the snapshot the transaction was started from,
                None when the transaction created the table.
            exception: The failure of the transaction, if any.
        """
        if snapshot_report is not None and snapshot_report.version is not None:
            base_snapshot_version = snapshot_report.version
        else:
            base_snapshot_version = -1
        return cls(
            table_path=table_path,
            exception=exception_to_string(exception) if exception is not None else None,
            operation=operation,
            engine_info=engine_info,
            base_snapshot_version=base_snapshot_version,
            snapshot_report_uuid=snapshot_report.report_uuid if snapshot_report is not None else None,
            committed_version=committed_version,
            clustering_columns=tuple(column.names for column in clustering_columns or ()),
            transaction_metrics=transaction_metrics.capture(),
        )


class TransactionQueryContext(QueryContext):
    """Tracks a transaction from the moment it is started until it commits or gives up."""

    _operation: str
    _engine_info: str
    _snapshot_report: Optional[SnapshotReport]
    _committed_version: Optional[int]
    _clustering_columns: Tuple[Column, ...]
    _transaction_metrics: TransactionMetrics

    def __init__(
        self,
        table_path: str,
        operation: str,
        engine_info: str,
        snapshot_report: Optional[SnapshotReport] = None,
        transaction_metrics: Optional[TransactionMetrics] = None,
    ) -> None:
        super().__init__(table_path)
        self._operation = operation
        self._engine_info = engine_info
        self._snapshot_report = snapshot_report
        self._committed_version = None
        self._clustering_columns = ()
        if transaction_metrics is None:
            transaction_metrics = TransactionMetrics.for_new_table() if snapshot_report is None else TransactionMetrics(None)
        self._transaction_metrics = transaction_metrics

    @property
    def metrics(self) -> TransactionMetrics:
        return self._transaction_metrics

    @property
    def transaction_metrics(self) -> TransactionMetrics:
        return self._transaction_metrics

    @property
    def operation(self) -> str:
        return self._operation

    @property
    def engine_info(self) -> str:
        return self._engine_info

    @property
    def snapshot_report(self) -> Optional[SnapshotReport]:
        return self._snapshot_report

    @property
    def committed_version(self) -> Optional[int]:
        return self._committed_version

    @property
    def clustering_columns(self) -> Tuple[Column, ...]:
        return self._clustering_columns

    def set_committed_version(self, committed_version: int) -> None:
        self._before_update()
        self._committed_version = committed_version

    def set_clustering_columns(self, clustering_columns: Sequence[Column]) -> None:
        self._before_update()
        self._clustering_columns = tuple(clustering_columns)

    def build_success_report(self) -> TransactionReport:
        self._finalize(QueryContextState.SUCCEEDED)
        return self._build_report(exception=None)

    def build_error_report(self, exception: BaseException) -> TransactionReport:
        """Report the failure together with the metrics that were collected before it happened."""
        self._finalize(QueryContextState.FAILED)
        return self._build_report(exception=exception)

    def _build_report(self, exception: Optional[BaseException]) -> TransactionReport:
        return TransactionReport.create(
            table_path=self.table_path,
            operation=self._operation,
            engine_info=self._engine_info,
            committed_version=self._committed_version,
            clustering_columns=self._clustering_columns,
            transaction_metrics=self._transaction_metrics,
            snapshot_report=self._snapshot_report,
            exception=exception,
        )
