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

from typing import ClassVar, Optional

from pydantic import Field

from pydelta.metrics import OperationMetrics, Timer
from pydelta.metrics.reports import DeltaOperationReport, QueryContext, QueryContextState, exception_to_string
from pydelta.typedef import DeltaBaseModel


class SnapshotMetricsResult(DeltaBaseModel):
    compute_timestamp_to_version_total_duration_ns: Optional[int] = Field(default=None)
    load_snapshot_total_duration_ns: int = Field(default=0)
    load_protocol_metadata_total_duration_ns: int = Field(default=0)
    load_log_segment_total_duration_ns: int = Field(default=0)
    load_crc_total_duration_ns: int = Field(default=0)


class SnapshotMetrics(OperationMetrics):
    def __init__(self) -> None:
        self.compute_timestamp_to_version_total_duration_timer = Timer()
        self.load_snapshot_total_timer = Timer()
        self.load_protocol_metadata_total_duration_timer = Timer()
        self.load_log_segment_total_duration_timer = Timer()
        self.load_crc_total_duration_timer = Timer()

    def capture(self) -> SnapshotMetricsResult:
        compute_timestamp_to_version_ns = self.compute_timestamp_to_version_total_duration_timer.total_duration_if_recorded()
        return SnapshotMetricsResult(
            compute_timestamp_to_version_total_duration_ns=compute_timestamp_to_version_ns,
            load_snapshot_total_duration_ns=self.load_snapshot_total_timer.total_duration_ns,
            load_protocol_metadata_total_duration_ns=self.load_protocol_metadata_total_duration_timer.total_duration_ns,
            load_log_segment_total_duration_ns=self.load_log_segment_total_duration_timer.total_duration_ns,
            load_crc_total_duration_ns=self.load_crc_total_duration_timer.total_duration_ns,
        )


class SnapshotReport(DeltaOperationReport):
    operation_type: ClassVar[str] = "Snapshot"

    version: Optional[int] = Field(default=None)
    checkpoint_version: Optional[int] = Field(default=None)
    provided_timestamp: Optional[int] = Field(default=None)
    snapshot_metrics: SnapshotMetricsResult = Field(default_factory=SnapshotMetricsResult)

    @classmethod
    def create(
        cls,
        table_path: str,
        version: Optional[int],
        checkpoint_version: Optional[int],
        provided_timestamp: Optional[int],
        snapshot_metrics: SnapshotMetrics,
        exception: Optional[BaseException] = None,
    ) -> SnapshotReport:
        return cls(
            table_path=table_path,
            exception=exception_to_string(exception) if exception is not None else None,
            version=version,
            checkpoint_version=checkpoint_version,
            provided_timestamp=provided_timestamp,
            snapshot_metrics=snapshot_metrics.capture(),
        )


class SnapshotQueryContext(QueryContext):
    """
    Tracks the construction of a snapshot.

    The version is known upfront when a specific version is requested, otherwise it is
    set once it has been resolved from the latest log segment or the provided timestamp.
    """

    _version: Optional[int]
    _checkpoint_version: Optional[int]
    _provided_timestamp: Optional[int]
    _snapshot_metrics: SnapshotMetrics

    def __init__(self, table_path: str, version: Optional[int] = None, provided_timestamp: Optional[int] = None) -> None:
        super().__init__(table_path)
        self._version = version
        self._checkpoint_version = None
        self._provided_timestamp = provided_timestamp
        self._snapshot_metrics = SnapshotMetrics()

    @classmethod
    def for_latest_snapshot(cls, table_path: str) -> SnapshotQueryContext:
        return cls(table_path)

    @classmethod
    def for_version_snapshot(cls, table_path: str, version: int) -> SnapshotQueryContext:
        return cls(table_path, version=version)

    @classmethod
    def for_timestamp_snapshot(cls, table_path: str, timestamp: int) -> SnapshotQueryContext:
        return cls(table_path, provided_timestamp=timestamp)

    @property
    def metrics(self) -> SnapshotMetrics:
        return self._snapshot_metrics

    @property
    def snapshot_metrics(self) -> SnapshotMetrics:
        return self._snapshot_metrics

    @property
    def version(self) -> Optional[int]:
        return self._version

    @property
    def checkpoint_version(self) -> Optional[int]:
        return self._checkpoint_version

    @property
    def provided_timestamp(self) -> Optional[int]:
        return self._provided_timestamp

    def set_version(self, version: int) -> None:
        self._before_update()
        self._version = version

    def set_checkpoint_version(self, checkpoint_version: Optional[int]) -> None:
        self._before_update()
        self._checkpoint_version = checkpoint_version

    def build_success_report(self) -> SnapshotReport:
        self._finalize(QueryContextState.SUCCEEDED)
        return self._build_report(exception=None)

    def build_error_report(self, exception: BaseException) -> SnapshotReport:
        """Report the failure together with the metrics that were collected before it happened."""
        self._finalize(QueryContextState.FAILED)
        return self._build_report(exception=exception)

    def _build_report(self, exception: Optional[BaseException]) -> SnapshotReport:
        return SnapshotReport.create(
            table_path=self.table_path,
            version=self._version,
            checkpoint_version=self._checkpoint_version,
            provided_timestamp=self._provided_timestamp,
            snapshot_metrics=self._snapshot_metrics,
            exception=exception,
        )
