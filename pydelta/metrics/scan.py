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
from typing import Any, ClassVar, Optional, Union

from pydantic import Field

from pydelta.metrics import Counter, OperationMetrics, Timer
from pydelta.metrics.reports import DeltaOperationReport, QueryContext, QueryContextState, exception_to_string
from pydelta.typedef import DeltaBaseModel
from pydelta.types import StructType


def _to_optional_string(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


class ScanMetricsResult(DeltaBaseModel):
    total_planning_duration_ns: int = Field(default=0)
    num_add_files_seen: int = Field(default=0)
    num_add_files_seen_from_delta_files: int = Field(default=0)
    num_active_add_files: int = Field(default=0)
    num_duplicate_add_files: int = Field(default=0)
    num_remove_files_seen_from_delta_files: int = Field(default=0)


class ScanMetrics(OperationMetrics):
    def __init__(self) -> None:
        self.total_planning_timer = Timer()
        self.add_files_counter = Counter()
        self.add_files_from_delta_files_counter = Counter()
        self.active_add_files_counter = Counter()
        self.duplicate_add_files_counter = Counter()
        self.remove_files_from_delta_files_counter = Counter()

    def capture(self) -> ScanMetricsResult:
        return ScanMetricsResult(
            total_planning_duration_ns=self.total_planning_timer.total_duration_ns,
            num_add_files_seen=self.add_files_counter.value,
            num_add_files_seen_from_delta_files=self.add_files_from_delta_files_counter.value,
            num_active_add_files=self.active_add_files_counter.value,
            num_duplicate_add_files=self.duplicate_add_files_counter.value,
            num_remove_files_seen_from_delta_files=self.remove_files_from_delta_files_counter.value,
        )


class ScanReport(DeltaOperationReport):
    operation_type: ClassVar[str] = "Scan"

    table_version: int = Field()
    table_schema: str = Field()
    snapshot_report_uuid: uuid.UUID = Field()
    filter: Optional[str] = Field(default=None)
    read_schema: str = Field()
    partition_predicate: Optional[str] = Field(default=None)
    data_skipping_filter: Optional[str] = Field(default=None)
    is_fully_consumed: bool = Field(default=False)
    scan_metrics: ScanMetricsResult = Field(default_factory=ScanMetricsResult)

    @classmethod
    def create(
        cls,
        table_path: str,
        table_version: int,
        table_schema: Union[StructType, str],
        snapshot_report_uuid: uuid.UUID,
        filter: Optional[Any],
        read_schema: Union[StructType, str],
        partition_predicate: Optional[Any],
        data_skipping_filter: Optional[Any],
        is_fully_consumed: bool,
        scan_metrics: ScanMetrics,
        exception: Optional[BaseException] = None,
    ) -> ScanReport:
        """Build the report of a scan, the schemas and the predicates are kept in their string form."""
        return cls(
            table_path=table_path,
            exception=exception_to_string(exception) if exception is not None else None,
            table_version=table_version,
            table_schema=str(table_schema),
            snapshot_report_uuid=snapshot_report_uuid,
            filter=_to_optional_string(filter),
            read_schema=str(read_schema),
            partition_predicate=_to_optional_string(partition_predicate),
            data_skipping_filter=_to_optional_string(data_skipping_filter),
            is_fully_consumed=is_fully_consumed,
            scan_metrics=scan_metrics.capture(),
        )


class ScanQueryContext(QueryContext):
    """
    Tracks the planning of a scan over a snapshot.

    The scan is fully consumed once the engine has iterated over all the scan files; a
    report for a scan that was abandoned halfway keeps is_fully_consumed set to false.
    """

    def __init__(
        self,
        table_path: str,
        table_version: int,
        table_schema: Union[StructType, str],
        snapshot_report_uuid: uuid.UUID,
        filter: Optional[Any],
        read_schema: Union[StructType, str],
        partition_predicate: Optional[Any] = None,
        data_skipping_filter: Optional[Any] = None,
    ) -> None:
        super().__init__(table_path)
        self._table_version = table_version
        self._table_schema = table_schema
        self._snapshot_report_uuid = snapshot_report_uuid
        self._filter = filter
        self._read_schema = read_schema
        self._partition_predicate = partition_predicate
        self._data_skipping_filter = data_skipping_filter
        self._is_fully_consumed = False
        self._scan_metrics = ScanMetrics()

    @property
    def metrics(self) -> ScanMetrics:
        return self._scan_metrics

    @property
    def scan_metrics(self) -> ScanMetrics:
        return self._scan_metrics

    @property
    def is_fully_consumed(self) -> bool:
        return self._is_fully_consumed

    def set_fully_consumed(self, is_fully_consumed: bool = True) -> None:
        self._before_update()
        self._is_fully_consumed = is_fully_consumed

    def build_success_report(self) -> ScanReport:
        self._finalize(QueryContextState.SUCCEEDED)
        return self._build_report(exception=None)

    def build_error_report(self, exception: BaseException) -> ScanReport:
        """Report the failure together with the metrics that were collected before it happened."""
        self._finalize(QueryContextState.FAILED)
        return self._build_report(exception=exception)

    def _build_report(self, exception: Optional[BaseException]) -> ScanReport:
        return ScanReport.create(
            table_path=self.table_path,
            table_version=self._table_version,
            table_schema=self._table_schema,
            snapshot_report_uuid=self._snapshot_report_uuid,
            filter=self._filter,
            read_schema=self._read_schema,
            partition_predicate=self._partition_predicate,
            data_skipping_filter=self._data_skipping_filter,
            is_fully_consumed=self._is_fully_consumed,
            scan_metrics=self._scan_metrics,
            exception=exception,
        )
