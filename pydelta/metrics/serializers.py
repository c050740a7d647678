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
Canonical JSON encoding of the metrics reports.

Each report kind has its own hand-written template: fields are emitted in a fixed
order, optional values that are absent are written as null and the output is a
single line without whitespace, so two runs over the same report produce the same
bytes. A new report field has to be added to its template here.
"""

import json
from functools import singledispatch
from typing import List, Optional, Sequence, Tuple

from pydelta.metrics.reports import DeltaOperationReport, MetricsReport
from pydelta.metrics.scan import ScanMetricsResult, ScanReport
from pydelta.metrics.snapshot import SnapshotMetricsResult, SnapshotReport
from pydelta.metrics.transaction import TransactionMetricsResult, TransactionReport

_Fields = List[Tuple[str, str]]


def _string(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _optional_string(value: Optional[object]) -> str:
    return "null" if value is None else _string(str(value))


def _number(value: int) -> str:
    return str(int(value))


def _optional_number(value: Optional[int]) -> str:
    return "null" if value is None else _number(value)


def _boolean(value: bool) -> str:
    return "true" if value else "false"


def _string_arrays(values: Sequence[Sequence[str]]) -> str:
    return "[" + ",".join("[" + ",".join(_string(v) for v in inner) + "]" for inner in values) + "]"


def _object(fields: _Fields) -> str:
    return "{" + ",".join(f"{_string(name)}:{value}" for name, value in fields) + "}"


def _operation_fields(report: DeltaOperationReport) -> _Fields:
    return [
        ("tablePath", _string(report.table_path)),
        ("operationType", _string(report.operation_type)),
        ("reportUUID", _string(str(report.report_uuid))),
        ("exception", _optional_string(report.exception)),
    ]


def _snapshot_metrics(metrics: SnapshotMetricsResult) -> str:
    return _object([
        ("computeTimestampToVersionTotalDurationNs", _optional_number(metrics.compute_timestamp_to_version_total_duration_ns)),
        ("loadSnapshotTotalDurationNs", _number(metrics.load_snapshot_total_duration_ns)),
        ("loadProtocolMetadataTotalDurationNs", _number(metrics.load_protocol_metadata_total_duration_ns)),
        ("loadLogSegmentTotalDurationNs", _number(metrics.load_log_segment_total_duration_ns)),
        ("loadCrcTotalDurationNs", _number(metrics.load_crc_total_duration_ns)),
    ])


def _transaction_metrics(metrics: TransactionMetricsResult) -> str:
    return _object([
        ("totalCommitDurationNs", _number(metrics.total_commit_duration_ns)),
        ("numCommitAttempts", _number(metrics.num_commit_attempts)),
        ("numAddFiles", _number(metrics.num_add_files)),
        ("numRemoveFiles", _number(metrics.num_remove_files)),
        ("numTotalActions", _number(metrics.num_total_actions)),
        ("totalAddFilesSizeInBytes", _number(metrics.total_add_files_size_in_bytes)),
        ("totalRemoveFilesSizeInBytes", _number(metrics.total_remove_files_size_in_bytes)),
    ])


def _scan_metrics(metrics: ScanMetricsResult) -> str:
    return _object([
        ("totalPlanningDurationNs", _number(metrics.total_planning_duration_ns)),
        ("numAddFilesSeen", _number(metrics.num_add_files_seen)),
        ("numAddFilesSeenFromDeltaFiles", _number(metrics.num_add_files_seen_from_delta_files)),
        ("numActiveAddFiles", _number(metrics.num_active_add_files)),
        ("numDuplicateAddFiles", _number(metrics.num_duplicate_add_files)),
        ("numRemoveFilesSeenFromDeltaFiles", _number(metrics.num_remove_files_seen_from_delta_files)),
    ])


def serialize_snapshot_report(report: SnapshotReport) -> str:
    return _object([
        *_operation_fields(report),
        ("version", _optional_number(report.version)),
        ("checkpointVersion", _optional_number(report.checkpoint_version)),
        ("providedTimestamp", _optional_number(report.provided_timestamp)),
        ("snapshotMetrics", _snapshot_metrics(report.snapshot_metrics)),
    ])


def serialize_transaction_report(report: TransactionReport) -> str:
    return _object([
        *_operation_fields(report),
        ("operation", _string(report.operation)),
        ("engineInfo", _string(report.engine_info)),
        ("baseSnapshotVersion", _number(report.base_snapshot_version)),
        ("snapshotReportUUID", _optional_string(report.snapshot_report_uuid)),
        ("committedVersion", _optional_number(report.committed_version)),
        ("clusteringColumns", _string_arrays(report.clustering_columns)),
        ("transactionMetrics", _transaction_metrics(report.transaction_metrics)),
    ])


def serialize_scan_report(report: ScanReport) -> str:
    return _object([
        *_operation_fields(report),
        ("tableVersion", _number(report.table_version)),
        ("tableSchema", _string(report.table_schema)),
        ("snapshotReportUUID", _string(str(report.snapshot_report_uuid))),
        ("filter", _optional_string(report.filter)),
        ("readSchema", _string(report.read_schema)),
        ("partitionPredicate", _optional_string(report.partition_predicate)),
        ("dataSkippingFilter", _optional_string(report.data_skipping_filter)),
        ("isFullyConsumed", _boolean(report.is_fully_consumed)),
        ("scanMetrics", _scan_metrics(report.scan_metrics)),
    ])


@singledispatch
def serialize_report(report: MetricsReport) -> str:
    """Serialize any of the supported reports to its canonical JSON form."""
    raise NotImplementedError(f"Cannot serialize report of type: {type(report).__name__}")


@serialize_report.register(SnapshotReport)
def _(report: SnapshotReport) -> str:
    return serialize_snapshot_report(report)


@serialize_report.register(TransactionReport)
def _(report: TransactionReport) -> str:
    return serialize_transaction_report(report)


@serialize_report.register(ScanReport)
def _(report: ScanReport) -> str:
    return serialize_scan_report(report)
