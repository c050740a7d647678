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
import logging
from unittest import mock

import pytest

from pydelta.metrics.reporters import (
    LoggingMetricsReporter,
    MetricsReporter,
    load_metrics_reporters,
    push_report,
)
from pydelta.metrics.reports import MetricsReport
from pydelta.metrics.serializers import serialize_report
from pydelta.metrics.snapshot import SnapshotQueryContext, SnapshotReport


class CollectingReporter(MetricsReporter):
    def __init__(self) -> None:
        self.reports: list[MetricsReport] = []

    def report(self, report: MetricsReport) -> None:
        self.reports.append(report)


class FailingReporter(MetricsReporter):
    def report(self, report: MetricsReport) -> None:
        raise RuntimeError("sink unavailable")


@pytest.fixture
def snapshot_report() -> SnapshotReport:
    return SnapshotQueryContext.for_version_snapshot("/t", 1).build_success_report()


def test_logging_reporter(caplog: pytest.LogCaptureFixture, snapshot_report: SnapshotReport) -> None:
    caplog.set_level(logging.INFO, logger="pydelta.metrics.reporters")

    LoggingMetricsReporter().report(snapshot_report)

    assert f"Snapshot report: {serialize_report(snapshot_report)}" in caplog.messages


def test_logging_reporter_level_by_name(caplog: pytest.LogCaptureFixture, snapshot_report: SnapshotReport) -> None:
    caplog.set_level(logging.DEBUG, logger="pydelta.metrics.reporters")

    LoggingMetricsReporter(level="debug").report(snapshot_report)

    assert [record.levelno for record in caplog.records] == [logging.DEBUG]


def test_logging_reporter_unknown_level() -> None:
    with pytest.raises(ValueError, match="Unknown log level: chatty"):
        LoggingMetricsReporter(level="chatty")


def test_push_report_continues_after_failure(caplog: pytest.LogCaptureFixture, snapshot_report: SnapshotReport) -> None:
    collecting = CollectingReporter()

    push_report([FailingReporter(), collecting], snapshot_report)

    assert collecting.reports == [snapshot_report]
    assert "Metrics reporter FailingReporter failed: sink unavailable" in caplog.text


def test_load_default_reporters() -> None:
    config = mock.Mock()
    config.get_str.side_effect = lambda key, default: default

    reporters = load_metrics_reporters(config)

    assert len(reporters) == 1
    assert isinstance(reporters[0], LoggingMetricsReporter)
    assert reporters[0].level == logging.INFO


@pytest.mark.parametrize("names", ["none", "", " , none"])
def test_load_no_reporters(names: str) -> None:
    config = mock.Mock()
    config.get_str.side_effect = lambda key, default: names if key == "metrics-reporters" else default

    assert load_metrics_reporters(config) == []


def test_load_reporters_with_level() -> None:
    values = {"metrics-reporters": "Logging", "metrics-log-level": "WARNING"}
    config = mock.Mock()
    config.get_str.side_effect = lambda key, default: values.get(key, default)

    reporters = load_metrics_reporters(config)

    assert [reporter.level for reporter in reporters] == [logging.WARNING]  # type: ignore


def test_load_unknown_reporter() -> None:
    config = mock.Mock()
    config.get_str.side_effect = lambda key, default: "logging,statsd" if key == "metrics-reporters" else default

    with pytest.raises(ValueError, match="Unknown metrics reporter: statsd"):
        load_metrics_reporters(config)
