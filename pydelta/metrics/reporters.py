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

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable, List, Optional, Union

from pydelta.metrics.reports import DeltaOperationReport, MetricsReport
from pydelta.metrics.serializers import serialize_report

if TYPE_CHECKING:
    from pydelta.utils.config import Config

logger = logging.getLogger(__name__)

METRICS_REPORTERS = "metrics-reporters"
METRICS_LOG_LEVEL = "metrics-log-level"
LOGGING_REPORTER = "logging"


class MetricsReporter(ABC):
    """Receives every report once its operation has completed."""

    @abstractmethod
    def report(self, report: MetricsReport) -> None:
        """Consume a finalized report."""


class LoggingMetricsReporter(MetricsReporter):
    """Writes the canonical JSON of each report to the log."""

    def __init__(self, level: Union[int, str] = logging.INFO, report_logger: Optional[logging.Logger] = None) -> None:
        self.level = logging.getLevelName(level.upper()) if isinstance(level, str) else level
        if not isinstance(self.level, int):
            raise ValueError(f"Unknown log level: {level}")
        self.logger = report_logger or logger

    def report(self, report: MetricsReport) -> None:
        operation_type = report.operation_type if isinstance(report, DeltaOperationReport) else type(report).__name__
        self.logger.log(self.level, "%s report: %s", operation_type, serialize_report(report))


def push_report(reporters: Iterable[MetricsReporter], report: MetricsReport) -> None:
    """Hand the report to every reporter, a failing reporter does not stop the others."""
    for reporter in reporters:
        try:
            reporter.report(report)
        except Exception as e:
            logger.warning("Metrics reporter %s failed: %s", type(reporter).__name__, e, exc_info=True)


def load_metrics_reporters(config: Optional[Config] = None) -> List[MetricsReporter]:
    if config is None:
        from pydelta.utils.config import Config

        config = Config()

    names = config.get_str(METRICS_REPORTERS, LOGGING_REPORTER)
    reporters: List[MetricsReporter] = []
    for name in (name.strip().lower() for name in names.split(",")):
        if not name or name == "none":
            continue
        if name == LOGGING_REPORTER:
            reporters.append(LoggingMetricsReporter(level=config.get_str(METRICS_LOG_LEVEL, "INFO")))
        else:
            raise ValueError(f"Unknown metrics reporter: {name}")
    return reporters
