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
from enum import Enum
from typing import ClassVar, Optional

from pydantic import Field

from pydelta.exceptions import QueryContextFinalizedError
from pydelta.metrics import OperationMetrics
from pydelta.typedef import DeltaBaseModel


def exception_to_string(exception: BaseException) -> str:
    """Render a captured failure as `ExceptionClass: message`."""
    message = str(exception)
    name = type(exception).__name__
    return f"{name}: {message}" if message else name


class MetricsReport(DeltaBaseModel):
    """An immutable summary of a completed operation."""


class DeltaOperationReport(MetricsReport):
    operation_type: ClassVar[str]

    table_path: str = Field()
    report_uuid: uuid.UUID = Field(default_factory=uuid.uuid4)
    exception: Optional[str] = Field(default=None)


class QueryContextState(Enum):
    CREATED = "created"
    IN_PROGRESS = "in-progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class QueryContext:
    """
    The state of one in-flight operation, finalized exactly once into a report.

    A context starts out CREATED and moves to IN_PROGRESS as soon as one of its
    attributes is set or one of its metrics is updated. Building the success or the
    error report freezes the metrics; after that any change is rejected.
    """

    _table_path: str
    _touched: bool
    _final_state: Optional[QueryContextState]

    def __init__(self, table_path: str) -> None:
        self._table_path = table_path
        self._touched = False
        self._final_state = None

    @property
    def table_path(self) -> str:
        return self._table_path

    @property
    def metrics(self) -> OperationMetrics:
        raise NotImplementedError

    @property
    def state(self) -> QueryContextState:
        if self._final_state is not None:
            return self._final_state
        if self._touched or self.metrics.is_updated():
            return QueryContextState.IN_PROGRESS
        return QueryContextState.CREATED

    def _before_update(self) -> None:
        if self._final_state is not None:
            raise QueryContextFinalizedError(f"{type(self).__name__} for {self.table_path} has already been finalized")
        self._touched = True

    def _finalize(self, final_state: QueryContextState) -> None:
        if self._final_state is not None:
            raise QueryContextFinalizedError(
                f"{type(self).__name__} for {self.table_path} has already been finalized as {self._final_state.value}"
            )
        self._final_state = final_state
        self.metrics.freeze()
