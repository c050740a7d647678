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


class DeltaError(Exception):
    """Base class for all the errors raised by pydelta."""


class InvalidActionError(DeltaError, ValueError):
    """Raised when a row can't be read as the requested action, for example when a required field is null."""


class MetricsFrozenError(DeltaError):
    """Raised when a timer, counter or histogram is updated after its operation has been reported."""


class QueryContextFinalizedError(DeltaError):
    """Raised when a query context is finalized twice, or changed after it produced its report."""
