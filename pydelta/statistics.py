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
from typing import Any, Dict, Optional

from pydantic import Field, ValidationError

from pydelta.typedef import DeltaBaseModel

logger = logging.getLogger(__name__)


class DataFileStatistics(DeltaBaseModel):
    """Per-file statistics as written in the `stats` field of an add action."""

    num_records: Optional[int] = Field(alias="numRecords", default=None)
    min_values: Optional[Dict[str, Any]] = Field(alias="minValues", default=None)
    max_values: Optional[Dict[str, Any]] = Field(alias="maxValues", default=None)
    null_count: Optional[Dict[str, Any]] = Field(alias="nullCount", default=None)
    tight_bounds: Optional[bool] = Field(alias="tightBounds", default=None)

    def serialize_as_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def deserialize_from_json(cls, stats_json: Optional[str]) -> Optional["DataFileStatistics"]:
        """Parse the statistics, anything that can't be parsed is treated as missing statistics."""
        if not stats_json:
            return None
        try:
            return cls.model_validate_json(stats_json)
        except ValidationError as e:
            logger.debug("Ignoring file statistics that could not be parsed: %s", e)
            return None
