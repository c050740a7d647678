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

from pydelta.exceptions import InvalidActionError
from pydelta.typedef import DeltaBaseModel, Record
from pydelta.types import BOOLEAN, STRING, StructField, StructType


class DomainMetadata(DeltaBaseModel):
    """Configuration of a named metadata domain, `removed` marks a tombstone of the domain."""

    domain: str = Field()
    configuration: str = Field()
    removed: bool = Field()

    FULL_SCHEMA: ClassVar[StructType] = StructType(
        StructField("domain", STRING, nullable=False),
        StructField("configuration", STRING, nullable=False),
        StructField("removed", BOOLEAN, nullable=False),
    )

    @classmethod
    def from_row(cls, row: Optional[Record]) -> Optional[DomainMetadata]:
        if row is None:
            return None
        values = {name: row.get(row.schema.index_of(name)) for name in cls.FULL_SCHEMA.field_names()}
        if missing := [name for name, value in values.items() if value is None]:
            raise InvalidActionError(f"DomainMetadata requires a non-null value for: {', '.join(missing)}")
        return cls(**values)

    def to_row(self) -> Record:
        return Record(self.FULL_SCHEMA, self.domain, self.configuration, self.removed)

    def removed_copy(self) -> DomainMetadata:
        """Return a tombstone for this domain."""
        return self.model_copy(update={"removed": True})

    def __str__(self) -> str:
        """Return the debug string of the domain metadata."""
        removed = "true" if self.removed else "false"
        return f"DomainMetadata{{domain='{self.domain}', configuration='{self.configuration}', removed='{removed}'}}"

    def __repr__(self) -> str:
        """Return the debug string of the domain metadata."""
        return str(self)
