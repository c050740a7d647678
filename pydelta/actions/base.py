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

from typing import Any, ClassVar, Mapping, Optional, Type, TypeVar

from pydelta.exceptions import InvalidActionError
from pydelta.typedef import Record
from pydelta.types import StructType

A = TypeVar("A", bound="RowBackedAction")


class RowBackedAction:
    """
    A typed view over a Record that holds a single action of the Delta log.

    Ordinals are resolved by name against the schema of the backing row, so a row that
    carries the fields of FULL_SCHEMA in a different layout can still be wrapped.
    """

    FULL_SCHEMA: ClassVar[StructType]

    _row: Record

    def __init__(self, row: Record) -> None:
        for field in self.FULL_SCHEMA:
            if field.name not in row.schema:
                if not field.nullable:
                    raise InvalidActionError(f"{type(self).__name__} row is missing required field: {field.name}")
            elif not field.nullable and row.is_null_at(row.schema.index_of(field.name)):
                raise InvalidActionError(f"{type(self).__name__} requires a non-null value for: {field.name}")
        self._row = row

    @classmethod
    def from_row(cls: Type[A], row: Optional[Record]) -> Optional[A]:
        if row is None:
            return None
        return cls(row)

    def to_row(self) -> Record:
        return self._row

    def _get(self, name: str) -> Any:
        schema = self._row.schema
        if name not in schema:
            return None
        return self._row.get(schema.index_of(name))

    def _with_value(self: A, name: str, value: Any) -> A:
        return type(self)(self._row.with_value(self._row.schema.index_of(name), value))

    def __repr__(self) -> str:
        """Return the debug string of the action."""
        return str(self)


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        return "{" + ", ".join(f"{k}={v}" for k, v in sorted(value.items())) + "}"
    return str(value)


def format_optional(value: Any) -> str:
    return "Optional.empty" if value is None else f"Optional[{format_value(value)}]"


def copy_map(value: Optional[Mapping[str, str]]) -> Optional[dict[str, str]]:
    return None if value is None else dict(value)
