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

from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterator,
    Mapping,
    Optional,
    Tuple,
    Union,
)

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from pydelta.types import StructType

UTF8 = "utf-8"

RecursiveDict = Dict[str, Union[str, "RecursiveDict"]]


class DeltaBaseModel(BaseModel):
    """
    This class extends the Pydantic BaseModel to set default values by overriding them.

    This is because we always want to set by_alias to True. In Python, the dash can't
    be used in variable names, and this is used throughout the Delta log, so we use
    aliases everywhere a field name differs from its JSON name.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def _exclude_private_properties(self, exclude: Optional[set[str]] = None) -> set[str]:
        # A small trick to exclude private properties. Properties are serialized by pydantic,
        # regardless if they start with an underscore.
        # This will look at the dict, and find the fields and exclude them
        return set.union(
            {field for field in self.__dict__ if field.startswith("_") and not field == "__root__"}, exclude or set()
        )

    def model_dump(
        self, exclude_none: bool = True, exclude: Optional[set[str]] = None, by_alias: bool = True, **kwargs: Any
    ) -> Dict[str, Any]:
        return super().model_dump(
            exclude_none=exclude_none, exclude=self._exclude_private_properties(exclude), by_alias=by_alias, **kwargs
        )

    def model_dump_json(
        self, exclude_none: bool = True, exclude: Optional[set[str]] = None, by_alias: bool = True, **kwargs: Any
    ) -> str:
        return super().model_dump_json(
            exclude_none=exclude_none, exclude=self._exclude_private_properties(exclude), by_alias=by_alias, **kwargs
        )


class Record:
    """An ordinal-addressed, immutable row of values laid out according to a StructType."""

    __slots__ = ("_schema", "_data")

    _schema: StructType
    _data: Tuple[Any, ...]

    def __init__(self, schema: StructType, *data: Any) -> None:
        if len(data) != len(schema):
            raise ValueError(f"Expected {len(schema)} values for {schema.simple_string()}, got {len(data)}")
        self._schema = schema
        self._data = tuple(_frozen(value) for value in data)

    @classmethod
    def from_dict(cls, schema: StructType, values: Mapping[str, Any]) -> Record:
        """Build a record from a name to value mapping, names that are not present are null."""
        data: list[Any] = [None] * len(schema)
        for name, value in values.items():
            data[schema.index_of(name)] = value
        return cls(schema, *data)

    @property
    def schema(self) -> StructType:
        return self._schema

    def get(self, pos: int) -> Any:
        return self._data[pos]

    def is_null_at(self, pos: int) -> bool:
        return self._data[pos] is None

    def with_value(self, pos: int, value: Any) -> Record:
        """Return a full-width copy of this record with the value at a single ordinal replaced."""
        data = list(self._data)
        data[pos] = value
        return Record(self._schema, *data)

    def __getitem__(self, pos: int) -> Any:
        """Fetch a value from a Record."""
        return self._data[pos]

    def __len__(self) -> int:
        """Return the number of fields in the Record class."""
        return len(self._data)

    def __iter__(self) -> Iterator[Any]:
        """Iterate over the values of the Record."""
        return iter(self._data)

    def __eq__(self, other: Any) -> bool:
        """Return the equality of two instances of the Record class."""
        return self._schema == other._schema and self._data == other._data if isinstance(other, Record) else False

    def __hash__(self) -> int:
        """Return hash value of the Record."""
        return hash((self._schema, tuple(_hashable(value) for value in self._data)))

    def __repr__(self) -> str:
        """Return the string representation of the Record class."""
        values = (dict(value) if isinstance(value, MappingProxyType) else value for value in self._data)
        return f"{self.__class__.__name__}[{', '.join(f'{field.name}={value!r}' for field, value in zip(self._schema, values))}]"


def _hashable(value: Any) -> Any:
    # Maps are compared by content, so their hash must not depend on insertion order
    if isinstance(value, Mapping):
        return frozenset(value.items())
    return value


def _frozen(value: Any) -> Any:
    # Maps are stored as read-only copies
    if isinstance(value, Mapping):
        return MappingProxyType(dict(value))
    return value
