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
"""Data types used to lay out action rows and to describe table schemas.

The string forms match the ones written by the other Delta implementations; they end
up in metrics reports, for example as the table and read schema of a scan.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple


class DataType:
    """Base type for all the Delta data types."""

    def __eq__(self, other: Any) -> bool:
        """Compare to another type by content."""
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        """Return the hash of the type."""
        return hash((type(self).__name__, self._key()))

    def __repr__(self) -> str:
        """Return the string representation of the type."""
        return str(self)

    def _key(self) -> Tuple[Any, ...]:
        return ()

    def simple_string(self) -> str:
        return str(self)


class PrimitiveType(DataType):
    name: str

    def __str__(self) -> str:
        """Return the name of the primitive type."""
        return self.name


class StringType(PrimitiveType):
    name = "string"


class LongType(PrimitiveType):
    name = "long"


class IntegerType(PrimitiveType):
    name = "integer"


class BooleanType(PrimitiveType):
    name = "boolean"


class MapType(DataType):
    key_type: DataType
    value_type: DataType
    value_contains_null: bool

    def __init__(self, key_type: DataType, value_type: DataType, value_contains_null: bool = True) -> None:
        self.key_type = key_type
        self.value_type = value_type
        self.value_contains_null = value_contains_null

    def _key(self) -> Tuple[Any, ...]:
        return (self.key_type, self.value_type, self.value_contains_null)

    def __str__(self) -> str:
        """Return the string representation of the map type."""
        return f"map[{self.key_type}, {self.value_type}]"

    def simple_string(self) -> str:
        return f"map<{self.key_type.simple_string()},{self.value_type.simple_string()}>"


class StructField:
    name: str
    data_type: DataType
    nullable: bool
    metadata: Dict[str, str]

    def __init__(self, name: str, data_type: DataType, nullable: bool = True, metadata: Optional[Mapping[str, str]] = None) -> None:
        self.name = name
        self.data_type = data_type
        self.nullable = nullable
        self.metadata = dict(metadata or {})

    def _key(self) -> Tuple[Any, ...]:
        return (self.name, self.data_type, self.nullable, frozenset(self.metadata.items()))

    def __eq__(self, other: Any) -> bool:
        """Compare to another field by content."""
        return self._key() == other._key() if isinstance(other, StructField) else False

    def __hash__(self) -> int:
        """Return the hash of the field."""
        return hash(self._key())

    def __str__(self) -> str:
        """Return the string representation of the field."""
        metadata = ", ".join(f"{k}={v}" for k, v in sorted(self.metadata.items()))
        nullable = "true" if self.nullable else "false"
        return f"StructField(name={self.name},type={self.data_type},nullable={nullable},metadata={{{metadata}}},typeChanges=[])"

    def __repr__(self) -> str:
        """Return the string representation of the field."""
        return str(self)


class StructType(DataType):
    """An ordered collection of fields with a precomputed name to ordinal lookup."""

    fields: Tuple[StructField, ...]
    _ordinals: Dict[str, int]

    def __init__(self, *fields: StructField) -> None:
        self.fields = tuple(fields)
        self._ordinals = {}
        for pos, field in enumerate(self.fields):
            if field.name in self._ordinals:
                raise ValueError(f"Duplicate field name: {field.name}")
            self._ordinals[field.name] = pos

    def add(self, name: str, data_type: DataType, nullable: bool = True) -> StructType:
        """Return a new struct with the field appended."""
        return StructType(*self.fields, StructField(name, data_type, nullable))

    def index_of(self, name: str) -> int:
        try:
            return self._ordinals[name]
        except KeyError as e:
            raise ValueError(f"Could not find field with name: {name}") from e

    def __contains__(self, name: object) -> bool:
        """Return whether a field with this name exists."""
        return name in self._ordinals

    def field_names(self) -> List[str]:
        return [field.name for field in self.fields]

    def _key(self) -> Tuple[Any, ...]:
        return self.fields

    def __len__(self) -> int:
        """Return the number of fields."""
        return len(self.fields)

    def __iter__(self) -> Iterator[StructField]:
        """Iterate over the fields."""
        return iter(self.fields)

    def __getitem__(self, pos: int) -> StructField:
        """Return the field at the given ordinal."""
        return self.fields[pos]

    def __str__(self) -> str:
        """Return the string representation of the struct."""
        return f"struct({', '.join(str(field) for field in self.fields)})"

    def simple_string(self) -> str:
        return f"struct<{','.join(f'{field.name}:{field.data_type.simple_string()}' for field in self.fields)}>"


STRING = StringType()
LONG = LongType()
INTEGER = IntegerType()
BOOLEAN = BooleanType()
STRING_STRING_MAP = MapType(STRING, STRING, value_contains_null=True)
