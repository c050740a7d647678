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
Descriptor of a deletion vector referenced by an add or remove action.

A deletion vector is stored in one of three ways, given by its storage type:

- u: a file next to the table, `pathOrInlineDv` holds an optional random prefix
  followed by the Z85 encoded UUID of the file name.
- i: inline, `pathOrInlineDv` holds the Z85 encoded bitmap itself.
- p: a file at the absolute path in `pathOrInlineDv`.
"""

from __future__ import annotations

import posixpath
import uuid
from typing import ClassVar, Optional

from pydantic import Field

from pydelta.typedef import DeltaBaseModel, Record
from pydelta.types import INTEGER, LONG, STRING, StructField, StructType

UUID_DV_MARKER = "u"
INLINE_DV_MARKER = "i"
PATH_DV_MARKER = "p"

_Z85_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ.-:+=^!/*?&<>()[]{}@%$#"
_Z85_DECODE = {char: pos for pos, char in enumerate(_Z85_ALPHABET)}
_ENCODED_UUID_LENGTH = 20


def z85_decode(encoded: str) -> bytes:
    if len(encoded) % 5 != 0:
        raise ValueError(f"Z85 encoded input must be a multiple of 5 characters, got {len(encoded)}")
    out = bytearray()
    for offset in range(0, len(encoded), 5):
        value = 0
        for char in encoded[offset : offset + 5]:
            try:
                value = value * 85 + _Z85_DECODE[char]
            except KeyError as e:
                raise ValueError(f"Invalid Z85 character: {char!r}") from e
        if value > 0xFFFFFFFF:
            raise ValueError(f"Invalid Z85 block: {encoded[offset : offset + 5]}")
        out += value.to_bytes(4, "big")
    return bytes(out)


def z85_encode(data: bytes) -> str:
    if len(data) % 4 != 0:
        raise ValueError(f"Z85 input must be a multiple of 4 bytes, got {len(data)}")
    chars = []
    for offset in range(0, len(data), 4):
        value = int.from_bytes(data[offset : offset + 4], "big")
        block = []
        for _ in range(5):
            value, pos = divmod(value, 85)
            block.append(_Z85_ALPHABET[pos])
        chars.extend(reversed(block))
    return "".join(chars)


class DeletionVectorDescriptor(DeltaBaseModel):
    storage_type: str = Field(alias="storageType")
    path_or_inline_dv: str = Field(alias="pathOrInlineDv")
    offset: Optional[int] = Field(default=None)
    size_in_bytes: int = Field(alias="sizeInBytes")
    cardinality: int = Field()

    FULL_SCHEMA: ClassVar[StructType] = StructType(
        StructField("storageType", STRING, nullable=False),
        StructField("pathOrInlineDv", STRING, nullable=False),
        StructField("offset", INTEGER, nullable=True),
        StructField("sizeInBytes", LONG, nullable=False),
        StructField("cardinality", LONG, nullable=False),
    )

    @classmethod
    def from_row(cls, row: Optional[Record]) -> Optional[DeletionVectorDescriptor]:
        if row is None:
            return None
        schema = row.schema
        return cls(
            storage_type=row.get(schema.index_of("storageType")),
            path_or_inline_dv=row.get(schema.index_of("pathOrInlineDv")),
            offset=row.get(schema.index_of("offset")),
            size_in_bytes=row.get(schema.index_of("sizeInBytes")),
            cardinality=row.get(schema.index_of("cardinality")),
        )

    def to_row(self) -> Record:
        return Record(
            self.FULL_SCHEMA,
            self.storage_type,
            self.path_or_inline_dv,
            self.offset,
            self.size_in_bytes,
            self.cardinality,
        )

    @property
    def is_inline(self) -> bool:
        return self.storage_type == INLINE_DV_MARKER

    @property
    def is_on_disk(self) -> bool:
        return not self.is_inline

    @property
    def unique_id(self) -> str:
        """Identify the deletion vector, including the offset when several share a file."""
        unique_file_id = f"{self.storage_type}{self.path_or_inline_dv}"
        return unique_file_id if self.offset is None else f"{unique_file_id}@{self.offset}"

    def inline_data(self) -> bytes:
        if not self.is_inline:
            raise ValueError(f"Deletion vector is not stored inline: {self.storage_type}")
        return z85_decode(self.path_or_inline_dv)

    def absolute_path(self, table_path: str) -> str:
        if self.storage_type == UUID_DV_MARKER:
            prefix = self.path_or_inline_dv[:-_ENCODED_UUID_LENGTH]
            file_id = uuid.UUID(bytes=z85_decode(self.path_or_inline_dv[-_ENCODED_UUID_LENGTH:]))
            file_name = f"deletion_vector_{file_id}.bin"
            return posixpath.join(table_path, prefix, file_name) if prefix else posixpath.join(table_path, file_name)
        if self.storage_type == PATH_DV_MARKER:
            return self.path_or_inline_dv
        if self.storage_type == INLINE_DV_MARKER:
            raise ValueError("Inline deletion vectors have no path")
        raise ValueError(f"Unknown deletion vector storage type: {self.storage_type}")

    def __str__(self) -> str:
        """Return the debug string of the descriptor."""
        offset = "Optional.empty" if self.offset is None else f"Optional[{self.offset}]"
        return (
            f"DeletionVectorDescriptor(storageType={self.storage_type}, pathOrInlineDv={self.path_or_inline_dv}, "
            f"offset={offset}, sizeInBytes={self.size_in_bytes}, cardinality={self.cardinality})"
        )

    def __repr__(self) -> str:
        """Return the debug string of the descriptor."""
        return str(self)
