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

from functools import cached_property
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Union

from pydelta.actions.base import RowBackedAction, copy_map, format_optional, format_value
from pydelta.actions.deletion_vectors import DeletionVectorDescriptor
from pydelta.statistics import DataFileStatistics
from pydelta.typedef import Record
from pydelta.types import BOOLEAN, LONG, STRING, STRING_STRING_MAP, StructField, StructType


def _frozen_map(value: Optional[Mapping[str, str]]) -> Optional[frozenset[Tuple[str, str]]]:
    return None if value is None else frozenset(value.items())


def _dv_row(deletion_vector: Optional[DeletionVectorDescriptor]) -> Optional[Record]:
    return None if deletion_vector is None else deletion_vector.to_row()


class AddFile(RowBackedAction):
    """A data file that was added to the table, or is still live in a snapshot."""

    FULL_SCHEMA: ClassVar[StructType] = StructType(
        StructField("path", STRING, nullable=False),
        StructField("partitionValues", STRING_STRING_MAP, nullable=False),
        StructField("size", LONG, nullable=False),
        StructField("modificationTime", LONG, nullable=False),
        StructField("dataChange", BOOLEAN, nullable=False),
        StructField("deletionVector", DeletionVectorDescriptor.FULL_SCHEMA, nullable=True),
        StructField("tags", STRING_STRING_MAP, nullable=True),
        StructField("baseRowId", LONG, nullable=True),
        StructField("defaultRowCommitVersion", LONG, nullable=True),
        StructField("stats", STRING, nullable=True),
    )

    @classmethod
    def create_add_file_row(
        cls,
        path: str,
        partition_values: Mapping[str, str],
        size: int,
        modification_time: int,
        data_change: bool,
        deletion_vector: Optional[DeletionVectorDescriptor] = None,
        tags: Optional[Mapping[str, str]] = None,
        base_row_id: Optional[int] = None,
        default_row_commit_version: Optional[int] = None,
        stats: Union[str, DataFileStatistics, None] = None,
    ) -> Record:
        if isinstance(stats, DataFileStatistics):
            stats = stats.serialize_as_json()
        return Record(
            cls.FULL_SCHEMA,
            path,
            dict(partition_values),
            size,
            modification_time,
            data_change,
            _dv_row(deletion_vector),
            copy_map(tags),
            base_row_id,
            default_row_commit_version,
            stats,
        )

    @property
    def path(self) -> str:
        return self._get("path")

    @property
    def partition_values(self) -> Dict[str, str]:
        return dict(self._get("partitionValues"))

    @property
    def size(self) -> int:
        return self._get("size")

    @property
    def modification_time(self) -> int:
        return self._get("modificationTime")

    @property
    def data_change(self) -> bool:
        return self._get("dataChange")

    @property
    def deletion_vector(self) -> Optional[DeletionVectorDescriptor]:
        return DeletionVectorDescriptor.from_row(self._get("deletionVector"))

    @property
    def tags(self) -> Optional[Dict[str, str]]:
        return copy_map(self._get("tags"))

    @property
    def base_row_id(self) -> Optional[int]:
        return self._get("baseRowId")

    @property
    def default_row_commit_version(self) -> Optional[int]:
        return self._get("defaultRowCommitVersion")

    @property
    def stats_json(self) -> Optional[str]:
        return self._get("stats")

    @cached_property
    def stats(self) -> Optional[DataFileStatistics]:
        return DataFileStatistics.deserialize_from_json(self.stats_json)

    @property
    def num_records(self) -> Optional[int]:
        return self.stats.num_records if self.stats is not None else None

    def with_new_base_row_id(self, base_row_id: int) -> AddFile:
        return self._with_value("baseRowId", base_row_id)

    def with_new_default_row_commit_version(self, default_row_commit_version: int) -> AddFile:
        return self._with_value("defaultRowCommitVersion", default_row_commit_version)

    def with_deletion_vector(self, deletion_vector: Optional[DeletionVectorDescriptor]) -> AddFile:
        return self._with_value("deletionVector", _dv_row(deletion_vector))

    def to_remove_file_row(self, data_change: bool, deletion_timestamp: Optional[int] = None) -> Record:
        """Build the remove action that logically deletes this file, the stats are passed on as-is."""
        return RemoveFile.create_remove_file_row(
            path=self.path,
            deletion_timestamp=deletion_timestamp,
            data_change=data_change,
            extended_file_metadata=True,
            partition_values=self.partition_values,
            size=self.size,
            stats=self.stats_json,
            tags=self.tags,
            deletion_vector=self.deletion_vector,
            base_row_id=self.base_row_id,
            default_row_commit_version=self.default_row_commit_version,
        )

    def to_remove_file(self, data_change: bool, deletion_timestamp: Optional[int] = None) -> RemoveFile:
        return RemoveFile(self.to_remove_file_row(data_change, deletion_timestamp))

    def _fields(self) -> Tuple[Any, ...]:
        return (
            self.path,
            self.partition_values,
            self.size,
            self.modification_time,
            self.data_change,
            self.deletion_vector,
            self.tags,
            self.base_row_id,
            self.default_row_commit_version,
            self.stats_json,
        )

    def __eq__(self, other: Any) -> bool:
        """Compare the fields of two add actions, maps are compared by content."""
        return self._fields() == other._fields() if isinstance(other, AddFile) else False

    def __hash__(self) -> int:
        """Return a hash that is consistent with equality."""
        fields = self._fields()
        return hash((*fields[:1], _frozen_map(fields[1]), *fields[2:6], _frozen_map(fields[6]), *fields[7:]))

    def __str__(self) -> str:
        """Return the debug string, with the fields in schema order."""
        stats = self.stats.serialize_as_json() if self.stats is not None else ""
        return (
            f"AddFile{{path='{self.path}', "
            f"partitionValues={format_value(self.partition_values)}, "
            f"size={self.size}, "
            f"modificationTime={self.modification_time}, "
            f"dataChange={format_value(self.data_change)}, "
            f"deletionVector={format_optional(self.deletion_vector)}, "
            f"tags={format_optional(self.tags)}, "
            f"baseRowId={format_optional(self.base_row_id)}, "
            f"defaultRowCommitVersion={format_optional(self.default_row_commit_version)}, "
            f"stats={stats}}}"
        )


class RemoveFile(RowBackedAction):
    """A logical removal of a data file from the table."""

    FULL_SCHEMA: ClassVar[StructType] = StructType(
        StructField("path", STRING, nullable=False),
        StructField("deletionTimestamp", LONG, nullable=True),
        StructField("dataChange", BOOLEAN, nullable=False),
        StructField("extendedFileMetadata", BOOLEAN, nullable=True),
        StructField("partitionValues", STRING_STRING_MAP, nullable=True),
        StructField("size", LONG, nullable=True),
        StructField("stats", STRING, nullable=True),
        StructField("tags", STRING_STRING_MAP, nullable=True),
        StructField("deletionVector", DeletionVectorDescriptor.FULL_SCHEMA, nullable=True),
        StructField("baseRowId", LONG, nullable=True),
        StructField("defaultRowCommitVersion", LONG, nullable=True),
    )

    @classmethod
    def create_remove_file_row(
        cls,
        path: str,
        data_change: bool,
        deletion_timestamp: Optional[int] = None,
        extended_file_metadata: Optional[bool] = None,
        partition_values: Optional[Mapping[str, str]] = None,
        size: Optional[int] = None,
        stats: Optional[str] = None,
        tags: Optional[Mapping[str, str]] = None,
        deletion_vector: Optional[DeletionVectorDescriptor] = None,
        base_row_id: Optional[int] = None,
        default_row_commit_version: Optional[int] = None,
    ) -> Record:
        return Record(
            cls.FULL_SCHEMA,
            path,
            deletion_timestamp,
            data_change,
            extended_file_metadata,
            copy_map(partition_values),
            size,
            stats,
            copy_map(tags),
            _dv_row(deletion_vector),
            base_row_id,
            default_row_commit_version,
        )

    @property
    def path(self) -> str:
        return self._get("path")

    @property
    def deletion_timestamp(self) -> Optional[int]:
        return self._get("deletionTimestamp")

    @property
    def data_change(self) -> bool:
        return self._get("dataChange")

    @property
    def extended_file_metadata(self) -> Optional[bool]:
        return self._get("extendedFileMetadata")

    @property
    def partition_values(self) -> Optional[Dict[str, str]]:
        return copy_map(self._get("partitionValues"))

    @property
    def size(self) -> Optional[int]:
        return self._get("size")

    @property
    def stats_json(self) -> Optional[str]:
        return self._get("stats")

    @property
    def tags(self) -> Optional[Dict[str, str]]:
        return copy_map(self._get("tags"))

    @property
    def deletion_vector(self) -> Optional[DeletionVectorDescriptor]:
        return DeletionVectorDescriptor.from_row(self._get("deletionVector"))

    @property
    def base_row_id(self) -> Optional[int]:
        return self._get("baseRowId")

    @property
    def default_row_commit_version(self) -> Optional[int]:
        return self._get("defaultRowCommitVersion")

    def with_new_base_row_id(self, base_row_id: int) -> RemoveFile:
        return self._with_value("baseRowId", base_row_id)

    def with_new_default_row_commit_version(self, default_row_commit_version: int) -> RemoveFile:
        return self._with_value("defaultRowCommitVersion", default_row_commit_version)

    def _fields(self) -> Tuple[Any, ...]:
        return (
            self.path,
            self.deletion_timestamp,
            self.data_change,
            self.extended_file_metadata,
            self.partition_values,
            self.size,
            self.stats_json,
            self.tags,
            self.deletion_vector,
            self.base_row_id,
            self.default_row_commit_version,
        )

    def __eq__(self, other: Any) -> bool:
        """Compare the fields of two remove actions, maps are compared by content."""
        return self._fields() == other._fields() if isinstance(other, RemoveFile) else False

    def __hash__(self) -> int:
        """Return a hash that is consistent with equality."""
        fields = self._fields()
        return hash((*fields[:4], _frozen_map(fields[4]), *fields[5:7], _frozen_map(fields[7]), *fields[8:]))

    def __str__(self) -> str:
        """Return the debug string, with the fields in schema order."""
        return (
            f"RemoveFile{{path='{self.path}', "
            f"deletionTimestamp={format_optional(self.deletion_timestamp)}, "
            f"dataChange={format_value(self.data_change)}, "
            f"extendedFileMetadata={format_optional(self.extended_file_metadata)}, "
            f"partitionValues={format_optional(self.partition_values)}, "
            f"size={format_optional(self.size)}, "
            f"stats={format_optional(self.stats_json)}, "
            f"tags={format_optional(self.tags)}, "
            f"deletionVector={format_optional(self.deletion_vector)}, "
            f"baseRowId={format_optional(self.base_row_id)}, "
            f"defaultRowCommitVersion={format_optional(self.default_row_commit_version)}}}"
        )
