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
# pylint:disable=redefined-outer-name
from typing import Dict, Optional

import pytest

from pydelta.actions import AddFile, DeletionVectorDescriptor, DomainMetadata, RemoveFile
from pydelta.exceptions import InvalidActionError
from pydelta.statistics import DataFileStatistics
from pydelta.typedef import Record


def _add_file_row(
    path: str = "path",
    partition_values: Optional[Dict[str, str]] = None,
    size: int = 10,
    modification_time: int = 20,
    data_change: bool = True,
    deletion_vector: Optional[DeletionVectorDescriptor] = None,
    tags: Optional[Dict[str, str]] = None,
    base_row_id: Optional[int] = None,
    default_row_commit_version: Optional[int] = None,
    stats: Optional[str] = None,
) -> Record:
    return AddFile.create_add_file_row(
        path=path,
        partition_values=partition_values or {},
        size=size,
        modification_time=modification_time,
        data_change=data_change,
        deletion_vector=deletion_vector,
        tags=tags,
        base_row_id=base_row_id,
        default_row_commit_version=default_row_commit_version,
        stats=stats,
    )


def test_getters_read_fields_from_backing_row() -> None:
    add_file = AddFile(
        _add_file_row(
            path="test/path",
            partition_values={"a": "1"},
            size=1,
            modification_time=10,
            data_change=False,
            tags={"tag1": "value1"},
            base_row_id=30,
            default_row_commit_version=40,
            stats='{"numRecords":100}',
        )
    )

    assert add_file.path == "test/path"
    assert add_file.partition_values == {"a": "1"}
    assert add_file.size == 1
    assert add_file.modification_time == 10
    assert add_file.data_change is False
    assert add_file.deletion_vector is None
    assert add_file.tags == {"tag1": "value1"}
    assert add_file.base_row_id == 30
    assert add_file.default_row_commit_version == 40
    assert add_file.stats is not None
    assert add_file.stats.serialize_as_json() == '{"numRecords":100}'
    assert add_file.num_records == 100


def test_absent_optionals_are_null_in_row() -> None:
    row = _add_file_row()

    for name in ["deletionVector", "tags", "baseRowId", "defaultRowCommitVersion", "stats"]:
        assert row.is_null_at(AddFile.FULL_SCHEMA.index_of(name))
    assert not row.is_null_at(AddFile.FULL_SCHEMA.index_of("path"))


def test_row_ordinals_are_stable() -> None:
    assert AddFile.FULL_SCHEMA.field_names() == [
        "path",
        "partitionValues",
        "size",
        "modificationTime",
        "dataChange",
        "deletionVector",
        "tags",
        "baseRowId",
        "defaultRowCommitVersion",
        "stats",
    ]


def test_stats_can_be_given_as_statistics() -> None:
    row = AddFile.create_add_file_row(
        path="p", partition_values={}, size=1, modification_time=2, data_change=True, stats=DataFileStatistics(num_records=7)
    )

    assert AddFile(row).stats_json == '{"numRecords":7}'
    assert AddFile(row).num_records == 7


@pytest.mark.parametrize("stats", [None, "", "not json", "[1, 2]", '{"numRecords": "many"}'])
def test_missing_or_malformed_stats_are_absent(stats: Optional[str]) -> None:
    add_file = AddFile(_add_file_row(stats=stats))

    assert add_file.stats is None
    assert add_file.num_records is None
    assert add_file.stats_json == stats


def test_stats_are_parsed_once() -> None:
    add_file = AddFile(_add_file_row(stats='{"numRecords":100}'))

    assert add_file.stats is add_file.stats


def test_round_trip_through_row(deletion_vector: DeletionVectorDescriptor) -> None:
    for dv in [None, deletion_vector]:
        for tags in [None, {"k": "v"}]:
            for stats in [None, '{"numRecords":1}']:
                add_file = AddFile(_add_file_row(partition_values={"a": "1"}, deletion_vector=dv, tags=tags, stats=stats))
                assert AddFile(add_file.to_row()) == add_file
                assert AddFile.from_row(add_file.to_row()) == add_file


def test_from_row_none() -> None:
    assert AddFile.from_row(None) is None


def test_required_field_must_be_set() -> None:
    row = _add_file_row().with_value(AddFile.FULL_SCHEMA.index_of("path"), None)

    with pytest.raises(InvalidActionError, match="path"):
        AddFile(row)


def test_update_a_single_field() -> None:
    add_file = AddFile(_add_file_row(base_row_id=1))

    updated = add_file.with_new_base_row_id(2)

    assert updated.base_row_id == 2
    assert AddFile(updated.to_row()).base_row_id == 2
    assert add_file.base_row_id == 1
    assert updated.with_new_base_row_id(1) == add_file


def test_update_multiple_fields_multiple_times() -> None:
    add_file = AddFile(_add_file_row(path="test/path", base_row_id=0, default_row_commit_version=0))

    for i in range(1, 10):
        add_file = add_file.with_new_base_row_id(i).with_new_default_row_commit_version(i * 10)

        assert add_file.path == "test/path"
        assert add_file.base_row_id == i
        assert add_file.default_row_commit_version == i * 10


def test_update_keeps_other_fields(deletion_vector: DeletionVectorDescriptor) -> None:
    add_file = AddFile(_add_file_row(path="test/path", partition_values={"a": "1"}, tags={"t": "v"}, stats='{"numRecords":3}'))

    updated = add_file.with_deletion_vector(deletion_vector)

    assert updated.deletion_vector == deletion_vector
    assert add_file.deletion_vector is None
    assert updated.with_deletion_vector(None) == add_file
    assert updated.partition_values == {"a": "1"}
    assert updated.tags == {"t": "v"}
    assert updated.stats_json == '{"numRecords":3}'


def test_returned_maps_do_not_leak_into_action() -> None:
    add_file = AddFile(_add_file_row(partition_values={"a": "1"}, tags={"t": "v"}))

    add_file.partition_values["a"] = "2"
    tags = add_file.tags
    assert tags is not None
    tags["t"] = "w"

    assert add_file.partition_values == {"a": "1"}
    assert add_file.tags == {"t": "v"}


def test_row_maps_are_read_only() -> None:
    partition_values = {"a": "1"}
    add_file = AddFile(_add_file_row(partition_values=partition_values, tags={"t": "v"}))
    expected_hash = hash(add_file)
    row = add_file.to_row()

    with pytest.raises(TypeError):
        row.get(AddFile.FULL_SCHEMA.index_of("partitionValues"))["a"] = "2"
    with pytest.raises(TypeError):
        row.get(AddFile.FULL_SCHEMA.index_of("tags"))["t"] = "w"
    partition_values["a"] = "3"

    assert add_file.partition_values == {"a": "1"}
    assert add_file.tags == {"t": "v"}
    assert hash(add_file) == expected_hash


def test_functional_update_does_not_share_maps() -> None:
    add_file = AddFile(_add_file_row(partition_values={"a": "1"}))

    updated = add_file.with_new_base_row_id(5)

    assert updated.partition_values == {"a": "1"}
    assert updated.to_row().get(1) is not add_file.to_row().get(1)


@pytest.mark.parametrize("dv_present", [True, False])
def test_str_prints_all_fields(dv_present: bool, deletion_vector: DeletionVectorDescriptor) -> None:
    add_file = AddFile(
        _add_file_row(
            path="test/path",
            partition_values={"col1": "val1"},
            size=100,
            modification_time=1234,
            data_change=False,
            tags={"tag1": "value1"},
            base_row_id=12345,
            default_row_commit_version=67890,
            stats='{"numRecords":10000}',
            deletion_vector=deletion_vector if dv_present else None,
        )
    )

    deletion_vector_str = (
        "Optional[DeletionVectorDescriptor(storageType=storage, pathOrInlineDv=s, offset=Optional[1], sizeInBytes=25, cardinality=35)]"
        if dv_present
        else "Optional.empty"
    )
    assert str(add_file) == (
        "AddFile{path='test/path', "
        "partitionValues={col1=val1}, "
        "size=100, "
        "modificationTime=1234, "
        "dataChange=false, "
        f"deletionVector={deletion_vector_str}, "
        "tags=Optional[{tag1=value1}], "
        "baseRowId=Optional[12345], "
        "defaultRowCommitVersion=Optional[67890], "
        'stats={"numRecords":10000}}'
    )
    assert repr(add_file) == str(add_file)


def test_str_orders_map_entries() -> None:
    add_file = AddFile(_add_file_row(partition_values={"b": "2", "a": "1"}))

    assert "partitionValues={a=1, b=2}" in str(add_file)
    assert "tags=Optional.empty" in str(add_file)
    assert str(add_file).endswith("stats=}")


def test_equality(deletion_vector: DeletionVectorDescriptor) -> None:
    add_file_1 = AddFile(
        _add_file_row(path="test/path", size=100, partition_values={"a": "1"}, base_row_id=12345, stats='{"numRecords":100}')
    )
    add_file_2 = AddFile(
        _add_file_row(path="test/path", size=100, partition_values={"a": "1"}, base_row_id=12345, stats='{"numRecords":100}')
    )
    diff_path = AddFile(
        _add_file_row(path="different/path", size=100, partition_values={"a": "1"}, base_row_id=12345, stats='{"numRecords":100}')
    )
    diff_partition = AddFile(
        _add_file_row(path="test/path", size=100, partition_values={"x": "0"}, base_row_id=12345, stats='{"numRecords":100}')
    )
    with_deletion_vector = AddFile(
        _add_file_row(
            path="test/path",
            size=100,
            partition_values={"x": "0"},
            base_row_id=12345,
            deletion_vector=deletion_vector,
            stats='{"numRecords":100}',
        )
    )

    assert add_file_1 == add_file_2
    assert add_file_1 != diff_path
    assert add_file_1 != diff_partition
    assert add_file_2 != diff_path
    assert diff_path != diff_partition
    assert with_deletion_vector != diff_partition

    assert add_file_1 != None  # noqa: E711
    assert add_file_1 != DomainMetadata(domain="domain", configuration="config", removed=False)
    assert add_file_1 != "AddFile"


def test_equality_ignores_map_insertion_order() -> None:
    add_file_1 = AddFile(_add_file_row(partition_values={"a": "1", "b": "2"}, tags={"x": "1", "y": "2"}))
    add_file_2 = AddFile(_add_file_row(partition_values={"b": "2", "a": "1"}, tags={"y": "2", "x": "1"}))

    assert add_file_1 == add_file_2
    assert hash(add_file_1) == hash(add_file_2)


@pytest.mark.parametrize(
    "changes",
    [
        {"path": "other"},
        {"partition_values": {"a": "2"}},
        {"size": 11},
        {"modification_time": 21},
        {"data_change": False},
        {"tags": {"t": "v"}},
        {"base_row_id": 1},
        {"default_row_commit_version": 1},
        {"stats": '{"numRecords":1}'},
    ],
)
def test_changing_any_field_breaks_equality(changes: Dict[str, object]) -> None:
    base = AddFile(_add_file_row(partition_values={"a": "1"}))

    assert AddFile(_add_file_row(**{"partition_values": {"a": "1"}, **changes})) != base  # type: ignore


def test_hash_is_consistent_with_equality() -> None:
    add_file_1 = AddFile(_add_file_row(path="test/path", size=100, partition_values={"a": "1"}, base_row_id=12345))
    add_file_2 = AddFile(_add_file_row(path="test/path", size=100, partition_values={"a": "1"}, base_row_id=12345))

    assert hash(add_file_1) == hash(add_file_2)
    assert hash(add_file_1) == hash(add_file_1)
    assert len({add_file_1, add_file_2}) == 1


def test_to_remove_file_row_with_required_fields() -> None:
    add_file = AddFile(_add_file_row(path="/path/to/file", data_change=False))

    for data_change, deletion_timestamp in [(True, None), (False, None), (True, 100)]:
        result = RemoveFile(add_file.to_remove_file_row(data_change, deletion_timestamp))

        assert result.path == "/path/to/file"
        assert result.deletion_timestamp == deletion_timestamp
        assert result.data_change == data_change
        assert result.extended_file_metadata is True
        assert result.partition_values == {}
        assert result.size == 10
        assert result.stats_json is None
        assert result.tags is None
        assert result.deletion_vector is None
        assert result.base_row_id is None
        assert result.default_row_commit_version is None


def test_to_remove_file_row_with_optional_fields() -> None:
    add_file = AddFile(
        _add_file_row(
            path="/path/to/file",
            partition_values={"a": "1"},
            size=100,
            modification_time=200,
            data_change=True,
            tags={"tag1": "value1"},
            base_row_id=67890,
            default_row_commit_version=2823,
            stats='{"numRecords":100}',
        )
    )

    result = RemoveFile(add_file.to_remove_file_row(False, 200))

    assert result.path == "/path/to/file"
    assert result.partition_values == {"a": "1"}
    assert result.size == 100
    assert result.deletion_timestamp == 200
    assert result.data_change is False
    assert result.deletion_vector is None
    assert result.tags == {"tag1": "value1"}
    assert result.base_row_id == 67890
    assert result.default_row_commit_version == 2823
    assert result.stats_json == '{"numRecords":100}'


def test_to_remove_file_row_passes_stats_through_unparsed() -> None:
    raw_stats = '{"numRecords": 100, "minValues": {"a": 1}, "unknownField": true}'
    add_file = AddFile(_add_file_row(stats=raw_stats))

    assert add_file.to_remove_file(True).stats_json == raw_stats


def test_to_remove_file_row_converts_deletion_vector(deletion_vector: DeletionVectorDescriptor) -> None:
    add_file = AddFile(
        _add_file_row(
            path="/path/to/file",
            partition_values={"a": "1"},
            size=100,
            modification_time=200,
            data_change=True,
            deletion_vector=deletion_vector,
            tags={"tag1": "value1"},
            base_row_id=67890,
            default_row_commit_version=2823,
            stats='{"numRecords":100}',
        )
    )

    result = add_file.to_remove_file(True, 200)

    assert result.path == "/path/to/file"
    assert result.partition_values == {"a": "1"}
    assert result.size == 100
    assert result.deletion_timestamp == 200
    assert result.data_change is True
    assert result.deletion_vector == DeletionVectorDescriptor(
        storage_type="storage", path_or_inline_dv="s", offset=1, size_in_bytes=25, cardinality=35
    )
    assert result.tags == {"tag1": "value1"}
    assert result.base_row_id == 67890
    assert result.default_row_commit_version == 2823
    assert result.stats_json == '{"numRecords":100}'
