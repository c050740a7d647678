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
import pytest

from pydelta.actions import DeletionVectorDescriptor
from pydelta.types import INTEGER, StructType


@pytest.fixture
def deletion_vector() -> DeletionVectorDescriptor:
    return DeletionVectorDescriptor(storage_type="storage", path_or_inline_dv="s", offset=1, size_in_bytes=25, cardinality=35)


@pytest.fixture
def table_schema() -> StructType:
    return StructType().add("part", INTEGER).add("id", INTEGER)
