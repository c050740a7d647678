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
Column references and predicates as they appear in scan and transaction reports.

Only the structure and string form are modelled here; evaluating predicates is left
to the engine that drives the scan.
"""

from __future__ import annotations

from typing import Any, Tuple

BINARY_OPERATORS = {"=", "<", "<=", ">", ">=", "<=>", "AND", "OR", "IS NOT DISTINCT FROM"}


class Expression:
    def __repr__(self) -> str:
        """Return the string representation of the expression."""
        return str(self)


class Column(Expression):
    """A reference to a (possibly nested) column by its path of names."""

    names: Tuple[str, ...]

    def __init__(self, *names: str) -> None:
        if len(names) == 0:
            raise ValueError("Column requires at least one name")
        self.names = tuple(names)

    def __eq__(self, other: Any) -> bool:
        """Compare the column path to another column."""
        return self.names == other.names if isinstance(other, Column) else False

    def __hash__(self) -> int:
        """Return the hash of the column path."""
        return hash(self.names)

    def __str__(self) -> str:
        """Return the column as column(`a`.`b`)."""
        return f"column({'.'.join(f'`{name}`' for name in self.names)})"


class Literal(Expression):
    value: Any

    def __init__(self, value: Any) -> None:
        self.value = value

    def __eq__(self, other: Any) -> bool:
        """Compare the literal value to another literal."""
        return type(self.value) is type(other.value) and self.value == other.value if isinstance(other, Literal) else False

    def __hash__(self) -> int:
        """Return the hash of the literal value."""
        return hash(self.value)

    def __str__(self) -> str:
        """Return the literal value, booleans in lowercase."""
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        return str(self.value)


class Predicate(Expression):
    name: str
    children: Tuple[Expression, ...]

    def __init__(self, name: str, *children: Expression) -> None:
        self.name = name.upper()
        self.children = tuple(children)

    def __eq__(self, other: Any) -> bool:
        """Compare the predicate with another predicate."""
        return self.name == other.name and self.children == other.children if isinstance(other, Predicate) else False

    def __hash__(self) -> int:
        """Return the hash of the predicate."""
        return hash((self.name, self.children))

    def __str__(self) -> str:
        """Return infix notation for binary operators and NAME(args) for the rest."""
        if self.name in BINARY_OPERATORS and len(self.children) == 2:
            return f"({self.children[0]} {self.name} {self.children[1]})"
        return f"{self.name}({', '.join(str(child) for child in self.children)})"
