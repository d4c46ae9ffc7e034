#  Copyright 2025 Hathor Labs
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import asyncio
import ctypes
import queue
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Annotated, Any, NewType, Optional, Protocol

import pytest

from structshape.kinds import (
    CONTAINER_KINDS,
    KIND_TYPES,
    PRIMITIVE_KINDS,
    UNSUPPORTED_KINDS,
    ZERO_VALUES,
    Complex64,
    Float32,
    Int8,
    Int16,
    Int32,
    Kind,
    Length,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
    array_count,
    elem_type,
    is_hashable,
    key_type,
    kind_of,
    type_name,
)


@dataclass
class Point:
    x: int
    y: int


@dataclass
class Point3(Point):
    z: int


class Shape(Protocol):
    def area(self) -> float:
        ...


class Plain:
    pass


class Color(str, Enum):
    RED = 'red'


class Level(IntEnum):
    LOW = 1


class Shade(Enum):
    DARK = 1


class Name(str):
    pass


UserId = NewType('UserId', int)
Port = NewType('Port', Uint16)
Ids = NewType('Ids', list[int])
PointAlias = NewType('PointAlias', Point)


def _function() -> None:
    pass


@pytest.mark.parametrize(
    ['annotation', 'kind'],
    [
        (bool, Kind.BOOL),
        (int, Kind.INT64),
        (Int8, Kind.INT8),
        (Int16, Kind.INT16),
        (Int32, Kind.INT32),
        (Uint8, Kind.UINT8),
        (Uint16, Kind.UINT16),
        (Uint32, Kind.UINT32),
        (Uint64, Kind.UINT64),
        (float, Kind.FLOAT64),
        (Float32, Kind.FLOAT32),
        (complex, Kind.COMPLEX128),
        (Complex64, Kind.COMPLEX64),
        (str, Kind.STRING),
        (Any, Kind.ANY),
        (object, Kind.ANY),
        (Optional[int], Kind.POINTER),
        (str | None, Kind.POINTER),
        (list[int], Kind.LIST),
        (tuple[int, ...], Kind.LIST),
        (dict[str, int], Kind.MAP),
        (tuple[int, int, int], Kind.ARRAY),
        (Annotated[tuple[int, ...], Length(0)], Kind.ARRAY),
        (Annotated[str, 'doc'], Kind.STRING),
        (Point, Kind.STRUCT),
        (Point3, Kind.EMBEDDED),
        (Callable[[int], int], Kind.FUNC),
        (type(_function), Kind.FUNC),
        (queue.Queue, Kind.CHAN),
        (asyncio.Queue, Kind.CHAN),
        (ctypes.POINTER(ctypes.c_int), Kind.UNSAFE_POINTER),
        (ctypes.c_void_p, Kind.UNSAFE_POINTER),
        (Shape, Kind.INTERFACE),
        (Plain, Kind.INTERFACE),
        (UserId, Kind.INT64),
        (Port, Kind.UINT16),
        (Ids, Kind.LIST),
        (Optional[UserId], Kind.POINTER),
        (PointAlias, Kind.STRUCT),
        (Color, Kind.STRING),
        (Level, Kind.INT64),
        (Name, Kind.STRING),
        (Shade, Kind.INTERFACE),
        (tuple[int, str], Kind.INVALID),
        (int | str, Kind.INVALID),
        (list, Kind.INVALID),
        (None, Kind.INVALID),
        (42, Kind.INVALID),
    ],
)
def test_kind_of(annotation: Any, kind: Kind) -> None:
    assert kind_of(annotation) is kind


@pytest.mark.parametrize('kind', sorted(PRIMITIVE_KINDS))
def test_canonical_type_round_trips(kind: Kind) -> None:
    assert kind_of(KIND_TYPES[kind]) is kind
    assert kind in ZERO_VALUES


def test_kind_sets_are_disjoint() -> None:
    assert not PRIMITIVE_KINDS & CONTAINER_KINDS
    assert not PRIMITIVE_KINDS & UNSUPPORTED_KINDS
    assert not CONTAINER_KINDS & UNSUPPORTED_KINDS
    assert PRIMITIVE_KINDS | CONTAINER_KINDS | UNSUPPORTED_KINDS | {Kind.STRUCT} == set(Kind)


def test_kind_numbers_are_stable() -> None:
    assert (Kind.BOOL, Kind.INT64, Kind.UINT8, Kind.FLOAT64, Kind.COMPLEX128) == (1, 6, 8, 14, 16)
    assert (Kind.ARRAY, Kind.ANY, Kind.MAP, Kind.POINTER, Kind.LIST, Kind.STRING, Kind.STRUCT) == (
        17, 20, 21, 22, 23, 24, 25
    )
    assert str(Kind.INT64) == 'int64'


def test_kind_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        KIND_TYPES[Kind.BOOL] = int  # type: ignore[index]


def test_container_helpers() -> None:
    assert elem_type(list[str]) is str
    assert elem_type(Optional[Point]) is Point
    assert elem_type(dict[str, float]) is float
    assert key_type(dict[str, float]) is str
    assert elem_type(tuple[int, int]) is int
    assert array_count(tuple[int, int]) == 2
    assert elem_type(Annotated[tuple[str, ...], Length(0)]) is str
    assert array_count(Annotated[tuple[str, ...], Length(0)]) == 0


@pytest.mark.parametrize(
    ['annotation', 'hashable'],
    [
        (str, True),
        (Int8, True),
        (Optional[int], True),
        (tuple[str, str], True),
        (list[int], False),
        (dict[str, int], False),
        (Point, False),
        (tuple[list[int], list[int]], False),
    ],
)
def test_is_hashable(annotation: Any, hashable: bool) -> None:
    assert is_hashable(annotation) is hashable


def test_type_name() -> None:
    assert type_name(int) == 'int'
    assert type_name(Point) == 'Point'
    assert type_name(None) == 'None'
    assert type_name(list[int]) == 'list[int]'


def test_user_aliases_are_described_by_their_base() -> None:
    assert elem_type(Ids) is int
    assert elem_type(Optional[UserId]) is UserId
    assert is_hashable(UserId)
    assert is_hashable(Color)
