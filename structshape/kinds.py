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

"""
The fixed table of kinds that a schema can represent, and how Python annotations map onto them.

Python only has unbounded `int`, double precision `float` and `complex`, so the sized kinds are spelled with `NewType`
aliases (`Int8`, `Uint32`, `Float32`, ...). The bare builtins map to the widest kind of their family:

>>> kind_of(int), kind_of(Int8), kind_of(float), kind_of(str)
(<Kind.INT64: 6>, <Kind.INT8: 3>, <Kind.FLOAT64: 14>, <Kind.STRING: 24>)

Composite annotations are classified by their origin:

>>> kind_of(dict[str, int]), kind_of(list[int]), kind_of(tuple[int, int, int]), kind_of(int | None)
(<Kind.MAP: 21>, <Kind.LIST: 23>, <Kind.ARRAY: 17>, <Kind.POINTER: 22>)

User aliases are described by what they wrap, and so are subclasses of the builtin scalars:

>>> from enum import IntEnum
>>> class Level(IntEnum):
...     LOW = 1
>>> kind_of(NewType('UserId', int)), kind_of(NewType('Port', Uint16)), kind_of(Level)
(<Kind.INT64: 6>, <Kind.UINT16: 9>, <Kind.INT64: 6>)

Anything outside of the representable set gets one of the unsupported kinds:

>>> from collections.abc import Callable
>>> kind_of(Callable[[int], int]), kind_of(tuple[int, str]), kind_of(object())
(<Kind.FUNC: 19>, <Kind.INVALID: 0>, <Kind.INVALID: 0>)
"""

import asyncio
import ctypes
import multiprocessing.queues
import queue
import types
from collections.abc import Callable
from dataclasses import dataclass, is_dataclass
from enum import IntEnum, unique
from types import MappingProxyType, NoneType, UnionType
from typing import Annotated, Any, Mapping, NewType, Union, get_args, get_origin

__all__ = [
    'Kind',
    'Length',
    'Int8',
    'Int16',
    'Int32',
    'Int64',
    'Uint8',
    'Uint16',
    'Uint32',
    'Uint64',
    'Float32',
    'Float64',
    'Complex64',
    'Complex128',
    'PRIMITIVE_KINDS',
    'CONTAINER_KINDS',
    'UNSUPPORTED_KINDS',
    'KIND_TYPES',
    'ZERO_VALUES',
    'INT_BOUNDS',
    'kind_of',
    'type_name',
    'elem_type',
    'key_type',
    'array_count',
    'is_type_descriptor',
    'is_hashable',
    'strip_annotated',
]


@unique
class Kind(IntEnum):
    """ Kind of a type.

    The values follow the classic reflect kind numbering, which is what goes on the wire. INTERFACE and EMBEDDED are
    only used for error reporting and never appear in a schema.
    """
    INVALID = 0
    BOOL = 1
    INT8 = 3
    INT16 = 4
    INT32 = 5
    INT64 = 6
    UINT8 = 8
    UINT16 = 9
    UINT32 = 10
    UINT64 = 11
    FLOAT32 = 13
    FLOAT64 = 14
    COMPLEX64 = 15
    COMPLEX128 = 16
    ARRAY = 17
    CHAN = 18
    FUNC = 19
    ANY = 20
    MAP = 21
    POINTER = 22
    LIST = 23
    STRING = 24
    STRUCT = 25
    UNSAFE_POINTER = 26
    INTERFACE = 27
    EMBEDDED = 28

    def __str__(self) -> str:
        return self.name.lower()


Int8 = NewType('Int8', int)
Int16 = NewType('Int16', int)
Int32 = NewType('Int32', int)
Int64 = NewType('Int64', int)
Uint8 = NewType('Uint8', int)
Uint16 = NewType('Uint16', int)
Uint32 = NewType('Uint32', int)
Uint64 = NewType('Uint64', int)
Float32 = NewType('Float32', float)
Float64 = NewType('Float64', float)
Complex64 = NewType('Complex64', complex)
Complex128 = NewType('Complex128', complex)


@dataclass(slots=True, frozen=True)
class Length:
    """ Marker for declaring a fixed array of any length, including zero: `Annotated[tuple[T, ...], Length(n)]`.

    A homogeneous fixed tuple like `tuple[int, int, int]` is equivalent to `Annotated[tuple[int, ...], Length(3)]`.
    """
    count: int


PRIMITIVE_KINDS: frozenset[Kind] = frozenset({
    Kind.BOOL,
    Kind.INT8,
    Kind.INT16,
    Kind.INT32,
    Kind.INT64,
    Kind.UINT8,
    Kind.UINT16,
    Kind.UINT32,
    Kind.UINT64,
    Kind.FLOAT32,
    Kind.FLOAT64,
    Kind.COMPLEX64,
    Kind.COMPLEX128,
    Kind.STRING,
    Kind.ANY,
})

CONTAINER_KINDS: frozenset[Kind] = frozenset({Kind.ARRAY, Kind.MAP, Kind.POINTER, Kind.LIST})

UNSUPPORTED_KINDS: frozenset[Kind] = frozenset({
    Kind.INVALID,
    Kind.CHAN,
    Kind.FUNC,
    Kind.UNSAFE_POINTER,
    Kind.INTERFACE,
    Kind.EMBEDDED,
})

# canonical type used when materializing each primitive kind
KIND_TYPES: Mapping[Kind, Any] = MappingProxyType({
    Kind.BOOL: bool,
    Kind.INT8: Int8,
    Kind.INT16: Int16,
    Kind.INT32: Int32,
    Kind.INT64: int,
    Kind.UINT8: Uint8,
    Kind.UINT16: Uint16,
    Kind.UINT32: Uint32,
    Kind.UINT64: Uint64,
    Kind.FLOAT32: Float32,
    Kind.FLOAT64: float,
    Kind.COMPLEX64: Complex64,
    Kind.COMPLEX128: complex,
    Kind.STRING: str,
    Kind.ANY: Any,
})

ZERO_VALUES: Mapping[Kind, Any] = MappingProxyType({
    Kind.BOOL: False,
    Kind.INT8: 0,
    Kind.INT16: 0,
    Kind.INT32: 0,
    Kind.INT64: 0,
    Kind.UINT8: 0,
    Kind.UINT16: 0,
    Kind.UINT32: 0,
    Kind.UINT64: 0,
    Kind.FLOAT32: 0.0,
    Kind.FLOAT64: 0.0,
    Kind.COMPLEX64: 0j,
    Kind.COMPLEX128: 0j,
    Kind.STRING: '',
    Kind.ANY: None,
})

# inclusive (lower, upper) bounds of the integer kinds
INT_BOUNDS: Mapping[Kind, tuple[int, int]] = MappingProxyType({
    Kind.INT8: (-2**7, 2**7 - 1),
    Kind.INT16: (-2**15, 2**15 - 1),
    Kind.INT32: (-2**31, 2**31 - 1),
    Kind.INT64: (-2**63, 2**63 - 1),
    Kind.UINT8: (0, 2**8 - 1),
    Kind.UINT16: (0, 2**16 - 1),
    Kind.UINT32: (0, 2**32 - 1),
    Kind.UINT64: (0, 2**64 - 1),
})

# every annotation that classifies as a primitive, the canonical ones plus the aliases of the widest kinds
_SCALAR_KINDS: Mapping[Any, Kind] = MappingProxyType({
    **{type_: kind for kind, type_ in KIND_TYPES.items()},
    Int64: Kind.INT64,
    Float64: Kind.FLOAT64,
    Complex128: Kind.COMPLEX128,
    object: Kind.ANY,
})

_CHAN_CLASSES: tuple[type, ...] = (
    queue.Queue,
    queue.SimpleQueue,
    asyncio.Queue,
    multiprocessing.queues.Queue,
)

# XXX: ctypes._Pointer is the base of every `ctypes.POINTER(T)`, it's not public but it's stable
_UNSAFE_POINTER_CLASSES: tuple[type, ...] = (
    ctypes._Pointer,  # type: ignore[attr-defined]
    ctypes.c_void_p,
    ctypes.c_char_p,
    ctypes.c_wchar_p,
)

_FUNC_CLASSES: tuple[type, ...] = (
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    Callable,  # type: ignore[arg-type]
)

# checked in order, bool is an int subclass but can't be subclassed itself
_SCALAR_BASES: tuple[tuple[type, Kind], ...] = (
    (int, Kind.INT64),
    (float, Kind.FLOAT64),
    (complex, Kind.COMPLEX128),
    (str, Kind.STRING),
)

# bare generics without element types cannot be described
_BARE_GENERICS: frozenset[type] = frozenset({list, dict, tuple, set, frozenset})


def _scalar_kind(type_: Any) -> Kind | None:
    try:
        return _SCALAR_KINDS.get(type_)
    except TypeError:
        # unhashable, certainly not a scalar
        return None


def _length_of(metadata: tuple[Any, ...]) -> Length | None:
    for item in metadata:
        if isinstance(item, Length):
            return item
    return None


def strip_annotated(type_: Any) -> Any:
    """ Remove `Annotated` layers that don't declare a `Length` and user-defined `NewType` aliases.

    A user alias is described by the type it wraps, the sized scalar aliases of this module are kept.

    >>> UserId = NewType('UserId', Uint32)
    >>> strip_annotated(Annotated[UserId, 'doc']) is Uint32
    True
    """
    while True:
        if get_origin(type_) is Annotated:
            inner, *metadata = get_args(type_)
            if _length_of(tuple(metadata)) is not None:
                return type_
            type_ = inner
        elif isinstance(type_, NewType) and _scalar_kind(type_) is None:
            type_ = type_.__supertype__
        else:
            return type_


def _is_var_tuple(type_: Any) -> bool:
    if get_origin(type_) is not tuple:
        return False
    args = get_args(type_)
    return len(args) == 2 and args[1] is Ellipsis


def _is_embedding(class_: type) -> bool:
    return any(is_dataclass(base) for base in class_.__mro__[1:])


def kind_of(type_: Any) -> Kind:
    """ Classify an annotation into a `Kind`.

    This never raises, anything that is not recognized is `Kind.INVALID`.
    """
    type_ = strip_annotated(type_)

    scalar = _scalar_kind(type_)
    if scalar is not None:
        return scalar

    origin = get_origin(type_)

    if origin is Annotated:
        inner, *metadata = get_args(type_)
        length = _length_of(tuple(metadata))
        if length is not None and _is_var_tuple(inner) and isinstance(length.count, int) and length.count >= 0:
            return Kind.ARRAY
        return Kind.INVALID

    if origin is Union or origin is UnionType:
        args = get_args(type_)
        if len(args) == 2 and NoneType in args:
            return Kind.POINTER
        return Kind.INVALID

    if origin is list:
        return Kind.LIST

    if origin is dict:
        return Kind.MAP

    if origin is tuple:
        args = get_args(type_)
        if _is_var_tuple(type_):
            return Kind.LIST
        if args and all(arg == args[0] for arg in args):
            return Kind.ARRAY
        return Kind.INVALID

    class_ = origin if origin is not None else type_
    if not isinstance(class_, type):
        return Kind.INVALID
    if class_ in _BARE_GENERICS or class_ is NoneType:
        return Kind.INVALID
    if issubclass(class_, _FUNC_CLASSES):
        return Kind.FUNC
    if issubclass(class_, _CHAN_CLASSES):
        return Kind.CHAN
    if issubclass(class_, _UNSAFE_POINTER_CLASSES):
        return Kind.UNSAFE_POINTER
    if origin is None and is_dataclass(class_):
        return Kind.EMBEDDED if _is_embedding(class_) else Kind.STRUCT
    if origin is None:
        # subclasses of the builtin scalars, enums included, are described by their base
        for base, kind in _SCALAR_BASES:
            if issubclass(class_, base):
                return kind
    # protocols and any other class carry behavior that a schema can't describe
    return Kind.INTERFACE


def type_name(type_: Any) -> str:
    """ Shows a cleaner string representation for a type.
    """
    if type_ is NoneType or type_ is None:
        return 'None'
    elif hasattr(type_, '__args__') or not hasattr(type_, '__name__'):
        return str(type_)
    else:
        return type_.__name__


def elem_type(type_: Any) -> Any:
    """ The element type of a POINTER, LIST, ARRAY or the value type of a MAP annotation.
    """
    type_ = strip_annotated(type_)
    origin = get_origin(type_)
    if origin is Annotated:
        inner, *_metadata = get_args(type_)
        return get_args(inner)[0]
    if origin is Union or origin is UnionType:
        not_none_type, = tuple(arg for arg in get_args(type_) if arg is not NoneType)
        return not_none_type
    if origin is dict:
        _key, value = get_args(type_)
        return value
    return get_args(type_)[0]


def key_type(type_: Any) -> Any:
    """ The key type of a MAP annotation.
    """
    key, _value = get_args(strip_annotated(type_))
    return key


def array_count(type_: Any) -> int:
    """ The fixed length of an ARRAY annotation.
    """
    type_ = strip_annotated(type_)
    if get_origin(type_) is Annotated:
        _inner, *metadata = get_args(type_)
        length = _length_of(tuple(metadata))
        assert length is not None
        return length.count
    return len(get_args(type_))


def is_type_descriptor(value: Any) -> bool:
    """ Whether the value is an annotation (a class, an alias or a parametrized generic) rather than an instance.

    >>> is_type_descriptor(int), is_type_descriptor(list[int]), is_type_descriptor(Int8), is_type_descriptor(1)
    (True, True, True, False)
    """
    return isinstance(value, (type, NewType)) or get_origin(value) is not None or value is Any


def is_hashable(type_: Any) -> bool:
    """ Whether values of the annotation can be used as dict keys.

    >>> is_hashable(str), is_hashable(tuple[int, int]), is_hashable(int | None), is_hashable(list[int])
    (True, True, True, False)
    """
    kind = kind_of(type_)
    if kind in PRIMITIVE_KINDS:
        return True
    if kind is Kind.POINTER or kind is Kind.ARRAY:
        return is_hashable(elem_type(type_))
    return False
