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
Encoding of a dataclass *type* into a `Struct` schema. Only the structure is encoded, never any field values.

Encoding has a number of limitations:

- circular references between struct types are not allowed
- inheriting fields from another dataclass (embedding) is not supported
- methods are not preserved
- field types cannot be callables, queues, raw pointers or arbitrary classes
"""

import dataclasses
from typing import Any, Optional, get_type_hints

from structlog import get_logger

from structshape.conf import StructShapeSettings, get_global_settings
from structshape.exception import CyclicTypeError, EncodeError, UnsupportedKindError
from structshape.fields import field_tag, field_visibility
from structshape.kinds import (
    Kind,
    array_count,
    elem_type,
    is_hashable,
    is_type_descriptor,
    key_type,
    kind_of,
    strip_annotated,
    type_name,
)
from structshape.schema import Field, Struct, Type
from structshape.utils.result import Err, Ok, Result

logger = get_logger()


def encode(value: Any, /, *, settings: Optional[StructShapeSettings] = None) -> Struct:
    """ Encode the type of a dataclass (or the dataclass type itself) into a `Struct`.

    The input may also be wrapped in any number of `Optional[...]` layers, they are only unwrapped at the root. Raises
    an `EncodeError` when the type cannot be represented.
    """
    return try_encode(value, settings=settings).unwrap_or_raise()


def try_encode(value: Any, /, *, settings: Optional[StructShapeSettings] = None) -> Result[Struct, EncodeError]:
    """ Like `encode`, but returns a `Result` instead of raising.
    """
    encoder = _StructEncoder(settings or get_global_settings())
    try:
        struct = encoder.encode_root(value)
    except EncodeError as e:
        return Err(e)
    return Ok(struct)


class _StructEncoder:
    __slots__ = ('_settings', 'log')

    def __init__(self, settings: StructShapeSettings) -> None:
        self._settings = settings
        self.log = logger.new()

    def encode_root(self, value: Any) -> Struct:
        type_ = value if is_type_descriptor(value) else type(value)

        # unwrap any number of optional layers, only at the root, nested ones become POINTER containers
        while kind_of(type_) is Kind.POINTER:
            type_ = elem_type(type_)
        type_ = strip_annotated(type_)

        kind = kind_of(type_)
        if kind is not Kind.STRUCT:
            name = type_name(type_)
            raise UnsupportedKindError(
                f'encode: requires a struct, got {name} (kind = {kind})',
                type_name=name,
                kind=str(kind),
            )

        struct = self._encode_struct(type_, depth=0, active=frozenset())
        self.log.debug('struct encoded', type=type_name(type_), fields=len(struct.fields))
        return struct

    def _encode_struct(self, class_: type, *, depth: int, active: frozenset[type]) -> Struct:
        if class_ in active:
            raise CyclicTypeError(f'encode: type {type_name(class_)} references itself')
        active = active | {class_}

        try:
            hints = get_type_hints(class_, include_extras=True)
        except Exception as e:
            raise EncodeError(f'encode: cannot resolve the annotations of {type_name(class_)}: {e}') from e

        fields: list[Field] = []
        for f in dataclasses.fields(class_):
            tag = field_tag(f)
            if not isinstance(tag, str):
                raise EncodeError(f'encode: tag must be a str, got {type_name(type(tag))}', path=f.name)
            try:
                field_type = self._encode_type(hints[f.name], depth=depth + 1, active=active)
            except EncodeError as e:
                raise e.at(f.name)
            fields.append(Field(
                name=f.name,
                visibility=field_visibility(f),
                tag=tag,
                type=field_type,
            ))

        return Struct(tuple(fields))

    def _encode_type(self, type_: Any, *, depth: int, active: frozenset[type]) -> Type:
        """ Encode any type found in a field, this is the single rule applied at every level.
        """
        if depth > self._settings.MAX_DEPTH:
            raise EncodeError(f'encode: maximum depth of {self._settings.MAX_DEPTH} exceeded')

        type_ = strip_annotated(type_)
        kind = kind_of(type_)
        match kind:
            case (
                Kind.BOOL
                | Kind.INT8
                | Kind.INT16
                | Kind.INT32
                | Kind.INT64
                | Kind.UINT8
                | Kind.UINT16
                | Kind.UINT32
                | Kind.UINT64
                | Kind.FLOAT32
                | Kind.FLOAT64
                | Kind.COMPLEX64
                | Kind.COMPLEX128
                | Kind.STRING
                | Kind.ANY
            ):
                return Type.of_primitive(kind)

            case Kind.ARRAY:
                elem = self._encode_type(elem_type(type_), depth=depth + 1, active=active)
                return Type.of_container(kind, elem, count=array_count(type_))

            case Kind.MAP:
                if not is_hashable(key_type(type_)):
                    raise EncodeError(f'encode: map key type {type_name(key_type(type_))} is not hashable')
                key = self._encode_type(key_type(type_), depth=depth + 1, active=active)
                elem = self._encode_type(elem_type(type_), depth=depth + 1, active=active)
                return Type.of_container(kind, elem, key=key)

            case Kind.POINTER | Kind.LIST:
                elem = self._encode_type(elem_type(type_), depth=depth + 1, active=active)
                return Type.of_container(kind, elem)

            case Kind.STRUCT:
                return Type.of_struct(self._encode_struct(type_, depth=depth, active=active))

            case _:
                name = type_name(type_)
                raise UnsupportedKindError(
                    f'encode: cannot encode type: {name} (kind = {kind})',
                    type_name=name,
                    kind=str(kind),
                )
