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
Data model of an encoded type.

A schema is a tree: a `Struct` holds an ordered tuple of `Field`, each field has a `Type`, and a `Type` holds exactly
one of `Primitive`, `Struct` or `Container`. Only the shape of a type is described, never values.

Kinds are kept as plain integers, not `Kind` members, so that a schema received from somewhere else can carry any
number. Checking them is the decoder's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional, Union

from structshape.exception import MalformedSchemaError

__all__ = [
    'Visibility',
    'Primitive',
    'Container',
    'Struct',
    'Field',
    'Type',
]


@unique
class Visibility(Enum):
    EXPORTED = 'exported'
    UNEXPORTED = 'unexported'

    @classmethod
    def for_name(cls, name: str) -> Visibility:
        """ Names with a leading underscore are unexported, all others are exported.

        >>> Visibility.for_name('value'), Visibility.for_name('_value')
        (<Visibility.EXPORTED: 'exported'>, <Visibility.UNEXPORTED: 'unexported'>)
        """
        return cls.UNEXPORTED if name.startswith('_') else cls.EXPORTED


@dataclass(slots=True, frozen=True)
class Primitive:
    kind: int


@dataclass(slots=True, frozen=True)
class Container:
    """ A map, list, fixed array or pointer (optional) over an element type.

    `key` is only present for maps and `count` only for arrays.
    """
    kind: int
    elem: Optional[Type]
    key: Optional[Type] = None
    count: Optional[int] = None


@dataclass(slots=True, frozen=True)
class Field:
    name: str
    visibility: Visibility
    # opaque, never parsed here
    tag: str
    type: Type


@dataclass(slots=True, frozen=True)
class Struct:
    """ Ordered fields of a struct type, the order is significant.
    """
    fields: tuple[Field, ...] = ()

    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)


@dataclass(slots=True, frozen=True)
class Type:
    """ A oneof over `Primitive`, `Struct` and `Container`, exactly one must be set.
    """
    primitive: Optional[Primitive] = None
    struct: Optional[Struct] = None
    container: Optional[Container] = None

    @classmethod
    def of_primitive(cls, kind: int) -> Type:
        return cls(primitive=Primitive(kind))

    @classmethod
    def of_struct(cls, struct: Struct) -> Type:
        return cls(struct=struct)

    @classmethod
    def of_container(
        cls,
        kind: int,
        elem: Type,
        *,
        key: Optional[Type] = None,
        count: Optional[int] = None,
    ) -> Type:
        return cls(container=Container(kind, elem, key, count))

    def variant(self) -> Union[Primitive, Struct, Container]:
        """ Return whichever member is set, raise MalformedSchemaError if it isn't exactly one.
        """
        members = [m for m in (self.primitive, self.struct, self.container) if m is not None]
        if not members:
            raise MalformedSchemaError('type has no variant set')
        if len(members) > 1:
            raise MalformedSchemaError('type has more than one variant set')
        member, = members
        return member
