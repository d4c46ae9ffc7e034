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

import dataclasses
import queue
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Annotated, Any, NewType, Optional

from structshape import encode, field, try_encode
from structshape.exception import CyclicTypeError, EncodeError, UnsupportedKindError
from structshape.kinds import Int8, Kind, Length, Uint32
from structshape.schema import Container, Field, Primitive, Struct, Type, Visibility
from structshape_tests import unittest


@dataclass
class Nested:
    value: str = field(tag='json:"value"', default='')


@dataclass
class Record:
    name: str = field(tag='json:"name"', default='')
    count: Int8 = field(default=Int8(0))
    _secret: str = ''
    nested: Nested = dataclasses.field(default_factory=Nested)
    nested_ptr: Optional[Nested] = None


@dataclass
class Containers:
    by_name: dict[str, Uint32]
    items: list[float]
    triple: tuple[int, int, int]
    empty: Annotated[tuple[str, ...], Length(0)]
    maybe: Optional[list[str]]


@dataclass
class Node:
    value: int
    next: Optional['Node'] = None


@dataclass
class Left:
    right: Optional['Right'] = None


@dataclass
class Right:
    left: Optional[Left] = None


@dataclass
class WithCallback:
    callback: Callable[[], None]


@dataclass
class WithQueue:
    inner: Nested
    jobs: list[queue.Queue]


@dataclass
class Extended(Nested):
    extra: int = 0


@dataclass
class WithEmbedded:
    base: Extended


@dataclass
class WithListKey:
    table: dict[tuple[list[int], list[int]], str]


class Color(str, Enum):
    RED = 'red'


class Level(IntEnum):
    LOW = 1


UserId = NewType('UserId', int)
Tags = NewType('Tags', dict[str, str])
NestedAlias = NewType('NestedAlias', Nested)


@dataclass
class WithAliases:
    owner: UserId
    color: Color
    level: Level
    tags: Tags
    nested: NestedAlias
    friends: list[UserId]


def _string() -> Type:
    return Type.of_primitive(Kind.STRING)


class EncoderTestCase(unittest.TestCase):
    def test_fields_in_order(self) -> None:
        schema = encode(Record)
        self.assertEqual(schema.field_names(), ('name', 'count', '_secret', 'nested', 'nested_ptr'))

        name, count, secret, nested, nested_ptr = schema.fields
        self.assertEqual(name, Field('name', Visibility.EXPORTED, 'json:"name"', _string()))
        self.assertEqual(count, Field('count', Visibility.EXPORTED, '', Type.of_primitive(Kind.INT8)))
        self.assertEqual(secret.visibility, Visibility.UNEXPORTED)

        nested_struct = Struct((Field('value', Visibility.EXPORTED, 'json:"value"', _string()),))
        self.assertEqual(nested.type, Type.of_struct(nested_struct))
        self.assertEqual(nested_ptr.type, Type.of_container(Kind.POINTER, Type.of_struct(nested_struct)))

    def test_instance_and_type_encode_the_same(self) -> None:
        self.assertEqual(encode(Record()), encode(Record))

    def test_root_optional_layers_are_unwrapped(self) -> None:
        self.assertEqual(encode(Optional[Record]), encode(Record))
        self.assertEqual(encode(Annotated[Optional[Record], 'doc']), encode(Record))

    def test_containers(self) -> None:
        schema = encode(Containers)
        by_name, items, triple, empty, maybe = (f.type.container for f in schema.fields)

        self.assertEqual(by_name, Container(
            Kind.MAP,
            elem=Type.of_primitive(Kind.UINT32),
            key=_string(),
        ))
        self.assertEqual(items, Container(Kind.LIST, Type.of_primitive(Kind.FLOAT64)))
        self.assertIsNone(items.count)
        self.assertEqual(triple, Container(Kind.ARRAY, Type.of_primitive(Kind.INT64), count=3))
        self.assertEqual(empty, Container(Kind.ARRAY, _string(), count=0))
        self.assertEqual(maybe, Container(Kind.POINTER, Type.of_container(Kind.LIST, _string())))

    def test_map_key_and_value_are_independent(self) -> None:
        by_name = encode(Containers).fields[0].type.container
        assert by_name is not None
        self.assertNotEqual(by_name.key, by_name.elem)
        self.assertEqual(by_name.key.primitive, Primitive(Kind.STRING))
        self.assertEqual(by_name.elem.primitive, Primitive(Kind.UINT32))

    def test_primitive_root_is_rejected(self) -> None:
        with self.assertRaises(UnsupportedKindError) as cm:
            encode(42)
        self.assertIn('int', str(cm.exception))
        self.assertEqual(cm.exception.kind, 'int64')
        self.assertEqual(cm.exception.type_name, 'int')

    def test_non_struct_roots(self) -> None:
        for value in ['text', [1, 2], {'a': 1}, None, list[Record]]:
            result = try_encode(value)
            self.assertTrue(result.is_err(), value)
            self.assertIsInstance(result.err(), UnsupportedKindError)

    def test_unsupported_field_type(self) -> None:
        with self.assertRaises(UnsupportedKindError) as cm:
            encode(WithCallback)
        self.assertEqual(cm.exception.kind, 'func')
        self.assertEqual(cm.exception.path, 'callback')

    def test_error_path_names_nested_field(self) -> None:
        @dataclass
        class Outer:
            inner: WithQueue

        with self.assertRaises(UnsupportedKindError) as cm:
            encode(Outer)
        self.assertEqual(cm.exception.kind, 'chan')
        self.assertEqual(cm.exception.path, 'inner.jobs')
        self.assertIn("(field 'inner.jobs')", str(cm.exception))

    def test_embedded_struct_is_rejected(self) -> None:
        with self.assertRaises(UnsupportedKindError) as cm:
            encode(WithEmbedded)
        self.assertEqual(cm.exception.kind, 'embedded')

    def test_self_reference_is_rejected(self) -> None:
        with self.assertRaises(CyclicTypeError):
            encode(Node)

    def test_mutual_reference_is_rejected(self) -> None:
        result = try_encode(Left)
        self.assertIsInstance(result.err(), CyclicTypeError)

    def test_unhashable_map_key_is_rejected(self) -> None:
        with self.assertRaises(EncodeError):
            encode(WithListKey)

    def test_tag_must_be_a_string(self) -> None:
        @dataclass
        class BadTag:
            value: int = dataclasses.field(default=0, metadata={'tag': 123})

        with self.assertRaises(EncodeError) as cm:
            encode(BadTag)
        self.assertEqual(cm.exception.path, 'value')

    def test_unresolvable_annotation(self) -> None:
        @dataclass
        class Forward:
            value: 'DoesNotExist'  # type: ignore[name-defined]  # noqa: F821

        with self.assertRaises(EncodeError):
            encode(Forward)

    def test_max_depth(self) -> None:
        @dataclass
        class Deep:
            value: list[list[list[list[int]]]]

        settings = self.settings_with(MAX_DEPTH=3)
        self.assertTrue(try_encode(Deep, settings=settings).is_err())
        self.assertTrue(try_encode(Deep).is_ok())

    def test_empty_struct(self) -> None:
        @dataclass
        class Empty:
            pass

        self.assertEqual(encode(Empty), Struct(()))

    def test_any_field(self) -> None:
        @dataclass
        class Loose:
            payload: Any

        self.assertEqual(encode(Loose).fields[0].type, Type.of_primitive(Kind.ANY))

    def test_user_aliases_and_scalar_subclasses(self) -> None:
        schema = encode(WithAliases)
        self.assertEqual(schema.fields[0].type, Type.of_primitive(Kind.INT64))
        self.assertEqual(schema.fields[1].type, Type.of_primitive(Kind.STRING))
        self.assertEqual(schema.fields[2].type, Type.of_primitive(Kind.INT64))
        self.assertEqual(schema.fields[3].type, Type.of_container(Kind.MAP, _string(), key=_string()))
        self.assertEqual(schema.fields[4].type, Type.of_struct(encode(Nested)))
        self.assertEqual(
            schema.fields[5].type,
            Type.of_container(Kind.LIST, Type.of_primitive(Kind.INT64)),
        )

    def test_user_alias_of_a_struct_as_root(self) -> None:
        self.assertEqual(encode(NestedAlias), encode(Nested))
