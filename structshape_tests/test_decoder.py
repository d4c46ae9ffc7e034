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
from typing import Annotated, Any, Optional, get_type_hints

from structshape import build_type, new, try_new, zero_value
from structshape.fields import TAG_KEY, VISIBILITY_KEY, field_tag, field_visibility
from structshape.kinds import Complex64, Int16, Kind, Length, Uint64, kind_of
from structshape.schema import Field, Struct, Type, Visibility
from structshape_tests import unittest

EXPORTED = Visibility.EXPORTED
UNEXPORTED = Visibility.UNEXPORTED

NESTED = Struct((
    Field('value', EXPORTED, 'json:"value"', Type.of_primitive(Kind.STRING)),
))

SCHEMA = Struct((
    Field('name', EXPORTED, 'json:"name"', Type.of_primitive(Kind.STRING)),
    Field('flag', EXPORTED, '', Type.of_primitive(Kind.BOOL)),
    Field('small', EXPORTED, '', Type.of_primitive(Kind.INT16)),
    Field('big', EXPORTED, '', Type.of_primitive(Kind.UINT64)),
    Field('ratio', EXPORTED, '', Type.of_primitive(Kind.FLOAT64)),
    Field('phase', EXPORTED, '', Type.of_primitive(Kind.COMPLEX64)),
    Field('anything', EXPORTED, '', Type.of_primitive(Kind.ANY)),
    Field('_hidden', UNEXPORTED, 'db:"hidden"', Type.of_primitive(Kind.INT64)),
    Field('by_name', EXPORTED, '', Type.of_container(
        Kind.MAP,
        Type.of_primitive(Kind.INT64),
        key=Type.of_primitive(Kind.STRING),
    )),
    Field('items', EXPORTED, '', Type.of_container(Kind.LIST, Type.of_primitive(Kind.STRING))),
    Field('triple', EXPORTED, '', Type.of_container(Kind.ARRAY, Type.of_primitive(Kind.INT64), count=3)),
    Field('none', EXPORTED, '', Type.of_container(Kind.ARRAY, Type.of_primitive(Kind.INT64), count=0)),
    Field('nested', EXPORTED, 'json:"nested"', Type.of_struct(NESTED)),
    Field('nested_ptr', EXPORTED, '', Type.of_container(Kind.POINTER, Type.of_struct(NESTED))),
    Field('nested_list', EXPORTED, '', Type.of_container(Kind.LIST, Type.of_struct(NESTED))),
))


class DecoderTestCase(unittest.TestCase):
    def test_fields_names_and_order(self) -> None:
        class_ = build_type(SCHEMA)
        self.assertTrue(dataclasses.is_dataclass(class_))
        self.assertEqual(tuple(f.name for f in dataclasses.fields(class_)), SCHEMA.field_names())

    def test_tags_and_visibility_are_kept(self) -> None:
        fields = {f.name: f for f in dataclasses.fields(build_type(SCHEMA))}
        self.assertEqual(field_tag(fields['name']), 'json:"name"')
        self.assertEqual(field_tag(fields['flag']), '')
        self.assertEqual(fields['_hidden'].metadata[TAG_KEY], 'db:"hidden"')
        self.assertIs(field_visibility(fields['_hidden']), UNEXPORTED)
        self.assertIs(fields['name'].metadata[VISIBILITY_KEY], EXPORTED)

    def test_visibility_is_kept_as_received(self) -> None:
        schema = Struct((Field('shown', UNEXPORTED, '', Type.of_primitive(Kind.STRING)),))
        f, = dataclasses.fields(build_type(schema))
        self.assertIs(field_visibility(f), UNEXPORTED)

    def test_annotations(self) -> None:
        hints = get_type_hints(build_type(SCHEMA), include_extras=True)
        self.assertIs(hints['name'], str)
        self.assertIs(hints['small'], Int16)
        self.assertIs(hints['big'], Uint64)
        self.assertIs(hints['phase'], Complex64)
        self.assertIs(hints['anything'], Any)
        self.assertEqual(hints['by_name'], dict[str, int])
        self.assertEqual(hints['items'], list[str])
        self.assertEqual(hints['triple'], tuple[int, int, int])
        self.assertEqual(hints['none'], Annotated[tuple[int, ...], Length(0)])
        self.assertIs(kind_of(hints['nested']), Kind.STRUCT)
        self.assertIs(kind_of(hints['nested_ptr']), Kind.POINTER)

    def test_zero_values(self) -> None:
        instance = new(SCHEMA)
        self.assertEqual(instance.name, '')
        self.assertIs(instance.flag, False)
        self.assertEqual(instance.small, 0)
        self.assertEqual(instance.ratio, 0.0)
        self.assertEqual(instance.phase, 0j)
        self.assertIsNone(instance.anything)
        self.assertEqual(instance._hidden, 0)
        self.assertEqual(instance.by_name, {})
        self.assertEqual(instance.items, [])
        self.assertEqual(instance.triple, (0, 0, 0))
        self.assertEqual(instance.none, ())
        self.assertEqual(instance.nested.value, '')
        self.assertIsNone(instance.nested_ptr)
        self.assertEqual(instance.nested_list, [])

    def test_calls_share_no_state(self) -> None:
        first = new(SCHEMA)
        second = new(SCHEMA)
        self.assertIsNot(type(first), type(second))
        first.items.append('a')
        first.by_name['a'] = 1
        first.nested.value = 'changed'
        self.assertEqual(second.items, [])
        self.assertEqual(second.by_name, {})
        self.assertEqual(second.nested.value, '')
        self.assertEqual(type(first)().items, [])

    def test_empty_struct(self) -> None:
        instance = new(Struct(()))
        self.assertEqual(dataclasses.fields(instance), ())

    def test_try_new(self) -> None:
        result = try_new(NESTED)
        self.assertTrue(result.is_ok())
        self.assertEqual(result.unwrap().value, '')

    def test_pointer_to_struct_allocates_on_demand(self) -> None:
        class_ = build_type(SCHEMA)
        hints = get_type_hints(class_)
        nested_class = hints['nested']
        instance = class_(nested_ptr=nested_class(value='set'))
        self.assertEqual(instance.nested_ptr.value, 'set')


class ZeroValueTestCase(unittest.TestCase):
    def test_native_dataclass(self) -> None:
        @dataclasses.dataclass
        class Native:
            a: int
            b: Optional[str]
            c: list[int] = dataclasses.field(default_factory=lambda: [1])

        value = zero_value(Native)
        self.assertEqual(value, Native(a=0, b=None, c=[1]))

    def test_unsupported(self) -> None:
        with self.assertRaises(TypeError):
            zero_value(object.__new__)
