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
Generic JSON population and marshaling of dataclass instances, driven only by their shape.

This is what gives a materialized type a use: a schema received from a remote end becomes a zero-valued instance, a
JSON document is populated into it using the remote field tags, and it can be marshaled back.

Fields are matched by their JSON name, which is the first element of the `json` tag or the field name when there is
none. Matching is exact first, then case-insensitive. A `json:"-"` tag skips the field, the `omitempty` option drops
zero values when marshaling, and unexported fields are never read nor written.

>>> from dataclasses import dataclass
>>> from structshape.fields import field
>>> @dataclass
... class Point:
...     x: int = field(tag='json:"x"', default=0)
...     label: str = field(tag='json:"label,omitempty"', default='')
>>> dumps(loads(Point(), '{"x": 3, "extra": true}'))
'{"x":3}'
"""

import dataclasses
import math
from collections.abc import Mapping
from typing import Any, get_type_hints

from structshape.decoder import zero_value
from structshape.exception import DocumentError
from structshape.fields import field_tag, field_visibility
from structshape.kinds import (
    INT_BOUNDS,
    Kind,
    array_count,
    elem_type,
    is_type_descriptor,
    key_type,
    kind_of,
    type_name,
)
from structshape.schema import Visibility
from structshape.tags import get as get_tag
from structshape.utils.json import json_dumps, json_loads

_INT_KINDS = frozenset(INT_BOUNDS)
_FLOAT_KINDS = frozenset({Kind.FLOAT32, Kind.FLOAT64})
_COMPLEX_KINDS = frozenset({Kind.COMPLEX64, Kind.COMPLEX128})


@dataclasses.dataclass(slots=True, frozen=True)
class _JsonField:
    field: dataclasses.Field
    annotation: Any
    name: str
    omitempty: bool


def _json_fields(class_: type) -> list[_JsonField]:
    """ The fields of a dataclass that take part in JSON, in declared order.
    """
    hints = get_type_hints(class_, include_extras=True)
    result = []
    for f in dataclasses.fields(class_):
        if field_visibility(f) is Visibility.UNEXPORTED:
            continue
        json_tag = get_tag(field_tag(f), 'json')
        if json_tag == '-':
            continue
        name, *options = json_tag.split(',')
        result.append(_JsonField(f, hints[f.name], name or f.name, 'omitempty' in options))
    return result


def _error(path: str, message: str) -> DocumentError:
    return DocumentError(f'field {path!r}: {message}' if path else message)


def _join(path: str, name: str) -> str:
    return f'{path}.{name}' if path else name


def loads(instance: Any, text: str | bytes) -> Any:
    """ Parse a JSON document and populate it into `instance`, which is returned.
    """
    try:
        data = json_loads(text)
    except ValueError as e:
        raise DocumentError(f'invalid JSON: {e}') from e
    populate(instance, data)
    return instance


def populate(instance: Any, data: Any) -> None:
    """ Write a parsed JSON object into a dataclass instance, in place.

    Keys that match no field are ignored and fields without a key keep their current value.
    """
    if is_type_descriptor(instance) or not dataclasses.is_dataclass(instance):
        raise DocumentError(f'can only populate a dataclass instance, got {type_name(type(instance))}')
    _populate_struct(instance, data, path='')


def _match_key(data: Mapping[str, Any], name: str) -> str | None:
    if name in data:
        return name
    folded = name.casefold()
    for key in data:
        if key.casefold() == folded:
            return key
    return None


def _populate_struct(instance: Any, data: Any, *, path: str) -> None:
    if not isinstance(data, dict):
        raise _error(path, f'expected a JSON object, got {type(data).__name__}')
    for jf in _json_fields(type(instance)):
        key = _match_key(data, jf.name)
        if key is None:
            continue
        field_path = _join(path, jf.field.name)
        value = _convert(jf.annotation, data[key], getattr(instance, jf.field.name), path=field_path)
        try:
            setattr(instance, jf.field.name, value)
        except dataclasses.FrozenInstanceError as e:
            raise _error(field_path, 'cannot populate a frozen dataclass') from e


def _convert(annotation: Any, value: Any, current: Any, *, path: str) -> Any:
    """ Convert a parsed JSON value into the Python value for `annotation`, reusing `current` where it applies.
    """
    kind = kind_of(annotation)

    if kind is Kind.ANY:
        return value

    if value is None:
        # null resets references and containers, and leaves scalars and structs untouched
        if kind in (Kind.POINTER, Kind.MAP, Kind.LIST, Kind.ARRAY):
            return zero_value(annotation)
        return current

    match kind:
        case Kind.BOOL:
            if not isinstance(value, bool):
                raise _error(path, f'expected a bool, got {type(value).__name__}')
            return value
        case Kind.STRING:
            if not isinstance(value, str):
                raise _error(path, f'expected a string, got {type(value).__name__}')
            return value
        case _ if kind in _INT_KINDS:
            return _check_int(kind, value, path=path)
        case _ if kind in _FLOAT_KINDS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise _error(path, f'expected a number, got {type(value).__name__}')
            return float(value)
        case _ if kind in _COMPLEX_KINDS:
            raise _error(path, f'{kind} has no JSON representation')
        case Kind.POINTER:
            elem = elem_type(annotation)
            base = current if current is not None else zero_value(elem)
            return _convert(elem, value, base, path=path)
        case Kind.LIST:
            if not isinstance(value, list):
                raise _error(path, f'expected a JSON array, got {type(value).__name__}')
            elem = elem_type(annotation)
            return [_convert(elem, v, zero_value(elem), path=f'{path}[{i}]') for i, v in enumerate(value)]
        case Kind.ARRAY:
            if not isinstance(value, list):
                raise _error(path, f'expected a JSON array, got {type(value).__name__}')
            elem = elem_type(annotation)
            count = array_count(annotation)
            items = [_convert(elem, v, zero_value(elem), path=f'{path}[{i}]') for i, v in enumerate(value[:count])]
            items.extend(zero_value(elem) for _ in range(count - len(items)))
            return tuple(items)
        case Kind.MAP:
            if not isinstance(value, dict):
                raise _error(path, f'expected a JSON object, got {type(value).__name__}')
            key_annotation = key_type(annotation)
            elem = elem_type(annotation)
            return {
                _convert_key(key_annotation, k, path=path): _convert(elem, v, zero_value(elem), path=f'{path}[{k!r}]')
                for k, v in value.items()
            }
        case Kind.STRUCT:
            target = current if dataclasses.is_dataclass(current) else zero_value(annotation)
            _populate_struct(target, value, path=path)
            return target
        case _:
            raise _error(path, f'cannot populate {type_name(annotation)} (kind = {kind})')


def _check_int(kind: Kind, value: Any, *, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _error(path, f'expected an integer, got {type(value).__name__}')
    lower, upper = INT_BOUNDS[kind]
    if not lower <= value <= upper:
        raise _error(path, f'{value} overflows {kind}')
    return value


def _convert_key(annotation: Any, key: str, *, path: str) -> Any:
    kind = kind_of(annotation)
    if kind is Kind.STRING:
        return key
    if kind in _INT_KINDS:
        try:
            value = int(key, 10)
        except ValueError:
            raise _error(path, f'invalid {kind} map key {key!r}') from None
        return _check_int(kind, value, path=path)
    raise _error(path, f'unsupported map key type {type_name(annotation)}')


def dumps(instance: Any) -> str:
    """ Marshal a dataclass instance to compact JSON text.
    """
    return json_dumps(to_json(instance))


def to_json(instance: Any) -> Any:
    """ Convert a dataclass instance into plain JSON values (dicts, lists, str, int, float, bool and None).

    Exported fields are written in declared order. Map keys are sorted, so equal values always give the same text.
    """
    if is_type_descriptor(instance) or not dataclasses.is_dataclass(instance):
        raise DocumentError(f'can only marshal a dataclass instance, got {type_name(type(instance))}')
    return _struct_to_json(instance, path='')


def _struct_to_json(instance: Any, *, path: str) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for jf in _json_fields(type(instance)):
        value = getattr(instance, jf.field.name)
        if jf.omitempty and _is_empty(jf.annotation, value):
            continue
        result[jf.name] = _to_json(jf.annotation, value, path=_join(path, jf.field.name))
    return result


def _is_empty(annotation: Any, value: Any) -> bool:
    kind = kind_of(annotation)
    if kind is Kind.STRUCT:
        return False
    if kind is Kind.ARRAY:
        return array_count(annotation) == 0
    if kind is Kind.POINTER or kind is Kind.ANY:
        # a set pointer is not empty, whatever it points to
        return value is None
    return value is None or value is False or value == 0 or value == '' or (hasattr(value, '__len__') and not value)


def _to_json(annotation: Any, value: Any, *, path: str) -> Any:
    kind = kind_of(annotation)

    if kind is Kind.ANY:
        return value

    match kind:
        case Kind.BOOL:
            if not isinstance(value, bool):
                raise _error(path, f'expected a bool, got {type(value).__name__}')
            return value
        case Kind.STRING:
            if not isinstance(value, str):
                raise _error(path, f'expected a str, got {type(value).__name__}')
            return value
        case _ if kind in _INT_KINDS:
            return _check_int(kind, value, path=path)
        case _ if kind in _FLOAT_KINDS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise _error(path, f'expected a number, got {type(value).__name__}')
            if not math.isfinite(value):
                raise _error(path, f'unsupported value {value}')
            return float(value)
        case _ if kind in _COMPLEX_KINDS:
            raise _error(path, f'{kind} has no JSON representation')
        case Kind.POINTER:
            if value is None:
                return None
            return _to_json(elem_type(annotation), value, path=path)
        case Kind.LIST | Kind.ARRAY:
            if value is None:
                return None
            elem = elem_type(annotation)
            return [_to_json(elem, v, path=f'{path}[{i}]') for i, v in enumerate(value)]
        case Kind.MAP:
            if value is None:
                return None
            key_annotation = key_type(annotation)
            elem = elem_type(annotation)
            items = [
                (_key_to_json(key_annotation, k, path=path), _to_json(elem, v, path=f'{path}[{k!r}]'))
                for k, v in value.items()
            ]
            return dict(sorted(items))
        case Kind.STRUCT:
            if not dataclasses.is_dataclass(value):
                raise _error(path, f'expected a dataclass instance, got {type(value).__name__}')
            return _struct_to_json(value, path=path)
        case _:
            raise _error(path, f'cannot marshal {type_name(annotation)} (kind = {kind})')


def _key_to_json(annotation: Any, key: Any, *, path: str) -> str:
    kind = kind_of(annotation)
    if kind is Kind.STRING:
        return key
    if kind in _INT_KINDS:
        return str(_check_int(kind, key, path=path))
    raise _error(path, f'unsupported map key type {type_name(annotation)}')
