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
Materialization of a `Struct` schema into a new dataclass type, and of that type into a zero-valued instance.

Schemas are expected to come from somewhere else, possibly an untrusted sender, so every step validates its input and
returns a `Result`. Whatever still goes wrong while the type is synthesized (`dataclasses.make_dataclass` rejecting a
duplicate or a non-identifier field name, for instance) is caught at the boundary and reported as a
`MalformedSchemaError` whose `__cause__` is the original exception.
"""

import dataclasses
import functools
from typing import Annotated, Any, Optional, get_type_hints

from structlog import get_logger

from structshape.conf import StructShapeSettings, get_global_settings
from structshape.exception import MalformedSchemaError
from structshape.fields import TAG_KEY, VISIBILITY_KEY
from structshape.kinds import (
    CONTAINER_KINDS,
    KIND_TYPES,
    PRIMITIVE_KINDS,
    ZERO_VALUES,
    Kind,
    Length,
    array_count,
    elem_type,
    is_hashable,
    kind_of,
    strip_annotated,
    type_name,
)
from structshape.schema import Container, Field, Primitive, Struct, Type, Visibility
from structshape.utils.result import Err, Ok, Result, propagate_result

logger = get_logger()

# name given to every materialized dataclass
STRUCT_CLASS_NAME = 'Struct'


def new(schema: Struct, /, *, settings: Optional[StructShapeSettings] = None) -> Any:
    """ Return a zero-valued instance of a newly built type for the given schema.

    The instance can be handed to a generic populator such as `structshape.document.loads`, or inspected with the
    `dataclasses` module. Raises `MalformedSchemaError` if the schema is invalid.
    """
    return try_new(schema, settings=settings).unwrap_or_raise()


def try_new(schema: Struct, /, *, settings: Optional[StructShapeSettings] = None) -> Result[Any, MalformedSchemaError]:
    """ Like `new`, but returns a `Result` instead of raising.
    """
    return try_build_type(schema, settings=settings).and_then(_allocate)


def build_type(schema: Struct, /, *, settings: Optional[StructShapeSettings] = None) -> type:
    """ Return a new dataclass type for the given schema, raise `MalformedSchemaError` if the schema is invalid.
    """
    return try_build_type(schema, settings=settings).unwrap_or_raise()


def try_build_type(
    schema: Struct,
    /,
    *,
    settings: Optional[StructShapeSettings] = None,
) -> Result[type, MalformedSchemaError]:
    """ Like `build_type`, but returns a `Result` instead of raising.
    """
    log = logger.new()
    builder = _TypeBuilder(settings or get_global_settings())
    result: Result[type, MalformedSchemaError]
    try:
        result = builder.build_struct(schema, depth=0)
    except Exception as e:
        # the schema passed validation but the type could not be built anyway
        result = Err(_construction_fault(e))

    if result.is_err():
        log.debug('schema decode failed', error=str(result.err()))
    else:
        log.debug('struct materialized', fields=len(dataclasses.fields(result.unwrap())))
    return result


def zero_value(type_: Any) -> Any:
    """ Return the zero value for an annotation, a fresh object on every call.

    Primitives have their usual zero (`0`, `''`, `False`, `None` for `Any`), maps and lists are empty, pointers are
    `None`, arrays are filled with zero elements and structs have every field set to its zero value.

    >>> zero_value(int), zero_value(dict[str, int]), zero_value(tuple[int, int, int]), zero_value(str | None)
    (0, {}, (0, 0, 0), None)
    """
    kind = kind_of(type_)
    if kind in PRIMITIVE_KINDS:
        return ZERO_VALUES[kind]
    match kind:
        case Kind.MAP:
            return {}
        case Kind.LIST:
            return []
        case Kind.POINTER:
            return None
        case Kind.ARRAY:
            elem = elem_type(type_)
            return tuple(zero_value(elem) for _ in range(array_count(type_)))
        case Kind.STRUCT:
            return _zero_struct(type_)
        case _:
            raise TypeError(f'{type_name(type_)} has no zero value')


def _zero_struct(class_: Any) -> Any:
    class_ = strip_annotated(class_)
    hints = get_type_hints(class_, include_extras=True)
    kwargs = {
        f.name: zero_value(hints[f.name])
        for f in dataclasses.fields(class_)
        if f.init and f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
    }
    return class_(**kwargs)


def _allocate(class_: type) -> Result[Any, MalformedSchemaError]:
    try:
        return Ok(class_())
    except Exception as e:
        return Err(_construction_fault(e))


def _construction_fault(e: Exception) -> MalformedSchemaError:
    error = MalformedSchemaError(f'decode: cannot build type: {type(e).__name__}: {e}')
    error.__cause__ = e
    return error


def _in_field(name: str) -> Any:
    def wrap(e: MalformedSchemaError) -> MalformedSchemaError:
        error = MalformedSchemaError(f'field {name!r}: {e}')
        error.__cause__ = e
        return error
    return wrap


def _as_kind(value: Any) -> Optional[Kind]:
    # bool is an int, but never a valid kind
    if not isinstance(value, int) or isinstance(value, bool):
        return None
    try:
        return Kind(value)
    except ValueError:
        return None


class _TypeBuilder:
    """ Builds annotations from schema nodes, mirroring the encoding rules in reverse.
    """

    __slots__ = ('_settings',)

    def __init__(self, settings: StructShapeSettings) -> None:
        self._settings = settings

    @propagate_result
    def build_struct(self, struct: Struct, *, depth: int) -> Result[type, MalformedSchemaError]:
        if not isinstance(struct, Struct):
            return Err(MalformedSchemaError(f'decode: expected a Struct, got {type_name(type(struct))}'))
        if depth > self._settings.MAX_DEPTH:
            return Err(MalformedSchemaError(f'decode: maximum depth of {self._settings.MAX_DEPTH} exceeded'))
        if not isinstance(struct.fields, (tuple, list)):
            return Err(MalformedSchemaError('decode: struct fields must be a sequence'))
        if len(struct.fields) > self._settings.MAX_FIELDS:
            return Err(MalformedSchemaError(f'decode: struct has more than {self._settings.MAX_FIELDS} fields'))

        field_specs = [self._build_field(f, depth=depth).unwrap_or_propagate() for f in struct.fields]
        return Ok(dataclasses.make_dataclass(STRUCT_CLASS_NAME, field_specs))

    @propagate_result
    def _build_field(self, field: Field, *, depth: int) -> Result[tuple[str, Any, Any], MalformedSchemaError]:
        if not isinstance(field, Field):
            return Err(MalformedSchemaError(f'decode: expected a Field, got {type_name(type(field))}'))
        if not isinstance(field.name, str) or not field.name:
            return Err(MalformedSchemaError('decode: field name must be a non-empty str'))
        if not isinstance(field.visibility, Visibility):
            return Err(MalformedSchemaError(f'field {field.name!r}: invalid visibility {field.visibility!r}'))
        if not isinstance(field.tag, str):
            return Err(MalformedSchemaError(f'field {field.name!r}: tag must be a str'))

        annotation = self._build_type(field.type, depth=depth + 1).map_err(_in_field(field.name)).unwrap_or_propagate()
        spec = dataclasses.field(
            default_factory=functools.partial(zero_value, annotation),
            metadata={TAG_KEY: field.tag, VISIBILITY_KEY: field.visibility},
        )
        return Ok((field.name, annotation, spec))

    @propagate_result
    def _build_type(self, type_: Type, *, depth: int) -> Result[Any, MalformedSchemaError]:
        if depth > self._settings.MAX_DEPTH:
            return Err(MalformedSchemaError(f'decode: maximum depth of {self._settings.MAX_DEPTH} exceeded'))
        if not isinstance(type_, Type):
            return Err(MalformedSchemaError(f'decode: expected a Type, got {type_name(type(type_))}'))

        try:
            variant = type_.variant()
        except MalformedSchemaError as e:
            return Err(e)

        match variant:
            case Primitive():
                return self._build_primitive(variant)
            case Struct():
                return self.build_struct(variant, depth=depth)
            case Container():
                return self._build_container(variant, depth=depth)
            case _:
                return Err(MalformedSchemaError(f'decode: unknown type to decode: {variant!r}'))

    def _build_primitive(self, primitive: Primitive) -> Result[Any, MalformedSchemaError]:
        kind = _as_kind(primitive.kind)
        if kind is None or kind not in PRIMITIVE_KINDS:
            return Err(MalformedSchemaError(f'decode: unknown primitive kind {primitive.kind!r}'))
        return Ok(KIND_TYPES[kind])

    @propagate_result
    def _build_container(self, container: Container, *, depth: int) -> Result[Any, MalformedSchemaError]:
        kind = _as_kind(container.kind)
        if kind is None or kind not in CONTAINER_KINDS:
            return Err(MalformedSchemaError(f'decode: unknown container kind {container.kind!r}'))
        if container.elem is None:
            return Err(MalformedSchemaError(f'decode: {kind} container requires an elem type'))
        if kind is Kind.MAP and container.key is None:
            return Err(MalformedSchemaError('decode: map container requires a key type'))
        if kind is not Kind.MAP and container.key is not None:
            return Err(MalformedSchemaError(f'decode: {kind} container cannot have a key type'))
        if kind is Kind.ARRAY:
            self._check_count(container.count).unwrap_or_propagate()
        elif container.count not in (None, 0):
            return Err(MalformedSchemaError(f'decode: {kind} container cannot have a count'))

        elem = self._build_type(container.elem, depth=depth + 1).unwrap_or_propagate()

        match kind:
            case Kind.MAP:
                key = self._build_type(container.key, depth=depth + 1).unwrap_or_propagate()
                if not is_hashable(key):
                    return Err(MalformedSchemaError(f'decode: map key type {type_name(key)} is not hashable'))
                return Ok(dict[key, elem])  # type: ignore[valid-type]
            case Kind.POINTER:
                # XXX: Optional[Optional[T]] collapses into Optional[T], so it can't be materialized
                if kind_of(elem) is Kind.POINTER:
                    return Err(MalformedSchemaError('decode: pointer to pointer cannot be materialized'))
                return Ok(Optional[elem])
            case Kind.LIST:
                return Ok(list[elem])  # type: ignore[valid-type]
            case Kind.ARRAY:
                assert container.count is not None
                if container.count == 0:
                    return Ok(Annotated[tuple[elem, ...], Length(0)])  # type: ignore[valid-type]
                return Ok(tuple[(elem,) * container.count])  # type: ignore[misc]
            case _:
                raise AssertionError('unreachable')

    def _check_count(self, count: Any) -> Result[int, MalformedSchemaError]:
        if count is None:
            return Err(MalformedSchemaError('decode: array container requires a count'))
        if not isinstance(count, int) or isinstance(count, bool):
            return Err(MalformedSchemaError(f'decode: array count must be an int, got {type_name(type(count))}'))
        if count < 0:
            return Err(MalformedSchemaError(f'decode: array count cannot be negative, got {count}'))
        if count > self._settings.MAX_ARRAY_COUNT:
            return Err(MalformedSchemaError(f'decode: array count {count} is above {self._settings.MAX_ARRAY_COUNT}'))
        return Ok(count)
