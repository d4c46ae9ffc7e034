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
Serialized forms of a `Struct` schema, for sending it to another process.

Two forms are supported. The byte form is compact:

    struct    = [n_fields: leb128] field*
    field     = [name: utf8] [visibility: 1 byte, 0 exported, 1 unexported] [tag: utf8] type
    type      = [0x01] [kind: leb128]                              primitive
              | [0x02] struct                                      struct
              | [0x03] [kind: leb128] key? elem? [count: leb128]?  container, each optional has a presence byte

The JSON form is a plain nested object:

    {"fields": [{"name": "a", "visibility": "exported", "tag": "", "type": {"primitive": {"kind": 24}}}]}

Reading either form only checks that the structure is decodable, kinds and the container rules are checked by the
decoder when the schema is materialized.
"""

import functools
import json
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import StrictInt, StrictStr, ValidationError
from structlog import get_logger

from structshape.conf import StructShapeSettings, get_global_settings
from structshape.exception import MalformedSchemaError, WireError
from structshape.schema import Container, Field, Primitive, Struct, Type, Visibility
from structshape.serialization import BadDataError, Deserializer, SerializationError, Serializer
from structshape.serialization.compound_encoding.collection import decode_collection, encode_collection
from structshape.serialization.compound_encoding.optional import decode_optional, encode_optional
from structshape.serialization.encoding.leb128 import decode_leb128, encode_leb128
from structshape.serialization.encoding.utf8 import decode_utf8, encode_utf8
from structshape.utils.pydantic import BaseModel

logger = get_logger()

_TYPE_PRIMITIVE = 0x01
_TYPE_STRUCT = 0x02
_TYPE_CONTAINER = 0x03

_VISIBILITY_TO_BYTE = {
    Visibility.EXPORTED: 0x00,
    Visibility.UNEXPORTED: 0x01,
}
_BYTE_TO_VISIBILITY = {byte: visibility for visibility, byte in _VISIBILITY_TO_BYTE.items()}

# kinds and counts are uint32 on the wire
_UINT32_MAX_BYTES = 5


def schema_to_bytes(struct: Struct, /, *, settings: Optional[StructShapeSettings] = None) -> bytes:
    """ Serialize a schema to its byte form.

    Raises `WireError` if the result is above `MAX_SCHEMA_BYTES` or the schema holds something that has no byte form,
    like a field without a valid `Visibility` or a `Type` without exactly one variant.
    """
    settings = settings or get_global_settings()
    serializer = Serializer.build_bytes_serializer()
    try:
        _write_struct(serializer.with_max_bytes(settings.MAX_SCHEMA_BYTES), struct)
    except (SerializationError, MalformedSchemaError, ValueError, TypeError) as e:
        raise WireError(f'wire: cannot serialize schema: {e}') from e
    return bytes(serializer.finalize())


def schema_from_bytes(data: bytes, /, *, settings: Optional[StructShapeSettings] = None) -> Struct:
    """ Parse a schema from its byte form, all of `data` must be consumed. Raises `WireError` on any failure.
    """
    settings = settings or get_global_settings()
    deserializer = Deserializer.build_bytes_deserializer(data).with_max_bytes(settings.MAX_SCHEMA_BYTES)
    reader = _WireReader(settings)
    try:
        struct = reader.read_struct(deserializer, depth=0)
        deserializer.finalize()
    except SerializationError as e:
        logger.debug('schema decode failed', error=str(e))
        raise WireError(f'wire: cannot parse schema: {e}') from e
    return struct


def _write_struct(serializer: Serializer, struct: Struct) -> None:
    encode_collection(serializer, struct.fields, _write_field)


def _check_field(field: Field) -> None:
    if not isinstance(field.name, str) or not isinstance(field.tag, str):
        raise ValueError(f'field name and tag must be str, got {field.name!r} and {field.tag!r}')
    if not isinstance(field.visibility, Visibility):
        raise ValueError(f'field {field.name!r}: invalid visibility {field.visibility!r}')


def _write_field(serializer: Serializer, field: Field) -> None:
    _check_field(field)
    encode_utf8(serializer, field.name)
    serializer.write_byte(_VISIBILITY_TO_BYTE[field.visibility])
    encode_utf8(serializer, field.tag)
    _write_type(serializer, field.type)


def _write_type(serializer: Serializer, type_: Type) -> None:
    match type_.variant():
        case Primitive(kind=kind):
            serializer.write_byte(_TYPE_PRIMITIVE)
            encode_leb128(serializer, kind, signed=False)
        case Struct() as struct:
            serializer.write_byte(_TYPE_STRUCT)
            _write_struct(serializer, struct)
        case Container(kind=kind, elem=elem, key=key, count=count):
            serializer.write_byte(_TYPE_CONTAINER)
            encode_leb128(serializer, kind, signed=False)
            encode_optional(serializer, key, _write_type)
            encode_optional(serializer, elem, _write_type)
            encode_optional(serializer, count, functools.partial(encode_leb128, signed=False))


class _WireReader:
    __slots__ = ('_settings',)

    def __init__(self, settings: StructShapeSettings) -> None:
        self._settings = settings

    def _check_depth(self, depth: int) -> None:
        if depth > self._settings.MAX_DEPTH:
            raise BadDataError(f'maximum depth of {self._settings.MAX_DEPTH} exceeded')

    def read_struct(self, deserializer: Deserializer, *, depth: int) -> Struct:
        self._check_depth(depth)
        read_field = functools.partial(self._read_field, depth=depth)
        fields = decode_collection(deserializer, read_field, tuple, max_length=self._settings.MAX_FIELDS)
        return Struct(fields)

    def _read_field(self, deserializer: Deserializer, *, depth: int) -> Field:
        name = decode_utf8(deserializer, max_length=self._settings.MAX_SCHEMA_BYTES)
        visibility_byte = deserializer.read_byte()
        visibility = _BYTE_TO_VISIBILITY.get(visibility_byte)
        if visibility is None:
            raise BadDataError(f'invalid visibility byte {visibility_byte:#04x}')
        tag = decode_utf8(deserializer, max_length=self._settings.MAX_SCHEMA_BYTES)
        return Field(name, visibility, tag, self._read_type(deserializer, depth=depth + 1))

    def _read_type(self, deserializer: Deserializer, *, depth: int) -> Type:
        self._check_depth(depth)
        read_type = functools.partial(self._read_type, depth=depth + 1)
        type_tag = deserializer.read_byte()
        if type_tag == _TYPE_PRIMITIVE:
            return Type.of_primitive(self._read_uint32(deserializer))
        elif type_tag == _TYPE_STRUCT:
            return Type.of_struct(self.read_struct(deserializer, depth=depth))
        elif type_tag == _TYPE_CONTAINER:
            kind = self._read_uint32(deserializer)
            key = decode_optional(deserializer, read_type)
            elem = decode_optional(deserializer, read_type)
            count = decode_optional(deserializer, self._read_uint32)
            return Type(container=Container(kind, elem, key, count))
        else:
            raise BadDataError(f'invalid type tag {type_tag:#04x}')

    def _read_uint32(self, deserializer: Deserializer) -> int:
        value = decode_leb128(deserializer, signed=False, max_bytes=_UINT32_MAX_BYTES)
        if value > 0xFFFF_FFFF:
            raise BadDataError(f'{value} does not fit in 32 bits')
        return value


class _PrimitiveModel(BaseModel):
    kind: StrictInt


class _ContainerModel(BaseModel):
    kind: StrictInt
    elem: Optional['_TypeModel'] = None
    key: Optional['_TypeModel'] = None
    count: Optional[StrictInt] = None


class _TypeModel(BaseModel):
    primitive: Optional[_PrimitiveModel] = None
    struct: Optional['_StructModel'] = None
    container: Optional[_ContainerModel] = None


class _FieldModel(BaseModel):
    name: StrictStr
    visibility: Visibility
    tag: StrictStr = ''
    type: _TypeModel


class _StructModel(BaseModel):
    fields: list[_FieldModel] = []


_ContainerModel.model_rebuild()
_TypeModel.model_rebuild()
_FieldModel.model_rebuild()
_StructModel.model_rebuild()


def schema_to_json(struct: Struct, /) -> dict[str, Any]:
    """ Convert a schema to its JSON form, ready for `json.dumps`.

    Absent members (`key` of a list, `count` of a map, the unset variants of a type) are omitted. Raises `WireError` for
    the same schemas that `schema_to_bytes` refuses.
    """
    try:
        model = _struct_to_model(struct)
    except (MalformedSchemaError, ValueError, TypeError) as e:
        raise WireError(f'wire: cannot serialize schema: {e}') from e
    return model.model_dump(mode='json', exclude_none=True)


def schema_from_json(
    data: Union[str, bytes, Mapping[str, Any]],
    /,
    *,
    settings: Optional[StructShapeSettings] = None,
) -> Struct:
    """ Parse a schema from its JSON form, either as text or already loaded. Raises `WireError` on any failure.
    """
    settings = settings or get_global_settings()
    try:
        if isinstance(data, (str, bytes)):
            if len(data) > settings.MAX_SCHEMA_BYTES:
                raise WireError(f'wire: schema is longer than {settings.MAX_SCHEMA_BYTES} bytes')
            data = json.loads(data)
        model = _StructModel.model_validate(data)
        return _struct_from_model(model, depth=0, max_depth=settings.MAX_DEPTH)
    except (ValidationError, json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        logger.debug('schema decode failed', error=str(e))
        raise WireError(f'wire: cannot parse schema: {e}') from e


def _struct_to_model(struct: Struct) -> _StructModel:
    for f in struct.fields:
        _check_field(f)
    return _StructModel(fields=[
        _FieldModel(name=f.name, visibility=f.visibility, tag=f.tag, type=_type_to_model(f.type))
        for f in struct.fields
    ])


def _type_to_model(type_: Type) -> _TypeModel:
    match type_.variant():
        case Primitive(kind=kind):
            return _TypeModel(primitive=_PrimitiveModel(kind=int(kind)))
        case Struct() as struct:
            return _TypeModel(struct=_struct_to_model(struct))
        case Container(kind=kind, elem=elem, key=key, count=count):
            return _TypeModel(container=_ContainerModel(
                kind=int(kind),
                elem=_type_to_model(elem) if elem is not None else None,
                key=_type_to_model(key) if key is not None else None,
                count=count,
            ))


def _struct_from_model(model: _StructModel, *, depth: int, max_depth: int) -> Struct:
    if depth > max_depth:
        raise WireError(f'wire: maximum depth of {max_depth} exceeded')
    return Struct(tuple(
        Field(f.name, f.visibility, f.tag, _type_from_model(f.type, depth=depth + 1, max_depth=max_depth))
        for f in model.fields
    ))


def _type_from_model(model: _TypeModel, *, depth: int, max_depth: int) -> Type:
    if depth > max_depth:
        raise WireError(f'wire: maximum depth of {max_depth} exceeded')
    struct: Optional[Struct] = None
    if model.struct is not None:
        struct = _struct_from_model(model.struct, depth=depth, max_depth=max_depth)
    container: Optional[Container] = None
    if model.container is not None:
        c = model.container
        container = Container(
            c.kind,
            _type_from_model(c.elem, depth=depth + 1, max_depth=max_depth) if c.elem is not None else None,
            _type_from_model(c.key, depth=depth + 1, max_depth=max_depth) if c.key is not None else None,
            c.count,
        )
    # the oneof is kept as received, checking it is the decoder's job
    return Type(
        primitive=Primitive(model.primitive.kind) if model.primitive is not None else None,
        struct=struct,
        container=container,
    )
