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
Encoding of the *shape* of a dataclass type (field names, order, tags and nested types) into a portable schema, and
materialization of an equivalent type, plus a zero-valued instance of it, from that schema alone.

No field values are ever encoded. The usual flow is:

    schema = structshape.encode(MyRecord)            # on one end
    data = structshape.wire.schema_to_bytes(schema)
    ...
    schema = structshape.wire.schema_from_bytes(data)  # on the other end
    instance = structshape.new(schema)
    structshape.document.loads(instance, json_text)
"""

from structshape.decoder import build_type, new, try_build_type, try_new, zero_value
from structshape.encoder import encode, try_encode
from structshape.exception import (
    CyclicTypeError,
    DecodeError,
    DocumentError,
    EncodeError,
    MalformedSchemaError,
    StructShapeError,
    UnsupportedKindError,
    WireError,
)
from structshape.fields import field, field_tag, field_visibility
from structshape.kinds import (
    Complex64,
    Complex128,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Kind,
    Length,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
)
from structshape.schema import Container, Field, Primitive, Struct, Type, Visibility
from structshape.version import __version__

__all__ = [
    'encode',
    'try_encode',
    'new',
    'try_new',
    'build_type',
    'try_build_type',
    'zero_value',
    'field',
    'field_tag',
    'field_visibility',
    'Struct',
    'Field',
    'Type',
    'Primitive',
    'Container',
    'Visibility',
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
    'StructShapeError',
    'EncodeError',
    'UnsupportedKindError',
    'CyclicTypeError',
    'DecodeError',
    'MalformedSchemaError',
    'WireError',
    'DocumentError',
    '__version__',
]
