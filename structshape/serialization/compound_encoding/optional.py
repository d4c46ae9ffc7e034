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

r"""
An optional value is a one byte presence flag followed by the value when present.

Layout:

    [0x00] when None
    [0x01][value] when not None

>>> from structshape.serialization.encoding.utf8 import encode_utf8, decode_utf8
>>> se = Serializer.build_bytes_serializer()
>>> encode_optional(se, 'foo', encode_utf8)
>>> encode_optional(se, None, encode_utf8)
>>> bytes(se.finalize()).hex()
'0103666f6f00'

>>> de = Deserializer.build_bytes_deserializer(bytes.fromhex('0103666f6f00'))
>>> decode_optional(de, decode_utf8), decode_optional(de, decode_utf8)
('foo', None)
>>> de.finalize()
"""

from typing import Optional, TypeVar

from structshape.serialization import Deserializer, Serializer
from structshape.serialization.encoding.bool import decode_bool, encode_bool

from . import Decoder, Encoder

T = TypeVar('T')


def encode_optional(serializer: Serializer, value: Optional[T], encoder: Encoder[T]) -> None:
    if value is None:
        encode_bool(serializer, False)
    else:
        encode_bool(serializer, True)
        encoder(serializer, value)


def decode_optional(deserializer: Deserializer, decoder: Decoder[T]) -> Optional[T]:
    has_value = decode_bool(deserializer)
    if has_value:
        return decoder(deserializer)
    else:
        return None
