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
A string is encoded to UTF-8 and then written like a byte sequence, with a length prefix.

>>> se = Serializer.build_bytes_serializer()
>>> encode_utf8(se, 'foobar')
>>> encode_utf8(se, 'π')
>>> bytes(se.finalize()).hex()
'06666f6f62617202cf80'

>>> de = Deserializer.build_bytes_deserializer(bytes.fromhex('06666f6f62617202cf80'))
>>> decode_utf8(de), decode_utf8(de)
('foobar', 'π')
>>> de.finalize()
"""

from structshape.serialization import BadDataError, Deserializer, Serializer

from .bytes import decode_bytes, encode_bytes


def encode_utf8(serializer: Serializer, value: str) -> None:
    assert isinstance(value, str)
    encode_bytes(serializer, value.encode('utf-8'))


def decode_utf8(deserializer: Deserializer, *, max_length: int | None = None) -> str:
    data = decode_bytes(deserializer, max_length=max_length)
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as e:
        raise BadDataError(f'invalid utf-8: {e}') from e
