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
A byte sequence is prefixed with its length as an unsigned LEB128.

>>> se = Serializer.build_bytes_serializer()
>>> encode_bytes(se, b'test')
>>> bytes(se.finalize()).hex()
'0474657374'

>>> de = Deserializer.build_bytes_deserializer(b'\x04test')
>>> decode_bytes(de)
b'test'
>>> de.finalize()

A declared length longer than `max_length` fails before anything is read:

>>> de = Deserializer.build_bytes_deserializer(b'\x04test')
>>> try:
...     decode_bytes(de, max_length=3)
... except TooLongError as e:
...     print(*e.args)
length 4 is above the maximum of 3
"""

from structshape.serialization import Deserializer, Serializer, TooLongError

from .leb128 import decode_leb128, encode_leb128


def encode_bytes(serializer: Serializer, data: bytes) -> None:
    assert isinstance(data, bytes)
    encode_leb128(serializer, len(data), signed=False)
    serializer.write_bytes(data)


def decode_bytes(deserializer: Deserializer, *, max_length: int | None = None) -> bytes:
    size = decode_leb128(deserializer, signed=False)
    if max_length is not None and size > max_length:
        raise TooLongError(f'length {size} is above the maximum of {max_length}')
    return bytes(deserializer.read_bytes(size))
