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
LEB128 (Little Endian Base 128) encoding of integers.

Each byte carries 7 bits of data, least significant group first, and the high bit is set on every byte except the
last. Signed values use the two's complement of the last group's sign bit.

>>> se = Serializer.build_bytes_serializer()
>>> encode_leb128(se, 0, signed=False)  # writes 00
>>> encode_leb128(se, 624485, signed=False)  # writes e58e26
>>> encode_leb128(se, -123456, signed=True)  # writes c0bb78
>>> bytes(se.finalize()).hex()
'00e58e26c0bb78'

>>> de = Deserializer.build_bytes_deserializer(bytes.fromhex('00 e58e26 c0bb78'))
>>> decode_leb128(de, signed=False), decode_leb128(de, signed=False), decode_leb128(de, signed=True)
(0, 624485, -123456)
>>> de.finalize()

A value can be limited to a number of bytes, which stops a hostile input from producing an arbitrarily large int:

>>> de = Deserializer.build_bytes_deserializer(bytes.fromhex('e58e26'))
>>> try:
...     decode_leb128(de, signed=False, max_bytes=2)
... except TooLongError as e:
...     print(*e.args)
leb128 value is longer than 2 bytes
"""

from structshape.serialization import Deserializer, Serializer, TooLongError


def encode_leb128(serializer: Serializer, value: int, *, signed: bool) -> None:
    """ Encodes an integer using LEB128.

    Caller must explicitly choose `signed=True` or `signed=False`.
    """
    if not signed and value < 0:
        raise ValueError('cannot encode value <0 as unsigned')
    while True:
        byte = value & 0b0111_1111
        value >>= 7
        if signed:
            cont = (value == 0 and (byte & 0b0100_0000) == 0) or (value == -1 and (byte & 0b0100_0000) != 0)
        else:
            cont = value == 0
        if cont:
            serializer.write_byte(byte)
            break
        serializer.write_byte(byte | 0b1000_0000)


def decode_leb128(deserializer: Deserializer, *, signed: bool, max_bytes: int | None = None) -> int:
    """ Decodes a LEB128-encoded integer, reading at most `max_bytes` bytes when given.
    """
    result = 0
    shift = 0
    read = 0
    while True:
        if max_bytes is not None and read >= max_bytes:
            raise TooLongError(f'leb128 value is longer than {max_bytes} bytes')
        byte = deserializer.read_byte()
        read += 1
        result |= (byte & 0b0111_1111) << shift
        shift += 7
        if (byte & 0b1000_0000) == 0:
            if signed and (byte & 0b0100_0000) != 0:
                return result | -(1 << shift)
            return result
