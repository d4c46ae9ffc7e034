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

from typing_extensions import override

from .deserializer import Deserializer
from .exceptions import BadDataError, OutOfDataError
from .types import Buffer


class BytesDeserializer(Deserializer):
    """Deserializer over an in-memory byte sequence, the view is shortened as bytes are consumed.
    """

    def __init__(self, data: Buffer) -> None:
        self._view = memoryview(data)

    @override
    def finalize(self) -> None:
        if not self.is_empty():
            raise BadDataError('trailing data')
        del self._view

    @override
    def is_empty(self) -> bool:
        return not self._view

    @override
    def read_byte(self) -> int:
        if not self._view:
            raise OutOfDataError('not enough bytes to read')
        b = self._view[0]
        self._view = self._view[1:]
        return b

    @override
    def read_bytes(self, n: int) -> memoryview:
        if n < 0:
            raise ValueError('value cannot be negative')
        if len(self._view) < n:
            raise OutOfDataError('not enough bytes to read')
        b = self._view[:n]
        self._view = self._view[n:]
        return b
