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
Exceptions raised by structshape.

Encoding a type and decoding a schema are deterministic, so every error here is terminal for the call that raised it:
retrying with the same input cannot succeed. Neither direction ever returns a partial result.
"""

from typing import Optional


class StructShapeError(Exception):
    """Base class for exceptions in structshape."""
    pass


class EncodeError(StructShapeError):
    """Raised when a type cannot be encoded into a schema."""

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        self.message = message
        self.path = path
        super().__init__(self._format())

    def _format(self) -> str:
        if self.path:
            return f'{self.message} (field {self.path!r})'
        return self.message

    def at(self, name: str) -> 'EncodeError':
        """Prefix the field path with `name`, used while the error bubbles up through nested structs."""
        self.path = f'{name}.{self.path}' if self.path else name
        self.args = (self._format(),)
        return self


class UnsupportedKindError(EncodeError):
    """Raised when the root is not a struct or a field type belongs to the unsupported set of kinds."""

    def __init__(self, message: str, *, type_name: str, kind: str, path: Optional[str] = None) -> None:
        self.type_name = type_name
        self.kind = kind
        super().__init__(message, path=path)


class CyclicTypeError(EncodeError):
    """Raised when a struct type references itself, directly or transitively."""
    pass


class DecodeError(StructShapeError):
    """Raised when a schema cannot be turned back into a type."""
    pass


class MalformedSchemaError(DecodeError):
    """Raised when a schema is invalid.

    This is also what internal faults during type construction are converted to, the original exception is kept as
    `__cause__`.
    """
    pass


class WireError(DecodeError):
    """Raised when a serialized schema (bytes or JSON) cannot be parsed."""
    pass


class DocumentError(StructShapeError):
    """Raised when a JSON document does not fit the shape of the instance it is written into."""
    pass
