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


class SerializationError(Exception):
    """Base class for errors raised while reading or writing the byte form of a value."""
    pass


class OutOfDataError(SerializationError):
    """Raised when the input ends before a value is complete."""
    pass


class BadDataError(SerializationError):
    """Raised when the bytes read cannot represent a valid value."""
    pass


class TooLongError(SerializationError):
    """Raised when a read or write would go over a length limit."""
    pass
