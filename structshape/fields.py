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

import dataclasses
from typing import Any, Callable

from structshape.schema import Visibility

# keys used in `dataclasses.Field.metadata`
TAG_KEY = 'tag'
VISIBILITY_KEY = 'visibility'

_MISSING: Any = dataclasses.MISSING


def field(
    *,
    tag: str = '',
    default: Any = _MISSING,
    default_factory: Callable[[], Any] = _MISSING,
    init: bool = True,
    repr: bool = True,
    compare: bool = True,
) -> Any:
    """ Like `dataclasses.field` but records the field's tag in its metadata.

    >>> @dataclasses.dataclass
    ... class Point:
    ...     x: int = field(tag='json:"x"', default=0)
    >>> field_tag(dataclasses.fields(Point)[0])
    'json:"x"'
    """
    if not isinstance(tag, str):
        raise TypeError('tag must be a str')
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        init=init,
        repr=repr,
        compare=compare,
        metadata={TAG_KEY: tag},
    )


def field_tag(f: dataclasses.Field) -> str:
    return f.metadata.get(TAG_KEY, '')


def field_visibility(f: dataclasses.Field) -> Visibility:
    """ The visibility recorded by the decoder, or the one implied by the name for native dataclasses.
    """
    visibility = f.metadata.get(VISIBILITY_KEY)
    if isinstance(visibility, Visibility):
        return visibility
    return Visibility.for_name(f.name)
