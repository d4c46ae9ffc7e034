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
Lookup of values in conventionally formatted field tags.

Tags are opaque to the encoder and the decoder, this module is for the consumers that interpret them. The conventional
format is a space separated list of `key:"value"` pairs, where the value is a double quoted string with backslash
escapes:

>>> tag = 'json:"nested_ptr,omitempty" db:"ptr"'
>>> lookup(tag, 'json')
('nested_ptr,omitempty', True)
>>> lookup(tag, 'yaml')
('', False)
>>> get(tag, 'db')
'ptr'

A key that is present with an empty value is still found:

>>> lookup('json:""', 'json')
('', True)

Parsing stops at the first pair that doesn't follow the format, and nothing after it is found.
"""

import re
from typing import Iterator

__all__ = ['lookup', 'get', 'pairs']

# a key is a run of characters other than space, quote, colon and control characters
_PAIR_RE = re.compile(r' *([^\x00-\x20\x7f":]+):"((?:[^"\\]|\\.)*)"')

_ESCAPES = {
    'a': '\a',
    'b': '\b',
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
    'v': '\v',
    '\\': '\\',
    '"': '"',
    "'": "'",
}

_ESCAPE_RE = re.compile(r'\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[0-7]{3}|.)')


def _unescape_one(match: re.Match) -> str:
    seq = match.group(1)
    if seq[0] in 'xuU':
        return chr(int(seq[1:], 16))
    if seq[0] in '01234567':
        return chr(int(seq, 8))
    try:
        return _ESCAPES[seq]
    except KeyError:
        raise ValueError(f'invalid escape sequence \\{seq}') from None


def _unquote(raw: str) -> str:
    return _ESCAPE_RE.sub(_unescape_one, raw)


def pairs(tag: str) -> Iterator[tuple[str, str]]:
    """ Iterate over the well formed `(key, value)` pairs of a tag, in order.

    >>> list(pairs('json:"a" xml:"b"'))
    [('json', 'a'), ('xml', 'b')]
    """
    pos = 0
    while pos < len(tag):
        match = _PAIR_RE.match(tag, pos)
        if match is None:
            return
        try:
            value = _unquote(match.group(2))
        except ValueError:
            return
        yield match.group(1), value
        pos = match.end()


def lookup(tag: str, key: str) -> tuple[str, bool]:
    """ Return the value associated with `key` in the tag and whether it was found.

    When the key appears more than once the first occurrence wins.
    """
    for k, v in pairs(tag):
        if k == key:
            return v, True
    return '', False


def get(tag: str, key: str) -> str:
    """ Return the value associated with `key`, or an empty string if it isn't there.
    """
    value, _found = lookup(tag, key)
    return value
