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
A simple `Result` type inspired by Rust.

Only the methods that structshape needs are implemented. Functions that return a `Result` and call other such
functions can be decorated with `propagate_result`, which makes `unwrap_or_propagate()` return early with the `Err`:

>>> @propagate_result
... def half(n: int) -> Result[int, str]:
...     if n % 2:
...         return Err('odd')
...     return Ok(n // 2)
>>> @propagate_result
... def quarter(n: int) -> Result[int, str]:
...     return Ok(half(half(n).unwrap_or_propagate()).unwrap_or_propagate())
>>> quarter(8), quarter(6)
(Ok(2), Err('odd'))
"""

from __future__ import annotations

import functools
from typing import Any, Callable, Generic, Literal, NoReturn, ParamSpec, TypeAlias, TypeVar

T = TypeVar('T', covariant=True)  # Success type
E = TypeVar('E', covariant=True)  # Error type
U = TypeVar('U')
F = TypeVar('F')
P = ParamSpec('P')


class Ok(Generic[T]):
    """ The successful outcome, holding the returned value.
    """

    __slots__ = ('_value',)
    __match_args__ = ('_value',)

    def __init__(self, value: T) -> None:
        self._value = value

    def __repr__(self) -> str:
        return f'Ok({self._value!r})'

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Ok) and self._value == other._value

    def __hash__(self) -> int:
        return hash((Ok, self._value))

    def is_ok(self) -> Literal[True]:
        return True

    def is_err(self) -> Literal[False]:
        return False

    def err(self) -> None:
        return None

    def unwrap(self) -> T:
        return self._value

    def unwrap_or_raise(self) -> T:
        return self._value

    def unwrap_or_propagate(self) -> T:
        return self._value

    def map_err(self, _op: Callable[[E], F]) -> Ok[T]:
        return self

    def and_then(self, op: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """ Chain another fallible step, fed with the held value.
        """
        return op(self._value)


class Err(Generic[E]):
    """ The failed outcome, holding the error, which is an exception everywhere in structshape.
    """

    __slots__ = ('_value',)
    __match_args__ = ('_value',)

    def __init__(self, value: E) -> None:
        self._value = value

    def __repr__(self) -> str:
        return f'Err({self._value!r})'

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Err) and self._value == other._value

    def __hash__(self) -> int:
        return hash((Err, self._value))

    def is_ok(self) -> Literal[False]:
        return False

    def is_err(self) -> Literal[True]:
        return True

    def err(self) -> E:
        return self._value

    def unwrap(self) -> NoReturn:
        error = UnwrapError(self, f'unwrap() called on {self!r}')
        if isinstance(self._value, BaseException):
            raise error from self._value
        raise error

    def unwrap_or_raise(self) -> NoReturn:
        """ Raise the held exception.
        """
        assert isinstance(self._value, Exception), f'unwrap_or_raise() called on a non-exception: {self._value!r}'
        raise self._value

    def unwrap_or_propagate(self) -> NoReturn:
        """ Hand this `Err` to the closest enclosing `propagate_result`.
        """
        raise _ResultPropagationException(self)

    def map_err(self, op: Callable[[E], F]) -> Err[F]:
        return Err(op(self._value))

    def and_then(self, _op: Callable[[T], Result[U, E]]) -> Err[E]:
        return self


Result: TypeAlias = Ok[T] | Err[E]


class UnwrapError(Exception):
    """ Raised by `Err.unwrap()`, the failed `Result` is kept in `result`.
    """

    def __init__(self, result: Result[Any, Any], message: str) -> None:
        super().__init__(message)
        self.result = result


class _ResultPropagationException(Exception):
    def __init__(self, err: Err[E]) -> None:
        super().__init__('unwrap_or_propagate() used outside of a function decorated with @propagate_result')
        self.err = err


def propagate_result(f: Callable[P, Result[T, E]]) -> Callable[P, Result[T, E]]:
    """ Make `unwrap_or_propagate()` inside `f` return the `Err` from `f` instead of raising.
    """
    @functools.wraps(f)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T, E]:
        try:
            return f(*args, **kwargs)
        except _ResultPropagationException as e:
            return e.err  # type: ignore[return-value]

    return wrapper
