r"""Terminal result of a logical request.

A logical request resolves to exactly one of ``Success`` (carrying the
decoded payload) or ``Failure`` (carrying a ``NetworkError``), never both
and never neither.

Example:
    ```pycon
    >>> from endpointkit.exceptions import ErrorKind, NetworkError
    >>> from endpointkit.result import Failure, Success
    >>> Success({"id": 7}).unwrap()
    {'id': 7}
    >>> result = Failure(NetworkError(ErrorKind.NOT_FOUND))
    >>> result.is_success, result.error.message
    (False, 'Resource not found')

    ```
"""

from __future__ import annotations

__all__ = ["Failure", "Result", "Success"]

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, Union

from endpointkit.exceptions import NetworkError

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """The logical request succeeded."""

    value: T

    @property
    def is_success(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """The logical request failed."""

    error: NetworkError

    @property
    def is_success(self) -> bool:
        return False

    def unwrap(self) -> NoReturn:
        """Raise the carried error.

        Raises:
            NetworkError: Always.
        """
        raise self.error


Result = Union[Success[T], Failure]
