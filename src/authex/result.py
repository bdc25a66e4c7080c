"""Result variants for write operations.

Learn: create/update/delete never raise on validation or constraint
failures. They return ``Ok(user)`` or ``Err(changeset)`` so callers can
render field-level feedback. Both are frozen dataclasses and work with
``match``::

    match users.create(params):
        case Ok(user):
            ...
        case Err(changeset):
            ...
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[Any], Err[Any]]
