# muchshop/utils/result.py
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: Exception

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]


def attempt(fn: Callable[..., T], *args: Any, catch=(Exception,), **kwargs: Any) -> "Result[T]":
    """Run fn and wrap the outcome, only exceptions listed in `catch` become Err."""
    try:
        return Ok(fn(*args, **kwargs))
    except catch as e:
        return Err(e)
