"""Tagged state variants for the directory cache and the creation form.

Each state is exactly one variant, so combinations such as "loading and
failed" cannot be represented.
"""
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .models import ApiError

T = TypeVar("T")


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Error:
    error: ApiError

    @property
    def message(self) -> str:
        return self.error.message


@dataclass(frozen=True)
class Ready(Generic[T]):
    data: T


FetchState = Union[Loading, Error, Ready]


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Submitting:
    pass


@dataclass(frozen=True)
class Failed:
    message: str


SubmissionState = Union[Idle, Submitting, Failed]

LOADING = Loading()
IDLE = Idle()
SUBMITTING = Submitting()
