"""Diagnostic records and the cause variants the encoder renders."""

from __future__ import annotations

import abc
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TypeAlias

from interrupt.codec.frames import Frame, frames_from_traceback
from interrupt.constants import (
    IDENTIFIER_PATTERN,
    QUALIFIED_SEPARATOR,
    UNREPRESENTABLE_PLACEHOLDER,
)


@dataclass(frozen=True, slots=True)
class PlainValue:
    """A cause that is not an exception; rendered with ``str()``."""

    value: object


@dataclass(frozen=True, slots=True)
class ForeignError:
    """An exception that was not produced by this package."""

    type_name: str
    message: str
    frames: tuple[Frame, ...] = ()


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A nested diagnostic record together with the frames it was raised at."""

    record: DiagnosticRecord
    frames: tuple[Frame, ...] = ()
    message: str = ""


CauseValue: TypeAlias = PlainValue | ForeignError | Diagnostic


@dataclass(frozen=True, slots=True)
class Cause:
    """A cause value paired with the context known when it was captured."""

    value: CauseValue
    context: Mapping[str, object] | None = None


@dataclass(frozen=True, slots=True)
class DiagnosticRecord:
    """Input to the encoder: qualifier, label, context, and ordered causes."""

    qualifier: str
    label: str
    context: Mapping[str, object] = field(default_factory=dict)
    causes: tuple[Cause, ...] = ()

    def __post_init__(self) -> None:
        for name in ("qualifier", "label"):
            value = getattr(self, name)
            if not isinstance(value, str) or not IDENTIFIER_PATTERN.match(value):
                raise ValueError(f"{name} must match [\\w.]+, got {value!r}")
        if not isinstance(self.context, Mapping):
            raise ValueError(f"context must be a mapping, got {type(self.context).__name__}")
        object.__setattr__(self, "context", MappingProxyType(dict(self.context)))
        object.__setattr__(self, "causes", tuple(as_cause(item) for item in self.causes))

    @property
    def qualified(self) -> str:
        return f"{self.qualifier}{QUALIFIED_SEPARATOR}{self.label}"


class Diagnosable(abc.ABC):
    """Exceptions that can describe themselves as a ``Diagnostic``."""

    __slots__ = ()

    @abc.abstractmethod
    def diagnostic(self) -> Diagnostic:
        raise NotImplementedError


def as_cause_value(obj: object) -> CauseValue:
    """Classify an arbitrary object as one of the cause variants."""

    if isinstance(obj, (PlainValue, ForeignError, Diagnostic)):
        return obj
    if isinstance(obj, Diagnosable):
        return obj.diagnostic()
    if isinstance(obj, BaseException):
        return ForeignError(
            type_name=type(obj).__qualname__,
            message=safe_str(obj),
            frames=frames_from_traceback(obj.__traceback__),
        )
    return PlainValue(obj)


def as_cause(obj: object) -> Cause:
    """Coerce ``obj`` into a ``Cause``.

    Accepts a ``Cause``, a ``(value, context)`` pair, or a bare value.
    """

    if isinstance(obj, Cause):
        return obj
    if isinstance(obj, tuple) and len(obj) == 2 and (obj[1] is None or isinstance(obj[1], Mapping)):
        value, context = obj
        return Cause(value=as_cause_value(value), context=context)
    return Cause(value=as_cause_value(obj))


def as_causes(items: Sequence[object]) -> tuple[Cause, ...]:
    return tuple(as_cause(item) for item in items)


def safe_str(value: object) -> str:
    """Return ``str(value)``, or a placeholder when ``__str__`` raises."""

    try:
        return str(value)
    except Exception:
        return UNREPRESENTABLE_PLACEHOLDER


__all__ = [
    "Cause",
    "CauseValue",
    "Diagnosable",
    "Diagnostic",
    "DiagnosticRecord",
    "ForeignError",
    "PlainValue",
    "as_cause",
    "as_cause_value",
    "as_causes",
    "safe_str",
]
