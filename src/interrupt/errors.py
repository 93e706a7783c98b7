"""
interrupt: diagnostic exception classes.

File: src/interrupt/errors.py

Purpose
- Define ``Interrupt``, an exception whose ``str()`` is an encoded diagnostic blob.
- Build named subclasses with code tables and message templates via ``create``.

Functional requirements
- Construction never fails because of a bad template; failures are recorded in ``errors``.
- Causes and their sub-contexts are kept in order and encoded into the blob.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, Final, TypeVar

from interrupt.codec.decoder import decode
from interrupt.codec.encoder import DEFAULT_ENCODER_OPTIONS, EncoderOptions, encode
from interrupt.codec.frames import Frame, capture_frames, frames_from_traceback, location
from interrupt.codec.nodes import DecodedNode
from interrupt.codec.record import (
    Cause,
    Diagnosable,
    Diagnostic,
    DiagnosticRecord,
    as_cause_value,
    safe_str,
)
from interrupt.constants import IDENTIFIER_PATTERN

logger = logging.getLogger(__name__)

DEFAULT_LABEL: Final[str] = "error"
FORMAT_ERROR: Final[str] = "FORMAT_ERROR"

_T = TypeVar("_T")


class InterruptDefinitionError(ValueError):
    """Raised when ``create`` receives an invalid code table."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(f"{code}: {message}")


@dataclass(frozen=True, slots=True)
class CodeDefinition:
    """One entry of a class code table."""

    code: str
    message: str | None = None
    properties: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class FormatFailure:
    """A message template that could not be filled from the context."""

    template: str
    reason: str
    code: str = FORMAT_ERROR


CodeTable = str | Sequence[str] | Mapping[str, "str | Mapping[str, object] | None"]
Keyify = Callable[[object, str | None, int | None], object]


class Interrupt(Diagnosable, Exception):
    """Exception carrying a qualifier, a label, a context, and ordered causes.

    ``str(error)`` is the encoded blob, so printed tracebacks show the whole
    diagnostic tree; ``Interrupt.parse(str(error))`` reads it back.
    """

    qualifier: ClassVar[str] = "Interrupt"
    code_table: ClassVar[Mapping[str, CodeDefinition]] = MappingProxyType({})
    options: ClassVar[EncoderOptions] = DEFAULT_ENCODER_OPTIONS

    def __init__(
        self,
        *args: object,
        code: str | None = None,
        message: str | None = None,
        label: str | None = None,
        causes: Sequence[object] = (),
        context: Mapping[str, object] | None = None,
        properties: Mapping[str, object] | None = None,
        frames: Sequence[Frame] | None = None,
    ) -> None:
        parsed = _Arguments(type(self).code_table)
        parsed.absorb(args)
        if code is not None:
            parsed.set_string(code)
        if message is not None:
            parsed.template = message
        parsed.causes.extend(causes)
        if context is not None:
            parsed.context.update(context)

        definition = type(self).code_table.get(parsed.code) if parsed.code else None
        merged_context: dict[str, object] = {}
        if definition is not None:
            merged_context.update(definition.properties)
        merged_context.update(parsed.context)

        template = parsed.template
        if template is None and definition is not None:
            template = definition.message
        self._errors: list[FormatFailure] = []
        self._message = self._format(template, merged_context, parsed)

        self._code = parsed.code
        self._label = label or parsed.code or parsed.label or DEFAULT_LABEL
        self._causes = tuple(value for value, _ in parsed.pairs())
        self._contexts = tuple(context for _, context in parsed.pairs())
        self._record = DiagnosticRecord(
            qualifier=type(self).qualifier,
            label=self._label,
            context=merged_context,
            causes=tuple(
                Cause(value=as_cause_value(value), context=context)
                for value, context in parsed.pairs()
            ),
        )
        self._frames = tuple(frames) if frames is not None else self._capture()
        self._stack = encode(self._record, frames=self._frames, options=type(self).options)
        super().__init__(self._stack)
        # Shown after the blob by the traceback printer.
        if self._message and self._message != self._label:
            self.add_note(self._message)

        self._properties: dict[str, object] = {}
        for name, value in (properties or {}).items():
            if name.startswith("_") or hasattr(type(self), name):
                logger.debug("skipping reserved property", extra={"property": name})
                continue
            setattr(self, name, value)
            self._properties[name] = value

        if type(self).options.aggregate_causes:
            self._attach_causes()

    def __str__(self) -> str:
        return self._stack

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            context = object.__getattribute__(self, "_record").context
        except AttributeError:
            raise AttributeError(name) from None
        if name in context:
            return context[name]
        raise AttributeError(f"{type(self).__qualname__!r} object has no attribute {name!r}")

    @property
    def code(self) -> str | None:
        return self._code

    @property
    def label(self) -> str:
        return self._label

    @property
    def qualified(self) -> str:
        return self._record.qualified

    @property
    def message(self) -> str:
        return self._message

    @property
    def context(self) -> Mapping[str, object]:
        return self._record.context

    @property
    def causes(self) -> tuple[object, ...]:
        return self._causes

    @property
    def contexts(self) -> tuple[Mapping[str, object] | None, ...]:
        return self._contexts

    @property
    def properties(self) -> Mapping[str, object]:
        return MappingProxyType(self._properties)

    @property
    def errors(self) -> tuple[FormatFailure, ...]:
        return tuple(self._errors)

    @property
    def stack(self) -> str:
        return self._stack

    @property
    def frames(self) -> tuple[Frame, ...]:
        return self._frames

    def diagnostic(self) -> Diagnostic:
        return Diagnostic(record=self._record, frames=self._frames, message=self._message)

    @classmethod
    def create(
        cls,
        name: str,
        codes: CodeTable | None = None,
        *,
        qualifier: str | None = None,
        options: EncoderOptions | None = None,
    ) -> type[Interrupt]:
        """Return a new subclass named ``name`` with the given code table."""

        if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
            raise InterruptDefinitionError(
                "INVALID_NAME", f"class name must match [\\w.]+: {name!r}"
            )
        resolved_qualifier = qualifier if qualifier is not None else name
        if not IDENTIFIER_PATTERN.match(resolved_qualifier):
            raise InterruptDefinitionError(
                "INVALID_QUALIFIER", f"qualifier must match [\\w.]+: {resolved_qualifier!r}"
            )

        table = dict(cls.code_table)
        namespace: dict[str, object] = {
            "__module__": cls.__module__,
            "__qualname__": name,
            "qualifier": resolved_qualifier,
            "options": options if options is not None else cls.options,
        }
        for definition in _convert_codes(codes):
            existing = getattr(cls, definition.code, None)
            if existing is not None and definition.code not in cls.code_table:
                raise InterruptDefinitionError(
                    "INVALID_CODE", f"code {definition.code!r} shadows an existing attribute"
                )
            table[definition.code] = definition
            namespace[definition.code] = definition.code
        namespace["code_table"] = MappingProxyType(table)

        subclass = type(cls)(name.rsplit(".", 1)[-1], (cls,), namespace)
        return subclass

    @classmethod
    def codes(cls) -> tuple[str, ...]:
        return tuple(cls.code_table)

    @classmethod
    def assert_(cls, condition: object, *args: object, **kwargs: Any) -> None:
        """Raise ``cls(*args, **kwargs)`` when ``condition`` is falsy."""

        if not condition:
            raise cls(*args, **kwargs)

    @classmethod
    def invoke(cls, fn: Callable[[], _T], *args: object, **kwargs: Any) -> _T:
        """Call ``fn``; wrap any ``Exception`` it raises as a cause."""

        try:
            return fn()
        except Exception as error:
            raise cls(*args, error, **kwargs) from error

    @classmethod
    async def resolve(
        cls,
        awaitable: Awaitable[_T] | Callable[[], Awaitable[_T]],
        *args: object,
        **kwargs: Any,
    ) -> _T:
        """Await ``awaitable`` (or the result of calling it), wrapping failures."""

        try:
            if callable(awaitable):
                awaitable = awaitable()
            return await awaitable
        except Exception as error:
            raise cls(*args, error, **kwargs) from error

    @staticmethod
    def parse(text: str) -> DecodedNode | None:
        """Decode an encoded blob; ``None`` when ``text`` is not one."""

        return decode(text)

    @staticmethod
    def dedup(error: Interrupt, keyify: Keyify | None = None) -> str:
        """Encode ``error`` with repeated sibling cause subtrees folded."""

        return dedup(error, keyify)

    def _format(
        self, template: str | None, context: Mapping[str, object], parsed: _Arguments
    ) -> str:
        if template is None:
            return parsed.code or parsed.label or ""
        try:
            return template % context
        except (KeyError, ValueError, TypeError) as exc:
            self._errors.append(FormatFailure(template=template, reason=repr(exc)))
            logger.debug("message template could not be formatted", extra={"template": template})
            return template

    def _capture(self) -> tuple[Frame, ...]:
        if not type(self).options.capture_stack:
            return ()
        frames = tuple(frame for frame in capture_frames() if frame.file != __file__)
        limit = type(self).options.stack_limit
        if limit is not None:
            frames = frames[:limit]
        return frames

    def _attach_causes(self) -> None:
        errors = [cause for cause in self._causes if isinstance(cause, Exception)]
        if len(errors) == 1:
            self.__cause__ = errors[0]
        elif errors:
            self.__cause__ = ExceptionGroup(f"{self.qualified} causes", errors)


class _Arguments:
    """Positional constructor arguments sorted into code, template, causes, context."""

    __slots__ = ("_codes", "causes", "code", "context", "label", "template")

    def __init__(self, codes: Mapping[str, CodeDefinition]) -> None:
        self._codes = codes
        self.code: str | None = None
        self.label: str | None = None
        self.template: str | None = None
        self.causes: list[object] = []
        self.context: dict[str, object] = {}

    def absorb(self, args: Sequence[object]) -> None:
        for argument in args:
            if isinstance(argument, str):
                self.set_string(argument)
            elif isinstance(argument, BaseException):
                self.causes.append(argument)
            elif isinstance(argument, list):
                self.causes.extend(argument)
            elif _is_pair(argument):
                self.causes.append(argument)
            elif isinstance(argument, Mapping):
                self.context.update(argument)
            else:
                raise TypeError(
                    f"unsupported positional argument of type {type(argument).__name__}"
                )

    def set_string(self, value: str) -> None:
        if value in self._codes:
            self.code = value
        elif IDENTIFIER_PATTERN.match(value):
            self.label = value
        else:
            self.template = value

    def pairs(self) -> list[tuple[object, Mapping[str, object] | None]]:
        out: list[tuple[object, Mapping[str, object] | None]] = []
        for cause in self.causes:
            if _is_pair(cause):
                value, context = cause  # type: ignore[misc]
                out.append((value, context))
            else:
                out.append((cause, None))
        return out


def _is_pair(value: object) -> bool:
    return (
        isinstance(value, tuple)
        and len(value) == 2
        and (value[1] is None or isinstance(value[1], Mapping))
    )


def _convert_codes(codes: CodeTable | None) -> list[CodeDefinition]:
    if codes is None:
        return []
    if isinstance(codes, str):
        codes = [codes]
    definitions: list[CodeDefinition] = []
    seen: set[str] = set()
    if isinstance(codes, Mapping):
        items: list[tuple[object, object]] = list(codes.items())
    elif isinstance(codes, Sequence):
        items = [(code, None) for code in codes]
    else:
        raise InterruptDefinitionError(
            "INVALID_ARGUMENT", f"codes must be a str, sequence, or mapping: {codes!r}"
        )
    for code, entry in items:
        if not isinstance(code, str) or not code.isidentifier():
            raise InterruptDefinitionError("INVALID_CODE_TYPE", f"invalid code {code!r}")
        if code in seen:
            raise InterruptDefinitionError("DUPLICATE_CODE", f"code {code!r} declared twice")
        seen.add(code)
        definitions.append(_definition(code, entry))
    return definitions


def _definition(code: str, entry: object) -> CodeDefinition:
    if entry is None:
        return CodeDefinition(code=code)
    if isinstance(entry, str):
        return CodeDefinition(code=code, message=entry)
    if isinstance(entry, Mapping):
        message = entry.get("message")
        if message is not None and not isinstance(message, str):
            raise InterruptDefinitionError(
                "INVALID_ARGUMENT", f"message for code {code!r} must be a string"
            )
        properties = {key: value for key, value in entry.items() if key != "message"}
        return CodeDefinition(code=code, message=message, properties=properties)
    raise InterruptDefinitionError("INVALID_ARGUMENT", f"invalid definition for code {code!r}")


@dataclass(slots=True)
class _DedupNode:
    error: object
    context: Mapping[str, object] | None
    signature: tuple[object, ...]
    children: list[_DedupNode]
    repeated: int = 1


def dedup(error: Interrupt, keyify: Keyify | None = None) -> str:
    """Encode ``error`` with repeated cause subtrees folded into one.

    Each error is keyed by ``keyify(error, file, line)``, where ``file`` and
    ``line`` locate the innermost frame of the error (``None`` when it has no
    frames). Sibling causes whose keys match, and whose own causes match the
    same way, are folded into the first of them, which records the number of
    occurrences as ``repeated`` in its context. ``error`` is not modified.
    """

    tree = _treeify(error, None, keyify or _default_keyify)
    _fold(tree)
    diagnostic = _folded_diagnostic(error, tree)
    return encode(diagnostic.record, frames=diagnostic.frames, options=type(error).options)


def _default_keyify(error: object, file: str | None, line: int | None) -> object:
    if file is None:
        return [type(error).__qualname__, safe_str(error)]
    return [file, line]


def _error_location(error: object) -> tuple[str | None, int | None]:
    if isinstance(error, Interrupt):
        return location(error.frames)
    if isinstance(error, BaseException):
        return location(frames_from_traceback(error.__traceback__))
    return (None, None)


def _treeify(error: object, context: Mapping[str, object] | None, keyify: Keyify) -> _DedupNode:
    file, line = _error_location(error)
    key = json.dumps(keyify(error, file, line), default=repr, sort_keys=True)
    children: list[_DedupNode] = []
    if isinstance(error, Interrupt):
        children = [
            _treeify(cause, cause_context, keyify)
            for cause, cause_context in zip(error.causes, error.contexts)
        ]
    signature = (key, tuple(sorted(child.signature for child in children)))
    return _DedupNode(error=error, context=context, signature=signature, children=children)


def _fold(node: _DedupNode) -> None:
    kept: list[_DedupNode] = []
    for child in node.children:
        for survivor in kept:
            if survivor.signature == child.signature:
                survivor.repeated += 1
                break
        else:
            kept.append(child)
    node.children = kept
    for child in kept:
        _fold(child)


def _folded_diagnostic(error: Interrupt, node: _DedupNode) -> Diagnostic:
    original = error.diagnostic()
    context = dict(original.record.context)
    if node.repeated != 1:
        context["repeated"] = node.repeated
    record = DiagnosticRecord(
        qualifier=original.record.qualifier,
        label=original.record.label,
        context=context,
        causes=tuple(_folded_cause(child) for child in node.children),
    )
    return Diagnostic(record=record, frames=original.frames, message=original.message)


def _folded_cause(node: _DedupNode) -> Cause:
    if isinstance(node.error, Interrupt):
        return Cause(value=_folded_diagnostic(node.error, node), context=node.context)
    context = node.context
    if node.repeated != 1:
        context = {**(context or {}), "repeated": node.repeated}
    return Cause(value=as_cause_value(node.error), context=context)


def message(error: BaseException) -> str:
    """Return the formatted message of an ``Interrupt``, else ``str(error)``."""

    if isinstance(error, Interrupt):
        return error.message
    return str(error)


def create(
    name: str,
    codes: CodeTable | None = None,
    *,
    qualifier: str | None = None,
    base: type[Interrupt] | None = None,
    options: EncoderOptions | None = None,
) -> type[Interrupt]:
    """Create an ``Interrupt`` subclass, deriving from ``base`` when given."""

    parent = base if base is not None else Interrupt
    if not issubclass(parent, Interrupt):
        raise InterruptDefinitionError(
            "INVALID_BASE", f"base must subclass Interrupt: {parent!r}"
        )
    return parent.create(name, codes, qualifier=qualifier, options=options)


__all__ = [
    "CodeDefinition",
    "CodeTable",
    "DEFAULT_LABEL",
    "FORMAT_ERROR",
    "FormatFailure",
    "Interrupt",
    "InterruptDefinitionError",
    "Keyify",
    "create",
    "dedup",
    "message",
]
