"""Decoded diagnostic tree nodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal, TypeAlias

from interrupt.codec.frames import Frame
from interrupt.codec.serializer import JSONValue
from interrupt.constants import QUALIFIED_SEPARATOR

INTERRUPT_NODE_TYPE: Final[str] = "Interrupt"


@dataclass(frozen=True, slots=True)
class InterruptNode:
    """A decoded composite blob; ``contexts[i]`` pairs with ``causes[i]``."""

    qualifier: str
    name: str
    context: JSONValue
    causes: tuple[DecodedNode, ...]
    contexts: tuple[JSONValue, ...]
    stack: tuple[Frame, ...]
    type: Literal["Interrupt"] = "Interrupt"

    @property
    def qualified(self) -> str:
        return f"{self.qualifier}{QUALIFIED_SEPARATOR}{self.name}"

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "type": self.type,
            "qualifier": self.qualifier,
            "name": self.name,
            "context": self.context,
            "causes": [node_to_dict(cause) for cause in self.causes],
            "contexts": list(self.contexts),
            "stack": [dict(frame.to_dict()) for frame in self.stack],
        }


@dataclass(frozen=True, slots=True)
class ForeignNode:
    """A decoded non-diagnostic error: ``Type: message`` plus frames."""

    type: str
    message: str
    stack: tuple[Frame, ...]

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "type": self.type,
            "message": self.message,
            "stack": [dict(frame.to_dict()) for frame in self.stack],
        }


DecodedNode: TypeAlias = InterruptNode | ForeignNode | str


def node_to_dict(node: DecodedNode | None) -> JSONValue:
    """Convert a decoded node (or raw leaf) to plain JSON data."""

    if node is None or isinstance(node, str):
        return node
    return node.to_dict()


__all__ = [
    "DecodedNode",
    "ForeignNode",
    "INTERRUPT_NODE_TYPE",
    "InterruptNode",
    "node_to_dict",
]
