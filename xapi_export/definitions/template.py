"""
Typed URL/parameter templates.

A template such as ``/Pbx.GetCallLogData(periodFrom={fromZulu},top=1000)`` is
split into literal segments and named binding references. Parsing fails for
any ``{placeholder}`` that is not one of the request binding keys, so a bad
template is caught when definitions are built, not when a request is sent.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from xapi_export.errors import UnresolvedPlaceholderError

logger = logging.getLogger(__name__)

BINDING_KEYS: FrozenSet[str] = frozenset(
    {"from", "to", "fromZulu", "toZulu", "top", "skip", "queuedn"}
)

PLACEHOLDER_PATTERN = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass(frozen=True)
class Literal:
    """Static text copied verbatim into the rendered value."""

    text: str


@dataclass(frozen=True)
class Binding:
    """Reference to a request-time binding key."""

    key: str


Token = Union[Literal, Binding]


def find_placeholders(text: str) -> List[str]:
    """Return all placeholder names in ``text``, in order of appearance."""
    return PLACEHOLDER_PATTERN.findall(text)


def unresolved_placeholders(text: str) -> List[str]:
    """Return placeholder names that are not binding keys."""
    return [name for name in find_placeholders(text) if name not in BINDING_KEYS]


class Template:
    """Immutable sequence of literal and binding tokens."""

    def __init__(self, tokens: Tuple[Token, ...], source: str = ""):
        self.tokens = tokens
        self.source = source

    @classmethod
    def parse(cls, text: str) -> "Template":
        """
        Parse a raw template string

        Raises:
            UnresolvedPlaceholderError: If a placeholder is not a binding key
        """
        unresolved = unresolved_placeholders(text)
        if unresolved:
            raise UnresolvedPlaceholderError(text, unresolved)

        tokens: List[Token] = []
        position = 0
        for match in PLACEHOLDER_PATTERN.finditer(text):
            if match.start() > position:
                tokens.append(Literal(text[position:match.start()]))
            tokens.append(Binding(match.group(1)))
            position = match.end()
        if position < len(text):
            tokens.append(Literal(text[position:]))

        return cls(tuple(tokens), source=text)

    @property
    def binding_keys(self) -> FrozenSet[str]:
        return frozenset(t.key for t in self.tokens if isinstance(t, Binding))

    def render(self, values: Dict[str, Optional[str]]) -> str:
        """Substitute binding values; a missing or None value renders as an empty string."""
        parts = []
        for token in self.tokens:
            if isinstance(token, Literal):
                parts.append(token.text)
            else:
                value = values.get(token.key)
                parts.append("" if value is None else str(value))
        return "".join(parts)

    def __eq__(self, other):
        if isinstance(other, Template):
            return self.tokens == other.tokens
        return False

    def __hash__(self):
        return hash(self.tokens)

    def __repr__(self):
        return f"Template({self.source!r})"
