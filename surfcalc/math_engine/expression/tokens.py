"""Tokenizer for surface expressions.

Turns text such as ``sin(x)*cos(y) - t^2`` into a flat list of tokens.
Numbers use the usual decimal/exponent notation (``2``, ``.5``, ``1e-3``);
``**`` is read as a synonym of ``^``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List

from surfcalc.exceptions import ExpressionSyntaxError


class TokenKind(str, Enum):
    NUMBER = "number"
    IDENT = "ident"
    OPERATOR = "operator"
    LPAREN = "("
    RPAREN = ")"
    COMMA = ","
    DOT = "."
    END = "end"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int


_TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
  | (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<power>\*\*)
  | (?P<operator>[-+*/^])
  | (?P<lparen>\()
  | (?P<rparen>\))
  | (?P<comma>,)
  | (?P<dot>\.)
    """,
    re.VERBOSE,
)

_GROUP_KINDS = {
    "number": TokenKind.NUMBER,
    "ident": TokenKind.IDENT,
    "operator": TokenKind.OPERATOR,
    "lparen": TokenKind.LPAREN,
    "rparen": TokenKind.RPAREN,
    "comma": TokenKind.COMMA,
    "dot": TokenKind.DOT,
}


def tokenize(text: str) -> List[Token]:
    """Split an expression into tokens, always terminated by an END token.

    Raises:
        ExpressionSyntaxError: On a character that cannot start any token
    """
    tokens: List[Token] = []
    position = 0

    while position < len(text):
        match = _TOKEN_RE.match(text, position)
        if match is None:
            raise ExpressionSyntaxError(
                f"Unexpected character {text[position]!r}",
                position=position,
            )

        group = match.lastgroup
        if group == "power":
            tokens.append(Token(TokenKind.OPERATOR, "^", position))
        elif group != "space" and group is not None:
            tokens.append(Token(_GROUP_KINDS[group], match.group(), position))

        position = match.end()

    tokens.append(Token(TokenKind.END, "", len(text)))
    return tokens
