"""Pratt parser producing an immutable AST for surface expressions.

Grammar, loosest to tightest binding::

    expr    := expr ('+' | '-') expr
             | expr ('*' | '/') expr
             | ('+' | '-') expr
             | expr '^' expr              (right associative)
             | primary
    primary := NUMBER | name | name '(' args ')' | '(' expr ')'
    name    := IDENT | 'math' '.' IDENT

Unary minus binds looser than ``^``, so ``-x^2`` is ``-(x^2)`` and
``2^-1`` is ``0.5``. Function and constant names are case-insensitive;
the variables ``x``, ``y`` and ``t`` are not.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from surfcalc.exceptions import ExpressionSyntaxError
from surfcalc.math_engine.expression.tokens import Token, TokenKind, tokenize

# name -> (min args, max args or None for variadic)
FUNCTION_ARITY: Dict[str, Tuple[int, Optional[int]]] = {
    "sin": (1, 1),
    "cos": (1, 1),
    "tan": (1, 1),
    "asin": (1, 1),
    "acos": (1, 1),
    "atan": (1, 1),
    "atan2": (2, 2),
    "sqrt": (1, 1),
    "abs": (1, 1),
    "pow": (2, 2),
    "exp": (1, 1),
    "log": (1, 1),
    "ln": (1, 1),
    "min": (1, None),
    "max": (1, None),
    "floor": (1, 1),
    "ceil": (1, 1),
    "round": (1, 1),
    "trunc": (1, 1),
    "sinh": (1, 1),
    "cosh": (1, 1),
    "tanh": (1, 1),
    "hypot": (1, None),
    "sign": (1, 1),
}

CONSTANTS: Dict[str, float] = {
    "pi": math.pi,
    "tau": 2 * math.pi,
    "e": math.e,
}

VARIABLES_BY_ARITY: Dict[int, FrozenSet[str]] = {
    2: frozenset({"x", "y"}),
    3: frozenset({"x", "y", "t"}),
}

QUALIFIER = "math"


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class Constant:
    name: str
    value: float


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Call:
    name: str
    args: Tuple["Node", ...]


Node = Union[Number, Variable, Constant, UnaryOp, BinaryOp, Call]

# Left binding powers of infix operators
_INFIX_POWER = {"+": 10, "-": 10, "*": 20, "/": 20, "^": 40}
_PREFIX_POWER = 30


class Parser:
    """Recursive Pratt parser over a token list."""

    def __init__(self, tokens: List[Token], variables: FrozenSet[str]):
        self._tokens = tokens
        self._index = 0
        self._variables = variables

    @property
    def _current(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.kind is not TokenKind.END:
            self._index += 1
        return token

    def _expect(self, kind: TokenKind) -> Token:
        token = self._current
        if token.kind is not kind:
            found = token.text or "end of expression"
            raise ExpressionSyntaxError(
                f"Expected {kind.value!r} but found {found!r}",
                position=token.position,
            )
        return self._advance()

    def parse(self) -> Node:
        node = self.expression(0)
        token = self._current
        if token.kind is not TokenKind.END:
            raise ExpressionSyntaxError(
                f"Unexpected {token.text!r} after complete expression",
                position=token.position,
            )
        return node

    def expression(self, min_power: int) -> Node:
        left = self._prefix()

        while True:
            token = self._current
            if token.kind is not TokenKind.OPERATOR:
                break
            power = _INFIX_POWER[token.text]
            if power <= min_power:
                break
            self._advance()
            # '^' is right associative: parse its right side one notch looser
            right_power = power - 1 if token.text == "^" else power
            right = self.expression(right_power)
            left = BinaryOp(token.text, left, right)

        return left

    def _prefix(self) -> Node:
        token = self._advance()

        if token.kind is TokenKind.NUMBER:
            try:
                return Number(float(token.text))
            except ValueError as e:
                raise ExpressionSyntaxError(
                    f"Invalid number {token.text!r}", position=token.position
                ) from e

        if token.kind is TokenKind.OPERATOR and token.text in ("+", "-"):
            operand = self.expression(_PREFIX_POWER)
            return UnaryOp(token.text, operand)

        if token.kind is TokenKind.LPAREN:
            inner = self.expression(0)
            self._expect(TokenKind.RPAREN)
            return inner

        if token.kind is TokenKind.IDENT:
            return self._name(token)

        found = token.text or "end of expression"
        raise ExpressionSyntaxError(f"Unexpected {found!r}", position=token.position)

    def _name(self, token: Token) -> Node:
        qualified = False
        if token.text.lower() == QUALIFIER and self._current.kind is TokenKind.DOT:
            self._advance()
            token = self._expect(TokenKind.IDENT)
            qualified = True

        name = token.text
        key = name.lower()

        if self._current.kind is TokenKind.LPAREN:
            if key not in FUNCTION_ARITY:
                raise ExpressionSyntaxError(
                    f"Unknown function {name!r}", position=token.position
                )
            self._advance()
            args = self._arguments()
            self._check_arity(key, args, token)
            return Call(key, tuple(args))

        if key in CONSTANTS:
            return Constant(key, CONSTANTS[key])

        if not qualified and name in self._variables:
            return Variable(name)

        if key in FUNCTION_ARITY:
            raise ExpressionSyntaxError(
                f"Function {name!r} must be called with arguments",
                position=token.position,
            )
        raise ExpressionSyntaxError(
            f"Unknown identifier {name!r}", position=token.position
        )

    def _arguments(self) -> List[Node]:
        args: List[Node] = []
        if self._current.kind is TokenKind.RPAREN:
            self._advance()
            return args

        while True:
            args.append(self.expression(0))
            if self._current.kind is TokenKind.COMMA:
                self._advance()
                continue
            self._expect(TokenKind.RPAREN)
            return args

    @staticmethod
    def _check_arity(key: str, args: List[Node], token: Token) -> None:
        low, high = FUNCTION_ARITY[key]
        if len(args) < low or (high is not None and len(args) > high):
            expected = str(low) if low == high else f"at least {low}"
            raise ExpressionSyntaxError(
                f"{key}() takes {expected} argument(s), got {len(args)}",
                position=token.position,
            )


def parse_expression(text: str, arity: int = 3) -> Node:
    """Parse expression text into an AST.

    An empty or whitespace-only expression parses to the constant 0.

    Args:
        text: Expression source
        arity: 2 for f(x, y), 3 for f(x, y, t)

    Raises:
        ExpressionSyntaxError: If the text is malformed or uses unknown names
    """
    if arity not in VARIABLES_BY_ARITY:
        raise ExpressionSyntaxError(f"Unsupported arity {arity}; expected 2 or 3")
    if not text.strip():
        return Number(0.0)
    return Parser(tokenize(text), VARIABLES_BY_ARITY[arity]).parse()


def referenced_names(node: Node) -> Dict[str, List[str]]:
    """Collect the variables, constants and functions used by an AST."""
    variables: set = set()
    constants: set = set()
    functions: set = set()
    stack: List[Node] = [node]

    while stack:
        current = stack.pop()
        if isinstance(current, Variable):
            variables.add(current.name)
        elif isinstance(current, Constant):
            constants.add(current.name)
        elif isinstance(current, UnaryOp):
            stack.append(current.operand)
        elif isinstance(current, BinaryOp):
            stack.extend((current.left, current.right))
        elif isinstance(current, Call):
            functions.add(current.name)
            stack.extend(current.args)

    return {
        "variables": sorted(variables),
        "constants": sorted(constants),
        "functions": sorted(functions),
    }
