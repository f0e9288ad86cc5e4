"""Expression compiler: text -> tokens -> AST -> total numeric function."""

from surfcalc.math_engine.expression.compiler import (
    NAN,
    BoundExpression,
    CompiledExpression,
    compile_expression,
)
from surfcalc.math_engine.expression.parser import (
    CONSTANTS,
    FUNCTION_ARITY,
    parse_expression,
    referenced_names,
)
from surfcalc.math_engine.expression.tokens import Token, TokenKind, tokenize

__all__ = [
    "NAN",
    "BoundExpression",
    "CompiledExpression",
    "compile_expression",
    "CONSTANTS",
    "FUNCTION_ARITY",
    "parse_expression",
    "referenced_names",
    "Token",
    "TokenKind",
    "tokenize",
]
