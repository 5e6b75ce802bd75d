from __future__ import annotations

"""
Marker Expressions.

Compiles marker bodies into JSONata programs. Every body is wrapped in a
block that first defines the solution helper functions:
- $toSuffix(value): the value as text, or "" for empty, null and the stable tag.
- $dependency(name): the name followed by the suffix of its dependency tag.
"""

import json
import math
from dataclasses import dataclass
from typing import Any

import jsonata

from solutionkit.domain.constants import STABLE_TAG
from solutionkit.domain.errors import ExpressionCompileError, ExpressionEvalError

# -----------------------------------------------------------------------------
# HELPER FUNCTIONS
# -----------------------------------------------------------------------------

SOLUTION_FUNCTIONS = """
$toSuffix := function($val) {
    $exists($val) and $val != "" and $val != 'null' and $val != %(stable)s ? $string($val) : ""
};
$dependency := function($name) {
    $name & $toSuffix($string($lookup(env.dependencyTags, $name)))
};
"""


def build_program(body: str, stable_tag: str = STABLE_TAG) -> str:
    """Wrap a marker body in a block that defines the helper functions."""
    functions = SOLUTION_FUNCTIONS % {"stable": json.dumps(stable_tag)}
    return "( " + functions + "\n" + body + ")"


# -----------------------------------------------------------------------------
# COMPILE & EVALUATE
# -----------------------------------------------------------------------------

@dataclass
class EvalContext:
    """
    Per-evaluation state.

    Attributes:
        root: The variable environment, input document of every expression.
        stable_tag: Tag reduced to an empty suffix by $toSuffix.
    """
    root: Any
    stable_tag: str = STABLE_TAG


@dataclass(frozen=True)
class CompiledExpression:
    body: str
    program: Any


def compile_expression(body: str, stable_tag: str = STABLE_TAG) -> CompiledExpression:
    """
    Compile a marker body.

    Raises:
        ExpressionCompileError: If the body is not a valid JSONata expression.
    """
    if not body.strip():
        raise ExpressionCompileError("empty expression", expr=body)
    try:
        program = jsonata.Jsonata(build_program(body, stable_tag))
    except Exception as e:
        raise ExpressionCompileError(str(e), expr=body) from e
    return CompiledExpression(body=body, program=program)


def evaluate(expr: CompiledExpression, ctx: EvalContext) -> Any:
    """
    Evaluate a compiled expression against the environment.

    Returns:
        Any: The result, or None when the expression matched nothing.

    Raises:
        ExpressionEvalError: If the evaluation fails.
    """
    try:
        return expr.program.evaluate(ctx.root)
    except Exception as e:
        raise ExpressionEvalError(str(e), expr=expr.body) from e


# -----------------------------------------------------------------------------
# RESULT TEXT
# -----------------------------------------------------------------------------

def format_number(value: Any) -> str:
    if isinstance(value, float):
        if math.isfinite(value) and value == int(value) and abs(value) < 1e21:
            return str(int(value))
        return format(value, ".15g")
    return str(value)


def stringify(value: Any) -> str:
    """
    Convert a value to the text substituted for a marker.

    Strings are used verbatim; other values use their JSON form, with
    integral numbers written without a fractional part.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return format_number(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
