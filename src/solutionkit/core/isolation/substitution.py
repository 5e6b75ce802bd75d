from __future__ import annotations

"""
Marker Substitution.

Replaces every '${...}' marker of a raw file buffer with the text of its
evaluated expression, in a single pass over the original bytes.
"""

import logging
from typing import Dict, Tuple

from solutionkit.core.expressions import CompiledExpression, EvalContext, compile_expression, evaluate, stringify
from solutionkit.domain.constants import INERT_MARKER_PREFIX, MARKER_PATTERN
from solutionkit.domain.errors import ExpressionCompileError, ExpressionError, ExpressionEvalError

logger = logging.getLogger(__name__)


def substitute_markers(
        data: bytes,
        ctx: EvalContext,
        file: str,
        cache: Dict[str, CompiledExpression],
) -> Tuple[bytes, int]:
    """
    Resolve the markers of a buffer.

    Markers whose trimmed body starts with '.' are left untouched.

    Args:
        data: Raw file contents.
        ctx: Evaluation context holding the variable environment.
        file: Root-relative file path, attached to errors.
        cache: Compiled expressions of the running operation, keyed by body.

    Returns:
        Tuple[bytes, int]: New contents and the number of markers replaced.

    Raises:
        ExpressionCompileError: If a marker body cannot be compiled.
        ExpressionEvalError: If a marker fails to evaluate or yields nothing.
    """
    replaced = 0

    def _replace(m) -> bytes:
        nonlocal replaced
        raw = m.group(1)
        try:
            body = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ExpressionCompileError(f"{file}: marker is not valid UTF-8: {e}", file=file, expr=repr(raw)) from e

        if body.strip().startswith(INERT_MARKER_PREFIX):
            return m.group(0)

        value = _evaluate_body(body, ctx, file, cache)
        replaced += 1
        logger.debug(f"{file}: replaced {m.group(0)!r}")
        return stringify(value).encode("utf-8")

    result = MARKER_PATTERN.sub(_replace, data)
    return result, replaced


def _evaluate_body(body: str, ctx: EvalContext, file: str, cache: Dict[str, CompiledExpression]):
    expr = cache.get(body)
    if expr is None:
        try:
            expr = compile_expression(body, ctx.stable_tag)
        except ExpressionError as e:
            raise ExpressionCompileError(f"{file}: cannot compile expression {body!r}: {e}", file=file, expr=body) from e
        cache[body] = expr

    try:
        value = evaluate(expr, ctx)
    except ExpressionError as e:
        raise ExpressionEvalError(f"{file}: cannot evaluate expression {body!r}: {e}", file=file, expr=body) from e

    if value is None:
        raise ExpressionEvalError(f"{file}: expression {body!r} evaluated to nothing", file=file, expr=body)
    return value
