from __future__ import annotations

from .compiler import CompiledExpression, EvalContext, compile_expression, evaluate, stringify

__all__ = [
    "CompiledExpression",
    "EvalContext",
    "compile_expression",
    "evaluate",
    "stringify",
]
