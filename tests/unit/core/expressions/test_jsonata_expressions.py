from __future__ import annotations

"""
Unit tests for the Marker Expressions.

Verifies JSONata evaluation against the variable environment, the solution
helper functions ($toSuffix, $dependency) and the rendering of results.
"""

import pytest

from solutionkit.core.expressions import EvalContext, compile_expression, evaluate, stringify
from solutionkit.core.expressions.compiler import build_program
from solutionkit.domain.errors import ExpressionCompileError, ExpressionEvalError

ENV = {
    "env": {"tag": "dev", "dependencyTags": {"fmm": "qa", "core": "stable"}, "count": 3},
    "sys": {"solutionId": "acmedev"},
    "items": [{"k": "a", "v": 1}, {"k": "b", "v": 2}, {"k": "c", "v": 3}],
}


def run(source: str, env=None, stable_tag: str = "stable"):
    ctx = EvalContext(root=ENV if env is None else env, stable_tag=stable_tag)
    return evaluate(compile_expression(source, stable_tag), ctx)


def text(source: str, env=None, stable_tag: str = "stable") -> str:
    return stringify(run(source, env, stable_tag))


def test_program_wraps_body_with_functions() -> None:
    """TC-01: Verify the body is compiled inside the helper function block."""
    program = build_program("env.tag", "prod")
    assert program.startswith("( ")
    assert program.endswith("\nenv.tag)")
    assert "$toSuffix := function($val)" in program
    assert "$dependency := function($name)" in program
    assert '"prod"' in program


def test_field_paths() -> None:
    """TC-02: Verify nested fields, root variable and missing paths."""
    assert run("env.tag") == "dev"
    assert run("$$.sys.solutionId") == "acmedev"
    assert run("env.missing") is None
    assert run("nothing.at.all") is None
    assert list(run("items.k")) == ["a", "b", "c"]
    assert run("items[1].k") == "b"


def test_operators() -> None:
    """TC-03: Verify arithmetic, concatenation, comparison and logic."""
    assert text("env.count * 2 + 1") == "7"
    assert run("'v' & env.count") == "v3"
    assert run("'x' & env.missing") == "x"
    assert run("env.tag = 'dev' and env.count >= 3") is True
    assert run("env.tag = 'dev' ? 'dbg' : 'rel'") == "dbg"


def test_library_functions() -> None:
    """TC-04: Verify the standard JSONata functions are available."""
    assert run("$substring(env.tag,0,2)") == "de"
    assert run("$join(['x', env.tag], '-')") == "x-dev"
    assert run("$replace(env.tag,'d','D')") == "Dev"
    assert run("$contains(env.tag,'d') ? 'y':'n'") == "y"
    assert run("$not(false) ? 'y':'n'") == "y"
    assert run("env.tag in ['dev','prod'] ? 'known':'other'") == "known"
    assert run("$uppercase(env.tag)") == "DEV"
    assert run("$lookup(env.dependencyTags, 'fmm')") == "qa"


def test_to_suffix() -> None:
    """TC-05: Verify the suffix is empty for stable and missing tags."""
    assert run("$toSuffix(env.tag)") == "dev"
    assert run("$toSuffix(env.tag)", env={"env": {"tag": "stable"}}) == ""
    assert run("$toSuffix(env.tag)", env={"env": {"tag": ""}}) == ""
    assert run("$toSuffix(env.tag)", env={}) == ""
    assert run("$toSuffix(env.tag)", env={"env": {"tag": "prod"}}, stable_tag="prod") == ""
    assert run("$toSuffix(env.tag)", env={"env": {"tag": "stable"}}, stable_tag="prod") == "stable"


def test_dependency() -> None:
    """TC-06: Verify dependency names carry the suffix of their tag."""
    assert run("$dependency('fmm')") == "fmmqa"
    assert run("$dependency('core')") == "core"
    assert run("$dependency('other')") == "other"
    assert run("$dependency('fmm')", env={"env": {"tag": "dev"}}) == "fmm"


def test_invalid_expressions() -> None:
    """TC-07: Verify syntax errors fail to compile and type errors to evaluate."""
    with pytest.raises(ExpressionCompileError):
        compile_expression("env.")
    with pytest.raises(ExpressionCompileError):
        compile_expression("   ")
    with pytest.raises(ExpressionEvalError):
        run("env.tag + 1")
    with pytest.raises(ExpressionEvalError):
        run("$nope()")


def test_stringify() -> None:
    """TC-08: Verify values are rendered as marker text."""
    assert stringify("a") == "a"
    assert stringify(True) == "true"
    assert stringify(None) == "null"
    assert stringify(4.0) == "4"
    assert stringify(1.5) == "1.5"
    assert stringify({"a": [1, 2]}) == '{"a":[1,2]}'
