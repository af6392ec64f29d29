import math

import pytest

from eqsolve.context import DEFAULT_CONSTANTS, Context, is_identifier


def test_default_context_preloads_constants() -> None:
    ctx = Context.default()
    assert ctx["pi"] == math.pi
    assert ctx["e"] == math.e
    assert ctx["phi"] == pytest.approx(1.6180339887)
    assert set(DEFAULT_CONSTANTS) <= set(ctx)
    assert len(Context.empty()) == 0


def test_add_const_overwrites_and_is_idempotent() -> None:
    ctx = Context.empty()
    ctx.add_const("k", 2)
    ctx.add_const("k", 2)
    assert ctx.as_dict() == {"k": 2.0}
    assert isinstance(ctx["k"], float)

    ctx.add_const("k", 5.5)
    assert ctx.get("k") == 5.5
    assert ctx.get("missing") is None
    assert ctx.names() == ["k"]


@pytest.mark.parametrize("name", ["1x", "x-y", "", "a b", "ä"])
def test_add_const_rejects_bad_identifiers(name: str) -> None:
    with pytest.raises(ValueError, match="Invalid identifier"):
        Context.empty().add_const(name, 1.0)


def test_add_const_rejects_function_names() -> None:
    with pytest.raises(ValueError, match="built-in function"):
        Context.empty().add_const("sin", 1.0)


def test_copy_is_independent() -> None:
    ctx = Context({"a": 1.0})
    clone = ctx.copy()
    clone.add_const("b", 2.0)
    assert "b" in clone
    assert "b" not in ctx
    assert repr(clone) == "Context(2 bindings)"


def test_is_identifier() -> None:
    assert is_identifier("x_1")
    assert is_identifier("_tmp")
    assert not is_identifier("2x")
    assert not is_identifier(3)
