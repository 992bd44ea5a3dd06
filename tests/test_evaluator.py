"""Tests for the evaluator."""

import sys

import pytest
from mfl.evaluator import Evaluator, evaluate_program, pretty_print_value
from mfl.parser import parse
from mfl.syntax import BinaryOp, Literal, Val
from mfl.errors import EvalError, ErrorKind
from mfl.core import Environment, VBool, VClosure, VInt, VList, VReal


def eval_program(source: str):
    """Helper to evaluate a program without type checking it first."""
    return evaluate_program(parse(source))


def ints(*values):
    return VList(tuple(VInt(v) for v in values))


def test_eval_literals():
    assert eval_program("42;") == VInt(42)
    assert eval_program("2.5;") == VReal(2.5)
    assert eval_program("true;") == VBool(True)
    assert eval_program("[];") == VList()


def test_empty_program():
    assert eval_program("") is None
    assert pretty_print_value(None) == "()"


def test_integer_arithmetic():
    assert eval_program("3 + 5 * 2;") == VInt(13)
    assert eval_program("7 / 2;") == VInt(3)
    assert eval_program("7 mod 3;") == VInt(1)
    assert eval_program("-1 * 4;") == VInt(-4)


def test_integer_division_truncates_toward_zero():
    assert eval_program("0 - 7 / 2;") == VInt(-3)
    assert eval_program("(0 - 7) / 2;") == VInt(-3)
    assert eval_program("(0 - 7) mod 2;") == VInt(-1)
    assert eval_program("7 mod (0 - 2);") == VInt(1)


def test_real_arithmetic():
    assert eval_program("1.5 + 2.25;") == VReal(3.75)
    assert eval_program("7.0 / 2.0;") == VReal(3.5)
    assert eval_program("7.5 mod 2.0;") == VReal(1.5)


def test_division_by_zero():
    with pytest.raises(EvalError) as exc_info:
        eval_program("1 / 0;")
    assert exc_info.value.context.kind == ErrorKind.DIVISION_BY_ZERO

    with pytest.raises(EvalError):
        eval_program("1.0 mod 0.0;")


def test_mixed_mode_arithmetic_fails():
    with pytest.raises(EvalError) as exc_info:
        eval_program("1 + 2.0;")
    assert exc_info.value.context.kind == ErrorKind.MIXED_MODE
    assert "Mixed mode" in exc_info.value.message


def test_relational():
    assert eval_program("3 > 2;") == VBool(True)
    assert eval_program("2.0 <= 1.5;") == VBool(False)
    assert eval_program("5 != 3;") == VBool(True)
    assert eval_program("2 = 2;") == VBool(True)


def test_logical_short_circuit():
    """The right operand is not evaluated when the left decides."""
    assert eval_program("false and hd([]) = 1;") == VBool(False)
    assert eval_program("true or 1 / 0 = 1;") == VBool(True)
    assert eval_program("true and false;") == VBool(False)
    assert eval_program("not false;") == VBool(True)


def test_if_evaluates_one_branch():
    assert eval_program("if 3 < 2 then 1 / 0 else 5;") == VInt(5)
    with pytest.raises(EvalError):
        eval_program("if 1 then 2 else 3;")


def test_lists():
    assert eval_program("[1, 2, 3];") == ints(1, 2, 3)
    assert eval_program("hd([4, 5]);") == VInt(4)
    assert eval_program("tl([4, 5]);") == ints(5)
    assert eval_program("len([4, 5]);") == VInt(2)
    assert eval_program("[1] ++ [2, 3];") == ints(1, 2, 3)
    assert eval_program("[] ++ [2.0];") == VList((VReal(2.0),))


def test_tail_of_single_element_is_empty():
    assert eval_program("tl([1]);") == VList()


def test_head_and_tail_of_empty_list_fail():
    for source in ("hd([]);", "tl([]);"):
        with pytest.raises(EvalError) as exc_info:
            eval_program(source)
        assert exc_info.value.context.kind == ErrorKind.EMPTY_LIST


def test_mixed_mode_list_fails():
    with pytest.raises(EvalError) as exc_info:
        eval_program("[1, 2.0];")
    assert exc_info.value.context.kind == ErrorKind.MIXED_MODE

    with pytest.raises(EvalError):
        eval_program("[1] ++ [true];")


def test_nested_list_literal_fails():
    with pytest.raises(EvalError) as exc_info:
        eval_program("[[1], [2]];")
    assert exc_info.value.context.kind == ErrorKind.NESTED_LIST


def test_len_requires_list():
    with pytest.raises(EvalError) as exc_info:
        eval_program("len(3);")
    assert exc_info.value.context.kind == ErrorKind.NOT_A_LIST


def test_lambda_and_application():
    closure = eval_program("fn x -> x + 1;")
    assert isinstance(closure, VClosure)
    assert pretty_print_value(closure) == "<closure x -> ...>"
    assert eval_program("(fn x -> x + 1)(41);") == VInt(42)


def test_applying_a_non_function_fails():
    with pytest.raises(EvalError) as exc_info:
        eval_program("val n := 3; n(4);")
    assert exc_info.value.context.kind == ErrorKind.NOT_A_FUNCTION


def test_closure_captures_defining_environment():
    """A closure resolves names in the scope it was created in."""
    source = """
    val k := 10;
    val addK := fn x -> let k := 1 in x + k;
    val make := fn k -> fn x -> x + k;
    val add5 := make(5);
    add5(addK(100));
    """
    assert eval_program(source) == VInt(106)


def test_closure_in_nested_scope_ignores_later_vals():
    """A val defined after a closure is created is not visible inside it."""
    source = """
    val f := let a := 1 in fn x -> g(x);
    val g := fn y -> y + 100;
    f(1);
    """
    with pytest.raises(EvalError) as exc_info:
        eval_program(source)
    assert exc_info.value.context.kind == ErrorKind.UNKNOWN_VARIABLE


def test_let_scoping():
    assert eval_program("let x := 2 in let x := x * 10 in x + 1;") == VInt(21)
    with pytest.raises(EvalError) as exc_info:
        eval_program("let y := 2 in y; y;")
    assert exc_info.value.context.kind == ErrorKind.UNKNOWN_VARIABLE


def test_val_returns_name_and_defines():
    evaluator = Evaluator()
    assert evaluator.eval_program(parse("val x := 3 + 5 * 2;")) == "x"
    assert evaluator.env.lookup("x") == VInt(13)
    assert evaluator.eval_program(parse("x * 2;")) == VInt(26)


def test_val_redefinition_fails():
    with pytest.raises(EvalError) as exc_info:
        eval_program("val x := 1; val x := 2;")
    assert exc_info.value.context.kind == ErrorKind.DUPLICATE_DEFINITION


def test_recursive_val():
    source = """
    val fact := fn n -> if n = 0 then 1 else n * fact(n - 1);
    fact(10);
    """
    assert eval_program(source) == VInt(3628800)


def test_map_preserves_length_and_order():
    assert eval_program("map((fn x -> x * 10) [3, 1, 2]);") == ints(30, 10, 20)
    assert eval_program("map((fn x -> x) []);") == VList()


def test_fold_association():
    """foldl nests to the left, foldr to the right."""
    assert eval_program("foldl((fn acc -> fn x -> acc - x) 10 [1, 2, 3]);") == VInt(4)
    assert eval_program("foldr((fn x -> fn acc -> x - acc) 10 [1, 2, 3]);") == VInt(-8)
    assert eval_program("foldl((fn a -> fn b -> a + b) 7 []);") == VInt(7)


def test_fold_requires_curried_function():
    with pytest.raises(EvalError) as exc_info:
        eval_program("foldl((fn x -> x) 0 [1]);")
    assert exc_info.value.context.kind == ErrorKind.NOT_CURRIED


def test_runaway_recursion_is_an_eval_error():
    limit = sys.getrecursionlimit()
    sys.setrecursionlimit(1000)
    try:
        with pytest.raises(EvalError) as exc_info:
            eval_program("val loop := fn n -> loop(n + 1); loop(0);")
    finally:
        sys.setrecursionlimit(limit)
    assert exc_info.value.context.kind == ErrorKind.RECURSION_DEPTH


def test_evaluate_in_given_environment():
    env = Environment({"base": VInt(100)})
    assert evaluate_program(parse("base + 1;"), env) == VInt(101)


def test_fork_discards_definitions():
    evaluator = Evaluator()
    fork = evaluator.fork()
    fork.eval_program(parse("val x := 1;"))

    assert fork.env.lookup("x") == VInt(1)
    assert evaluator.env.lookup("x") is None


def test_trace_prints_results(capsys):
    Evaluator(trace=True).eval_program(parse("val x := 2; x + 1;"))
    out = capsys.readouterr().out
    assert "eval:" in out
    assert "x" in out
    assert "3" in out


def test_program_evaluate_guards_recursion():
    program = parse("val loop := fn n -> loop(n + 1); loop(0);")
    limit = sys.getrecursionlimit()
    sys.setrecursionlimit(1000)
    try:
        with pytest.raises(EvalError) as exc_info:
            program.evaluate(Environment())
    finally:
        sys.setrecursionlimit(limit)
    assert exc_info.value.context.kind == ErrorKind.RECURSION_DEPTH


def test_program_evaluate_reports_each_result():
    results = []
    value = parse("val x := 2; x + 1;").evaluate(Environment(), results.append)

    assert value == VInt(3)
    assert results == ["x", VInt(3)]


def test_nested_val_is_rejected():
    inner = Val("x", Literal(VInt(1)))
    with pytest.raises(EvalError) as exc_info:
        BinaryOp("+", inner, Literal(VInt(2))).evaluate(Environment())
    assert exc_info.value.context.kind == ErrorKind.NOT_A_VALUE
