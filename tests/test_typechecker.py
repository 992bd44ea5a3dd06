"""Tests for the type checker."""

import pytest
from mfl.parser import parse
from mfl.typechecker import (
    Inferencer, TypeChecker, TypeEnvironment, format_type, type_check_program,
)
from mfl.errors import ErrorKind, TypeCheckError, enable_trace, disable_trace, clear_trace, get_trace
from mfl.core import BOOL, INT, NUMERIC, REAL, TFun, TList, TVar


def type_of(source: str) -> str:
    """Helper returning the displayed type of a program's last statement."""
    return format_type(type_check_program(parse(source)))


# Unification

def test_unify_reflexive():
    inferencer = Inferencer()
    for type_val in (INT, TList(REAL), TFun(TVar(0), TList(TVar(1)))):
        inferencer.unify(type_val, type_val, "same")
    assert len(inferencer.substitution) == 0


def test_unify_binds_first_variable():
    inferencer = Inferencer()
    a, b = TVar(0), TVar(1)
    inferencer.unify(a, b, "vars")

    assert inferencer.substitution.lookup(a) == b
    assert inferencer.substitution.lookup(b) is None


def test_unify_structures():
    inferencer = Inferencer()
    a, b = TVar(0), TVar(1)
    inferencer.unify(TFun(a, TList(b)), TFun(INT, TList(REAL)), "fun")

    assert inferencer.apply(a) == INT
    assert inferencer.apply(b) == REAL


def test_unify_is_commutative_in_result():
    left, right = Inferencer(), Inferencer()
    a = TVar(0)
    left.unify(TList(a), TList(BOOL), "l")
    right.unify(TList(BOOL), TList(a), "r")

    assert left.apply(a) == right.apply(a) == BOOL


def test_unify_mismatch_carries_label():
    with pytest.raises(TypeCheckError) as exc_info:
        Inferencer().unify(INT, REAL, "operands must agree.")

    error = exc_info.value
    assert error.message == "Unification error: operands must agree."
    assert error.context.kind == ErrorKind.TYPE_MISMATCH
    assert (error.context.expected, error.context.actual) == ("int", "real")


def test_unify_list_against_function_fails():
    with pytest.raises(TypeCheckError):
        Inferencer().unify(TList(INT), TFun(INT, INT), "shape")


def test_occurs_check():
    a = TVar(0)
    with pytest.raises(TypeCheckError) as exc_info:
        Inferencer().unify(a, TList(a), "self application")
    assert exc_info.value.context.kind == ErrorKind.INFINITE_TYPE


def test_numeric_constraint_rejects_bool():
    with pytest.raises(TypeCheckError):
        Inferencer().unify(TVar(0, NUMERIC), BOOL, "numeric")


def test_numeric_constraint_survives_variable_binding():
    inferencer = Inferencer()
    num, plain = TVar(0, NUMERIC), TVar(1)
    inferencer.unify(num, plain, "keep constraint")

    # the unconstrained variable was bound, so num is still free and constrained
    assert inferencer.apply(plain) == num
    with pytest.raises(TypeCheckError):
        inferencer.unify(plain, BOOL, "still numeric")


def test_parameters_unify_before_results():
    """The first failing component decides the reported types."""
    with pytest.raises(TypeCheckError) as exc_info:
        Inferencer().unify(TFun(INT, BOOL), TFun(REAL, INT), "fun")
    assert exc_info.value.context.expected == "int"
    assert exc_info.value.context.actual == "real"


def test_fresh_variables_are_shared_across_scopes():
    root = TypeEnvironment()
    first = root.fresh_variable()
    child = root.extend("x", INT)
    second = child.fresh_variable()
    third = root.fresh_variable(NUMERIC)

    assert len({first.id, second.id, third.id}) == 3
    assert third.constraint is NUMERIC
    assert root.lookup("x") is None
    assert child.lookup("x") == INT


# Inference rules

def test_literals():
    assert type_of("42;") == "int"
    assert type_of("4.2;") == "real"
    assert type_of("true;") == "bool"


def test_arithmetic_and_relational():
    assert type_of("3 + 5 * 2;") == "int"
    assert type_of("1.5 / 2.0;") == "real"
    assert type_of("7 mod 2;") == "int"
    assert type_of("2 < 3 and 2 = 2;") == "bool"
    assert type_of("not (1 > 2);") == "bool"


def test_no_implicit_coercion():
    with pytest.raises(TypeCheckError):
        type_of("1 + 2.0;")


def test_logical_requires_bool():
    with pytest.raises(TypeCheckError) as exc_info:
        type_of("1 and true;")
    assert "'and' requires bool operands." in exc_info.value.message


def test_lists():
    assert type_of("[1, 2, 3];") == "[ int ]"
    assert type_of("[];") == "[ t0 ]"
    assert type_of("hd([2.0]);") == "real"
    assert type_of("tl([true]);") == "[ bool ]"
    assert type_of("len([5, 7]) < 4;") == "bool"
    assert type_of("[1] ++ [2];") == "[ int ]"


def test_mixed_list_is_a_type_error():
    with pytest.raises(TypeCheckError) as exc_info:
        type_of("[1, 2.0];")
    assert "All elements must be of the same type." in exc_info.value.message


def test_if_branches_must_agree():
    assert type_of("if true then 1 else 2;") == "int"
    with pytest.raises(TypeCheckError):
        type_of("if true then 1 else false;")
    with pytest.raises(TypeCheckError):
        type_of("if 1 then 1 else 2;")


def test_lambda_and_application():
    assert type_of("fn x -> x;") == "(t0 -> t0)"
    assert type_of("fn x -> x + 1;") == "(int -> int)"
    assert type_of("fn f -> fn x -> f(x);") == "((t0 -> t1) -> (t0 -> t1))"
    assert type_of("(fn x -> x * x)(3.0);") == "real"


def test_applying_a_non_function():
    with pytest.raises(TypeCheckError) as exc_info:
        type_of("val n := 3; n(4);")
    assert "function application" in exc_info.value.message


def test_self_application_is_infinite():
    with pytest.raises(TypeCheckError) as exc_info:
        type_of("fn x -> x(x);")
    assert exc_info.value.context.kind == ErrorKind.INFINITE_TYPE


def test_let_scoping():
    assert type_of("let x := 2 in x * x;") == "int"
    with pytest.raises(TypeCheckError) as exc_info:
        type_of("let x := 2 in x; x;")
    assert exc_info.value.context.kind == ErrorKind.UNKNOWN_VARIABLE


def test_unbound_identifier_suggests_names():
    with pytest.raises(TypeCheckError) as exc_info:
        type_of("val total := 1; totl + 1;")
    assert exc_info.value.context.similar_names == ["total"]


def test_val_returns_bound_type():
    checker = TypeChecker()
    result = checker.check_program(parse("val x := 3 + 5 * 2; val y := 4 + x; x > y;"))

    assert result == BOOL
    assert checker.type_of_name("y") == INT
    assert checker.type_of_name("z") is None


def test_recursive_val():
    source = "val fib := fn n -> if n = 1 or n = 2 then 1 else fib(n - 1) + fib(n - 2);"
    assert type_of(source) == "(int -> int)"
    assert type_of(source + " fib(4);") == "int"


def test_recursive_misuse_is_reported():
    with pytest.raises(TypeCheckError):
        type_of("val f := fn x -> f(true) + x;")


def test_map_and_folds():
    assert type_of("map((fn x -> x + 1) [1, 3, 5]);") == "[ int ]"
    assert type_of("map((fn x -> x < 2.0) [1.0]);") == "[ bool ]"
    assert type_of("foldl((fn x -> fn y -> x + y) 0 [1, 3, 5]);") == "int"
    assert type_of("foldr((fn x -> fn y -> (x + y)/2.0) 54.0 [12.0, 4.0]);") == "real"
    assert type_of("foldr((fn x -> fn acc -> [x] ++ acc) [] [true]);") == "[ bool ]"


def test_fold_labels():
    with pytest.raises(TypeCheckError) as exc_info:
        type_of("foldl((fn x -> x) 0 [1]);")
    assert "foldl: function must have type a -> b -> a." in exc_info.value.message

    with pytest.raises(TypeCheckError) as exc_info:
        type_of("foldr((fn x -> fn y -> x) 0 5);")
    assert "foldr: third argument must be a list." in exc_info.value.message


def test_map_rejects_non_list():
    with pytest.raises(TypeCheckError) as exc_info:
        type_of("map((fn x -> x) 3);")
    assert exc_info.value.message.startswith("Unification error: map:")


def test_session_keeps_definitions():
    checker = TypeChecker()
    checker.check_program(parse("val inc := fn x -> x + 1;"))
    assert checker.check_program(parse("inc(41);")) == INT
    assert checker.global_types() == {"inc": TFun(INT, INT)}


def test_fork_is_independent():
    checker = TypeChecker()
    fork = checker.fork()
    fork.check_program(parse("val x := 1;"))

    assert checker.type_of_name("x") is None
    assert fork.type_of_name("x") == INT


def test_derivation_trace():
    clear_trace()
    enable_trace()
    try:
        type_of("val double := fn x -> x * 2;")
        steps = get_trace().steps
    finally:
        disable_trace()
        clear_trace()

    assert [step.description for step in steps] == ["fn x -> ...", "val double"]
    assert steps[-1].result == "(int -> int)"
