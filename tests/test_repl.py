"""Tests for the REPL session state and commands."""

import pytest
from mfl.repl import Repl, ReplState
from mfl.errors import EvalError, TypeCheckError
from mfl.core import INT, VInt


@pytest.fixture
def repl():
    return Repl(history_file=None)


def test_definitions_persist_across_inputs():
    state = ReplState()
    state.execute("val x := 20")
    [(value, type_val)] = state.execute("x + 22;")

    assert value == VInt(42)
    assert type_val == INT
    assert state.history == ["val x := 20", "x + 22;"]


def test_failed_input_leaves_state_unchanged():
    state = ReplState()
    state.execute("val x := 1;")

    with pytest.raises(TypeCheckError):
        state.execute("val y := 2; val z := y + true;")
    with pytest.raises(EvalError):
        state.execute("val w := 5; hd([]);")

    assert [name for name, _ in state.definitions()] == ["x"]
    assert state.names() == ["x"]
    # y and w were rolled back, so they can still be defined
    state.execute("val y := 3; val w := 4;")


def test_type_of_does_not_define():
    state = ReplState()
    assert str(state.type_of("fn x -> [x]")) == "(t0 -> [ t0 ])"
    assert str(state.type_of("val q := 1;")) == "int"
    assert state.definitions() == []


def test_process_input_prints_value_and_type(repl, capsys):
    repl.process_input("val sq := fn x -> x * x;")
    repl.process_input("sq(7);")
    out = capsys.readouterr().out

    assert "val sq : (t0 -> t0)" in out
    assert "49 : int" in out


def test_process_input_reports_errors(repl, capsys):
    repl.process_input("1 + true;")
    captured = capsys.readouterr()

    assert "Type error" in captured.err
    assert captured.out == ""


def test_commands(repl, capsys):
    repl.process_input("val five := 5;")
    capsys.readouterr()

    assert repl.handle_command(":type five + 1")
    assert repl.handle_command(":env")
    assert repl.handle_command(":ast 1 + 2")
    out = capsys.readouterr().out
    assert "five + 1 : int" in out
    assert "five : int" in out
    assert "BinaryOp(+" in out

    assert repl.handle_command(":clear")
    assert repl.state.definitions() == []

    assert repl.handle_command(":nope")
    assert "Unknown command: :nope" in capsys.readouterr().out

    assert repl.handle_command(":quit") is False


def test_load_file(repl, capsys, tmp_path):
    path = tmp_path / "defs.mfl"
    path.write_text("val inc := fn x -> x + 1;\ninc(1);\n")

    repl.handle_command(f":load {path}")
    out = capsys.readouterr().out
    assert "Loaded 2 statements" in out
    assert "2 : int" in out
    assert "inc" in repl.state.names()

    repl.handle_command(f":load {tmp_path / 'missing.mfl'}")
    assert "Cannot read" in capsys.readouterr().out


def test_completer(repl):
    repl.process_input("val foldSum := 1;")
    assert repl._completer("fold", 0) == "foldSum"
    assert repl._completer("fold", 1) == "foldl"
    assert repl._completer("fold", 2) == "foldr"
    assert repl._completer("fold", 3) is None
