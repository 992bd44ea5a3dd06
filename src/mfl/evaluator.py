"""Evaluator for MFL.

This module runs MFL programs after they have been type checked. The
per-construct semantics live on the syntax nodes; the evaluator owns the
program environment and statement tracing.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .core import Environment, Type
from .errors import MflError
from .parser import parse
from .syntax import Node, Program, Result, evaluate_statement
from .typechecker import TypeChecker
from .colors import Colors


@dataclass
class Evaluator:
    """Evaluator state: the program frame that top-level `val`s extend."""
    env: Environment
    trace: bool = False

    def __init__(self, env: Optional[Environment] = None, trace: bool = False):
        self.env = env if env is not None else Environment()
        self.trace = trace

    def eval_statement(self, statement: Node) -> Result:
        result = evaluate_statement(statement, self.env)
        self._report(result)
        return result

    def eval_program(self, program: Program) -> Optional[Result]:
        """Evaluate statements in order; the result is the last statement's."""
        return program.evaluate(self.env, self._report)

    def _report(self, result: Result) -> None:
        if self.trace:
            print(f"{Colors.dim('eval:')} {pretty_print_value(result)}")

    def fork(self) -> Evaluator:
        """An evaluator whose definitions can be discarded on failure."""
        return Evaluator(self.env.snapshot(), self.trace)


def evaluate_program(program: Program, env: Optional[Environment] = None) -> Optional[Result]:
    """Evaluate a type-checked program in env (a fresh one by default)."""
    return Evaluator(env).eval_program(program)


def pretty_print_value(value: Optional[Result]) -> str:
    """Pretty print a value; a `val` result is the bound name."""
    if value is None:
        return "()"
    return str(value)


@dataclass
class RunResult:
    """Type and value of a program's last statement."""
    type: Optional[Type]
    value: Optional[Result]

    def __str__(self) -> str:
        return f"{pretty_print_value(self.value)} : {self.type}"


def run_source(source: str, filename: Optional[str] = None) -> RunResult:
    """Parse, type check and evaluate source text.

    Errors propagate as MflError subclasses with the source attached.
    """
    try:
        program = parse(source, filename)
        program_type = TypeChecker().check_program(program)
        value = evaluate_program(program)
    except MflError as e:
        e.with_source(source, filename)
        raise
    return RunResult(program_type, value)
