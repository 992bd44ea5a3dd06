"""REPL (Read-Eval-Print Loop) for MFL.

This module provides an interactive session in which `val` definitions
persist across inputs. Each input is type checked and evaluated against
forks of the session state, and committed only when both succeed, so a
failing line never leaves a half-defined name behind.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple
import atexit
import os
import readline
import sys

from .parser import parse
from .typechecker import TypeChecker
from .evaluator import Evaluator, pretty_print_value
from .errors import MflError, TypeCheckError, clear_trace
from .syntax import Program, Result
from .core import Type
from .lexer import Lexer
from .colors import Colors
from mfl import __version__


def _terminated(source: str) -> str:
    source = source.strip()
    return source if source.endswith(";") else source + ";"


@dataclass
class ReplState:
    """State of the REPL session."""
    checker: TypeChecker
    evaluator: Evaluator
    history: List[str]

    def __init__(self, trace: bool = False):
        self.checker = TypeChecker()
        self.evaluator = Evaluator(trace=trace)
        self.history = []

    def execute(self, source: str) -> List[Tuple[Result, Type]]:
        """Type check and run one input; commit its definitions on success.

        Returns the value and type of every statement. On failure the
        MflError propagates and the session is unchanged.
        """
        program = parse(_terminated(source))
        checker = self.checker.fork()
        evaluator = self.evaluator.fork()

        types = []
        for statement in program.statements:
            types.append(checker.check_program(Program((statement,), statement.location)))

        results = []
        for statement, type_val in zip(program.statements, types):
            results.append((evaluator.eval_statement(statement), type_val))

        self.checker = checker
        self.evaluator = evaluator
        self.history.append(source)
        return results

    def type_of(self, source: str) -> Optional[Type]:
        """Infer the type of an expression without running or keeping it."""
        program = parse(_terminated(source))
        return self.checker.fork().check_program(program)

    def definitions(self) -> List[Tuple[str, Type]]:
        return sorted(self.checker.global_types().items())

    def names(self) -> List[str]:
        return self.evaluator.env.names()


class Repl:
    """The REPL interface."""

    HELP = """
MFL REPL Commands:

  :help, :h           Show this help message
  :quit, :q           Exit the REPL
  :type, :t <expr>    Show the type of an expression
  :ast <expr>         Show the syntax tree of an input
  :env                List all definitions with their types
  :clear, :c          Clear all definitions
  :load <file>        Run a file in the current session

Language:

  42  3.14  true      int, real and bool literals
  [1, 2, 3]           List (elements share one type)
  fn x -> e           Function
  f(x)                Application
  val x := e          Top-level definition (may be recursive)
  val f x := e        Same as val f := fn x -> e
  let x := e in b     Local binding
  if c then a else b  Conditional
  hd tl len           List primitives: hd(xs)
  map foldl foldr     map(f xs), foldl(f init xs)
  ++  mod             List concatenation, remainder

Examples:

  val fact := fn n -> if n = 0 then 1 else n * fact(n - 1);
  map((fn x -> x * x) [1, 2, 3]);
"""

    def __init__(self, trace: bool = False, history_file: Optional[str] = "~/.mfl_history"):
        self.state = ReplState(trace=trace)
        self.trace = trace
        if history_file:
            self._setup_readline(os.path.expanduser(history_file))

    def _setup_readline(self, histfile: str):
        """Setup readline with history and completion."""
        try:
            readline.read_history_file(histfile)
        except FileNotFoundError:
            pass
        atexit.register(readline.write_history_file, histfile)

        readline.set_completer(self._completer)
        readline.parse_and_bind("tab: complete")

    def _completer(self, text: str, state: int) -> Optional[str]:
        """Tab completion over keywords and defined names."""
        names = self.state.names() + list(Lexer.KEYWORDS)
        matches = sorted(name for name in set(names) if name.startswith(text))
        if state < len(matches):
            return matches[state]
        return None

    def run(self):
        """Run the REPL."""
        print(Colors.bold(f"MFL REPL v{__version__}"))
        print(f"Type {Colors.keyword(':help')} for help, {Colors.keyword(':quit')} to exit")
        print()

        buffer: List[str] = []
        while True:
            try:
                prompt = f"{Colors.dim('...')} " if buffer else Colors.prompt("mfl> ")
                line = input(prompt)

                if not buffer and line.startswith(":"):
                    if not self.handle_command(line):
                        break
                    continue

                # Input is complete once it ends with ';' or a blank line follows.
                if line.strip():
                    buffer.append(line)
                    if not line.rstrip().endswith(";"):
                        continue
                if buffer:
                    self.process_input("\n".join(buffer))
                    buffer = []

            except EOFError:
                print("\nGoodbye!")
                break
            except KeyboardInterrupt:
                print("\nUse :quit to exit")
                buffer = []

    def handle_command(self, command: str) -> bool:
        """Handle a REPL command. Returns False when the session should end."""
        cmd, _, arg = command.strip().partition(" ")
        arg = arg.strip()

        if cmd in (":quit", ":q"):
            print("Goodbye!")
            return False

        elif cmd in (":help", ":h"):
            print(self.HELP)

        elif cmd in (":type", ":t"):
            if not arg:
                print("Usage: :type <expr>")
            else:
                self.show_type(arg)

        elif cmd == ":ast":
            if not arg:
                print("Usage: :ast <expr>")
            else:
                self.show_ast(arg)

        elif cmd == ":env":
            self.list_definitions()

        elif cmd in (":clear", ":c"):
            self.state = ReplState(trace=self.trace)
            print("State cleared")

        elif cmd == ":load":
            if not arg:
                print("Usage: :load <filename>")
            else:
                self.load_file(arg)

        else:
            print(f"Unknown command: {cmd}")
            print("Type :help for help")

        return True

    def show_type(self, source: str):
        try:
            type_val = self.state.type_of(source)
        except MflError as e:
            self._report(e, source)
            return
        print(f"{source.rstrip(';')} : {Colors.type_name(str(type_val))}")

    def show_ast(self, source: str):
        try:
            program = parse(_terminated(source))
        except MflError as e:
            self._report(e, source)
            return
        for statement in program.statements:
            print(statement.display_subtree())

    def list_definitions(self):
        """List all definitions in the current session."""
        definitions = self.state.definitions()
        if not definitions:
            print("No definitions")
            return

        print("Definitions:")
        for name, type_val in definitions:
            print(f"  {Colors.var_name(name)} : {Colors.type_name(str(type_val))}")

    def load_file(self, filename: str):
        """Run a file in the current session."""
        try:
            with open(filename, 'r') as f:
                content = f.read()
        except OSError as e:
            print(Colors.error(f"Cannot read {filename}: {e.strerror}"))
            return

        try:
            results = self.state.execute(content)
        except MflError as e:
            self._report(e, content, filename)
            return

        print(Colors.success(f"Loaded {len(results)} statements from {filename}"))
        if results:
            self._print_result(*results[-1])

    def process_input(self, input_str: str):
        """Process one complete input."""
        if not input_str.strip():
            return

        try:
            results = self.state.execute(input_str)
        except MflError as e:
            self._report(e, input_str)
            return

        for result, type_val in results:
            self._print_result(result, type_val)

    def _print_result(self, result: Result, type_val: Type):
        if isinstance(result, str):
            print(f"val {Colors.var_name(result)} : {Colors.type_name(str(type_val))}")
        else:
            print(f"{Colors.value(pretty_print_value(result))} : "
                  f"{Colors.type_name(str(type_val))}")

    def _report(self, error: MflError, source: str, filename: Optional[str] = None):
        error.with_source(source, filename)
        print(error.format_error(), file=sys.stderr)
        if isinstance(error, TypeCheckError):
            clear_trace()


def main():
    """Entry point for the REPL."""
    Repl().run()


if __name__ == "__main__":
    main()
