"""Command-line interface for MFL."""

import click
import sys
import time
from typing import Optional

from mfl import __version__


def _emit(content: str, output: Optional[str], what: str) -> None:
    if output:
        with open(output, 'w') as f:
            f.write(content + '\n')
        print(f"{what} written to {output}")
    else:
        print(content)


@click.command()
@click.argument('filename', required=False, type=click.Path(exists=True, dir_okay=False))
@click.option('--ast', is_flag=True, help='Print the abstract syntax tree')
@click.option('--type-check-only', is_flag=True, help='Only type check, do not evaluate')
@click.option('--no-type-check', is_flag=True, help='Evaluate without type checking first')
@click.option('--verbose', '-v', is_flag=True, help='Show the type derivation and evaluation trace')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output file for results')
@click.option('--timing', is_flag=True, help='Show timing information')
@click.option('--no-color', is_flag=True, help='Disable colored output')
@click.option('--recursion-limit', type=click.IntRange(min=100), default=10000,
              show_default=True, help='Interpreter recursion limit for evaluation')
@click.option('--version', is_flag=True, help='Show version information')
def main(filename: Optional[str] = None,
         ast: bool = False,
         type_check_only: bool = False,
         no_type_check: bool = False,
         verbose: bool = False,
         output: Optional[str] = None,
         timing: bool = False,
         no_color: bool = False,
         recursion_limit: int = 10000,
         version: bool = False) -> None:
    """mfl - a small functional language with type inference.

    If FILENAME is provided, type check and run the file.
    Otherwise, start an interactive REPL.

    Examples:

      mfl                        # Start REPL

      mfl program.mfl            # Run a program

      mfl program.mfl --ast      # Show AST

      mfl -v program.mfl         # Show type derivation
    """
    from mfl.colors import Colors, disable_colors

    if version:
        print(f"mfl version {__version__}")
        sys.exit(0)

    if no_color:
        disable_colors()

    if sys.getrecursionlimit() < recursion_limit:
        sys.setrecursionlimit(recursion_limit)

    if not filename:
        from mfl.repl import Repl
        repl = Repl(trace=verbose)
        try:
            repl.run()
        except KeyboardInterrupt:
            print("\nGoodbye!")
        return

    from mfl.parser import parse
    from mfl.typechecker import TypeChecker
    from mfl.evaluator import Evaluator, pretty_print_value
    from mfl.errors import MflError, TypeCheckError, enable_trace, clear_trace

    start_time = time.time()
    source = ""

    try:
        if verbose:
            print(f"Reading {filename}...")
        with open(filename, 'r') as f:
            source = f.read()

        if verbose:
            print("Parsing...")
        parse_start = time.time()
        program = parse(source, filename)
        if timing:
            print(f"Parse time: {time.time() - parse_start:.3f}s")

        if ast:
            _emit(f"Abstract Syntax Tree:\n{program.display_subtree()}", output, "AST")
            return

        program_type = None
        if not no_type_check:
            if verbose:
                print("Type checking...")
                enable_trace()
            type_check_start = time.time()
            checker = TypeChecker()
            program_type = checker.check_program(program)
            if timing:
                print(f"Type check time: {time.time() - type_check_start:.3f}s")

            if type_check_only:
                print(Colors.success(
                    f"Type checked successfully ({len(program.statements)} statements)"))
                if program_type is not None:
                    _emit(f"Type: {program_type}", output, "Type")
                return

        if verbose:
            print("Evaluating...")
        eval_start = time.time()
        evaluator = Evaluator(trace=verbose)
        result = evaluator.eval_program(program)
        if timing:
            print(f"Evaluation time: {time.time() - eval_start:.3f}s")

        lines = [f"Result: {pretty_print_value(result)}"]
        if program_type is not None:
            lines.append(f"Type: {program_type}")
        _emit("\n".join(lines), output, "Result")

        if timing:
            print(f"\nTotal time: {time.time() - start_time:.3f}s")

    except MflError as e:
        e.with_source(source, filename)
        print(e.format_error(), file=sys.stderr)
        if isinstance(e, TypeCheckError):
            clear_trace()
        sys.exit(1)
    except OSError as e:
        print(Colors.error(f"Error: {e}"), file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
