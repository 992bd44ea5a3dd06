"""Error reporting for MFL.

Every failure the language can produce is an `MflError` carrying an
`ErrorContext`. Formatting an error gives:
- the message and its source location
- an excerpt of the source with a caret under the offending column
- hints for common mistakes
- the type derivation trace, when tracing is enabled
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, List, TYPE_CHECKING
from enum import Enum, auto

from .colors import Colors

if TYPE_CHECKING:
    from .syntax import SourceLocation


class ErrorKind(Enum):
    """Categories of errors for suggestion generation."""
    TYPE_MISMATCH = auto()
    INFINITE_TYPE = auto()
    UNKNOWN_VARIABLE = auto()
    NOT_A_FUNCTION = auto()
    NOT_A_LIST = auto()
    EMPTY_LIST = auto()
    MIXED_MODE = auto()
    NESTED_LIST = auto()
    NOT_CURRIED = auto()
    DUPLICATE_DEFINITION = auto()
    NOT_A_VALUE = auto()
    DIVISION_BY_ZERO = auto()
    RECURSION_DEPTH = auto()
    UNEXPECTED_TOKEN = auto()
    UNEXPECTED_CHARACTER = auto()


@dataclass
class ErrorContext:
    """Context information for an error."""
    source_code: Optional[str] = None
    filename: Optional[str] = None
    location: Optional[SourceLocation] = None
    kind: Optional[ErrorKind] = None
    expected: Optional[str] = None
    actual: Optional[str] = None
    similar_names: List[str] = field(default_factory=list)


@dataclass
class TypeDerivation:
    """One inference step, recorded for verbose output."""
    description: str
    location: Optional[SourceLocation]
    result: Optional[str]


class TypeDerivationTrace:
    """Accumulates type derivation steps while enabled."""

    def __init__(self):
        self.steps: List[TypeDerivation] = []
        self.enabled = False

    def add_step(self, description: str, location: Optional[SourceLocation] = None,
                 result: Optional[str] = None):
        if self.enabled:
            self.steps.append(TypeDerivation(description, location, result))

    def format(self) -> str:
        if not self.steps:
            return ""

        lines = [Colors.bold("\nType Derivation Trace:")]
        for i, step in enumerate(self.steps, 1):
            lines.append(f"{Colors.dim(f'Step {i}:')} {step.description}")
            if step.location:
                lines.append(f"  {Colors.dim('at')} {format_location(step.location)}")
            if step.result:
                lines.append(f"  {Colors.dim('result:')} {Colors.type_name(step.result)}")
        return "\n".join(lines)


_trace = TypeDerivationTrace()


def get_trace() -> TypeDerivationTrace:
    """Get the global type derivation trace."""
    return _trace


def enable_trace():
    _trace.enabled = True


def disable_trace():
    _trace.enabled = False


def clear_trace():
    _trace.steps = []


def format_location(location: Optional[SourceLocation]) -> str:
    """Format a source location as file:line:column."""
    if not location:
        return "<unknown location>"

    parts = []
    if location.filename:
        parts.append(location.filename)
    if location.column:
        parts.append(f"{location.line}:{location.column}")
    else:
        parts.append(f"line {location.line}")
    return ":".join(parts)


def show_source_context(source_code: str, location: SourceLocation,
                        error_message: str = "", context_lines: int = 2) -> str:
    """Display the source lines around an error with a caret marker."""
    lines = source_code.split('\n')

    if not (0 < location.line <= len(lines)):
        return Colors.error(f"Error: {error_message}") if error_message else ""

    output = []
    if error_message:
        output.append(Colors.error(f"Error: {error_message}"))
    output.append(f"{Colors.dim('at')} {format_location(location)}")
    output.append("")

    start_line = max(0, location.line - context_lines - 1)
    end_line = min(len(lines), location.line + context_lines)

    for i in range(start_line, end_line):
        line_num = i + 1
        line_content = lines[i]

        if line_num == location.line:
            output.append(f"{Colors.RED}→{Colors.RESET} {line_num:4d} │ {line_content}")
            if location.column > 0:
                spaces = ' ' * (location.column - 1)
                width = max(1, min(len(line_content) - location.column + 1, 10))
                output.append(f"       │ {spaces}{Colors.RED}{'^' * width}{Colors.RESET}")
        else:
            output.append(f"  {line_num:4d} │ {line_content}")

    return '\n'.join(output)


def edit_distance(s1: str, s2: str) -> int:
    """Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        return edit_distance(s2, s1)
    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def suggest_similar_names(name: str, available_names: List[str],
                          max_suggestions: int = 3) -> List[str]:
    """Names within edit distance 2, closest first."""
    candidates = []
    for available in available_names:
        distance = edit_distance(name, available)
        if distance <= 2:
            candidates.append((distance, available))
    candidates.sort(key=lambda pair: pair[0])
    return [candidate for _, candidate in candidates[:max_suggestions]]


def generate_suggestion(context: ErrorContext) -> Optional[str]:
    """A hint for the error kind, or None."""
    if not context.kind:
        return None

    suggestions = []

    if context.kind == ErrorKind.UNKNOWN_VARIABLE:
        if context.similar_names:
            names = ", ".join(f"'{name}'" for name in context.similar_names[:3])
            suggestions.append(f"Did you mean: {names}?")
        suggestions.append("Names must be introduced by val, let or fn before use")

    elif context.kind == ErrorKind.MIXED_MODE:
        suggestions.append("int and real never mix: write 2.0 instead of 2 next to a real")

    elif context.kind == ErrorKind.TYPE_MISMATCH:
        if context.expected and context.actual:
            suggestions.append(f"Expected {context.expected} but found {context.actual}")

    elif context.kind == ErrorKind.INFINITE_TYPE:
        suggestions.append("A value cannot contain or be applied to itself")

    elif context.kind == ErrorKind.NOT_CURRIED:
        suggestions.append("fold expects a curried function: fn acc -> fn x -> ...")

    elif context.kind == ErrorKind.NESTED_LIST:
        suggestions.append("Lists of lists are not supported at runtime")

    elif context.kind == ErrorKind.DUPLICATE_DEFINITION:
        suggestions.append("Use let ... in ... for a local binding with the same name")

    elif context.kind == ErrorKind.RECURSION_DEPTH:
        suggestions.append("Check that every recursive function has a reachable base case")

    elif context.kind == ErrorKind.UNEXPECTED_TOKEN:
        suggestions.append("Every top-level statement must end with ';'")

    if suggestions:
        return "\n".join(f"{Colors.hint('Hint:')} {s}" for s in suggestions)
    return None


class MflError(Exception):
    """Base class for all MFL errors."""

    label = "Error"

    def __init__(self, message: str, context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.context.location

    def with_source(self, source_code: str, filename: Optional[str] = None) -> MflError:
        """Attach source text so format_error can show an excerpt."""
        if self.context.source_code is None:
            self.context.source_code = source_code
        if self.context.filename is None:
            self.context.filename = filename
        return self

    def format_error(self) -> str:
        """Format the error with context, hints and the derivation trace."""
        message = f"{self.label}: {self.message}"
        parts = []

        if self.context.source_code and self.context.location:
            parts.append(show_source_context(self.context.source_code,
                                             self.context.location, message))
        else:
            parts.append(Colors.error(message))
            if self.context.location:
                parts.append(f"{Colors.dim('at')} {format_location(self.context.location)}")

        suggestion = generate_suggestion(self.context)
        if suggestion:
            parts.append("")
            parts.append(suggestion)

        if isinstance(self, TypeCheckError):
            trace_output = get_trace().format()
            if trace_output:
                parts.append(trace_output)

        return '\n'.join(parts)

    def __str__(self) -> str:
        if self.context.location:
            return f"{self.message} ({format_location(self.context.location)})"
        return self.message


class TypeCheckError(MflError):
    """Static typing failure."""
    label = "Type error"


class EvaluationError(MflError):
    """Runtime failure."""
    label = "Evaluation error"


class ParseError(MflError):
    label = "Syntax error"


class LexError(MflError):
    label = "Lexical error"
