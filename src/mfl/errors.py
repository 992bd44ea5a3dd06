"""Error types raised by the MFL passes.

These wrap the classes in error_reporting with constructors that take a
source location and an error kind directly, which is how the lexer, parser,
inferencer and evaluator raise them.
"""

from __future__ import annotations
from typing import List, Optional, TYPE_CHECKING

from .error_reporting import (
    MflError,
    TypeCheckError as _TypeCheckError,
    EvaluationError as _EvaluationError,
    ParseError as _ParseError,
    LexError as _LexError,
    ErrorContext,
    ErrorKind,
    get_trace,
    enable_trace,
    disable_trace,
    clear_trace,
)

if TYPE_CHECKING:
    from .syntax import SourceLocation


def _context(location: Optional[SourceLocation], kind: Optional[ErrorKind],
             expected: Optional[str] = None, actual: Optional[str] = None,
             similar_names: Optional[List[str]] = None) -> ErrorContext:
    return ErrorContext(location=location, kind=kind, expected=expected,
                        actual=actual, similar_names=list(similar_names or []))


class TypeCheckError(_TypeCheckError):
    """Typing error, carrying the label of the construct that failed."""

    def __init__(self, message: str, location: Optional[SourceLocation] = None,
                 kind: Optional[ErrorKind] = ErrorKind.TYPE_MISMATCH,
                 expected: Optional[str] = None, actual: Optional[str] = None,
                 similar_names: Optional[List[str]] = None):
        super().__init__(message, _context(location, kind, expected, actual, similar_names))


class EvalError(_EvaluationError):
    """Evaluation error raised when a value has the wrong shape."""

    def __init__(self, message: str, location: Optional[SourceLocation] = None,
                 kind: Optional[ErrorKind] = None,
                 similar_names: Optional[List[str]] = None):
        super().__init__(message, _context(location, kind, similar_names=similar_names))


class ParseError(_ParseError):
    def __init__(self, message: str, location: Optional[SourceLocation] = None,
                 kind: Optional[ErrorKind] = ErrorKind.UNEXPECTED_TOKEN):
        super().__init__(message, _context(location, kind))


class LexError(_LexError):
    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message, _context(location, ErrorKind.UNEXPECTED_CHARACTER))


__all__ = [
    "MflError", "TypeCheckError", "EvalError", "ParseError", "LexError",
    "ErrorContext", "ErrorKind", "get_trace", "enable_trace", "disable_trace",
    "clear_trace",
]
