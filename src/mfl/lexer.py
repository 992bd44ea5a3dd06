"""Lexer for MFL."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

from .errors import LexError
from .syntax import SourceLocation


class TokenType(Enum):
    """Token types for MFL."""
    # Literals
    INT = auto()
    REAL = auto()
    BOOL = auto()

    IDENT = auto()

    # Keywords
    VAL = auto()       # val
    LET = auto()       # let
    IN = auto()        # in
    IF = auto()        # if
    THEN = auto()      # then
    ELSE = auto()      # else
    FN = auto()        # fn
    MAP = auto()       # map
    FOLDL = auto()     # foldl
    FOLDR = auto()     # foldr
    LEN = auto()       # len
    HD = auto()        # hd
    TL = auto()        # tl
    AND = auto()       # and
    OR = auto()        # or
    NOT = auto()       # not
    MOD = auto()       # mod

    # Symbols
    PLUS = auto()      # +
    MINUS = auto()     # -
    STAR = auto()      # *
    SLASH = auto()     # /
    CONCAT = auto()    # ++
    LPAREN = auto()    # (
    RPAREN = auto()    # )
    LBRACKET = auto()  # [
    RBRACKET = auto()  # ]
    COMMA = auto()     # ,
    SEMICOLON = auto() # ;
    ASSIGN = auto()    # :=
    ARROW = auto()     # ->
    EQ = auto()        # =
    NE = auto()        # !=
    LT = auto()        # <
    LE = auto()        # <=
    GT = auto()        # >
    GE = auto()        # >=

    EOF = auto()


@dataclass
class Token:
    """A lexical token."""
    type: TokenType
    value: str
    line: int
    column: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}, {self.column})"


class Lexer:
    """Lexical analyzer for MFL."""

    KEYWORDS = {
        'val': TokenType.VAL,
        'let': TokenType.LET,
        'in': TokenType.IN,
        'if': TokenType.IF,
        'then': TokenType.THEN,
        'else': TokenType.ELSE,
        'fn': TokenType.FN,
        'map': TokenType.MAP,
        'foldl': TokenType.FOLDL,
        'foldr': TokenType.FOLDR,
        'len': TokenType.LEN,
        'hd': TokenType.HD,
        'tl': TokenType.TL,
        'and': TokenType.AND,
        'or': TokenType.OR,
        'not': TokenType.NOT,
        'mod': TokenType.MOD,
        'true': TokenType.BOOL,
        'false': TokenType.BOOL,
    }

    SYMBOLS = {
        '++': TokenType.CONCAT,
        ':=': TokenType.ASSIGN,
        '->': TokenType.ARROW,
        '!=': TokenType.NE,
        '<=': TokenType.LE,
        '>=': TokenType.GE,
        '+': TokenType.PLUS,
        '-': TokenType.MINUS,
        '*': TokenType.STAR,
        '/': TokenType.SLASH,
        '(': TokenType.LPAREN,
        ')': TokenType.RPAREN,
        '[': TokenType.LBRACKET,
        ']': TokenType.RBRACKET,
        ',': TokenType.COMMA,
        ';': TokenType.SEMICOLON,
        '=': TokenType.EQ,
        '<': TokenType.LT,
        '>': TokenType.GT,
    }

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.position = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []

    def current_char(self) -> Optional[str]:
        """Get the current character."""
        if self.position >= len(self.source):
            return None
        return self.source[self.position]

    def peek_char(self, offset: int = 1) -> Optional[str]:
        """Peek at a character ahead."""
        pos = self.position + offset
        if pos >= len(self.source):
            return None
        return self.source[pos]

    def advance(self) -> None:
        """Move to the next character."""
        if self.position < len(self.source):
            if self.source[self.position] == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.position += 1

    def error(self, message: str, line: int, column: int) -> LexError:
        return LexError(message, SourceLocation(line, column, self.filename))

    def skip_whitespace(self) -> None:
        """Skip whitespace and (* nested *) comments."""
        while self.current_char() is not None:
            if self.current_char() in ' \t\r\n':
                self.advance()
            elif self.current_char() == '(' and self.peek_char() == '*':
                self.skip_comment()
            else:
                break

    def skip_comment(self) -> None:
        start_line, start_column = self.line, self.column
        self.advance()  # Skip (
        self.advance()  # Skip *
        depth = 1
        while depth > 0:
            if self.current_char() is None:
                raise self.error("Unterminated comment", start_line, start_column)
            if self.current_char() == '*' and self.peek_char() == ')':
                self.advance()
                self.advance()
                depth -= 1
            elif self.current_char() == '(' and self.peek_char() == '*':
                self.advance()
                self.advance()
                depth += 1
            else:
                self.advance()

    def read_number(self) -> Token:
        """Read an integer, or a real of the form digits.digits."""
        line, column = self.line, self.column
        value = ""
        while self.current_char() is not None and self.current_char().isdigit():
            value += self.current_char()
            self.advance()

        next_char = self.peek_char()
        if self.current_char() == '.' and next_char is not None and next_char.isdigit():
            value += '.'
            self.advance()
            while self.current_char() is not None and self.current_char().isdigit():
                value += self.current_char()
                self.advance()
            return Token(TokenType.REAL, value, line, column)

        return Token(TokenType.INT, value, line, column)

    def read_identifier(self) -> str:
        """Read an identifier or keyword."""
        value = ""
        while (self.current_char() is not None and
               (self.current_char().isalnum() or self.current_char() == '_')):
            value += self.current_char()
            self.advance()
        return value

    def tokenize(self) -> List[Token]:
        """Tokenize the source code."""
        self.tokens = []

        while self.position < len(self.source):
            self.skip_whitespace()

            char = self.current_char()
            if char is None:
                break

            start_line = self.line
            start_column = self.column

            if char.isdigit():
                self.tokens.append(self.read_number())

            elif char.isalpha() or char == '_':
                value = self.read_identifier()
                token_type = self.KEYWORDS.get(value, TokenType.IDENT)
                self.tokens.append(Token(token_type, value, start_line, start_column))

            # Two-character symbols
            elif self.peek_char() is not None and char + self.peek_char() in self.SYMBOLS:
                symbol = char + self.peek_char()
                self.advance()
                self.advance()
                self.tokens.append(Token(self.SYMBOLS[symbol], symbol, start_line, start_column))

            # Single-character symbols
            elif char in self.SYMBOLS:
                self.advance()
                self.tokens.append(Token(self.SYMBOLS[char], char, start_line, start_column))

            else:
                raise self.error(f"Unexpected character '{char}'", self.line, self.column)

        self.tokens.append(Token(TokenType.EOF, '', self.line, self.column))
        return self.tokens


def lex(source: str, filename: Optional[str] = None) -> List[Token]:
    """Convenience function to tokenize source code."""
    return Lexer(source, filename).tokenize()
