"""Parser for MFL using recursive descent."""

from typing import List, Optional

from .core import VBool, VInt, VReal
from .errors import ParseError
from .lexer import Token, TokenType, lex
from .syntax import (
    Apply, BinaryOp, Fold, Head, Identifier, If, Lambda, Length, Let,
    ListLiteral, Literal, Map, Node, Program, SourceLocation, Tail, UnaryOp, Val,
)


RELATIONAL = {
    TokenType.LT: "<",
    TokenType.LE: "<=",
    TokenType.GT: ">",
    TokenType.GE: ">=",
    TokenType.EQ: "=",
    TokenType.NE: "!=",
}

ADDITIVE = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
}

MULTIPLICATIVE = {
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.MOD: "mod",
    TokenType.CONCAT: "++",
}

LOGICAL = {
    TokenType.AND: "and",
    TokenType.OR: "or",
}


class Parser:
    """Recursive descent parser for MFL."""

    def __init__(self, tokens: List[Token], filename: Optional[str] = None):
        self.tokens = tokens
        self.filename = filename
        self.position = 0
        self.current_token = tokens[0] if tokens else Token(TokenType.EOF, "", 1, 1)

    def advance(self) -> None:
        """Move to the next token."""
        if self.position < len(self.tokens) - 1:
            self.position += 1
            self.current_token = self.tokens[self.position]

    def peek(self, offset: int = 1) -> Optional[Token]:
        """Look ahead at a token."""
        pos = self.position + offset
        if pos < len(self.tokens):
            return self.tokens[pos]
        return None

    def location(self, token: Optional[Token] = None) -> SourceLocation:
        token = token or self.current_token
        return SourceLocation(token.line, token.column, self.filename)

    def error(self, message: str) -> ParseError:
        return ParseError(message, self.location())

    def expect(self, token_type: TokenType) -> Token:
        """Consume a token of the expected type."""
        if self.current_token.type != token_type:
            found = self.current_token.value or self.current_token.type.name
            raise self.error(f"Expected {token_type.name}, got '{found}'")
        token = self.current_token
        self.advance()
        return token

    def match(self, *token_types: TokenType) -> bool:
        """Check if current token matches any of the given types."""
        return self.current_token.type in token_types

    def consume(self, token_type: TokenType) -> bool:
        """Consume a token if it matches the type."""
        if self.current_token.type == token_type:
            self.advance()
            return True
        return False

    # Statements

    def parse_program(self) -> Program:
        """Parse statements, each terminated by ';', up to EOF."""
        start = self.location()
        statements: List[Node] = []
        while not self.match(TokenType.EOF):
            statements.append(self.parse_statement())
            self.expect(TokenType.SEMICOLON)
        return Program(tuple(statements), start)

    def parse_statement(self) -> Node:
        if not self.match(TokenType.VAL):
            return self.parse_expression()

        loc = self.location()
        self.advance()
        name = self.expect(TokenType.IDENT).value

        # val f x := e is shorthand for val f := fn x -> e
        if self.match(TokenType.IDENT):
            param_token = self.current_token
            self.advance()
            self.expect(TokenType.ASSIGN)
            body = self.parse_expression()
            return Val(name, Lambda(param_token.value, body, self.location(param_token)), loc)

        self.expect(TokenType.ASSIGN)
        return Val(name, self.parse_expression(), loc)

    # Expressions

    def parse_expression(self) -> Node:
        if self.match(TokenType.LET):
            return self.parse_let()
        elif self.match(TokenType.IF):
            return self.parse_if()
        elif self.match(TokenType.FN):
            return self.parse_lambda()
        return self.parse_logical()

    def parse_let(self) -> Node:
        loc = self.location()
        self.expect(TokenType.LET)
        name = self.expect(TokenType.IDENT).value
        self.expect(TokenType.ASSIGN)
        value = self.parse_expression()
        self.expect(TokenType.IN)
        body = self.parse_expression()
        return Let(name, value, body, loc)

    def parse_if(self) -> Node:
        loc = self.location()
        self.expect(TokenType.IF)
        condition = self.parse_expression()
        self.expect(TokenType.THEN)
        then_branch = self.parse_expression()
        self.expect(TokenType.ELSE)
        else_branch = self.parse_expression()
        return If(condition, then_branch, else_branch, loc)

    def parse_lambda(self) -> Node:
        loc = self.location()
        self.expect(TokenType.FN)
        param = self.expect(TokenType.IDENT).value
        self.expect(TokenType.ARROW)
        return Lambda(param, self.parse_expression(), loc)

    def parse_logical(self) -> Node:
        left = self.parse_relational()
        while self.current_token.type in LOGICAL:
            loc = self.location()
            op = LOGICAL[self.current_token.type]
            self.advance()
            left = BinaryOp(op, left, self.parse_relational(), loc)
        return left

    def parse_relational(self) -> Node:
        left = self.parse_additive()
        if self.current_token.type in RELATIONAL:
            loc = self.location()
            op = RELATIONAL[self.current_token.type]
            self.advance()
            return BinaryOp(op, left, self.parse_additive(), loc)
        return left

    def parse_additive(self) -> Node:
        left = self.parse_term()
        while self.current_token.type in ADDITIVE:
            loc = self.location()
            op = ADDITIVE[self.current_token.type]
            self.advance()
            left = BinaryOp(op, left, self.parse_term(), loc)
        return left

    def parse_term(self) -> Node:
        if self.match(TokenType.NOT):
            loc = self.location()
            self.advance()
            return UnaryOp("not", self.parse_relational(), loc)

        left = self.parse_factor()
        while self.current_token.type in MULTIPLICATIVE:
            loc = self.location()
            op = MULTIPLICATIVE[self.current_token.type]
            self.advance()
            left = BinaryOp(op, left, self.parse_factor(), loc)
        return left

    def parse_factor(self) -> Node:
        token = self.current_token
        loc = self.location()

        if self.consume(TokenType.MINUS):
            return UnaryOp("-", self.parse_factor(), loc)

        if token.type in (TokenType.HD, TokenType.TL, TokenType.LEN):
            self.advance()
            self.expect(TokenType.LPAREN)
            expr = self.parse_expression()
            self.expect(TokenType.RPAREN)
            if token.type == TokenType.HD:
                return Head(expr, loc)
            elif token.type == TokenType.TL:
                return Tail(expr, loc)
            return Length(expr, loc)

        if token.type == TokenType.MAP:
            self.advance()
            self.expect(TokenType.LPAREN)
            function = self.parse_expression()
            lst = self.parse_expression()
            self.expect(TokenType.RPAREN)
            return Map(function, lst, loc)

        if token.type in (TokenType.FOLDL, TokenType.FOLDR):
            self.advance()
            self.expect(TokenType.LPAREN)
            function = self.parse_expression()
            initial = self.parse_expression()
            lst = self.parse_expression()
            self.expect(TokenType.RPAREN)
            return Fold(function, initial, lst, token.type == TokenType.FOLDL, loc)

        if token.type == TokenType.LBRACKET:
            return self.parse_list()

        if self.consume(TokenType.LPAREN):
            expr = self.parse_expression()
            self.expect(TokenType.RPAREN)
            return self.parse_applications(expr)

        if token.type == TokenType.INT:
            self.advance()
            return Literal(VInt(int(token.value)), loc)

        if token.type == TokenType.REAL:
            self.advance()
            return Literal(VReal(float(token.value)), loc)

        if token.type == TokenType.BOOL:
            self.advance()
            return Literal(VBool(token.value == "true"), loc)

        if token.type == TokenType.IDENT:
            self.advance()
            return self.parse_applications(Identifier(token.value, loc))

        found = token.value or token.type.name
        raise self.error(f"Unexpected token '{found}'")

    def parse_applications(self, function: Node) -> Node:
        """Parse zero or more parenthesized arguments: f(a)(b)..."""
        while self.match(TokenType.LPAREN):
            loc = self.location()
            self.advance()
            argument = self.parse_expression()
            self.expect(TokenType.RPAREN)
            function = Apply(function, argument, loc)
        return function

    def parse_list(self) -> Node:
        loc = self.location()
        self.expect(TokenType.LBRACKET)
        elements: List[Node] = []
        if not self.match(TokenType.RBRACKET):
            elements.append(self.parse_expression())
            while self.consume(TokenType.COMMA):
                elements.append(self.parse_expression())
        self.expect(TokenType.RBRACKET)
        return ListLiteral(tuple(elements), loc)


def parse(source: str, filename: Optional[str] = None) -> Program:
    """Convenience function to parse source code."""
    return Parser(lex(source, filename), filename).parse_program()
