"""Abstract syntax tree for MFL.

Each node class implements both semantics of its construct: `evaluate`
runs it against a runtime Environment and `type_of` infers its type
against a TypeEnvironment and the shared Inferencer.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Union
from abc import ABC, abstractmethod
import math
import operator

from .core import (
    BOOL, INT, NUMERIC, REAL,
    Environment, TFun, TList, Type,
    VBool, VClosure, VInt, VList, VReal, Value,
    apply_closure, bind_recursive, same_runtime_class,
)
from .errors import EvalError, TypeCheckError, ErrorKind
from .error_reporting import suggest_similar_names
from .typechecker import Inferencer, TypeEnvironment

# A statement's result: a value, or the name a `val` statement bound.
Result = Union[Value, str]


@dataclass(frozen=True)
class SourceLocation:
    """Source code location information."""
    line: int
    column: int = 0
    filename: Optional[str] = None


class Node(ABC):
    """Base class for all AST nodes."""

    location: Optional[SourceLocation]

    @abstractmethod
    def evaluate(self, env: Environment) -> Result:
        """Evaluate the node to a value."""
        pass

    @abstractmethod
    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        """Infer the node's type, extending the inferencer's substitution."""
        pass

    @abstractmethod
    def display_subtree(self, indent: int = 0) -> str:
        """Indented textual dump of the subtree, for diagnostics."""
        pass

    def _line(self, text: str, indent: int) -> str:
        return " " * indent + text


def _value_of(node: Node, env: Environment) -> Value:
    result = node.evaluate(env)
    if not isinstance(result, Value):
        raise EvalError("'val' is only allowed as a top-level statement",
                        node.location, kind=ErrorKind.NOT_A_VALUE)
    return result


def _closure_of(node: Node, env: Environment, what: str) -> VClosure:
    value = _value_of(node, env)
    if not isinstance(value, VClosure):
        raise EvalError(f"{what} must be a function, got {value.kind()}",
                        node.location, kind=ErrorKind.NOT_A_FUNCTION)
    return value


def _list_of(node: Node, env: Environment, what: str) -> VList:
    value = _value_of(node, env)
    if not isinstance(value, VList):
        raise EvalError(f"{what} must be a list, got {value.kind()}",
                        node.location, kind=ErrorKind.NOT_A_LIST)
    return value


# Leaves

@dataclass(frozen=True)
class Literal(Node):
    """Integer, real or boolean constant."""
    value: Value
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> Value:
        return self.value

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        if isinstance(self.value, VInt):
            return INT
        elif isinstance(self.value, VReal):
            return REAL
        elif isinstance(self.value, VBool):
            return BOOL
        raise TypeCheckError(f"Unknown literal {self.value}", self.location)

    def display_subtree(self, indent: int = 0) -> str:
        return self._line(f"Literal({self.value})", indent)


@dataclass(frozen=True)
class Identifier(Node):
    """Variable reference."""
    name: str
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> Value:
        value = env.lookup(self.name)
        if value is None:
            raise EvalError(f"Unbound identifier: {self.name}", self.location,
                            kind=ErrorKind.UNKNOWN_VARIABLE,
                            similar_names=suggest_similar_names(self.name, env.names()))
        return value

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        type_val = tenv.lookup(self.name)
        if type_val is None:
            raise TypeCheckError(f"Unbound identifier: {self.name}", self.location,
                                 kind=ErrorKind.UNKNOWN_VARIABLE,
                                 similar_names=suggest_similar_names(self.name, tenv.names()))
        return inferencer.apply(type_val)

    def display_subtree(self, indent: int = 0) -> str:
        return self._line(f"Id({self.name})", indent)


# Operators

ARITHMETIC_OPS = ("+", "-", "*", "/", "mod")
RELATIONAL_OPS = ("<", "<=", ">", ">=", "=", "!=")
LOGICAL_OPS = ("and", "or")
CONCAT_OP = "++"

_COMPARISONS = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "=": operator.eq,
    "!=": operator.ne,
}


def _int_div(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def _arithmetic(op: str, left: Value, right: Value,
                location: Optional[SourceLocation]) -> Value:
    if isinstance(left, VInt) and isinstance(right, VInt):
        a, b = left.value, right.value
        if op in ("/", "mod") and b == 0:
            raise EvalError("Division by zero", location, kind=ErrorKind.DIVISION_BY_ZERO)
        if op == "+":
            return VInt(a + b)
        elif op == "-":
            return VInt(a - b)
        elif op == "*":
            return VInt(a * b)
        elif op == "/":
            return VInt(_int_div(a, b))
        return VInt(a - b * _int_div(a, b))

    if isinstance(left, VReal) and isinstance(right, VReal):
        x, y = left.value, right.value
        if op in ("/", "mod") and y == 0.0:
            raise EvalError("Division by zero", location, kind=ErrorKind.DIVISION_BY_ZERO)
        if op == "+":
            return VReal(x + y)
        elif op == "-":
            return VReal(x - y)
        elif op == "*":
            return VReal(x * y)
        elif op == "/":
            return VReal(x / y)
        return VReal(math.fmod(x, y))

    raise _operand_error(op, left, right, location)


def _operand_error(op: str, left: Value, right: Value,
                   location: Optional[SourceLocation]) -> EvalError:
    numeric = (VInt, VReal)
    if isinstance(left, numeric) and isinstance(right, numeric):
        return EvalError(f"Mixed mode operation not supported: {left.kind()} {op} {right.kind()}",
                         location, kind=ErrorKind.MIXED_MODE)
    return EvalError(f"Operator '{op}' cannot be applied to {left.kind()} and {right.kind()}",
                     location)


@dataclass(frozen=True)
class UnaryOp(Node):
    """Numeric negation or boolean `not`."""
    op: str
    operand: Node
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> Value:
        value = _value_of(self.operand, env)
        if self.op == "-":
            if isinstance(value, VInt):
                return VInt(-value.value)
            if isinstance(value, VReal):
                return VReal(-value.value)
            raise EvalError(f"Cannot negate {value.kind()}", self.location)
        if isinstance(value, VBool):
            return VBool(not value.value)
        raise EvalError(f"'not' expects bool, got {value.kind()}", self.location)

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        operand_type = self.operand.type_of(tenv, inferencer)
        if self.op == "-":
            result = tenv.fresh_variable(NUMERIC)
            inferencer.unify(operand_type, result,
                             "negation requires a numeric operand.", self.location)
            return inferencer.apply(result)
        inferencer.unify(operand_type, BOOL, "'not' requires a bool operand.", self.location)
        return BOOL

    def display_subtree(self, indent: int = 0) -> str:
        return "\n".join([
            self._line(f"UnaryOp({self.op}", indent),
            self.operand.display_subtree(indent + 2),
            self._line(")", indent),
        ])


@dataclass(frozen=True)
class BinaryOp(Node):
    """Arithmetic, relational, logical or list-concatenation operator."""
    op: str
    left: Node
    right: Node
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> Value:
        left = _value_of(self.left, env)

        if self.op in LOGICAL_OPS:
            return self._logical(left, env)

        right = _value_of(self.right, env)

        if self.op in ARITHMETIC_OPS:
            return _arithmetic(self.op, left, right, self.location)

        if self.op in RELATIONAL_OPS:
            if (isinstance(left, VInt) and isinstance(right, VInt)) or \
               (isinstance(left, VReal) and isinstance(right, VReal)):
                return VBool(_COMPARISONS[self.op](left.value, right.value))
            raise _operand_error(self.op, left, right, self.location)

        if self.op == CONCAT_OP:
            return self._concat(left, right)

        raise EvalError(f"Unknown operator '{self.op}'", self.location)

    def _logical(self, left: Value, env: Environment) -> Value:
        if not isinstance(left, VBool):
            raise EvalError(f"'{self.op}' expects bool operands, got {left.kind()}",
                            self.left.location)
        # the right operand only runs when the left one does not decide
        if (self.op == "and" and not left.value) or (self.op == "or" and left.value):
            return left
        right = _value_of(self.right, env)
        if not isinstance(right, VBool):
            raise EvalError(f"'{self.op}' expects bool operands, got {right.kind()}",
                            self.right.location)
        return right

    def _concat(self, left: Value, right: Value) -> Value:
        if not isinstance(left, VList) or not isinstance(right, VList):
            raise EvalError(f"'++' expects two lists, got {left.kind()} and {right.kind()}",
                            self.location, kind=ErrorKind.NOT_A_LIST)
        if left.elements and right.elements and \
                not same_runtime_class(left.elements[0], right.elements[0]):
            raise EvalError("Mixed mode list not supported: "
                            f"{left.elements[0].kind()} ++ {right.elements[0].kind()}",
                            self.location, kind=ErrorKind.MIXED_MODE)
        return VList(left.elements + right.elements)

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        left = self.left.type_of(tenv, inferencer)
        right = self.right.type_of(tenv, inferencer)

        if self.op in ARITHMETIC_OPS or self.op in RELATIONAL_OPS:
            operand = tenv.fresh_variable(NUMERIC)
            label = f"'{self.op}' requires two numbers of the same type."
            inferencer.unify(left, operand, label, self.left.location)
            inferencer.unify(right, operand, label, self.right.location)
            if self.op in RELATIONAL_OPS:
                return BOOL
            return inferencer.apply(operand)

        if self.op in LOGICAL_OPS:
            label = f"'{self.op}' requires bool operands."
            inferencer.unify(left, BOOL, label, self.left.location)
            inferencer.unify(right, BOOL, label, self.right.location)
            return BOOL

        if self.op == CONCAT_OP:
            elem_list = TList(tenv.fresh_variable())
            label = "'++' requires two lists with the same element type."
            inferencer.unify(left, elem_list, label, self.left.location)
            inferencer.unify(right, elem_list, label, self.right.location)
            return inferencer.apply(elem_list)

        raise TypeCheckError(f"Unknown operator '{self.op}'", self.location)

    def display_subtree(self, indent: int = 0) -> str:
        return "\n".join([
            self._line(f"BinaryOp({self.op}", indent),
            self.left.display_subtree(indent + 2),
            self.right.display_subtree(indent + 2),
            self._line(")", indent),
        ])


# Lists

@dataclass(frozen=True)
class ListLiteral(Node):
    """List constructor [e1, ..., en]."""
    elements: Tuple[Node, ...]
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> Value:
        if not self.elements:
            return VList()

        # The first element fixes the runtime class of the whole list.
        first = _value_of(self.elements[0], env)
        self._check_element(first, self.elements[0])
        values = [first]

        for node in self.elements[1:]:
            value = _value_of(node, env)
            self._check_element(value, node)
            if not same_runtime_class(first, value):
                raise EvalError(f"Mixed mode list not supported: {first.kind()} and {value.kind()}",
                                node.location, kind=ErrorKind.MIXED_MODE)
            values.append(value)

        return VList(tuple(values))

    def _check_element(self, value: Value, node: Node) -> None:
        if isinstance(value, VList):
            raise EvalError("Nested lists not supported", node.location,
                            kind=ErrorKind.NESTED_LIST)

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        if not self.elements:
            return TList(tenv.fresh_variable())

        elem_type = self.elements[0].type_of(tenv, inferencer)
        for node in self.elements[1:]:
            inferencer.unify(elem_type, node.type_of(tenv, inferencer),
                             "All elements must be of the same type.", node.location)
        return TList(inferencer.apply(elem_type))

    def display_subtree(self, indent: int = 0) -> str:
        lines = [self._line("List(", indent)]
        lines.extend(node.display_subtree(indent + 2) for node in self.elements)
        lines.append(self._line(")", indent))
        return "\n".join(lines)


@dataclass(frozen=True)
class Head(Node):
    """hd(e): first element of a non-empty list."""
    expr: Node
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> Value:
        lst = _list_of(self.expr, env, "Argument of hd")
        if not lst.elements:
            raise EvalError("hd of an empty list", self.location, kind=ErrorKind.EMPTY_LIST)
        return lst.elements[0]

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        elem = tenv.fresh_variable()
        inferencer.unify(self.expr.type_of(tenv, inferencer), TList(elem),
                         "hd requires a list.", self.location)
        return inferencer.apply(elem)

    def display_subtree(self, indent: int = 0) -> str:
        return "\n".join([self._line("Head(", indent),
                          self.expr.display_subtree(indent + 2),
                          self._line(")", indent)])


@dataclass(frozen=True)
class Tail(Node):
    """tl(e): a new list of everything but the first element."""
    expr: Node
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> Value:
        lst = _list_of(self.expr, env, "Argument of tl")
        if not lst.elements:
            raise EvalError("tl of an empty list", self.location, kind=ErrorKind.EMPTY_LIST)
        return VList(lst.elements[1:])

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        lst = TList(tenv.fresh_variable())
        inferencer.unify(self.expr.type_of(tenv, inferencer), lst,
                         "tl requires a list.", self.location)
        return inferencer.apply(lst)

    def display_subtree(self, indent: int = 0) -> str:
        return "\n".join([self._line("Tail(", indent),
                          self.expr.display_subtree(indent + 2),
                          self._line(")", indent)])


@dataclass(frozen=True)
class Length(Node):
    """len(e): element count of a list."""
    expr: Node
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> Value:
        return VInt(len(_list_of(self.expr, env, "Argument of len").elements))

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        inferencer.unify(self.expr.type_of(tenv, inferencer), TList(tenv.fresh_variable()),
                         "len requires a list.", self.location)
        return INT

    def display_subtree(self, indent: int = 0) -> str:
        return "\n".join([self._line("Len(", indent),
                          self.expr.display_subtree(indent + 2),
                          self._line(")", indent)])


# Control and binding

@dataclass(frozen=True)
class If(Node):
    """if c then a else b; only the chosen branch is evaluated."""
    condition: Node
    then_branch: Node
    else_branch: Node
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> Value:
        cond = _value_of(self.condition, env)
        if not isinstance(cond, VBool):
            raise EvalError(f"if condition must be bool, got {cond.kind()}",
                            self.condition.location)
        branch = self.then_branch if cond.value else self.else_branch
        return _value_of(branch, env)

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        inferencer.unify(self.condition.type_of(tenv, inferencer), BOOL,
                         "if condition must be a bool.", self.condition.location)
        then_type = self.then_branch.type_of(tenv, inferencer)
        else_type = self.else_branch.type_of(tenv, inferencer)
        inferencer.unify(then_type, else_type,
                         "if branches must have the same type.", self.else_branch.location)
        return inferencer.apply(then_type)

    def display_subtree(self, indent: int = 0) -> str:
        return "\n".join([
            self._line("If(", indent),
            self.condition.display_subtree(indent + 2),
            self._line("then:", indent + 2),
            self.then_branch.display_subtree(indent + 4),
            self._line("else:", indent + 2),
            self.else_branch.display_subtree(indent + 4),
            self._line(")", indent),
        ])


@dataclass(frozen=True)
class Lambda(Node):
    """fn x -> body."""
    param: str
    body: Node
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> Value:
        return VClosure(self.param, self.body, env.snapshot())

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        param_type = tenv.fresh_variable()
        body_type = self.body.type_of(tenv.extend(self.param, param_type), inferencer)
        result = TFun(inferencer.apply(param_type), inferencer.apply(body_type))
        inferencer.note(f"fn {self.param} -> ...", self.location, result)
        return result

    def display_subtree(self, indent: int = 0) -> str:
        return "\n".join([
            self._line("Lambda(", indent),
            self._line(f"param: {self.param}", indent + 2),
            self._line("body:", indent + 2),
            self.body.display_subtree(indent + 4),
            self._line(")", indent),
        ])


@dataclass(frozen=True)
class Apply(Node):
    """Function application f(arg)."""
    function: Node
    argument: Node
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> Value:
        closure = _closure_of(self.function, env, "Applied expression")
        argument = _value_of(self.argument, env)
        return apply_closure(closure, argument)

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        fun_type = self.function.type_of(tenv, inferencer)
        arg_type = self.argument.type_of(tenv, inferencer)
        result = tenv.fresh_variable()
        inferencer.unify(fun_type, TFun(arg_type, result),
                         "function application has incompatible types.", self.location)
        return inferencer.apply(result)

    def display_subtree(self, indent: int = 0) -> str:
        return "\n".join([
            self._line("Apply(", indent),
            self._line("function:", indent + 2),
            self.function.display_subtree(indent + 4),
            self._line("argument:", indent + 2),
            self.argument.display_subtree(indent + 4),
            self._line(")", indent),
        ])


@dataclass(frozen=True)
class Let(Node):
    """let x := e1 in e2; x is visible only in e2."""
    name: str
    value: Node
    body: Node
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> Value:
        bound = _value_of(self.value, env)
        return _value_of(self.body, env.extend(self.name, bound))

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        bound = self.value.type_of(tenv, inferencer)
        return self.body.type_of(tenv.extend(self.name, bound), inferencer)

    def display_subtree(self, indent: int = 0) -> str:
        return "\n".join([
            self._line(f"Let({self.name}", indent),
            self.value.display_subtree(indent + 2),
            self._line("in:", indent + 2),
            self.body.display_subtree(indent + 4),
            self._line(")", indent),
        ])


@dataclass(frozen=True)
class Val(Node):
    """Top-level binding `val x := e`. Its result is the name x."""
    name: str
    expr: Node
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> str:
        if env.defines(self.name):
            raise EvalError(f"'{self.name}' is already defined", self.location,
                            kind=ErrorKind.DUPLICATE_DEFINITION)

        value = _value_of(self.expr, env)
        if isinstance(value, VClosure):
            value = bind_recursive(value, self.name)
        env.define(self.name, value)
        return self.name

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        if isinstance(self.expr, Lambda):
            # Recursive calls in the body check against a placeholder.
            placeholder = TFun(tenv.fresh_variable(), tenv.fresh_variable())
            tenv.define(self.name, placeholder)
            expr_type = self.expr.type_of(tenv, inferencer)
            inferencer.unify(placeholder, expr_type,
                             f"recursive use of '{self.name}' does not match its definition.",
                             self.location)
        else:
            expr_type = self.expr.type_of(tenv, inferencer)

        final = inferencer.apply(expr_type)
        tenv.define(self.name, final)
        inferencer.note(f"val {self.name}", self.location, final)
        return final

    def display_subtree(self, indent: int = 0) -> str:
        return "\n".join([self._line(f"Val({self.name}", indent),
                          self.expr.display_subtree(indent + 2),
                          self._line(")", indent)])


# Higher-order built-ins

@dataclass(frozen=True)
class Map(Node):
    """map(f xs): a new list of f applied to each element, in order."""
    function: Node
    lst: Node
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment) -> Value:
        closure = _closure_of(self.function, env, "First argument of map")
        lst = _list_of(self.lst, env, "Second argument of map")
        return VList(tuple(apply_closure(closure, elem) for elem in lst.elements))

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        fun_type = self.function.type_of(tenv, inferencer)
        lst_type = self.lst.type_of(tenv, inferencer)
        a = tenv.fresh_variable()
        b = tenv.fresh_variable()
        inferencer.unify(fun_type, TFun(a, b),
                         "map: function must have type a -> b.", self.function.location)
        inferencer.unify(lst_type, TList(a),
                         "map: second argument must be a list of the function's input.",
                         self.lst.location)
        return inferencer.apply(TList(b))

    def display_subtree(self, indent: int = 0) -> str:
        return "\n".join([self._line("Map(", indent),
                          self.function.display_subtree(indent + 2),
                          self.lst.display_subtree(indent + 2),
                          self._line(")", indent)])


@dataclass(frozen=True)
class Fold(Node):
    """foldl(f init xs) or foldr(f init xs) with a curried f.

    foldl computes f(...f(f(init, x1), x2)..., xn);
    foldr computes f(x1, f(x2, ...f(xn, init)...)).
    """
    function: Node
    initial: Node
    lst: Node
    left: bool
    location: Optional[SourceLocation] = field(default=None, compare=False)

    @property
    def keyword(self) -> str:
        return "foldl" if self.left else "foldr"

    def evaluate(self, env: Environment) -> Value:
        closure = _closure_of(self.function, env, f"First argument of {self.keyword}")
        acc = _value_of(self.initial, env)
        lst = _list_of(self.lst, env, f"Third argument of {self.keyword}")

        if self.left:
            for elem in lst.elements:
                acc = apply_closure(self._partial(closure, acc), elem)
        else:
            for elem in reversed(lst.elements):
                acc = apply_closure(self._partial(closure, elem), acc)
        return acc

    def _partial(self, closure: VClosure, first: Value) -> VClosure:
        step = apply_closure(closure, first)
        if not isinstance(step, VClosure):
            raise EvalError(f"{self.keyword}: function must take two arguments (curried).",
                            self.function.location, kind=ErrorKind.NOT_CURRIED)
        return step

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Type:
        fun_type = self.function.type_of(tenv, inferencer)
        init_type = self.initial.type_of(tenv, inferencer)
        lst_type = self.lst.type_of(tenv, inferencer)
        a = tenv.fresh_variable()
        b = tenv.fresh_variable()

        if self.left:
            inferencer.unify(init_type, a, "foldl: init value has wrong type.",
                             self.initial.location)
            inferencer.unify(lst_type, TList(b), "foldl: third argument must be a list.",
                             self.lst.location)
            inferencer.unify(fun_type, TFun(a, TFun(b, a)),
                             "foldl: function must have type a -> b -> a.",
                             self.function.location)
            return inferencer.apply(a)

        inferencer.unify(lst_type, TList(a), "foldr: third argument must be a list.",
                         self.lst.location)
        inferencer.unify(init_type, b, "foldr: init value has wrong type.",
                         self.initial.location)
        inferencer.unify(fun_type, TFun(a, TFun(b, b)),
                         "foldr: function must have type a -> b -> b.",
                         self.function.location)
        return inferencer.apply(b)

    def display_subtree(self, indent: int = 0) -> str:
        return "\n".join([self._line(f"Fold({self.keyword}", indent),
                          self.function.display_subtree(indent + 2),
                          self.initial.display_subtree(indent + 2),
                          self.lst.display_subtree(indent + 2),
                          self._line(")", indent)])


@dataclass(frozen=True)
class Program(Node):
    """Ordered top-level statements sharing one environment."""
    statements: Tuple[Node, ...]
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def evaluate(self, env: Environment,
                 on_result: Optional[Callable[[Result], None]] = None) -> Optional[Result]:
        result: Optional[Result] = None
        for statement in self.statements:
            result = evaluate_statement(statement, env)
            if on_result is not None:
                on_result(result)
        return result

    def type_of(self, tenv: TypeEnvironment, inferencer: Inferencer) -> Optional[Type]:
        result: Optional[Type] = None
        for statement in self.statements:
            result = statement.type_of(tenv, inferencer)
        return result

    def display_subtree(self, indent: int = 0) -> str:
        lines = [self._line("Program(", indent)]
        lines.extend(s.display_subtree(indent + 2) for s in self.statements)
        lines.append(self._line(")", indent))
        return "\n".join(lines)


def evaluate_statement(statement: Node, env: Environment) -> Result:
    """Evaluate one top-level statement, reporting host stack exhaustion."""
    try:
        return statement.evaluate(env)
    except RecursionError:
        raise EvalError("Maximum recursion depth exceeded", statement.location,
                        kind=ErrorKind.RECURSION_DEPTH) from None
