"""Core type and value definitions for MFL.

This module defines the structural types manipulated by the inferencer,
the substitution store that records what unification has learned, and the
runtime values and environments used by the evaluator. Nothing here knows
about the syntax tree, so both passes can share it.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Optional, Tuple, TYPE_CHECKING
from abc import ABC, abstractmethod

if TYPE_CHECKING:
    from .syntax import Node


# Types

@dataclass(frozen=True)
class Constraint:
    """A predicate a type variable must satisfy before it may be bound."""
    name: str

    def accepts(self, type_val: Type) -> bool:
        # A variable is acceptable if it carries the same restriction or
        # none at all; the unifier binds the unrestricted one.
        if isinstance(type_val, TVar):
            return type_val.constraint is None or type_val.constraint == self
        if self.name == "numeric":
            return isinstance(type_val, (TInt, TReal))
        return False

    def __str__(self) -> str:
        return self.name


NUMERIC = Constraint("numeric")


class Type(ABC):
    """Base class for MFL types."""

    @abstractmethod
    def __str__(self) -> str:
        pass


@dataclass(frozen=True)
class TInt(Type):
    def __str__(self) -> str:
        return "int"


@dataclass(frozen=True)
class TReal(Type):
    def __str__(self) -> str:
        return "real"


@dataclass(frozen=True)
class TBool(Type):
    def __str__(self) -> str:
        return "bool"


@dataclass(frozen=True)
class TList(Type):
    """Homogeneous list type."""
    elem: Type

    def __str__(self) -> str:
        return f"[ {self.elem} ]"


@dataclass(frozen=True)
class TFun(Type):
    """Single-argument function type."""
    param: Type
    result: Type

    def __str__(self) -> str:
        return f"({self.param} -> {self.result})"


@dataclass(frozen=True)
class TVar(Type):
    """Type variable. Identity is the id alone."""
    id: int
    constraint: Optional[Constraint] = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"t{self.id}"


INT = TInt()
REAL = TReal()
BOOL = TBool()


def free_type_vars(type_val: Type) -> Iterator[TVar]:
    """Yield the variables of a type in first-occurrence order (with repeats)."""
    if isinstance(type_val, TVar):
        yield type_val
    elif isinstance(type_val, TList):
        yield from free_type_vars(type_val.elem)
    elif isinstance(type_val, TFun):
        yield from free_type_vars(type_val.param)
        yield from free_type_vars(type_val.result)


def occurs_in(var: TVar, type_val: Type) -> bool:
    """Occurs check: does `var` appear anywhere inside `type_val`?"""
    return any(v == var for v in free_type_vars(type_val))


@dataclass
class Substitution:
    """Bindings from type variables to types, discovered by unification.

    The store only grows. `apply` follows chains of bindings to a fixed
    point, so a type coming out of it never mentions a bound variable.
    """
    mapping: Dict[TVar, Type] = field(default_factory=dict)

    def bind(self, var: TVar, type_val: Type) -> None:
        """Record var -> type. Constraint and occurs checks are the caller's job."""
        self.mapping[var] = type_val

    def lookup(self, var: TVar) -> Optional[Type]:
        return self.mapping.get(var)

    def apply(self, type_val: Type) -> Type:
        """Resolve every bound variable in a type."""
        if isinstance(type_val, TVar):
            bound = self.mapping.get(type_val)
            if bound is None:
                return type_val
            return self.apply(bound)
        elif isinstance(type_val, TList):
            return TList(self.apply(type_val.elem))
        elif isinstance(type_val, TFun):
            return TFun(self.apply(type_val.param), self.apply(type_val.result))
        else:
            return type_val

    def externalize(self, type_val: Type) -> Type:
        """Renumber the free variables of a resolved type as t0, t1, ...

        Numbering follows first occurrence, so the same type always
        prints the same way regardless of how many variables the run used.
        """
        resolved = self.apply(type_val)
        renaming: Dict[TVar, TVar] = {}
        for var in free_type_vars(resolved):
            if var not in renaming:
                renaming[var] = TVar(len(renaming), var.constraint)
        return _rename(resolved, renaming)

    def __len__(self) -> int:
        return len(self.mapping)

    def __str__(self) -> str:
        pairs = ", ".join(f"{var} := {ty}" for var, ty in self.mapping.items())
        return f"{{{pairs}}}"


def _rename(type_val: Type, renaming: Dict[TVar, TVar]) -> Type:
    if isinstance(type_val, TVar):
        return renaming.get(type_val, type_val)
    elif isinstance(type_val, TList):
        return TList(_rename(type_val.elem, renaming))
    elif isinstance(type_val, TFun):
        return TFun(_rename(type_val.param, renaming), _rename(type_val.result, renaming))
    return type_val


# Runtime values

class Value(ABC):
    """Base class for runtime values."""

    @abstractmethod
    def kind(self) -> str:
        """Short name of the value's runtime class, used in error messages."""
        pass


@dataclass(frozen=True)
class VInt(Value):
    value: int

    def kind(self) -> str:
        return "int"

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class VReal(Value):
    value: float

    def kind(self) -> str:
        return "real"

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class VBool(Value):
    value: bool

    def kind(self) -> str:
        return "bool"

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class VList(Value):
    """Immutable list value; operations build new lists."""
    elements: Tuple[Value, ...] = ()

    def kind(self) -> str:
        return "list"

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[Value]:
        return iter(self.elements)

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elements) + "]"


@dataclass(frozen=True, eq=False)
class VClosure(Value):
    """Function value: parameter, shared body and the captured environment."""
    param: str
    body: Node
    env: Environment

    def kind(self) -> str:
        return "function"

    def __str__(self) -> str:
        return f"<closure {self.param} -> ...>"


def same_runtime_class(a: Value, b: Value) -> bool:
    return type(a) is type(b)


class Environment:
    """Runtime scope: a frame of bindings chained to its enclosing scope.

    Extending never touches the receiver, so every holder of an
    environment keeps seeing exactly the bindings it had. The one frame
    that does change is the program frame, through `define`; closures
    take a `snapshot` so they are unaffected by later definitions.
    """

    def __init__(self, bindings: Optional[Dict[str, Value]] = None,
                 parent: Optional[Environment] = None):
        self._bindings: Dict[str, Value] = dict(bindings or {})
        self._parent = parent

    def lookup(self, name: str) -> Optional[Value]:
        """Return the innermost binding for name, or None."""
        scope: Optional[Environment] = self
        while scope is not None:
            if name in scope._bindings:
                return scope._bindings[name]
            scope = scope._parent
        return None

    def extend(self, name: str, value: Value) -> Environment:
        """New environment with one extra (or shadowing) binding."""
        return Environment({name: value}, self)

    def snapshot(self) -> Environment:
        """Freeze the current view into a single detached frame.

        Every enclosing frame is copied, so later `define`s on the program
        frame are not seen through the snapshot.
        """
        bindings: Dict[str, Value] = {}
        scope: Optional[Environment] = self
        while scope is not None:
            for name, value in scope._bindings.items():
                bindings.setdefault(name, value)
            scope = scope._parent
        return Environment(bindings)

    def define(self, name: str, value: Value) -> None:
        """Add a binding to this frame in place (top-level `val`)."""
        self._bindings[name] = value

    def defines(self, name: str) -> bool:
        """Is name bound in this frame (not an enclosing one)?"""
        return name in self._bindings

    def names(self) -> List[str]:
        seen: List[str] = []
        scope: Optional[Environment] = self
        while scope is not None:
            for name in scope._bindings:
                if name not in seen:
                    seen.append(name)
            scope = scope._parent
        return seen


def bind_recursive(closure: VClosure, name: str) -> VClosure:
    """Make a closure able to call itself by `name`.

    A new frame holding `name` is pushed on the closure's captured
    environment and then back-patched to point at the closure that owns it.
    """
    frame = Environment({}, closure.env)
    recursive = replace(closure, env=frame)
    frame.define(name, recursive)
    return recursive


def apply_closure(closure: VClosure, argument: Value) -> Value:
    """Run a closure's body with its parameter bound to argument.

    The callee sees the environment it captured, not the caller's.
    """
    return closure.body.evaluate(closure.env.extend(closure.param, argument))
