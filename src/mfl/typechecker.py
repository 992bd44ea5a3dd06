"""Type inference for MFL.

Algorithm W over the structural types of core: every node's `type_of`
asks the shared `Inferencer` to unify what it found with what its typing
rule expects, and the inferencer's substitution accumulates the answers.
Inference is monomorphic: a `val` or `let` bound name has one type.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple, TYPE_CHECKING, cast
import itertools

from .core import (
    Constraint, Substitution, TFun, TList, TVar, Type, occurs_in,
)
from .errors import TypeCheckError, ErrorKind, get_trace

if TYPE_CHECKING:
    from .syntax import Program, SourceLocation


class TypeEnvironment:
    """Scoped identifier -> type mapping.

    Shares the copy-on-extend discipline of the runtime Environment. All
    scopes derived from one root draw fresh variables from the same
    counter, so variables are distinct within one inference run.
    """

    def __init__(self, bindings: Optional[Dict[str, Type]] = None,
                 parent: Optional[TypeEnvironment] = None,
                 counter: Optional[Iterator[int]] = None):
        self._bindings: Dict[str, Type] = dict(bindings or {})
        self._parent = parent
        if counter is None:
            counter = parent._counter if parent is not None else itertools.count()
        self._counter = counter

    def lookup(self, name: str) -> Optional[Type]:
        scope: Optional[TypeEnvironment] = self
        while scope is not None:
            if name in scope._bindings:
                return scope._bindings[name]
            scope = scope._parent
        return None

    def extend(self, name: str, type_val: Type) -> TypeEnvironment:
        return TypeEnvironment({name: type_val}, self)

    def define(self, name: str, type_val: Type) -> None:
        """Bind or rebind name in this frame (top-level `val`)."""
        self._bindings[name] = type_val

    def snapshot(self) -> TypeEnvironment:
        return TypeEnvironment(self._bindings, self._parent, self._counter)

    def fresh_variable(self, constraint: Optional[Constraint] = None) -> TVar:
        """A type variable never issued before in this run."""
        return TVar(next(self._counter), constraint)

    def items(self) -> List[Tuple[str, Type]]:
        seen: Dict[str, Type] = {}
        scope: Optional[TypeEnvironment] = self
        while scope is not None:
            for name, type_val in scope._bindings.items():
                seen.setdefault(name, type_val)
            scope = scope._parent
        return list(seen.items())

    def names(self) -> List[str]:
        return [name for name, _ in self.items()]


class Inferencer:
    """Owns the substitution store of one inference run."""

    def __init__(self, substitution: Optional[Substitution] = None):
        self.substitution = substitution or Substitution()

    def apply(self, type_val: Type) -> Type:
        return self.substitution.apply(type_val)

    def externalize(self, type_val: Type) -> Type:
        return self.substitution.externalize(type_val)

    def fork(self) -> Inferencer:
        """An independent inferencer starting from the current bindings."""
        return Inferencer(Substitution(dict(self.substitution.mapping)))

    def unify(self, type1: Type, type2: Type, label: str,
              location: Optional[SourceLocation] = None) -> None:
        """Make type1 and type2 equal by extending the substitution.

        Raises TypeCheckError carrying `label` when no substitution exists.
        type1 is tried as the variable to bind before type2, and function
        parameters are unified before results.
        """
        type1 = self.apply(type1)
        type2 = self.apply(type2)

        if type1 == type2:
            return

        if isinstance(type1, TVar):
            self._bind(type1, type2, label, location)
            return

        if isinstance(type2, TVar):
            self._bind(type2, type1, label, location)
            return

        if isinstance(type1, TList) and isinstance(type2, TList):
            self.unify(type1.elem, type2.elem, label, location)
            return

        if isinstance(type1, TFun) and isinstance(type2, TFun):
            self.unify(type1.param, type2.param, label, location)
            self.unify(type1.result, type2.result, label, location)
            return

        raise self._mismatch(type1, type2, label, location)

    def _bind(self, var: TVar, other: Type, label: str,
              location: Optional[SourceLocation]) -> None:
        if (isinstance(other, TVar) and var.constraint is not None
                and other.constraint is None):
            # bind the unrestricted side so the constraint survives
            self.substitution.bind(other, var)
            return

        if var.constraint is not None and not var.constraint.accepts(other):
            raise self._mismatch(var, other, label, location)

        if occurs_in(var, other):
            expected, actual = self._describe(var, other)
            raise TypeCheckError(f"Unification error: {label}", location,
                                 kind=ErrorKind.INFINITE_TYPE,
                                 expected=expected, actual=actual)

        self.substitution.bind(var, other)

    def _mismatch(self, type1: Type, type2: Type, label: str,
                  location: Optional[SourceLocation]) -> TypeCheckError:
        expected, actual = self._describe(type1, type2)
        return TypeCheckError(f"Unification error: {label}", location,
                              kind=ErrorKind.TYPE_MISMATCH,
                              expected=expected, actual=actual)

    def _describe(self, type1: Type, type2: Type) -> Tuple[str, str]:
        # Externalize both at once so shared variables keep one name.
        pair = cast(TFun, self.externalize(TFun(type1, type2)))
        return describe_type(pair.param), describe_type(pair.result)

    def note(self, description: str, location: Optional[SourceLocation],
             type_val: Type) -> None:
        """Record an inference step in the derivation trace."""
        trace = get_trace()
        if trace.enabled:
            trace.add_step(description, location, format_type(self.externalize(type_val)))


def format_type(type_val: Type) -> str:
    """Display form of a type: int, real, bool, [ T ], (A -> B), t0."""
    return str(type_val)


def describe_type(type_val: Type) -> str:
    """Display form with constrained variables spelled out, for diagnostics."""
    if isinstance(type_val, TVar) and type_val.constraint is not None:
        return f"{type_val} ({type_val.constraint})"
    return format_type(type_val)


@dataclass
class TypeChecker:
    """A type checking session: one environment and one inferencer.

    Statements checked through the same session see each other's `val`
    bindings, which is what both a whole program and the REPL need.
    """
    tenv: TypeEnvironment
    inferencer: Inferencer

    def __init__(self, tenv: Optional[TypeEnvironment] = None,
                 inferencer: Optional[Inferencer] = None):
        self.tenv = tenv if tenv is not None else TypeEnvironment()
        self.inferencer = inferencer if inferencer is not None else Inferencer()

    def check_program(self, program: Program) -> Optional[Type]:
        """Infer the program; return the externalized type of its last statement."""
        result = program.type_of(self.tenv, self.inferencer)
        if result is None:
            return None
        return self.inferencer.externalize(result)

    def type_of_name(self, name: str) -> Optional[Type]:
        type_val = self.tenv.lookup(name)
        if type_val is None:
            return None
        return self.inferencer.externalize(type_val)

    def global_types(self) -> Dict[str, Type]:
        return {name: self.inferencer.externalize(t) for name, t in self.tenv.items()}

    def fork(self) -> TypeChecker:
        """A session that can be discarded if checking fails."""
        return TypeChecker(self.tenv.snapshot(), self.inferencer.fork())


def type_check_program(program: Program, inferencer: Optional[Inferencer] = None,
                       tenv: Optional[TypeEnvironment] = None) -> Optional[Type]:
    """Infer the type of a whole program.

    One environment and one inferencer are threaded through the statements
    in order. Returns the externalized type of the last statement, or None
    for an empty program; the first failure raises TypeCheckError.
    """
    return TypeChecker(tenv, inferencer).check_program(program)
