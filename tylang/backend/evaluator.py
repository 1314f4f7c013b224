"""
Tree-walking backend for tylang.

Implements the same capability interface as the LLVM backend without
generating machine code: compiling a body resolves every name up front and
turns the expression into nested Python closures. Calls are dispatched by
name at run time to the newest live definition, then to the host C math
library for externs such as ``sin`` or ``sqrt``, the same functions the
LLVM backend links against.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, TYPE_CHECKING

from ..parser.ast_nodes import (
    ASTVisitor, Expression, NumberLiteral, VariableRef, BinaryOp, Call,
    Prototype, FunctionDef, format_ast
)
from .base import Backend
from .host import HostSymbols
from .errors import (
    ExecutionError, unknown_variable, unknown_function, arity_mismatch,
    invalid_operator, conflicting_declaration, unresolved_symbols
)

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

Code = Callable[[Sequence[float]], float]


@dataclass
class EvalFunction:
    """A declared function; ``code`` is set once a body is compiled."""
    prototype: Prototype
    body: Optional[Expression] = None
    code: Optional[Code] = None

    @property
    def name(self) -> str:
        return self.prototype.name

    @property
    def arity(self) -> int:
        return self.prototype.arity

    @property
    def is_declaration(self) -> bool:
        return self.code is None


@dataclass
class EvalUnit:
    """Compilation unit of the evaluator backend."""
    name: str
    functions: Dict[str, EvalFunction] = field(default_factory=dict)
    finalized: bool = False

    @property
    def defined(self) -> List[str]:
        return [name for name, fn in self.functions.items() if not fn.is_declaration]


def _unordered_less(left: float, right: float) -> float:
    # True when either side is NaN, like LLVM's 'ult'
    return 0.0 if left >= right else 1.0


_OPERATORS: Dict[str, Callable[[float, float], float]] = {
    '+': lambda a, b: a + b,
    '-': lambda a, b: a - b,
    '*': lambda a, b: a * b,
    '<': _unordered_less,
}


class ClosureCompiler(ASTVisitor):
    """Turns an expression into a closure over the argument tuple."""

    def __init__(self, backend: 'EvaluatorBackend', params: List[str]):
        self.backend = backend
        self.scope = {name: index for index, name in enumerate(params)}

    def visit_number_literal(self, node: NumberLiteral) -> Code:
        value = node.value
        return lambda env: value

    def visit_variable_ref(self, node: VariableRef) -> Code:
        index = self.scope.get(node.name)
        if index is None:
            raise unknown_variable(node.name, node.location)
        return lambda env: env[index]

    def visit_binary_op(self, node: BinaryOp) -> Code:
        left = self.visit(node.left)
        right = self.visit(node.right)

        operator = _OPERATORS.get(node.operator)
        if operator is None:
            raise invalid_operator(node.operator, node.location)
        return lambda env: operator(left(env), right(env))

    def visit_call(self, node: Call) -> Code:
        callee = self.backend.resolve_function(node.callee)
        if callee is None:
            raise unknown_function(node.callee, node.location)

        if callee.arity != len(node.args):
            raise arity_mismatch(node.callee, callee.arity, len(node.args), node.location)

        name = callee.name
        args = [self.visit(arg) for arg in node.args]
        call = self.backend.call
        return lambda env: call(name, [arg(env) for arg in args])


class EvaluatorBackend(Backend):
    """Pure Python backend; handles are EvalFunction, units are EvalUnit."""

    name = "eval"

    def __init__(self, session: 'Session', host: Optional[HostSymbols] = None):
        """
        Args:
            session: Session holding the prototype registry
            host: Where undefined externs are looked up
        """
        super().__init__(session)
        self.host = host if host is not None else HostSymbols()
        self.live_units: List[EvalUnit] = []
        self._unit_count = 0
        self.unit: Optional[EvalUnit] = None
        self._open_unit()

    def _open_unit(self):
        self._unit_count += 1
        self.unit = EvalUnit(name=f"tylang_unit{self._unit_count}")

    def lookup(self, name: str) -> Optional[EvalFunction]:
        return self.unit.functions.get(name)

    def declare(self, prototype: Prototype) -> EvalFunction:
        self._check_prototype(prototype)

        existing = self.lookup(prototype.name)
        if existing is not None:
            if existing.arity != prototype.arity:
                raise conflicting_declaration(prototype.name, existing.arity,
                                              prototype.arity, prototype.location)
            return existing

        function = EvalFunction(prototype)
        self.unit.functions[prototype.name] = function
        return function

    def define_body(self, handle: EvalFunction, body: Expression, params: List[str]) -> EvalFunction:
        self._check_redefinition(handle.name, not handle.is_declaration, body.location)

        code = ClosureCompiler(self, list(params)).visit(body)

        handle.body = body
        handle.code = code
        self._defined.add(handle.name)
        return handle

    def finalize_unit(self) -> EvalUnit:
        unit = self.unit
        unit.finalized = True
        self.live_units.append(unit)
        self._open_unit()
        logger.info("finalized %s", unit.name)
        return unit

    def release(self, unit: EvalUnit):
        self.live_units.remove(unit)
        for name in unit.defined:
            self._defined.discard(name)
        logger.debug("released %s", unit.name)

    # Execution

    def _find_definition(self, name: str) -> Optional[EvalFunction]:
        for unit in reversed(self.live_units):
            function = unit.functions.get(name)
            if function is not None and not function.is_declaration:
                return function
        return None

    def call(self, name: str, args: List[float]) -> float:
        """Dispatch a call by name to a live definition or a host function."""
        function = self._find_definition(name)
        if function is not None:
            if len(args) != function.arity:
                raise ExecutionError(f"'{name}' expects {function.arity} argument(s), "
                                     f"was called with {len(args)}", "E002")
            return function.code(args)

        result = self.host.call(name, args)
        if result is None:
            raise unresolved_symbols({name})
        return result

    def execute(self, compiled: EvalFunction, *args: float) -> float:
        if len(args) != compiled.arity:
            raise arity_mismatch(compiled.name, compiled.arity, len(args))

        try:
            if compiled.code is not None:
                return float(compiled.code(list(args)))
            return self.call(compiled.name, list(args))
        except RecursionError as e:
            raise ExecutionError(f"Evaluation of '{compiled.name}' did not terminate "
                                 f"(recursion too deep)", "E002") from e

    def dump(self, handle: EvalFunction) -> str:
        if handle.is_declaration:
            return f"(extern {format_ast(handle.prototype)})"
        return format_ast(FunctionDef(handle.prototype, handle.body))
