"""
LLVM Backend for tylang.

Generates LLVM IR with llvmlite.ir, one module per compilation unit, and
hands finished units to the JIT engine. Every value is a double and every
function has the type double(double, ...).

Author: xwest
"""

import logging
from typing import Dict, List, Optional, TYPE_CHECKING

import llvmlite.ir as ll

from ..parser.ast_nodes import (
    ASTVisitor, Expression, NumberLiteral, VariableRef, BinaryOp, Call, Prototype,
    ANONYMOUS_FUNCTION_NAME
)
from ..jit.jit_compiler import JITEngine, OptimizationLevel, CompiledUnit
from .base import Backend
from .errors import (
    CodegenError, unknown_variable, unknown_function, arity_mismatch,
    invalid_operator, conflicting_declaration
)

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)


class LLVMCodeGenerator(ASTVisitor):
    """Emits the instructions for one function body."""

    def __init__(self, backend: 'LLVMBackend', builder: ll.IRBuilder,
                 named_values: Dict[str, ll.Argument]):
        self.backend = backend
        self.builder = builder
        self.named_values = named_values
        self.double = backend.double

    def visit_number_literal(self, node: NumberLiteral) -> ll.Value:
        return ll.Constant(self.double, node.value)

    def visit_variable_ref(self, node: VariableRef) -> ll.Value:
        value = self.named_values.get(node.name)
        if value is None:
            raise unknown_variable(node.name, node.location)
        return value

    def visit_binary_op(self, node: BinaryOp) -> ll.Value:
        left = self.visit(node.left)
        right = self.visit(node.right)

        op = node.operator
        if op == '+':
            return self.builder.fadd(left, right, name="addtmp")
        elif op == '-':
            return self.builder.fsub(left, right, name="subtmp")
        elif op == '*':
            return self.builder.fmul(left, right, name="multmp")
        elif op == '<':
            cmp = self.builder.fcmp_unordered('<', left, right, name="cmptmp")
            # Convert bool 0/1 to double 0.0 or 1.0
            return self.builder.uitofp(cmp, self.double, name="booltmp")

        raise invalid_operator(op, node.location)

    def visit_call(self, node: Call) -> ll.Value:
        callee = self.backend.resolve_function(node.callee)
        if callee is None:
            raise unknown_function(node.callee, node.location)

        if len(callee.args) != len(node.args):
            raise arity_mismatch(node.callee, len(callee.args), len(node.args), node.location)

        args = [self.visit(arg) for arg in node.args]
        return self.builder.call(callee, args, name="calltmp")


class LLVMBackend(Backend):
    """
    LLVM backend for tylang.

    Handles are ``llvmlite.ir.Function`` objects of the current module;
    units are the JIT's CompiledUnit records.
    """

    name = "llvm"

    def __init__(self, session: 'Session',
                 optimization_level: OptimizationLevel = OptimizationLevel.O2,
                 jit: Optional[JITEngine] = None):
        """
        Initialize the LLVM backend.

        Args:
            session: Session holding the prototype registry
            optimization_level: Pipeline run on every handed-off unit
            jit: Engine to hand units to; created if omitted
        """
        super().__init__(session)
        self.jit = jit or JITEngine(optimization_level)
        self.double = ll.DoubleType()
        self.module: Optional[ll.Module] = None
        self._unit_count = 0
        self._open_unit()

    def _open_unit(self):
        self._unit_count += 1
        self.module = ll.Module(name=f"tylang_unit{self._unit_count}")
        self.module.triple = self.jit.triple
        self.module.data_layout = self.jit.data_layout

    def _symbol_name(self, name: str) -> str:
        # MCJIT keeps the symbols of removed modules, so every unit gets its own
        if name == ANONYMOUS_FUNCTION_NAME:
            return f"{name}.{self._unit_count}"
        return name

    def lookup(self, name: str) -> Optional[ll.Function]:
        value = self.module.globals.get(self._symbol_name(name))
        if isinstance(value, ll.Function):
            return value
        return None

    def declare(self, prototype: Prototype) -> ll.Function:
        """Make the function type: double(double, double) etc."""
        self._check_prototype(prototype)

        existing = self.lookup(prototype.name)
        if existing is not None:
            if len(existing.args) != prototype.arity:
                raise conflicting_declaration(prototype.name, len(existing.args),
                                              prototype.arity, prototype.location)
            return existing

        function_type = ll.FunctionType(self.double, [self.double] * prototype.arity)
        function = ll.Function(self.module, function_type, name=self._symbol_name(prototype.name))
        for arg, param in zip(function.args, prototype.params):
            arg.name = param
        return function

    def define_body(self, handle: ll.Function, body: Expression, params: List[str]) -> ll.Function:
        self._check_redefinition(handle.name, not handle.is_declaration, body.location)

        block = handle.append_basic_block(name="entry")
        builder = ll.IRBuilder(block)
        named_values = dict(zip(params, handle.args))
        generator = LLVMCodeGenerator(self, builder, named_values)

        try:
            return_value = generator.visit(body)
        except CodegenError:
            # Error reading body: leave a plain declaration behind
            handle.blocks = []
            raise

        builder.ret(return_value)
        self._defined.add(handle.name)
        return handle

    def finalize_unit(self) -> CompiledUnit:
        module = self.module
        self._open_unit()

        try:
            unit = self.jit.add_unit(module)
        except Exception as e:
            for function in module.functions:
                if not function.is_declaration:
                    self._defined.discard(function.name)
            raise CodegenError(f"LLVM rejected module {module.name}: {e}", "C000") from e

        logger.info("finalized %s in %.2f ms", unit.name, unit.compilation_time_ms)
        return unit

    def execute(self, compiled: ll.Function, *args: float) -> float:
        if len(args) != len(compiled.args):
            raise arity_mismatch(compiled.name, len(compiled.args), len(args))
        return self.jit.call(compiled.name, list(args))

    def release(self, unit: CompiledUnit):
        self.jit.remove_unit(unit)
        self._defined -= unit.defined

    def dump(self, handle: ll.Function) -> str:
        return str(handle)

    def module_ir(self) -> str:
        """LLVM IR of the current, not yet finalized unit"""
        return str(self.module)
