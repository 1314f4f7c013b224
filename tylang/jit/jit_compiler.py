"""
tylang JIT Compiler
===================

Wraps llvmlite's MCJIT execution engine for incremental compilation:

- every compilation unit is verified, optimized and handed off as one
  LLVM module
- handed-off units are materialized lazily, when code is about to run,
  so a unit may call a function that is only defined by a later unit
- calls to functions no unit defines are resolved against host symbols
  (libm and friends) before MCJIT ever sees them, so an unresolved name
  is reported instead of aborting the process
- released units are removed from the engine again
"""

import ctypes
import logging
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional, Set

import llvmlite.binding as llvm
import llvmlite.ir as ir

from ..backend.errors import unresolved_symbols, ExecutionError
from ..backend.host import HostSymbols

logger = logging.getLogger(__name__)


class UnitState(Enum):
    """Lifecycle of a handed-off unit"""
    PENDING = auto()        # Verified and optimized, not yet in the engine
    MATERIALIZED = auto()   # Added to the engine and compiled to machine code
    RELEASED = auto()       # Removed again


class OptimizationLevel(Enum):
    """JIT optimization levels"""
    O0 = 0  # No optimization (fast compilation)
    O1 = 1  # Basic optimization
    O2 = 2  # Standard optimization (default)
    O3 = 3  # Aggressive optimization (slow compilation)


@dataclass
class CompiledUnit:
    """A compilation unit after hand-off"""
    name: str
    llvm_module: llvm.ModuleRef
    defined: Set[str]                       # Functions with a body
    required: Set[str]                      # Functions called but defined elsewhere
    state: UnitState = UnitState.PENDING
    compilation_time_ms: float = 0.0
    optimization_level: OptimizationLevel = OptimizationLevel.O2


def _is_intrinsic(name: str) -> bool:
    return name.startswith("llvm.")


def _called_functions(function: ir.Function) -> Set[str]:
    """Names of all functions called from the body of ``function``."""
    names = set()
    for block in function.blocks:
        for instruction in block.instructions:
            if isinstance(instruction, ir.CallInstr):
                callee = instruction.callee
                if isinstance(callee, ir.Function):
                    names.add(callee.name)
    return names


class JITEngine:
    """MCJIT engine holding every handed-off unit of a session"""

    def __init__(self, optimization_level: OptimizationLevel = OptimizationLevel.O2):
        llvm.initialize_native_target()
        llvm.initialize_native_asmprinter()

        self.optimization_level = optimization_level

        target = llvm.Target.from_default_triple()
        self.target_machine = target.create_target_machine(opt=optimization_level.value)

        backing_module = llvm.parse_assembly("")
        self.engine = llvm.create_mcjit_compiler(backing_module, self.target_machine)

        self.pending: List[CompiledUnit] = []
        self.materialized: List[CompiledUnit] = []

        self.host = HostSymbols()
        self._host_symbols: Dict[str, int] = {}

    @property
    def triple(self) -> str:
        return self.target_machine.triple

    @property
    def data_layout(self) -> str:
        return str(self.target_machine.target_data)

    # Hand-off

    def add_unit(self, module: ir.Module) -> CompiledUnit:
        """
        Verify, optimize and queue ``module``.

        Raises:
            RuntimeError: If LLVM rejects the module
        """
        start = time.perf_counter()

        defined = set()
        required = set()
        for function in module.functions:
            if function.is_declaration:
                continue
            defined.add(function.name)
            required |= _called_functions(function)
        required = {name for name in required - defined if not _is_intrinsic(name)}

        llvm_module = llvm.parse_assembly(str(module))
        llvm_module.name = module.name
        llvm_module.verify()
        self._optimize(llvm_module)

        unit = CompiledUnit(
            name=module.name,
            llvm_module=llvm_module,
            defined=defined,
            required=required,
            compilation_time_ms=(time.perf_counter() - start) * 1000,
            optimization_level=self.optimization_level,
        )
        self.pending.append(unit)
        logger.debug("handed off %s (defines %s, requires %s)",
                     unit.name, sorted(defined), sorted(required))
        return unit

    def _optimize(self, llvm_module: llvm.ModuleRef):
        """Run the standard pipeline for the configured level"""
        if self.optimization_level == OptimizationLevel.O0:
            return

        tuning = llvm.create_pipeline_tuning_options(
            speed_level=self.optimization_level.value
        )
        pass_builder = llvm.create_pass_builder(self.target_machine, tuning)
        module_passes = pass_builder.getModulePassManager()
        module_passes.run(llvm_module, pass_builder)

    # Symbol resolution

    def host_symbol_address(self, name: str) -> Optional[int]:
        """Address of ``name`` in the host process, registered with LLVM on first use."""
        if name in self._host_symbols:
            return self._host_symbols[name]

        address = llvm.address_of_symbol(name)
        if not address:
            address = self.host.address(name)
            if address:
                llvm.add_symbol(name, address)

        if address:
            self._host_symbols[name] = address
        return address or None

    def _live_definitions(self) -> Set[str]:
        names = set()
        for unit in self.materialized:
            names |= unit.defined
        return names

    def _missing(self, unit: CompiledUnit, provided: Set[str]) -> Set[str]:
        return {name for name in unit.required
                if name not in provided and self.host_symbol_address(name) is None}

    def _pending_unit(self, name: str) -> Optional[CompiledUnit]:
        for unit in reversed(self.pending):
            if name in unit.defined:
                return unit
        return None

    def _unresolved_from(self, name: str) -> Set[str]:
        """Names nobody defines that keep ``name`` from being materialized."""
        live = self._live_definitions()
        missing = set()
        visited = set()
        stack = [name]
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)

            unit = self._pending_unit(current)
            if unit is None:
                missing.add(current)
                continue
            for required in unit.required:
                if required in live or self.host_symbol_address(required) is not None:
                    continue
                stack.append(required)
        return missing

    def materialize(self) -> List[CompiledUnit]:
        """
        Add every pending unit whose calls can all be satisfied.

        Units that call a function nobody defines yet stay pending.

        Returns:
            The units added to the engine by this call
        """
        candidates = list(self.pending)
        materialized_defs = self._live_definitions()

        # Drop candidates until every remaining call has a target
        while True:
            provided = set(materialized_defs)
            for unit in candidates:
                provided |= unit.defined
            ready = [unit for unit in candidates if not self._missing(unit, provided)]
            if len(ready) == len(candidates):
                break
            candidates = ready

        if not candidates:
            return []

        for unit in candidates:
            self.engine.add_module(unit.llvm_module)
            unit.state = UnitState.MATERIALIZED
            self.pending.remove(unit)
            self.materialized.append(unit)

        self.engine.finalize_object()
        self.engine.run_static_constructors()
        logger.debug("materialized %s", [unit.name for unit in candidates])
        return candidates

    def function_address(self, name: str) -> int:
        """
        Machine code address of function ``name``, materializing as needed.

        Raises:
            ExecutionError: If the function or something it calls is not defined
        """
        self.materialize()

        if name not in self._live_definitions():
            raise unresolved_symbols(self._unresolved_from(name), name)

        address = self.engine.get_function_address(name)
        if not address:
            raise unresolved_symbols({name})
        return address

    def call(self, name: str, args: List[float]) -> float:
        """Call compiled function ``name`` with ``args`` as doubles"""
        address = self.function_address(name)
        arg_types = [ctypes.c_double] * len(args)
        function = ctypes.CFUNCTYPE(ctypes.c_double, *arg_types)(address)
        return float(function(*args))

    # Release

    def remove_unit(self, unit: CompiledUnit):
        """Take ``unit`` out of the engine (or the pending queue)"""
        if unit.state == UnitState.MATERIALIZED:
            self.engine.remove_module(unit.llvm_module)
            self.materialized.remove(unit)
        elif unit.state == UnitState.PENDING:
            self.pending.remove(unit)
        else:
            raise ExecutionError(f"Unit {unit.name} was already released", "E002")
        unit.state = UnitState.RELEASED
        logger.debug("released %s", unit.name)

    def get_stats(self) -> Dict[str, int]:
        return {
            "pending_units": len(self.pending),
            "materialized_units": len(self.materialized),
            "host_symbols": len(self._host_symbols),
        }
