"""
tylang JIT Package

MCJIT execution engine used by the LLVM backend.
"""

from .jit_compiler import JITEngine, CompiledUnit, OptimizationLevel, UnitState

__all__ = ['JITEngine', 'CompiledUnit', 'OptimizationLevel', 'UnitState']
