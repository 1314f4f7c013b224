"""
tylang Backend Package.

Code generation backends behind one capability interface: the LLVM
backend (llvmlite + MCJIT) and a pure Python tree-walking evaluator.

Author: xwest
"""

from .errors import BackendError, CodegenError, ExecutionError, BACKEND_ERROR_CODES
from .base import Backend
from .host import HostSymbols
from .evaluator import EvaluatorBackend
from .llvm_backend import LLVMBackend, LLVMCodeGenerator

__all__ = [
    'Backend',
    'LLVMBackend',
    'LLVMCodeGenerator',
    'EvaluatorBackend',
    'HostSymbols',
    'BackendError',
    'CodegenError',
    'ExecutionError',
    'BACKEND_ERROR_CODES',
]
