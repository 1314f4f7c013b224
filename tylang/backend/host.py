"""
Host symbols for tylang.

Externs that no unit defines are looked up in the C libraries of the
running process (libm, libc). Both backends resolve them here, so a call
like ``log(0)`` returns whatever the platform's C library returns.

Author: xwest
"""

import ctypes
import ctypes.util
import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


def load_host_libraries() -> List[ctypes.CDLL]:
    """Libraries searched for extern functions no unit defines."""
    libraries = []
    try:
        libraries.append(ctypes.CDLL(None))  # the running process (POSIX)
    except (OSError, TypeError):
        logger.debug("process symbol table not available")

    for name in ("m", "c"):
        path = ctypes.util.find_library(name)
        if path:
            try:
                libraries.append(ctypes.CDLL(path))
            except OSError:
                logger.debug("could not load host library %s", path)
    return libraries


class HostSymbols:
    """Cached lookup of C functions in the host libraries"""

    def __init__(self, libraries: Optional[List[ctypes.CDLL]] = None):
        self.libraries = load_host_libraries() if libraries is None else libraries
        self._functions: Dict[str, object] = {}

    def __len__(self) -> int:
        return len(self._functions)

    def find(self, name: str):
        """The foreign function ``name``, or None if no host library has it."""
        if name in self._functions:
            return self._functions[name]

        for library in self.libraries:
            try:
                function = getattr(library, name)
            except AttributeError:
                continue
            self._functions[name] = function
            return function
        return None

    def address(self, name: str) -> Optional[int]:
        function = self.find(name)
        if function is None:
            return None
        return ctypes.cast(function, ctypes.c_void_p).value or None

    def call(self, name: str, args: List[float]) -> Optional[float]:
        """
        Call host function ``name`` as double(double, ...).

        Returns:
            The result, or None if the function does not exist
        """
        function = self.find(name)
        if function is None:
            return None
        arg_types = [ctypes.c_double] * len(args)
        prototype = ctypes.CFUNCTYPE(ctypes.c_double, *arg_types)
        return float(prototype(ctypes.cast(function, ctypes.c_void_p).value)(*args))
