"""
Backend capability interface.

The driver only talks to code generation through this narrow surface:
declare a prototype, define a body, look a function up, hand off the
current compilation unit, execute a compiled function and release a
handed-off unit. Handles and units are opaque to the driver.

Author: xwest
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Set, TYPE_CHECKING

from ..parser.ast_nodes import Expression, Prototype, FunctionDef, ANONYMOUS_FUNCTION_NAME
from .errors import duplicate_parameter, conflicting_declaration, redefinition

if TYPE_CHECKING:
    from ..session import Session


class Backend(ABC):
    """
    Base class for tylang backends.

    Subclasses own the current compilation unit and the set of handed-off
    units. This class keeps what every backend shares: the session link,
    the set of functions that already have a body, and the two-level
    function lookup.
    """

    name = "abstract"

    def __init__(self, session: 'Session'):
        self.session = session
        self._defined: Set[str] = set()

    # Capability set

    @abstractmethod
    def declare(self, prototype: Prototype) -> Any:
        """Declare ``prototype`` in the current unit and return its handle."""
        pass

    @abstractmethod
    def define_body(self, handle: Any, body: Expression, params: list) -> Any:
        """
        Compile ``body`` as the body of a declared function.

        Raises:
            CodegenError: If the function already has a body, or the body
                refers to unknown names
        """
        pass

    @abstractmethod
    def lookup(self, name: str) -> Optional[Any]:
        """Find a function already present in the current unit."""
        pass

    @abstractmethod
    def finalize_unit(self) -> Any:
        """Hand off the current unit for execution and open a fresh one."""
        pass

    @abstractmethod
    def execute(self, compiled: Any, *args: float) -> float:
        """Call a compiled function and return its result."""
        pass

    @abstractmethod
    def release(self, unit: Any):
        """Free a handed-off unit and forget the functions it defined."""
        pass

    @abstractmethod
    def dump(self, handle: Any) -> str:
        """Textual form of a declared or compiled function."""
        pass

    # Shared behaviour

    def resolve_function(self, name: str) -> Optional[Any]:
        """
        Find a callable handle for ``name``.

        Asks the current unit first; if the function lives in a unit that
        was already handed off, re-declares it from the latest prototype
        recorded in the session.
        """
        handle = self.lookup(name)
        if handle is not None:
            return handle

        prototype = self.session.find_prototype(name)
        if prototype is not None:
            return self.declare(prototype)

        return None

    def define(self, function: FunctionDef) -> Any:
        """Declare the prototype of ``function`` and compile its body."""
        handle = self.declare(function.prototype)
        return self.define_body(handle, function.body, function.prototype.params)

    def is_defined(self, name: str) -> bool:
        """Whether ``name`` has a live body in some unit."""
        return name in self._defined

    def _check_prototype(self, prototype: Prototype):
        seen = set()
        for param in prototype.params:
            if param in seen:
                raise duplicate_parameter(prototype.name, param, prototype.location)
            seen.add(param)

        known = self.session.find_prototype(prototype.name)
        # A recorded prototype fixes the arity for the rest of the session
        if known is not None and known.arity != prototype.arity:
            raise conflicting_declaration(prototype.name, known.arity, prototype.arity,
                                          prototype.location)

    def _check_redefinition(self, name: str, has_body: bool, location=None):
        if has_body:
            raise redefinition(name, location)
        # Every unit has its own anonymous function
        if name in self._defined and name != ANONYMOUS_FUNCTION_NAME:
            raise redefinition(name, location)
