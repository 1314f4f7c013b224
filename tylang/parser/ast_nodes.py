"""
Abstract Syntax Tree node definitions for tylang.

The expression node set is closed: NumberLiteral, VariableRef, BinaryOp and
Call. Prototype and FunctionDef wrap expressions into top-level units.
Every node records the source location it started at and supports the
visitor pattern.

Author: xwest
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Any, Tuple
from enum import Enum

from ..lexer.tokens import SourceLocation


# Reserved name for the zero-argument function wrapping a bare top-level expression
ANONYMOUS_FUNCTION_NAME = "__anon_expr"


class ASTNodeType(Enum):
    """Enumeration of all AST node types."""

    # Expressions
    NUMBER_LITERAL = "NumberLiteral"
    VARIABLE_REF = "VariableRef"
    BINARY_OP = "BinaryOp"
    CALL = "Call"

    # Top-level
    PROTOTYPE = "Prototype"
    FUNCTION_DEF = "FunctionDef"


class ASTVisitor(ABC):
    """
    Visitor over the closed expression node set.

    ``visit`` dispatches on the node type; subclasses implement one method
    per expression variant.
    """

    def visit(self, node: 'Expression') -> Any:
        if isinstance(node, NumberLiteral):
            return self.visit_number_literal(node)
        if isinstance(node, VariableRef):
            return self.visit_variable_ref(node)
        if isinstance(node, BinaryOp):
            return self.visit_binary_op(node)
        if isinstance(node, Call):
            return self.visit_call(node)
        raise TypeError(f"Not an expression node: {node!r}")

    @abstractmethod
    def visit_number_literal(self, node: 'NumberLiteral') -> Any:
        pass

    @abstractmethod
    def visit_variable_ref(self, node: 'VariableRef') -> Any:
        pass

    @abstractmethod
    def visit_binary_op(self, node: 'BinaryOp') -> Any:
        pass

    @abstractmethod
    def visit_call(self, node: 'Call') -> Any:
        pass


class ASTNode(ABC):
    """Base class for all AST nodes."""

    # Names of the attributes that make up the node's structure
    _fields: Tuple[str, ...] = ()

    def __init__(self, node_type: ASTNodeType, location: Optional[SourceLocation] = None):
        self.node_type = node_type
        self.location = location

    @abstractmethod
    def children(self) -> List['ASTNode']:
        """Get all child nodes."""
        pass

    def __eq__(self, other) -> bool:
        """Structural equality; source locations are ignored."""
        if type(self) is not type(other):
            return NotImplemented
        return all(getattr(self, f) == getattr(other, f) for f in self._fields)

    __hash__ = None

    def __str__(self) -> str:
        return format_ast(self)

    def __repr__(self) -> str:
        args = ", ".join(f"{f}={getattr(self, f)!r}" for f in self._fields)
        return f"{self.__class__.__name__}({args})"


# ============================================================================
# Expressions
# ============================================================================

class Expression(ASTNode):
    """Base class for expressions."""

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit(self)


class NumberLiteral(Expression):
    """Numeric literal; the language has a single float64 type."""
    _fields = ("value",)

    def __init__(self, value: float, location: Optional[SourceLocation] = None):
        super().__init__(ASTNodeType.NUMBER_LITERAL, location)
        self.value = float(value)

    def children(self) -> List[ASTNode]:
        return []


class VariableRef(Expression):
    """Reference to a function parameter; there are no other bindings."""
    _fields = ("name",)

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        super().__init__(ASTNodeType.VARIABLE_REF, location)
        self.name = name

    def children(self) -> List[ASTNode]:
        return []


class BinaryOp(Expression):
    """Binary operation on a single-character operator."""
    _fields = ("operator", "left", "right")

    def __init__(self, operator: str, left: Expression, right: Expression,
                 location: Optional[SourceLocation] = None):
        super().__init__(ASTNodeType.BINARY_OP, location or left.location)
        self.operator = operator
        self.left = left
        self.right = right

    def children(self) -> List[ASTNode]:
        return [self.left, self.right]


class Call(Expression):
    """Call of a named function."""
    _fields = ("callee", "args")

    def __init__(self, callee: str, args: List[Expression],
                 location: Optional[SourceLocation] = None):
        super().__init__(ASTNodeType.CALL, location)
        self.callee = callee
        self.args = list(args)

    def children(self) -> List[ASTNode]:
        return list(self.args)


# ============================================================================
# Top-level nodes
# ============================================================================

class Prototype(ASTNode):
    """
    Function name and parameter names, without a body.

    Parameter names are not checked for uniqueness here; the backends
    reject duplicates when the prototype is declared.
    """
    _fields = ("name", "params")

    def __init__(self, name: str, params: List[str],
                 location: Optional[SourceLocation] = None):
        super().__init__(ASTNodeType.PROTOTYPE, location)
        self.name = name
        self.params = list(params)

    @property
    def arity(self) -> int:
        return len(self.params)

    @property
    def is_anonymous(self) -> bool:
        return self.name == ANONYMOUS_FUNCTION_NAME

    def children(self) -> List[ASTNode]:
        return []


class FunctionDef(ASTNode):
    """Function definition: a prototype and a single-expression body."""
    _fields = ("prototype", "body")

    def __init__(self, prototype: Prototype, body: Expression,
                 location: Optional[SourceLocation] = None):
        super().__init__(ASTNodeType.FUNCTION_DEF, location or prototype.location)
        self.prototype = prototype
        self.body = body

    @property
    def name(self) -> str:
        return self.prototype.name

    @property
    def is_anonymous(self) -> bool:
        return self.prototype.is_anonymous

    @classmethod
    def anonymous(cls, body: Expression) -> 'FunctionDef':
        """Wrap a bare expression as a zero-argument function."""
        return cls(Prototype(ANONYMOUS_FUNCTION_NAME, [], body.location), body)

    def children(self) -> List[ASTNode]:
        return [self.prototype, self.body]


# ============================================================================
# Pretty printing
# ============================================================================

def _format_number(value: float) -> str:
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


class _SExpressionFormatter(ASTVisitor):
    def visit_number_literal(self, node: NumberLiteral) -> str:
        return _format_number(node.value)

    def visit_variable_ref(self, node: VariableRef) -> str:
        return node.name

    def visit_binary_op(self, node: BinaryOp) -> str:
        return f"({node.operator} {self.visit(node.left)} {self.visit(node.right)})"

    def visit_call(self, node: Call) -> str:
        parts = ["call", node.callee] + [self.visit(arg) for arg in node.args]
        return "(" + " ".join(parts) + ")"


def format_ast(node: ASTNode) -> str:
    """
    Render a node as an S-expression.

    >>> format_ast(BinaryOp('+', NumberLiteral(1), NumberLiteral(2)))
    '(+ 1 2)'
    """
    formatter = _SExpressionFormatter()
    if isinstance(node, Expression):
        return formatter.visit(node)
    if isinstance(node, Prototype):
        return "(" + " ".join([node.name] + node.params) + ")"
    if isinstance(node, FunctionDef):
        return f"(def {format_ast(node.prototype)} {formatter.visit(node.body)})"
    raise TypeError(f"Cannot format {node!r}")


# Closed set of expression variants
EXPRESSION_TYPES = (NumberLiteral, VariableRef, BinaryOp, Call)
