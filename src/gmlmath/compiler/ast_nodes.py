"""
Abstract Syntax Tree (AST) node definitions for GML.

This module defines the AST node types produced by the parser. Each node is
immutable and carries the half-open ``[start, end)`` string offsets of the
source text it was parsed from, so rewrites can always recover the exact
original slice of any node. Statement offsets exclude a trailing ``;``.

``node.type`` is the class name and serves as the node's string tag.
"""

from abc import ABC
from dataclasses import dataclass, fields
from typing import Iterator, Optional, Union


class ASTNode(ABC):
    """Base class for all AST nodes."""

    start: int
    end: int

    @property
    def type(self) -> str:
        """The node's string tag (its class name)."""
        return self.__class__.__name__

    def text(self, source: str) -> str:
        """Return the source slice this node was parsed from."""
        return source[self.start:self.end]


# -----------------------------------------------------------------------------
# Expressions
# -----------------------------------------------------------------------------


class Expression(ASTNode):
    """Base class for all expressions."""

    pass


@dataclass(frozen=True, slots=True)
class Identifier(Expression):
    """
    An identifier expression.

    Example:
        x, hp, global, self, other
    """

    name: str
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class Literal(Expression):
    """
    A number, string, boolean or ``undefined`` literal.

    ``raw`` is the literal exactly as written in the source (``$FF``, ``.5``).
    """

    value: Union[int, float, str, bool, None]
    raw: str
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class ParenthesizedExpression(Expression):
    """An expression wrapped in parentheses, kept so source slices stay exact."""

    expression: Expression
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class BinaryExpression(Expression):
    """
    A binary arithmetic, bitwise, comparison or nullish operation.

    ``operator`` is the lexeme as written (``%`` and ``mod`` both appear).

    Example:
        a * b, hp / max_hp, x mod 2, a ?? b
    """

    operator: str
    left: Expression
    right: Expression
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class LogicalExpression(Expression):
    """
    A boolean ``&&``/``and``, ``||``/``or`` or ``^^``/``xor`` operation.
    """

    operator: str
    left: Expression
    right: Expression
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class UnaryExpression(Expression):
    """
    A prefix unary operation.

    Example:
        -x, !done, not done, ~mask
    """

    operator: str
    argument: Expression
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class UpdateExpression(Expression):
    """
    An increment or decrement, prefix or postfix.

    Example:
        i++, --count
    """

    operator: str
    argument: Expression
    prefix: bool
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class AssignmentExpression(Expression):
    """
    An assignment, plain or compound.

    Example:
        x = 1, hp -= damage, speed *= 0.5, cache ??= {}
    """

    operator: str
    left: Expression
    right: Expression
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class ConditionalExpression(Expression):
    """
    A ternary conditional.

    Example:
        hp > 0 ? "alive" : "dead"
    """

    test: Expression
    consequent: Expression
    alternate: Expression
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class CallExpression(Expression):
    """
    A function or method call.

    Example:
        sqrt(x), lengthdir_x(len, dir), self.update(dt)
    """

    callee: Expression
    arguments: tuple[Expression, ...]
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class NewExpression(Expression):
    """A constructor call, ``new Vector2(x, y)``."""

    callee: Expression
    arguments: tuple[Expression, ...]
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class MemberDotExpression(Expression):
    """
    A dot member access.

    Example:
        other.x, global.score
    """

    object: Expression
    property: Identifier
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class MemberIndexExpression(Expression):
    """
    An index access, optionally through an accessor.

    ``accessor`` is the opening bracket as written: ``[``, ``[@``, ``[?``,
    ``[|``, ``[#`` or ``[$``. Grid accessors carry two indices.

    Example:
        arr[i], map[? "key"], grid[# x, y]
    """

    object: Expression
    property: tuple[Expression, ...]
    accessor: str = "["
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class ArrayExpression(Expression):
    """An array literal, ``[1, 2, 3]``."""

    elements: tuple[Expression, ...]
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class Property(ASTNode):
    """One ``key: value`` entry of a struct literal."""

    key: Expression
    value: Expression
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class StructExpression(Expression):
    """A struct literal, ``{ x: 1, y: 2 }``."""

    properties: tuple[Property, ...]
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class FunctionExpression(Expression):
    """
    An anonymous or named function used as a value.

    Parameters are identifiers, or assignments for parameters with defaults.

    Example:
        var f = function(a, b = 2) { return a + b; }
    """

    id: Optional[Identifier]
    params: tuple[Expression, ...]
    body: "BlockStatement"
    parent: Optional[Expression] = None
    constructor: bool = False
    start: int = 0
    end: int = 0


# -----------------------------------------------------------------------------
# Statements
# -----------------------------------------------------------------------------


class Statement(ASTNode):
    """Base class for all statements."""

    pass


@dataclass(frozen=True, slots=True)
class Program(ASTNode):
    """The root node: every top-level statement of one source file."""

    body: tuple[Statement, ...]
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class BlockStatement(Statement):
    """
    A block of statements enclosed in braces.

    Example:
        { stmt1; stmt2; stmt3 }
    """

    body: tuple[Statement, ...]
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class EmptyStatement(Statement):
    """A lone ``;``."""

    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class ExpressionStatement(Statement):
    """
    An expression used as a statement.

    Example:
        x += 1;
        show_debug_message("hello");
    """

    expression: Expression
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class VariableDeclarator(ASTNode):
    """One ``name = init`` binding of a variable declaration."""

    id: Identifier
    init: Optional[Expression] = None
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class VariableDeclaration(Statement):
    """
    A ``var``, ``globalvar`` or ``static`` declaration.

    Example:
        var s = 10, t;
    """

    declarations: tuple[VariableDeclarator, ...]
    kind: str = "var"
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class IfStatement(Statement):
    """
    An if/else statement. ``else if`` chains nest in ``alternate``.
    """

    test: Expression
    consequent: Statement
    alternate: Optional[Statement] = None
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class WhileStatement(Statement):
    """A ``while`` loop."""

    test: Expression
    body: Statement
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class DoUntilStatement(Statement):
    """A ``do { ... } until (cond)`` loop."""

    body: Statement
    test: Expression
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class ForStatement(Statement):
    """
    A C-style ``for`` loop; each header clause is optional.

    Example:
        for (var i = 0; i < n; i++) { ... }
    """

    init: Optional[Statement]
    test: Optional[Expression]
    update: Optional[Statement]
    body: Statement
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class RepeatStatement(Statement):
    """A ``repeat (n)`` loop."""

    count: Expression
    body: Statement
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class WithStatement(Statement):
    """A ``with (instance)`` block."""

    object: Expression
    body: Statement
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class SwitchCase(ASTNode):
    """A ``case x:`` or ``default:`` clause; ``test`` is None for default."""

    test: Optional[Expression]
    consequent: tuple[Statement, ...]
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class SwitchStatement(Statement):
    """A ``switch`` statement."""

    discriminant: Expression
    cases: tuple[SwitchCase, ...]
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class ReturnStatement(Statement):
    """A ``return`` with an optional value."""

    argument: Optional[Expression] = None
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class BreakStatement(Statement):
    """A ``break`` statement."""

    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class ContinueStatement(Statement):
    """A ``continue`` statement."""

    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class ExitStatement(Statement):
    """An ``exit`` statement."""

    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class ThrowStatement(Statement):
    """A ``throw`` statement."""

    argument: Expression
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class TryStatement(Statement):
    """
    A ``try``/``catch``/``finally`` statement.

    Example:
        try { risky(); } catch (e) { show_debug_message(e); }
    """

    block: BlockStatement
    param: Optional[Identifier] = None
    handler: Optional[BlockStatement] = None
    finalizer: Optional[BlockStatement] = None
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class EnumDeclaration(Statement):
    """
    An ``enum`` declaration; members reuse VariableDeclarator.

    Example:
        enum State { idle, walk = 2 }
    """

    id: Identifier
    members: tuple[VariableDeclarator, ...]
    start: int = 0
    end: int = 0


@dataclass(frozen=True, slots=True)
class FunctionDeclaration(Statement):
    """
    A named function declaration, optionally a constructor.

    Example:
        function Vector2(x, y) constructor { ... }
    """

    id: Identifier
    params: tuple[Expression, ...]
    body: BlockStatement
    parent: Optional[Expression] = None
    constructor: bool = False
    start: int = 0
    end: int = 0


# -----------------------------------------------------------------------------
# Traversal helpers
# -----------------------------------------------------------------------------


def iter_child_nodes(node: ASTNode) -> Iterator[ASTNode]:
    """
    Yield the direct children of a node in source order.

    Children are found generically from the dataclass fields, so every node
    type is covered without per-type bookkeeping.
    """
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, ASTNode):
            yield value
        elif isinstance(value, tuple):
            for item in value:
                if isinstance(item, ASTNode):
                    yield item


def walk(node: ASTNode) -> Iterator[ASTNode]:
    """Yield a node and all of its descendants, depth first, in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(iter_child_nodes(current))))


def unwrap_parens(node: ASTNode) -> ASTNode:
    """Strip any number of ParenthesizedExpression wrappers."""
    while isinstance(node, ParenthesizedExpression):
        node = node.expression
    return node


def statement_lists(node: ASTNode) -> Iterator[tuple[Statement, ...]]:
    """
    Yield every statement list in a tree: program and block bodies and the
    consequents of switch cases.
    """
    for current in walk(node):
        if isinstance(current, (Program, BlockStatement)):
            yield current.body
        elif isinstance(current, SwitchCase):
            yield current.consequent
