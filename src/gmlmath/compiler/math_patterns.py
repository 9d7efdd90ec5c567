"""
Pattern-specific algebraic rewrites.

Each recognizer looks at one expression, or a window of two statements, and
returns the edits for a rewrite it is certain about. A shape that does not
match exactly returns None (or no edits); recognizers never raise.

Recognizers:
- Reciprocal division: ``a / (1 / k)`` becomes ``a * k``
- Sum of squares: ``sqrt(a*a + b*b)`` becomes ``point_distance(0, 0, a, b)``
  and the three-term form becomes ``point_distance_3d(0, 0, 0, a, b, c)``
- Half-rotation fusion:
  ``var s = e; s = s - s / 2 - lengthdir_x(s / 2, angle);`` becomes
  ``var s = (e * 0.5) * (1 - lengthdir_x(1, angle));``
"""

from __future__ import annotations

from typing import Optional, Sequence

from gmlmath.compiler.ast_nodes import (
    ASTNode,
    BinaryExpression,
    CallExpression,
    ExpressionStatement,
    AssignmentExpression,
    Identifier,
    Literal,
    Statement,
    UnaryExpression,
    VariableDeclaration,
    VariableDeclarator,
    unwrap_parens,
)
from gmlmath.compiler.const_evaluator import ConstEvaluator
from gmlmath.compiler.multiplicative import (
    Components,
    MultiplicativeCollector,
    has_top_level_additive,
    rebuild,
    trim_outer_parentheses,
)
from gmlmath.compiler.text_edits import TextEdit, statement_removal_range
from gmlmath.config import DEFAULT_CONFIG, OptimizerConfig


def _text(source: str, node: ASTNode) -> str:
    return trim_outer_parentheses(node.text(source))


def _is_number(evaluator: ConstEvaluator, node: ASTNode, expected: float) -> bool:
    return evaluator.evaluate_number(node) == expected


# =============================================================================
# Reciprocal division
# =============================================================================


def fold_reciprocal_division(
    source: str,
    node: ASTNode,
    evaluator: Optional[ConstEvaluator] = None,
) -> Optional[TextEdit]:
    """
    Rewrite ``a / (1 / k)`` as ``a * k`` for a numeric literal ``k``.

    When ``a`` collects into plain factors the product is rendered through
    the rebuilder (``a / (1 / 4)`` becomes ``4 * a``); otherwise ``a`` is kept
    verbatim in front of ``k``.

    Args:
        source: Source text node offsets index into
        node: Candidate division
        evaluator: Constant evaluator used to read ``1`` and ``k``

    Returns:
        The edit over ``node``, or None if it does not match.
    """
    evaluator = evaluator or ConstEvaluator()
    if not isinstance(node, BinaryExpression) or node.operator != "/":
        return None

    divisor = unwrap_parens(node.right)
    if not isinstance(divisor, BinaryExpression) or divisor.operator != "/":
        return None
    if not _is_number(evaluator, divisor.left, 1):
        return None

    k_node = unwrap_parens(divisor.right)
    if isinstance(k_node, UnaryExpression) and k_node.operator in ("-", "+"):
        k_node = unwrap_parens(k_node.argument)
    if not isinstance(k_node, Literal):
        return None
    k = evaluator.evaluate_number(divisor.right)
    if k is None or k == 0:
        return None

    replacement = f"{node.left.text(source)} * {_text(source, divisor.right)}"
    components = MultiplicativeCollector(source, evaluator).collect(node.left)
    if components is not None and components.factors and not components.has_reciprocal_factors:
        # Canonical order, so simplifying the result again is a no-op
        replacement = rebuild(Components(components.coefficient * k, components.factors))
    return TextEdit(node.start, node.end, replacement, origin="reciprocal-division")


# =============================================================================
# Sum of squares
# =============================================================================


def _flatten_sum(node: ASTNode, addends: list[ASTNode]) -> None:
    node = unwrap_parens(node)
    if isinstance(node, BinaryExpression) and node.operator == "+":
        _flatten_sum(node.left, addends)
        _flatten_sum(node.right, addends)
    else:
        addends.append(node)


def _square_base(source: str, node: ASTNode) -> Optional[str]:
    """Return ``a`` for an addend ``a * a``, else None."""
    if not isinstance(node, BinaryExpression) or node.operator != "*":
        return None
    left = _text(source, node.left)
    if not left or left != _text(source, node.right):
        return None
    return left


def fold_sum_of_squares(
    source: str,
    node: ASTNode,
    config: OptimizerConfig = DEFAULT_CONFIG,
) -> Optional[TextEdit]:
    """
    Rewrite ``sqrt(a*a + b*b [+ c*c])`` as a distance call.

    Each addend must multiply the same sub-expression text by itself.

    Args:
        source: Source text node offsets index into
        node: Candidate ``sqrt`` call
        config: Supplies the distance function names

    Returns:
        The edit over ``node``, or None if it does not match.
    """
    if not isinstance(node, CallExpression) or len(node.arguments) != 1:
        return None
    callee = node.callee
    if not isinstance(callee, Identifier) or callee.name != "sqrt":
        return None

    addends: list[ASTNode] = []
    _flatten_sum(node.arguments[0], addends)
    if len(addends) not in (2, 3):
        return None

    bases: list[str] = []
    for addend in addends:
        base = _square_base(source, addend)
        if base is None:
            return None
        bases.append(base)

    if len(bases) == 2:
        replacement = f"{config.distance_2d_function}(0, 0, {', '.join(bases)})"
    else:
        replacement = f"{config.distance_3d_function}(0, 0, 0, {', '.join(bases)})"
    return TextEdit(node.start, node.end, replacement, origin="sum-of-squares")


# =============================================================================
# Half-rotation fusion
# =============================================================================


def _single_declarator(statement: Statement) -> Optional[VariableDeclarator]:
    if not isinstance(statement, VariableDeclaration) or len(statement.declarations) != 1:
        return None
    declarator = statement.declarations[0]
    if declarator.init is None:
        return None
    return declarator


def _is_variable(node: ASTNode, name: str) -> bool:
    node = unwrap_parens(node)
    return isinstance(node, Identifier) and node.name == name


def _is_half_of(node: ASTNode, name: str, evaluator: ConstEvaluator) -> bool:
    """Match ``name / 2`` or ``name * 0.5``."""
    node = unwrap_parens(node)
    if not isinstance(node, BinaryExpression) or not _is_variable(node.left, name):
        return False
    if node.operator == "/":
        return _is_number(evaluator, node.right, 2)
    if node.operator == "*":
        return _is_number(evaluator, node.right, 0.5)
    return False


def match_half_rotation(
    source: str,
    name: str,
    node: ASTNode,
    config: OptimizerConfig = DEFAULT_CONFIG,
    evaluator: Optional[ConstEvaluator] = None,
) -> Optional[str]:
    """
    Match ``name - name / 2 - lengthdir_x(name / 2, angle)``.

    Returns:
        The source text of ``angle``, or None if ``node`` does not match.
    """
    evaluator = evaluator or ConstEvaluator()
    node = unwrap_parens(node)
    if not isinstance(node, BinaryExpression) or node.operator != "-":
        return None

    head = unwrap_parens(node.left)
    if not isinstance(head, BinaryExpression) or head.operator != "-":
        return None
    if not _is_variable(head.left, name) or not _is_half_of(head.right, name, evaluator):
        return None

    call = unwrap_parens(node.right)
    if not isinstance(call, CallExpression) or len(call.arguments) != 2:
        return None
    if not isinstance(call.callee, Identifier) or call.callee.name != config.rotation_function:
        return None
    if not _is_half_of(call.arguments[0], name, evaluator):
        return None
    return call.arguments[1].text(source)


def fuse_half_rotation(
    source: str,
    statements: Sequence[Statement],
    index: int,
    config: OptimizerConfig = DEFAULT_CONFIG,
    evaluator: Optional[ConstEvaluator] = None,
) -> list[TextEdit]:
    """
    Fuse a declaration with the half-rotation update that follows it.

    ``s - s/2 - lengthdir_x(s/2, a)`` equals ``s * 0.5 * (1 - lengthdir_x(1, a))``,
    so the declaration's initializer is halved through the collector and
    rebuilder and the update statement is deleted.

    Args:
        source: Source text node offsets index into
        statements: The enclosing statement list
        index: Position of the candidate declaration
        config: Supplies the rotation function name
        evaluator: Constant evaluator shared with the collector

    Returns:
        The initializer replacement and the statement removal, or an empty
        list when the window does not match.
    """
    evaluator = evaluator or ConstEvaluator()
    if index + 1 >= len(statements):
        return []

    declarator = _single_declarator(statements[index])
    if declarator is None:
        return []
    name = declarator.id.name

    update = statements[index + 1]
    if not isinstance(update, ExpressionStatement):
        return []
    assignment = update.expression
    if not isinstance(assignment, AssignmentExpression) or assignment.operator != "=":
        return []
    if not _is_variable(assignment.left, name):
        return []

    angle = match_half_rotation(source, name, assignment.right, config, evaluator)
    if angle is None:
        return []

    components = MultiplicativeCollector(source, evaluator).collect(declarator.init)
    if components is None or components.has_reciprocal_factors:
        return []

    halved = rebuild(Components(components.coefficient * 0.5, components.factors), config.epsilon)
    if has_top_level_additive(halved):
        halved = f"({halved})"
    init = f"{halved} * (1 - {config.rotation_function}(1, {angle}))"

    removal_start, removal_end = statement_removal_range(source, update.start, update.end)
    return [
        TextEdit(declarator.init.start, declarator.init.end, init, origin="half-rotation"),
        TextEdit(removal_start, removal_end, "", origin="half-rotation"),
    ]
