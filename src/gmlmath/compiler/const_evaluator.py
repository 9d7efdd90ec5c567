"""
Constant Evaluator for GML expressions.

This module evaluates literal-only subtrees to a typed scalar (a number or a
boolean) so later passes can fold them. It never raises for expressions it
cannot handle: the public entry point returns None, which callers read as
"cannot simplify".

Features:
- Numeric and boolean literals, recursing through parentheses
- Unary ``-``, ``+``, ``!``/``not`` and ``~``
- Arithmetic, bitwise, comparison and logical operators
- Short-circuit ``and``/``or`` when one side is a known boolean
- Division or modulo by a constant zero yields None
"""

from __future__ import annotations

import math
from typing import Optional, Union

from gmlmath.compiler.ast_nodes import (
    ASTNode,
    BinaryExpression,
    Literal,
    LogicalExpression,
    ParenthesizedExpression,
    UnaryExpression,
)
from gmlmath.utils.errors import GmlMathError, SourceLocation

Scalar = Union[int, float, bool]


class ConstEvalError(GmlMathError):
    """Raised internally when an expression cannot be evaluated."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
    ) -> None:
        super().__init__(message, location)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_int(value: Union[int, float]) -> int:
    """Truncate a finite number for bitwise operators."""
    if isinstance(value, float) and not math.isfinite(value):
        raise ConstEvalError("Bitwise operand is not finite")
    return int(value)


class ConstEvaluator:
    """
    Evaluates constant expressions.

    The evaluator is stateless: the same node always produces the same
    result and nothing is cached between calls.

    Usage:
        evaluator = ConstEvaluator()
        value = evaluator.evaluate(node)      # None when not constant
        is_const = evaluator.is_const_expr(node)
    """

    def evaluate(self, node: ASTNode) -> Optional[Scalar]:
        """
        Evaluate a literal-only expression.

        Args:
            node: The expression to evaluate

        Returns:
            The computed number or boolean, or None if the expression is not
            a constant (or is a division/modulo by zero).
        """
        try:
            return self._evaluate(node)
        except ConstEvalError:
            return None

    def evaluate_number(self, node: ASTNode) -> Optional[float]:
        """
        Evaluate an expression that must produce a finite number.

        Booleans, NaN and infinities are rejected.
        """
        value = self.evaluate(node)
        if not _is_number(value) or not math.isfinite(value):
            return None
        return value

    def is_const_expr(self, node: ASTNode) -> bool:
        """
        Check if an expression can be evaluated.

        Args:
            node: The expression to check

        Returns:
            True if the expression is constant-evaluable
        """
        return self.evaluate(node) is not None

    def _evaluate(self, node: ASTNode) -> Scalar:
        """
        Evaluate a node, raising ConstEvalError when it is not constant.

        Raises:
            ConstEvalError: If the expression cannot be evaluated
        """
        if isinstance(node, Literal):
            if _is_number(node.value) or isinstance(node.value, bool):
                return node.value
            raise ConstEvalError(f"Literal {node.raw} is not a number or boolean")

        if isinstance(node, ParenthesizedExpression):
            return self._evaluate(node.expression)

        if isinstance(node, UnaryExpression):
            return self._evaluate_unary(node)

        if isinstance(node, LogicalExpression):
            return self._evaluate_logical(node)

        if isinstance(node, BinaryExpression):
            return self._evaluate_binary(node)

        raise ConstEvalError(f"Expression of type {node.type} is not constant")

    def _evaluate_unary(self, node: UnaryExpression) -> Scalar:
        """Evaluate a unary expression."""
        operand = self._evaluate(node.argument)
        op = node.operator

        if op in ("!", "not"):
            if not isinstance(operand, bool):
                raise ConstEvalError("Logical not needs a boolean operand")
            return not operand

        if not _is_number(operand):
            raise ConstEvalError(f"Unary {op} needs a numeric operand")
        if op == "-":
            return -operand
        if op == "+":
            return operand
        if op == "~":
            return ~_to_int(operand)

        raise ConstEvalError(f"Unary operator {op} cannot be evaluated")

    def _evaluate_logical(self, node: LogicalExpression) -> bool:
        """
        Evaluate ``and``/``or``/``xor``.

        A known ``false`` on either side of ``and`` (or ``true`` for ``or``)
        decides the result even when the other side is not constant.
        """
        op = node.operator
        left = self._try_boolean(node.left)
        right = self._try_boolean(node.right)

        if op in ("&&", "and"):
            if left is False or right is False:
                return False
            if left is True and right is True:
                return True
        elif op in ("||", "or"):
            if left is True or right is True:
                return True
            if left is False and right is False:
                return False
        elif op in ("^^", "xor"):
            if left is not None and right is not None:
                return left != right

        raise ConstEvalError(f"Logical {op} has a non-constant operand")

    def _try_boolean(self, node: ASTNode) -> Optional[bool]:
        """Evaluate an operand that is only useful when it is a boolean."""
        value = self.evaluate(node)
        return value if isinstance(value, bool) else None

    def _evaluate_binary(self, node: BinaryExpression) -> Scalar:
        """Evaluate a binary expression."""
        left = self._evaluate(node.left)
        right = self._evaluate(node.right)
        op = node.operator

        # Equality works for booleans too
        if op == "==":
            return left == right
        if op in ("!=", "<>"):
            return left != right

        if not (_is_number(left) and _is_number(right)):
            raise ConstEvalError(f"Operator {op} needs numeric operands")

        try:
            return self._apply_numeric(op, left, right)
        except (OverflowError, ValueError) as e:
            raise ConstEvalError(f"Cannot evaluate {op}: {e}") from e

    def _apply_numeric(self, op: str, left: Union[int, float], right: Union[int, float]) -> Scalar:
        """Apply a binary operator to two numbers."""
        # Arithmetic operators
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op == "/":
            if right == 0:
                raise ConstEvalError("Division by zero")
            return left / right
        if op == "div":
            if right == 0:
                raise ConstEvalError("Division by zero")
            return math.floor(left / right)
        if op in ("%", "mod"):
            if right == 0:
                raise ConstEvalError("Modulo by zero")
            result = math.fmod(left, right)
            return int(result) if isinstance(left, int) and isinstance(right, int) else result

        # Comparison operators
        if op == "<":
            return left < right
        if op == ">":
            return left > right
        if op == "<=":
            return left <= right
        if op == ">=":
            return left >= right

        # Bitwise operators
        if op == "&":
            return _to_int(left) & _to_int(right)
        if op == "|":
            return _to_int(left) | _to_int(right)
        if op == "^":
            return _to_int(left) ^ _to_int(right)
        if op == "<<":
            shift = _to_int(right)
            if shift < 0 or shift > 63:
                raise ConstEvalError("Shift count out of range")
            return _to_int(left) << shift
        if op == ">>":
            shift = _to_int(right)
            if shift < 0 or shift > 63:
                raise ConstEvalError("Shift count out of range")
            return _to_int(left) >> shift

        raise ConstEvalError(f"Operator {op} cannot be evaluated")


def evaluate_const(node: ASTNode) -> Optional[Scalar]:
    """
    Convenience function to evaluate a constant expression.

    Args:
        node: The expression to evaluate

    Returns:
        The computed value, or None if it is not constant
    """
    return ConstEvaluator().evaluate(node)


def is_const_expr(node: ASTNode) -> bool:
    """
    Convenience function to check if an expression is constant.

    Args:
        node: The expression to check

    Returns:
        True if the expression is constant-evaluable
    """
    return ConstEvaluator().is_const_expr(node)
