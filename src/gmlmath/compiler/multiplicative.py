"""
Multiplicative decomposition and canonical rebuilding.

A multiplicative expression such as ``foo * 2 * 3 / bar`` is decomposed into a
numeric coefficient and an ordered map of opaque factors with integer
exponents (``6``, ``{"foo": 1, "bar": -1}``), then rendered back into minimal
source text. Collection never guesses: any shape it does not understand makes
it return None and the caller leaves the text alone.

When collection leaves a reciprocal factor, :func:`fold_constant_chain` offers
a narrower, order-preserving fold of just the numeric operands of a chain.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from gmlmath.compiler.ast_nodes import (
    ASTNode,
    BinaryExpression,
    CallExpression,
    Identifier,
    Literal,
    MemberDotExpression,
    MemberIndexExpression,
    UnaryExpression,
    unwrap_parens,
)
from gmlmath.compiler.const_evaluator import ConstEvaluator

DEFAULT_EPSILON = 1e-10

# Node types reproduced verbatim as a single factor
OPAQUE_FACTOR_TYPES = (Identifier, MemberDotExpression, MemberIndexExpression, CallExpression)

# Node types that never need parentheses when used as an operand of ``*``
ATOMIC_OPERAND_TYPES = OPAQUE_FACTOR_TYPES + (Literal,)


@dataclass(frozen=True, slots=True)
class Components:
    """
    A coefficient and an ordered multiset of opaque factors.

    Attributes:
        coefficient: Finite numeric coefficient
        factors: Factor source text mapped to its exponent; insertion order is
            the order factors are rendered in, and zero exponents are never kept
    """

    coefficient: float
    factors: dict[str, int] = field(default_factory=dict)

    @property
    def has_reciprocal_factors(self) -> bool:
        """True when some factor is left with a negative exponent."""
        return any(power < 0 for power in self.factors.values())

    def equivalent_to(self, other: Components, epsilon: float = DEFAULT_EPSILON) -> bool:
        """
        Semantic equality: coefficients within ``epsilon`` and the same
        factor-exponent multiset, regardless of order.
        """
        if abs(self.coefficient - other.coefficient) >= epsilon:
            return False
        return Counter(self.factors) == Counter(other.factors)


# =============================================================================
# Text helpers
# =============================================================================


def trim_outer_parentheses(text: str) -> str:
    """
    Strip whitespace and any number of parentheses that wrap the whole text.

    ``(a) * (b)`` is left alone because its first ``(`` closes early.
    """
    text = text.strip()
    while text.startswith("(") and text.endswith(")"):
        depth = 0
        balanced = True
        for index, char in enumerate(text):
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0 and index != len(text) - 1:
                    balanced = False
                    break
        if not balanced or depth != 0:
            break
        text = text[1:-1].strip()
    return text


def has_top_level_additive(text: str) -> bool:
    """
    Check if text contains a binary ``+`` or ``-`` outside brackets and strings.

    A sign directly after an operator or at the start is unary and ignored.
    """
    depth = 0
    quote: Optional[str] = None
    previous = ""
    index = 0
    while index < len(text):
        char = text[index]
        if quote is not None:
            if char == "\\":
                index += 1
            elif char == quote:
                quote = None
            previous = "x"
        elif char in "\"'":
            quote = char
        elif char in "([{":
            depth += 1
            previous = char
        elif char in ")]}":
            depth -= 1
            previous = char
        elif char in "+-" and depth == 0 and previous and (previous.isalnum() or previous in "_)].\"'"):
            # ++/-- directly after an operand are postfix, not binary
            if index + 1 < len(text) and text[index + 1] == char:
                index += 2
                continue
            return True
        elif not char.isspace():
            previous = char
        index += 1
    return False


def format_number(value: float) -> str:
    """
    Render a coefficient as a GML numeric literal.

    Integral values print without a fraction and ``-0`` prints as ``0``.
    """
    if value == 0:
        return "0"
    if float(value).is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(float(value))
    mantissa, sep, exponent = text.partition("e")
    if sep:
        text = f"{mantissa}e{int(exponent):+d}"
    return text


def normalize_numeric_literal(value: float) -> Optional[str]:
    """
    Render a folded constant with at most 15 decimals, trimming zeros.

    Floating point noise such as ``0.30000000000000004`` renders as ``0.3``.
    Returns None for non-finite values.
    """
    if not math.isfinite(value):
        return None
    if abs(value) >= 1e15:
        return format_number(value)
    trimmed = f"{value:.15f}".rstrip("0")
    if trimmed.endswith("."):
        trimmed = trimmed[:-1]
    if trimmed in ("", "-0"):
        trimmed = "0"
    if trimmed == "0" and value != 0:
        # Too small for fixed notation
        return format_number(value)
    return trimmed


def approximately_equal(value: float, expected: float) -> bool:
    """Compare within eight ULP-scaled epsilons of ``expected``."""
    tolerance = max(1.0, abs(expected)) * 2.220446049250313e-16 * 8
    return abs(value - expected) <= tolerance


def contains_comment(text: str) -> bool:
    """Rewriting text that holds a comment would drop the comment."""
    return "//" in text or "/*" in text


# =============================================================================
# Collection
# =============================================================================


def is_opaque_factor(node: ASTNode) -> bool:
    """
    Check if a node can be treated as one atomic multiplicative factor.

    Identifiers, member and index accesses and calls qualify, as do unary
    minus of an opaque factor and ``+``/``-`` combinations of opaque factors.
    """
    node = unwrap_parens(node)
    if isinstance(node, OPAQUE_FACTOR_TYPES):
        return True
    if isinstance(node, UnaryExpression) and node.operator == "-":
        return is_opaque_factor(node.argument)
    if isinstance(node, BinaryExpression) and node.operator in ("+", "-"):
        return is_opaque_factor(node.left) and is_opaque_factor(node.right)
    return False


class MultiplicativeCollector:
    """
    Decomposes a multiplicative expression into :class:`Components`.

    Usage:
        collector = MultiplicativeCollector(source)
        components = collector.collect(node)   # None when not decomposable
    """

    def __init__(self, source: str, evaluator: Optional[ConstEvaluator] = None) -> None:
        """
        Args:
            source: The source text node offsets index into
            evaluator: Constant evaluator for literal subtrees
        """
        self.source = source
        self.evaluator = evaluator or ConstEvaluator()

    def collect(self, node: ASTNode) -> Optional[Components]:
        """
        Collect the coefficient and factors of an expression.

        Args:
            node: The expression to decompose

        Returns:
            The components, or None if the expression has a shape the
            collector does not handle (or divides by a zero coefficient).
        """
        node = unwrap_parens(node)

        value = self.evaluator.evaluate_number(node)
        if value is not None:
            return Components(value, {})

        if is_opaque_factor(node):
            text = trim_outer_parentheses(node.text(self.source))
            if not text:
                return None
            return Components(1, {text: 1})

        if isinstance(node, UnaryExpression) and node.operator == "-":
            inner = self.collect(node.argument)
            if inner is None:
                return None
            return Components(-inner.coefficient, inner.factors)

        if isinstance(node, BinaryExpression) and node.operator in ("*", "/"):
            left = self.collect(node.left)
            right = self.collect(node.right)
            if left is None or right is None:
                return None
            return self._combine(left, right, node.operator)

        return None

    def _combine(self, left: Components, right: Components, operator: str) -> Optional[Components]:
        """Multiply or divide two component sets."""
        if operator == "*":
            coefficient = left.coefficient * right.coefficient
            sign = 1
        else:
            if right.coefficient == 0:
                return None
            coefficient = left.coefficient / right.coefficient
            sign = -1

        if not math.isfinite(coefficient):
            return None

        factors = dict(left.factors)
        for factor, power in right.factors.items():
            combined = factors.get(factor, 0) + sign * power
            if combined == 0:
                factors.pop(factor, None)
            else:
                factors[factor] = combined
        return Components(coefficient, factors)


# =============================================================================
# Rebuilding
# =============================================================================


def should_prefix_coefficient(coefficient: float, has_factors: bool) -> bool:
    """
    Decide whether the coefficient leads the product.

    A strictly positive fraction below one trails the factors instead, so the
    output never starts with a bare decimal literal that a formatter would
    rewrite with a leading zero. A coefficient of exactly one is omitted.
    """
    if coefficient == 1:
        return False
    return not has_factors or not 0 < coefficient < 1


def rebuild(components: Components, epsilon: float = DEFAULT_EPSILON) -> str:
    """
    Render components as minimal source text.

    Args:
        components: The coefficient and factors to render
        epsilon: Coefficients smaller than this in magnitude collapse to ``0``

    Returns:
        Factors joined with `` * ``, each repeated by its (positive) exponent,
        with the coefficient placed per :func:`should_prefix_coefficient`.
        Negative exponents are never rendered; callers check
        :attr:`Components.has_reciprocal_factors` first.
    """
    coefficient = components.coefficient
    if abs(coefficient) < epsilon:
        return "0"

    factor_terms: list[str] = []
    for factor, power in components.factors.items():
        if power > 0:
            factor_terms.extend([factor] * power)

    literal = normalize_numeric_literal(coefficient) or format_number(coefficient)
    prefix = should_prefix_coefficient(coefficient, bool(factor_terms))
    # Rounding noise can print as exactly one, which is omitted like a true one
    has_coefficient_term = literal != "1"
    if len(factor_terms) + has_coefficient_term > 1:
        factor_terms = [f"({term})" if has_top_level_additive(term) else term for term in factor_terms]

    terms: list[str] = []
    if prefix and has_coefficient_term:
        terms.append(literal)
    terms.extend(factor_terms)
    if not prefix and has_coefficient_term:
        terms.append(literal)

    if not terms:
        return "1"
    return " * ".join(terms)


# =============================================================================
# Constant-chain fold
# =============================================================================


def fold_constant_chain(
    source: str,
    node: ASTNode,
    evaluator: Optional[ConstEvaluator] = None,
) -> Optional[str]:
    """
    Fold the numeric operands of a ``*``/``/`` chain into one product.

    The chain is flattened left to right; a division whose divisor is not a
    constant stays whole as one operand. The fold applies only when there is
    exactly one non-numeric operand and it is not itself a divisor.

    Example:
        ``((hp / max_hp) * 100) / 10`` folds to ``(hp / max_hp) * 10``.

    Returns:
        The folded text, or None when the chain does not qualify.
    """
    evaluator = evaluator or ConstEvaluator()
    operands: list[ASTNode] = []
    operators: list[str] = []
    _flatten_chain(node, operands, operators, evaluator)
    if len(operands) < 2:
        return None

    product = 1.0
    has_constant = False
    non_numeric: list[ASTNode] = []

    for index, operand in enumerate(operands):
        operator = "*" if index == 0 else operators[index - 1]
        value = evaluator.evaluate_number(operand)
        if value is not None:
            has_constant = True
            if operator == "*":
                product *= value
            elif value == 0:
                return None
            else:
                product /= value
            continue

        if operator == "/":
            return None
        non_numeric.append(operand)
        if len(non_numeric) > 1:
            return None

    if not has_constant or len(non_numeric) != 1 or not math.isfinite(product):
        return None

    operand = non_numeric[0]
    text = trim_outer_parentheses(operand.text(source))
    if approximately_equal(product, 1):
        return text

    literal = normalize_numeric_literal(product)
    if literal is None:
        return None
    if not isinstance(operand, ATOMIC_OPERAND_TYPES):
        text = f"({text})"
    return f"{text} * {literal}"


def _flatten_chain(
    node: ASTNode,
    operands: list[ASTNode],
    operators: list[str],
    evaluator: ConstEvaluator,
) -> None:
    node = unwrap_parens(node)
    if isinstance(node, BinaryExpression) and node.operator in ("*", "/"):
        if node.operator == "/" and evaluator.evaluate_number(node.right) is None:
            operands.append(node)
            return
        _flatten_chain(node.left, operands, operators, evaluator)
        operators.append(node.operator)
        _flatten_chain(node.right, operands, operators, evaluator)
        return
    operands.append(node)


# =============================================================================
# Entry point
# =============================================================================


def simplify_expression(
    source: str,
    node: ASTNode,
    evaluator: Optional[ConstEvaluator] = None,
    epsilon: float = DEFAULT_EPSILON,
) -> Optional[str]:
    """
    Compute the canonical replacement text for an expression.

    Collection and rebuilding are tried first; when collection fails or
    leaves a reciprocal factor the constant-chain fold is tried instead.

    Args:
        source: Source text the node offsets index into
        node: The expression to simplify
        evaluator: Constant evaluator to share between calls
        epsilon: Zero-collapse threshold for the coefficient

    Returns:
        The replacement text, or None when nothing should change: the
        expression is unrecognized, a pure constant, holds a comment, cancels
        to a bare coefficient, or already is in canonical form.
    """
    evaluator = evaluator or ConstEvaluator()
    original = node.text(source)
    if not original or contains_comment(original):
        return None
    if evaluator.is_const_expr(node):
        return None

    components = MultiplicativeCollector(source, evaluator).collect(node)
    if components is None or components.has_reciprocal_factors:
        replacement = fold_constant_chain(source, node, evaluator)
    elif abs(components.coefficient) < epsilon:
        replacement = "0"
    elif not components.factors:
        # Every factor cancelled out; x / x is not 1 when x is 0
        replacement = None
    else:
        replacement = rebuild(components, epsilon)

    if replacement is None:
        return None
    if trim_outer_parentheses(original) == trim_outer_parentheses(replacement):
        return None
    return replacement
