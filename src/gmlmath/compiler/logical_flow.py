"""
Logical flow text transformers.

Like the canonical forms, these operate on *text* after the AST-driven edits
have been composed. They collapse small control-flow shapes into single
statements and simplify boolean conditions built from plain identifiers:

- ``!!x`` becomes ``x``
- ``if (c) { return a; } else { return b; }`` and
  ``if (c) { return a; } return b;`` become one ``return``
- ``if (c) { t = a; } else { t = b; }`` becomes ``t = c ? a : b;``
- ``if (is_undefined(t)) { t = v; }`` and ``if (t == undefined) { t = v; }``
  become ``t ??= v;``
- ``if (...)`` conditions are reduced by absorption, shared factor and guard
  extraction, complement, xor expansion, De Morgan and mixed reductions

Condition rules only match whole conditions whose operands are identifiers,
so a rule either rewrites the entire condition or leaves it byte-for-byte.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from gmlmath.compiler.canonical_forms import (
    CodeRegions,
    TextTransformer,
    apply_transformers,
    sub_in_code,
)
from gmlmath.compiler.multiplicative import trim_outer_parentheses
from gmlmath.config import DEFAULT_CONFIG, OptimizerConfig

logger = logging.getLogger(__name__)

_KEYWORDS = r"(?:and|or|xor|not|true|false|undefined|div|mod)\b"

# A plain identifier operand
_ID = r"(?!" + _KEYWORDS + r")[A-Za-z_]\w*"

# An assignable target
_TARGET = r"[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*"

# A branch value: one expression with no statement punctuation
_VALUE = r"[^;{}\n]+?"


# =============================================================================
# Condition helpers
# =============================================================================


def find_matching_paren(text: str, open_index: int) -> int:
    """
    Find the ``)`` matching the ``(`` at ``open_index``.

    String literals are skipped. Returns -1 when the parenthesis is unbalanced.
    """
    depth = 0
    quote: Optional[str] = None
    index = open_index
    while index < len(text):
        char = text[index]
        if quote is not None:
            if char == "\\":
                index += 1
            elif char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return -1


def is_balanced(text: str) -> bool:
    """Check that every parenthesis in ``text`` is closed in order."""
    depth = 0
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def normalize_condition(text: str) -> str:
    """
    Bring a condition into the form the rules match against.

    ``&&``/``||`` become ``and``/``or``, ``not`` becomes ``!``, whitespace is
    collapsed and wrapping parentheses are dropped. The result is only used
    for matching, never emitted.
    """
    text = trim_outer_parentheses(text)
    text = text.replace("&&", " and ").replace("||", " or ")
    text = re.sub(r"\bnot\s+", "!", text)
    text = re.sub(r"!\s+", "!", text)
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"\(\s+", "(", text)
    text = re.sub(r"\s+\)", ")", text)
    return text.strip()


def wrap_negated(condition: str) -> str:
    """Negate a condition, adding parentheses only when needed."""
    condition = condition.strip()
    if re.fullmatch(r"[A-Za-z_][\w.]*", condition):
        return f"!{condition}"
    stripped = re.fullmatch(r"!\s*([A-Za-z_][\w.]*)", condition)
    if stripped:
        return stripped.group(1)
    if condition.startswith("(") and find_matching_paren(condition, 0) == len(condition) - 1:
        return f"!{condition}"
    return f"!({condition})"


def _guard_extraction(match: re.Match[str]) -> Optional[str]:
    terms = re.findall(r"\((" + _ID + r") and (" + _ID + r")\)", match.group(0))
    guards = {guard for _, guard in terms}
    if len(terms) < 2 or len(guards) != 1:
        return None
    return f"({' || '.join(term for term, _ in terms)}) && {terms[0][1]}"


ConditionRule = tuple[str, "re.Pattern[str]", Callable[[re.Match[str]], Optional[str]]]

CONDITION_RULES: tuple[ConditionRule, ...] = (
    (
        "absorption",
        re.compile(rf"(?P<a>{_ID}) or \((?P=a) and {_ID}\)"),
        lambda m: m["a"],
    ),
    (
        "absorption",
        re.compile(rf"(?P<a>{_ID}) and \((?P=a) or {_ID}\)"),
        lambda m: m["a"],
    ),
    (
        "shared-factor",
        re.compile(rf"\((?P<a>{_ID}) and (?P<b>{_ID})\) or \((?P=a) and (?P<c>{_ID})\)"),
        lambda m: f"{m['a']} && ({m['b']} || {m['c']})",
    ),
    (
        "complement",
        re.compile(rf"\((?P<a>{_ID}) and (?P<b>{_ID})\) or \(!(?P=a) and (?P=b)\)"),
        lambda m: m["b"],
    ),
    (
        "xor",
        re.compile(rf"\((?P<a>{_ID}) and !(?P<b>{_ID})\) or \(!(?P=a) and (?P=b)\)"),
        lambda m: f"({m['a']} || {m['b']}) && !({m['a']} && {m['b']})",
    ),
    (
        "guard-extraction",
        re.compile(rf"(?:\({_ID} and {_ID}\) or )+\({_ID} and {_ID}\)"),
        _guard_extraction,
    ),
    (
        "de-morgan",
        re.compile(rf"!\((?P<a>{_ID}) or (?P<b>{_ID})\)"),
        lambda m: f"!{m['a']} && !{m['b']}",
    ),
    (
        "de-morgan",
        re.compile(rf"!\((?P<a>{_ID}) and (?P<b>{_ID})\)"),
        lambda m: f"!{m['a']} || !{m['b']}",
    ),
    (
        "mixed",
        re.compile(
            rf"\((?P<a>{_ID}) or (?P<b>{_ID})\) and \(!(?P=a) or (?P<c>{_ID})\)"
            rf" and \(!(?P=b) or (?P=c)\)"
        ),
        lambda m: f"({m['a']} || {m['b']}) && {m['c']}",
    ),
)


def simplify_condition(condition: str) -> Optional[str]:
    """
    Simplify a boolean condition.

    Args:
        condition: Condition source text, with or without wrapping parentheses

    Returns:
        The simplified condition, or None if no rule matches the whole
        condition.

    Example:
        >>> simplify_condition("a || (a && b)")
        'a'
        >>> simplify_condition("!(a || b)")
        '!a && !b'
    """
    normalized = normalize_condition(condition)
    for rule_name, pattern, build in CONDITION_RULES:
        match = pattern.fullmatch(normalized)
        if match is None:
            continue
        result = build(match)
        if result is not None:
            logger.debug("Condition rule %s: %s -> %s", rule_name, condition.strip(), result)
            return result
    return None


def _ternary(condition: str, truthy: str, falsy: str) -> str:
    if "?" in condition.replace("??", ""):
        condition = f"({condition})"
    return f"{condition} ? {truthy} : {falsy}"


def collapse_return(condition: str, truthy: str, falsy: str) -> str:
    """
    Build the single expression returned by an if/return pair.

    Args:
        condition: The ``if`` condition
        truthy: Value returned when the condition holds
        falsy: Value returned otherwise

    Returns:
        The condition itself for ``true``/``false`` branches, its negation for
        ``false``/``true``, and a ternary otherwise.
    """
    condition = condition.strip()
    simplified = simplify_condition(condition) or condition
    truthy, falsy = truthy.strip(), falsy.strip()

    if truthy == "true" and falsy == "false":
        return simplified
    if truthy == "false" and falsy == "true":
        return wrap_negated(simplified)

    # (a and b) or c ? (a and b) : (a or c)  ==  a and (!c or b)
    branch = re.fullmatch(
        rf"\((?P<a>{_ID}) and (?P<b>{_ID})\) or (?P<c>{_ID})", normalize_condition(condition)
    )
    if branch:
        a, b, c = branch["a"], branch["b"], branch["c"]
        if normalize_condition(truthy) == f"{a} and {b}" and normalize_condition(falsy) == f"{a} or {c}":
            return f"{a} && (!{c} || {b})"

    return _ternary(simplified, truthy, falsy)


# =============================================================================
# Transformers
# =============================================================================


class DoubleNegationRemoval(TextTransformer):
    """Drop ``!!`` in front of a bare identifier."""

    _PATTERN = re.compile(r"(?<![!\w])!!\s*(" + _ID + r")(?![\w.\[(])")

    @property
    def name(self) -> str:
        return "double-negation"

    def apply(self, text: str) -> str:
        return sub_in_code(self._PATTERN, lambda match: match.group(1), text)


class ConditionSimplification(TextTransformer):
    """Simplify the condition of every ``if`` statement."""

    _IF_OPEN = re.compile(r"\bif\s*\(")

    @property
    def name(self) -> str:
        return "condition-simplification"

    def apply(self, text: str) -> str:
        regions = CodeRegions.of(text)
        if regions is None:
            return text
        pieces: list[str] = []
        position = 0
        for match in self._IF_OPEN.finditer(text):
            open_index = match.end() - 1
            if open_index < position:
                continue
            close_index = find_matching_paren(text, open_index)
            if close_index < 0:
                continue
            if regions.protects(match.start(), close_index + 1):
                continue
            simplified = simplify_condition(text[open_index + 1:close_index])
            if simplified is None:
                continue
            pieces.append(text[position:open_index + 1])
            pieces.append(simplified)
            position = close_index
        pieces.append(text[position:])
        return "".join(pieces)


class IfElseReturnCollapse(TextTransformer):
    """``if (c) { return a; } else { return b; }`` becomes one ``return``."""

    _PATTERN = re.compile(
        r"^(?P<indent>[ \t]*)if\s*\((?P<cond>.+?)\)\s*\{\s*return\s+(?P<a>" + _VALUE + r")\s*;\s*\}"
        r"\s*else\s*\{\s*return\s+(?P<b>" + _VALUE + r")\s*;\s*\}",
        re.MULTILINE,
    )

    @property
    def name(self) -> str:
        return "if-else-return"

    def apply(self, text: str) -> str:
        def replace(match: re.Match[str]) -> str:
            if not is_balanced(match["cond"]):
                return match.group(0)
            return f"{match['indent']}return {collapse_return(match['cond'], match['a'], match['b'])};"

        return sub_in_code(self._PATTERN, replace, text)


class IfReturnCollapse(TextTransformer):
    """``if (c) { return a; } return b;`` becomes one ``return``."""

    _PATTERN = re.compile(
        r"^(?P<indent>[ \t]*)if\s*\((?P<cond>.+?)\)\s*\{\s*return\s+(?P<a>" + _VALUE + r")\s*;\s*\}"
        r"\s*return\s+(?P<b>" + _VALUE + r")\s*;",
        re.MULTILINE,
    )

    @property
    def name(self) -> str:
        return "if-return"

    def apply(self, text: str) -> str:
        def replace(match: re.Match[str]) -> str:
            if not is_balanced(match["cond"]):
                return match.group(0)
            return f"{match['indent']}return {collapse_return(match['cond'], match['a'], match['b'])};"

        return sub_in_code(self._PATTERN, replace, text)


class IfElseAssignmentTernary(TextTransformer):
    """``if (c) { t = a; } else { t = b; }`` becomes ``t = c ? a : b;``."""

    _PATTERN = re.compile(
        r"^(?P<indent>[ \t]*)if\s*\((?P<cond>.+?)\)\s*\{\s*(?P<target>" + _TARGET + r")\s*=(?!=)\s*"
        r"(?P<a>" + _VALUE + r")\s*;\s*\}\s*else\s*\{\s*(?P=target)\s*=(?!=)\s*"
        r"(?P<b>" + _VALUE + r")\s*;\s*\}",
        re.MULTILINE,
    )

    @property
    def name(self) -> str:
        return "if-else-ternary"

    def apply(self, text: str) -> str:
        def replace(match: re.Match[str]) -> str:
            if not is_balanced(match["cond"]):
                return match.group(0)
            condition = simplify_condition(match["cond"]) or match["cond"].strip()
            value = _ternary(condition, match["a"].strip(), match["b"].strip())
            return f"{match['indent']}{match['target']} = {value};"

        return sub_in_code(self._PATTERN, replace, text)


class NullishAssignment(TextTransformer):
    """``if (is_undefined(t)) { t = v; }`` becomes ``t ??= v;``."""

    @property
    def name(self) -> str:
        return "nullish-assignment"

    def _patterns(self) -> tuple[re.Pattern[str], ...]:
        body = r"\s*\{\s*(?P=target)\s*=(?!=)\s*(?P<value>" + _VALUE + r")\s*;\s*\}(?!\s*else\b)"
        check = re.escape(self.config.undefined_check_function)
        return (
            re.compile(
                r"\bif\s*\(\s*" + check + r"\s*\(\s*(?P<target>" + _TARGET + r")\s*\)\s*\)" + body
            ),
            re.compile(
                r"\bif\s*\(\s*(?P<target>" + _TARGET + r")\s*==\s*undefined\s*\)" + body
            ),
        )

    def apply(self, text: str) -> str:
        for pattern in self._patterns():
            text = sub_in_code(pattern, lambda m: f"{m['target']} ??= {m['value'].strip()};", text)
        return text


def logical_flow_transformers(config: OptimizerConfig = DEFAULT_CONFIG) -> list[TextTransformer]:
    """Return the logical flow transformers in application order."""
    return [
        DoubleNegationRemoval(config),
        ConditionSimplification(config),
        IfElseReturnCollapse(config),
        IfReturnCollapse(config),
        IfElseAssignmentTernary(config),
        NullishAssignment(config),
    ]


def apply_logical_flow(text: str, config: OptimizerConfig = DEFAULT_CONFIG) -> str:
    """Run every logical flow transformer over ``text``."""
    return apply_transformers(text, logical_flow_transformers(config))
