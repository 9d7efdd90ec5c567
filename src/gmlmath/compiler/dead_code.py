"""
Cumulative-update dead code analysis.

Within one statement list, runs of increments, decrements and constant
``+=``/``-=`` updates to the same variable are accumulated. When a run ends
and its net change is zero (within epsilon), every statement in it is
removed. A nonzero net change leaves the run untouched.

A run for a variable ends when:
- the variable is reassigned with ``=`` (that run alone is flushed), or
- any statement the analyzer does not understand appears, or the list ends
  (every run is flushed).

``x *= 1`` and ``x /= 1`` are removed on their own, independent of any run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from gmlmath.compiler.ast_nodes import (
    ASTNode,
    AssignmentExpression,
    CallExpression,
    EmptyStatement,
    ExpressionStatement,
    Identifier,
    NewExpression,
    Statement,
    UpdateExpression,
    unwrap_parens,
    walk,
)
from gmlmath.compiler.const_evaluator import ConstEvaluator
from gmlmath.compiler.text_edits import TextEdit, statement_removal_range
from gmlmath.config import DEFAULT_CONFIG, OptimizerConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UpdateRun:
    """
    Accumulated updates to one variable.

    Attributes:
        variable: The variable name
        delta: Net numeric change applied so far
        statement_indices: Positions of the contributing statements
    """

    variable: str
    delta: float = 0.0
    statement_indices: list[int] = field(default_factory=list)

    def add(self, index: int, delta: float) -> None:
        self.delta += delta
        self.statement_indices.append(index)


def _target_name(node: ASTNode) -> Optional[str]:
    node = unwrap_parens(node)
    return node.name if isinstance(node, Identifier) else None


class DeadCodeAnalyzer:
    """
    Finds statement runs whose updates cancel out.

    Usage:
        analyzer = DeadCodeAnalyzer(source)
        edits = analyzer.analyze(block.body)
    """

    def __init__(
        self,
        source: str,
        config: OptimizerConfig = DEFAULT_CONFIG,
        evaluator: Optional[ConstEvaluator] = None,
    ) -> None:
        self.source = source
        self.config = config
        self.evaluator = evaluator or ConstEvaluator()

    def analyze(self, statements: Sequence[Statement]) -> list[TextEdit]:
        """
        Analyze one statement list.

        Args:
            statements: The body of a program, block or switch case

        Returns:
            Deletion edits for every removable statement, in discovery order.
        """
        edits: list[TextEdit] = []
        runs: dict[str, UpdateRun] = {}

        for index, statement in enumerate(statements):
            if not self._step(statements, index, runs, edits):
                self._flush_all(statements, runs, edits)

        self._flush_all(statements, runs, edits)
        return edits

    def _step(
        self,
        statements: Sequence[Statement],
        index: int,
        runs: dict[str, UpdateRun],
        edits: list[TextEdit],
    ) -> bool:
        """
        Feed one statement to the state machine.

        Returns:
            True if the statement was understood, False if it interrupts
            every pending run.
        """
        statement = statements[index]
        if isinstance(statement, EmptyStatement):
            return True
        if not isinstance(statement, ExpressionStatement):
            return False
        expr = statement.expression

        if isinstance(expr, UpdateExpression):
            name = _target_name(expr.argument)
            if name is None:
                return False
            runs.setdefault(name, UpdateRun(name)).add(index, 1 if expr.operator == "++" else -1)
            return True

        if not isinstance(expr, AssignmentExpression):
            return False
        name = _target_name(expr.left)
        if name is None:
            return False

        if expr.operator in ("+=", "-="):
            value = self.evaluator.evaluate_number(expr.right)
            if value is None:
                return False
            runs.setdefault(name, UpdateRun(name)).add(index, value if expr.operator == "+=" else -value)
            return True

        if expr.operator in ("*=", "/="):
            if self.evaluator.evaluate_number(expr.right) != 1:
                return False
            logger.debug("Removing identity update %s", statement.text(self.source))
            edits.append(self._removal(statement))
            return True

        if expr.operator == "=":
            # The new value must not observe a pending run, or removing the
            # run would change what was assigned
            if name not in runs or self._reads_pending(expr.right, runs):
                return False
            self._flush(runs.pop(name), statements, edits)
            return True

        return False

    def _reads_pending(self, node: ASTNode, runs: dict[str, UpdateRun]) -> bool:
        """Check if an expression may observe a variable with a pending run."""
        for child in walk(node):
            if isinstance(child, (CallExpression, NewExpression)):
                return True
            if isinstance(child, Identifier) and child.name in runs:
                return True
        return False

    def _flush_all(
        self,
        statements: Sequence[Statement],
        runs: dict[str, UpdateRun],
        edits: list[TextEdit],
    ) -> None:
        for run in runs.values():
            self._flush(run, statements, edits)
        runs.clear()

    def _flush(self, run: UpdateRun, statements: Sequence[Statement], edits: list[TextEdit]) -> None:
        """Remove a run's statements if its net change is zero."""
        if not run.statement_indices or abs(run.delta) >= self.config.epsilon:
            return
        logger.debug(
            "Removing %d cancelling update(s) of %s", len(run.statement_indices), run.variable
        )
        for index in run.statement_indices:
            edits.append(self._removal(statements[index]))

    def _removal(self, statement: Statement) -> TextEdit:
        start, end = statement_removal_range(self.source, statement.start, statement.end)
        return TextEdit(start, end, "", origin="dead-code")
