"""
Math optimizer driver.

Runs the rewrite pipeline over one GML source file:

1. The source is parsed once; every pass reads the same immutable tree and
   proposes :class:`TextEdit` records against the original text.
2. Passes run in a fixed order, so earlier passes win overlap conflicts:
   half-rotation fusion, cumulative-update dead code, the pattern catalogue
   (reciprocal division, sum of squares), then multiplicative simplification.
3. The composer drops overlapping edits and splices the rest.
4. The canonical form transformers, then the logical flow transformers, run
   over the composed text.

Example:
    result = MathOptimizer().optimize("var s7 = ((hp / max_hp) * 100) / 10;")
    result.output  # 'var s7 = (hp / max_hp) * 10;'
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from gmlmath.compiler.ast_nodes import (
    ASTNode,
    AssignmentExpression,
    BinaryExpression,
    CallExpression,
    IfStatement,
    Program,
    VariableDeclarator,
    statement_lists,
    walk,
)
from gmlmath.compiler.canonical_forms import TextTransformer, apply_transformers, canonical_form_transformers
from gmlmath.compiler.const_evaluator import ConstEvaluator
from gmlmath.compiler.dead_code import DeadCodeAnalyzer
from gmlmath.compiler.logical_flow import logical_flow_transformers
from gmlmath.compiler.math_patterns import fold_reciprocal_division, fold_sum_of_squares, fuse_half_rotation
from gmlmath.compiler.multiplicative import has_top_level_additive, simplify_expression
from gmlmath.compiler.parser import parse_source
from gmlmath.compiler.text_edits import TextEdit, apply_edits, has_overlapping_range, resolve_edits
from gmlmath.config import DEFAULT_CONFIG, OptimizerConfig

logger = logging.getLogger(__name__)


# =============================================================================
# Context and result
# =============================================================================


@dataclass(slots=True)
class OptimizationContext:
    """
    State shared by the passes of one run.

    Attributes:
        source: The original source text
        program: The parsed tree of ``source``
        config: Settings for this run
        evaluator: Constant evaluator shared by every pass
        edits: Edits proposed so far, in discovery order
    """

    source: str
    program: Program
    config: OptimizerConfig = DEFAULT_CONFIG
    evaluator: ConstEvaluator = field(default_factory=ConstEvaluator)
    edits: list[TextEdit] = field(default_factory=list)

    def propose(self, edit: TextEdit) -> None:
        logger.debug(
            "%s proposes [%d, %d) -> %r", edit.origin, edit.start, edit.end, edit.text
        )
        self.edits.append(edit)

    def is_claimed(self, start: int, end: int) -> bool:
        """Check if an earlier proposal already touches ``[start, end)``."""
        return has_overlapping_range(start, end, self.edits)


@dataclass(frozen=True, slots=True)
class OptimizationResult:
    """
    Outcome of optimizing one source text.

    Attributes:
        source: The original text
        output: The final text after edits and text transformers
        edits: Accepted edits, sorted by start offset
        rejected: Proposed edits dropped for overlapping or being out of range
        filename: Where the source came from, if known
    """

    source: str
    output: str
    edits: tuple[TextEdit, ...] = ()
    rejected: tuple[TextEdit, ...] = ()
    filename: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.output != self.source


# =============================================================================
# Passes
# =============================================================================


class EditPass(ABC):
    """Base class for passes that propose edits against the original source."""

    @abstractmethod
    def run(self, context: OptimizationContext) -> None:
        """
        Propose edits for the whole program.

        Args:
            context: The shared run state; proposals go to ``context.propose``
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the pass."""
        pass


class HalfRotationPass(EditPass):
    """Fuse a declaration with the half-rotation update right after it."""

    @property
    def name(self) -> str:
        return "half-rotation"

    def run(self, context: OptimizationContext) -> None:
        for statements in statement_lists(context.program):
            index = 0
            while index < len(statements):
                edits = fuse_half_rotation(
                    context.source, statements, index, context.config, context.evaluator
                )
                if not edits:
                    index += 1
                    continue
                for edit in edits:
                    context.propose(edit)
                # The update statement is consumed by the fusion
                index += 2


class DeadCodePass(EditPass):
    """Remove runs of updates whose net change is zero."""

    @property
    def name(self) -> str:
        return "dead-code"

    def run(self, context: OptimizationContext) -> None:
        analyzer = DeadCodeAnalyzer(context.source, context.config, context.evaluator)
        for statements in statement_lists(context.program):
            for edit in analyzer.analyze(statements):
                context.propose(edit)


class PatternCataloguePass(EditPass):
    """Apply the fixed catalogue of algebraic patterns to every expression."""

    @property
    def name(self) -> str:
        return "pattern-catalogue"

    def run(self, context: OptimizationContext) -> None:
        config = context.config
        for node in walk(context.program):
            edit: Optional[TextEdit] = None
            if config.reciprocal_division and isinstance(node, BinaryExpression):
                edit = fold_reciprocal_division(context.source, node, context.evaluator)
            elif config.sum_of_squares and isinstance(node, CallExpression):
                edit = fold_sum_of_squares(context.source, node, config)
            if edit is not None and not context.is_claimed(edit.start, edit.end):
                context.propose(edit)


class SimplificationPass(EditPass):
    """
    Canonicalize multiplicative expressions.

    Targets are visited outermost first: declaration initializers, assignment
    right-hand sides, ``if`` conditions and every binary expression. A target
    that overlaps an earlier proposal is skipped, so an outer rewrite always
    shadows the inner ones.
    """

    @property
    def name(self) -> str:
        return "simplify"

    def run(self, context: OptimizationContext) -> None:
        for node in walk(context.program):
            target = self._target_of(node)
            if target is None or context.is_claimed(target.start, target.end):
                continue

            replacement = simplify_expression(
                context.source, target, context.evaluator, context.config.epsilon
            )
            if replacement is None:
                continue

            if isinstance(node, IfStatement):
                if not replacement.startswith("("):
                    replacement = f"({replacement})"
            elif isinstance(node, BinaryExpression) and has_top_level_additive(replacement):
                replacement = f"({replacement})"

            context.propose(TextEdit(target.start, target.end, replacement, origin=self.name))

    @staticmethod
    def _target_of(node: ASTNode) -> Optional[ASTNode]:
        if isinstance(node, VariableDeclarator):
            return node.init
        if isinstance(node, AssignmentExpression):
            return node.right
        if isinstance(node, IfStatement):
            return node.test
        if isinstance(node, BinaryExpression):
            return node
        return None


# =============================================================================
# Optimizer
# =============================================================================


class MathOptimizer:
    """
    Orchestrates the edit passes and text transformers.

    The pass list is built from the configuration toggles in a fixed order.

    Example:
        optimizer = MathOptimizer(OptimizerConfig(logical_flow=False))
        result = optimizer.optimize(source, filename="scr_move.gml")
    """

    def __init__(self, config: OptimizerConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self.passes: list[EditPass] = []
        self.transformers: list[TextTransformer] = []

        if config.half_rotation:
            self.passes.append(HalfRotationPass())
        if config.dead_code:
            self.passes.append(DeadCodePass())
        if config.reciprocal_division or config.sum_of_squares:
            self.passes.append(PatternCataloguePass())
        if config.simplify_expressions:
            self.passes.append(SimplificationPass())

        if config.canonical_forms:
            self.transformers.extend(canonical_form_transformers(config))
        if config.logical_flow:
            self.transformers.extend(logical_flow_transformers(config))

    def propose(self, source: str, filename: Optional[str] = None) -> list[TextEdit]:
        """
        Run the edit passes without composing.

        Returns:
            Every proposed edit, in discovery order.

        Raises:
            LexerError: If the source cannot be tokenized
            ParserError: If the source cannot be parsed
        """
        program = parse_source(source, filename)
        context = OptimizationContext(source, program, self.config, ConstEvaluator())
        for pass_ in self.passes:
            before = len(context.edits)
            pass_.run(context)
            logger.debug("Pass %s proposed %d edit(s)", pass_.name, len(context.edits) - before)
        return context.edits

    def optimize(self, source: str, filename: Optional[str] = None) -> OptimizationResult:
        """
        Optimize one source text.

        Args:
            source: GML source code
            filename: Optional filename for error messages

        Returns:
            The final text with the accepted and rejected edits.

        Raises:
            LexerError: If the source cannot be tokenized
            ParserError: If the source cannot be parsed
        """
        proposed = self.propose(source, filename)
        accepted, rejected = resolve_edits(source, proposed)
        output = apply_edits(source, accepted)
        output = apply_transformers(output, self.transformers)

        if rejected:
            logger.debug("Rejected %d overlapping edit(s)", len(rejected))
        return OptimizationResult(
            source=source,
            output=output,
            edits=tuple(accepted),
            rejected=tuple(rejected),
            filename=filename,
        )

    def get_pass_names(self) -> list[str]:
        """Get the names of the enabled passes and transformers, in order."""
        return [p.name for p in self.passes] + [t.name for t in self.transformers]


# =============================================================================
# Convenience functions
# =============================================================================


def optimize_source(
    source: str,
    config: OptimizerConfig = DEFAULT_CONFIG,
    filename: Optional[str] = None,
) -> str:
    """
    Convenience function to optimize GML source text.

    Args:
        source: GML source code
        config: Settings for the run
        filename: Optional filename for error messages

    Returns:
        The optimized source text
    """
    return MathOptimizer(config).optimize(source, filename).output


def analyze_source(
    source: str,
    config: OptimizerConfig = DEFAULT_CONFIG,
    filename: Optional[str] = None,
) -> OptimizationResult:
    """Optimize source text and return the full result, edits included."""
    return MathOptimizer(config).optimize(source, filename)


def optimize_file(
    path: Union[str, Path],
    config: OptimizerConfig = DEFAULT_CONFIG,
    write: bool = False,
) -> OptimizationResult:
    """
    Optimize a GML file.

    Args:
        path: The file to read
        config: Settings for the run
        write: Write the optimized text back when it differs

    Returns:
        The optimization result
    """
    path = Path(path)
    source = path.read_text(encoding="utf-8")
    result = MathOptimizer(config).optimize(source, str(path))
    if write and result.changed:
        path.write_text(result.output, encoding="utf-8")
        logger.info("Rewrote %s (%d edit(s))", path, len(result.edits))
    return result
