"""
gmlmath Compiler Package.

This package contains the front end and the rewrite pipeline:
- Lexer: Tokenizes GML source code
- Parser: Produces an immutable syntax tree with source offsets
- ConstEvaluator: Evaluates numeric and boolean constant subtrees
- Multiplicative: Collects coefficient/factor components and rebuilds text
- MathPatterns: Half-rotation fusion, reciprocal division, sum of squares
- DeadCode: Removes runs of updates that cancel out
- TextEdits: Resolves overlapping edits and splices them into the source
- CanonicalForms / LogicalFlow: Ordered text-to-text transformers
- MathOptimizer: Runs everything over one file
"""

from gmlmath.compiler.const_evaluator import ConstEvalError, ConstEvaluator, evaluate_const, is_const_expr
from gmlmath.compiler.dead_code import DeadCodeAnalyzer
from gmlmath.compiler.lexer import Lexer, tokenize
from gmlmath.compiler.math_optimizer import (
    MathOptimizer,
    OptimizationResult,
    analyze_source,
    optimize_file,
    optimize_source,
)
from gmlmath.compiler.multiplicative import (
    Components,
    MultiplicativeCollector,
    rebuild,
    simplify_expression,
)
from gmlmath.compiler.parser import Parser, parse_expression, parse_source
from gmlmath.compiler.text_edits import TextEdit, compose

__all__ = [
    "Components",
    "ConstEvalError",
    "ConstEvaluator",
    "DeadCodeAnalyzer",
    "Lexer",
    "MathOptimizer",
    "MultiplicativeCollector",
    "OptimizationResult",
    "Parser",
    "TextEdit",
    "analyze_source",
    "compose",
    "evaluate_const",
    "is_const_expr",
    "optimize_file",
    "optimize_source",
    "parse_expression",
    "parse_source",
    "rebuild",
    "simplify_expression",
    "tokenize",
]
