"""
gmlmath - algebraic simplification for GameMaker Language source files.

gmlmath parses GML, finds multiplicative expressions, cancelling updates and
a catalogue of known math idioms, and rewrites them into shorter canonical
text while leaving everything it does not understand byte-for-byte intact.
"""

__version__ = "0.1.0"

from gmlmath.compiler.math_optimizer import MathOptimizer, OptimizationResult, optimize_source
from gmlmath.config import OptimizerConfig

__all__ = [
    "MathOptimizer",
    "OptimizationResult",
    "OptimizerConfig",
    "optimize_source",
]
