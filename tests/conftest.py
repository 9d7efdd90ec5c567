"""
Pytest configuration and shared fixtures for gmlmath tests.
"""

import pytest

from gmlmath.compiler.ast_nodes import Expression, Program
from gmlmath.compiler.const_evaluator import ConstEvaluator
from gmlmath.compiler.lexer import Lexer
from gmlmath.compiler.math_optimizer import MathOptimizer, OptimizationResult
from gmlmath.compiler.parser import parse_expression, parse_source
from gmlmath.compiler.tokens import Token
from gmlmath.config import OptimizerConfig


@pytest.fixture
def tokenize():
    """Fixture to tokenize source code."""

    def _tokenize(source: str) -> list[Token]:
        return Lexer(source, "test.gml").tokenize()

    return _tokenize


@pytest.fixture
def parse():
    """Fixture to parse source code into a Program."""

    def _parse(source: str) -> Program:
        return parse_source(source, "test.gml")

    return _parse


@pytest.fixture
def parse_expr():
    """Fixture to parse a single expression; offsets index into the given text."""

    def _parse_expr(source: str) -> Expression:
        return parse_expression(source)

    return _parse_expr


@pytest.fixture
def evaluator() -> ConstEvaluator:
    """A fresh constant evaluator."""
    return ConstEvaluator()


@pytest.fixture
def optimize():
    """
    Fixture to run the full optimizer and return the output text.

    Keyword arguments override the default configuration.
    """

    def _optimize(source: str, **overrides) -> str:
        config = OptimizerConfig().with_overrides(**overrides)
        return MathOptimizer(config).optimize(source).output

    return _optimize


@pytest.fixture
def analyze():
    """Fixture to run the full optimizer and return the whole result."""

    def _analyze(source: str, **overrides) -> OptimizationResult:
        config = OptimizerConfig().with_overrides(**overrides)
        return MathOptimizer(config).optimize(source)

    return _analyze


@pytest.fixture
def gml_file(tmp_path):
    """Factory fixture writing a .gml file under a temporary directory."""

    def _write(source: str, name: str = "scr_test.gml"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path

    return _write
