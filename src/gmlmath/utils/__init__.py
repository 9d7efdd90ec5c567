"""
gmlmath Utilities Package.

Error types and source locations.
"""

from gmlmath.utils.errors import (
    ConfigError,
    GmlMathError,
    LexerError,
    ParserError,
    SourceLocation,
)

__all__ = [
    "ConfigError",
    "GmlMathError",
    "LexerError",
    "ParserError",
    "SourceLocation",
]
