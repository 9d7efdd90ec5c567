"""
gmlmath Language Server Protocol (LSP) implementation.

Editor integration for the optimizer:
- Diagnostics for parse errors and for every available simplification
- Document formatting that applies the simplifications

Usage:
    # Start the LSP server (stdio mode)
    gmlmath-lsp

    # Or run as a module
    python -m gmlmath.lsp
"""

from gmlmath.lsp.server import GmlMathLanguageServer, main

__all__ = [
    "GmlMathLanguageServer",
    "main",
]
