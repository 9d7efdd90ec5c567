"""
Entry point for running the gmlmath LSP server as a module.

Usage:
    python -m gmlmath.lsp
    python -m gmlmath.lsp --tcp --port 2087
"""

from gmlmath.lsp.server import main

if __name__ == "__main__":
    main()
