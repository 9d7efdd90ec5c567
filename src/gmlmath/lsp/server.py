"""
gmlmath Language Server Protocol (LSP) Server.

Runs the math optimizer inside an editor using pygls:

- Document synchronization (open, change, save, close)
- Diagnostics: parse errors, and an Information hint per available rewrite
- Document formatting: applies every rewrite to the document

Usage:
    # Start the server in stdio mode (for IDE integration)
    gmlmath-lsp

    # Start in TCP mode (for debugging)
    gmlmath-lsp --tcp --port 2087
"""

import logging
import os

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from gmlmath import __version__
from gmlmath.config import DEFAULT_CONFIG, OptimizerConfig
from gmlmath.lsp.diagnostics import get_diagnostics_for_document
from gmlmath.lsp.formatting import LSPFormatter
from gmlmath.utils.errors import ConfigError

logger = logging.getLogger("gmlmath-lsp")


class GmlMathLanguageServer(LanguageServer):
    """
    Language server publishing optimizer diagnostics and formatting edits.
    """

    def __init__(self, config: OptimizerConfig = DEFAULT_CONFIG) -> None:
        super().__init__(
            name="gmlmath-lsp",
            version=f"v{__version__}",
        )
        self.config = config
        self._formatter = LSPFormatter(config)
        self._register_handlers()

    def _register_handlers(self) -> None:
        """
        Register all LSP request and notification handlers.

        pygls tags each handler with attributes, which a bound method cannot
        carry, so every feature gets a plain function that forwards to the
        matching ``_on_*`` method of the server it is called with.
        """

        # Document synchronization
        @self.feature(types.TEXT_DOCUMENT_DID_OPEN)
        def did_open(ls: GmlMathLanguageServer, params: types.DidOpenTextDocumentParams) -> None:
            ls._on_did_open(params)

        @self.feature(types.TEXT_DOCUMENT_DID_CHANGE)
        def did_change(ls: GmlMathLanguageServer, params: types.DidChangeTextDocumentParams) -> None:
            ls._on_did_change(params)

        @self.feature(types.TEXT_DOCUMENT_DID_SAVE)
        def did_save(ls: GmlMathLanguageServer, params: types.DidSaveTextDocumentParams) -> None:
            ls._on_did_save(params)

        @self.feature(types.TEXT_DOCUMENT_DID_CLOSE)
        def did_close(ls: GmlMathLanguageServer, params: types.DidCloseTextDocumentParams) -> None:
            ls._on_did_close(params)

        # Formatting
        @self.feature(types.TEXT_DOCUMENT_FORMATTING)
        def formatting(
            ls: GmlMathLanguageServer, params: types.DocumentFormattingParams
        ) -> list[types.TextEdit] | None:
            return ls._on_formatting(params)

    def _publish(self, uri: str, diagnostics: list[types.Diagnostic]) -> None:
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )

    def _analyze(self, uri: str) -> None:
        doc = self.workspace.get_text_document(uri)
        if doc is None:
            return
        self._publish(uri, get_diagnostics_for_document(doc.source, uri, self.config))

    # =========================================================================
    # Document Synchronization
    # =========================================================================

    def _on_did_open(self, params: types.DidOpenTextDocumentParams) -> None:
        """Handle document open notification."""
        document = params.text_document
        logger.info("Document opened: %s", document.uri)
        self._publish(
            document.uri, get_diagnostics_for_document(document.text, document.uri, self.config)
        )

    def _on_did_change(self, params: types.DidChangeTextDocumentParams) -> None:
        """Handle document change notification."""
        logger.debug("Document changed: %s", params.text_document.uri)
        self._analyze(params.text_document.uri)

    def _on_did_save(self, params: types.DidSaveTextDocumentParams) -> None:
        """Handle document save notification."""
        logger.info("Document saved: %s", params.text_document.uri)
        self._analyze(params.text_document.uri)

    def _on_did_close(self, params: types.DidCloseTextDocumentParams) -> None:
        """Handle document close notification."""
        uri = params.text_document.uri
        logger.info("Document closed: %s", uri)
        self._publish(uri, [])

    # =========================================================================
    # Formatting
    # =========================================================================

    def _on_formatting(
        self, params: types.DocumentFormattingParams
    ) -> list[types.TextEdit] | None:
        """Handle document formatting request."""
        uri = params.text_document.uri
        doc = self.workspace.get_text_document(uri)
        if doc is None:
            return None
        return self._formatter.format_document(doc.source, uri)


# =============================================================================
# Server Creation and Main Entry Point
# =============================================================================


def create_server(config: OptimizerConfig = DEFAULT_CONFIG) -> GmlMathLanguageServer:
    """Create and configure a gmlmath language server instance."""
    server = GmlMathLanguageServer(config)

    @server.feature(types.INITIALIZED)
    def on_initialized(
        params: types.InitializedParams,  # noqa: ARG001
    ) -> None:
        """Handle initialized notification."""
        logger.info("gmlmath language server initialized")

    return server


def main() -> None:
    """
    Main entry point for the gmlmath language server.

    Starts the server in stdio mode unless ``--tcp`` is given. Optimizer
    settings are read from ``GMLMATH_*`` environment variables.
    """
    import argparse

    parser = argparse.ArgumentParser(
        description="gmlmath Language Server",
        prog="gmlmath-lsp",
    )
    parser.add_argument(
        "--tcp",
        action="store_true",
        help="Start server in TCP mode instead of stdio",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to in TCP mode (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=2087,
        help="Port to listen on in TCP mode (default: 2087)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging level (default: info)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = OptimizerConfig.from_env(os.environ)
    except ConfigError as e:
        parser.error(e.message)
    server = create_server(config)

    if args.tcp:
        logger.info("Starting gmlmath LSP in TCP mode on %s:%d", args.host, args.port)
        server.start_tcp(args.host, args.port)
    else:
        logger.info("Starting gmlmath LSP in stdio mode")
        server.start_io()


if __name__ == "__main__":
    main()
