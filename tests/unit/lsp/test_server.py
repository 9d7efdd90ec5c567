"""Tests for the gmlmath language server handlers."""

import pytest
from lsprotocol import types

from gmlmath.config import OptimizerConfig
from gmlmath.lsp.server import GmlMathLanguageServer, create_server

URI = "file:///project/scripts/scr_test/scr_test.gml"


@pytest.fixture
def published(monkeypatch):
    """Fixture capturing published diagnostics instead of sending them."""
    server = GmlMathLanguageServer()
    sent: list[types.PublishDiagnosticsParams] = []
    monkeypatch.setattr(server, "text_document_publish_diagnostics", sent.append)
    return server, sent


class TestGmlMathLanguageServer:
    """Test suite for the language server."""

    def test_create_server(self) -> None:
        """Test that create_server returns a configured server."""
        config = OptimizerConfig(dead_code=False)
        server = create_server(config)

        assert isinstance(server, GmlMathLanguageServer)
        assert server.config is config

    def test_construction_registers_features(self) -> None:
        """Test that building the server registers every document feature."""
        server = GmlMathLanguageServer()
        features = server.protocol.fm.features

        for method in (
            types.TEXT_DOCUMENT_DID_OPEN,
            types.TEXT_DOCUMENT_DID_CHANGE,
            types.TEXT_DOCUMENT_DID_SAVE,
            types.TEXT_DOCUMENT_DID_CLOSE,
            types.TEXT_DOCUMENT_FORMATTING,
        ):
            assert method in features

    def test_registered_handler_forwards_to_server(self, published) -> None:
        """Test that the registered did-open handler reaches the server method."""
        server, sent = published
        handler = server.protocol.fm.features[types.TEXT_DOCUMENT_DID_OPEN]
        handler(
            server,
            types.DidOpenTextDocumentParams(
                text_document=types.TextDocumentItem(
                    uri=URI, language_id="gml", version=1, text="x = foo * 2 * 3;\n"
                )
            ),
        )

        assert [p.uri for p in sent] == [URI]

    def test_did_open_publishes_diagnostics(self, published) -> None:
        """Test that opening a document publishes its diagnostics."""
        server, sent = published
        server._on_did_open(
            types.DidOpenTextDocumentParams(
                text_document=types.TextDocumentItem(
                    uri=URI, language_id="gml", version=1, text="x = foo * 2 * 3;\n"
                )
            )
        )

        assert len(sent) == 1
        assert sent[0].uri == URI
        assert [d.code for d in sent[0].diagnostics] == ["simplify"]

    def test_did_close_clears_diagnostics(self, published) -> None:
        """Test that closing a document clears its diagnostics."""
        server, sent = published
        server._on_did_close(
            types.DidCloseTextDocumentParams(text_document=types.TextDocumentIdentifier(uri=URI))
        )

        assert len(sent) == 1
        assert sent[0].diagnostics == []
