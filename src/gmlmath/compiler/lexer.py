"""
GML Lexer (Tokenizer).

Transforms GML source code into a stream of tokens. Whitespace, newlines and
comments are skipped; every token records its start location and end offset
so later passes can slice the exact source text of any node.
"""

from typing import Iterator, Optional

from gmlmath.compiler.tokens import (
    Token,
    TokenType,
    KEYWORDS,
    SINGLE_CHAR_TOKENS,
    DOUBLE_CHAR_TOKENS,
    TRIPLE_CHAR_TOKENS,
)
from gmlmath.utils.errors import LexerError, SourceLocation


class Lexer:
    """
    Tokenizer for GML source code.

    The lexer supports:
    - Identifiers and keywords (including word operators like ``and``/``div``)
    - Decimal, float, hexadecimal (``$FF``, ``0xFF``) and binary (``0b101``) numbers
    - Double-quoted strings with escapes, ``@"..."`` verbatim and ``$"..."`` template strings
    - Comments (// single line, /* multi-line */) and ``#region`` style directives
    - Every GML operator including compound assignments and accessor brackets

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
        # or iterate: for token in lexer: ...
    """

    def __init__(self, source: str, filename: Optional[str] = None) -> None:
        """
        Initialize the lexer with source code.

        Args:
            source: The GML source code to tokenize
            filename: Optional filename for error reporting
        """
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

        # Track the start of the current line for error reporting
        self._line_start = 0

    @property
    def _current_char(self) -> Optional[str]:
        """Return the current character or None if at end."""
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    @property
    def _peek_char(self) -> Optional[str]:
        """Return the next character without consuming it."""
        return self._peek_ahead(1)

    def _peek_ahead(self, n: int) -> Optional[str]:
        """Return the character n positions ahead."""
        peek_pos = self.pos + n
        if peek_pos >= len(self.source):
            return None
        return self.source[peek_pos]

    def _location(self) -> SourceLocation:
        """Create a SourceLocation for the current position."""
        return SourceLocation(
            line=self.line,
            column=self.column,
            offset=self.pos,
            filename=self.filename,
        )

    def _current_line_text(self) -> str:
        """Extract the current line of source for error messages."""
        end = self.source.find("\n", self._line_start)
        if end == -1:
            end = len(self.source)
        return self.source[self._line_start:end].rstrip("\r")

    def _advance(self) -> str:
        """Consume and return the current character."""
        char = self.source[self.pos]
        self.pos += 1

        if char == "\n":
            self.line += 1
            self.column = 1
            self._line_start = self.pos
        else:
            self.column += 1

        return char

    def _make_token(self, token_type: TokenType, value: object, start_loc: SourceLocation) -> Token:
        """Build a token spanning from start_loc to the current position."""
        return Token(token_type, value, start_loc, self.pos)

    def _skip_whitespace(self) -> None:
        """Skip whitespace characters, newlines included."""
        while self._current_char is not None and self._current_char in " \t\r\n\f\v":
            self._advance()

    def _skip_line(self) -> None:
        """Skip up to (but not including) the next newline."""
        while self._current_char is not None and self._current_char != "\n":
            self._advance()

    def _skip_double_slash_comment(self) -> bool:
        """Skip single-line comments starting with //.

        Returns True if a comment was skipped.
        """
        if self._current_char == "/" and self._peek_char == "/":
            self._skip_line()
            return True
        return False

    def _skip_directive(self) -> bool:
        """Skip preprocessor-like lines (#region, #endregion, #macro).

        Only a ``#`` that starts a line (after indentation) is a directive;
        elsewhere it belongs to the ``[#`` accessor and is lexed as an operator.
        """
        if self._current_char != "#":
            return False
        if self.source[self._line_start:self.pos].strip():
            return False
        self._skip_line()
        return True

    def _skip_multiline_comment(self) -> bool:
        """
        Skip multi-line comments /* ... */.

        Returns:
            True if a multi-line comment was skipped, False otherwise.
        """
        if self._current_char == "/" and self._peek_char == "*":
            start_loc = self._location()
            self._advance()  # /
            self._advance()  # *

            while True:
                if self._current_char is None:
                    raise LexerError(
                        "Unterminated multi-line comment",
                        start_loc,
                        self._current_line_text(),
                    )
                if self._current_char == "*" and self._peek_char == "/":
                    self._advance()  # *
                    self._advance()  # /
                    return True
                self._advance()

        return False

    def _read_string(self, quote_char: str, start_loc: SourceLocation, verbatim: bool = False) -> Token:
        """
        Read a string literal.

        Args:
            quote_char: The opening quote character (' or ")
            start_loc: Location of the first character of the literal,
                which precedes the quote for ``@"..."`` and ``$"..."``
            verbatim: When True, backslashes are literal and newlines are allowed

        Returns:
            A STRING token with the string value.
        """
        self._advance()  # consume opening quote

        value_chars: list[str] = []
        escape_sequences = {
            "n": "\n",
            "t": "\t",
            "r": "\r",
            "b": "\b",
            "f": "\f",
            "v": "\v",
            "a": "\a",
            "\\": "\\",
            "'": "'",
            '"': '"',
            "0": "\0",
        }

        while True:
            if self._current_char is None:
                raise LexerError(
                    "Unterminated string literal",
                    start_loc,
                    self._current_line_text(),
                )

            if self._current_char == "\n" and not verbatim:
                raise LexerError(
                    "Newline in string literal (use \\n or a @\"...\" string)",
                    self._location(),
                    self._current_line_text(),
                )

            if self._current_char == quote_char:
                self._advance()  # consume closing quote
                break

            if self._current_char == "\\" and not verbatim:
                self._advance()
                if self._current_char is None:
                    raise LexerError(
                        "Unterminated escape sequence",
                        self._location(),
                        self._current_line_text(),
                    )
                # Unknown escapes keep the escaped character as-is
                value_chars.append(escape_sequences.get(self._current_char, self._current_char))
                self._advance()
            else:
                value_chars.append(self._advance())

        return self._make_token(TokenType.STRING, "".join(value_chars), start_loc)

    def _read_radix_digits(self, start_loc: SourceLocation, digits: str, base: int) -> Token:
        """Read digits of a hexadecimal or binary literal after its prefix."""
        num_chars: list[str] = []
        while self._current_char is not None and (
            self._current_char in digits or self._current_char == "_"
        ):
            if self._current_char != "_":
                num_chars.append(self._current_char)
            self._advance()

        if not num_chars:
            raise LexerError(
                "Invalid number: expected digits after radix prefix",
                self._location(),
                self._current_line_text(),
            )

        return self._make_token(TokenType.NUMBER, int("".join(num_chars), base), start_loc)

    def _read_number(self) -> Token:
        """
        Read a numeric literal.

        Supports:
        - Decimal integers: 123
        - Floats: 123.456, .5, 1.
        - Scientific notation: 1.23e10, 1.23E-10
        - Hexadecimal: $FF, 0xFF
        - Binary: 0b1010
        - Underscores for readability: 1_000_000

        Returns:
            A NUMBER token whose value is an int or a float.
        """
        start_loc = self._location()

        if self._current_char == "$":
            self._advance()
            return self._read_radix_digits(start_loc, "0123456789abcdefABCDEF", 16)

        if self._current_char == "0" and self._peek_char is not None and self._peek_char in "xXbB":
            self._advance()  # 0
            prefix = self._advance().lower()
            if prefix == "x":
                return self._read_radix_digits(start_loc, "0123456789abcdefABCDEF", 16)
            return self._read_radix_digits(start_loc, "01", 2)

        num_chars: list[str] = []
        is_float = False

        # Read integer part
        while self._current_char is not None and (
            self._current_char.isdigit() or self._current_char == "_"
        ):
            if self._current_char != "_":
                num_chars.append(self._current_char)
            self._advance()

        # Check for decimal point; "1." is a float but "1.foo" is not
        if self._current_char == "." and not (
            self._peek_char is not None and (self._peek_char.isalpha() or self._peek_char == "_")
        ):
            is_float = True
            num_chars.append(self._advance())

            # Read fractional part
            while self._current_char is not None and (
                self._current_char.isdigit() or self._current_char == "_"
            ):
                if self._current_char != "_":
                    num_chars.append(self._current_char)
                self._advance()

        # Check for exponent
        if self._current_char is not None and self._current_char in "eE":
            next_char = self._peek_char
            if next_char is not None and (
                next_char.isdigit()
                or (next_char in "+-" and (self._peek_ahead(2) or "").isdigit())
            ):
                is_float = True
                num_chars.append(self._advance())

                if self._current_char in "+-":
                    num_chars.append(self._advance())

                while self._current_char is not None and self._current_char.isdigit():
                    num_chars.append(self._advance())

        value_str = "".join(num_chars)

        if is_float:
            if value_str.startswith("."):
                value_str = "0" + value_str
            return self._make_token(TokenType.NUMBER, float(value_str), start_loc)
        return self._make_token(TokenType.NUMBER, int(value_str), start_loc)

    def _read_identifier_or_keyword(self) -> Token:
        """
        Read an identifier or keyword.

        Identifiers start with a letter or underscore and contain
        letters, digits, and underscores.

        Returns:
            An IDENTIFIER token or the appropriate keyword token.
        """
        start_loc = self._location()
        id_chars: list[str] = []

        while self._current_char is not None and (
            self._current_char.isalnum() or self._current_char == "_"
        ):
            id_chars.append(self._advance())

        identifier = "".join(id_chars)

        # Check if it's a keyword
        if identifier in KEYWORDS:
            token_type = KEYWORDS[identifier]
            # Handle boolean literals specially
            if token_type == TokenType.TRUE:
                return self._make_token(token_type, True, start_loc)
            if token_type == TokenType.FALSE:
                return self._make_token(token_type, False, start_loc)
            if token_type == TokenType.UNDEFINED:
                return self._make_token(token_type, None, start_loc)
            return self._make_token(token_type, identifier, start_loc)

        return self._make_token(TokenType.IDENTIFIER, identifier, start_loc)

    def _read_operator(self) -> Optional[Token]:
        """
        Read an operator token (one to three characters, longest match first).

        Returns:
            An operator token, or None if the current character is not an operator.
        """
        if self._current_char is None:
            return None

        start_loc = self._location()

        for width, table in ((3, TRIPLE_CHAR_TOKENS), (2, DOUBLE_CHAR_TOKENS), (1, SINGLE_CHAR_TOKENS)):
            lexeme = self.source[self.pos:self.pos + width]
            if len(lexeme) == width and lexeme in table:
                for _ in range(width):
                    self._advance()
                return self._make_token(table[lexeme], lexeme, start_loc)

        return None

    def _next_token(self) -> Token:
        """
        Extract the next token from the source.

        Returns:
            The next token, or an EOF token at end of source.
        """
        while True:
            self._skip_whitespace()

            if self._skip_double_slash_comment():
                continue

            if self._skip_multiline_comment():
                continue

            if self._skip_directive():
                continue

            break

        if self._current_char is None:
            return self._make_token(TokenType.EOF, None, self._location())

        char = self._current_char

        # Verbatim and template strings
        if char in "@$" and self._peek_char in ("\"", "'"):
            start_loc = self._location()
            self._advance()
            return self._read_string(self._current_char, start_loc, verbatim=(char == "@"))

        # String literals
        if char in "\"'":
            return self._read_string(char, self._location())

        # Numbers
        if char.isdigit() or (char == "." and (self._peek_char or "").isdigit()):
            return self._read_number()

        if char == "$" and self._peek_char is not None and self._peek_char in "0123456789abcdefABCDEF":
            return self._read_number()

        # Identifiers and keywords
        if char.isalpha() or char == "_":
            return self._read_identifier_or_keyword()

        # Operators and punctuation
        op_token = self._read_operator()
        if op_token is not None:
            return op_token

        # Unknown character
        raise LexerError(
            f"Unexpected character: {char!r}",
            self._location(),
            self._current_line_text(),
        )

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source code.

        Returns:
            A list of all tokens including the final EOF token.

        Raises:
            LexerError: On an unterminated string or comment, or an unknown character.
        """
        self.tokens = []
        self.pos = 0
        self.line = 1
        self.column = 1
        self._line_start = 0

        while True:
            token = self._next_token()
            self.tokens.append(token)
            if token.type == TokenType.EOF:
                break

        return self.tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens (re-tokenizes if necessary)."""
        if not self.tokens:
            self.tokenize()
        return iter(self.tokens)


def tokenize(source: str, filename: Optional[str] = None) -> list[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: GML source code
        filename: Optional filename for error reporting

    Returns:
        List of tokens
    """
    return Lexer(source, filename).tokenize()
