"""
GML Parser.

A recursive descent parser that transforms a token stream into an Abstract
Syntax Tree (AST). Statements are parsed by recursive descent and expressions
by precedence climbing. Every node records the ``[start, end)`` offsets of
the tokens it spans, so later passes can slice its exact source text.
"""

from typing import Optional

from gmlmath.compiler.tokens import Token, TokenType
from gmlmath.compiler.lexer import Lexer
from gmlmath.compiler.ast_nodes import (
    # Program
    Program,
    # Expressions
    Expression,
    Identifier,
    Literal,
    ParenthesizedExpression,
    BinaryExpression,
    LogicalExpression,
    UnaryExpression,
    UpdateExpression,
    AssignmentExpression,
    ConditionalExpression,
    CallExpression,
    NewExpression,
    MemberDotExpression,
    MemberIndexExpression,
    ArrayExpression,
    Property,
    StructExpression,
    FunctionExpression,
    # Statements
    Statement,
    BlockStatement,
    EmptyStatement,
    ExpressionStatement,
    VariableDeclarator,
    VariableDeclaration,
    IfStatement,
    WhileStatement,
    DoUntilStatement,
    ForStatement,
    RepeatStatement,
    WithStatement,
    SwitchCase,
    SwitchStatement,
    ReturnStatement,
    BreakStatement,
    ContinueStatement,
    ExitStatement,
    ThrowStatement,
    TryStatement,
    EnumDeclaration,
    FunctionDeclaration,
)
from gmlmath.utils.errors import ParserError


class Precedence:
    """Operator precedence levels."""

    NONE = 0
    CONDITIONAL = 1     # ? :
    NULLISH = 2         # ??
    OR = 3              # || or
    XOR = 4             # ^^ xor
    AND = 5             # && and
    EQUALITY = 6        # == != <>
    COMPARISON = 7      # < > <= >=
    BITWISE_OR = 8      # |
    BITWISE_XOR = 9     # ^
    BITWISE_AND = 10    # &
    SHIFT = 11          # << >>
    ADDITIVE = 12       # + -
    MULTIPLICATIVE = 13 # * / % div mod
    UNARY = 14          # - ! ~ ++ --
    POSTFIX = 15        # () [] . ++ --


PRECEDENCE_MAP: dict[TokenType, int] = {
    TokenType.QUESTION: Precedence.CONDITIONAL,
    TokenType.NULLISH: Precedence.NULLISH,
    TokenType.OR: Precedence.OR,
    TokenType.XOR: Precedence.XOR,
    TokenType.AND: Precedence.AND,
    # Equality
    TokenType.EQ: Precedence.EQUALITY,
    TokenType.NE: Precedence.EQUALITY,
    # Comparison
    TokenType.LT: Precedence.COMPARISON,
    TokenType.GT: Precedence.COMPARISON,
    TokenType.LE: Precedence.COMPARISON,
    TokenType.GE: Precedence.COMPARISON,
    # Bitwise
    TokenType.PIPE: Precedence.BITWISE_OR,
    TokenType.CARET: Precedence.BITWISE_XOR,
    TokenType.AMPERSAND: Precedence.BITWISE_AND,
    TokenType.SHIFT_LEFT: Precedence.SHIFT,
    TokenType.SHIFT_RIGHT: Precedence.SHIFT,
    # Additive
    TokenType.PLUS: Precedence.ADDITIVE,
    TokenType.MINUS: Precedence.ADDITIVE,
    # Multiplicative
    TokenType.STAR: Precedence.MULTIPLICATIVE,
    TokenType.SLASH: Precedence.MULTIPLICATIVE,
    TokenType.MOD: Precedence.MULTIPLICATIVE,
    TokenType.DIV: Precedence.MULTIPLICATIVE,
    # Postfix
    TokenType.LPAREN: Precedence.POSTFIX,
    TokenType.LBRACKET: Precedence.POSTFIX,
    TokenType.DOT: Precedence.POSTFIX,
    TokenType.INCREMENT: Precedence.POSTFIX,
    TokenType.DECREMENT: Precedence.POSTFIX,
}

LOGICAL_OPERATORS: frozenset[TokenType] = frozenset({
    TokenType.AND,
    TokenType.OR,
    TokenType.XOR,
})

UNARY_OPERATORS: frozenset[TokenType] = frozenset({
    TokenType.MINUS,
    TokenType.PLUS,
    TokenType.NOT,
    TokenType.TILDE,
})

# Keywords that may still appear as member names after a DOT
MEMBER_NAME_KEYWORDS: frozenset[TokenType] = frozenset({
    TokenType.DEFAULT,
    TokenType.STATIC,
    TokenType.NEW,
    TokenType.WITH,
    TokenType.FUNCTION,
})

# Contextual statement keywords, lexed as identifiers
CONTEXTUAL_KEYWORDS = ("enum", "throw", "try")


class Parser:
    """
    Recursive descent parser for GML.

    Parses a list of tokens into an Abstract Syntax Tree. Semicolons are
    optional, as in GML itself.

    Usage:
        parser = Parser(tokens, source)
        ast = parser.parse()
    """

    def __init__(self, tokens: list[Token], source: str = "",
                 filename: Optional[str] = None) -> None:
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from the lexer
            source: Source code the tokens came from, used for literal raw text
                and error context
            filename: Optional filename for error reporting
        """
        self.tokens = tokens
        self.pos = 0
        self._source = source
        self._source_lines: list[str] = source.splitlines() if source else []
        self._filename = filename

    @property
    def _current(self) -> Token:
        """Get the current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[self.pos]

    @property
    def _previous(self) -> Token:
        """Get the previous token."""
        return self.tokens[self.pos - 1] if self.pos > 0 else self.tokens[0]

    def _peek(self, offset: int = 1) -> Token:
        """Peek at a token ahead of the current position."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def _is_at_end(self) -> bool:
        """Check if we've reached the end of tokens."""
        return self._current.type == TokenType.EOF

    def _check(self, *types: TokenType) -> bool:
        """Check if the current token is one of the given types."""
        return self._current.type in types

    def _check_word(self, word: str) -> bool:
        """Check if the current token is the identifier ``word``."""
        return self._current.type == TokenType.IDENTIFIER and self._current.value == word

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self._current
        if not self._is_at_end():
            self.pos += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        """Consume current token if it matches one of the given types."""
        if self._check(*types):
            self._advance()
            return True
        return False

    def _expect(self, token_type: TokenType, message: str) -> Token:
        """Consume current token if it matches, else raise error."""
        if self._check(token_type):
            return self._advance()
        raise self._error(message)

    def _error(self, message: str) -> ParserError:
        """Create a parser error at the current token with its source line."""
        token = self._current
        found = "end of file" if token.type == TokenType.EOF else repr(self._token_text(token))
        source_line = None
        if 0 < token.location.line <= len(self._source_lines):
            source_line = self._source_lines[token.location.line - 1]
        return ParserError(f"{message}, found {found}", token.location, source_line)

    def _token_text(self, token: Token) -> str:
        """Return the exact source text of a token."""
        if self._source:
            return self._source[token.start:token.end]
        return str(token.value)

    def _end_statement(self) -> None:
        """Consume an optional trailing semicolon."""
        self._match(TokenType.SEMICOLON)

    # -------------------------------------------------------------------------
    # Program Parsing
    # -------------------------------------------------------------------------

    def parse(self) -> Program:
        """
        Parse the entire program.

        Returns:
            The root Program AST node.

        Raises:
            ParserError: On any syntax error.
        """
        statements: list[Statement] = []
        while not self._is_at_end():
            statements.append(self._parse_statement())

        end = len(self._source) if self._source else self._current.end
        return Program(tuple(statements), start=0, end=end)

    # -------------------------------------------------------------------------
    # Statement Parsing
    # -------------------------------------------------------------------------

    def _parse_statement(self) -> Statement:
        """Parse a single statement."""
        token = self._current

        if token.type == TokenType.SEMICOLON:
            self._advance()
            return EmptyStatement(start=token.start, end=token.end)
        if token.type == TokenType.LBRACE:
            return self._parse_block()
        if token.type == TokenType.IF:
            return self._parse_if()
        if token.type == TokenType.WHILE:
            return self._parse_while()
        if token.type == TokenType.DO:
            return self._parse_do_until()
        if token.type == TokenType.FOR:
            return self._parse_for()
        if token.type == TokenType.REPEAT:
            return self._parse_repeat()
        if token.type == TokenType.WITH:
            return self._parse_with()
        if token.type == TokenType.SWITCH:
            return self._parse_switch()
        if token.type == TokenType.RETURN:
            return self._parse_return()
        if token.type == TokenType.FUNCTION and self._peek().type == TokenType.IDENTIFIER:
            return self._parse_function_declaration()
        if token.type in (TokenType.BREAK, TokenType.CONTINUE, TokenType.EXIT):
            self._advance()
            node_class = {
                TokenType.BREAK: BreakStatement,
                TokenType.CONTINUE: ContinueStatement,
                TokenType.EXIT: ExitStatement,
            }[token.type]
            self._end_statement()
            return node_class(start=token.start, end=token.end)
        if token.type == TokenType.IDENTIFIER and token.value in CONTEXTUAL_KEYWORDS:
            contextual = self._parse_contextual_statement()
            if contextual is not None:
                return contextual

        statement = self._parse_simple_statement()
        self._end_statement()
        return statement

    def _parse_simple_statement(self) -> Statement:
        """
        Parse a declaration or expression statement without its semicolon.

        Used directly for the init and update clauses of ``for`` headers.
        """
        if self._check(TokenType.VAR, TokenType.GLOBALVAR, TokenType.STATIC):
            return self._parse_variable_declaration()
        return self._parse_expression_or_assignment()

    def _parse_block(self) -> BlockStatement:
        """Parse a ``{ ... }`` block."""
        open_brace = self._expect(TokenType.LBRACE, "Expected '{'")
        statements: list[Statement] = []
        while not self._check(TokenType.RBRACE):
            if self._is_at_end():
                raise self._error("Unclosed '{'")
            statements.append(self._parse_statement())
        close_brace = self._advance()
        return BlockStatement(tuple(statements), start=open_brace.start, end=close_brace.end)

    def _parse_variable_declaration(self) -> VariableDeclaration:
        """Parse ``var a = 1, b`` (also ``globalvar`` and ``static``)."""
        keyword = self._advance()
        declarations: list[VariableDeclarator] = []
        while True:
            name_token = self._expect(TokenType.IDENTIFIER, "Expected variable name")
            name = Identifier(name_token.value, start=name_token.start, end=name_token.end)
            init: Optional[Expression] = None
            if self._match(TokenType.ASSIGN):
                init = self._parse_expression()
            end = init.end if init is not None else name.end
            declarations.append(VariableDeclarator(name, init, start=name.start, end=end))
            if not self._match(TokenType.COMMA):
                break
        return VariableDeclaration(
            tuple(declarations),
            kind=keyword.value,
            start=keyword.start,
            end=declarations[-1].end,
        )

    def _parse_expression_or_assignment(self) -> Statement:
        """Parse an expression statement, handling assignments."""
        expr = self._parse_expression()

        if self._current.is_assignment:
            operator = self._advance()
            value = self._parse_expression()
            expr = AssignmentExpression(
                operator=operator.value,
                left=expr,
                right=value,
                start=expr.start,
                end=value.end,
            )

        return ExpressionStatement(expr, start=expr.start, end=expr.end)

    def _parse_if(self) -> IfStatement:
        """Parse ``if cond stmt [else stmt]``."""
        keyword = self._advance()
        test = self._parse_expression()
        self._match_word("then")
        consequent = self._parse_statement()
        alternate: Optional[Statement] = None
        end = consequent.end
        if self._match(TokenType.ELSE):
            alternate = self._parse_statement()
            end = alternate.end
        return IfStatement(test, consequent, alternate, start=keyword.start, end=end)

    def _match_word(self, word: str) -> bool:
        """Consume the identifier ``word`` if it is current."""
        if self._check_word(word):
            self._advance()
            return True
        return False

    def _parse_while(self) -> WhileStatement:
        keyword = self._advance()
        test = self._parse_expression()
        body = self._parse_statement()
        return WhileStatement(test, body, start=keyword.start, end=body.end)

    def _parse_do_until(self) -> DoUntilStatement:
        keyword = self._advance()
        body = self._parse_statement()
        self._expect(TokenType.UNTIL, "Expected 'until' after do body")
        test = self._parse_expression()
        self._end_statement()
        return DoUntilStatement(body, test, start=keyword.start, end=test.end)

    def _parse_for(self) -> ForStatement:
        """Parse ``for (init; test; update) body``."""
        keyword = self._advance()
        self._expect(TokenType.LPAREN, "Expected '(' after 'for'")

        init: Optional[Statement] = None
        if not self._check(TokenType.SEMICOLON):
            init = self._parse_simple_statement()
        self._expect(TokenType.SEMICOLON, "Expected ';' after for initializer")

        test: Optional[Expression] = None
        if not self._check(TokenType.SEMICOLON):
            test = self._parse_expression()
        self._expect(TokenType.SEMICOLON, "Expected ';' after for condition")

        update: Optional[Statement] = None
        if not self._check(TokenType.RPAREN):
            update = self._parse_simple_statement()
        self._expect(TokenType.RPAREN, "Expected ')' after for clauses")

        body = self._parse_statement()
        return ForStatement(init, test, update, body, start=keyword.start, end=body.end)

    def _parse_repeat(self) -> RepeatStatement:
        keyword = self._advance()
        count = self._parse_expression()
        body = self._parse_statement()
        return RepeatStatement(count, body, start=keyword.start, end=body.end)

    def _parse_with(self) -> WithStatement:
        keyword = self._advance()
        target = self._parse_expression()
        body = self._parse_statement()
        return WithStatement(target, body, start=keyword.start, end=body.end)

    def _parse_switch(self) -> SwitchStatement:
        """Parse ``switch (x) { case a: ... default: ... }``."""
        keyword = self._advance()
        discriminant = self._parse_expression()
        self._expect(TokenType.LBRACE, "Expected '{' after switch value")

        cases: list[SwitchCase] = []
        while not self._check(TokenType.RBRACE):
            case_token = self._current
            test: Optional[Expression] = None
            if self._match(TokenType.CASE):
                test = self._parse_expression()
            elif not self._match(TokenType.DEFAULT):
                raise self._error("Expected 'case' or 'default'")
            colon = self._expect(TokenType.COLON, "Expected ':' after case label")

            consequent: list[Statement] = []
            while not self._check(TokenType.CASE, TokenType.DEFAULT, TokenType.RBRACE):
                if self._is_at_end():
                    raise self._error("Unclosed switch body")
                consequent.append(self._parse_statement())
            end = consequent[-1].end if consequent else colon.end
            cases.append(SwitchCase(test, tuple(consequent), start=case_token.start, end=end))

        close_brace = self._advance()
        return SwitchStatement(discriminant, tuple(cases), start=keyword.start, end=close_brace.end)

    def _parse_return(self) -> ReturnStatement:
        keyword = self._advance()
        argument: Optional[Expression] = None
        if not self._check(TokenType.SEMICOLON, TokenType.RBRACE, TokenType.EOF):
            argument = self._parse_expression()
        self._end_statement()
        end = argument.end if argument is not None else keyword.end
        return ReturnStatement(argument, start=keyword.start, end=end)

    def _parse_contextual_statement(self) -> Optional[Statement]:
        """
        Parse ``enum``, ``throw`` and ``try`` statements.

        These words are ordinary identifiers in GML's lexical grammar, so they
        are only treated as statement keywords when followed by the right
        token. Returns None when the word is used as a plain identifier.
        """
        keyword = self._current
        following = self._peek()

        if keyword.value == "enum" and following.type == TokenType.IDENTIFIER:
            return self._parse_enum()
        if keyword.value == "try" and following.type == TokenType.LBRACE:
            return self._parse_try()
        if keyword.value == "throw" and following.type not in (
            TokenType.SEMICOLON,
            TokenType.EOF,
        ) and not following.is_assignment and following.type not in PRECEDENCE_MAP:
            self._advance()
            argument = self._parse_expression()
            self._end_statement()
            return ThrowStatement(argument, start=keyword.start, end=argument.end)
        return None

    def _parse_enum(self) -> EnumDeclaration:
        keyword = self._advance()
        name_token = self._expect(TokenType.IDENTIFIER, "Expected enum name")
        self._expect(TokenType.LBRACE, "Expected '{' after enum name")

        members: list[VariableDeclarator] = []
        while not self._check(TokenType.RBRACE):
            member_token = self._expect(TokenType.IDENTIFIER, "Expected enum member")
            member = Identifier(member_token.value, start=member_token.start, end=member_token.end)
            value: Optional[Expression] = None
            if self._match(TokenType.ASSIGN):
                value = self._parse_expression()
            end = value.end if value is not None else member.end
            members.append(VariableDeclarator(member, value, start=member.start, end=end))
            if not self._match(TokenType.COMMA):
                break

        close_brace = self._expect(TokenType.RBRACE, "Expected '}' after enum members")
        self._end_statement()
        return EnumDeclaration(
            Identifier(name_token.value, start=name_token.start, end=name_token.end),
            tuple(members),
            start=keyword.start,
            end=close_brace.end,
        )

    def _parse_try(self) -> TryStatement:
        keyword = self._advance()
        block = self._parse_block()
        param: Optional[Identifier] = None
        handler: Optional[BlockStatement] = None
        finalizer: Optional[BlockStatement] = None
        end = block.end

        if self._match_word("catch"):
            self._expect(TokenType.LPAREN, "Expected '(' after 'catch'")
            param_token = self._expect(TokenType.IDENTIFIER, "Expected catch variable")
            param = Identifier(param_token.value, start=param_token.start, end=param_token.end)
            self._expect(TokenType.RPAREN, "Expected ')' after catch variable")
            handler = self._parse_block()
            end = handler.end
        if self._match_word("finally"):
            finalizer = self._parse_block()
            end = finalizer.end

        return TryStatement(block, param, handler, finalizer, start=keyword.start, end=end)

    def _parse_function_parts(self) -> tuple[
        tuple[Expression, ...], Optional[Expression], bool, BlockStatement
    ]:
        """Parse ``(params) [: Parent(args)] [constructor] { body }``."""
        self._expect(TokenType.LPAREN, "Expected '(' before parameters")
        params: list[Expression] = []
        while not self._check(TokenType.RPAREN):
            name_token = self._expect(TokenType.IDENTIFIER, "Expected parameter name")
            param: Expression = Identifier(name_token.value, start=name_token.start, end=name_token.end)
            if self._match(TokenType.ASSIGN):
                default = self._parse_expression()
                param = AssignmentExpression("=", param, default, start=param.start, end=default.end)
            params.append(param)
            if not self._match(TokenType.COMMA):
                break
        self._expect(TokenType.RPAREN, "Expected ')' after parameters")

        parent: Optional[Expression] = None
        if self._match(TokenType.COLON):
            parent = self._parse_expression(Precedence.UNARY)

        constructor = self._match_word("constructor")
        body = self._parse_block()
        return tuple(params), parent, constructor, body

    def _parse_function_declaration(self) -> FunctionDeclaration:
        keyword = self._advance()
        name_token = self._advance()
        params, parent, constructor, body = self._parse_function_parts()
        self._end_statement()
        return FunctionDeclaration(
            Identifier(name_token.value, start=name_token.start, end=name_token.end),
            params,
            body,
            parent=parent,
            constructor=constructor,
            start=keyword.start,
            end=body.end,
        )

    # -------------------------------------------------------------------------
    # Expression Parsing
    # -------------------------------------------------------------------------

    def _parse_expression(self, min_precedence: int = Precedence.NONE) -> Expression:
        """
        Parse an expression using precedence climbing.

        Binary operators are left associative; the ternary is right associative.
        """
        left = self._parse_prefix()

        while True:
            precedence = PRECEDENCE_MAP.get(self._current.type, Precedence.NONE)
            if precedence <= min_precedence:
                break
            left = self._parse_infix(left, precedence)

        return left

    def _parse_prefix(self) -> Expression:
        """Parse a prefix expression (unary operators, literals, etc.)."""
        token = self._current

        if token.type in UNARY_OPERATORS:
            self._advance()
            operand = self._parse_expression(Precedence.UNARY)
            return UnaryExpression(token.value, operand, start=token.start, end=operand.end)

        if token.type in (TokenType.INCREMENT, TokenType.DECREMENT):
            self._advance()
            operand = self._parse_expression(Precedence.UNARY)
            return UpdateExpression(token.value, operand, True, start=token.start, end=operand.end)

        if token.type in (
            TokenType.NUMBER,
            TokenType.STRING,
            TokenType.TRUE,
            TokenType.FALSE,
            TokenType.UNDEFINED,
        ):
            self._advance()
            return Literal(token.value, self._token_text(token), start=token.start, end=token.end)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(token.value, start=token.start, end=token.end)

        if token.type == TokenType.LPAREN:
            self._advance()
            inner = self._parse_expression()
            close = self._expect(TokenType.RPAREN, "Expected ')'")
            return ParenthesizedExpression(inner, start=token.start, end=close.end)

        if token.type == TokenType.LBRACKET and token.value == "[":
            self._advance()
            elements = self._parse_expression_list(TokenType.RBRACKET)
            close = self._expect(TokenType.RBRACKET, "Expected ']' after array elements")
            return ArrayExpression(tuple(elements), start=token.start, end=close.end)

        if token.type == TokenType.LBRACE:
            return self._parse_struct()

        if token.type == TokenType.FUNCTION:
            self._advance()
            name: Optional[Identifier] = None
            if self._check(TokenType.IDENTIFIER):
                name_token = self._advance()
                name = Identifier(name_token.value, start=name_token.start, end=name_token.end)
            params, parent, constructor, body = self._parse_function_parts()
            return FunctionExpression(
                name, params, body,
                parent=parent,
                constructor=constructor,
                start=token.start,
                end=body.end,
            )

        if token.type == TokenType.NEW:
            self._advance()
            callee = self._parse_expression(Precedence.UNARY)
            if isinstance(callee, CallExpression):
                return NewExpression(callee.callee, callee.arguments, start=token.start, end=callee.end)
            return NewExpression(callee, (), start=token.start, end=callee.end)

        raise self._error("Expected expression")

    def _parse_infix(self, left: Expression, precedence: int) -> Expression:
        """Parse a binary, ternary or postfix continuation of ``left``."""
        token = self._advance()

        if token.type == TokenType.LPAREN:
            arguments = self._parse_expression_list(TokenType.RPAREN)
            close = self._expect(TokenType.RPAREN, "Expected ')' after arguments")
            return CallExpression(left, tuple(arguments), start=left.start, end=close.end)

        if token.type == TokenType.LBRACKET:
            indices = self._parse_expression_list(TokenType.RBRACKET)
            if not indices:
                raise self._error("Expected index expression")
            close = self._expect(TokenType.RBRACKET, "Expected ']' after index")
            return MemberIndexExpression(
                left, tuple(indices), accessor=token.value, start=left.start, end=close.end
            )

        if token.type == TokenType.DOT:
            name_token = self._current
            if name_token.type != TokenType.IDENTIFIER and name_token.type not in MEMBER_NAME_KEYWORDS:
                raise self._error("Expected member name after '.'")
            self._advance()
            member = Identifier(self._token_text(name_token), start=name_token.start, end=name_token.end)
            return MemberDotExpression(left, member, start=left.start, end=member.end)

        if token.type in (TokenType.INCREMENT, TokenType.DECREMENT):
            return UpdateExpression(token.value, left, False, start=left.start, end=token.end)

        if token.type == TokenType.QUESTION:
            consequent = self._parse_expression()
            self._expect(TokenType.COLON, "Expected ':' in conditional expression")
            alternate = self._parse_expression(Precedence.CONDITIONAL - 1)
            return ConditionalExpression(left, consequent, alternate, start=left.start, end=alternate.end)

        right = self._parse_expression(precedence)
        if token.type in LOGICAL_OPERATORS:
            return LogicalExpression(token.value, left, right, start=left.start, end=right.end)
        return BinaryExpression(token.value, left, right, start=left.start, end=right.end)

    def _parse_struct(self) -> StructExpression:
        """Parse a struct literal ``{ key: value, ... }``."""
        open_brace = self._advance()
        properties: list[Property] = []
        while not self._check(TokenType.RBRACE):
            key_token = self._current
            if key_token.type == TokenType.STRING:
                key: Expression = Literal(
                    key_token.value, self._token_text(key_token),
                    start=key_token.start, end=key_token.end,
                )
            elif key_token.type == TokenType.IDENTIFIER or key_token.type in MEMBER_NAME_KEYWORDS:
                key = Identifier(self._token_text(key_token), start=key_token.start, end=key_token.end)
            else:
                raise self._error("Expected struct key")
            self._advance()

            if self._match(TokenType.COLON):
                value = self._parse_expression()
            else:
                # Shorthand ``{ x }`` binds the variable of the same name
                value = key
            properties.append(Property(key, value, start=key.start, end=value.end))
            if not self._match(TokenType.COMMA):
                break

        close_brace = self._expect(TokenType.RBRACE, "Expected '}' after struct literal")
        return StructExpression(tuple(properties), start=open_brace.start, end=close_brace.end)

    def _parse_expression_list(self, end_token: TokenType) -> list[Expression]:
        """Parse a comma-separated list of expressions."""
        elements: list[Expression] = []

        if not self._check(end_token):
            while True:
                elements.append(self._parse_expression())
                if not self._match(TokenType.COMMA):
                    break
                if self._check(end_token):
                    break  # Trailing comma

        return elements


def parse_source(source: str, filename: Optional[str] = None) -> Program:
    """
    Tokenize and parse a complete GML source file.

    Args:
        source: GML source code
        filename: Optional filename for error reporting

    Returns:
        The root Program node

    Raises:
        LexerError: If the source cannot be tokenized
        ParserError: If the token stream is not valid GML
    """
    tokens = Lexer(source, filename).tokenize()
    return Parser(tokens, source, filename).parse()


def parse_expression(source: str) -> Expression:
    """
    Parse a single GML expression.

    Offsets of the returned nodes index into ``source``.

    Raises:
        ParserError: If ``source`` is not exactly one expression.
    """
    tokens = Lexer(source).tokenize()
    parser = Parser(tokens, source)
    expression = parser._parse_expression()
    if not parser._is_at_end():
        raise parser._error("Expected end of expression")
    return expression
