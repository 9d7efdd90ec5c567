"""
Unit tests for the GML parser.

Tests cover:
- Operator precedence and associativity
- Statements and optional semicolons
- Source offsets of nodes
- Traversal helpers
- Error reporting
"""

import pytest

from gmlmath.compiler.ast_nodes import (
    AssignmentExpression,
    BinaryExpression,
    BlockStatement,
    CallExpression,
    ConditionalExpression,
    EmptyStatement,
    ExpressionStatement,
    ForStatement,
    FunctionDeclaration,
    Identifier,
    IfStatement,
    Literal,
    LogicalExpression,
    MemberDotExpression,
    MemberIndexExpression,
    ParenthesizedExpression,
    RepeatStatement,
    ReturnStatement,
    StructExpression,
    SwitchStatement,
    UnaryExpression,
    UpdateExpression,
    VariableDeclaration,
    statement_lists,
    unwrap_parens,
    walk,
)
from gmlmath.utils.errors import ParserError


class TestExpressionParsing:
    """Tests for expression parsing."""

    def test_multiplication_binds_tighter_than_addition(self, parse_expr):
        """Test that a + b * c groups as a + (b * c)."""
        expr = parse_expr("a + b * c")
        assert isinstance(expr, BinaryExpression)
        assert expr.operator == "+"
        assert isinstance(expr.right, BinaryExpression)
        assert expr.right.operator == "*"

    def test_left_associative_division(self, parse_expr):
        """Test that a / b / c groups as (a / b) / c."""
        expr = parse_expr("a / b / c")
        assert expr.operator == "/"
        assert isinstance(expr.left, BinaryExpression)
        assert isinstance(expr.right, Identifier)

    def test_unary_minus_binds_tighter_than_multiplication(self, parse_expr):
        """Test that -a * 2 groups as (-a) * 2."""
        expr = parse_expr("-a * 2")
        assert isinstance(expr, BinaryExpression)
        assert isinstance(expr.left, UnaryExpression)

    def test_parentheses_are_kept(self, parse_expr):
        """Test that parentheses become ParenthesizedExpression nodes."""
        expr = parse_expr("(a + b) * 2")
        assert isinstance(expr.left, ParenthesizedExpression)
        assert isinstance(unwrap_parens(expr.left), BinaryExpression)

    def test_logical_operators(self, parse_expr):
        """Test that && and 'and' produce LogicalExpression."""
        expr = parse_expr("a && b or c")
        assert isinstance(expr, LogicalExpression)
        assert expr.operator == "or"
        assert isinstance(expr.left, LogicalExpression)
        assert expr.left.operator == "&&"

    def test_comparison_below_arithmetic(self, parse_expr):
        """Test that x * 2 > y groups the product first."""
        expr = parse_expr("x * 2 > y")
        assert expr.operator == ">"
        assert expr.left.operator == "*"

    def test_ternary_is_right_associative(self, parse_expr):
        """Test nested ternaries."""
        expr = parse_expr("a ? b : c ? d : e")
        assert isinstance(expr, ConditionalExpression)
        assert isinstance(expr.alternate, ConditionalExpression)

    def test_nullish(self, parse_expr):
        """Test that ?? parses as a binary expression."""
        expr = parse_expr("a ?? 1")
        assert isinstance(expr, BinaryExpression)
        assert expr.operator == "??"

    def test_call_member_and_index(self, parse_expr):
        """Test postfix chains."""
        expr = parse_expr("self.items[i].scale(2)")
        assert isinstance(expr, CallExpression)
        assert isinstance(expr.callee, MemberDotExpression)
        assert isinstance(expr.callee.object, MemberIndexExpression)
        assert len(expr.arguments) == 1

    def test_accessor_kept(self, parse_expr):
        """Test that the accessor bracket is recorded."""
        expr = parse_expr("grid[# 1, 2]")
        assert isinstance(expr, MemberIndexExpression)
        assert expr.accessor == "[#"
        assert len(expr.property) == 2

    def test_literal_raw_text(self, parse_expr):
        """Test that literals keep their exact source text."""
        expr = parse_expr("$FF")
        assert isinstance(expr, Literal)
        assert expr.value == 255
        assert expr.raw == "$FF"

    def test_struct_literal(self, parse_expr):
        """Test struct literals."""
        expr = parse_expr("{ x: 1, y: 2 }")
        assert isinstance(expr, StructExpression)
        assert len(expr.properties) == 2

    def test_trailing_tokens_rejected(self, parse_expr):
        """Test that parse_expression requires a single expression."""
        with pytest.raises(ParserError):
            parse_expr("a b")


class TestStatementParsing:
    """Tests for statement parsing."""

    def test_variable_declaration(self, parse):
        """Test var declarations with several declarators."""
        program = parse("var a = 1, b;")
        decl = program.body[0]
        assert isinstance(decl, VariableDeclaration)
        assert decl.kind == "var"
        assert [d.id.name for d in decl.declarations] == ["a", "b"]
        assert decl.declarations[1].init is None

    def test_assignment_statement(self, parse):
        """Test that assignments are wrapped in ExpressionStatement."""
        program = parse("x += 2;")
        stmt = program.body[0]
        assert isinstance(stmt, ExpressionStatement)
        assert isinstance(stmt.expression, AssignmentExpression)
        assert stmt.expression.operator == "+="

    @pytest.mark.parametrize("source,prefix", [("x++", False), ("++x", True), ("x--", False), ("--x", True)])
    def test_update_expressions(self, parse, source, prefix):
        """Test prefix and postfix increments and decrements."""
        stmt = parse(source).body[0]
        assert isinstance(stmt.expression, UpdateExpression)
        assert stmt.expression.prefix is prefix

    def test_optional_semicolons(self, parse):
        """Test that statements parse without semicolons."""
        program = parse("a = 1\nb = 2\n")
        assert len(program.body) == 2

    def test_empty_statement(self, parse):
        """Test that a lone semicolon is an EmptyStatement."""
        program = parse(";")
        assert isinstance(program.body[0], EmptyStatement)

    def test_if_else(self, parse):
        """Test if/else with blocks."""
        stmt = parse("if (a) { b = 1; } else { b = 2; }").body[0]
        assert isinstance(stmt, IfStatement)
        assert isinstance(stmt.consequent, BlockStatement)
        assert isinstance(stmt.alternate, BlockStatement)

    def test_for_loop(self, parse):
        """Test a for loop header."""
        stmt = parse("for (var i = 0; i < 10; i++) { total += i; }").body[0]
        assert isinstance(stmt, ForStatement)
        assert isinstance(stmt.init, VariableDeclaration)
        assert isinstance(stmt.update, ExpressionStatement)

    def test_repeat(self, parse):
        """Test repeat loops."""
        stmt = parse("repeat (3) { x++; }").body[0]
        assert isinstance(stmt, RepeatStatement)

    def test_switch(self, parse):
        """Test switch with case and default."""
        stmt = parse("switch (s) { case 1: a = 1; break; default: a = 0; }").body[0]
        assert isinstance(stmt, SwitchStatement)
        assert len(stmt.cases) == 2
        assert stmt.cases[1].test is None
        assert len(stmt.cases[0].consequent) == 2

    def test_function_declaration(self, parse):
        """Test named functions with default parameters."""
        stmt = parse("function lerp_to(a, b, t = 0.5) { return a + (b - a) * t; }").body[0]
        assert isinstance(stmt, FunctionDeclaration)
        assert stmt.id.name == "lerp_to"
        assert len(stmt.params) == 3
        assert isinstance(stmt.body.body[0], ReturnStatement)

    def test_unclosed_block(self, parse):
        """Test that an unclosed block is a ParserError."""
        with pytest.raises(ParserError):
            parse("if (a) { b = 1;")


class TestOffsets:
    """Tests for node source offsets."""

    def test_statement_end_excludes_semicolon(self, parse):
        """Test that statement ranges stop before the semicolon."""
        source = "x = a * 2;"
        stmt = parse(source).body[0]
        assert source[stmt.start:stmt.end] == "x = a * 2"

    def test_declarator_init_text(self, parse):
        """Test that initializer offsets slice the exact source text."""
        source = "var s7 = ((hp / max_hp) * 100) / 10;"
        init = parse(source).body[0].declarations[0].init
        assert init.text(source) == "((hp / max_hp) * 100) / 10"

    def test_program_spans_source(self, parse):
        """Test that the program covers the whole source."""
        source = "a = 1;\n\n"
        program = parse(source)
        assert (program.start, program.end) == (0, len(source))

    def test_node_type_tag(self, parse_expr):
        """Test that node.type is the class name."""
        assert parse_expr("a * b").type == "BinaryExpression"


class TestTraversal:
    """Tests for walk and statement_lists."""

    def test_walk_is_preorder(self, parse_expr):
        """Test that walk yields parents before children, left to right."""
        names = [n.name for n in walk(parse_expr("a * b + c")) if isinstance(n, Identifier)]
        assert names == ["a", "b", "c"]

    def test_statement_lists(self, parse):
        """Test that nested bodies and switch cases are found."""
        program = parse("a = 1; if (a) { b = 2; } switch (a) { case 1: c = 3; }")
        lists = list(statement_lists(program))
        assert len(lists) == 3
        assert len(lists[0]) == 3
