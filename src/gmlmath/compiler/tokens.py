"""
Token definitions for the GML lexer.

This module defines all token types recognized by the GML subset that the
math optimizer understands, including keywords, operators and literals.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from gmlmath.utils.errors import SourceLocation


class TokenType(Enum):
    """Enumeration of all token types in GML."""

    # End of file
    EOF = auto()

    # Literals
    NUMBER = auto()
    STRING = auto()

    # Identifiers
    IDENTIFIER = auto()

    # Keywords
    VAR = auto()
    GLOBALVAR = auto()
    STATIC = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    DO = auto()
    UNTIL = auto()
    FOR = auto()
    REPEAT = auto()
    SWITCH = auto()
    CASE = auto()
    DEFAULT = auto()
    BREAK = auto()
    CONTINUE = auto()
    EXIT = auto()
    RETURN = auto()
    FUNCTION = auto()
    WITH = auto()
    NEW = auto()
    TRUE = auto()
    FALSE = auto()
    UNDEFINED = auto()

    # Word operators share token types with their symbolic spelling
    AND = auto()           # && and
    OR = auto()            # || or
    XOR = auto()           # ^^ xor
    NOT = auto()           # ! not
    DIV = auto()           # div
    MOD = auto()           # % mod

    # Arithmetic operators
    PLUS = auto()          # +
    MINUS = auto()         # -
    STAR = auto()          # *
    SLASH = auto()         # /
    INCREMENT = auto()     # ++
    DECREMENT = auto()     # --

    # Bitwise operators
    AMPERSAND = auto()     # &
    PIPE = auto()          # |
    CARET = auto()         # ^
    TILDE = auto()         # ~
    SHIFT_LEFT = auto()    # <<
    SHIFT_RIGHT = auto()   # >>

    # Comparison operators
    EQ = auto()            # ==
    NE = auto()            # != <>
    LT = auto()            # <
    GT = auto()            # >
    LE = auto()            # <=
    GE = auto()            # >=

    # Nullish
    NULLISH = auto()       # ??

    # Assignment
    ASSIGN = auto()           # =
    PLUS_ASSIGN = auto()      # +=
    MINUS_ASSIGN = auto()     # -=
    STAR_ASSIGN = auto()      # *=
    SLASH_ASSIGN = auto()     # /=
    PERCENT_ASSIGN = auto()   # %=
    AND_ASSIGN = auto()       # &=
    OR_ASSIGN = auto()        # |=
    XOR_ASSIGN = auto()       # ^=
    SHL_ASSIGN = auto()       # <<=
    SHR_ASSIGN = auto()       # >>=
    NULLISH_ASSIGN = auto()   # ??=

    # Delimiters
    LPAREN = auto()        # (
    RPAREN = auto()        # )
    LBRACE = auto()        # {
    RBRACE = auto()        # }
    LBRACKET = auto()      # [ and accessors [@ [? [| [# [$
    RBRACKET = auto()      # ]

    # Punctuation
    COMMA = auto()         # ,
    DOT = auto()           # .
    COLON = auto()         # :
    SEMICOLON = auto()     # ;
    QUESTION = auto()      # ?


# Mapping of keywords to token types
KEYWORDS: dict[str, TokenType] = {
    "var": TokenType.VAR,
    "globalvar": TokenType.GLOBALVAR,
    "static": TokenType.STATIC,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "do": TokenType.DO,
    "until": TokenType.UNTIL,
    "for": TokenType.FOR,
    "repeat": TokenType.REPEAT,
    "switch": TokenType.SWITCH,
    "case": TokenType.CASE,
    "default": TokenType.DEFAULT,
    "break": TokenType.BREAK,
    "continue": TokenType.CONTINUE,
    "exit": TokenType.EXIT,
    "return": TokenType.RETURN,
    "function": TokenType.FUNCTION,
    "with": TokenType.WITH,
    "new": TokenType.NEW,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "undefined": TokenType.UNDEFINED,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "xor": TokenType.XOR,
    "not": TokenType.NOT,
    "div": TokenType.DIV,
    "mod": TokenType.MOD,
}

# Single character operators
SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.MOD,
    "&": TokenType.AMPERSAND,
    "|": TokenType.PIPE,
    "^": TokenType.CARET,
    "~": TokenType.TILDE,
    "!": TokenType.NOT,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "=": TokenType.ASSIGN,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    ":": TokenType.COLON,
    ";": TokenType.SEMICOLON,
    "?": TokenType.QUESTION,
}

# Two character operators (checked before single char)
DOUBLE_CHAR_TOKENS: dict[str, TokenType] = {
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<>": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "&&": TokenType.AND,
    "||": TokenType.OR,
    "^^": TokenType.XOR,
    "<<": TokenType.SHIFT_LEFT,
    ">>": TokenType.SHIFT_RIGHT,
    "++": TokenType.INCREMENT,
    "--": TokenType.DECREMENT,
    "+=": TokenType.PLUS_ASSIGN,
    "-=": TokenType.MINUS_ASSIGN,
    "*=": TokenType.STAR_ASSIGN,
    "/=": TokenType.SLASH_ASSIGN,
    "%=": TokenType.PERCENT_ASSIGN,
    "&=": TokenType.AND_ASSIGN,
    "|=": TokenType.OR_ASSIGN,
    "^=": TokenType.XOR_ASSIGN,
    "??": TokenType.NULLISH,
    # Accessor brackets: ds_map, ds_list, ds_grid, struct and array accessors
    "[@": TokenType.LBRACKET,
    "[?": TokenType.LBRACKET,
    "[|": TokenType.LBRACKET,
    "[#": TokenType.LBRACKET,
    "[$": TokenType.LBRACKET,
}

# Three character operators (checked first)
TRIPLE_CHAR_TOKENS: dict[str, TokenType] = {
    "<<=": TokenType.SHL_ASSIGN,
    ">>=": TokenType.SHR_ASSIGN,
    "??=": TokenType.NULLISH_ASSIGN,
}

ASSIGNMENT_TOKENS: frozenset[TokenType] = frozenset({
    TokenType.ASSIGN,
    TokenType.PLUS_ASSIGN,
    TokenType.MINUS_ASSIGN,
    TokenType.STAR_ASSIGN,
    TokenType.SLASH_ASSIGN,
    TokenType.PERCENT_ASSIGN,
    TokenType.AND_ASSIGN,
    TokenType.OR_ASSIGN,
    TokenType.XOR_ASSIGN,
    TokenType.SHL_ASSIGN,
    TokenType.SHR_ASSIGN,
    TokenType.NULLISH_ASSIGN,
})


@dataclass(slots=True)
class Token:
    """
    Represents a single token from the source code.

    Attributes:
        type: The type of this token
        value: The literal value (for literals) or lexeme text
        location: Source location of the first character of this token
        end: Offset one past the last character of this token
    """

    type: TokenType
    value: Any
    location: SourceLocation
    end: int = 0

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.location})"
        return f"Token({self.type.name}, {self.location})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Token):
            return self.type == other.type and self.value == other.value
        if isinstance(other, TokenType):
            return self.type == other
        return NotImplemented

    @property
    def start(self) -> int:
        """Offset of the first character of this token."""
        return self.location.offset

    @property
    def is_literal(self) -> bool:
        """Check if this token represents a literal value."""
        return self.type in {
            TokenType.NUMBER,
            TokenType.STRING,
            TokenType.TRUE,
            TokenType.FALSE,
            TokenType.UNDEFINED,
        }

    @property
    def is_assignment(self) -> bool:
        """Check if this token is an assignment operator."""
        return self.type in ASSIGNMENT_TOKENS
