"""
SQL text processing.

Raw SQL passes through two rewrites before it reaches the driver:

    SQL -> Tokenize -> [ ] to " -> @N to ? -> driver
            (once)     (legacy)    (paramstyle)

String literals are tokenized separately so neither rewrite touches their
contents.

Main entry points:
- `normalize_quoted_identifiers()` - Rewrite `[name]` quoting to `"name"`
- `standardize_placeholders()` - Rewrite `@1, @2, ...` to qmark `?`
- `quote_identifier()` - Quote table/column names
- `quote_literal()` - Quote a string literal for catalog queries
"""
import re
from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Token types identified during SQL scanning."""
    SQL_TEXT = auto()
    STRING_LITERAL = auto()
    QUOTED_IDENTIFIER = auto()
    POSITIONAL_PH = auto()      # @1, @2, ...


@dataclass(slots=True)
class Token:
    """Token from SQL scanning."""
    type: TokenType
    text: str


_TOKENIZE = re.compile(r"""
    (?P<string>'(?:[^']|'')*'?)
  | (?P<ident>"(?:[^"]|"")*"?)
  | (?P<placeholder>@\d+)
  | (?P<text>[^'"@]+|@)
""", re.VERBOSE)

_PLACEHOLDER_INDEX = re.compile(r'@(\d+)')


def tokenize_sql(sql: str) -> list[Token]:
    """Split SQL into literal, identifier, placeholder and plain text tokens.

    An unterminated literal runs to the end of the string.
    """
    tokens = []
    for match in _TOKENIZE.finditer(sql):
        kind = match.lastgroup
        if kind == 'string':
            tokens.append(Token(TokenType.STRING_LITERAL, match.group()))
        elif kind == 'ident':
            tokens.append(Token(TokenType.QUOTED_IDENTIFIER, match.group()))
        elif kind == 'placeholder':
            tokens.append(Token(TokenType.POSITIONAL_PH, match.group()))
        else:
            tokens.append(Token(TokenType.SQL_TEXT, match.group()))
    return tokens


def normalize_quoted_identifiers(sql: str) -> str:
    """Change `[` and `]` left over from other SQL dialects into `"`.

    Parameters
        sql: Source SQL

    Returns
        SQL quoted with the engine's native identifier quote
    """
    if not sql or ('[' not in sql and ']' not in sql):
        return sql
    result = []
    for token in tokenize_sql(sql):
        if token.type == TokenType.SQL_TEXT:
            result.append(token.text.replace('[', '"').replace(']', '"'))
        else:
            result.append(token.text)
    return ''.join(result)


def standardize_placeholders(sql: str, placeholder: str = '?') -> tuple[str, list[int]]:
    """Rewrite `@N` placeholders to the driver's positional marker.

    Parameters
        sql: SQL with `@1`, `@2`, ... placeholders
        placeholder: Driver marker that replaces each one

    Returns
        The rewritten SQL and the 1-based positions in order of appearance,
        so parameters can be passed to a positional driver in that order.
    """
    if '@' not in sql:
        return sql, []
    result = []
    order = []
    for token in tokenize_sql(sql):
        if token.type == TokenType.POSITIONAL_PH:
            order.append(int(_PLACEHOLDER_INDEX.fullmatch(token.text).group(1)))
            result.append(placeholder)
        else:
            result.append(token.text)
    return ''.join(result), order


def quote_identifier(identifier: str) -> str:
    """Double-quote an identifier verbatim.

    Embedded quotes are not escaped; callers must supply safe identifiers.
    """
    return f'"{identifier}"'


def quote_literal(value: str) -> str:
    """Single-quote a string literal, doubling embedded quotes."""
    return "'" + value.replace("'", "''") + "'"
