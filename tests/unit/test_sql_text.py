"""
Unit tests for SQL text rewriting.
"""
import pytest
from fbadapter.sql import TokenType, normalize_quoted_identifiers
from fbadapter.sql import quote_identifier, quote_literal, standardize_placeholders
from fbadapter.sql import tokenize_sql


@pytest.mark.parametrize(('sql', 'expected'), [
    ('select [a] from [T]', 'select "a" from "T"'),
    ("select '[x]' from [T]", "select '[x]' from \"T\""),
    ('select a from T', 'select a from T'),
    ("select 'it''s [here]' as [v]", "select 'it''s [here]' as \"v\""),
    ('', ''),
])
def test_normalize_quoted_identifiers(sql, expected):
    """Test brackets become double quotes outside string literals"""
    assert normalize_quoted_identifiers(sql) == expected


@pytest.mark.parametrize(('sql', 'expected_sql', 'expected_order'), [
    ('insert into T values (@1,@2)', 'insert into T values (?,?)', [1, 2]),
    ('select @2, @1', 'select ?, ?', [2, 1]),
    ("select '@1' from t where a = @1", "select '@1' from t where a = ?", [1]),
    ('select "@1" from t', 'select "@1" from t', []),
    ('select user@host from t', 'select user@host from t', []),
    ('select 1', 'select 1', []),
    ('values (@10, @2)', 'values (?, ?)', [10, 2]),
])
def test_standardize_placeholders(sql, expected_sql, expected_order):
    """Test @N placeholders are rewritten in order of appearance"""
    assert standardize_placeholders(sql) == (expected_sql, expected_order)


def test_standardize_placeholders_custom_marker():
    assert standardize_placeholders('a = @1', '%s') == ('a = %s', [1])


def test_tokenize_unterminated_literal():
    """Test an unterminated literal runs to the end of the statement"""
    tokens = tokenize_sql("select 'abc")
    assert [t.type for t in tokens] == [TokenType.SQL_TEXT, TokenType.STRING_LITERAL]
    assert tokens[1].text == "'abc"


def test_quote_identifier_is_verbatim():
    assert quote_identifier('Mixed Case') == '"Mixed Case"'


def test_quote_literal_doubles_quotes():
    assert quote_literal("O'Brien") == "'O''Brien'"
