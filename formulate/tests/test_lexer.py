"""Tests for the tokenizer."""

import pytest

from formulate import LexError, NumberOutOfRange, Token, TokenKind, tokenize


def kinds(source):
    return [tok.kind for tok in tokenize(source)]


class TestTokenize:
    """Tests for tokenize()."""

    def test_simple_sum(self):
        """Numbers, identifiers and operators come out in order."""
        tokens = tokenize("3 + x")
        assert [t.kind for t in tokens] == [
            TokenKind.NUMBER, TokenKind.PLUS, TokenKind.IDENTIFIER, TokenKind.EOF,
        ]
        assert [t.position for t in tokens] == [0, 2, 4, 5]

    def test_all_single_char_tokens(self):
        """Every punctuation token is recognized."""
        assert kinds("(a)*b-c+d") == [
            TokenKind.LPAREN, TokenKind.IDENTIFIER, TokenKind.RPAREN,
            TokenKind.STAR, TokenKind.IDENTIFIER, TokenKind.MINUS,
            TokenKind.IDENTIFIER, TokenKind.PLUS, TokenKind.IDENTIFIER,
            TokenKind.EOF,
        ]

    def test_empty_input(self):
        """Empty input is just EOF at position 0."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].kind is TokenKind.EOF
        assert tokens[0].position == 0

    def test_eof_position_is_input_length(self):
        """EOF sits just past the last character, trailing whitespace included."""
        assert tokenize("x  ")[-1].position == 3

    def test_whitespace_skipped(self):
        """Spaces, tabs and newlines separate tokens."""
        assert kinds(" 1\t+\n2 ") == [
            TokenKind.NUMBER, TokenKind.PLUS, TokenKind.NUMBER, TokenKind.EOF,
        ]


class TestNumbers:
    """Tests for numeric literals."""

    def test_integer(self):
        """A digit run is an int."""
        tok = tokenize("42")[0]
        assert tok.text == "42"
        assert tok.value == 42
        assert isinstance(tok.value, int)

    def test_decimal(self):
        """A fractional part makes a float."""
        tok = tokenize("12.5")[0]
        assert tok.text == "12.5"
        assert tok.value == 12.5
        assert isinstance(tok.value, float)

    def test_number_then_identifier(self):
        """No implicit multiplication: 2x is two tokens."""
        assert kinds("2x") == [TokenKind.NUMBER, TokenKind.IDENTIFIER, TokenKind.EOF]

    def test_long_integer_exact(self):
        """Digit runs of any length convert exactly."""
        tok = tokenize("1" * 5000)[0]
        assert tok.value == (10 ** 5000 - 1) // 9

    def test_decimal_beyond_float_range(self):
        """A decimal literal that would be inf is rejected where it starts."""
        with pytest.raises(NumberOutOfRange) as exc:
            tokenize("x + " + "1" * 400 + ".5")
        assert exc.value.position == 4
        assert isinstance(exc.value, LexError)
        assert "out of range" in str(exc.value)

    def test_large_finite_decimal(self):
        """Large decimals inside the float range are accepted."""
        assert tokenize("1" + "0" * 300 + ".0")[0].value == 1e300

    def test_trailing_dot_rejected(self):
        """A dot with no digits after it is not part of a number."""
        with pytest.raises(LexError) as exc:
            tokenize("1.")
        assert exc.value.position == 1
        assert exc.value.char == "."


class TestIdentifiers:
    """Tests for identifiers."""

    def test_multi_character(self):
        """An alphabetic run is one identifier."""
        tokens = tokenize("rate*time")
        assert tokens[0].text == "rate"
        assert tokens[2].text == "time"
        assert tokens[2].position == 5

    def test_identifier_value_is_text(self):
        """Identifier value is its name."""
        assert tokenize("xy")[0].value == "xy"

    def test_digits_end_identifier(self):
        """Digits are not part of identifiers."""
        assert kinds("x2") == [TokenKind.IDENTIFIER, TokenKind.NUMBER, TokenKind.EOF]


class TestLexErrors:
    """Tests for rejected characters."""

    def test_unknown_operator(self):
        """An unsupported operator raises LexError with its position."""
        with pytest.raises(LexError) as exc:
            tokenize("3 % 4")
        assert exc.value.position == 2
        assert exc.value.char == "%"

    def test_caret(self):
        """Exponents are not part of the language."""
        with pytest.raises(LexError) as exc:
            tokenize("x^2")
        assert exc.value.position == 1

    def test_superscript_digit(self):
        """Superscript digits are rejected rather than read as numbers."""
        with pytest.raises(LexError) as exc:
            tokenize("x²")
        assert exc.value.position == 1

    def test_message_mentions_character(self):
        """The error message names the offending character."""
        with pytest.raises(LexError) as exc:
            tokenize("a / b")
        assert "'/'" in str(exc.value)
        assert "position 2" in str(exc.value)


class TestToken:
    """Tests for the Token type."""

    def test_immutable(self):
        """Tokens cannot be modified."""
        tok = tokenize("x")[0]
        with pytest.raises(AttributeError):
            tok.text = "y"

    def test_describe(self):
        """describe() gives readable names for error messages."""
        assert Token(TokenKind.NUMBER, "7", 0).describe() == "number 7"
        assert Token(TokenKind.IDENTIFIER, "x", 0).describe() == "identifier 'x'"
        assert Token(TokenKind.STAR, "*", 0).describe() == "'*'"
        assert Token(TokenKind.EOF, "", 0).describe() == "end of input"
