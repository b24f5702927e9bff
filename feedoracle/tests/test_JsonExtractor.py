"""Unit tests for JsonExtractor."""

import pytest

from feedoracle.src.DecimalConverter import DecimalLiteral
from feedoracle.src.JsonExtractor import extract, extract_value, parse_document, parse_number
from feedoracle.src.OracleValue import FixedU128, NumericKind, OracleValue


class TestParseNumber:
    """Test splitting JSON number tokens."""

    def test_integer(self) -> None:
        """Plain integers have no fraction or exponent."""
        assert parse_number("42") == DecimalLiteral(integer=42)

    def test_fraction_and_exponent(self) -> None:
        """Fraction digits and exponent are kept separately."""
        assert parse_number("1.035E+3") == DecimalLiteral(
            integer=1, fraction=35, fraction_digits=3, exponent=3
        )

    def test_negative(self) -> None:
        """Negative numbers carry the sign on the integer part and flag."""
        assert parse_number("-12.5e-1") == DecimalLiteral(
            integer=-12, fraction=5, fraction_digits=1, exponent=-1, negative=True
        )

    def test_negative_zero_keeps_sign(self) -> None:
        """-0.5 is flagged negative although its integer part is zero."""
        literal = parse_number("-0.5")
        assert literal.integer == 0
        assert literal.is_negative

    def test_invalid(self) -> None:
        """Anything that is not a JSON number is rejected."""
        with pytest.raises(ValueError, match="Invalid JSON number"):
            parse_number("1.2.3")


class TestParseDocument:
    """Test parsing response bodies."""

    def test_numbers_stay_exact(self) -> None:
        """Floats never appear in the parsed document."""
        doc = parse_document('{"a": 0.1, "b": [1, 2.5]}')
        assert doc["a"] == DecimalLiteral(integer=0, fraction=1, fraction_digits=1)
        assert all(isinstance(n, DecimalLiteral) for n in doc["b"])

    def test_malformed(self) -> None:
        """Malformed text yields None."""
        assert parse_document('{"price": ') is None
        assert parse_document("") is None

    def test_non_finite_rejected(self) -> None:
        """NaN and Infinity are not accepted."""
        assert parse_document('{"price": NaN}') is None
        assert parse_document('{"price": Infinity}') is None

    def test_bytes_input(self) -> None:
        """Raw UTF-8 bytes are accepted."""
        assert parse_document(b'{"price": 1}') == {"price": DecimalLiteral(integer=1)}

    def test_duplicate_members_first_wins(self) -> None:
        """The first occurrence of a member name is kept."""
        doc = parse_document('{"price": 1, "price": 2}')
        assert doc["price"] == DecimalLiteral(integer=1)


class TestExtract:
    """Test locating a member in the top-level object."""

    def test_top_level_member(self) -> None:
        """A number member is returned."""
        doc = parse_document('{"symbol": "BTC", "price": 67000.25}')
        assert extract(doc, "price") == DecimalLiteral(
            integer=67000, fraction=25, fraction_digits=2
        )

    def test_member_after_other_members(self) -> None:
        """Members are found regardless of their position."""
        doc = parse_document('{"volume": 5, "bid": 1, "usd": 3}')
        assert extract(doc, "usd") == DecimalLiteral(integer=3)

    def test_prefix_is_not_a_match(self) -> None:
        """A member whose name is a prefix of the path does not match."""
        doc = parse_document('{"pri": 1}')
        assert extract(doc, "price") is None

    def test_missing_member(self) -> None:
        """An absent member yields None."""
        assert extract(parse_document('{"a": 1}'), "b") is None

    def test_non_number_member(self) -> None:
        """Strings, objects, booleans and nulls are rejected."""
        doc = parse_document('{"s": "1", "o": {"x": 1}, "b": true, "n": null}')
        for path in ("s", "o", "b", "n"):
            assert extract(doc, path) is None

    def test_root_not_object(self) -> None:
        """Arrays and scalars at the root yield None."""
        assert extract(parse_document("[1, 2]"), "0") is None
        assert extract(parse_document("5"), "price") is None
        assert extract(None, "price") is None

    def test_no_nested_traversal(self) -> None:
        """Dotted paths are matched literally, not descended into."""
        doc = parse_document('{"data": {"price": 1}, "data.price": 2}')
        assert extract(doc, "data.price") == DecimalLiteral(integer=2)
        assert extract(parse_document('{"data": {"price": 1}}'), "data.price") is None


class TestExtractValue:
    """Test the parse, extract and convert pipeline."""

    def test_fixed(self) -> None:
        """A decimal member becomes an exact fixed-point value."""
        value = extract_value('{"USD": 0.0725}', "USD", NumericKind.FIXED)
        assert value == OracleValue.fixed(FixedU128.from_rational(725, 10_000))

    def test_integer(self) -> None:
        """Integer targets truncate."""
        value = extract_value('{"height": 1234.9}', "height", NumericKind.INTEGER)
        assert value == OracleValue.integer(1234)

    def test_negative_rejected(self) -> None:
        """Negative members never produce a value."""
        assert extract_value('{"v": -3}', "v", NumericKind.INTEGER) is None
        assert extract_value('{"v": -0.5}', "v", NumericKind.FIXED) is None

    def test_malformed(self) -> None:
        """Malformed bodies produce None."""
        assert extract_value("not json", "v", NumericKind.FIXED) is None
