"""Tests for type annotation parsing."""

import pytest

from swift_mock_generator.errors import ParseError
from swift_mock_generator.models import OptionalityKind
from swift_mock_generator.parser.lexer import TokenStream, tokenize
from swift_mock_generator.parser.type_parser import join_tokens, parse_type


def parse(text):
    stream = TokenStream(tokenize(text))
    type_ref = parse_type(stream)
    return type_ref, stream


class TestParseType:
    """Tests for parse_type function."""

    @pytest.mark.parametrize(
        "text,base,optionality",
        [
            ("Int", "Int", OptionalityKind.REQUIRED),
            ("Double?", "Double", OptionalityKind.OPTIONAL),
            ("UInt!", "UInt", OptionalityKind.IMPLICITLY_UNWRAPPED),
            ("[String]?", "[String]", OptionalityKind.OPTIONAL),
            ("[String: Int]", "[String: Int]", OptionalityKind.REQUIRED),
            ("Result<Data, Error>!", "Result<Data, Error>", OptionalityKind.IMPLICITLY_UNWRAPPED),
            ("Int??", "Int?", OptionalityKind.OPTIONAL),
            ("[Int?]", "[Int?]", OptionalityKind.REQUIRED),
        ],
    )
    def test_outermost_optionality(self, text, base, optionality):
        type_ref, _ = parse(text)

        assert type_ref.base == base
        assert type_ref.optionality is optionality

    def test_closure_with_attribute(self):
        type_ref, _ = parse("@escaping (Record?) -> Void")

        assert type_ref.attributes == ("@escaping",)
        assert type_ref.base == "(Record?) -> Void"
        assert type_ref.needs_parens
        assert type_ref.declared == "@escaping (Record?) -> Void"

    def test_optional_closure(self):
        type_ref, _ = parse("((Int) -> Void)?")

        assert type_ref.base == "((Int) -> Void)"
        assert type_ref.optionality is OptionalityKind.OPTIONAL
        assert type_ref.text == "((Int) -> Void)?"

    def test_throwing_async_closure(self):
        type_ref, _ = parse("(String) async throws -> [Int]")

        assert type_ref.base == "(String) async throws -> [Int]"

    def test_convention_attribute_keeps_arguments(self):
        type_ref, _ = parse("@convention(c) (Int) -> Int")

        assert type_ref.attributes == ("@convention(c)",)
        assert type_ref.base == "(Int) -> Int"

    def test_closure_signature_arguments(self):
        type_ref, _ = parse("@escaping (Record?, _ index: Int) -> Void")

        assert type_ref.is_closure
        assert [argument.text for argument in type_ref.closure.arguments] == ["Record?", "Int"]
        assert type_ref.is_escaping

    def test_void_argument_closure_takes_no_arguments(self):
        type_ref, _ = parse("(Void) -> Int")

        assert type_ref.closure.arguments == ()
        assert not type_ref.is_escaping

    def test_closure_effects(self):
        type_ref, _ = parse("(String) async throws -> [Int]")

        assert type_ref.closure.is_async
        assert type_ref.closure.throws

    def test_autoclosure(self):
        type_ref, _ = parse("@autoclosure () -> Bool")

        assert type_ref.closure.arguments == ()
        assert type_ref.attributes == ("@autoclosure",)
        assert not type_ref.is_escaping

    def test_parenthesized_optional_closure_keeps_signature(self):
        type_ref, _ = parse("((Int) -> Void)?")

        assert [argument.text for argument in type_ref.closure.arguments] == ["Int"]
        assert type_ref.is_escaping

    @pytest.mark.parametrize("text", ["Int", "(Int, String)", "[(Int) -> Void]", "((Int) -> Void)??"])
    def test_non_function_types_have_no_closure(self, text):
        type_ref, _ = parse(text)

        assert not type_ref.is_closure

    def test_inout(self):
        type_ref, _ = parse("inout [Int]")

        assert type_ref.is_inout
        assert type_ref.declared == "inout [Int]"

    def test_composition(self):
        type_ref, _ = parse("Codable & Hashable")

        assert type_ref.base == "Codable & Hashable"
        assert type_ref.needs_parens

    def test_opaque_prefix(self):
        type_ref, _ = parse("any Sequence<Int>")

        assert type_ref.base == "any Sequence<Int>"

    def test_member_types(self):
        type_ref, _ = parse("T.Type")

        assert type_ref.base == "T.Type"

    def test_labeled_tuple(self):
        type_ref, _ = parse("(name: String, age: Int)?")

        assert type_ref.base == "(name: String, age: Int)"
        assert type_ref.is_optional

    def test_stops_before_variadic_marker(self):
        type_ref, stream = parse("Int...")

        assert type_ref.base == "Int"
        assert stream.peek().value == "..."

    def test_marker_on_next_line_is_not_consumed(self):
        type_ref, stream = parse("Int\n!flag")

        assert type_ref.optionality is OptionalityKind.REQUIRED
        assert stream.peek().value == "!"

    def test_missing_type_raises(self):
        with pytest.raises(ParseError, match="Expected a type"):
            parse(")")

    def test_unclosed_generic_raises(self):
        with pytest.raises(ParseError):
            parse("Array<Int")


class TestJoinTokens:
    def test_joins_generic_clause(self):
        assert join_tokens(tokenize("T : Sequence < Int > , U")[:-1]) == "T: Sequence<Int>, U"

    def test_joins_where_clause(self):
        assert join_tokens(tokenize("T.Element == Int")[:-1]) == "T.Element == Int"
