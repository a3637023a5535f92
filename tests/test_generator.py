"""Tests for the generation pipeline."""

import json
from pathlib import Path

import pytest

from swift_mock_generator.config import GeneratorOptions
from swift_mock_generator.errors import InvalidSignature, ParseError
from swift_mock_generator.generator import (
    SourceUnit,
    generate_batch,
    generate_mock,
    generate_mocks,
)
from swift_mock_generator.parser import parse_protocol


@pytest.fixture
def fixtures_path():
    return Path(__file__).parent / "fixtures" / "protocols"


class TestGenerateMock:
    """Tests for generate_mock function."""

    def test_returns_rendered_mock(self):
        output = generate_mock("protocol P { func ping() }")

        assert output.startswith("class MockP: P {")

    def test_raises_parse_error(self):
        with pytest.raises(ParseError):
            generate_mock("protocol P { func ping( }")

    def test_raises_invalid_signature(self):
        with pytest.raises(InvalidSignature):
            generate_mock("protocol P { func move(to x: Int, to y: Int) }")


class TestGenerateMocks:
    """Tests for generate_mocks function."""

    def given_source(self, fixtures_path, name):
        self.source_name = name
        self.content = (fixtures_path / name).read_text()

    def when_mocks_are_generated(self, **kwargs):
        self.results = generate_mocks(self.content, source_name=self.source_name, **kwargs)

    def then_interfaces_are(self, expected):
        assert [r.interface for r in self.results] == expected

    def test_results_follow_declaration_order(self, fixtures_path):
        self.given_source(fixtures_path, "Services.swift")
        self.when_mocks_are_generated()
        self.then_interfaces_are(["UserStore", "Cache", "Formatter"])
        assert [r.output_filename for r in self.results] == [
            "UserStoreMock.swift",
            "CacheMock.swift",
            "FormatterMock.swift",
        ]

    def test_errors_carry_location(self, fixtures_path):
        self.given_source(fixtures_path, "Broken.swift")
        self.when_mocks_are_generated()

        error = self.results[1].error
        assert error.kind == "parse_error"
        assert error.interface == "MissingParen"
        assert error.method == "open"
        assert error.line == 6
        assert str(error).startswith("MissingParen.open: ")

    def test_failed_result_has_no_output(self, fixtures_path):
        self.given_source(fixtures_path, "Broken.swift")
        self.when_mocks_are_generated()

        failed = self.results[2]
        assert not failed.ok
        assert failed.output is None
        assert failed.mock_name == "MockDuplicateLabels"

    def test_result_json(self, fixtures_path):
        self.given_source(fixtures_path, "Broken.swift")
        self.when_mocks_are_generated()

        payload = json.loads(self.results[2].to_json())
        assert payload["interface"] == "DuplicateLabels"
        assert payload["error"]["kind"] == "invalid_signature"
        assert "output" not in payload
        assert "line" not in payload["error"]

    def test_untokenizable_source_yields_single_failure(self):
        results = generate_mocks("protocol P { func a() }\n/* open", source_name="bad.swift")

        assert len(results) == 1
        assert results[0].interface is None
        assert results[0].error.kind == "parse_error"

    def test_unicode_protocol_beside_ascii_protocol(self):
        content = "protocol Café {\n    func café() -> Int\n}\n\nprotocol Plain {\n    func ping()\n}\n"

        results = generate_mocks(content, source_name="Mixed.swift")

        assert [r.interface for r in results] == ["Café", "Plain"]
        assert all(r.error is None for r in results)
        assert "    var stubbedCaféResult: Int!\n" in results[0].output
        assert results[1].output.startswith("class MockPlain: Plain {")

    def test_no_protocols_yields_no_results(self):
        assert generate_mocks("struct S {}") == []

    def test_known_protocols_from_other_sources(self):
        known = {"Base": parse_protocol("protocol Base { func base() }")}

        results = generate_mocks("protocol Child: Base { func child() }", known_protocols=known)

        assert "func base() {" in results[0].output

    def test_options_are_applied(self):
        options = GeneratorOptions(mock_prefix="Fake", file_suffix="Fake")

        result = generate_mocks("protocol P { func ping() }", options)[0]

        assert result.mock_name == "FakeP"
        assert result.output_filename == "PFake.swift"
        assert result.output.startswith("class FakeP: P {")


class TestGenerateBatch:
    """Tests for generate_batch function."""

    def given_units(self, fixtures_path):
        self.units = [
            SourceUnit(name=name, content=(fixtures_path / name).read_text())
            for name in ("OptionalProtocol.swift", "Broken.swift", "Services.swift")
        ]

    async def when_batch_is_generated(self, max_workers):
        self.results = await generate_batch(self.units, max_workers=max_workers)

    def then_results_keep_unit_order(self):
        assert [r.interface for r in self.results] == [
            "OptionalProtocol",
            "Valid",
            "MissingParen",
            "DuplicateLabels",
            "AlsoValid",
            "UserStore",
            "Cache",
            "Formatter",
        ]

    @pytest.mark.asyncio
    async def test_inline(self, fixtures_path):
        """A single worker processes units in the event loop thread."""
        self.given_units(fixtures_path)
        await self.when_batch_is_generated(max_workers=1)
        self.then_results_keep_unit_order()

    @pytest.mark.asyncio
    async def test_process_pool(self, fixtures_path):
        """Several workers produce the same results as inline processing."""
        self.given_units(fixtures_path)
        await self.when_batch_is_generated(max_workers=1)
        inline = [r.to_dict() for r in self.results]

        await self.when_batch_is_generated(max_workers=2)

        self.then_results_keep_unit_order()
        assert [r.to_dict() for r in self.results] == inline

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        assert await generate_batch([]) == []
