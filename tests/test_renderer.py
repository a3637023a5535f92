"""Tests for Swift rendering."""

from swift_mock_generator.config import GeneratorOptions
from swift_mock_generator.parser import parse_protocol
from swift_mock_generator.renderer import render_mock, render_signature
from swift_mock_generator.synthesizer import synthesize


def render(content, options=GeneratorOptions()):
    return render_mock(synthesize(parse_protocol(content), options), options)


class TestRenderMock:
    """Tests for render_mock function."""

    def test_zero_parameter_method(self):
        output = render("protocol Cache { func clear() }")

        assert output == (
            "class MockCache: Cache {\n"
            "\n"
            "    var invokedClear = false\n"
            "    var invokedClearParameters: ()?\n"
            "    func clear() {\n"
            "        invokedClear = true\n"
            "        invokedClearParameters = ()\n"
            "    }\n"
            "}\n"
        )

    def test_settable_property(self):
        output = render("protocol P { var name: String? { get set } }")

        assert output == (
            "class MockP: P {\n"
            "\n"
            "    var invokedName: String?\n"
            "    var stubbedName: String!\n"
            "    var name: String? {\n"
            "        set {\n"
            "            invokedName = newValue\n"
            "        }\n"
            "        get {\n"
            "            return stubbedName\n"
            "        }\n"
            "    }\n"
            "}\n"
        )

    def test_read_only_property(self):
        output = render("protocol P { var id: Int { get } }")

        assert "    var stubbedId: Int!\n    var id: Int {\n        return stubbedId\n    }\n" in output
        assert "invokedId" not in output

    def test_closure_parameter_keeps_attribute_in_signature_only(self):
        output = render("protocol P { func fetch(completion: @escaping (Int) -> Void) }")

        assert "    var invokedFetchParameters: (completion: (Int) -> Void, Void)?\n" in output
        assert "    func fetch(completion: @escaping (Int) -> Void) {\n" in output

    def test_optional_closure_result_stub(self):
        output = render("protocol P { func handler() -> ((Int) -> Void)? }")

        assert "    var stubbedHandlerResult: ((Int) -> Void)!\n" in output

    def test_non_escaping_closure_is_called_not_stored(self):
        output = render("protocol P {\n func run(completion: () -> Void)\n}\n")

        assert output == (
            "class MockP: P {\n"
            "\n"
            "    var invokedRun = false\n"
            "    var invokedRunParameters: (completion: Void, Void)?\n"
            "    func run(completion: () -> Void) {\n"
            "        invokedRun = true\n"
            "        invokedRunParameters = ((), ())\n"
            "        completion()\n"
            "    }\n"
            "}\n"
        )

    def test_escaping_closure_is_called_with_stubbed_arguments(self):
        output = render(
            "protocol P {\nfunc fetch(handler: @escaping (Data, Error?) throws -> Void) -> Int\n}"
        )

        assert output == (
            "class MockP: P {\n"
            "\n"
            "    var invokedFetch = false\n"
            "    var invokedFetchParameters: (handler: (Data, Error?) throws -> Void, Void)?\n"
            "    var stubbedFetchHandlerResult: (Data, Error?)?\n"
            "    var stubbedFetchResult: Int!\n"
            "    func fetch(handler: @escaping (Data, Error?) throws -> Void) -> Int {\n"
            "        invokedFetch = true\n"
            "        invokedFetchParameters = (handler, ())\n"
            "        if let result = stubbedFetchHandlerResult {\n"
            "            try? handler(result.0, result.1)\n"
            "        }\n"
            "        return stubbedFetchResult\n"
            "    }\n"
            "}\n"
        )

    def test_optional_closure_is_called_through_optional_chaining(self):
        output = render("protocol P { func run(done: ((Int) -> Void)?) }")

        assert "    var stubbedRunDoneResult: Int?\n" in output
        assert "        if let result = stubbedRunDoneResult {\n            done?(result)\n        }\n" in output

    def test_async_closure_is_awaited(self):
        output = render("protocol P { func run(work: () async throws -> Void) async }")

        assert "        try? await work()\n" in output

    def test_custom_indent(self):
        output = render("protocol P { func ping() }", GeneratorOptions(indent=2))

        assert "\n  var invokedPing = false\n" in output
        assert "\n    invokedPing = true\n" in output

    def test_public_generic_header(self):
        output = render("public protocol Store: NSObjectProtocol {\nassociatedtype Item\nfunc add(_ item: Item)\n}")

        assert output.startswith("public class MockStore<Item>: NSObject, Store {\n\n")
        assert "    public func add(_ item: Item) {\n" in output
        assert "        invokedAddParameters = (item, ())\n" in output

    def test_ends_with_single_newline(self):
        output = render("protocol P { func ping() }")

        assert output.endswith("    }\n}\n")


class TestRenderSignature:
    def test_effects_and_where_clause(self):
        interface = parse_protocol(
            "protocol P {\nfunc run<T>(_ job: T) async throws -> T where T: Sendable\n}"
        )
        method = synthesize(interface).methods[0]

        assert render_signature(method) == (
            "func run<T>(_ job: T) async throws -> T where T: Sendable"
        )
