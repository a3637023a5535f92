"""Tests for the mock recorder."""

import pytest

from swift_mock_generator.errors import StubNotSetError
from swift_mock_generator.parser import parse_protocol
from swift_mock_generator.runtime import UNIT, MockRecorder
from swift_mock_generator.synthesizer import synthesize

SOURCE = """
protocol OptionalProtocol {
    var name: String { get set }
    var id: Int { get }
    func optionals(optional: Double?) -> Int?
    func mixed(unwrapped: UInt!, optional: String?, value: Int) -> String
    func reset()
    func load(id: String)
    func load(name: String)
}
"""


@pytest.fixture
def recorder():
    return MockRecorder(synthesize(parse_protocol(SOURCE)))


class TestMockRecorder:
    """Tests for MockRecorder behavior."""

    def test_initial_state(self, recorder):
        """A fresh mock reports nothing invoked."""
        assert recorder.invokedMixed is False
        assert recorder.invokedMixedParameters is None
        assert recorder.invoked("reset") is False

    def test_records_all_arguments(self, recorder):
        recorder.stub("mixed", "result")

        result = recorder.invoke("mixed", 1, None, value=3)

        assert result == "result"
        assert recorder.invoked("mixed")
        assert recorder.parameters("mixed") == (1, None, 3)

    def test_single_parameter_records_unit_placeholder(self, recorder):
        recorder.stub("optionals", None)

        recorder.invoke("optionals", 2.5)

        assert recorder.invokedOptionalsParameters == (2.5, UNIT)

    def test_zero_parameters_record_empty_tuple(self, recorder):
        assert recorder.invoke("reset") is None
        assert recorder.parameters("reset") == ()

    def test_latest_call_overwrites_parameters(self, recorder):
        recorder.stub("optionals", 1)

        recorder.invoke("optionals", 1.0)
        recorder.invoke("optionals", optional=2.0)

        assert recorder.parameters("optionals") == (2.0, UNIT)

    def test_overloads_record_separately(self, recorder):
        recorder.invoke("loadId", "a")

        assert recorder.invoked("loadId")
        assert not recorder.invoked("loadName")

    def test_unset_stub_raises(self, recorder):
        with pytest.raises(StubNotSetError) as exc_info:
            recorder.invoke("mixed", 1, "x", 2)

        assert exc_info.value.field_name == "stubbedMixedResult"
        assert recorder.invokedMixed is True

    def test_stubbing_void_method_raises(self, recorder):
        with pytest.raises(ValueError):
            recorder.stub("reset", 1)

    def test_argument_mismatch_raises(self, recorder):
        with pytest.raises(TypeError):
            recorder.invoke("reset", 1)
        with pytest.raises(TypeError):
            recorder.invoke("loadId")
        with pytest.raises(TypeError):
            recorder.invoke("loadId", "a", extra=1)

    def test_unknown_method_raises(self, recorder):
        with pytest.raises(KeyError):
            recorder.invoke("missing")

    def test_properties(self, recorder):
        recorder.stub_property("name", "stubbed")

        recorder.set_property("name", "written")

        assert recorder.get_property("name") == "stubbed"
        assert recorder.invokedName == "written"

    def test_read_only_property_cannot_be_set(self, recorder):
        with pytest.raises(AttributeError):
            recorder.set_property("id", 1)

    def test_unknown_attribute_raises(self, recorder):
        with pytest.raises(AttributeError):
            recorder.invokedNothing


CLOSURE_SOURCE = """
protocol Loader {
    func run(completion: () -> Void)
    func load(id: String, completion: @escaping (Int) -> Void)
    func fetch(handler: ((String, Int) -> Void)?) -> Bool
}
"""


class TestClosureParameters:
    """The recorder calls closure parameters the way the override does."""

    @pytest.fixture
    def loader(self):
        return MockRecorder(synthesize(parse_protocol(CLOSURE_SOURCE)))

    def given_calls(self):
        self.calls = []

    def test_non_escaping_closure_is_called_and_recorded_as_unit(self, loader):
        self.given_calls()

        loader.invoke("run", lambda: self.calls.append("done"))

        assert self.calls == ["done"]
        assert loader.parameters("run") == (UNIT, UNIT)

    def test_closure_with_arguments_waits_for_stub(self, loader):
        self.given_calls()

        loader.invoke("load", "a", self.calls.append)

        assert self.calls == []
        assert loader.stubbedLoadCompletionResult is None

    def test_stubbed_closure_arguments_are_passed(self, loader):
        self.given_calls()
        loader.stub_closure("load", "completion", 7)

        loader.invoke("load", "a", completion=self.calls.append)

        assert self.calls == [7]
        assert loader.parameters("load")[0] == "a"

    def test_tuple_stub_is_unpacked(self, loader):
        self.given_calls()
        loader.stub("fetch", True)
        loader.stub_closure("fetch", "handler", ("x", 2))

        result = loader.invoke("fetch", lambda text, count: self.calls.append((text, count)))

        assert result is True
        assert self.calls == [("x", 2)]

    def test_missing_optional_closure_is_skipped(self, loader):
        loader.stub("fetch", False)
        loader.stub_closure("fetch", "handler", ("x", 2))

        assert loader.invoke("fetch", None) is False
        assert loader.parameters("fetch") == (None, UNIT)

    def test_zero_argument_closure_cannot_be_stubbed(self, loader):
        with pytest.raises(ValueError):
            loader.stub_closure("run", "completion", 1)

    def test_unknown_closure_raises(self, loader):
        with pytest.raises(KeyError):
            loader.stub_closure("load", "id", 1)
