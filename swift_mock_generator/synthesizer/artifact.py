"""Abstract representation of a generated mock class."""

from dataclasses import dataclass

from swift_mock_generator.models import (
    MethodDeclaration,
    OptionalityKind,
    PropertyDeclaration,
)


@dataclass(frozen=True)
class TupleField:
    """One element of an invoked-parameters tuple."""

    name: str | None  # None for the trailing unit placeholder
    type: str
    value: str  # expression stored into the element
    optionality: OptionalityKind = OptionalityKind.REQUIRED
    elided: bool = False  # a non-escaping closure recorded as ()

    @property
    def is_placeholder(self) -> bool:
        return self.name is None

    @property
    def records_unit(self) -> bool:
        return self.is_placeholder or self.elided

    @property
    def declaration(self) -> str:
        if self.name is None:
            return self.type
        return f"{self.name}: {self.type}"


UNIT_PLACEHOLDER = TupleField(name=None, type="Void", value="()")


@dataclass(frozen=True)
class ParametersHolder:
    """Field recording the arguments of the latest call."""

    name: str
    fields: tuple[TupleField, ...] = ()

    @property
    def type(self) -> str:
        """Tuple type of the holder, without the optional wrapper."""
        return f"({', '.join(f.declaration for f in self.fields)})"

    @property
    def value(self) -> str:
        """Tuple expression assigned on each call."""
        return f"({', '.join(f.value for f in self.fields)})"

    @property
    def parameter_fields(self) -> tuple[TupleField, ...]:
        return tuple(f for f in self.fields if not f.is_placeholder)


@dataclass(frozen=True)
class StubbedResult:
    """Field holding the value a mocked method returns."""

    name: str
    type: str  # always implicitly unwrapped so an unset stub fails fast


@dataclass(frozen=True)
class ClosureCall:
    """Call made by the override on a closure parameter.

    Closures that take arguments are only called once a test has stubbed the
    arguments, so ``stub`` holds them as an optional single value or tuple.
    """

    parameter: str
    arity: int
    stub: StubbedResult | None = None  # None when the closure takes no arguments
    is_optional: bool = False
    call_prefix: str = ""  # "try? ", "await " or both

    @property
    def callee(self) -> str:
        return f"{self.parameter}?" if self.is_optional else self.parameter

    @property
    def arguments(self) -> str:
        if self.arity == 0:
            return ""
        if self.arity == 1:
            return "result"
        return ", ".join(f"result.{index}" for index in range(self.arity))


@dataclass(frozen=True)
class MockMethod:
    """Tracking fields and override for one protocol method."""

    declaration: MethodDeclaration
    unique_name: str
    invoked_flag: str
    parameters_holder: ParametersHolder
    stubbed_result: StubbedResult | None = None
    closure_calls: tuple[ClosureCall, ...] = ()

    @property
    def closure_stubs(self) -> tuple[StubbedResult, ...]:
        return tuple(call.stub for call in self.closure_calls if call.stub is not None)

    @property
    def field_names(self) -> tuple[str, ...]:
        """Every stored field in rendering order."""
        names = (self.invoked_flag, self.parameters_holder.name)
        names += tuple(stub.name for stub in self.closure_stubs)
        if self.stubbed_result is not None:
            names += (self.stubbed_result.name,)
        return names

    def closure_call(self, parameter: str) -> ClosureCall:
        for call in self.closure_calls:
            if call.parameter == parameter:
                return call
        raise KeyError(parameter)


@dataclass(frozen=True)
class MockProperty:
    """Tracking fields and computed property for one protocol property."""

    declaration: PropertyDeclaration
    stubbed_name: str
    invoked_name: str | None = None  # only settable properties record writes

    @property
    def field_names(self) -> tuple[str, ...]:
        if self.invoked_name is None:
            return (self.stubbed_name,)
        return (self.invoked_name, self.stubbed_name)


@dataclass(frozen=True)
class MockArtifact:
    """A mock class for one protocol, ready to be rendered."""

    name: str
    protocol: str
    properties: tuple[MockProperty, ...] = ()
    methods: tuple[MockMethod, ...] = ()
    generic_parameters: tuple[str, ...] = ()
    superclass: str | None = None
    access: str = ""  # "public" or ""

    @property
    def field_names(self) -> tuple[str, ...]:
        """Every stored field in member order."""
        names: tuple[str, ...] = ()
        for mock_property in self.properties:
            names += mock_property.field_names
        for method in self.methods:
            names += method.field_names
        return names

    def method_group(self, unique_name: str) -> MockMethod:
        """Look up a method group by its disambiguated name."""
        for method in self.methods:
            if method.unique_name == unique_name:
                return method
        raise KeyError(unique_name)

    def property_group(self, name: str) -> MockProperty:
        """Look up a property group by the protocol property name."""
        for mock_property in self.properties:
            if mock_property.declaration.name == name:
                return mock_property
        raise KeyError(name)
