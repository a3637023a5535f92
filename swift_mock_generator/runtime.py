"""Execute the bookkeeping of a synthesized mock in Python.

A MockRecorder behaves like an instance of the generated Swift class: every
call sets the method's invoked flag, overwrites its parameters holder with
the full tuple (unit placeholder included) and returns the stubbed result.
Reading a stub that was never assigned raises StubNotSetError, which is the
Python counterpart of unwrapping an unset ``Type!`` field. Closure
parameters are called with their stubbed arguments, as the override does.
"""

import logging
from typing import Any

from swift_mock_generator.errors import StubNotSetError
from swift_mock_generator.synthesizer.artifact import ClosureCall, MockArtifact, MockMethod

logger = logging.getLogger(__name__)

UNIT = ()


class _Unset:
    def __repr__(self):
        return "<unset>"


UNSET = _Unset()


class MockRecorder:
    """Record invocations against a MockArtifact."""

    def __init__(self, artifact: MockArtifact):
        self._artifact = artifact
        self._fields: dict[str, Any] = {}
        for mock_property in artifact.properties:
            if mock_property.invoked_name is not None:
                self._fields[mock_property.invoked_name] = None
            self._fields[mock_property.stubbed_name] = UNSET
        for method in artifact.methods:
            self._fields[method.invoked_flag] = False
            self._fields[method.parameters_holder.name] = None
            if method.stubbed_result is not None:
                self._fields[method.stubbed_result.name] = UNSET
            for closure_stub in method.closure_stubs:
                self._fields[closure_stub.name] = None

    @property
    def artifact(self) -> MockArtifact:
        return self._artifact

    def invoke(self, unique_name: str, *args, **kwargs) -> Any:
        """Call a mocked method.

        Arguments bind to parameters positionally, or by external label or
        internal name.

        Returns:
            The stubbed result, or None for Void methods

        Raises:
            TypeError: If the arguments do not match the parameters
            StubNotSetError: If the method returns a value that was not stubbed
        """
        method = self._artifact.method_group(unique_name)
        values = self._bind(method, args, kwargs)

        self._fields[method.invoked_flag] = True
        holder = method.parameters_holder
        recorded = []
        arguments = iter(values)
        for holder_field in holder.fields:
            if holder_field.is_placeholder:
                recorded.append(UNIT)
                continue
            value = next(arguments)
            recorded.append(UNIT if holder_field.elided else value)
        self._fields[holder.name] = tuple(recorded)
        logger.debug(f"{self._artifact.name}.{unique_name} recorded {recorded}")

        bound = {p.name: value for p, value in zip(method.declaration.parameters, values)}
        for call in method.closure_calls:
            self._call_closure(call, bound[call.parameter])

        if method.stubbed_result is None:
            return None
        return self.read(method.stubbed_result.name)

    def _call_closure(self, call: ClosureCall, closure: Any):
        if closure is None and call.is_optional:
            return
        if call.stub is None:
            closure()
            return
        result = self._fields[call.stub.name]
        if result is None:
            return
        if call.arity == 1:
            closure(result)
        else:
            closure(*result)

    def stub(self, unique_name: str, value: Any):
        """Assign the value a method returns."""
        method = self._artifact.method_group(unique_name)
        if method.stubbed_result is None:
            raise ValueError(f"{unique_name} returns Void and cannot be stubbed")
        self._fields[method.stubbed_result.name] = value

    def stub_closure(self, unique_name: str, parameter: str, value: Any):
        """Assign the arguments a closure parameter is called with.

        For closures taking several arguments ``value`` is a tuple. None
        leaves the closure uncalled.
        """
        call = self._artifact.method_group(unique_name).closure_call(parameter)
        if call.stub is None:
            raise ValueError(f"Closure '{parameter}' of {unique_name} takes no arguments")
        self._fields[call.stub.name] = value

    def invoked(self, unique_name: str) -> bool:
        return self._fields[self._artifact.method_group(unique_name).invoked_flag]

    def parameters(self, unique_name: str) -> tuple | None:
        """Arguments of the latest call, or None if never called."""
        return self._fields[self._artifact.method_group(unique_name).parameters_holder.name]

    def stub_property(self, name: str, value: Any):
        self._fields[self._artifact.property_group(name).stubbed_name] = value

    def get_property(self, name: str) -> Any:
        return self.read(self._artifact.property_group(name).stubbed_name)

    def set_property(self, name: str, value: Any):
        mock_property = self._artifact.property_group(name)
        if mock_property.invoked_name is None:
            raise AttributeError(f"Property '{name}' is read-only")
        self._fields[mock_property.invoked_name] = value

    def read(self, field_name: str) -> Any:
        """Read a generated field by name.

        Raises:
            KeyError: If the mock has no such field
            StubNotSetError: If the field is a stub that was never assigned
        """
        value = self._fields[field_name]
        if value is UNSET:
            raise StubNotSetError(field_name)
        return value

    def __getattr__(self, name: str) -> Any:
        fields = self.__dict__.get("_fields")
        if fields is None or name not in fields:
            raise AttributeError(name)
        return self.read(name)

    @staticmethod
    def _bind(method: MockMethod, args: tuple, kwargs: dict) -> list:
        parameters = method.declaration.parameters
        if len(args) > len(parameters):
            raise TypeError(
                f"{method.declaration.selector} takes {len(parameters)} arguments, got {len(args)}"
            )

        values = list(args)
        for parameter in parameters[len(args):]:
            for key in (parameter.external_label, parameter.name):
                if key in kwargs:
                    values.append(kwargs.pop(key))
                    break
            else:
                raise TypeError(
                    f"{method.declaration.selector} missing argument '{parameter.name}'"
                )
        if kwargs:
            raise TypeError(
                f"{method.declaration.selector} got unexpected arguments: {', '.join(sorted(kwargs))}"
            )
        return values
