"""Render mock artifacts as Swift source.

Output layout is fixed so generated files can be diffed against checked-in
copies:

- ``class Mock<Protocol>: <Protocol> {`` followed by one blank line
- members indented one level, properties first, then methods, each in
  declaration order, with no blank lines between them
- per method: invoked flag, parameters holder, closure argument stubs,
  stubbed result (if any), then the override, which calls closure
  parameters before returning
- a closing brace and a trailing newline
"""

import logging

from swift_mock_generator.config import DEFAULT_OPTIONS, GeneratorOptions
from swift_mock_generator.models import OptionalityKind
from swift_mock_generator.synthesizer.artifact import (
    ClosureCall,
    MockArtifact,
    MockMethod,
    MockProperty,
)

logger = logging.getLogger(__name__)


def render_mock(artifact: MockArtifact, options: GeneratorOptions = DEFAULT_OPTIONS) -> str:
    """Render a mock class.

    Args:
        artifact: The synthesized mock
        options: Formatting options

    Returns:
        Swift source text ending with a newline
    """
    indent = " " * options.indent
    access = f"{artifact.access} " if artifact.access else ""

    generics = ""
    if artifact.generic_parameters:
        generics = f"<{', '.join(artifact.generic_parameters)}>"
    inheritance = [artifact.protocol]
    if artifact.superclass:
        inheritance.insert(0, artifact.superclass)

    lines = [
        f"{access}class {artifact.name}{generics}: {', '.join(inheritance)} {{",
        "",
    ]
    for mock_property in artifact.properties:
        lines.extend(_render_property(mock_property, access, indent))
    for method in artifact.methods:
        lines.extend(_render_method(method, access, indent))
    lines.append("}")
    lines.append("")

    output = "\n".join(lines)
    logger.debug(f"Rendered {artifact.name} in {len(lines)} lines")
    return output


def render_signature(method: MockMethod) -> str:
    """The override signature, without modifiers or body."""
    declaration = method.declaration
    parameters = ", ".join(p.declaration for p in declaration.parameters)
    signature = f"func {declaration.name}{declaration.generic_clause}({parameters})"
    for effect in declaration.effects:
        signature += f" {effect}"
    if declaration.return_type is not None:
        signature += f" -> {declaration.return_type.declared}"
    if declaration.where_clause:
        signature += f" where {declaration.where_clause}"
    return signature


def _member_prefix(indent: str, access: str, is_static: bool) -> str:
    return f"{indent}{access}{'static ' if is_static else ''}"


def _render_method(method: MockMethod, access: str, indent: str) -> list[str]:
    prefix = _member_prefix(indent, access, method.declaration.is_static)
    body = indent * 2
    holder = method.parameters_holder
    stub = method.stubbed_result

    lines = [
        f"{prefix}var {method.invoked_flag} = false",
        f"{prefix}var {holder.name}: {holder.type}?",
    ]
    for closure_stub in method.closure_stubs:
        lines.append(f"{prefix}var {closure_stub.name}: {closure_stub.type}")
    if stub is not None:
        lines.append(f"{prefix}var {stub.name}: {stub.type}")

    lines.append(f"{prefix}{render_signature(method)} {{")
    lines.append(f"{body}{method.invoked_flag} = true")
    lines.append(f"{body}{holder.name} = {holder.value}")
    for call in method.closure_calls:
        lines.extend(_render_closure_call(call, body, indent))
    if stub is not None:
        lines.append(f"{body}return {stub.name}")
    lines.append(f"{indent}}}")
    return lines


def _render_closure_call(call: ClosureCall, body: str, indent: str) -> list[str]:
    if call.stub is None:
        return [f"{body}{call.call_prefix}{call.callee}()"]
    return [
        f"{body}if let result = {call.stub.name} {{",
        f"{body}{indent}{call.call_prefix}{call.callee}({call.arguments})",
        f"{body}}}",
    ]


def _render_property(mock_property: MockProperty, access: str, indent: str) -> list[str]:
    declaration = mock_property.declaration
    prefix = _member_prefix(indent, access, declaration.is_static)
    body = indent * 2
    lines = []

    if mock_property.invoked_name is not None:
        recorded_type = declaration.type.wrapped(OptionalityKind.OPTIONAL.marker)
        lines.append(f"{prefix}var {mock_property.invoked_name}: {recorded_type}")
    lines.append(f"{prefix}var {mock_property.stubbed_name}: {declaration.type.stub}")
    lines.append(f"{prefix}var {declaration.name}: {declaration.type.declared} {{")

    if mock_property.invoked_name is not None:
        lines.extend(
            [
                f"{body}set {{",
                f"{body}{indent}{mock_property.invoked_name} = newValue",
                f"{body}}}",
                f"{body}get {{",
                f"{body}{indent}return {mock_property.stubbed_name}",
                f"{body}}}",
            ]
        )
    else:
        lines.append(f"{body}return {mock_property.stubbed_name}")

    lines.append(f"{indent}}}")
    return lines
