"""Derive mock artifacts from parsed protocol declarations."""

import logging
from collections.abc import Mapping

from swift_mock_generator.config import DEFAULT_OPTIONS, GeneratorOptions
from swift_mock_generator.errors import NamingCollisionError
from swift_mock_generator.models import (
    InterfaceDeclaration,
    MethodDeclaration,
    Parameter,
    PropertyDeclaration,
)
from swift_mock_generator.synthesizer.artifact import (
    UNIT_PLACEHOLDER,
    ClosureCall,
    MockArtifact,
    MockMethod,
    MockProperty,
    ParametersHolder,
    StubbedResult,
    TupleField,
)
from swift_mock_generator.synthesizer.naming import (
    invoked_flag_name,
    invoked_parameters_name,
    invoked_property_name,
    property_field_names,
    stubbed_closure_name,
    stubbed_property_name,
    stubbed_result_name,
    unique_method_names,
)

logger = logging.getLogger(__name__)

NSOBJECT_PROTOCOL = "NSObjectProtocol"
NSOBJECT_CLASS = "NSObject"


def synthesize(
    interface: InterfaceDeclaration,
    options: GeneratorOptions = DEFAULT_OPTIONS,
    known_protocols: Mapping[str, InterfaceDeclaration] | None = None,
) -> MockArtifact:
    """Build the mock artifact for a protocol.

    Args:
        interface: The parsed protocol
        options: Generation options
        known_protocols: Other parsed protocols by name, used to pull in the
            requirements of protocols this one refines

    Returns:
        MockArtifact with one group per property and per method

    Raises:
        NamingCollisionError: If generated field names are not unique
    """
    merged = merge_inherited(interface, known_protocols or {})

    properties = [_synthesize_property(p) for p in merged.properties]
    reserved = [name for p in merged.properties for name in property_field_names(p)]
    try:
        names = unique_method_names(merged.methods, reserved=reserved)
    except NamingCollisionError as e:
        e.interface = interface.name
        raise
    for name, method in zip(names, merged.methods):
        if name != method.name:
            logger.debug(f"{interface.name}.{method.selector} tracked as {name}")
    methods = [
        _synthesize_method(method, name)
        for method, name in zip(merged.methods, names)
    ]

    access = ""
    if options.public_mocks or (options.public_mocks is None and interface.is_public):
        access = "public"

    generic_parameters: list[str] = []
    seen_generics: set[str] = set()
    for associated_type in merged.associated_types:
        if associated_type.name not in seen_generics:
            seen_generics.add(associated_type.name)
            generic_parameters.append(associated_type.generic_parameter)

    artifact = MockArtifact(
        name=options.mock_name(interface.name),
        protocol=interface.name,
        properties=tuple(properties),
        methods=tuple(methods),
        generic_parameters=tuple(generic_parameters),
        superclass=NSOBJECT_CLASS if NSOBJECT_PROTOCOL in merged.inherited else None,
        access=access,
    )
    _ensure_unique_members(artifact)
    logger.info(
        f"Synthesized {artifact.name}: {len(methods)} methods, "
        f"{len(properties)} properties, {len(artifact.field_names)} fields"
    )
    return artifact


def merge_inherited(
    interface: InterfaceDeclaration,
    known_protocols: Mapping[str, InterfaceDeclaration],
) -> InterfaceDeclaration:
    """Fold the requirements of refined protocols into ``interface``.

    The protocol's own members come first, followed by those of the
    protocols it refines in inheritance-clause order (depth first).
    Requirements declared more than once are kept once. The returned
    ``inherited`` tuple lists every refined protocol name, resolved or not.
    """
    order: list[InterfaceDeclaration] = []
    inherited: list[str] = []
    visiting = {interface.name}

    def visit(declaration: InterfaceDeclaration):
        order.append(declaration)
        for parent_name in declaration.inherited:
            if parent_name not in inherited and parent_name != interface.name:
                inherited.append(parent_name)
            parent = known_protocols.get(parent_name)
            if parent is None or parent_name in visiting:
                continue
            visiting.add(parent_name)
            visit(parent)

    visit(interface)
    if len(order) > 1:
        logger.debug(
            f"{interface.name} refines {', '.join(d.name for d in order[1:])}"
        )

    methods: dict[tuple, MethodDeclaration] = {}
    properties: dict[tuple, PropertyDeclaration] = {}
    associated_types = {}
    for declaration in order:
        for method in declaration.methods:
            methods.setdefault(method.identity, method)
        for declared_property in declaration.properties:
            properties.setdefault(declared_property.identity, declared_property)
        for associated_type in declaration.associated_types:
            associated_types.setdefault(associated_type.name, associated_type)

    return InterfaceDeclaration(
        name=interface.name,
        methods=tuple(methods.values()),
        properties=tuple(properties.values()),
        associated_types=tuple(associated_types.values()),
        inherited=tuple(inherited),
        access=interface.access,
        line=interface.line,
        attributes=interface.attributes,
    )


def _synthesize_method(method: MethodDeclaration, unique_name: str) -> MockMethod:
    fields = [_tuple_field(parameter) for parameter in method.parameters]
    if len(fields) == 1:
        # Keeps a one-element holder distinct from the bare parameter type
        fields.append(UNIT_PLACEHOLDER)

    closure_calls = []
    for parameter in method.parameters:
        if parameter.is_closure:
            call = _closure_call(method, parameter, unique_name)
            if call is not None:
                closure_calls.append(call)

    stubbed_result = None
    if method.return_type is not None:
        stubbed_result = StubbedResult(
            name=stubbed_result_name(unique_name),
            type=method.return_type.stub,
        )

    return MockMethod(
        declaration=method,
        unique_name=unique_name,
        invoked_flag=invoked_flag_name(unique_name),
        parameters_holder=ParametersHolder(
            name=invoked_parameters_name(unique_name),
            fields=tuple(fields),
        ),
        stubbed_result=stubbed_result,
        closure_calls=tuple(closure_calls),
    )


def _tuple_field(parameter: Parameter) -> TupleField:
    if not parameter.is_storable:
        # Non-escaping closures cannot be stored; the slot records ()
        return TupleField(
            name=parameter.name,
            type=UNIT_PLACEHOLDER.type,
            value=UNIT_PLACEHOLDER.value,
            optionality=parameter.optionality,
            elided=True,
        )
    return TupleField(
        name=parameter.name,
        type=parameter.storage_type,
        value=parameter.name,
        optionality=parameter.optionality,
    )


def _closure_call(
    method: MethodDeclaration, parameter: Parameter, unique_name: str
) -> ClosureCall | None:
    closure = parameter.type.closure
    prefix = ""
    if closure.throws:
        prefix += "try? "
    if closure.is_async:
        if "async" not in method.effects:
            logger.debug(f"Not calling async closure '{parameter.name}' from {method.selector}")
            return None
        prefix += "await "

    arguments = closure.arguments
    stub = None
    if len(arguments) == 1:
        stub_type = arguments[0].optional
    else:
        stub_type = f"({', '.join(argument.text for argument in arguments)})?"
    if arguments:
        stub = StubbedResult(
            name=stubbed_closure_name(unique_name, parameter.name),
            type=stub_type,
        )

    return ClosureCall(
        parameter=parameter.name,
        arity=len(arguments),
        stub=stub,
        is_optional=parameter.type.is_optional,
        call_prefix=prefix,
    )


def _synthesize_property(declaration: PropertyDeclaration) -> MockProperty:
    invoked_name = None
    if declaration.has_setter:
        invoked_name = invoked_property_name(declaration.name)
    return MockProperty(
        declaration=declaration,
        stubbed_name=stubbed_property_name(declaration.name),
        invoked_name=invoked_name,
    )


def _ensure_unique_members(artifact: MockArtifact):
    """Fail instead of emitting two stored members with the same name."""
    owners: dict[str, str] = {}
    members = [(p.declaration.name.strip("`"), p.declaration.name) for p in artifact.properties]
    for mock_property in artifact.properties:
        members.extend((name, mock_property.declaration.name) for name in mock_property.field_names)
    for method in artifact.methods:
        members.extend((name, method.declaration.name) for name in method.field_names)

    for name, owner in members:
        if name in owners:
            raise NamingCollisionError(
                f"Generated member '{name}' is not unique (also used by '{owners[name]}')",
                interface=artifact.protocol,
                method=owner,
            )
        owners[name] = owner
