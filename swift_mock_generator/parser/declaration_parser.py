"""Parse Swift protocol declarations into InterfaceDeclaration models."""

import logging
from dataclasses import dataclass

from swift_mock_generator.errors import InvalidSignature, ParseError
from swift_mock_generator.models import (
    WILDCARD_LABEL,
    AssociatedType,
    InterfaceDeclaration,
    MethodDeclaration,
    Parameter,
    PropertyDeclaration,
)
from swift_mock_generator.parser.lexer import Token, TokenKind, TokenStream, tokenize
from swift_mock_generator.parser.type_parser import join_tokens, parse_attribute, parse_type

logger = logging.getLogger(__name__)

ACCESS_KEYWORDS = frozenset(
    {"public", "open", "package", "internal", "fileprivate", "private"}
)

# Modifiers that do not change the shape of the generated mock
IGNORED_MODIFIERS = frozenset(
    {
        "mutating",
        "nonmutating",
        "optional",
        "required",
        "final",
        "nonisolated",
        "override",
        "dynamic",
        "convenience",
    }
)
STATIC_MODIFIERS = frozenset({"static", "class"})
SKIPPED_MEMBERS = frozenset({"init", "subscript", "typealias"})
MEMBER_KEYWORDS = frozenset({"func", "var", "let", "associatedtype"}) | SKIPPED_MEMBERS
EFFECT_KEYWORDS = ("async", "throws", "rethrows")


@dataclass
class ProtocolSource:
    """The tokens of one protocol declaration located in a larger source."""

    name: str
    line: int
    tokens: list[Token]


def parse_protocols(content: str) -> list[InterfaceDeclaration]:
    """Parse every protocol declared in Swift source.

    Args:
        content: Swift source text

    Returns:
        List of InterfaceDeclaration objects in declaration order

    Raises:
        ParseError: If any protocol cannot be parsed
        InvalidSignature: If a method signature is inconsistent
    """
    interfaces = [parse_protocol_source(source) for source in split_protocols(content)]
    logger.info(f"Found {len(interfaces)} protocol declarations")
    return interfaces


def parse_protocol(content: str) -> InterfaceDeclaration:
    """Parse source text that declares exactly one protocol."""
    sources = split_protocols(content)
    if not sources:
        raise ParseError("No protocol declaration found")
    if len(sources) > 1:
        names = ", ".join(source.name for source in sources)
        raise ParseError(f"Expected one protocol declaration, found {len(sources)}: {names}")
    return parse_protocol_source(sources[0])


def split_protocols(content: str) -> list[ProtocolSource]:
    """Locate protocol declarations without parsing their members.

    Each protocol is cut out with its leading attributes and modifiers and
    its brace-delimited body, so a malformed member only affects the
    protocol it belongs to.

    Raises:
        ParseError: If the source cannot be tokenized
    """
    tokens = tokenize(content)
    eof = tokens[-1]
    sources = []
    index = 0

    while index < len(tokens):
        token = tokens[index]
        if token.is_("protocol") and tokens[index + 1].kind is TokenKind.IDENTIFIER:
            start = _declaration_start(tokens, index)
            end = _declaration_end(tokens, index)
            name = tokens[index + 1].value
            sources.append(
                ProtocolSource(name=name, line=token.line, tokens=tokens[start:end] + [eof])
            )
            logger.debug(f"Located protocol {name} at line {token.line}")
            index = max(end, index + 1)
        else:
            index += 1

    return sources


def _declaration_start(tokens: list[Token], index: int) -> int:
    """Walk back over attributes and modifiers preceding a declaration keyword."""
    start = index
    while start > 0:
        previous = tokens[start - 1]
        if previous.kind is TokenKind.ATTRIBUTE or previous.value in ACCESS_KEYWORDS:
            start -= 1
        elif previous.is_(")"):
            opener = _matching_open_paren(tokens, start - 1)
            if opener is None or opener == 0 or tokens[opener - 1].kind is not TokenKind.ATTRIBUTE:
                break
            start = opener - 1
        else:
            break
    return start


def _matching_open_paren(tokens: list[Token], close_index: int) -> int | None:
    depth = 0
    for index in range(close_index, -1, -1):
        if tokens[index].is_(")"):
            depth += 1
        elif tokens[index].is_("("):
            depth -= 1
            if depth == 0:
                return index
    return None


def _declaration_end(tokens: list[Token], index: int) -> int:
    """Index just past the closing brace of the declaration at ``index``."""
    position = index + 1
    while position < len(tokens):
        token = tokens[position]
        if token.kind is TokenKind.EOF or token.is_("}") or token.is_(";"):
            return position
        if token.is_("protocol") and position > index + 1:
            return position
        if token.is_("{"):
            break
        position += 1
    else:
        return len(tokens) - 1

    depth = 0
    while position < len(tokens):
        token = tokens[position]
        if token.is_("{"):
            depth += 1
        elif token.is_("}"):
            depth -= 1
            if depth == 0:
                return position + 1
        position += 1
    return len(tokens) - 1


def parse_protocol_source(source: ProtocolSource) -> InterfaceDeclaration:
    """Parse the tokens of a single protocol declaration.

    Raises:
        ParseError: If the header or any member is malformed
        InvalidSignature: If a method signature is inconsistent
    """
    stream = TokenStream(source.tokens, interface=source.name)
    attributes, modifiers = _parse_modifiers(stream)
    access = next((m for m in modifiers if m in ACCESS_KEYWORDS), "")

    stream.expect("protocol", "to start protocol declaration")
    name = stream.expect_identifier("for protocol").value
    if stream.at("<") and not stream.peek().newline_before:
        # Primary associated types repeat associatedtype members in the body
        stream.take_balanced()

    inherited = _parse_inheritance(stream)
    if stream.accept("where"):
        _collect_until(stream, lambda s: s.at("{"))

    stream.expect("{", f"to open body of protocol {name}")
    methods: list[MethodDeclaration] = []
    properties: list[PropertyDeclaration] = []
    associated_types: list[AssociatedType] = []

    while not stream.at("}"):
        if stream.at_end:
            raise stream.error(f"Unterminated body of protocol {name}", line=source.line)
        if stream.accept(";"):
            continue

        _, member_modifiers = _parse_modifiers(stream)
        is_static = any(m in STATIC_MODIFIERS for m in member_modifiers)
        token = stream.peek()

        if token.is_("func"):
            methods.append(_parse_method(stream, is_static))
        elif token.is_("var"):
            properties.append(_parse_property(stream, is_static))
        elif token.is_("associatedtype"):
            associated_types.append(_parse_associated_type(stream))
        elif token.value in SKIPPED_MEMBERS:
            logger.warning(
                f"Skipping unsupported '{token.value}' requirement in {name} at line {token.line}"
            )
            _skip_member(stream)
        else:
            raise stream.error(f"Unexpected '{token.value or 'end of input'}' in protocol body")

    stream.expect("}", f"to close body of protocol {name}")

    interface = InterfaceDeclaration(
        name=name,
        methods=methods,
        properties=properties,
        associated_types=associated_types,
        inherited=inherited,
        access=access,
        line=source.line,
        attributes=attributes,
    )
    logger.info(
        f"Parsed protocol {name}: {len(methods)} methods, {len(properties)} properties"
    )
    return interface


def _parse_modifiers(stream: TokenStream) -> tuple[list[str], list[str]]:
    attributes = []
    modifiers = []
    while True:
        token = stream.peek()
        if token.kind is TokenKind.ATTRIBUTE:
            attributes.append(parse_attribute(stream))
        elif token.value in ACCESS_KEYWORDS:
            stream.advance()
            modifiers.append(token.value)
            if stream.at("(") and stream.peek(1).is_("set"):
                # private(set)
                stream.take_balanced()
        elif token.value in IGNORED_MODIFIERS or (
            token.value in STATIC_MODIFIERS and not stream.peek(1).is_("protocol")
        ):
            if token.is_("class") and stream.peek(1).kind is TokenKind.IDENTIFIER:
                break
            stream.advance()
            modifiers.append(token.value)
        else:
            return attributes, modifiers
    return attributes, modifiers


def _parse_inheritance(stream: TokenStream) -> tuple[str, ...]:
    if not stream.accept(":"):
        return ()
    inherited = []
    while True:
        if stream.accept("class"):
            inherited.append("AnyObject")
        else:
            type_ref = parse_type(stream)
            inherited.extend(part.strip() for part in type_ref.base.split("&"))
        if not stream.accept(","):
            break
    return tuple(inherited)


def _parse_method(stream: TokenStream, is_static: bool) -> MethodDeclaration:
    func_token = stream.expect("func", "to start method")
    name_token = stream.peek()
    if name_token.kind not in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
        raise stream.error(f"Operator requirement '{name_token.value}' is not supported")
    name = stream.advance().value
    stream.method = name

    generic_clause = ""
    if stream.at("<") and not stream.peek().newline_before:
        generic_clause = f"<{join_tokens(stream.take_balanced())}>"

    if not stream.at("("):
        raise stream.error("Expected parameter clause")
    parameters = _parse_parameter_clause(stream)

    effects = []
    while stream.at(*EFFECT_KEYWORDS):
        effect = stream.advance().value
        if stream.at("(") and not stream.peek().newline_before:
            effect += f"({join_tokens(stream.take_balanced())})"
        effects.append(effect)

    return_type = None
    if stream.accept("->"):
        return_type = parse_type(stream)

    where_clause = ""
    if stream.accept("where"):
        where_clause = join_tokens(_collect_until(stream, _at_member_boundary))

    if stream.at("{"):
        raise stream.error("Protocol method requirements cannot have a body")
    if not _at_member_boundary(stream):
        raise stream.error(f"Unexpected '{stream.peek().value}' after method signature")

    try:
        method = MethodDeclaration(
            name=name,
            parameters=parameters,
            return_type=return_type,
            generic_clause=generic_clause,
            where_clause=where_clause,
            effects=effects,
            is_static=is_static,
            line=func_token.line,
        )
    except InvalidSignature as e:
        e.interface = stream.interface
        raise
    finally:
        stream.method = None

    logger.debug(f"Parsed method {method.selector}")
    return method


def _parse_parameter_clause(stream: TokenStream) -> list[Parameter]:
    open_token = stream.expect("(", "to open parameter clause")
    parameters = []

    while not stream.at(")"):
        if stream.at_end:
            raise stream.error("Unbalanced '(' in parameter clause", line=open_token.line)
        parameters.append(_parse_parameter(stream, len(parameters) + 1))
        if not stream.accept(","):
            break

    if not stream.at(")"):
        found = stream.peek().value or "end of input"
        raise stream.error(
            f"Expected ',' or ')' in parameter clause, found '{found}'",
        )
    stream.advance()
    return parameters


def _parse_parameter(stream: TokenStream, position: int) -> Parameter:
    first = stream.expect_identifier("for parameter").value
    label = None
    name = first
    if stream.peek().kind in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
        label = first
        name = stream.advance().value

    if name == WILDCARD_LABEL:
        # Unnamed parameters still need a name to be recorded under
        label = label or WILDCARD_LABEL
        name = f"param{position}"

    stream.expect(":", f"after parameter '{name}'")
    type_ref = parse_type(stream)
    variadic = stream.accept("...") is not None

    if stream.accept("="):
        # Default values do not affect the mock
        _collect_until(stream, lambda s: s.at(",", ")"))

    return Parameter(name=name, type=type_ref, label=label, variadic=variadic)


def _parse_property(stream: TokenStream, is_static: bool) -> PropertyDeclaration:
    var_token = stream.expect("var", "to start property")
    name = stream.expect_identifier("for property").value
    stream.method = name
    stream.expect(":", f"after property '{name}'")
    type_ref = parse_type(stream)

    if not stream.at("{"):
        raise stream.error(f"Property '{name}' must declare {{ get }} or {{ get set }}")
    accessors = [token.value for token in stream.take_balanced()]
    if "get" not in accessors:
        raise stream.error(f"Property '{name}' must declare a getter")
    stream.method = None

    return PropertyDeclaration(
        name=name,
        type=type_ref,
        has_setter="set" in accessors,
        is_static=is_static,
        line=var_token.line,
    )


def _parse_associated_type(stream: TokenStream) -> AssociatedType:
    stream.expect("associatedtype", "to start associated type")
    name = stream.expect_identifier("for associated type").value

    constraint = ""
    if stream.accept(":"):
        constraints = [parse_type(stream).declared]
        while stream.accept(","):
            constraints.append(parse_type(stream).declared)
        constraint = " & ".join(constraints)
    if stream.accept("="):
        parse_type(stream)
    if stream.accept("where"):
        _collect_until(stream, _at_member_boundary)

    return AssociatedType(name=name, constraint=constraint)


def _skip_member(stream: TokenStream):
    stream.advance()
    while not _at_member_boundary(stream):
        if stream.at("(", "[", "{"):
            stream.take_balanced()
        else:
            stream.advance()


def _at_member_boundary(stream: TokenStream) -> bool:
    token = stream.peek()
    if token.kind is TokenKind.EOF or token.is_("}") or token.is_(";"):
        return True
    if not token.newline_before:
        return False
    return (
        token.kind is TokenKind.ATTRIBUTE
        or token.value in MEMBER_KEYWORDS
        or token.value in ACCESS_KEYWORDS
        or token.value in IGNORED_MODIFIERS
        or token.value in STATIC_MODIFIERS
    )


def _collect_until(stream: TokenStream, stop) -> list[Token]:
    """Consume tokens until ``stop(stream)`` holds, keeping brackets balanced."""
    collected: list[Token] = []
    while not stop(stream):
        if stream.at_end:
            raise stream.error("Unexpected end of input")
        if stream.at("(", "[", "{"):
            opener = stream.peek()
            inner = stream.take_balanced()
            closer = {"(": ")", "[": "]", "{": "}"}[opener.value]
            collected.extend([opener, *inner, Token(TokenKind.PUNCTUATION, closer, opener.line)])
        else:
            collected.append(stream.advance())
    return collected
