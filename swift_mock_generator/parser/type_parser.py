"""Parse Swift type annotations into TypeRef values.

Types are reproduced as canonically spaced text. The only structure the
generator interprets is the outermost optionality marker and the argument
list of function types; everything else stays opaque.
"""

import logging

from swift_mock_generator.models import ClosureSignature, OptionalityKind, TypeRef
from swift_mock_generator.parser.lexer import TokenKind, TokenStream

logger = logging.getLogger(__name__)

OWNERSHIP_SPECIFIERS = frozenset(
    {"borrowing", "consuming", "sending", "__owned", "__shared"}
)
OPAQUE_PREFIXES = frozenset({"some", "any"})
OPTIONALITY_MARKERS = ("?", "!")
TYPE_ATTRIBUTES_WITH_ARGUMENTS = frozenset({"@convention", "@differentiable"})


def parse_type(stream: TokenStream) -> TypeRef:
    """Parse a type annotation at the current stream position.

    Handles attributes (``@escaping``), ``inout`` and ownership specifiers,
    optional and implicitly-unwrapped markers, arrays, dictionaries, tuples,
    function types, protocol compositions and ``some``/``any`` types.

    Raises:
        ParseError: If the tokens do not form a type
    """
    attributes = []
    is_inout = False
    while True:
        token = stream.peek()
        if token.kind is TokenKind.ATTRIBUTE:
            attributes.append(parse_attribute(stream, in_type=True))
        elif token.is_("inout"):
            stream.advance()
            is_inout = True
        elif token.value in OWNERSHIP_SPECIFIERS and _starts_type(stream.peek(1)):
            attributes.append(stream.advance().value)
        else:
            break

    text, needs_parens, suffixes, closure = _parse_type_expression(stream)

    optionality = OptionalityKind.REQUIRED
    if suffixes and suffixes[-1] in OPTIONALITY_MARKERS:
        optionality = OptionalityKind.from_marker(suffixes[-1])
        text = text[: -len(suffixes[-1])]

    type_ref = TypeRef(
        base=text,
        optionality=optionality,
        attributes=tuple(attributes),
        is_inout=is_inout,
        needs_parens=needs_parens,
        closure=closure,
    )
    logger.debug(f"Parsed type {type_ref.declared!r} as {optionality.value}")
    return type_ref


def parse_attribute(stream: TokenStream, in_type: bool = False) -> str:
    """Parse an attribute and its argument list, if any.

    In type position only a few attributes take arguments; for the rest a
    following parenthesis belongs to the type (`@escaping (Int) -> Void`).
    """
    attribute = stream.advance().value
    takes_arguments = not in_type or attribute in TYPE_ATTRIBUTES_WITH_ARGUMENTS
    if takes_arguments and stream.at("(") and not stream.peek().newline_before:
        inner = stream.take_balanced()
        attribute += f"({join_tokens(inner)})"
    return attribute


def _starts_type(token) -> bool:
    return token.kind is TokenKind.IDENTIFIER or token.is_("(") or token.is_("[")


def _parse_type_expression(
    stream: TokenStream,
) -> tuple[str, bool, list[str], ClosureSignature | None]:
    """Parse a full type.

    Returns:
        Tuple of (text, needs_parens, postfix suffixes of the last component,
        closure signature). Suffixes are only reported for simple types;
        function types, compositions and opaque types report none since a
        marker can only follow them inside parentheses. The closure signature
        is set for function types, parenthesized ones included.
    """
    prefix = ""
    token = stream.peek()
    if token.value in OPAQUE_PREFIXES and _starts_type(stream.peek(1)):
        prefix = f"{stream.advance().value} "

    starts_with_paren = stream.at("(")
    text, suffixes, elements = _parse_postfix_type(stream)

    if starts_with_paren and not suffixes and _at_function_arrow(stream):
        effects = []
        while stream.at("async", "throws"):
            effect = stream.advance().value
            if effect == "throws" and stream.at("(") and not stream.peek().newline_before:
                effect += f"({join_tokens(stream.take_balanced())})"
            effects.append(effect)
        stream.expect("->", "in function type")
        result = parse_type(stream)
        effects_text = "".join(f" {effect}" for effect in effects)
        closure = ClosureSignature(
            arguments=_closure_arguments(elements or []),
            effects=tuple(effects),
        )
        return f"{prefix}{text}{effects_text} -> {result.declared}", True, [], closure

    if stream.at("&"):
        parts = [text]
        while stream.accept("&"):
            part, _, _ = _parse_postfix_type(stream)
            parts.append(part)
        return prefix + " & ".join(parts), True, [], None

    if prefix:
        return prefix + text, True, [], None
    return text, False, suffixes, _parenthesized_closure(elements, suffixes)


def _closure_arguments(elements: list[tuple[str, TypeRef]]) -> tuple[TypeRef, ...]:
    arguments = tuple(type_ref for _, type_ref in elements)
    if len(arguments) == 1 and arguments[0].is_void:
        # (Void) -> T takes no arguments
        return ()
    return arguments


def _parenthesized_closure(
    elements: list[tuple[str, TypeRef]] | None, suffixes: list[str]
) -> ClosureSignature | None:
    """The signature of ``((Int) -> Void)`` or ``((Int) -> Void)?``."""
    if not elements or len(elements) != 1 or len(suffixes) > 1:
        return None
    if suffixes and suffixes[0] not in OPTIONALITY_MARKERS:
        return None
    label, type_ref = elements[0]
    if label or type_ref.is_optional:
        return None
    return type_ref.closure


def _at_function_arrow(stream: TokenStream) -> bool:
    offset = 0
    while stream.peek(offset).value in ("async", "throws"):
        offset += 1
        if stream.peek(offset).is_("("):
            # typed throws: throws(SomeError)
            depth = 0
            while True:
                value = stream.peek(offset).value
                if value == "(":
                    depth += 1
                elif value == ")":
                    depth -= 1
                elif stream.peek(offset).kind is TokenKind.EOF:
                    return False
                offset += 1
                if depth == 0:
                    break
    return stream.peek(offset).is_("->")


def _parse_postfix_type(
    stream: TokenStream,
) -> tuple[str, list[str], list[tuple[str, TypeRef]] | None]:
    """Parse a primary type followed by ``?``, ``!``, ``.Type`` and friends.

    Returns:
        Tuple of (text, suffixes, tuple elements). Elements are the
        (label, type) pairs of a parenthesized primary type, otherwise None.
    """
    text, elements = _parse_primary_type(stream)
    suffixes: list[str] = []

    while True:
        token = stream.peek()
        if token.newline_before:
            break
        if token.value in OPTIONALITY_MARKERS and token.kind is TokenKind.OPERATOR:
            stream.advance()
            suffixes.append(token.value)
        elif token.is_(".") and stream.peek(1).kind is TokenKind.IDENTIFIER:
            stream.advance()
            suffixes.append("." + stream.advance().value + _parse_generic_arguments(stream))
        else:
            break

    return text + "".join(suffixes), suffixes, elements


def _parse_primary_type(stream: TokenStream) -> tuple[str, list[tuple[str, TypeRef]] | None]:
    token = stream.peek()

    if token.is_("("):
        return _parse_tuple_type(stream)

    if token.is_("["):
        stream.advance()
        element = parse_type(stream).declared
        if stream.accept(":"):
            value = parse_type(stream).declared
            stream.expect("]", "to close dictionary type")
            return f"[{element}: {value}]", None
        stream.expect("]", "to close array type")
        return f"[{element}]", None

    if token.kind is TokenKind.IDENTIFIER:
        stream.advance()
        return token.value + _parse_generic_arguments(stream), None

    found = token.value or "end of input"
    raise stream.error(f"Expected a type, found '{found}'")


def _parse_generic_arguments(stream: TokenStream) -> str:
    if not stream.at("<") or stream.peek().newline_before:
        return ""
    stream.advance()
    arguments = [parse_type(stream).declared]
    while stream.accept(","):
        arguments.append(parse_type(stream).declared)
    stream.expect(">", "to close generic arguments")
    return f"<{', '.join(arguments)}>"


def _parse_tuple_type(stream: TokenStream) -> tuple[str, list[tuple[str, TypeRef]]]:
    open_token = stream.expect("(", "to open tuple type")
    texts = []
    elements = []
    while not stream.at(")"):
        if stream.at_end:
            raise stream.error("Unbalanced '(' in type", line=open_token.line)
        text, label, type_ref = _parse_tuple_element(stream)
        texts.append(text)
        elements.append((label, type_ref))
        if not stream.accept(","):
            break
    stream.expect(")", "to close tuple type")
    return f"({', '.join(texts)})", elements


def _parse_tuple_element(stream: TokenStream) -> tuple[str, str, TypeRef]:
    label = ""
    first, second = stream.peek(), stream.peek(1)
    if first.kind is TokenKind.IDENTIFIER and second.is_(":"):
        label = f"{first.value}: "
        stream.advance()
        stream.advance()
    elif (
        first.kind is TokenKind.IDENTIFIER
        and second.kind is TokenKind.IDENTIFIER
        and stream.peek(2).is_(":")
    ):
        label = f"{first.value} {second.value}: "
        for _ in range(3):
            stream.advance()

    type_ref = parse_type(stream)
    element = type_ref.declared
    if stream.accept("..."):
        element += "..."
    return label + element, label, type_ref


def join_tokens(tokens) -> str:
    """Render a token run as text with Swift-like spacing."""
    text = ""
    previous = None
    for token in tokens:
        value = token.value
        if previous is not None and _space_between(previous, value):
            text += " "
        text += value
        previous = value
    return text


def _space_between(previous: str, current: str) -> bool:
    if current in (",", ":", ")", "]", ">", ".", "?", "!", "...") or previous in ("(", "[", "<", ".", "@"):
        return False
    if current in ("(", "<", "[") and previous not in (",", ":", "=", "->", "&"):
        return False
    return True
