"""Swift protocol declaration parsing."""

from swift_mock_generator.parser.declaration_parser import (
    ProtocolSource,
    parse_protocol,
    parse_protocol_source,
    parse_protocols,
    split_protocols,
)
from swift_mock_generator.parser.lexer import Token, TokenKind, TokenStream, tokenize
from swift_mock_generator.parser.type_parser import parse_type

__all__ = [
    # Lexing
    "Token",
    "TokenKind",
    "TokenStream",
    "tokenize",
    # Types
    "parse_type",
    # Declarations
    "ProtocolSource",
    "split_protocols",
    "parse_protocol_source",
    "parse_protocols",
    "parse_protocol",
]
