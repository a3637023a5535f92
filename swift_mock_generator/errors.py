"""Exceptions raised while generating mocks."""


class MockGenerationError(Exception):
    """Base class for errors attributable to one interface."""

    kind = "error"

    def __init__(
        self,
        message: str,
        interface: str | None = None,
        method: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.interface = interface
        self.method = method

    def __str__(self) -> str:
        location = ".".join(p for p in (self.interface, self.method) if p)
        if location:
            return f"{location}: {self.message}"
        return self.message


class ParseError(MockGenerationError):
    """Declaration text does not decompose into a protocol and its members."""

    kind = "parse_error"

    def __init__(
        self,
        message: str,
        interface: str | None = None,
        method: str | None = None,
        line: int | None = None,
    ):
        super().__init__(message, interface=interface, method=method)
        self.line = line

    def __str__(self) -> str:
        text = super().__str__()
        if self.line is not None:
            return f"{text} (line {self.line})"
        return text


class InvalidSignature(MockGenerationError):
    """A parsed method signature is semantically inconsistent."""

    kind = "invalid_signature"


class NamingCollisionError(MockGenerationError):
    """Two generated members would end up with the same name."""

    kind = "naming_collision"


class StubNotSetError(RuntimeError):
    """A stubbed result was read before the test assigned it."""

    def __init__(self, field_name: str):
        super().__init__(f"{field_name} was read before it was assigned")
        self.field_name = field_name
