"""Options controlling the shape and formatting of generated mocks."""

from dataclasses import dataclass


@dataclass(frozen=True)
class GeneratorOptions:
    """Generation options.

    Attributes:
        indent: Spaces per indentation level in rendered output
        public_mocks: True or False to force the access level of generated
            members; None mirrors the protocol (public/open protocols get
            public mocks)
        mock_prefix: Prepended to the protocol name to form the class name
        file_suffix: Appended to the protocol name to form the output file stem
    """

    indent: int = 4
    public_mocks: bool | None = None
    mock_prefix: str = "Mock"
    file_suffix: str = "Mock"

    def __post_init__(self):
        if self.indent < 1:
            raise ValueError(f"indent must be positive, got {self.indent}")
        if not self.mock_prefix.isidentifier():
            raise ValueError(f"mock_prefix must be an identifier, got {self.mock_prefix!r}")

    def mock_name(self, protocol_name: str) -> str:
        return f"{self.mock_prefix}{protocol_name}"

    def output_filename(self, protocol_name: str) -> str:
        return f"{protocol_name}{self.file_suffix}.swift"


DEFAULT_OPTIONS = GeneratorOptions()
