"""Generate Swift mock classes from protocol declarations."""

from swift_mock_generator.config import GeneratorOptions
from swift_mock_generator.generator import generate_mock, generate_mocks

__all__ = ["GeneratorOptions", "generate_mock", "generate_mocks"]
