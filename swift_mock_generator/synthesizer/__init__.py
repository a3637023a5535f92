"""Mock synthesis from parsed protocol declarations."""

from swift_mock_generator.synthesizer.artifact import (
    UNIT_PLACEHOLDER,
    MockArtifact,
    MockMethod,
    MockProperty,
    ParametersHolder,
    StubbedResult,
    TupleField,
)
from swift_mock_generator.synthesizer.naming import unique_method_names
from swift_mock_generator.synthesizer.synthesizer import merge_inherited, synthesize

__all__ = [
    # Artifact
    "MockArtifact",
    "MockMethod",
    "MockProperty",
    "ParametersHolder",
    "StubbedResult",
    "TupleField",
    "UNIT_PLACEHOLDER",
    # Synthesis
    "synthesize",
    "merge_inherited",
    "unique_method_names",
]
