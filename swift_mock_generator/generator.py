"""Pipeline that turns protocol source text into rendered mocks."""

import asyncio
import json
import logging
import os
from collections.abc import Mapping, Sequence
from concurrent.futures import ProcessPoolExecutor
from dataclasses import asdict, dataclass

from swift_mock_generator.config import DEFAULT_OPTIONS, GeneratorOptions
from swift_mock_generator.errors import MockGenerationError, ParseError
from swift_mock_generator.models import InterfaceDeclaration
from swift_mock_generator.parser import parse_protocol, parse_protocol_source, split_protocols
from swift_mock_generator.renderer import render_mock
from swift_mock_generator.synthesizer import synthesize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceUnit:
    """A blob of Swift source handed to the generator."""

    name: str  # usually the file path; only used for reporting
    content: str


@dataclass
class GenerationError:
    """A structured failure for one interface."""

    kind: str  # "parse_error", "invalid_signature", "naming_collision"
    message: str
    interface: str | None = None
    method: str | None = None
    line: int | None = None

    @classmethod
    def from_exception(
        cls, error: MockGenerationError, interface: str | None = None
    ) -> "GenerationError":
        return cls(
            kind=error.kind,
            message=error.message,
            interface=error.interface or interface,
            method=error.method,
            line=getattr(error, "line", None),
        )

    def __str__(self) -> str:
        location = ".".join(p for p in (self.interface, self.method) if p)
        text = f"{location}: {self.message}" if location else self.message
        if self.line is not None:
            text += f" (line {self.line})"
        return text


@dataclass
class GenerationResult:
    """Outcome of generating the mock for one interface."""

    source_name: str
    interface: str | None
    mock_name: str | None = None
    output_filename: str | None = None
    output: str | None = None
    error: GenerationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization, excluding None values."""
        result = {k: v for k, v in asdict(self).items() if v is not None}
        if self.error is not None:
            result["error"] = {k: v for k, v in asdict(self.error).items() if v is not None}
        return result

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def generate_mock(content: str, options: GeneratorOptions = DEFAULT_OPTIONS) -> str:
    """Generate the mock for source declaring exactly one protocol.

    Args:
        content: Swift source text
        options: Generation options

    Returns:
        The rendered mock class

    Raises:
        ParseError: If the source does not declare exactly one valid protocol
        InvalidSignature: If a method signature is inconsistent
        NamingCollisionError: If generated field names collide
    """
    interface = parse_protocol(content)
    return render_mock(synthesize(interface, options), options)


def generate_mocks(
    content: str,
    options: GeneratorOptions = DEFAULT_OPTIONS,
    source_name: str = "<source>",
    known_protocols: Mapping[str, InterfaceDeclaration] | None = None,
) -> list[GenerationResult]:
    """Generate mocks for every protocol in a source blob.

    Each protocol is parsed and synthesized on its own, so a malformed
    protocol yields a failed result without affecting the others.

    Args:
        content: Swift source text
        options: Generation options
        source_name: Name used when reporting results
        known_protocols: Protocols declared elsewhere that may be refined here

    Returns:
        One GenerationResult per protocol, in declaration order
    """
    logger.info(f"Generating mocks for {source_name}")
    try:
        sources = split_protocols(content)
    except ParseError as e:
        logger.warning(f"Could not tokenize {source_name}: {e}")
        return [
            GenerationResult(
                source_name=source_name,
                interface=None,
                error=GenerationError.from_exception(e),
            )
        ]

    if not sources:
        logger.info(f"No protocol declarations in {source_name}")
        return []

    known: dict[str, InterfaceDeclaration] = dict(known_protocols or {})
    parsed: list[InterfaceDeclaration | GenerationResult] = []
    for source in sources:
        try:
            interface = parse_protocol_source(source)
        except MockGenerationError as e:
            logger.warning(f"Skipping protocol {source.name} in {source_name}: {e}")
            parsed.append(_failure(source_name, source.name, e, options))
            continue
        known[interface.name] = interface
        parsed.append(interface)

    results = []
    for entry in parsed:
        if isinstance(entry, GenerationResult):
            results.append(entry)
            continue
        try:
            artifact = synthesize(entry, options, known_protocols=known)
            output = render_mock(artifact, options)
        except MockGenerationError as e:
            logger.warning(f"Skipping protocol {entry.name} in {source_name}: {e}")
            results.append(_failure(source_name, entry.name, e, options))
            continue
        results.append(
            GenerationResult(
                source_name=source_name,
                interface=entry.name,
                mock_name=artifact.name,
                output_filename=options.output_filename(entry.name),
                output=output,
            )
        )

    failures = sum(1 for r in results if not r.ok)
    logger.info(
        f"Generated {len(results) - failures} mocks for {source_name}, {failures} failed"
    )
    return results


def _failure(
    source_name: str,
    interface: str,
    error: MockGenerationError,
    options: GeneratorOptions,
) -> GenerationResult:
    return GenerationResult(
        source_name=source_name,
        interface=interface,
        mock_name=options.mock_name(interface),
        error=GenerationError.from_exception(error, interface=interface),
    )


def _generate_unit(unit: SourceUnit, options: GeneratorOptions) -> list[GenerationResult]:
    """Worker entry point; must stay importable at module level."""
    return generate_mocks(unit.content, options, source_name=unit.name)


async def generate_batch(
    units: Sequence[SourceUnit],
    options: GeneratorOptions = DEFAULT_OPTIONS,
    max_workers: int | None = None,
) -> list[GenerationResult]:
    """Generate mocks for many source blobs in parallel.

    Units are independent, so they are fanned out over a process pool
    without any coordination. Results keep the order of ``units`` and,
    within a unit, declaration order.

    Args:
        units: Source blobs to process
        options: Generation options
        max_workers: Worker processes to use; defaults to the CPU count.
            Values of 1 or less process units inline.

    Returns:
        Flattened list of GenerationResult objects
    """
    if not units:
        return []

    workers = max_workers if max_workers is not None else (os.cpu_count() or 1)
    workers = min(workers, len(units))
    logger.info(f"Processing {len(units)} sources with {max(workers, 1)} workers")

    if workers <= 1:
        per_unit = [_generate_unit(unit, options) for unit in units]
    else:
        loop = asyncio.get_running_loop()
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = [
                loop.run_in_executor(executor, _generate_unit, unit, options)
                for unit in units
            ]
            per_unit = await asyncio.gather(*futures)

    return [result for results in per_unit for result in results]
