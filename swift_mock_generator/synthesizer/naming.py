"""Build the names of generated tracking fields.

Field names follow the ``invoked<Method>``, ``invoked<Method>Parameters``
and ``stubbed<Method>Result`` convention. Overloaded methods get a suffix
derived from their signature so that every method keeps its own fields.
"""

import logging
import re
from collections.abc import Iterable, Sequence

from swift_mock_generator.errors import NamingCollisionError
from swift_mock_generator.models import (
    WILDCARD_LABEL,
    MethodDeclaration,
    OptionalityKind,
    Parameter,
    PropertyDeclaration,
)

logger = logging.getLogger(__name__)

INVOKED_PREFIX = "invoked"
STUBBED_PREFIX = "stubbed"
PARAMETERS_SUFFIX = "Parameters"
RESULT_SUFFIX = "Result"

# Upper bound on numeric suffixes tried before giving up
MAX_ORDINAL = 100

WORD_PATTERN = re.compile(r"\w+")

OPTIONALITY_WORDS = {
    OptionalityKind.REQUIRED: "",
    OptionalityKind.OPTIONAL: "Optional",
    OptionalityKind.IMPLICITLY_UNWRAPPED: "Unwrapped",
}


def strip_backticks(name: str) -> str:
    return name.strip("`")


def capitalize(name: str) -> str:
    """Upper-case the first character only: ``unwrappedOptionals`` -> ``UnwrappedOptionals``."""
    name = strip_backticks(name)
    return name[:1].upper() + name[1:]


def invoked_flag_name(unique_name: str) -> str:
    return INVOKED_PREFIX + capitalize(unique_name)


def invoked_parameters_name(unique_name: str) -> str:
    return INVOKED_PREFIX + capitalize(unique_name) + PARAMETERS_SUFFIX


def stubbed_result_name(unique_name: str) -> str:
    return STUBBED_PREFIX + capitalize(unique_name) + RESULT_SUFFIX


def stubbed_closure_name(unique_name: str, parameter: str) -> str:
    """``stubbedRunCompletionResult`` for ``run(completion:)``."""
    return STUBBED_PREFIX + capitalize(unique_name) + capitalize(parameter) + RESULT_SUFFIX


def invoked_property_name(name: str) -> str:
    return INVOKED_PREFIX + capitalize(name)


def stubbed_property_name(name: str) -> str:
    return STUBBED_PREFIX + capitalize(name)


def method_field_names(unique_name: str) -> tuple[str, str, str]:
    """All field names a method group may use, stub included."""
    return (
        invoked_flag_name(unique_name),
        invoked_parameters_name(unique_name),
        stubbed_result_name(unique_name),
    )


def property_field_names(declaration: PropertyDeclaration) -> tuple[str, str]:
    return (
        invoked_property_name(declaration.name),
        stubbed_property_name(declaration.name),
    )


def _parameter_word(parameter: Parameter) -> str:
    label = parameter.external_label
    if label == WILDCARD_LABEL:
        label = parameter.name
    return capitalize(label)


def _type_words(text: str) -> str:
    return "".join(capitalize(word) for word in WORD_PATTERN.findall(text))


def _label_suffix(method: MethodDeclaration) -> str:
    return "".join(_parameter_word(p) for p in method.parameters)


def _type_suffix(method: MethodDeclaration) -> str:
    words = []
    for parameter in method.parameters:
        word = _parameter_word(parameter) + _type_words(parameter.type.base)
        word += OPTIONALITY_WORDS[parameter.optionality]
        if parameter.variadic:
            word += "Variadic"
        words.append(word)
    return "".join(words)


def _return_suffix(method: MethodDeclaration) -> str:
    if method.return_type is None:
        return _type_suffix(method) + "Void"
    return_type = method.return_type
    return (
        _type_suffix(method)
        + _type_words(return_type.base)
        + OPTIONALITY_WORDS[return_type.optionality]
    )


DISCRIMINATORS = (_label_suffix, _type_suffix, _return_suffix)


def _disambiguate(group: Sequence[MethodDeclaration]) -> list[str]:
    """Pick the first discriminator that separates every method in the group."""
    base = [strip_backticks(method.name) for method in group]
    if len(group) == 1:
        return base

    for discriminator in DISCRIMINATORS:
        candidates = [name + discriminator(m) for name, m in zip(base, group)]
        if len({capitalize(c) for c in candidates}) == len(candidates):
            return candidates

    # Same signature declared twice with different effects or static-ness
    return [f"{name}{_label_suffix(m)}{index}" for index, (name, m) in enumerate(zip(base, group), start=1)]


def unique_method_names(
    methods: Sequence[MethodDeclaration],
    reserved: Iterable[str] = (),
) -> list[str]:
    """Assign every method a name that yields collision-free field names.

    Methods whose name is unique keep it. Methods sharing a name are
    separated by appending, in order of preference, their capitalized
    parameter labels, labels plus type names, labels plus parameter and
    return type names, or finally a 1-based ordinal. Names are compared
    after capitalization since that is how they appear in field names.

    Args:
        methods: Method declarations in declaration order
        reserved: Field names already in use (e.g. by properties)

    Returns:
        One name per method, in the same order

    Raises:
        NamingCollisionError: If no collision-free name can be found
    """
    groups: dict[str, list[int]] = {}
    for index, method in enumerate(methods):
        groups.setdefault(capitalize(method.name), []).append(index)

    names: list[str] = [""] * len(methods)
    for key, indices in groups.items():
        group = [methods[index] for index in indices]
        for index, name in zip(indices, _disambiguate(group)):
            names[index] = name
        if len(indices) > 1:
            logger.debug(f"Disambiguated {len(indices)} overloads of {key}")

    taken = set(reserved)
    for index, name in enumerate(names):
        candidate = name
        ordinal = 1
        while not taken.isdisjoint(method_field_names(candidate)):
            ordinal += 1
            if ordinal > MAX_ORDINAL:
                raise NamingCollisionError(
                    f"Could not derive unique field names for '{name}'",
                    method=methods[index].name,
                )
            candidate = f"{name}{ordinal}"
        if candidate != name:
            logger.info(f"Renamed tracking fields of {methods[index].selector} to {candidate}")
        names[index] = candidate
        taken.update(method_field_names(candidate))

    return names
