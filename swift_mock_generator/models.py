"""Data models for parsed protocol declarations."""

from dataclasses import dataclass, field
from enum import Enum

from swift_mock_generator.errors import InvalidSignature

WILDCARD_LABEL = "_"


class OptionalityKind(Enum):
    """How a type is wrapped at its outermost level."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    IMPLICITLY_UNWRAPPED = "implicitly_unwrapped"

    @property
    def marker(self) -> str:
        """The Swift suffix that declares this kind."""
        return _MARKERS[self]

    @classmethod
    def from_marker(cls, marker: str) -> "OptionalityKind":
        for kind, kind_marker in _MARKERS.items():
            if kind_marker == marker:
                return kind
        raise ValueError(f"Unknown optionality marker: {marker!r}")


_MARKERS = {
    OptionalityKind.REQUIRED: "",
    OptionalityKind.OPTIONAL: "?",
    OptionalityKind.IMPLICITLY_UNWRAPPED: "!",
}


@dataclass(frozen=True)
class ClosureSignature:
    """Argument types and effects of a function type."""

    arguments: tuple["TypeRef", ...] = ()
    effects: tuple[str, ...] = ()

    @property
    def is_async(self) -> bool:
        return "async" in self.effects

    @property
    def throws(self) -> bool:
        return any(effect.startswith("throws") for effect in self.effects)


@dataclass(frozen=True)
class TypeRef:
    """A type as written in a declaration.

    The base text is opaque to the generator; only the outermost optionality
    wrapper, attributes, the inout specifier and the argument list of
    function types are interpreted.
    """

    base: str
    optionality: OptionalityKind = OptionalityKind.REQUIRED
    attributes: tuple[str, ...] = ()
    is_inout: bool = False
    needs_parens: bool = False  # function types, compositions, some/any
    closure: ClosureSignature | None = None  # set when the base is a function type

    @property
    def is_optional(self) -> bool:
        return self.optionality is not OptionalityKind.REQUIRED

    @property
    def is_closure(self) -> bool:
        return self.closure is not None

    @property
    def is_escaping(self) -> bool:
        """Whether a closure of this type may outlive the call it is passed to.

        Optional closures are implicitly escaping.
        """
        return self.is_optional or "@escaping" in self.attributes

    @property
    def is_void(self) -> bool:
        return (
            self.optionality is OptionalityKind.REQUIRED
            and self.base in ("Void", "()")
        )

    def wrapped(self, marker: str) -> str:
        """Base type followed by an optionality marker."""
        if not marker:
            return self.base
        if self.needs_parens:
            return f"({self.base}){marker}"
        return f"{self.base}{marker}"

    @property
    def text(self) -> str:
        """The type without attributes or specifiers."""
        return self.wrapped(self.optionality.marker)

    @property
    def declared(self) -> str:
        """The type exactly as it appears in a parameter or return position."""
        prefix = "".join(f"{attribute} " for attribute in self.attributes)
        if self.is_inout:
            prefix += "inout "
        return prefix + self.text

    @property
    def storage(self) -> str:
        """The type used when the value is stored in a tuple field.

        Tuple elements cannot be implicitly unwrapped, so both optional kinds
        are stored as plain optionals.
        """
        if self.is_optional:
            return self.wrapped(OptionalityKind.OPTIONAL.marker)
        return self.base

    @property
    def stub(self) -> str:
        """The type of a stubbed value that must be assigned before it is read."""
        return self.wrapped(OptionalityKind.IMPLICITLY_UNWRAPPED.marker)

    @property
    def optional(self) -> str:
        """This type wrapped in one more optional level."""
        if self.is_optional:
            return f"{self.text}?"
        return self.wrapped(OptionalityKind.OPTIONAL.marker)


@dataclass(frozen=True)
class Parameter:
    """A method parameter."""

    name: str
    type: TypeRef
    label: str | None = None  # None when the external label equals the name
    variadic: bool = False

    @property
    def external_label(self) -> str:
        return self.label if self.label is not None else self.name

    @property
    def optionality(self) -> OptionalityKind:
        return self.type.optionality

    @property
    def is_closure(self) -> bool:
        return self.type.is_closure and not self.variadic

    @property
    def is_storable(self) -> bool:
        """Non-escaping closures cannot be kept after the call returns."""
        return not self.is_closure or self.type.is_escaping

    @property
    def storage_type(self) -> str:
        if self.variadic:
            return f"[{self.type.storage}]"
        return self.type.storage

    @property
    def declaration(self) -> str:
        """The parameter as written in a function signature."""
        names = self.name
        if self.label is not None and self.label != self.name:
            names = f"{self.label} {self.name}"
        variadic = "..." if self.variadic else ""
        return f"{names}: {self.type.declared}{variadic}"


@dataclass(frozen=True)
class MethodDeclaration:
    """A method requirement of a protocol."""

    name: str
    parameters: tuple[Parameter, ...] = ()
    return_type: TypeRef | None = None  # None for Void
    generic_clause: str = ""
    where_clause: str = ""
    effects: tuple[str, ...] = ()  # e.g. ("async", "throws")
    is_static: bool = False
    line: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "parameters", tuple(self.parameters))
        object.__setattr__(self, "effects", tuple(self.effects))
        if self.return_type is not None and self.return_type.is_void:
            object.__setattr__(self, "return_type", None)
        self._validate_parameters()

    def _validate_parameters(self):
        labels: set[str] = set()
        names: set[str] = set()
        for parameter in self.parameters:
            label = parameter.external_label
            if label != WILDCARD_LABEL:
                if label in labels:
                    raise InvalidSignature(
                        f"Duplicate parameter label '{label}'", method=self.name
                    )
                labels.add(label)
            if parameter.name in names:
                raise InvalidSignature(
                    f"Duplicate parameter name '{parameter.name}'", method=self.name
                )
            names.add(parameter.name)

    @property
    def returns_void(self) -> bool:
        return self.return_type is None

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(p.external_label for p in self.parameters)

    @property
    def selector(self) -> str:
        """Swift-style selector, e.g. ``mixed(unwrapped:optional:value:)``."""
        return f"{self.name}({''.join(f'{label}:' for label in self.labels)})"

    @property
    def identity(self) -> tuple:
        """Key under which two declarations are considered the same requirement."""
        return (
            self.is_static,
            self.name,
            tuple(p.declaration for p in self.parameters),
            self.return_type.declared if self.return_type else None,
        )


@dataclass(frozen=True)
class PropertyDeclaration:
    """A property requirement of a protocol."""

    name: str
    type: TypeRef
    has_setter: bool = False
    is_static: bool = False
    line: int | None = None

    @property
    def identity(self) -> tuple:
        return (self.is_static, self.name, self.type.declared, self.has_setter)


@dataclass(frozen=True)
class AssociatedType:
    """An associated type requirement."""

    name: str
    constraint: str = ""

    @property
    def generic_parameter(self) -> str:
        if self.constraint:
            return f"{self.name}: {self.constraint}"
        return self.name


@dataclass(frozen=True)
class InterfaceDeclaration:
    """A parsed protocol with its members in declaration order."""

    name: str
    methods: tuple[MethodDeclaration, ...] = ()
    properties: tuple[PropertyDeclaration, ...] = ()
    associated_types: tuple[AssociatedType, ...] = ()
    inherited: tuple[str, ...] = ()
    access: str = ""  # "public", "open", ... or "" when implicit
    line: int | None = None
    attributes: tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self):
        for name in ("methods", "properties", "associated_types", "inherited"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(self, "attributes", tuple(self.attributes))

    @property
    def is_public(self) -> bool:
        return self.access in ("public", "open")
