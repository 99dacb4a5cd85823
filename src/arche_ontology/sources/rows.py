"""
Typed row records produced by ontology sources.

Rows are the contract between a source (database, RDF graph) and the
resolver. Sources normalize literal-or-resource values into URI strings and
precompute inheritance chains; the resolver never talks to a source.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol


@dataclass(frozen=True)
class Annotation:
    """A property/value/lang side record attached to an ontology entity."""

    property: str
    value: str
    lang: Optional[str] = None


@dataclass
class ClassRow:
    """An owl:Class with its superclass chain."""

    uri: str
    ancestors: list[str]  # most distant first, the class itself last
    id: Optional[int] = None
    label: dict[str, str] = field(default_factory=dict)
    comment: dict[str, str] = field(default_factory=dict)
    annotations: list[Annotation] = field(default_factory=list)


@dataclass
class PropertyRow:
    """An owl:DatatypeProperty or owl:ObjectProperty with its superproperty chain."""

    uri: str
    ancestors: list[str]  # the property itself first, then closest superproperty
    id: Optional[int] = None
    type: Optional[str] = None  # owl:DatatypeProperty | owl:ObjectProperty
    range: list[str] = field(default_factory=list)
    domain: Optional[str] = None
    order: Optional[float | str] = None  # raw ordering hint
    lang_tag: bool | str = False  # boolean-like literal
    vocabulary_uri: Optional[str] = None
    recommended_classes: list[str] = field(default_factory=list)
    label: dict[str, str] = field(default_factory=dict)
    comment: dict[str, str] = field(default_factory=dict)
    annotations: list[Annotation] = field(default_factory=list)


@dataclass
class RestrictionRow:
    """
    An owl:Restriction applied to a class, with raw OWL cardinality values.

    Cardinalities are kept as read from the source (strings or numbers);
    RestrictionDescriptor.from_row normalizes them.
    """

    class_uri: str
    on_property: str
    uri: Optional[str] = None  # the restriction node, None for blank nodes
    id: Optional[int] = None
    on_class: Optional[str] = None  # owl:onClass
    on_data_range: Optional[str] = None  # owl:onDataRange
    cardinality: Optional[str | int] = None
    min_cardinality: Optional[str | int] = None
    max_cardinality: Optional[str | int] = None
    qualified_cardinality: Optional[str | int] = None
    min_qualified_cardinality: Optional[str | int] = None
    max_qualified_cardinality: Optional[str | int] = None


def pick_uri(ids: Iterable[str], namespace: Optional[str] = None) -> Optional[str]:
    """
    Choose the identifier to use as an entity URI.

    Args:
        ids: All identifiers of a repository resource
        namespace: Ontology namespace; identifiers within it are preferred

    Returns:
        First identifier within the namespace, else the first identifier,
        else None
    """
    ids = list(ids)
    if namespace:
        for i in ids:
            if i.startswith(namespace):
                return i
    return ids[0] if ids else None


class OntologySource(Protocol):
    """Anything able to produce the three row kinds."""

    def load_classes(self) -> list[ClassRow]: ...

    def load_properties(self) -> list[PropertyRow]: ...

    def load_restrictions(self) -> list[RestrictionRow]: ...
