"""
SKOS concept descriptors for controlled vocabularies.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from rdflib import Literal
from rdflib.namespace import RDFS, SKOS
from rdflib.resource import Resource

from .base import LabelLookup, localized, normalize_lang

# Earlier predicates win for a given language
LABEL_PREDICATES = (SKOS.prefLabel, SKOS.altLabel)
COMMENT_PREDICATES = (SKOS.definition, RDFS.comment)


def _frozen(values: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(localized(dict(values or {})))


@dataclass(frozen=True)
class ConceptDescriptor(LabelLookup):
    """A skos:Concept of a controlled vocabulary. Immutable."""

    uri: str
    label: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    comment: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        object.__setattr__(self, "label", _frozen(self.label))
        object.__setattr__(self, "comment", _frozen(self.comment))

    def __hash__(self):
        return hash(self.uri)

    @classmethod
    def from_resource(cls, resource: Resource) -> "ConceptDescriptor":
        """
        Build from a concept resource of a parsed vocabulary graph.

        Labels come from skos:prefLabel, then skos:altLabel; comments from
        skos:definition, then rdfs:comment. The first value found for a
        language is kept.
        """
        graph = resource.graph
        node = resource.identifier

        def collect(predicates) -> dict[str, str]:
            values: dict[str, str] = {}
            for predicate in predicates:
                for obj in graph.objects(node, predicate):
                    if isinstance(obj, Literal):
                        values.setdefault(normalize_lang(obj.language), str(obj))
            return values

        return cls(
            uri=str(node),
            label=collect(LABEL_PREDICATES),
            comment=collect(COMMENT_PREDICATES),
        )

    @classmethod
    def from_dict(cls, uri: str, data: Mapping[str, Any]) -> "ConceptDescriptor":
        """Build from the cache representation `{label: {...}, comment: {...}}`."""
        return cls(uri=uri, label=data.get("label") or {}, comment=data.get("comment") or {})

    def to_dict(self) -> dict[str, dict[str, str]]:
        """Cache representation of the concept."""
        return {"label": dict(self.label), "comment": dict(self.comment)}
