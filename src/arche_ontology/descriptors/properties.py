"""
Property descriptors.

A PropertyDescriptor exists once at ontology level (the template built from
the property row) and once per class the property applies to. The per-class
copies are independent clones, since restrictions apply to a
{property, class} pair.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import ClassVar, Mapping, Optional

from ..errors import MalformedRowError
from ..sources.rows import PropertyRow
from .base import AnnotationRule, LocalizedText, MergeMode, localized, parse_bool
from .concepts import ConceptDescriptor


@dataclass
class PropertyDescriptor(LocalizedText):
    """Effective description of a property, possibly scoped to a class."""

    type: Optional[str] = None
    properties: list[str] = field(default_factory=list)  # self first, then superproperties
    range: list[str] = field(default_factory=list)
    domain: Optional[str] = None
    min: Optional[int] = None
    max: Optional[int] = None
    order: Optional[float] = None
    recommended: bool = False
    recommended_classes: list[str] = field(default_factory=list)
    lang_tag: bool = False
    vocabulary_uri: Optional[str] = None
    vocabulary_values: Optional[Mapping[str, ConceptDescriptor]] = None

    ANNOTATIONS: ClassVar[dict[str, AnnotationRule]] = {
        **LocalizedText.ANNOTATIONS,
        "range": AnnotationRule("range", MergeMode.APPEND),
        "domain": AnnotationRule("domain", MergeMode.OVERWRITE),
        "order": AnnotationRule("order", MergeMode.OVERWRITE, float),
        "ordering": AnnotationRule("order", MergeMode.OVERWRITE, float),
        "langTag": AnnotationRule("lang_tag", MergeMode.OVERWRITE, parse_bool),
        "vocabs": AnnotationRule("vocabulary_uri", MergeMode.OVERWRITE),
        "recommendedClass": AnnotationRule("recommended_classes", MergeMode.APPEND),
    }

    def get_vocabulary_values(self) -> list[ConceptDescriptor]:
        """Distinct concepts of the controlled vocabulary."""
        seen: set[int] = set()
        result = []
        for concept in (self.vocabulary_values or {}).values():
            if id(concept) not in seen:
                seen.add(id(concept))
                result.append(concept)
        return result

    def publish_vocabulary_values(self, values: Mapping[str, ConceptDescriptor]) -> None:
        """
        Attach vocabulary concepts.

        The only mutation allowed after resolution. A new read-only mapping
        is published with a single assignment, so concurrent readers see
        either the old or the new mapping.
        """
        self.vocabulary_values = MappingProxyType(dict(values))

    def clone(self) -> "PropertyDescriptor":
        """
        Independent value copy of this descriptor.

        Containers are copied; concepts are immutable and stay shared.
        """
        return replace(
            self,
            label=dict(self.label),
            comment=dict(self.comment),
            properties=list(self.properties),
            range=list(self.range),
            recommended_classes=list(self.recommended_classes),
        )

    @classmethod
    def from_row(cls, row: PropertyRow) -> "PropertyDescriptor":
        """
        Map a property row onto a descriptor.

        Raises:
            MalformedRowError: If the row has no URI or an invalid order hint
        """
        if not row.uri:
            raise MalformedRowError("property", row.id, "missing property URI")
        ancestors = list(row.ancestors) or [row.uri]
        if ancestors[0] != row.uri:
            ancestors = [row.uri] + [a for a in ancestors if a != row.uri]
        try:
            order = float(row.order) if row.order is not None else None
        except (TypeError, ValueError) as e:
            raise MalformedRowError("property", row.uri, f"invalid order hint {row.order!r}") from e

        desc = cls(
            uri=row.uri,
            id=row.id,
            label=localized(row.label),
            comment=localized(row.comment),
            type=row.type,
            properties=ancestors,
            range=[r for r in dict.fromkeys(row.range) if r],
            domain=row.domain or None,
            order=order,
            lang_tag=parse_bool(row.lang_tag),
            vocabulary_uri=row.vocabulary_uri or None,
            recommended_classes=list(dict.fromkeys(row.recommended_classes)),
        )
        try:
            desc.apply_annotations(row.annotations)
        except (TypeError, ValueError) as e:
            raise MalformedRowError("property", row.uri, f"invalid annotation: {e}") from e
        return desc
