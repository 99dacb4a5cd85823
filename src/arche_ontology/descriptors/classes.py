"""
Class descriptors.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from ..errors import MalformedRowError
from ..sources.rows import ClassRow
from .base import LocalizedText, localized
from .properties import PropertyDescriptor


@dataclass
class ClassDescriptor(LocalizedText):
    """An ontology class with its effective property set."""

    classes: list[str] = field(default_factory=list)  # most distant ancestor first, self last
    properties: Mapping[str, PropertyDescriptor] = field(default_factory=dict)

    def get_properties(self) -> list[PropertyDescriptor]:
        """
        Distinct property descriptors of the class.

        Ordered by the ordering hint (properties without one last), then URI.
        """
        seen: set[int] = set()
        result = []
        for prop in self.properties.values():
            if id(prop) not in seen:
                seen.add(id(prop))
                result.append(prop)
        return sorted(
            result, key=lambda p: (p.order is None, p.order if p.order is not None else 0, p.uri)
        )

    def freeze(self) -> None:
        """Make the property mapping read-only once resolution is done."""
        self.properties = MappingProxyType(dict(self.properties))

    @classmethod
    def from_row(cls, row: ClassRow) -> "ClassDescriptor":
        """
        Map a class row onto a descriptor.

        Raises:
            MalformedRowError: If the row has no URI
        """
        if not row.uri:
            raise MalformedRowError("class", row.id, "missing class URI")
        classes = [c for c in row.ancestors if c != row.uri] + [row.uri]
        desc = cls(
            uri=row.uri,
            id=row.id,
            label=localized(row.label),
            comment=localized(row.comment),
            classes=list(dict.fromkeys(classes)),
            properties={},
        )
        desc.apply_annotations(row.annotations)
        return desc
