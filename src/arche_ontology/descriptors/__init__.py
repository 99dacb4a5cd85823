"""
Descriptor types for ontology entities.

- base: localized label/comment lookup, annotation merging, URI selection
- classes: ClassDescriptor with its effective property set
- properties: PropertyDescriptor (ontology-wide template or class-scoped clone)
- restrictions: RestrictionDescriptor and cardinality normalization
- concepts: ConceptDescriptor for SKOS vocabulary values
"""

from .base import (
    DEFAULT_LANG,
    AnnotationRule,
    LocalizedText,
    MergeMode,
    local_name,
    pick_uri,
)
from .classes import ClassDescriptor
from .concepts import ConceptDescriptor
from .properties import PropertyDescriptor
from .restrictions import RestrictionDescriptor, resolve_cardinality

__all__ = [
    # Base
    "DEFAULT_LANG",
    "AnnotationRule",
    "LocalizedText",
    "MergeMode",
    "local_name",
    "pick_uri",
    # Descriptors
    "ClassDescriptor",
    "ConceptDescriptor",
    "PropertyDescriptor",
    "RestrictionDescriptor",
    "resolve_cardinality",
]
