"""
Read-only ontology facade.

Wraps a resolved set of descriptors and answers the questions metadata
validation needs:
- is an instance of the given types also an instance of class X?
- what does property P look like for an instance of these classes?

Lookups are pure reads and never raise on unknown input. The only state
changed after construction is `PropertyDescriptor.vocabulary_values`, set by
fetch_vocabularies().
"""

import logging
from datetime import timedelta
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional, Union

from rdflib.namespace import RDF
from rdflib.resource import Resource

from .descriptors import ClassDescriptor, PropertyDescriptor
from .resolver import ResolvedOntology, resolve
from .sources.rows import ClassRow, OntologySource, PropertyRow, RestrictionRow
from .vocabularies import (
    EnrichmentResult,
    VocabularyFetcher,
    enrich_vocabularies,
    load_cache_file,
    store_cache_file,
)

logger = logging.getLogger(__name__)

# A class URI, several class URIs or an RDF resource (its rdf:type values)
ClassContext = Union[str, Iterable[str], Resource, None]


def _types_of(context: ClassContext) -> list[str]:
    """Class URIs of a lookup context, in caller order."""
    if context is None:
        return []
    if isinstance(context, Resource):
        return [str(t) for t in context.graph.objects(context.identifier, RDF.type)]
    if isinstance(context, str):
        return [context] if context else []
    return [str(c) for c in context]


class Ontology:
    """
    Resolved ontology.

    Usage:
        ontology = Ontology.from_source(PostgresSource(conn, schema))

        ontology.is_a(["https://vocabs.acdh.oeaw.ac.at/schema#Collection"],
                      "https://vocabs.acdh.oeaw.ac.at/schema#RepoObject")
        prop = ontology.get_property(resource, "https://vocabs.acdh.oeaw.ac.at/schema#hasTitle")
    """

    def __init__(self, resolved: ResolvedOntology):
        self._classes = resolved.classes
        self._properties = resolved.properties

    @classmethod
    def from_rows(
        cls,
        class_rows: Iterable[ClassRow],
        property_rows: Iterable[PropertyRow],
        restriction_rows: Iterable[RestrictionRow],
    ) -> "Ontology":
        """Resolve rows into an ontology. Raises MalformedRowError on bad rows."""
        ontology = cls(resolve(class_rows, property_rows, restriction_rows))
        logger.info(
            "Ontology built: %d classes, %d properties",
            len(ontology._classes),
            len(ontology._properties),
        )
        return ontology

    @classmethod
    def from_source(cls, source: OntologySource) -> "Ontology":
        """
        Load rows from a source and resolve them.

        Raises:
            SourceError: If the source cannot be read
            MalformedRowError: If a row cannot be mapped
        """
        return cls.from_rows(
            source.load_classes(),
            source.load_properties(),
            source.load_restrictions(),
        )

    # === LOOKUPS ===

    @property
    def classes(self) -> Mapping[str, ClassDescriptor]:
        """All classes by URI (read-only)."""
        return MappingProxyType(self._classes)

    @property
    def properties(self) -> Mapping[str, PropertyDescriptor]:
        """Ontology-wide property descriptors by URI (read-only)."""
        return MappingProxyType(self._properties)

    def is_a(self, instance: ClassContext, target: str) -> bool:
        """
        Check if an instance of the given types is an instance of `target`.

        Args:
            instance: Type URI(s) of the instance or an RDF resource
            target: Class URI

        Returns:
            True if `target` is one of the types or an ancestor of a known one
        """
        target = str(target)
        for t in _types_of(instance):
            if t == target:
                return True
            desc = self._classes.get(t)
            if desc is not None and target in desc.classes:
                return True
        return False

    def get_class(self, uri: str) -> Optional[ClassDescriptor]:
        """Get a class by URI, None if unknown."""
        return self._classes.get(str(uri))

    def get_property(
        self, context: ClassContext, property_uri: str
    ) -> Optional[PropertyDescriptor]:
        """
        Get the effective description of a property.

        With a class context, the first class (in the given order) having the
        property wins. Without one, or when no listed class has it, the
        ontology-wide descriptor is returned.

        Args:
            context: None, a class URI, class URIs or an RDF resource
            property_uri: Property URI

        Returns:
            PropertyDescriptor, or None if the property is unknown
        """
        property_uri = str(property_uri)
        for t in _types_of(context):
            desc = self._classes.get(t)
            if desc is not None and property_uri in desc.properties:
                return desc.properties[property_uri]
        return self._properties.get(property_uri)

    def iter_property_descriptors(self) -> Iterator[PropertyDescriptor]:
        """Every property descriptor: ontology-wide ones, then class-scoped clones."""
        yield from self._properties.values()
        for c in self._classes.values():
            yield from c.get_properties()

    # === VOCABULARIES ===

    def fetch_vocabularies(
        self,
        cache_file: Optional[Path | str] = None,
        valid_for: timedelta | float | int = 0,
        fetcher: Optional[VocabularyFetcher] = None,
    ) -> EnrichmentResult:
        """
        Fill `vocabulary_values` of properties with a controlled vocabulary.

        The cache file is read first and rewritten when something was
        fetched or it did not exist yet. Failures are logged, never raised.

        Args:
            cache_file: JSON cache file (None disables the file cache)
            valid_for: Cache validity (timedelta or seconds)
            fetcher: Vocabulary fetcher; a default one is used if None

        Returns:
            EnrichmentResult with the snapshot and per-vocabulary statuses
        """
        snapshot = load_cache_file(cache_file) if cache_file else None
        result = enrich_vocabularies(self, snapshot, valid_for, fetcher)
        if cache_file and (result.fetched or not Path(cache_file).exists()):
            try:
                store_cache_file(cache_file, result.snapshot)
            except OSError as e:
                logger.warning("Cannot write vocabulary cache %s: %s", cache_file, e)
        return result

    def __repr__(self) -> str:
        return f"Ontology(classes={len(self._classes)}, properties={len(self._properties)})"


def load_ontology(source: OntologySource) -> Ontology:
    """
    Load and resolve an ontology from a row source.

    Args:
        source: PostgresSource, GraphSource or any OntologySource

    Returns:
        Ontology
    """
    return Ontology.from_source(source)
