"""
In-memory row source over an RDF graph.

Reads an ontology serialized as RDF (Turtle, RDF/XML, ...) with rdflib and
produces the same rows as the database source. The rdfs:subClassOf and
rdfs:subPropertyOf hierarchies are loaded into networkx digraphs
(child -> parent edges); inheritance chains are ordered by shortest-path
distance, ties broken by URI.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

import networkx as nx
from rdflib import BNode, Graph, Literal, URIRef
from rdflib.namespace import OWL, RDF, RDFS
from rdflib.term import Node

from ..config import SchemaConfig
from ..errors import SourceError
from .rows import Annotation, ClassRow, PropertyRow, RestrictionRow, pick_uri

logger = logging.getLogger(__name__)

PROPERTY_TYPES = (OWL.DatatypeProperty, OWL.ObjectProperty)

AXIOM_PREDICATES = {RDF.type, OWL.annotatedSource, OWL.annotatedProperty, OWL.annotatedTarget}

# (row field, OWL predicate)
CARDINALITY_PREDICATES = (
    ("cardinality", OWL.cardinality),
    ("min_cardinality", OWL.minCardinality),
    ("max_cardinality", OWL.maxCardinality),
    ("qualified_cardinality", OWL.qualifiedCardinality),
    ("min_qualified_cardinality", OWL.minQualifiedCardinality),
    ("max_qualified_cardinality", OWL.maxQualifiedCardinality),
)


def build_hierarchy(graph: Graph, predicate: URIRef) -> nx.DiGraph:
    """
    Build a child -> parent digraph from a hierarchy predicate.

    Only URI nodes take part; blank nodes (e.g. anonymous restrictions) and
    literals are left out.
    """
    g = nx.DiGraph()
    for child, parent in graph.subject_objects(predicate):
        if isinstance(child, URIRef) and isinstance(parent, URIRef) and child != parent:
            g.add_edge(str(child), str(parent))
    return g


def ancestor_distances(hierarchy: nx.DiGraph, uri: str) -> dict[str, int]:
    """Shortest-path distance from `uri` to each of its ancestors (itself at 0)."""
    if uri not in hierarchy:
        return {uri: 0}
    return dict(nx.single_source_shortest_path_length(hierarchy, uri))


class GraphSource:
    """
    Loads class, property and restriction rows from an rdflib Graph.

    Usage:
        source = GraphSource.from_file("ontology.ttl", schema)
        ontology = Ontology.from_source(source)
    """

    def __init__(self, graph: Graph, schema: Optional[SchemaConfig] = None):
        self.graph = graph
        self.schema = schema or SchemaConfig()

    @classmethod
    def from_file(
        cls,
        path: Path | str,
        schema: Optional[SchemaConfig] = None,
        format: Optional[str] = None,
    ) -> "GraphSource":
        """
        Parse an RDF file into a source.

        Args:
            path: RDF file
            schema: Schema configuration
            format: rdflib parser name; guessed from the file extension if None

        Raises:
            SourceError: If the file cannot be read or parsed
        """
        graph = Graph()
        try:
            graph.parse(str(path), format=format)
        except Exception as e:
            raise SourceError(f"cannot parse ontology file {path}: {e}") from e
        logger.debug("Parsed %d triples from %s", len(graph), path)
        return cls(graph, schema)

    # === HELPERS ===

    def _entities(self, types: Iterable[URIRef]) -> list[str]:
        found = set()
        for rdf_type in types:
            for s in self.graph.subjects(RDF.type, rdf_type):
                if isinstance(s, URIRef) and not self.schema.is_internal(str(s)):
                    found.add(str(s))
        return sorted(found)

    def _values(self, subject: Node, predicate: Optional[str]) -> list[str]:
        """All values of a predicate as strings (literal or resource form)."""
        if not predicate:
            return []
        values = {
            str(o)
            for o in self.graph.objects(subject, URIRef(predicate))
            if not isinstance(o, BNode) and not self.schema.is_internal(str(o))
        }
        return sorted(values)

    def _first(self, subject: Node, predicate: Optional[str]) -> Optional[str]:
        values = self._values(subject, predicate)
        return values[0] if values else None

    def _localized(self, subject: Node, predicate: str) -> dict[str, str]:
        result = {}
        for o in self.graph.objects(subject, URIRef(predicate)):
            if isinstance(o, Literal):
                result[o.language or ""] = str(o)
        return result

    def _annotations(self, subject: URIRef) -> list[Annotation]:
        """Values of the owl:Axiom nodes annotating `subject`."""
        annotations = []
        for axiom in self.graph.subjects(OWL.annotatedSource, subject):
            for p, o in self.graph.predicate_objects(axiom):
                if p in AXIOM_PREDICATES:
                    continue
                lang = o.language if isinstance(o, Literal) else None
                annotations.append(Annotation(property=str(p), value=str(o), lang=lang))
        return sorted(annotations, key=lambda a: (a.property, a.lang or "", a.value))

    def _is_restriction(self, node: Node) -> bool:
        return (node, RDF.type, OWL.Restriction) in self.graph or (
            isinstance(node, BNode) and (node, OWL.onProperty, None) in self.graph
        )

    # === ROWS ===

    def load_classes(self) -> list[ClassRow]:
        """Load owl:Class rows with their superclass chains (most distant first)."""
        classes = self._entities([OWL.Class])
        declared = set(classes)
        hierarchy = build_hierarchy(self.graph, RDFS.subClassOf)
        rows = []
        for uri in classes:
            node = URIRef(uri)
            distances = {
                c: n for c, n in ancestor_distances(hierarchy, uri).items() if c in declared
            }
            ancestors = sorted(distances, key=lambda c: (-distances[c], c))
            rows.append(
                ClassRow(
                    uri=uri,
                    ancestors=ancestors,
                    label=self._localized(node, self.schema.label_property),
                    comment=self._localized(node, self.schema.comment_property),
                    annotations=self._annotations(node),
                )
            )
        logger.debug("Loaded %d class rows", len(rows))
        return rows

    def load_properties(self) -> list[PropertyRow]:
        """Load datatype and object property rows with their superproperty chains."""
        s = self.schema
        ns = s.ontology_namespace
        hierarchy = build_hierarchy(self.graph, RDFS.subPropertyOf)
        rows = []
        for uri in self._entities(PROPERTY_TYPES):
            node = URIRef(uri)
            distances = {
                p: n
                for p, n in ancestor_distances(hierarchy, uri).items()
                if not s.is_internal(p)
            }
            types = sorted(str(t) for t in PROPERTY_TYPES if (node, RDF.type, t) in self.graph)
            rows.append(
                PropertyRow(
                    uri=uri,
                    ancestors=sorted(distances, key=lambda p: (distances[p], p)),
                    type=types[0] if types else None,
                    range=self._values(node, str(RDFS.range)),
                    domain=pick_uri(self._values(node, str(RDFS.domain)), ns),
                    order=self._first(node, s.order_property),
                    lang_tag=self._first(node, s.lang_tag_property) or False,
                    vocabulary_uri=self._first(node, s.vocabs_property),
                    recommended_classes=self._values(node, s.recommended_class_property),
                    label=self._localized(node, s.label_property),
                    comment=self._localized(node, s.comment_property),
                    annotations=self._annotations(node),
                )
            )
        logger.debug("Loaded %d property rows", len(rows))
        return rows

    def load_restrictions(self) -> list[RestrictionRow]:
        """Load one row per (class, owl:Restriction) pair."""
        ns = self.schema.ontology_namespace
        rows = []
        for class_uri in self._entities([OWL.Class]):
            for node in self.graph.objects(URIRef(class_uri), RDFS.subClassOf):
                if not self._is_restriction(node):
                    continue
                cardinalities = {
                    name: self._first(node, str(predicate))
                    for name, predicate in CARDINALITY_PREDICATES
                }
                rows.append(
                    RestrictionRow(
                        class_uri=class_uri,
                        on_property=pick_uri(self._values(node, str(OWL.onProperty)), ns),
                        uri=str(node) if isinstance(node, URIRef) else None,
                        on_class=self._first(node, str(OWL.onClass)),
                        on_data_range=self._first(node, str(OWL.onDataRange)),
                        **cardinalities,
                    )
                )
        # Stable order within a class regardless of blank node labels
        rows.sort(key=lambda r: (r.class_uri, r.on_property or "", r.uri or ""))
        logger.debug("Loaded %d restriction rows", len(rows))
        return rows
