"""
Row sources for ontology loading.

- rows: typed row records and the OntologySource protocol
- postgres: PostgresSource over the repository database
- graph: GraphSource over an rdflib Graph
"""

from .graph import GraphSource, build_hierarchy
from .postgres import PostgresSource, get_connection
from .rows import Annotation, ClassRow, OntologySource, PropertyRow, RestrictionRow

__all__ = [
    # Rows
    "Annotation",
    "ClassRow",
    "OntologySource",
    "PropertyRow",
    "RestrictionRow",
    # Sources
    "GraphSource",
    "PostgresSource",
    "build_hierarchy",
    "get_connection",
]
