"""
ARCHE Ontology - Resolved OWL ontology model for repository metadata.

This package loads an OWL-like ontology (classes, properties, cardinality
restrictions) from the repository database or an RDF file, resolves class
and property inheritance, folds restrictions onto inherited properties and
optionally enriches controlled-vocabulary properties with SKOS concepts.
"""

from .config import SchemaConfig, VocabularyConfig, load_config, load_schema_config
from .descriptors import (
    ClassDescriptor,
    ConceptDescriptor,
    PropertyDescriptor,
    RestrictionDescriptor,
)
from .errors import (
    ConfigError,
    MalformedRowError,
    OntologyError,
    SourceError,
    VocabularyFetchError,
)
from .ontology import Ontology, load_ontology
from .snapshot import OntologyCell
from .sources import GraphSource, PostgresSource, get_connection
from .vocabularies import (
    CacheSnapshot,
    EnrichmentResult,
    VocabularyFetcher,
    VocabularyStatus,
    enrich_vocabularies,
    plan_vocabularies,
)

__version__ = "0.1.0"

__all__ = [
    # Facade
    "Ontology",
    "OntologyCell",
    "load_ontology",
    # Descriptors
    "ClassDescriptor",
    "ConceptDescriptor",
    "PropertyDescriptor",
    "RestrictionDescriptor",
    # Sources
    "GraphSource",
    "PostgresSource",
    "get_connection",
    # Vocabularies
    "CacheSnapshot",
    "EnrichmentResult",
    "VocabularyFetcher",
    "VocabularyStatus",
    "enrich_vocabularies",
    "plan_vocabularies",
    # Configuration
    "SchemaConfig",
    "VocabularyConfig",
    "load_config",
    "load_schema_config",
    # Errors
    "ConfigError",
    "MalformedRowError",
    "OntologyError",
    "SourceError",
    "VocabularyFetchError",
]
