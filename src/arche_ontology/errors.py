"""
Exceptions raised while building an ontology.

Lookups on a built ontology never raise; vocabulary enrichment never raises
to its caller. Everything here surfaces from construction or configuration.
"""


class OntologyError(Exception):
    """Base class for ontology construction errors."""

    pass


class MalformedRowError(OntologyError):
    """Raised when a source row cannot be mapped onto a descriptor."""

    def __init__(self, kind: str, row_id, message: str):
        self.kind = kind
        self.row_id = row_id
        super().__init__(f"{kind} row {row_id!r}: {message}")


class SourceError(OntologyError):
    """Raised when the row source (database, RDF file) cannot be read."""

    pass


class ConfigError(OntologyError):
    """Raised when the schema configuration is invalid."""

    pass


class VocabularyFetchError(OntologyError):
    """Raised by the vocabulary fetcher; swallowed by the enrichment pass."""

    def __init__(self, uri: str, reason: str):
        self.uri = uri
        self.reason = reason
        super().__init__(f"vocabulary {uri}: {reason}")
