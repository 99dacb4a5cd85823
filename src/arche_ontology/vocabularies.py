"""
Controlled vocabulary enrichment.

Properties pointing at an external SKOS vocabulary get their
`vocabulary_values` filled with the vocabulary's concepts. Enrichment is
best effort: a vocabulary that cannot be fetched is logged and skipped, and
the pass itself never raises.

The decision what to fetch is a pure function (plan_vocabularies) over a
cache snapshot; network and file I/O stay in VocabularyFetcher and the
cache file helpers.

Cache blob layout:

    {vocabulary URI: {concept URI: {"label": {lang: str}, "comment": {lang: str}}}}
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

import httpx
from rdflib import Graph, URIRef
from rdflib.namespace import RDF, SKOS

from .descriptors import ConceptDescriptor
from .errors import VocabularyFetchError

if TYPE_CHECKING:
    from .ontology import Ontology

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "text/turtle, application/rdf+xml;q=0.9, application/n-triples;q=0.8"
DEFAULT_TIMEOUT_SEC = 30.0

# Response content type -> rdflib parser
CONTENT_TYPE_FORMATS = {
    "text/turtle": "turtle",
    "application/x-turtle": "turtle",
    "application/rdf+xml": "xml",
    "application/xml": "xml",
    "text/xml": "xml",
    "application/n-triples": "nt",
    "text/plain": "nt",
    "text/n3": "n3",
    "application/ld+json": "json-ld",
}


class VocabularyStatus(Enum):
    """Outcome for one vocabulary in an enrichment pass."""

    HIT = "hit"  # served from a valid cache snapshot
    MISS = "miss"  # needs fetching
    FETCHED = "fetched"
    FAILED = "failed"


Concepts = dict[str, ConceptDescriptor]


def _as_timedelta(valid_for: timedelta | float | int) -> timedelta:
    if isinstance(valid_for, timedelta):
        return valid_for
    return timedelta(seconds=valid_for)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CacheSnapshot:
    """Fetched vocabularies and the time they were cached."""

    vocabularies: dict[str, Concepts] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)

    def is_valid(self, valid_for: timedelta | float | int, now: Optional[datetime] = None) -> bool:
        """Check if the snapshot is younger than `valid_for`. Zero never is."""
        valid_for = _as_timedelta(valid_for)
        now = now or _utcnow()
        return valid_for > timedelta(0) and now - self.created_at < valid_for

    def to_blob(self) -> dict[str, dict[str, dict[str, dict[str, str]]]]:
        """JSON-serializable cache representation."""
        return {
            vocab: {uri: concept.to_dict() for uri, concept in concepts.items()}
            for vocab, concepts in self.vocabularies.items()
        }

    @classmethod
    def from_blob(cls, blob: Mapping[str, Any], created_at: datetime) -> "CacheSnapshot":
        """
        Rebuild a snapshot from its cache representation.

        Raises:
            ValueError: If the blob does not have the cache layout
        """
        if not isinstance(blob, Mapping):
            raise ValueError("cache blob must be a mapping")
        vocabularies: dict[str, Concepts] = {}
        for vocab, concepts in blob.items():
            if not isinstance(concepts, Mapping):
                raise ValueError(f"vocabulary {vocab!r} must map concept URIs to concepts")
            vocabularies[vocab] = {}
            for uri, data in concepts.items():
                if not isinstance(data, Mapping):
                    raise ValueError(f"concept {uri!r} must be a mapping")
                for key in ("label", "comment"):
                    values = data.get(key) or {}
                    if not isinstance(values, Mapping) or not all(
                        isinstance(k, str) and isinstance(v, str) for k, v in values.items()
                    ):
                        raise ValueError(f"concept {uri!r}: {key} must map languages to strings")
                vocabularies[vocab][uri] = ConceptDescriptor.from_dict(uri, data)
        return cls(vocabularies=vocabularies, created_at=created_at)


def plan_vocabularies(
    snapshot: Optional[CacheSnapshot],
    needed: Iterable[str],
    valid_for: timedelta | float | int,
    now: Optional[datetime] = None,
) -> dict[str, VocabularyStatus]:
    """
    Decide which vocabularies can be served from the cache.

    Args:
        snapshot: Prior cache snapshot, if any
        needed: Vocabulary URIs referenced by properties
        valid_for: Cache validity window; zero disables the cache
        now: Reference time (defaults to the current UTC time)

    Returns:
        Dict mapping each needed vocabulary to HIT or MISS
    """
    usable = snapshot is not None and snapshot.is_valid(valid_for, now)
    return {
        uri: (
            VocabularyStatus.HIT
            if usable and uri in snapshot.vocabularies
            else VocabularyStatus.MISS
        )
        for uri in needed
    }


def parse_concepts(graph: Graph) -> Concepts:
    """Extract all skos:Concept resources of a parsed vocabulary graph."""
    concepts = {}
    for node in set(graph.subjects(RDF.type, SKOS.Concept)):
        if isinstance(node, URIRef):
            concepts[str(node)] = ConceptDescriptor.from_resource(graph.resource(node))
    return concepts


class VocabularyFetcher:
    """
    Downloads SKOS vocabularies over HTTP.

    Redirects are followed; the response body is parsed by rdflib according
    to its content type.

    Usage:
        with VocabularyFetcher(timeout=10) as fetcher:
            concepts = fetcher.fetch("https://vocabs.acdh.oeaw.ac.at/rest/v1/arche_licenses/data")
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        verify: bool = False,
    ):
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=timeout,
            verify=verify,
            follow_redirects=True,
        )
        self.timeout = timeout

    def __enter__(self) -> "VocabularyFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def fetch(self, uri: str) -> Concepts:
        """
        Fetch and parse one vocabulary.

        Raises:
            VocabularyFetchError: On transport errors, non-200 responses,
                unparsable bodies or bodies without concepts
        """
        try:
            response = self.client.get(
                uri,
                headers={"Accept": ACCEPT_HEADER},
                timeout=self.timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as e:
            raise VocabularyFetchError(uri, f"request failed: {e}") from e

        if response.status_code != 200:
            raise VocabularyFetchError(uri, f"HTTP {response.status_code}")

        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        fmt = CONTENT_TYPE_FORMATS.get(content_type, "turtle")
        graph = Graph()
        try:
            graph.parse(data=response.text, format=fmt, publicID=str(response.url))
        except Exception as e:
            raise VocabularyFetchError(uri, f"cannot parse {content_type or 'body'} as {fmt}: {e}") from e

        concepts = parse_concepts(graph)
        if not concepts:
            raise VocabularyFetchError(uri, "no skos:Concept found")
        logger.info("Fetched vocabulary %s (%d concepts)", uri, len(concepts))
        return concepts


@dataclass
class EnrichmentResult:
    """Outcome of an enrichment pass."""

    snapshot: CacheSnapshot
    statuses: dict[str, VocabularyStatus]

    @property
    def fetched(self) -> bool:
        """True if at least one vocabulary was downloaded."""
        return any(s is VocabularyStatus.FETCHED for s in self.statuses.values())


def enrich_vocabularies(
    ontology: "Ontology",
    snapshot: Optional[CacheSnapshot] = None,
    valid_for: timedelta | float | int = 0,
    fetcher: Optional[VocabularyFetcher] = None,
    now: Optional[datetime] = None,
) -> EnrichmentResult:
    """
    Populate `vocabulary_values` of every property with a vocabulary.

    Each vocabulary not covered by a valid snapshot is fetched once; failures
    are logged and reported as FAILED. Never raises.

    Args:
        ontology: Resolved ontology to enrich
        snapshot: Prior cache snapshot
        valid_for: Snapshot validity window (timedelta or seconds); zero
            disables the cache
        fetcher: Fetcher to use; a default one is created and closed if None
        now: Reference time (defaults to the current UTC time)

    Returns:
        EnrichmentResult with the updated snapshot for the caller to persist
    """
    now = now or _utcnow()
    descriptors = [p for p in ontology.iter_property_descriptors() if p.vocabulary_uri]
    needed = sorted({p.vocabulary_uri for p in descriptors})
    statuses = plan_vocabularies(snapshot, needed, valid_for, now)

    valid = snapshot is not None and snapshot.is_valid(valid_for, now)
    vocabularies: dict[str, Concepts] = dict(snapshot.vocabularies) if valid else {}

    missing = [uri for uri, status in statuses.items() if status is VocabularyStatus.MISS]
    if missing:
        own_fetcher = fetcher is None
        fetcher = fetcher or VocabularyFetcher()
        try:
            for uri in missing:
                try:
                    vocabularies[uri] = fetcher.fetch(uri)
                    statuses[uri] = VocabularyStatus.FETCHED
                except VocabularyFetchError as e:
                    logger.warning("Skipping vocabulary: %s", e)
                    statuses[uri] = VocabularyStatus.FAILED
        finally:
            if own_fetcher:
                fetcher.close()

    hits = [uri for uri, status in statuses.items() if status is VocabularyStatus.HIT]
    if hits:
        logger.debug("Vocabularies served from cache: %s", ", ".join(hits))

    for p in descriptors:
        concepts = vocabularies.get(p.vocabulary_uri)
        if concepts is not None:
            p.publish_vocabulary_values(concepts)

    new_snapshot = CacheSnapshot(
        vocabularies=vocabularies,
        created_at=snapshot.created_at if valid else now,
    )
    return EnrichmentResult(snapshot=new_snapshot, statuses=statuses)


# === CACHE FILE ===


def load_cache_file(path: Path | str) -> Optional[CacheSnapshot]:
    """
    Read a cache file; its modification time is the snapshot creation time.

    Returns:
        The snapshot, or None if the file is missing, unreadable or invalid
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        created_at = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        with open(path, encoding="utf-8") as f:
            blob = json.load(f)
        return CacheSnapshot.from_blob(blob, created_at)
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Ignoring vocabulary cache %s: %s", path, e)
        return None


def store_cache_file(path: Path | str, snapshot: CacheSnapshot) -> None:
    """
    Write a snapshot to a cache file.

    The file is replaced atomically and its modification time set to the
    snapshot creation time.

    Raises:
        OSError: If the file cannot be written
    """
    path = Path(path)
    tmp = path.with_name(path.name + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(snapshot.to_blob(), f, ensure_ascii=False)
    os.replace(tmp, path)
    ts = snapshot.created_at.timestamp()
    os.utime(path, (ts, ts))
