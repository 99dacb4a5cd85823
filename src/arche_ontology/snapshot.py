"""
Current-ontology cell.

Holds the ontology snapshot a process serves from and replaces it when the
underlying data changes. Snapshots are independent: a rebuild creates a new
Ontology and swaps the reference, readers holding the old one keep using it.
"""

import logging
import threading
from typing import Any, Callable, Optional

from .ontology import Ontology

logger = logging.getLogger(__name__)


class OntologyCell:
    """
    Lazily built, refreshable ontology reference.

    Args:
        builder: Callable building a new Ontology
        version: Optional callable returning a value identifying the
            current state of the data (e.g. PostgresSource.fetch_timestamp);
            a different value triggers a rebuild on the next get()

    Usage:
        source = PostgresSource(conn, schema)
        cell = OntologyCell(lambda: Ontology.from_source(source), source.fetch_timestamp)
        ontology = cell.get()
    """

    def __init__(
        self,
        builder: Callable[[], Ontology],
        version: Optional[Callable[[], Any]] = None,
    ):
        self._builder = builder
        self._version = version
        self._lock = threading.Lock()
        # (ontology, version), replaced as a whole
        self._state: tuple[Optional[Ontology], Any] = (None, None)

    @property
    def current(self) -> Optional[Ontology]:
        """The snapshot currently held, without building or refreshing."""
        return self._state[0]

    def get(self) -> Ontology:
        """
        Return the current snapshot, building or refreshing it if needed.

        A failed build propagates and leaves the previous snapshot in place.
        """
        version = self._version() if self._version is not None else None
        current, current_version = self._state
        if current is not None and version == current_version:
            return current

        with self._lock:
            # Another thread may have rebuilt meanwhile
            current, current_version = self._state
            if current is not None and version == current_version:
                return current
            ontology = self._builder()
            self._state = (ontology, version)
            logger.info("Ontology snapshot replaced (version %s)", version)
            return ontology

    def invalidate(self) -> None:
        """Force a rebuild on the next get()."""
        with self._lock:
            self._state = (None, None)
