"""
PostgreSQL row source over the repository triple store.

The store keeps resources in three tables:
- identifiers(id, ids): all identifiers (URIs) of a resource
- metadata(id, property, type, lang, value, value_n): literal values
- relations(id, target_id, property): resource-to-resource links

Inheritance chains are computed in the database with recursive CTEs.
Values that may be stored either as a literal or as a link (rdfs:range,
rdfs:domain, owl:onProperty, ...) are read from both tables and returned as
URI strings.
"""

import json
import logging
from typing import Any, Optional

import psycopg2
from psycopg2.extensions import connection as PgConnection
from rdflib.namespace import OWL, RDF, RDFS

from ..config import SchemaConfig, get_dsn
from ..errors import SourceError
from .rows import Annotation, ClassRow, PropertyRow, RestrictionRow, pick_uri

logger = logging.getLogger(__name__)

MAX_DEPTH = 50  # Inheritance depth limit (guards against subClassOf cycles)
QUERY_TIMEOUT_SEC = 30  # Per-query timeout


# === SQL ===

# Literal-or-link values of the given properties as (id, property, value)
_VALUES_CTE = """
    vals(id, property, value) AS (
        SELECT id, property, value
        FROM metadata
        WHERE property = ANY(%(value_props)s)
      UNION
        SELECT r.id, r.property, i.ids
        FROM
            relations r
            JOIN identifiers i ON i.id = r.target_id AND NOT coalesce(i.ids LIKE %(skip)s, false)
        WHERE r.property = ANY(%(value_props)s)
    )
"""

# Reified owl:Axiom annotations pointing at a resource
_ANNOTATIONS_CTE = """
    ann(id, annotations) AS (
        SELECT
            src.target_id,
            json_agg(json_build_object('property', m.property, 'value', m.value, 'lang', m.lang))
        FROM
            relations src
            JOIN metadata m ON m.id = src.id AND m.property <> ALL(%(axiom_props)s)
        WHERE src.property = %(annotated_source)s
        GROUP BY 1
    )
"""

_LABELS_SELECT = """
    (
        SELECT json_object_agg(coalesce(l.lang, ''), l.value)
        FROM metadata l
        WHERE l.id = e.id AND l.property = %(label)s
    ) AS label,
    (
        SELECT json_object_agg(coalesce(c.lang, ''), c.value)
        FROM metadata c
        WHERE c.id = e.id AND c.property = %(comment)s
    ) AS comment,
    (
        SELECT json_agg(i.ids ORDER BY i.ids)
        FROM identifiers i
        WHERE i.id = e.id AND NOT coalesce(i.ids LIKE %(skip)s, false)
    ) AS ids,
    ann.annotations
"""

CLASSES_QUERY = f"""
    WITH RECURSIVE t(sid, id, n) AS (
        SELECT DISTINCT id, id, 0
        FROM metadata
        WHERE property = %(rdf_type)s AND value = %(owl_class)s
      UNION
        SELECT r.target_id, t.id, t.n + 1
        FROM
            relations r
            JOIN t ON t.sid = r.id AND r.property = %(sub_class_of)s
        WHERE t.n < %(max_depth)s
    ),
    dist AS (
        SELECT id, sid, min(n) AS n
        FROM t
        WHERE EXISTS (
            SELECT 1 FROM metadata mc
            WHERE mc.id = t.sid AND mc.property = %(rdf_type)s AND mc.value = %(owl_class)s
        )
        GROUP BY 1, 2
    ),
    {_ANNOTATIONS_CTE},
    e AS (
        SELECT d.id, json_agg(i.ids ORDER BY d.n DESC, i.ids) AS classes
        FROM
            dist d
            JOIN identifiers i ON i.id = d.sid AND NOT coalesce(i.ids LIKE %(skip)s, false)
        GROUP BY 1
    )
    SELECT e.id, e.classes, {_LABELS_SELECT}
    FROM
        e
        LEFT JOIN ann ON ann.id = e.id
    ORDER BY e.id
"""

PROPERTIES_QUERY = f"""
    WITH RECURSIVE t(sid, id, n) AS (
        SELECT DISTINCT id, id, 0
        FROM metadata
        WHERE property = %(rdf_type)s AND value = ANY(%(property_types)s)
      UNION
        SELECT r.target_id, t.id, t.n + 1
        FROM
            relations r
            JOIN t ON t.sid = r.id AND r.property = %(sub_property_of)s
        WHERE t.n < %(max_depth)s
    ),
    dist AS (
        SELECT id, sid, min(n) AS n
        FROM t
        GROUP BY 1, 2
    ),
    {_VALUES_CTE},
    {_ANNOTATIONS_CTE},
    e AS (
        SELECT d.id, json_agg(i.ids ORDER BY d.n, i.ids) AS properties
        FROM
            dist d
            JOIN identifiers i ON i.id = d.sid AND NOT coalesce(i.ids LIKE %(skip)s, false)
        GROUP BY 1
    )
    SELECT
        e.id,
        e.properties,
        (
            SELECT min(m.value) FROM metadata m
            WHERE m.id = e.id AND m.property = %(rdf_type)s AND m.value = ANY(%(property_types)s)
        ) AS type,
        (SELECT json_agg(DISTINCT v.value) FROM vals v WHERE v.id = e.id AND v.property = %(range)s) AS range,
        (SELECT json_agg(DISTINCT v.value) FROM vals v WHERE v.id = e.id AND v.property = %(domain)s) AS domain,
        (
            SELECT json_agg(DISTINCT v.value) FROM vals v
            WHERE v.id = e.id AND v.property = %(recommended)s
        ) AS recommended,
        (
            SELECT coalesce(min(m.value_n)::text, min(m.value)) FROM metadata m
            WHERE m.id = e.id AND m.property = %(order)s
        ) AS "order",
        (SELECT min(m.value) FROM metadata m WHERE m.id = e.id AND m.property = %(lang_tag)s) AS langtag,
        (SELECT min(v.value) FROM vals v WHERE v.id = e.id AND v.property = %(vocabs)s) AS vocabs,
        {_LABELS_SELECT}
    FROM
        e
        LEFT JOIN ann ON ann.id = e.id
    ORDER BY e.id
"""

RESTRICTIONS_QUERY = f"""
    WITH {_VALUES_CTE},
    e AS (
        SELECT DISTINCT id
        FROM metadata
        WHERE property = %(rdf_type)s AND value = %(owl_restriction)s
    )
    SELECT
        e.id,
        (
            SELECT json_agg(i.ids ORDER BY i.ids) FROM identifiers i
            WHERE i.id = e.id AND NOT coalesce(i.ids LIKE %(skip)s, false)
        ) AS ids,
        (
            SELECT json_agg(i.ids ORDER BY i.ids) FROM identifiers i
            WHERE i.id = sc.id AND NOT coalesce(i.ids LIKE %(skip)s, false)
        ) AS class_ids,
        (SELECT json_agg(v.value) FROM vals v WHERE v.id = e.id AND v.property = %(on_property)s) AS on_property,
        (SELECT json_agg(v.value) FROM vals v WHERE v.id = e.id AND v.property = %(on_class)s) AS on_class,
        (
            SELECT json_agg(v.value) FROM vals v
            WHERE v.id = e.id AND v.property = %(on_data_range)s
        ) AS on_data_range,
        (SELECT min(m.value) FROM metadata m WHERE m.id = e.id AND m.property = %(card)s) AS card,
        (SELECT min(m.value) FROM metadata m WHERE m.id = e.id AND m.property = %(min_card)s) AS min_card,
        (SELECT min(m.value) FROM metadata m WHERE m.id = e.id AND m.property = %(max_card)s) AS max_card,
        (SELECT min(m.value) FROM metadata m WHERE m.id = e.id AND m.property = %(q_card)s) AS q_card,
        (SELECT min(m.value) FROM metadata m WHERE m.id = e.id AND m.property = %(min_q_card)s) AS min_q_card,
        (SELECT min(m.value) FROM metadata m WHERE m.id = e.id AND m.property = %(max_q_card)s) AS max_q_card
    FROM
        e
        JOIN relations sc ON sc.target_id = e.id AND sc.property = %(sub_class_of)s
    ORDER BY sc.id, e.id
"""

TIMESTAMP_QUERY = """
    SELECT max(value)
    FROM metadata
    WHERE property = %s
"""


# === JSON COLUMN DECODING ===
# psycopg2 decodes json columns itself; string values are decoded here so
# the mapping also works with drivers or mocks returning raw text.


def _json_list(value: Any) -> list[str]:
    """Decode a json array column into a list of non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        value = json.loads(value)
    if not isinstance(value, list):
        value = [value]
    return [str(v) for v in value if v is not None and v != ""]


def _json_object(value: Any) -> dict[str, str]:
    """Decode a json object column (language -> text)."""
    if value is None:
        return {}
    if isinstance(value, str):
        value = json.loads(value)
    if not isinstance(value, dict):
        raise ValueError(f"expected a JSON object, got {type(value).__name__}")
    return {str(k): str(v) for k, v in value.items() if v is not None}


def _json_annotations(value: Any) -> list[Annotation]:
    """Decode the reified axiom annotations column."""
    if value is None:
        return []
    if isinstance(value, str):
        value = json.loads(value)
    return [
        Annotation(property=a["property"], value=a["value"], lang=a.get("lang") or None)
        for a in value
        if a.get("property") and a.get("value") is not None
    ]


# === SOURCE ===


class PostgresSource:
    """
    Loads class, property and restriction rows from the repository database.

    Usage:
        conn = get_connection()
        source = PostgresSource(conn, load_schema_config("config/arche.yaml"))
        ontology = Ontology.from_source(source)
    """

    def __init__(self, conn: PgConnection, schema: SchemaConfig):
        self.conn = conn
        self.schema = schema

    def _params(self) -> dict[str, Any]:
        """Query parameters shared by all queries."""
        s = self.schema
        params = {
            "skip": s.skip_pattern,
            "max_depth": MAX_DEPTH,
            "rdf_type": str(RDF.type),
            "owl_class": str(OWL.Class),
            "owl_restriction": str(OWL.Restriction),
            "property_types": [str(OWL.DatatypeProperty), str(OWL.ObjectProperty)],
            "sub_class_of": str(RDFS.subClassOf),
            "sub_property_of": str(RDFS.subPropertyOf),
            "range": str(RDFS.range),
            "domain": str(RDFS.domain),
            "on_property": str(OWL.onProperty),
            "on_class": str(OWL.onClass),
            "on_data_range": str(OWL.onDataRange),
            "card": str(OWL.cardinality),
            "min_card": str(OWL.minCardinality),
            "max_card": str(OWL.maxCardinality),
            "q_card": str(OWL.qualifiedCardinality),
            "min_q_card": str(OWL.minQualifiedCardinality),
            "max_q_card": str(OWL.maxQualifiedCardinality),
            "annotated_source": str(OWL.annotatedSource),
            "axiom_props": [
                str(RDF.type),
                str(OWL.annotatedSource),
                str(OWL.annotatedProperty),
                str(OWL.annotatedTarget),
            ],
            "label": s.label_property,
            "comment": s.comment_property,
            # Unconfigured annotation properties match nothing
            "order": s.order_property or "",
            "lang_tag": s.lang_tag_property or "",
            "vocabs": s.vocabs_property or "",
            "recommended": s.recommended_class_property or "",
        }
        params["value_props"] = [
            params[key]
            for key in (
                "range",
                "domain",
                "recommended",
                "vocabs",
                "on_property",
                "on_class",
                "on_data_range",
            )
            if params[key]
        ]
        return params

    def _fetch(self, query: str, params) -> list[dict[str, Any]]:
        """Run a query returning rows as dicts."""
        try:
            with self.conn.cursor() as cur:
                cur.execute(f"SET statement_timeout = '{QUERY_TIMEOUT_SEC * 1000}'")
                cur.execute(query, params)
                col_names = [desc[0] for desc in cur.description]
                rows = cur.fetchall()
        except psycopg2.Error as e:
            raise SourceError(f"ontology query failed: {e}") from e
        return [dict(zip(col_names, row)) for row in rows]

    def load_classes(self) -> list[ClassRow]:
        """Load owl:Class rows with their superclass chains (most distant first)."""
        ns = self.schema.ontology_namespace
        rows = []
        for r in self._fetch(CLASSES_QUERY, self._params()):
            try:
                ids = _json_list(r["ids"])
                rows.append(
                    ClassRow(
                        id=r["id"],
                        uri=pick_uri(ids, ns),
                        ancestors=_json_list(r["classes"]),
                        label=_json_object(r["label"]),
                        comment=_json_object(r["comment"]),
                        annotations=_json_annotations(r["annotations"]),
                    )
                )
            except (ValueError, KeyError, TypeError) as e:
                raise SourceError(f"malformed class row {r.get('id')!r}: {e}") from e
        logger.debug("Loaded %d class rows", len(rows))
        return rows

    def load_properties(self) -> list[PropertyRow]:
        """Load datatype and object property rows with their superproperty chains."""
        ns = self.schema.ontology_namespace
        rows = []
        for r in self._fetch(PROPERTIES_QUERY, self._params()):
            try:
                ids = _json_list(r["ids"])
                rows.append(
                    PropertyRow(
                        id=r["id"],
                        uri=pick_uri(ids, ns),
                        ancestors=_json_list(r["properties"]),
                        type=r["type"],
                        range=_json_list(r["range"]),
                        domain=pick_uri(_json_list(r["domain"]), ns),
                        order=float(r["order"]) if r["order"] is not None else None,
                        lang_tag=r["langtag"],
                        vocabulary_uri=r["vocabs"] or None,
                        recommended_classes=_json_list(r["recommended"]),
                        label=_json_object(r["label"]),
                        comment=_json_object(r["comment"]),
                        annotations=_json_annotations(r["annotations"]),
                    )
                )
            except (ValueError, KeyError, TypeError) as e:
                raise SourceError(f"malformed property row {r.get('id')!r}: {e}") from e
        logger.debug("Loaded %d property rows", len(rows))
        return rows

    def load_restrictions(self) -> list[RestrictionRow]:
        """Load one row per (class, owl:Restriction) pair."""
        ns = self.schema.ontology_namespace
        rows = []
        for r in self._fetch(RESTRICTIONS_QUERY, self._params()):
            try:
                rows.append(
                    RestrictionRow(
                        id=r["id"],
                        uri=pick_uri(_json_list(r["ids"]), ns),
                        class_uri=pick_uri(_json_list(r["class_ids"]), ns),
                        on_property=pick_uri(_json_list(r["on_property"]), ns),
                        on_class=pick_uri(_json_list(r["on_class"]), ns),
                        on_data_range=pick_uri(_json_list(r["on_data_range"]), ns),
                        cardinality=r["card"],
                        min_cardinality=r["min_card"],
                        max_cardinality=r["max_card"],
                        qualified_cardinality=r["q_card"],
                        min_qualified_cardinality=r["min_q_card"],
                        max_qualified_cardinality=r["max_q_card"],
                    )
                )
            except (ValueError, KeyError, TypeError) as e:
                raise SourceError(f"malformed restriction row {r.get('id')!r}: {e}") from e
        logger.debug("Loaded %d restriction rows", len(rows))
        return rows

    def fetch_timestamp(self) -> Optional[str]:
        """
        Latest value of the configured timestamp property.

        Used to detect ontology changes; None when no timestamp property is
        configured or no value is stored.
        """
        if not self.schema.timestamp_property:
            return None
        rows = self._fetch(TIMESTAMP_QUERY, (self.schema.timestamp_property,))
        value = next(iter(rows[0].values())) if rows else None
        return str(value) if value is not None else None


def get_connection(dsn: str | None = None) -> PgConnection:
    """
    Get a PostgreSQL connection to the repository database.

    Args:
        dsn: libpq connection string; defaults to the ARCHE_ONTOLOGY_DSN
            environment variable

    Returns:
        PostgreSQL connection

    Raises:
        ConfigError: If no DSN is available
        SourceError: If the connection fails
    """
    try:
        return psycopg2.connect(get_dsn(dsn))
    except psycopg2.Error as e:
        raise SourceError(f"cannot connect to the repository database: {e}") from e
