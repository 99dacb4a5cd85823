#!/usr/bin/env python3
"""
Show resolved classes and their effective properties.

Loads the ontology from an RDF file or the repository database, resolves
inheritance and restrictions, and prints every class with the properties
that apply to it (cardinality, range, flags).

Usage:
    poetry run python scripts/show_ontology.py --ttl ontology.ttl
    poetry run python scripts/show_ontology.py --dsn "dbname=arche"
    poetry run python scripts/show_ontology.py --ttl ontology.ttl --class https://vocabs.acdh.oeaw.ac.at/schema#Collection
    poetry run python scripts/show_ontology.py --ttl ontology.ttl --vocabularies --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from arche_ontology import (
    GraphSource,
    Ontology,
    OntologyError,
    PostgresSource,
    VocabularyFetcher,
    get_connection,
    load_config,
)
from arche_ontology.descriptors import ClassDescriptor, PropertyDescriptor, local_name

DEFAULT_CONFIG = Path(__file__).parent.parent / "config" / "arche.yaml"


def format_cardinality(prop: PropertyDescriptor) -> str:
    """Cardinality as min..max ('*' for unbounded)."""
    low = prop.min if prop.min is not None else 0
    high = prop.max if prop.max is not None else "*"
    return f"{low}..{high}"


def property_entry(prop: PropertyDescriptor, lang: str) -> dict:
    entry = {
        "property": prop.uri,
        "label": prop.get_label(lang),
        "cardinality": format_cardinality(prop),
        "range": prop.range,
        "order": prop.order,
    }
    if prop.recommended:
        entry["recommended"] = True
    if prop.lang_tag:
        entry["lang_tag"] = True
    if prop.vocabulary_uri:
        entry["vocabulary"] = prop.vocabulary_uri
        entry["vocabulary_values"] = len(prop.get_vocabulary_values())
    return entry


def class_entry(cls: ClassDescriptor, lang: str) -> dict:
    return {
        "class": cls.uri,
        "label": cls.get_label(lang),
        "ancestors": cls.classes[:-1],
        "properties": [property_entry(p, lang) for p in cls.get_properties()],
    }


def format_classes(entries: list[dict], as_json: bool = False) -> str:
    """Format class entries for display."""
    if as_json:
        return json.dumps({"classes": entries}, indent=2, ensure_ascii=False)

    lines = ["Classes", "=" * 60]
    for entry in entries:
        label = f" ({entry['label']})" if entry["label"] else ""
        lines.append(f"\n{local_name(entry['class'])}{label}")
        if entry["ancestors"]:
            lines.append(f"  is a: {', '.join(local_name(a) for a in entry['ancestors'])}")
        for p in entry["properties"]:
            flags = [f for f in ("recommended", "lang_tag") if p.get(f)]
            range_ = ", ".join(local_name(r) for r in p["range"]) or "-"
            line = f"    {local_name(p['property'])} [{p['cardinality']}] -> {range_}"
            if flags:
                line += f"  ({', '.join(flags)})"
            if p.get("vocabulary"):
                line += f"  vocabulary: {p['vocabulary_values']} values"
            lines.append(line)

    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(
        description="Show resolved ontology classes and their effective properties"
    )
    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument(
        "--ttl",
        type=Path,
        help="Read the ontology from an RDF file instead of the database"
    )
    source_group.add_argument(
        "--dsn",
        help="Database connection string (default: ARCHE_ONTOLOGY_DSN)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Schema configuration (default: {DEFAULT_CONFIG.name})"
    )
    parser.add_argument(
        "--class",
        dest="class_uri",
        help="Show only this class"
    )
    parser.add_argument(
        "--lang",
        default="en",
        help="Label language (default: en)"
    )
    parser.add_argument(
        "--vocabularies",
        action="store_true",
        help="Fetch controlled vocabularies"
    )
    parser.add_argument(
        "--cache-file",
        type=Path,
        help="Vocabulary cache file (default: from config)"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    # Load ontology
    conn = None
    try:
        config = load_config(args.config)
        if args.ttl:
            source = GraphSource.from_file(args.ttl, config.schema)
        else:
            conn = get_connection(args.dsn)
            source = PostgresSource(conn, config.schema)
        ontology = Ontology.from_source(source)
    except OntologyError as e:
        print(f"Error loading ontology: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        if conn is not None:
            conn.close()

    if args.vocabularies:
        vocab_config = config.vocabularies
        with VocabularyFetcher(timeout=vocab_config.timeout, verify=vocab_config.verify_tls) as fetcher:
            ontology.fetch_vocabularies(
                cache_file=args.cache_file or vocab_config.cache_file,
                valid_for=vocab_config.valid_for,
                fetcher=fetcher,
            )

    # Output
    if args.class_uri:
        cls = ontology.get_class(args.class_uri)
        if cls is None:
            print(f"Error: unknown class {args.class_uri}", file=sys.stderr)
            sys.exit(1)
        classes = [cls]
    else:
        classes = [ontology.classes[uri] for uri in sorted(ontology.classes)]

    entries = [class_entry(c, args.lang) for c in classes]
    print(format_classes(entries, as_json=args.json))

    # Summary
    if not args.json:
        print(f"\n{'=' * 60}")
        print(f"Summary: {len(ontology.classes)} classes, {len(ontology.properties)} properties")


if __name__ == "__main__":
    main()
