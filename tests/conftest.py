"""
Shared fixtures: a small ARCHE-like ontology as rows, and as Turtle.

Class hierarchy:
    RepoObject <- Collection <- TopCollection
    RepoObject <- BinaryContent
    Agent <- Person

Restrictions:
    RepoObject: hasDepositor min 1, hasTitle exactly 1 (qualified)
    TopCollection: hasContact min 1
"""

from pathlib import Path

import pytest

from arche_ontology.config import SchemaConfig
from arche_ontology.ontology import Ontology
from arche_ontology.sources.rows import Annotation, ClassRow, PropertyRow, RestrictionRow

S = "https://vocabs.acdh.oeaw.ac.at/schema#"
XSD = "http://www.w3.org/2001/XMLSchema#"
OWL_OBJECT = "http://www.w3.org/2002/07/owl#ObjectProperty"
OWL_DATATYPE = "http://www.w3.org/2002/07/owl#DatatypeProperty"
LICENSE_VOCAB = "https://vocabs.acdh.oeaw.ac.at/rest/v1/arche_licenses/data"

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def schema():
    """Schema configuration matching the ARCHE repository."""
    return SchemaConfig(
        ontology_namespace=S,
        skip_namespace="https://arche.acdh.oeaw.ac.at/api/",
        order_property=S + "ordering",
        lang_tag_property=S + "langTag",
        vocabs_property=S + "vocabs",
        recommended_class_property=S + "recommendedClass",
    )


@pytest.fixture
def class_rows():
    """Class rows, ancestors most distant first."""
    return [
        ClassRow(
            uri=S + "RepoObject",
            ancestors=[S + "RepoObject"],
            id=1,
            label={"en": "Repository object", "de": "Repositorium-Objekt"},
            comment={"en": "Any object stored in the repository"},
        ),
        ClassRow(
            uri=S + "Collection",
            ancestors=[S + "RepoObject", S + "Collection"],
            id=2,
            label={"en": "Collection", "de": "Sammlung"},
        ),
        ClassRow(
            uri=S + "TopCollection",
            ancestors=[S + "RepoObject", S + "Collection", S + "TopCollection"],
            id=3,
            label={"en": "Top collection"},
        ),
        ClassRow(
            uri=S + "BinaryContent",
            ancestors=[S + "RepoObject", S + "BinaryContent"],
            id=4,
            label={"en": "Binary content"},
        ),
        ClassRow(uri=S + "Agent", ancestors=[S + "Agent"], id=5, label={"en": "Agent"}),
        ClassRow(
            uri=S + "Person",
            ancestors=[S + "Agent", S + "Person"],
            id=6,
            label={"en": "Person"},
        ),
    ]


@pytest.fixture
def property_rows():
    """Property rows, ancestors closest first."""
    return [
        PropertyRow(
            uri=S + "hasDepositor",
            ancestors=[S + "hasDepositor"],
            id=10,
            type=OWL_OBJECT,
            range=[S + "Agent"],
            domain=S + "RepoObject",
            order=10,
            label={"en": "Depositor"},
        ),
        PropertyRow(
            uri=S + "hasContact",
            ancestors=[S + "hasContact"],
            id=11,
            type=OWL_OBJECT,
            range=[S + "Agent"],
            domain=S + "TopCollection",
            order=20,
            label={"en": "Contact"},
        ),
        PropertyRow(
            uri=S + "hasTitle",
            ancestors=[S + "hasTitle"],
            id=12,
            type=OWL_DATATYPE,
            range=[XSD + "string"],
            domain=S + "RepoObject",
            order=1,
            lang_tag="true",
            label={"en": "Title", "de": "Titel"},
        ),
        PropertyRow(
            uri=S + "hasIdentifier",
            ancestors=[S + "hasIdentifier"],
            id=13,
            type=OWL_DATATYPE,
            range=[XSD + "anyURI"],
            domain=S + "RepoObject",
        ),
        PropertyRow(
            uri=S + "hasPid",
            ancestors=[S + "hasPid", S + "hasIdentifier"],
            id=14,
            type=OWL_DATATYPE,
            domain=S + "RepoObject",
        ),
        PropertyRow(
            uri=S + "hasLicense",
            ancestors=[S + "hasLicense"],
            id=15,
            type=OWL_OBJECT,
            domain=S + "RepoObject",
            vocabulary_uri=LICENSE_VOCAB,
            recommended_classes=[S + "TopCollection"],
            label={"en": "License"},
        ),
        PropertyRow(
            uri=S + "hasAcceptedDate",
            ancestors=[S + "hasAcceptedDate"],
            id=16,
            type=OWL_DATATYPE,
            range=[XSD + "date"],
            domain=S + "RepoObject",
        ),
        PropertyRow(
            uri=S + "hasNote",
            ancestors=[S + "hasNote"],
            id=17,
            type=OWL_DATATYPE,
            range=[XSD + "string"],
            annotations=[
                Annotation(
                    "http://www.w3.org/2000/01/rdf-schema#comment", "A free text note", "en"
                )
            ],
        ),
    ]


@pytest.fixture
def restriction_rows():
    """Restriction rows with raw OWL cardinalities."""
    return [
        RestrictionRow(
            class_uri=S + "RepoObject",
            on_property=S + "hasDepositor",
            min_cardinality="1",
        ),
        RestrictionRow(
            class_uri=S + "RepoObject",
            on_property=S + "hasTitle",
            on_data_range=XSD + "string",
            qualified_cardinality="1",
        ),
        RestrictionRow(
            class_uri=S + "TopCollection",
            on_property=S + "hasContact",
            min_cardinality="1",
        ),
    ]


@pytest.fixture
def ontology(class_rows, property_rows, restriction_rows):
    """Ontology resolved from the row fixtures."""
    return Ontology.from_rows(class_rows, property_rows, restriction_rows)


@pytest.fixture
def ontology_ttl():
    """Path of the Turtle rendition of the fixture ontology."""
    return DATA_DIR / "ontology.ttl"
