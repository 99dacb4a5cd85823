"""
Unit tests for descriptor types and row-to-descriptor mapping.
"""

import dataclasses

import pytest
from rdflib import Graph, URIRef

from arche_ontology.descriptors import (
    ClassDescriptor,
    ConceptDescriptor,
    LocalizedText,
    PropertyDescriptor,
    RestrictionDescriptor,
    local_name,
    pick_uri,
    resolve_cardinality,
)
from arche_ontology.errors import MalformedRowError
from arche_ontology.sources.rows import Annotation, ClassRow, PropertyRow, RestrictionRow

S = "https://vocabs.acdh.oeaw.ac.at/schema#"
RDFS = "http://www.w3.org/2000/01/rdf-schema#"
SKOS = "http://www.w3.org/2004/02/skos/core#"


class TestLocalizedText:
    """Tests for language-aware label/comment lookup."""

    def test_requested_language(self):
        text = LocalizedText(uri=S + "x", label={"en": "Title", "de": "Titel"})
        assert text.get_label("de") == "Titel"

    def test_language_is_case_insensitive(self):
        text = LocalizedText(uri=S + "x", label={"de": "Titel"})
        assert text.get_label("DE") == "Titel"

    def test_fallback_language(self):
        """Missing language falls back to English."""
        text = LocalizedText(uri=S + "x", label={"en": "Title", "de": "Titel"})
        assert text.get_label("pl") == "Title"

    def test_custom_fallback_language(self):
        text = LocalizedText(uri=S + "x", label={"en": "Title", "de": "Titel"})
        assert text.get_label("pl", fallback_lang="de") == "Titel"

    def test_any_language(self):
        """Without requested and fallback language, any value is returned."""
        text = LocalizedText(uri=S + "x", comment={"fr": "Titre"})
        assert text.get_comment("pl") == "Titre"

    def test_empty(self):
        """No text at all gives an empty string, never an error."""
        text = LocalizedText(uri=S + "x")
        assert text.get_label("en") == ""
        assert text.get_comment("de", fallback_lang="") == ""


class TestAnnotations:
    """Tests for explicit annotation merging."""

    def test_by_language(self):
        text = LocalizedText(uri=S + "x", label={"en": "Old"})
        text.apply_annotations(
            [
                Annotation(SKOS + "altLabel", "New", "en"),
                Annotation(RDFS + "comment", "Kommentar", "DE"),
                Annotation(RDFS + "label", "Untagged"),
            ]
        )
        assert text.label == {"en": "New", "und": "Untagged"}
        assert text.comment == {"de": "Kommentar"}

    def test_unknown_keys_ignored(self):
        text = LocalizedText(uri=S + "x")
        text.apply_annotations([Annotation(S + "somethingElse", "value")])
        assert text.label == {}
        assert text.comment == {}

    def test_property_specific_keys(self):
        """Properties recognize range, order, langTag, vocabs and recommendedClass."""
        prop = PropertyDescriptor(uri=S + "hasTitle", range=[S + "A"])
        prop.apply_annotations(
            [
                Annotation(RDFS + "range", S + "B"),
                Annotation(RDFS + "range", S + "A"),
                Annotation(S + "ordering", "3.5"),
                Annotation(S + "langTag", "true"),
                Annotation(S + "vocabs", "https://example.org/vocab"),
                Annotation(S + "recommendedClass", S + "Collection"),
                Annotation(RDFS + "domain", S + "RepoObject"),
            ]
        )
        assert prop.range == [S + "A", S + "B"]
        assert prop.order == 3.5
        assert prop.lang_tag is True
        assert prop.vocabulary_uri == "https://example.org/vocab"
        assert prop.recommended_classes == [S + "Collection"]
        assert prop.domain == S + "RepoObject"

    def test_classes_ignore_property_keys(self):
        desc = ClassDescriptor(uri=S + "Collection")
        desc.apply_annotations([Annotation(S + "ordering", "1")])
        assert not hasattr(desc, "order")


class TestHelpers:
    """Tests for URI helpers."""

    def test_local_name(self):
        assert local_name(S + "hasTitle") == "hasTitle"
        assert local_name("http://purl.org/dc/terms/title") == "title"

    def test_pick_uri_prefers_namespace(self):
        ids = ["https://arche.acdh.oeaw.ac.at/api/12", S + "Collection"]
        assert pick_uri(ids, S) == S + "Collection"

    def test_pick_uri_falls_back_to_first(self):
        assert pick_uri(["https://other.org/a", "https://other.org/b"], S) == "https://other.org/a"

    def test_pick_uri_empty(self):
        assert pick_uri([], S) is None


class TestPropertyDescriptor:
    """Tests for property row mapping and cloning."""

    def test_from_row(self):
        row = PropertyRow(
            uri=S + "hasTitle",
            ancestors=[S + "hasTitle"],
            id=12,
            range=[S + "A", S + "A", ""],
            domain=S + "RepoObject",
            order="2",
            lang_tag="t",
            label={"EN": "Title"},
        )
        desc = PropertyDescriptor.from_row(row)
        assert desc.uri == S + "hasTitle"
        assert desc.id == 12
        assert desc.range == [S + "A"]
        assert desc.order == 2.0
        assert desc.lang_tag is True
        assert desc.label == {"en": "Title"}
        assert desc.min is None and desc.max is None

    def test_self_first_in_chain(self):
        row = PropertyRow(uri=S + "hasPid", ancestors=[S + "hasIdentifier", S + "hasPid"])
        desc = PropertyDescriptor.from_row(row)
        assert desc.properties == [S + "hasPid", S + "hasIdentifier"]

    def test_missing_uri(self):
        with pytest.raises(MalformedRowError, match="missing property URI"):
            PropertyDescriptor.from_row(PropertyRow(uri="", ancestors=[], id=7))

    def test_invalid_order(self):
        row = PropertyRow(uri=S + "hasTitle", ancestors=[], order="first")
        with pytest.raises(MalformedRowError, match="invalid order hint"):
            PropertyDescriptor.from_row(row)

    def test_clone_is_independent(self):
        """Mutating a clone never affects the template."""
        desc = PropertyDescriptor(
            uri=S + "hasTitle",
            label={"en": "Title"},
            range=[S + "A"],
            properties=[S + "hasTitle"],
        )
        clone = desc.clone()
        clone.range.append(S + "B")
        clone.label["de"] = "Titel"
        clone.min = 1
        assert clone is not desc
        assert desc.range == [S + "A"]
        assert desc.label == {"en": "Title"}
        assert desc.min is None

    def test_publish_vocabulary_values(self):
        desc = PropertyDescriptor(uri=S + "hasLicense")
        concept = ConceptDescriptor(uri="https://example.org/c1", label={"en": "C1"})
        desc.publish_vocabulary_values({concept.uri: concept, "alias": concept})
        assert desc.get_vocabulary_values() == [concept]
        with pytest.raises(TypeError):
            desc.vocabulary_values["new"] = concept

    def test_no_vocabulary_values(self):
        assert PropertyDescriptor(uri=S + "hasTitle").get_vocabulary_values() == []


class TestCardinality:
    """Tests for cardinality normalization precedence."""

    def test_plain_exact(self):
        row = RestrictionRow(class_uri=S + "C", on_property=S + "p", cardinality="2")
        assert resolve_cardinality(row) == (2, 2)

    def test_plain_specific_beats_exact(self):
        row = RestrictionRow(
            class_uri=S + "C", on_property=S + "p", cardinality="2", min_cardinality="1"
        )
        assert resolve_cardinality(row) == (1, 2)

    def test_qualified_beats_plain(self):
        row = RestrictionRow(
            class_uri=S + "C",
            on_property=S + "p",
            min_cardinality="0",
            max_cardinality="5",
            qualified_cardinality="3",
        )
        assert resolve_cardinality(row) == (3, 3)

    def test_qualified_specific_beats_qualified_exact(self):
        row = RestrictionRow(
            class_uri=S + "C",
            on_property=S + "p",
            qualified_cardinality="3",
            max_qualified_cardinality="4",
        )
        assert resolve_cardinality(row) == (3, 4)

    def test_unbounded(self):
        row = RestrictionRow(class_uri=S + "C", on_property=S + "p", min_cardinality=1)
        assert resolve_cardinality(row) == (1, None)

    def test_zero_is_a_value(self):
        row = RestrictionRow(class_uri=S + "C", on_property=S + "p", min_cardinality="0")
        assert resolve_cardinality(row) == (0, None)

    @pytest.mark.parametrize("value", ["one", "1.5", "-1", "inf", "nan"])
    def test_non_integer(self, value):
        row = RestrictionRow(class_uri=S + "C", on_property=S + "p", min_cardinality=value)
        with pytest.raises(MalformedRowError):
            resolve_cardinality(row)


class TestRestrictionDescriptor:
    """Tests for restriction row mapping."""

    def test_range_from_on_class(self):
        row = RestrictionRow(
            class_uri=S + "C", on_property=S + "p", on_class=S + "Agent", min_cardinality="1"
        )
        desc = RestrictionDescriptor.from_row(row)
        assert desc.range == S + "Agent"
        assert (desc.min, desc.max) == (1, None)

    def test_missing_property(self):
        with pytest.raises(MalformedRowError, match="owl:onProperty"):
            RestrictionDescriptor.from_row(RestrictionRow(class_uri=S + "C", on_property=""))

    def test_missing_class(self):
        with pytest.raises(MalformedRowError, match="missing class URI"):
            RestrictionDescriptor.from_row(RestrictionRow(class_uri="", on_property=S + "p"))


class TestClassDescriptor:
    """Tests for class row mapping."""

    def test_self_last(self):
        row = ClassRow(uri=S + "Collection", ancestors=[S + "Collection", S + "RepoObject"])
        desc = ClassDescriptor.from_row(row)
        assert desc.classes == [S + "RepoObject", S + "Collection"]

    def test_missing_uri(self):
        with pytest.raises(MalformedRowError):
            ClassDescriptor.from_row(ClassRow(uri="", ancestors=[]))

    def test_get_properties_order(self):
        """Ordered by order hint, properties without one last, then by URI."""
        a = PropertyDescriptor(uri=S + "a", order=2)
        b = PropertyDescriptor(uri=S + "b")
        c = PropertyDescriptor(uri=S + "c", order=1)
        d = PropertyDescriptor(uri=S + "d", order=2)
        desc = ClassDescriptor(uri=S + "C", properties={p.uri: p for p in (a, b, c, d)})
        assert [p.uri for p in desc.get_properties()] == [S + "c", S + "a", S + "d", S + "b"]

    def test_freeze(self):
        desc = ClassDescriptor(uri=S + "C", properties={})
        desc.freeze()
        with pytest.raises(TypeError):
            desc.properties[S + "p"] = PropertyDescriptor(uri=S + "p")


class TestConceptDescriptor:
    """Tests for SKOS concepts."""

    TTL = """
        @prefix skos: <http://www.w3.org/2004/02/skos/core#> .
        @prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
        <https://example.org/c1> a skos:Concept ;
            skos:prefLabel "Preferred"@en ;
            skos:altLabel "Alternative"@en, "Alternativ"@de ;
            rdfs:comment "Comment"@en ;
            skos:definition "Definition"@en .
    """

    def test_from_resource(self):
        """prefLabel wins over altLabel, definition over rdfs:comment."""
        graph = Graph().parse(data=self.TTL, format="turtle")
        concept = ConceptDescriptor.from_resource(graph.resource(URIRef("https://example.org/c1")))
        assert concept.uri == "https://example.org/c1"
        assert concept.get_label("en") == "Preferred"
        assert concept.get_label("de") == "Alternativ"
        assert concept.get_comment("en") == "Definition"

    def test_dict_representation(self):
        concept = ConceptDescriptor.from_dict(
            "https://example.org/c1", {"label": {"en": "One"}, "comment": {}}
        )
        assert concept.to_dict() == {"label": {"en": "One"}, "comment": {}}
        assert ConceptDescriptor.from_dict(concept.uri, concept.to_dict()) == concept

    def test_immutable(self):
        concept = ConceptDescriptor(uri="https://example.org/c1", label={"en": "One"})
        with pytest.raises(dataclasses.FrozenInstanceError):
            concept.uri = "https://example.org/c2"
        with pytest.raises(TypeError):
            concept.label["de"] = "Eins"

    def test_hashable(self):
        one = ConceptDescriptor(uri="https://example.org/c1", label={"en": "One"})
        same = ConceptDescriptor(uri="https://example.org/c1", label={"en": "One"})
        assert hash(one) == hash(same)
        assert len({one, same}) == 1
