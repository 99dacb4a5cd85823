"""
Tests for YAML configuration loading.
"""

from datetime import timedelta
from pathlib import Path

import pytest

from arche_ontology.config import (
    DSN_ENV_VAR,
    SchemaConfig,
    VocabularyConfig,
    get_dsn,
    load_config,
    load_schema_config,
)
from arche_ontology.errors import ConfigError

S = "https://vocabs.acdh.oeaw.ac.at/schema#"
SHIPPED_CONFIG = Path(__file__).parent.parent / "config" / "arche.yaml"


class TestLoadConfig:
    """Tests for configuration files."""

    def test_shipped_config(self):
        config = load_config(SHIPPED_CONFIG)
        assert config.schema.ontology_namespace == S
        assert config.schema.order_property == S + "ordering"
        assert config.vocabularies.valid_for == timedelta(hours=3)
        assert config.vocabularies.cache_file == Path("vocabs-cache.json")
        assert config.vocabularies.verify_tls is False

    def test_top_level_schema(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text(f"ontology_namespace: '{S}'\nskip_namespace: https://repo/api/\n")
        schema = load_schema_config(path)
        assert schema.ontology_namespace == S
        assert schema.skip_namespace == "https://repo/api/"
        assert load_config(path).vocabularies == VocabularyConfig()

    def test_camel_case_aliases(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text(
            "schema:\n"
            f"  ontologyNamespace: '{S}'\n"
            f"  langTag: '{S}langTag'\n"
            f"  recommendedClass: '{S}recommendedClass'\n"
        )
        schema = load_schema_config(path)
        assert schema.lang_tag_property == S + "langTag"
        assert schema.recommended_class_property == S + "recommendedClass"

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text("schema:\n  colour: blue\n")
        with pytest.raises(ConfigError, match="unknown schema key 'colour'"):
            load_config(path)

    def test_non_string_value(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text("schema:\n  order_property: 12\n")
        with pytest.raises(ConfigError, match="must be a string"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text("schema: [unclosed\n")
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="cannot read config"):
            load_config(tmp_path / "missing.yaml")

    def test_bad_vocabularies_section(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text("schema: {}\nvocabularies:\n  valid_for: soon\n")
        with pytest.raises(ConfigError, match="invalid vocabularies section"):
            load_config(path)


class TestSchemaConfig:
    """Tests for schema helpers."""

    def test_skip_pattern_escapes_like_wildcards(self):
        schema = SchemaConfig(skip_namespace="https://repo_1/api%/")
        assert schema.skip_pattern == "https://repo\\_1/api\\%/%"

    def test_skip_pattern_unset(self):
        assert SchemaConfig().skip_pattern is None

    def test_internal(self):
        schema = SchemaConfig(skip_namespace="https://repo/api/")
        assert schema.is_internal("https://repo/api/12")
        assert not schema.is_internal(S + "Collection")
        assert not SchemaConfig().is_internal("https://repo/api/12")


class TestDsn:
    """Tests for DSN resolution."""

    def test_explicit(self, monkeypatch):
        monkeypatch.setenv(DSN_ENV_VAR, "dbname=env")
        assert get_dsn("dbname=explicit") == "dbname=explicit"

    def test_env(self, monkeypatch):
        monkeypatch.setenv(DSN_ENV_VAR, "dbname=env")
        assert get_dsn() == "dbname=env"

    def test_missing(self, monkeypatch):
        monkeypatch.delenv(DSN_ENV_VAR, raising=False)
        with pytest.raises(ConfigError, match=DSN_ENV_VAR):
            get_dsn()
