"""
Schema configuration for ontology loading.

The schema tells the row sources which identifiers are internal repository
ids, which namespace holds the ontology, and which annotation properties
carry the ordering hint, the language-tag flag, the controlled vocabulary
and the recommended classes of a property.

Configuration lives in YAML:

    schema:
      ontology_namespace: https://vocabs.acdh.oeaw.ac.at/schema#
      skip_namespace: https://arche.acdh.oeaw.ac.at/api/
      order_property: https://vocabs.acdh.oeaw.ac.at/schema#ordering
    vocabularies:
      cache_file: vocabs-cache.json
      valid_for: 10800
"""

import os
from dataclasses import dataclass, field, fields
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

import yaml
from rdflib.namespace import RDFS, SKOS

from .errors import ConfigError

DSN_ENV_VAR = "ARCHE_ONTOLOGY_DSN"

# Keys used by the original repository configuration files
_SCHEMA_ALIASES = {
    "ontologyNamespace": "ontology_namespace",
    "skipNamespace": "skip_namespace",
    "label": "label_property",
    "comment": "comment_property",
    "order": "order_property",
    "langTag": "lang_tag_property",
    "vocabs": "vocabs_property",
    "recommendedClass": "recommended_class_property",
    "timestamp": "timestamp_property",
}


@dataclass
class SchemaConfig:
    """Namespaces and annotation properties of the repository schema."""

    ontology_namespace: str = ""
    skip_namespace: str = ""  # prefix of internal repository identifiers
    label_property: str = str(SKOS.altLabel)
    comment_property: str = str(RDFS.comment)
    order_property: Optional[str] = None
    lang_tag_property: Optional[str] = None
    vocabs_property: Optional[str] = None
    recommended_class_property: Optional[str] = None
    timestamp_property: Optional[str] = None

    @property
    def skip_pattern(self) -> Optional[str]:
        """SQL LIKE pattern matching internal identifiers, None when there are none."""
        if not self.skip_namespace:
            return None
        escaped = (
            self.skip_namespace.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        )
        return escaped + "%"

    def is_internal(self, identifier: str) -> bool:
        """Check if an identifier is an internal repository id."""
        return bool(self.skip_namespace) and identifier.startswith(self.skip_namespace)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SchemaConfig":
        """
        Build a schema config from a plain dict.

        Accepts both snake_case field names and the camelCase keys of the
        original configuration files.

        Raises:
            ConfigError: On unknown keys or non-string values
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _SCHEMA_ALIASES.get(key, key)
            if name not in known:
                raise ConfigError(f"unknown schema key '{key}'")
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"schema key '{key}' must be a string, got {type(value).__name__}")
            values[name] = value
        return cls(**values)


@dataclass
class VocabularyConfig:
    """Controlled vocabulary fetching and caching settings."""

    cache_file: Optional[Path] = None
    valid_for: timedelta = field(default_factory=timedelta)  # zero disables caching
    timeout: float = 30.0
    verify_tls: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VocabularyConfig":
        """Build from a dict; `valid_for` is given in seconds."""
        unknown = set(data) - {"cache_file", "valid_for", "timeout", "verify_tls"}
        if unknown:
            raise ConfigError(f"unknown vocabularies keys: {sorted(unknown)}")
        try:
            cache_file = data.get("cache_file")
            return cls(
                cache_file=Path(cache_file) if cache_file else None,
                valid_for=timedelta(seconds=float(data.get("valid_for", 0))),
                timeout=float(data.get("timeout", 30.0)),
                verify_tls=bool(data.get("verify_tls", False)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid vocabularies section: {e}") from e


@dataclass
class Config:
    """Complete configuration file contents."""

    schema: SchemaConfig
    vocabularies: VocabularyConfig


def load_config(path: Path | str) -> Config:
    """
    Load a YAML configuration file.

    The schema may be given under a `schema:` key or as top-level keys
    (in which case no `vocabularies:` section is read).

    Args:
        path: Path to the YAML file

    Returns:
        Parsed configuration

    Raises:
        ConfigError: If the file is missing, not valid YAML or has bad keys
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must be a mapping")

    if "schema" in data:
        schema = SchemaConfig.from_dict(data.get("schema") or {})
        vocabularies = VocabularyConfig.from_dict(data.get("vocabularies") or {})
    else:
        schema = SchemaConfig.from_dict(data)
        vocabularies = VocabularyConfig()
    return Config(schema=schema, vocabularies=vocabularies)


def load_schema_config(path: Path | str) -> SchemaConfig:
    """Load only the schema part of a configuration file."""
    return load_config(path).schema


def get_dsn(dsn: str | None = None) -> str:
    """
    Resolve the database DSN.

    Raises:
        ConfigError: If no DSN is given and the environment variable is unset
    """
    dsn = dsn or os.getenv(DSN_ENV_VAR)
    if not dsn:
        raise ConfigError(f"no database DSN given and {DSN_ENV_VAR} is not set")
    return dsn
