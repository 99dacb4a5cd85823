"""
Shared base for ontology entity descriptors.

Provides:
- Language-aware label/comment lookup with fallback
- Explicit annotation merging (recognized annotation keys only)
- Identifier selection among several repository ids
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Iterable, Mapping, NamedTuple, Optional

from ..sources.rows import Annotation, pick_uri  # noqa: F401

DEFAULT_LANG = "en"
UNDEFINED_LANG = "und"  # key for literals without a language tag


class MergeMode(Enum):
    """How an annotation value is merged onto a descriptor field."""

    BY_LANGUAGE = "by_language"  # field[lang] = value
    APPEND = "append"  # field.append(value)
    OVERWRITE = "overwrite"  # field = value


class AnnotationRule(NamedTuple):
    """Maps an annotation key onto a descriptor field."""

    field: str
    mode: MergeMode
    convert: Callable[[str], Any] = str


def local_name(uri: str) -> str:
    """Part of a URI after the last '#' or '/'."""
    return uri.rsplit("#", 1)[-1].rsplit("/", 1)[-1]


def normalize_lang(lang: Optional[str]) -> str:
    """Lowercase language tag, UNDEFINED_LANG for missing ones."""
    return lang.lower() if lang else UNDEFINED_LANG


def parse_bool(value: Any) -> bool:
    """Interpret boolean-like values stored as literals."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in ("1", "true", "t", "yes", "y")


class LabelLookup:
    """Label/comment lookup over `label` and `comment` language maps."""

    label: Mapping[str, str]
    comment: Mapping[str, str]

    def get_label(self, lang: str, fallback_lang: str = DEFAULT_LANG) -> str:
        """Label in `lang`, else in `fallback_lang`, else any label, else ''."""
        return self._get_in_lang(self.label, lang, fallback_lang)

    def get_comment(self, lang: str, fallback_lang: str = DEFAULT_LANG) -> str:
        """Comment in `lang`, else in `fallback_lang`, else any comment, else ''."""
        return self._get_in_lang(self.comment, lang, fallback_lang)

    @staticmethod
    def _get_in_lang(values: Mapping[str, str], lang: str, fallback_lang: str) -> str:
        if not values:
            return ""
        for candidate in (lang, fallback_lang):
            if candidate and candidate.lower() in values:
                return values[candidate.lower()]
        return next(iter(values.values()))


@dataclass
class LocalizedText(LabelLookup):
    """An ontology entity with labels and comments in many languages."""

    uri: str
    id: Optional[int] = None  # internal repository id, if known
    label: dict[str, str] = field(default_factory=dict)
    comment: dict[str, str] = field(default_factory=dict)

    ANNOTATIONS: ClassVar[dict[str, AnnotationRule]] = {
        "label": AnnotationRule("label", MergeMode.BY_LANGUAGE),
        "altLabel": AnnotationRule("label", MergeMode.BY_LANGUAGE),
        "comment": AnnotationRule("comment", MergeMode.BY_LANGUAGE),
    }

    def apply_annotations(self, annotations: Iterable[Annotation]) -> None:
        """
        Merge annotation side records onto this descriptor.

        Only keys listed in ANNOTATIONS are recognized (matched by the local
        name of the annotation property); everything else is ignored.
        """
        for a in annotations:
            rule = self.ANNOTATIONS.get(local_name(a.property))
            if rule is None:
                continue
            value = rule.convert(a.value)
            if rule.mode is MergeMode.BY_LANGUAGE:
                getattr(self, rule.field)[normalize_lang(a.lang)] = value
            elif rule.mode is MergeMode.APPEND:
                current = getattr(self, rule.field)
                if value not in current:
                    current.append(value)
            else:
                setattr(self, rule.field, value)


def localized(values: Optional[dict[str, str]]) -> dict[str, str]:
    """Copy a language map normalizing its keys."""
    return {normalize_lang(k): v for k, v in (values or {}).items() if v is not None}
