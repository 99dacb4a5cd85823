"""
Cardinality restriction descriptors.

OWL offers six cardinality encodings. They are folded into a single
(min, max) pair with the precedence

    qualified-specific > qualified-exact > plain-specific > plain-exact

e.g. min = owl:minQualifiedCardinality ?? owl:qualifiedCardinality
?? owl:minCardinality ?? owl:cardinality.
"""

from dataclasses import dataclass
from typing import Any, Optional

from ..errors import MalformedRowError
from ..sources.rows import RestrictionRow


def _first_present(*values: Any) -> Any:
    for v in values:
        if v is not None and v != "":
            return v
    return None


def _to_int(value: Any, row: RestrictionRow, name: str) -> Optional[int]:
    if value is None:
        return None
    try:
        number = float(value)
        integer = int(number)
    except (TypeError, ValueError, OverflowError) as e:
        raise MalformedRowError(
            "restriction", row.uri or row.class_uri, f"{name} is not a number: {value!r}"
        ) from e
    if number != integer or number < 0:
        raise MalformedRowError(
            "restriction", row.uri or row.class_uri, f"{name} is not a non-negative integer: {value!r}"
        )
    return integer


def resolve_cardinality(row: RestrictionRow) -> tuple[Optional[int], Optional[int]]:
    """
    Normalize the raw cardinality fields of a restriction row.

    Returns:
        Tuple of (min, max); None means unbounded

    Raises:
        MalformedRowError: If a chosen value is not a non-negative integer
    """
    min_value = _first_present(
        row.min_qualified_cardinality,
        row.qualified_cardinality,
        row.min_cardinality,
        row.cardinality,
    )
    max_value = _first_present(
        row.max_qualified_cardinality,
        row.qualified_cardinality,
        row.max_cardinality,
        row.cardinality,
    )
    return _to_int(min_value, row, "min"), _to_int(max_value, row, "max")


@dataclass
class RestrictionDescriptor:
    """
    A restriction on a {class, property} pair.

    Only lives during resolution; folded into the class-scoped
    PropertyDescriptor and discarded.
    """

    class_uri: str
    on_property: str
    uri: Optional[str] = None
    range: Optional[str] = None
    min: Optional[int] = None
    max: Optional[int] = None

    @classmethod
    def from_row(cls, row: RestrictionRow) -> "RestrictionDescriptor":
        """
        Map a restriction row onto a descriptor.

        Raises:
            MalformedRowError: If the class or property is missing or a
                cardinality is not an integer
        """
        if not row.class_uri:
            raise MalformedRowError("restriction", row.uri or row.id, "missing class URI")
        if not row.on_property:
            raise MalformedRowError("restriction", row.uri or row.class_uri, "missing owl:onProperty")
        min_value, max_value = resolve_cardinality(row)
        return cls(
            class_uri=row.class_uri,
            on_property=row.on_property,
            uri=row.uri,
            range=row.on_class or row.on_data_range or None,
            min=min_value,
            max=max_value,
        )
