"""
Inheritance resolution.

Turns the three row kinds into a cross-linked set of descriptors:

1. Class descriptors, one per distinct class URI
2. Reverse class index: ancestor URI -> classes inheriting from it
3. Property descriptors, with empty ranges inherited along the property
   hierarchy (closest superproperty declaring one wins)
4. Per-class property assignment by domain; every class gets its own clone
5. Restriction folding, nearest ancestor wins field by field

Resolution works on freshly built descriptors only and returns them all at
once, so a failure leaves nothing half-built behind.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable

from .descriptors import ClassDescriptor, PropertyDescriptor, RestrictionDescriptor
from .sources.rows import ClassRow, PropertyRow, RestrictionRow

logger = logging.getLogger(__name__)


@dataclass
class ResolvedOntology:
    """Output of resolve()."""

    classes: dict[str, ClassDescriptor] = field(default_factory=dict)
    classes_rev: dict[str, list[ClassDescriptor]] = field(default_factory=dict)
    properties: dict[str, PropertyDescriptor] = field(default_factory=dict)


def build_classes(rows: Iterable[ClassRow]) -> dict[str, ClassDescriptor]:
    """
    Build one descriptor per distinct class URI.

    For duplicate rows the last row wins, except for labels and comments
    which are merged.
    """
    classes: dict[str, ClassDescriptor] = {}
    for row in rows:
        desc = ClassDescriptor.from_row(row)
        prev = classes.get(desc.uri)
        if prev is not None:
            desc.label = {**prev.label, **desc.label}
            desc.comment = {**prev.comment, **desc.comment}
        classes[desc.uri] = desc
    return classes


def build_reverse_index(classes: dict[str, ClassDescriptor]) -> dict[str, list[ClassDescriptor]]:
    """Map every ancestor URI to the classes having it in their chain (itself included)."""
    rev: dict[str, list[ClassDescriptor]] = defaultdict(list)
    for c in classes.values():
        for ancestor in c.classes:
            rev[ancestor].append(c)
    return dict(rev)


def build_properties(rows: Iterable[PropertyRow]) -> dict[str, PropertyDescriptor]:
    """Build one descriptor per property URI (last row wins)."""
    properties: dict[str, PropertyDescriptor] = {}
    for row in rows:
        desc = PropertyDescriptor.from_row(row)
        properties[desc.uri] = desc
    return properties


def inherit_ranges(properties: dict[str, PropertyDescriptor]) -> None:
    """Give properties without a range the range of their closest superproperty declaring one."""
    declared = {uri: list(p.range) for uri, p in properties.items()}
    for p in properties.values():
        if p.range:
            continue
        for ancestor in p.properties[1:]:
            if declared.get(ancestor):
                p.range = list(declared[ancestor])
                break


def assign_properties(
    properties: dict[str, PropertyDescriptor],
    classes_rev: dict[str, list[ClassDescriptor]],
) -> None:
    """
    Attach a clone of every property to each class inheriting its domain.

    Properties without a domain are attached to no class.
    """
    for p in properties.values():
        if not p.domain:
            continue
        recommended_for = set(p.recommended_classes)
        for c in classes_rev.get(p.domain, []):
            clone = p.clone()
            clone.recommended = bool(recommended_for.intersection(c.classes))
            c.properties[p.uri] = clone


def fold_restrictions(
    classes: dict[str, ClassDescriptor],
    restrictions: Iterable[RestrictionDescriptor],
) -> None:
    """
    Apply cardinality and range restrictions to class-scoped properties.

    Ancestors are visited most distant first with the class itself last, and
    every specified value (0 included) overwrites the current one. A closer
    restriction therefore overrides a more distant one per field, while a
    field it leaves unspecified keeps the more distant value. Restrictions
    registered on the same class apply in row order.
    """
    by_class: dict[str, list[RestrictionDescriptor]] = defaultdict(list)
    for r in restrictions:
        by_class[r.class_uri].append(r)

    for c in classes.values():
        for ancestor in c.classes:
            for r in by_class.get(ancestor, []):
                prop = c.properties.get(r.on_property)
                if prop is None:
                    logger.debug(
                        "Ignoring restriction on %s for %s: property not inherited",
                        r.on_property,
                        c.uri,
                    )
                    continue
                if r.range is not None:
                    prop.range = [r.range]
                if r.min is not None:
                    prop.min = r.min
                if r.max is not None:
                    prop.max = r.max


def resolve(
    class_rows: Iterable[ClassRow],
    property_rows: Iterable[PropertyRow],
    restriction_rows: Iterable[RestrictionRow],
) -> ResolvedOntology:
    """
    Resolve rows into cross-linked descriptors.

    Args:
        class_rows: Class rows, ancestors most distant first
        property_rows: Property rows, ancestors closest first
        restriction_rows: One row per (class, restriction) pair

    Returns:
        ResolvedOntology with frozen class property mappings

    Raises:
        MalformedRowError: If any row cannot be mapped; nothing is returned
    """
    classes = build_classes(class_rows)
    properties = build_properties(property_rows)
    # Validate every restriction before touching any descriptor
    restrictions = [RestrictionDescriptor.from_row(r) for r in restriction_rows]

    classes_rev = build_reverse_index(classes)
    inherit_ranges(properties)
    assign_properties(properties, classes_rev)
    fold_restrictions(classes, restrictions)

    for c in classes.values():
        c.freeze()

    logger.debug(
        "Resolved %d classes, %d properties, %d restrictions",
        len(classes),
        len(properties),
        len(restrictions),
    )
    return ResolvedOntology(classes=classes, classes_rev=classes_rev, properties=properties)
