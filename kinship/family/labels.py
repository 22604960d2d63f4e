"""Relationship labeler: names how one person relates to another.

Labels are gender-neutral ("Parent", not "Mother"/"Father"): the person
record carries no gender.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from kinship.family.engine import FRIEND, KinshipGraph, Person, RelationshipEdge

logger = logging.getLogger("kinship.family.labels")

SELF = "Self"
UNKNOWN = "Unknown"
RELATIVE = "Relative"

_NAMED_COUSINS = {2: "Cousin", 3: "2nd Cousin", 4: "3rd Cousin"}


def ordinal_suffix(n: int) -> str:
    """English ordinal suffix: 1 -> 'st', 12 -> 'th', 22 -> 'nd', 111 -> 'th'."""
    if 10 <= n % 100 <= 20:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")


def _great_label(distance: int, base: str) -> str:
    if distance == 2:
        return base
    if distance == 3:
        return f"Great {base}"
    return f"{distance - 1}x Great {base}"


def _cousin_label(d_from: int, d_to: int) -> str:
    if d_from == d_to and d_from in _NAMED_COUSINS:
        return _NAMED_COUSINS[d_from]
    degree = min(d_from, d_to) - 1
    removed = abs(d_from - d_to)
    if removed == 0:
        return f"{degree}{ordinal_suffix(degree)} Cousin"
    return f"{degree}{ordinal_suffix(degree)} Cousin, {removed}x Removed"


def _are_friends(a: Person, b: Person, edges: list[RelationshipEdge]) -> bool:
    if any(e.kind == FRIEND and e.connects(a.id, b.id) for e in edges):
        return True
    # Legacy single-link fields, either direction.
    for x, y in ((a, b), (b, a)):
        if x.legacy_friend_id == y.id:
            return True
    return False


def _shares_parent(a: Person, b: Person) -> bool:
    return bool(set(a.parent_ids) & set(b.parent_ids))


def relationship_label(graph: KinshipGraph, from_id: str, to_id: str) -> str:
    """Label ``to_id`` from ``from_id``'s point of view. First matching rule wins."""
    if from_id == to_id:
        return SELF

    src = graph.get(from_id)
    dst = graph.get(to_id)
    if src is None or dst is None:
        return UNKNOWN

    if _are_friends(src, dst, graph.edges):
        return "Friend"

    if dst.id in src.parent_ids:
        return "Parent"
    if src.id in dst.parent_ids:
        return "Child"
    if _shares_parent(src, dst):
        return "Sibling"

    # Grandparent / grandchild along the single parent_id chain
    if graph.is_ancestor_of(dst, src):
        return _great_label(graph.distance_to_ancestor(src, dst), "Grandparent")
    if graph.is_ancestor_of(src, dst):
        return _great_label(graph.distance_to_ancestor(dst, src), "Grandchild")

    src_parent = graph.get(src.parent_id)
    if src_parent is not None and dst.parent_id and src_parent.parent_id == dst.parent_id:
        return "Aunt/Uncle"

    dst_parent = graph.get(dst.parent_id)
    if dst_parent is not None and src.parent_id and dst_parent.parent_id == src.parent_id:
        return "Niece/Nephew"

    ancestor = graph.lowest_common_ancestor(src, dst)
    if ancestor is not None:
        d_from = graph.distance_to_ancestor(src, ancestor)
        d_to = graph.distance_to_ancestor(dst, ancestor)
        if d_from is not None and d_to is not None:
            return _cousin_label(d_from, d_to)

    return RELATIVE


def label_of(
    from_id: str,
    to_id: str,
    people: Iterable[Person],
    edges: Iterable[RelationshipEdge] = (),
) -> str:
    """Compute the relationship label between two people in a snapshot."""
    label = relationship_label(KinshipGraph(people, edges), from_id, to_id)
    logger.debug("label_of(%s, %s) -> %s", from_id, to_id, label)
    return label


def labels_from(
    from_id: str,
    people: Iterable[Person],
    edges: Iterable[RelationshipEdge] = (),
) -> dict[str, str]:
    """Label every person in the snapshot from one viewpoint."""
    graph = KinshipGraph(people, edges)
    return {p.id: relationship_label(graph, from_id, p.id) for p in graph.people}
