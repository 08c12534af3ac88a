"""Collapsing of identical sibling subtrees."""

from collections.abc import Sequence

from pytree.forest import ProcessNode


def tree_equal(a: ProcessNode, b: ProcessNode, compare_owners: bool = False) -> bool:
    """
    Check whether two subtrees have the same shape.

    Names must match, owners too when ``compare_owners`` is set, and the
    children must be equal pairwise in their current order.
    """
    if a.name != b.name:
        return False
    if compare_owners and a.owner != b.owner:
        return False
    if len(a.children) != len(b.children):
        return False
    return all(
        tree_equal(child_a, child_b, compare_owners)
        for child_a, child_b in zip(a.children, b.children)
    )


def compact_children(
    children: Sequence[ProcessNode],
    compare_owners: bool = False,
) -> list[tuple[ProcessNode, int]]:
    """
    Group identical siblings into ``(representative, count)`` pairs.

    Each remaining child is compared with the siblings after it; equal ones
    are folded into its count and not looked at again. The representative
    keeps the position of the first member of its group. ``children`` is
    left untouched.
    """
    remaining = list(children)
    groups: list[tuple[ProcessNode, int]] = []
    while remaining:
        current = remaining.pop(0)
        count = 1
        rest: list[ProcessNode] = []
        for sibling in remaining:
            if tree_equal(current, sibling, compare_owners):
                count += 1
            else:
                rest.append(sibling)
        remaining = rest
        groups.append((current, count))
    return groups
