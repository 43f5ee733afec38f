# Copyright 2026 Pennyworth Technologies, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Branch-drawing prefixes for items laid out in pre-order."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

from kube_allocations.models.totals import GroupNode

T = TypeVar("T")

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


def _find_parents(items: Sequence[T], is_child_of: Callable[[T, T], bool]) -> list[int | None]:
    """Index of each item's parent: the nearest preceding item it is a child of."""
    parents: list[int | None] = []
    for i, item in enumerate(items):
        parent = None
        for j in range(i - 1, -1, -1):
            if is_child_of(items[j], item):
                parent = j
                break
        parents.append(parent)
    return parents


def provide_prefix(items: Sequence[T], is_child_of: Callable[[T, T], bool]) -> list[str]:
    """Compute the tree prefix of every item.

    Items must be in pre-order (each parent before its subtree). Items
    without a parent are roots and are siblings of each other.

    Args:
        items: Items in pre-order
        is_child_of: ``is_child_of(candidate, item)`` is True when
            ``candidate`` sits exactly one level above ``item``

    Returns:
        One prefix per item, aligned by index
    """
    parents = _find_parents(items, is_child_of)

    # Last child index per parent; later siblings overwrite earlier ones
    last_child: dict[int | None, int] = {}
    for i, parent in enumerate(parents):
        last_child[parent] = i

    def has_next_sibling(i: int) -> bool:
        return last_child[parents[i]] != i

    prefixes = []
    for i in range(len(items)):
        parts = [BRANCH if has_next_sibling(i) else LAST_BRANCH]
        ancestor = parents[i]
        while ancestor is not None:
            parts.append(PIPE if has_next_sibling(ancestor) else SPACE)
            ancestor = parents[ancestor]
        prefixes.append("".join(reversed(parts)))
    return prefixes


def compute_prefixes(forest: Sequence[GroupNode]) -> list[str]:
    """Prefixes for an aggregated forest, using path depth for parenthood."""
    return provide_prefix(forest, lambda parent, item: parent.depth + 1 == item.depth)
