"""Tree-branch prefixes for rendering a flat forest as a tree."""

from kube_allocations.tree.prefix import (
    BRANCH,
    LAST_BRANCH,
    PIPE,
    SPACE,
    compute_prefixes,
    provide_prefix,
)

__all__ = [
    "BRANCH",
    "LAST_BRANCH",
    "PIPE",
    "SPACE",
    "compute_prefixes",
    "provide_prefix",
]
