"""Union-find over small non-negative integer labels."""

from typing import List

from .types import LabelError

# Returned by find() for labels that were never added
NOT_FOUND = -1


class DisjointSet:
    """Disjoint-set forest stored as an arena indexed by label.

    ``_parent[label]`` is the parent of ``label``, itself for a root and
    ``NOT_FOUND`` for slots that have not been registered. Joining always
    keeps the numerically smaller root, so the representative of a set is
    its smallest label no matter in which order joins happen.
    """

    def __init__(self):
        self._parent: List[int] = []
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def __contains__(self, label: int) -> bool:
        return 0 <= label < len(self._parent) and self._parent[label] != NOT_FOUND

    def add(self, label: int) -> None:
        """Register label as a new singleton set.

        Raises:
            LabelError: If label is negative or already registered
        """
        if label < 0:
            raise LabelError(f"Labels must be non-negative, got {label}")
        if label in self:
            raise LabelError(f"Label {label} is already registered")

        if label >= len(self._parent):
            self._parent.extend([NOT_FOUND] * (label + 1 - len(self._parent)))

        self._parent[label] = label
        self._count += 1

    def find(self, label: int) -> int:
        """Return the representative of label's set, or NOT_FOUND."""
        if label not in self:
            return NOT_FOUND

        parent = self._parent

        root = label
        while parent[root] != root:
            root = parent[root]

        # Path compression
        while parent[label] != root:
            next_label = parent[label]
            parent[label] = root
            label = next_label

        return root

    def join(self, a: int, b: int) -> int:
        """Merge the sets containing a and b.

        Returns:
            The representative of the merged set

        Raises:
            LabelError: If either label is not registered
        """
        root_a = self.find(a)
        root_b = self.find(b)

        if root_a == NOT_FOUND or root_b == NOT_FOUND:
            raise LabelError(f"Cannot join unregistered labels {a} and {b}")

        if root_a == root_b:
            return root_a

        if root_b < root_a:
            root_a, root_b = root_b, root_a

        self._parent[root_b] = root_a

        return root_a
