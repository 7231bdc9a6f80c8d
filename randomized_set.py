# randomized_set.py

from errors import EmptySetError


class RandomizedSet:
    """
    Set of small non-negative integers (cell indices) with O(1) add, remove,
    membership and uniform random pick.

    Members live in a dense list; `_slots` maps each member to its position in
    that list. Removal overwrites the member's slot with the last element and
    truncates, so `_slots` must be updated for the moved element every time.
    """

    def __init__(self, values=()):
        self._items = []
        self._slots = {}
        for v in values:
            self.add(v)

    def add(self, value):
        if value in self._slots:
            return
        self._slots[value] = len(self._items)
        self._items.append(value)

    def remove(self, value):
        """Remove `value` if present; absent values are ignored."""
        slot = self._slots.pop(value, None)
        if slot is None:
            return
        last = self._items.pop()
        if slot < len(self._items):
            self._items[slot] = last
            self._slots[last] = slot

    def is_empty(self):
        return not self._items

    def random_element(self, rng):
        """
        Uniformly random member, drawn from the numpy Generator `rng`.
        Raises EmptySetError if there is nothing to pick from.
        """
        if not self._items:
            raise EmptySetError("random_element() called on an empty RandomizedSet")
        return self._items[int(rng.integers(len(self._items)))]

    def shift_all(self, delta):
        """
        Replace every member v with v + delta. The caller guarantees the
        shifted values stay distinct; the reverse index is rebuilt from scratch.
        """
        if delta == 0:
            return
        self._items = [v + delta for v in self._items]
        self._slots = {v: i for i, v in enumerate(self._items)}

    def union(self, other):
        for v in list(other):
            self.add(v)

    def difference(self, other):
        for v in list(other):
            self.remove(v)

    def copy(self):
        dup = RandomizedSet()
        dup._items = list(self._items)
        dup._slots = dict(self._slots)
        return dup

    def __contains__(self, value):
        return value in self._slots

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        # Iterate over a snapshot so callers may mutate while looping
        return iter(list(self._items))

    def __eq__(self, other):
        if not isinstance(other, RandomizedSet):
            return NotImplemented
        return self._slots.keys() == other._slots.keys()

    def __repr__(self):
        return f"RandomizedSet({self._items!r})"
