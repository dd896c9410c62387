"""A lazily paged list of items with a movable cursor and reversible shuffling."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

from .media import PageResolver

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PagedListItem(Generic[T]):
    """An item together with the page and the index inside the page it came from."""

    item: T
    page_idx: int
    item_idx: int


class PagedListIterator(Generic[T]):
    """A cursor over a paged list that fetches new pages when moving forward."""

    def __init__(self, paged: PagedList[T], pos: int) -> None:
        self._list = paged
        self.pos = pos

    @property
    def paged_list(self) -> PagedList[T]:
        return self._list

    def prev(self) -> bool:
        """Move one item back; return False when already at the start."""
        if self.pos < 0:
            raise IndexError(f"invalid paged list iterator position: {self.pos}")
        if self.pos == 0:
            return False
        self.pos -= 1
        return True

    def next(self) -> bool:
        """Move one item forward, fetching pages as needed.

        Returns False once there are no more pages. Failures while fetching
        a page raise RuntimeError.
        """
        while self.pos + 1 >= len(self._list):
            page_idx = self._list._next_page_index()
            try:
                self._list.fetch_next_page()
            except EOFError:
                return False
            except Exception as err:
                raise RuntimeError(
                    f"failed moving to next index {self.pos + 1} (page {page_idx}): {err}"
                ) from err
        self.pos += 1
        return True

    def get(self) -> PagedListItem[T]:
        if self.pos < 0:
            raise IndexError(f"invalid paged list iterator position: {self.pos}")
        return self._list.items[self.pos]

    def __iter__(self) -> Iterator[PagedListItem[T]]:
        while self.next():
            yield self.get()


class PagedList(Generic[T]):
    """Items loaded page by page from a resolver, with a current position."""

    def __init__(self, pages: PageResolver[T]) -> None:
        self._pages = pages
        self.items: list[PagedListItem[T]] = []
        self.pos = -1

    def __len__(self) -> int:
        return len(self.items)

    def iter_here(self) -> PagedListIterator[T]:
        """Return an iterator positioned at the current item."""
        if self.pos < 0:
            raise IndexError(f"invalid paged list position: {self.pos}")
        return PagedListIterator(self, self.pos)

    def iter_start(self) -> PagedListIterator[T]:
        """Return an iterator positioned just before the first item."""
        return PagedListIterator(self, -1)

    def move_start(self) -> None:
        """Move the current position to the first item, loading it if needed."""
        if not self.items:
            page_idx = self._next_page_index()
            try:
                self.fetch_next_page()
            except EOFError as err:
                raise RuntimeError(
                    f"failed moving to start: no more pages as of {page_idx}"
                ) from err
            except Exception as err:
                raise RuntimeError(f"failed moving to start: {err}") from err
        self.pos = 0

    def move(self, iterator: PagedListIterator[T]) -> None:
        """Move the current position to where ``iterator`` is."""
        if iterator.paged_list is not self:
            raise ValueError("iterator belongs to another paged list")
        self.pos = iterator.pos

    def get(self) -> PagedListItem[T]:
        if self.pos < 0:
            raise IndexError(f"invalid paged list position: {self.pos}")
        return self.items[self.pos]

    def swap(self, i: int, j: int) -> None:
        """Swap two items, keeping the current position on the same item."""
        size = len(self.items)
        if not (0 <= i < size and 0 <= j < size):
            raise IndexError(f"invalid swap indices (i: {i}, j: {j}, len: {size})")
        self.items[i], self.items[j] = self.items[j], self.items[i]
        if i == self.pos:
            self.pos = j
        elif j == self.pos:
            self.pos = i

    def shuffle(self, rnd: random.Random) -> None:
        """Shuffle the loaded items; the same seed lets ``unshuffle`` undo it."""
        size = len(self.items)
        if size <= 1:
            return
        idx = self.pos
        for i in range(size - 1, 0, -1):
            j = rnd.randrange(i + 1)
            self.items[i], self.items[j] = self.items[j], self.items[i]
            if i == idx:
                idx = j
            elif j == idx:
                idx = i
        self.pos = idx

    def unshuffle(self, rnd: random.Random) -> None:
        """Undo a ``shuffle`` made with a generator seeded the same way."""
        size = len(self.items)
        if size <= 1:
            return
        exchanges = [rnd.randrange(size - i) for i in range(size - 1)]
        idx = self.pos
        for i in range(1, size):
            j = exchanges[size - i - 1]
            self.items[i], self.items[j] = self.items[j], self.items[i]
            if i == idx:
                idx = j
            elif j == idx:
                idx = i
        self.pos = idx

    def _next_page_index(self) -> int:
        return self.items[-1].page_idx + 1 if self.items else 0

    def fetch_next_page(self) -> int:
        """Load the page after the last loaded one and return its index.

        Raises EOFError when the resolver has no more pages.
        """
        page_idx = self._next_page_index()
        page = self._pages.page(page_idx)
        if not page:
            raise ValueError(f"loaded an empty page for {page_idx}")
        self.items.extend(
            PagedListItem(item, page_idx, item_idx) for item_idx, item in enumerate(page)
        )
        log.debug(
            "fetched new page %d with %d items (list: %d)", page_idx, len(page), len(self.items)
        )
        return page_idx

    def clear(self) -> None:
        self.items = []
        self.pos = -1