import random

import pytest

from respot.paged_list import PagedList, PagedListItem


class DummyPageResolver:
    def __init__(self, page_count=None, page_size=5, fail_on=None, empty_on=None):
        self.page_count = page_count
        self.page_size = page_size
        self.fail_on = fail_on
        self.empty_on = empty_on
        self.requested = []

    def page(self, idx):
        self.requested.append(idx)
        if self.page_count is not None and idx >= self.page_count:
            raise EOFError
        if idx == self.fail_on:
            raise ValueError("boom")
        if idx == self.empty_on:
            return []
        return [(i + idx * self.page_size) * 100 for i in range(self.page_size)]


def check_item(item, i):
    assert item.page_idx == i // 5
    assert item.item_idx == i % 5
    assert item.item == i * 100


def test_simple_iteration():
    paged = PagedList(DummyPageResolver(page_count=2))
    it = paged.iter_start()

    for i in range(10):
        assert it.next()
        check_item(it.get(), i)

    assert it.next() is False

    for i in range(8, -1, -1):
        assert it.prev()
        check_item(it.get(), i)

    assert it.prev() is False


def test_moving():
    paged = PagedList(DummyPageResolver())
    it = paged.iter_start()
    for _ in range(13):
        assert it.next()

    paged.move(it)
    item = paged.get()
    assert item.page_idx == 2
    assert item.item_idx == 2
    assert item.item == 12 * 100

    paged.move_start()
    item = paged.get()
    assert item == PagedListItem(0, 0, 0)


def test_shuffle_and_unshuffle():
    paged = PagedList(DummyPageResolver(page_count=10))

    it = paged.iter_start()
    for i in range(50):
        assert it.next()
        check_item(it.get(), i)

    it = paged.iter_start()
    for _ in range(36):
        assert it.next()
    paged.move(it)

    seed = random.getrandbits(64)
    paged.shuffle(random.Random(seed))
    assert paged.get().item == 35 * 100

    paged.unshuffle(random.Random(seed))

    it = paged.iter_start()
    for i in range(50):
        assert it.next()
        check_item(it.get(), i)

    assert paged.get().item == 35 * 100


@pytest.mark.parametrize("seed", [0, 1, 42, 2**63])
def test_shuffle_keeps_all_items(seed):
    paged = PagedList(DummyPageResolver(page_count=4))
    all_items = [entry.item for entry in paged.iter_start()]
    paged.move_start()
    paged.shuffle(random.Random(seed))
    assert sorted(entry.item for entry in paged.items) == all_items
    assert paged.get().item == 0


def test_iterator_protocol_yields_all_items():
    paged = PagedList(DummyPageResolver(page_count=2))
    assert [entry.item for entry in paged.iter_start()] == [i * 100 for i in range(10)]
    assert len(paged) == 10


def test_fetch_error_raises():
    paged = PagedList(DummyPageResolver(fail_on=1))
    it = paged.iter_start()
    for _ in range(5):
        assert it.next()
    with pytest.raises(RuntimeError):
        it.next()


def test_empty_page_is_an_error():
    paged = PagedList(DummyPageResolver(empty_on=0))
    with pytest.raises(ValueError):
        paged.fetch_next_page()


def test_move_start_without_pages():
    paged = PagedList(DummyPageResolver(page_count=0))
    with pytest.raises(RuntimeError):
        paged.move_start()


def test_get_before_start_raises():
    paged = PagedList(DummyPageResolver())
    with pytest.raises(IndexError):
        paged.get()
    with pytest.raises(IndexError):
        paged.iter_here()


def test_swap_follows_position():
    paged = PagedList(DummyPageResolver(page_count=1))
    paged.move_start()
    paged.swap(0, 3)
    assert paged.pos == 3
    assert paged.get().item == 0
    with pytest.raises(IndexError):
        paged.swap(0, 5)


def test_clear_resets():
    paged = PagedList(DummyPageResolver(page_count=1))
    paged.move_start()
    paged.clear()
    assert len(paged) == 0
    assert paged.pos == -1


def test_move_rejects_foreign_iterator():
    first = PagedList(DummyPageResolver())
    second = PagedList(DummyPageResolver())
    it = second.iter_start()
    assert it.next()
    with pytest.raises(ValueError):
        first.move(it)