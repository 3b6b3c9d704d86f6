import threading

import pytest

from library_app.book import Book, BookStore
from library_app.errors import (
    BookNotFoundError,
    CapacityExceededError,
    DuplicateIdError,
    InvalidRecordError,
    NotFoundError,
)


def make_book(title="Dune", **kwargs):
    defaults = dict(author="Frank Herbert", publisher="Ace", isbn="9780441172719",
                    publish_year=1965, total_count=2, available_count=2)
    defaults.update(kwargs)
    return Book(title=title, **defaults)


@pytest.fixture
def store(tmp_path):
    return BookStore(tmp_path / "books.csv")


def test_add_generates_id_and_persists(store, tmp_path):
    book = make_book()
    book_id = store.add(book)

    assert book_id.startswith("B")
    assert book.id == book_id
    assert store.find_by_id(book_id).title == "Dune"

    reloaded = BookStore(tmp_path / "books.csv")
    assert reloaded.find_by_id(book_id) == store.find_by_id(book_id)


def test_add_keeps_explicit_id(store):
    assert store.add(make_book(id="B1")) == "B1"


def test_add_duplicate_id_rejected(store):
    store.add(make_book(id="B1"))
    with pytest.raises(DuplicateIdError):
        store.add(make_book("Other", id="B1"))
    assert len(store) == 1


def test_add_rejects_available_above_total(store):
    with pytest.raises(InvalidRecordError):
        store.add(make_book(total_count=1, available_count=2))
    assert len(store) == 0


def test_capacity_exceeded(tmp_path):
    store = BookStore(tmp_path / "books.csv", capacity=1)
    store.add(make_book())
    with pytest.raises(CapacityExceededError):
        store.add(make_book("Second"))


def test_generated_ids_are_unique_even_when_factory_repeats(tmp_path):
    ids = iter(["B1", "B1", "B2"])
    store = BookStore(tmp_path / "books.csv", id_factory=lambda prefix: next(ids))
    assert store.add(make_book()) == "B1"
    assert store.add(make_book("Second")) == "B2"


def test_delete_preserves_order(store):
    for i in range(3):
        store.add(make_book(f"Book {i}", id=f"B{i}"))

    store.delete("B1")

    assert [b.id for b in store.get_all()] == ["B0", "B2"]


def test_delete_missing_raises_not_found(store):
    with pytest.raises(BookNotFoundError) as excinfo:
        store.delete("nope")
    assert isinstance(excinfo.value, NotFoundError)
    assert isinstance(excinfo.value, LookupError)


def test_update_replaces_whole_record(store):
    store.add(make_book(id="B1"))
    store.update(make_book("Dune Messiah", id="B1", publish_year=1969, total_count=3, available_count=1))

    book = store.find_by_id("B1")
    assert book.title == "Dune Messiah"
    assert book.publish_year == 1969
    assert (book.total_count, book.available_count) == (3, 1)


def test_update_missing_raises(store):
    with pytest.raises(BookNotFoundError):
        store.update(make_book(id="ghost"))


def test_find_by_id_returns_copy(store):
    store.add(make_book(id="B1"))
    copy = store.find_by_id("B1")
    copy.available_count = 0
    assert store.find_by_id("B1").available_count == 2


def test_find_by_id_missing_returns_none(store):
    assert store.find_by_id("missing") is None


def test_find_by_title_case_insensitive_and_limited(store):
    store.add(make_book("The Hobbit", id="B1"))
    store.add(make_book("Dune", id="B2"))
    store.add(make_book("the hobbit (annotated)", id="B3"))
    store.add(make_book("HOBBIT tales", id="B4"))

    assert [b.id for b in store.find_by_title("hobbit")] == ["B1", "B3", "B4"]
    assert [b.id for b in store.find_by_title("HoBbIt", limit=2)] == ["B1", "B3"]
    assert store.find_by_title("hobbit", limit=0) == []


def test_get_all_limit(store):
    for i in range(5):
        store.add(make_book(f"Book {i}", id=f"B{i}"))
    assert len(store.get_all()) == 5
    assert [b.id for b in store.get_all(limit=2)] == ["B0", "B1"]


def test_size_and_membership_wait_for_the_lock(store):
    store.add(make_book(id="B1"))
    results = {}

    def read_store():
        results["len"] = len(store)
        results["contains"] = "B1" in store
        results["full"] = store.is_full()

    with store.lock:
        worker = threading.Thread(target=read_store)
        worker.start()
        worker.join(timeout=0.2)
        assert worker.is_alive()
        assert results == {}

    worker.join(timeout=5)
    assert results == {"len": 1, "contains": True, "full": False}
