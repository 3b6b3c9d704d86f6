import pytest

from library_app.errors import InvalidRecordError, ReaderHasLoansError, ReaderNotFoundError
from library_app.reader import DEFAULT_MAX_BORROW_COUNT, Reader, ReaderStore


@pytest.fixture
def store(tmp_path):
    return ReaderStore(tmp_path / "readers.csv")


def make_reader(name="Alice Reader", **kwargs):
    defaults = dict(gender="F", phone="555-0101", email="alice@example.com", address="1 Main St")
    defaults.update(kwargs)
    return Reader(name=name, **defaults)


def test_add_generates_id_with_defaults(store):
    reader_id = store.add(make_reader())
    reader = store.find_by_id(reader_id)

    assert reader_id.startswith("R")
    assert reader.max_borrow_count == DEFAULT_MAX_BORROW_COUNT
    assert reader.current_borrow_count == 0


def test_update_preserves_current_borrow_count(store):
    store.add(make_reader(id="R1"))
    store.set_borrow_count("R1", 2)

    store.update(make_reader("Alice Cooper", id="R1", current_borrow_count=0))

    reader = store.find_by_id("R1")
    assert reader.name == "Alice Cooper"
    assert reader.current_borrow_count == 2


def test_update_cannot_lower_limit_below_open_loans(store):
    store.add(make_reader(id="R1", max_borrow_count=3))
    store.set_borrow_count("R1", 3)

    with pytest.raises(InvalidRecordError):
        store.update(make_reader(id="R1", max_borrow_count=1))
    assert store.find_by_id("R1").max_borrow_count == 3


def test_update_missing_raises(store):
    with pytest.raises(ReaderNotFoundError):
        store.update(make_reader(id="ghost"))


def test_delete_with_open_loans_rejected(store):
    store.add(make_reader(id="R1"))
    store.set_borrow_count("R1", 1)

    with pytest.raises(ReaderHasLoansError):
        store.delete("R1")
    assert "R1" in store


def test_delete_without_loans(store, tmp_path):
    store.add(make_reader(id="R1"))
    store.add(make_reader("Bob", id="R2"))
    store.delete("R1")

    assert [r.id for r in ReaderStore(tmp_path / "readers.csv").get_all()] == ["R2"]


def test_delete_missing_raises(store):
    with pytest.raises(ReaderNotFoundError):
        store.delete("nobody")


def test_find_by_name(store):
    store.add(make_reader("Alice Reader", id="R1"))
    store.add(make_reader("Bob Librarian", id="R2"))
    store.add(make_reader("alice admin", id="R3"))

    assert [r.id for r in store.find_by_name("ALICE")] == ["R1", "R3"]
    assert [r.id for r in store.find_by_name("alice", limit=1)] == ["R1"]


def test_set_borrow_count_without_persist(store, tmp_path):
    store.add(make_reader(id="R1"))
    store.set_borrow_count("R1", 1, persist=False)

    assert store.find_by_id("R1").current_borrow_count == 1
    assert ReaderStore(tmp_path / "readers.csv").find_by_id("R1").current_borrow_count == 0
