from library_app.book import Book, BookStore, book_codec
from library_app.borrow import BorrowRecord, BorrowStatus, borrow_codec
from library_app.csv_codec import format_field, format_line
from library_app.reader import Reader, reader_codec


def test_format_field_quotes_only_when_needed():
    assert format_field("Dune") == "Dune"
    assert format_field("Dune Messiah") == '"Dune Messiah"'
    assert format_field("Herbert, Frank") == '"Herbert, Frank"'
    assert format_field("tab\there") == '"tab\there"'
    assert format_field(42) == "42"
    assert format_field(None) == ""


def test_format_line():
    assert format_line(["B1", "The Hobbit", 1937]) == 'B1,"The Hobbit",1937'


def test_missing_file_loads_empty(tmp_path):
    assert book_codec().load(tmp_path / "nothing.csv") == []


def test_empty_file_loads_empty(tmp_path):
    path = tmp_path / "books.csv"
    path.write_text("", encoding="utf-8")
    assert book_codec().load(path) == []


def test_save_writes_header_and_rows(tmp_path):
    path = tmp_path / "nested" / "books.csv"
    book = Book(id="B1", title="The Hobbit", author="Tolkien", publisher="Allen & Unwin",
                isbn="9780261102217", publish_year=1937, total_count=3, available_count=2)

    book_codec().save(path, [book])

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "id,title,author,publisher,isbn,publish_year,total_count,available_count"
    assert lines[1] == 'B1,"The Hobbit",Tolkien,"Allen & Unwin",9780261102217,1937,3,2'


def test_round_trip_all_entities(tmp_path):
    books = [
        Book(id="B1", title="War, and Peace", author="Leo Tolstoy", publisher="Penguin",
             isbn="123", publish_year=1869, total_count=4, available_count=1),
        Book(id="B2", title="Plain", author="Anon", publisher="", isbn="", publish_year=0,
             total_count=0, available_count=0),
    ]
    readers = [
        Reader(id="R1", name="Zhang San", gender="M", phone="138 0000 0000", email="z@example.com",
               address="Room 5, Building 2", max_borrow_count=5, current_borrow_count=2),
    ]
    records = [
        BorrowRecord(id="BR1", book_id="B1", reader_id="R1", borrow_date=1_700_000_000,
                     due_date=1_702_592_000, return_date=0, status=BorrowStatus.RENEWED, renew_count=1),
        BorrowRecord(id="BR2", book_id="B2", reader_id="R1", borrow_date=1_700_000_000,
                     due_date=1_702_592_000, return_date=1_701_000_000, status=BorrowStatus.RETURNED),
    ]

    for codec, items, name in (
        (book_codec(), books, "books.csv"),
        (reader_codec(), readers, "readers.csv"),
        (borrow_codec(), records, "borrows.csv"),
    ):
        codec.save(tmp_path / name, items)
        assert codec.load(tmp_path / name) == items


def test_embedded_quotes_survive_round_trip(tmp_path):
    book = Book(id="B1", title='The "Best" Book', author="A", total_count=1, available_count=1)
    book_codec().save(tmp_path / "books.csv", [book])
    assert book_codec().load(tmp_path / "books.csv") == [book]


def test_malformed_lines_are_skipped(tmp_path):
    path = tmp_path / "books.csv"
    path.write_text(
        "id,title,author,publisher,isbn,publish_year,total_count,available_count\n"
        "B1,Dune,Herbert,Ace,111,1965,2,2\n"
        "B2,too,few,fields\n"
        "B3,Bad,Count,Ace,222,1965,two,2\n"
        "B4,\"Dune Messiah\",Herbert,Ace,333,1969,1,1\n",
        encoding="utf-8",
    )

    store = BookStore(path)

    assert [b.id for b in store.get_all()] == ["B1", "B4"]
    assert store.find_by_id("B4").title == "Dune Messiah"


def test_unknown_status_ordinal_is_skipped(tmp_path):
    path = tmp_path / "borrows.csv"
    path.write_text(
        "id,book_id,reader_id,borrow_date,due_date,return_date,status,renew_count\n"
        "BR1,B1,R1,100,200,0,0,0\n"
        "BR2,B1,R1,100,200,0,9,0\n",
        encoding="utf-8",
    )
    assert [r.id for r in borrow_codec().load(path)] == ["BR1"]


def test_unquoted_files_load(tmp_path):
    # files written without any quoting still parse when fields hold no commas
    path = tmp_path / "readers.csv"
    path.write_text(
        "id,name,gender,phone,email,address,max_borrow_count,current_borrow_count\n"
        "R1,Li Si,F,13900000000,li@example.com,Some Street 3,5,1\n",
        encoding="utf-8",
    )
    reader = reader_codec().load(path)[0]
    assert reader.name == "Li Si"
    assert reader.address == "Some Street 3"
    assert reader.current_borrow_count == 1
