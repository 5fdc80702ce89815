"""
Book repository tests: CRUD, paginated listing, bulk operations.
"""
import sqlite3

import pytest

from bookstore.db import deadline
from bookstore.domain.models import Book
from bookstore.errors import Cancelled, ConstraintViolation, InvalidArgument, NotFound, TransactionFailure
from bookstore.repository import book_repo


def _titles(conn):
    return {r["id"]: (r["title"], bool(r["has_sales"])) for r in conn.execute("SELECT * FROM books ORDER BY id")}


def test_create_then_get_round_trip(conn):
    created = book_repo.create_book(conn, Book(title="X", has_sales=False))
    assert created.id is not None and created.id > 0
    fetched = book_repo.get_book(conn, created.id)
    assert fetched.title == "X"
    assert fetched.has_sales is False


def test_create_assigns_increasing_ids(conn):
    a = book_repo.create_book(conn, Book(title="A"))
    b = book_repo.create_book(conn, Book(title="B", has_sales=True))
    assert b.id > a.id
    assert book_repo.get_book(conn, b.id).has_sales is True


def test_create_tolerates_any_string_title(conn):
    book = book_repo.create_book(conn, Book(title=""))
    assert book_repo.get_book(conn, book.id).title == ""


def test_create_null_title_is_constraint_violation(conn):
    with pytest.raises(ConstraintViolation):
        book_repo.create_book(conn, Book(title=None))


def test_get_missing_book_is_not_found(conn):
    with pytest.raises(NotFound):
        book_repo.get_book(conn, 12345)


def test_get_rejects_malformed_id(conn):
    with pytest.raises(InvalidArgument):
        book_repo.get_book(conn, "1")
    with pytest.raises(InvalidArgument):
        book_repo.get_book(conn, True)


def test_update_replaces_fields(conn, make_books):
    (bid,) = make_books(("Old", False))
    assert book_repo.update_book(conn, Book(id=bid, title="New", has_sales=True)) is True
    book = book_repo.get_book(conn, bid)
    assert (book.title, book.has_sales) == ("New", True)


def test_update_unknown_id_is_silent_noop(conn, make_books):
    make_books(("Keep", False))
    before = _titles(conn)
    assert book_repo.update_book(conn, Book(id=999, title="Ghost", has_sales=True)) is False
    assert _titles(conn) == before


def test_update_requires_id(conn):
    with pytest.raises(InvalidArgument):
        book_repo.update_book(conn, Book(title="no id"))


def test_delete_books(conn, make_books):
    ids = make_books(("A", False), ("B", False), ("C", True))
    assert book_repo.delete_books(conn, [ids[0], ids[2], 999]) == 2
    assert list(_titles(conn)) == [ids[1]]


def test_delete_empty_is_noop(conn, make_books):
    make_books(("A", False))
    assert book_repo.delete_books(conn, []) == 0
    assert len(_titles(conn)) == 1


class TestListBooks:

    def test_page_bounded_by_limit_and_total_counts_all(self, conn, make_books):
        make_books(*[(f"Book {i}", i % 2 == 0) for i in range(12)])
        for limit, offset in [(5, 0), (5, 5), (5, 10), (3, 11), (100, 0)]:
            res = book_repo.list_books(conn, limit, offset)
            assert len(res.books) <= limit
            assert res.total_count == 12
        assert len(book_repo.list_books(conn, 5, 10).books) == 2

    def test_ordered_by_id(self, conn, make_books):
        ids = make_books(("C", False), ("A", False), ("B", False))
        res = book_repo.list_books(conn, 10, 0)
        assert [b.id for b in res.books] == sorted(ids)

    def test_offset_past_end_returns_empty_page_with_total(self, conn, make_books):
        make_books(("A", False), ("B", False))
        res = book_repo.list_books(conn, 5, 50)
        assert res.books == []
        assert res.total_count == 2

    def test_filter_on_sale_and_search(self, conn, make_books):
        make_books(("Alpha", True), ("Beta", False))
        on_sale = book_repo.list_books(conn, 10, 0, filter="on_sale")
        assert [b.title for b in on_sale.books] == ["Alpha"]
        assert on_sale.total_count == 1

        not_on_sale = book_repo.list_books(conn, 10, 0, filter="not_on_sale")
        assert [b.title for b in not_on_sale.books] == ["Beta"]

        found = book_repo.list_books(conn, 10, 0, search="Bet")
        assert [b.title for b in found.books] == ["Beta"]
        assert found.total_count == 1

    def test_search_is_case_insensitive_substring(self, conn, make_books):
        make_books(("The Alpha Book", False), ("Omega", False))
        res = book_repo.list_books(conn, 10, 0, search="alpha")
        assert [b.title for b in res.books] == ["The Alpha Book"]

    def test_search_treats_wildcards_literally(self, conn, make_books):
        make_books(("100% Python", False), ("1000 Pythons", False), ("snake_case", False), ("snakeXcase", False))
        assert [b.title for b in book_repo.list_books(conn, 10, 0, search="100%").books] == ["100% Python"]
        assert [b.title for b in book_repo.list_books(conn, 10, 0, search="e_c").books] == ["snake_case"]

    def test_total_agrees_with_direct_count(self, conn, make_books):
        make_books(*[(f"Title {i}", i % 3 == 0) for i in range(20)])
        for search, flt in [("", "all"), ("1", "all"), ("Title", "on_sale"), ("2", "not_on_sale"), ("zzz", "all")]:
            for offset in (0, 3, 40):
                res = book_repo.list_books(conn, 4, offset, search, flt)
                assert res.total_count == book_repo.count_books(conn, search, flt)

    def test_unknown_filter_lists_everything(self, conn, make_books):
        make_books(("A", True), ("B", False))
        assert book_repo.list_books(conn, 10, 0, filter="weird").total_count == 2

    def test_rejects_bad_bounds(self, conn):
        with pytest.raises(InvalidArgument):
            book_repo.list_books(conn, 0, 0)
        with pytest.raises(InvalidArgument):
            book_repo.list_books(conn, 5, -1)

    def test_leaves_connection_outside_transaction(self, conn, make_books):
        make_books(("A", False))
        book_repo.list_books(conn, 5, 0)
        assert not conn.in_transaction

    def test_reads_inside_callers_open_transaction(self, tmp_db_path, make_books):
        make_books(("kept", False))
        # default isolation: the INSERT opens a transaction implicitly
        c = sqlite3.connect(tmp_db_path)
        c.row_factory = sqlite3.Row
        try:
            c.execute("INSERT INTO books (title) VALUES ('pending')")
            assert c.in_transaction
            res = book_repo.list_books(c, 5, 0)
            assert [b.title for b in res.books] == ["kept", "pending"]
            assert res.total_count == 2
            # the caller's transaction is left for the caller to finish
            assert c.in_transaction
        finally:
            c.rollback()
            c.close()

    def test_deadline_cancels_and_rolls_back_snapshot(self, conn, many_books):
        with pytest.raises(Cancelled):
            with deadline(conn, 0):
                book_repo.list_books(conn, 5, 0, search="Book")
        assert not conn.in_transaction
        assert book_repo.list_books(conn, 5, 0, search="Book").total_count == many_books


class TestBulkSalesStatus:

    def test_sets_flag_for_all_ids(self, conn, make_books):
        ids = make_books(("A", False), ("B", False), ("C", False))
        assert book_repo.bulk_update_sales_status(conn, [ids[0], ids[2]], True) == 2
        assert [v[1] for v in _titles(conn).values()] == [True, False, True]

        assert book_repo.bulk_update_sales_status(conn, [ids[2]], False) == 1
        assert _titles(conn)[ids[2]][1] is False

    def test_empty_ids_is_noop(self, conn, make_books):
        make_books(("A", False))
        assert book_repo.bulk_update_sales_status(conn, [], True) == 0
        assert list(_titles(conn).values()) == [("A", False)]

    def test_non_integer_ids_are_rejected(self, conn, make_books):
        make_books(("A", False))
        with pytest.raises(InvalidArgument):
            book_repo.bulk_update_sales_status(conn, ["1) OR (1=1"], True)
        assert list(_titles(conn).values()) == [("A", False)]


class TestBulkUpdateBooks:

    def test_updates_every_book(self, conn, make_books):
        ids = make_books(("A", False), ("B", True))
        changed = book_repo.bulk_update_books(conn, [
            Book(id=ids[0], title="A2", has_sales=True),
            Book(id=ids[1], title="B2", has_sales=False),
        ])
        assert changed == 2
        assert _titles(conn) == {ids[0]: ("A2", True), ids[1]: ("B2", False)}
        assert not conn.in_transaction

    def test_failure_rolls_back_whole_batch(self, conn, make_books):
        ids = make_books(("A", False), ("B", False), ("C", False))
        before = _titles(conn)
        with pytest.raises(TransactionFailure) as exc_info:
            book_repo.bulk_update_books(conn, [
                Book(id=ids[0], title="A2", has_sales=True),
                Book(id=ids[1], title=None, has_sales=True),  # NOT NULL violation
                Book(id=ids[2], title="C2", has_sales=True),
            ])
        assert isinstance(exc_info.value.cause, ConstraintViolation)
        assert _titles(conn) == before
        assert not conn.in_transaction

    def test_unknown_id_is_tolerated(self, conn, make_books):
        ids = make_books(("A", False))
        changed = book_repo.bulk_update_books(conn, [
            Book(id=ids[0], title="A2", has_sales=True),
            Book(id=999, title="Ghost", has_sales=True),
        ])
        assert changed == 1
        assert _titles(conn) == {ids[0]: ("A2", True)}

    def test_empty_batch_is_noop(self, conn):
        assert book_repo.bulk_update_books(conn, []) == 0

    def test_book_without_id_is_rejected_before_any_write(self, conn, make_books):
        ids = make_books(("A", False))
        with pytest.raises(InvalidArgument):
            book_repo.bulk_update_books(conn, [Book(id=ids[0], title="A2"), Book(title="no id")])
        assert _titles(conn) == {ids[0]: ("A", False)}
