from datetime import date, timedelta

import pytest

from catalog.book import Book
from catalog.loan import Loan
from catalog.member import Member


def make_loan(due=date(2024, 3, 15), returned=None):
    return Loan("l1", "b1", "m1", issue_date=due - timedelta(days=14), due_date=due, return_date=returned)


def test_new_book_has_all_copies_available():
    book = Book("b1", "  Dune ", "Frank Herbert", total_copies=3)
    assert book.title == "Dune"
    assert book.available_copies == 3
    assert book.isbn is None


def test_borrow_one_until_empty():
    book = Book("b1", "Dune", "Frank Herbert", total_copies=2)
    assert book.borrow_one() is True
    assert book.borrow_one() is True
    assert book.borrow_one() is False
    assert book.available_copies == 0


def test_return_one_never_exceeds_total():
    book = Book("b1", "Dune", "Frank Herbert", total_copies=2)
    book.borrow_one()
    book.return_one()
    book.return_one()
    assert book.available_copies == 2


def test_set_total_copies_shifts_availability():
    book = Book("b1", "Dune", "Frank Herbert", total_copies=3)
    book.borrow_one()
    book.set_total_copies(5)
    assert (book.total_copies, book.available_copies) == (5, 4)


def test_set_total_copies_shrink_floors_at_zero():
    book = Book("b1", "Dune", "Frank Herbert", total_copies=3)
    book.borrow_one()
    book.borrow_one()
    book.set_total_copies(1)
    assert (book.total_copies, book.available_copies) == (1, 0)


def test_set_total_copies_ignores_values_below_one():
    book = Book("b1", "Dune", "Frank Herbert", total_copies=3)
    book.set_total_copies(0)
    book.set_total_copies(-2)
    assert (book.total_copies, book.available_copies) == (3, 3)


def test_copy_counts_stay_in_range_over_mixed_operations():
    book = Book("b1", "Dune", "Frank Herbert", total_copies=2)
    ops = [book.borrow_one, book.borrow_one, book.borrow_one, lambda: book.set_total_copies(1),
           book.return_one, book.return_one, lambda: book.set_total_copies(4), book.borrow_one,
           lambda: book.set_total_copies(2), book.return_one, book.return_one, book.return_one]
    for op in ops:
        op()
        assert 0 <= book.available_copies <= book.total_copies


def test_equality_is_by_id_only():
    a = Book("b1", "Dune", "Frank Herbert")
    b = Book("b1", "Something Else", "Someone", total_copies=9)
    assert a == b
    assert len({a, b}) == 1
    assert Member("m1", "Ann", "a@x.org", "1") == Member("m1", "Bob", "b@x.org", "2")
    assert Member("m1", "Ann", "a@x.org", "1") != Member("m2", "Ann", "a@x.org", "1")
    assert make_loan() == Loan("l1", "other", "other", date(2020, 1, 1), date(2020, 1, 15))


def test_hash_survives_attribute_change():
    book = Book("b1", "Dune", "Frank Herbert")
    shelf = {book}
    book.title = "Dune Messiah"
    book.set_total_copies(4)
    assert book in shelf


def test_loan_not_overdue_on_due_date():
    loan = make_loan()
    assert loan.days_overdue(date(2024, 3, 15)) == 0
    assert loan.fine(date(2024, 3, 10)) == 0


def test_loan_fine_accrues_per_day_late():
    loan = make_loan()
    assert loan.days_overdue(date(2024, 3, 21)) == 6
    assert loan.fine(date(2024, 3, 21)) == 30
    assert loan.fine(date(2024, 3, 21), rate=2) == 12


def test_returned_loan_fine_is_frozen():
    loan = make_loan()
    loan.mark_returned(date(2024, 3, 18))
    assert not loan.is_active
    assert loan.fine(date(2024, 3, 18)) == 15
    assert loan.fine(date(2025, 1, 1)) == 15


def test_empty_isbn_is_distinct_from_missing():
    assert Book("b1", "T", "A", isbn="").isbn == ""
    assert Book.from_dict(Book("b1", "T", "A", isbn="").to_dict()).isbn == ""
    assert Book.from_dict(Book("b2", "T", "A").to_dict()).isbn is None


def test_loan_dict_uses_iso_dates():
    loan = make_loan(returned=date(2024, 3, 20))
    data = loan.to_dict()
    assert data["due_date"] == "2024-03-15"
    assert data["return_date"] == "2024-03-20"
    restored = Loan.from_dict(data)
    assert restored.return_date == date(2024, 3, 20)
    assert Loan.from_dict(make_loan().to_dict()).return_date is None


def test_book_from_dict_keeps_available_copies():
    book = Book("b1", "Dune", "Frank Herbert", total_copies=4)
    book.borrow_one()
    restored = Book.from_dict(book.to_dict())
    assert (restored.total_copies, restored.available_copies) == (4, 3)


@pytest.mark.parametrize("total, available", [(2, 9), (0, 0), (3, -1)])
def test_book_from_dict_rejects_broken_copy_counts(total, available):
    data = Book("b1", "Dune", "Frank Herbert").to_dict()
    data.update(total_copies=total, available_copies=available)
    with pytest.raises(ValueError):
        Book.from_dict(data)


def test_from_dict_rejects_non_text_fields():
    book = Book("b1", "Dune", "Frank Herbert").to_dict()
    book["title"] = None
    with pytest.raises(TypeError):
        Book.from_dict(book)

    member = Member("m1", "Ann", "a@x.org", "555").to_dict()
    member["phone"] = 5550100
    with pytest.raises(TypeError):
        Member.from_dict(member)
