import logging
import uuid
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional

from catalog.book import Book
from catalog.loan import Loan
from catalog.member import Member
from catalog.storage import StorageError

logger = logging.getLogger(__name__)

BOOKS_STORE = "books"
MEMBERS_STORE = "members"
LOANS_STORE = "loans"


class Library:
    """Owns the book, member and loan collections and enforces the lending rules.

    Collections are dicts keyed by id; listing follows insertion order. Loans refer
    to books and members by id only, and nothing is ever deleted as a side effect:
    removals are refused while an outstanding loan points at the record.
    """

    LOAN_PERIOD_DAYS = 14
    MAX_ACTIVE_LOANS = 5
    DAILY_FINE_RATE = 5

    def __init__(self, store, clock: Callable[[], date] = date.today) -> None:
        self.store = store
        self.clock = clock
        self.books: Dict[str, Book] = {}
        self.members: Dict[str, Member] = {}
        self.loans: Dict[str, Loan] = {}

    # ------------------------- Books ------------------------- #
    def add_book(self, title: str, author: str, isbn: Optional[str] = None, copies: int = 1) -> Book:
        copies = max(1, copies)
        book = Book(id=self._new_id(self.books), title=title, author=author, isbn=isbn,
                    total_copies=copies, available_copies=copies)
        self.books[book.id] = book
        logger.info(f"Book added: {book.id} '{book.title}' ({copies} copies)")
        return book

    def list_books(self) -> List[Book]:
        return list(self.books.values())

    def find_book(self, book_id: str) -> Optional[Book]:
        return self.books.get(book_id)

    def search_books(self, keyword: str) -> List[Book]:
        """Case-insensitive substring match on title, author or ISBN."""
        needle = keyword.lower()
        results = []
        for book in self.books.values():
            fields = [book.title, book.author, book.isbn]
            if any(f is not None and needle in f.lower() for f in fields):
                results.append(book)
        return results

    def update_book(self, book_id: str, *, title: Optional[str] = None, author: Optional[str] = None,
                    isbn: Optional[str] = None) -> Optional[Book]:
        """Update title, author and/or ISBN. Returns the book or None if not found."""
        if title is None and author is None and isbn is None:
            raise ValueError("Nothing to update. Provide title, author and/or isbn.")

        book = self.find_book(book_id)
        if not book:
            return None

        book.title = _keep_if_blank(title, book.title)
        book.author = _keep_if_blank(author, book.author)
        book.isbn = _keep_if_blank(isbn, book.isbn)
        return book

    def update_book_copies(self, book_id: str, copies: int) -> Optional[Book]:
        book = self.find_book(book_id)
        if not book:
            return None
        book.set_total_copies(copies)
        return book

    def remove_book(self, book_id: str) -> bool:
        if book_id not in self.books:
            logger.debug(f"Cannot remove book {book_id}: unknown id")
            return False
        if any(loan.is_active and loan.book_id == book_id for loan in self.loans.values()):
            logger.debug(f"Cannot remove book {book_id}: active loans")
            return False
        del self.books[book_id]
        logger.info(f"Book removed: {book_id}")
        return True

    # ------------------------- Members ------------------------- #
    def add_member(self, name: str, email: str, phone: str) -> Member:
        member = Member(id=self._new_id(self.members), name=name, email=email, phone=phone)
        self.members[member.id] = member
        logger.info(f"Member added: {member.id} '{member.name}'")
        return member

    def list_members(self) -> List[Member]:
        return list(self.members.values())

    def find_member(self, member_id: str) -> Optional[Member]:
        return self.members.get(member_id)

    def update_member(self, member_id: str, *, name: Optional[str] = None, email: Optional[str] = None,
                      phone: Optional[str] = None) -> Optional[Member]:
        if name is None and email is None and phone is None:
            raise ValueError("Nothing to update. Provide name, email and/or phone.")

        member = self.find_member(member_id)
        if not member:
            return None

        member.name = _keep_if_blank(name, member.name)
        member.email = _keep_if_blank(email, member.email)
        member.phone = _keep_if_blank(phone, member.phone)
        return member

    def remove_member(self, member_id: str) -> bool:
        if member_id not in self.members:
            logger.debug(f"Cannot remove member {member_id}: unknown id")
            return False
        if self.active_loan_count(member_id) > 0:
            logger.debug(f"Cannot remove member {member_id}: active loans")
            return False
        del self.members[member_id]
        logger.info(f"Member removed: {member_id}")
        return True

    # ------------------------- Loans ------------------------- #
    def issue_book(self, book_id: str, member_id: str) -> Optional[Loan]:
        """Lend one copy of a book. Returns the new loan, or None if refused.

        Refused when the book is unknown, has no copy on the shelf, or the member
        already holds MAX_ACTIVE_LOANS outstanding loans. The member id itself is
        not checked against the member collection.
        """
        book = self.find_book(book_id)
        if not book:
            logger.debug(f"Cannot issue {book_id}: unknown book")
            return None
        if not book.is_available:
            logger.debug(f"Cannot issue {book_id}: no copies available")
            return None
        if self.active_loan_count(member_id) >= self.MAX_ACTIVE_LOANS:
            logger.debug(f"Cannot issue {book_id}: member {member_id} reached the loan limit")
            return None

        book.borrow_one()
        today = self.clock()
        loan = Loan(
            id=self._new_id(self.loans),
            book_id=book_id,
            member_id=member_id,
            issue_date=today,
            due_date=today + timedelta(days=self.LOAN_PERIOD_DAYS),
        )
        self.loans[loan.id] = loan
        logger.info(f"Loan issued: {loan.id} book={book_id} member={member_id} due={loan.due_date}")
        return loan

    def return_book(self, loan_id: str) -> Optional[int]:
        """Close an outstanding loan. Returns the fine owed, or None if refused."""
        loan = self.loans.get(loan_id)
        if not loan:
            logger.debug(f"Cannot return {loan_id}: unknown loan")
            return None
        if not loan.is_active:
            logger.debug(f"Cannot return {loan_id}: already returned")
            return None

        today = self.clock()
        loan.mark_returned(today)
        book = self.find_book(loan.book_id)
        if book:
            book.return_one()
        fine = loan.fine(today, self.DAILY_FINE_RATE)
        logger.info(f"Loan returned: {loan_id} fine={fine}")
        return fine

    def find_loan(self, loan_id: str) -> Optional[Loan]:
        return self.loans.get(loan_id)

    def list_loans(self, only_active: bool = False) -> List[Loan]:
        return [loan for loan in self.loans.values() if loan.is_active or not only_active]

    def member_loans(self, member_id: str, only_active: bool = False) -> List[Loan]:
        return [loan for loan in self.list_loans(only_active) if loan.member_id == member_id]

    def active_loan_count(self, member_id: str) -> int:
        return len(self.member_loans(member_id, only_active=True))

    def overdue_loans(self, as_of: Optional[date] = None) -> List[Loan]:
        as_of = as_of or self.clock()
        return [loan for loan in self.list_loans(only_active=True) if loan.days_overdue(as_of) > 0]

    def compute_fine(self, loan_id: str, as_of: Optional[date] = None) -> int:
        loan = self.loans.get(loan_id)
        if not loan:
            return 0
        return loan.fine(as_of or self.clock(), self.DAILY_FINE_RATE)

    def total_fines(self, member_id: str, as_of: Optional[date] = None) -> int:
        as_of = as_of or self.clock()
        return sum(loan.fine(as_of, self.DAILY_FINE_RATE) for loan in self.member_loans(member_id))

    def get_statistics(self) -> Dict[str, Any]:
        today = self.clock()
        return {
            "total_books": len(self.books),
            "total_copies": sum(b.total_copies for b in self.books.values()),
            "available_copies": sum(b.available_copies for b in self.books.values()),
            "total_members": len(self.members),
            "active_loans": len(self.list_loans(only_active=True)),
            "overdue_loans": len(self.overdue_loans(today)),
            "outstanding_fines": sum(loan.fine(today, self.DAILY_FINE_RATE) for loan in self.list_loans(only_active=True)),
        }

    # ------------------------- Persistence ------------------------- #
    def save(self) -> None:
        """Write all three collections. Errors propagate; writes are not atomic across stores."""
        self.store.save(BOOKS_STORE, {k: b.to_dict() for k, b in self.books.items()})
        self.store.save(MEMBERS_STORE, {k: m.to_dict() for k, m in self.members.items()})
        self.store.save(LOANS_STORE, {k: loan.to_dict() for k, loan in self.loans.items()})

    def load(self) -> None:
        """Replace each collection whose store exists; keep the current one otherwise.

        All stores are decoded before any collection is swapped, so a failure
        leaves the catalog exactly as it was. Failures are logged, not raised.
        """
        try:
            books = self._read(BOOKS_STORE, Book.from_dict)
            members = self._read(MEMBERS_STORE, Member.from_dict)
            loans = self._read(LOANS_STORE, Loan.from_dict)
        except (StorageError, OSError, KeyError, ValueError, TypeError) as e:
            logger.warning(f"Could not load catalog, keeping current state: {e}")
            return

        if books is not None:
            self.books = books
        if members is not None:
            self.members = members
        if loans is not None:
            self.loans = loans

    def _read(self, name: str, decode: Callable[[dict], Any]) -> Optional[Dict[str, Any]]:
        data = self.store.load(name)
        if data is None:
            return None
        records = {}
        for raw in data.values():
            record = decode(raw)
            records[record.id] = record
        return records

    # ------------------------- Utilities ------------------------- #
    @staticmethod
    def _new_id(existing: Dict[str, Any]) -> str:
        while True:
            new_id = uuid.uuid4().hex[:8]
            if new_id not in existing:
                return new_id


def _keep_if_blank(value: Optional[str], current):
    if value is None or not value.strip():
        return current
    return value.strip()
