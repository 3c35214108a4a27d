import logging
import sys
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt
from rich.table import Table

from catalog.library import Library
from catalog.storage import JsonStore
from catalog.ui_helpers import (
    print_books,
    print_loans,
    print_members,
    print_stats_result,
    set_output_mode,
)
from config import settings

logging.basicConfig(level=getattr(logging, settings.log_level, logging.WARNING))
logger = logging.getLogger(__name__)

console = Console()


class LibraryManager:
    """Holds the single Library for this process, loaded once from the data directory."""

    _instance: Optional[Library] = None
    _data_dir_snapshot: Optional[str] = None

    @classmethod
    def get_instance(cls) -> Library:
        current_dir = settings.data_dir
        # Rebuild if the data directory changed (e.g. a different directory per test)
        if cls._instance is None or current_dir != cls._data_dir_snapshot:
            cls._instance = Library(JsonStore(current_dir))
            cls._instance.load()
            cls._data_dir_snapshot = current_dir
            logger.debug(f"Library loaded from {current_dir}")
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None
        cls._data_dir_snapshot = None


def _save(lib: Library) -> bool:
    """Persist after a mutation. A failed save is reported, never fatal."""
    try:
        lib.save()
        return True
    except OSError as e:
        logger.error(f"Save failed: {e}")
        print(f"Error saving catalog: {e}")
        return False


def _issue_refusal_reason(lib: Library, book_id: str, member_id: str) -> str:
    book = lib.find_book(book_id)
    if not book:
        return f"Book {book_id} not found."
    if not book.is_available:
        return f"No copies of '{book.title}' are available."
    return f"Member {member_id} already has {Library.MAX_ACTIVE_LOANS} active loans."


# --- Typer CLI Application ---
app = typer.Typer(help=settings.app_name)


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    )
):
    """Global CLI options (e.g. output mode)."""
    if output:
        set_output_mode(output)


@app.command("add-book")
def cli_add_book(
    title: str,
    author: str,
    isbn: Optional[str] = typer.Option(None, "--isbn", help="ISBN (optional)"),
    copies: int = typer.Option(1, "--copies", "-c", help="Number of copies"),
):
    """Add a book to the catalog."""
    lib = LibraryManager.get_instance()
    book = lib.add_book(title, author, isbn, copies)
    _save(lib)
    print(f"Added book {book.id}: {book.title} by {book.author} ({book.total_copies} copies)")


@app.command("list-books")
def cli_list_books():
    """List all books."""
    print_books(LibraryManager.get_instance().list_books())


@app.command("search")
def cli_search(keyword: str = typer.Argument(..., help="Text to look for in title, author or ISBN")):
    """Search books by title, author or ISBN."""
    books = LibraryManager.get_instance().search_books(keyword)
    if not books:
        print(f"No books matched '{keyword}'.")
        return
    print(f"{len(books)} book(s) found:")
    print_books(books)


@app.command("remove-book")
def cli_remove_book(book_id: str):
    """Remove a book that has no active loans."""
    lib = LibraryManager.get_instance()
    if lib.remove_book(book_id):
        _save(lib)
        print(f"Book {book_id} has been removed.")
    else:
        print(f"Book {book_id} not found or still on loan.")


@app.command("set-copies")
def cli_set_copies(book_id: str, copies: int):
    """Change the number of copies held for a book."""
    lib = LibraryManager.get_instance()
    book = lib.update_book_copies(book_id, copies)
    if not book:
        print(f"Book {book_id} not found.")
        return
    _save(lib)
    print(f"Book {book.id}: {book.available_copies}/{book.total_copies} available")


@app.command("add-member")
def cli_add_member(name: str, email: str, phone: str):
    """Register a new member."""
    lib = LibraryManager.get_instance()
    member = lib.add_member(name, email, phone)
    _save(lib)
    print(f"Added member {member.id}: {member.name}")


@app.command("list-members")
def cli_list_members():
    """List all members."""
    print_members(LibraryManager.get_instance().list_members())


@app.command("remove-member")
def cli_remove_member(member_id: str):
    """Remove a member who has no active loans."""
    lib = LibraryManager.get_instance()
    if lib.remove_member(member_id):
        _save(lib)
        print(f"Member {member_id} has been removed.")
    else:
        print(f"Member {member_id} not found or has active loans.")


@app.command("issue")
def cli_issue(book_id: str, member_id: str):
    """Lend a book to a member."""
    lib = LibraryManager.get_instance()
    loan = lib.issue_book(book_id, member_id)
    if not loan:
        print(f"Could not issue book: {_issue_refusal_reason(lib, book_id, member_id)}")
        return
    _save(lib)
    print(f"Issued loan {loan.id}, due {loan.due_date.isoformat()}")


@app.command("return")
def cli_return(loan_id: str):
    """Return a borrowed book and show the fine owed."""
    lib = LibraryManager.get_instance()
    fine = lib.return_book(loan_id)
    if fine is None:
        print(f"Loan {loan_id} not found or already returned.")
        return
    _save(lib)
    print(f"Loan {loan_id} returned. Fine: {fine}")


@app.command("loans")
def cli_loans(active: bool = typer.Option(False, "--active", "-a", help="Only show outstanding loans")):
    """List loans."""
    print_loans(LibraryManager.get_instance().list_loans(active))


@app.command("fine")
def cli_fine(loan_id: str):
    """Show the fine for a loan as of today."""
    lib = LibraryManager.get_instance()
    if not lib.find_loan(loan_id):
        print(f"Loan {loan_id} not found.")
        return
    print(f"Fine for loan {loan_id}: {lib.compute_fine(loan_id)}")


@app.command("overdue")
def cli_overdue():
    """List outstanding loans past their due date."""
    print_loans(LibraryManager.get_instance().overdue_loans())


@app.command("stats")
def cli_stats():
    """Show catalog statistics."""
    print_stats_result(LibraryManager.get_instance().get_statistics())


# --- Interactive menu ---
MENU_ITEMS = [
    ("1", "Add book"),
    ("2", "List books"),
    ("3", "Search books"),
    ("4", "Remove book"),
    ("5", "Add member"),
    ("6", "List members"),
    ("7", "Remove member"),
    ("8", "Issue book"),
    ("9", "List loans"),
    ("10", "Return book"),
    ("11", "Statistics"),
    ("0", "Exit"),
]


def render_menu() -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column()
    for key, label in MENU_ITEMS:
        table.add_row(key, label)
    console.print(Panel(table, title=settings.app_name, border_style="cyan", box=box.HEAVY, padding=(1, 2)))


def run_menu() -> None:
    """Numbered menu over the same commands; the catalog is loaded once up front."""
    LibraryManager.get_instance()
    choices = [key for key, _ in MENU_ITEMS]

    while True:
        render_menu()
        choice = Prompt.ask("Choose an option", choices=choices, default="2").strip()

        if choice == "1":
            title = Prompt.ask("Title")
            author = Prompt.ask("Author")
            isbn = Prompt.ask("ISBN (blank for none)", default="").strip() or None
            copies = IntPrompt.ask("Copies", default=1)
            cli_add_book(title, author, isbn, copies)
        elif choice == "2":
            cli_list_books()
        elif choice == "3":
            cli_search(Prompt.ask("Keyword"))
        elif choice == "4":
            cli_remove_book(Prompt.ask("Book ID"))
        elif choice == "5":
            cli_add_member(Prompt.ask("Name"), Prompt.ask("Email"), Prompt.ask("Phone"))
        elif choice == "6":
            cli_list_members()
        elif choice == "7":
            cli_remove_member(Prompt.ask("Member ID"))
        elif choice == "8":
            cli_issue(Prompt.ask("Book ID"), Prompt.ask("Member ID"))
        elif choice == "9":
            cli_loans(Prompt.ask("Only active loans?", choices=["y", "n"], default="n") == "y")
        elif choice == "10":
            cli_return(Prompt.ask("Loan ID"))
        elif choice == "11":
            cli_stats()
        elif choice == "0":
            console.print("[green]Goodbye![/]")
            break
        print()  # spacing between operations


if __name__ == "__main__":
    if len(sys.argv) > 1:
        app()
    else:
        run_menu()
