import os
import json
from typing import Any, Dict, List, Sequence, Tuple
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()

BOOK_COLUMNS = [("ID", "id"), ("Title", "title"), ("Author", "author"), ("ISBN", "isbn"),
                ("Available", "available_copies"), ("Total", "total_copies")]
MEMBER_COLUMNS = [("ID", "id"), ("Name", "name"), ("Email", "email"), ("Phone", "phone")]
LOAN_COLUMNS = [("ID", "id"), ("Book", "book_id"), ("Member", "member_id"), ("Issued", "issue_date"),
                ("Due", "due_date"), ("Returned", "return_date")]


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode
    # Invalid values are ignored; the current default stays


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def _cell(record: Any, attr: str) -> str:
    value = getattr(record, attr, "")
    if value is None:
        return "-"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def print_records(records: Sequence[Any], columns: List[Tuple[str, str]], empty_message: str,
                  title: str = "") -> None:
    """Print records according to the current output mode.
    - plain: one ' | '-joined line per record, or the empty message
    - json: JSON array of the record dicts
    - rich: Rich table
    """
    if not records:
        print(empty_message)
        return

    mode = get_output_mode()
    if mode == "json":
        print(json.dumps([r.to_dict() for r in records], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title=title, show_lines=True, header_style="bold cyan")
        for header, _ in columns:
            table.add_column(header, style="magenta" if header == "ID" else "white", no_wrap=header == "ID")
        for r in records:
            table.add_row(*[_cell(r, attr) for _, attr in columns])
        _console.print(table)
    else:
        for r in records:
            print(" | ".join(_cell(r, attr) for _, attr in columns))


def print_books(books: Sequence[Any]) -> None:
    print_records(books, BOOK_COLUMNS, "No books in library.", title="📚 Books")


def print_members(members: Sequence[Any]) -> None:
    print_records(members, MEMBER_COLUMNS, "No members registered.", title="👥 Members")


def print_loans(loans: Sequence[Any]) -> None:
    print_records(loans, LOAN_COLUMNS, "No loans found.", title="📖 Loans")


def print_stats_result(stats: Dict[str, Any]) -> None:
    """Print catalog statistics according to the current output mode."""
    mode = get_output_mode()

    if not stats:
        print("No statistics available.")
        return

    labels = [(key, key.replace("_", " ").title()) for key in stats]

    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join(f"[bold]{label}:[/] {stats[key]}" for key, label in labels)
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
    else:
        for key, label in labels:
            print(f"{label}: {stats[key]}")
