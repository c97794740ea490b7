"""
Library example showcasing composite keys and record identity in sets.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Set

from recordkit.adapters import ConnectionConfig, MemoryAdapter
from recordkit.persistence import Session

from .models import Book, Branch, Writer


def bootstrap_session(dsn: str = "memory://") -> Session:
    config = ConnectionConfig.from_dsn(dsn)
    return Session(MemoryAdapter(), connection_config=config)


def seed_sample_data(session: Session) -> Dict[str, List[Any]]:
    writers = [
        Writer(name="Octavia Butler", country="USA"),
        Writer(name="Haruki Murakami", country="Japan"),
    ]
    session.save_all(writers)

    books = [
        Book(author_id=writers[0].id, number=1, title="Kindred", published=True),
        Book(author_id=writers[0].id, number=2, title="Dawn", published=True),
        Book(author_id=writers[1].id, number=1, title="Norwegian Wood", published=True),
    ]
    session.save_all(books)

    branch = Branch(city="Springfield")
    session.save(branch)
    return {"writers": writers, "books": books, "branches": [branch]}


def collect_unique(records: Iterable[Any]) -> Set[Any]:
    """
    Deduplicate records by identity: persisted rows collapse, unsaved ones never do.
    """
    return set(records)


def reading_list(session: Session, keys: Iterable[tuple[int, int]]) -> List[Dict[str, Any]]:
    entries = []
    for author_id, number in keys:
        book = session.find(Book, author_id, number)
        author = session.find(Writer, book.author_id)
        entries.append({"title": book.title, "author": author.name, "key": book.pk})
    return entries


def run_demo(dsn: str = "memory://") -> Dict[str, Any]:
    session = bootstrap_session(dsn)
    try:
        seeded = seed_sample_data(session)
        keys = [book.pk for book in seeded["books"]]
        # Each book is looked up twice; equal records collapse in the set.
        shelf = collect_unique(session.find(Book, *key) for key in keys + keys)
        return {"unique_books": len(shelf), "reading_list": reading_list(session, keys)}
    finally:
        session.close()
