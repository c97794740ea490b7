from examples.library_app import (
    bootstrap_session,
    collect_unique,
    reading_list,
    run_demo,
    seed_sample_data,
)
from examples.library_app.models import Book, Branch


def test_library_example_bootstrap_and_seed():
    session = bootstrap_session()
    try:
        seeded = seed_sample_data(session)
        assert len(seeded["writers"]) == 2
        assert len(seeded["books"]) == 3
        assert seeded["branches"][0].code == 1

        entries = reading_list(session, [(1, 1), (2, 1)])
        assert entries == [
            {"title": "Kindred", "author": "Octavia Butler", "key": (1, 1)},
            {"title": "Norwegian Wood", "author": "Haruki Murakami", "key": (2, 1)},
        ]
    finally:
        session.close()


def test_collect_unique_keeps_every_unsaved_book():
    session = bootstrap_session()
    try:
        seed_sample_data(session)
        found = session.find(Book, 1, 2)
        shelf = collect_unique(
            [found, session.find(Book, 1, 2), Book(author_id=1, number=2), Book(), Book()]
        )
        assert len(shelf) == 4
        assert Branch() != Branch()
    finally:
        session.close()


def test_run_library_demo_returns_reading_list():
    result = run_demo()
    assert result["unique_books"] == 3
    assert [entry["title"] for entry in result["reading_list"]] == ["Kindred", "Dawn", "Norwegian Wood"]
