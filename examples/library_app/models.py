"""
Data models for the recordkit library example.
"""

from __future__ import annotations

from recordkit.core import BooleanField, IntegerField, Model, StringField


class Writer(Model):
    name = StringField(nullable=False, max_length=120)
    country = StringField(nullable=True)


class Book(Model):
    """Books are numbered per author, so the key spans two columns."""

    author_id = IntegerField()
    number = IntegerField()
    title = StringField(nullable=True, max_length=200)
    published = BooleanField(default=False)

    class Meta:
        primary_key = ("author_id", "number")


class Branch(Model):
    """Every new branch starts out as the main branch until it is saved."""

    code = IntegerField(primary_key=True, db_default=1)
    city = StringField(nullable=True)
