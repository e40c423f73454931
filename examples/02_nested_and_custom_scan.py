"""
Example 02: Nested Structures and Custom Scanning

This example demonstrates embedded and nested dataclasses, types that decode
themselves with scan(), lenient mode, and transactions.
"""

import json
import sqlite3
from dataclasses import dataclass, field

from row_scan import DB, MissingFieldError, column


@dataclass
class Audit:
    created_by: str
    updated_by: str


@dataclass
class Address:
    city: str
    country: str


class Tags:
    """Decodes a JSON array column"""

    def __init__(self):
        self.items = []

    def scan(self, value):
        self.items = json.loads(value) if value else []


@dataclass
class Article:
    id: int
    title: str
    audit: Audit = column(embed=True)
    address: Address = None
    tags: Tags = field(default_factory=Tags)


def main():
    db = DB(sqlite3.connect(":memory:"))
    db.execute(
        "CREATE TABLE articles (id INTEGER PRIMARY KEY, title TEXT, created_by TEXT, "
        "updated_by TEXT, city TEXT, country TEXT, tags TEXT, views INTEGER)"
    )
    with db.begin() as tx:
        tx.execute(
            "INSERT INTO articles (title, created_by, updated_by, city, country, tags, views) "
            "VALUES ('Hello', 'ada', 'alan', 'London', 'UK', '[\"intro\", \"news\"]', 10)"
        )

    print("=== Nested Structures ===\n")

    query = (
        "SELECT id, title, created_by, updated_by, city AS \"address.city\", "
        "country AS \"address.country\", tags FROM articles"
    )
    for article in db.select([], Article, query):
        print(f"   {article.title} by {article.audit.created_by}")
        print(f"   from {article.address.city}, {article.address.country}")
        print(f"   tags={article.tags.items}\n")

    print("=== Strict vs Lenient ===\n")
    try:
        db.select([], Article, "SELECT id, title, views FROM articles")
    except MissingFieldError as e:
        print(f"   strict: {e}")
    lenient = db.as_unsafe().select([], Article, "SELECT id, title, views FROM articles")
    print(f"   lenient: {lenient[0].title}")

    db.close()


if __name__ == "__main__":
    main()
