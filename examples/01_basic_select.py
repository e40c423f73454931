"""
Example 01: Basic Select

This example demonstrates scanning query results into dataclasses, Pydantic
models and plain scalars.
"""

import sqlite3
from dataclasses import dataclass

from pydantic import BaseModel

from row_scan import DB, NoRowsError, Ref, column


@dataclass
class User:
    """User model using dataclass"""
    id: int
    name: str
    email: str = column("email_address")


class UserModel(BaseModel):
    """User model using Pydantic"""
    id: int
    name: str


def main():
    db = DB(sqlite3.connect(":memory:"))
    db.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, email_address TEXT)")
    db.execute("INSERT INTO users (name, email_address) VALUES ('Alice', 'alice@example.com')")
    db.execute("INSERT INTO users (name, email_address) VALUES ('Bob', 'bob@example.com')")

    print("=== Basic Select ===\n")

    # Many rows into dataclasses
    print("1. Dataclass rows:")
    users = db.select([], User, "SELECT * FROM users ORDER BY id")
    for user in users:
        print(f"   - {user.name}: {user.email}")
    print()

    # Single row into a Pydantic model
    print("2. Pydantic row:")
    user = db.get(UserModel, "SELECT id, name FROM users WHERE id = :id", {"id": 2})
    print(f"   {user!r}\n")

    # Scalars
    print("3. Scalars:")
    names = db.select([], str, "SELECT name FROM users ORDER BY name DESC")
    count = db.get(Ref(int), "SELECT COUNT(*) FROM users")
    print(f"   names={names} count={count}\n")

    # Empty result
    print("4. Missing row:")
    try:
        db.get(User, "SELECT * FROM users WHERE id = 99")
    except NoRowsError as e:
        print(f"   {e}")

    db.close()


if __name__ == "__main__":
    main()
