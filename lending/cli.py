# lending/cli.py
import click
from flask.cli import with_appcontext

from lending.constants import Role
from lending.extensions import db
from lending.models import Book, Library, User

LIBRARIES = [
    {"code": "CENTRAL", "name": "Central Public Library"},
    {"code": "NORTH", "name": "North Branch Library"},
]

BOOKS = [
    {"title": "Clean Code", "author": "Robert C. Martin", "isbn": "978-0132350884", "total_copies": 3},
    {"title": "Refactoring", "author": "Martin Fowler", "isbn": "978-0134757599", "total_copies": 1},
    {"title": "Fluent Python", "author": "Luciano Ramalho", "isbn": "978-1492056355", "total_copies": 2},
]

USERS = [
    {"username": "alice", "email": "alice@example.com", "role": Role.USER.value},
    {"username": "bob", "email": "bob@example.com", "role": Role.USER.value, "max_borrow_limit": 1},
    {"username": "librarian", "email": "librarian@example.com", "role": Role.LIBRARIAN.value},
    {"username": "admin", "email": "admin@example.com", "role": Role.ADMIN.value},
]


@click.command("seed-demo")
@with_appcontext
def seed_demo():
    """Loads a couple of libraries, books and users for local testing."""
    if Library.query.first():
        click.echo("Database already has data, skipping.")
        return

    libraries = [Library(**data) for data in LIBRARIES]
    db.session.add_all(libraries)
    db.session.flush()

    for i, data in enumerate(BOOKS):
        db.session.add(Book(library_id=libraries[i % len(libraries)].id, **data))
    for data in USERS:
        db.session.add(User(**data))

    db.session.commit()
    click.echo(f"Seeded {len(LIBRARIES)} libraries, {len(BOOKS)} books, {len(USERS)} users.")
