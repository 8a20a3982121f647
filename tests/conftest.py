from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token

from lending import create_app
from lending.config import TestConfig
from lending.extensions import db
from lending.models import Book, Library, User


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)

    def kinds(self):
        return [e.kind for e in self.events]


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 10, 0, 0))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def config():
    return TestConfig


@pytest.fixture
def app(config, notifier, clock):
    app = create_app(config, notifier=notifier, clock=clock)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def service(app):
    return app.extensions["borrowing_service"]


@pytest.fixture
def inventory(app):
    return app.extensions["book_inventory"]


@pytest.fixture
def library(app):
    lib = Library(name="Central Public Library", code="CENTRAL")
    db.session.add(lib)
    db.session.commit()
    return lib


@pytest.fixture
def make_user(app):
    def _make(username, role="user", max_borrow_limit=None, email="default"):
        if email == "default":
            email = f"{username}@example.com"
        user = User(username=username, email=email, role=role, max_borrow_limit=max_borrow_limit)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def make_book(app, library):
    def _make(total_copies=1, available_copies=None, title="Clean Code"):
        book = Book(
            title=title,
            author="Robert C. Martin",
            library_id=library.id,
            total_copies=total_copies,
            available_copies=available_copies,
        )
        db.session.add(book)
        db.session.commit()
        return book
    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")


@pytest.fixture
def librarian(make_user):
    return make_user("librarian", role="librarian")


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(identity=str(user.id), additional_claims={"role": user.role})
        return {"Authorization": f"Bearer {token}"}
    return _headers
