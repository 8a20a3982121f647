from types import SimpleNamespace

import pytest

from lending.errors import AlreadyBorrowed, BorrowLimitReached, NotFound, Unavailable
from lending.services.eligibility import can_borrow


def _user(limit=None):
    return SimpleNamespace(id=1, max_borrow_limit=limit)


def _book(available=1):
    return SimpleNamespace(id=10, available_copies=available)


def test_allowed() -> None:
    decision = can_borrow(_user(), _book(), active_count=0, holds_same_book=False)
    assert decision.allowed
    decision.raise_if_denied()


@pytest.mark.parametrize(
    "book, active, holds, expected",
    [
        # every check fails: the first one wins
        (None, 9, True, NotFound),
        (_book(available=0), 9, True, Unavailable),
        (_book(), 2, True, BorrowLimitReached),
        (_book(), 0, True, AlreadyBorrowed),
    ],
)
def test_denial_order(book, active, holds, expected) -> None:
    decision = can_borrow(_user(limit=2), book, active, holds)
    assert not decision.allowed
    assert isinstance(decision.error, expected)
    with pytest.raises(expected):
        decision.raise_if_denied()


def test_user_limit_overrides_default() -> None:
    assert not can_borrow(_user(limit=1), _book(), 1, False, default_limit=5).allowed
    assert can_borrow(_user(limit=None), _book(), 4, False, default_limit=5).allowed
    assert not can_borrow(_user(limit=None), _book(), 5, False, default_limit=5).allowed
