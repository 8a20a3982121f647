from sqlalchemy import select, update

from lending.models.user import User


class UserRepo:
    def __init__(self, session):
        self.session = session

    def get_by_id(self, user_id: int):
        return self.session.execute(select(User).where(User.id == user_id)).scalar_one_or_none()

    def lock_for_borrow(self, user_id: int) -> bool:
        """Write-lock the user's row for the rest of the transaction.

        Must be the first statement of the transaction: on SQLite a write that
        opens the transaction waits on the busy timeout, while a read followed
        by a write fails straight away. Returns False if the user does not exist.
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(borrow_seq=User.borrow_seq + 1)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1
