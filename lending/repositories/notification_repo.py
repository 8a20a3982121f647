from sqlalchemy import func, select, update

from lending.models.notification import Notification


class NotificationRepo:
    def __init__(self, session):
        self.session = session

    def already_sent(self, borrowing_id: int, kind: str) -> bool:
        q = select(Notification.id).where(
            Notification.borrowing_id == borrowing_id,
            Notification.kind == kind,
        )
        return self.session.execute(q).first() is not None

    def log(self, entry: Notification):
        self.session.add(entry)
        self.session.commit()
        return entry

    def page_for_user(self, user_id: int, offset: int, limit: int, unread_only: bool = False):
        q = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            q = q.where(Notification.is_read.is_(False))
        total = self.session.execute(
            select(func.count()).select_from(q.subquery())
        ).scalar_one()
        rows = self.session.execute(
            q.order_by(Notification.sent_at.desc(), Notification.id.desc()).offset(offset).limit(limit)
        ).scalars().all()
        return rows, total

    def unread_count(self, user_id: int) -> int:
        return self.session.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        ).scalar_one()

    def mark_read(self, notification_id: int, user_id: int) -> bool:
        result = self.session.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount > 0

    def mark_all_read(self, user_id: int) -> int:
        result = self.session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount
