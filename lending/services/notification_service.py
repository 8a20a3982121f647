from lending.errors import NotFound
from lending.repositories.notification_repo import NotificationRepo
from lending.utils.pagination import format_pagination, page_window


class NotificationService:
    def __init__(self, session, default_limit: int = 10, max_limit: int = 100):
        self.notifications = NotificationRepo(session)
        self.default_limit = default_limit
        self.max_limit = max_limit

    def list_for_user(self, user_id: int, page=1, limit=None, unread_only: bool = False):
        page, limit, offset = page_window(page, limit, self.default_limit, self.max_limit)
        rows, total = self.notifications.page_for_user(user_id, offset, limit, unread_only)
        unread = self.notifications.unread_count(user_id)
        return rows, unread, format_pagination(page, limit, total)

    def mark_read(self, notification_id: int, user_id: int):
        if not self.notifications.mark_read(notification_id, user_id):
            raise NotFound("Notification not found", {"notification_id": notification_id})

    def mark_all_read(self, user_id: int) -> int:
        return self.notifications.mark_all_read(user_id)
