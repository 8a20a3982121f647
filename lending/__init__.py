import logging

from flask import Flask, jsonify

from lending.config import Config, LendingSettings
from lending.errors import InvariantViolation
from lending.extensions import db, jwt, mail, migrate


def build_services(app, notifier=None, clock=None):
    """Wires the lending engine from explicit collaborators.

    Everything shares Flask-SQLAlchemy's scoped session, so each request (and
    each app context) works in its own transaction.
    """
    from lending.repositories.book_repo import BookRepo
    from lending.repositories.borrowing_repo import BorrowingRepo
    from lending.repositories.user_repo import UserRepo
    from lending.services.borrowing_service import BorrowingService
    from lending.services.inventory import BookInventory
    from lending.services.notification_service import NotificationService
    from lending.services.notifier import MailNotifier
    from lending.utils.clock import utcnow

    settings = LendingSettings.from_config(app.config)
    session = db.session

    inventory = BookInventory(BookRepo(session))
    notifier = notifier or MailNotifier(session, mail)

    service = BorrowingService(
        session=session,
        records=BorrowingRepo(session),
        inventory=inventory,
        users=UserRepo(session),
        notifier=notifier,
        settings=settings,
        clock=clock or utcnow,
    )

    app.extensions["book_inventory"] = inventory
    app.extensions["lending_notifier"] = notifier
    app.extensions["borrowing_service"] = service
    app.extensions["notification_service"] = NotificationService(
        session, settings.default_page_limit, settings.max_page_limit
    )
    return service


def create_app(config_object=Config, notifier=None, clock=None):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # 1) db first, models must be registered before create_all
    db.init_app(app)
    from lending import models  # noqa: F401

    # 2) other extensions
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    with app.app_context():
        db.create_all()

    # 3) lending engine
    build_services(app, notifier=notifier, clock=clock)

    # 4) API blueprints
    from lending.controllers.book_controller import book_bp
    from lending.controllers.borrow_controller import borrow_bp
    from lending.controllers.fine_controller import fine_bp
    from lending.controllers.notification_controller import notif_bp
    app.register_blueprint(book_bp, url_prefix="/books")
    app.register_blueprint(borrow_bp, url_prefix="/borrowings")
    app.register_blueprint(fine_bp, url_prefix="/fines")
    app.register_blueprint(notif_bp, url_prefix="/notifications")

    @app.errorhandler(InvariantViolation)
    def invariant_violation(e):
        db.session.rollback()
        app.logger.error(f"[lending] invariant violation: {e}")
        return jsonify({"success": False, "code": "INTERNAL_ERROR", "message": "Internal error"}), 500

    from lending.cli import seed_demo
    app.cli.add_command(seed_demo)

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    # reminder sweep
    from lending.tasks.scheduler import start_scheduler
    start_scheduler(app)

    return app
