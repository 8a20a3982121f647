# lending/tasks/scheduler.py
import atexit
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger


def start_scheduler(app):
    """
    Starts the reminder sweep in a background scheduler.
    - Skipped when SCHEDULER_ENABLED is off (tests, one-off CLI runs).
    - Skipped in the debug reloader's watcher process so the job runs once.
    - Shut down at interpreter exit.
    """
    if not app.config.get("SCHEDULER_ENABLED"):
        app.logger.info("[scheduler] disabled by config.")
        return None

    # Werkzeug's reloader runs two processes; WERKZEUG_RUN_MAIN=true marks the real one
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        app.logger.info("[scheduler] debug reloader secondary process: scheduler skipped.")
        return None

    from lending.tasks.late_check import run_late_check_job

    scheduler = BackgroundScheduler(timezone="UTC")
    minutes = app.config["LATE_CHECK_INTERVAL_MINUTES"]

    def _job_wrapper():
        try:
            run_late_check_job(app)
        except Exception as ex:
            app.logger.exception(f"[scheduler] late_check_job error: {ex}")

    scheduler.add_job(
        func=_job_wrapper,
        trigger=IntervalTrigger(minutes=minutes),
        id="late_check_job",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=120,
    )
    scheduler.start()
    app.logger.info(f"[scheduler] late check job started (every {minutes} minutes).")

    app.extensions["apscheduler"] = scheduler

    def _shutdown():
        if scheduler.running:
            scheduler.shutdown(wait=False)

    atexit.register(_shutdown)
    return scheduler
