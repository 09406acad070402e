# lending/tasks/scheduler.py
from __future__ import annotations

import atexit
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger


def start_scheduler(app):
    """
    Periodic overdue sweep + notices.
    - Runs the job inside an app context (DB access needs it).
    - The debug reloader runs two processes; only the real one starts it.
    """
    if not app.config.get("SCHEDULER_ENABLED", True):
        app.logger.info("[scheduler] disabled by config.")
        return None

    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        app.logger.info("[scheduler] Debug reloader secondary process: scheduler skipped.")
        return None

    # imported here to keep app factory imports free of cycles
    from lending.tasks.overdue_check import run_overdue_check_job

    minutes = int(app.config.get("OVERDUE_SWEEP_MINUTES", 10))
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        func=run_overdue_check_job,
        args=[app],
        trigger=IntervalTrigger(minutes=minutes),
        id="overdue_check_job",
        replace_existing=True,
        max_instances=1,        # never overlap
        coalesce=True,          # collapse missed runs into one
        misfire_grace_time=120
    )
    scheduler.start()
    app.logger.info(f"[scheduler] Overdue check job started (every {minutes} minutes).")

    app.extensions["apscheduler"] = scheduler
    atexit.register(lambda: scheduler.shutdown(wait=False) if scheduler.running else None)
    return scheduler
