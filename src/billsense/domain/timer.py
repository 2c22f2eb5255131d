"""Timer domain service.

The timer has two states. Idle means the user has no running time entry;
Running means exactly one entry with is_running set exists, and elapsed time
is derived from its start time. The database enforces the one-running-entry
rule, so two processes racing to start still leave a single running row.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from billsense.database.base import Database
from billsense.domain.entities import TimeEntry
from billsense.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    project_not_found,
    time_entry_not_found,
)
from billsense.domain.session import SessionContext
from billsense.utils.date_parser import start_of_week
from billsense.utils.formatting import round_hours, sum_durations

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], None]


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class Ticker:
    """Calls a function at a fixed interval on a daemon thread until cancelled."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="billsense-ticker", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("Timer tick callback failed")

    def cancel(self) -> None:
        self._stopped.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval * 2)

    @property
    def active(self) -> bool:
        return self._thread is not None and not self._stopped.is_set()


@dataclass(frozen=True)
class TimeLog:
    """Completed and running entries of one Sunday-start week."""

    week_start: date
    week_end: date
    entries: tuple[TimeEntry, ...]
    total_hours: float


class TimerService:
    """Service for the acting user's timer and time logs."""

    def __init__(
        self,
        db: Database,
        session: SessionContext,
        clock: Callable[[], datetime] = datetime.now,
        tick_interval: float = 1.0,
    ):
        """Initialize timer service.

        Args:
            db: Database instance
            session: Acting-user session
            clock: Source of the current local time
            tick_interval: Seconds between ticks while running
        """
        self.db = db
        self.session = session
        self.clock = clock
        self.tick_interval = tick_interval
        self.state = TimerState.IDLE
        self.running_entry: Optional[TimeEntry] = None
        self._ticker: Optional[Ticker] = None

    @property
    def start_time(self) -> Optional[datetime]:
        return self.running_entry.start_time if self.running_entry is not None else None

    def resume(self) -> Optional[TimeEntry]:
        """Recover Running state from a persisted running entry.

        Idempotent: without a running row the timer stays Idle.

        Returns:
            The running entry, or None when Idle
        """
        entry = self.db.get_running_time_entry(self.session.user_id)
        if entry is None:
            self.state = TimerState.IDLE
            self.running_entry = None
            return None

        self.state = TimerState.RUNNING
        self.running_entry = entry
        logger.debug("Resumed timer entry %s started at %s", entry.id, entry.start_time)
        return entry

    def start(
        self,
        project_id: Optional[int],
        description: Optional[str] = None,
        billable: bool = True,
        on_tick: Optional[TickCallback] = None,
    ) -> TimeEntry:
        """Start tracking time on a project.

        Args:
            project_id: Project to track against
            description: Optional task description
            billable: Whether the time is chargeable
            on_tick: Optional callback receiving elapsed seconds every tick

        Returns:
            The new running entry

        Raises:
            ValidationError: If no project is selected
            NotFoundError: If the user has no company or the project is unknown
            ConflictError: If a timer is already running for the user
        """
        if not project_id:
            raise ValidationError("Please select a project")

        company_id = self.session.require_company_id()

        if self.state == TimerState.RUNNING:
            raise ConflictError("Timer is already running")

        project = self.db.get_project(project_id)
        if project is None or project.company_id != company_id:
            raise NotFoundError(project_not_found(project_id))

        entry_id = self.db.create_time_entry(
            user_id=self.session.user_id,
            company_id=company_id,
            project_id=project_id,
            start_time=self.clock(),
            description=description or None,
            is_billable=billable,
            is_running=True,
        )
        entry = self.db.get_time_entry(entry_id)
        self.state = TimerState.RUNNING
        self.running_entry = entry
        logger.info("Started timer entry %s on project %s", entry_id, project_id)

        if on_tick is not None:
            self.attach_ticker(on_tick)
        return entry

    def attach_ticker(self, on_tick: TickCallback) -> Ticker:
        """Report elapsed seconds to on_tick every tick while Running.

        Raises:
            ConflictError: If the timer is Idle
        """
        if self.state != TimerState.RUNNING:
            raise ConflictError("No timer is running")
        self._cancel_ticker()
        self._ticker = Ticker(self.tick_interval, lambda: on_tick(self.elapsed()))
        self._ticker.start()
        return self._ticker

    def elapsed(self, now: Optional[datetime] = None) -> int:
        """Whole seconds since the running entry started; 0 when Idle."""
        if self.running_entry is None:
            return 0
        now = now or self.clock()
        return max(0, int((now - self.running_entry.start_time).total_seconds()))

    def stop(self) -> TimeEntry:
        """Stop the running timer and persist its duration.

        Returns:
            The stopped entry

        Raises:
            ConflictError: If the timer is Idle, or the entry was already
                stopped elsewhere (the timer drops back to Idle)
        """
        if self.state != TimerState.RUNNING or self.running_entry is None:
            raise ConflictError("No timer is running")

        entry = self.running_entry
        end_time = self.clock()
        duration = max(0, round((end_time - entry.start_time).total_seconds()))
        try:
            self.db.finish_time_entry(entry.id, end_time=end_time, duration=duration)
        except (ConflictError, NotFoundError):
            self._reset()
            raise
        self._reset()
        logger.info("Stopped timer entry %s after %ss", entry.id, duration)

        self.session.notify_refresh()
        return self.db.get_time_entry(entry.id)

    def _reset(self) -> None:
        self._cancel_ticker()
        self.state = TimerState.IDLE
        self.running_entry = None

    def close(self) -> None:
        """Cancel the ticker without touching the running entry."""
        self._cancel_ticker()

    def _cancel_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def list_time_logs(self, week_of: Optional[date] = None) -> TimeLog:
        """List the company's time entries for the week containing week_of.

        Args:
            week_of: Any day of the wanted week; today when omitted

        Returns:
            TimeLog with entries newest first and the week's total hours
        """
        company_id = self.session.require_company_id()
        day = week_of or self.clock().date()
        first = start_of_week(day)
        last = first + timedelta(days=6)

        entries = self.db.list_time_entries(
            company_id=company_id,
            start_from=datetime.combine(first, datetime.min.time()),
            start_to=datetime.combine(last, datetime.max.time()),
        )
        return TimeLog(
            week_start=first,
            week_end=last,
            entries=tuple(entries),
            total_hours=round_hours(sum_durations(e.duration for e in entries)),
        )

    def delete_time_log(self, entry_id: int) -> None:
        """Delete a time entry of the acting user's company.

        Raises:
            NotFoundError: If the entry does not exist in the company
            ConflictError: If the entry is the running timer
        """
        company_id = self.session.require_company_id()
        entry = self.db.get_time_entry(entry_id)
        if entry is None or entry.company_id != company_id:
            raise NotFoundError(time_entry_not_found(entry_id))
        if entry.is_running:
            raise ConflictError("Stop the running timer before deleting it")
        self.db.delete_time_entry(entry_id)
