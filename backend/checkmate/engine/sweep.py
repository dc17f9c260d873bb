"""Nightly miss sweep.

For every goal, look at its most recently closed period. If that period was
missed and no marker exists yet, send one penalty event and then record the
marker. The marker insert is unique on (goal_id, period_key), so concurrent
runs cannot both record the same miss.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from checkmate.core.config import settings
from checkmate.core.errors import (
    DuplicateMiss,
    InvalidDate,
    InvalidRecurrenceRule,
    PenaltyDeliveryError,
    StorageUnavailable,
)
from checkmate.engine.ledger import CheckinLedger
from checkmate.engine.markers import MissMarkerStore
from checkmate.engine.progress import Missed, concluded_period, evaluate, period_key
from checkmate.models.goal import Goal
from checkmate.models.profile import Profile
from checkmate.services.penalty import PenaltyEvent, get_penalty_sender


logger = logging.getLogger(__name__)


@dataclass
class SweepSummary:
    processed_count: int = 0
    penalized: int = 0
    skipped: int = 0
    failed: int = 0
    deferred: int = 0

    def as_dict(self) -> dict:
        return {
            "processed_count": self.processed_count,
            "penalized": self.penalized,
            "skipped": self.skipped,
            "failed": self.failed,
            "deferred": self.deferred,
        }


def find_miss(goal, now: datetime, ledger: CheckinLedger, markers: MissMarkerStore,
              instagram_username: Optional[str] = None) -> Optional[PenaltyEvent]:
    """Penalty event for the goal's last closed period, or None if nothing is owed."""
    period = concluded_period(goal, now)
    if period is None:
        return None
    key = period_key(goal, period)
    if markers.exists(goal.id, key):
        logger.debug("Goal %s already penalized for %s", goal.id, key)
        return None

    status = evaluate(goal, ledger.snapshot(goal.id, period), now, period=period)
    if not isinstance(status, Missed):
        return None
    return PenaltyEvent(
        goal_id=goal.id,
        user_id=goal.user_id,
        title=goal.title,
        period_key=status.period_key,
        deadline=status.deadline,
        instagram_username=instagram_username,
    )


def dispatch(event: PenaltyEvent, sender, markers: MissMarkerStore) -> None:
    # marker only after the sender accepted the event
    sender.send(event)
    markers.mark(event.goal_id, event.period_key)


def run_sweep(
    db: Session,
    now: datetime,
    sender=None,
    deadline_seconds: Optional[float] = None,
    retry_attempts: Optional[int] = None,
    clock: Callable[[], float] = time.monotonic,
) -> SweepSummary:
    """Process every goal once for the period that closed most recently before `now`."""
    if sender is None:
        sender = get_penalty_sender()
    if deadline_seconds is None:
        deadline_seconds = settings.sweep_deadline_seconds
    if retry_attempts is None:
        retry_attempts = settings.penalty_retry_attempts

    try:
        goals = db.query(Goal).order_by(Goal.id).all()
        handles = {p.user_id: p.instagram_username for p in db.query(Profile).all()}
    except SQLAlchemyError as e:
        raise StorageUnavailable(f"Could not load goals for sweep: {e}") from e
    # detach so marker commits do not expire (and reload) every goal
    for goal in goals:
        db.expunge(goal)

    ledger = CheckinLedger(db)
    markers = MissMarkerStore(db)
    summary = SweepSummary()
    pending: list[PenaltyEvent] = []
    started = clock()

    def out_of_time() -> bool:
        return clock() - started > deadline_seconds

    for idx, goal in enumerate(goals):
        if out_of_time():
            summary.deferred += len(goals) - idx
            logger.warning("Sweep deadline reached; deferring %d goals", len(goals) - idx)
            break
        summary.processed_count += 1
        goal_id = goal.id

        event = None
        try:
            event = find_miss(goal, now, ledger, markers, handles.get(goal.user_id))
            if event is None:
                summary.skipped += 1
                continue
            dispatch(event, sender, markers)
        except DuplicateMiss as e:
            logger.info("%s; skipping", e)
            summary.skipped += 1
        except PenaltyDeliveryError as e:
            logger.warning("Penalty dispatch failed, will retry: %s", e)
            pending.append(event)
        except (StorageUnavailable, InvalidRecurrenceRule, InvalidDate) as e:
            logger.error("Sweep failed for goal %s: %s", goal_id, e)
            summary.failed += 1
        else:
            logger.info("Goal %s missed %s; penalty dispatched", goal_id, event.period_key)
            summary.penalized += 1

    # retry failed dispatches after every other goal had its turn
    for attempt in range(retry_attempts):
        if not pending or out_of_time():
            break
        still_pending = []
        for event in pending:
            try:
                dispatch(event, sender, markers)
            except DuplicateMiss as e:
                logger.info("%s; skipping", e)
                summary.skipped += 1
            except (PenaltyDeliveryError, StorageUnavailable) as e:
                logger.warning("Retry %d failed for goal %s: %s", attempt + 1, event.goal_id, e)
                still_pending.append(event)
            else:
                summary.penalized += 1
        pending = still_pending

    summary.failed += len(pending)
    logger.info("Sweep finished: %s", summary.as_dict())
    return summary
