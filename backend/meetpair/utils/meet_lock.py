"""
Single-editor meet lock.

The lock lives on the Meet row (locked_by / locked_at / lock_expires_at).
Acquiring refreshes the expiry; an expired lock is treated as free and is
cleared the next time anyone looks at it.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlmodel import Session

from meetpair.config import MEET_LOCK_TTL_SECONDS
from meetpair.models.meet import Meet

logger = logging.getLogger(__name__)

MEET_LOCK_REQUIRED = "MEET_LOCK_REQUIRED"
MEET_LOCKED = "MEET_LOCKED"


class MeetLockError(Exception):
    """The caller does not hold the meet lock"""

    def __init__(self, code: str, locked_by: Optional[str] = None, lock_expires_at: Optional[datetime] = None):
        self.code = code
        self.locked_by = locked_by
        self.lock_expires_at = lock_expires_at
        super().__init__(code)


def _now() -> datetime:
    return datetime.utcnow()


def clear_expired_lock(session: Session, meet: Meet, now: Optional[datetime] = None) -> bool:
    """Drop the lock if it has expired. Returns True when a lock was cleared."""
    now = now or _now()
    if meet.lock_expires_at is not None and meet.lock_expires_at < now:
        logger.info("Meet %s lock held by %s expired at %s", meet.id, meet.locked_by, meet.lock_expires_at)
        meet.locked_by = None
        meet.locked_at = None
        meet.lock_expires_at = None
        session.add(meet)
        session.commit()
        session.refresh(meet)
        return True
    return False


def acquire_lock(session: Session, meet: Meet, editor_id: str) -> Meet:
    """Take or refresh the lock for *editor_id*; raises MeetLockError if someone else holds it."""
    now = _now()
    clear_expired_lock(session, meet, now)
    if meet.locked_by is not None and meet.locked_by != editor_id:
        raise MeetLockError(MEET_LOCKED, meet.locked_by, meet.lock_expires_at)

    if meet.locked_by is None:
        meet.locked_at = now
        logger.info("Meet %s locked by %s", meet.id, editor_id)
    meet.locked_by = editor_id
    meet.lock_expires_at = now + timedelta(seconds=MEET_LOCK_TTL_SECONDS)
    session.add(meet)
    session.commit()
    session.refresh(meet)
    return meet


def release_lock(session: Session, meet: Meet, editor_id: str) -> Meet:
    """Release the lock; only its holder may release it."""
    clear_expired_lock(session, meet)
    if meet.locked_by is None:
        return meet
    if meet.locked_by != editor_id:
        raise MeetLockError(MEET_LOCKED, meet.locked_by, meet.lock_expires_at)

    meet.locked_by = None
    meet.locked_at = None
    meet.lock_expires_at = None
    session.add(meet)
    session.commit()
    session.refresh(meet)
    logger.info("Meet %s lock released by %s", meet.id, editor_id)
    return meet


def check_lock(session: Session, meet: Meet, editor_id: Optional[str]) -> None:
    """Raise MeetLockError unless *editor_id* holds a live lock on *meet*."""
    clear_expired_lock(session, meet)
    if meet.locked_by is None:
        raise MeetLockError(MEET_LOCK_REQUIRED)
    if editor_id is None or meet.locked_by != editor_id:
        raise MeetLockError(MEET_LOCKED, meet.locked_by, meet.lock_expires_at)
