"""Auto-completion sweep for approved pins whose relief window has ended.

The sweep is best-effort: it never raises. Callers get a SweepResult and
are free to ignore a failed one and carry on fetching pins.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from relief_tracker.services.repository import PinRepository

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Outcome of one sweep."""

    ok: bool
    completed: int = 0
    pin_ids: list[UUID] = field(default_factory=list)
    error: Optional[str] = None


async def auto_complete_expired_pins(
    db: AsyncSession,
    now: Optional[datetime] = None,
) -> SweepResult:
    """Move every approved pin with ``end_datetime < now`` to completed.

    The update is one batched statement and is committed here. ``is_active``
    is left alone. Running it again right away completes nothing.
    """
    now = now or datetime.utcnow()
    repo = PinRepository(db)

    try:
        candidates = await repo.expired_approved_ids(now)
        if not candidates:
            return SweepResult(ok=True)

        pin_ids = await repo.complete_expired(candidates, now)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"[SWEEP] Auto-completion failed: {e}")
        return SweepResult(ok=False, error=str(e))

    logger.info(f"[SWEEP] Auto-completed {len(pin_ids)} relief pins")
    return SweepResult(ok=True, completed=len(pin_ids), pin_ids=pin_ids)
