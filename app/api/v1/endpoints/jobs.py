"""
Job endpoints

Manual trigger for the daily rollover, for deployments where an external
scheduler (cron, hosted function) drives the sweep instead of the in-process
RolloverScheduler.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.deps import get_rollover_sweep
from app.core.logger import get_logger
from app.models.task import TaskRead
from app.services.rollover import RolloverSweep

logger = get_logger(__name__, logging.INFO)

router: APIRouter = APIRouter()


class RolloverIn(BaseModel):
    """Optional reference day for the sweep (defaults to today, UTC)"""

    today: date | None = Field(None, examples=["2024-01-10"])


class RolloverOut(BaseModel):
    """Result of a rollover sweep"""

    updated: int
    tasks: list[TaskRead]
    message: str


@router.post("/rollover", response_model=RolloverOut, summary="Roll overdue open tasks over to today")
async def run_rollover(
    payload: RolloverIn | None = None,
    sweep: RolloverSweep = Depends(get_rollover_sweep),
) -> RolloverOut:
    """
    Move every open task due before today to today.

    Running it again for the same day changes nothing.
    """
    today = payload.today if payload else None
    moved = await sweep.sweep(today)

    logger.info(f"Manual rollover moved {len(moved)} task(s)")
    return RolloverOut(
        updated=len(moved),
        tasks=moved,
        message=f"Successfully rolled over {len(moved)} task(s) to today."
        if moved
        else "No overdue tasks found.",
    )
