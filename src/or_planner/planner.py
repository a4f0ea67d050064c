"""
Planning entry points: greedy construction followed by an optional,
time-boxed refinement pass.
"""

import asyncio
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import date
from typing import Sequence

from .advisor import suggest_replacements
from .availability import recovering_staff_ids
from .constructor import GreedyConstructor
from .dates import as_date
from .defaults import OPTIMIZER_TIMEOUT_SECONDS, default_config
from .models import AppConfig, Assignment, AssignmentResult, Room, Staff, StaffPairing
from .optimizer import (
    OptimizerRequest,
    OptimizerResponse,
    coverage_alerts,
    run_optimizer,
    submit_refinement,
)
from .validation import validate

logger = logging.getLogger(__name__)

__all__ = [
    "build_assignments",
    "build_assignments_async",
    "recovering_staff_ids",
    "suggest_replacements",
    "validate",
]


def _greedy_phase(rooms, staff, day, config, pairings):
    constructor = GreedyConstructor(rooms, staff, day, config, pairings)
    assignments = constructor.construct()
    return assignments, constructor.pool


def _result_from_response(response: OptimizerResponse, pool: Sequence[Staff]) -> AssignmentResult:
    return _finish(response.assignments, response.alerts, pool, True, response.score)


def _fallback(
    reason: Exception,
    assignments: Sequence[Assignment],
    rooms: Sequence[Room],
    pool: Sequence[Staff],
) -> AssignmentResult:
    logger.warning("Optimizer unavailable, keeping greedy plan: %s", reason)
    alerts = [f"Optimization unavailable ({type(reason).__name__}); using greedy plan."]
    alerts.extend(coverage_alerts(assignments, rooms))
    return _finish(assignments, alerts, pool, False, None)


def _finish(assignments, alerts, pool, optimized, score) -> AssignmentResult:
    assigned = {sid for a in assignments for sid in a.staff_ids}
    return AssignmentResult(
        assignments=list(assignments),
        alerts=list(alerts),
        unassigned_staff=[s.id for s in pool if s.id not in assigned],
        optimized=optimized,
        score=score,
    )


def build_assignments(
    rooms: Sequence[Room],
    staff: Sequence[Staff],
    day: date | str,
    config: AppConfig | None = None,
    pairings: Sequence[StaffPairing] = (),
    *,
    optimize: bool = True,
    executor: Executor | None = None,
    timeout: float | None = OPTIMIZER_TIMEOUT_SECONDS,
) -> AssignmentResult:
    """
    Build the assignment set for one date.

    Args:
        rooms: Rooms with today's operations
        staff: Staff records with the day's roster already applied
        day: Planning date (date or DD.MM.YYYY string)
        config: Engine configuration; defaults are used when omitted
        pairings: Tandem pairings to keep together where possible
        optimize: Run the refinement pass after the greedy phase
        executor: Where to run the refinement; a private thread is used when
            omitted
        timeout: Seconds to wait for the refinement before falling back

    Returns:
        AssignmentResult. Any refinement failure or timeout yields the greedy
        plan with an explanatory alert instead of an exception.
    """
    config = config or default_config()
    day = as_date(day)
    rooms = list(rooms)
    staff = list(staff)

    assignments, pool = _greedy_phase(rooms, staff, day, config, pairings)
    if not optimize:
        return _finish(assignments, coverage_alerts(assignments, rooms), pool, False, None)

    request = OptimizerRequest.snapshot(assignments, rooms, staff, pool, config, pairings)
    own_executor = executor is None
    if own_executor:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="or-optimizer")
    try:
        future = submit_refinement(request, executor)
        response = future.result(timeout=timeout)
    except Exception as e:
        return _fallback(e, assignments, rooms, pool)
    finally:
        if own_executor:
            executor.shutdown(wait=False, cancel_futures=True)

    return _result_from_response(response, pool)


async def build_assignments_async(
    rooms: Sequence[Room],
    staff: Sequence[Staff],
    day: date | str,
    config: AppConfig | None = None,
    pairings: Sequence[StaffPairing] = (),
    *,
    optimize: bool = True,
    executor: Executor | None = None,
    timeout: float | None = OPTIMIZER_TIMEOUT_SECONDS,
) -> AssignmentResult:
    """Awaitable variant of build_assignments for event-loop callers.

    The greedy phase runs inline; the refinement runs in the given executor
    (or the loop's default one) so the loop stays responsive.
    """
    config = config or default_config()
    day = as_date(day)
    rooms = list(rooms)
    staff = list(staff)

    assignments, pool = _greedy_phase(rooms, staff, day, config, pairings)
    if not optimize:
        return _finish(assignments, coverage_alerts(assignments, rooms), pool, False, None)

    request = OptimizerRequest.snapshot(assignments, rooms, staff, pool, config, pairings)
    loop = asyncio.get_running_loop()
    try:
        response = await asyncio.wait_for(
            loop.run_in_executor(executor, run_optimizer, request), timeout=timeout
        )
    except asyncio.CancelledError:
        raise
    except Exception as e:
        return _fallback(e, assignments, rooms, pool)

    return _result_from_response(response, pool)

