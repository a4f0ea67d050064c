"""
Secondary refinement of a greedy assignment set using hill climbing.

The optimizer works on a self-contained snapshot (OptimizerRequest) and
returns a complete replacement result (OptimizerResponse), so it can run in
a worker thread or process without touching the caller's state.
"""

import copy
import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from .models import AppConfig, Assignment, Room, Staff, StaffPairing
from .scoring import dominant_department, is_qualified, score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptimizerRequest:
    """Immutable input snapshot for one refinement run."""

    assignments: Tuple[Assignment, ...]
    rooms: Tuple[Room, ...]
    staff: Tuple[Staff, ...]
    pool: Tuple[Staff, ...]
    config: AppConfig
    pairings: Tuple[StaffPairing, ...] = ()

    @classmethod
    def snapshot(
        cls,
        assignments: Sequence[Assignment],
        rooms: Sequence[Room],
        staff: Sequence[Staff],
        pool: Sequence[Staff],
        config: AppConfig,
        pairings: Sequence[StaffPairing] = (),
    ) -> "OptimizerRequest":
        """Deep-copy every input so later edits by the caller cannot leak in."""
        return cls(
            assignments=tuple(copy.deepcopy(list(assignments))),
            rooms=tuple(copy.deepcopy(list(rooms))),
            staff=tuple(copy.deepcopy(list(staff))),
            pool=tuple(copy.deepcopy(list(pool))),
            config=copy.deepcopy(config),
            pairings=tuple(pairings),
        )


@dataclass
class OptimizerResponse:
    """Refined assignments plus alerts about rooms still short of staff."""

    assignments: List[Assignment]
    alerts: List[str] = field(default_factory=list)
    score: float = 0.0
    iterations: int = 0


def coverage_alerts(assignments: Sequence[Assignment], rooms: Sequence[Room]) -> List[str]:
    """Alert strings for active rooms that are empty or short of staff."""
    teams = {a.room_id: a.staff_ids for a in assignments}
    alerts = []
    for room in rooms:
        if not room.is_active:
            continue
        dominant = dominant_department(room)
        count = len(teams.get(room.id, []))
        if count == 0 and room.slot_count > 0:
            alerts.append(f"CRITICAL: {room.name} ({dominant}) has no staff.")
        elif count < room.slot_count:
            alerts.append(
                f"WARNING: {room.name} ({dominant}) is understaffed "
                f"({count}/{room.slot_count})."
            )
    return alerts


class AssignmentOptimizer:
    """Improves an assignment set by local moves under the global score."""

    def __init__(self, request: OptimizerRequest):
        self.request = request
        self.config = request.config
        self.pairings = list(request.pairings)
        self.rooms_by_id: Dict[str, Room] = {r.id: r for r in request.rooms}
        self.staff_by_id: Dict[str, Staff] = {s.id: s for s in request.staff}
        for s in request.pool:
            self.staff_by_id.setdefault(s.id, s)
        self.dominant: Dict[str, str] = {
            r.id: dominant_department(r) for r in request.rooms
        }
        self.assignments: List[Assignment] = []
        self.room_scores: List[float] = []
        self.dropped: List[str] = []

    def optimize(self) -> OptimizerResponse:
        """
        Run the hill climb and return the refined result.

        Returns:
            OptimizerResponse whose assignments only place staff qualified
            for their room
        """
        self._prepare()
        iterations = 0
        while iterations < self.config.optimizer_max_iterations:
            iterations += 1
            if self._improve_with_bench():
                continue
            if self._improve_lateral():
                continue
            break

        return self._extract_results(iterations)

    def schedule_score(self, assignments: Sequence[Assignment] | None = None) -> float:
        """Sum of per-member scores plus a bonus per fully staffed room."""
        if assignments is None:
            assignments = self.assignments
        return sum(self._room_score(a) for a in assignments)

    def _prepare(self) -> None:
        """Copy the input, drop unqualified or unknown members, add empty teams."""
        self.assignments = []
        self.dropped = []
        seen_rooms = set()

        for original in self.request.assignments:
            room = self.rooms_by_id.get(original.room_id)
            kept = []
            for staff_id in original.staff_ids:
                person = self.staff_by_id.get(staff_id)
                if room is not None and person is not None and is_qualified(
                    person, room, self.config
                ):
                    kept.append(staff_id)
                else:
                    self.dropped.append(staff_id)
            self.assignments.append(Assignment(original.room_id, kept))
            seen_rooms.add(original.room_id)

        # Rooms the greedy pass left empty can still be filled from the bench
        for room in self.request.rooms:
            if room.is_active and room.id not in seen_rooms:
                self.assignments.append(Assignment(room.id, []))
                seen_rooms.add(room.id)

        self.room_scores = [self._room_score(a) for a in self.assignments]

    def _room_score(self, assignment: Assignment) -> float:
        room = self.rooms_by_id.get(assignment.room_id)
        if room is None:
            return 0.0

        dominant = self.dominant[room.id]
        team = [
            self.staff_by_id[sid] for sid in assignment.staff_ids if sid in self.staff_by_id
        ]
        total = 0.0
        for index, member in enumerate(team):
            others = team[:index] + team[index + 1 :]
            total += score(
                member,
                room,
                index,
                dominant,
                others,
                self.config.weights,
                self.pairings,
                self.config,
            )
        if team and len(team) >= room.slot_count:
            total += self.config.weights.full_team_bonus
        return total

    def _bench(self) -> List[Staff]:
        assigned = {sid for a in self.assignments for sid in a.staff_ids}
        return [s for s in self.request.pool if s.id not in assigned]

    def _improve_with_bench(self) -> bool:
        """Swap a room member for a bench member, or fill an open slot."""
        bench = self._bench()
        if not bench:
            return False

        for index, assignment in enumerate(self.assignments):
            room = self.rooms_by_id.get(assignment.room_id)
            if room is None:
                continue

            for slot in range(room.slot_count):
                if slot < len(assignment.staff_ids):
                    original_id = assignment.staff_ids[slot]
                    for candidate in bench:
                        if not is_qualified(candidate, room, self.config):
                            continue
                        assignment.staff_ids[slot] = candidate.id
                        if self._accept(index, assignment):
                            return True
                        assignment.staff_ids[slot] = original_id
                else:
                    for candidate in bench:
                        if not is_qualified(candidate, room, self.config):
                            continue
                        assignment.staff_ids.append(candidate.id)
                        if self._accept(index, assignment):
                            return True
                        assignment.staff_ids.pop()
                    # Further open slots would try the same appends again
                    break

        return False

    def _improve_lateral(self) -> bool:
        """Exchange two members of different rooms."""
        for i, first in enumerate(self.assignments):
            room_a = self.rooms_by_id.get(first.room_id)
            if room_a is None:
                continue
            for j in range(i + 1, len(self.assignments)):
                second = self.assignments[j]
                room_b = self.rooms_by_id.get(second.room_id)
                if room_b is None:
                    continue

                for slot_a, id_a in enumerate(first.staff_ids):
                    for slot_b, id_b in enumerate(second.staff_ids):
                        staff_a = self.staff_by_id.get(id_a)
                        staff_b = self.staff_by_id.get(id_b)
                        if staff_a is None or staff_b is None:
                            continue
                        if not is_qualified(staff_a, room_b, self.config):
                            continue
                        if not is_qualified(staff_b, room_a, self.config):
                            continue

                        first.staff_ids[slot_a] = id_b
                        second.staff_ids[slot_b] = id_a
                        new_a = self._room_score(first)
                        new_b = self._room_score(second)
                        if new_a + new_b > self.room_scores[i] + self.room_scores[j]:
                            self.room_scores[i] = new_a
                            self.room_scores[j] = new_b
                            return True
                        first.staff_ids[slot_a] = id_a
                        second.staff_ids[slot_b] = id_b

        return False

    def _accept(self, index: int, assignment: Assignment) -> bool:
        new_score = self._room_score(assignment)
        if new_score > self.room_scores[index]:
            self.room_scores[index] = new_score
            return True
        return False

    def _extract_results(self, iterations: int) -> OptimizerResponse:
        alerts = [
            f"Removed {staff_id} from the plan: not qualified for the assigned room."
            for staff_id in self.dropped
        ]
        alerts.extend(coverage_alerts(self.assignments, self.request.rooms))
        assignments = [a for a in self.assignments if a.staff_ids]

        logger.info(
            "Optimizer finished after %d iteration(s), score %.1f",
            iterations,
            sum(self.room_scores),
        )
        return OptimizerResponse(
            assignments=assignments,
            alerts=alerts,
            score=sum(self.room_scores),
            iterations=iterations,
        )


def run_optimizer(request: OptimizerRequest) -> OptimizerResponse:
    """Module-level entry so process pools can pickle the call."""
    return AssignmentOptimizer(request).optimize()


def submit_refinement(request: OptimizerRequest, executor: Executor) -> "Future[OptimizerResponse]":
    """Schedule a refinement run and return its future."""
    return executor.submit(run_optimizer, request)
