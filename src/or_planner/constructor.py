"""
Greedy room-by-room, slot-by-slot team construction.
"""

import logging
from datetime import date
from typing import Dict, List, Sequence, Set

from .availability import auto_assignment_pool
from .dates import as_date
from .models import AppConfig, Assignment, Room, Staff, StaffPairing
from .scoring import dominant_department, is_qualified, rank_candidates

logger = logging.getLogger(__name__)


class GreedyConstructor:
    """Builds an initial assignment set for one date.

    Never raises for unfillable rooms: a room simply ends up with a partial
    or no team, which the validator reports afterwards.
    """

    def __init__(
        self,
        rooms: Sequence[Room],
        staff: Sequence[Staff],
        day: date | str,
        config: AppConfig,
        pairings: Sequence[StaffPairing] = (),
    ):
        self.rooms = list(rooms)
        self.staff = list(staff)
        self.day = as_date(day)
        self.config = config
        self.pairings = [p for p in pairings if p.active]
        self.dominant: Dict[str, str] = {r.id: dominant_department(r) for r in self.rooms}
        self.pool: List[Staff] = []
        self.reservations: Dict[str, str] = {}  # staff id -> room id
        self.assigned_ids: Set[str] = set()
        self.assignments: List[Assignment] = []

    def construct(self) -> List[Assignment]:
        """
        Run the lead reservation pre-pass and fill every active room.

        Returns:
            One Assignment per room that received at least one staff member,
            in processing order
        """
        self.pool = auto_assignment_pool(self.staff, self.day, self.config)
        self.assigned_ids = set()
        self.assignments = []
        self.reservations = self._reserve_leads()

        for room in self.ordered_rooms():
            self._fill_room(room)

        logger.info(
            "Greedy construction staffed %d room(s) with %d of %d available staff",
            len(self.assignments),
            len(self.assigned_ids),
            len(self.pool),
        )
        return self.assignments

    def ordered_rooms(self) -> List[Room]:
        """Priority rooms first, then by descending operation count.

        Rooms without operations and without the priority tag are dropped.
        """
        active = [room for room in self.rooms if room.is_active]
        return sorted(active, key=lambda r: (not r.is_priority, -r.operation_count))

    def _reserve_leads(self) -> Dict[str, str]:
        """Earmark lead-capable staff for the busiest room they can lead.

        Keeps a high-volume room from absorbing a lead who is the only match
        for another room just because it is processed earlier.
        """
        busiest_first = sorted(
            (room for room in self.rooms if room.is_active),
            key=lambda r: r.operation_count,
            reverse=True,
        )
        pool_ids = {s.id for s in self.pool}
        reservations: Dict[str, str] = {}
        reserved_rooms: Set[str] = set()

        for person in self.staff:
            if not (
                person.is_lead_capable
                and not person.is_management_only
                and person.lead_depts
                and person.id in pool_ids
            ):
                continue

            matching = [
                room
                for room in busiest_first
                if room.id not in reserved_rooms
                and self.dominant[room.id] in person.lead_depts
                and is_qualified(person, room, self.config)
            ]
            if not matching:
                continue

            # Equal volume: prefer the department the person lists first
            room = min(
                matching,
                key=lambda r: (
                    -r.operation_count,
                    person.lead_depts.index(self.dominant[r.id]),
                ),
            )
            reservations[person.id] = room.id
            reserved_rooms.add(room.id)
            logger.debug("Reserved lead %s for room %s", person.id, room.id)

        return reservations

    def _candidates(self, room: Room) -> List[Staff]:
        """Pool members still free, qualified, and not reserved elsewhere."""
        return [
            s
            for s in self.pool
            if s.id not in self.assigned_ids
            and is_qualified(s, room, self.config)
            and self.reservations.get(s.id, room.id) == room.id
        ]

    def _paired_candidate(
        self, team: Sequence[Staff], candidates: Sequence[Staff]
    ) -> Staff | None:
        """First candidate who is the active pairing partner of a team member."""
        by_id = {c.id: c for c in candidates}
        for member in team:
            for pairing in self.pairings:
                partner_id = pairing.partner_of(member.id)
                if partner_id is not None and partner_id in by_id:
                    return by_id[partner_id]
        return None

    def _fill_room(self, room: Room) -> None:
        dominant = self.dominant[room.id]
        team: List[Staff] = []

        for slot_index in range(room.slot_count):
            candidates = self._candidates(room)

            selected = None
            if team:
                selected = self._paired_candidate(team, candidates)

            if selected is None:
                ranked = rank_candidates(
                    candidates,
                    room,
                    slot_index,
                    dominant,
                    team,
                    self.pairings,
                    self.config,
                )
                if not ranked:
                    logger.debug(
                        "No candidate left for %s slot %d", room.id, slot_index
                    )
                    break
                selected = ranked[0][0]

            self.assigned_ids.add(selected.id)
            team.append(selected)

        if team:
            self.assignments.append(
                Assignment(room_id=room.id, staff_ids=[s.id for s in team])
            )
