"""Shared fixtures for or-planner tests."""

import pytest
from datetime import date

from or_planner.defaults import default_config
from or_planner.models import AppConfig, Room, SkillLevel, Staff, VacationPeriod

from builders import MONDAY, make_room


@pytest.fixture
def monday() -> date:
    """A regular working day (Monday)."""
    return MONDAY


@pytest.fixture
def config() -> AppConfig:
    """Built-in default configuration."""
    return default_config()


@pytest.fixture
def uch_room() -> Room:
    """SAAL_1: UCH room with one UCH operation and two slots."""
    return make_room()


@pytest.fixture
def expert_lead() -> Staff:
    """A: Expert UCH, lead-capable for UCH."""
    return Staff(
        id="A",
        name="Anna",
        skills={"UCH": SkillLevel.EXPERT},
        is_lead_capable=True,
        lead_depts=["UCH"],
    )


@pytest.fixture
def junior() -> Staff:
    """B: Junior UCH."""
    return Staff(id="B", name="Ben", skills={"UCH": "Junior"})


@pytest.fixture
def gyn_expert() -> Staff:
    """C: Expert GYN, not lead-capable."""
    return Staff(id="C", name="Clara", skills={"GYN": "Expert"})


@pytest.fixture
def lone_junior() -> Staff:
    """D: Junior UCH, otherwise available."""
    return Staff(id="D", name="Dora", skills={"UCH": SkillLevel.JUNIOR})


@pytest.fixture
def vacationing_expert() -> Staff:
    """V: Expert UCH on vacation during the test week."""
    return Staff(
        id="V",
        name="Vera",
        skills={"UCH": SkillLevel.EXPERT},
        vacations=[VacationPeriod(start=date(2026, 3, 14), end=date(2026, 3, 22))],
    )


@pytest.fixture
def scenario_staff(expert_lead, junior, gyn_expert) -> list[Staff]:
    """Staff pool A, B, C."""
    return [expert_lead, junior, gyn_expert]
