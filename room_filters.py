"""
Filter/projection helpers over already-fetched rooms and students.
All functions are pure and keep the input order.
"""

from typing import Dict, Iterable, List, Optional

from allocation import SEATING_TYPES, Room, Student

ALL = "all"
ALL_FLOORS = -1

VACANT = "vacant"
PARTIALLY = "partially"
FILLED = "filled"
VACANCY_CHOICES = (ALL, VACANT, PARTIALLY, FILLED)

FLOORS = [
    {"id": 0, "name": "Ground Floor"},
    {"id": 1, "name": "First Floor"},
    {"id": 2, "name": "Second Floor"},
    {"id": 3, "name": "Third Floor"},
]


def floor_name(floor: int) -> str:
    for entry in FLOORS:
        if entry["id"] == floor:
            return entry["name"]
    return "All Floors" if floor == ALL_FLOORS else f"Floor {floor}"


def classify_vacancy(room: Room) -> str:
    """vacant: nobody in the room, filled: every bed taken, partially: in between"""
    occupied = room.occupied_count
    if occupied == 0:
        return VACANT
    if occupied == len(room.beds):
        return FILLED
    return PARTIALLY


def _has_occupant(room: Room, predicate) -> bool:
    return any(bed.is_occupied and bed.student is not None and predicate(bed.student) for bed in room.beds)


def filter_rooms(
    rooms: Iterable[Room],
    floor: int = ALL_FLOORS,
    seating_type: str = ALL,
    year: str = ALL,
    institution: str = ALL,
    vacancy: str = ALL,
) -> List[Room]:
    if vacancy not in VACANCY_CHOICES:
        raise ValueError(f"Unknown vacancy filter: {vacancy}")
    if seating_type != ALL and seating_type not in SEATING_TYPES:
        raise ValueError(f"Unknown seating type: {seating_type}")

    result = []
    for room in rooms:
        if floor != ALL_FLOORS and room.floor != floor:
            continue
        if seating_type != ALL and room.seating_type != seating_type:
            continue
        if year != ALL and not _has_occupant(room, lambda s: s.year_of_study == year):
            continue
        if institution != ALL and not _has_occupant(room, lambda s: s.institute_name == institution):
            continue
        if vacancy != ALL and classify_vacancy(room) != vacancy:
            continue
        result.append(room)
    return result


def occupants(room: Room) -> List[Student]:
    """Students of a room in bed order (the hover card)"""
    return [bed.student for bed in room.beds if bed.is_occupied and bed.student is not None]


def year_options(students: Iterable[Student]) -> List[str]:
    return sorted({s.year_of_study for s in students if s.year_of_study})


_SEARCH_FIELDS = (
    "full_name",
    "course",
    "branch",
    "year_of_study",
    "institute_name",
    "email_id",
    "mobile_no",
    "gender",
)


def search_students(students: Iterable[Student], query: Optional[str]) -> List[Student]:
    """Case-insensitive substring search used by the assign dialog"""
    needle = (query or "").strip().lower()
    if not needle:
        return list(students)
    return [
        s for s in students
        if any(needle in (getattr(s, field) or "").lower() for field in _SEARCH_FIELDS)
    ]


def room_type_stats(rooms: Iterable[Room]) -> List[Dict[str, object]]:
    """Available/occupied/total beds per seating type"""
    stats = {t: {"type": t, "available": 0, "occupied": 0, "total": 0} for t in SEATING_TYPES}
    for room in rooms:
        bucket = stats[room.seating_type]
        bucket["occupied"] += room.occupied_count
        bucket["available"] += len(room.beds) - room.occupied_count
        bucket["total"] += len(room.beds)
    return [stats[t] for t in SEATING_TYPES]
