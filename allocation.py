"""
Room/bed allocation model.

Rooms hold at most three beds and each bed holds at most one student. The
seating type of a room ("1-Seater", "2-Seater", "3-Seater") is derived from
its current bed count and is never stored, and a bed is occupied exactly
when it carries a student reference.

The same rules (capacity, seating type, bed codes, error types) are used by
the backend storage layer and by the client-side RoomStore.
"""

from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MAX_BEDS_PER_ROOM = 3
SEATING_TYPES = ("1-Seater", "2-Seater", "3-Seater")
BED_LETTERS = "ABC"

EMPTY = "empty"
OCCUPIED = "occupied"


class AllocationError(Exception):
    """Base class for every refused allocation operation"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class RoomNotFoundError(AllocationError):
    def __init__(self, room_id: int):
        super().__init__(f"Room {room_id} not found")


class BedNotFoundError(AllocationError):
    def __init__(self, bed_id: int):
        super().__init__(f"Bed {bed_id} not found")


class StudentNotFoundError(AllocationError):
    def __init__(self, student_id: int):
        super().__init__(f"Student {student_id} not found")


class BedOccupiedError(AllocationError):
    """Bed already holds a student"""


class BedEmptyError(AllocationError):
    """Bed holds no student"""


class RoomFullError(AllocationError):
    """Room already has MAX_BEDS_PER_ROOM beds"""


class StudentAlreadyAssignedError(AllocationError):
    """Student already occupies another bed"""


class LastBedError(AllocationError):
    """Room would be left without beds"""


def seating_type_for(bed_count: int) -> str:
    """Seating label for a room holding `bed_count` beds (1 to 3)"""
    if not 1 <= bed_count <= MAX_BEDS_PER_ROOM:
        raise ValueError(f"A room holds 1 to {MAX_BEDS_PER_ROOM} beds, not {bed_count}")
    return f"{bed_count}-Seater"


def bed_count_for(seating_type: str) -> int:
    if seating_type not in SEATING_TYPES:
        raise ValueError(f"Unknown seating type: {seating_type}")
    return SEATING_TYPES.index(seating_type) + 1


def bed_code(room_no: str, letter: str) -> str:
    return f"B{room_no}{letter}"


def next_bed_code(room_no: str, existing_codes: Iterable[str]) -> str:
    """First free code among B<room>A, B<room>B, B<room>C.

    Freed letters are reused, so removing the middle bed and adding one back
    gives the middle code again.
    """
    taken = set(existing_codes)
    for letter in BED_LETTERS:
        code = bed_code(room_no, letter)
        if code not in taken:
            return code
    raise RoomFullError(f"Room {room_no} already has {MAX_BEDS_PER_ROOM} beds")


class WireModel(BaseModel):
    """Values exchanged with the hostel API use camelCase keys"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Student(WireModel):
    id: int
    full_name: str
    year_of_study: Optional[str] = None
    course: Optional[str] = None
    branch: Optional[str] = None
    institute_name: Optional[str] = None
    mobile_no: Optional[str] = None
    email_id: Optional[str] = None
    gender: Optional[str] = None


class Bed(WireModel):
    id: int
    bed_code: str
    room_id: int
    student_id: Optional[int] = None
    student: Optional[Student] = None

    @property
    def status(self) -> str:
        return OCCUPIED if self.student_id is not None else EMPTY

    @property
    def is_occupied(self) -> bool:
        return self.student_id is not None


class Room(WireModel):
    id: int
    room_no: str
    floor: int
    hostel_name: Optional[str] = None
    beds: List[Bed] = Field(default_factory=list)

    @property
    def seating_type(self) -> str:
        return seating_type_for(len(self.beds))

    @property
    def occupied_count(self) -> int:
        return sum(1 for bed in self.beds if bed.is_occupied)

    @property
    def can_add_bed(self) -> bool:
        return len(self.beds) < MAX_BEDS_PER_ROOM


class RoomStore:
    """In-memory copy of a hostel's rooms.

    The controller replaces the whole list after every round trip through
    `load`; the mutators below apply the allocation rules locally and raise
    AllocationError subclasses when a rule is broken. The store does not
    check that a student sits on a single bed, that is left to the backend.
    """

    def __init__(self, rooms: Optional[Iterable[Room]] = None):
        self._rooms: List[Room] = list(rooms or [])

    @property
    def rooms(self) -> List[Room]:
        return list(self._rooms)

    def __len__(self) -> int:
        return len(self._rooms)

    def load(self, rooms: Iterable[Room]) -> None:
        self._rooms = list(rooms)

    def clear(self) -> None:
        self._rooms = []

    def get_room(self, room_id: int) -> Room:
        for room in self._rooms:
            if room.id == room_id:
                return room
        raise RoomNotFoundError(room_id)

    def find_bed(self, bed_id: int) -> Tuple[Room, Bed]:
        for room in self._rooms:
            for bed in room.beds:
                if bed.id == bed_id:
                    return room, bed
        raise BedNotFoundError(bed_id)

    def beds_of_student(self, student_id: int) -> List[Bed]:
        return [bed for room in self._rooms for bed in room.beds if bed.student_id == student_id]

    def assign_student(self, bed_id: int, student: Student) -> Bed:
        room, bed = self.find_bed(bed_id)
        if bed.is_occupied:
            raise BedOccupiedError(f"Bed {bed.bed_code} is already occupied")
        bed.student_id = student.id
        bed.student = student
        return bed

    def remove_student(self, bed_id: int) -> Optional[Student]:
        """Detach the occupant of a bed and return it"""
        room, bed = self.find_bed(bed_id)
        if not bed.is_occupied:
            raise BedEmptyError(f"Bed {bed.bed_code} is already empty")
        student = bed.student
        bed.student_id = None
        bed.student = None
        return student

    def relocate_student(self, bed_id: int) -> Optional[Student]:
        """First half of a relocation: free the bed.

        There is no atomic move. The returned student stays unassigned until
        the caller assigns them to another bed.
        """
        return self.remove_student(bed_id)

    def add_bed(self, room_id: int) -> Bed:
        room = self.get_room(room_id)
        if not room.can_add_bed:
            raise RoomFullError(f"Room {room.room_no} already has {MAX_BEDS_PER_ROOM} beds")
        code = next_bed_code(room.room_no, (b.bed_code for b in room.beds))
        bed = Bed(id=self._next_bed_id(), bed_code=code, room_id=room.id)
        room.beds.append(bed)
        return bed

    def remove_bed(self, bed_id: int) -> Bed:
        room, bed = self.find_bed(bed_id)
        if bed.is_occupied:
            raise BedOccupiedError(f"Cannot remove bed {bed.bed_code}: it is occupied")
        if len(room.beds) == 1:
            raise LastBedError(f"Room {room.room_no} must keep at least one bed")
        room.beds.remove(bed)
        return bed

    def _next_bed_id(self) -> int:
        ids = [bed.id for room in self._rooms for bed in room.beds]
        return max(ids, default=0) + 1
