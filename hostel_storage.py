"""
Backend side of the allocation operations.

Every function works on a SQLAlchemy session, applies the rules from
allocation.py and commits. Refusals are raised as AllocationError
subclasses; main.py turns them into HTTP errors.
"""

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import allocation
from allocation import (
    AllocationError,
    BedEmptyError,
    BedNotFoundError,
    BedOccupiedError,
    LastBedError,
    RoomFullError,
    RoomNotFoundError,
    StudentAlreadyAssignedError,
    StudentNotFoundError,
    MAX_BEDS_PER_ROOM,
    bed_count_for,
    next_bed_code,
)
from bed_allocation import BedAllocation, utcnow
from logging_config import logger
from room_filters import room_type_stats
from room_schema import Bed, Room
from student_models import Student


class RoomExistsError(AllocationError):
    """Room number already used in the hostel"""


# Rooms

def list_rooms(db: Session, hostel_name: Optional[str] = None, floor: Optional[int] = None) -> List[Room]:
    query = db.query(Room)
    if hostel_name:
        query = query.filter(func.lower(Room.hostel_name) == hostel_name.lower())
    if floor is not None:
        query = query.filter(Room.floor == floor)
    return query.order_by(Room.floor, Room.room_no).all()


def get_room(db: Session, room_id: int) -> Room:
    room = db.query(Room).filter_by(id=room_id).first()
    if room is None:
        raise RoomNotFoundError(room_id)
    return room


def create_room(db: Session, hostel_name: str, room_no: str, floor: int, beds: int = MAX_BEDS_PER_ROOM) -> Room:
    existing = db.query(Room).filter_by(hostel_name=hostel_name, room_no=room_no).first()
    if existing:
        raise RoomExistsError(f"Room {room_no} already exists in {hostel_name}")
    if not 1 <= beds <= MAX_BEDS_PER_ROOM:
        raise RoomFullError(f"A room holds 1 to {MAX_BEDS_PER_ROOM} beds")

    room = Room(hostel_name=hostel_name, room_no=room_no, floor=floor)
    codes = []
    for _ in range(beds):
        code = next_bed_code(room_no, codes)
        codes.append(code)
        room.beds.append(Bed(bed_code=code))
    db.add(room)
    db.commit()
    db.refresh(room)
    logger.info(f"Created room {hostel_name}/{room_no} on floor {floor} with {beds} bed(s)")
    return room


def room_stats(db: Session, hostel_name: Optional[str] = None):
    rooms = [allocation.Room.model_validate(r.to_dict()) for r in list_rooms(db, hostel_name)]
    return room_type_stats(rooms)


# Students

def get_student(db: Session, student_id: int) -> Student:
    student = db.query(Student).filter_by(id=student_id).first()
    if student is None:
        raise StudentNotFoundError(student_id)
    return student


def list_students(db: Session) -> List[Student]:
    return db.query(Student).order_by(Student.id).all()


def list_unassigned_students(db: Session, gender: Optional[str] = None) -> List[Student]:
    """Students not on any bed, the candidates of the assign dialog"""
    seated = select(Bed.student_id).where(Bed.student_id.isnot(None))
    query = db.query(Student).filter(Student.id.notin_(seated))
    if gender:
        query = query.filter(Student.gender == gender.upper())
    return query.order_by(Student.full_name).all()


def create_student(db: Session, **fields) -> Student:
    student = Student(**fields)
    db.add(student)
    db.commit()
    db.refresh(student)
    return student


# Beds

def get_bed(db: Session, bed_id: int) -> Bed:
    bed = db.query(Bed).filter_by(id=bed_id).first()
    if bed is None:
        raise BedNotFoundError(bed_id)
    return bed


def assign_student(db: Session, bed_id: int, student_id: int) -> Bed:
    bed = get_bed(db, bed_id)
    student = get_student(db, student_id)

    if bed.student_id is not None:
        raise BedOccupiedError(f"Bed {bed.bed_code} is already occupied")

    current = db.query(Bed).filter_by(student_id=student_id).first()
    if current is not None:
        raise StudentAlreadyAssignedError(
            f"{student.full_name} already occupies bed {current.bed_code}"
        )

    bed.student_id = student.id
    db.add(BedAllocation(
        student_id=student.id,
        bed_id=bed.id,
        hostel_name=bed.room.hostel_name,
        room_no=bed.room.room_no,
        bed_code=bed.bed_code,
    ))
    try:
        db.commit()
    except IntegrityError:
        # another request seated the student between the check and the commit
        db.rollback()
        raise StudentAlreadyAssignedError(f"{student.full_name} already occupies a bed")
    db.refresh(bed)
    logger.info(f"Assigned student {student.id} to bed {bed.bed_code}")
    return bed


def remove_student(db: Session, bed_id: int) -> Bed:
    bed = get_bed(db, bed_id)
    if bed.student_id is None:
        raise BedEmptyError(f"Bed {bed.bed_code} is already empty")

    student_id = bed.student_id
    open_rows = db.query(BedAllocation).filter_by(
        bed_id=bed.id, student_id=student_id, released_on=None
    ).all()
    now = utcnow()
    for row in open_rows:
        row.released_on = now

    bed.student_id = None
    db.commit()
    db.refresh(bed)
    logger.info(f"Removed student {student_id} from bed {bed.bed_code}")
    return bed


def add_bed(db: Session, room_id: int) -> Bed:
    room = get_room(db, room_id)
    if len(room.beds) >= MAX_BEDS_PER_ROOM:
        raise RoomFullError(f"Room {room.room_no} already has {MAX_BEDS_PER_ROOM} beds")

    bed = Bed(bed_code=next_bed_code(room.room_no, (b.bed_code for b in room.beds)))
    room.beds.append(bed)
    db.commit()
    db.refresh(bed)
    logger.info(f"Added bed {bed.bed_code} to room {room.room_no} ({room.seating_type})")
    return bed


def remove_bed(db: Session, bed_id: int) -> Room:
    bed = get_bed(db, bed_id)
    if bed.student_id is not None:
        raise BedOccupiedError(f"Cannot remove bed {bed.bed_code}: it is occupied")

    room = bed.room
    if len(room.beds) == 1:
        raise LastBedError(f"Room {room.room_no} must keep at least one bed")
    code = bed.bed_code
    room.beds.remove(bed)
    db.commit()
    db.refresh(room)
    logger.info(f"Removed bed {code} from room {room.room_no} ({room.seating_type})")
    return room


def update_room_type(db: Session, room_id: int, seating_type: str) -> Room:
    """Grow or shrink a room to the bed count of `seating_type` in one step.

    Shrinking drops the trailing beds and is refused as a whole when any of
    them is occupied.
    """
    room = get_room(db, room_id)
    target = bed_count_for(seating_type)
    beds = sorted(room.beds, key=lambda b: b.bed_code)

    if target < len(beds):
        surplus = beds[target:]
        if any(bed.student_id is not None for bed in surplus):
            raise BedOccupiedError("Cannot reduce room capacity when beds are occupied")
        for bed in surplus:
            room.beds.remove(bed)
    else:
        codes = [bed.bed_code for bed in beds]
        for _ in range(target - len(beds)):
            code = next_bed_code(room.room_no, codes)
            codes.append(code)
            room.beds.append(Bed(bed_code=code))

    db.commit()
    db.refresh(room)
    logger.info(f"Room {room.room_no} is now {room.seating_type}")
    return room


# Allocation ledger

def list_allocations(db: Session, hostel_name: Optional[str] = None, active_only: bool = False) -> List[BedAllocation]:
    query = db.query(BedAllocation)
    if hostel_name:
        query = query.filter(func.lower(BedAllocation.hostel_name) == hostel_name.lower())
    if active_only:
        query = query.filter(BedAllocation.released_on.is_(None))
    return query.order_by(BedAllocation.allocated_on.desc(), BedAllocation.id.desc()).all()
