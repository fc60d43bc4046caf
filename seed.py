"""
Demo data: every hostel gets floors 0-3 with twelve rooms each
(rooms x01-x08 three beds, x09-x10 two beds, x11-x12 one bed).
"""

from sqlalchemy.orm import Session

import hostel_storage as storage
from logging_config import logger
from room_schema import Room
from student_models import Student

DEMO_HOSTELS = ("Varahmihir", "Maitreyi")
FLOOR_COUNT = 4
ROOMS_PER_FLOOR = 12

DEMO_STUDENTS = [
    dict(full_name="Vishal Kamdar", year_of_study="3rd", course="B.Tech", branch="Computer Science",
         institute_name="IIST", mobile_no="+91 9476543210", email_id="vishal.k@example.com", gender="M"),
    dict(full_name="Rahul Sharma", year_of_study="1st", course="B.Tech", branch="Computer Science",
         institute_name="IIST", mobile_no="+91 9876543210", email_id="rahul.s@example.com", gender="M"),
    dict(full_name="Amit Kumar", year_of_study="1st", course="B.Tech", branch="CS",
         institute_name="IIP", mobile_no="+91 9876543211", email_id="amit.k@example.com", gender="M"),
    dict(full_name="Vijay Singh", year_of_study="1st", course="B.Tech", branch="CS",
         institute_name="IIMR", mobile_no="+91 9876543212", email_id="vijay.s@example.com", gender="M"),
    dict(full_name="Priya Patel", year_of_study="2nd", course="B.Tech", branch="Electronics",
         institute_name="IIST", mobile_no="+91 9876543213", email_id="priya.p@example.com", gender="F"),
    dict(full_name="Sunita Gupta", year_of_study="3rd", course="B.Tech", branch="Mechanical",
         institute_name="IIP", mobile_no="+91 9876543214", email_id="sunita.g@example.com", gender="F"),
]


def beds_for(room_index: int) -> int:
    if room_index >= 11:
        return 1
    if room_index >= 9:
        return 2
    return 3


def seed_demo_data(db: Session, hostels=DEMO_HOSTELS) -> None:
    """Create demo rooms and students; hostels that already have rooms are skipped"""
    if db.query(Student).count() == 0:
        for fields in DEMO_STUDENTS:
            storage.create_student(db, **fields)

    for hostel in hostels:
        if db.query(Room).filter_by(hostel_name=hostel).first():
            continue
        for floor in range(FLOOR_COUNT):
            for index in range(1, ROOMS_PER_FLOOR + 1):
                storage.create_room(db, hostel, f"{floor}{index:02d}", floor, beds_for(index))
        logger.info(f"Seeded {FLOOR_COUNT * ROOMS_PER_FLOOR} rooms for {hostel}")

        # first ground floor room gets two occupants of the hostel's gender
        gender = "F" if hostel.lower() == "maitreyi" else "M"
        first_room = storage.list_rooms(db, hostel, 0)[0]
        candidates = storage.list_unassigned_students(db, gender)[:2]
        for bed, student in zip(first_room.beds, candidates):
            storage.assign_student(db, bed.id, student.id)
