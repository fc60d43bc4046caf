from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from typing import Literal, Optional
from pydantic import BaseModel, Field
from database import Base
from student_models import Student
from allocation import MAX_BEDS_PER_ROOM, seating_type_for, EMPTY, OCCUPIED


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("hostel_name", "room_no", name="rooms_hostel_name_room_no_key"),
        CheckConstraint("floor BETWEEN 0 AND 3", name="check_room_floor"),
    )

    id = Column(Integer, primary_key=True, index=True)
    hostel_name = Column(String(100), nullable=False, index=True)
    room_no = Column(String(10), nullable=False)
    floor = Column(Integer, nullable=False)

    beds = relationship(
        "Bed",
        back_populates="room",
        order_by="Bed.bed_code",
        cascade="all, delete-orphan",
    )

    # derived from the beds, never stored
    @property
    def seating_type(self):
        return seating_type_for(len(self.beds))

    def to_dict(self):
        return {
            "id": self.id,
            "roomNo": self.room_no,
            "floor": self.floor,
            "hostelName": self.hostel_name,
            "type": self.seating_type,
            "capacity": len(self.beds),
            "beds": [bed.to_dict() for bed in self.beds],
        }


class Bed(Base):
    __tablename__ = "beds"

    id = Column(Integer, primary_key=True, index=True)
    bed_code = Column(String(20), nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    # unique: a student sits on at most one bed
    student_id = Column(Integer, ForeignKey("students.id"), nullable=True, unique=True)

    room = relationship(Room, back_populates="beds")
    student = relationship(Student)

    @property
    def status(self):
        return OCCUPIED if self.student_id is not None else EMPTY

    def to_dict(self):
        return {
            "id": self.id,
            "bedCode": self.bed_code,
            "roomId": self.room_id,
            "status": self.status,
            "studentId": self.student_id,
            "student": self.student.to_dict() if self.student is not None else None,
        }


class CreateRoomRequest(BaseModel):
    room_no: str = Field(min_length=1, max_length=10)
    floor: int = Field(ge=0, le=3)
    beds: int = Field(default=MAX_BEDS_PER_ROOM, ge=1, le=MAX_BEDS_PER_ROOM)
    hostel_name: Optional[str] = None


class UpdateRoomRequest(BaseModel):
    seating_type: Literal["1-Seater", "2-Seater", "3-Seater"]


class CreateStudentRequest(BaseModel):
    full_name: str
    year_of_study: str
    course: str
    branch: str = ""
    institute_name: str
    mobile_no: Optional[str] = None
    email_id: Optional[str] = None
    gender: str = Field(pattern="^[MF]$")
