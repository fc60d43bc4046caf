from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from student_models import Student


def utcnow():
    return datetime.now(timezone.utc)


class BedAllocation(Base):
    """One row per assignment; released_on stays NULL while the student is on the bed.

    room_no and bed_code are copied so the ledger survives bed removal.
    """

    __tablename__ = "bed_allocations"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    bed_id = Column(Integer, nullable=False, index=True)
    hostel_name = Column(String(100), nullable=False)
    room_no = Column(String(10), nullable=False)
    bed_code = Column(String(20), nullable=False)
    allocated_on = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    released_on = Column(DateTime(timezone=True), nullable=True)

    student = relationship(Student)

    def to_dict(self):
        return {
            "id": self.id,
            "studentId": self.student_id,
            "studentName": self.student.full_name if self.student is not None else None,
            "bedId": self.bed_id,
            "hostelName": self.hostel_name,
            "roomNo": self.room_no,
            "bedCode": self.bed_code,
            "allocatedOn": self.allocated_on.isoformat() if self.allocated_on else None,
            "releasedOn": self.released_on.isoformat() if self.released_on else None,
        }
