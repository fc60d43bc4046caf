from sqlalchemy import Column, Integer, String, CheckConstraint
from database import Base


class Student(Base):
    """Student record as served by the registration side of the hostel.

    The room manager only reads these rows and points beds at them.
    """

    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(200), nullable=False)
    year_of_study = Column(String(20), nullable=False)
    course = Column(String(100), nullable=False)
    branch = Column(String(100), nullable=False, default="")
    institute_name = Column(String(20), nullable=False)
    mobile_no = Column(String(20))
    email_id = Column(String(120))
    gender = Column(String(1), nullable=False)

    __table_args__ = (
        CheckConstraint("gender IN ('M', 'F')", name="check_student_gender"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "fullName": self.full_name,
            "yearOfStudy": self.year_of_study,
            "course": self.course,
            "branch": self.branch,
            "instituteName": self.institute_name,
            "mobileNo": self.mobile_no,
            "emailId": self.email_id,
            "gender": self.gender,
        }
