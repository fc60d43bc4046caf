from sqlalchemy import Column, Integer, String, CheckConstraint
from database import Base


class User(Base):
    """Hostel administrator. A warden ("admin") manages a single hostel."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String(50), nullable=False, default="admin")
    hostel_name = Column(String(100), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'superadmin')", name="check_user_role"
        ),
    )

    def can_manage(self, hostel_name: str) -> bool:
        if self.role == "superadmin":
            return True
        return (hostel_name or "").lower() == self.hostel_name.lower()
