import os
from fastapi import FastAPI, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from database import SessionLocal, engine, Base, get_db
from user_models import User
from auth import hash_password, verify_password, create_access_token, get_current_user, ensure_hostel_access
from pydantic import BaseModel
from typing import Literal, Optional
from room_schema import CreateRoomRequest, CreateStudentRequest, UpdateRoomRequest
from allocation import (
    AllocationError,
    BedNotFoundError,
    RoomNotFoundError,
    StudentNotFoundError,
)
from room_filters import FLOORS
from logging_config import logger
from seed import seed_demo_data
import hostel_storage as storage

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Hostel Room Manager", version="0.1.0")

if os.getenv("SEED_DEMO_DATA", "").lower() in ("1", "true", "yes"):
    with SessionLocal() as seed_db:
        seed_demo_data(seed_db)


def http_error(error: AllocationError) -> HTTPException:
    if isinstance(error, (RoomNotFoundError, BedNotFoundError, StudentNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_409_CONFLICT
    logger.warning(f"Refused: {error.message}")
    return HTTPException(status_code=code, detail=error.message)


def scoped_hostel(current_user: User, hostel_name: Optional[str]) -> Optional[str]:
    """Hostel a request addresses: the explicit one, else the warden's own.

    A superadmin without an explicit hostel addresses all of them (None).
    """
    if hostel_name:
        ensure_hostel_access(current_user, hostel_name)
        return hostel_name
    if current_user.role == "superadmin":
        return None
    return current_user.hostel_name


class RegisterUser(BaseModel):
    username: str
    email: str
    password: str
    role: Literal["admin", "superadmin"] = "admin"
    hostel_name: str


@app.get("/")
def service_info():
    return {"service": app.title, "version": app.version, "floors": len(FLOORS)}


@app.post("/register", status_code=201)
def register_user(user: RegisterUser, db: Session = Depends(get_db)):
    if db.query(User).filter((User.username == user.username) | (User.email == user.email)).first():
        raise HTTPException(status_code=400, detail="Username or email already registered")
    hashed_pw = hash_password(user.password)
    new_user = User(username=user.username, email=user.email, hashed_password=hashed_pw,
                    role=user.role, hostel_name=user.hostel_name)
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    logger.info(f"Registered {user.role} {user.username} for {user.hostel_name}")
    return {"message": "User created successfully"}


class LoginUser(BaseModel):
    username: str
    password: str


@app.post("/login")
def login_user(user: LoginUser, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.username == user.username).first()
    if not db_user or not verify_password(user.password, db_user.hashed_password):
        logger.warning(f"Failed login for {user.username}")
        raise HTTPException(status_code=400, detail="Invalid credentials")
    token = create_access_token({"sub": db_user.username, "role": db_user.role})
    return {
        "access_token": token,
        "token_type": "bearer",
        "username": db_user.username,
        "role": db_user.role,
        "hostel_name": db_user.hostel_name,
    }


@app.get("/me")
def read_my_info(current_user: User = Depends(get_current_user)):
    return {
        "username": current_user.username,
        "email": current_user.email,
        "role": current_user.role,
        "hostel_name": current_user.hostel_name,
    }


@app.get("/api/floors")
def list_floors():
    return FLOORS


# Students

@app.get("/api/students")
def list_students(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return [student.to_dict() for student in storage.list_students(db)]


@app.post("/api/students", status_code=201)
def create_student(
    request: CreateStudentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    student = storage.create_student(db, **request.model_dump())
    return student.to_dict()


#Students without a bed, for the assign dialog
@app.get("/api/student/filtered-list")
def list_unassigned_students(
    gender: Optional[Literal["M", "F"]] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return [student.to_dict() for student in storage.list_unassigned_students(db, gender)]


# Rooms and beds

@app.get("/api/hostel/rooms")
def list_rooms(
    hostel_name: Optional[str] = Query(None, alias="hostelName"),
    floor: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if floor is not None and not 0 <= floor <= 3:
        raise HTTPException(status_code=400, detail="Invalid floor number")

    hostel = scoped_hostel(current_user, hostel_name)
    return [room.to_dict() for room in storage.list_rooms(db, hostel, floor)]


@app.post("/api/hostel/rooms", status_code=201)
def create_room(
    request: CreateRoomRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    hostel = request.hostel_name or current_user.hostel_name
    ensure_hostel_access(current_user, hostel)
    try:
        room = storage.create_room(db, hostel, request.room_no, request.floor, request.beds)
    except AllocationError as e:
        raise http_error(e)
    return room.to_dict()


@app.patch("/api/hostel/rooms/{room_id}")
def update_room_type(
    room_id: int,
    request: UpdateRoomRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        room = storage.get_room(db, room_id)
        ensure_hostel_access(current_user, room.hostel_name)
        room = storage.update_room_type(db, room_id, request.seating_type)
    except AllocationError as e:
        raise http_error(e)

    return {"message": f"Room {room.room_no} is now {room.seating_type}", "room": room.to_dict()}


@app.post("/api/hostel/assign")
def assign_student(
    bed_id: int = Query(..., alias="bedId"),
    student_id: int = Query(..., alias="studentId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        bed = storage.get_bed(db, bed_id)
        ensure_hostel_access(current_user, bed.room.hostel_name)
        bed = storage.assign_student(db, bed_id, student_id)
    except AllocationError as e:
        raise http_error(e)

    return {
        "message": f"{bed.student.full_name} assigned to bed {bed.bed_code}",
        "bed": bed.to_dict(),
    }


@app.post("/api/hostel/remove-student")
def remove_student(
    bed_id: int = Query(..., alias="bedId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        bed = storage.get_bed(db, bed_id)
        ensure_hostel_access(current_user, bed.room.hostel_name)
        bed = storage.remove_student(db, bed_id)
    except AllocationError as e:
        raise http_error(e)

    return {"message": f"Bed {bed.bed_code} is now empty", "bed": bed.to_dict()}


@app.post("/api/hostel/add-bed")
def add_bed(
    room_id: int = Query(..., alias="roomId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        room = storage.get_room(db, room_id)
        ensure_hostel_access(current_user, room.hostel_name)
        bed = storage.add_bed(db, room_id)
    except AllocationError as e:
        raise http_error(e)

    return {"message": f"New bed added to Room {room.room_no}", "bed": bed.to_dict()}


@app.post("/api/hostel/remove-bed")
def remove_bed(
    bed_id: int = Query(..., alias="bedId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        bed = storage.get_bed(db, bed_id)
        ensure_hostel_access(current_user, bed.room.hostel_name)
        room = storage.remove_bed(db, bed_id)
    except AllocationError as e:
        raise http_error(e)

    return {"message": f"Bed removed from Room {room.room_no}", "room": room.to_dict()}


@app.get("/api/hostel/allocations")
def list_allocations(
    hostel_name: Optional[str] = Query(None, alias="hostelName"),
    active_only: bool = Query(False, alias="activeOnly"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    hostel = scoped_hostel(current_user, hostel_name)
    return [row.to_dict() for row in storage.list_allocations(db, hostel, active_only)]


@app.get("/api/stats/rooms")
def room_statistics(
    hostel_name: Optional[str] = Query(None, alias="hostelName"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return storage.room_stats(db, scoped_hostel(current_user, hostel_name))
