"""
Room manager controller.

Turns admin actions (clicking a bed, assigning, removing, relocating,
adding or removing beds, resizing rooms) into calls on the hostel API. The
controller never edits its room cache directly: every mutation is one
request followed by a full refetch. A failed request shows an error toast
and resyncs, and an id missing from the cache shows a toast instead of
raising.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from admin_session import AdminSession
from allocation import MAX_BEDS_PER_ROOM, AllocationError, Bed, Room, RoomStore, Student, bed_count_for
from hostel_client import HostelApiClient, HostelApiError
from logging_config import logger
from room_filters import (
    ALL,
    ALL_FLOORS,
    FLOORS,
    filter_rooms,
    floor_name,
    occupants,
    search_students,
    year_options,
)

ASSIGN_DIALOG = "assign"
DETAILS_DIALOG = "details"


@dataclass
class Toast:
    title: str
    description: str
    variant: str = "default"


class RoomManager:
    def __init__(self, session: AdminSession, api: Optional[HostelApiClient] = None):
        self.session = session
        self.api = api or session.api
        self.store = RoomStore()
        self.selected_floor = 0
        self.seating_type = ALL
        self.year = ALL
        self.institution = ALL
        self.vacancy = ALL
        self.selected_bed_id: Optional[int] = None
        self.dialog: Optional[str] = None
        self.toasts: List[Toast] = []
        session.on_logout(self._invalidate)

    def _invalidate(self):
        self.store.clear()
        self.close_dialog()

    def _toast(self, title: str, description: str, variant: str = "default"):
        toast = Toast(title, description, variant)
        self.toasts.append(toast)
        if variant == "destructive":
            logger.warning(f"{title}: {description}")
        else:
            logger.info(f"{title}: {description}")
        return toast

    # Loading and filtering

    def refresh(self) -> bool:
        self.session.require_active()
        floor = None if self.selected_floor == ALL_FLOORS else self.selected_floor
        try:
            rooms = self.api.fetch_rooms(self.session.hostel_name, floor)
        except HostelApiError as e:
            self.store.clear()
            self._toast("Error", f"Failed to fetch rooms: {e.message}", "destructive")
            return False
        self.store.load(rooms)
        return True

    def select_floor(self, floor: int) -> bool:
        if floor != ALL_FLOORS and floor not in [f["id"] for f in FLOORS]:
            raise ValueError(f"Invalid floor number: {floor}")
        self.selected_floor = floor
        return self.refresh()

    def set_filters(self, seating_type: Optional[str] = None, year: Optional[str] = None,
                    institution: Optional[str] = None, vacancy: Optional[str] = None):
        if seating_type is not None:
            self.seating_type = seating_type
        if year is not None:
            self.year = year
        if institution is not None:
            self.institution = institution
        if vacancy is not None:
            self.vacancy = vacancy

    def visible_rooms(self):
        return filter_rooms(
            self.store.rooms,
            floor=self.selected_floor,
            seating_type=self.seating_type,
            year=self.year,
            institution=self.institution,
            vacancy=self.vacancy,
        )

    def room_details(self, room_id: int) -> dict:
        room = self.store.get_room(room_id)
        return {
            "roomNo": room.room_no,
            "floor": floor_name(room.floor),
            "type": room.seating_type,
            "occupants": occupants(room),
        }

    def year_choices(self) -> List[str]:
        """Years present among all students, for the year filter"""
        self.session.require_active()
        try:
            return year_options(self.api.fetch_students())
        except HostelApiError as e:
            self._toast("Error", f"Failed to load students: {e.message}", "destructive")
            return []

    def room_statistics(self) -> list:
        self.session.require_active()
        return self.api.fetch_room_stats(self.session.hostel_name)

    def allocation_history(self, active_only: bool = False) -> list:
        self.session.require_active()
        return self.api.fetch_allocations(self.session.hostel_name, active_only)

    def assignable_students(self, query: str = "") -> List[Student]:
        self.session.require_active()
        try:
            students = self.api.fetch_unassigned_students(self.session.student_gender)
        except HostelApiError as e:
            self._toast("Error", f"Failed to load students: {e.message}", "destructive")
            return []
        return search_students(students, query)

    # Bed selection

    def _cached_room(self, room_id: int) -> Optional[Room]:
        try:
            return self.store.get_room(room_id)
        except AllocationError as e:
            self._toast("Not Found", e.message, "destructive")
            return None

    def _cached_bed(self, bed_id: int) -> Optional[Tuple[Room, Bed]]:
        try:
            return self.store.find_bed(bed_id)
        except AllocationError as e:
            self._toast("Not Found", e.message, "destructive")
            return None

    def click_bed(self, room_id: int, bed_id: int) -> Optional[str]:
        """Select a bed and open the dialog that matches its state"""
        found = self._cached_bed(bed_id)
        if found is None:
            return None
        room, bed = found
        if room.id != room_id:
            self._toast("Not Found", f"Bed {bed_id} is not in room {room_id}", "destructive")
            return None
        self.selected_bed_id = bed.id
        self.dialog = DETAILS_DIALOG if bed.is_occupied else ASSIGN_DIALOG
        return self.dialog

    def close_dialog(self):
        self.selected_bed_id = None
        self.dialog = None

    def _take_selection(self) -> Optional[int]:
        bed_id = self.selected_bed_id
        self.close_dialog()
        return bed_id

    # Mutations

    def _mutate(self, request: Callable[[], object], title: str, description: str, failure: str) -> bool:
        self.session.require_active()
        try:
            request()
        except HostelApiError as e:
            self._toast("Error", f"{failure}: {e.message}", "destructive")
            self.refresh()
            return False
        self._toast(title, description)
        self.refresh()
        return True

    def assign_student(self, student_id: int) -> bool:
        bed_id = self._take_selection()
        if bed_id is None:
            return False
        return self._mutate(
            lambda: self.api.assign_student(bed_id, student_id),
            "Student Assigned", "Student assigned to bed!", "Failed to assign student",
        )

    def remove_student(self) -> bool:
        bed_id = self._take_selection()
        if bed_id is None:
            return False
        return self._mutate(
            lambda: self.api.remove_student(bed_id),
            "Student Removed", "Removed student from bed.", "Failed to remove student",
        )

    def relocate_student(self) -> Optional[int]:
        """Free the selected bed and return the student id to place elsewhere.

        The student has no bed until the admin clicks another empty bed and
        assigns them.
        """
        if self.selected_bed_id is None:
            return None
        found = self._cached_bed(self.selected_bed_id)
        if found is None:
            self.close_dialog()
            return None
        student_id = found[1].student_id
        if not self.remove_student():
            return None
        self._toast("Ready to Relocate", "Student has been removed. Select another bed to relocate to.")
        return student_id

    def add_bed(self, room_id: int) -> bool:
        room = self._cached_room(room_id)
        if room is None:
            return False
        if not room.can_add_bed:
            self._toast("Room Full", f"Room {room.room_no} already has {MAX_BEDS_PER_ROOM} beds", "destructive")
            return False
        return self._mutate(
            lambda: self.api.add_bed(room_id),
            "Bed Added", f"New bed added to Room {room.room_no}", "Failed to add bed",
        )

    def remove_bed(self, bed_id: Optional[int] = None) -> bool:
        if bed_id is None:
            bed_id = self._take_selection()
            if bed_id is None:
                return False
        else:
            self.close_dialog()
        found = self._cached_bed(bed_id)
        if found is None:
            return False
        room, bed = found
        if bed.is_occupied:
            self._toast("Bed Occupied", f"Remove the student from {bed.bed_code} before removing the bed", "destructive")
            return False
        if len(room.beds) == 1:
            self._toast("Last Bed", f"Room {room.room_no} must keep at least one bed", "destructive")
            return False
        return self._mutate(
            lambda: self.api.remove_bed(bed_id),
            "Bed Removed", "Bed has been removed from the room.", "Failed to remove bed",
        )

    def change_room_type(self, room_id: int, seating_type: str) -> bool:
        """Resize a room to a seating type, adding or dropping trailing beds"""
        target = bed_count_for(seating_type)
        room = self._cached_room(room_id)
        if room is None:
            return False
        surplus = sorted(room.beds, key=lambda b: b.bed_code)[target:]
        if any(bed.is_occupied for bed in surplus):
            self._toast("Beds Occupied", "Cannot reduce room capacity when beds are occupied", "destructive")
            return False
        return self._mutate(
            lambda: self.api.update_room_type(room_id, seating_type),
            "Room Updated", f"Room {room.room_no} is now {seating_type}", "Failed to update room",
        )
