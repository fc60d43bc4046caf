"""
Thin httpx wrapper over the hostel REST API.

Each call is a single request: no retries, no backoff, no de-duplication.
Any failure (transport error or non-2xx status) raises HostelApiError.
"""

import os
from typing import Any, Dict, List, Optional

import httpx
from dotenv import load_dotenv

from allocation import Room, Student
from logging_config import logger

load_dotenv()

HOSTEL_API_URL = os.getenv("HOSTEL_API_URL", "http://localhost:8000")


class HostelApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class HostelApiClient:
    def __init__(self, base_url: str = HOSTEL_API_URL, token: Optional[str] = None,
                 http: Optional[httpx.Client] = None):
        self.token = token
        self._owns_http = http is None
        self._http = http if http is not None else httpx.Client(base_url=base_url.rstrip("/"))

    def close(self):
        if self._owns_http:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                 json: Optional[Dict[str, Any]] = None) -> Any:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = self._http.request(method, path, params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise HostelApiError(f"Could not reach the hostel server: {e}") from e

        if response.is_error:
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = None
            if not isinstance(detail, str):
                detail = response.reason_phrase or f"HTTP {response.status_code}"
            logger.warning(f"{method} {path} -> {response.status_code}: {detail}")
            raise HostelApiError(detail, response.status_code)
        return response.json()

    # Session

    def login(self, username: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/login", json={"username": username, "password": password})
        self.token = data["access_token"]
        return data

    # Reads

    def fetch_rooms(self, hostel_name: Optional[str] = None, floor: Optional[int] = None) -> List[Room]:
        data = self._request("GET", "/api/hostel/rooms", params={"hostelName": hostel_name, "floor": floor})
        return [Room.model_validate(item) for item in data]

    def fetch_students(self) -> List[Student]:
        return [Student.model_validate(item) for item in self._request("GET", "/api/students")]

    def fetch_unassigned_students(self, gender: Optional[str] = None) -> List[Student]:
        data = self._request("GET", "/api/student/filtered-list", params={"gender": gender})
        return [Student.model_validate(item) for item in data]

    def fetch_allocations(self, hostel_name: Optional[str] = None, active_only: bool = False) -> List[Dict[str, Any]]:
        params = {"hostelName": hostel_name, "activeOnly": "true" if active_only else None}
        return self._request("GET", "/api/hostel/allocations", params=params)

    def fetch_room_stats(self, hostel_name: Optional[str] = None) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/stats/rooms", params={"hostelName": hostel_name})

    # Mutations

    def assign_student(self, bed_id: int, student_id: int) -> Dict[str, Any]:
        return self._request("POST", "/api/hostel/assign", params={"bedId": bed_id, "studentId": student_id})

    def remove_student(self, bed_id: int) -> Dict[str, Any]:
        return self._request("POST", "/api/hostel/remove-student", params={"bedId": bed_id})

    def add_bed(self, room_id: int) -> Dict[str, Any]:
        return self._request("POST", "/api/hostel/add-bed", params={"roomId": room_id})

    def remove_bed(self, bed_id: int) -> Dict[str, Any]:
        return self._request("POST", "/api/hostel/remove-bed", params={"bedId": bed_id})

    def update_room_type(self, room_id: int, seating_type: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/hostel/rooms/{room_id}", json={"seating_type": seating_type})
