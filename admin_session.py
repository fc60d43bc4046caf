from typing import Callable, List, Optional

from hostel_client import HostelApiClient
from logging_config import logger

# boys' and girls' hostels only see students of their gender
HOSTEL_GENDERS = {
    "varahmihir": "M",
    "maitreyi": "F",
}


class SessionExpiredError(Exception):
    """The session was logged out and can no longer be used"""


class AdminSession:
    """The logged-in administrator, passed explicitly to whoever needs it.

    `logout` is the one place the session is invalidated: it drops the token
    on the API client and calls every registered listener so cached data
    tied to the session can be thrown away.
    """

    def __init__(self, api: HostelApiClient, username: str, hostel_name: str,
                 role: str = "admin", token: Optional[str] = None):
        self.api = api
        self.username = username
        self.hostel_name = hostel_name
        self.role = role
        self.token = token
        self._listeners: List[Callable[[], None]] = []
        if token:
            api.token = token

    @classmethod
    def login(cls, api: HostelApiClient, username: str, password: str) -> "AdminSession":
        data = api.login(username, password)
        logger.info(f"{username} logged in for {data['hostel_name']}")
        return cls(api, data["username"], data["hostel_name"], data["role"], data["access_token"])

    @property
    def active(self) -> bool:
        return self.token is not None

    @property
    def student_gender(self) -> Optional[str]:
        return HOSTEL_GENDERS.get(self.hostel_name.strip().lower())

    def require_active(self):
        if not self.active:
            raise SessionExpiredError(f"Session of {self.username} has ended")

    def on_logout(self, callback: Callable[[], None]):
        self._listeners.append(callback)

    def logout(self):
        if not self.active:
            return
        self.token = None
        self.api.token = None
        for callback in self._listeners:
            callback()
        logger.info(f"{self.username} logged out")
