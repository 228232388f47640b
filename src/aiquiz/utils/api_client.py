"""HTTP client for the AI Quiz REST API.

Session tokens live in the local store. User routes get the user token as
`Authorization: Bearer <token>` and the admin token as
`X-Admin-Token: Bearer <token>`; admin routes get the admin token as
`Authorization`. Login stores the token, logout removes it.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from aiquiz.config import API_BASE_URL
from aiquiz.core.exceptions import ApiError
from aiquiz.utils.local_store import LocalStore

logger = logging.getLogger(__name__)


class ApiClient:
    """Sends JSON requests and turns non-2xx answers into ApiError."""

    def __init__(
        self,
        store: LocalStore,
        base_url: str = API_BASE_URL,
        http: Optional[Any] = None,
    ):
        """Initialize ApiClient.

        Args:
            store: Holds the session tokens.
            base_url: API root, e.g. "http://localhost:8000/api".
            http: Object with a requests-style `request` method; defaults to
                a `requests.Session`.
        """
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()

    def _headers(self, as_admin: bool = False) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        admin_token = self.store.get_admin_session_token()
        # Admin routes read the admin token from Authorization
        token = admin_token if as_admin else self.store.get_session_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if admin_token:
            headers["X-Admin-Token"] = f"Bearer {admin_token}"
        return headers

    def request(
        self,
        method: str,
        endpoint: str,
        body: Optional[Dict[str, Any]] = None,
        as_admin: bool = False,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            ApiError: On a connection failure or a non-2xx status, carrying the
                server's error message when there is one.
        """
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.http.request(method, url, json=body, headers=self._headers(as_admin))
        except requests.RequestException as e:
            logger.error("API request error: %s %s: %s", method, endpoint, e)
            raise ApiError(f"Could not reach the server: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code >= 400:
            message = "API request failed"
            if isinstance(data, dict):
                message = data.get("detail") or data.get("error") or message
            logger.warning("API %s %s failed with %d: %s", method, endpoint, response.status_code, message)
            raise ApiError(str(message), status_code=response.status_code)
        return data


class AdminAPI:
    """Admin endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    def login(self, pin: str) -> Dict[str, Any]:
        data = self.client.request("POST", "/admin/login", {"pin": pin})
        self.client.store.set_admin_session_token(data["sessionToken"])
        return data

    def verify(self) -> Dict[str, Any]:
        return self.client.request("GET", "/admin/verify", as_admin=True)

    def logout(self) -> None:
        try:
            self.client.request("POST", "/admin/logout", as_admin=True)
        finally:
            self.client.store.set_admin_session_token(None)

    def get_admins(self) -> List[Dict[str, Any]]:
        return self.client.request("GET", "/admin/admins", as_admin=True)

    def add_admin(self, username: str, pin: str, ai_limit: Optional[int] = None) -> Dict[str, Any]:
        return self.client.request(
            "POST",
            "/admin/admins",
            {"username": username, "pin": pin, "aiLimit": ai_limit},
            as_admin=True,
        )

    def update_admin(self, admin_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.request("PUT", f"/admin/admins/{admin_id}", updates, as_admin=True)

    def delete_admin(self, admin_id: int) -> Dict[str, Any]:
        return self.client.request("DELETE", f"/admin/admins/{admin_id}", as_admin=True)


class UserAPI:
    """User endpoints, self-service and admin managed."""

    def __init__(self, client: ApiClient):
        self.client = client

    def register(
        self, username: str, password: str, pin: str, email: Optional[str] = None
    ) -> Dict[str, Any]:
        data = self.client.request(
            "POST",
            "/users/register",
            {"username": username, "password": password, "pin": pin, "email": email},
        )
        self.client.store.set_session_token(data["sessionToken"])
        return data

    def login(self, username: str, password: str, pin: str) -> Dict[str, Any]:
        data = self.client.request(
            "POST", "/users/login", {"username": username, "password": password, "pin": pin}
        )
        self.client.store.set_session_token(data["sessionToken"])
        return data

    def verify(self) -> Dict[str, Any]:
        return self.client.request("GET", "/users/verify")

    def logout(self) -> None:
        try:
            self.client.request("POST", "/users/logout")
        finally:
            self.client.store.set_session_token(None)

    def get_daily_calls(self) -> Dict[str, Any]:
        return self.client.request("GET", "/users/daily-calls")

    def record_call(self) -> Dict[str, Any]:
        return self.client.request("POST", "/users/record-call")

    def get_users(self) -> List[Dict[str, Any]]:
        return self.client.request("GET", "/users")

    def create_user(
        self,
        username: str,
        password: str,
        pin: str,
        email: Optional[str] = None,
        unlimited_ai: bool = False,
        daily_ai_limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        return self.client.request(
            "POST",
            "/users",
            {
                "username": username,
                "password": password,
                "pin": pin,
                "email": email,
                "unlimitedAI": unlimited_ai,
                "dailyAILimit": daily_ai_limit,
            },
        )

    def update_user(self, user_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.request("PUT", f"/users/{user_id}", updates)

    def delete_user(self, user_id: int) -> Dict[str, Any]:
        return self.client.request("DELETE", f"/users/{user_id}")


def get_current_user(user_api: UserAPI) -> Optional[Dict[str, Any]]:
    """Return the logged-in user's profile, or None when not logged in.

    Failures are only logged: an unreachable server reads as "logged out".
    """
    if not user_api.client.store.get_session_token():
        return None
    try:
        return user_api.verify()["user"]
    except ApiError as e:
        logger.info("Not logged in: %s", e)
        return None


def get_current_admin(admin_api: AdminAPI) -> Optional[Dict[str, Any]]:
    if not admin_api.client.store.get_admin_session_token():
        return None
    try:
        return admin_api.verify()["admin"]
    except ApiError as e:
        logger.info("Admin not logged in: %s", e)
        return None
