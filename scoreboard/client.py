"""
HTTP client for the scoreboard API, for game engines and scripts.

    client = ScoreboardClient("https://scores.example.com")
    team = client.register_team("Night Owls", "Ana", "Ben", "owls@example.com", "+44 7700 900123")
    client.update_score(team["uid"], 250)
    board = client.get_scoreboard()
"""
import logging
from typing import Optional

import requests

from .errors import BackendUnavailableError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class ScoreboardClient:
    def __init__(self, base_url: str, timeout: float = 10.0, session: requests.Session = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise BackendUnavailableError(f"Scoreboard service unreachable: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.ok and payload.get("success"):
            return payload

        message = payload.get("error") or f"HTTP {response.status_code}"
        if response.status_code == 400:
            raise ValidationError(message)
        if response.status_code == 404:
            raise NotFoundError(message)
        raise BackendUnavailableError(message)

    def register_team(
        self,
        team_name: str,
        player1: str,
        player2: str,
        email: str,
        phone_number: str,
        otp: Optional[str] = None
    ) -> dict:
        """Register a team. Returns the registration record including its uid."""
        body = {
            "teamName": team_name,
            "player1": player1,
            "player2": player2,
            "email": email,
            "phoneNumber": phone_number,
        }
        if otp is not None:
            body["otp"] = otp
        return self._request("POST", "/api/register", json=body)["data"]

    def update_score(self, uid: str, score_increment: int) -> str:
        """Add a (possibly negative) increment. Returns the server's confirmation message."""
        payload = self._request(
            "POST", "/api/update-score",
            json={"uid": uid, "scoreIncrement": score_increment}
        )
        return payload["message"]

    def get_team(self, uid: str = None, team_name: str = None) -> dict:
        params = {}
        if uid:
            params["uid"] = uid
        elif team_name:
            params["teamName"] = team_name
        return self._request("GET", "/api/team", params=params)["data"]

    def get_scoreboard(self) -> dict:
        """Returns {'teams': [...], 'totalTeams': int, 'lastUpdated': str}."""
        return self._request("GET", "/api/scoreboard")["data"]
