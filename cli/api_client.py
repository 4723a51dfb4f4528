"""REST API client for kanatype server."""

import requests


class KanatypeAPIClient:
    """Client for communicating with the kanatype REST API."""

    def __init__(self, base_url: str = "http://localhost:8000"):
        self.base_url = base_url.rstrip('/')
        self.session = requests.Session()

    def _get(self, endpoint: str, params: dict = None) -> dict:
        """Make a GET request."""
        response = self.session.get(f"{self.base_url}{endpoint}", params=params)
        response.raise_for_status()
        return response.json()

    def _post(self, endpoint: str, data: dict = None) -> dict:
        """Make a POST request."""
        response = self.session.post(f"{self.base_url}{endpoint}", json=data or {})
        response.raise_for_status()
        return response.json()

    def health_check(self) -> dict:
        """Check if the server is running."""
        return self._get("/")

    def get_status(self) -> dict:
        """Get learner status and progress."""
        return self._get("/api/status")

    def get_next_sentence(self) -> dict:
        """Select and present the next sentence."""
        return self._get("/api/next")

    def type_text(self, text: str, elapsed_ms: int) -> dict:
        """Send a line of romaji typed over elapsed_ms."""
        return self._post("/api/type", {'text': text, 'elapsed_ms': elapsed_ms})

    def match(self, reading: str, index: int, text: str) -> dict:
        return self._post("/api/match", {'reading': reading, 'index': index, 'input': text})

    def get_hint(self) -> dict:
        """Reveal the spelling of the current unit."""
        return self._post("/api/hint")

    def complete(self) -> dict:
        """Commit the finished sentence."""
        return self._post("/api/complete")

    def abandon(self) -> dict:
        return self._post("/api/abandon")

    def get_mastery(self) -> dict:
        return self._get("/api/mastery")

    def get_review_due(self) -> dict:
        return self._get("/api/review-due")
