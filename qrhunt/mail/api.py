import os
from urllib.parse import urljoin
from typing import Any, Mapping, Optional

import requests
from dotenv import load_dotenv


class MailClient:
    """Thin client for the HTTP mail relay used for winner notifications."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        from_address: Optional[str] = None,
        from_name: Optional[str] = None,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        load_dotenv()
        base_url = base_url or os.getenv("MAIL_API_BASE_URL")
        if not base_url:
            raise ValueError("Environment variable 'MAIL_API_BASE_URL' is not set")
        from_address = from_address or os.getenv("MAIL_FROM_ADDRESS")
        if not from_address:
            raise ValueError("Environment variable 'MAIL_FROM_ADDRESS' is not set")

        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or os.getenv("MAIL_API_KEY")
        self.from_address = from_address
        self.from_name = from_name or os.getenv(
            "MAIL_FROM_NAME", "QR Scavenger Hunt Admin"
        )
        self.session = session or requests.Session()
        self.timeout = timeout

    # -------- headers --------
    @property
    def headers(self) -> Mapping[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @property
    def sender(self) -> str:
        return f"{self.from_name} <{self.from_address}>"

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=self.headers,
            json=json,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    # -------- API callers --------
    def send(
        self,
        to: str,
        subject: str,
        text: Optional[str] = None,
        html: Optional[str] = None,
    ) -> Any:
        """Send one message through the relay.

        Raises
        ------
        ValueError
            If neither ``text`` nor ``html`` is given.
        requests.HTTPError
            If the relay rejects the message.
        """
        if not text and not html:
            raise ValueError("Either text or html body is required")

        payload: dict = {"from": self.sender, "to": to, "subject": subject}
        if text:
            payload["text"] = text
        if html:
            payload["html"] = html
        return self._request("POST", "/messages", json=payload)
