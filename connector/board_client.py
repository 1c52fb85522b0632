"""Front desk board API client.

This module provides an HTTP client for the remote appointment store. The
store exposes a CRUD resource keyed by doctor and period, and wraps every
response in a ``{"success": ..., "data"|"error": ...}`` envelope. The client
manages session handling with optional transport retries, bounded waits on
every call, and a structured error taxonomy so callers can tell timeouts,
unreachable servers and protocol failures apart.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

__all__ = [
    "BoardClientError",
    "RemoteUnavailable",
    "RemoteTimeout",
    "RemoteProtocolError",
    "BoardAPIClient",
]


# Configure module-level logging. The hosting application decides handlers and
# levels.
logger = logging.getLogger(__name__)


DEFAULT_BASE_URL = os.getenv("FRONTDESK_API_BASE_URL", "http://localhost:3000/api")
DEFAULT_TIMEOUT_SECONDS = float(os.getenv("FRONTDESK_API_TIMEOUT", "5"))
DEFAULT_PROBE_TIMEOUT_SECONDS = float(os.getenv("FRONTDESK_API_PROBE_TIMEOUT", "3"))
DEFAULT_MAX_RETRIES = int(os.getenv("FRONTDESK_API_MAX_RETRIES", "0"))
DEFAULT_BACKOFF_FACTOR = float(os.getenv("FRONTDESK_API_BACKOFF", "0.5"))
DEFAULT_PROBE_DOCTOR = "umar"

Deadline = Optional[float]


class BoardClientError(RuntimeError):
    """Base exception for board API client errors."""


class RemoteUnavailable(BoardClientError):
    """Raised when the board API cannot be reached."""


class RemoteTimeout(BoardClientError):
    """Raised when the board API does not answer before the deadline."""


class RemoteProtocolError(BoardClientError):
    """Raised when the board API answers with an error or a malformed body."""


class BoardAPIClient:
    """Client for the remote appointments and patient-status resources."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url must be provided")
        if timeout <= 0 or probe_timeout <= 0:
            raise ValueError("timeouts must be positive")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.probe_timeout = probe_timeout
        self._session = session or self._build_session(
            max_retries=max_retries, backoff_factor=backoff_factor
        )

    def _build_session(self, *, max_retries: int, backoff_factor: float) -> requests.Session:
        session = requests.Session()
        retry_strategy = Retry(
            total=max_retries,
            read=max_retries,
            connect=max_retries,
            status=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=("GET", "POST", "PUT", "DELETE"),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_payload: Optional[Dict[str, Any]] = None,
        timeout: Deadline = None,
    ) -> Any:
        """Issue a request and return the ``data`` member of the envelope."""

        if not path:
            raise ValueError("path must be provided")

        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"Accept": "application/json"}
        if json_payload is not None:
            headers["Content-Type"] = "application/json"

        try:
            response = self._session.request(
                method=method.upper(),
                url=url,
                params=params,
                json=json_payload,
                headers=headers,
                timeout=timeout or self.timeout,
            )
        except requests.Timeout as exc:
            logger.warning("Board API %s %s timed out: %s", method.upper(), path, exc)
            raise RemoteTimeout(f"Board API did not answer {method.upper()} {path} in time") from exc
        except requests.RequestException as exc:
            logger.warning("Request to board API failed: %s", exc)
            raise RemoteUnavailable("Failed to execute request to board API") from exc

        if not response.ok:
            self._log_error_response(method.upper(), path, response)
            raise RemoteProtocolError(
                f"Board API responded with unexpected status {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Invalid JSON received from board API: %s", exc)
            raise RemoteProtocolError("Board API response was not valid JSON") from exc

        if not isinstance(payload, dict):
            raise RemoteProtocolError("Board API response was not an envelope object")
        if not payload.get("success"):
            message = payload.get("error") or "Board API reported failure"
            logger.error("Board API error envelope for %s %s: %s", method.upper(), path, message)
            raise RemoteProtocolError(str(message))
        return payload.get("data")

    @staticmethod
    def _log_error_response(method: str, path: str, response: Response) -> None:
        body: Any = response.text[:2048]
        if "json" in response.headers.get("Content-Type", ""):
            try:
                body = response.json()
            except ValueError:
                logger.debug("Board API %s %s sent malformed JSON error body", method, path)
        logger.error("Board API %s %s answered %s: %s", method, path, response.status_code, body)

    @staticmethod
    def _expect_list(data: Any, label: str) -> List[Dict[str, Any]]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise RemoteProtocolError(f"Expected a list of {label} from board API")
        return [item for item in data if isinstance(item, dict)]

    @staticmethod
    def _expect_record(data: Any, label: str) -> Dict[str, Any]:
        if not isinstance(data, dict) or not data:
            raise RemoteProtocolError(f"Board API returned no {label} record")
        return data

    def probe(self, *, timeout: Deadline = None) -> bool:
        """Lightweight read used only to decide whether the API is reachable."""

        self._request(
            "GET",
            "appointments",
            params={"type": "today", "doctor": DEFAULT_PROBE_DOCTOR},
            timeout=timeout or self.probe_timeout,
        )
        return True

    def list_appointments(
        self, doctor: str, period: str, *, timeout: Deadline = None
    ) -> List[Dict[str, Any]]:
        data = self._request(
            "GET",
            "appointments",
            params={"type": period, "doctor": doctor},
            timeout=timeout,
        )
        return self._expect_list(data, "appointments")

    def create_appointment(
        self,
        doctor: str,
        patient_name: str,
        appointment_no: int,
        *,
        period: str,
        frozen: bool = False,
        timeout: Deadline = None,
    ) -> Dict[str, Any]:
        payload = {
            "doctor": doctor,
            "patientName": patient_name,
            "appointmentNo": appointment_no,
            "frozen": frozen,
            "type": period,
        }
        data = self._request("POST", "appointments", json_payload=payload, timeout=timeout)
        return self._expect_record(data, "appointment")

    def update_appointment(
        self, appointment_id: str, patient_name: str, *, period: str, timeout: Deadline = None
    ) -> Dict[str, Any]:
        if not appointment_id:
            raise ValueError("appointment_id must be provided")
        payload = {"id": appointment_id, "patientName": patient_name, "type": period}
        data = self._request("PUT", "appointments", json_payload=payload, timeout=timeout)
        return self._expect_record(data, "appointment")

    def delete_appointment(
        self, appointment_id: str, *, period: str, timeout: Deadline = None
    ) -> None:
        if not appointment_id:
            raise ValueError("appointment_id must be provided")
        self._request(
            "DELETE",
            "appointments",
            params={"id": appointment_id, "type": period},
            timeout=timeout,
        )

    def list_patient_status(
        self, doctor: str, period: str, *, timeout: Deadline = None
    ) -> List[Dict[str, Any]]:
        data = self._request(
            "GET",
            "patient-status",
            params={"type": period, "doctor": doctor},
            timeout=timeout,
        )
        return self._expect_list(data, "patient status rows")

    def update_patient_status(
        self,
        doctor: str,
        patient_name: str,
        is_available: bool,
        *,
        period: str,
        timeout: Deadline = None,
    ) -> Dict[str, Any]:
        payload = {
            "doctor": doctor,
            "patientName": patient_name,
            "isAvailable": is_available,
            "type": period,
        }
        data = self._request("POST", "patient-status", json_payload=payload, timeout=timeout)
        return data if isinstance(data, dict) else {}
