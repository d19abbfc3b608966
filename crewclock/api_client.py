"""HTTP client for the crew's webhook endpoints."""

from __future__ import annotations

import datetime as dt
import json
import logging
from typing import Any, Optional, Type, TypeVar

import requests
from pydantic import ValidationError

from .config import WebhookUrls
from .models import Technician
from .schemas import (ActionResult, ClockResult, HistoryPayload, MileageResult,
                      MileageSubmission, StatusPayload, decode_technicians)

logger = logging.getLogger(__name__)

CONNECT_FAILURE_MESSAGE = "Failed to connect. Please try again."
ACCEPTED_BODY = "Accepted"
FALLBACK_TECHNICIANS = (Technician(name="Bri"), Technician(name="Nick"))

ResultT = TypeVar("ResultT", bound=ActionResult)


class ApiError(RuntimeError):
    """Error while talking to a webhook endpoint."""

    def __init__(self, message: str, *, response: Optional[requests.Response] = None) -> None:
        super().__init__(message)
        self.response = response

    @property
    def server_message(self) -> Optional[str]:
        """The ``error`` field of a JSON error body, if there is one."""
        if self.response is None:
            return None
        try:
            data = self.response.json()
        except ValueError:
            return None
        if isinstance(data, dict) and isinstance(data.get("error"), str):
            return data["error"]
        return None


class ApiClient:
    """Wraps the HTTP calls to the remote clock, mileage and history webhooks.

    Read calls never raise: they fall back to safe defaults. Write calls
    return an ``ActionResult`` subclass whose ``success`` flag tells the
    caller whether to keep or roll back its optimistic change.
    """

    def __init__(self, webhooks: WebhookUrls, timeout: Optional[float] = None) -> None:
        self.webhooks = webhooks
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        headers = kwargs.setdefault("headers", {})
        headers.setdefault("Content-Type", "application/json")
        try:
            response = requests.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise ApiError(str(exc)) from exc

        if response.status_code >= 400:
            raise ApiError(f"HTTP error {response.status_code}: {response.text}", response=response)
        return response

    def _get_json(self, url: str, params: Optional[dict[str, Any]] = None) -> Any:
        response = self._request("GET", url, params=params)
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(f"Invalid JSON from {url}", response=response) from exc

    def _post_action(self, url: str, payload: dict[str, Any], result_type: Type[ResultT]) -> ResultT:
        """POST a write action and interpret the response.

        ``"Accepted"``, an empty body or HTTP 200 always count as success.
        Any other 2xx body is parsed as JSON; a body that does not parse is
        still a success. Ids or hours found in a parsed body are kept.
        """
        try:
            response = self._request("POST", url, json=payload)
        except ApiError as exc:
            logger.warning("POST %s failed: %s", url, exc)
            return result_type(success=False, error=exc.server_message or CONNECT_FAILURE_MESSAGE)

        text = response.text.strip()
        if text in ("", ACCEPTED_BODY):
            return result_type(success=True)

        try:
            data = json.loads(text)
        except ValueError:
            return result_type(success=True)
        if not isinstance(data, dict):
            return result_type(success=True)

        try:
            result = result_type.model_validate(data)
        except ValidationError as exc:
            logger.warning("Ignoring malformed body from %s: %s", url, exc)
            return result_type(success=True)

        if response.status_code == 200 and not result.success:
            logger.debug("Treating HTTP 200 from %s as success despite body %r", url, data)
            result = result.model_copy(update={"success": True, "error": None})
        return result

    @staticmethod
    def _timestamp(value: dt.datetime) -> str:
        return value.astimezone(dt.timezone.utc).isoformat().replace("+00:00", "Z")

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------
    def fetch_technicians(self) -> list[Technician]:
        try:
            data = self._get_json(self.webhooks.technicians)
            technicians = decode_technicians(data)
        except (ApiError, ValueError) as exc:
            logger.warning("Failed to fetch technicians, using fallback roster: %s", exc)
            return list(FALLBACK_TECHNICIANS)
        return technicians

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------
    def clock_in(self, tech_name: str, timestamp: dt.datetime) -> ClockResult:
        return self._clock_action(tech_name, "clock_in", timestamp)

    def clock_out(self, tech_name: str, timestamp: dt.datetime) -> ClockResult:
        return self._clock_action(tech_name, "clock_out", timestamp)

    def _clock_action(self, tech_name: str, action: str, timestamp: dt.datetime) -> ClockResult:
        payload = {
            "tech_name": tech_name,
            "action": action,
            "timestamp": self._timestamp(timestamp),
        }
        return self._post_action(self.webhooks.timeclock, payload, ClockResult)

    def check_status(self, tech_name: str) -> StatusPayload:
        try:
            data = self._get_json(self.webhooks.status, params={"tech_name": tech_name})
            return StatusPayload.model_validate(data)
        except (ApiError, ValidationError) as exc:
            logger.warning("Failed to check status for %s: %s", tech_name, exc)
            return StatusPayload(clocked_in=False)

    # ------------------------------------------------------------------
    # Mileage
    # ------------------------------------------------------------------
    def submit_mileage(self, tech_name: str, submission: MileageSubmission) -> MileageResult:
        return self._post_action(self.webhooks.mileage, submission.to_payload(tech_name), MileageResult)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def fetch_history(self, tech_name: str, days: int = 14) -> HistoryPayload:
        params = {"tech_name": tech_name, "days": days}
        try:
            data = self._get_json(self.webhooks.history, params=params)
            return HistoryPayload.model_validate(data)
        except (ApiError, ValidationError) as exc:
            logger.warning("Failed to fetch history for %s: %s", tech_name, exc)
            return HistoryPayload.empty()

    def edit_entry(self, tech_name: str, shift_id: str, field: str, old_value: str,
                   new_value: str, reason: str) -> ActionResult:
        payload = {
            "tech_name": tech_name,
            "shift_id": shift_id,
            "field": field,
            "old_value": old_value,
            "new_value": new_value,
            "reason": reason,
        }
        return self._post_action(self.webhooks.edit_entry, payload, ActionResult)


__all__ = ["ApiClient", "ApiError", "CONNECT_FAILURE_MESSAGE", "FALLBACK_TECHNICIANS"]
