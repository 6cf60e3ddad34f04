"""Splitwise REST API client"""
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from ..core.config import settings
from ..core.errors import SplitwiseAPIError
from ..models.bill_models import Member, ValidationResult


class SplitwiseClient:
    def __init__(
        self,
        access_token: str,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.splitwise_api_base_url).rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        })

    def _request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(method, url, timeout=settings.splitwise_timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Splitwise request {method} {endpoint} failed: {e}")
            raise SplitwiseAPIError(f"Splitwise request failed: {e}", status=502) from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            message = data.get("message") or data.get("error") or f"HTTP {response.status_code}"
            logger.error(f"Splitwise {method} {endpoint} returned {response.status_code}: {message}")
            raise SplitwiseAPIError(message, status=response.status_code, details=data)

        return data

    def get_current_user(self) -> Dict[str, Any]:
        return self._request("GET", "/get_current_user").get("user", {})

    def get_groups(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/get_groups").get("groups", [])

    def get_group(self, group_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/get_group/{group_id}").get("group", {})

    def get_group_members(self, group_id: str) -> List[Member]:
        members = self.get_group(group_id).get("members", [])
        return [
            Member(
                id=str(member["id"]),
                first_name=member.get("first_name") or "",
                last_name=member.get("last_name"),
                email=member.get("email"),
            )
            for member in members
        ]

    def create_expense(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Submit a create_expense payload

        Splitwise answers 200 with a non-empty "errors" object when it rejects
        the expense; that is surfaced as a 400.
        """
        result = self._request("POST", "/create_expense", json=payload)
        errors = result.get("errors")
        if errors:
            logger.error(f"Splitwise rejected expense: {errors}")
            raise SplitwiseAPIError("Splitwise rejected the expense", status=400, details=errors)

        logger.info(f"Created Splitwise expense: {payload.get('description')} ({payload.get('cost')})")
        return result


def validate_expense_data(payload: Dict[str, Any]) -> ValidationResult:
    errors = []

    try:
        cost = float(payload.get("cost") or 0)
    except (TypeError, ValueError):
        cost = 0.0
    if cost <= 0:
        errors.append("Expense cost must be greater than 0")

    if not str(payload.get("description") or "").strip():
        errors.append("Expense description is required")

    if payload.get("group_id") is None:
        errors.append("Group ID is required")

    return ValidationResult.from_errors(errors)
