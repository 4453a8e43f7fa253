"""Client for the external job scheduler.

The scheduler stores jobs and computes upcoming run times; this module only
hands it validated expressions. Failures of any kind come back as opaque
text in a SchedulerResult so the caller can show them to the user.
"""

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from core.config import get_config
from cron.validation import ValidationResult, validate_command, validate_expression

logger = logging.getLogger(__name__)


def _job_path(job_id: str) -> str:
    return f"/jobs/{quote(str(job_id), safe='')}"


@dataclass
class SchedulerResult:
    ok: bool
    data: Any = None
    error: str = ""


class SchedulerClient:
    """Async HTTP client for the job scheduler service."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        blocked_commands: list[str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        config = get_config()
        self.base_url = (base_url or config.scheduler.base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else config.scheduler.timeout
        self.next_runs_count = config.scheduler.next_runs_count
        self.blocked_commands = (
            blocked_commands if blocked_commands is not None else config.safety.blocked_commands
        )
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=transport
        )

    async def __aenter__(self) -> "SchedulerClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def submit_job(
        self, expression: str, command: str, name: str | None = None
    ) -> SchedulerResult:
        """Validate a job locally and send it to the scheduler.

        Returns:
            The stored job record on success.
        """
        check = self._check_job(expression, command)
        if not check.is_valid:
            return SchedulerResult(ok=False, error=check.message)

        payload = {"name": name, "schedule": expression, "command": command}
        return await self._request("POST", "/jobs", json=payload)

    async def list_jobs(self) -> SchedulerResult:
        """Fetch every job the scheduler knows about."""
        return await self._request("GET", "/jobs")

    async def update_job(
        self, job_id: str, expression: str, command: str, name: str | None = None
    ) -> SchedulerResult:
        """Validate a changed job locally and replace the stored one.

        Applies the same checks as submit_job, so a job can never be edited
        into a state it could not have been created in.
        """
        check = self._check_job(expression, command)
        if not check.is_valid:
            return SchedulerResult(ok=False, error=check.message)

        payload = {"name": name, "schedule": expression, "command": command}
        return await self._request("PUT", _job_path(job_id), json=payload)

    async def toggle_job(self, job_id: str, is_active: bool) -> SchedulerResult:
        return await self._request("PATCH", _job_path(job_id), json={"is_active": is_active})

    async def delete_job(self, job_id: str) -> SchedulerResult:
        return await self._request("DELETE", _job_path(job_id))

    async def job_history(self, job_id: str) -> SchedulerResult:
        """Fetch past runs of a job, newest first as the scheduler orders them."""
        return await self._request("GET", f"{_job_path(job_id)}/history")

    async def next_runs(self, expression: str, count: int | None = None) -> SchedulerResult:
        """Ask the scheduler for the next run timestamps of an expression."""
        check = validate_expression(expression)
        if not check.is_valid:
            return SchedulerResult(ok=False, error=check.message)

        params = {"schedule": expression, "count": count or self.next_runs_count}
        result = await self._request("GET", "/next-runs", params=params)
        if result.ok and isinstance(result.data, dict):
            result.data = result.data.get("runs", [])
        return result

    def _check_job(self, expression: str, command: str) -> ValidationResult:
        check = validate_expression(expression)
        if not check.is_valid:
            return check
        return validate_command(command, self.blocked_commands)

    async def _request(self, method: str, path: str, **kwargs: Any) -> SchedulerResult:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.ConnectError:
            logger.warning("Scheduler not reachable at %s", self.base_url)
            return SchedulerResult(ok=False, error=f"Scheduler is not reachable at {self.base_url}")
        except httpx.HTTPError as e:
            logger.warning("Scheduler request %s %s failed: %s", method, path, e)
            return SchedulerResult(ok=False, error=f"Scheduler request failed: {e}")

        if resp.status_code >= 400:
            detail = resp.text.strip() or f"HTTP {resp.status_code}"
            logger.info("Scheduler returned %d for %s %s", resp.status_code, method, path)
            return SchedulerResult(ok=False, error=detail)

        try:
            return SchedulerResult(ok=True, data=resp.json())
        except ValueError:
            return SchedulerResult(ok=True, data=resp.text)
