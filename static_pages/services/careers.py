from __future__ import annotations

import logging
from typing import Any

import httpx

from static_pages.config import Settings
from static_pages.schemas.content import JobDepartment, JobPosting
from static_pages.services.cache import TimedCache


logger = logging.getLogger(__name__)

JOBS_CACHE_KEY = "job-departments"
DEFAULT_DEPARTMENT = "Other"


class JobBoardError(RuntimeError):
    """Raised when the job board response has an unexpected shape."""
    pass


class CareersService:
    """Open positions from the job board, grouped by department."""

    def __init__(self, settings: Settings, cache: TimedCache):
        self.settings = settings
        self.cache = cache

    def get_job_departments(self) -> tuple[JobDepartment, ...]:
        return self.cache.get(
            JOBS_CACHE_KEY,
            self.settings.content_cache_ttl_seconds,
            self._fetch_job_departments,
        )

    # Internal HTTP helpers -------------------------------------------

    def _client(self) -> httpx.Client:
        headers = {"Accept": "application/json"}
        return httpx.Client(headers=headers, timeout=self.settings.http_timeout_seconds, follow_redirects=True)

    def _fetch_job_departments(self) -> tuple[JobDepartment, ...]:
        with self._client() as client:
            response = client.get(self.settings.job_board_url)
            response.raise_for_status()
            try:
                payload = response.json()
            except ValueError as e:
                raise JobBoardError(f"Job board returned invalid JSON: {e}") from e

        jobs = parse_job_postings(payload)
        grouped = group_jobs_by_department(jobs)
        logger.info("Fetched %d jobs in %d departments", len(jobs), len(grouped))
        return tuple(JobDepartment(name=name, jobs=tuple(items)) for name, items in grouped.items())


def parse_job_postings(payload: Any) -> list[JobPosting]:
    """Parse a job board listing (``{"jobs": [...]}``) into postings."""
    if not isinstance(payload, dict) or not isinstance(payload.get("jobs"), list):
        raise JobBoardError("Job board response has no 'jobs' list")

    postings: list[JobPosting] = []
    for item in payload["jobs"]:
        if not isinstance(item, dict):
            logger.warning("Skipping malformed job entry: %r", item)
            continue
        location = item.get("location") or {}
        postings.append(
            JobPosting(
                id=item.get("id"),
                title=item.get("title") or "",
                department=_department_name(item),
                location=location.get("name") if isinstance(location, dict) else None,
                absolute_url=item.get("absolute_url"),
                updated_at=item.get("updated_at"),
            )
        )
    return postings


def group_jobs_by_department(jobs: list[JobPosting]) -> dict[str, list[JobPosting]]:
    """Group postings by department, keeping first-seen department order."""
    grouped: dict[str, list[JobPosting]] = {}
    for job in jobs:
        grouped.setdefault(job.department, []).append(job)
    return grouped


def _department_name(item: dict[str, Any]) -> str:
    # Only the first department counts, as on the job board itself
    departments = item.get("departments") or []
    if departments and isinstance(departments[0], dict) and departments[0].get("name"):
        return departments[0]["name"]
    return DEFAULT_DEPARTMENT
