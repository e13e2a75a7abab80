"""Tests for the job board service."""

from unittest.mock import patch

import httpx
import pytest

from static_pages.config import Settings
from static_pages.schemas.content import JobPosting
from static_pages.services.cache import RefreshError, TimedCache
from static_pages.services.careers import (
    DEFAULT_DEPARTMENT,
    JOBS_CACHE_KEY,
    CareersService,
    JobBoardError,
    group_jobs_by_department,
    parse_job_postings,
)


JOB_BOARD = {
    "jobs": [
        {
            "id": 101,
            "title": "Backend Engineer",
            "absolute_url": "https://boards.example.com/jobs/101",
            "updated_at": "2022-10-01T12:00:00-04:00",
            "location": {"name": "Palo Alto"},
            "departments": [{"id": 1, "name": "Engineering"}, {"id": 9, "name": "Platform"}],
        },
        {
            "id": 102,
            "title": "Product Designer",
            "location": {"name": "Remote"},
            "departments": [{"id": 2, "name": "Design"}],
        },
        {
            "id": 103,
            "title": "Protocol Engineer",
            "departments": [{"id": 1, "name": "Engineering"}],
        },
        {
            "id": 104,
            "title": "Office Manager",
            "departments": [],
        },
    ]
}


def _job(title: str, department: str) -> JobPosting:
    return JobPosting(title=title, department=department)


class TestParseJobPostings:
    def test_parses_fields(self):
        jobs = parse_job_postings(JOB_BOARD)
        assert len(jobs) == 4
        assert jobs[0].id == 101
        assert jobs[0].title == "Backend Engineer"
        assert jobs[0].location == "Palo Alto"
        assert jobs[0].absolute_url == "https://boards.example.com/jobs/101"

    def test_uses_first_department_only(self):
        jobs = parse_job_postings(JOB_BOARD)
        assert jobs[0].department == "Engineering"

    def test_missing_department_falls_back(self):
        jobs = parse_job_postings(JOB_BOARD)
        assert jobs[3].department == DEFAULT_DEPARTMENT

    def test_skips_malformed_entries(self):
        jobs = parse_job_postings({"jobs": ["not-a-job", {"title": "Real"}]})
        assert [job.title for job in jobs] == ["Real"]

    def test_rejects_payload_without_jobs(self):
        with pytest.raises(JobBoardError):
            parse_job_postings({"meta": {}})
        with pytest.raises(JobBoardError):
            parse_job_postings([])


class TestGroupJobsByDepartment:
    def test_groups_in_first_seen_order(self):
        jobs = [
            _job("a", "Engineering"),
            _job("b", "Design"),
            _job("c", "Engineering"),
        ]
        grouped = group_jobs_by_department(jobs)
        assert list(grouped) == ["Engineering", "Design"]
        assert [job.title for job in grouped["Engineering"]] == ["a", "c"]

    def test_empty_list(self):
        assert group_jobs_by_department([]) == {}


class TestCareersService:
    @pytest.fixture
    def settings(self) -> Settings:
        return Settings(job_board_url="https://jobs.example.com/v1/boards/acme/jobs?content=true")

    def test_fetches_and_groups(self, settings):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=JOB_BOARD)

        service = CareersService(settings, TimedCache())
        with patch.object(
            CareersService, "_client", side_effect=lambda: httpx.Client(transport=httpx.MockTransport(handler))
        ):
            departments = service.get_job_departments()
            service.get_job_departments()

        assert len(calls) == 1
        assert [d.name for d in departments] == ["Engineering", "Design", DEFAULT_DEPARTMENT]
        assert [job.id for job in departments[0].jobs] == [101, 103]
        assert service.cache.peek(JOBS_CACHE_KEY).value == departments

    def test_invalid_json_becomes_refresh_error(self, settings):
        service = CareersService(settings, TimedCache())
        transport = httpx.MockTransport(lambda r: httpx.Response(200, text="<html>maintenance</html>"))
        with patch.object(CareersService, "_client", side_effect=lambda: httpx.Client(transport=transport)):
            with pytest.raises(RefreshError) as exc_info:
                service.get_job_departments()

        assert isinstance(exc_info.value.__cause__, JobBoardError)
