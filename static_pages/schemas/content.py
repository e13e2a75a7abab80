from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FeedArticle(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    link: str | None = None
    author: str | None = None
    published: str | None = None
    content_html: str = ""


class JobPosting(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None = None
    title: str
    department: str
    location: str | None = None
    absolute_url: str | None = None
    updated_at: str | None = None


class JobDepartment(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    jobs: tuple[JobPosting, ...] = ()


class StaticPage(BaseModel):
    slug: str
    title: str
    layout: str = "application"


class CurrentsPage(BaseModel):
    available: bool
    article: FeedArticle | None = None


class CareersPage(BaseModel):
    available: bool
    total_jobs: int = 0
    departments: list[JobDepartment] = Field(default_factory=list)
