"""Public informational pages.

Pages render the same content for every visitor, so each response is marked
publicly cacheable for an hour and can be served from a CDN.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Response

from static_pages.config import get_settings
from static_pages.dependencies import get_careers_service, get_feed_service
from static_pages.schemas.content import CareersPage, CurrentsPage, StaticPage
from static_pages.services.cache import RefreshError


logger = logging.getLogger(__name__)


def set_cache_headers(response: Response) -> None:
    settings = get_settings()
    response.headers["Cache-Control"] = f"public, max-age={settings.page_max_age_seconds}"


router = APIRouter(prefix="/api/pages", tags=["pages"], dependencies=[Depends(set_cache_headers)])


STATIC_PAGES: dict[str, StaticPage] = {
    "root": StaticPage(slug="root", title="Home"),
    "community": StaticPage(slug="community", title="Community", layout="it2"),
    "terms": StaticPage(slug="terms", title="Terms of Use"),
    "terms-testnet": StaticPage(slug="terms-testnet", title="Testnet Terms"),
    "privacy": StaticPage(slug="privacy", title="Privacy Policy"),
    "developers": StaticPage(slug="developers", title="Developers"),
}


@router.get("/currents", response_model=CurrentsPage)
async def currents():
    service = get_feed_service()
    try:
        article = await asyncio.to_thread(service.get_latest_article)
    except RefreshError as e:
        logger.error(f"Currents feed unavailable: {e}")
        return CurrentsPage(available=False)
    return CurrentsPage(available=True, article=article)


@router.get("/careers", response_model=CareersPage)
async def careers():
    service = get_careers_service()
    try:
        departments = await asyncio.to_thread(service.get_job_departments)
    except RefreshError as e:
        logger.error(f"Job board unavailable: {e}")
        return CareersPage(available=False)
    return CareersPage(
        available=True,
        total_jobs=sum(len(department.jobs) for department in departments),
        departments=list(departments),
    )


@router.get("/{slug}", response_model=StaticPage)
async def static_page(slug: str = Path(..., description="root|community|terms|terms-testnet|privacy|developers")):
    page = STATIC_PAGES.get(slug)
    if page is None:
        raise HTTPException(status_code=404, detail=f"Unknown page: {slug}")
    return page
