"""Analysis pipeline: resolve, cache check, fan-out fetch, persona, persist.

Stages run strictly in that order for a single request. Only the two
platform fetches overlap. Partial failures are recorded as StageOutcome
values and logged once at the end of the request; only an empty fetch
(NoDataError) or a request without URLs (InvalidRequestError) escapes.

There is no per-handle lock and no deadline here. Two requests for the same
handle may both miss the cache and both write; the store's upsert is the
only arbiter. Fetchers and the persona generator enforce their own timeouts.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol

from creatorlens.errors import InvalidRequestError, NoDataError
from creatorlens.schemas.analysis import (
    AnalysisResult,
    AnalyzeRequest,
    InsightNote,
    InstagramProfile,
    Persona,
    YoutubeProfile,
)
from creatorlens.services.handles import UNKNOWN_HANDLE, resolve_handle
from creatorlens.services.normalize import has_platform_data, normalize_record

logger = logging.getLogger(__name__)


class PlatformFetcher(Protocol):
    platform: str

    async def fetch(self, url: str): ...


class PersonaGenerator(Protocol):
    async def generate(
        self, youtube: Optional[YoutubeProfile], instagram: Optional[InstagramProfile]
    ) -> Persona: ...


class CreatorStore(Protocol):
    async def get(self, handle: str) -> Optional[dict]: ...

    async def upsert(self, handle: str, identity: dict, youtube=None, instagram=None,
                     persona=None, insight=None) -> int: ...


@dataclass
class FetchOutcome:
    """Result of one platform fetch task.

    status is "ok" (profile set), "missing" (fetcher returned None),
    "failed" (fetcher raised) or "skipped" (no URL supplied).
    """

    platform: str
    status: str
    profile: Optional[object] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@dataclass
class StageOutcome:
    stage: str
    ok: bool
    detail: str = ""
    error: Optional[BaseException] = None


@dataclass
class AnalysisRun:
    handle: Optional[str]
    outcomes: list[StageOutcome] = field(default_factory=list)

    def record(self, stage: str, ok: bool, detail: str = "", error: Optional[BaseException] = None):
        self.outcomes.append(StageOutcome(stage, ok, detail, error))


def build_identity(
    handle: str,
    youtube: Optional[YoutubeProfile],
    instagram: Optional[InstagramProfile],
) -> dict:
    """Display name and avatar, preferring YouTube then Instagram."""
    name = (youtube.title if youtube else "") or (instagram.full_name if instagram else "") or handle
    avatar = (youtube.thumbnail if youtube else None) or (instagram.profile_pic_url if instagram else None)
    return {"name": name, "avatar_url": avatar}


def build_insight(persona: Optional[Persona]) -> dict:
    note = InsightNote(
        date=datetime.now(timezone.utc).isoformat(),
        summary=(persona.summary if persona else "") or "No summary",
        engagement_score=(persona.engagement.rate if persona else "") or "N/A",
    )
    return note.model_dump()


class CreatorAnalysisService:
    def __init__(
        self,
        store: CreatorStore,
        youtube: PlatformFetcher,
        instagram: PlatformFetcher,
        persona: PersonaGenerator,
    ):
        self.store = store
        self.youtube = youtube
        self.instagram = instagram
        self.persona = persona

    async def analyze(self, request: AnalyzeRequest) -> AnalysisResult:
        if not request.youtube_url and not request.instagram_url:
            raise InvalidRequestError("Provide at least one profile URL")

        run = AnalysisRun(handle=resolve_handle(request.youtube_url, request.instagram_url))
        try:
            return await self._run(run, request)
        finally:
            self._log_outcomes(run)

    async def _run(self, run: AnalysisRun, request: AnalyzeRequest) -> AnalysisResult:
        handle = run.handle
        cacheable = handle != UNKNOWN_HANDLE
        if not cacheable:
            run.record("resolve", False, "handle unresolved, caching disabled")

        if cacheable and not request.force_refresh:
            cached = await self._check_cache(run, handle)
            if cached is not None:
                return cached

        yt_outcome, ig_outcome = await self._fetch_all(request)
        for outcome in (yt_outcome, ig_outcome):
            if outcome.status != "skipped":
                run.record(f"fetch:{outcome.platform}", outcome.ok, outcome.status, outcome.error)

        youtube = yt_outcome.profile if yt_outcome.ok else None
        instagram = ig_outcome.profile if ig_outcome.ok else None
        if youtube is None and instagram is None:
            raise NoDataError("No data found for the supplied profiles")

        persona = await self._generate_persona(run, youtube, instagram)

        if cacheable:
            await self._persist(run, handle, youtube, instagram, persona)

        return AnalysisResult(youtube=youtube, instagram=instagram, persona=persona)

    async def _check_cache(self, run: AnalysisRun, handle: str) -> Optional[AnalysisResult]:
        try:
            record = await self.store.get(handle)
        except Exception as e:
            run.record("cache", False, "read failed, treating as miss", e)
            return None

        if not has_platform_data(record):
            run.record("cache", True, "miss")
            return None

        run.record("cache", True, "hit")
        return normalize_record(record)

    async def _fetch_all(self, request: AnalyzeRequest) -> tuple[FetchOutcome, FetchOutcome]:
        # Each task captures its own failure, so the group never cancels a sibling
        async with asyncio.TaskGroup() as group:
            yt_task = group.create_task(self._fetch_one(self.youtube, "youtube", request.youtube_url))
            ig_task = group.create_task(self._fetch_one(self.instagram, "instagram", request.instagram_url))
        return yt_task.result(), ig_task.result()

    async def _fetch_one(self, fetcher: PlatformFetcher, platform: str, url: Optional[str]) -> FetchOutcome:
        if not url:
            return FetchOutcome(platform, "skipped")
        try:
            profile = await fetcher.fetch(url)
        except Exception as e:
            return FetchOutcome(platform, "failed", error=e)
        if profile is None:
            return FetchOutcome(platform, "missing")
        return FetchOutcome(platform, "ok", profile=profile)

    async def _generate_persona(
        self,
        run: AnalysisRun,
        youtube: Optional[YoutubeProfile],
        instagram: Optional[InstagramProfile],
    ) -> Optional[Persona]:
        try:
            persona = await self.persona.generate(youtube, instagram)
        except Exception as e:
            run.record("persona", False, "generator raised", e)
            return None
        run.record("persona", True)
        return persona

    async def _persist(
        self,
        run: AnalysisRun,
        handle: str,
        youtube: Optional[YoutubeProfile],
        instagram: Optional[InstagramProfile],
        persona: Optional[Persona],
    ) -> None:
        try:
            creator_id = await self.store.upsert(
                handle,
                build_identity(handle, youtube, instagram),
                youtube=youtube,
                instagram=instagram,
                persona=persona,
                insight=build_insight(persona),
            )
        except Exception as e:
            run.record("persist", False, "save failed", e)
            return
        run.record("persist", True, f"creator_id={creator_id}")

    def _log_outcomes(self, run: AnalysisRun) -> None:
        for outcome in run.outcomes:
            if outcome.ok:
                logger.info("analysis handle=%s stage=%s ok detail=%s", run.handle, outcome.stage, outcome.detail)
            else:
                logger.warning(
                    "analysis handle=%s stage=%s failed detail=%s error=%r",
                    run.handle, outcome.stage, outcome.detail, outcome.error,
                )
