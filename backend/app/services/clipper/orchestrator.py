"""
Content Fetch Orchestrator

플랫폼에 맞는 수집 전략을 고르고, 실패하면 다른 전략으로 한 번만 fallback합니다.

전략 테이블:
- threads, instagram, twitter → render (JS 실행 필요)
- web, naver, youtube, 기타 → reader

알고리즘:
1. URL Guard 검증 (실패 시 ValidationError, 네트워크 호출 없음)
2. 입력 URL 기준 플랫폼으로 primary 전략 선택, 나머지 전략이 fallback (최대 2회 시도)
3. 각 시도는 시도별 타임아웃과 남은 전체 예산 중 작은 값으로 제한
   - 타임아웃/예외/빈 결과 → 다음 전략 1회 (반복 없음)
   - ValidationError → 즉시 중단 (fallback 없음)
4. 최종 URL로 플랫폼을 다시 판별하여 result.platform에 기록 (이 값이 정규화 기준)
5. 빈 결과라도 결과가 있으면 반환, 결과가 하나도 없을 때만 FetchError
"""

import asyncio
import time
from typing import Optional

from loguru import logger

from app.core.config import settings
from app.services.clipper.base import BaseFetchStrategy
from app.services.clipper.errors import FetchError, FetchTimeoutError, ValidationError
from app.services.clipper.platform import detect_platform
from app.services.clipper.reader import ReaderStrategy
from app.services.clipper.render import RenderStrategy
from app.services.clipper.schemas import FetchResult, PlatformTag
from app.services.clipper.url_guard import require_valid_url

MAX_ATTEMPTS = 2

# 플랫폼 → primary 전략 이름 (없으면 reader)
STRATEGY_TABLE: dict[PlatformTag, str] = {
    PlatformTag.THREADS: "render",
    PlatformTag.INSTAGRAM: "render",
    PlatformTag.TWITTER: "render",
    PlatformTag.WEB: "reader",
    PlatformTag.NAVER: "reader",
    PlatformTag.YOUTUBE: "reader",
}
DEFAULT_STRATEGY = "reader"


class ContentFetchOrchestrator:
    """
    수집 전략 선택 및 fallback 실행기

    Usage:
        orchestrator = ContentFetchOrchestrator()
        result = await orchestrator.fetch("https://bit.ly/x")
        result.platform  # 최종 URL 기준 플랫폼
    """

    def __init__(
        self,
        strategies: Optional[list[BaseFetchStrategy]] = None,
        attempt_timeout: Optional[float] = None,
        total_budget: Optional[float] = None,
    ):
        """
        Args:
            strategies: 등록 순서대로의 전략 목록 (기본: reader, render)
            attempt_timeout: 시도별 타임아웃 (초)
            total_budget: 모든 시도가 공유하는 시간 예산 (초)
        """
        if strategies is None:
            strategies = [ReaderStrategy(), RenderStrategy()]
        self.strategies: dict[str, BaseFetchStrategy] = {s.name: s for s in strategies}
        self.attempt_timeout = attempt_timeout or settings.FETCH_ATTEMPT_TIMEOUT_SECONDS
        self.total_budget = total_budget or settings.FETCH_TOTAL_BUDGET_SECONDS

    def plan(self, platform: PlatformTag) -> list[BaseFetchStrategy]:
        """
        primary 전략 + 나머지 전략(등록 순서)을 MAX_ATTEMPTS개까지 반환합니다.
        """
        primary_name = STRATEGY_TABLE.get(platform, DEFAULT_STRATEGY)
        primary = self.strategies.get(primary_name)

        ordered = [primary] if primary else []
        ordered += [s for name, s in self.strategies.items() if name != primary_name]
        return ordered[:MAX_ATTEMPTS]

    async def fetch(self, url: str, hint: Optional[str] = None) -> FetchResult:
        """
        URL 콘텐츠를 수집합니다.

        Args:
            url: 수집할 URL
            hint: 클라이언트가 지정한 플랫폼 (있으면 전략 선택과 최종 플랫폼 모두 힌트 우선)

        Returns:
            FetchResult (platform은 최종 URL 기준 값)

        Raises:
            ValidationError: URL 또는 리다이렉트 대상이 거부된 경우
            FetchError: 모든 시도가 결과 없이 실패한 경우
            FetchTimeoutError: 마지막 실패가 타임아웃인 경우
        """
        candidate = require_valid_url(url)
        url = candidate.raw

        platform = detect_platform(url, hint)
        plan = self.plan(platform)
        logger.info(
            f"수집 계획: {url} ({platform.value}) → "
            f"{' → '.join(s.name for s in plan)}"
        )

        deadline = time.monotonic() + self.total_budget
        thin_result: Optional[FetchResult] = None
        last_error: Optional[BaseException] = None
        timed_out = False

        for attempt, strategy in enumerate(plan, start=1):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning(f"전체 시간 예산 소진, 남은 시도 생략: {url}")
                timed_out = True
                break

            timeout = min(self.attempt_timeout, remaining)
            try:
                result = await asyncio.wait_for(strategy.fetch(url, platform), timeout=timeout)
            except ValidationError:
                raise
            except asyncio.TimeoutError as e:
                logger.warning(f"[{attempt}/{len(plan)}] {strategy.name} 타임아웃 ({timeout:.1f}s): {url}")
                last_error, timed_out = e, True
                continue
            except Exception as e:
                logger.warning(f"[{attempt}/{len(plan)}] {strategy.name} 실패: {url} - {e}")
                last_error, timed_out = e, False
                continue

            if result.is_empty:
                logger.warning(f"[{attempt}/{len(plan)}] {strategy.name} 빈 결과: {url}")
                thin_result = thin_result or result
                timed_out = False
                continue

            return self._finalize(result, hint)

        if thin_result is not None:
            logger.warning(f"본문이 비어 있는 결과 반환: {url}")
            return self._finalize(thin_result, hint)

        logger.error(f"모든 수집 전략 실패: {url}")
        if timed_out:
            raise FetchTimeoutError(url, self.attempt_timeout) from last_error
        raise FetchError(url, reason=f"수집 실패: {last_error}" if last_error else None) from last_error

    def _finalize(self, result: FetchResult, hint: Optional[str] = None) -> FetchResult:
        """최종 URL 기준으로 플랫폼을 다시 판별합니다. (힌트가 있으면 힌트 우선)"""
        final_platform = detect_platform(result.final_url or result.url, hint)
        if final_platform != result.fetched_with:
            logger.info(
                f"리다이렉트 후 플랫폼 변경: {result.fetched_with.value} → {final_platform.value} "
                f"({result.final_url})"
            )
        return result.model_copy(update={"platform": final_platform})
