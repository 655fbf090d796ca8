"""
Pytest Configuration and Shared Fixtures for the clip ingest backend

- DNS 해석 검사는 기본으로 끈다 (테스트 중 실제 네트워크 호출 없음)
- 파이프라인/오케스트레이터용 가짜 수집 전략
- 자주 쓰는 FetchResult 생성 헬퍼
"""

import asyncio
from typing import Callable, Optional

import pytest

from app.core.config import settings
from app.services.clipper.base import BaseFetchStrategy
from app.services.clipper.schemas import FetchResult, PlatformTag


# ==============================================================================
# Settings
# ==============================================================================


@pytest.fixture(autouse=True)
def no_dns_resolution(monkeypatch: pytest.MonkeyPatch) -> None:
    """URL Guard의 DNS 재검사를 끈다. (필요한 테스트에서 다시 켬)"""
    monkeypatch.setattr(settings, "URL_GUARD_RESOLVE_DNS", False)


# ==============================================================================
# Fake Strategies
# ==============================================================================


class FakeStrategy(BaseFetchStrategy):
    """
    정해진 동작을 하는 테스트용 수집 전략

    Args:
        name: 전략 이름 (reader, render)
        result: 반환할 FetchResult 생성 함수 (url, platform) → FetchResult
        error: 던질 예외
        delay: 응답 전 대기 시간 (초)
    """

    def __init__(
        self,
        name: str,
        result: Optional[Callable[[str, PlatformTag], FetchResult]] = None,
        error: Optional[BaseException] = None,
        delay: float = 0.0,
    ):
        super().__init__()
        self.name = name
        self._result = result
        self._error = error
        self._delay = delay
        self.calls: list[tuple[str, PlatformTag]] = []

    async def fetch(self, url: str, platform: PlatformTag) -> FetchResult:
        self.calls.append((url, platform))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._result(url, platform)


def make_result(
    text: str = "본문 내용입니다. " * 10,
    final_url: Optional[str] = None,
    strategy: str = "reader",
    **extra,
) -> Callable[[str, PlatformTag], FetchResult]:
    """FakeStrategy용 결과 생성 함수를 만든다."""

    def build(url: str, platform: PlatformTag) -> FetchResult:
        return FetchResult(
            url=url,
            final_url=final_url or url,
            raw_text=text,
            strategy=strategy,
            fetched_with=platform,
            **extra,
        )

    return build
