"""
Clip Pipeline

URL 하나를 클립 입력(ClipPayload)으로 만드는 전체 흐름입니다.

서버 수집 흐름 (acquire):
    URL Guard → 플랫폼 판별 → 전략 선택/fallback → 이미지 병합 → 정규화

클라이언트 캡처 흐름 (acquire_captured):
    URL Guard → 플랫폼 판별(힌트 우선) → (필요 시 HTML 본문 추출) → 이미지 병합 → 정규화

요약/미리보기 생성은 이 모듈의 책임이 아니며, ClipAssembler 구현체에 위임합니다.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from bs4 import BeautifulSoup
from loguru import logger

from app.services.clipper.images import ImageCollector
from app.services.clipper.normalizers import NormalizerRegistry
from app.services.clipper.orchestrator import ContentFetchOrchestrator
from app.services.clipper.platform import detect_platform
from app.services.clipper.reader import ReaderStrategy
from app.services.clipper.schemas import ClipPayload, FetchResult
from app.services.clipper.url_guard import require_valid_url

# 캡처된 텍스트가 이보다 짧으면 HTML에서 본문을 다시 추출
MIN_CAPTURED_TEXT_LENGTH = 50


@runtime_checkable
class ClipAssembler(Protocol):
    """클립 조립기 프로토콜 (인터페이스)"""

    async def assemble(self, payload: ClipPayload) -> Any:
        """수집/정규화된 결과로 클립을 만듭니다.

        clean_text가 비어 있거나 매우 짧아도 실패하지 않고
        URL만 담은 클립으로 대체해야 합니다.

        Args:
            payload: 파이프라인 출력

        Returns:
            구현체가 정의하는 클립 객체
        """
        ...


class ClipPipeline:
    """
    수집 + 이미지 + 정규화 파이프라인

    Usage:
        pipeline = ClipPipeline()
        payload = await pipeline.acquire("https://www.threads.net/@user/post/abc")
        payload.content.thread.comments
    """

    def __init__(
        self,
        orchestrator: Optional[ContentFetchOrchestrator] = None,
        image_collector: Optional[ImageCollector] = None,
        assembler: Optional[ClipAssembler] = None,
    ):
        self.orchestrator = orchestrator or ContentFetchOrchestrator()
        self.image_collector = image_collector or ImageCollector()
        self.assembler = assembler
        self._html_reader = ReaderStrategy()

    async def acquire(self, url: str, hint: Optional[str] = None) -> ClipPayload:
        """
        서버에서 URL을 수집하고 정리합니다.

        Raises:
            ValidationError: URL이 거부된 경우
            FetchError: 두 전략 모두 결과 없이 실패한 경우
        """
        result = await self.orchestrator.fetch(url, hint)
        return await self._complete(result)

    async def acquire_captured(
        self,
        url: str,
        html: Optional[str] = None,
        text: Optional[str] = None,
        images: Optional[list[str]] = None,
        hint: Optional[str] = None,
    ) -> ClipPayload:
        """
        클라이언트(브라우저 확장 등)가 이미 캡처한 페이지를 정리합니다.

        fetch 단계만 건너뛰고 URL Guard, 플랫폼 판별, 이미지 병합, 정규화는
        서버 수집 흐름과 동일하게 실행합니다.

        Args:
            url: 캡처한 페이지 URL
            html: 캡처한 HTML
            text: 캡처한 본문 텍스트
            images: 클라이언트가 관찰한 이미지 URL
            hint: 플랫폼 힌트 (패턴 판별보다 우선)

        Raises:
            ValidationError: URL이 거부된 경우
        """
        candidate = require_valid_url(url)
        platform = detect_platform(candidate.raw, hint)

        raw_text = text or ""
        if len(raw_text.strip()) < MIN_CAPTURED_TEXT_LENGTH and html:
            soup = BeautifulSoup(html, "html.parser")
            extracted = self._html_reader.extract_content(html, soup, candidate.raw)
            if len(extracted) > len(raw_text):
                logger.info(f"캡처 텍스트 부족, HTML에서 본문 추출: {len(raw_text)} → {len(extracted)} chars")
                raw_text = extracted

        result = FetchResult(
            url=candidate.raw,
            final_url=candidate.raw,
            raw_text=raw_text,
            html_content=html,
            images=images or [],
            strategy="capture",
            fetched_with=platform,
            platform=platform,
        )
        return await self._complete(result)

    async def _complete(self, result: FetchResult) -> ClipPayload:
        images = self.image_collector.collect(result)
        content = NormalizerRegistry.normalize(result.platform, result.raw_text)

        if content.is_empty:
            logger.warning(f"정규화 결과가 비어 있음, URL 전용 클립 대상: {result.final_url}")

        payload = ClipPayload(
            url=result.url,
            final_url=result.final_url,
            platform=result.platform,
            raw_text=result.raw_text,
            html_content=result.html_content,
            images=images,
            author=result.author,
            author_handle=result.author_handle,
            author_avatar=result.author_avatar,
            content=content,
        )
        logger.info(
            f"클립 입력 생성 완료: {payload.final_url} ({payload.platform.value}, "
            f"{len(content.clean_text):,} chars, {len(images)} images, {result.strategy})"
        )

        if self.assembler is not None:
            await self.assembler.assemble(payload)

        return payload
