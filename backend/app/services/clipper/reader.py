"""
Reader Strategy

서버 측 HTTP 요청 + 본문 추출 전략입니다. (JS 실행 없음)

특징:
- httpx AsyncClient, 리다이렉트는 직접 따라가며 hop마다 URL Guard 재검증
- trafilatura로 markdown 본문 추출 (링크/이미지 포함), 부족하면 BeautifulSoup fallback
- 메타 태그 기반 작성자 추출
- 네이버 블로그: 본문이 담긴 iframe(#mainFrame)을 한 번 더 가져옴

Usage:
    strategy = ReaderStrategy()
    result = await strategy.fetch("https://example.com/article", PlatformTag.WEB)
"""

from typing import Optional
from urllib.parse import urljoin

import httpx
import trafilatura
from bs4 import BeautifulSoup
from loguru import logger

from app.core.config import settings
from app.services.clipper.base import BaseFetchStrategy, extract_meta
from app.services.clipper.errors import FetchError
from app.services.clipper.platform import detect_platform
from app.services.clipper.schemas import FetchResult, PlatformTag
from app.services.clipper.url_guard import guard_request


class ReaderStrategy(BaseFetchStrategy):
    """
    reader 추출 전략

    web, naver, youtube 및 기본 플랫폼의 primary 전략이며
    threads, instagram, twitter의 fallback 전략입니다.
    """

    name: str = "reader"

    # trafilatura 결과가 이보다 짧으면 BeautifulSoup fallback 시도
    MIN_EXTRACTED_LENGTH: int = 100
    # BeautifulSoup fallback 결과의 최소 길이
    MIN_FALLBACK_LENGTH: int = 200

    # 노이즈 요소 제거 선택자
    NOISE_SELECTORS: list[str] = [
        "script", "style", "noscript", "iframe",
        "nav", "header", "footer", "aside",
        ".sidebar", ".advertisement", ".ad", ".ads",
        ".social-share", ".comments", ".related-posts",
        ".nav", ".menu", ".navigation", ".breadcrumb",
        "[role='navigation']", "[role='banner']", "[role='complementary']",
    ]

    # 본문 추출 우선순위 선택자
    CONTENT_SELECTORS: list[str] = [
        "article",
        '[role="main"]',
        "main",
        ".se-main-container",  # 네이버 스마트에디터 ONE
        "#postViewArea",  # 네이버 구버전 에디터
        ".post-content",
        ".article-content",
        ".article-body",
        ".entry-content",
        ".content",
        ".post-body",
        "#content",
        "#article",
        ".prose",
        ".story-body",
        ".news-content",
    ]

    AUTHOR_META_NAMES: tuple[str, ...] = (
        "author",
        "article:author",
        "dc.creator",
        "dcterms.creator",
        "twitter:creator",
        "naverblog:nickname",
    )

    def __init__(
        self,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        max_redirects: Optional[int] = None,
        target_language: Optional[str] = None,
    ):
        """
        Args:
            user_agent: 요청 User-Agent. 기본값 settings.USER_AGENT
            timeout: HTTP 요청 타임아웃 (초). 기본값 settings.FETCH_ATTEMPT_TIMEOUT_SECONDS
            max_redirects: 따라갈 최대 리다이렉트 수
            target_language: trafilatura 대상 언어 (빈 문자열이면 언어 필터 없음)
        """
        super().__init__(user_agent=user_agent)
        self.timeout = timeout or settings.FETCH_ATTEMPT_TIMEOUT_SECONDS
        self.max_redirects = (
            settings.READER_MAX_REDIRECTS if max_redirects is None else max_redirects
        )
        language = settings.READER_TARGET_LANGUAGE if target_language is None else target_language
        self.target_language = language or None

    # ─────────────────────────────────────────────────────────────────────────
    # fetch
    # ─────────────────────────────────────────────────────────────────────────

    async def fetch(self, url: str, platform: PlatformTag) -> FetchResult:
        """
        URL의 HTML을 가져와 본문을 추출합니다.

        Raises:
            ValidationError: 리다이렉트가 거부된 주소로 향하는 경우
            FetchError: 네트워크/HTTP 오류
        """
        logger.info(f"reader 수집 시작: {url}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.default_headers,
                follow_redirects=False,
            ) as client:
                response = await self.get_following_redirects(client, url)
                final_url = str(response.url)
                html = response.text
                page_url = final_url

                if platform == PlatformTag.NAVER or detect_platform(final_url) == PlatformTag.NAVER:
                    frame_url = self.find_naver_frame_url(html, final_url)
                    if frame_url:
                        logger.debug(f"네이버 본문 iframe 수집: {frame_url}")
                        frame_response = await self.get_following_redirects(client, frame_url)
                        html = frame_response.text
                        page_url = str(frame_response.url)

        except httpx.TimeoutException as e:
            logger.error(f"reader 타임아웃: {url}")
            raise FetchError(url, reason=f"HTTP 타임아웃: {url}") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"reader HTTP 오류 {e.response.status_code}: {url}")
            raise FetchError(url, reason=f"HTTP {e.response.status_code}: {url}") from e
        except httpx.HTTPError as e:
            logger.error(f"reader 요청 오류: {url} - {e}")
            raise FetchError(url, reason=f"요청 실패: {e}") from e

        soup = BeautifulSoup(html, "html.parser")
        raw_text = self.extract_content(html, soup, page_url)

        logger.info(f"reader 수집 완료: {final_url} ({len(raw_text):,} chars)")

        return FetchResult(
            url=url,
            final_url=final_url,
            raw_text=raw_text,
            html_content=html,
            base_url=page_url if page_url != final_url else None,
            author=self.extract_author(soup),
            strategy=self.name,
            fetched_with=platform,
        )

    async def get_following_redirects(
        self,
        client: httpx.AsyncClient,
        url: str,
    ) -> httpx.Response:
        """
        리다이렉트를 직접 따라가며 각 hop을 요청 전에 검증합니다.

        Raises:
            ValidationError: hop이 거부된 주소인 경우 (해당 hop은 요청하지 않음)
            httpx.TooManyRedirects: max_redirects 초과
            httpx.HTTPStatusError: 최종 응답이 4xx/5xx
        """
        current = url
        for hop in range(self.max_redirects + 1):
            await guard_request(current)
            response = await client.get(current)

            if not response.is_redirect:
                response.raise_for_status()
                return response

            location = response.headers.get("location")
            if not location:
                response.raise_for_status()
                return response

            next_url = urljoin(str(response.url), location)
            logger.debug(f"리다이렉트 hop {hop + 1}: {current} → {next_url}")
            current = next_url

        raise httpx.TooManyRedirects(
            f"리다이렉트 {self.max_redirects}회 초과: {url}",
            request=response.request,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # 본문 추출
    # ─────────────────────────────────────────────────────────────────────────

    def extract_content(self, html: str, soup: BeautifulSoup, page_url: str) -> str:
        """trafilatura 우선, 부족하면 BeautifulSoup fallback"""
        content = self._extract_with_trafilatura(html, page_url)

        if len(content) < self.MIN_EXTRACTED_LENGTH:
            logger.warning(
                f"trafilatura 추출 부족 ({len(content)} chars), BeautifulSoup fallback 시도: {page_url}"
            )
            fallback = self._extract_content_fallback(soup)
            if len(fallback) > len(content):
                content = fallback

        return content

    def _extract_with_trafilatura(self, html: str, page_url: str) -> str:
        if not html:
            return ""

        try:
            content = trafilatura.extract(
                html,
                url=page_url,
                output_format="markdown",
                include_links=True,
                include_images=True,
                include_comments=False,
                include_tables=True,
                favor_recall=True,
                target_language=self.target_language,
            )
        except Exception as e:
            logger.error(f"trafilatura 추출 오류: {e}")
            return ""

        return self.text_extractor.clean_text(content) if content else ""

    def _extract_content_fallback(self, soup: BeautifulSoup) -> str:
        clean_soup = self.text_extractor.remove_noise_elements(soup, self.NOISE_SELECTORS)

        for selector in self.CONTENT_SELECTORS:
            element = clean_soup.select_one(selector)
            if element:
                text = element.get_text(separator="\n", strip=True)
                if len(text) > self.MIN_FALLBACK_LENGTH:
                    return self.text_extractor.clean_text(text)

        body = clean_soup.find("body")
        if body:
            text = body.get_text(separator="\n", strip=True)
            if len(text) > self.MIN_FALLBACK_LENGTH:
                return self.text_extractor.clean_text(text)

        return ""

    # ─────────────────────────────────────────────────────────────────────────
    # 메타데이터
    # ─────────────────────────────────────────────────────────────────────────

    def extract_author(self, soup: BeautifulSoup) -> Optional[str]:
        author = extract_meta(soup, *self.AUTHOR_META_NAMES)
        if author:
            return author

        author_link = soup.find("a", rel="author")
        if author_link:
            text = self.text_extractor.clean_text(author_link.get_text(strip=True))
            if text and len(text) < 100:
                return text

        return None

    @staticmethod
    def find_naver_frame_url(html: str, base_url: str) -> Optional[str]:
        """
        네이버 블로그 껍데기 페이지에서 본문 iframe(#mainFrame) URL을 찾습니다.

        모바일 페이지(m.blog.naver.com)나 이미 PostView URL인 경우 None
        """
        if "PostView" in base_url:
            return None

        soup = BeautifulSoup(html, "html.parser")
        iframe = soup.find("iframe", id="mainFrame")
        if not iframe or not iframe.get("src"):
            return None
        return urljoin(base_url, iframe["src"])
