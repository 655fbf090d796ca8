"""
Base Fetch Strategy Module

콘텐츠 수집 전략의 추상 기본 클래스와 공용 텍스트 유틸리티를 정의합니다.

전략 종류:
- reader: 서버 측 HTTP 요청 + 본문 추출 (JS 실행 없음)
- render: headless 브라우저로 JS 실행 후 DOM에서 추출

주요 설계 결정:
- HTTP 클라이언트: httpx (async) - FastAPI 비동기 패턴과 호환
- 전략은 실패 시 예외를 던지고, fallback 여부는 orchestrator가 결정
- 요청마다 새 클라이언트/브라우저를 만들고 종료 시 반드시 정리
"""

import re
from abc import ABC, abstractmethod
from typing import Optional

from bs4 import BeautifulSoup

from app.core.config import settings
from app.services.clipper.schemas import FetchResult, PlatformTag


class BaseTextExtractor:
    """
    HTML에서 텍스트를 추출하고 정제하는 유틸리티 클래스

    역할:
    - 공백/줄바꿈 정규화
    - 노이즈 요소(광고, 네비게이션 등) 제거
    """

    @staticmethod
    def clean_text(text: str) -> str:
        """
        텍스트를 정리합니다.
        - 3줄 이상 연속 줄바꿈 → 2줄로 정규화
        - 탭/연속 공백 → 스페이스 1개로 정규화
        - 각 줄의 앞뒤 공백 제거

        Args:
            text: 원본 텍스트

        Returns:
            정리된 텍스트
        """
        if not text:
            return ""

        text = text.replace("\r\n", "\n").replace("\r", "\n")
        text = re.sub(r"[ \t]+", " ", text)
        lines = [line.strip() for line in text.split("\n")]
        text = "\n".join(lines)
        # 줄 단위 strip 이후에 연속 줄바꿈 정리 (공백만 있던 줄 포함)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text.strip()

    @staticmethod
    def remove_noise_elements(
        soup: BeautifulSoup,
        selectors: list[str],
    ) -> BeautifulSoup:
        """
        광고, 네비게이션 등 노이즈 요소를 제거합니다.

        Returns:
            노이즈가 제거된 BeautifulSoup 객체 (원본을 수정하지 않음)
        """
        soup_copy = BeautifulSoup(str(soup), "html.parser")

        for selector in selectors:
            for element in soup_copy.select(selector):
                element.decompose()

        return soup_copy


def extract_meta(soup: BeautifulSoup, *names: str) -> Optional[str]:
    """
    name 또는 property 속성으로 meta 태그 content를 찾습니다. (앞선 이름 우선)

    Example:
        >>> extract_meta(soup, "og:image:secure_url", "og:image")
    """
    for name in names:
        tag = soup.find("meta", attrs={"property": name}) or soup.find(
            "meta", attrs={"name": name}
        )
        if tag and tag.get("content"):
            return tag["content"].strip()
    return None


class BaseFetchStrategy(ABC):
    """
    모든 수집 전략의 추상 기본 클래스

    Usage:
        class ReaderStrategy(BaseFetchStrategy):
            name = "reader"

            async def fetch(self, url: str, platform: PlatformTag) -> FetchResult:
                ...
    """

    # 클래스 변수: 전략 식별자 (하위 클래스에서 오버라이드)
    name: str = "base"

    def __init__(self, user_agent: Optional[str] = None):
        self.user_agent = user_agent or settings.USER_AGENT
        self.text_extractor = BaseTextExtractor()

    @property
    def default_headers(self) -> dict:
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "ko-KR,ko;q=0.9,en-US;q=0.8,en;q=0.7",
        }

    @abstractmethod
    async def fetch(self, url: str, platform: PlatformTag) -> FetchResult:
        """
        URL에서 원본 텍스트와 메타데이터를 수집합니다.

        구현 규칙:
        - 네트워크 요청 전 url_guard로 대상 URL을 검증
        - 하위 수준 실패(DNS, TLS, HTTP 상태, 파싱)는 예외로 전파
        - 텍스트가 비어 있어도 예외 대신 빈 raw_text로 반환 가능

        Args:
            url: 수집할 URL (이미 1차 검증을 통과한 값)
            platform: 전략 선택에 사용된 플랫폼

        Returns:
            FetchResult

        Raises:
            ValidationError: 리다이렉트/하위 요청이 거부된 주소로 향하는 경우
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
