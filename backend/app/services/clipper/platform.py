"""
Platform Detector Module

URL 호스트명 기반으로 콘텐츠가 속한 서비스(PlatformTag)를 판별합니다.

판별 결과는 두 곳에서 사용됩니다:
- fetch 전략 선택 (입력 URL 기준)
- 정규화 파이프라인 선택 (리다이렉트를 따라간 최종 URL 기준, 이 값이 우선)

Usage:
    from app.services.clipper.platform import PlatformDetector

    PlatformDetector.detect_platform("https://m.blog.naver.com/abc/123")
    # PlatformTag.NAVER

    # 클라이언트 캡처 흐름: 힌트가 패턴 매칭보다 우선
    PlatformDetector.detect_platform("https://example.com", hint="threads")
    # PlatformTag.THREADS

확장성:
    새 플랫폼 추가 시 _platforms 딕셔너리에 한 줄만 추가하면 됩니다.
"""

from typing import Optional, Union
from urllib.parse import urlsplit

from loguru import logger

from app.services.clipper.schemas import PlatformTag


class PlatformDetector:
    """
    URL 도메인 기반 플랫폼 판별기

    지원 플랫폼:
    - Threads: threads.net, threads.com (서브도메인 포함)
    - Naver Blog: blog.naver.com, m.blog.naver.com
    - Instagram: instagram.com, instagr.am
    - YouTube: youtube.com, youtu.be
    - Twitter/X: twitter.com, x.com
    - 그 외: web
    """

    # 도메인 패턴 → 플랫폼 태그 매핑
    _platforms: dict[str, PlatformTag] = {
        "threads.net": PlatformTag.THREADS,
        "threads.com": PlatformTag.THREADS,
        "blog.naver.com": PlatformTag.NAVER,
        "instagram.com": PlatformTag.INSTAGRAM,
        "instagr.am": PlatformTag.INSTAGRAM,
        "youtube.com": PlatformTag.YOUTUBE,
        "youtu.be": PlatformTag.YOUTUBE,
        "twitter.com": PlatformTag.TWITTER,
        "x.com": PlatformTag.TWITTER,
    }

    @staticmethod
    def extract_domain(url: str) -> str:
        """
        URL에서 소문자 호스트명을 추출합니다. (www. 접두사 제거)

        파싱할 수 없는 URL이면 빈 문자열을 반환합니다.
        """
        try:
            domain = (urlsplit(url.strip()).hostname or "").rstrip(".")
        except ValueError:
            return ""

        if domain.startswith("www."):
            domain = domain[4:]
        return domain

    @classmethod
    def _match_domain(cls, domain: str, pattern: str) -> bool:
        """
        도메인이 패턴과 일치하는지 확인합니다.

        - 정확히 일치: threads.net == threads.net
        - 서브도메인 일치: m.blog.naver.com → blog.naver.com
        """
        if domain == pattern:
            return True

        if domain.endswith(f".{pattern}"):
            return True

        return False

    @classmethod
    def _coerce_hint(cls, hint: Union[str, PlatformTag, None]) -> Optional[PlatformTag]:
        if hint is None or hint == "":
            return None
        if isinstance(hint, PlatformTag):
            return hint
        try:
            return PlatformTag(str(hint).strip().lower())
        except ValueError:
            logger.warning(f"알 수 없는 플랫폼 힌트 무시: {hint!r}")
            return None

    @classmethod
    def detect_platform(
        cls,
        url: str,
        hint: Union[str, PlatformTag, None] = None,
    ) -> PlatformTag:
        """
        URL의 플랫폼을 판별합니다.

        Args:
            url: 판별할 URL
            hint: 클라이언트 캡처 흐름에서 전달한 플랫폼 힌트 (패턴 매칭보다 우선)

        Returns:
            PlatformTag (매칭되지 않으면 WEB)

        Example:
            >>> PlatformDetector.detect_platform("https://www.threads.net/@user/post/1")
            <PlatformTag.THREADS: 'threads'>
            >>> PlatformDetector.detect_platform("https://example.com/a")
            <PlatformTag.WEB: 'web'>
        """
        hinted = cls._coerce_hint(hint)
        if hinted is not None:
            logger.debug(f"플랫폼 힌트 사용: {hinted.value} for {url}")
            return hinted

        domain = cls.extract_domain(url)
        if not domain:
            return PlatformTag.WEB

        for pattern, tag in cls._platforms.items():
            if cls._match_domain(domain, pattern):
                logger.debug(f"플랫폼 감지: {domain} → {tag.value}")
                return tag

        return PlatformTag.WEB

    @classmethod
    def get_supported_domains(cls) -> list[str]:
        """전용 플랫폼으로 분류되는 도메인 패턴 목록"""
        return list(cls._platforms.keys())

    @classmethod
    def register_platform(cls, domain_pattern: str, tag: PlatformTag) -> None:
        """
        런타임에 도메인 패턴을 추가합니다.

        Example:
            >>> PlatformDetector.register_platform("threads.example", PlatformTag.THREADS)
        """
        logger.info(f"플랫폼 패턴 등록: {domain_pattern} → {tag.value}")
        cls._platforms[domain_pattern.lower()] = tag


def detect_platform(url: str, hint: Union[str, PlatformTag, None] = None) -> PlatformTag:
    """PlatformDetector.detect_platform 단축 함수"""
    return PlatformDetector.detect_platform(url, hint)
