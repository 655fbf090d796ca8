"""
Normalizer Registry

플랫폼 태그 → 정규화 파이프라인 매핑입니다.

- threads: Threads 파이프라인 (본문/댓글 구조 포함)
- naver: Naver Blog 파이프라인
- web, twitter 및 등록되지 않은 태그: Generic Web 파이프라인
- instagram, youtube: 그대로 통과 (렌더러가 이미 정리된 텍스트를 반환)

정규화는 실패하지 않습니다. 파이프라인에서 예상치 못한 예외가 나면
로그를 남기고 빈 NormalizedContent를 반환합니다.
"""

from typing import Callable, Union

from loguru import logger

from app.services.clipper.normalizers.naver import normalize_naver
from app.services.clipper.normalizers.threads import normalize_threads
from app.services.clipper.normalizers.web import normalize_web
from app.services.clipper.schemas import NormalizedContent, PlatformTag

NormalizerFn = Callable[[str], Union[str, NormalizedContent]]


def passthrough(raw: str) -> str:
    return raw or ""


class NormalizerRegistry:
    """
    플랫폼별 정규화 파이프라인 레지스트리

    Usage:
        content = NormalizerRegistry.normalize(PlatformTag.NAVER, raw_text)

        # 파이프라인 추가
        NormalizerRegistry.register(PlatformTag.TWITTER, normalize_tweet)
    """

    _normalizers: dict[PlatformTag, NormalizerFn] = {
        PlatformTag.THREADS: normalize_threads,
        PlatformTag.NAVER: normalize_naver,
        PlatformTag.WEB: normalize_web,
        PlatformTag.TWITTER: normalize_web,
        PlatformTag.INSTAGRAM: passthrough,
        PlatformTag.YOUTUBE: passthrough,
    }

    @classmethod
    def get(cls, platform: PlatformTag) -> NormalizerFn:
        return cls._normalizers.get(platform, normalize_web)

    @classmethod
    def register(cls, platform: PlatformTag, normalizer: NormalizerFn) -> None:
        logger.info(f"정규화 파이프라인 등록: {platform.value} → {getattr(normalizer, '__name__', normalizer)}")
        cls._normalizers[platform] = normalizer

    @classmethod
    def normalize(cls, platform: PlatformTag, raw_text: str) -> NormalizedContent:
        """
        플랫폼에 맞는 파이프라인으로 텍스트를 정리합니다.

        Args:
            platform: 최종 URL 기준 플랫폼 태그
            raw_text: 수집된 원본 텍스트

        Returns:
            NormalizedContent (실패 시 빈 결과)
        """
        normalizer = cls.get(platform)
        try:
            result = normalizer(raw_text or "")
        except Exception as e:
            logger.exception(f"정규화 실패 ({platform.value}), 빈 결과 반환: {e}")
            return NormalizedContent()

        if isinstance(result, NormalizedContent):
            content = result
        else:
            content = NormalizedContent(clean_text=result or "")

        logger.debug(
            f"정규화 완료 ({platform.value}): {len(raw_text or '')} → {len(content.clean_text)} chars"
        )
        return content


def normalize(platform: PlatformTag, raw_text: str) -> NormalizedContent:
    """NormalizerRegistry.normalize 단축 함수"""
    return NormalizerRegistry.normalize(platform, raw_text)
