"""
Clipper Package

URL 하나를 클립 입력으로 만드는 수집/정규화 파이프라인을 제공합니다.

공개 API:
- url_guard: SSRF 방어 URL 검증 (validate, require_valid_url, guard_request)
- platform: 플랫폼 판별 (PlatformDetector, detect_platform)
- reader / render: 수집 전략 (ReaderStrategy, RenderStrategy)
- orchestrator: 전략 선택 및 fallback (ContentFetchOrchestrator)
- images: 이미지 병합/필터링 (ImageCollector)
- normalizers: 플랫폼별 텍스트 정규화 (NormalizerRegistry)
- pipeline: 전체 흐름 (ClipPipeline, ClipAssembler)
- errors: 에러 타입 및 메시지 시스템
"""

from app.services.clipper.base import BaseFetchStrategy, BaseTextExtractor
from app.services.clipper.errors import (
    ERROR_HTTP_STATUS,
    ERROR_MESSAGES,
    ClipError,
    ClipErrorCode,
    FetchError,
    FetchTimeoutError,
    ValidationError,
)
from app.services.clipper.images import ImageCollector, merge_image_sources
from app.services.clipper.normalizers import NormalizerRegistry
from app.services.clipper.orchestrator import ContentFetchOrchestrator
from app.services.clipper.pipeline import ClipAssembler, ClipPipeline
from app.services.clipper.platform import PlatformDetector, detect_platform
from app.services.clipper.reader import ReaderStrategy
from app.services.clipper.render import RenderStrategy
from app.services.clipper.schemas import (
    CandidateUrl,
    ClipPayload,
    FetchResult,
    GuardReason,
    NormalizedContent,
    PlatformTag,
    ThreadComment,
    ThreadStructure,
    UrlCheckResult,
)
from app.services.clipper.url_guard import guard_request, require_valid_url, validate

__all__ = [
    # Base
    "BaseFetchStrategy",
    "BaseTextExtractor",
    # Errors
    "ClipError",
    "ClipErrorCode",
    "ERROR_HTTP_STATUS",
    "ERROR_MESSAGES",
    "FetchError",
    "FetchTimeoutError",
    "ValidationError",
    # Schemas
    "CandidateUrl",
    "ClipPayload",
    "FetchResult",
    "GuardReason",
    "NormalizedContent",
    "PlatformTag",
    "ThreadComment",
    "ThreadStructure",
    "UrlCheckResult",
    # URL Guard
    "guard_request",
    "require_valid_url",
    "validate",
    # Platform
    "PlatformDetector",
    "detect_platform",
    # Strategies
    "ReaderStrategy",
    "RenderStrategy",
    "ContentFetchOrchestrator",
    # Images / Normalizers
    "ImageCollector",
    "merge_image_sources",
    "NormalizerRegistry",
    # Pipeline
    "ClipAssembler",
    "ClipPipeline",
]
