"""
Normalizers Package

플랫폼별 텍스트 정규화 파이프라인을 제공합니다.

공개 API:
- registry: NormalizerRegistry, normalize
- web: normalize_web (일반 웹, Twitter/X)
- threads: normalize_threads, split_thread, serialize_thread
- naver: normalize_naver
"""

from app.services.clipper.normalizers.naver import normalize_naver
from app.services.clipper.normalizers.registry import NormalizerRegistry, normalize
from app.services.clipper.normalizers.threads import (
    normalize_threads,
    serialize_thread,
    split_thread,
)
from app.services.clipper.normalizers.web import normalize_web

__all__ = [
    "NormalizerRegistry",
    "normalize",
    "normalize_web",
    "normalize_threads",
    "split_thread",
    "serialize_thread",
    "normalize_naver",
]
