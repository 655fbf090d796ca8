"""
Clips API Endpoints

URL을 받아 수집/정규화된 클립 입력(ClipPayload)을 반환하는 API 엔드포인트입니다.

Endpoints:
- POST /api/v1/clips/analyze: 서버에서 URL 수집 후 정규화
- POST /api/v1/clips/capture: 클라이언트가 캡처한 HTML/텍스트를 정규화
- GET /api/v1/clips/platform: URL 검증 및 플랫폼 판별 (네트워크 호출 없음)

에러 코드:
- EMPTY_INPUT, INVALID_URL_FORMAT, URL_TOO_LONG (400)
- SCHEME_NOT_ALLOWED, BLOCKED_HOSTNAME, PRIVATE_ADDRESS (400)
- FETCH_FAILED (502): 수집 실패
- TIMEOUT (504): 타임아웃
"""

import asyncio
from typing import Awaitable

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from loguru import logger
from pydantic import BaseModel, Field

from app.services.clipper import (
    ERROR_MESSAGES,
    ClipError,
    ClipPayload,
    ClipPipeline,
    FetchError,
    PlatformDetector,
    detect_platform,
    validate,
)
from app.services.clipper.errors import GUARD_REASON_CODES

router = APIRouter(prefix="/clips", tags=["clips"])

# 클라이언트 연결 종료 확인 주기 (초)
DISCONNECT_POLL_SECONDS = 0.5

# nginx 관례: 클라이언트가 응답 전에 연결을 끊음
CLIENT_CLOSED_REQUEST = 499


# ============================================================================
# Request / Response Schemas
# ============================================================================


class AnalyzeRequest(BaseModel):
    """서버 수집 요청 스키마"""

    url: str = Field(..., description="저장할 URL")
    platform_hint: str | None = Field(
        None, description="플랫폼 힌트 (threads, naver, instagram, youtube, twitter, web)"
    )


class CaptureRequest(BaseModel):
    """클라이언트 캡처 요청 스키마"""

    url: str = Field(..., description="캡처한 페이지 URL")
    html: str | None = Field(None, description="캡처한 HTML")
    text: str | None = Field(None, description="캡처한 본문 텍스트")
    images: list[str] | None = Field(None, description="클라이언트가 관찰한 이미지 URL")
    source_hint: str | None = Field(None, description="플랫폼 힌트 (패턴 판별보다 우선)")


class ClipErrorResponse(BaseModel):
    """클립 에러 응답 스키마"""

    error_code: str = Field(..., description="에러 코드")
    message: str = Field(..., description="사용자 친화적 에러 메시지")
    detail: str | None = Field(None, description="개발자용 상세 정보")


class PlatformCheckResponse(BaseModel):
    """URL 검증/플랫폼 판별 응답 스키마"""

    url: str = Field(..., description="확인한 URL")
    valid: bool = Field(..., description="URL Guard 통과 여부")
    platform: str | None = Field(None, description="플랫폼 태그")
    domain: str = Field("", description="파싱된 도메인")
    error_code: str | None = Field(None, description="거부된 경우 에러 코드")
    error_message: str | None = Field(None, description="거부된 경우 에러 메시지")


ERROR_RESPONSES = {
    400: {"model": ClipErrorResponse, "description": "잘못된 URL 또는 보안 정책 위반"},
    502: {"model": ClipErrorResponse, "description": "수집 실패"},
    504: {"model": ClipErrorResponse, "description": "타임아웃"},
}


# ============================================================================
# Helper Functions
# ============================================================================


_pipeline: ClipPipeline | None = None


def get_clip_pipeline() -> ClipPipeline:
    """ClipPipeline 싱글톤 (테스트에서는 dependency_overrides로 교체)"""
    global _pipeline
    if _pipeline is None:
        _pipeline = ClipPipeline()
    return _pipeline


def raise_clip_error(error: ClipError) -> None:
    """ClipError를 HTTPException으로 변환하여 raise"""
    raise HTTPException(
        status_code=error.http_status,
        detail=error.to_dict(),
    )


async def run_until_disconnected(request: Request, work: Awaitable[ClipPayload]) -> ClipPayload:
    """
    파이프라인을 태스크로 실행하고, 클라이언트 연결이 끊기면 취소합니다.

    취소되면 전략의 브라우저/소켓이 각자의 정리 경로(async with, finally)로 해제됩니다.

    Raises:
        HTTPException(499): 클라이언트가 응답 전에 연결을 끊은 경우
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()

            if await request.is_disconnected():
                logger.warning(f"클라이언트 연결 종료, 수집 취소: {request.url.path}")
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                raise HTTPException(
                    status_code=CLIENT_CLOSED_REQUEST,
                    detail={"error_code": "CLIENT_CLOSED", "message": "요청이 취소되었어요."},
                )
    finally:
        if not task.done():
            task.cancel()


async def _run_pipeline(request: Request, url: str, work: Awaitable[ClipPayload]) -> ClipPayload:
    try:
        return await run_until_disconnected(request, work)
    except HTTPException:
        raise
    except ClipError as e:
        logger.warning(f"클립 처리 실패 [{e.code.value}]: {url} - {e.detail}")
        raise_clip_error(e)
    except Exception as e:
        logger.exception(f"클립 처리 중 예외 발생: {url}")
        raise_clip_error(FetchError(url=url, reason=str(e)))


# ============================================================================
# API Endpoints
# ============================================================================


@router.post(
    "/analyze",
    response_model=ClipPayload,
    summary="URL 수집 및 정규화",
    responses=ERROR_RESPONSES,
)
async def analyze_url(
    body: AnalyzeRequest,
    request: Request,
    pipeline: ClipPipeline = Depends(get_clip_pipeline),
) -> ClipPayload:
    """
    URL을 서버에서 수집하고 플랫폼에 맞게 정규화합니다.

    ## 처리 흐름
    1. URL Guard 검증 (사설/내부 주소 거부)
    2. 플랫폼 판별 후 primary 전략 선택 (threads/instagram/twitter → render, 그 외 → reader)
    3. 실패 시 다른 전략으로 1회 fallback
    4. 최종 URL 기준 플랫폼으로 이미지 병합 및 텍스트 정규화

    Args:
        body: 요청 (url, platform_hint)

    Returns:
        ClipPayload: 정규화된 클립 입력
    """
    logger.info(f"클립 분석 요청 수신: {body.url} (hint={body.platform_hint})")
    return await _run_pipeline(
        request,
        body.url,
        pipeline.acquire(body.url, hint=body.platform_hint),
    )


@router.post(
    "/capture",
    response_model=ClipPayload,
    summary="클라이언트 캡처 정규화",
    responses=ERROR_RESPONSES,
)
async def capture_page(
    body: CaptureRequest,
    request: Request,
    pipeline: ClipPipeline = Depends(get_clip_pipeline),
) -> ClipPayload:
    """
    클라이언트(브라우저 확장 등)가 캡처한 페이지를 정규화합니다.

    서버 fetch는 하지 않지만 URL Guard와 플랫폼 판별은 동일하게 적용합니다.
    source_hint가 있으면 URL 패턴보다 우선합니다.

    Args:
        body: 요청 (url, html, text, images, source_hint)

    Returns:
        ClipPayload: 정규화된 클립 입력
    """
    logger.info(
        f"클립 캡처 요청 수신: {body.url} (hint={body.source_hint}, "
        f"html={len(body.html or ''):,}, text={len(body.text or ''):,})"
    )
    return await _run_pipeline(
        request,
        body.url,
        pipeline.acquire_captured(
            body.url,
            html=body.html,
            text=body.text,
            images=body.images,
            hint=body.source_hint,
        ),
    )


@router.get(
    "/platform",
    response_model=PlatformCheckResponse,
    summary="URL 검증 및 플랫폼 판별",
)
async def check_platform(
    url: str = Query(..., description="확인할 URL"),
) -> PlatformCheckResponse:
    """
    URL이 저장 가능한지 확인하고 플랫폼을 판별합니다. (네트워크 호출 없음)

    Example:
        ```
        GET /api/v1/clips/platform?url=https://www.threads.net/@user/post/abc

        Response:
        {
            "url": "https://www.threads.net/@user/post/abc",
            "valid": true,
            "platform": "threads",
            "domain": "threads.net",
            "error_code": null,
            "error_message": null
        }
        ```
    """
    result = validate(url)
    domain = PlatformDetector.extract_domain(url) if url else ""

    if not result.valid:
        code = GUARD_REASON_CODES[result.reason]
        return PlatformCheckResponse(
            url=url,
            valid=False,
            platform=None,
            domain=domain,
            error_code=code.value,
            error_message=ERROR_MESSAGES[code],
        )

    platform = detect_platform(result.candidate.raw)
    logger.debug(f"플랫폼 판별: {url} → {platform.value}")
    return PlatformCheckResponse(
        url=url,
        valid=True,
        platform=platform.value,
        domain=domain,
    )
