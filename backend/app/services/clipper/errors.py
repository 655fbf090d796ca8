"""
Clipper Error Definitions

콘텐츠 수집 파이프라인의 커스텀 에러 타입 및 사용자 친화적 메시지 시스템을 정의합니다.

에러 분류:
- ValidationError: SSRF/잘못된 URL 거부 (4xx, 재시도하지 않음)
- FetchError: primary + fallback 전략 모두 실패 (5xx, 자동 재시도하지 않음)

정규화(normalizer) 실패는 에러 분류에 없습니다.
normalizer는 예외를 던지지 않고 최악의 경우 빈 결과를 반환합니다.

에러 타입별 HTTP 상태 코드:
- 400: 빈 입력, 잘못된 URL 형식, 허용되지 않은 스킴, 차단된 호스트, 사설 주소
- 502: 수집 실패
- 504: 타임아웃
"""

from enum import Enum
from typing import Optional

from app.services.clipper.schemas import GuardReason


class ClipErrorCode(str, Enum):
    """수집 파이프라인 에러 코드"""

    EMPTY_INPUT = "EMPTY_INPUT"
    INVALID_URL_FORMAT = "INVALID_URL_FORMAT"
    URL_TOO_LONG = "URL_TOO_LONG"
    SCHEME_NOT_ALLOWED = "SCHEME_NOT_ALLOWED"
    BLOCKED_HOSTNAME = "BLOCKED_HOSTNAME"
    PRIVATE_ADDRESS = "PRIVATE_ADDRESS"
    FETCH_FAILED = "FETCH_FAILED"
    TIMEOUT = "TIMEOUT"


# 에러 코드별 사용자 친화적 메시지 (한국어)
ERROR_MESSAGES: dict[ClipErrorCode, str] = {
    ClipErrorCode.EMPTY_INPUT: "앗, 주소를 입력하지 않으셨어요. 저장할 URL을 넣어주세요.",
    ClipErrorCode.INVALID_URL_FORMAT: "앗, 올바른 주소인지 확인해 주세요. URL 형식이 필요해요.",
    ClipErrorCode.URL_TOO_LONG: "앗, 주소가 너무 길어요. 짧은 주소로 다시 시도해 주세요.",
    ClipErrorCode.SCHEME_NOT_ALLOWED: "앗, http 또는 https 주소만 저장할 수 있어요.",
    ClipErrorCode.BLOCKED_HOSTNAME: "앗, 이 주소는 보안상 저장할 수 없어요.",
    ClipErrorCode.PRIVATE_ADDRESS: "앗, 내부 네트워크 주소는 저장할 수 없어요.",
    ClipErrorCode.FETCH_FAILED: "앗, 페이지 내용을 불러오지 못했어요. 잠시 후 다시 시도해 주세요.",
    ClipErrorCode.TIMEOUT: "앗, 응답 시간이 너무 길어지고 있어요. 잠시 후 다시 시도해 주시겠어요?",
}

# 에러 코드별 HTTP 상태 코드 매핑
ERROR_HTTP_STATUS: dict[ClipErrorCode, int] = {
    ClipErrorCode.EMPTY_INPUT: 400,
    ClipErrorCode.INVALID_URL_FORMAT: 400,
    ClipErrorCode.URL_TOO_LONG: 400,
    ClipErrorCode.SCHEME_NOT_ALLOWED: 400,
    ClipErrorCode.BLOCKED_HOSTNAME: 400,
    ClipErrorCode.PRIVATE_ADDRESS: 400,
    ClipErrorCode.FETCH_FAILED: 502,
    ClipErrorCode.TIMEOUT: 504,
}

# URL Guard 거부 사유 → 에러 코드
GUARD_REASON_CODES: dict[GuardReason, ClipErrorCode] = {
    GuardReason.EMPTY: ClipErrorCode.EMPTY_INPUT,
    GuardReason.TOO_LONG: ClipErrorCode.URL_TOO_LONG,
    GuardReason.INVALID_FORMAT: ClipErrorCode.INVALID_URL_FORMAT,
    GuardReason.SCHEME_NOT_ALLOWED: ClipErrorCode.SCHEME_NOT_ALLOWED,
    GuardReason.BLOCKED_HOSTNAME: ClipErrorCode.BLOCKED_HOSTNAME,
    GuardReason.PRIVATE_ADDRESS: ClipErrorCode.PRIVATE_ADDRESS,
}


class ClipError(Exception):
    """
    수집 파이프라인 에러 기본 클래스

    Attributes:
        code: 에러 코드 (ClipErrorCode)
        message: 사용자에게 표시할 메시지
        detail: 개발자용 상세 정보 (선택)
        http_status: HTTP 상태 코드
    """

    def __init__(
        self,
        code: ClipErrorCode,
        message: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "알 수 없는 오류가 발생했습니다.")
        self.detail = detail
        self.http_status = ERROR_HTTP_STATUS.get(code, 500)

        super().__init__(self.message)

    def to_dict(self) -> dict:
        """API 응답용 딕셔너리 변환"""
        result = {
            "error_code": self.code.value,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        return result


class ValidationError(ClipError):
    """URL Guard가 거부한 URL (SSRF 방어, 형식 오류)"""

    def __init__(self, url: str, reason: GuardReason, detail: Optional[str] = None):
        super().__init__(
            code=GUARD_REASON_CODES.get(reason, ClipErrorCode.INVALID_URL_FORMAT),
            detail=detail or f"URL 거부 ({reason.value}): {url[:200]}",
        )
        self.url = url
        self.reason = reason


class FetchError(ClipError):
    """primary 전략과 fallback 전략이 모두 실패"""

    def __init__(
        self,
        url: str,
        reason: Optional[str] = None,
        code: ClipErrorCode = ClipErrorCode.FETCH_FAILED,
    ):
        super().__init__(
            code=code,
            detail=reason or f"수집 실패: {url}",
        )
        self.url = url


class FetchTimeoutError(FetchError):
    """마지막 시도가 타임아웃으로 끝난 수집 실패"""

    def __init__(self, url: str, timeout_seconds: float):
        super().__init__(
            url=url,
            reason=f"타임아웃 ({timeout_seconds}초 초과): {url}",
            code=ClipErrorCode.TIMEOUT,
        )
        self.timeout_seconds = timeout_seconds
