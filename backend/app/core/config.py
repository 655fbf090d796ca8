import json

from pydantic import AnyHttpUrl, validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "clip-ingest"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"

    # CORS 설정: 콤마로 구분된 문자열이나 리스트 모두 처리 가능하도록 검증
    BACKEND_CORS_ORIGINS: list[AnyHttpUrl] = []

    # ===== URL Guard (SSRF 방어) 설정 =====
    URL_MAX_LENGTH: int = 2048
    # True: 호스트명을 DNS로 해석한 뒤 사설 대역 여부를 한 번 더 검사 (DNS rebinding 대응)
    URL_GUARD_RESOLVE_DNS: bool = True
    # 기본 차단 목록 외에 추가로 막을 호스트명
    URL_GUARD_EXTRA_BLOCKED_HOSTS: list[str] = []

    # ===== Fetch 전략 설정 =====
    # 전략 1회 시도당 타임아웃 (초)
    FETCH_ATTEMPT_TIMEOUT_SECONDS: float = 25.0
    # primary + fallback 전체가 공유하는 시간 예산 (초)
    FETCH_TOTAL_BUDGET_SECONDS: float = 45.0
    READER_MAX_REDIRECTS: int = 5
    READER_TARGET_LANGUAGE: str = "ko"
    USER_AGENT: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # ===== Headless 렌더링 (Playwright) 설정 =====
    RENDER_HEADLESS: bool = True
    RENDER_NAVIGATION_TIMEOUT_MS: int = 20000
    # 페이지 로드 후 JS 렌더링 완료를 기다리는 시간 (ms)
    RENDER_SETTLE_MS: int = 2000

    # 클립당 최대 이미지 수
    MAX_IMAGES: int = 20

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: str | list[str]) -> list[str] | str:
        if isinstance(v, str):
            # JSON 배열 형태인 경우 파싱
            if v.startswith("["):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            # 콤마로 구분된 문자열인 경우
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, list):
            return v
        raise ValueError(v)

    @validator("URL_GUARD_EXTRA_BLOCKED_HOSTS", pre=True)
    def assemble_blocked_hosts(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            if v.startswith("["):
                try:
                    return [h.lower() for h in json.loads(v)]
                except json.JSONDecodeError:
                    pass
            return [i.strip().lower() for i in v.split(",") if i.strip()]
        elif isinstance(v, list):
            return [h.lower() for h in v]
        raise ValueError(v)

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True
    )


settings = Settings()
