from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
import uvicorn
from loguru import logger
import json

from app.core.config import settings
from app.api.v1 import clips


def get_application() -> FastAPI:
    _app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="""
## Clip Ingest API

URL 하나를 받아 콘텐츠를 수집하고 플랫폼별로 정리된 클립 입력을 만드는 백엔드 API입니다.

### 주요 기능

- **🛡️ URL Guard**: 사설/내부 주소로의 요청 차단 (리다이렉트 hop 포함)
- **🔍 Fetch**: reader(HTTP + trafilatura) / render(Playwright) 전략, 실패 시 1회 fallback
- **🧹 Normalize**: Web, Threads, Naver Blog 전용 텍스트 정리

### 지원 플랫폼

- Threads (`threads.net`, `threads.com`) - 본문/댓글 분리
- Naver Blog (`blog.naver.com`)
- Instagram, YouTube, Twitter/X
- 일반 웹사이트 (trafilatura 기반)
        """,
        openapi_url=None,  # 커스텀 엔드포인트 사용
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {
                "name": "clips",
                "description": "URL 수집, 플랫폼 판별 및 텍스트 정규화 API",
            },
        ],
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # CORS origins 설정 (trailing slash 제거)
    cors_origins = [str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS]

    if cors_origins:
        _app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info(f"CORS 미들웨어 활성화됨 (origins: {cors_origins})")
    else:
        logger.warning("CORS origins가 설정되지 않음 - CORS 미들웨어 비활성화")

    # API v1 라우터 등록
    _app.include_router(clips.router, prefix=settings.API_V1_STR)

    return _app


app = get_application()

# Swagger UI / ReDoc이 OpenAPI 스펙을 찾을 수 있도록 URL 설정
app.openapi_url = f"{settings.API_V1_STR}/openapi.json"


# ============================================================================
# 커스텀 OpenAPI 엔드포인트 (UTF-8 인코딩 지원)
# ============================================================================

@app.get(f"{settings.API_V1_STR}/openapi.json", include_in_schema=False)
async def custom_openapi():
    """
    UTF-8 인코딩된 OpenAPI 스펙을 반환합니다.
    기본 FastAPI OpenAPI 엔드포인트의 한글 깨짐 문제를 해결합니다.
    """
    openapi_schema = app.openapi()
    return Response(
        content=json.dumps(openapi_schema, ensure_ascii=False, indent=2),
        media_type="application/json; charset=utf-8",
    )


# Health Check
@app.get("/")
async def root():
    return {
        "message": "Welcome to Clip Ingest API",
        "version": settings.VERSION,
        "status": "running"
    }

@app.get("/health")
async def health_check():
    return {"status": "ok"}

# 디버깅 용: python app/main.py로 실행 시
if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
