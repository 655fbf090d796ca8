"""
Clipper Data Schemas

콘텐츠 수집 파이프라인의 Pydantic 데이터 모델을 정의합니다.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PlatformTag(str, Enum):
    """URL이 속한 서비스 분류"""

    WEB = "web"
    THREADS = "threads"
    NAVER = "naver"
    INSTAGRAM = "instagram"
    YOUTUBE = "youtube"
    TWITTER = "twitter"


class GuardReason(str, Enum):
    """URL Guard 거부 사유"""

    EMPTY = "empty"
    TOO_LONG = "too long"
    INVALID_FORMAT = "invalid format"
    SCHEME_NOT_ALLOWED = "scheme not allowed"
    BLOCKED_HOSTNAME = "blocked hostname"
    PRIVATE_ADDRESS = "private address"


class CandidateUrl(BaseModel):
    """검증 대상 URL의 파싱 결과"""

    raw: str = Field(..., description="원본 URL 문자열")
    scheme: str = Field(..., description="스킴 (http, https)")
    hostname: str = Field(..., description="소문자 호스트명")
    port: Optional[int] = Field(None, description="명시된 포트")
    literal_ip: Optional[str] = Field(None, description="호스트가 IP 리터럴인 경우 정규화된 주소")


class UrlCheckResult(BaseModel):
    """URL Guard 검증 결과"""

    valid: bool
    reason: Optional[GuardReason] = None
    candidate: Optional[CandidateUrl] = None


class FetchResult(BaseModel):
    """fetch 전략 1회 실행 결과"""

    url: str = Field(..., description="요청한 URL")
    final_url: str = Field(..., description="리다이렉트를 따라간 최종 URL")
    raw_text: str = Field(default="", description="추출된 원본 텍스트 (markdown 포함 가능)")
    html_content: Optional[str] = Field(None, description="원본 HTML")
    base_url: Optional[str] = Field(
        None, description="html_content 문서의 URL (final_url과 다를 때만, 예: 네이버 본문 iframe)"
    )
    author: Optional[str] = Field(None, description="작성자 이름")
    author_handle: Optional[str] = Field(None, description="작성자 핸들 (@ 제외)")
    author_avatar: Optional[str] = Field(None, description="작성자 프로필 이미지 URL")
    images: list[str] = Field(default_factory=list, description="전략이 관찰한 이미지 URL")
    strategy: str = Field(default="", description="결과를 만든 전략 이름 (reader, render)")
    fetched_with: PlatformTag = Field(default=PlatformTag.WEB, description="전략 선택에 사용한 플랫폼")
    platform: PlatformTag = Field(default=PlatformTag.WEB, description="최종 URL 기준 플랫폼 (정규화 기준)")
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_empty(self) -> bool:
        return not self.raw_text or not self.raw_text.strip()


class ImageCandidate(BaseModel):
    """HTML에서 찾은 이미지 후보"""

    url: str
    source: str = Field(..., description="og, twitter, srcset, picture, img, data-attr")
    priority: int = Field(default=0, description="높을수록 앞에 배치")
    width: Optional[int] = None


class ThreadComment(BaseModel):
    """Threads 댓글 1개"""

    id: int
    text: str


class ThreadStructure(BaseModel):
    """Threads 본문/댓글 구조 (프레젠테이션 레이어가 댓글을 별도 목록으로 렌더링)"""

    main_content: str = ""
    comments: list[ThreadComment] = Field(default_factory=list)


class NormalizedContent(BaseModel):
    """정규화된 본문"""

    clean_text: str = Field(default="", description="빈 줄로 구분된 문단")
    thread: Optional[ThreadStructure] = Field(None, description="Threads 전용 본문/댓글 분리 결과")

    @property
    def is_empty(self) -> bool:
        return not self.clean_text.strip()


class ClipPayload(BaseModel):
    """파이프라인 출력 - ClipAssembler로 전달되는 값"""

    url: str
    final_url: str
    platform: PlatformTag
    raw_text: str = ""
    html_content: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    author: Optional[str] = None
    author_handle: Optional[str] = None
    author_avatar: Optional[str] = None
    content: NormalizedContent = Field(default_factory=NormalizedContent)
