"""
Image Collector Module

수집된 페이지에서 클립용 이미지 후보를 모으고 병합/필터링합니다.

이미지 출처:
- HTML: og:image(secure_url 우선), twitter:image, <img> srcset/src/data-src,
  <picture><source srcset>
- 본문 markdown: ![alt](https://...) 형식
- 전략(렌더러)이 DOM에서 직접 관찰한 이미지

병합 규칙:
- 문자열 동일성 기준 중복 제거, 처음 등장한 순서 유지
- Naver Blog: 본문(markdown) 이미지 우선 (페이지 이미지는 iframe 밖 장식이 많음)
- 그 외: 페이지 이미지 우선
"""

import re
from typing import Iterable, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from loguru import logger

from app.core.config import settings
from app.services.clipper.schemas import FetchResult, ImageCandidate, PlatformTag

# 썸네일/프로필 크기 패턴 (Instagram/Threads/Facebook CDN)
BLOCKED_SIZE_PATTERNS = (
    "s150x150",
    "s96x96",
    "s64x64",
    "s32x32",
    "s48x48",
    "s16x16",
    "p50x50",
    "p150x150",
)

# UI 요소/프로필 이미지를 의미하는 키워드
BLOCKED_KEYWORDS = (
    "sprite",
    "icon",
    "favicon",
    "emoji",
    "reaction",
    "badge",
    "logo",
    "profile",
    "avatar",
    "user",
    "author",
)

BLOCKED_EXTENSIONS = (".svg", ".ico", ".gif")

# 출처별 우선순위 (높을수록 앞)
SOURCE_PRIORITY: dict[str, int] = {
    "og": 9,
    "srcset": 8,
    "twitter": 8,
    "picture": 7,
    "img": 6,
    "data-attr": 5,
}

MARKDOWN_IMAGE_PATTERN = re.compile(r"!\[[^\]]*\]\((https?://[^)\s]+)(?:\s+\"[^\"]*\")?\)")


# ─────────────────────────────────────────────────────────────────────────────
# 추출
# ─────────────────────────────────────────────────────────────────────────────


def _best_from_srcset(srcset: str) -> Optional[tuple[str, int]]:
    """srcset에서 가장 큰 width 후보를 고릅니다. (descriptor 없으면 width 0)"""
    best: Optional[tuple[str, int]] = None
    for item in srcset.split(","):
        parts = item.strip().split()
        if not parts:
            continue
        width = 0
        if len(parts) > 1 and parts[1].endswith("w"):
            try:
                width = int(parts[1][:-1])
            except ValueError:
                width = 0
        if best is None or width > best[1]:
            best = (parts[0], width)
    return best


def _absolute(url: Optional[str], base_url: str) -> Optional[str]:
    if not url:
        return None
    url = url.strip()
    if not url or url.startswith("data:"):
        return None
    absolute = urljoin(base_url, url)
    if not absolute.lower().startswith(("http://", "https://")):
        return None
    return absolute


def extract_image_candidates(html: str, base_url: str) -> list[ImageCandidate]:
    """
    HTML에서 이미지 후보를 출처/우선순위와 함께 추출합니다.

    상대 경로는 base_url(HTML 문서의 URL) 기준으로 절대 경로로 변환하며,
    http(s)가 아닌 URL은 버립니다.
    """
    if not html:
        return []

    soup = BeautifulSoup(html, "html.parser")
    candidates: list[ImageCandidate] = []

    def add(raw: Optional[str], source: str, width: Optional[int] = None) -> None:
        url = _absolute(raw, base_url)
        if url:
            candidates.append(
                ImageCandidate(url=url, source=source, priority=SOURCE_PRIORITY[source], width=width)
            )

    # 1. Open Graph (secure_url 우선)
    og_secure = soup.find("meta", attrs={"property": "og:image:secure_url"})
    og_image = soup.find("meta", attrs={"property": "og:image"})
    if og_secure and og_secure.get("content"):
        add(og_secure["content"], "og")
    elif og_image and og_image.get("content"):
        add(og_image["content"], "og")

    # 2. Twitter Card
    twitter_image = soup.find("meta", attrs={"name": "twitter:image"}) or soup.find(
        "meta", attrs={"property": "twitter:image"}
    )
    if twitter_image and twitter_image.get("content"):
        add(twitter_image["content"], "twitter")

    # 3. <img> 태그: srcset 최대 해상도 → src, lazy loading 속성
    for img in soup.find_all("img"):
        srcset = img.get("srcset")
        best = _best_from_srcset(srcset) if srcset else None
        if best:
            add(best[0], "srcset", best[1] or None)
        else:
            add(img.get("src"), "img")

        lazy = img.get("data-src") or img.get("data-lazy") or img.get("data-lazy-src")
        if lazy:
            add(lazy, "data-attr")

    # 4. <picture><source srcset>
    for picture in soup.find_all("picture"):
        for source in picture.find_all("source"):
            srcset = source.get("srcset")
            best = _best_from_srcset(srcset) if srcset else None
            if best:
                add(best[0], "picture", best[1] or None)

    # 우선순위 내림차순, 같은 우선순위는 문서 순서 유지 (sorted는 stable)
    return sorted(candidates, key=lambda c: -c.priority)


def extract_images_from_html(html: str, base_url: str) -> list[str]:
    """HTML에서 이미지 URL 목록을 우선순위 순으로 추출합니다. (중복 제거)"""
    return merge_image_sources([c.url for c in extract_image_candidates(html, base_url)])


def extract_images_from_markdown(text: str) -> list[str]:
    """
    markdown 본문에서 이미지 URL을 추출합니다.

    Example:
        >>> extract_images_from_markdown("a ![x](https://cdn.example.com/1.jpg) b")
        ['https://cdn.example.com/1.jpg']
    """
    if not text:
        return []
    return merge_image_sources(MARKDOWN_IMAGE_PATTERN.findall(text))


# ─────────────────────────────────────────────────────────────────────────────
# 필터링 / 병합
# ─────────────────────────────────────────────────────────────────────────────


def is_clip_image(raw: str) -> bool:
    """프로필 사진, 아이콘, UI 요소, 작은 썸네일이 아니면 True"""
    if not raw:
        return False

    lower_raw = raw.lower()
    if not lower_raw.startswith(("http://", "https://")):
        return False

    # 크기 패턴은 쿼리에 있을 수 있으므로 전체 URL로, 확장자는 경로로 검사
    lower_path = lower_raw.split("?", 1)[0]
    if lower_path.endswith(BLOCKED_EXTENSIONS):
        return False

    if any(pattern in lower_raw for pattern in BLOCKED_SIZE_PATTERNS):
        return False

    if any(keyword in lower_raw for keyword in BLOCKED_KEYWORDS):
        return False

    return True


def filter_clip_images(urls: Iterable[str]) -> list[str]:
    """클립에 부적합한 이미지를 제거합니다. (순서 유지, 중복 제거)"""
    return [url for url in merge_image_sources(urls) if is_clip_image(url)]


def merge_image_sources(*sources: Optional[Iterable[str]]) -> list[str]:
    """
    여러 이미지 목록을 순서대로 합칩니다.

    문자열 동일성 기준으로 중복을 제거하고 처음 등장한 순서를 유지합니다.

    Example:
        >>> merge_image_sources(["a", "b"], ["b", "c"])
        ['a', 'b', 'c']
    """
    merged: list[str] = []
    seen: set[str] = set()
    for source in sources:
        for url in source or ():
            if url and url not in seen:
                seen.add(url)
                merged.append(url)
    return merged


class ImageCollector:
    """
    FetchResult에서 최종 ImageSet을 만드는 수집기

    Usage:
        images = ImageCollector().collect(fetch_result)
    """

    def __init__(self, max_images: Optional[int] = None):
        self.max_images = max_images or settings.MAX_IMAGES

    def collect(self, fetch_result: FetchResult) -> list[str]:
        """
        페이지 이미지와 본문 이미지를 플랫폼 규칙에 따라 병합합니다.

        Args:
            fetch_result: 수집 결과 (platform은 최종 URL 기준 값)

        Returns:
            필터링/중복 제거된 이미지 URL 목록 (최대 max_images개)
        """
        page_images = merge_image_sources(
            fetch_result.images,
            extract_images_from_html(
                fetch_result.html_content or "",
                fetch_result.base_url or fetch_result.final_url,
            ),
        )
        content_images = extract_images_from_markdown(fetch_result.raw_text)

        if fetch_result.platform == PlatformTag.NAVER:
            ordered = merge_image_sources(content_images, page_images)
        else:
            ordered = merge_image_sources(page_images, content_images)

        images = filter_clip_images(ordered)[: self.max_images]
        logger.debug(
            f"이미지 수집: page={len(page_images)}, content={len(content_images)}, "
            f"final={len(images)} ({fetch_result.platform.value})"
        )
        return images
