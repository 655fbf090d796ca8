"""
Render Strategy

headless 브라우저(Playwright Chromium)로 페이지 JS를 실행한 뒤 DOM에서
본문 텍스트, 이미지, 작성자 프로필을 추출합니다.

threads, instagram, twitter의 primary 전략이며 나머지 플랫폼의 fallback 전략입니다.

보안:
- 실행 전 대상 URL을 URL Guard(+DNS 확인)로 검증
- 브라우저가 보내는 모든 http(s) 요청을 route 핸들러에서 검증 후 거부된 주소는 abort
- 메인 문서의 리다이렉트 체인을 로드 후 다시 검증
  (Playwright route는 리다이렉트 hop을 따로 호출하지 않음)

리소스:
- 요청마다 브라우저를 새로 띄우고, 성공/예외/취소 모든 경로에서 close
"""

from typing import Awaitable, Callable, Optional

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Request, Route, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeout

from app.core.config import settings
from app.services.clipper.base import BaseFetchStrategy
from app.services.clipper.errors import FetchError, ValidationError
from app.services.clipper.platform import detect_platform
from app.services.clipper.schemas import FetchResult, PlatformTag
from app.services.clipper.url_guard import guard_request, validate

# ─────────────────────────────────────────────────────────────────────────────
# DOM 추출 스크립트 (page.evaluate)
# 반환 형식: {text, images, html, author, authorHandle, authorAvatar}
# ─────────────────────────────────────────────────────────────────────────────

THREADS_SCRIPT = r"""
() => {
    const meta = (p) => document.querySelector(`meta[property="${p}"]`)?.getAttribute('content') || '';
    const ogImage = meta('og:image');
    const ogTitle = meta('og:title');

    let authorHandle = '';
    let authorName = '';
    if (ogTitle) {
        let m = ogTitle.match(/^([^(]+)\s*\(@([a-zA-Z0-9_.]+)\)/);
        if (m) {
            authorName = m[1].trim();
            authorHandle = m[2];
        } else {
            m = ogTitle.match(/@([a-zA-Z0-9_.]+)/);
            if (m) authorHandle = m[1];
        }
    }
    if (!authorHandle) {
        const headerLink = document.querySelector('header a[href^="/@"]');
        if (headerLink) authorHandle = (headerLink.textContent || '').trim().replace('@', '');
    }

    let authorAvatar = '';
    for (const img of Array.from(document.querySelectorAll('header img'))) {
        const src = img.src || img.getAttribute('src');
        if (src && src.startsWith('http') && !src.includes('icon') && !src.includes('emoji')) {
            authorAvatar = src;
            break;
        }
    }
    if (!authorAvatar && ogImage) authorAvatar = ogImage;

    const mainArticle = document.querySelector('[role="main"] article')
        || document.querySelector('article[data-testid]')
        || document.querySelector('article');

    const lines = [];
    if (mainArticle) {
        for (const el of Array.from(mainArticle.querySelectorAll('div[dir="auto"], p, span'))) {
            const text = (el.textContent || '').trim();
            if (text.length < 3) continue;
            if (/^(like|reply|share|repost|view|follow|•|likes?|replies|reposts?|verified|ago|스레드|조회|회|댓글)$/i.test(text)) continue;
            if (/^\d+\s*(likes?|replies?|reposts?|views?)/i.test(text)) continue;
            if (/^(ago|week|day|month|year|hour|minute|second)s?$/i.test(text)) continue;
            if (text.startsWith('http')) continue;
            if (text.includes('조회') && text.includes('회') && text.length < 20) continue;
            if (text.length > 10) lines.push(text);
        }
    }
    let text = lines.join('\n');
    if (!text && mainArticle) text = (mainArticle.innerText || '').substring(0, 5000);

    const images = new Set();
    if (mainArticle) {
        for (const img of Array.from(mainArticle.querySelectorAll('img'))) {
            const src = img.src || img.getAttribute('src');
            if (!src || !src.startsWith('http')) continue;
            const alt = (img.alt || '').toLowerCase();
            const cls = (typeof img.className === 'string' ? img.className : '').toLowerCase();
            const width = img.naturalWidth || img.width || 0;
            const height = img.naturalHeight || img.height || 0;
            if (alt.includes('profile picture') || alt.includes('프로필 사진')) continue;
            if (cls.includes('avatar') || cls.includes('profile') || cls.includes('user')) continue;
            if (width * height > 0 && width * height < 150 * 150) continue;
            if (img.getBoundingClientRect().top > 1000) continue;
            if (height > 0 && (width / height > 3 || width / height < 0.3)) continue;
            images.add(src);
        }
    }
    if (ogImage && !Array.from(images).some((i) => i.includes(ogImage.split('/').pop() || ''))) {
        images.add(ogImage);
    }

    return {
        text,
        images: Array.from(images).slice(0, 20),
        html: '',
        author: authorName || (authorHandle ? `@${authorHandle}` : ''),
        authorHandle,
        authorAvatar,
    };
}
"""

INSTAGRAM_SCRIPT = r"""
() => {
    const meta = (sel) => document.querySelector(sel)?.getAttribute('content') || '';
    const ogImage = meta('meta[property="og:image"]');
    const ogTitle = meta('meta[property="og:title"]');
    const ogDescription = meta('meta[property="og:description"]');
    const metaDescription = meta('meta[name="description"]');

    let authorHandle = '';
    const headerLink = document.querySelector('header a[href^="/"]');
    if (headerLink) authorHandle = (headerLink.textContent || '').trim().replace(/^@/, '');
    if (!authorHandle && ogTitle) {
        let m = ogTitle.match(/Instagram의\s*([^\s님:]+)님?/);
        if (m) authorHandle = m[1];
        if (!authorHandle) {
            m = ogTitle.match(/^([^\s:]+)\s+on\s+Instagram/i);
            if (m) authorHandle = m[1];
        }
    }

    let authorAvatar = '';
    const profileImg = document.querySelector('header img[alt]');
    if (profileImg) {
        const src = profileImg.src || profileImg.getAttribute('src');
        if (src && src.includes('instagram')) authorAvatar = src;
    }
    if (!authorAvatar && ogImage) authorAvatar = ogImage;

    const mainArticle = document.querySelector('[role="main"] article') || document.querySelector('article');
    let caption = '';
    if (mainArticle) {
        for (const el of Array.from(mainArticle.querySelectorAll('div[dir="auto"], span, p'))) {
            const text = (el.textContent || '').trim();
            if (text.length < 5) continue;
            if (/^(like|comment|share|visit|view|profile|follow|message|comments?|likes?|shares?|view all|show more|hide|expand|save|send|report|copy link)$/i.test(text)) continue;
            if (/^\d+\s*(likes?|comments?|shares?|saves?|views?)/i.test(text)) continue;
            if (/^(ago|week|day|month|year|hour|minute|second)s?$/i.test(text)) continue;
            if (text.includes('http')) continue;
            if (text.length > 20) {
                caption = text;
                break;
            }
        }
    }
    if (!caption || caption.length < 20) caption = metaDescription || ogDescription;
    if (caption && caption.length > 2000) caption = caption.substring(0, 2000) + '...';

    const images = new Set();
    if (mainArticle) {
        for (const img of Array.from(mainArticle.querySelectorAll('img'))) {
            const rect = img.getBoundingClientRect();
            if (rect.top > 1200 || rect.width < 200 || rect.height < 200) continue;
            let best = '';
            if (img.srcset && /(640w|720w|1080w)/.test(img.srcset)) {
                const candidates = img.srcset.split(',')
                    .map((s) => {
                        const parts = s.trim().split(/\s+/);
                        return { url: parts[0], width: parseInt(parts[1] || '0', 10) };
                    })
                    .sort((a, b) => b.width - a.width);
                if (candidates.length > 0) best = candidates[0].url;
            }
            if (!best) best = img.src || img.getAttribute('src') || '';
            if (!best.startsWith('http')) continue;
            const alt = (img.alt || '').toLowerCase();
            if (alt.includes('profile picture') || alt.includes('프로필 사진')) continue;
            images.add(best);
        }
    }
    let imageList = Array.from(images);
    if (imageList.length === 0 && ogImage) imageList = [ogImage];

    return {
        text: caption || '',
        images: imageList.slice(0, 20),
        html: '',
        author: authorHandle,
        authorHandle,
        authorAvatar,
    };
}
"""

WEB_SCRIPT = r"""
() => {
    const ogImage = document.querySelector('meta[property="og:image"]')?.getAttribute('content') || '';
    const content = document.querySelector('article') || document.querySelector('main') || document.body;
    const texts = (sel) => Array.from(document.querySelectorAll(sel))
        .map((el) => (el.textContent || '').trim())
        .filter((t) => t.length > 0);
    const headings = texts('h1, h2, h3').slice(0, 10);
    const paragraphs = texts('p').filter((p) => p.length > 50).slice(0, 20);

    let images = Array.from(new Set(Array.from(document.querySelectorAll('img'))
        .map((img) => img.src || img.getAttribute('src') || '')
        .filter((src) => src && src.startsWith('http') && !src.endsWith('.svg'))));
    if (ogImage && !images.includes(ogImage)) images = [ogImage, ...images];

    return {
        text: [...headings, ...paragraphs].join('\n\n'),
        images,
        html: content ? content.innerHTML : '',
        author: '',
        authorHandle: '',
        authorAvatar: '',
    };
}
"""

PLATFORM_SCRIPTS: dict[PlatformTag, str] = {
    PlatformTag.THREADS: THREADS_SCRIPT,
    PlatformTag.INSTAGRAM: INSTAGRAM_SCRIPT,
}


class RenderStrategy(BaseFetchStrategy):
    """headless 렌더링 전략 (Playwright)"""

    name: str = "render"

    BROWSER_ARGS: list[str] = [
        "--disable-blink-features=AutomationControlled",
        "--disable-dev-shm-usage",
        "--no-sandbox",
    ]

    def __init__(
        self,
        user_agent: Optional[str] = None,
        headless: Optional[bool] = None,
        navigation_timeout_ms: Optional[int] = None,
        settle_ms: Optional[int] = None,
    ):
        super().__init__(user_agent=user_agent)
        self.headless = settings.RENDER_HEADLESS if headless is None else headless
        self.navigation_timeout_ms = navigation_timeout_ms or settings.RENDER_NAVIGATION_TIMEOUT_MS
        self.settle_ms = settings.RENDER_SETTLE_MS if settle_ms is None else settle_ms

    async def fetch(self, url: str, platform: PlatformTag) -> FetchResult:
        """
        브라우저로 페이지를 렌더링하고 DOM에서 콘텐츠를 추출합니다.

        Raises:
            ValidationError: 메인 문서 요청/리다이렉트가 거부된 주소인 경우
            FetchError: 브라우저 실행/탐색/스크립트 실패
        """
        await guard_request(url)
        logger.info(f"render 수집 시작: {url}")

        blocked_navigations: list[ValidationError] = []

        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=self.headless, args=self.BROWSER_ARGS)
                try:
                    context = await browser.new_context(
                        viewport={"width": 1280, "height": 800},
                        user_agent=self.user_agent,
                        locale="ko-KR",
                        timezone_id="Asia/Seoul",
                    )
                    await context.route("**/*", self.route_guard(blocked_navigations))
                    page = await context.new_page()

                    response = None
                    try:
                        response = await page.goto(
                            url,
                            wait_until="networkidle",
                            timeout=self.navigation_timeout_ms,
                        )
                    except PlaywrightTimeout:
                        logger.warning(f"render 페이지 로드 타임아웃, 부분 콘텐츠로 진행: {url}")
                    except PlaywrightError:
                        if blocked_navigations:
                            raise blocked_navigations[0]
                        raise

                    if blocked_navigations:
                        raise blocked_navigations[0]
                    self.check_redirect_chain(response)

                    # JavaScript 렌더링 완료 대기
                    await page.wait_for_timeout(self.settle_ms)

                    final_url = page.url
                    final_platform = detect_platform(final_url)
                    script = PLATFORM_SCRIPTS.get(final_platform, WEB_SCRIPT)
                    data = await page.evaluate(script) or {}
                finally:
                    await browser.close()

        except (ValidationError, FetchError):
            raise
        except PlaywrightError as e:
            logger.error(f"render 실패: {url} - {e}")
            raise FetchError(url, reason=f"렌더링 실패: {e}") from e

        raw_text = self.text_extractor.clean_text(data.get("text") or "")
        logger.info(
            f"render 수집 완료: {final_url} ({len(raw_text):,} chars, "
            f"{len(data.get('images') or [])} images)"
        )

        return FetchResult(
            url=url,
            final_url=final_url,
            raw_text=raw_text,
            html_content=data.get("html") or None,
            author=data.get("author") or None,
            author_handle=data.get("authorHandle") or None,
            author_avatar=data.get("authorAvatar") or None,
            images=[src for src in data.get("images") or [] if isinstance(src, str)],
            strategy=self.name,
            fetched_with=platform,
        )

    def route_guard(
        self, blocked_navigations: list[ValidationError]
    ) -> Callable[[Route, Request], Awaitable[None]]:
        """
        브라우저 컨텍스트의 모든 요청을 URL Guard로 검사하는 route handler를 만듭니다.

        거부된 요청은 중단하고, 메인 프레임 탐색이면 blocked_navigations에 기록합니다.
        """

        async def guard_route(route: Route, request: Request) -> None:
            if not request.url.startswith(("http://", "https://")):
                await route.continue_()
                return

            result = validate(request.url)
            if result.valid:
                await route.continue_()
                return

            logger.warning(f"render 하위 요청 차단 ({result.reason.value}): {request.url[:200]}")
            if request.is_navigation_request() and request.frame.parent_frame is None:
                blocked_navigations.append(ValidationError(request.url, result.reason))
            await route.abort("blockedbyclient")

        return guard_route

    @staticmethod
    def check_redirect_chain(response) -> None:
        """메인 문서 리다이렉트 체인의 모든 URL을 다시 검증합니다."""
        if response is None:
            return

        request = response.request.redirected_from
        while request is not None:
            result = validate(request.url)
            if not result.valid:
                raise ValidationError(request.url, result.reason)
            request = request.redirected_from

        result = validate(response.url)
        if not result.valid:
            raise ValidationError(response.url, result.reason)
