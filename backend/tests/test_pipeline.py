"""
ClipPipeline 테스트
"""

import pytest

from conftest import FakeStrategy, make_result

from app.services.clipper.errors import FetchError, ValidationError
from app.services.clipper.normalizers.vocabulary import COMMENTS_SECTION_MARKER
from app.services.clipper.orchestrator import ContentFetchOrchestrator
from app.services.clipper.pipeline import ClipAssembler, ClipPipeline
from app.services.clipper.schemas import ClipPayload, PlatformTag

OG_IMAGE = "https://cdn.example.com/images/og-cover.jpg"
ARTICLE = "A real paragraph that is definitely longer than fifty characters for content detection."

KOREAN_ARTICLE_HTML = """
<html>
  <head><meta property="og:image" content="https://cdn.example.com/images/og-cover.jpg"></head>
  <body>
    <article>
      <p>비동기 프로그래밍에서 가장 중요한 것은 각 작업의 수명을 명확하게 관리하는 것입니다. 작업이 언제 시작되고 언제 끝나는지 알 수 있어야 오류를 올바르게 처리할 수 있습니다.</p>
      <p>작업 그룹을 사용하면 하나의 범위 안에서 시작한 모든 작업이 범위를 벗어나기 전에 끝나거나 취소되도록 보장할 수 있습니다. 이 방식은 예외 전파도 단순하게 만들어 줍니다.</p>
      <p>타임아웃 역시 같은 원리로 다룰 수 있습니다. 범위에 시간 제한을 걸면 그 안의 모든 작업이 함께 정리되므로 남아 있는 소켓이나 브라우저 핸들을 따로 추적할 필요가 없습니다.</p>
    </article>
  </body>
</html>
"""


class RecordingAssembler:
    def __init__(self):
        self.payloads: list[ClipPayload] = []

    async def assemble(self, payload: ClipPayload) -> str:
        self.payloads.append(payload)
        return f"clip-{len(self.payloads)}"


def _pipeline(reader: FakeStrategy, render: FakeStrategy = None, **kwargs) -> ClipPipeline:
    strategies = [reader, render or FakeStrategy("render", error=RuntimeError("no browser"))]
    return ClipPipeline(orchestrator=ContentFetchOrchestrator(strategies=strategies), **kwargs)


class TestAcquire:
    @pytest.mark.asyncio
    async def test_builds_payload(self):
        reader = FakeStrategy(
            "reader",
            result=make_result(
                text=f"![cover]({OG_IMAGE})\n\n{ARTICLE}",
                html_content=f'<meta property="og:image" content="{OG_IMAGE}">',
                author="Jane Writer",
            ),
        )

        payload = await _pipeline(reader).acquire("https://example.com/a")

        assert payload.url == "https://example.com/a"
        assert payload.platform == PlatformTag.WEB
        assert payload.images == [OG_IMAGE]
        assert payload.author == "Jane Writer"
        assert payload.content.clean_text == ARTICLE

    @pytest.mark.asyncio
    async def test_normalizes_with_final_url_platform(self):
        raw = f"본문 내용입니다\n\n{COMMENTS_SECTION_MARKER}\n\n댓글 하나입니다"
        reader = FakeStrategy(
            "reader",
            result=make_result(text=raw, final_url="https://www.threads.net/@user/post/1"),
        )

        payload = await _pipeline(reader).acquire("https://bit.ly/x")

        assert payload.platform == PlatformTag.THREADS
        assert payload.content.thread.main_content == "본문 내용입니다"
        assert len(payload.content.thread.comments) == 1

    @pytest.mark.asyncio
    async def test_hands_payload_to_assembler(self):
        assembler = RecordingAssembler()
        reader = FakeStrategy("reader", result=make_result(text=ARTICLE))

        payload = await _pipeline(reader, assembler=assembler).acquire("https://example.com/a")

        assert isinstance(assembler, ClipAssembler)
        assert assembler.payloads == [payload]

    @pytest.mark.asyncio
    async def test_thin_content_still_reaches_assembler(self):
        assembler = RecordingAssembler()
        reader = FakeStrategy("reader", result=make_result(text=""))

        payload = await _pipeline(reader, assembler=assembler).acquire("https://example.com/a")

        assert payload.content.is_empty
        assert assembler.payloads == [payload]

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self):
        assembler = RecordingAssembler()
        reader = FakeStrategy("reader", error=RuntimeError("down"))

        with pytest.raises(FetchError):
            await _pipeline(reader, assembler=assembler).acquire("https://example.com/a")

        assert assembler.payloads == []


class TestAcquireCaptured:
    @pytest.mark.asyncio
    async def test_uses_captured_text_and_images(self):
        reader = FakeStrategy("reader")
        observed = "https://cdn.example.com/images/captured.jpg"

        payload = await _pipeline(reader).acquire_captured(
            "https://example.com/a", text=ARTICLE, images=[observed]
        )

        assert reader.calls == []
        assert payload.raw_text == ARTICLE
        assert payload.content.clean_text == ARTICLE
        assert payload.images == [observed]

    @pytest.mark.asyncio
    async def test_short_text_is_replaced_by_html_extraction(self):
        payload = await _pipeline(FakeStrategy("reader")).acquire_captured(
            "https://example.com/a", html=KOREAN_ARTICLE_HTML, text="짧음"
        )

        assert "작업 그룹을 사용하면" in payload.raw_text
        assert "작업 그룹을 사용하면" in payload.content.clean_text
        assert payload.images == [OG_IMAGE]

    @pytest.mark.asyncio
    async def test_hint_overrides_url_pattern(self):
        raw = f"본문 내용입니다\n\n{COMMENTS_SECTION_MARKER}\n\n댓글 하나입니다"

        payload = await _pipeline(FakeStrategy("reader")).acquire_captured(
            "https://example.com/a", text=raw, hint="threads"
        )

        assert payload.platform == PlatformTag.THREADS
        assert payload.content.thread is not None

    @pytest.mark.asyncio
    async def test_url_guard_still_applies(self):
        with pytest.raises(ValidationError):
            await _pipeline(FakeStrategy("reader")).acquire_captured(
                "http://192.168.0.10/router", text=ARTICLE
            )
