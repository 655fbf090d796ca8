"""
Image Collector 테스트
"""

from app.services.clipper.images import (
    ImageCollector,
    extract_images_from_html,
    extract_images_from_markdown,
    filter_clip_images,
    merge_image_sources,
)
from app.services.clipper.schemas import FetchResult, PlatformTag

OG_IMAGE = "https://cdn.example.com/images/og-cover.jpg"
BODY_IMAGE = "https://cdn.example.com/images/body-1.jpg"

PAGE_HTML = f"""
<html>
  <head>
    <meta property="og:image" content="{OG_IMAGE}">
  </head>
  <body>
    <img src="/images/inline.png">
    <img src="data:image/png;base64,AAAA">
    <img srcset="/images/small.jpg 320w, /images/large.jpg 1280w" src="/images/fallback.jpg">
  </body>
</html>
"""


class TestMergeImageSources:
    def test_dedup_preserves_first_seen_order(self):
        assert merge_image_sources(["a", "b", "c"], ["c", "d", "a"]) == ["a", "b", "c", "d"]

    def test_ignores_empty_sources(self):
        assert merge_image_sources(None, [], ["a", "", "a"]) == ["a"]


class TestExtraction:
    def test_html_images_are_absolute_and_prioritized(self):
        images = extract_images_from_html(PAGE_HTML, "https://blog.example.com/posts/1")

        assert images == [
            OG_IMAGE,
            "https://blog.example.com/images/large.jpg",
            "https://blog.example.com/images/inline.png",
        ]

    def test_secure_og_image_is_preferred(self):
        html = (
            '<meta property="og:image" content="http://cdn.example.com/a.jpg">'
            '<meta property="og:image:secure_url" content="https://cdn.example.com/a.jpg">'
        )

        assert extract_images_from_html(html, "https://example.com") == ["https://cdn.example.com/a.jpg"]

    def test_markdown_images(self):
        text = f'intro ![one]({BODY_IMAGE}) and ![two](https://cdn.example.com/2.png "title")'

        assert extract_images_from_markdown(text) == [BODY_IMAGE, "https://cdn.example.com/2.png"]


class TestFilterClipImages:
    def test_drops_ui_and_thumbnail_images(self):
        urls = [
            BODY_IMAGE,
            "https://cdn.example.com/favicon.ico",
            "https://cdn.example.com/sprite.png",
            "https://cdn.example.com/loading.gif?v=2",
            "https://cdn.example.com/logo.svg",
            "https://scontent.cdninstagram.com/v/t51/s150x150/thumb.jpg",
            "https://cdn.example.com/avatar/42.jpg",
            "ftp://cdn.example.com/file.jpg",
        ]

        assert filter_clip_images(urls) == [BODY_IMAGE]


class TestImageCollector:
    @staticmethod
    def _result(platform: PlatformTag, **extra) -> FetchResult:
        return FetchResult(
            url="https://blog.example.com/posts/1",
            final_url="https://blog.example.com/posts/1",
            raw_text=f"본문 ![photo]({BODY_IMAGE}) 끝",
            html_content=f'<meta property="og:image" content="{OG_IMAGE}">',
            platform=platform,
            **extra,
        )

    def test_page_images_first_for_web(self):
        images = ImageCollector().collect(self._result(PlatformTag.WEB))

        assert images == [OG_IMAGE, BODY_IMAGE]

    def test_content_images_first_for_naver(self):
        images = ImageCollector().collect(self._result(PlatformTag.NAVER))

        assert images == [BODY_IMAGE, OG_IMAGE]

    def test_observed_images_lead_page_images(self):
        observed = "https://cdn.example.com/images/rendered.jpg"

        images = ImageCollector().collect(self._result(PlatformTag.THREADS, images=[observed, OG_IMAGE]))

        assert images == [observed, OG_IMAGE, BODY_IMAGE]

    def test_max_images(self):
        images = ImageCollector(max_images=1).collect(self._result(PlatformTag.WEB))

        assert images == [OG_IMAGE]

    def test_relative_images_resolve_against_frame_document(self):
        result = FetchResult(
            url="https://blog.naver.com/user/1",
            final_url="https://blog.naver.com/user/1",
            html_content='<div class="se-main-container"><img src="/storage/photo.jpg"></div>',
            base_url="https://blogfiles.example.com/PostView.naver?blogId=user&logNo=1",
            platform=PlatformTag.NAVER,
        )

        images = ImageCollector().collect(result)

        assert images == ["https://blogfiles.example.com/storage/photo.jpg"]
