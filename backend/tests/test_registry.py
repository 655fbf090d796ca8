"""
NormalizerRegistry 테스트
"""

from app.services.clipper.normalizers import NormalizerRegistry, normalize
from app.services.clipper.normalizers.vocabulary import COMMENTS_SECTION_MARKER
from app.services.clipper.schemas import NormalizedContent, PlatformTag

ARTICLE = "A real paragraph that is definitely longer than fifty characters for content detection."


class TestNormalizerRegistry:
    def test_web_pipeline(self):
        result = NormalizerRegistry.normalize(PlatformTag.WEB, f"![a](http://i/a.png)\n\n{ARTICLE}")

        assert isinstance(result, NormalizedContent)
        assert result.clean_text == ARTICLE
        assert result.thread is None

    def test_twitter_uses_web_pipeline(self):
        result = normalize(PlatformTag.TWITTER, f"[링크](http://x)\n\n{ARTICLE}")

        assert result.clean_text == ARTICLE

    def test_threads_pipeline_sets_structure(self):
        raw = f"본문 내용입니다\n\n{COMMENTS_SECTION_MARKER}\n\n댓글 하나입니다"

        result = normalize(PlatformTag.THREADS, raw)

        assert result.thread is not None
        assert result.thread.main_content == "본문 내용입니다"
        assert [c.text for c in result.thread.comments] == ["댓글 하나입니다"]

    def test_naver_pipeline(self):
        raw = "이웃추가\n오늘은 서울 근교의 조용한 카페를 다녀온 이야기를 적어보려고 합니다."

        result = normalize(PlatformTag.NAVER, raw)

        assert result.clean_text == "오늘은 서울 근교의 조용한 카페를 다녀온 이야기를 적어보려고 합니다."

    def test_instagram_and_youtube_pass_through(self):
        raw = "caption text #tag\n\n@someone"

        assert normalize(PlatformTag.INSTAGRAM, raw).clean_text == raw
        assert normalize(PlatformTag.YOUTUBE, raw).clean_text == raw

    def test_failing_normalizer_returns_empty_content(self, monkeypatch):
        def broken(raw: str) -> str:
            raise RuntimeError("boom")

        monkeypatch.setitem(NormalizerRegistry._normalizers, PlatformTag.WEB, broken)

        result = NormalizerRegistry.normalize(PlatformTag.WEB, ARTICLE)

        assert result.is_empty
        assert result.thread is None

    def test_register_replaces_pipeline(self, monkeypatch):
        monkeypatch.setattr(NormalizerRegistry, "_normalizers", dict(NormalizerRegistry._normalizers))

        NormalizerRegistry.register(PlatformTag.YOUTUBE, lambda raw: raw.upper())

        assert normalize(PlatformTag.YOUTUBE, "transcript").clean_text == "TRANSCRIPT"

    def test_none_input_is_treated_as_empty(self):
        assert normalize(PlatformTag.WEB, None).is_empty
