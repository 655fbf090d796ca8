"""
Threads Normalizer 테스트
"""

from app.services.clipper.normalizers.threads import (
    deduplicate_paragraphs,
    is_noise_line,
    normalize_threads,
    serialize_thread,
    split_thread,
)
from app.services.clipper.normalizers.vocabulary import (
    COMMENT_SPLIT_MARKER,
    COMMENTS_SECTION_MARKER,
)
from app.services.clipper.schemas import NormalizedContent

MAIN_TEXT = "오늘 배운 비동기 프로그래밍 내용을 정리해 봅니다."

MARKER_FIXTURE = "\n\n".join(
    [
        MAIN_TEXT,
        COMMENTS_SECTION_MARKER,
        "첫 번째 댓글입니다",
        COMMENT_SPLIT_MARKER,
        "두 번째 댓글입니다",
    ]
)


class TestNormalizeThreads:
    def test_marker_form_yields_two_comments(self):
        result = normalize_threads(MARKER_FIXTURE)

        assert isinstance(result, NormalizedContent)
        assert result.thread.main_content == MAIN_TEXT
        assert [c.text for c in result.thread.comments] == ["첫 번째 댓글입니다", "두 번째 댓글입니다"]
        assert [c.id for c in result.thread.comments] == [1, 2]

    def test_clean_text_is_serialized_form(self):
        result = normalize_threads(MARKER_FIXTURE)

        assert COMMENTS_SECTION_MARKER in result.clean_text
        assert result.clean_text.count(COMMENT_SPLIT_MARKER) == 1

    def test_normalizing_twice_keeps_structure(self):
        once = normalize_threads(MARKER_FIXTURE)
        twice = normalize_threads(once.clean_text)

        assert twice.thread == once.thread
        assert twice.clean_text == once.clean_text

    def test_markers_glued_to_text_are_isolated(self):
        raw = f"{MAIN_TEXT}{COMMENTS_SECTION_MARKER}첫 번째 댓글입니다{COMMENT_SPLIT_MARKER}두 번째 댓글입니다"

        result = normalize_threads(raw)

        assert result.thread.main_content == MAIN_TEXT
        assert len(result.thread.comments) == 2

    def test_short_comments_are_kept(self):
        raw = "\n\n".join(
            [MAIN_TEXT, COMMENTS_SECTION_MARKER, "ok", COMMENT_SPLIT_MARKER, "좋아"]
        )

        result = normalize_threads(raw)

        assert result.thread.main_content == MAIN_TEXT
        assert [c.text for c in result.thread.comments] == ["ok", "좋아"]
        assert normalize_threads(result.clean_text).thread == result.thread

    def test_comments_header_form(self):
        raw = "\n\n".join(
            [
                MAIN_TEXT,
                "Comments (2)",
                "좋은 정리 감사합니다",
                "저도 같은 문제를 겪었어요",
            ]
        )

        result = normalize_threads(raw)

        assert result.thread.main_content == MAIN_TEXT
        assert [c.text for c in result.thread.comments] == [
            "좋은 정리 감사합니다",
            "저도 같은 문제를 겪었어요",
        ]

    def test_without_comments(self):
        result = normalize_threads(MAIN_TEXT)

        assert result.thread.main_content == MAIN_TEXT
        assert result.thread.comments == []
        assert result.clean_text == MAIN_TEXT

    def test_ui_chrome_and_engagement_counts_are_removed(self):
        raw = "\n".join(
            [
                "[johndoe](https://www.threads.net/@johndoe)",
                MAIN_TEXT,
                "Translate",
                "123",
                "1.2K",
                "Report a problem with this post",
                "![photo](https://scontent.cdninstagram.com/v/t51/photo.jpg)",
                "https://scontent-ssn1-1.cdninstagram.com/v/t51/abc.jpg",
            ]
        )

        result = normalize_threads(raw)

        assert result.thread.main_content == MAIN_TEXT
        assert "johndoe" not in result.clean_text
        assert "Translate" not in result.clean_text

    def test_link_label_is_kept(self):
        raw = "참고 자료는 [공식 문서 링크 모음](https://docs.python.org/3/library/asyncio.html) 에 있습니다."

        result = normalize_threads(raw)

        assert result.thread.main_content == "참고 자료는 공식 문서 링크 모음 에 있습니다."

    def test_json_prompt_block_is_dropped(self):
        raw = f'{MAIN_TEXT}\n\n{{"prompt": "a cat", "style": "watercolor"}}'

        result = normalize_threads(raw)

        assert result.clean_text == MAIN_TEXT

    def test_empty_input(self):
        result = normalize_threads("")

        assert result.clean_text == ""
        assert result.thread.comments == []


class TestThreadHelpers:
    def test_deduplicate_ignores_case_and_whitespace(self):
        text = "Hello  World\n\nhello world\n\nAnother one"

        assert deduplicate_paragraphs(text) == "Hello  World\n\nAnother one"

    def test_deduplicate_keeps_short_paragraphs(self):
        assert deduplicate_paragraphs("본문입니다\n\nok\n\n좋아") == "본문입니다\n\nok\n\n좋아"

    def test_deduplicate_keeps_repeated_markers(self):
        text = f"본문\n\n{COMMENT_SPLIT_MARKER}\n\n댓글\n\n{COMMENT_SPLIT_MARKER}\n\n댓글 둘"

        assert deduplicate_paragraphs(text).count(COMMENT_SPLIT_MARKER) == 2

    def test_is_noise_line(self):
        assert is_noise_line("7")
        assert is_noise_line("42")
        assert is_noise_line("3.4K")
        assert is_noise_line("!!")
        assert is_noise_line("[링크]")
        assert not is_noise_line("좋은 글이네요")

    def test_split_ignores_empty_comment_blocks(self):
        text = f"{MAIN_TEXT}\n\n{COMMENTS_SECTION_MARKER}\n\n{COMMENT_SPLIT_MARKER}\n\n유일한 댓글입니다"

        thread = split_thread(text)

        assert [c.text for c in thread.comments] == ["유일한 댓글입니다"]
        assert thread.comments[0].id == 1

    def test_serialize_without_comments_is_main_content(self):
        thread = split_thread(MAIN_TEXT)

        assert serialize_thread(thread) == MAIN_TEXT
