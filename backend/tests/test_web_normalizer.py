"""
Generic Web Normalizer 테스트
"""

from app.services.clipper.normalizers.web import (
    extract_main_zone,
    is_nav_line,
    normalize_web,
    remove_navigation_and_footer,
)

REAL_PARAGRAPH = (
    "A real paragraph that is definitely longer than fifty characters for content detection."
)

ARTICLE_FIXTURE = "\n".join(
    [
        "홈",
        "메뉴",
        "카테고리",
        "",
        "![cover](https://cdn.example.com/cover.jpg)",
        "",
        "이 글은 파이썬으로 웹 페이지 본문을 정리하는 방법을 설명합니다. "
        "불필요한 메뉴와 광고 문구를 제거하고 핵심 문단만 남기는 과정을 차례대로 살펴봅니다. "
        "예제 코드는 모두 표준적인 방식으로 작성했습니다.",
        "",
        "[자세히](https://example.com/more) 정리 규칙은 순서대로 적용되며, "
        "각 규칙은 독립적으로 테스트할 수 있도록 작게 나누어져 있습니다.",
        "",
        "문의: help@example.com",
        "",
        "© 2024 Example Corp. All rights reserved.",
    ]
)


class TestNormalizeWeb:
    def test_image_and_link_token_are_removed(self):
        raw = f"![a](http://i/a.png)\n\n[링크](http://x)\n\n{REAL_PARAGRAPH}"

        result = normalize_web(raw)

        assert REAL_PARAGRAPH in result
        assert "![" not in result
        assert "a.png" not in result
        assert "링크" not in result

    def test_representative_article(self):
        result = normalize_web(ARTICLE_FIXTURE)

        assert result.startswith("이 글은 파이썬으로")
        assert "정리 규칙은 순서대로 적용되며" in result
        assert "카테고리" not in result
        assert "cover.jpg" not in result
        assert "자세히" not in result
        assert "help@example.com" not in result
        assert "©" not in result
        assert len(result.split("\n\n")) == 2

    def test_idempotent(self):
        once = normalize_web(ARTICLE_FIXTURE)

        assert normalize_web(once) == once

    def test_idempotent_on_simple_input(self):
        raw = f"![a](http://i/a.png)\n\n[링크](http://x)\n\n{REAL_PARAGRAPH}"
        once = normalize_web(raw)

        assert normalize_web(once) == once

    def test_idempotent_when_short_paragraph_splits_nav_lines(self):
        raw = (
            f"{REAL_PARAGRAPH}\nHome\nAbout\n\n2024-01-01\n\nSearch\n"
            "A medium line of roughly forty chars ok."
        )
        once = normalize_web(raw)

        assert "A medium line of roughly forty chars ok." in once
        assert normalize_web(once) == once

    def test_link_label_is_kept(self):
        raw = (
            "Python 3.13 release notes are available on the "
            "[official documentation site](https://docs.python.org/3.13/whatsnew/) "
            "and describe the new interactive interpreter in detail."
        )

        result = normalize_web(raw)

        assert "official documentation site" in result
        assert "https://" not in result

    def test_json_prompt_block_is_dropped(self):
        prompt = '{"style_mode": "photo", "negative_prompt": "blurry"}'

        result = normalize_web(f"{REAL_PARAGRAPH}\n\n{prompt}")

        assert result == REAL_PARAGRAPH

    def test_empty_input(self):
        assert normalize_web("") == ""
        assert normalize_web("   \n\n  ") == ""

    def test_page_without_long_paragraph_is_empty(self):
        raw = "짧은 공지 하나만 있는 페이지입니다.\n\n두 번째 짧은 안내 문장입니다."

        assert normalize_web(raw) == ""

    def test_date_and_digits_only_paragraphs_are_dropped(self):
        raw = f"2024-05-01\n\n{REAL_PARAGRAPH}\n\n1234 5678 90"

        assert normalize_web(raw) == REAL_PARAGRAPH


class TestNavigationAndFooter:
    def test_nav_run_is_dropped_and_short_lines_suppressed(self):
        text = "\n".join(
            ["Home", "About", "Contact", "Short teaser text", REAL_PARAGRAPH]
        )

        result = remove_navigation_and_footer(text)

        assert "Home" not in result
        assert "Short teaser text" not in result
        assert REAL_PARAGRAPH in result

    def test_short_nav_run_is_kept(self):
        text = "\n".join(["Home", REAL_PARAGRAPH])

        result = remove_navigation_and_footer(text)

        assert result.split("\n") == ["Home", REAL_PARAGRAPH]

    def test_blank_line_ends_nav_run(self):
        text = "\n".join(["Home", "About", "", "Search", "Short teaser text"])

        result = remove_navigation_and_footer(text)

        assert result.split("\n") == ["Home", "About", "", "Search", "Short teaser text"]

    def test_nav_run_ended_by_blank_line_suppresses_short_lines(self):
        text = "\n".join(["홈", "메뉴", "검색", "", "Short teaser text", REAL_PARAGRAPH])

        result = remove_navigation_and_footer(text)

        assert "홈" not in result
        assert "Short teaser text" not in result
        assert REAL_PARAGRAPH in result

    def test_footer_drops_rest_of_paragraph(self):
        text = "\n".join(
            [REAL_PARAGRAPH, "", "Copyright 2024 Example", "Seoul, Korea", "", "Final words of the article."]
        )

        result = remove_navigation_and_footer(text)

        assert "Copyright" not in result
        assert "Seoul, Korea" not in result
        assert "Final words of the article." in result

    def test_is_nav_line(self):
        assert is_nav_line("로그인")
        assert is_nav_line("Sign in")
        assert is_nav_line("- item")
        assert not is_nav_line("Homemade bread recipe")
        assert not is_nav_line("This line is far too long to be a navigation label at all")


class TestExtractMainZone:
    def test_skips_short_leading_paragraphs(self):
        paragraphs = ["짧은 제목", "a" * 90, "b" * 40, "c" * 20]

        assert extract_main_zone(paragraphs) == ["a" * 90, "b" * 40]

    def test_stops_at_footer_paragraph(self):
        paragraphs = ["a" * 90, "© 2024 Example", "b" * 90]

        assert extract_main_zone(paragraphs) == ["a" * 90]

    def test_no_qualifying_paragraph_yields_nothing(self):
        assert extract_main_zone(["짧은 제목", "b" * 40]) == []
