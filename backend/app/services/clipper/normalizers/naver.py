"""
Naver Blog Normalizer

네이버 블로그 본문(모바일/iframe 추출 결과)을 정리합니다.

처리 순서:
1. 이미지 markdown 제거, 링크는 라벨만 유지
2. 줄 앞뒤 화살표/불릿, 굵은 글씨 별표, 장식선 제거
3. 네이버 UI 문구 제거 (이웃추가, 공감/댓글 카운터, 메뉴 라벨 ...)
4. 본문 시작 지점 탐색 (seeking → found)
5. 문단 재구성: 글자로 시작하는 긴 줄마다 새 문단
6. 짧은 문단 제거
"""

import re
from enum import Enum

from app.services.clipper.normalizers.common import IMAGE_MARKDOWN_RULES, link_label_rule
from app.services.clipper.normalizers.rules import (
    apply_substitutions,
    join_paragraphs,
    sub_rule,
)
from app.services.clipper.normalizers.vocabulary import (
    NAVER_CHROME_PHRASES,
    NAVER_CHROME_WORDS,
    NAVER_NAV_WORDS,
)

MIN_LINE_LENGTH = 3
CONTENT_START_LENGTH = 15
NEW_PARAGRAPH_MIN_LENGTH = 30
MIN_PARAGRAPH_LENGTH = 15

SPECIAL_CHAR_RULES = [
    sub_rule("leading-glyphs", r"^[>\-•▶►▷→◆◇■□●○★☆]+[ \t]*", flags=re.MULTILINE),
    sub_rule("trailing-arrows", r"[>\-▶►▷→]+[ \t]*$", flags=re.MULTILINE),
    sub_rule("bold-asterisks", r"\*{2,}"),
    sub_rule("decorative-line", r"^[#*>\-─│┃]+$", flags=re.MULTILINE),
    sub_rule("space-runs", r"[ \t]{3,}", "  "),
]

CHROME_RULES = [
    *[sub_rule(f"chrome-{i}", pattern) for i, pattern in enumerate(NAVER_CHROME_PHRASES)],
    sub_rule(
        "chrome-word-line",
        r"^[ \t]*(?:" + "|".join(map(re.escape, NAVER_CHROME_WORDS)) + r")[ \t]*\d*[ \t]*$",
        flags=re.MULTILINE,
    ),
]

# 네이버는 모든 링크를 라벨로 유지
_CLEANING_RULES = [
    *IMAGE_MARKDOWN_RULES,
    link_label_rule(lambda label: not label),
    *SPECIAL_CHAR_RULES,
    *CHROME_RULES,
]

_NAV_LINE = re.compile(r"^(?:" + "|".join(NAVER_NAV_WORDS) + r")\s*$")
_NEW_SECTION = re.compile(r"^[가-힣A-Za-z]")


class _SeekState(str, Enum):
    SEEKING = "seeking"
    FOUND = "found"


def extract_naver_content(text: str) -> list[str]:
    """
    본문 시작 지점을 찾아 본문 줄만 남깁니다.

    - 시작 전 빈 줄 skip
    - MIN_LINE_LENGTH자 미만 줄, 숫자만 있는 줄, 네비게이션 단어 줄은 항상 skip
    - CONTENT_START_LENGTH자를 넘는 줄에서 found 상태로 전환
    """
    state = _SeekState.SEEKING
    lines: list[str] = []

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        if len(line) < MIN_LINE_LENGTH:
            continue
        if line.isdigit():
            continue
        if _NAV_LINE.match(line):
            continue

        if state == _SeekState.SEEKING and len(line) > CONTENT_START_LENGTH:
            state = _SeekState.FOUND

        if state == _SeekState.FOUND:
            lines.append(line)

    return lines


def regroup_paragraphs(lines: list[str]) -> list[str]:
    """글자(한글/영문)로 시작하는 NEW_PARAGRAPH_MIN_LENGTH자 초과 줄마다 새 문단을 시작합니다."""
    paragraphs: list[str] = []
    current: list[str] = []

    for line in lines:
        if current and len(line) > NEW_PARAGRAPH_MIN_LENGTH and _NEW_SECTION.match(line):
            paragraphs.append(" ".join(current))
            current = []
        current.append(line)

    if current:
        paragraphs.append(" ".join(current))
    return paragraphs


def normalize_naver(raw: str) -> str:
    """
    네이버 블로그 텍스트를 정리합니다.

    Returns:
        빈 줄로 구분된 문단 문자열
    """
    if not raw:
        return ""

    text = apply_substitutions(raw, _CLEANING_RULES)
    paragraphs = regroup_paragraphs(extract_naver_content(text))
    return join_paragraphs(p for p in paragraphs if len(p) >= MIN_PARAGRAPH_LENGTH)
