"""
Generic Web Normalizer

일반 웹 아티클(reader 전략의 markdown 결과)을 정리합니다.
Twitter/X 처럼 전용 파이프라인이 없는 플랫폼도 이 파이프라인을 사용합니다.

처리 순서 (고정):
a. 이미지 markdown 제거
b. [label](url) → label (노이즈 라벨은 링크 전체 삭제)
c. 잔여 토큰 제거: 빈 괄호, [링크], URL, 이메일, 전화번호, 연속 공백
d. JSON/프롬프트 블록 문단 제거
e. 네비게이션/푸터 줄 제거 (collecting / suppressing 상태 머신)
f. 본문 영역 추출 (앞쪽 짧은 문단 skip, 긴 문단부터 본문 모드)
g. 최종 필터: 너무 짧은 문단, 기호/숫자/날짜만 있는 문단 제거

같은 결과를 다시 넣어도 결과가 바뀌지 않도록(idempotent) 구성되어 있습니다.
"""

import re
from enum import Enum

from app.services.clipper.normalizers.common import (
    IMAGE_MARKDOWN_RULES,
    drop_json_blocks,
    json_block_rules,
    link_label_rule,
)
from app.services.clipper.normalizers.rules import (
    LineKind,
    LineRule,
    ParagraphRule,
    apply_substitutions,
    classify_line,
    drop_paragraphs,
    join_paragraphs,
    split_paragraphs,
    squeeze_lines,
    sub_rule,
)
from app.services.clipper.normalizers.vocabulary import (
    FOOTER_PATTERNS,
    NAV_KEYWORDS_EN,
    NAV_KEYWORDS_KO,
)

# ─────────────────────────────────────────────────────────────────────────────
# 임계값
# ─────────────────────────────────────────────────────────────────────────────

NAV_LINE_MAX_LENGTH = 30
NAV_RUN_THRESHOLD = 3
# suppressing 상태를 끝내는 줄 길이
NAV_RESUME_MIN_LENGTH = 50
FOOTER_LINE_MAX_LENGTH = 100

LEADING_SKIP_LENGTH = 50
CONTENT_START_LENGTH = 80
CONTENT_KEEP_LENGTH = 30

MIN_PARAGRAPH_LENGTH = 10
DATE_STAMP_MAX_LENGTH = 20

# ─────────────────────────────────────────────────────────────────────────────
# c. 잔여 토큰
# ─────────────────────────────────────────────────────────────────────────────

GARBAGE_RULES = [
    sub_rule("bare-url", r"<?https?://[^\s<>]+>?"),
    sub_rule("email", r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+"),
    sub_rule(
        "phone",
        r"(?<!\d)(?:"
        r"\+\d{1,3}[-.\s]\d{1,4}[-.\s]\d{3,4}[-.\s]\d{4}"
        r"|\(?0\d{1,2}\)?[-.\s]?\d{3,4}[-.\s]\d{4}"
        r"|1[5-9]\d{2}-\d{4}"
        r")(?!\d)",
    ),
    sub_rule("empty-brackets", r"\[\s*\]"),
    sub_rule("empty-parens", r"\(\s*\)"),
    sub_rule("link-token", r"\[링크\]"),
]

# ─────────────────────────────────────────────────────────────────────────────
# e. 네비게이션 / 푸터 판별
# ─────────────────────────────────────────────────────────────────────────────

_NAV_KO = re.compile("|".join(re.escape(k) for k in NAV_KEYWORDS_KO))
_NAV_EN = re.compile(
    r"\b(?:" + "|".join(re.escape(k) for k in NAV_KEYWORDS_EN) + r")\b",
    re.IGNORECASE,
)
_BULLET_ITEM = re.compile(r"^(?:[-*+•·▪▸›>|]|\d{1,2}[.)])\s*\S")
_FOOTER = re.compile("|".join(FOOTER_PATTERNS), re.IGNORECASE)
_FOOTER_START = re.compile(
    r"^(?:©|\(c\)\s*\d{4}|copyright\b|all rights reserved|무단\s*전재|저작권자)",
    re.IGNORECASE,
)


def is_nav_line(line: str) -> bool:
    if len(line) >= NAV_LINE_MAX_LENGTH:
        return False
    return bool(_NAV_KO.search(line) or _NAV_EN.search(line) or _BULLET_ITEM.match(line))


def is_footer_line(line: str) -> bool:
    return len(line) <= FOOTER_LINE_MAX_LENGTH and bool(_FOOTER.search(line))


LINE_RULES = [
    LineRule("footer", LineKind.FOOTER, is_footer_line),
    LineRule("nav", LineKind.NAV, is_nav_line),
]


class _ChromeState(str, Enum):
    COLLECTING = "collecting"
    SUPPRESSING = "suppressing"


def remove_navigation_and_footer(text: str) -> str:
    """
    메뉴/카테고리 줄 묶음과 저작권 푸터를 제거합니다.

    - 메뉴 줄이 NAV_RUN_THRESHOLD개 이상 연속되면 묶음 전체를 버리고
      NAV_RESUME_MIN_LENGTH자를 넘는 줄이 나올 때까지 출력을 멈춥니다.
    - 푸터 줄은 해당 문단의 나머지와 함께 즉시 버립니다.
      (바로 앞에 쌓인 메뉴 줄도 푸터 영역으로 보고 함께 버림)
    - 빈 줄은 메뉴 묶음을 끝냅니다. (문단 경계를 넘어 묶음을 세지 않음)
    """
    output: list[str] = []
    pending: list[str] = []
    pending_nav = 0
    state = _ChromeState.COLLECTING
    in_footer_block = False

    def flush() -> None:
        nonlocal pending, pending_nav
        output.extend(pending)
        pending, pending_nav = [], 0

    for raw_line in text.split("\n"):
        line = raw_line.strip()

        if not line:
            in_footer_block = False
            if pending_nav >= NAV_RUN_THRESHOLD:
                pending, pending_nav = [], 0
                state = _ChromeState.SUPPRESSING
            else:
                flush()
            output.append("")
            continue

        if in_footer_block:
            continue

        if state == _ChromeState.SUPPRESSING:
            if len(line) <= NAV_RESUME_MIN_LENGTH:
                continue
            state = _ChromeState.COLLECTING

        kind = classify_line(line, LINE_RULES)

        if kind == LineKind.FOOTER:
            pending, pending_nav = [], 0
            in_footer_block = True
            continue

        if kind == LineKind.NAV:
            pending.append(line)
            pending_nav += 1
            continue

        if pending_nav >= NAV_RUN_THRESHOLD:
            pending, pending_nav = [], 0
            if len(line) <= NAV_RESUME_MIN_LENGTH:
                state = _ChromeState.SUPPRESSING
                continue
        else:
            flush()
        output.append(line)

    if pending_nav < NAV_RUN_THRESHOLD:
        flush()

    return "\n".join(output)


# ─────────────────────────────────────────────────────────────────────────────
# f. 본문 영역
# ─────────────────────────────────────────────────────────────────────────────


def is_footer_paragraph(paragraph: str) -> bool:
    return bool(_FOOTER_START.match(paragraph))


def extract_main_zone(paragraphs: list[str]) -> list[str]:
    """
    본문 영역을 추출합니다.

    본문 모드 진입 전에는 LEADING_SKIP_LENGTH자 미만 문단을 버리고,
    CONTENT_START_LENGTH자를 넘는 문단에서 본문 모드로 들어가
    이후 CONTENT_KEEP_LENGTH자를 넘는 문단만 남깁니다.
    첫 푸터 문단에서 멈춥니다.
    """
    kept: list[str] = []
    in_content = False

    for paragraph in paragraphs:
        if is_footer_paragraph(paragraph):
            break

        if in_content:
            if len(paragraph) > CONTENT_KEEP_LENGTH:
                kept.append(paragraph)
            continue

        if len(paragraph) > CONTENT_START_LENGTH:
            in_content = True
            kept.append(paragraph)
        elif len(paragraph) >= LEADING_SKIP_LENGTH:
            kept.append(paragraph)

    return kept


# ─────────────────────────────────────────────────────────────────────────────
# g. 최종 필터
# ─────────────────────────────────────────────────────────────────────────────

_DATE_STAMP = re.compile(r"^\d{4}[-./]\d{1,2}[-./]\d{1,2}")

FINAL_PARAGRAPH_RULES = [
    ParagraphRule("too-short", lambda p: len(p) < MIN_PARAGRAPH_LENGTH),
    ParagraphRule("punctuation-only", lambda p: re.fullmatch(r"[\W_]+", p) is not None),
    ParagraphRule("digits-only", lambda p: re.fullmatch(r"[\d\s]+", p) is not None),
    ParagraphRule(
        "date-stamp",
        lambda p: len(p) < DATE_STAMP_MAX_LENGTH and _DATE_STAMP.match(p) is not None,
    ),
]

_JSON_RULES = json_block_rules()
_CLEANING_RULES = [*IMAGE_MARKDOWN_RULES, link_label_rule(), *GARBAGE_RULES]


def normalize_web(raw: str) -> str:
    """
    일반 웹 텍스트를 정리합니다.

    Args:
        raw: reader/render 전략이 추출한 원본 텍스트 (markdown 포함 가능)

    Returns:
        빈 줄로 구분된 문단 문자열 (정리할 내용이 없으면 빈 문자열)
    """
    if not raw:
        return ""

    text = apply_substitutions(raw, _CLEANING_RULES)
    text = squeeze_lines(text)
    text = drop_json_blocks(text, _JSON_RULES)
    text = remove_navigation_and_footer(text)

    paragraphs = extract_main_zone(split_paragraphs(text))
    paragraphs = drop_paragraphs(paragraphs, FINAL_PARAGRAPH_RULES)
    return join_paragraphs(paragraphs)
