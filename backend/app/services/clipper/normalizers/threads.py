"""
Threads Normalizer

Threads 게시물 텍스트를 정리하고 본문/댓글 구조로 분리합니다.

처리 순서:
1. 이미지 markdown 및 단독 CDN 이미지 URL 제거
2. [label](url) → label (Threads 노이즈 라벨 확장 적용)
3. 잔여 토큰 제거 (빈 괄호, 깨진 링크 조각, CDN URL)
4. JSON/프롬프트 블록 제거
5. Threads UI 문구 제거 (Translate, Author, Report a problem ...)
6. 중복 문단 제거 (공백/대소문자 무시)
7. 본문/댓글 분리
   - [[[COMMENTS_SECTION]]] 표식 이후가 댓글 영역, 댓글끼리는 [[[COMMENT_SPLIT]]]
   - 표식이 없고 "Comments (N)" 헤더가 있으면 헤더 뒤 문단 하나를 댓글 하나로 변환

clean_text는 표식을 포함한 직렬화 형태이므로 다시 정규화해도 같은 구조가 나옵니다.
"""

import re

from app.services.clipper.normalizers.common import (
    IMAGE_MARKDOWN_RULES,
    drop_json_blocks,
    is_noise_label,
    json_block_rules,
    link_label_rule,
)
from app.services.clipper.normalizers.rules import (
    ParagraphRule,
    apply_substitutions,
    join_paragraphs,
    split_paragraphs,
    sub_rule,
)
from app.services.clipper.normalizers.vocabulary import (
    CDN_HOST_PATTERNS,
    COMMENT_SPLIT_MARKER,
    COMMENTS_HEADER_PATTERN,
    COMMENTS_SECTION_MARKER,
    THREADS_CHROME_LINE_PATTERNS,
    THREADS_JSON_PROMPT_MARKERS,
    THREADS_LINK_NOISE_PATTERNS,
    THREADS_USERNAME_LABEL_MAX_LENGTH,
    THREADS_USERNAME_LABEL_PATTERN,
)
from app.services.clipper.schemas import NormalizedContent, ThreadComment, ThreadStructure

_MARKERS = (COMMENTS_SECTION_MARKER, COMMENT_SPLIT_MARKER)
_LINK_NOISE = [re.compile(p, re.IGNORECASE) for p in THREADS_LINK_NOISE_PATTERNS]
_USERNAME_LABEL = re.compile(THREADS_USERNAME_LABEL_PATTERN)
_COMMENTS_HEADER = re.compile(COMMENTS_HEADER_PATTERN, re.IGNORECASE)


def _is_threads_noise_label(label: str) -> bool:
    if is_noise_label(label):
        return True
    if any(pattern.search(label) for pattern in _LINK_NOISE):
        return True
    return bool(_USERNAME_LABEL.match(label)) and len(label) < THREADS_USERNAME_LABEL_MAX_LENGTH


IMAGE_RULES = [
    *IMAGE_MARKDOWN_RULES,
    sub_rule("cdn-image-line", r"^https?://scontent\S+$", flags=re.MULTILINE),
    sub_rule(
        "image-url-line",
        r"^https?://\S+\.(?:jpg|jpeg|png|gif|webp)\S*$",
        flags=re.MULTILINE | re.IGNORECASE,
    ),
]

GARBAGE_RULES = [
    sub_rule("empty-brackets", r"\[\s*\]"),
    sub_rule("empty-parens", r"\(\s*\)"),
    sub_rule("link-token", r"\[링크\]"),
    sub_rule("broken-link-line", r"^\]\(https?://[^)]+\)$", flags=re.MULTILINE),
    sub_rule("broken-link-fragment", r"\]\(https?://[^\s)]+"),
    sub_rule("url-line", r"^https?://\S+$", flags=re.MULTILINE),
    *[sub_rule(f"cdn-url-{i}", pattern) for i, pattern in enumerate(CDN_HOST_PATTERNS)],
]

CHROME_RULES = [
    sub_rule("thread-metadata", r"Thread[ \t]*={3,}.*$", flags=re.MULTILINE),
    sub_rule("thread-metadata-bracket", r"\[Thread\s*={3,}[^\]]*\]", flags=re.IGNORECASE),
    *[
        sub_rule(f"chrome-{i}", pattern, flags=re.MULTILINE)
        for i, pattern in enumerate(THREADS_CHROME_LINE_PATTERNS)
    ],
]

_JSON_RULES = json_block_rules(THREADS_JSON_PROMPT_MARKERS) + [
    ParagraphRule("prompt-style", lambda p: '"prompt"' in p and '"style"' in p),
    ParagraphRule("json-start", lambda p: p.startswith(("{{", "[{"))),
]

_CLEANING_RULES = [
    *IMAGE_RULES,
    link_label_rule(_is_threads_noise_label),
    *GARBAGE_RULES,
    *CHROME_RULES,
]


# ─────────────────────────────────────────────────────────────────────────────
# 줄 단위 정리
# ─────────────────────────────────────────────────────────────────────────────


def clean_line(line: str) -> str:
    line = re.sub(r"https?://\S+", "", line.strip())
    return re.sub(r"\s{2,}", " ", line).strip()


def is_noise_line(line: str) -> bool:
    """참여 지표(좋아요 수 등), 기호, 잔여 토큰 줄이면 True"""
    if len(line) < 2:
        return True
    if re.fullmatch(r"\d+", line) and len(line) <= 4:
        return True
    if re.fullmatch(r"\d+\.?\d*[KM]?", line) and len(line) <= 5:
        return True
    if re.fullmatch(r"[!?.,]+", line):
        return True
    if line == "[링크]" or re.fullmatch(r"\[\s*\]", line):
        return True
    if "ig_cache_key" in line.lower():
        return True
    return False


def _dedupe_key(paragraph: str) -> str:
    return re.sub(r"\s+", " ", paragraph).strip().lower()


def deduplicate_paragraphs(text: str) -> str:
    """반복되는 문단을 제거합니다. (구분 표식 문단은 항상 유지)"""
    seen: set[str] = set()
    kept: list[str] = []
    for paragraph in split_paragraphs(text):
        if paragraph in _MARKERS:
            kept.append(paragraph)
            continue
        key = _dedupe_key(paragraph)
        if not key or key in seen:
            continue
        seen.add(key)
        kept.append(paragraph)
    return join_paragraphs(kept)


def _clean_section(text: str) -> str:
    paragraphs = []
    for paragraph in split_paragraphs(text):
        lines = [clean_line(line) for line in paragraph.split("\n")]
        lines = [line for line in lines if not is_noise_line(line)]
        if lines:
            paragraphs.append("\n".join(lines))
    return join_paragraphs(paragraphs)


# ─────────────────────────────────────────────────────────────────────────────
# 본문/댓글 구조
# ─────────────────────────────────────────────────────────────────────────────


def _isolate_markers(text: str) -> str:
    """표식이 다른 글자와 같은 문단에 붙어 있으면 독립 문단으로 분리합니다."""
    for marker in _MARKERS:
        text = text.replace(marker, f"\n\n{marker}\n\n")
    return text


def split_thread(text: str) -> ThreadStructure:
    """
    정리된 텍스트를 본문과 댓글 목록으로 나눕니다.

    Args:
        text: 표식 형태 또는 "Comments (N)" 헤더를 가진 텍스트

    Returns:
        ThreadStructure (댓글 id는 1부터)
    """
    if COMMENTS_SECTION_MARKER in text:
        main_raw, _, comments_raw = text.partition(COMMENTS_SECTION_MARKER)
        blocks = comments_raw.split(COMMENT_SPLIT_MARKER)
    else:
        header = _COMMENTS_HEADER.search(text)
        if header:
            main_raw = text[: header.start()]
            blocks = split_paragraphs(text[header.end():])
        else:
            main_raw, blocks = text, []

    # 본문 영역에 남은 댓글 구분 표식은 의미가 없음
    main_raw = main_raw.replace(COMMENT_SPLIT_MARKER, "")

    comments = [
        comment
        for comment in (_clean_section(block.replace(COMMENTS_SECTION_MARKER, "")) for block in blocks)
        if comment
    ]
    return ThreadStructure(
        main_content=_clean_section(main_raw),
        comments=[ThreadComment(id=i, text=c) for i, c in enumerate(comments, start=1)],
    )


def serialize_thread(thread: ThreadStructure) -> str:
    """본문 + 댓글 영역 표식 + 댓글 구분 표식 형태로 직렬화합니다."""
    if not thread.comments:
        return thread.main_content
    comments = f"\n\n{COMMENT_SPLIT_MARKER}\n\n".join(c.text for c in thread.comments)
    return join_paragraphs(p for p in (thread.main_content, COMMENTS_SECTION_MARKER, comments) if p)


def clean_threads_text(raw: str) -> str:
    """구조 분리 전까지의 정리 단계 (1~6)"""
    text = apply_substitutions(_isolate_markers(raw), _CLEANING_RULES)
    text = drop_json_blocks(text, _JSON_RULES)
    return deduplicate_paragraphs(text)


def normalize_threads(raw: str) -> NormalizedContent:
    """
    Threads 텍스트를 정리하고 본문/댓글 구조를 만듭니다.

    Returns:
        NormalizedContent (thread 필드에 본문/댓글 구조, clean_text는 직렬화 형태)
    """
    if not raw:
        return NormalizedContent(clean_text="", thread=ThreadStructure())

    thread = split_thread(clean_threads_text(raw))
    return NormalizedContent(clean_text=serialize_thread(thread), thread=thread)
