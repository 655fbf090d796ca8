"""
Shared Normalization Steps

여러 플랫폼 파이프라인이 공유하는 정리 단계입니다.

- 이미지 markdown 제거
- markdown 링크 → 라벨 (노이즈 라벨은 삭제)
- JSON/프롬프트 블록 문단 제거
"""

import re
from typing import Callable, Iterable

from app.services.clipper.normalizers.rules import (
    ParagraphRule,
    SubstitutionRule,
    drop_paragraphs,
    join_paragraphs,
    split_paragraphs,
    sub_rule,
)
from app.services.clipper.normalizers.vocabulary import (
    JSON_PROMPT_MARKERS,
    LINK_NOISE_LABELS,
)

# JSON 형태 문단 판별 기준
JSON_BLOCK_MIN_LENGTH = 200
JSON_BLOCK_MIN_QUOTES = 10

IMAGE_MARKDOWN_RULES = [
    sub_rule("image-markdown", r"!\[.*?\]\(.*?\)", flags=re.DOTALL),
    sub_rule("image-placeholder", r"\[\[?Image\s*\d*:?[^\]]*\]\]?", flags=re.IGNORECASE),
]

# [label](url "title") - url 안의 괄호 한 단계까지 허용
MARKDOWN_LINK_PATTERN = re.compile(
    r"\[([^\[\]]*)\]\(((?:[^()\s]|\([^()\s]*\))*)(?:\s+\"[^\"]*\")?\)"
)


def is_noise_label(label: str) -> bool:
    return label.strip().lower() in LINK_NOISE_LABELS


def link_label_rule(is_noise: Callable[[str], bool] = is_noise_label) -> SubstitutionRule:
    """[label](url)을 label로 바꾸고, 노이즈 라벨이면 링크 전체를 지우는 규칙"""

    def replace(match: re.Match) -> str:
        label = match.group(1).strip()
        if is_noise(label):
            return ""
        return label

    return SubstitutionRule("markdown-link", MARKDOWN_LINK_PATTERN, replace)


def looks_like_json_block(paragraph: str) -> bool:
    return (
        len(paragraph) > JSON_BLOCK_MIN_LENGTH
        and "{" in paragraph
        and '":' in paragraph
        and paragraph.count('"') > JSON_BLOCK_MIN_QUOTES
    )


def json_block_rules(markers: Iterable[str] = JSON_PROMPT_MARKERS) -> list[ParagraphRule]:
    markers = tuple(markers)
    return [
        ParagraphRule("prompt-marker", lambda p: any(m in p for m in markers)),
        ParagraphRule("json-like", looks_like_json_block),
    ]


def drop_json_blocks(text: str, rules: list[ParagraphRule]) -> str:
    return join_paragraphs(drop_paragraphs(split_paragraphs(text), rules))
