"""
Normalization Rule Primitives

정규화 파이프라인이 사용하는 규칙 테이블의 기본 단위를 정의합니다.

- SubstitutionRule: 패턴 → 치환 문자열 (순서대로 적용)
- LineRule: 패턴/조건 → 줄 종류 (처음 일치한 규칙이 결과)
- ParagraphRule: 이름 붙은 조건 → 문단 제거

각 파이프라인은 이 규칙들을 리스트로 선언하고 순서대로 적용합니다.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Union

Replacement = Union[str, Callable[[re.Match], str]]

PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n+")


@dataclass(frozen=True)
class SubstitutionRule:
    name: str
    pattern: re.Pattern
    replacement: Replacement = ""

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


def sub_rule(
    name: str,
    pattern: str,
    replacement: Replacement = "",
    flags: int = 0,
) -> SubstitutionRule:
    """SubstitutionRule 생성 단축 함수"""
    return SubstitutionRule(name, re.compile(pattern, flags), replacement)


def apply_substitutions(text: str, rules: Iterable[SubstitutionRule]) -> str:
    for rule in rules:
        text = rule.apply(text)
    return text


class LineKind(str, Enum):
    CONTENT = "content"
    NAV = "nav"
    FOOTER = "footer"
    NOISE = "noise"


@dataclass(frozen=True)
class LineRule:
    name: str
    kind: LineKind
    predicate: Callable[[str], bool]


def classify_line(
    line: str,
    rules: Iterable[LineRule],
    default: LineKind = LineKind.CONTENT,
) -> LineKind:
    """처음 일치한 규칙의 종류를 반환합니다. (입력은 strip된 줄)"""
    for rule in rules:
        if rule.predicate(line):
            return rule.kind
    return default


@dataclass(frozen=True)
class ParagraphRule:
    name: str
    predicate: Callable[[str], bool]


def matching_rule(paragraph: str, rules: Iterable[ParagraphRule]) -> Union[str, None]:
    """문단을 제거해야 하면 해당 규칙 이름, 아니면 None"""
    for rule in rules:
        if rule.predicate(paragraph):
            return rule.name
    return None


def drop_paragraphs(paragraphs: Iterable[str], rules: list[ParagraphRule]) -> list[str]:
    return [p for p in paragraphs if matching_rule(p, rules) is None]


def split_paragraphs(text: str) -> list[str]:
    """빈 줄 기준으로 문단을 나눕니다. (앞뒤 공백 제거, 빈 문단 제외)"""
    if not text:
        return []
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return [p.strip() for p in PARAGRAPH_BREAK.split(text) if p.strip()]


def join_paragraphs(paragraphs: Iterable[str]) -> str:
    return "\n\n".join(paragraphs)


def squeeze_lines(text: str) -> str:
    """연속 공백을 하나로 줄이고 각 줄의 앞뒤 공백을 제거합니다."""
    lines = (re.sub(r"[ \t\u00a0]{2,}", " ", line).strip() for line in text.split("\n"))
    return "\n".join(lines)
