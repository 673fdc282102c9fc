"""OCR/텍스트 레이어 텍스트 정리

- 소프트 하이픈(U+00AD) 제거
- 줄바꿈으로 끊긴 단어 결합: "Diagnose-\\ngruppe" → "Diagnosegruppe"
- 줄 끝 공백 제거, 3개 이상 연속 개행 → 2개
- 앞뒤 공백 제거
"""
from __future__ import annotations

import re
from typing import Optional

SOFT_HYPHEN = "\u00ad"

# 글자 뒤 하이픈 + 공백(개행 포함), 다음 글자가 있을 때만 매칭.
# 앞뒤 글자는 lookaround 로만 확인하므로 "a-\nb-\nc" 도 한 번에 결합된다.
_HYPHEN_BREAK_RE = re.compile(r"(?<=[^\W\d_])-\s+(?=[^\W\d_])")
_TRAILING_WS_RE = re.compile(r"[ \t]+\n")
_MANY_NEWLINES_RE = re.compile(r"\n{3,}")


def _join_if_lowercase(m: re.Match) -> str:
    # 다음 글자가 소문자일 때만 결합 (움라우트/악센트 포함)
    return "" if m.string[m.end()].islower() else m.group(0)


def clean_text(text: Optional[str]) -> str:
    """인식/추출 텍스트를 정리합니다.

    멱등 함수입니다: clean_text(clean_text(t)) == clean_text(t)

    Args:
        text: 원본 텍스트 (None 허용)

    Returns:
        정리된 텍스트
    """
    if not text:
        return ""
    t = text.replace(SOFT_HYPHEN, "")
    t = _HYPHEN_BREAK_RE.sub(_join_if_lowercase, t)
    t = _TRAILING_WS_RE.sub("\n", t)
    t = _MANY_NEWLINES_RE.sub("\n\n", t)
    return t.strip()


def is_mostly_empty(text: Optional[str], min_chars: int = 30) -> bool:
    """공백을 제외한 문자 수가 min_chars 미만이면 True"""
    if not text:
        return True
    return len(re.sub(r"\s+", "", text)) < min_chars


__all__ = ["clean_text", "is_mostly_empty"]
