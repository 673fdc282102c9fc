"""
진단 그룹 코드 추출 모듈

정리된 OCR 텍스트에서 진단 그룹 코드(예: "SB1", "PS2")를 찾습니다.
OCR 노이즈에 강건하도록 여러 단계의 폴백 전략을 사용합니다.

해석 전략 (순서대로 시도, 첫 성공 시 반환):
    1. 앵커 검색: "gruppe" 뒤 최대 10개의 비영숫자 문자 다음에 오는
       문자 1-3개 + 숫자 1-2개 (문자 사이 공백 허용: "P S2", "p s 2")
    2. 토큰 폴백: 길이 2-6의 영숫자 토큰을 정규화하여 허용 코드와 비교
    3. 퍼지 폴백: 토큰과 허용 코드 간 Levenshtein 거리가 1 이하인 최근접 코드

정규화 규칙 (모든 후보에 적용):
    - 대문자 변환, 영숫자 외 문자 제거
    - Z → 2 (흔한 오인식)
    - 숫자 앞의 5 → S (흔한 오인식)

사용 예시:
    extractor = CodeExtractor(["SB1", "PS2"])
    extractor.extract("Diagnosegruppe: P S2 weitere Notizen")
    # "PS2"
"""
from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, Optional, Sequence, Tuple

from .text_cleaner import SOFT_HYPHEN

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_CODES: Tuple[str, ...] = ("SB1", "PS2")
GROUP_MARKER = "gruppe"
MAX_FUZZY_DISTANCE = 1

_QUOTES_RE = re.compile(r"[“”„\"']")
_HORIZONTAL_WS_RE = re.compile(r"[^\S\r\n]+")
# 숫자 자리의 Z, 문자 자리의 5 는 정규화 단계에서 보정되도록 허용.
# 코드 뒤에는 영숫자가 올 수 없음 ("P S 2 zur" 의 "z" 를 두 번째 숫자로 잡지 않음)
_ANCHORED_RE = re.compile(
    GROUP_MARKER + r"[^a-z0-9]{0,10}((?:[a-z5]\s?){1,3}[0-9z][0-9z]?)(?![a-z0-9])",
    re.IGNORECASE,
)
_TOKEN_RE = re.compile(r"\b([A-Za-z0-9]{2,6})\b")
_NON_ALNUM_RE = re.compile(r"[^A-Z0-9]")
_FIVE_BEFORE_DIGIT_RE = re.compile(r"5(?=\d)")


def normalize_code(candidate: str) -> str:
    """코드 후보를 정규화합니다.

    >>> normalize_code("p s z")
    'PS2'
    >>> normalize_code("P52")
    'PS2'
    """
    c = candidate.upper()
    c = _NON_ALNUM_RE.sub("", c)
    c = c.replace("Z", "2")
    return _FIVE_BEFORE_DIGIT_RE.sub("S", c)


def levenshtein(a: str, b: str) -> int:
    """두 문자열 사이의 편집 거리 (삽입/삭제/치환)"""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        cur = [i] + [0] * len(b)
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            cur[j] = min(prev[j] + 1, cur[j - 1] + 1, prev[j - 1] + cost)
        prev = cur
    return prev[-1]


def _prepare(text: str) -> str:
    # 따옴표 통일, 소프트 하이픈 제거, 가로 공백 축약 (개행 유지)
    t = _QUOTES_RE.sub('"', text)
    t = t.replace(SOFT_HYPHEN, "")
    return _HORIZONTAL_WS_RE.sub(" ", t)


class CodeExtractor:
    """허용 코드 집합이 주입된 진단 그룹 코드 추출기

    allowed_codes 는 순서를 유지한 채 중복 제거되며, 퍼지 매칭 동점 시
    이 순서가 우선순위가 됩니다. 비교는 정규화된 키로 하지만 반환값은
    설정된 표기(대문자, 영숫자만)를 그대로 사용합니다. 예: "Z1" → "Z1" (키 "21")
    """

    def __init__(self, allowed_codes: Optional[Iterable[str]] = None):
        codes = DEFAULT_ALLOWED_CODES if allowed_codes is None else allowed_codes
        # 정규화 키 → 설정된 코드 (삽입 순서 유지)
        self._by_key: Dict[str, str] = {}
        for code in codes:
            label = _NON_ALNUM_RE.sub("", code.upper())
            key = normalize_code(code)
            if key and key not in self._by_key:
                self._by_key[key] = label
        self.allowed_codes: Tuple[str, ...] = tuple(self._by_key.values())

    def extract(self, text: Optional[str]) -> Optional[str]:
        """텍스트에서 허용된 진단 그룹 코드를 찾습니다.

        Returns:
            허용 코드 문자열 또는 None (미검출)
        """
        if not text or not self.allowed_codes:
            return None
        prepared = _prepare(text)

        code = self._anchored(prepared)
        if code:
            logger.debug(f"앵커 검색으로 코드 발견: {code}")
            return code

        tokens = [normalize_code(m.group(1)) for m in _TOKEN_RE.finditer(prepared)]
        for tok in tokens:
            if tok in self._by_key:
                code = self._by_key[tok]
                logger.debug(f"토큰 폴백으로 코드 발견: {code}")
                return code

        code = self._fuzzy(tokens)
        if code:
            logger.debug(f"퍼지 폴백으로 코드 발견: {code}")
        return code

    def _anchored(self, prepared: str) -> Optional[str]:
        for m in _ANCHORED_RE.finditer(prepared):
            cand = normalize_code(m.group(1))
            if cand in self._by_key:
                return self._by_key[cand]
        return None

    def _fuzzy(self, tokens: Sequence[str]) -> Optional[str]:
        # 동점이면 먼저 나온 토큰, 그다음 allowed_codes 순서가 우선
        best: Optional[str] = None
        best_dist = MAX_FUZZY_DISTANCE + 1
        for tok in tokens:
            for key, code in self._by_key.items():
                d = levenshtein(tok, key)
                if d < best_dist:
                    best_dist = d
                    best = code
        return best if best_dist <= MAX_FUZZY_DISTANCE else None


def extract_diagnosis_group(
    text: Optional[str], allowed_codes: Optional[Iterable[str]] = None
) -> Optional[str]:
    """함수형 API: CodeExtractor(allowed_codes).extract(text)"""
    return CodeExtractor(allowed_codes).extract(text)


__all__ = [
    "DEFAULT_ALLOWED_CODES",
    "CodeExtractor",
    "extract_diagnosis_group",
    "normalize_code",
    "levenshtein",
]
