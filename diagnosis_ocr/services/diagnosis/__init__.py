"""진단 그룹 코드 추출 패키지

OCR/텍스트 레이어 텍스트를 정리하고 진단 그룹 코드를 찾습니다.

주요 모듈:
- text_cleaner: 텍스트 정리 (하이픈 결합, 공백/개행 정리)
- code_extractor: 앵커 검색 + 토큰/퍼지 폴백 코드 추출
"""

from .text_cleaner import clean_text, is_mostly_empty

from .code_extractor import (
    CodeExtractor,
    extract_diagnosis_group,
    levenshtein,
    normalize_code,
)

__all__ = [
    # text_cleaner
    "clean_text",
    "is_mostly_empty",
    # code_extractor
    "CodeExtractor",
    "extract_diagnosis_group",
    "levenshtein",
    "normalize_code",
]
