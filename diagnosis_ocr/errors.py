"""문서 OCR 파이프라인 예외 정의

- InvalidPayload: 요청 자체가 잘못된 경우 (파일 배열 없음, name/mime/data 누락)
- DecodeError: 이미지/PDF/전송 인코딩 디코딩 실패
- RasterizationError: PDF 페이지 래스터화 실패
- RecognitionError: OCR 엔진 실패

코드 미검출(ExtractionMiss)은 예외가 아니라 diagnosis_group=None 으로 표현합니다.
"""
from __future__ import annotations

from typing import Dict


class DocumentPipelineError(Exception):
    """파이프라인 공통 기본 예외"""


class InvalidPayload(DocumentPipelineError):
    """요청 단위 페이로드 오류 (파일 처리 전에 발생)"""

    def __init__(self, message: str, error_code: str = "INVALID_PAYLOAD"):
        super().__init__(message)
        self.error_code = error_code

    def to_dict(self) -> Dict[str, str]:
        return {"error_code": self.error_code, "error": str(self)}


class DecodeError(DocumentPipelineError):
    """디코딩할 수 없는 이미지/PDF 바이트"""


class RasterizationError(DocumentPipelineError):
    """PDF 페이지 변환 실패 또는 페이지 없음"""


class RecognitionError(DocumentPipelineError):
    """OCR 엔진 실행 실패"""


__all__ = [
    "DocumentPipelineError",
    "InvalidPayload",
    "DecodeError",
    "RasterizationError",
    "RecognitionError",
]
