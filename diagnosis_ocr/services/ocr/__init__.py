"""OCR 서비스 패키지

OCR 엔진을 통일된 인터페이스로 제공합니다.
모든 서비스가 OCRResultEnvelope를 반환합니다.

주요 모듈:
- base: OCR 서비스 기본 인터페이스 (BaseOCRService)
- tesseract_ocr: Tesseract 기반 구현체 (TesseractOCR)
- dummy_ocr: 테스트용 더미 구현체 (DummyOCR)
- factory: OCR 서비스 팩토리 함수
"""

from .base import BaseOCRService
from .dummy_ocr import DummyOCR
from .tesseract_ocr import TesseractOCR
from .factory import get_ocr_service

__all__ = [
    # 기본 인터페이스
    "BaseOCRService",
    # 서비스
    "TesseractOCR",
    "DummyOCR",
    # 팩토리
    "get_ocr_service",
]
