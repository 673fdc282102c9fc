"""OCR 서비스 팩토리"""

from diagnosis_ocr.settings import settings

from .base import BaseOCRService
from .dummy_ocr import DummyOCR
from .tesseract_ocr import TesseractOCR


def get_ocr_service() -> BaseOCRService:
    """설정에 따라 적절한 OCR 서비스 반환

    Returns:
        BaseOCRService 인스턴스 (모두 OCRResultEnvelope 반환)
    """
    if settings.ocr_provider == "tesseract":
        return TesseractOCR(
            lang=settings.ocr_lang,
            config=settings.tesseract_config,
            tesseract_cmd=settings.tesseract_cmd,
        )
    elif settings.ocr_provider == "dummy":
        return DummyOCR(lang=settings.ocr_lang)
    else:
        raise ValueError(f"지원하지 않는 OCR 제공자: {settings.ocr_provider}")
