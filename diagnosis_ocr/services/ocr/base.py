"""OCR 서비스 기본 인터페이스

모든 OCR 서비스(TesseractOCR, DummyOCR)가 상속하는 기본 인터페이스.
통일된 OCRResultEnvelope 반환 타입 사용.

- extract_text(PIL Image): 엔진별 구현
- run_ocr_from_bytes(bytes): 이미지 바이트 디코딩 후 extract_text
- recognize(bytes): 파이프라인용 평탄화 결과 (RecognitionResult)
"""
from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod

from PIL import Image, UnidentifiedImageError

from diagnosis_ocr.errors import DecodeError, RecognitionError
from diagnosis_ocr.models.envelopes import OCRResultEnvelope, RecognitionResult

logger = logging.getLogger(__name__)


class BaseOCRService(ABC):
    """OCR 서비스 기본 추상 클래스

    필수 구현:
        - extract_text(Image.Image): 핵심 추상 메서드

    실패 시 None 을 반환하지 않고 DecodeError/RecognitionError 를 발생시킵니다.
    호출 측(파이프라인)이 파일 단위로 잡아 결과에 기록합니다.
    """

    lang: str = "unknown"

    @abstractmethod
    def extract_text(self, image: Image.Image) -> OCRResultEnvelope:
        """이미지에서 텍스트 추출 (핵심 추상 메서드)

        Args:
            image: PIL Image 객체

        Returns:
            OCRResultEnvelope 객체

        Raises:
            RecognitionError: OCR 엔진 실패
        """

    def run_ocr_from_bytes(self, image_bytes: bytes) -> OCRResultEnvelope:
        """바이트 데이터에서 OCR 실행"""
        try:
            image = Image.open(io.BytesIO(image_bytes))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise DecodeError(f"OCR 입력 이미지를 열 수 없습니다: {e}") from e
        return self.extract_text(image)

    def recognize(self, image_bytes: bytes) -> RecognitionResult:
        """이미지 바이트를 인식하여 텍스트/평균 신뢰도를 반환합니다."""
        envelope = self.run_ocr_from_bytes(image_bytes)
        result = RecognitionResult.from_envelope(envelope)
        logger.debug(f"[{self.__class__.__name__}] 인식 완료: {len(result.text)}자, 신뢰도 {result.confidence}")
        return result


__all__ = [
    "BaseOCRService",
    "RecognitionError",
]
