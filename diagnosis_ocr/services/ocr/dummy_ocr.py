"""더미 OCR 구현 (테스트용)"""

from typing import Optional

from PIL import Image

from diagnosis_ocr.models.envelopes import OCRData, OCRItem, OCRMeta, OCRResultEnvelope
from .base import BaseOCRService

DUMMY_TEXT = """
[Dummy-OCR]

Arztbrief

Patient: Max Mustermann
Geburtsdatum: 01.01.1970

Diagnosegruppe: SB1

Befund:
Unauffälliger Verlauf, Kontrolle in 6 Monaten.
""".strip()


class DummyOCR(BaseOCRService):
    """테스트용 더미 OCR 서비스 (이미지와 무관하게 고정 텍스트 반환)"""

    def __init__(self, text: Optional[str] = None, lang: str = "deu"):
        self.text = DUMMY_TEXT if text is None else text
        self.lang = lang

    def extract_text(self, image: Image.Image) -> OCRResultEnvelope:
        """더미 텍스트 반환

        Args:
            image: PIL Image 객체

        Returns:
            OCRResultEnvelope 객체
        """
        lines = self.text.splitlines()
        # 단순 텍스트만 - 상세 위치 정보 없음
        item = OCRItem(
            rec_texts=lines,
            rec_scores=[1.0] * len(lines),
            dt_polys=[],
        )

        return OCRResultEnvelope(
            stage='ocr',
            data=OCRData(items=[item]),
            meta=OCRMeta(
                items=len(lines),
                source='bytes',
                lang=self.lang,
                engine='DummyOCR'
            )
        )
