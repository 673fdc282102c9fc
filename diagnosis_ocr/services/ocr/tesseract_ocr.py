"""Tesseract 기반 OCR 서비스

pytesseract 의 image_to_data 결과를 (block, par, line) 단위로 묶어
라인별 텍스트/신뢰도/영역을 OCRResultEnvelope 로 반환합니다.

사용 예시:
    from diagnosis_ocr.services.ocr.tesseract_ocr import TesseractOCR

    ocr = TesseractOCR(lang="deu")
    result = ocr.recognize(png_bytes)
    # result.text, result.confidence
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

import pytesseract
from pytesseract import Output
from PIL import Image

from diagnosis_ocr.errors import RecognitionError
from diagnosis_ocr.models.envelopes import (
    OCRData,
    OCRItem,
    OCRMeta,
    OCRResultEnvelope,
)
from .base import BaseOCRService

logger = logging.getLogger(__name__)

LineKey = Tuple[int, int, int]


class TesseractOCR(BaseOCRService):
    """Tesseract OCR 서비스

    Attributes:
        lang: Tesseract 언어 코드 (기본값: 'deu')
        config: 추가 CLI 옵션 (예: '--psm 6')
    """

    def __init__(
        self,
        lang: str = "deu",
        config: str = "",
        tesseract_cmd: Optional[str] = None,
    ):
        self.lang = lang
        self.config = config
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def _predict(self, image: Image.Image) -> Dict[str, list]:
        """pytesseract 실행 (내부용)"""
        try:
            return pytesseract.image_to_data(
                image,
                lang=self.lang,
                config=self.config,
                output_type=Output.DICT,
            )
        except pytesseract.TesseractNotFoundError as e:
            raise RecognitionError(f"tesseract 실행 파일을 찾을 수 없습니다: {e}") from e
        except (pytesseract.TesseractError, RuntimeError) as e:
            raise RecognitionError(f"Tesseract OCR 실패: {e}") from e

    def _convert_to_ocr_item(self, data: Dict[str, list]) -> OCRItem:
        """image_to_data 결과를 라인 단위 OCRItem 으로 변환"""
        lines: Dict[LineKey, dict] = {}
        order: List[LineKey] = []

        for i, word in enumerate(data.get("text", [])):
            word = str(word).strip()
            if not word:
                continue
            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            if key not in lines:
                lines[key] = {"words": [], "confs": [], "box": None}
                order.append(key)
            line = lines[key]
            line["words"].append(word)

            try:
                conf = float(data["conf"][i])
            except (TypeError, ValueError):
                conf = -1.0
            if conf >= 0:
                line["confs"].append(conf / 100.0)

            x, y = int(data["left"][i]), int(data["top"][i])
            w, h = int(data["width"][i]), int(data["height"][i])
            box = line["box"]
            if box is None:
                line["box"] = [x, y, x + w, y + h]
            else:
                line["box"] = [min(box[0], x), min(box[1], y), max(box[2], x + w), max(box[3], y + h)]

        rec_texts: List[str] = []
        rec_scores: List[float] = []
        dt_polys: List[List[List[float]]] = []
        for key in order:
            line = lines[key]
            x0, y0, x1, y1 = line["box"]
            rec_texts.append(" ".join(line["words"]))
            rec_scores.append(sum(line["confs"]) / len(line["confs"]) if line["confs"] else 0.0)
            dt_polys.append([[x0, y0], [x1, y0], [x1, y1], [x0, y1]])

        return OCRItem(rec_texts=rec_texts, rec_scores=rec_scores, dt_polys=dt_polys)

    def extract_text(self, image: Image.Image) -> OCRResultEnvelope:
        """이미지에서 텍스트 추출

        Args:
            image: PIL Image 객체

        Returns:
            OCRResultEnvelope 객체

        Raises:
            RecognitionError: Tesseract 실행 실패
        """
        raw = self._predict(image)
        item = self._convert_to_ocr_item(raw)
        logger.debug(f"Tesseract 인식 라인 수: {len(item)}")

        return OCRResultEnvelope(
            stage='ocr',
            data=OCRData(items=[item]),
            meta=OCRMeta(
                items=len(item),
                source='bytes',
                lang=self.lang,
                engine='Tesseract',
            ),
        )


__all__ = ["TesseractOCR"]
