"""테스트 픽스처 및 설정"""

import io
from pathlib import Path
from typing import List, Optional

import pytest
from PIL import Image

from diagnosis_ocr.models.envelopes import OCRData, OCRItem, OCRMeta, OCRResultEnvelope, PageImage
from diagnosis_ocr.services.diagnosis.code_extractor import CodeExtractor
from diagnosis_ocr.services.ocr.base import BaseOCRService
from diagnosis_ocr.services.ocr.dummy_ocr import DummyOCR
from diagnosis_ocr.services.pipeline.document_pipeline import DocumentPipeline
from diagnosis_ocr.services.preprocessing.image_preprocessor import ImagePreprocessor


def make_png(width: int = 200, height: int = 100, color=(255, 255, 255)) -> bytes:
    """PNG 바이트 생성 헬퍼"""
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color=color).save(buf, format="PNG")
    return buf.getvalue()


class ScriptedOCR(BaseOCRService):
    """호출 순서대로 미리 정한 텍스트를 반환하는 OCR (호출 횟수 기록)"""

    def __init__(self, texts: List[str]):
        self.texts = list(texts)
        self.calls = 0
        self.lang = "deu"

    def extract_text(self, image: Image.Image) -> OCRResultEnvelope:
        text = self.texts[self.calls] if self.calls < len(self.texts) else ""
        self.calls += 1
        lines = text.splitlines()
        return OCRResultEnvelope(
            stage='ocr',
            data=OCRData(items=[OCRItem(rec_texts=lines, rec_scores=[0.9] * len(lines))]),
            meta=OCRMeta(items=len(lines), source='bytes', lang='deu', engine='ScriptedOCR'),
        )


class FakeRasterizer:
    """미리 만든 페이지를 반환하는 래스터화기 (dpi 기록)"""

    def __init__(self, page_count: int = 3, error: Optional[Exception] = None):
        self.pages = [PageImage(page_index=i, pixels=make_png(120 + i, 80)) for i in range(page_count)]
        self.error = error
        self.calls: List[int] = []

    def rasterize(self, pdf_bytes: bytes, dpi: int = 200) -> List[PageImage]:
        self.calls.append(dpi)
        if self.error is not None:
            raise self.error
        return self.pages


@pytest.fixture
def png_bytes():
    """200x100 흰색 PNG 바이트"""
    return make_png()


@pytest.fixture
def dummy_ocr_service():
    """'Diagnosegruppe: SB1' 을 반환하는 더미 OCR 서비스"""
    return DummyOCR(text="Arztbrief\nDiagnosegruppe: SB1\nBefund unauffällig")


@pytest.fixture
def code_extractor():
    return CodeExtractor(["SB1", "PS2"])


@pytest.fixture
def make_pipeline(code_extractor):
    """DocumentPipeline 생성 팩토리 (DI 프로바이더 미사용)"""

    def _make(ocr_service=None, rasterizer=None, text_layer="", progress_cb=None, **kwargs):
        return DocumentPipeline(
            preprocessor=ImagePreprocessor(),
            ocr_service=ocr_service or DummyOCR(text="Diagnosegruppe: SB1"),
            rasterizer=rasterizer or FakeRasterizer(),
            code_extractor=code_extractor,
            text_layer_extractor=lambda _pdf: text_layer,
            progress_cb=progress_cb,
            **kwargs,
        )

    return _make


@pytest.fixture
def page_writer():
    """convert_to_images 대역: 출력 디렉토리에 번호 붙은 PNG 를 쓰고 디렉토리를 기록"""

    class _Writer:
        def __init__(self):
            self.output_dirs: List[Path] = []
            self.dpis: List[int] = []
            self.page_count = 3

        def __call__(self, pdf_path: Path, output_dir: Path, dpi: int) -> None:
            assert pdf_path.exists()
            self.output_dirs.append(output_dir)
            self.dpis.append(dpi)
            for i in range(self.page_count):
                (output_dir / f"page-{i + 1}.png").write_bytes(make_png(100 + i, 50))

    return _Writer()
