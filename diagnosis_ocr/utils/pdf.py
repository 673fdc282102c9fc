"""PDF 처리 유틸리티

- extract_text_layer: PDF 에 포함된 텍스트 레이어 추출 (PyMuPDF)
- scratch_directory: 고유한 임시 디렉토리 (종료/예외/중단 시 항상 삭제)
- convert_to_images: poppler(pdf2image)로 페이지별 PNG 파일 생성
- PdfRasterizer: PDF 바이트 → 페이지 순서대로 PageImage 리스트
"""

import logging
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List

import fitz
from pdf2image import convert_from_path

from diagnosis_ocr.errors import RasterizationError
from diagnosis_ocr.models.envelopes import PageImage

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "pdfpp-"
PAGE_PREFIX = "page"

# convert_to_images(pdf_path, output_dir, dpi) 형태의 변환기
Converter = Callable[[Path, Path, int], None]


def extract_text_layer(pdf_bytes: bytes) -> str:
    """PDF 텍스트 레이어를 페이지 순서대로 이어서 반환

    스캔 문서처럼 텍스트가 없거나 PDF 를 열 수 없으면 빈 문자열을 반환합니다.
    (이 경우 파이프라인은 OCR 로 넘어갑니다.)
    """
    try:
        with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
            return "\n".join(page.get_text() for page in doc)
    except Exception as e:
        logger.warning(f"텍스트 레이어 추출 실패, 빈 텍스트로 처리: {e}")
        return ""


@contextmanager
def scratch_directory(prefix: str = SCRATCH_PREFIX) -> Iterator[Path]:
    """호출마다 고유한 임시 디렉토리를 만들고, 블록을 벗어나면 내용과 함께 삭제"""
    with tempfile.TemporaryDirectory(prefix=prefix) as tmp:
        yield Path(tmp)


def convert_to_images(pdf_path: Path, output_dir: Path, dpi: int) -> None:
    """pdf2image(poppler)로 각 페이지를 output_dir 에 번호가 붙은 PNG 로 저장"""
    convert_from_path(
        str(pdf_path),
        dpi=dpi,
        output_folder=str(output_dir),
        fmt="png",
        output_file=PAGE_PREFIX,
        paths_only=True,
    )


class PdfRasterizer:
    """PDF 페이지 래스터화기

    변환기는 주입 가능하며(기본: convert_to_images), 모든 중간 파일은
    scratch_directory 범위 안에서만 존재합니다.
    """

    def __init__(self, converter: Converter | None = None, dpi: int = 200):
        self.converter = converter or convert_to_images
        self.dpi = dpi

    def rasterize(self, pdf_bytes: bytes, dpi: int | None = None) -> List[PageImage]:
        """PDF 바이트 → 페이지 순서대로 정렬된 PageImage 리스트

        Raises:
            RasterizationError: 변환 실패 또는 생성된 페이지 없음
        """
        dpi = dpi or self.dpi
        with scratch_directory() as work_dir:
            pdf_path = work_dir / "document.pdf"
            pdf_path.write_bytes(pdf_bytes)
            out_dir = work_dir / "pages"
            out_dir.mkdir()

            try:
                self.converter(pdf_path, out_dir, dpi)
            except RasterizationError:
                raise
            except Exception as e:
                raise RasterizationError(f"PDF 페이지 변환 실패: {e}") from e

            files = sorted(out_dir.glob(f"{PAGE_PREFIX}*.png"))
            if not files:
                raise RasterizationError("PDF 변환 결과 페이지가 없습니다")

            pages = [
                PageImage(page_index=i, pixels=f.read_bytes())
                for i, f in enumerate(files)
            ]
        logger.info(f"PDF 래스터화 완료: {len(pages)} 페이지 ({dpi} DPI)")
        return pages


def rasterize(pdf_bytes: bytes, dpi: int = 200) -> List[PageImage]:
    """함수형 API: 기본 변환기로 PDF 를 래스터화"""
    return PdfRasterizer(dpi=dpi).rasterize(pdf_bytes)
