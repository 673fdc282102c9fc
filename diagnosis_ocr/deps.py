"""
파이프라인 컴포넌트 DI(Dependency Injection) 공급자 모듈

주요 역할:
- 이미지 전처리기, OCR 서비스, PDF 래스터화기, 코드 추출기 인스턴스를 관리한다.
- 환경설정(settings)을 기반으로 각 컴포넌트의 옵션을 반영한다.
- 상태가 없는 컴포넌트는 @lru_cache 싱글톤으로, 파이프라인은 팩토리 형식으로 제공한다.
- clear_cached_providers()로 캐시를 초기화하여 설정 변경에 대응할 수 있다.
"""
from __future__ import annotations

from functools import lru_cache

from diagnosis_ocr.services.diagnosis.code_extractor import CodeExtractor
from diagnosis_ocr.services.ocr.base import BaseOCRService
from diagnosis_ocr.services.ocr.factory import get_ocr_service as _create_ocr_service
from diagnosis_ocr.services.pipeline.document_pipeline import DocumentPipeline, ProgressCB
from diagnosis_ocr.services.preprocessing.image_preprocessor import ImagePreprocessor, Settings as ImageSettings
from diagnosis_ocr.settings import settings
from diagnosis_ocr.utils.pdf import PdfRasterizer


# Image preprocessor provider (singleton)
@lru_cache(maxsize=1)
def get_image_preprocessor() -> ImagePreprocessor:
    """
    이미지 전처리기 싱글톤 반환 (설정의 임계값/업스케일 값 적용)
    """
    return ImagePreprocessor(settings=ImageSettings(
        min_width=settings.upscale_min_width,
        target_width=settings.upscale_target_width,
        threshold=settings.binarize_threshold,
        contrast_cutoff=settings.contrast_cutoff,
        debug=settings.app_debug,
    ))


# OCR service provider (singleton)
@lru_cache(maxsize=1)
def get_ocr_service() -> BaseOCRService:
    """
    설정(ocr_provider) 기반 OCR 서비스 싱글톤 반환
    """
    return _create_ocr_service()


# Rasterizer provider (singleton)
@lru_cache(maxsize=1)
def get_rasterizer() -> PdfRasterizer:
    """
    PDF 래스터화기 싱글톤 반환 (호출마다 별도 임시 디렉토리 사용)
    """
    return PdfRasterizer(dpi=settings.pdf_dpi)


# Code extractor provider (singleton)
@lru_cache(maxsize=1)
def get_code_extractor() -> CodeExtractor:
    """
    허용 코드 목록이 주입된 코드 추출기 싱글톤 반환
    """
    return CodeExtractor(settings.allowed_codes)


# Pipeline provider (factory: 요청마다 progress_cb 가 다를 수 있음)
def get_document_pipeline(*, progress_cb: ProgressCB = None) -> DocumentPipeline:
    """DocumentPipeline 인스턴스를 생성해 반환한다."""
    return DocumentPipeline(
        preprocessor=get_image_preprocessor(),
        ocr_service=get_ocr_service(),
        rasterizer=get_rasterizer(),
        code_extractor=get_code_extractor(),
        ocr_dpi=settings.pdf_dpi,
        text_layer_min_chars=settings.text_layer_min_chars,
        max_upload_bytes=settings.max_upload_size_mb * 1024 * 1024,
        progress_cb=progress_cb,
    )


def clear_cached_providers() -> None:
    """
    모든 싱글톤 캐시를 초기화하여 설정 변경을 즉시 반영
    """
    get_image_preprocessor.cache_clear()
    get_ocr_service.cache_clear()
    get_rasterizer.cache_clear()
    get_code_extractor.cache_clear()
