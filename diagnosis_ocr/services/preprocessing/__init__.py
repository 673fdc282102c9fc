"""이미지 전처리 패키지
OCR 수행 전 이미지 품질 개선을 위한 전처리 기능을 제공합니다.
주요 모듈:
- image_preprocessor: 이미지 전처리 (회전 보정, 그레이스케일, 대비, 업스케일, 이진화)
"""
from .image_preprocessor import (
    ImagePreprocessor,
    Settings,
    # 로드/저장
    open_with_exif,
    save_png_bytes,
    # 변환
    to_grayscale,
    stretch_contrast,
    upscale_min_width,
    binarize,
    apply_pipeline,
)
__all__ = [
    "ImagePreprocessor",
    "Settings",
    "open_with_exif",
    "save_png_bytes",
    "to_grayscale",
    "stretch_contrast",
    "upscale_min_width",
    "binarize",
    "apply_pipeline",
]
