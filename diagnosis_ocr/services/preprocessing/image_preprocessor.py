"""OCR 인식률 향상을 위한 이미지 전처리

처리 순서:
    1) 로드 + EXIF 회전 교정
    2) 그레이스케일
    3) 대비 확장 (자동 대비)
    4) 폭이 작으면 업스케일 (비율 유지)
    5) 고정 임계값 이진화
    6) PNG 저장

입력 바이트는 변경하지 않고 새 PNG 바이트를 반환합니다.
"""
import io
import logging
from dataclasses import dataclass, replace
from typing import Callable, Sequence

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from diagnosis_ocr.errors import DecodeError

logger = logging.getLogger(__name__)


# ---------- 로드+EXIF 회전 교정 ----------
def open_with_exif(img_bytes: bytes) -> Image.Image:
    """
    1) 로드 + EXIF 회전 교정: 카메라 회전 정보가 있으면 실제 픽셀을 회전
    """
    try:
        img = Image.open(io.BytesIO(img_bytes))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(f"이미지를 디코딩할 수 없습니다: {e}") from e
    return ImageOps.exif_transpose(img)


# ---------- 그레이스케일 ----------
def to_grayscale(img: Image.Image) -> Image.Image:
    """
    2) 그레이스케일: 투명 채널은 흰 배경 위에 합성 후 변환
    """
    if img.mode in ("RGBA", "LA", "PA"):
        rgba = img.convert("RGBA")
        bg = Image.new("RGBA", img.size, (255, 255, 255, 255))
        img = Image.alpha_composite(bg, rgba)
    if img.mode != "L":
        return img.convert("L")
    return img


# ---------- 대비 확장 ----------
def stretch_contrast(img: Image.Image, cutoff: float = 1.0) -> Image.Image:
    """
    3) 자동 대비: 상/하위 cutoff% 를 잘라낸 뒤 전체 범위로 확장
    """
    return ImageOps.autocontrast(img, cutoff=cutoff)


# ---------- 업스케일 ----------
def upscale_min_width(img: Image.Image, min_width: int = 1600, target_width: int = 1800) -> Image.Image:
    """
    4) 폭이 min_width 미만이면 target_width 로 확대 (비율 유지), 큰 이미지는 그대로
    """
    w, h = img.size
    if w >= min_width or w == 0:
        return img
    scale = target_width / float(w)
    new_size = (target_width, max(1, int(round(h * scale))))
    return img.resize(new_size, Image.Resampling.LANCZOS)


# ---------- 이진화 ----------
def binarize(img: Image.Image, threshold: int = 170) -> Image.Image:
    """
    5) 고정 임계값 이진화: 밝기 >= threshold → 흰색(255), 나머지 → 검정(0)
    """
    arr = np.asarray(to_grayscale(img))
    bw = np.where(arr >= threshold, 255, 0).astype(np.uint8)
    return Image.fromarray(bw)


# ---------- 저장 ----------
def save_png_bytes(img: Image.Image, compress_level: int = 6) -> bytes:
    """
    6) PNG 저장(무손실): 텍스트/기호 보존에 유리
    """
    buf = io.BytesIO()
    img.save(buf, format="PNG", compress_level=compress_level)
    return buf.getvalue()


def apply_pipeline(img: Image.Image, steps: Sequence[tuple[Callable, dict]]) -> Image.Image:
    """
    체이닝 실행 유틸. [(func, kwargs), ...] 형태로 전달된 스텝을 순서대로 적용.
    """
    for func, kwargs in steps:
        img = func(img, **kwargs)
    return img


@dataclass(frozen=True)
class Settings:
    """ImagePreprocessor 설정"""
    min_width: int = 1600
    target_width: int = 1800
    threshold: int = 170
    contrast_cutoff: float = 1.0
    compress_level: int = 6
    debug: bool = False


class ImagePreprocessor:
    """OCR 전 이미지 정규화기

    사용 예시:
        pre = ImagePreprocessor(Settings(threshold=160))
        png = pre.process_bytes(raw_bytes)
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()

    def steps(self, settings: Settings) -> list[tuple[Callable, dict]]:
        return [
            (to_grayscale, {}),
            (stretch_contrast, {"cutoff": settings.contrast_cutoff}),
            (upscale_min_width, {"min_width": settings.min_width, "target_width": settings.target_width}),
            (binarize, {"threshold": settings.threshold}),
        ]

    def process(self, img: Image.Image, **overrides) -> Image.Image:
        """PIL 이미지 전처리 (overrides 로 Settings 필드 일시 변경 가능)"""
        s = replace(self.settings, **overrides) if overrides else self.settings
        out = apply_pipeline(img, self.steps(s))
        if s.debug:
            logger.debug(f"[ImagePreprocessor] {img.size} {img.mode} → {out.size} {out.mode}")
        return out

    def process_bytes(self, data: bytes, **overrides) -> bytes:
        """이미지 바이트 → 전처리된 PNG 바이트

        Raises:
            DecodeError: 유효한 이미지가 아닌 경우
        """
        img = open_with_exif(data)
        out = self.process(img, **overrides)
        level = overrides.get("compress_level", self.settings.compress_level)
        return save_png_bytes(out, compress_level=level)


__all__ = [
    "open_with_exif",
    "to_grayscale",
    "stretch_contrast",
    "upscale_min_width",
    "binarize",
    "save_png_bytes",
    "apply_pipeline",
    "Settings",
    "ImagePreprocessor",
]
