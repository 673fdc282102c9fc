"""이미지 전처리 모듈 테스트"""

import io

import numpy as np
import pytest
from PIL import Image

from diagnosis_ocr.errors import DecodeError
from diagnosis_ocr.services.preprocessing.image_preprocessor import (
    ImagePreprocessor,
    Settings,
    apply_pipeline,
    binarize,
    open_with_exif,
    save_png_bytes,
    stretch_contrast,
    to_grayscale,
    upscale_min_width,
)


# =============================================================================
# 테스트 픽스처
# =============================================================================

@pytest.fixture
def sample_rgb_image():
    """400x200 RGB 이미지"""
    return Image.new("RGB", (400, 200), color=(200, 200, 200))


@pytest.fixture
def sample_rgba_image():
    """100x100 RGBA 이미지 (완전 투명)"""
    return Image.new("RGBA", (100, 100), color=(0, 0, 0, 0))


@pytest.fixture
def gradient_image():
    """밝기 100~150 범위의 가로 그라디언트 (L)"""
    arr = np.tile(np.linspace(100, 150, 256).astype(np.uint8), (50, 1))
    return Image.fromarray(arr)


@pytest.fixture
def rotated_jpeg_bytes():
    """EXIF Orientation=6 (90도 회전) 이 기록된 300x100 JPEG"""
    img = Image.new("RGB", (300, 100), color=(255, 255, 255))
    exif = Image.Exif()
    exif[0x0112] = 6
    buf = io.BytesIO()
    img.save(buf, format="JPEG", exif=exif)
    return buf.getvalue()


# =============================================================================
# 단계별 함수 테스트
# =============================================================================

class TestOpenWithExif:
    """로드 + EXIF 회전 교정"""

    def test_exif_rotation_applied(self, rotated_jpeg_bytes):
        img = open_with_exif(rotated_jpeg_bytes)
        assert img.size == (100, 300)

    def test_invalid_bytes_raise_decode_error(self):
        with pytest.raises(DecodeError):
            open_with_exif(b"%PDF-1.4 not an image")

    def test_empty_bytes_raise_decode_error(self):
        with pytest.raises(DecodeError):
            open_with_exif(b"")


class TestGrayscale:
    """그레이스케일 변환"""

    def test_rgb_to_l(self, sample_rgb_image):
        assert to_grayscale(sample_rgb_image).mode == "L"

    def test_transparent_becomes_white(self, sample_rgba_image):
        gray = to_grayscale(sample_rgba_image)
        assert gray.mode == "L"
        assert gray.getpixel((0, 0)) == 255

    def test_l_unchanged(self):
        img = Image.new("L", (10, 10), color=7)
        assert to_grayscale(img) is img


class TestContrast:
    """대비 확장"""

    def test_stretch_to_full_range(self, gradient_image):
        out = stretch_contrast(gradient_image, cutoff=0)
        lo, hi = out.getextrema()
        assert lo == 0
        assert hi == 255

    def test_uniform_image_unchanged(self):
        img = Image.new("L", (10, 10), color=120)
        assert stretch_contrast(img).getextrema() == (120, 120)


class TestUpscale:
    """업스케일 (폭 기준)"""

    def test_small_image_upscaled(self, sample_rgb_image):
        out = upscale_min_width(sample_rgb_image)
        assert out.size == (1800, 900)

    def test_width_at_threshold_not_resized(self):
        img = Image.new("L", (1600, 10))
        assert upscale_min_width(img).size == (1600, 10)

    def test_large_image_not_downscaled(self):
        img = Image.new("L", (2400, 100))
        assert upscale_min_width(img).size == (2400, 100)

    def test_custom_sizes(self):
        img = Image.new("L", (100, 50))
        assert upscale_min_width(img, min_width=200, target_width=300).size == (300, 150)


class TestBinarize:
    """고정 임계값 이진화"""

    def test_threshold_boundary(self):
        arr = np.array([[169, 170, 171, 0, 255]], dtype=np.uint8)
        out = np.asarray(binarize(Image.fromarray(arr), threshold=170))
        assert out.tolist() == [[0, 255, 255, 0, 255]]

    def test_output_is_two_level(self, gradient_image):
        out = binarize(gradient_image, threshold=125)
        assert set(np.unique(np.asarray(out)).tolist()) <= {0, 255}


class TestUtils:
    """저장/체이닝 유틸"""

    def test_save_png_bytes(self, sample_rgb_image):
        data = save_png_bytes(sample_rgb_image)
        assert data[:8] == b"\x89PNG\r\n\x1a\n"

    def test_apply_pipeline(self, sample_rgb_image):
        out = apply_pipeline(sample_rgb_image, [(to_grayscale, {}), (upscale_min_width, {"min_width": 500, "target_width": 800})])
        assert out.mode == "L"
        assert out.size == (800, 400)


# =============================================================================
# ImagePreprocessor 클래스 테스트
# =============================================================================

class TestImagePreprocessor:
    """ImagePreprocessor 통합 테스트"""

    def test_default_settings(self):
        s = ImagePreprocessor().settings
        assert s.min_width == 1600
        assert s.target_width == 1800
        assert s.threshold == 170

    def test_process_bytes_output_decodable(self, png_bytes):
        out = ImagePreprocessor().process_bytes(png_bytes)
        img = Image.open(io.BytesIO(out))
        assert img.format == "PNG"
        assert img.mode == "L"
        assert img.size == (1800, 900)
        assert set(np.unique(np.asarray(img)).tolist()) <= {0, 255}

    def test_process_bytes_does_not_mutate_input(self, png_bytes):
        original = bytes(png_bytes)
        ImagePreprocessor().process_bytes(png_bytes)
        assert png_bytes == original

    def test_process_bytes_invalid(self):
        with pytest.raises(DecodeError):
            ImagePreprocessor().process_bytes(b"definitely not an image")

    def test_threshold_override(self, png_bytes):
        """overrides 로 임계값을 일시 변경 (흰 이미지 + 임계값 256 → 전부 검정)"""
        pre = ImagePreprocessor()
        out = Image.open(io.BytesIO(pre.process_bytes(png_bytes, threshold=256)))
        assert out.getextrema() == (0, 0)
        assert pre.settings.threshold == 170

    def test_custom_settings(self, png_bytes):
        pre = ImagePreprocessor(Settings(min_width=100, target_width=150))
        out = Image.open(io.BytesIO(pre.process_bytes(png_bytes)))
        assert out.size == (200, 100)

    def test_exif_rotation_before_upscale(self, rotated_jpeg_bytes):
        out = Image.open(io.BytesIO(ImagePreprocessor().process_bytes(rotated_jpeg_bytes)))
        assert out.size == (1800, 5400)
