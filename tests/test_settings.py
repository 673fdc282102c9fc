"""설정 / DI 프로바이더 테스트"""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from diagnosis_ocr import deps
from diagnosis_ocr.services.ocr.dummy_ocr import DummyOCR
from diagnosis_ocr.settings import Settings, settings, setup_logging, validate_settings


@pytest.fixture
def fresh_providers():
    deps.clear_cached_providers()
    yield
    deps.clear_cached_providers()


class TestSettings:
    """Settings 기본값 / 환경변수 테스트"""

    def test_defaults(self, monkeypatch):
        for key in ("OCR_PROVIDER", "OCR_LANG", "ALLOWED_CODES", "PDF_DPI", "BINARIZE_THRESHOLD"):
            monkeypatch.delenv(key, raising=False)
        s = Settings(_env_file=None)
        assert s.ocr_provider == "tesseract"
        assert s.ocr_lang == "deu"
        assert s.allowed_codes == ["SB1", "PS2"]
        assert s.pdf_dpi == 220
        assert s.text_layer_min_chars == 30
        assert s.binarize_threshold == 170

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("OCR_PROVIDER", "dummy")
        monkeypatch.setenv("ALLOWED_CODES", '["SB1", "PS2", "XY3"]')
        monkeypatch.setenv("pdf_dpi", "300")
        s = Settings(_env_file=None)
        assert s.ocr_provider == "dummy"
        assert s.allowed_codes == ["SB1", "PS2", "XY3"]
        assert s.pdf_dpi == 300

    def test_invalid_provider(self, monkeypatch):
        monkeypatch.setenv("OCR_PROVIDER", "easyocr")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_setup_logging(self):
        with patch("logging.basicConfig") as mock_config:
            setup_logging("debug")
        assert mock_config.call_args.kwargs["level"] == "DEBUG"


class TestValidateSettings:
    """validate_settings() 경고 테스트"""

    def test_dummy_provider_no_warnings(self, monkeypatch):
        monkeypatch.setattr(settings, "ocr_provider", "dummy")
        monkeypatch.setattr(settings, "allowed_codes", ["SB1"])
        monkeypatch.setattr(settings, "binarize_threshold", 170)
        assert validate_settings() == {}

    def test_missing_tesseract_binary(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "ocr_provider", "tesseract")
        monkeypatch.setattr(settings, "tesseract_cmd", str(tmp_path / "missing-tesseract"))
        assert "ocr" in validate_settings()

    def test_tesseract_not_on_path(self, monkeypatch):
        monkeypatch.setattr(settings, "ocr_provider", "tesseract")
        monkeypatch.setattr(settings, "tesseract_cmd", None)
        with patch("diagnosis_ocr.settings.shutil.which", return_value=None):
            assert "ocr" in validate_settings()

    def test_empty_codes_and_bad_threshold(self, monkeypatch):
        monkeypatch.setattr(settings, "ocr_provider", "dummy")
        monkeypatch.setattr(settings, "allowed_codes", [])
        monkeypatch.setattr(settings, "binarize_threshold", 300)
        warnings = validate_settings()
        assert set(warnings) == {"codes", "preprocess"}


class TestProviders:
    """DI 프로바이더 테스트"""

    def test_singletons(self, fresh_providers, monkeypatch):
        monkeypatch.setattr(settings, "ocr_provider", "dummy")
        assert deps.get_ocr_service() is deps.get_ocr_service()
        assert isinstance(deps.get_ocr_service(), DummyOCR)
        assert deps.get_image_preprocessor() is deps.get_image_preprocessor()

    def test_settings_applied(self, fresh_providers, monkeypatch):
        monkeypatch.setattr(settings, "binarize_threshold", 150)
        monkeypatch.setattr(settings, "pdf_dpi", 300)
        monkeypatch.setattr(settings, "allowed_codes", ["PS2"])
        assert deps.get_image_preprocessor().settings.threshold == 150
        assert deps.get_rasterizer().dpi == 300
        assert deps.get_code_extractor().allowed_codes == ("PS2",)

    def test_clear_cached_providers(self, fresh_providers, monkeypatch):
        monkeypatch.setattr(settings, "allowed_codes", ["SB1"])
        first = deps.get_code_extractor()
        deps.clear_cached_providers()
        monkeypatch.setattr(settings, "allowed_codes", ["PS2"])
        second = deps.get_code_extractor()
        assert first is not second
        assert second.allowed_codes == ("PS2",)

    def test_document_pipeline_factory(self, fresh_providers, monkeypatch):
        monkeypatch.setattr(settings, "ocr_provider", "dummy")
        monkeypatch.setattr(settings, "max_upload_size_mb", 2)
        events = []
        pipeline = deps.get_document_pipeline(progress_cb=events.append)
        assert pipeline.ocr_service is deps.get_ocr_service()
        assert pipeline.max_upload_bytes == 2 * 1024 * 1024
        assert pipeline.ocr_dpi == settings.pdf_dpi
        assert deps.get_document_pipeline() is not pipeline

