"""애플리케이션 설정 관리"""

import logging
import shutil
from pathlib import Path
from typing import List, Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# .env 파일 로드
load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # OCR 설정
    ocr_provider: Literal["tesseract", "dummy"] = Field(
        default="tesseract", description="OCR 제공자 (tesseract | dummy)"
    )
    ocr_lang: str = Field(default="deu", description="Tesseract 언어 힌트 (임상 문서 언어)")
    tesseract_cmd: str | None = Field(
        default=None, description="tesseract 실행 파일 경로 (없으면 PATH 사용)"
    )
    tesseract_config: str = Field(default="", description="Tesseract 추가 옵션 (예: --psm 6)")

    # 진단 그룹 코드
    allowed_codes: List[str] = Field(
        default_factory=lambda: ["SB1", "PS2"], description="허용 진단 그룹 코드 목록"
    )

    # PDF 설정
    pdf_dpi: int = Field(default=220, description="OCR용 PDF 래스터화 해상도")
    text_layer_min_chars: int = Field(
        default=30, description="텍스트 레이어가 유효하다고 볼 최소 비공백 문자 수"
    )

    # 이미지 전처리 설정
    binarize_threshold: int = Field(default=170, description="이진화 밝기 임계값 (0-255)")
    upscale_min_width: int = Field(default=1600, description="이 폭보다 작으면 업스케일")
    upscale_target_width: int = Field(default=1800, description="업스케일 목표 폭")
    contrast_cutoff: float = Field(default=1.0, description="자동 대비 컷오프 (%)")

    # 앱 설정
    app_debug: bool = Field(default=False, description="디버그 모드")
    log_level: str = Field(default="INFO", description="로그 레벨")
    max_upload_size_mb: int = Field(default=25, description="파일당 최대 크기 (MB)")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# 전역 설정 인스턴스
settings = Settings()


def setup_logging(level: str | None = None) -> None:
    """기본 로깅 설정 (설정의 log_level 사용)"""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )


def validate_settings() -> dict[str, str]:
    """설정 유효성 검사 및 경고 메시지 반환"""
    warnings = {}

    # OCR 설정 검증
    if settings.ocr_provider == "tesseract":
        if settings.tesseract_cmd:
            if not Path(settings.tesseract_cmd).exists():
                warnings["ocr"] = f"tesseract 실행 파일을 찾을 수 없습니다: {settings.tesseract_cmd}"
        elif shutil.which("tesseract") is None:
            warnings["ocr"] = (
                "Tesseract OCR 사용을 위해서는 tesseract 가 PATH 에 있거나 "
                "TESSERACT_CMD 환경변수가 필요합니다."
            )

    # 코드/전처리 설정 검증
    if not settings.allowed_codes:
        warnings["codes"] = "ALLOWED_CODES 가 비어 있어 진단 그룹을 찾을 수 없습니다."
    if not 0 <= settings.binarize_threshold <= 255:
        warnings["preprocess"] = (
            f"BINARIZE_THRESHOLD 는 0-255 범위여야 합니다: {settings.binarize_threshold}"
        )

    return warnings
