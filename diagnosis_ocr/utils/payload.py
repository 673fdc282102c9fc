"""OCR 요청 페이로드 파싱

요청 형식:
    {"files": [{"name": "...", "mime": "...", "data": "<base64>"}, ...]}

- mime 키는 "mime", "mimeType", "mime_type" 중 하나를 허용
- data 는 base64 이며 "data:<mime>;base64," 접두사가 붙어 있을 수 있음
- 검증(InvalidPayload)은 파일 처리 전에 요청 전체에 대해 수행
- 디코딩(DecodeError)은 파일 단위로 수행하여 배치를 중단시키지 않음
"""
from __future__ import annotations

import base64
import binascii
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from diagnosis_ocr.errors import DecodeError, InvalidPayload
from diagnosis_ocr.models.envelopes import SourceFile


class FilePayload(BaseModel):
    """전송 인코딩 상태의 파일 객체"""
    name: str = Field(min_length=1)
    mime: str = Field(min_length=1, validation_alias=AliasChoices("mime", "mimeType", "mime_type"))
    data: str = Field(min_length=1, repr=False)

    def to_source_file(self, max_bytes: Optional[int] = None) -> SourceFile:
        """base64 를 디코딩하여 SourceFile 생성

        Raises:
            DecodeError: base64 디코딩 실패 또는 크기 초과
        """
        raw = decode_data(self.data)
        if max_bytes is not None and len(raw) > max_bytes:
            raise DecodeError(f"파일 크기 초과: {len(raw)} > {max_bytes} bytes")
        return SourceFile(name=self.name, mime_type=self.mime, raw_bytes=raw)


def strip_data_url(data: str) -> str:
    """'data:...;base64,' 접두사 제거"""
    if data.startswith("data:"):
        comma = data.find(",")
        if comma != -1:
            return data[comma + 1:]
    return data


def decode_data(data: str) -> bytes:
    """data URL 접두사를 제거하고 base64 디코딩 (공백/개행 허용)"""
    payload = "".join(strip_data_url(data).split())
    # 패딩이 빠진 입력도 허용
    payload += "=" * (-len(payload) % 4)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"base64 디코딩 실패: {e}") from e


def parse_ocr_request(body: Any) -> List[FilePayload]:
    """요청 본문을 검증하여 FilePayload 리스트 반환

    Raises:
        InvalidPayload: files 배열이 없거나 비어 있음 (MISSING_FILES),
            name/mime/data 가 빠진 파일 객체가 있음 (INVALID_FILE_OBJECT)
    """
    files = body.get("files") if isinstance(body, dict) else None
    if not isinstance(files, list) or not files:
        raise InvalidPayload("Files are required", error_code="MISSING_FILES")

    payloads: List[FilePayload] = []
    for item in files:
        try:
            payloads.append(FilePayload.model_validate(item))
        except ValidationError as e:
            raise InvalidPayload(
                "Each file must have name, mime, and data",
                error_code="INVALID_FILE_OBJECT",
            ) from e
    return payloads


__all__ = [
    "FilePayload",
    "strip_data_url",
    "decode_data",
    "parse_ocr_request",
]
