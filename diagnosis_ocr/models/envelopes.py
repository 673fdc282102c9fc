"""파이프라인 Envelope 모델

문서 OCR 파이프라인의 단계별 데이터(OCR 원시 결과)와
파일 단위 입력/출력(SourceFile, PageImage, ExtractionOutcome)을
타입 안전하게 관리하는 Pydantic 모델 정의.
"""
from __future__ import annotations

from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar, Union
from typing_extensions import Annotated, TypeAlias

from pydantic import BaseModel, Field


# =============================================================================
# 기본 타입 정의
# =============================================================================

Stage: TypeAlias = Literal['text_layer', 'rasterize', 'preprocess', 'ocr', 'extract']
"""파이프라인 처리 단계"""

DocumentSource: TypeAlias = Literal['pdf', 'image']
"""문서 종류"""

TData = TypeVar('TData')
TMeta = TypeVar('TMeta')


class Envelope(BaseModel, Generic[TData, TMeta]):
    """파이프라인 단계별 데이터와 메타데이터를 감싸는 공통 Envelope 모델"""
    stage: Stage
    data: TData
    meta: TMeta
    version: str = '1.0'


# =============================================================================
# OCR 단계 모델
# =============================================================================

class OCRItem(BaseModel):
    """단일 이미지/페이지의 OCR 결과 (라인 단위)"""
    rec_texts: List[str] = Field(default_factory=list, description="인식된 텍스트 라인 리스트")
    rec_scores: List[float] = Field(default_factory=list, description="라인별 인식 신뢰도 (0-1)")
    dt_polys: List[List[List[float]]] = Field(default_factory=list, description="텍스트 라인 영역 폴리곤")

    def __len__(self) -> int:
        return len(self.rec_texts)

    @property
    def text(self) -> str:
        return "\n".join(self.rec_texts)


class OCRData(BaseModel):
    """OCR 단계 결과 데이터"""
    items: List[OCRItem] = Field(default_factory=list, description="OCR 결과 아이템 리스트")


class OCRMeta(BaseModel):
    """OCR 단계 결과 메타데이터"""
    items: Optional[int] = Field(default=None, description="총 인식된 텍스트 라인 수")
    source: Optional[Literal['bytes', 'nparray', 'path']] = Field(default=None, description="입력 소스 타입")
    lang: Optional[str] = Field(default=None, description="OCR 인식 언어")
    engine: Optional[str] = Field(default=None, description="사용된 OCR 엔진명")


OCRResultEnvelope = Envelope[OCRData, OCRMeta]


class RecognitionResult(BaseModel):
    """이미지 1장에 대한 OCR 결과 (평탄화된 텍스트)"""
    text: str = ""
    confidence: Optional[float] = Field(default=None, description="평균 단어 신뢰도 (0-1)")

    @classmethod
    def from_envelope(cls, envelope: OCRResultEnvelope) -> "RecognitionResult":
        """OCRResultEnvelope의 모든 아이템을 하나의 텍스트로 합칩니다."""
        texts: List[str] = []
        scores: List[float] = []
        for item in envelope.data.items:
            if item.rec_texts:
                texts.append(item.text)
            scores.extend(item.rec_scores)
        confidence = sum(scores) / len(scores) if scores else None
        return cls(text="\n".join(texts), confidence=confidence)


# =============================================================================
# 파일 단위 입력 모델
# =============================================================================

class SourceFile(BaseModel):
    """파이프라인 입력 단위 (전송 인코딩이 이미 디코딩된 상태)"""
    name: str
    mime_type: str
    raw_bytes: bytes = Field(repr=False)

    @property
    def is_pdf(self) -> bool:
        """MIME 타입 또는 파일 확장자로 PDF 여부 판별"""
        return self.mime_type.lower() == "application/pdf" or self.name.lower().endswith(".pdf")


class PageImage(BaseModel):
    """래스터화된 PDF 페이지 1장"""
    page_index: int = Field(ge=0, description="0부터 시작하는 페이지 번호")
    pixels: bytes = Field(repr=False, description="PNG 이미지 바이트")


# =============================================================================
# 파일 단위 출력 모델 (태그드 유니온)
# =============================================================================

class ExtractionSuccess(BaseModel):
    """파일 처리 성공 (코드 미검출 시 diagnosis_group=None)"""
    kind: Literal['success'] = 'success'
    name: str
    diagnosis_group: Optional[str] = None
    source: DocumentSource
    had_text_layer: Optional[bool] = Field(default=None, description="PDF에만 설정")

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            'name': self.name,
            'diagnosisGroup': self.diagnosis_group,
            'source': self.source,
        }
        if self.had_text_layer is not None:
            out['hadTextLayer'] = self.had_text_layer
        return out


class ExtractionFailure(BaseModel):
    """파일 처리 실패 (배치는 계속 진행)"""
    kind: Literal['failure'] = 'failure'
    name: str
    error: str

    def to_wire(self) -> Dict[str, Any]:
        return {'name': self.name, 'error': self.error}


ExtractionOutcome = Annotated[
    Union[ExtractionSuccess, ExtractionFailure],
    Field(discriminator='kind'),
]


class BatchResult(BaseModel):
    """배치 처리 결과 (입력 순서 유지)"""
    results: List[ExtractionOutcome] = Field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        return {'results': [r.to_wire() for r in self.results]}


__all__ = [
    'Stage',
    'DocumentSource',
    'Envelope',
    'OCRItem',
    'OCRData',
    'OCRMeta',
    'OCRResultEnvelope',
    'RecognitionResult',
    'SourceFile',
    'PageImage',
    'ExtractionSuccess',
    'ExtractionFailure',
    'ExtractionOutcome',
    'BatchResult',
]
