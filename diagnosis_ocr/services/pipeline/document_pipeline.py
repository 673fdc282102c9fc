from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from diagnosis_ocr.models.envelopes import (
    BatchResult,
    ExtractionFailure,
    ExtractionOutcome,
    ExtractionSuccess,
    PageImage,
    SourceFile,
)
from diagnosis_ocr.services.diagnosis.text_cleaner import clean_text, is_mostly_empty
from diagnosis_ocr.utils.payload import FilePayload, parse_ocr_request

logger = logging.getLogger(__name__)

Event = Dict[str, Any]
ProgressCB = Optional[Callable[[Event], None]]

DEFAULT_OCR_DPI = 220
DEFAULT_TEXT_LAYER_MIN_CHARS = 30


class DocumentPipeline:
    """
    문서 OCR + 진단 그룹 코드 추출 파이프라인:
    1) PDF/이미지 판별
    2) PDF: 텍스트 레이어 추출 → 거의 비어 있으면 페이지 래스터화 후 페이지별 OCR
       (코드가 발견되는 즉시 나머지 페이지는 OCR 하지 않음)
    3) 이미지: 전처리 → OCR 1회
    4) 텍스트 정리 → 코드 추출 → 파일별 결과(ExtractionSuccess | ExtractionFailure)

    - 배치는 입력 순서를 유지하며, 파일 하나의 실패가 다른 파일 처리를 중단시키지 않습니다.
    - 페이지 누적 텍스트는 파일 단위 지역 변수로만 유지합니다(파일 간 공유 상태 없음).
    - 진행 상황은 progress_cb 로 이벤트(dict)를 전달합니다:
      {'stage': 'text_layer' | 'rasterize' | 'preprocess' | 'ocr' | 'extract',
       'status': 'start' | 'progress' | 'end', 'ts': <epoch_seconds>, ...}

    의존성은 생성자 주입으로 전달합니다. None 이면 중앙 DI 프로바이더(diagnosis_ocr.deps)를 사용합니다.
    - preprocessor: ImagePreprocessor (process_bytes)
    - ocr_service: BaseOCRService (recognize)
    - rasterizer: PdfRasterizer (rasterize)
    - code_extractor: CodeExtractor (extract)
    - text_layer_extractor: Callable[[bytes], str]
    """

    def __init__(
        self,
        *,
        preprocessor=None,
        ocr_service=None,
        rasterizer=None,
        code_extractor=None,
        text_layer_extractor: Optional[Callable[[bytes], str]] = None,
        ocr_dpi: int = DEFAULT_OCR_DPI,
        text_layer_min_chars: int = DEFAULT_TEXT_LAYER_MIN_CHARS,
        max_upload_bytes: Optional[int] = None,
        progress_cb: ProgressCB = None,
    ) -> None:
        if preprocessor is None or ocr_service is None or rasterizer is None or code_extractor is None:
            from diagnosis_ocr.deps import (
                get_code_extractor,
                get_image_preprocessor,
                get_ocr_service,
                get_rasterizer,
            )

            preprocessor = preprocessor or get_image_preprocessor()
            ocr_service = ocr_service or get_ocr_service()
            rasterizer = rasterizer or get_rasterizer()
            code_extractor = code_extractor or get_code_extractor()
        if text_layer_extractor is None:
            from diagnosis_ocr.utils.pdf import extract_text_layer

            text_layer_extractor = extract_text_layer

        self.preprocessor = preprocessor
        self.ocr_service = ocr_service
        self.rasterizer = rasterizer
        self.code_extractor = code_extractor
        self.text_layer_extractor = text_layer_extractor
        self.ocr_dpi = ocr_dpi
        self.text_layer_min_chars = text_layer_min_chars
        self.max_upload_bytes = max_upload_bytes
        self._progress_cb = progress_cb

    # ---------- 내부 유틸 ----------
    @staticmethod
    def _ts() -> float:
        return time.time()

    def _emit(self, event: Event) -> None:
        if self._progress_cb:
            try:
                self._progress_cb(event)
            except Exception as e:
                # 콜백 오류는 파이프라인을 중단시키지 않음
                logger.debug(f"progress_cb 오류 무시: {e}")

    def _is_mostly_empty(self, text: str) -> bool:
        return is_mostly_empty(text, self.text_layer_min_chars)

    def _extract(self, text: str) -> Optional[str]:
        self._emit({'stage': 'extract', 'status': 'start', 'ts': self._ts()})
        code = self.code_extractor.extract(text)
        self._emit({'stage': 'extract', 'status': 'end', 'ts': self._ts(), 'code': code})
        return code

    def _recognize(self, image_bytes: bytes, page_index: Optional[int] = None) -> str:
        self._emit({'stage': 'preprocess', 'status': 'start', 'ts': self._ts(), 'page': page_index})
        pre = self.preprocessor.process_bytes(image_bytes)
        self._emit({'stage': 'preprocess', 'status': 'end', 'ts': self._ts(), 'page': page_index, 'bytes': len(pre)})

        self._emit({'stage': 'ocr', 'status': 'start', 'ts': self._ts(), 'page': page_index})
        result = self.ocr_service.recognize(pre)
        self._emit({
            'stage': 'ocr', 'status': 'end', 'ts': self._ts(),
            'page': page_index, 'confidence': result.confidence,
        })
        return result.text

    # ---------- PDF ----------
    def _ocr_pages(self, pages: Sequence[PageImage]) -> Tuple[str, Optional[str]]:
        """페이지 순서대로 OCR 하며 누적 텍스트에서 코드가 나오면 즉시 중단

        Returns:
            (누적 OCR 텍스트, 조기 종료 시 발견된 코드 또는 None)
        """
        ocr_text = ""
        for page in pages:
            ocr_text += "\n" + self._recognize(page.pixels, page_index=page.page_index)
            code = self._extract(clean_text(ocr_text))
            self._emit({
                'stage': 'ocr', 'status': 'progress', 'ts': self._ts(),
                'page': page.page_index, 'pages': len(pages), 'found': code is not None,
            })
            if code:
                logger.info(f"페이지 {page.page_index + 1}/{len(pages)} 에서 코드 발견, 나머지 페이지 OCR 생략")
                return ocr_text, code
        return ocr_text, None

    def _process_pdf(self, source: SourceFile) -> ExtractionSuccess:
        self._emit({'stage': 'text_layer', 'status': 'start', 'ts': self._ts()})
        layer_text = self.text_layer_extractor(source.raw_bytes) or ""
        had_text_layer = not self._is_mostly_empty(layer_text)
        self._emit({'stage': 'text_layer', 'status': 'end', 'ts': self._ts(), 'usable': had_text_layer})

        ocr_text = ""
        code: Optional[str] = None
        if not had_text_layer:
            self._emit({'stage': 'rasterize', 'status': 'start', 'ts': self._ts(), 'dpi': self.ocr_dpi})
            pages = self.rasterizer.rasterize(source.raw_bytes, dpi=self.ocr_dpi)
            self._emit({'stage': 'rasterize', 'status': 'end', 'ts': self._ts(), 'pages': len(pages)})
            ocr_text, code = self._ocr_pages(pages)

        if code is None:
            code = self._extract(clean_text(layer_text + "\n" + ocr_text))

        return ExtractionSuccess(
            name=source.name,
            diagnosis_group=code,
            source='pdf',
            had_text_layer=had_text_layer,
        )

    # ---------- 이미지 ----------
    def _process_image(self, source: SourceFile) -> ExtractionSuccess:
        text = self._recognize(source.raw_bytes)
        code = self._extract(clean_text(text))
        return ExtractionSuccess(name=source.name, diagnosis_group=code, source='image')

    # ---------- 파일 / 배치 ----------
    def process_file(self, source: SourceFile) -> ExtractionSuccess:
        """파일 1개 처리 (예외는 호출 측으로 전파)"""
        logger.info(f"문서 처리 시작: {source.name} ({source.mime_type})")
        if source.is_pdf:
            outcome = self._process_pdf(source)
        else:
            outcome = self._process_image(source)
        logger.info(f"문서 처리 완료: {source.name} → {outcome.diagnosis_group}")
        return outcome

    def _guarded(self, name: str, fn: Callable[[], ExtractionSuccess]) -> ExtractionOutcome:
        try:
            return fn()
        except Exception as e:
            logger.error(f"문서 처리 실패: {name}: {e}")
            return ExtractionFailure(name=name, error=str(e) or e.__class__.__name__)

    def process(self, batch: Iterable[SourceFile]) -> List[ExtractionOutcome]:
        """SourceFile 배치를 순서대로 처리하여 파일당 결과 1개씩 반환"""
        return [self._guarded(src.name, lambda src=src: self.process_file(src)) for src in batch]

    def process_payloads(self, payloads: Iterable[FilePayload]) -> List[ExtractionOutcome]:
        """전송 인코딩 상태의 파일들을 디코딩부터 파일 단위로 처리"""
        return [
            self._guarded(
                p.name,
                lambda p=p: self.process_file(p.to_source_file(self.max_upload_bytes)),
            )
            for p in payloads
        ]

    async def process_async(self, batch: Sequence[SourceFile]) -> List[ExtractionOutcome]:
        """기본 executor 에서 process 실행 (요청 처리 루프를 막지 않음)"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self.process(batch))

    def handle_request(self, body: Any) -> Dict[str, Any]:
        """OCR 요청 본문 → 응답 dict ({'results': [...]})

        Raises:
            InvalidPayload: 요청 전체가 잘못된 경우 (파일 처리 전에 발생)
        """
        payloads = parse_ocr_request(body)
        return BatchResult(results=self.process_payloads(payloads)).to_wire()


def handle_ocr_request(body: Any, pipeline: Optional[DocumentPipeline] = None) -> Dict[str, Any]:
    """함수형 API: 기본 파이프라인으로 OCR 요청 처리"""
    if pipeline is None:
        from diagnosis_ocr.deps import get_document_pipeline

        pipeline = get_document_pipeline()
    return pipeline.handle_request(body)


__all__ = [
    "DocumentPipeline",
    "handle_ocr_request",
    "DEFAULT_OCR_DPI",
    "DEFAULT_TEXT_LAYER_MIN_CHARS",
]
