from .document_pipeline import DocumentPipeline, handle_ocr_request

__all__ = [
    "DocumentPipeline",
    "handle_ocr_request",
]
