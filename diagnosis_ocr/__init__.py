"""진단 그룹 코드 추출용 문서 OCR 파이프라인"""

__version__ = "0.1.0"
