"""
환율 표시 모듈

통화쌍별 정방향/역방향 표시 변환
"""

from core.fx.presentation import FxRatePresentationService

__all__ = [
    "FxRatePresentationService",
]
