"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    CurrencyCreateRequest,
    CurrencyUpdateRequest,
    DisplayModeUpdateRequest,
    OperationCreateRequest,
)
from web.models.responses import (
    BalanceResponse,
    ChangeResponse,
    CurrencyResponse,
    DeleteResponse,
    DisplayModeResponse,
    HealthResponse,
    ImportResponse,
    OperationResponse,
    PairRateResponse,
    UsdRateResponse,
)

__all__ = [
    # Requests
    "OperationCreateRequest",
    "CurrencyCreateRequest",
    "CurrencyUpdateRequest",
    "DisplayModeUpdateRequest",
    # Responses
    "HealthResponse",
    "OperationResponse",
    "DeleteResponse",
    "BalanceResponse",
    "UsdRateResponse",
    "PairRateResponse",
    "DisplayModeResponse",
    "ChangeResponse",
    "CurrencyResponse",
    "ImportResponse",
]
