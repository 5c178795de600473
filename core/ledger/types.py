"""
장부 타입 정의

변경 이력 액션, 오류 종류 등 Ledger 시스템에서 사용하는 Enum 정의
"""

from enum import Enum


class ChangeAction(str, Enum):
    """변경 이력 액션

    str을 상속하여 DB/JSON에 그대로 저장 가능.
    """

    CREATE = "Create"  # 연산 생성
    DELETE = "Delete"  # 연산 삭제 (복원 가능)
    RESTORE = "Restore"  # 삭제 이력에서 복원


class LedgerErrorKind(str, Enum):
    """엔진 공개 연산의 실패 종류

    호출자는 LedgerResult.error로 분기한다.
    """

    VALIDATION = "VALIDATION"  # 입력 검증 실패
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"  # 잔액 부족
    RESTORE_FAILED = "RESTORE_FAILED"  # 복원 불가 (스냅샷 손상, Delete 아님)
    PERSISTENCE = "PERSISTENCE"  # 트랜잭션 내부 DB 오류 (롤백됨)


# 장부 테이블 (스키마/초기화에서 사용)
LEDGER_TABLES: tuple[str, ...] = (
    "currency",
    "operation",
    "balance",
    "rate_to_usd",
    "pair_rate",
    "operation_change",
    "fx_rate_display_config",
)
