"""
CrudLink 데이터 모델

하나의 (엔드포인트, 테이블, CRUD 코드) 분석 결과를 나타내는 데이터 모델입니다.
"""

from dataclasses import dataclass

from .endpoint import Endpoint
from .sql_mapping import SqlOperation


@dataclass(frozen=True)
class CrudLink:
    """
    엔드포인트와 테이블 간의 CRUD 연결

    CRUD 코드는 직접 지정할 수 없고 항상 operation으로부터 계산됩니다.

    Attributes:
        endpoint: 엔드포인트
        table: 테이블명
        operation: 연결의 근거가 된 SQL 매핑의 작업 종류
        sql_id: 연결의 근거가 된 SQL 매핑 식별자 (owner#operation_id)
    """

    endpoint: Endpoint
    table: str
    operation: SqlOperation
    sql_id: str = ""

    def __post_init__(self):
        if not self.operation.crud_code:
            raise ValueError(f"CRUD 코드를 결정할 수 없는 작업 종류입니다: {self.operation}")

    @property
    def crud_code(self) -> str:
        return self.operation.crud_code

    def to_dict(self) -> dict:
        """딕셔너리 형태로 변환"""
        return {
            "endpoint": self.endpoint.to_dict(),
            "table": self.table,
            "crud_code": self.crud_code,
            "operation": self.operation.value,
            "sql_id": self.sql_id,
        }
