"""
SQL 매핑 데이터 모델

SQL 선언(분류 전)과 SQL 매핑(분류 후), 그리고 SQL 분류 결과를 나타내는 데이터 모델입니다.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple


class SqlOperation(str, Enum):
    """SQL 작업 종류"""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    UNKNOWN = "UNKNOWN"

    @property
    def crud_code(self) -> str:
        """CRUD 코드 (S/I/U/D). UNKNOWN은 빈 문자열"""
        if self is SqlOperation.UNKNOWN:
            return ""
        return self.value[0]

    @classmethod
    def from_name(cls, name: Optional[str]) -> "SqlOperation":
        """태그명이나 어노테이션명(select, Insert 등)으로부터 SqlOperation 조회"""
        try:
            return cls((name or "").strip().upper())
        except ValueError:
            return cls.UNKNOWN


WRITE_OPERATIONS = (SqlOperation.INSERT, SqlOperation.UPDATE, SqlOperation.DELETE)


def _dedup(tables: Iterable[str]) -> Tuple[str, ...]:
    seen = {}
    for table in tables:
        if table and table not in seen:
            seen[table] = None
    return tuple(seen)


@dataclass(frozen=True)
class ClassificationResult:
    """
    SQL 분류 결과

    Attributes:
        operation: SQL 작업 종류
        target_tables: 쓰기 대상 테이블 (SELECT는 항상 비어 있음)
        reference_tables: 읽기만 하는 테이블 (SELECT의 모든 테이블, 쓰기 문장의 JOIN 및 서브쿼리 테이블)
    """

    operation: SqlOperation
    target_tables: Tuple[str, ...] = ()
    reference_tables: Tuple[str, ...] = ()

    def __post_init__(self):
        targets = _dedup(self.target_tables)
        object.__setattr__(self, "target_tables", targets)
        object.__setattr__(
            self,
            "reference_tables",
            tuple(t for t in _dedup(self.reference_tables) if t not in targets),
        )

    @property
    def tables(self) -> Tuple[str, ...]:
        """대상 테이블과 참조 테이블을 합친 목록 (대상 테이블 우선, 중복 제거)"""
        return self.target_tables + self.reference_tables


@dataclass(frozen=True)
class SqlDeclaration:
    """
    분류 전 SQL 선언 정보

    Attributes:
        owner_identifier: SQL을 선언한 매핑 단위의 이름 (Mapper namespace 또는 인터페이스 FQCN)
        operation_id: SQL ID (Mapper 메서드명)
        raw_text: SQL 원문 (MyBatis 동적 태그, 파라미터 포함 가능)
        declared_operation: 선언에 사용된 태그/어노테이션 이름 (select, insert 등)
        source: 선언 출처 (XML 파일 경로 등)
    """

    owner_identifier: str
    operation_id: str
    raw_text: str
    declared_operation: str = ""
    source: str = ""

    def to_dict(self) -> dict:
        """딕셔너리 형태로 변환"""
        return {
            "owner_identifier": self.owner_identifier,
            "operation_id": self.operation_id,
            "raw_text": self.raw_text,
            "declared_operation": self.declared_operation,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SqlDeclaration":
        """딕셔너리로부터 SqlDeclaration 객체 생성"""
        return cls(
            owner_identifier=data.get("owner_identifier") or "",
            operation_id=data.get("operation_id") or "",
            raw_text=data.get("raw_text") or "",
            declared_operation=data.get("declared_operation", ""),
            source=data.get("source", ""),
        )


@dataclass(frozen=True)
class SqlMapping:
    """
    분류가 끝난 SQL 매핑 정보

    Attributes:
        owner_identifier: SQL을 선언한 매핑 단위의 이름
        operation_id: SQL ID
        operation: SQL 작업 종류
        raw_text: SQL 원문
        tables: CRUD 코드를 부여할 테이블 목록 (병합 전에는 중복 가능).
            쓰기 문장은 대상 테이블만, SELECT는 모든 테이블
        reference_tables: 문장이 읽기만 하는 테이블 (분석 정보로만 보관)
    """

    owner_identifier: str
    operation_id: str
    operation: SqlOperation
    raw_text: str
    tables: Tuple[str, ...] = ()
    reference_tables: Tuple[str, ...] = ()

    def __post_init__(self):
        if not isinstance(self.operation, SqlOperation):
            object.__setattr__(self, "operation", SqlOperation.from_name(self.operation))
        object.__setattr__(self, "tables", tuple(self.tables))
        object.__setattr__(self, "reference_tables", tuple(self.reference_tables))

    @property
    def distinct_tables(self) -> Tuple[str, ...]:
        """최초 등장 순서를 유지한 중복 제거 테이블 목록"""
        return _dedup(self.tables)

    @classmethod
    def from_classification(
        cls, declaration: SqlDeclaration, result: ClassificationResult
    ) -> "SqlMapping":
        """
        SQL 선언과 분류 결과로부터 SqlMapping 생성

        INSERT/UPDATE/DELETE는 대상 테이블에만 쓰기 코드를 부여하고,
        같은 문장에서 읽기만 하는 테이블은 reference_tables에만 남깁니다.
        """
        if result.operation in WRITE_OPERATIONS:
            tables = result.target_tables
        else:
            tables = result.tables
        return cls(
            owner_identifier=declaration.owner_identifier,
            operation_id=declaration.operation_id,
            operation=result.operation,
            raw_text=declaration.raw_text,
            tables=tables,
            reference_tables=result.reference_tables,
        )

    def to_dict(self) -> dict:
        """딕셔너리 형태로 변환"""
        return {
            "owner_identifier": self.owner_identifier,
            "operation_id": self.operation_id,
            "operation": self.operation.value,
            "raw_text": self.raw_text,
            "tables": list(self.tables),
            "reference_tables": list(self.reference_tables),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SqlMapping":
        """딕셔너리로부터 SqlMapping 객체 생성"""
        return cls(
            owner_identifier=data.get("owner_identifier") or "",
            operation_id=data.get("operation_id") or "",
            operation=SqlOperation.from_name(data.get("operation")),
            raw_text=data.get("raw_text", ""),
            tables=tuple(data.get("tables", [])),
            reference_tables=tuple(data.get("reference_tables", [])),
        )
