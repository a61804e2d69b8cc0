"""
SQL Classifier 모듈

MyBatis 동적 태그, 파라미터 플레이스홀더가 섞인 SQL 텍스트를 작업 종류(SELECT/INSERT/UPDATE/DELETE)와
테이블 목록으로 분류합니다.

분류는 단계(stage) 파이프라인으로 수행됩니다. 각 단계는 결과를 반환하거나 None을 반환하여
다음 단계로 넘깁니다.

    1. 정규화 (SqlNormalizer.normalize)
    2. 보정 (SqlNormalizer.repair)
    3. 검증 (SqlNormalizer.validate) - 실패 시 플레이스홀더 문장으로 치환
    4. 구조 파싱 (StructuredParseStage, sqlglot)
    5. 키워드 폴백 (KeywordFallbackStage, 정규식)
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Set

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from ..models.sql_mapping import ClassificationResult, SqlOperation

PLACEHOLDER_STATEMENT = "SELECT 1"

_PARAMETER_PATTERN = re.compile(r"[#$]\{[^}]*\}")
_CDATA_PATTERN = re.compile(r"<!\[CDATA\[|\]\]>")
_XML_COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_PATTERN = re.compile(r"</?\w+[^>]*>")
_WHITESPACE_PATTERN = re.compile(r"\s+")

_CLAUSE_AFTER_WHERE = r"(?:ORDER\s+BY|GROUP\s+BY|HAVING|LIMIT)\b"
_IDENT = r"[`\"'\[]?[\w.$]+[`\"'\]]?"

_FALLBACK_TABLE_PATTERN = re.compile(
    rf"\b(?:FROM|INSERT\s+INTO|UPDATE)\s+({_IDENT})", re.IGNORECASE
)
_SELECT_TABLE_PATTERN = re.compile(rf"\b(?:FROM|JOIN)\s+({_IDENT})", re.IGNORECASE)


def _unique(names: Iterable[str]) -> List[str]:
    result: List[str] = []
    for name in names:
        if name and name not in result:
            result.append(name)
    return result


def _clean_table_name(token: str) -> str:
    """따옴표, 백틱, 스키마명 제거 (예: `db`.`users` -> users)"""
    name = token.strip("`\"'[]")
    name = name.split(".")[-1].strip("`\"'[]")
    # ${...} 치환 결과로 남은 숫자는 테이블명이 아님
    if not name or name.isdigit():
        return ""
    return name


class SqlNormalizer:
    """
    SQL 텍스트 정규화, 보정, 검증

    MyBatis 동적 태그를 제거하면 `WHERE AND ...`, `FROM t AND ...` 처럼 문법이 깨진 조각이 남습니다.
    repair()는 이런 조각을 파싱 가능한 형태로 보정합니다.
    """

    _REPAIRS = [
        # WHERE WHERE, AND AND, OR OR
        (re.compile(r"\b(WHERE|AND|OR)(?:\s+\1\b)+", re.IGNORECASE), r"\1"),
        (re.compile(r"\bWHERE\s+(?:(?:AND|OR)\s+)+", re.IGNORECASE), "WHERE "),
        (re.compile(r"^(?:(?:AND|OR)\s+)+", re.IGNORECASE), ""),
        (
            re.compile(
                r"\bFROM\s+([\w.`\"]+(?:\s+(?!(?:WHERE|AND|OR|JOIN|ON)\b)\w+)?)\s+(AND|OR)\b",
                re.IGNORECASE,
            ),
            r"FROM \1 WHERE 1=1 \2",
        ),
        (re.compile(r"(?:\s+(?:AND|OR))+\s*$", re.IGNORECASE), ""),
        (
            re.compile(rf"(?:\s+(?:AND|OR))+\s+(?={_CLAUSE_AFTER_WHERE})", re.IGNORECASE),
            " ",
        ),
        (re.compile(r"\s+WHERE\s*$", re.IGNORECASE), ""),
        (re.compile(rf"\s+WHERE\s+(?={_CLAUSE_AFTER_WHERE})", re.IGNORECASE), " "),
        # <set> 제거 후 남은 쉼표
        (re.compile(r",\s*(?=\bWHERE\b)", re.IGNORECASE), " "),
        (re.compile(r",\s*$"), ""),
        (re.compile(r"^FROM\b", re.IGNORECASE), "SELECT * FROM"),
        (re.compile(r"^SELECT\s*$", re.IGNORECASE), "SELECT 1"),
    ]

    _VALID_START = re.compile(r"^\(*\s*(?:SELECT|INSERT|UPDATE|DELETE|WITH)\b", re.IGNORECASE)
    _DANGLING_END = re.compile(r"\b(?:WHERE|FROM|SET)\s*$", re.IGNORECASE)
    _DOUBLED_KEYWORD = re.compile(r"\b(WHERE|FROM)\s+\1\b", re.IGNORECASE)

    def normalize(self, text: str) -> str:
        """파라미터를 리터럴로 치환하고 태그, CDATA 마커를 제거한 뒤 공백을 정리"""
        text = _PARAMETER_PATTERN.sub("1", text)
        text = _XML_COMMENT_PATTERN.sub(" ", text)
        text = _CDATA_PATTERN.sub(" ", text)
        text = _TAG_PATTERN.sub(" ", text)
        text = _WHITESPACE_PATTERN.sub(" ", text).strip()
        return text.rstrip(";").strip()

    def repair(self, text: str) -> str:
        """태그 제거로 깨진 조각 보정"""
        for pattern, replacement in self._REPAIRS:
            text = pattern.sub(replacement, text)
            text = _WHITESPACE_PATTERN.sub(" ", text).strip()
        return text

    def validate(self, text: str) -> bool:
        """구조 파싱에 넘겨도 되는 문장인지 검사"""
        if not self._VALID_START.match(text):
            return False
        if self._DANGLING_END.search(text):
            return False
        if self._DOUBLED_KEYWORD.search(text):
            return False
        return True


@dataclass(frozen=True)
class PreparedSql:
    """
    단계 파이프라인에 전달되는 SQL

    Attributes:
        raw: 원본 텍스트
        text: 정규화, 보정이 끝난 텍스트 (검증 실패 시 플레이스홀더 문장)
        placeholder: 검증 실패로 플레이스홀더 문장이 치환되었는지 여부
    """

    raw: str
    text: str
    placeholder: bool = False


class ClassificationStage(ABC):
    """분류 단계 인터페이스. None을 반환하면 다음 단계로 넘어갑니다."""

    name = "stage"

    @abstractmethod
    def apply(self, sql: PreparedSql) -> Optional[ClassificationResult]:
        pass


class EmptyTextStage(ClassificationStage):
    """빈 문자열, 공백 문자열은 테이블 없는 SELECT로 분류"""

    name = "empty"

    def apply(self, sql: PreparedSql) -> Optional[ClassificationResult]:
        if not sql.raw.strip():
            return ClassificationResult(SqlOperation.SELECT)
        return None


TableExtractor = Callable[[exp.Expression, PreparedSql], Optional[List[str]]]


class StructuredParseStage(ClassificationStage):
    """
    sqlglot 구조 파싱 단계

    SELECT 계열은 테이블 추출기 체인(전체 문장 추출 -> 문장 구조 순회 -> 정규식)을 차례로 시도하고,
    INSERT/UPDATE/DELETE는 문장이 선언한 대상 테이블과 나머지 참조 테이블을 분리합니다.
    """

    name = "structured"

    _SET_OPERATIONS = (exp.Union, exp.Except, exp.Intersect)

    def __init__(self, dialect: Optional[str] = "mysql", logger: Optional[logging.Logger] = None):
        self.dialect = dialect or None
        self.logger = logger or logging.getLogger(__name__)
        self.select_extractors: Sequence[TableExtractor] = (
            self._extract_all_tables,
            self._extract_by_shape,
            self._extract_by_regex,
        )

    def apply(self, sql: PreparedSql) -> Optional[ClassificationResult]:
        if sql.placeholder:
            return None

        statement = self._parse(sql.text)
        if statement is None:
            return None

        try:
            return self._classify_statement(statement, sql)
        except RecursionError:
            self.logger.debug(f"SQL 구조가 너무 깊어 폴백으로 전환합니다: {sql.text[:80]}")
            return None

    def _classify_statement(
        self, statement: exp.Expression, sql: PreparedSql
    ) -> ClassificationResult:
        if isinstance(statement, (exp.Select, exp.Subquery) + self._SET_OPERATIONS):
            return self._classify_select(statement, sql)
        if isinstance(statement, exp.Insert):
            return self._classify_insert(statement)
        if isinstance(statement, exp.Update):
            return self._classify_update(statement, sql)
        if isinstance(statement, exp.Delete):
            return self._classify_delete(statement)

        self.logger.debug(f"인식할 수 없는 SQL 구조입니다: {type(statement).__name__}")
        return ClassificationResult(SqlOperation.UNKNOWN)

    def _parse(self, text: str) -> Optional[exp.Expression]:
        try:
            statement = sqlglot.parse_one(text, read=self.dialect)
        except (SqlglotError, RecursionError, ValueError) as e:
            # 깊게 중첩된 괄호는 파서의 재귀 한도를 넘음
            self.logger.debug(f"SQL 구조 파싱 실패, 폴백으로 전환합니다: {type(e).__name__}: {e}")
            return None

        # 파서가 해석하지 못한 문장은 Command로 감싸져 반환됨
        if statement is None or isinstance(statement, exp.Command):
            self.logger.debug(f"SQL 구조 파싱 결과를 사용할 수 없습니다: {text[:80]}")
            return None
        return statement

    # SELECT

    def _classify_select(self, statement: exp.Expression, sql: PreparedSql) -> ClassificationResult:
        for extractor in self.select_extractors:
            tables = extractor(statement, sql)
            if tables:
                return ClassificationResult(SqlOperation.SELECT, reference_tables=tuple(tables))
        return ClassificationResult(SqlOperation.SELECT)

    def _extract_all_tables(self, statement: exp.Expression, sql: PreparedSql) -> Optional[List[str]]:
        cte_names = self._cte_names(statement)
        return _unique(
            table.name for table in statement.find_all(exp.Table) if table.name not in cte_names
        ) or None

    def _extract_by_shape(self, statement: exp.Expression, sql: PreparedSql) -> Optional[List[str]]:
        return _unique(self._walk_query(statement)) or None

    def _extract_by_regex(self, statement: exp.Expression, sql: PreparedSql) -> Optional[List[str]]:
        return _unique(
            _clean_table_name(match) for match in _SELECT_TABLE_PATTERN.findall(sql.text)
        ) or None

    def _walk_query(self, node: Optional[exp.Expression]) -> List[str]:
        """문장 구조 순회: 일반 쿼리는 FROM + JOIN, 집합 연산은 각 분기, 괄호 쿼리는 내부로 재귀"""
        if node is None:
            return []
        if isinstance(node, exp.Table):
            return [node.name]
        if isinstance(node, exp.Subquery):
            return self._walk_query(node.this)
        if isinstance(node, self._SET_OPERATIONS):
            return self._walk_query(node.args.get("this")) + self._walk_query(
                node.args.get("expression")
            )
        if isinstance(node, exp.Select):
            names: List[str] = []
            from_clause = self._from_clause(node)
            if from_clause is not None:
                names.extend(self._walk_query(from_clause.this))
            for join in node.args.get("joins") or []:
                names.extend(self._walk_query(join.this))
            return names
        return []

    @staticmethod
    def _from_clause(select: exp.Select) -> Optional[exp.From]:
        for value in select.args.values():
            if isinstance(value, exp.From):
                return value
        return None

    # INSERT / UPDATE / DELETE

    def _classify_insert(self, statement: exp.Insert) -> ClassificationResult:
        target = statement.this
        if isinstance(target, exp.Schema):
            target = target.this
        targets = [target] if isinstance(target, exp.Table) else []
        return self._write_result(SqlOperation.INSERT, statement, targets)

    def _classify_update(self, statement: exp.Update, sql: PreparedSql) -> ClassificationResult:
        target = statement.this
        if not isinstance(target, exp.Table):
            self.logger.debug(f"UPDATE 대상 테이블을 찾을 수 없습니다: {sql.text[:80]}")
            return self._write_result(SqlOperation.UPDATE, statement, [])
        return self._write_result(SqlOperation.UPDATE, statement, [target])

    def _classify_delete(self, statement: exp.Delete) -> ClassificationResult:
        # MySQL 다중 테이블 구문: DELETE u FROM users u JOIN ...
        alias_targets = statement.args.get("tables") or []
        if alias_targets:
            aliases = {}
            for table in statement.this.find_all(exp.Table) if statement.this else []:
                aliases.setdefault(table.alias_or_name, table.name)
            names = [aliases.get(t.name, t.name) for t in alias_targets]
            return self._write_result(
                SqlOperation.DELETE, statement, alias_targets, target_names=names
            )

        target = statement.this
        targets = [target] if isinstance(target, exp.Table) else []
        return self._write_result(SqlOperation.DELETE, statement, targets)

    def _write_result(
        self,
        operation: SqlOperation,
        statement: exp.Expression,
        target_nodes: List[exp.Table],
        target_names: Optional[List[str]] = None,
    ) -> ClassificationResult:
        excluded = {id(node) for node in target_nodes}
        cte_names = self._cte_names(statement)
        references = [
            table.name
            for table in statement.find_all(exp.Table)
            if id(table) not in excluded and table.name not in cte_names
        ]
        if target_names is None:
            target_names = [node.name for node in target_nodes]
        return ClassificationResult(
            operation,
            target_tables=tuple(_unique(target_names)),
            reference_tables=tuple(_unique(references)),
        )

    @staticmethod
    def _cte_names(statement: exp.Expression) -> Set[str]:
        return {cte.alias for cte in statement.find_all(exp.CTE) if cte.alias}


class KeywordFallbackStage(ClassificationStage):
    """
    키워드 폴백 단계

    원문을 대문자로 바꿔 INSERT/UPDATE/DELETE 순서로 키워드를 찾고(없으면 SELECT),
    FROM, INSERT INTO, UPDATE 뒤의 단어를 테이블 후보로 추출합니다. 항상 결과를 반환합니다.
    """

    name = "keyword"

    _KEYWORDS = (
        ("INSERT ", SqlOperation.INSERT),
        ("UPDATE ", SqlOperation.UPDATE),
        ("DELETE ", SqlOperation.DELETE),
    )

    def __init__(self, normalizer: Optional[SqlNormalizer] = None):
        self.normalizer = normalizer or SqlNormalizer()

    def apply(self, sql: PreparedSql) -> Optional[ClassificationResult]:
        upper = " ".join(sql.raw.split()).upper()
        operation = SqlOperation.SELECT
        for keyword, candidate in self._KEYWORDS:
            if keyword in upper:
                operation = candidate
                break

        text = self.normalizer.normalize(sql.raw)
        tables = _unique(
            _clean_table_name(match) for match in _FALLBACK_TABLE_PATTERN.findall(text)
        )

        if operation is SqlOperation.SELECT or not tables:
            return ClassificationResult(operation, reference_tables=tuple(tables))
        return ClassificationResult(
            operation, target_tables=(tables[0],), reference_tables=tuple(tables[1:])
        )


class SqlClassifier:
    """
    SQL 분류기

    Example:
        >>> classifier = SqlClassifier()
        >>> result = classifier.classify("DELETE FROM users WHERE id = #{id}")
        >>> result.operation, result.tables
        (<SqlOperation.DELETE: 'DELETE'>, ('users',))
    """

    def __init__(
        self,
        dialect: Optional[str] = "mysql",
        logger: Optional[logging.Logger] = None,
        stages: Optional[Sequence[ClassificationStage]] = None,
    ):
        """
        SqlClassifier 초기화

        Args:
            dialect: sqlglot SQL 방언 (기본값: mysql)
            logger: 진단 로그를 기록할 로거
            stages: 분류 단계 목록 (기본값: 빈 텍스트 -> 구조 파싱 -> 키워드 폴백)
        """
        self.logger = logger or logging.getLogger(__name__)
        self.normalizer = SqlNormalizer()
        self.stages: Sequence[ClassificationStage] = stages or (
            EmptyTextStage(),
            StructuredParseStage(dialect, self.logger),
            KeywordFallbackStage(self.normalizer),
        )

    def prepare(self, text: str) -> PreparedSql:
        """정규화, 보정, 검증을 거친 PreparedSql 생성"""
        repaired = self.normalizer.repair(self.normalizer.normalize(text))
        if repaired and not self.normalizer.validate(repaired):
            self.logger.debug(f"유효하지 않은 SQL을 플레이스홀더로 치환합니다: {repaired[:80]}")
            return PreparedSql(raw=text, text=PLACEHOLDER_STATEMENT, placeholder=True)
        return PreparedSql(raw=text, text=repaired)

    def classify(self, text: Optional[str]) -> ClassificationResult:
        """
        SQL 텍스트를 작업 종류와 테이블 목록으로 분류

        Args:
            text: SQL 텍스트

        Returns:
            ClassificationResult: 분류 결과 (파싱 실패 시에도 항상 반환)

        Raises:
            ValueError: text가 None인 경우
        """
        if text is None:
            raise ValueError("분류할 SQL 텍스트가 없습니다 (None)")

        prepared = self.prepare(text)
        for stage in self.stages:
            result = stage.apply(prepared)
            if result is not None:
                self.logger.debug(
                    f"SQL 분류 완료 ({stage.name}): {result.operation.value} {list(result.tables)}"
                )
                return result

        return ClassificationResult(SqlOperation.UNKNOWN)
