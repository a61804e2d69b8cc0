"""
SQL Classifier 테스트

SQL 정규화, 보정, 검증과 단계별 분류 결과를 테스트합니다.
"""

import pytest

from crudtrace.analyzer.sql_classifier import (
    PLACEHOLDER_STATEMENT,
    ClassificationStage,
    KeywordFallbackStage,
    PreparedSql,
    SqlClassifier,
    SqlNormalizer,
)
from crudtrace.models.sql_mapping import ClassificationResult, SqlOperation


@pytest.fixture
def classifier():
    """SQL 분류기 생성"""
    return SqlClassifier()


@pytest.fixture
def normalizer():
    """SQL 정규화기 생성"""
    return SqlNormalizer()


def test_classify_none_raises(classifier):
    """None 입력은 ValueError"""
    with pytest.raises(ValueError):
        classifier.classify(None)


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_classify_blank_text(classifier, text):
    """빈 문자열은 테이블 없는 SELECT"""
    result = classifier.classify(text)

    assert result.operation is SqlOperation.SELECT
    assert result.tables == ()


def test_classify_delete(classifier):
    """단순 DELETE"""
    result = classifier.classify("DELETE FROM users WHERE id = #{id}")

    assert result.operation is SqlOperation.DELETE
    assert result.target_tables == ("users",)
    assert result.tables == ("users",)


def test_classify_select_join(classifier):
    """SELECT JOIN은 모든 테이블을 참조 테이블로 분류"""
    result = classifier.classify(
        "SELECT u.id, p.title FROM users u JOIN posts p ON u.id = p.user_id WHERE u.id = #{id}"
    )

    assert result.operation is SqlOperation.SELECT
    assert result.target_tables == ()
    assert set(result.tables) == {"users", "posts"}


def test_classify_update(classifier):
    """UPDATE 대상 테이블"""
    result = classifier.classify("UPDATE users SET name = #{name} WHERE id = #{id}")

    assert result.operation is SqlOperation.UPDATE
    assert result.target_tables == ("users",)


def test_classify_insert_select(classifier):
    """INSERT ... SELECT 는 대상 테이블과 참조 테이블을 분리"""
    result = classifier.classify(
        "INSERT INTO order_history (order_id, status) SELECT id, status FROM orders WHERE id = #{id}"
    )

    assert result.operation is SqlOperation.INSERT
    assert result.target_tables == ("order_history",)
    assert result.reference_tables == ("orders",)


def test_classify_union(classifier):
    """UNION 양쪽 분기의 테이블을 모두 추출"""
    result = classifier.classify("SELECT id FROM active_users UNION SELECT id FROM retired_users")

    assert result.operation is SqlOperation.SELECT
    assert set(result.tables) == {"active_users", "retired_users"}


def test_classify_cte_excludes_cte_name(classifier):
    """WITH 절의 이름은 테이블이 아님"""
    result = classifier.classify(
        "WITH recent AS (SELECT id FROM orders WHERE created_at > #{from}) SELECT * FROM recent"
    )

    assert result.operation is SqlOperation.SELECT
    assert result.tables == ("orders",)


def test_classify_schema_qualified_table(classifier):
    """스키마명과 백틱은 테이블명에서 제거"""
    result = classifier.classify("SELECT * FROM `shop`.`products`")

    assert result.tables == ("products",)


def test_classify_dynamic_where_fragment(classifier):
    """<where> 제거 후 남은 'FROM t AND ...' 조각 보정"""
    sql = """
        SELECT * FROM users
        <if test="name != null">AND name = #{name}</if>
        <if test="email != null">AND email = #{email}</if>
    """
    result = classifier.classify(sql)

    assert result.operation is SqlOperation.SELECT
    assert result.tables == ("users",)


def test_classify_dangling_where(classifier):
    """모든 조건이 빠진 WHERE"""
    result = classifier.classify("SELECT id FROM accounts WHERE <if test='x'></if>")

    assert result.operation is SqlOperation.SELECT
    assert result.tables == ("accounts",)


def test_classify_garbage_with_update_keyword(classifier):
    """구조 파싱 불가 텍스트는 키워드 폴백으로 분류"""
    result = classifier.classify("FOO UPDATE users SET x = 1 ???")

    assert result.operation is SqlOperation.UPDATE
    assert result.target_tables == ("users",)


def test_classify_delete_multi_table(classifier):
    """MySQL 다중 테이블 DELETE"""
    result = classifier.classify(
        "DELETE u FROM users u JOIN sessions s ON u.id = s.user_id WHERE s.expired = 1"
    )

    assert result.operation is SqlOperation.DELETE
    assert "users" in result.tables
    assert "u" not in result.tables


def test_prepare_invalid_text_uses_placeholder(classifier):
    """검증 실패 시 플레이스홀더 문장으로 치환"""
    prepared = classifier.prepare("FOO BAR BAZ")

    assert prepared.placeholder is True
    assert prepared.text == PLACEHOLDER_STATEMENT
    assert prepared.raw == "FOO BAR BAZ"


def test_custom_stages(classifier):
    """사용자 정의 단계가 먼저 결과를 반환하면 이후 단계는 실행되지 않음"""

    class AlwaysInsert(ClassificationStage):
        name = "always-insert"

        def apply(self, sql):
            return ClassificationResult(SqlOperation.INSERT, target_tables=("audit",))

    result = SqlClassifier(stages=[AlwaysInsert()]).classify("SELECT * FROM users")

    assert result.operation is SqlOperation.INSERT
    assert result.tables == ("audit",)


def test_no_stage_result_is_unknown():
    """모든 단계가 None을 반환하면 UNKNOWN"""

    class Abstain(ClassificationStage):
        def apply(self, sql):
            return None

    result = SqlClassifier(stages=[Abstain()]).classify("SELECT 1")

    assert result.operation is SqlOperation.UNKNOWN
    assert result.operation.crud_code == ""


def test_keyword_fallback_order():
    """INSERT, UPDATE, DELETE 순서로 키워드를 찾고 첫 후보를 대상 테이블로 사용"""
    stage = KeywordFallbackStage()
    result = stage.apply(
        PreparedSql(raw="insert into logs select * from events", text=PLACEHOLDER_STATEMENT, placeholder=True)
    )

    assert result.operation is SqlOperation.INSERT
    assert result.target_tables == ("logs",)
    assert result.reference_tables == ("events",)


def test_keyword_fallback_select_default():
    """키워드가 없으면 SELECT"""
    result = KeywordFallbackStage().apply(
        PreparedSql(raw="SHOW ME FROM customers", text=PLACEHOLDER_STATEMENT, placeholder=True)
    )

    assert result.operation is SqlOperation.SELECT
    assert result.reference_tables == ("customers",)


def test_normalize(normalizer):
    """파라미터 치환, 태그 및 CDATA 제거, 공백 정리"""
    text = "SELECT * FROM t <![CDATA[ WHERE a < #{a} ]]> <!-- memo --> ;"

    assert normalizer.normalize(text) == "SELECT * FROM t WHERE a < 1"


def test_normalize_dollar_parameter(normalizer):
    """${...} 파라미터도 리터럴로 치환"""
    assert normalizer.normalize("SELECT * FROM t ORDER BY ${column}") == "SELECT * FROM t ORDER BY 1"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("SELECT * FROM t WHERE AND a = 1", "SELECT * FROM t WHERE a = 1"),
        ("SELECT * FROM t WHERE WHERE a = 1", "SELECT * FROM t WHERE a = 1"),
        ("SELECT * FROM t WHERE a = 1 AND", "SELECT * FROM t WHERE a = 1"),
        ("SELECT * FROM t WHERE ORDER BY id", "SELECT * FROM t ORDER BY id"),
        ("SELECT * FROM t WHERE a = 1 AND ORDER BY id", "SELECT * FROM t WHERE a = 1 ORDER BY id"),
        ("SELECT * FROM t WHERE", "SELECT * FROM t"),
        ("UPDATE t SET a = 1, WHERE id = 1", "UPDATE t SET a = 1 WHERE id = 1"),
        ("SELECT * FROM t AND a = 1", "SELECT * FROM t WHERE 1=1 AND a = 1"),
        ("FROM t", "SELECT * FROM t"),
        ("SELECT", "SELECT 1"),
    ],
)
def test_repair(normalizer, text, expected):
    """태그 제거로 깨진 조각 보정"""
    assert normalizer.repair(text) == expected


@pytest.mark.parametrize(
    "text, valid",
    [
        ("SELECT 1", True),
        ("select * from t", True),
        ("WITH x AS (SELECT 1) SELECT * FROM x", True),
        ("(SELECT id FROM a) UNION (SELECT id FROM b)", True),
        ("FOO UPDATE t", False),
        ("SELECT * FROM t WHERE", False),
        ("UPDATE t SET", False),
        ("SELECT * FROM FROM t", False),
    ],
)
def test_validate(normalizer, text, valid):
    """구조 파싱 가능 여부 검사"""
    assert normalizer.validate(text) is valid


def test_classify_deeply_nested_text(classifier):
    """파서의 재귀 한도를 넘는 중첩 괄호도 예외 없이 분류"""
    result = classifier.classify("SELECT " + "(" * 300 + "1" + ")" * 300 + " FROM users")

    assert result.operation is SqlOperation.SELECT
    assert result.tables == ("users",)


@pytest.mark.parametrize(
    "text",
    [
        "SELECT " + "(" * 1000 + "1" + ")" * 1000,
        "DELETE FROM t WHERE id IN " + "(" * 500 + "SELECT 1" + ")" * 500,
        "SELECT * FROM users WHERE name = 'unterminated",
        "UPDATE ${t} SET a=1",
        "INSERT INTO t VALUES (",
        "SELECT * FROM",
        ")))(((",
        "<if test='x'>",
        "#{only}",
    ],
)
def test_classify_never_raises(classifier, text):
    """구조 파싱이 불가능한 입력도 항상 분류 결과를 반환"""
    result = classifier.classify(text)

    assert result is not None
    assert result.operation in set(SqlOperation)
