"""
데이터 모델 테스트
"""

import json

import pytest

from crudtrace.models import (
    BatchJob,
    CallEdge,
    ClassificationResult,
    CrudLink,
    Endpoint,
    SqlDeclaration,
    SqlMapping,
    SqlOperation,
)
from crudtrace.persistence.json_encoder import CustomJSONEncoder
from crudtrace.util.identifier import make_identifier, simple_name, split_identifier


def test_identifier_helpers():
    """class#method 식별자 생성과 분해"""
    assert make_identifier("UserMapper", "findAll") == "UserMapper#findAll"
    assert make_identifier(None, "findAll") == "#findAll"
    assert split_identifier("com.x.UserMapper#findAll") == ("com.x.UserMapper", "findAll")
    assert split_identifier("UserMapper") == ("UserMapper", "")
    assert simple_name("com.x.UserMapper") == "UserMapper"
    assert simple_name(None) == ""


def test_endpoint():
    """HTTP 메서드 대문자 정규화와 식별자"""
    endpoint = Endpoint("post", "/users", "com.x.UserController", "create")

    assert endpoint.http_method == "POST"
    assert endpoint.identifier == "com.x.UserController#create"
    assert endpoint.display_name == "POST /users"
    assert Endpoint.from_dict(endpoint.to_dict()) == endpoint


def test_call_edge_ids():
    """호출 관계 식별자"""
    edge = CallEdge("A", "a", "B", "b")

    assert edge.from_id == "A#a"
    assert edge.to_id == "B#b"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("select", SqlOperation.SELECT),
        (" Insert ", SqlOperation.INSERT),
        ("UPDATE", SqlOperation.UPDATE),
        ("delete", SqlOperation.DELETE),
        ("merge", SqlOperation.UNKNOWN),
        (None, SqlOperation.UNKNOWN),
    ],
)
def test_sql_operation_from_name(name, expected):
    """태그명으로부터 작업 종류 조회"""
    assert SqlOperation.from_name(name) is expected


def test_crud_code():
    """CRUD 코드는 작업 종류의 첫 글자"""
    assert [op.crud_code for op in SqlOperation] == ["S", "I", "U", "D", ""]


def test_classification_result_dedup():
    """중복 제거, 대상 테이블은 참조 테이블에서 제외"""
    result = ClassificationResult(
        SqlOperation.UPDATE,
        target_tables=("users", "users"),
        reference_tables=("roles", "users", "roles"),
    )

    assert result.target_tables == ("users",)
    assert result.reference_tables == ("roles",)
    assert result.tables == ("users", "roles")


def test_sql_mapping_from_classification():
    """SQL 선언과 분류 결과로 매핑 생성"""
    declaration = SqlDeclaration("UserMapper", "save", "INSERT INTO users SELECT * FROM tmp", "insert")
    result = ClassificationResult(SqlOperation.INSERT, ("users",), ("tmp",))

    mapping = SqlMapping.from_classification(declaration, result)

    assert mapping.tables == ("users",)
    assert mapping.reference_tables == ("tmp",)
    assert SqlMapping.from_dict(mapping.to_dict()) == mapping


def test_sql_mapping_select_keeps_all_tables():
    """SELECT는 참조한 모든 테이블에 코드를 부여"""
    declaration = SqlDeclaration("UserMapper", "find", "SELECT * FROM users u JOIN roles r", "select")
    result = ClassificationResult(SqlOperation.SELECT, reference_tables=("users", "roles"))

    mapping = SqlMapping.from_classification(declaration, result)

    assert mapping.tables == ("users", "roles")


def test_sql_mapping_operation_from_string():
    """문자열 작업 종류는 SqlOperation으로 변환"""
    mapping = SqlMapping("M", "op", "select", "", ["t"])
    endpoint = Endpoint("GET", "/t", "TController", "list")

    assert mapping.operation is SqlOperation.SELECT
    assert mapping.tables == ("t",)
    assert CrudLink(endpoint, "t", mapping.operation).crud_code == "S"
    assert SqlMapping("M", "op", "merge", "", ()).operation is SqlOperation.UNKNOWN


def test_sql_mapping_distinct_tables():
    """병합 전 중복 테이블"""
    mapping = SqlMapping("M", "op", SqlOperation.SELECT, "", ("a", "b", "a"))

    assert mapping.distinct_tables == ("a", "b")


def test_crud_link_rejects_unknown():
    """UNKNOWN 작업 종류로는 CrudLink를 만들 수 없음"""
    endpoint = Endpoint("GET", "/users", "UserController", "list")

    with pytest.raises(ValueError):
        CrudLink(endpoint, "users", SqlOperation.UNKNOWN)

    assert CrudLink(endpoint, "users", SqlOperation.DELETE).crud_code == "D"


def test_batch_job_defaults():
    """job_name이 없으면 클래스명 사용"""
    job = BatchJob.from_dict({"class_name": "com.x.SyncJob"})

    assert job.job_name == "com.x.SyncJob"
    assert job.package_name == ""


def test_custom_json_encoder():
    """데이터 모델, Enum, set 직렬화"""
    data = {
        "edge": CallEdge("A", "a", "B", "b"),
        "operation": SqlOperation.SELECT,
        "tables": {"b", "a"},
    }

    encoded = json.loads(json.dumps(data, cls=CustomJSONEncoder))

    assert encoded["edge"]["to_class"] == "B"
    assert encoded["operation"] == "SELECT"
    assert encoded["tables"] == ["a", "b"]
