"""
Fact Loader 테스트

팩트 JSON 파일 로드와 형식 오류 처리를 테스트합니다.
"""

import json
import pytest
from pathlib import Path
from tempfile import TemporaryDirectory

from crudtrace.models.endpoint import Endpoint
from crudtrace.persistence.fact_loader import PersistenceError, load_facts, parse_facts


@pytest.fixture
def temp_dir():
    """임시 디렉터리 생성"""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_facts():
    """샘플 팩트 데이터"""
    return {
        "endpoints": [
            {
                "http_method": "get",
                "url_path": "/users",
                "entry_class": "com.example.UserController",
                "entry_method": "list",
                "package_name": "com.example",
            }
        ],
        "call_edges": [
            {
                "from_class": "com.example.UserController",
                "from_method": "list",
                "to_class": "UserMapper",
                "to_method": "findAll",
            }
        ],
        "batch_jobs": [{"class_name": "com.example.batch.SyncJob"}],
        "sql_declarations": [
            {
                "owner_identifier": "com.example.UserMapper",
                "operation_id": "findAll",
                "raw_text": "SELECT * FROM users",
                "declared_operation": "select",
            }
        ],
    }


def test_load_facts(temp_dir, sample_facts):
    """팩트 파일 로드"""
    facts_file = temp_dir / "facts.json"
    facts_file.write_text(json.dumps(sample_facts), encoding="utf-8")

    facts = load_facts(facts_file)

    assert facts.endpoints == [
        Endpoint("GET", "/users", "com.example.UserController", "list", "com.example")
    ]
    assert facts.call_edges[0].to_id == "UserMapper#findAll"
    assert facts.batch_jobs[0].job_name == "com.example.batch.SyncJob"
    assert facts.sql_declarations[0].declared_operation == "select"


def test_parse_facts_missing_sections():
    """없는 항목은 빈 목록"""
    facts = parse_facts({})

    assert facts.endpoints == []
    assert facts.call_edges == []
    assert facts.batch_jobs == []
    assert facts.sql_declarations == []


def test_facts_to_dict_round_trip(sample_facts):
    """to_dict 결과를 다시 읽으면 같은 팩트"""
    facts = parse_facts(sample_facts)

    assert parse_facts(facts.to_dict()) == facts


def test_parse_facts_invalid_record():
    """필수 키가 없는 항목"""
    with pytest.raises(PersistenceError) as exc_info:
        parse_facts({"endpoints": [{"http_method": "GET"}]})
    assert "endpoints" in str(exc_info.value)


def test_parse_facts_section_not_list():
    """항목이 리스트가 아닌 경우"""
    with pytest.raises(PersistenceError):
        parse_facts({"call_edges": {"from_class": "A"}})


def test_parse_facts_not_object():
    """최상위 값이 객체가 아닌 경우"""
    with pytest.raises(PersistenceError):
        parse_facts([])


def test_load_facts_missing_file(temp_dir):
    """없는 파일"""
    with pytest.raises(PersistenceError):
        load_facts(temp_dir / "missing.json")


def test_load_facts_invalid_json(temp_dir):
    """잘못된 JSON"""
    facts_file = temp_dir / "facts.json"
    facts_file.write_text("{ not json", encoding="utf-8")

    with pytest.raises(PersistenceError) as exc_info:
        load_facts(facts_file)
    assert "JSON" in str(exc_info.value)
