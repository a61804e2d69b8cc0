"""
Fact Loader 모듈

외부 소스 추출기가 생성한 팩트 JSON 파일(엔드포인트, 호출 관계, 배치 작업, SQL 선언)을 읽어
데이터 모델로 변환합니다.

파일 형식:
    {
        "endpoints": [{"http_method": "GET", "url_path": "/users", "entry_class": "...", ...}],
        "call_edges": [{"from_class": "...", "from_method": "...", "to_class": "...", "to_method": "..."}],
        "batch_jobs": [{"class_name": "...", "job_name": "...", "package_name": "..."}],
        "sql_declarations": [{"owner_identifier": "...", "operation_id": "...", "raw_text": "..."}]
    }
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, TypeVar, Union

from ..models.batch_job import BatchJob
from ..models.call_edge import CallEdge
from ..models.endpoint import Endpoint
from ..models.sql_mapping import SqlDeclaration

T = TypeVar("T")

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """팩트 파일 로드 및 결과 저장 관련 에러"""

    pass


@dataclass
class Facts:
    """
    분석 입력 팩트 모음

    Attributes:
        endpoints: 엔드포인트 목록
        call_edges: 호출 관계 목록
        batch_jobs: 배치 작업 목록
        sql_declarations: 어노테이션 등에서 추출된 SQL 선언 목록
    """

    endpoints: List[Endpoint] = field(default_factory=list)
    call_edges: List[CallEdge] = field(default_factory=list)
    batch_jobs: List[BatchJob] = field(default_factory=list)
    sql_declarations: List[SqlDeclaration] = field(default_factory=list)

    def to_dict(self) -> dict:
        """딕셔너리 형태로 변환"""
        return {
            "endpoints": [endpoint.to_dict() for endpoint in self.endpoints],
            "call_edges": [edge.to_dict() for edge in self.call_edges],
            "batch_jobs": [job.to_dict() for job in self.batch_jobs],
            "sql_declarations": [decl.to_dict() for decl in self.sql_declarations],
        }


def _load_records(data: dict, key: str, factory: Callable[[dict], T]) -> List[T]:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise PersistenceError(f"'{key}' 항목은 리스트여야 합니다")

    records = []
    for index, item in enumerate(items):
        try:
            records.append(factory(item))
        except (KeyError, TypeError, AttributeError) as e:
            raise PersistenceError(f"'{key}'[{index}] 항목 형식이 올바르지 않습니다: {e}")
    return records


def parse_facts(data: Any) -> Facts:
    """
    JSON 데이터를 Facts로 변환

    Raises:
        PersistenceError: 데이터 형식이 올바르지 않은 경우
    """
    if not isinstance(data, dict):
        raise PersistenceError("팩트 파일의 최상위 값은 객체여야 합니다")

    return Facts(
        endpoints=_load_records(data, "endpoints", Endpoint.from_dict),
        call_edges=_load_records(data, "call_edges", CallEdge.from_dict),
        batch_jobs=_load_records(data, "batch_jobs", BatchJob.from_dict),
        sql_declarations=_load_records(data, "sql_declarations", SqlDeclaration.from_dict),
    )


def load_facts(file_path: Union[str, Path]) -> Facts:
    """
    팩트 JSON 파일 로드

    Args:
        file_path: 팩트 파일 경로

    Returns:
        Facts: 로드된 팩트

    Raises:
        PersistenceError: 파일이 없거나 형식이 올바르지 않은 경우
    """
    path = Path(file_path)
    if not path.exists():
        raise PersistenceError(f"팩트 파일을 찾을 수 없습니다: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise PersistenceError(f"팩트 파일의 JSON 형식이 올바르지 않습니다: {e}")
    except OSError as e:
        raise PersistenceError(f"팩트 파일을 읽는 중 오류가 발생했습니다: {e}")

    facts = parse_facts(data)
    logger.info(
        f"팩트 로드 완료: 엔드포인트 {len(facts.endpoints)}개, 호출 관계 {len(facts.call_edges)}개, "
        f"배치 작업 {len(facts.batch_jobs)}개, SQL 선언 {len(facts.sql_declarations)}개"
    )
    return facts
