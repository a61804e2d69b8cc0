"""
AnalysisResult 데이터 모델

CRUD 분석 한 번의 실행 결과와 집계 정보를 담는 데이터 모델입니다.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from .batch_job import BatchJob
from .crud_link import CrudLink


@dataclass
class AnalysisResult:
    """
    CRUD 분석 결과

    Attributes:
        links: CRUD 연결 목록 (엔드포인트 순서)
        terminals: 엔드포인트 식별자별 도달 가능한 데이터 접근 계층 식별자
        cycles: 호출 그래프에서 발견된 순환 참조 목록
        batch_jobs: 보고용으로 전달된 배치 작업 목록
        endpoint_count: 분석한 엔드포인트 수
    """

    links: List[CrudLink] = field(default_factory=list)
    terminals: Dict[str, List[str]] = field(default_factory=dict)
    cycles: List[List[str]] = field(default_factory=list)
    batch_jobs: List[BatchJob] = field(default_factory=list)
    endpoint_count: int = 0

    @property
    def table_count(self) -> int:
        """CRUD 연결이 있는 고유 테이블 수"""
        return len({link.table for link in self.links})

    @property
    def linked_endpoint_count(self) -> int:
        """CRUD 연결이 하나 이상 있는 고유 엔드포인트 수"""
        return len({link.endpoint for link in self.links})

    def to_dict(self) -> dict:
        """딕셔너리 형태로 변환"""
        return {
            "summary": {
                "endpoints": self.endpoint_count,
                "linked_endpoints": self.linked_endpoint_count,
                "tables": self.table_count,
                "links": len(self.links),
                "batch_jobs": len(self.batch_jobs),
            },
            "links": [link.to_dict() for link in self.links],
            "terminals": self.terminals,
            "cycles": self.cycles,
            "batch_jobs": [job.to_dict() for job in self.batch_jobs],
        }
