"""
CRUD Resolution Engine 모듈

엔드포인트마다 도달성 분석(ReachabilityResolver)과 SQL 매핑 매칭(MappingMatcher)을 수행하고
결과를 집계하는 분석 엔진입니다. SQL 선언을 SqlMapping으로 분류하는 작업도 담당합니다.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from tqdm import tqdm

from ..models.analysis_result import AnalysisResult
from ..models.batch_job import BatchJob
from ..models.call_edge import CallEdge
from ..models.crud_link import CrudLink
from ..models.endpoint import Endpoint
from ..models.sql_mapping import SqlDeclaration, SqlMapping, SqlOperation
from ..parser.call_graph_builder import (
    DEFAULT_DATA_ACCESS_SUFFIXES,
    Adjacency,
    CallGraphBuilder,
)
from .mapping_matcher import MappingMatcher
from .reachability_resolver import ReachabilityResolver
from .sql_classifier import SqlClassifier

EndpointResolution = Tuple[Set[str], List[CrudLink]]


class CrudResolutionEngine:
    """
    CRUD Resolution Engine 클래스

    호출 그래프는 한 번만 생성되고 이후 읽기 전용으로 사용됩니다.
    max_workers가 1보다 크면 엔드포인트별 분석을 스레드 풀에서 병렬로 수행하며,
    결과는 엔드포인트 순서대로 병합되므로 출력은 순차 실행과 동일합니다.
    """

    def __init__(
        self,
        classifier: Optional[SqlClassifier] = None,
        graph_builder: Optional[CallGraphBuilder] = None,
        resolver: Optional[ReachabilityResolver] = None,
        matcher: Optional[MappingMatcher] = None,
        max_workers: int = 1,
        include_packages: Sequence[str] = (),
        exclude_packages: Sequence[str] = (),
        show_progress: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        """
        CrudResolutionEngine 초기화

        Args:
            classifier: SQL 분류기
            graph_builder: Call Graph Builder
            resolver: 도달성 분석기
            matcher: SQL 매핑 매처
            max_workers: 엔드포인트 분석 워커 수 (1이면 순차 실행)
            include_packages: 분석할 엔드포인트 패키지 접두사 (비어 있으면 전체)
            exclude_packages: 제외할 엔드포인트 패키지 접두사
            show_progress: 진행 상황 표시 여부
            logger: 로거 (없으면 모듈 로거 사용)
        """
        self.logger = logger or logging.getLogger(__name__)
        self.classifier = classifier or SqlClassifier(logger=self.logger)
        self.graph_builder = graph_builder or CallGraphBuilder(logger=self.logger)
        self.resolver = resolver or ReachabilityResolver(logger=self.logger)
        self.matcher = matcher or MappingMatcher(logger=self.logger)
        self.max_workers = max(1, max_workers)
        self.include_packages = tuple(include_packages)
        self.exclude_packages = tuple(exclude_packages)
        self.show_progress = show_progress

    @classmethod
    def from_config(cls, config, logger: Optional[logging.Logger] = None) -> "CrudResolutionEngine":
        """
        Configuration으로부터 엔진 생성

        Args:
            config: Configuration 객체
            logger: 로거

        Returns:
            CrudResolutionEngine: 설정이 반영된 엔진
        """
        logger = logger or logging.getLogger(__name__)
        suffixes = tuple(config.data_access_suffixes or DEFAULT_DATA_ACCESS_SUFFIXES)
        return cls(
            classifier=SqlClassifier(dialect=config.sql_dialect, logger=logger),
            graph_builder=CallGraphBuilder(suffixes, logger=logger),
            resolver=ReachabilityResolver(suffixes, logger=logger),
            matcher=MappingMatcher(data_access_suffixes=suffixes, logger=logger),
            max_workers=config.max_workers,
            include_packages=config.include_packages,
            exclude_packages=config.exclude_packages,
            show_progress=config.show_progress,
            logger=logger,
        )

    def classify_declarations(self, declarations: Iterable[SqlDeclaration]) -> List[SqlMapping]:
        """
        SQL 선언 목록을 분류하여 SqlMapping 목록 생성

        한 선언의 분류 중 예외가 발생하면 로그를 남기고 해당 선언만 제외합니다.

        Args:
            declarations: SQL 선언 목록

        Returns:
            List[SqlMapping]: 분류된 SQL 매핑 목록
        """
        mappings: List[SqlMapping] = []
        for declaration in declarations:
            try:
                mappings.append(self._classify_declaration(declaration))
            except Exception as e:
                self.logger.error(
                    f"SQL 분류 실패, 매핑을 제외합니다: "
                    f"{declaration.owner_identifier}#{declaration.operation_id} - {e}"
                )

        self.logger.info(f"SQL 매핑 {len(mappings)}개 분류 완료")
        return mappings

    def _classify_declaration(self, declaration: SqlDeclaration) -> SqlMapping:
        result = self.classifier.classify(declaration.raw_text)

        # 분류기가 판단하지 못한 경우 선언 태그(select/insert/...)를 사용
        declared = SqlOperation.from_name(declaration.declared_operation)
        if result.operation is SqlOperation.UNKNOWN and declared is not SqlOperation.UNKNOWN:
            result = replace(result, operation=declared)
        return SqlMapping.from_classification(declaration, result)

    def filter_endpoints(self, endpoints: Iterable[Endpoint]) -> List[Endpoint]:
        """include_packages, exclude_packages 설정으로 엔드포인트 필터링"""
        selected = []
        for endpoint in endpoints:
            package = endpoint.package_name or endpoint.entry_class.rpartition(".")[0]
            if self.include_packages and not package.startswith(self.include_packages):
                continue
            if self.exclude_packages and package.startswith(self.exclude_packages):
                continue
            selected.append(endpoint)
        return selected

    def run(
        self,
        endpoints: Iterable[Endpoint],
        edges: Iterable[CallEdge],
        mappings: Iterable[SqlMapping],
        batch_jobs: Iterable[BatchJob] = (),
    ) -> AnalysisResult:
        """
        CRUD 분석 실행

        Args:
            endpoints: 엔드포인트 목록
            edges: 호출 관계 목록
            mappings: SQL 매핑 목록
            batch_jobs: 배치 작업 목록 (보고용으로만 결과에 포함)

        Returns:
            AnalysisResult: 분석 결과
        """
        adjacency = self.graph_builder.build(edges)
        cycles = self.graph_builder.detect_circular_references(
            self.graph_builder.to_digraph(adjacency)
        )

        targets = self.filter_endpoints(endpoints)
        mapping_list = list(mappings)
        self.logger.info(
            f"CRUD 분석 시작: 엔드포인트 {len(targets)}개, SQL 매핑 {len(mapping_list)}개"
        )

        resolutions = self._resolve_all(adjacency, targets, mapping_list)

        result = AnalysisResult(
            cycles=cycles, batch_jobs=list(batch_jobs), endpoint_count=len(targets)
        )
        for endpoint, (terminals, links) in zip(targets, resolutions):
            if not terminals:
                self.logger.debug(f"데이터 접근 계층에 도달하지 않는 엔드포인트: {endpoint.identifier}")
                continue
            result.terminals[endpoint.identifier] = sorted(terminals)
            result.links.extend(links)

        self.logger.info(
            f"CRUD 분석 완료: 테이블 {result.table_count}개, "
            f"엔드포인트 {result.linked_endpoint_count}개, CRUD 연결 {len(result.links)}개"
        )
        if not result.links:
            self.logger.warning("no CRUD links produced: 매칭된 SQL 매핑이 없습니다.")

        return result

    def _resolve_endpoint(
        self, adjacency: Adjacency, endpoint: Endpoint, mappings: List[SqlMapping]
    ) -> EndpointResolution:
        terminals = self.resolver.resolve(adjacency, endpoint)
        return terminals, self.matcher.match(endpoint, mappings, terminals)

    def _resolve_all(
        self, adjacency: Adjacency, endpoints: List[Endpoint], mappings: List[SqlMapping]
    ) -> List[EndpointResolution]:
        """엔드포인트별 분석 결과를 입력 순서대로 반환"""
        if self.max_workers == 1 or len(endpoints) <= 1:
            return [
                self._resolve_endpoint(adjacency, endpoint, mappings)
                for endpoint in tqdm(endpoints, desc="엔드포인트 분석 중", disable=not self.show_progress)
            ]

        results: List[Optional[EndpointResolution]] = [None] * len(endpoints)
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_index = {
                executor.submit(self._resolve_endpoint, adjacency, endpoint, mappings): i
                for i, endpoint in enumerate(endpoints)
            }

            completed_iter = tqdm(
                as_completed(future_to_index),
                total=len(endpoints),
                desc="엔드포인트 분석 중",
                disable=not self.show_progress,
            )
            for future in completed_iter:
                index = future_to_index[future]
                results[index] = future.result()
                self.logger.debug(f"엔드포인트 {index + 1}/{len(endpoints)} 분석 완료")

        return results
