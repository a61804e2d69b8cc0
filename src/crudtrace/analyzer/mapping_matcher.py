"""
Mapping Matcher 모듈

Strategy Pattern을 사용하여 SQL 매핑과 호출 그래프에서 도달한 식별자를 대조합니다.

호출 그래프 추출기와 SQL 매핑 추출기는 식별자를 서로 다르게 표기하는 경우가 많습니다.
(FQCN vs 단순 클래스명, 인터페이스 vs 구현체 등) 매칭은 정밀한 규칙부터 느슨한 규칙 순서로 시도하며
처음 성공한 규칙에서 멈춥니다.

    1. ExactIdentityMatch: owner#operation_id 완전 일치
    2. SimpleNameMatch: 패키지를 제거한 단순 클래스명#operation_id 일치
    3. LooseSuffixMatch: 클래스명에 단순 클래스명이 포함되고 메서드명이 operation_id와 일치
    4. RestrictedContainmentMatch: owner가 데이터 접근 계층 접미사를 가진 경우에만,
       클래스명에 단순 클래스명이 포함되면 메서드와 무관하게 일치 (오탐 가능성이 가장 높음)
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence, Set

from ..models.crud_link import CrudLink
from ..models.endpoint import Endpoint
from ..models.sql_mapping import SqlMapping, SqlOperation
from ..parser.call_graph_builder import DEFAULT_DATA_ACCESS_SUFFIXES
from ..util.identifier import make_identifier, simple_name, split_identifier


class MatchStrategy(ABC):
    """매칭 규칙 인터페이스"""

    name = "match"

    @abstractmethod
    def matches(self, mapping: SqlMapping, reachable: Set[str]) -> bool:
        """
        SQL 매핑이 도달 가능한 식별자 집합과 일치하는지 확인

        Args:
            mapping: SQL 매핑
            reachable: 도달 가능한 식별자 집합

        Returns:
            bool: 일치 여부
        """
        pass


class ExactIdentityMatch(MatchStrategy):
    name = "exact"

    def matches(self, mapping: SqlMapping, reachable: Set[str]) -> bool:
        return make_identifier(mapping.owner_identifier, mapping.operation_id) in reachable


class SimpleNameMatch(MatchStrategy):
    name = "simple-name"

    def matches(self, mapping: SqlMapping, reachable: Set[str]) -> bool:
        owner = simple_name(mapping.owner_identifier)
        return make_identifier(owner, mapping.operation_id) in reachable


class LooseSuffixMatch(MatchStrategy):
    name = "loose-suffix"

    def matches(self, mapping: SqlMapping, reachable: Set[str]) -> bool:
        owner = simple_name(mapping.owner_identifier)
        if not owner:
            return False
        for identifier in reachable:
            class_part, method_part = split_identifier(identifier)
            if owner in class_part and method_part == mapping.operation_id:
                return True
        return False


class RestrictedContainmentMatch(MatchStrategy):
    name = "restricted-containment"

    def __init__(self, data_access_suffixes: Sequence[str] = DEFAULT_DATA_ACCESS_SUFFIXES):
        self.data_access_suffixes = tuple(data_access_suffixes)

    def matches(self, mapping: SqlMapping, reachable: Set[str]) -> bool:
        owner = simple_name(mapping.owner_identifier)
        if not owner or not owner.endswith(self.data_access_suffixes):
            return False
        return any(owner in split_identifier(identifier)[0] for identifier in reachable)


class MappingMatcher:
    """
    SQL 매핑 매처

    strategies 순서대로 매칭을 시도하고 처음 성공한 규칙에서 멈추므로,
    하나의 매핑에서 중복된 CrudLink가 만들어지지 않습니다.
    """

    def __init__(
        self,
        strategies: Optional[Sequence[MatchStrategy]] = None,
        data_access_suffixes: Sequence[str] = DEFAULT_DATA_ACCESS_SUFFIXES,
        logger: Optional[logging.Logger] = None,
    ):
        self.strategies: Sequence[MatchStrategy] = strategies or (
            ExactIdentityMatch(),
            SimpleNameMatch(),
            LooseSuffixMatch(),
            RestrictedContainmentMatch(data_access_suffixes),
        )
        self.logger = logger or logging.getLogger(__name__)

    def find_strategy(self, mapping: SqlMapping, reachable: Set[str]) -> Optional[MatchStrategy]:
        """처음으로 일치한 매칭 규칙 반환 (없으면 None)"""
        for strategy in self.strategies:
            if strategy.matches(mapping, reachable):
                return strategy
        return None

    def match(
        self,
        endpoint: Endpoint,
        mappings: Iterable[SqlMapping],
        reachable: Set[str],
    ) -> List[CrudLink]:
        """
        한 엔드포인트에 대한 CrudLink 목록 생성

        Args:
            endpoint: 엔드포인트
            mappings: SQL 매핑 목록
            reachable: 엔드포인트에서 도달 가능한 데이터 접근 계층 식별자 집합

        Returns:
            List[CrudLink]: 매칭된 매핑의 테이블마다 하나씩 생성된 CrudLink
        """
        links: List[CrudLink] = []
        if not reachable:
            return links

        for mapping in mappings:
            if mapping.operation is SqlOperation.UNKNOWN:
                self.logger.debug(
                    f"작업 종류를 알 수 없는 매핑은 건너뜁니다: "
                    f"{mapping.owner_identifier}#{mapping.operation_id}"
                )
                continue

            strategy = self.find_strategy(mapping, reachable)
            if strategy is None:
                continue

            sql_id = make_identifier(mapping.owner_identifier, mapping.operation_id)
            self.logger.debug(f"{endpoint.identifier} -> {sql_id} ({strategy.name})")
            for table in mapping.distinct_tables:
                links.append(CrudLink(endpoint, table, mapping.operation, sql_id))

        return links
