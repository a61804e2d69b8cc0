"""
Reachability Resolver 모듈

엔드포인트의 진입 메서드부터 호출 그래프를 너비 우선으로 탐색하여
도달 가능한 데이터 접근 계층(Mapper/Repository/DAO) 메서드 식별자를 찾습니다.
"""

import logging
from collections import deque
from typing import List, Optional, Sequence, Set

from ..models.endpoint import Endpoint
from ..parser.call_graph_builder import DEFAULT_DATA_ACCESS_SUFFIXES, Adjacency
from ..util.identifier import split_identifier


class ReachabilityResolver:
    """
    호출 그래프 도달성 분석기

    - 순환 호출이 있어도 방문 집합으로 종료가 보장됩니다.
    - 데이터 접근 계층 노드(terminal)도 계속 확장합니다. (Mapper가 다른 Mapper를 호출하는 경우)
    - 방문 집합은 resolve() 호출마다 새로 만들어지므로 엔드포인트 간에 상태를 공유하지 않습니다.
    """

    def __init__(
        self,
        data_access_suffixes: Sequence[str] = DEFAULT_DATA_ACCESS_SUFFIXES,
        logger: Optional[logging.Logger] = None,
    ):
        """
        ReachabilityResolver 초기화

        Args:
            data_access_suffixes: 데이터 접근 계층으로 판단할 클래스명 접미사
            logger: 로거 (없으면 모듈 로거 사용)
        """
        self.data_access_suffixes = tuple(data_access_suffixes)
        self.logger = logger or logging.getLogger(__name__)

    def is_terminal(self, identifier: str) -> bool:
        """클래스명이 데이터 접근 계층 접미사로 끝나는지 확인"""
        class_part, _ = split_identifier(identifier)
        return class_part.endswith(self.data_access_suffixes)

    def reachable(self, adjacency: Adjacency, endpoint: Endpoint) -> List[str]:
        """
        진입 메서드에서 도달 가능한 모든 식별자 (발견 순서, 진입 메서드 제외)

        Args:
            adjacency: Call Graph 인접 맵 (읽기 전용)
            endpoint: 탐색 시작 엔드포인트

        Returns:
            List[str]: 발견 순서대로 정렬된 식별자 목록
        """
        start = endpoint.identifier
        visited: Set[str] = {start}
        discovered: List[str] = []
        queue = deque([start])

        while queue:
            current = queue.popleft()
            for callee in sorted(adjacency.get(current, ())):
                if callee in visited:
                    continue
                visited.add(callee)
                discovered.append(callee)
                queue.append(callee)

        return discovered

    def resolve(self, adjacency: Adjacency, endpoint: Endpoint) -> Set[str]:
        """
        엔드포인트에서 도달 가능한 데이터 접근 계층 식별자 집합

        Args:
            adjacency: Call Graph 인접 맵 (읽기 전용)
            endpoint: 탐색 시작 엔드포인트

        Returns:
            Set[str]: terminal 식별자 집합 (호출 관계가 없으면 빈 집합)
        """
        discovered = self.reachable(adjacency, endpoint)
        terminals = {identifier for identifier in discovered if self.is_terminal(identifier)}

        self.logger.debug(
            f"{endpoint.identifier}: 도달 노드 {len(discovered)}개, "
            f"데이터 접근 노드 {len(terminals)}개"
        )
        return terminals
