"""
Call Graph Builder

메서드 호출 관계(CallEdge) 목록으로부터 `class#method` 식별자를 키로 하는 인접 맵을 생성하고,
진단용으로 networkx 그래프(순환 참조 감지, Call Tree 출력)를 제공하는 모듈입니다.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Union

import networkx as nx

from ..models.call_edge import CallEdge
from ..models.endpoint import Endpoint
from ..util.identifier import split_identifier

Adjacency = Dict[str, Set[str]]

DEFAULT_DATA_ACCESS_SUFFIXES = ("Mapper", "Repository", "Dao", "DAO")


class CallGraphBuilder:
    """
    Call Graph Builder 클래스

    build()는 순수 함수로 동작하며, 생성된 인접 맵은 이후 탐색 과정에서 읽기 전용으로 사용됩니다.
    """

    def __init__(
        self,
        data_access_suffixes: Sequence[str] = DEFAULT_DATA_ACCESS_SUFFIXES,
        logger: Optional[logging.Logger] = None,
    ):
        """
        CallGraphBuilder 초기화

        Args:
            data_access_suffixes: 데이터 접근 계층 클래스명 접미사 (레이어 표시용)
            logger: 로거 (없으면 모듈 로거 사용)
        """
        self.data_access_suffixes = tuple(data_access_suffixes)
        self.logger = logger or logging.getLogger(__name__)

    def build(self, edges: Iterable[CallEdge]) -> Adjacency:
        """
        호출 관계 목록으로 인접 맵 생성

        Args:
            edges: 호출 관계 목록

        Returns:
            Dict[str, Set[str]]: 호출자 식별자 -> 피호출자 식별자 집합 (중복 간선은 하나로 합쳐짐)
        """
        adjacency: Adjacency = {}
        edge_count = 0
        for edge in edges:
            adjacency.setdefault(edge.from_id, set()).add(edge.to_id)
            edge_count += 1

        self.logger.debug(f"Call Graph 생성 완료: {len(adjacency)}개 호출자, {edge_count}개 간선")
        return adjacency

    def to_digraph(self, adjacency: Adjacency) -> nx.DiGraph:
        """인접 맵을 networkx DiGraph로 변환 (노드에 layer 속성 포함)"""
        graph = nx.DiGraph()
        for caller, callees in adjacency.items():
            graph.add_node(caller, layer=self.get_layer(caller))
            for callee in callees:
                if callee not in graph:
                    graph.add_node(callee, layer=self.get_layer(callee))
                graph.add_edge(caller, callee)
        return graph

    def get_layer(self, identifier: str) -> str:
        """
        식별자의 클래스명 접미사로 레이어 판별

        Returns:
            str: DataAccess, Controller, Service 또는 Unknown
        """
        class_part, _ = split_identifier(identifier)
        if class_part.endswith(self.data_access_suffixes):
            return "DataAccess"
        if class_part.endswith("Controller"):
            return "Controller"
        if class_part.endswith(("Service", "ServiceImpl")):
            return "Service"
        return "Unknown"

    def detect_circular_references(self, graph: nx.DiGraph) -> List[List[str]]:
        """
        순환 참조 감지

        Args:
            graph: Call Graph

        Returns:
            List[List[str]]: 순환 참조 경로 목록 (강한 연결 요소마다 하나)
        """
        cycles = []
        for scc in nx.strongly_connected_components(graph):
            if len(scc) == 1:
                node = next(iter(scc))
                if graph.has_edge(node, node):
                    cycles.append([node, node])
                continue

            subgraph = graph.subgraph(scc)
            # 시작 노드를 정렬하여 결과를 결정적으로 유지
            for node in sorted(scc):
                try:
                    cycle = nx.find_cycle(subgraph, source=node)
                except nx.NetworkXNoCycle:
                    continue
                cycles.append([edge[0] for edge in cycle] + [cycle[0][0]])
                break

        if cycles:
            self.logger.info(f"순환 참조 {len(cycles)}개가 감지되었습니다.")
        return cycles

    def get_call_tree(
        self,
        graph: nx.DiGraph,
        start: Union[Endpoint, str],
        max_depth: int = 10,
    ) -> Dict[str, Any]:
        """
        엔드포인트부터 시작하는 Call Tree를 딕셔너리 형태로 반환

        Args:
            graph: Call Graph
            start: 시작 엔드포인트 또는 식별자
            max_depth: 최대 탐색 깊이

        Returns:
            Dict[str, Any]: Call Tree 구조 (JSON 직렬화 가능). 시작점이 그래프에 없으면 빈 딕셔너리
        """
        start_node = start.identifier if isinstance(start, Endpoint) else start
        if start_node not in graph:
            self.logger.warning(f"시작점 '{start_node}'가 Call Graph에 없습니다.")
            return {}

        visited_in_path: Set[str] = set()

        def build_tree_node(node: str, depth: int) -> Optional[Dict[str, Any]]:
            if depth > max_depth:
                return None

            node_info: Dict[str, Any] = {
                "identifier": node,
                "layer": graph.nodes[node].get("layer", "Unknown"),
                "is_circular": node in visited_in_path,
                "children": [],
            }
            if node_info["is_circular"]:
                return node_info

            visited_in_path.add(node)
            for successor in sorted(graph.successors(node)):
                child_node = build_tree_node(successor, depth + 1)
                if child_node is not None:
                    node_info["children"].append(child_node)
            visited_in_path.remove(node)

            return node_info

        tree = build_tree_node(start_node, 0)
        if tree and isinstance(start, Endpoint):
            tree["endpoint"] = start.to_dict()
        return tree if tree else {}

    def format_call_tree(self, tree: Dict[str, Any], show_layers: bool = True) -> List[str]:
        """
        Call Tree를 터미널 출력용 문자열 목록으로 변환

        Args:
            tree: get_call_tree() 결과
            show_layers: 레이어 정보 표시 여부

        Returns:
            List[str]: 출력 라인 목록
        """
        lines: List[str] = []
        if not tree:
            return lines

        def format_node(node: Dict[str, Any], prefix: str, is_last: bool) -> None:
            layer_info = f" [{node['layer']}]" if show_layers else ""
            circular = " (recursive/circular)" if node["is_circular"] else ""
            connector = "└─ " if is_last else "├─ "
            lines.append(f"{prefix}{connector}{node['identifier']}{layer_info}{circular}")

            extension = "   " if is_last else "│  "
            children = node["children"]
            for i, child in enumerate(children):
                format_node(child, prefix + extension, i == len(children) - 1)

        format_node(tree, "", True)
        return lines
