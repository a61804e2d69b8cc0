"""
Reachability Resolver 테스트

호출 그래프 너비 우선 탐색과 데이터 접근 계층 판별을 테스트합니다.
"""

import pytest

from crudtrace.analyzer.reachability_resolver import ReachabilityResolver
from crudtrace.models.call_edge import CallEdge
from crudtrace.models.endpoint import Endpoint
from crudtrace.parser.call_graph_builder import CallGraphBuilder


@pytest.fixture
def resolver():
    """도달성 분석기 생성"""
    return ReachabilityResolver()


@pytest.fixture
def endpoint():
    """샘플 엔드포인트"""
    return Endpoint("GET", "/users", "UserController", "list")


def build(edges):
    return CallGraphBuilder().build(CallEdge(*edge) for edge in edges)


def test_is_terminal(resolver):
    """클래스명 접미사로 데이터 접근 계층 판별"""
    assert resolver.is_terminal("UserMapper#findAll")
    assert resolver.is_terminal("com.example.OrderRepository#save")
    assert resolver.is_terminal("LegacyDAO#load")
    assert not resolver.is_terminal("UserService#list")
    assert not resolver.is_terminal("MapperFactory#create")


def test_resolve_simple_chain(resolver, endpoint):
    """Controller -> Service -> Mapper"""
    adjacency = build(
        [
            ("UserController", "list", "UserService", "list"),
            ("UserService", "list", "UserMapper", "findAll"),
        ]
    )

    assert resolver.resolve(adjacency, endpoint) == {"UserMapper#findAll"}


def test_resolve_with_cycle(resolver, endpoint):
    """순환 호출이 있어도 종료"""
    adjacency = build(
        [
            ("UserController", "list", "UserService", "list"),
            ("UserService", "list", "UserHelper", "load"),
            ("UserHelper", "load", "UserService", "list"),
            ("UserHelper", "load", "UserMapper", "findAll"),
        ]
    )

    assert resolver.resolve(adjacency, endpoint) == {"UserMapper#findAll"}


def test_resolve_long_chain(resolver, endpoint):
    """깊은 호출 체인"""
    edges = [("UserController", "list", "Step0", "run")]
    edges += [(f"Step{i}", "run", f"Step{i + 1}", "run") for i in range(500)]
    edges.append(("Step500", "run", "AuditRepository", "save"))

    assert resolver.resolve(build(edges), endpoint) == {"AuditRepository#save"}


def test_terminal_is_expanded(resolver, endpoint):
    """데이터 접근 계층 노드도 계속 확장"""
    adjacency = build(
        [
            ("UserController", "list", "UserMapper", "findAll"),
            ("UserMapper", "findAll", "RoleMapper", "findByUser"),
        ]
    )

    assert resolver.resolve(adjacency, endpoint) == {"UserMapper#findAll", "RoleMapper#findByUser"}


def test_resolve_without_edges(resolver, endpoint):
    """호출 관계가 없으면 빈 집합"""
    assert resolver.resolve({}, endpoint) == set()


def test_reachable_excludes_start_and_keeps_order(resolver, endpoint):
    """진입 메서드는 결과에 포함되지 않고 발견 순서를 유지"""
    adjacency = build(
        [
            ("UserController", "list", "BService", "b"),
            ("UserController", "list", "AService", "a"),
            ("AService", "a", "UserController", "list"),
            ("AService", "a", "CMapper", "c"),
        ]
    )

    assert resolver.reachable(adjacency, endpoint) == ["AService#a", "BService#b", "CMapper#c"]


def test_custom_suffixes(endpoint):
    """사용자 정의 데이터 접근 계층 접미사"""
    resolver = ReachabilityResolver(data_access_suffixes=("Gateway",))
    adjacency = build(
        [
            ("UserController", "list", "UserGateway", "fetch"),
            ("UserController", "list", "UserMapper", "findAll"),
        ]
    )

    assert resolver.resolve(adjacency, endpoint) == {"UserGateway#fetch"}
