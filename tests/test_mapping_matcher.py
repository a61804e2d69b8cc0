"""
Mapping Matcher 테스트

SQL 매핑과 도달 가능한 식별자 간의 단계별 매칭 규칙을 테스트합니다.
"""

import pytest

from crudtrace.analyzer.mapping_matcher import (
    ExactIdentityMatch,
    LooseSuffixMatch,
    MappingMatcher,
    RestrictedContainmentMatch,
    SimpleNameMatch,
)
from crudtrace.models.endpoint import Endpoint
from crudtrace.models.sql_mapping import SqlMapping, SqlOperation


@pytest.fixture
def matcher():
    """기본 매처 생성"""
    return MappingMatcher()


@pytest.fixture
def endpoint():
    """샘플 엔드포인트"""
    return Endpoint("GET", "/users", "com.example.UserController", "list")


def mapping(owner, operation_id="findAll", operation=SqlOperation.SELECT, tables=("users",)):
    return SqlMapping(owner, operation_id, operation, "", tables=tuple(tables))


def test_exact_identity_match(matcher):
    """owner#operation_id 완전 일치"""
    m = mapping("com.example.mapper.UserMapper")
    strategy = matcher.find_strategy(m, {"com.example.mapper.UserMapper#findAll"})

    assert isinstance(strategy, ExactIdentityMatch)


def test_simple_name_match(matcher):
    """패키지를 제거한 단순 클래스명 일치"""
    m = mapping("com.example.mapper.UserMapper")
    strategy = matcher.find_strategy(m, {"UserMapper#findAll"})

    assert isinstance(strategy, SimpleNameMatch)


def test_loose_suffix_match(matcher):
    """구현체 클래스명에 단순 클래스명이 포함되고 메서드명 일치"""
    m = mapping("com.example.mapper.UserMapper")
    strategy = matcher.find_strategy(m, {"com.example.impl.UserMapperImpl#findAll"})

    assert isinstance(strategy, LooseSuffixMatch)


def test_restricted_containment_match(matcher):
    """데이터 접근 계층 owner는 메서드명과 무관하게 클래스명 포함 시 일치"""
    m = mapping("com.example.mapper.UserMapper", operation_id="selectUserList")
    strategy = matcher.find_strategy(m, {"UserMapperImpl#findAll"})

    assert isinstance(strategy, RestrictedContainmentMatch)


def test_restricted_containment_requires_suffix(matcher):
    """데이터 접근 계층 접미사가 없는 owner는 포함 규칙을 적용하지 않음"""
    m = mapping("com.example.UserQueries", operation_id="selectUserList")

    assert matcher.find_strategy(m, {"UserQueriesMapper#findAll"}) is None


def test_empty_owner_never_matches_loosely(matcher):
    """owner가 없으면 느슨한 규칙은 적용되지 않음"""
    m = mapping(None, operation_id="findAll")

    assert not LooseSuffixMatch().matches(m, {"UserMapper#findAll"})
    assert not RestrictedContainmentMatch().matches(m, {"UserMapper#findAll"})
    assert matcher.find_strategy(m, {"UserMapper#findAll"}) is None


def test_match_one_link_per_table(matcher, endpoint):
    """테이블마다 CrudLink 하나"""
    m = mapping(
        "UserMapper",
        operation_id="deleteWithRoles",
        operation=SqlOperation.DELETE,
        tables=("users", "user_roles", "users"),
    )
    links = matcher.match(endpoint, [m], {"UserMapper#deleteWithRoles"})

    assert [link.table for link in links] == ["users", "user_roles"]
    assert {link.crud_code for link in links} == {"D"}
    assert all(link.sql_id == "UserMapper#deleteWithRoles" for link in links)


def test_match_stops_at_first_strategy(matcher, endpoint):
    """여러 규칙에 해당해도 링크는 중복되지 않음"""
    m = mapping("com.example.UserMapper")
    reachable = {"com.example.UserMapper#findAll", "UserMapper#findAll", "UserMapperImpl#findAll"}

    links = matcher.match(endpoint, [m], reachable)

    assert len(links) == 1


def test_match_skips_unknown_operation(matcher, endpoint):
    """작업 종류를 알 수 없는 매핑은 링크를 만들지 않음"""
    m = mapping("UserMapper", operation=SqlOperation.UNKNOWN)

    assert matcher.match(endpoint, [m], {"UserMapper#findAll"}) == []


def test_match_empty_reachable(matcher, endpoint):
    """도달 가능한 식별자가 없으면 빈 목록"""
    assert matcher.match(endpoint, [mapping("UserMapper")], set()) == []


def test_custom_strategies(endpoint):
    """규칙 목록을 직접 지정"""
    matcher = MappingMatcher(strategies=[ExactIdentityMatch()])
    m = mapping("com.example.UserMapper")

    assert matcher.match(endpoint, [m], {"UserMapper#findAll"}) == []
