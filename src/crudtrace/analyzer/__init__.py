"""
분석 모듈

SQL 분류, 도달성 분석, SQL 매핑 매칭, CRUD 분석 엔진을 제공합니다.
"""

from .crud_engine import CrudResolutionEngine
from .mapping_matcher import (
    ExactIdentityMatch,
    LooseSuffixMatch,
    MappingMatcher,
    MatchStrategy,
    RestrictedContainmentMatch,
    SimpleNameMatch,
)
from .reachability_resolver import ReachabilityResolver
from .sql_classifier import SqlClassifier, SqlNormalizer

__all__ = [
    "SqlClassifier",
    "SqlNormalizer",
    "ReachabilityResolver",
    "MappingMatcher",
    "MatchStrategy",
    "ExactIdentityMatch",
    "SimpleNameMatch",
    "LooseSuffixMatch",
    "RestrictedContainmentMatch",
    "CrudResolutionEngine",
]
