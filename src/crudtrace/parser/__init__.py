"""
파서 모듈

호출 관계로부터 Call Graph를 생성하고, MyBatis Mapper XML에서 SQL 선언을 추출합니다.
"""

from .call_graph_builder import DEFAULT_DATA_ACCESS_SUFFIXES, CallGraphBuilder
from .xml_mapper_parser import XMLMapperParser

__all__ = ["CallGraphBuilder", "XMLMapperParser", "DEFAULT_DATA_ACCESS_SUFFIXES"]
