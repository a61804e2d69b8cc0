"""
데이터 영속화 모듈
"""

from .fact_loader import Facts, PersistenceError, load_facts, parse_facts
from .json_encoder import CustomJSONEncoder
from .result_writer import ResultWriter, build_crud_matrix

__all__ = [
    "Facts",
    "PersistenceError",
    "load_facts",
    "parse_facts",
    "CustomJSONEncoder",
    "ResultWriter",
    "build_crud_matrix",
]
