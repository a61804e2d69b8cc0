"""
데이터 모델 모듈
"""

from .analysis_result import AnalysisResult
from .batch_job import BatchJob
from .call_edge import CallEdge
from .crud_link import CrudLink
from .endpoint import Endpoint
from .sql_mapping import (
    ClassificationResult,
    SqlDeclaration,
    SqlMapping,
    SqlOperation,
)

__all__ = [
    "Endpoint",
    "CallEdge",
    "SqlOperation",
    "SqlDeclaration",
    "SqlMapping",
    "ClassificationResult",
    "CrudLink",
    "BatchJob",
    "AnalysisResult",
]
