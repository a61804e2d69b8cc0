"""
analysis.json 저장용 JSON 인코더

데이터 모델(to_dict 보유), SqlOperation 등 Enum, 생성 시각, 경로, 집합을 직렬화합니다.
"""

import json
from datetime import date, datetime
from enum import Enum
from pathlib import PurePath


class CustomJSONEncoder(json.JSONEncoder):
    """
    분석 결과 JSON 인코더

    집합은 실행마다 출력이 달라지지 않도록 정렬된 리스트로 저장합니다.
    """

    def default(self, o):
        to_dict = getattr(o, "to_dict", None)
        if callable(to_dict):
            return to_dict()
        if isinstance(o, Enum):
            return o.value
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if isinstance(o, PurePath):
            return o.as_posix()
        if isinstance(o, (set, frozenset)):
            return sorted(o, key=str)
        return super().default(o)
