"""
CallEdge 데이터 모델

메서드 호출 관계(방향 간선)를 저장하는 데이터 모델입니다.
"""

from dataclasses import dataclass

from ..util.identifier import make_identifier


@dataclass(frozen=True)
class CallEdge:
    """
    메서드 호출 관계를 저장하는 데이터 모델

    Attributes:
        from_class: 호출하는 클래스
        from_method: 호출하는 메서드
        to_class: 호출되는 클래스
        to_method: 호출되는 메서드
    """

    from_class: str
    from_method: str
    to_class: str
    to_method: str

    @property
    def from_id(self) -> str:
        return make_identifier(self.from_class, self.from_method)

    @property
    def to_id(self) -> str:
        return make_identifier(self.to_class, self.to_method)

    def to_dict(self) -> dict:
        """딕셔너리 형태로 변환"""
        return {
            "from_class": self.from_class,
            "from_method": self.from_method,
            "to_class": self.to_class,
            "to_method": self.to_method,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CallEdge":
        """딕셔너리로부터 CallEdge 객체 생성"""
        return cls(
            from_class=data["from_class"],
            from_method=data.get("from_method", ""),
            to_class=data["to_class"],
            to_method=data.get("to_method", ""),
        )
