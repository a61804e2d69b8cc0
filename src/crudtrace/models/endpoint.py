"""
Endpoint 모델

분석 대상 서비스가 외부에 노출하는 진입점(REST API 엔드포인트) 정보를 나타내는 데이터 모델입니다.
"""

from dataclasses import dataclass

from ..util.identifier import make_identifier


@dataclass(frozen=True)
class Endpoint:
    """
    REST API 엔드포인트 정보

    Attributes:
        http_method: HTTP 메서드 (GET, POST, PUT, DELETE 등, 대문자로 정규화)
        url_path: 엔드포인트 경로
        entry_class: 진입 메서드를 선언한 클래스 (FQCN 또는 단순명)
        entry_method: 진입 메서드명
        package_name: 진입 클래스의 패키지명
    """

    http_method: str
    url_path: str
    entry_class: str
    entry_method: str
    package_name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "http_method", (self.http_method or "").upper())

    @property
    def identifier(self) -> str:
        """호출 그래프 탐색 시작점 (entry_class#entry_method)"""
        return make_identifier(self.entry_class, self.entry_method)

    @property
    def display_name(self) -> str:
        """보고서 표시용 이름 (예: GET /users)"""
        return f"{self.http_method} {self.url_path}".strip()

    def to_dict(self) -> dict:
        """딕셔너리 형태로 변환"""
        return {
            "http_method": self.http_method,
            "url_path": self.url_path,
            "entry_class": self.entry_class,
            "entry_method": self.entry_method,
            "package_name": self.package_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Endpoint":
        """딕셔너리로부터 Endpoint 객체 생성"""
        return cls(
            http_method=data.get("http_method", ""),
            url_path=data["url_path"],
            entry_class=data["entry_class"],
            entry_method=data["entry_method"],
            package_name=data.get("package_name", ""),
        )
