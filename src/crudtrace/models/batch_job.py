"""
BatchJob 데이터 모델

스케줄러 등으로 실행되는 배치 진입점 정보입니다. 보고서에만 사용됩니다.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BatchJob:
    """
    배치 작업 정보

    Attributes:
        class_name: 배치 작업 클래스명
        job_name: 배치 작업 이름
        package_name: 패키지명
    """

    class_name: str
    job_name: str
    package_name: str = ""

    def to_dict(self) -> dict:
        """딕셔너리 형태로 변환"""
        return {
            "class_name": self.class_name,
            "job_name": self.job_name,
            "package_name": self.package_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BatchJob":
        """딕셔너리로부터 BatchJob 객체 생성"""
        return cls(
            class_name=data["class_name"],
            job_name=data.get("job_name", data["class_name"]),
            package_name=data.get("package_name", ""),
        )
