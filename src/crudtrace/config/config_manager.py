"""
Configuration Manager 모듈

JSON 설정 파일을 로드하고 검증하는 Configuration Manager를 구현합니다.
분석 입력(팩트 파일, Mapper XML 디렉터리), 출력 디렉터리, 데이터 접근 계층 규칙,
엔드포인트 필터, 로그 레벨 등을 파싱하고 스키마 검증을 수행합니다.
"""

import json
from pathlib import Path
from typing import List, Literal, Union

from pydantic import BaseModel, Field, ValidationError, field_validator


class ConfigurationError(Exception):
    """설정 관련 에러를 나타내는 사용자 정의 예외 클래스"""

    pass


class Configuration(BaseModel):
    facts_file: str = Field(..., description="엔드포인트, 호출 관계, 배치 작업 팩트 JSON 파일 경로")
    mapper_dirs: List[str] = Field(
        default_factory=list, description="MyBatis Mapper XML 디렉터리 목록"
    )
    output_dir: str = Field("output", description="분석 결과 출력 디렉터리")
    sql_dialect: str = Field("mysql", description="SQL 파싱에 사용할 sqlglot 방언")
    data_access_suffixes: List[str] = Field(
        default_factory=lambda: ["Mapper", "Repository", "Dao", "DAO"],
        description="데이터 접근 계층으로 판단할 클래스명 접미사",
    )
    include_packages: List[str] = Field(
        default_factory=list, description="분석할 엔드포인트 패키지 접두사 (비어 있으면 전체)"
    )
    exclude_packages: List[str] = Field(
        default_factory=list, description="분석에서 제외할 엔드포인트 패키지 접두사"
    )
    max_workers: int = Field(1, ge=1, description="엔드포인트 분석 병렬 워커 수")
    show_progress: bool = Field(False, description="진행 상황 표시 여부")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", description="콘솔 로그 레벨"
    )
    output_json: bool = Field(True, description="analysis.json 출력 여부")
    output_markdown: bool = Field(True, description="crud-matrix.md 출력 여부")
    output_plantuml: bool = Field(True, description="crud-diagram.puml 출력 여부")
    call_tree_depth: int = Field(10, ge=1, description="Call Tree 출력 최대 깊이")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    @field_validator("data_access_suffixes")
    @classmethod
    def _non_empty_suffixes(cls, value: List[str]) -> List[str]:
        suffixes = [suffix for suffix in value if suffix]
        if not suffixes:
            raise ValueError("데이터 접근 계층 접미사가 하나 이상 필요합니다")
        return suffixes


def load_config(config_file_path: Union[str, Path]) -> Configuration:
    """
    설정 파일을 로드합니다.

    Args:
        config_file_path: 설정 파일 경로

    Returns:
        Configuration: 로드된 설정 객체

    Raises:
        ConfigurationError: 설정 로드 실패 시
    """
    path = Path(config_file_path)
    if not path.exists():
        raise ConfigurationError(f"설정 파일을 찾을 수 없습니다: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            config_data = json.load(f)
        return Configuration(**config_data)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"설정 파일의 JSON 형식이 올바르지 않습니다: {e}")
    except TypeError as e:
        raise ConfigurationError(f"설정 파일의 최상위 값은 객체여야 합니다: {e}")
    except ValidationError as e:
        error_messages = []
        for error in e.errors():
            loc = " -> ".join(map(str, error["loc"]))
            msg = error["msg"]
            # 주요 에러 메시지 한글화
            if error["type"] == "missing":
                msg = "필수 항목이 누락되었습니다"
            elif "valid value" in msg or error["type"] == "literal_error":
                msg = f"유효한 값이 아닙니다 ({msg})"

            error_messages.append(f"  - 필드: {loc}, 원인: {msg}")

        formatted_error = "\n".join(error_messages)
        raise ConfigurationError(f"설정 파일 검증 실패:\n{formatted_error}")
    except IOError as e:
        raise ConfigurationError(f"설정 파일을 읽는 중 오류가 발생했습니다: {e}")
