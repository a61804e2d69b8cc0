"""
식별자 유틸리티

호출 그래프와 SQL 매핑에서 공통으로 사용하는 `{class}#{method}` 형식의
식별자를 만들고 분해하는 함수들입니다.
"""

from typing import Optional, Tuple

SEPARATOR = "#"


def make_identifier(class_name: Optional[str], method_name: Optional[str]) -> str:
    """클래스명과 메서드명으로 `class#method` 식별자 생성"""
    return f"{class_name or ''}{SEPARATOR}{method_name or ''}"


def split_identifier(identifier: str) -> Tuple[str, str]:
    """
    식별자를 (클래스, 메서드)로 분해합니다.

    구분자가 없으면 전체를 클래스 부분으로 보고 메서드는 빈 문자열이 됩니다.
    """
    class_part, _, method_part = identifier.partition(SEPARATOR)
    return class_part, method_part


def simple_name(qualified_name: Optional[str]) -> str:
    """패키지 경로를 제거한 단순 클래스명 (예: com.x.UserMapper -> UserMapper)"""
    if not qualified_name:
        return ""
    return qualified_name.rsplit(".", 1)[-1]
