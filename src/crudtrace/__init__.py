"""
crudtrace

엔드포인트에서 호출 그래프를 따라 도달 가능한 데이터 접근 메서드를 찾고,
해당 메서드의 SQL을 분류하여 엔드포인트별 테이블 CRUD 매트릭스를 생성합니다.
"""

__version__ = "0.1.0"
