"""
Result Writer 모듈

CRUD 분석 결과를 JSON 파일과 Markdown CRUD 매트릭스로 저장합니다.

출력 구조:
    <output_dir>/analysis.json
    <output_dir>/crud-matrix.md                        (인덱스 + 전체 매트릭스)
    <output_dir>/crud/packages/<package>-crud-matrix.md (패키지별 매트릭스)
    <output_dir>/crud-diagram.puml                     (PlantUML 시퀀스 다이어그램)
"""

import json
import logging
from collections import OrderedDict
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from tabulate import tabulate

from ..models.analysis_result import AnalysisResult
from ..models.call_edge import CallEdge
from ..models.crud_link import CrudLink
from ..models.endpoint import Endpoint
from ..models.sql_mapping import SqlMapping
from ..util.identifier import simple_name
from .fact_loader import Facts, PersistenceError
from .json_encoder import CustomJSONEncoder

ANALYSIS_FILE = "analysis.json"
MATRIX_FILE = "crud-matrix.md"
PACKAGE_MATRIX_DIR = Path("crud") / "packages"
DIAGRAM_FILE = "crud-diagram.puml"

# 다이어그램이 읽을 수 있는 크기로 유지되도록 출력 개수 제한
DIAGRAM_MAX_LINKS = 8
DIAGRAM_MAX_JOBS = 5
DIAGRAM_MAX_JOB_CALLS = 3


def build_crud_matrix(links: Iterable[CrudLink]) -> Tuple[List[str], List[List[str]]]:
    """
    CRUD 매트릭스 생성

    행은 엔드포인트(최초 등장 순서), 열은 정렬된 테이블명이며,
    각 셀은 해당 엔드포인트-테이블의 CRUD 코드를 중복 없이 정렬하여 이어 붙인 값입니다.

    Args:
        links: CRUD 연결 목록

    Returns:
        Tuple[List[str], List[List[str]]]: (헤더, 행 목록)
    """
    cells: Dict[Endpoint, Dict[str, set]] = OrderedDict()
    tables = set()
    for link in links:
        cells.setdefault(link.endpoint, {}).setdefault(link.table, set()).add(link.crud_code)
        tables.add(link.table)

    columns = sorted(tables)
    headers = ["URL", "HTTP"] + columns
    rows = []
    for endpoint, by_table in cells.items():
        row = [endpoint.url_path, endpoint.http_method]
        row.extend("".join(sorted(by_table.get(table, ()))) for table in columns)
        rows.append(row)
    return headers, rows


def package_of(endpoint: Endpoint) -> str:
    """엔드포인트의 패키지명 (없으면 진입 클래스에서 추출)"""
    return endpoint.package_name or endpoint.entry_class.rpartition(".")[0] or "(default)"


class ResultWriter:
    """
    분석 결과 출력 클래스

    Args:
        output_dir: 출력 디렉터리
        logger: 로거
    """

    def __init__(self, output_dir: Union[str, Path], logger: Optional[logging.Logger] = None):
        self.output_dir = Path(output_dir)
        self.logger = logger or logging.getLogger(__name__)

    def _write_text(self, path: Path, content: str) -> Path:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"파일 저장 실패: {path} - {e}")
        self.logger.info(f"파일 저장 완료: {path}")
        return path

    def write_analysis_json(
        self, facts: Facts, mappings: Sequence[SqlMapping], result: AnalysisResult
    ) -> Path:
        """
        analysis.json 저장

        Returns:
            Path: 저장된 파일 경로

        Raises:
            PersistenceError: 저장 실패 시
        """
        data = {
            "generated_at": datetime.now(),
            "endpoints": facts.endpoints,
            "edges": facts.call_edges,
            "sql": list(mappings),
            **result.to_dict(),
        }
        content = json.dumps(data, cls=CustomJSONEncoder, indent=2, ensure_ascii=False)
        return self._write_text(self.output_dir / ANALYSIS_FILE, content)

    def render_matrix(self, links: Iterable[CrudLink], title: str) -> str:
        """CRUD 매트릭스 Markdown 문서 생성"""
        headers, rows = build_crud_matrix(links)
        lines = [
            f"# {title}",
            "",
            f"**Generated:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            "",
        ]
        if rows:
            lines.append(tabulate(rows, headers=headers, tablefmt="github"))
        else:
            lines.append("CRUD 연결이 없습니다.")
        lines.append("")
        return "\n".join(lines)

    def render_index(self, result: AnalysisResult, endpoints: Sequence[Endpoint]) -> str:
        """통계, 패키지별 매트릭스 목록, 전체 매트릭스, 배치 작업 목록을 담은 인덱스 문서 생성"""
        packages = self._group_links_by_package(result.links, endpoints)

        lines = [
            "# CRUD Matrix",
            "",
            f"**Generated:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            "## 통계",
            "",
            f"- **패키지 수:** {len(packages)}",
            f"- **엔드포인트 수:** {len(endpoints)}",
            f"- **CRUD 연결 엔드포인트 수:** {result.linked_endpoint_count}",
            f"- **배치 작업 수:** {len(result.batch_jobs)}",
            f"- **테이블 수:** {result.table_count}",
            f"- **CRUD 연결 수:** {len(result.links)}",
            "",
        ]

        if result.cycles:
            lines.append(f"- **순환 참조 수:** {len(result.cycles)}")
            lines.append("")

        lines.extend(["## 패키지별 CRUD 매트릭스", ""])
        for package, package_links in packages.items():
            if not package_links:
                continue
            file_name = self.package_file_name(package)
            tables = sorted({link.table for link in package_links})
            lines.extend(
                [
                    f"### {package}",
                    "",
                    f"- **파일:** [{file_name}]({(PACKAGE_MATRIX_DIR / file_name).as_posix()})",
                    f"- **대상 테이블:** {', '.join(tables)}",
                    f"- **CRUD 연결 수:** {len(package_links)}",
                    "",
                ]
            )

        lines.extend(["## 전체 CRUD 매트릭스", ""])
        headers, rows = build_crud_matrix(result.links)
        lines.append(tabulate(rows, headers=headers, tablefmt="github") if rows else "CRUD 연결이 없습니다.")
        lines.append("")

        if result.batch_jobs:
            lines.extend(["## 배치 작업 목록", ""])
            job_rows = [[job.package_name, job.job_name, job.class_name] for job in result.batch_jobs]
            lines.append(tabulate(job_rows, headers=["패키지", "작업명", "클래스"], tablefmt="github"))
            lines.append("")

        return "\n".join(lines)

    @staticmethod
    def package_file_name(package: str) -> str:
        return package.replace(".", "-") + "-crud-matrix.md"

    @staticmethod
    def _group_links_by_package(
        links: Iterable[CrudLink], endpoints: Sequence[Endpoint]
    ) -> Dict[str, List[CrudLink]]:
        groups: Dict[str, List[CrudLink]] = OrderedDict()
        for endpoint in endpoints:
            groups.setdefault(package_of(endpoint), [])
        for link in links:
            groups.setdefault(package_of(link.endpoint), []).append(link)
        return groups

    def write_crud_matrix(self, result: AnalysisResult, endpoints: Sequence[Endpoint]) -> List[Path]:
        """
        인덱스 매트릭스와 패키지별 매트릭스 저장

        Returns:
            List[Path]: 저장된 파일 경로 목록 (인덱스가 첫 번째)

        Raises:
            PersistenceError: 저장 실패 시
        """
        written = [
            self._write_text(self.output_dir / MATRIX_FILE, self.render_index(result, endpoints))
        ]
        for package, package_links in self._group_links_by_package(result.links, endpoints).items():
            if not package_links:
                continue
            path = self.output_dir / PACKAGE_MATRIX_DIR / self.package_file_name(package)
            written.append(self._write_text(path, self.render_matrix(package_links, f"CRUD Matrix: {package}")))
        return written

    def render_plantuml(self, result: AnalysisResult, edges: Sequence[CallEdge] = ()) -> str:
        """
        CRUD 관계 PlantUML 시퀀스 다이어그램 생성

        엔드포인트 흐름은 앞쪽 CRUD 연결만, 배치 흐름은 앞쪽 배치 작업과
        작업 클래스에서 직접 나가는 호출 관계 일부만 그립니다.
        """
        lines = ["@startuml"]

        if result.links:
            lines.append("actor User")
            for link in result.links[:DIAGRAM_MAX_LINKS]:
                controller = simple_name(link.endpoint.entry_class)
                lines.extend(
                    [
                        f"User -> {controller}: {link.endpoint.http_method} {link.endpoint.url_path}",
                        f"{controller} -> Service: ...",
                        f"Service -> {link.table}: {link.operation.value}",
                        f"{link.table} --> Service: result",
                        f"Service --> {controller}",
                        f"{controller} --> User: 200",
                    ]
                )

        if result.batch_jobs:
            lines.append("participant Scheduler")
            for job in result.batch_jobs[:DIAGRAM_MAX_JOBS]:
                job_class = simple_name(job.class_name)
                lines.append(f"Scheduler -> {job_class}: trigger {job.job_name}")
                lines.append(f"{job_class} -> Service: execute")
                calls = [edge for edge in edges if edge.from_class == job.class_name]
                for edge in calls[:DIAGRAM_MAX_JOB_CALLS]:
                    callee = simple_name(edge.to_class)
                    lines.extend(
                        [
                            f"Service -> {callee}: {edge.to_method}",
                            f"{callee} -> Database: SQL",
                            f"Database --> {callee}: result",
                            f"{callee} --> Service",
                        ]
                    )
                lines.append(f"Service --> {job_class}: complete")
                lines.append(f"{job_class} --> Scheduler: finished")

        lines.append("@enduml")
        return "\n".join(lines) + "\n"

    def write_plantuml(self, result: AnalysisResult, edges: Sequence[CallEdge] = ()) -> Path:
        """
        crud-diagram.puml 저장

        Raises:
            PersistenceError: 저장 실패 시
        """
        return self._write_text(self.output_dir / DIAGRAM_FILE, self.render_plantuml(result, edges))
