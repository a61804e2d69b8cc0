"""
CLI Controller 모듈

argparse를 사용하여 CLI 기본 구조를 구축하고, analyze, classify, callgraph, endpoints 명령어와
각 옵션을 파싱합니다.
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from tabulate import tabulate

from ..analyzer.crud_engine import CrudResolutionEngine
from ..analyzer.sql_classifier import SqlClassifier
from ..config.config_manager import Configuration, ConfigurationError, load_config
from ..models.endpoint import Endpoint
from ..parser.call_graph_builder import DEFAULT_DATA_ACCESS_SUFFIXES, CallGraphBuilder
from ..parser.xml_mapper_parser import XMLMapperParser
from ..persistence.fact_loader import Facts, PersistenceError, load_facts
from ..persistence.result_writer import ResultWriter

LOGGER_NAME = "crudtrace"


class CLIController:
    """
    CLI 명령어를 파싱하고 실행하는 컨트롤러 클래스

    주요 기능:
    1. analyze: 팩트 파일과 Mapper XML을 읽어 CRUD 분석 결과를 저장
    2. classify: SQL 텍스트 하나를 분류하여 출력
    3. callgraph: 엔드포인트 또는 메서드의 Call Tree 출력
    4. endpoints: 팩트 파일의 엔드포인트 목록 출력
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """CLIController 초기화"""
        self.parser = self._create_parser()
        self.logger = self._setup_logging(log_dir or Path("logs"))
        self.config: Optional[Configuration] = None

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        argparse 파서 생성 및 서브파서 설정

        Returns:
            argparse.ArgumentParser: 설정된 메인 파서
        """
        parser = argparse.ArgumentParser(
            prog="crudtrace",
            description="엔드포인트별 DB 테이블 CRUD 정적 분석 도구",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
예제:
  %(prog)s analyze --config config.json
  %(prog)s classify "DELETE FROM users WHERE id = #{id}"
  %(prog)s callgraph --config config.json UserController#list
  %(prog)s endpoints --config config.json
            """,
        )

        subparsers = parser.add_subparsers(
            dest="command",
            title="명령어",
            description="사용 가능한 명령어 목록:",
            metavar="COMMAND",
        )

        analyze_parser = subparsers.add_parser(
            "analyze",
            help="엔드포인트별 CRUD 매트릭스를 생성합니다",
            description="팩트 파일과 Mapper XML을 분석하여 엔드포인트별 CRUD 매트릭스를 생성합니다.",
        )
        analyze_parser.add_argument(
            "--config",
            type=str,
            default="config.json",
            help="설정 파일 경로 (기본값: config.json)",
        )

        classify_parser = subparsers.add_parser(
            "classify",
            help="SQL 텍스트의 작업 종류와 테이블을 출력합니다",
            description="SQL 텍스트의 작업 종류와 테이블을 출력합니다.",
        )
        classify_parser.add_argument("sql", type=str, help="분류할 SQL 텍스트")
        classify_parser.add_argument(
            "--dialect",
            type=str,
            default="mysql",
            help="sqlglot SQL 방언 (기본값: mysql)",
        )

        callgraph_parser = subparsers.add_parser(
            "callgraph",
            help="엔드포인트 또는 메서드의 호출 그래프를 출력합니다",
            description="엔드포인트(URL 경로) 또는 메서드(Class#method)의 호출 그래프를 출력합니다.",
        )
        callgraph_parser.add_argument(
            "target",
            type=str,
            metavar="ENDPOINT_OR_METHOD",
            help="URL 경로 또는 Class#method 식별자",
        )
        callgraph_parser.add_argument(
            "--config",
            type=str,
            default="config.json",
            help="설정 파일 경로 (기본값: config.json)",
        )
        callgraph_parser.add_argument(
            "--depth", type=int, default=None, help="최대 탐색 깊이 (기본값: 설정 파일 값)"
        )

        endpoints_parser = subparsers.add_parser(
            "endpoints",
            help="엔드포인트 목록을 출력합니다",
            description="팩트 파일의 엔드포인트 목록을 출력합니다.",
        )
        endpoints_parser.add_argument(
            "--config",
            type=str,
            default="config.json",
            help="설정 파일 경로 (기본값: config.json)",
        )

        return parser

    def _setup_logging(self, log_dir: Path) -> logging.Logger:
        """
        로깅 설정

        Returns:
            logging.Logger: 설정된 로거
        """
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"crudtrace_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(logging.DEBUG)

        # 같은 프로세스에서 컨트롤러를 다시 만들 때 핸들러가 중복되지 않도록 정리
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

        self.console_handler = logging.StreamHandler()
        self.console_handler.setLevel(logging.INFO)
        self.console_handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
        logger.addHandler(self.console_handler)

        return logger

    def parse_args(self, args: Optional[List[str]] = None) -> argparse.Namespace:
        """
        명령줄 인자 파싱

        Raises:
            SystemExit: 잘못된 인자 또는 명령어가 없을 때
        """
        parsed_args = self.parser.parse_args(args)

        if not parsed_args.command:
            self.parser.print_help()
            sys.exit(1)

        return parsed_args

    def load_config(self, config_path: str) -> Configuration:
        """
        설정 파일 로드 후 콘솔 로그 레벨 적용

        Raises:
            ConfigurationError: 설정 파일 로드 실패 시
        """
        try:
            self.config = load_config(config_path)
        except ConfigurationError as e:
            self.logger.error(f"설정 파일 로드 실패: {e}")
            raise

        self.console_handler.setLevel(getattr(logging, self.config.log_level))
        self.logger.info(f"설정 파일 로드 성공: {config_path}")
        return self.config

    def execute(self, args: Optional[List[str]] = None) -> int:
        """
        CLI 명령어 실행

        Args:
            args: 명령줄 인자 리스트 (None이면 sys.argv 사용)

        Returns:
            int: 종료 코드 (0: 성공, 1: 실패, 2: 인자 오류)
        """
        try:
            parsed_args = self.parse_args(args)
            self.logger.debug(f"명령어 실행: {parsed_args.command}")

            if parsed_args.command == "analyze":
                return self._handle_analyze(parsed_args)
            elif parsed_args.command == "classify":
                return self._handle_classify(parsed_args)
            elif parsed_args.command == "callgraph":
                return self._handle_callgraph(parsed_args)
            elif parsed_args.command == "endpoints":
                return self._handle_endpoints(parsed_args)
            else:
                self.logger.error(f"알 수 없는 명령어: {parsed_args.command}")
                return 1

        except SystemExit as e:
            return e.code if e.code is not None else 2
        except (ConfigurationError, PersistenceError) as e:
            print(f"오류: {e}", file=sys.stderr)
            return 1
        except KeyboardInterrupt:
            self.logger.warning("사용자에 의해 중단되었습니다")
            return 1
        except Exception as e:
            self.logger.exception(f"명령어 실행 중 오류 발생: {e}")
            return 1

    def _load_facts(self, config: Configuration) -> Facts:
        return load_facts(config.facts_file)

    def _handle_analyze(self, args: argparse.Namespace) -> int:
        """
        analyze 명령어 핸들러

        팩트 로드 -> Mapper XML 스캔 -> SQL 분류 -> CRUD 분석 -> 결과 저장 순서로 실행합니다.
        """
        config = self.load_config(args.config)
        facts = self._load_facts(config)

        declarations = list(facts.sql_declarations)
        if config.mapper_dirs:
            declarations.extend(XMLMapperParser(self.logger).scan(config.mapper_dirs))

        engine = CrudResolutionEngine.from_config(config, self.logger)
        mappings = engine.classify_declarations(declarations)
        result = engine.run(facts.endpoints, facts.call_edges, mappings, facts.batch_jobs)

        writer = ResultWriter(config.output_dir, self.logger)
        written: List[Path] = []
        if config.output_json:
            written.append(writer.write_analysis_json(facts, mappings, result))
        if config.output_markdown:
            written.extend(writer.write_crud_matrix(result, engine.filter_endpoints(facts.endpoints)))
        if config.output_plantuml:
            written.append(writer.write_plantuml(result, facts.call_edges))

        summary = [
            ["엔드포인트", result.endpoint_count],
            ["CRUD 연결 엔드포인트", result.linked_endpoint_count],
            ["SQL 매핑", len(mappings)],
            ["테이블", result.table_count],
            ["CRUD 연결", len(result.links)],
            ["배치 작업", len(result.batch_jobs)],
            ["순환 참조", len(result.cycles)],
        ]
        print("\n분석 결과:")
        print(tabulate(summary, headers=["항목", "개수"], tablefmt="grid"))
        for path in written:
            print(f"  - {path}")
        return 0

    def _handle_classify(self, args: argparse.Namespace) -> int:
        """classify 명령어 핸들러"""
        result = SqlClassifier(dialect=args.dialect, logger=self.logger).classify(args.sql)
        table_data = [
            ["작업", result.operation.value],
            ["CRUD 코드", result.operation.crud_code or "-"],
            ["대상 테이블", ", ".join(result.target_tables) or "-"],
            ["참조 테이블", ", ".join(result.reference_tables) or "-"],
        ]
        print(tabulate(table_data, tablefmt="grid"))
        return 0

    def _find_start(self, target: str, endpoints: List[Endpoint]):
        if "#" in target:
            return target
        for endpoint in endpoints:
            if endpoint.url_path == target:
                return endpoint
        return None

    def _handle_callgraph(self, args: argparse.Namespace) -> int:
        """callgraph 명령어 핸들러"""
        config = self.load_config(args.config)
        facts = self._load_facts(config)

        start = self._find_start(args.target, facts.endpoints)
        if start is None:
            print(f"엔드포인트를 찾을 수 없습니다: {args.target}", file=sys.stderr)
            return 1

        suffixes = tuple(config.data_access_suffixes or DEFAULT_DATA_ACCESS_SUFFIXES)
        builder = CallGraphBuilder(suffixes, logger=self.logger)
        graph = builder.to_digraph(builder.build(facts.call_edges))
        tree = builder.get_call_tree(graph, start, max_depth=args.depth or config.call_tree_depth)
        if not tree:
            print(f"Call Graph에 시작점이 없습니다: {args.target}", file=sys.stderr)
            return 1

        print(f"\n{'=' * 60}")
        if isinstance(start, Endpoint):
            print(f"Endpoint: {start.display_name}")
        print(f"Method: {tree['identifier']}")
        print(f"{'=' * 60}")
        for line in builder.format_call_tree(tree):
            print(line)
        return 0

    def _handle_endpoints(self, args: argparse.Namespace) -> int:
        """endpoints 명령어 핸들러"""
        config = self.load_config(args.config)
        facts = self._load_facts(config)

        if not facts.endpoints:
            print("엔드포인트가 없습니다.")
            return 0

        table_data = [
            [ep.http_method, ep.url_path, ep.identifier, ep.package_name]
            for ep in facts.endpoints
        ]
        print("\n엔드포인트 목록:")
        print(
            tabulate(
                table_data,
                headers=["HTTP 메서드", "경로", "진입 메서드", "패키지"],
                tablefmt="grid",
            )
        )
        print(f"\n총 {len(facts.endpoints)}개의 엔드포인트")
        return 0


def main() -> None:
    """crudtrace 콘솔 스크립트 진입점"""
    load_dotenv(".env")
    controller = CLIController()
    sys.exit(controller.execute())
