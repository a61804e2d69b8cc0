"""
XML Mapper Parser

lxml을 사용하여 MyBatis Mapper XML 파일을 파싱하고,
<select>/<insert>/<update>/<delete> 요소를 분류 전 SQL 선언(SqlDeclaration)으로 추출하는 모듈입니다.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from lxml import etree

from ..models.sql_mapping import SqlDeclaration
from ..util.dynamic_sql_resolver import DynamicSQLResolver, local_tag

SQL_TAGS = ("select", "insert", "update", "delete")


class XMLMapperParser:
    """
    XML Mapper 파서 클래스

    Mapper 파일 하나의 파싱 실패는 해당 파일만 건너뛰며 전체 스캔을 중단하지 않습니다.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """XMLMapperParser 초기화"""
        self.logger = logger or logging.getLogger(__name__)
        # MyBatis DOCTYPE의 외부 DTD는 내려받지 않음
        self.xml_parser = etree.XMLParser(
            recover=True,
            load_dtd=False,
            no_network=True,
            resolve_entities=False,
            remove_comments=False,
        )

    def parse_file(
        self, file_path: Union[str, Path]
    ) -> Tuple[Optional[etree._ElementTree], Optional[str]]:
        """
        XML 파일을 파싱

        Args:
            file_path: XML 파일 경로

        Returns:
            Tuple[Optional[etree._ElementTree], Optional[str]]: (파싱된 XML 트리, 에러 메시지)
        """
        path = Path(file_path)
        if not path.is_file():
            error_msg = f"파일을 찾을 수 없습니다: {path}"
            self.logger.error(error_msg)
            return None, error_msg

        try:
            tree = etree.parse(str(path), parser=self.xml_parser)
        except etree.XMLSyntaxError as e:
            error_msg = f"XML 구문 오류: {e}"
            self.logger.error(error_msg)
            return None, error_msg
        except OSError as e:
            error_msg = f"파일 읽기 오류: {e}"
            self.logger.error(error_msg)
            return None, error_msg

        # recover 모드에서 복구할 수 없는 문서는 루트가 없음
        if tree.getroot() is None:
            error_msg = f"XML 루트 요소가 없습니다: {path}"
            self.logger.error(error_msg)
            return None, error_msg

        return tree, None

    def extract_declarations(
        self, tree: etree._ElementTree, source: str = ""
    ) -> List[SqlDeclaration]:
        """
        Mapper XML에서 SQL 선언 추출

        Args:
            tree: 파싱된 XML 트리
            source: 선언 출처 (파일 경로)

        Returns:
            List[SqlDeclaration]: SQL 선언 목록 (namespace가 없으면 빈 목록)
        """
        root = tree.getroot()
        namespace = (root.get("namespace") or "").strip()
        if not namespace:
            self.logger.debug(f"namespace가 없는 XML은 건너뜁니다: {source}")
            return []

        fragments = {}
        for element in root.iter():
            if local_tag(element.tag) == "sql" and element.get("id"):
                fragments[element.get("id")] = element
        resolver = DynamicSQLResolver(fragments, self.logger)

        declarations = []
        for element in root:
            tag = local_tag(element.tag)
            if tag not in SQL_TAGS:
                continue

            operation_id = element.get("id", "")
            if not operation_id:
                self.logger.warning(f"SQL 태그에 id 속성이 없습니다: {source} <{tag}>")
                continue

            declarations.append(
                SqlDeclaration(
                    owner_identifier=namespace,
                    operation_id=operation_id,
                    raw_text=resolver.resolve(element),
                    declared_operation=tag,
                    source=source,
                )
            )

        self.logger.debug(f"{source}: SQL 선언 {len(declarations)}개 추출 (namespace={namespace})")
        return declarations

    def parse_mapper_file(self, file_path: Union[str, Path]) -> List[SqlDeclaration]:
        """Mapper XML 파일 하나를 파싱하여 SQL 선언 목록 반환 (실패 시 빈 목록)"""
        tree, error = self.parse_file(file_path)
        if tree is None:
            self.logger.warning(f"Mapper XML 파싱 실패, 건너뜁니다: {file_path} - {error}")
            return []
        if local_tag(tree.getroot().tag) != "mapper":
            return []
        return self.extract_declarations(tree, str(file_path))

    def scan(self, directories: Iterable[Union[str, Path]]) -> List[SqlDeclaration]:
        """
        디렉터리를 재귀적으로 탐색하여 모든 Mapper XML의 SQL 선언 추출

        Args:
            directories: 탐색할 디렉터리 목록

        Returns:
            List[SqlDeclaration]: SQL 선언 목록 (파일 경로 순)
        """
        declarations: List[SqlDeclaration] = []
        for directory in directories:
            root_dir = Path(directory)
            if not root_dir.is_dir():
                self.logger.warning(f"Mapper 디렉터리가 존재하지 않습니다: {root_dir}")
                continue
            for xml_file in sorted(root_dir.rglob("*.xml")):
                declarations.extend(self.parse_mapper_file(xml_file))

        self.logger.info(f"Mapper XML에서 SQL 선언 {len(declarations)}개를 추출했습니다.")
        return declarations
