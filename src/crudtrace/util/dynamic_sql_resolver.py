"""
Dynamic SQL Resolver

MyBatis 동적 SQL 요소(<include>, <where>, <set>, <trim>, <foreach>, <choose>, <if>)를
정적으로 펼쳐서 하나의 SQL 문자열로 만듭니다. <if> 조건은 평가하지 않고 항상 포함합니다.
"""

import logging
import re
from typing import Dict, Optional, Set

from lxml import etree

# SQL 본문에 포함되지 않는 요소
SKIPPED_TAGS = {"selectKey", "bind"}

_LEADING_AND_OR = re.compile(r"(?i)^(AND|OR)\b\s*")
_TRAILING_COMMA = re.compile(r",\s*$")
_WHITESPACE = re.compile(r"\s+")


def local_tag(tag) -> str:
    """네임스페이스를 제거한 태그명. 주석, 처리 명령은 빈 문자열"""
    if not isinstance(tag, str):
        return ""
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


class DynamicSQLResolver:
    """
    동적 SQL 펼치기

    Args:
        sql_fragments: <sql id="..."> 요소 맵 (include refid 해석용)
        logger: 로거
    """

    def __init__(
        self,
        sql_fragments: Optional[Dict[str, etree._Element]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.sql_fragments = sql_fragments or {}
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self, element: etree._Element) -> str:
        """SQL 문 요소를 펼친 문자열 (공백 정리 포함)"""
        return _WHITESPACE.sub(" ", self._process_element(element, set())).strip()

    def _process_element(self, element: etree._Element, active_includes: Set[str]) -> str:
        parts = []
        if element.text:
            parts.append(element.text)

        for child in element:
            tag = local_tag(child.tag)

            if not tag or tag in SKIPPED_TAGS:
                pass
            elif tag == "include":
                parts.append(self._process_include(child, active_includes))
            elif tag == "choose":
                parts.append(self._process_choose(child, active_includes))
            elif tag == "foreach":
                content = self._process_element(child, active_includes)
                parts.append(f" {child.get('open', '')} {content} {child.get('close', '')} ")
            elif tag == "where":
                content = self._process_element(child, active_includes).strip()
                if content:
                    parts.append(f" WHERE {_LEADING_AND_OR.sub('', content)} ")
            elif tag == "set":
                content = self._process_element(child, active_includes).strip()
                if content:
                    parts.append(f" SET {_TRAILING_COMMA.sub('', content)} ")
            elif tag == "trim":
                parts.append(self._process_trim(child, active_includes))
            else:
                # <if>, <when>, 알 수 없는 태그는 내용을 그대로 포함
                parts.append(self._process_element(child, active_includes))

            # 주석이나 건너뛴 요소 뒤의 텍스트도 SQL 본문
            if child.tail:
                parts.append(child.tail)

        return " ".join(parts)

    def _process_include(self, element: etree._Element, active_includes: Set[str]) -> str:
        refid = element.get("refid", "")
        fragment = self.sql_fragments.get(refid)
        if fragment is None:
            # 다른 Mapper의 fragment는 namespace.id 형태로 참조됨
            fragment = self.sql_fragments.get(refid.rsplit(".", 1)[-1])
        if fragment is None:
            self.logger.warning(f"<include refid='{refid}'>에 해당하는 <sql> 요소가 없습니다.")
            return ""
        if refid in active_includes:
            self.logger.warning(f"<include refid='{refid}'> 순환 참조가 감지되어 건너뜁니다.")
            return ""

        active_includes.add(refid)
        content = self._process_element(fragment, active_includes)
        active_includes.remove(refid)
        return content

    def _process_choose(self, element: etree._Element, active_includes: Set[str]) -> str:
        """첫 번째 <when>을 선택하고, 없으면 <otherwise>를 선택"""
        branches = [child for child in element if local_tag(child.tag) == "when"]
        if not branches:
            branches = [child for child in element if local_tag(child.tag) == "otherwise"]
        if not branches:
            return ""
        return self._process_element(branches[0], active_includes)

    def _process_trim(self, element: etree._Element, active_includes: Set[str]) -> str:
        content = self._process_element(element, active_includes).strip()
        if not content:
            return ""

        for token in self._override_tokens(element.get("prefixOverrides", "")):
            if re.match(r"(?i)^" + re.escape(token), content):
                content = content[len(token):].strip()
                break

        for token in self._override_tokens(element.get("suffixOverrides", "")):
            if re.search(r"(?i)" + re.escape(token) + r"$", content):
                content = content[: len(content) - len(token)].strip()
                break

        return f" {element.get('prefix', '')} {content} {element.get('suffix', '')} "

    @staticmethod
    def _override_tokens(overrides: str):
        return [token.strip() for token in overrides.split("|") if token.strip()]
