"""TMDB 도구를 등록하고 조회하는 레지스트리예요."""

from __future__ import annotations

from typing import Any

from libs.common.errors import ToolNotFoundError
from tmdb_mcp.app.mcp_protocol import ToolDescriptor
from tmdb_mcp.app.tools.base import BaseTool


class ToolRegistry:
    """도구를 이름으로 관리하는 중앙 레지스트리예요.

    프로세스 시작 시 한 번 채워지고, 이후에는 모든 세션이 같은 인스턴스를 읽기만 해요.

    사용법::

        registry = ToolRegistry()
        registry.register(SearchMoviesTool(client))

        descriptors = registry.descriptors()
        text = await registry.call("search_movies", {"query": "alien"})
    """

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}
        self._descriptors: tuple[ToolDescriptor, ...] = ()

    def register(self, tool: BaseTool) -> None:
        """도구를 레지스트리에 등록해요. 같은 이름이면 덮어씌워요."""
        self._tools[tool.name] = tool
        self._descriptors = tuple(item.to_descriptor() for item in self._tools.values())

    def get(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    def list_names(self) -> list[str]:
        return list(self._tools.keys())

    def descriptors(self) -> tuple[ToolDescriptor, ...]:
        """등록 순서대로 정렬된 도구 디스크립터예요."""
        return self._descriptors

    async def call(self, name: str, arguments: dict[str, Any]) -> str:
        """이름으로 도구를 찾아 인자를 검증한 뒤 실행해요.

        등록되지 않은 도구면 `ToolNotFoundError`를, 인자가 스키마와 맞지 않으면
        `InvalidToolArgumentsError`를 던져요. 오류를 결과로 바꾸는 건 호출자 몫이에요.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        parsed = tool.parse_arguments(arguments)
        return await tool.execute(parsed)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
