"""TMDB 도구의 추상 기반 클래스예요.

새 도구를 추가하려면 `BaseTool`을 상속하고 `name`, `description`,
`input_schema`, `arguments_model`, `execute`를 구현하면 돼요.
"""

from __future__ import annotations

import abc
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from libs.common.errors import InvalidToolArgumentsError
from tmdb_mcp.app.mcp_protocol import ToolDescriptor
from tmdb_mcp.app.tmdb_client import TmdbClient


class BaseTool(abc.ABC):
    """모든 TMDB 도구가 구현해야 하는 추상 클래스예요.

    확장 방법:
        1. `BaseTool`을 상속하는 클래스를 만들어요.
        2. `name`, `description`, `input_schema` 프로퍼티를 구현해요.
        3. 입력 검증용 pydantic 모델을 `arguments_model`로 지정해요.
        4. `execute` 메서드에 실제 로직을 작성해요.
        5. `ToolRegistry.register()`로 등록하면 끝이에요.
    """

    arguments_model: type[BaseModel]

    def __init__(self, client: TmdbClient) -> None:
        self._client = client

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """도구의 고유 이름이에요. 클라이언트가 tools/call에서 사용해요."""

    @property
    @abc.abstractmethod
    def description(self) -> str:
        """도구가 무엇을 하는지 설명하는 문장이에요."""

    @property
    @abc.abstractmethod
    def input_schema(self) -> dict[str, Any]:
        """JSON Schema 형식의 입력 파라미터 정의예요.

        예시::

            {
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "검색어예요."},
                },
                "required": ["query"],
            }
        """

    @abc.abstractmethod
    async def execute(self, arguments: Any) -> str:
        """검증된 인자로 도구를 실행하고 결과 텍스트를 반환해요.

        Args:
            arguments: `arguments_model` 인스턴스예요.

        Returns:
            클라이언트에게 그대로 전달할 텍스트예요.
        """

    def parse_arguments(self, arguments: dict[str, Any]) -> BaseModel:
        """원시 인자 딕셔너리를 `arguments_model`로 검증해요."""
        try:
            return self.arguments_model.model_validate(arguments)
        except PydanticValidationError as exc:
            detail = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'arguments'}: {error['msg']}"
                for error in exc.errors()
            )
            raise InvalidToolArgumentsError(self.name, detail) from exc

    def to_descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema,
        )
