from __future__ import annotations

import copy
from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from libs.common.errors import DomainError, MethodNotFoundError, TransportError, ValidationError
from libs.common.logging import get_logger
from tmdb_mcp.app.handlers import HandlerSet
from tmdb_mcp.app.mcp_protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    MCP_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    SUPPORTED_PROTOCOL_VERSIONS,
    CallToolRequest,
    ListResourcesRequest,
    ListToolsRequest,
    McpModel,
    ReadResourceRequest,
    RequestKind,
    ServerInfo,
    error_response,
    result_response,
)
from tmdb_mcp.app.transports.base import Transport

logger = get_logger("tmdb_mcp.server")

RequestHandler = Callable[[Any], Awaitable[McpModel]]

SERVER_CAPABILITIES: dict[str, Any] = {"resources": {}, "tools": {}}


@dataclass(slots=True, frozen=True)
class RequestRoute:
    params_model: type[BaseModel]
    handler: RequestHandler


class HandlerRegistry:
    """요청 종류별 핸들러 테이블이에요.

    생성 시 한 번 채워지고 이후에는 바뀌지 않아요. 모든 ProtocolServer가
    복사하지 않고 같은 인스턴스를 참조해요.
    """

    def __init__(self, routes: Mapping[RequestKind, RequestRoute]) -> None:
        self._routes: Mapping[RequestKind, RequestRoute] = MappingProxyType(dict(routes))

    @classmethod
    def from_handler_set(cls, handlers: HandlerSet) -> "HandlerRegistry":
        return cls(
            {
                RequestKind.LIST_RESOURCES: RequestRoute(ListResourcesRequest, handlers.list_resources),
                RequestKind.READ_RESOURCE: RequestRoute(ReadResourceRequest, handlers.read_resource),
                RequestKind.LIST_TOOLS: RequestRoute(ListToolsRequest, handlers.list_tools),
                RequestKind.CALL_TOOL: RequestRoute(CallToolRequest, handlers.call_tool),
            }
        )

    @property
    def routes(self) -> Mapping[RequestKind, RequestRoute]:
        return self._routes

    def resolve(self, method: str) -> RequestRoute:
        try:
            return self._routes[RequestKind(method)]
        except (ValueError, KeyError) as exc:
            raise MethodNotFoundError(method) from exc

    def __iter__(self) -> Iterator[RequestKind]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)


class ProtocolServer:
    """전송 하나에 묶여 JSON-RPC 요청을 핸들러로 라우팅하는 MCP 서버예요."""

    def __init__(self, *, registry: HandlerRegistry, server_info: ServerInfo) -> None:
        self.registry = registry
        self._server_info = server_info
        self._transport: Transport | None = None
        self._bound = False

    @property
    def transport(self) -> Transport | None:
        return self._transport

    async def connect(self, transport: Transport) -> None:
        """이 서버를 `transport`에 평생 묶고 수신을 시작해요.

        이미 묶인 서버거나 전송의 초기 handshake가 실패하면 `TransportError`예요.
        이후 개별 요청의 실패는 그 요청의 응답으로만 나가고 바인딩을 끊지 않아요.
        """
        if self._bound:
            raise TransportError("Protocol server is already connected to a transport.")
        self._bound = True
        self._transport = transport
        transport.on_message(self._handle_message)
        try:
            await transport.start()
        except TransportError:
            self._transport = None
            raise
        except Exception as exc:
            self._transport = None
            raise TransportError(f"Transport handshake failed: {exc}") from exc

    def disconnect(self) -> None:
        """전송 참조를 끊어요. 이후 들어오는 메시지는 처리하지 않아요."""
        self._transport = None

    async def _handle_message(self, message: Any) -> None:
        transport = self._transport
        if transport is None:
            return
        response = await self.dispatch(message)
        # 응답 전송 실패는 전송 계층이 세션을 닫도록 그대로 올려보내요.
        if response is not None and self._transport is transport:
            await transport.send(response)

    async def dispatch(self, message: Any) -> dict[str, Any] | None:
        if not isinstance(message, dict) or message.get("jsonrpc") != JSONRPC_VERSION:
            return error_response(_request_id(message), INVALID_REQUEST, "Invalid Request")

        method = message.get("method")
        if method is None and ("result" in message or "error" in message):
            # 클라이언트가 보낸 응답이에요. 이 서버는 클라이언트에 요청하지 않아요.
            return None
        if not isinstance(method, str):
            return error_response(message.get("id"), INVALID_REQUEST, "Invalid Request")

        if "id" not in message:
            logger.debug("notification_received", method=method)
            return None
        request_id = message["id"]

        params = message.get("params")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            return error_response(request_id, INVALID_PARAMS, "Params must be an object")

        try:
            result = await self._invoke(method, params)
        except DomainError as exc:
            logger.warning(
                "request_failed",
                method=method,
                request_id=request_id,
                error_code=exc.error_code,
                retryable=exc.retryable,
                error=exc.message,
            )
            return error_response(
                request_id,
                _jsonrpc_code(exc),
                exc.message,
                {"error_code": exc.error_code, "retryable": exc.retryable},
            )
        except Exception as exc:
            logger.exception("request_unexpected_error", method=method, request_id=request_id, error=str(exc))
            return error_response(request_id, INTERNAL_ERROR, "Internal error")
        return result_response(request_id, result)

    async def _invoke(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        if method == "initialize":
            return self._initialize(params)
        if method == "ping":
            return {}

        route = self.registry.resolve(method)
        try:
            request = route.params_model.model_validate(params)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid params for {method}: {exc.error_count()} invalid field(s).") from exc
        result = await route.handler(request)
        return result.to_wire()

    def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        if isinstance(requested, str) and requested in SUPPORTED_PROTOCOL_VERSIONS:
            protocol_version = requested
        else:
            protocol_version = MCP_PROTOCOL_VERSION
        client_info = params.get("clientInfo")
        logger.info(
            "client_initialized",
            protocol_version=protocol_version,
            client=client_info.get("name") if isinstance(client_info, dict) else None,
        )
        return {
            "protocolVersion": protocol_version,
            "capabilities": copy.deepcopy(SERVER_CAPABILITIES),
            "serverInfo": {"name": self._server_info.name, "version": self._server_info.version},
        }


def _request_id(message: Any) -> Any:
    if isinstance(message, dict):
        return message.get("id")
    return None


def _jsonrpc_code(exc: DomainError) -> int:
    if isinstance(exc, MethodNotFoundError):
        return METHOD_NOT_FOUND
    if isinstance(exc, ValidationError):
        return INVALID_PARAMS
    return INTERNAL_ERROR
