"""
Operation and Result value types exchanged with the query engine.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from graphql import ExecutionResult, GraphQLError

from ..core.exceptions import GatewayError, OperationMissing, TransportRejected


def _decode_json_field(value: Any, name: str) -> Optional[dict[str, Any]]:
    if value in (None, ""):
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except (TypeError, ValueError):
            raise TransportRejected(f"{name} are invalid JSON.")
    if value is None:
        return None
    if not isinstance(value, dict):
        raise TransportRejected(f"{name} must be a JSON object.")
    return value


@dataclass(frozen=True)
class Operation:
    """A single query, mutation or subscription submitted by a client."""

    query: str
    variables: Optional[dict[str, Any]] = None
    operation_name: Optional[str] = None
    extensions: Optional[dict[str, Any]] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "Operation":
        if not isinstance(payload, Mapping):
            raise TransportRejected("The received data is not a valid JSON query.")
        query = payload.get("query")
        if query is not None and not isinstance(query, str):
            raise TransportRejected("The query must be a string.")
        if not query or not query.strip():
            raise OperationMissing()
        operation_name = payload.get("operationName", payload.get("operation_name"))
        return cls(
            query=query,
            variables=_decode_json_field(payload.get("variables"), "Variables"),
            operation_name=operation_name or None,
            extensions=_decode_json_field(payload.get("extensions"), "Extensions"),
        )


def format_error(error: BaseException) -> dict[str, Any]:
    if isinstance(error, GraphQLError):
        return error.formatted
    if isinstance(error, GatewayError):
        return {"message": error.message, "extensions": {"code": error.code}}
    return {"message": str(error)}


@dataclass
class Result:
    """One response (or one subscription event) produced by the engine."""

    data: Optional[Any] = None
    errors: List[BaseException] = field(default_factory=list)

    @classmethod
    def from_execution(cls, result: ExecutionResult) -> "Result":
        return cls(data=result.data, errors=list(result.errors or []))

    @classmethod
    def from_error(cls, error: BaseException) -> "Result":
        return cls(data=None, errors=[error])

    @property
    def is_request_error(self) -> bool:
        """True when the operation never executed (syntax or validation error)."""
        if not self.errors:
            return False
        return self.data is None and all(
            isinstance(error, GraphQLError) and not error.path for error in self.errors
        )

    def formatted(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.errors:
            payload["errors"] = [format_error(error) for error in self.errors]
        if self.data is not None or not self.errors:
            payload["data"] = self.data
        return payload
