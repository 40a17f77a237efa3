"""
Query engine adapter.

A thin forwarding layer between the transports and graphql-core: it
parses and validates operations, runs them against the graphene schema and
hands back ``Result`` objects. Engine failures always land in
``Result.errors``; nothing here raises a transport error.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from inspect import isawaitable
from typing import Any, AsyncIterator, Optional

from channels.db import database_sync_to_async
from graphene_django.settings import graphene_settings
from graphene_django.views import instantiate_middleware
from graphql import (
    DocumentNode,
    ExecutionResult,
    GraphQLError,
    OperationType,
    execute,
    execute_sync,
    get_operation_ast,
    parse,
    subscribe,
    validate,
)

from ..core.exceptions import EngineError
from ..core.reporting import report_exception
from ..core.settings import GatewaySettings
from .operation import Operation, Result

logger = logging.getLogger(__name__)


@lru_cache(maxsize=256)
def _parse(query: str) -> DocumentNode:
    return parse(query)


class QueryEngineAdapter:
    """Run operations against a graphene (or bare graphql-core) schema."""

    def __init__(
        self,
        schema: Any,
        middleware: Optional[list] = None,
        settings: Optional[GatewaySettings] = None,
    ):
        self.schema = schema
        self.settings = settings
        self.graphql_schema = getattr(schema, "graphql_schema", schema)
        if middleware is None:
            middleware = graphene_settings.MIDDLEWARE
        self.middleware = list(instantiate_middleware(middleware or []))

    def _prepare(self, operation: Operation) -> tuple[Optional[DocumentNode], list]:
        try:
            document = _parse(operation.query)
        except GraphQLError as error:
            return None, [error]
        errors = validate(self.graphql_schema, document)
        if errors:
            return None, list(errors)
        return document, []

    def operation_type(self, operation: Operation) -> Optional[OperationType]:
        """Return the type of the selected operation, or None if it cannot be resolved."""
        try:
            document = _parse(operation.query)
        except GraphQLError:
            return None
        operation_ast = get_operation_ast(document, operation.operation_name)
        return operation_ast.operation if operation_ast else None

    def _execute_kwargs(self, operation: Operation, context: Any) -> dict[str, Any]:
        return {
            "context_value": context,
            "variable_values": operation.variables,
            "operation_name": operation.operation_name,
        }

    def execute_sync(self, operation: Operation, context: Any = None) -> Result:
        """Execute a query or mutation to completion on the calling thread."""
        document, errors = self._prepare(operation)
        if errors:
            return Result(errors=errors)
        try:
            result = execute_sync(
                self.graphql_schema,
                document,
                middleware=self.middleware or None,
                **self._execute_kwargs(operation, context),
            )
        except GraphQLError as error:
            return Result.from_error(error)
        except Exception as exc:
            logger.exception("Query engine failed on operation %s", operation.operation_name)
            report_exception(
                exc,
                transport="http",
                operation_name=operation.operation_name,
                settings=self.settings,
            )
            return Result.from_error(EngineError(str(exc), original=exc))
        return Result.from_execution(result)

    async def execute(self, operation: Operation, context: Any = None) -> AsyncIterator[Result]:
        """
        Yield the results of an operation.

        Queries and mutations yield exactly one result. Subscriptions yield
        until the source stream ends or the consumer stops iterating; the
        source is closed either way.
        """
        document, errors = self._prepare(operation)
        if errors:
            yield Result(errors=errors)
            return

        if self.operation_type(operation) is OperationType.SUBSCRIPTION:
            results = self._subscribe(document, operation, context)
            try:
                async for result in results:
                    yield result
            finally:
                await results.aclose()
            return

        yield await self._execute_async(document, operation, context)

    async def _execute_async(self, document: DocumentNode, operation: Operation, context: Any) -> Result:
        def _run():
            return execute(
                self.graphql_schema,
                document,
                middleware=self.middleware or None,
                **self._execute_kwargs(operation, context),
            )

        try:
            # ORM-backed resolvers must not run on the event loop thread.
            result = await database_sync_to_async(_run)()
            if isawaitable(result):
                result = await result
        except GraphQLError as error:
            return Result.from_error(error)
        except Exception as exc:
            logger.exception("Query engine failed on operation %s", operation.operation_name)
            report_exception(
                exc,
                transport="websocket",
                operation_name=operation.operation_name,
                settings=self.settings,
            )
            return Result.from_error(EngineError(str(exc), original=exc))
        return Result.from_execution(result)

    async def _subscribe(self, document: DocumentNode, operation: Operation, context: Any) -> AsyncIterator[Result]:
        try:
            source = subscribe(self.graphql_schema, document, **self._execute_kwargs(operation, context))
            if isawaitable(source):
                source = await source
        except GraphQLError as error:
            yield Result.from_error(error)
            return
        except Exception as exc:
            logger.exception("Subscription %s failed to start", operation.operation_name)
            report_exception(
                exc,
                transport="websocket",
                operation_name=operation.operation_name,
                settings=self.settings,
            )
            yield Result.from_error(EngineError(str(exc), original=exc))
            return

        if isinstance(source, ExecutionResult):
            yield Result.from_execution(source)
            return

        try:
            async for item in source:
                yield Result.from_execution(item)
        except GraphQLError as error:
            yield Result.from_error(error)
        except Exception as exc:
            logger.exception("Subscription %s raised", operation.operation_name)
            report_exception(
                exc,
                transport="websocket",
                operation_name=operation.operation_name,
                settings=self.settings,
            )
            yield Result.from_error(EngineError(str(exc), original=exc))
        finally:
            aclose = getattr(source, "aclose", None)
            if aclose is not None:
                await aclose()
