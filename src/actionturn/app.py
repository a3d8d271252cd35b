"""Shared conversation app: registration, middleware, dispatch and error policy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping, Sequence
from copy import deepcopy
from typing import Any, TypeAlias

import pluggy
from loguru import logger

from actionturn.config import Settings, get_settings
from actionturn.conversation import Conversation, TokenVerifier
from actionturn.errors import UnauthorizedError, VerificationError
from actionturn.hook_runtime import HookRuntime
from actionturn.hookspecs import ACTIONTURN_HOOK_NAMESPACE, ActionTurnHookSpecs
from actionturn.logging_utils import stringify
from actionturn.router import HandlerTable, invoke
from actionturn.transports import LambdaTransport, TransportMatcher, dispatch
from actionturn.types import (
    JSON_CONTENT_TYPE,
    ErrorHandler,
    Handler,
    Headers,
    JsonDict,
    Metadata,
    Middleware,
    WebhookResponse,
)
from actionturn.verification import (
    HeaderVerification,
    ProjectVerification,
    error_body,
    google_id_token_verifier,
)

Verification: TypeAlias = HeaderVerification | ProjectVerification


def _rethrow(conv: Conversation, error: Exception) -> None:
    raise error


def lower_headers(headers: Mapping[str, Any] | None) -> Headers:
    return {str(key).lower(): value for key, value in (headers or {}).items()}


class ConversationApp(ABC):
    """Base app for one platform family.

    Subclasses build the platform conversation, name the intent to route on,
    supply the extra handler arguments and decide the order in which user
    profile verification and middleware run.
    """

    handler_label = "IntentHandler"

    def __init__(
        self,
        *,
        init: Callable[[], Mapping[str, Any]] | Mapping[str, Any] | None = None,
        verification: Any = None,
        client_id: str | None = None,
        orders_v3: bool | None = None,
        debug: bool | None = None,
        verifier: TokenVerifier | None = None,
        transports: Sequence[TransportMatcher] | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings(debug=debug, client_id=client_id, orders_v3=orders_v3)
        self.init = init
        self.verifier: TokenVerifier = verifier or google_id_token_verifier
        self.verification: Verification | None = (
            self._coerce_verification(verification) if verification is not None else None
        )
        self.transports: list[TransportMatcher] = list(transports) if transports is not None else [LambdaTransport()]
        self.routes = HandlerTable(self.handler_label)
        self.catcher: ErrorHandler = _rethrow
        self.middlewares: list[Middleware] = []

        self._plugin_manager = pluggy.PluginManager(ACTIONTURN_HOOK_NAMESPACE)
        self._plugin_manager.add_hookspecs(ActionTurnHookSpecs)
        self._hook_runtime = HookRuntime(self._plugin_manager)

    @property
    def debug(self) -> bool:
        return self.settings.debug

    # Registration

    def intent(self, intents: str | Iterable[str], handler: Handler | str | None = None) -> Any:
        """Register a handler or a redirect for one or more intents.

        Used without ``handler`` it returns a decorator.
        """

        if handler is None:

            def decorator(func: Handler) -> Handler:
                self.routes.register(intents, func)
                return func

            return decorator
        self.routes.register(intents, handler)
        return self

    def fallback(self, handler: Handler) -> Handler:
        self.routes.fallback = handler
        return handler

    def catch(self, handler: ErrorHandler) -> ErrorHandler:
        self.catcher = handler
        return handler

    def middleware(self, middleware: Middleware) -> Middleware:
        self.middlewares.append(middleware)
        return middleware

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        self._plugin_manager.register(plugin, name=name)

    def hook_report(self) -> dict[str, list[str]]:
        return self._hook_runtime.hook_report()

    # Entry points

    async def __call__(self, *args: Any) -> Any:
        return await dispatch(self, *args, transports=self.transports)

    async def handle(
        self,
        body: JsonDict,
        headers: Mapping[str, Any] | None = None,
        metadata: Metadata | None = None,
    ) -> WebhookResponse:
        """Run one webhook turn and return its status, headers and JSON body."""

        headers = lower_headers(headers)
        metadata = metadata or {}
        level = "INFO" if self.debug else "DEBUG"
        logger.opt(lazy=True).log(level, "app.request body={}", lambda: stringify(body))
        logger.opt(lazy=True).log(level, "app.headers headers={}", lambda: stringify(headers))
        await self._hook_runtime.call_many("on_request", body=body, headers=headers)

        response = await self._dispatch(body, headers, metadata)
        response.headers["content-type"] = JSON_CONTENT_TYPE

        logger.opt(lazy=True).log(
            level,
            "app.response status={} body={}",
            lambda: response.status,
            lambda: stringify(response.body),
        )
        await self._hook_runtime.call_many("on_response", response=response)
        return response

    # Platform seams

    @abstractmethod
    def build_conversation(self, body: JsonDict, headers: Headers) -> Conversation:
        """Build the platform conversation for one request."""

    @abstractmethod
    def intent_of(self, conv: Conversation) -> str:
        """Return the intent name to route on."""

    @abstractmethod
    def handler_args(self, conv: Conversation) -> tuple[Any, ...]:
        """Return the arguments passed to the handler after the conversation."""

    async def prepare(self, conv: Conversation, metadata: Metadata) -> Conversation:
        return await self.apply_middleware(conv, metadata)

    @abstractmethod
    def _coerce_verification(self, value: Any) -> Verification:
        """Normalize the ``verification`` option for this platform."""

    # Turn pipeline

    def init_values(self) -> JsonDict:
        values = self.init() if callable(self.init) else self.init
        return deepcopy(dict(values or {}))

    async def apply_middleware(self, conv: Conversation, metadata: Metadata) -> Conversation:
        """Run middleware in order; a returned conversation replaces the current one."""

        for middleware in self.middlewares:
            result = await invoke(middleware, conv, metadata)
            if isinstance(result, Conversation):
                conv = result
        return conv

    async def verify_profile(self, conv: Conversation) -> None:
        client_id = self.settings.client_id
        if client_id and conv.user.profile.token:
            await conv.user.verify_profile(self.verifier, client_id)

    async def _verify(self, headers: Headers) -> WebhookResponse | None:
        if self.verification is None:
            return None
        try:
            await self.verification.check(headers)
        except VerificationError as exc:
            logger.warning("app.verification_failed status={} error={}", self.verification.status, exc)
            return WebhookResponse(
                status=self.verification.status,
                body=error_body(str(exc), self.verification.error),
            )
        return None

    async def _dispatch(self, body: JsonDict, headers: Headers, metadata: Metadata) -> WebhookResponse:
        rejected = await self._verify(headers)
        if rejected is not None:
            return rejected

        conv: Conversation | None = None
        stage = "conversation"
        try:
            conv = self.build_conversation(body, headers)
            stage = "middleware"
            conv = await self.prepare(conv, metadata)
            stage = "route"
            handler = self.routes.resolve(self.intent_of(conv))
            stage = "handler"
            try:
                await invoke(handler, conv, *self.handler_args(conv))
            except UnauthorizedError:
                logger.info("app.unauthorized intent={}", self.intent_of(conv))
                return WebhookResponse(status=401)
            except Exception as error:
                try:
                    await invoke(self.catcher, conv, error)
                except UnauthorizedError:
                    logger.info("app.unauthorized intent={}", self.intent_of(conv))
                    return WebhookResponse(status=401)
            stage = "serialize"
            level = "INFO" if self.debug else "DEBUG"
            logger.opt(lazy=True).log(
                level,
                "app.conversation {}",
                lambda: stringify(conv, "request", "headers", "body", "responses", "_init"),
            )
            payload = conv.serialize()
        except Exception as exc:
            await self._hook_runtime.notify_error(stage=stage, error=exc, conversation=conv)
            raise
        return WebhookResponse(status=200, body=payload)
