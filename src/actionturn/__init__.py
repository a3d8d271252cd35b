"""actionturn - turn-processing runtime for conversational webhooks."""

from .actionssdk import ActionsSdkApp, ActionsSdkConversation, actionssdk
from .app import ConversationApp
from .conversation import Conversation
from .dialogflow import DialogflowApp, DialogflowConversation, dialogflow
from .errors import (
    ActionTurnError,
    CircularRedirectError,
    HandlerNotFoundError,
    NoResponseError,
    ResponseDigestedError,
    SimpleResponseRequiredError,
    StateDecodeError,
    UnauthorizedError,
)
from .helpers import (
    Carousel,
    Confirmation,
    DateTime,
    DeepLink,
    DeliveryAddress,
    List,
    NewSurface,
    Permission,
    Place,
    RegisterUpdate,
    SignIn,
    TransactionDecision,
    TransactionRequirements,
    UpdatePermission,
)
from .hookspecs import hookimpl
from .response import (
    BasicCard,
    BrowseCarousel,
    BrowseCarouselItem,
    Button,
    HtmlResponse,
    Image,
    LinkOutSuggestion,
    MediaObject,
    MediaResponse,
    OrderUpdate,
    RichResponse,
    SimpleResponse,
    Suggestions,
    Table,
)
from .types import WebhookResponse

__version__ = "0.1.0"

__all__ = [
    "ActionTurnError",
    "ActionsSdkApp",
    "ActionsSdkConversation",
    "BasicCard",
    "BrowseCarousel",
    "BrowseCarouselItem",
    "Button",
    "Carousel",
    "CircularRedirectError",
    "Confirmation",
    "Conversation",
    "ConversationApp",
    "DateTime",
    "DeepLink",
    "DeliveryAddress",
    "DialogflowApp",
    "DialogflowConversation",
    "HandlerNotFoundError",
    "HtmlResponse",
    "Image",
    "LinkOutSuggestion",
    "List",
    "MediaObject",
    "MediaResponse",
    "NewSurface",
    "NoResponseError",
    "OrderUpdate",
    "Permission",
    "Place",
    "RegisterUpdate",
    "ResponseDigestedError",
    "RichResponse",
    "SignIn",
    "SimpleResponse",
    "SimpleResponseRequiredError",
    "StateDecodeError",
    "Suggestions",
    "Table",
    "TransactionDecision",
    "TransactionRequirements",
    "UnauthorizedError",
    "UpdatePermission",
    "WebhookResponse",
    "actionssdk",
    "dialogflow",
    "hookimpl",
]
