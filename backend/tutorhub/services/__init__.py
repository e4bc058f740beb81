"""Services for the AI tutor and its external integrations."""

from tutorhub.services.chat_service import AIUnavailableError, chat_service, get_chat_service
from tutorhub.services.model_gateway import CapacityError, GatewayError, ModelGateway

__all__ = [
    "AIUnavailableError",
    "CapacityError",
    "GatewayError",
    "ModelGateway",
    "chat_service",
    "get_chat_service",
]
