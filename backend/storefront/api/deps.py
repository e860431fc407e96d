"""
FastAPI dependencies for database sessions, services and caller identity.

Long-lived resources (the ``Database`` and the mail transport) are created
in the application lifespan and read from ``app.state``; services are
built per request from them.
"""

from functools import lru_cache
from typing import Annotated, AsyncIterator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import Settings, get_settings
from storefront.core.logging import get_logger, set_user_id
from storefront.core.security import Identity, TokenError, decode_identity_token
from storefront.services.notifications.aws_clients import MailTransport
from storefront.services.notifications.service import NotificationService
from storefront.services.notifications.templates import (
    TemplateEngine,
    get_template_engine as build_template_engine,
)
from storefront.services.orders.service import OrderService

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Session scoped to one request."""
    async with request.app.state.database.session() as session:
        yield session


def get_mail_transport(request: Request) -> MailTransport:
    return request.app.state.mail_transport


@lru_cache
def _cached_template_engine(currency_symbol: str) -> TemplateEngine:
    return build_template_engine(currency_symbol)


def get_template_engine(
    settings: Annotated[Settings, Depends(get_settings)],
) -> TemplateEngine:
    return _cached_template_engine(settings.currency_symbol)


DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def get_notification_service(
    db: DatabaseSession,
    transport: Annotated[MailTransport, Depends(get_mail_transport)],
    template_engine: Annotated[TemplateEngine, Depends(get_template_engine)],
    settings: AppSettings,
) -> NotificationService:
    return NotificationService(db, transport, template_engine, settings)


def get_order_service(
    db: DatabaseSession,
    notification_service: Annotated[NotificationService, Depends(get_notification_service)],
    settings: AppSettings,
) -> OrderService:
    return OrderService(db, notification_service=notification_service, settings=settings)


async def get_current_identity(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    settings: AppSettings,
) -> Identity:
    """
    Verify the bearer token issued by the identity provider.

    Raises:
        HTTPException: 401 if the token is missing, expired or invalid
    """
    if credentials is None:
        logger.warning("Authentication failed: No credentials provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        identity = decode_identity_token(credentials.credentials, settings)
    except TokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    set_user_id(identity.id)
    return identity


async def get_current_admin(
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> Identity:
    """
    Raises:
        HTTPException: 403 if the caller is not an administrator
    """
    if not identity.is_admin:
        logger.warning("Authorization failed: admin required", user_id=identity.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return identity


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
CurrentAdmin = Annotated[Identity, Depends(get_current_admin)]
OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
