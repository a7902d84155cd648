"""Зависимости аутентификации.

Сама аутентификация выполняется внешним сервисом (шлюзом), который
передает идентификатор покупателя в заголовке X-User-Id.
"""
import hmac
from typing import Optional
from fastapi import Header, HTTPException, status

from storefront.config import settings


async def get_current_customer_id(x_user_id: Optional[str] = Header(default=None)) -> int:
    if not x_user_id or not x_user_id.isdigit() or int(x_user_id) <= 0:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Требуется аутентификация"
        )
    return int(x_user_id)


async def require_admin(x_api_key: Optional[str] = Header(default=None)) -> None:
    if not settings.ADMIN_API_TOKEN or not x_api_key or not hmac.compare_digest(x_api_key, settings.ADMIN_API_TOKEN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Доступ только для администратора"
        )
