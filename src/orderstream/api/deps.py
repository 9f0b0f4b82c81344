"""
FastAPI dependencies resolving shared objects from application state.
"""

from typing import Annotated

from fastapi import Depends, Request

from orderstream.core.config import Settings
from orderstream.services.orders import OrderService


def get_order_service(request: Request) -> OrderService:
    """Return the order service the application was built with."""
    return request.app.state.order_service


def get_app_settings(request: Request) -> Settings:
    """Return the settings the application was built with."""
    return request.app.state.settings


OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
