"""
Order lookup, order submission and health endpoints.

Every order call runs under the configured request deadline. An expired
deadline is reported as 504 and abandons the underlying store call.
"""

import asyncio

from fastapi import APIRouter, HTTPException, Request, status

from orderstream.api.deps import OrderServiceDep, SettingsDep
from orderstream.core.exceptions import (
    OrderDecodeError,
    OrderNotFoundError,
    OrderPersistenceError,
    OrderValidationError,
)
from orderstream.core.logging import get_logger
from orderstream.domain.order import Order, decode_order

logger = get_logger(__name__)

router = APIRouter(tags=["orders"])
health_router = APIRouter(tags=["health"])


@router.get(
    "/order/{order_uid}",
    response_model=Order,
    summary="Get order by identifier",
    responses={404: {"description": "Unknown or malformed order identifier"}},
)
async def get_order(
    order_uid: str,
    service: OrderServiceDep,
    settings: SettingsDep,
) -> Order:
    """
    Return a stored order.

    Malformed identifiers are reported exactly like unknown ones.

    Raises:
        HTTPException: 404 if unknown or invalid, 500 on store failure,
            504 if the deadline expires
    """
    try:
        async with asyncio.timeout(settings.request_timeout_seconds):
            return await service.get_order(order_uid)
    except (OrderValidationError, OrderNotFoundError):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found",
        )
    except OrderPersistenceError as e:
        logger.error("Order lookup failed", order_uid=order_uid, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load order",
        )
    except TimeoutError:
        logger.warning(
            "Order lookup deadline exceeded",
            order_uid=order_uid,
            timeout_seconds=settings.request_timeout_seconds,
        )
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="Request timed out",
        )


@router.post(
    "/order",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
    summary="Submit order",
    responses={400: {"description": "Malformed or invalid order"}},
)
async def create_order(
    request: Request,
    service: OrderServiceDep,
    settings: SettingsDep,
) -> Order:
    """
    Validate and store an order submitted as a raw JSON document.

    The body goes through the same decoder as stream messages, so both entry
    points accept exactly the same documents.

    Raises:
        HTTPException: 400 on malformed or invalid body, 500 on store failure,
            504 if the deadline expires
    """
    payload = await request.body()

    try:
        order = decode_order(payload)
    except OrderDecodeError as e:
        logger.info("Rejected malformed order body", error_count=e.context.get("error_count"))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Malformed order document",
        )

    try:
        async with asyncio.timeout(settings.request_timeout_seconds):
            await service.save_order(order)
    except OrderValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(e), "field": e.field},
        )
    except OrderPersistenceError as e:
        logger.error("Order submission failed", order_uid=order.order_uid, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store order",
        )
    except TimeoutError:
        logger.warning(
            "Order submission deadline exceeded",
            order_uid=order.order_uid,
            timeout_seconds=settings.request_timeout_seconds,
        )
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="Request timed out",
        )

    return order


@health_router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
)
async def health_check() -> dict[str, str]:
    """Liveness probe; does not check dependencies."""
    return {"status": "ok"}
