from fastapi import APIRouter, Depends, HTTPException

from order_service.deps import get_order_service
from order_service.errors import InvalidTransition, ConflictError, OrderNotFound
from order_service.schemas import OrderRequest
from order_service.service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("")
@router.get("/")
async def get_orders(service: OrderService = Depends(get_order_service)):
    return [order.to_dict() async for order in service.find_all_orders()]


@router.get("/{order_id}")
async def get_order(order_id: str, service: OrderService = Depends(get_order_service)):
    try:
        order = await service.find_by_order_id(order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return order.to_dict()


@router.post("")
@router.post("/")
async def submit_order(body: OrderRequest, service: OrderService = Depends(get_order_service)):
    # rejection is a normal 200 result, never an error
    order = await service.submit_order(body.product_id, body.quantity)
    return order.to_dict()


@router.put("/{order_id}")
async def cancel_order(order_id: str, service: OrderService = Depends(get_order_service)):
    try:
        order = await service.cancel_order(order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (ConflictError, InvalidTransition) as e:
        raise HTTPException(status_code=409, detail=str(e))
    return order.to_dict()
