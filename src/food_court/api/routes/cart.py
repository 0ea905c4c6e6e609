from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from food_court.crud import cart as cart_crud
from food_court.db.session import get_async_session
from food_court.schemas.cart import CartItemAdd, CartItemUpdate, CartRead
from food_court.security import Principal, require_customer

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartRead)
async def get_cart(
    principal: Principal = Depends(require_customer),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Текущая корзина покупателя (пустая, если её нет).
    """
    return await cart_crud.get_cart(db, principal.id)


@router.post("/items", response_model=CartRead, status_code=201)
async def add_cart_item(
    item_in: CartItemAdd,
    principal: Principal = Depends(require_customer),
    db: AsyncSession = Depends(get_async_session),
):
    return await cart_crud.add_item(db, principal.id, item_in.food_item_id, item_in.quantity)


@router.put("/items/{food_item_id}", response_model=CartRead)
async def update_cart_item(
    item_in: CartItemUpdate,
    food_item_id: str = Path(..., description="ID позиции меню"),
    principal: Principal = Depends(require_customer),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Меняет количество; 0 убирает позицию.
    """
    return await cart_crud.update_item(db, principal.id, food_item_id, item_in.quantity)


@router.delete("/items/{food_item_id}", response_model=CartRead)
async def remove_cart_item(
    food_item_id: str = Path(..., description="ID позиции меню"),
    principal: Principal = Depends(require_customer),
    db: AsyncSession = Depends(get_async_session),
):
    return await cart_crud.remove_item(db, principal.id, food_item_id)
