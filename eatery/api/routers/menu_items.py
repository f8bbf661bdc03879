# eatery/api/routers/menu_items.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from eatery.api.deps import get_db, require_admin
from eatery.domain.actor import Actor
from eatery.domain.errors import OrderingError
from eatery.domain.schemas import MenuItemIn, MenuItemOut, MenuItemUpdate
from eatery.services.menu_service import MenuService

router = APIRouter(prefix="/menu-items", tags=["menu-items"])


def get_service(db: Session = Depends(get_db)) -> MenuService:
    return MenuService(db)


@router.get("/", response_model=List[MenuItemOut])
def list_menu_items(svc: MenuService = Depends(get_service)):
    return svc.list_items()


@router.get("/{item_id}", response_model=MenuItemOut)
def get_menu_item(item_id: str, svc: MenuService = Depends(get_service)):
    try:
        return svc.get_item(item_id)
    except OrderingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/", response_model=MenuItemOut, status_code=201)
def create_menu_item(
    payload: MenuItemIn,
    _admin: Actor = Depends(require_admin),
    svc: MenuService = Depends(get_service),
):
    try:
        return svc.create_item(payload)
    except OrderingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.put("/{item_id}", response_model=MenuItemOut)
def update_menu_item(
    item_id: str,
    payload: MenuItemUpdate,
    _admin: Actor = Depends(require_admin),
    svc: MenuService = Depends(get_service),
):
    try:
        return svc.update_item(item_id, payload)
    except OrderingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/{item_id}")
def delete_menu_item(
    item_id: str,
    _admin: Actor = Depends(require_admin),
    svc: MenuService = Depends(get_service),
):
    try:
        svc.delete_item(item_id)
    except OrderingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"success": True, "message": "Menu item deleted successfully"}
