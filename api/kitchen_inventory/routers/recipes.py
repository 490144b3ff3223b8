from __future__ import annotations
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from kitchen_inventory.errors import InventoryError
from kitchen_inventory.routers.inventory import get_service
from kitchen_inventory.services.reconciliation import ReconciliationService
from kitchen_inventory.services.recipes import RecipeClient, split_ingredients

router = APIRouter(prefix="/recipes", tags=["recipes"])


def get_recipe_client(request: Request) -> RecipeClient:
    return request.app.state.recipe_client


@router.get("", response_model=List[Dict[str, Any]])
async def find_recipes(
    ingredients: Optional[str] = Query(None, description="Comma separated, e.g. tomato,cheese"),
    number: Optional[int] = Query(None, ge=1, le=100),
    client: RecipeClient = Depends(get_recipe_client),
):
    try:
        return await client.find_by_ingredients(split_ingredients(ingredients), number)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/from-inventory", response_model=List[Dict[str, Any]])
async def recipes_from_inventory(
    number: Optional[int] = Query(None, ge=1, le=100),
    client: RecipeClient = Depends(get_recipe_client),
    service: ReconciliationService = Depends(get_service),
):
    """Recipes for whatever is currently in stock (quantity > 0)."""
    try:
        items = await service.list_items()
        names = [it.name for it in items if it.quantity > 0]
        if not names:
            return []
        return await client.find_by_ingredients(names, number)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{recipe_id}", response_model=Dict[str, Any])
async def recipe_details(recipe_id: int, client: RecipeClient = Depends(get_recipe_client)):
    try:
        return await client.get_information(recipe_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
