# kitchen_inventory/services/recipes.py
"""
Recipe lookup - passthrough to the spoonacular recipe API.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from kitchen_inventory.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)


def split_ingredients(raw: Optional[str]) -> List[str]:
    """'tomato, cheese,,basil' -> ['tomato', 'cheese', 'basil']"""
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


class RecipeClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 15.0,
        default_number: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.default_number = default_number
        self._transport = transport

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "RecipeClient":
        return cls(
            settings.RECIPES_API_URL,
            settings.RECIPES_API_KEY,
            timeout=settings.RECIPES_TIMEOUT,
            default_number=settings.RECIPES_RESULT_COUNT,
            transport=transport,
        )

    async def find_by_ingredients(
        self, ingredients: Iterable[str], number: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        names = [i.strip() for i in ingredients if i and i.strip()]
        if not names:
            raise ValidationError("Ingredients parameter is required", field="ingredients")
        params = {
            "ingredients": ",".join(names),
            "number": number or self.default_number,
        }
        data = await self._get("/recipes/findByIngredients", params)
        if not isinstance(data, list):
            raise UpstreamError("Failed to fetch recipes")
        return data

    async def get_information(self, recipe_id: int) -> Dict[str, Any]:
        data = await self._get(f"/recipes/{int(recipe_id)}/information", {})
        if not isinstance(data, dict):
            raise UpstreamError("Failed to fetch recipe details")
        return data

    async def _get(self, path: str, params: Dict[str, Any]) -> Any:
        query = dict(params)
        query["apiKey"] = self.api_key
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.get(path, params=query)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPError as e:
            logger.error(f"Error fetching recipes from {path}: {e}")
            raise UpstreamError("Failed to fetch recipes") from e
        except ValueError as e:
            logger.error(f"Recipe API returned invalid JSON for {path}: {e}")
            raise UpstreamError("Failed to fetch recipes") from e
