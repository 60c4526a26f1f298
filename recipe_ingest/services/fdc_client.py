"""Client for the USDA FoodData Central API."""

import logging
from enum import Enum
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from recipe_ingest.config import get_settings

logger = logging.getLogger(__name__)


class LookupFailure(str, Enum):
    """Why the most recent lookup produced no data."""

    NOT_CONFIGURED = "not_configured"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    HTTP_ERROR = "http_error"
    TRANSPORT = "transport"
    DECODE = "decode"


class FoodSearchResult(BaseModel):
    """A single hit from the foods search endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    fdc_id: int = Field(alias="fdcId")
    description: str = ""
    data_type: str | None = Field(default=None, alias="dataType")


class FoodNutrient(BaseModel):
    """One nutrient entry of a food, per 100 g."""

    name: str
    unit: str | None = None
    amount: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def flatten_entry(cls, data: Any) -> Any:
        """Accept both the nested details shape and the flat search shape.

        Details: {"nutrient": {"name", "unitName"}, "amount"}
        Search:  {"nutrientName", "unitName", "value"}
        """
        if not isinstance(data, dict) or "name" in data:
            return data
        nested = data.get("nutrient") or {}
        if not isinstance(nested, dict):
            raise ValueError(f"unexpected nutrient field: {nested!r}")
        amount = data.get("amount", data.get("value"))
        return {
            "name": nested.get("name") or data.get("nutrientName"),
            "unit": nested.get("unitName") or data.get("unitName"),
            "amount": amount if amount is not None else 0.0,
        }


class FoodDetail(BaseModel):
    """A food's description and nutrient list."""

    fdc_id: int
    description: str = ""
    nutrients: list[FoodNutrient] = Field(default_factory=list)


class FoodDataCentralClient:
    """Async client for FoodData Central search and detail lookups.

    Lookups never raise. Failures are logged, recorded on ``last_failure``
    and surface as an empty result so callers can fall back.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        data_types: list[str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.usda_api_key
        self.base_url = (base_url or settings.usda_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.usda_timeout_seconds
        self.data_types = data_types if data_types is not None else settings.usda_data_types
        self._transport = transport
        self.last_failure: LookupFailure | None = None

    @property
    def is_configured(self) -> bool:
        """Check if an API key is available."""
        return bool(self.api_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        )

    async def search(
        self, query: str, limit: int = 1, data_types: list[str] | None = None
    ) -> list[FoodSearchResult]:
        """Search foods by name.

        Args:
            query: Food name to search for
            limit: Maximum number of results
            data_types: FDC data types to restrict to (defaults to settings)

        Returns:
            Matching foods, or an empty list on no match or failure
        """
        self.last_failure = None
        if not self.is_configured:
            logger.warning("USDA API key not configured - skipping food search")
            self.last_failure = LookupFailure.NOT_CONFIGURED
            return []
        if not query or not query.strip():
            return []

        payload = await self._get_json(
            "/foods/search",
            params={
                "query": query,
                "api_key": self.api_key,
                "pageSize": limit,
                "dataType": data_types or self.data_types,
            },
            context=f"search '{query}'",
        )
        if payload is None:
            return []

        foods = payload.get("foods") or []
        if not isinstance(foods, list):
            logger.error(f"USDA API returned unexpected foods for search '{query}'")
            self.last_failure = LookupFailure.DECODE
            return []

        results = []
        for food in foods:
            try:
                results.append(FoodSearchResult.model_validate(food))
            except ValidationError as e:
                logger.debug(f"Skipping malformed search result for '{query}': {e}")
        return results[:limit]

    async def get_details(self, fdc_id: int) -> FoodDetail | None:
        """Fetch a food's nutrient details.

        Returns:
            FoodDetail, or None if the food does not exist or the lookup failed
        """
        self.last_failure = None
        if not self.is_configured:
            logger.warning("USDA API key not configured - skipping food details")
            self.last_failure = LookupFailure.NOT_CONFIGURED
            return None

        payload = await self._get_json(
            f"/food/{fdc_id}",
            params={"api_key": self.api_key},
            context=f"details for food {fdc_id}",
        )
        if payload is None:
            return None

        entries = payload.get("foodNutrients") or []
        if not isinstance(entries, list):
            logger.error(f"USDA API returned unexpected nutrients for food {fdc_id}")
            self.last_failure = LookupFailure.DECODE
            return None

        nutrients = []
        for entry in entries:
            try:
                nutrients.append(FoodNutrient.model_validate(entry))
            except ValidationError as e:
                logger.debug(f"Skipping malformed nutrient entry for food {fdc_id}: {e}")

        try:
            return FoodDetail(
                fdc_id=payload.get("fdcId") or fdc_id,
                description=payload.get("description") or "",
                nutrients=nutrients,
            )
        except ValidationError as e:
            logger.error(f"USDA API returned malformed details for food {fdc_id}: {e}")
            self.last_failure = LookupFailure.DECODE
            return None

    async def _get_json(self, path: str, params: dict, context: str) -> dict | None:
        """GET a JSON object, mapping every failure to a logged LookupFailure."""
        try:
            async with self._client() as client:
                response = await client.get(path, params=params)
        except httpx.RequestError as e:
            logger.error(f"USDA API request failed for {context}: {e}")
            self.last_failure = LookupFailure.TRANSPORT
            return None

        status = response.status_code
        if status == 429:
            logger.warning(f"USDA API rate limit exceeded (HTTP 429) for {context}")
            self.last_failure = LookupFailure.RATE_LIMITED
            return None
        if status in (401, 403):
            logger.error(
                f"USDA API rejected the request (HTTP {status}) for {context}. "
                "Check USDA_API_KEY."
            )
            self.last_failure = LookupFailure.UNAUTHORIZED
            return None
        if status == 404:
            logger.info(f"USDA API found nothing for {context}")
            self.last_failure = LookupFailure.NOT_FOUND
            return None
        if status >= 400:
            logger.error(f"USDA API error for {context}: HTTP {status}")
            self.last_failure = LookupFailure.HTTP_ERROR
            return None

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"USDA API returned invalid JSON for {context}: {e}")
            self.last_failure = LookupFailure.DECODE
            return None
        if not isinstance(data, dict):
            logger.error(f"USDA API returned unexpected payload for {context}")
            self.last_failure = LookupFailure.DECODE
            return None
        return data
