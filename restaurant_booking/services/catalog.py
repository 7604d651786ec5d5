"""
Restaurant Catalog Service

Read-only search, filtering and pagination over the restaurant catalog.
"""

import logging

from restaurant_booking.core.exceptions import NotFoundError
from restaurant_booking.services.storage import (
    BaseStorage,
    Page,
    PageRequest,
    RestaurantFilter,
    RestaurantRecord,
)

logger = logging.getLogger(__name__)


class RestaurantCatalogService:
    """
    Catalog queries on top of an injected storage backend.

    Example:
        >>> catalog = RestaurantCatalogService(storage)
        >>> page = await catalog.search(RestaurantFilter(cuisine="ital"), PageRequest(1, 10))
        >>> [r.name for r in page.items]
        ['Mama Mia Pizzeria']
    """

    def __init__(self, storage: BaseStorage):
        self.storage = storage

    async def search(self, criteria: RestaurantFilter, page: PageRequest) -> Page[RestaurantRecord]:
        """
        Filter and paginate the catalog.

        Results are ordered by rating (highest first), then name. The
        returned ``total`` counts every match, not just this page.
        """
        result = await self.storage.search_restaurants(criteria, page)
        logger.debug(
            f"Catalog search {criteria} page={page.page} -> "
            f"{len(result.items)}/{result.total}"
        )
        return result

    async def get_by_id(self, restaurant_id: int) -> RestaurantRecord:
        restaurant = await self.storage.get_restaurant(restaurant_id)
        if restaurant is None:
            raise NotFoundError("Restaurant not found")
        return restaurant

    async def list_cuisines(self) -> list[str]:
        return await self.storage.list_cuisines()

    async def list_locations(self) -> list[str]:
        return await self.storage.list_locations()
