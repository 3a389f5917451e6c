from fastapi import Query

from content_graph.config import settings


class PaginationParams:
    """
    FastAPI dependency parsing ``page`` / ``page_size`` query parameters.

    Defaults live here, at the HTTP edge: the repositories reject missing
    or non-positive values instead of inventing their own.

    Usage in a router::

        @router.get("/published")
        async def feed(pagination: PaginationParams = Depends()):
            ...
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)."),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=100,
            description="Number of items per page (max 100).",
        ),
    ) -> None:
        self.page = page
        # Settings ceiling applies even if the query schema allows more.
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)
