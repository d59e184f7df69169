from fastapi import Query

from stackit.config import settings


class PaginationParams:
    """
    Reusable FastAPI dependency that parses and validates page/limit
    pagination query parameters.

    Usage in a router::

        @router.get("/questions")
        async def list_questions(pagination: PaginationParams = Depends()):
            ...

    Attributes
    ----------
    page:
        1-based page number (minimum 1).
    limit:
        Number of items per page, clamped to ``settings.MAX_PAGE_SIZE``
        regardless of the value supplied by the caller.
    """

    def __init__(
        self,
        page: int = Query(
            1,
            ge=1,
            description="Page number (1-based).",
        ),
        limit: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=100,
            description="Number of questions returned per page (max 100).",
        ),
    ) -> None:
        self.page = page
        self.limit = min(limit, settings.MAX_PAGE_SIZE)


class QuestionFilters:
    """Filter and sort options for the question feed."""

    def __init__(
        self,
        tag: str | None = Query(None, description="Only questions carrying this exact tag."),
        search: str | None = Query(
            None,
            description="Case-insensitive substring matched against title and description.",
        ),
        sort: str = Query(
            "newest",
            pattern="^(newest|oldest)$",
            description="'newest' or 'oldest' by creation date.",
        ),
        answered: bool | None = Query(
            None,
            description="true: only answered questions, false: only unanswered ones.",
        ),
    ) -> None:
        self.tag = tag or None
        self.search = search or None
        self.sort = sort
        self.answered = answered
