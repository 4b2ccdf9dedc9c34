"""Pydantic models describing search intents, catalog results and lists."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, model_validator

ItemType = Literal["movie", "tv", "person"]
ModalMode = Literal["add", "remove"]


class Category(str, Enum):
    """Search/browse partition selected by the tab control."""

    ALL = "all"
    MOVIE = "movie"
    TV = "tv"
    PERSON = "person"

    @classmethod
    def parse(cls, value: object) -> "Category":
        """Return the category for a query parameter, defaulting to ``all``."""

        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value == text:
                return member
        return cls.ALL


class SearchIntent(BaseModel):
    """The user-controlled parameters that determine which search runs."""

    model_config = ConfigDict(frozen=True)

    query: str = ""
    tab: Category = Category.ALL
    page: int = Field(default=1, ge=1)

    @property
    def is_trending(self) -> bool:
        """An empty query browses trending titles; tab and page are inert."""

        return not self.query.strip()

    @classmethod
    def from_query_params(cls, params: Mapping[str, Any]) -> "SearchIntent":
        query = str(params.get("search") or "")
        tab = Category.parse(params.get("tab"))
        try:
            page = int(str(params.get("page") or "1"))
        except ValueError:
            page = 1
        return cls(query=query, tab=tab, page=max(page, 1))

    def to_query_params(self) -> dict[str, str]:
        params = {"tab": self.tab.value, "page": str(self.page)}
        if self.query:
            params["search"] = self.query
        return params

    def submit(self, query: str) -> "SearchIntent":
        """Return the intent produced by submitting the search form."""

        return self.model_copy(update={"query": query, "page": 1})

    def with_tab(self, tab: Category | str) -> "SearchIntent":
        return self.model_copy(update={"tab": Category.parse(tab), "page": 1})

    def with_page(self, page: int) -> "SearchIntent":
        if page < 1:
            raise ValueError("page must be at least 1")
        return self.model_copy(update={"page": page})


class ResultPage(BaseModel):
    """One page of search results as returned by the catalog API."""

    model_config = ConfigDict(extra="ignore")

    results: list[dict[str, Any]] = Field(default_factory=list)
    page: int = 1
    total_pages: int = 1
    total_results: int = 0


class ListItem(BaseModel):
    """Uniform display-and-reference shape for any catalog record."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    tmdb_id: int = Field(alias="tmdbId")
    type: ItemType
    title: str
    sub_title: str | None = Field(default=None, alias="subTitle")
    poster: str | None = None

    @property
    def key(self) -> tuple[str, int]:
        return (self.type, self.tmdb_id)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class UserList(BaseModel):
    """A user-owned named collection of catalog items."""

    model_config = ConfigDict(populate_by_name=True)

    id: int | str
    slug: str
    name: str
    items: list[ListItem] = Field(default_factory=list)

    def contains(self, item: ListItem) -> bool:
        return any(entry.key == item.key for entry in self.items)


class User(BaseModel):
    id: int | str
    email: str
    name: str | None = None


class AuthUser(BaseModel):
    """Authentication state resolved for a request's credential."""

    auth: bool = False
    user: User | None = None

    @model_validator(mode="after")
    def _anonymous_has_no_user(self) -> "AuthUser":
        if not self.auth:
            self.user = None
        return self

    @classmethod
    def anonymous(cls) -> "AuthUser":
        return cls(auth=False)


class ListModalState(BaseModel):
    """State of the single add/remove-to-list modal."""

    model_config = ConfigDict(frozen=True)

    visible: bool = False
    mode: ModalMode = "add"
    item: ListItem | None = None


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    pages: list[int] = Field(default_factory=list)
