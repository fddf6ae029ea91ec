"""Health articles: publishing, pagination, search, categories."""

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from cureconnect.data import MAX_ROW_ID, Database
from cureconnect.errors import DataError
from cureconnect.security import generate_slug

logger = logging.getLogger("cureconnect.data")

UPDATABLE_FIELDS = (
    "title",
    "slug",
    "content",
    "meta_description",
    "tags",
    "category",
    "author_name",
    "status",
    "published_at",
)


def escape_like(text: str) -> str:
    """Make %, _ and the escape character itself match literally in ``LIKE ... ESCAPE '!'``."""
    return text.replace("!", "!!").replace("%", "!%").replace("_", "!_")


@dataclass(frozen=True, slots=True)
class Article:
    id: int
    title: str
    slug: str
    content: str
    language: str = "en"
    meta_description: str = ""
    tags: str = "[]"
    category: str | None = None
    author_name: str = ""
    status: str = "draft"
    published_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def tag_list(self) -> list[str]:
        """Tags decoded from their stored JSON form."""
        try:
            tags = json.loads(self.tags or "[]")
        except ValueError:
            return []
        return [str(tag) for tag in tags] if isinstance(tags, list) else []

    @property
    def excerpt(self) -> str:
        text = self.meta_description or self.content
        return text if len(text) <= 160 else text[:157].rstrip() + "..."


@dataclass(frozen=True, slots=True)
class CategoryCount:
    category: str
    article_count: int


@dataclass(frozen=True, slots=True)
class Pagination:
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages


@dataclass(frozen=True, slots=True)
class ArticlePage:
    articles: list[Article]
    pagination: Pagination


def _encode_tags(tags: Any) -> str:
    if isinstance(tags, str):
        return tags
    return json.dumps(list(tags or []), ensure_ascii=False)


class ArticleModel:
    """Article CRUD and listing queries against the storage handle."""

    __slots__ = ("db",)

    def __init__(self, db: Database) -> None:
        self.db = db

    def create(self, data: Mapping[str, Any]) -> int:
        """Insert an article. Returns the new id.

        The slug defaults to one generated from the title and is made
        unique with ``-1``, ``-2``, ... suffixes.
        """
        slug = self.ensure_unique_slug(data.get("slug") or generate_slug(data["title"]))
        try:
            return self.db.insert(
                "INSERT INTO articles ("
                " title, slug, content, language, meta_description,"
                " tags, category, author_name, status, published_at, created_at"
                ") VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)",
                data["title"],
                slug,
                data["content"],
                data.get("language") or "en",
                data.get("meta_description") or "",
                _encode_tags(data.get("tags")),
                data.get("category") or None,
                data.get("author_name") or "",
                data.get("status") or "draft",
                data.get("published_at"),
            )
        except DataError:
            logger.exception("Article creation failed")
            raise

    def get_by_id(self, article_id: int) -> Article | None:
        if not 0 < article_id <= MAX_ROW_ID:
            return None
        return self.db.fetch_one(Article, "SELECT * FROM articles WHERE id = ?", article_id)

    def get_by_slug(self, slug: str, language: str = "en") -> Article | None:
        """A published article in *language*."""
        return self.db.fetch_one(
            Article,
            "SELECT * FROM articles WHERE slug = ? AND language = ? AND status = 'published'",
            slug,
            language,
        )

    def get_published(
        self,
        page: int = 1,
        limit: int = 10,
        language: str = "en",
        category: str | None = None,
    ) -> ArticlePage:
        """One page of published articles, newest first."""
        page = max(page, 1)
        where = "WHERE status = 'published' AND language = ?"
        params: list[Any] = [language]
        if category:
            where += " AND category = ?"
            params.append(category)

        total = int(self.db.fetch_val(f"SELECT COUNT(*) FROM articles {where}", *params) or 0)
        total_pages = math.ceil(total / limit) if limit else 0
        page = min(page, max(total_pages, 1))
        articles = self.db.fetch(
            Article,
            f"SELECT * FROM articles {where}"
            " ORDER BY published_at DESC, created_at DESC, id DESC LIMIT ? OFFSET ?",
            *params,
            limit,
            (page - 1) * limit,
        )
        return ArticlePage(
            articles=articles,
            pagination=Pagination(
                current_page=page,
                total_pages=total_pages,
                total_items=total,
                items_per_page=limit,
            ),
        )

    def search(self, query: str, language: str = "en", limit: int = 20) -> list[Article]:
        """Published articles matching *query*; exact title matches rank first, then title, then body."""
        term = f"%{escape_like(query)}%"
        return self.db.fetch(
            Article,
            "SELECT * FROM articles"
            " WHERE (title LIKE ? ESCAPE '!' OR content LIKE ? ESCAPE '!' OR tags LIKE ? ESCAPE '!')"
            " AND language = ? AND status = 'published'"
            " ORDER BY CASE"
            "   WHEN LOWER(title) = LOWER(?) THEN 1"
            "   WHEN title LIKE ? ESCAPE '!' THEN 2"
            "   WHEN content LIKE ? ESCAPE '!' THEN 3"
            "   ELSE 4"
            " END, published_at DESC"
            " LIMIT ?",
            term,
            term,
            term,
            language,
            query,
            term,
            term,
            limit,
        )

    def get_related(self, article_id: int, category: str, limit: int = 3) -> list[Article]:
        return self.db.fetch(
            Article,
            "SELECT * FROM articles"
            " WHERE id != ? AND category = ? AND status = 'published'"
            " ORDER BY published_at DESC LIMIT ?",
            article_id,
            category,
            limit,
        )

    def update(self, article_id: int, data: Mapping[str, Any]) -> bool:
        """Update whitelisted fields. Returns False when none were given or the id cannot exist."""
        if not 0 < article_id <= MAX_ROW_ID:
            return False
        assignments: list[str] = []
        params: list[Any] = []
        for name in UPDATABLE_FIELDS:
            if data.get(name) is None:
                continue
            value = data[name]
            if name == "tags":
                value = _encode_tags(value)
            elif name == "slug":
                value = self.ensure_unique_slug(value, exclude_id=article_id)
            assignments.append(f"{name} = ?")
            params.append(value)

        if not assignments:
            return False

        assignments.append("updated_at = CURRENT_TIMESTAMP")
        try:
            return self.db.execute(
                f"UPDATE articles SET {', '.join(assignments)} WHERE id = ?", *params, article_id
            ) > 0
        except DataError:
            logger.exception("Article update failed")
            raise

    def delete(self, article_id: int) -> bool:
        if not 0 < article_id <= MAX_ROW_ID:
            return False
        return self.db.execute("DELETE FROM articles WHERE id = ?", article_id) > 0

    def get_categories(self, language: str = "en") -> list[CategoryCount]:
        """Categories of published articles with their counts, largest first."""
        return self.db.fetch(
            CategoryCount,
            "SELECT category, COUNT(*) AS article_count FROM articles"
            " WHERE status = 'published' AND language = ? AND category IS NOT NULL"
            " GROUP BY category ORDER BY article_count DESC, category",
            language,
        )

    def slug_exists(self, slug: str, exclude_id: int | None = None) -> bool:
        if exclude_id:
            count = self.db.fetch_val(
                "SELECT COUNT(*) FROM articles WHERE slug = ? AND id != ?", slug, exclude_id
            )
        else:
            count = self.db.fetch_val("SELECT COUNT(*) FROM articles WHERE slug = ?", slug)
        return bool(count)

    def ensure_unique_slug(self, slug: str, exclude_id: int | None = None) -> str:
        candidate = slug
        counter = 1
        while self.slug_exists(candidate, exclude_id):
            candidate = f"{slug}-{counter}"
            counter += 1
        return candidate
