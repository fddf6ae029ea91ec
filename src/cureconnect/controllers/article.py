"""Health article listing, search and detail pages."""

from cureconnect.controllers.base import BaseController
from cureconnect.errors import NotFound
from cureconnect.http.response import Response
from cureconnect.models.article import ArticleModel

ARTICLES_PER_PAGE = 10


class ArticleController(BaseController):
    __slots__ = ()

    def index(self) -> Response:
        """``/articles``: one page of published articles, a category, or search results."""
        language = self.language()
        model = ArticleModel(self.app.db)
        page = max(self.request.query.get_int("page", 1) or 1, 1)
        category = (self.request.query.get("category") or "").strip() or None
        query = (self.request.query.get("q") or "").strip()

        if query:
            articles = model.search(query, language)
            pagination = None
        else:
            result = model.get_published(page, ARTICLES_PER_PAGE, language, category)
            articles = result.articles
            pagination = result.pagination

        return self.render(
            "articles/index.html",
            {
                "meta": self.meta_tags(
                    self.trans("Medical Tourism Articles"),
                    self.trans("Learn about medical tourism, healthcare in India, and treatment options."),
                    "medical tourism articles, healthcare india, treatment information",
                ),
                "body_class": "articles-page",
                "articles": articles,
                "pagination": pagination,
                "categories": model.get_categories(language),
                "category": category or "",
                "query": query,
            },
        )

    def show(self) -> Response:
        """``/article?slug=...``: a published article in the current language."""
        slug = (self.request.query.get("slug") or "").strip()
        if not slug:
            raise NotFound("Article not found")

        model = ArticleModel(self.app.db)
        article = model.get_by_slug(slug, self.language())
        if article is None:
            raise NotFound("Article not found")

        related = model.get_related(article.id, article.category) if article.category else []
        return self.render(
            "articles/show.html",
            {
                "meta": self.meta_tags(article.title, article.meta_description, ", ".join(article.tag_list)),
                "body_class": "article-page",
                "article": article,
                "published": self.app.translator.format_date(
                    article.published_at or article.created_at or "", self.language()
                ),
                "related": related,
            },
        )
