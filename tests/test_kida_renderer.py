"""Tests for the kida-backed renderer and renderer selection."""

from dataclasses import replace

import pytest

from cureconnect.app import PACKAGE_ROOT, Application
from cureconnect.config import AppSettings, testing_config
from cureconnect.errors import TemplateError
from cureconnect.http import SimpleRequest
from cureconnect.models import AppointmentModel, ArticleModel
from cureconnect.routes import ROUTES
from cureconnect.server.errors import handle_internal_error
from cureconnect.templating import FallbackRenderer, KidaRenderer, Renderer, create_renderer


class TestKidaRenderer:
    def test_render_with_autoescape(self, templates) -> None:
        root = templates({"page.html": "<p>{{ name }}</p>"})
        output = KidaRenderer(root).render("page.html", {"name": "<b>Asha</b>"})
        assert "&lt;b&gt;" in output
        assert "<b>" not in output

    def test_conditionals(self, templates) -> None:
        root = templates({"page.html": "{% if rtl %}right{% end %}"})
        renderer = KidaRenderer(root)
        assert renderer.render("page.html", {"rtl": True}).strip() == "right"
        assert renderer.render("page.html", {"rtl": False}).strip() == ""

    def test_inheritance(self, templates) -> None:
        root = templates({
            "base.html": "<main>{% block content %}{% endblock %}</main>",
            "child.html": '{% extends "base.html" %}{% block content %}Hello {{ name }}{% endblock %}',
        })
        output = KidaRenderer(root).render("child.html", {"name": "World"})
        assert "<main>Hello World</main>" in output

    def test_globals(self, templates) -> None:
        root = templates({"page.html": "{{ app_name }}"})
        renderer = KidaRenderer(root)
        renderer.add_global("app_name", "CureConnect")
        assert renderer.render("page.html", {}).strip() == "CureConnect"


class TestCreateRenderer:
    def test_selects_fallback(self, tmp_path) -> None:
        renderer = create_renderer(AppSettings(template_engine="fallback"), tmp_path)
        assert isinstance(renderer, FallbackRenderer)
        assert isinstance(renderer, Renderer)

    def test_selects_kida(self, tmp_path) -> None:
        renderer = create_renderer(AppSettings(template_engine="kida"), tmp_path)
        assert isinstance(renderer, KidaRenderer)
        assert isinstance(renderer, Renderer)

    def test_missing_directory(self, tmp_path) -> None:
        with pytest.raises(TemplateError, match="Templates directory does not exist"):
            create_renderer(AppSettings(), tmp_path / "missing")

    def test_production_fallback_caches(self, tmp_path) -> None:
        settings = AppSettings(template_engine="fallback", environment="production")
        renderer = create_renderer(settings, tmp_path)
        assert renderer.cache_enabled


@pytest.fixture
def kida_app():
    """The application rendering its bundled templates with kida, as in production."""
    base = testing_config()
    app = Application(PACKAGE_ROOT, replace(base, app=replace(base.app, template_engine="kida")))
    appointment_id = AppointmentModel(app.db).create({
        "patient_name": "Asha Rani Das",
        "patient_email": "asha@example.com",
        "patient_phone": "+91 98765 43210",
        "appointment_date": "2030-05-01",
        "appointment_time": "10:30",
        "service_type": "consultation",
        "notes": "First visit",
        "status": "pending",
    })
    articles = ArticleModel(app.db)
    for title in ("Heart Care in India", "Knee Replacement Costs"):
        articles.create({
            "title": title,
            "content": f"{title}: what international patients should know.",
            "category": "cardiology",
            "tags": ["india", "surgery"],
            "author_name": "Dr. Rao",
            "status": "published",
            "published_at": "2025-03-05 09:00:00",
        })
    yield app, appointment_id
    app.shutdown()


class TestBundledTemplates:
    def test_every_route_renders(self, kida_app) -> None:
        app, appointment_id = kida_app
        assert isinstance(app.renderer, KidaRenderer)
        queries = {
            "/article": "?slug=heart-care-in-india",
            "/appointments/show": f"?id={appointment_id}",
            "/appointments/update": f"?id={appointment_id}",
        }
        for path, _controller, _action in ROUTES:
            response = app.handle_request(SimpleRequest("GET", path + queries.get(path, "")))
            expected = 302 if path == "/appointments/delete" else 200
            assert response.status == expected, f"{path}: {response.text[:500]}"
            if expected == 200:
                assert "CureConnect Test" in response.text

    def test_pages_in_every_language(self, kida_app) -> None:
        app, _ = kida_app
        for language in ("en", "bn", "ar"):
            response = app.handle_request(SimpleRequest("GET", f"/?lang={language}"))
            assert response.status == 200
            assert f'lang="{language}"' in response.text

    def test_article_listing_details(self, kida_app) -> None:
        app, _ = kida_app
        response = app.handle_request(SimpleRequest("GET", "/articles"))
        assert "Knee Replacement Costs" in response.text
        assert "cardiology" in response.text
        search = app.handle_request(SimpleRequest("GET", "/articles?q=heart"))
        assert "Heart Care in India" in search.text
        assert "Knee Replacement Costs" not in search.text

    def test_article_detail_lists_tags_and_related(self, kida_app) -> None:
        app, _ = kida_app
        response = app.handle_request(SimpleRequest("GET", "/article?slug=heart-care-in-india"))
        assert "<li>surgery</li>" in response.text
        assert "knee-replacement-costs" in response.text

    def test_not_found_page(self, kida_app) -> None:
        app, _ = kida_app
        response = app.handle_request(SimpleRequest("GET", "/does-not-exist"))
        assert response.status == 404
        assert "Page Not Found" in response.text
        assert "/does-not-exist" in response.text

    def test_error_page(self, kida_app) -> None:
        app, _ = kida_app
        response = app.handle_request(SimpleRequest("POST", "/appointments/create", form={"patient_name": "Asha"}))
        assert response.status == 403
        assert "Invalid CSRF token" in response.text

    def test_opaque_server_error_page(self) -> None:
        base = testing_config()
        app = Application(PACKAGE_ROOT, replace(base, app=replace(base.app, template_engine="kida", debug=False)))
        try:
            response = handle_internal_error(
                RuntimeError("kaboom"),
                SimpleRequest("GET", "/"),
                app.renderer,
                app.base_context(SimpleRequest("GET", "/")),
                debug=False,
            )
            assert response.status == 500
            assert "Something went wrong. Please try again later." in response.text
            assert "kaboom" not in response.text
        finally:
            app.shutdown()
