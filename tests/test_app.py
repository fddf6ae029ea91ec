"""Tests for cureconnect.app: boot lifecycle, dispatch, and error isolation."""

from dataclasses import replace
import threading
from pathlib import Path

import pytest

from cureconnect.app import PACKAGE_ROOT, Application
from cureconnect.config import DatabaseSettings, testing_config
from cureconnect.controllers.base import BaseController
from cureconnect.data import Database
from cureconnect.errors import ConfigurationError, Forbidden, TemplateError
from cureconnect.http import SimpleRequest
from cureconnect.testing import TestClient


class _Exploding(BaseController):
    __slots__ = ()

    def boom(self):
        raise RuntimeError("kaboom")

    def forbidden(self):
        raise Forbidden("Not for you")


class TestLifecycle:
    def test_boot_returns_one_instance(self) -> None:
        app = Application.boot()
        assert Application.boot() is app
        assert Application.get_instance() is app

    def test_reset_builds_a_fresh_instance(self) -> None:
        first = Application.boot()
        Application.reset_for_testing()
        assert not first.db.is_connected
        assert Application.boot() is not first

    def test_arguments_ignored_after_first_boot(self, tmp_path: Path) -> None:
        app = Application.boot()
        assert Application.boot(tmp_path) is app

    def test_boot_sequence(self, app: Application) -> None:
        assert app.config.app.name == "CureConnect Test"
        assert app.db.is_connected
        assert app.db.fetch_val("SELECT COUNT(*) FROM _cureconnect_migrations") == 1
        assert len(app.routes) == 12
        assert app.renderer.globals["app_name"] == "CureConnect Test"

    def test_renderer_failure_releases_storage(self, tmp_path: Path) -> None:
        config = replace(
            testing_config(),
            database=DatabaseSettings(name=":memory:", migrate=False),
        )
        with pytest.raises(TemplateError, match="Templates directory does not exist"):
            Application(tmp_path, config)
        assert Application._instance is None

    def test_late_boot_failure_releases_storage(self, monkeypatch: pytest.MonkeyPatch) -> None:
        opened: list[Database] = []

        class RecordingDatabase(Database):
            __slots__ = ()

            def connect(self) -> None:
                opened.append(self)
                super().connect()

        monkeypatch.setattr("cureconnect.app.Database", RecordingDatabase)
        base = testing_config()
        with pytest.raises(ConfigurationError, match="secret_key"):
            Application.boot(config=replace(base, app=replace(base.app, secret_key="")))
        assert len(opened) == 1
        assert not opened[0].is_connected
        assert Application._instance is None

    def test_shutdown_is_idempotent(self, app: Application) -> None:
        app.shutdown()
        app.shutdown()
        assert not app.db.is_connected

    def test_resolve(self, app: Application, tmp_path: Path) -> None:
        assert app.resolve("templates") == PACKAGE_ROOT / "templates"
        assert app.resolve(tmp_path) == tmp_path


class TestBaseContext:
    def test_language_and_direction(self, app: Application) -> None:
        context = app.base_context(SimpleRequest("GET", "/about?lang=ar"))
        assert context["lang"] == "ar"
        assert context["dir"] == "rtl"
        assert context["current_path"] == "/about"
        assert [lang["code"] for lang in context["languages"] if lang["active"]] == ["ar"]
        assert context["t"]["nav_home"] == "الرئيسية"
        assert context["meta"]["title"] == "CureConnect Test"
        assert "password" not in context["config"]["database"]


class TestHandleRequest:
    def test_known_route(self, app: Application) -> None:
        response = app.handle_request(SimpleRequest("GET", "/about"))
        assert response.status == 200
        assert "CureConnect Test" in response.text

    def test_request_context_is_reset(self, app: Application) -> None:
        app.handle_request(SimpleRequest("GET", "/"))
        assert app.current_request is None

    def test_unknown_route_is_404(self, app: Application) -> None:
        response = app.handle_request(SimpleRequest("GET", "/no/such/page"))
        assert response.status == 404
        assert "Page Not Found" in response.text
        assert "/no/such/page" in response.text

    def test_paths_match_exactly(self, app: Application) -> None:
        assert app.handle_request(SimpleRequest("GET", "/about/")).status == 404
        assert app.handle_request(SimpleRequest("GET", "/About")).status == 404

    def test_http_error_renders_its_status(self, app: Application) -> None:
        app.routes.add("/forbidden", _Exploding, "forbidden")
        response = app.handle_request(SimpleRequest("GET", "/forbidden"))
        assert response.status == 403
        assert "Not for you" in response.text

    def test_unexpected_error_in_debug_shows_details(self, app: Application) -> None:
        app.routes.add("/boom", _Exploding, "boom")
        response = app.handle_request(SimpleRequest("GET", "/boom"))
        assert response.status == 500
        assert "RuntimeError" in response.text
        assert "kaboom" in response.text

    def test_failure_does_not_affect_next_request(self, app: Application) -> None:
        app.routes.add("/boom", _Exploding, "boom")
        assert app.handle_request(SimpleRequest("GET", "/boom")).status == 500
        assert app.handle_request(SimpleRequest("GET", "/")).status == 200

    def test_unexpected_error_without_debug_is_opaque(self) -> None:
        base = testing_config()
        app = Application(PACKAGE_ROOT, replace(base, app=replace(base.app, debug=False)))
        try:
            app.routes.add("/boom", _Exploding, "boom")
            response = app.handle_request(SimpleRequest("GET", "/boom"))
            assert response.status == 500
            assert "Internal Server Error" in response.text
            assert "kaboom" not in response.text
        finally:
            app.shutdown()


class TestPages:
    @pytest.mark.parametrize(
        "path",
        [
            "/",
            "/about",
            "/contact",
            "/gallery",
            "/government-schemes",
            "/articles",
            "/appointments",
            "/appointments/create",
        ],
    )
    async def test_page_renders(self, client: TestClient, path: str) -> None:
        response = await client.get(path)
        assert response.status == 200
        assert "text/html" in response.content_type
        assert "<html" in response.text
        assert "CureConnect Test" in response.text

    async def test_home_meta(self, client: TestClient) -> None:
        response = await client.get("/")
        assert "<title>World-Class Healthcare in India - CureConnect Test</title>" in response.text
        assert 'class="home-page"' in response.text

    async def test_language_switch_persists(self, client: TestClient) -> None:
        response = await client.get("/", query={"lang": "ar"})
        assert '<html lang="ar" dir="rtl">' in response.text
        response = await client.get("/about")
        assert '<html lang="ar" dir="rtl">' in response.text
        assert client.session["language"] == "ar"

    async def test_accept_language(self, client: TestClient) -> None:
        response = await client.get("/", headers={"accept-language": "bn-BD,en;q=0.5"})
        assert '<html lang="bn" dir="ltr">' in response.text


class TestConcurrentBoot:
    def test_threads_share_one_instance_and_one_connection(self, monkeypatch: pytest.MonkeyPatch) -> None:
        connects: list[Database] = []

        class CountingDatabase(Database):
            __slots__ = ()

            def connect(self) -> None:
                connects.append(self)
                super().connect()

        monkeypatch.setattr("cureconnect.app.Database", CountingDatabase)
        workers = 8
        barrier = threading.Barrier(workers)
        booted: list[Application] = []
        errors: list[BaseException] = []

        def worker() -> None:
            barrier.wait()
            try:
                booted.append(Application.boot())
            except BaseException as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert errors == []
        assert len(booted) == workers
        assert len({id(app) for app in booted}) == 1
        assert len(connects) == 1


class TestInstanceRoot:
    def test_storage_lives_under_the_instance_root(self, tmp_path: Path) -> None:
        config = replace(testing_config(), database=DatabaseSettings(name="site.db"))
        app = Application(PACKAGE_ROOT, config, instance_path=tmp_path)
        try:
            assert app.instance_path == tmp_path
            assert (tmp_path / "site.db").is_file()
            assert app.resolve("templates") == PACKAGE_ROOT / "templates"
            assert app.handle_request(SimpleRequest("GET", "/about")).status == 200
        finally:
            app.shutdown()
        assert not (PACKAGE_ROOT / "site.db").exists()

    def test_boot_reads_config_from_instance_root(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("APP_ENV")
        monkeypatch.setenv("CURECONNECT_ROOT", str(tmp_path))
        for name in ("APP_NAME", "TEMPLATE_ENGINE", "DB_DRIVER", "DB_NAME"):
            monkeypatch.delenv(name, raising=False)
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "app.toml").write_text(
            '[app]\nname = "Instance Portal"\ntemplate_engine = "fallback"\n', encoding="utf-8"
        )
        (config_dir / "database.toml").write_text('[database]\nname = "portal.db"\n', encoding="utf-8")

        app = Application.boot()
        assert app.config.app.name == "Instance Portal"
        assert app.instance_path == tmp_path
        assert (tmp_path / "portal.db").is_file()
        assert app.root_path == PACKAGE_ROOT
