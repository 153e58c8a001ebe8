"""Tests for modserve.app — setup, freezing, lifecycle and errors."""

import pytest

from modserve.app import App
from modserve.config import ServeConfig
from modserve.errors import ConfigurationError, HTTPError, ManifestNotFound
from modserve.http.response import Redirect, Response
from modserve.testing import TestClient, assert_redirects_to


async def _boom(request, next):
    raise RuntimeError("kaboom")


class TestMounting:
    def test_duplicate_prefix(self) -> None:
        app = App()

        async def unit(request, next):
            return await next(request)

        app.mount("/vendor", unit)
        with pytest.raises(ConfigurationError, match="already mounted"):
            app.mount("/vendor/", unit)

    async def test_mount_packages_uses_config(self, foo_package, node_modules) -> None:
        app = App(ServeConfig(packages=("foo",), packages_dir=node_modules))
        router = app.mount_packages()
        assert router.packages == ["foo"]
        async with TestClient(app) as client:
            assert_redirects_to(await client.get("/node_modules/foo/"), "/node_modules/foo/index.js")

    async def test_mount_packages_arguments_win(self, foo_package, node_modules) -> None:
        app = App(ServeConfig(packages=("ghost",)))
        app.mount_packages(["foo"], packages_dir=node_modules, base_url="/vendor/")
        async with TestClient(app) as client:
            assert_redirects_to(await client.get("/vendor/foo/bar"), "/vendor/foo/lib/bar.js")

    async def test_mount_packages_at_root(self, foo_package, node_modules) -> None:
        app = App()
        app.mount_packages(["foo"], packages_dir=node_modules, base_url="/")
        async with TestClient(app) as client:
            assert_redirects_to(await client.get("/foo/bar"), "/foo/lib/bar.js")

    def test_mount_packages_propagates_manifest_errors(self, node_modules) -> None:
        app = App(ServeConfig(packages=("ghost",), packages_dir=node_modules))
        with pytest.raises(ManifestNotFound):
            app.mount_packages()

    def test_mount_packages_skip_missing(self, foo_package, node_modules) -> None:
        config = ServeConfig(packages=("ghost", "foo"), packages_dir=node_modules, skip_missing=True)
        router = App(config).mount_packages()
        assert router.packages == ["foo"]


class TestFreeze:
    async def test_no_changes_after_startup(self) -> None:
        app = App()
        async with TestClient(app):
            with pytest.raises(ConfigurationError, match="after it has started"):
                app.add_middleware(_boom)

    def test_repr(self) -> None:
        assert repr(App()) == "<App setup middleware=0>"


class TestLifecycle:
    async def test_hooks_run(self) -> None:
        app = App()
        events: list[str] = []

        @app.on_startup
        async def started() -> None:
            events.append("start")

        @app.on_shutdown
        def stopped() -> None:
            events.append("stop")

        async with TestClient(app):
            assert events == ["start"]
        assert events == ["start", "stop"]

    async def test_lifespan_protocol(self) -> None:
        app = App()
        events: list[str] = []
        app.on_startup(lambda: events.append("start"))
        app.on_shutdown(lambda: events.append("stop"))

        incoming = [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]
        sent: list[dict] = []

        async def receive() -> dict:
            return incoming.pop(0)

        async def send(message: dict) -> None:
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]
        assert events == ["start", "stop"]

    async def test_lifespan_startup_failure(self) -> None:
        app = App()

        @app.on_startup
        def broken() -> None:
            raise RuntimeError("no")

        sent: list[dict] = []

        async def receive() -> dict:
            return {"type": "lifespan.startup"}

        async def send(message: dict) -> None:
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)
        assert sent == [{"type": "lifespan.startup.failed", "message": "no"}]


class TestErrorHandling:
    async def test_default_not_found(self) -> None:
        async with TestClient(App()) as client:
            response = await client.get("/nothing")
            assert response.status == 404
            assert "Nothing serves GET '/nothing'" in response.text

    async def test_custom_404_handler(self) -> None:
        app = App()

        @app.error(404)
        def not_found(request):
            return f"no {request.full_path}"

        async with TestClient(app) as client:
            response = await client.get("/x")
            assert response.status == 404
            assert response.text == "no /x"

    async def test_handler_returning_redirect(self) -> None:
        app = App()
        app.error(404)(lambda: Redirect("/home"))
        async with TestClient(app) as client:
            assert_redirects_to(await client.get("/x"), "/home")

    async def test_http_error_headers(self) -> None:
        app = App()

        async def teapot(request, next):
            raise HTTPError(status=418, detail="short and stout", headers=(("X-Pot", "1"),))

        app.add_middleware(teapot)
        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 418
            assert response.text == "short and stout"
            assert response.header("x-pot") == "1"

    async def test_internal_error_is_500(self, caplog) -> None:
        app = App()
        app.add_middleware(_boom)
        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 500
            assert response.text == "Internal Server Error"
        assert "500 GET /" in caplog.text

    async def test_internal_error_detail_in_debug(self) -> None:
        app = App(ServeConfig(log_level="debug"))
        app.add_middleware(_boom)
        async with TestClient(app) as client:
            response = await client.get("/")
            assert "RuntimeError: kaboom" in response.text

    async def test_500_handler(self) -> None:
        app = App()
        app.add_middleware(_boom)
        app.error(500)(lambda request, exc: Response(f"sorry: {exc}", status=503))
        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 503
            assert response.text == "sorry: kaboom"
