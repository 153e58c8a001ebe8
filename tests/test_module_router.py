"""Tests for modserve.modules.router — packages served through an app."""

import logging

import pytest

from modserve.app import App
from modserve.config import ServeConfig
from modserve.errors import ConfigurationError, ManifestNotFound, ManifestParseError
from modserve.http.headers import Headers
from modserve.http.request import Request
from modserve.http.response import Response
from modserve.modules.router import serve_module, serve_modules
from modserve.testing import TestClient, assert_not_found, assert_redirects_to


def _vendor_app(node_modules, *packages: str) -> App:
    app = App(ServeConfig(packages=packages, packages_dir=node_modules, base_url="/vendor"))
    app.mount_packages()
    return app


class TestFooScenario:
    """``foo`` mounted at ``/vendor``: entry, exact and glob redirects."""

    async def test_entry_redirect(self, foo_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            response = await client.get("/vendor/foo/")
            assert_redirects_to(response, "/vendor/foo/index.js")

    async def test_entry_without_trailing_slash(self, foo_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            response = await client.get("/vendor/foo")
            assert_redirects_to(response, "/vendor/foo/index.js")

    async def test_exact_redirect(self, foo_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            response = await client.get("/vendor/foo/bar")
            assert_redirects_to(response, "/vendor/foo/lib/bar.js")
            assert response.body_bytes == b""

    async def test_glob_redirect(self, foo_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            response = await client.get("/vendor/foo/glob/x")
            assert_redirects_to(response, "/vendor/foo/dist/x.min.js")

    async def test_unknown_file_served_from_package(self, foo_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            response = await client.get("/vendor/foo/unknown.css")
            assert response.status == 200
            assert "text/css" in response.content_type
            assert response.text == "body { color: red; }"

    async def test_unknown_missing_file_not_found(self, foo_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            assert_not_found(await client.get("/vendor/foo/nothing.css"))

    async def test_redirect_target_is_served(self, foo_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            response = await client.get("/vendor/foo/lib/bar.js")
            assert response.status == 200
            assert response.content_type.startswith("text/javascript")
            assert response.text == "export const bar = 1;"

    async def test_glob_without_capture_not_redirected(self, foo_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            assert_not_found(await client.get("/vendor/foo/glob/"))

    async def test_non_ascii_capture_is_percent_encoded(self, foo_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            response = await client.get("/vendor/foo/glob/✓")
            assert_redirects_to(response, "/vendor/foo/dist/%E2%9C%93.min.js")

            response = await client.get("/vendor/foo/glob/café")
            assert_redirects_to(response, "/vendor/foo/dist/caf%C3%A9.min.js")

    async def test_dot_segment_capture_not_redirected(self, foo_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            response = await client.get("/vendor/foo/glob/..")
            assert response.status != 302
            assert response.location is None


class TestMethods:
    async def test_head_redirect(self, foo_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            response = await client.head("/vendor/foo/bar")
            assert_redirects_to(response, "/vendor/foo/lib/bar.js")

    async def test_head_static_has_no_body(self, foo_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            response = await client.head("/vendor/foo/unknown.css")
            assert response.status == 200
            assert response.body_bytes == b""
            assert response.header("content-length") == str(len("body { color: red; }"))

    async def test_post_falls_through(self, foo_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            assert_not_found(await client.post("/vendor/foo/bar"))


class TestPrecedence:
    async def test_first_declared_rule_wins(self, make_package, node_modules) -> None:
        make_package(
            "order",
            {"main": "index.js", "exports": {"./a/*": "first/*.js", "./a/b": "second.js"}},
        )
        async with TestClient(_vendor_app(node_modules, "order")) as client:
            assert_redirects_to(await client.get("/vendor/order/a/b"), "/vendor/order/first/b.js")

    async def test_exact_before_glob_when_declared_first(self, make_package, node_modules) -> None:
        make_package(
            "order",
            {"main": "index.js", "exports": {"./a/b": "second.js", "./a/*": "first/*.js"}},
        )
        async with TestClient(_vendor_app(node_modules, "order")) as client:
            assert_redirects_to(await client.get("/vendor/order/a/b"), "/vendor/order/second.js")
            assert_redirects_to(await client.get("/vendor/order/a/c"), "/vendor/order/first/c.js")

    async def test_route_beats_file_on_disk(self, make_package, node_modules) -> None:
        make_package(
            "shadow",
            {"main": "index.js", "exports": {"./bar": "lib/bar.js"}},
            files={"bar": "plain file", "lib/bar.js": "x"},
        )
        async with TestClient(_vendor_app(node_modules, "shadow")) as client:
            assert_redirects_to(await client.get("/vendor/shadow/bar"), "/vendor/shadow/lib/bar.js")


class TestDirectoryDelegation:
    @pytest.fixture
    def ui_package(self, make_package):
        return make_package(
            "ui",
            {"module": "index.mjs", "exports": {".": "./index.mjs", "./assets/": "./static/"}},
            files={
                "index.mjs": "export {};",
                "static/img/logo.svg": "<svg/>",
                "static/theme.css": "html {}",
            },
        )

    async def test_served_in_place(self, ui_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "ui")) as client:
            response = await client.get("/vendor/ui/assets/img/logo.svg")
            assert response.status == 200
            assert response.location is None
            assert response.text == "<svg/>"

    async def test_nested_remainder_forwarded(self, ui_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "ui")) as client:
            response = await client.get("/vendor/ui/assets/theme.css")
            assert response.status == 200
            assert "text/css" in response.content_type

    async def test_miss_is_not_found(self, ui_package, node_modules) -> None:
        async with TestClient(_vendor_app(node_modules, "ui")) as client:
            assert_not_found(await client.get("/vendor/ui/assets/none.css"))

    async def test_traversal_forbidden(self, ui_package, node_modules) -> None:
        (node_modules / "secret.txt").write_text("nope")
        async with TestClient(_vendor_app(node_modules, "ui")) as client:
            response = await client.get("/vendor/ui/../secret.txt")
            assert response.status == 403


class TestServeModules:
    async def test_several_packages(self, foo_package, make_package, node_modules) -> None:
        make_package("@scope/pkg", {"module": "index.mjs"})
        async with TestClient(_vendor_app(node_modules, "foo", "@scope/pkg")) as client:
            assert_redirects_to(await client.get("/vendor/foo/"), "/vendor/foo/index.js")
            assert_redirects_to(
                await client.get("/vendor/@scope/pkg/"), "/vendor/@scope/pkg/index.mjs"
            )

    async def test_unlisted_package_not_served(self, foo_package, make_package, node_modules) -> None:
        make_package("other", {"main": "index.js"}, files={"index.js": "x"})
        async with TestClient(_vendor_app(node_modules, "foo")) as client:
            assert_not_found(await client.get("/vendor/other/index.js"))

    async def test_outer_chain_continues_after_miss(self, foo_package, node_modules) -> None:
        app = _vendor_app(node_modules, "foo")

        async def fallback(request, next):
            return Response(f"fallback {request.full_path}")

        app.add_middleware(fallback)
        async with TestClient(app) as client:
            response = await client.get("/vendor/foo/missing.js")
            assert response.status == 200
            assert response.text == "fallback /vendor/foo/missing.js"

    async def test_mount_under_other_prefix(self, foo_package, node_modules) -> None:
        app = App()
        app.mount("/assets/npm", serve_modules(["foo"], node_modules, "/assets/npm"))
        async with TestClient(app) as client:
            assert_redirects_to(await client.get("/assets/npm/foo/bar"), "/assets/npm/foo/lib/bar.js")

    def test_tables_in_mount_order(self, foo_package, make_package, node_modules) -> None:
        make_package("a", {"main": "a.js"})
        router = serve_modules(["foo", "a"], node_modules, "/vendor")
        assert router.packages == ["foo", "a"]
        assert list(router.tables) == ["foo", "a"]
        assert router.tables["foo"].entry.target_path == "index.js"

    def test_missing_package_aborts(self, foo_package, node_modules) -> None:
        with pytest.raises(ManifestNotFound):
            serve_modules(["foo", "ghost"], node_modules, "/vendor")

    def test_malformed_manifest_aborts(self, make_package, node_modules) -> None:
        make_package("bad", "{")
        with pytest.raises(ManifestParseError):
            serve_modules(["bad"], node_modules, "/vendor")

    def test_skip_missing(self, foo_package, node_modules, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="modserve.modules"):
            router = serve_modules(["ghost", "foo"], node_modules, "/vendor", skip_missing=True)
        assert router.packages == ["foo"]
        assert "Skipping ghost" in caplog.text

    def test_duplicate_package(self, foo_package, node_modules) -> None:
        with pytest.raises(ConfigurationError, match="more than once"):
            serve_modules(["foo", "foo"], node_modules, "/vendor")


class TestModuleRouterUnit:
    async def test_falls_through_to_next(self, foo_package, node_modules) -> None:
        unit = serve_module("foo", node_modules, "/x/foo")
        seen: list[str] = []

        async def next(request: Request) -> Response:
            seen.append(request.path)
            return Response("next", status=418)

        request = Request(method="GET", path="/missing.js", headers=Headers())
        response = await unit(request, next)
        assert response.status == 418
        assert seen == ["/missing.js"]

    async def test_redirect_uses_base_url(self, foo_package, node_modules) -> None:
        unit = serve_module("foo", node_modules, "/x/foo")

        async def next(request: Request) -> Response:
            raise AssertionError("should not be called")

        request = Request(method="GET", path="/bar", headers=Headers())
        response = await unit(request, next)
        assert_redirects_to(response, "/x/foo/lib/bar.js")

    def test_exposes_manifest_and_table(self, foo_package, node_modules) -> None:
        unit = serve_module("foo", node_modules, "/x/foo")
        assert unit.manifest.entry_point == "index.js"
        assert unit.base_url == "/x/foo"
        assert len(unit.table) == 3
