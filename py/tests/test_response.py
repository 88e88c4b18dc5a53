from __future__ import annotations

import re
import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT / "py" / "src"))

from requestsim.errors import TypeMismatchError  # noqa: E402
from requestsim.response import Cookie, RenderMetadata, TestResponse  # noqa: E402
from requestsim.session import FlashHash, TestSession  # noqa: E402


def _redirect(location: str | None = "http://test.host/posts/5") -> TestResponse:
    headers = {"location": [location]} if location is not None else {}
    return TestResponse(status="302 Found", headers=headers)


class TestStatusPredicates(unittest.TestCase):
    def test_response_code_parses_first_three_characters(self) -> None:
        self.assertEqual(TestResponse(status="200 OK").response_code, 200)
        self.assertEqual(TestResponse(status="404").response_code, 404)
        self.assertEqual(TestResponse(status="").response_code, 0)
        self.assertEqual(TestResponse(status=None).response_code, 0)
        self.assertEqual(TestResponse(status="OK").response_code, 0)

    def test_classification(self) -> None:
        self.assertTrue(TestResponse(status="200 OK").success)
        self.assertFalse(TestResponse(status="201 Created").success)
        self.assertTrue(TestResponse(status="404 Not Found").missing)
        for status, expected in (("299", False), ("300", True), ("302 Found", True), ("399", True), ("400", False)):
            with self.subTest(status=status):
                self.assertEqual(TestResponse(status=status).redirect, expected)
        for status, expected in (("499", False), ("500", True), ("503 Busy", True), ("599", True), ("600", False)):
            with self.subTest(status=status):
                self.assertEqual(TestResponse(status=status).error, expected)
                self.assertEqual(TestResponse(status=status).server_error, expected)

    def test_malformed_status_is_never_a_redirect_or_error(self) -> None:
        resp = TestResponse(status=None, headers={"location": ["/x"]})
        self.assertFalse(resp.success)
        self.assertFalse(resp.redirect)
        self.assertFalse(resp.error)
        self.assertIsNone(resp.redirect_url)


class TestRedirects(unittest.TestCase):
    def test_redirect_url_requires_redirect_status(self) -> None:
        self.assertEqual(_redirect().redirect_url, "http://test.host/posts/5")
        resp = TestResponse(status="200 OK", headers={"location": ["/posts"]})
        self.assertIsNone(resp.redirect_url)

    def test_redirect_url_is_none_without_location_header(self) -> None:
        self.assertIsNone(_redirect(None).redirect_url)

    def test_redirect_url_accepts_scalar_and_mixed_case_headers(self) -> None:
        resp = TestResponse(status="301", headers={"Location": "/moved"})
        self.assertEqual(resp.redirect_url, "/moved")

    def test_redirect_url_match(self) -> None:
        resp = _redirect()
        self.assertTrue(resp.redirect_url_match("posts/\\d+"))
        self.assertTrue(resp.redirect_url_match(re.compile(r"test\.host")))
        self.assertFalse(resp.redirect_url_match("users"))
        self.assertFalse(resp.redirect_url_match(None))
        self.assertFalse(resp.redirect_url_match(42))
        self.assertFalse(TestResponse(status="200 OK").redirect_url_match("posts"))
        self.assertFalse(_redirect(None).redirect_url_match("posts"))


class TestRenderMetadata(unittest.TestCase):
    def test_rendered_file_defaults_to_full_path(self) -> None:
        resp = TestResponse(template=RenderMetadata(first_render="posts/show"))
        self.assertEqual(resp.rendered_file(), "posts/show")
        self.assertEqual(resp.rendered_file(with_controller=True), "show")
        self.assertTrue(resp.rendered_with_file)

    def test_rendered_file_without_render(self) -> None:
        resp = TestResponse()
        self.assertIsNone(resp.rendered_file())
        self.assertIsNone(resp.rendered_file(True))
        self.assertFalse(resp.rendered_with_file)

    def test_rendered_file_basename_ignores_trailing_slash(self) -> None:
        resp = TestResponse(template=RenderMetadata(first_render="posts/show/"))
        self.assertEqual(resp.rendered_file(True), "show")
        self.assertEqual(resp.rendered_file(), "posts/show/")
        self.assertEqual(TestResponse(template=RenderMetadata(first_render="/")).rendered_file(True), "/")

    def test_template_objects(self) -> None:
        resp = TestResponse(template=RenderMetadata(assigns={"post": "p", "empty": None}))
        self.assertEqual(resp.template_objects, {"post": "p", "empty": None})
        self.assertTrue(resp.has_template_object("post"))
        self.assertFalse(resp.has_template_object("empty"))
        self.assertFalse(resp.has_template_object("missing"))
        self.assertEqual(TestResponse().template_objects, {})
        self.assertEqual(TestResponse(template=None).template_objects, {})


class TestFlashAndSession(unittest.TestCase):
    def test_flash_defaults_to_empty(self) -> None:
        resp = TestResponse(session=TestSession())
        self.assertEqual(resp.flash, {})
        self.assertFalse(resp.has_flash)
        self.assertFalse(resp.has_flash_with_contents)
        self.assertFalse(resp.has_flash_object("notice"))

    def test_flash_returns_stored_map(self) -> None:
        flash = FlashHash({"notice": "saved"})
        resp = TestResponse(session=TestSession({"flash": flash}))
        self.assertIs(resp.flash, flash)
        self.assertTrue(resp.has_flash)
        self.assertTrue(resp.has_flash_with_contents)
        self.assertTrue(resp.has_flash_object("notice"))
        self.assertFalse(resp.has_flash_object("alert"))

    def test_empty_flash_is_not_a_flash(self) -> None:
        resp = TestResponse(session=TestSession({"flash": {}}))
        self.assertFalse(resp.has_flash)
        self.assertFalse(resp.has_flash_with_contents)

    def test_session_objects(self) -> None:
        resp = TestResponse(session=TestSession({"user_id": 1, "gone": None}))
        self.assertTrue(resp.has_session_object("user_id"))
        self.assertFalse(resp.has_session_object("gone"))
        self.assertFalse(resp.has_session_object("missing"))

    def test_accessors_tolerate_missing_session(self) -> None:
        resp = TestResponse(session=None)
        self.assertEqual(resp.flash, {})
        self.assertFalse(resp.has_flash)
        self.assertFalse(resp.has_session_object("x"))


class TestCookies(unittest.TestCase):
    def test_cookies_are_keyed_by_name_last_write_wins(self) -> None:
        first = {"name": "a", "value": 1}
        second = {"name": "a", "value": 2}
        resp = TestResponse(headers={"cookie": [first, second]})
        self.assertEqual(resp.cookies, {"a": second})

    def test_cookie_records(self) -> None:
        auth = Cookie(name="auth", value=["token"], http_only=True)
        theme = Cookie(name="theme", value=["dark"])
        resp = TestResponse(headers={"cookie": [auth, theme]})
        self.assertEqual(resp.cookies["auth"].value, ["token"])
        self.assertTrue(resp.cookies["auth"].http_only)
        self.assertEqual(sorted(resp.cookies), ["auth", "theme"])

    def test_cookies_without_header(self) -> None:
        self.assertEqual(TestResponse().cookies, {})


class TestBinaryContent(unittest.TestCase):
    def test_binary_content_captures_stdout(self) -> None:
        original = sys.stdout
        resp = TestResponse(body=lambda: sys.stdout.write("PDF-1.4"))
        self.assertEqual(resp.binary_content(), "PDF-1.4")
        self.assertIs(sys.stdout, original)

    def test_binary_content_restores_stdout_on_failure(self) -> None:
        original = sys.stdout

        def body() -> None:
            print("partial")
            raise OSError("disk gone")

        resp = TestResponse(body=body)
        with self.assertRaisesRegex(OSError, "disk gone"):
            resp.binary_content()
        self.assertIs(sys.stdout, original)

    def test_binary_content_requires_callable_body(self) -> None:
        resp = TestResponse(body="<html></html>")
        with self.assertRaises(TypeMismatchError) as ctx:
            resp.binary_content()
        self.assertEqual(ctx.exception.code, "harness.type_mismatch")
        self.assertIn("'<html></html>'", str(ctx.exception))
