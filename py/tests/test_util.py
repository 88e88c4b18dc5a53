from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT / "py" / "src"))

from requestsim.util import (  # noqa: E402
    capture_stdout,
    first_header_value,
    header_values,
    normalize_path,
    stringify_keys,
    to_text,
)


class TestUtil(unittest.TestCase):
    def test_normalize_path_handles_empty_query_and_missing_slash(self) -> None:
        self.assertEqual(normalize_path(""), "/")
        self.assertEqual(normalize_path(" /x?y=1 "), "/x")
        self.assertEqual(normalize_path("x"), "/x")

    def test_header_values_are_case_insensitive_and_keep_records(self) -> None:
        record = {"name": "a"}
        headers = {"Location": "/x", "cookie": [record], "X-Empty": None}
        self.assertEqual(header_values(headers, "location"), ["/x"])
        self.assertIs(header_values(headers, "COOKIE")[0], record)
        self.assertEqual(header_values(headers, "x-empty"), [])
        self.assertEqual(header_values(None, "location"), [])
        self.assertIsNone(first_header_value({}, "location"))

    def test_stringify_keys(self) -> None:
        self.assertEqual(stringify_keys({1: "a", "b": 2}), {"1": "a", "b": 2})
        self.assertEqual(stringify_keys(None), {})

    def test_to_text_supports_common_types_and_errors_for_other_values(self) -> None:
        self.assertEqual(to_text(None), "")
        self.assertEqual(to_text(b"x"), "x")
        self.assertEqual(to_text(bytearray(b"y")), "y")
        self.assertEqual(to_text(memoryview(b"z")), "z")
        with self.assertRaisesRegex(TypeError, "bytes-like or str"):
            to_text(123)

    def test_capture_stdout_returns_output_and_restores_stream(self) -> None:
        original = sys.stdout
        self.assertEqual(capture_stdout(lambda: print("hello", end="")), "hello")
        self.assertIs(sys.stdout, original)

        def boom() -> None:
            print("partial")
            raise RuntimeError("boom")

        with self.assertRaisesRegex(RuntimeError, "boom"):
            capture_stdout(boom)
        self.assertIs(sys.stdout, original)
