import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from lib.utils import derive_name, parse_header, parse_headers


class TestDeriveName(unittest.TestCase):

    def test_query_string_does_not_change_the_name(self) -> None:
        plain = derive_name("https://example.com/api/v1/client/work")
        with_query = derive_name("https://example.com/api/v1/client/work?token=abc&flag=clash")
        self.assertEqual(plain, "work")
        self.assertEqual(with_query, plain)

    def test_derived_name_is_stable(self) -> None:
        name = derive_name("https://example.com/sub/home.yaml?x=1")
        self.assertEqual(derive_name(f"https://example.com/{name}?y=2"), name)

    def test_trailing_slash(self) -> None:
        self.assertEqual(derive_name("https://example.com/sub/"), "sub")

    def test_empty_url(self) -> None:
        self.assertEqual(derive_name(""), "")


class TestParseHeaders(unittest.TestCase):

    def test_key_value(self) -> None:
        self.assertEqual(parse_header("Authorization=Bearer a=b"), ("Authorization", "Bearer a=b"))

    def test_missing_value_is_empty(self) -> None:
        self.assertEqual(parse_header("X-Empty"), ("X-Empty", ""))

    def test_parse_headers_skips_blank_keys(self) -> None:
        self.assertEqual(parse_headers(["A=1", "=oops", "B"]), {"A": "1", "B": ""})
        self.assertEqual(parse_headers(None), {})


if __name__ == "__main__":
    unittest.main()
