import hashlib
import unittest

from starfm.providers.lastfm import sign, signature_base


class TestLastFmSigning(unittest.TestCase):
    def test_base_string_is_sorted_name_value_pairs_plus_secret(self) -> None:
        self.assertEqual(signature_base({"b": "2", "a": "1"}, "s"), "a1b2s")

    def test_signature_is_lowercase_md5_hex_of_base(self) -> None:
        expected = hashlib.md5("a1b2s".encode("utf-8")).hexdigest()
        signature = sign({"b": "2", "a": "1"}, "s")
        self.assertEqual(signature, expected)
        self.assertEqual(len(signature), 32)
        self.assertEqual(signature, signature.lower())

    def test_insertion_order_does_not_change_signature(self) -> None:
        first = {"method": "auth.getMobileSession", "username": "u", "password": "p", "api_key": "k"}
        second = dict(reversed(list(first.items())))
        self.assertEqual(sign(first, "secret"), sign(second, "secret"))

    def test_existing_signature_field_is_ignored(self) -> None:
        params = {"a": "1", "b": "2"}
        with_sig = dict(params, api_sig="deadbeef")
        self.assertEqual(signature_base(with_sig, "s"), "a1b2s")
        self.assertEqual(sign(with_sig, "s"), sign(params, "s"))

    def test_ordering_is_codepoint_not_case_insensitive(self) -> None:
        self.assertEqual(signature_base({"b": "2", "B": "1", "a": "3"}, ""), "B1a3b2")

    def test_non_ascii_values_are_hashed_as_utf8(self) -> None:
        expected = hashlib.md5("artistBjörksecret".encode("utf-8")).hexdigest()
        self.assertEqual(sign({"artist": "Björk"}, "secret"), expected)


if __name__ == "__main__":
    unittest.main()
