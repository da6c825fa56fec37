"""Tests for io.schemas helpers."""

from shift_core.io.schemas import fmt_bool, fmt_time, to_bool_strict


class TestTypeCoercion:
    def test_truthy_tokens(self):
        for token in ("true", "TRUE", "1", "yes", " Yes "):
            assert to_bool_strict(token) is True

    def test_falsy_tokens(self):
        for token in ("false", "0", "no", "", None):
            assert to_bool_strict(token) is False

    def test_unrecognised_token(self):
        assert to_bool_strict("maybe") is None
        assert to_bool_strict("y") is None

    def test_fmt_bool(self):
        assert fmt_bool(True) == "TRUE"
        assert fmt_bool(False) == "FALSE"

    def test_fmt_time(self):
        assert fmt_time("18:30:00") == "18:30"
        assert fmt_time("") == ""
        assert fmt_time(None) == ""
