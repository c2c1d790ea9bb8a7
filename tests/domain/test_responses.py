"""Tests for backend reply normalisation."""

import pytest

from redlatch.domain.responses import to_bool


class TestToBool:
    @pytest.mark.parametrize("reply", ["OK", b"OK", True, 1, 3])
    def test_success_replies(self, reply):
        assert to_bool(reply) is True

    @pytest.mark.parametrize("reply", ["QUEUED", b"ERR", "", None, 0, False])
    def test_failure_replies(self, reply):
        assert to_bool(reply) is False
