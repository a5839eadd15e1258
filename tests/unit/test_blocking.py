"""Unit tests for the blocked-page judgment."""

from __future__ import annotations

import pytest

from pagelens.browser.blocking import judge_block


class TestJudgeBlock:
    @pytest.mark.parametrize("status", [401, 403, 429])
    def test_blocking_statuses(self, status):
        judgment = judge_block(status, "Welcome")
        assert judgment.blocked
        assert judgment.reason == f"HTTP {status}"

    @pytest.mark.parametrize(
        "title",
        [
            "Attention Required! | Cloudflare",
            "ACCESS DENIED",
            "403 Forbidden",
            "Please complete the CAPTCHA",
        ],
    )
    def test_interstitial_titles(self, title):
        assert judge_block(200, title).blocked

    def test_status_checked_before_title(self):
        assert judge_block(403, "Access Denied").reason == "HTTP 403"

    def test_title_reason_names_marker(self):
        assert judge_block(200, "Attention Required!").reason == "title contains 'attention required'"

    @pytest.mark.parametrize("status", [200, 301, 404, 500, None])
    def test_ordinary_pages(self, status):
        judgment = judge_block(status, "Example Domain")
        assert not judgment.blocked
        assert judgment.reason == ""

    def test_missing_title(self):
        assert not judge_block(None, None).blocked
