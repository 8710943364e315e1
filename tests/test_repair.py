# FILE: tests/test_repair.py
"""
Tests for crosswalk/vibe/repair.py
"""

import pytest

from crosswalk.vibe.repair import needs_repair, promised_changes


class TestPromisedChanges:
    """Promise phrasing detection."""

    @pytest.mark.parametrize("text", [
        "Now I'll make the header blue.",
        "Let me update the MapView component.",
        "Let me now add a dark mode toggle.",
        "I will now add a button to the composer.",
        "I'll create a new settings page.",
        "I’ll modify the store.",
        "NOW I WILL do it",
    ])
    def test_promises(self, text):
        assert promised_changes(text)

    @pytest.mark.parametrize("text", [
        "",
        "I updated MapView.tsx to use a darker palette.",
        "The map is rendered in MapView.tsx.",
        "Let me know if you want anything else!",
        "I'll explain how the store works.",
    ])
    def test_not_promises(self, text):
        assert not promised_changes(text)

    def test_custom_pattern(self):
        assert promised_changes("working on it", pattern=r"working on it")
        assert not promised_changes("Let me update that", pattern=r"working on it")


class TestNeedsRepair:
    """Repair predicate."""

    def test_promise_without_write(self):
        assert needs_repair("Let me update the header.", wrote=False, exhausted=False)

    def test_not_after_a_write(self):
        assert not needs_repair("Let me update the header.", wrote=True, exhausted=False)

    def test_not_when_budget_exhausted(self):
        assert not needs_repair("Let me update the header.", wrote=False, exhausted=True)
