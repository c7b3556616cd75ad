"""Tests for screenshot marker helpers."""

from actionflow.extraction.screenshots import (
    find_screenshot_refs,
    number_screenshot_markers,
    strip_screenshot_markers,
)


class TestNumberScreenshotMarkers:
    def test_markers_numbered_in_order(self):
        text, count = number_screenshot_markers("See [SCREENSHOT] and [SCREENSHOT] here")
        assert text == "See [SCREENSHOT-1] and [SCREENSHOT-2] here"
        assert count == 2

    def test_text_without_markers_unchanged(self):
        assert number_screenshot_markers("plain text") == ("plain text", 0)


class TestScreenshotRefs:
    def test_refs_are_unique_and_ordered(self):
        text = "Fix login [SCREENSHOT-2] see [SCREENSHOT-1] and [SCREENSHOT-2]"
        assert find_screenshot_refs(text) == [2, 1]

    def test_no_refs(self):
        assert find_screenshot_refs("nothing to see") == []

    def test_strip_markers(self):
        assert strip_screenshot_markers("Fix the [SCREENSHOT-3] login page") == "Fix the login page"
