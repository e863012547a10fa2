"""Tests for keyboard input handling."""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest

from archon_tui.tui.app import TUIApp
from archon_tui.utils import Config


@pytest.fixture
def tui_app():
    """Create TUI app instance with mocked collaborators."""
    app = TUIApp(Config(), task_client=Mock(), clipboard=Mock(), realtime_client=Mock())
    yield app
    app.shutdown()


def _poll(tui_app, chars: list[str], ready: list[bool]):
    with patch("select.select") as mock_select, patch("sys.stdin") as mock_stdin:
        mock_select.side_effect = [
            ([mock_stdin], [], []) if available else ([], [], []) for available in ready
        ]
        mock_stdin.read.side_effect = chars
        return tui_app._poll_keyboard(timeout=0.1)


class TestArrowKeyHandling:
    """Test arrow key escape sequence handling."""

    @pytest.mark.parametrize(
        ("final", "expected"),
        [("A", "up"), ("B", "down"), ("C", "right"), ("D", "left")],
    )
    def test_poll_keyboard_handles_arrows(self, tui_app, final, expected):
        """Arrow escape sequences are read in full and decoded."""
        key = _poll(tui_app, ["\x1b", "[", final], [True, True, True])
        assert key == expected

    def test_poll_keyboard_handles_ss3_arrows(self, tui_app):
        """Application-mode arrows (ESC O A) decode the same way."""
        assert _poll(tui_app, ["\x1b", "O", "A"], [True, True, True]) == "up"


class TestExtendedKeys:
    """Test multi-character escape sequences."""

    @pytest.mark.parametrize(
        ("chars", "expected"),
        [
            (["[", "5", "~"], "pgup"),
            (["[", "6", "~"], "pgdown"),
            (["[", "H"], "home"),
            (["[", "F"], "end"),
            (["[", "1", "5", "~"], "f5"),
        ],
    )
    def test_sequences(self, tui_app, chars, expected):
        key = _poll(tui_app, ["\x1b", *chars], [True] * (len(chars) + 1))
        assert key == expected

    def test_unknown_sequence_returns_none(self, tui_app):
        assert _poll(tui_app, ["\x1b", "[", "Z"], [True, True, True]) is None


class TestPlainKeys:
    """Test single characters and control keys."""

    def test_poll_keyboard_regular_key(self, tui_app):
        """Test that regular keys are returned as-is."""
        assert _poll(tui_app, ["a"], [True]) == "a"

    def test_poll_keyboard_control_key(self, tui_app):
        assert _poll(tui_app, ["\x04"], [True]) == "ctrl+d"

    def test_poll_keyboard_ctrl_c_is_a_key(self, tui_app):
        """With ISIG cleared, ctrl+c arrives as a character."""
        assert _poll(tui_app, ["\x03"], [True]) == "ctrl+c"

    def test_poll_keyboard_enter(self, tui_app):
        assert _poll(tui_app, ["\r"], [True]) == "enter"

    def test_poll_keyboard_lone_escape(self, tui_app):
        """ESC with nothing following is the esc key."""
        assert _poll(tui_app, ["\x1b"], [True, False]) == "esc"


class TestTimeoutAndErrors:
    """Test timeout and error handling."""

    def test_poll_keyboard_timeout(self, tui_app):
        """Test that timeout returns None when no input available."""
        assert _poll(tui_app, [], [False]) is None

    def test_poll_keyboard_io_error(self, tui_app):
        """Test that IOError is handled gracefully."""
        with patch("select.select", side_effect=OSError("bad fd")):
            assert tui_app._poll_keyboard(timeout=0.1) is None

    def test_poll_keyboard_value_error(self, tui_app):
        with patch("select.select", side_effect=ValueError("closed file")):
            assert tui_app._poll_keyboard(timeout=0.1) is None
