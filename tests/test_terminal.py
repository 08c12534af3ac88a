"""Tests for terminal capability probing."""

import io

import pytest

from pytree import terminal
from pytree.config import DEFAULT_WIDTH
from pytree.errors import TerminalCapabilityError
from pytree.models import SymbolSet


class TestChooseSymbolSet:
    """Tests for the default symbol set decision."""

    @pytest.mark.parametrize("codeset", ["UTF-8", "utf-8", "UTF8"])
    def test_utf8_locale(self, codeset):
        """Test UTF-8 locales get box-drawing characters."""
        assert terminal.choose_symbol_set(codeset, None, False) is SymbolSet.UTF8

    def test_vt100_when_terminal_has_acsc(self):
        """Test non-UTF-8 terminals with line drawing get VT100 glyphs."""
        assert terminal.choose_symbol_set("ANSI_X3.4-1968", "xterm", True) is SymbolSet.VT100

    def test_ascii_fallback(self):
        """Test everything else gets plain ASCII."""
        assert terminal.choose_symbol_set("ANSI_X3.4-1968", None, False) is SymbolSet.ASCII
        assert terminal.choose_symbol_set("ISO-8859-1", "dumb", False) is SymbolSet.ASCII


class TestDetectWidth:
    """Tests for output width probing."""

    def test_not_a_terminal(self):
        """Test a stream that is not a terminal gets the default width."""
        assert terminal.detect_width(io.StringIO()) == DEFAULT_WIDTH

    def test_terminal_size(self, monkeypatch):
        """Test the terminal's column count is used."""

        class FakeStream:
            def fileno(self):
                return 1

        monkeypatch.setattr(terminal.os, "get_terminal_size", lambda fd: terminal.os.terminal_size((80, 24)))

        assert terminal.detect_width(FakeStream()) == 80


class TestEmphasisSequences:
    """Tests for highlight sequence lookup."""

    def test_no_term(self, monkeypatch):
        """Test a missing TERM disables highlighting."""
        monkeypatch.delenv("TERM", raising=False)

        assert terminal.emphasis_sequences() is None

    def test_no_term_required(self, monkeypatch):
        """Test a missing TERM is fatal when highlighting was requested."""
        monkeypatch.delenv("TERM", raising=False)

        with pytest.raises(TerminalCapabilityError, match="TERM is not set"):
            terminal.emphasis_sequences(required=True)

    def test_unknown_terminal(self, monkeypatch):
        """Test a terminal without terminfo entry."""
        monkeypatch.setenv("TERM", "no-such-terminal")
        monkeypatch.setattr(terminal, "_setup_terminal", lambda term: False)

        assert terminal.emphasis_sequences() is None
        with pytest.raises(TerminalCapabilityError, match="terminal capabilities"):
            terminal.emphasis_sequences(required=True)

    def test_bold_sequences(self, monkeypatch):
        """Test bold and reset sequences are returned."""
        caps = {"bold": "\033[1m", "sgr0": "\033(B\033[m"}
        monkeypatch.setenv("TERM", "xterm")
        monkeypatch.setattr(terminal, "_setup_terminal", lambda term: True)
        monkeypatch.setattr(terminal, "_capability", caps.get)

        assert terminal.emphasis_sequences() == ("\033[1m", "\033(B\033[m")

    def test_terminal_without_bold(self, monkeypatch):
        """Test a terminal lacking bold gives no sequences."""
        monkeypatch.setenv("TERM", "dumb")
        monkeypatch.setattr(terminal, "_setup_terminal", lambda term: True)
        monkeypatch.setattr(terminal, "_capability", lambda name: None)

        assert terminal.emphasis_sequences(required=True) is None


class TestDetectSymbolSet:
    """Tests for probing the environment."""

    def test_utf8_locale(self, monkeypatch):
        """Test the locale codeset drives the choice."""
        monkeypatch.setattr(terminal.locale, "nl_langinfo", lambda item: "UTF-8")
        monkeypatch.delenv("TERM", raising=False)

        assert terminal.detect_symbol_set() is SymbolSet.UTF8

    def test_plain_terminal(self, monkeypatch):
        """Test ASCII is used without UTF-8 and without TERM."""
        monkeypatch.setattr(terminal.locale, "nl_langinfo", lambda item: "ANSI_X3.4-1968")
        monkeypatch.delenv("TERM", raising=False)

        assert terminal.detect_symbol_set() is SymbolSet.ASCII
