"""Tests for gitswitch.utils.formatting and gitswitch.clipboard."""

import time
from unittest.mock import patch

import pyperclip
import pytest

from gitswitch.clipboard import copy_to_clipboard
from gitswitch.errors import ClipboardError
from gitswitch.utils.formatting import key_name_for, relative_time, slugify


def test_slugify() -> None:
    assert slugify("Work Account") == "work_account"
    assert slugify("  Side \t Project  ") == "side_project"
    assert slugify("Work Account", "-") == "work-account"
    assert slugify("personal") == "personal"


def test_key_name_for() -> None:
    assert key_name_for("Work") == "id_rsa_work"
    assert key_name_for("Work Account") == "id_rsa_work_account"
    assert key_name_for("work   account") == key_name_for("Work Account")


def test_relative_time() -> None:
    now_ms = int(time.time() * 1000)
    assert relative_time(now_ms - 3 * 24 * 3600 * 1000) == "3 days ago"
    assert relative_time(now_ms - 2 * 3600 * 1000) == "2 hours ago"
    assert relative_time(None) == ""
    assert relative_time(0) == ""


def test_copy_to_clipboard() -> None:
    with patch("gitswitch.clipboard.pyperclip.copy") as mock_copy:
        copy_to_clipboard("ssh-rsa AAAA a@b.com")
    mock_copy.assert_called_once_with("ssh-rsa AAAA a@b.com")


def test_copy_to_clipboard_unavailable() -> None:
    with patch(
        "gitswitch.clipboard.pyperclip.copy",
        side_effect=pyperclip.PyperclipException("no copy/paste mechanism"),
    ):
        with pytest.raises(ClipboardError, match="copy the key manually"):
            copy_to_clipboard("ssh-rsa AAAA")
