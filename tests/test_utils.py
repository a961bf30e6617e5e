"""Tests for shared helpers."""

from unittest.mock import patch

import pytest

from tabgroup.utils import getenv_bool, getenv_optional_int, read_jsonl, retry_with_backoff, write_jsonl


def test_read_jsonl_skips_malformed_lines(tmp_path):
    path = tmp_path / "pages.jsonl"
    path.write_text('{"id": 1}\n\nnot json\n{"id": 2}\n', encoding="utf-8")
    assert read_jsonl(str(path)) == [{"id": 1}, {"id": 2}]


def test_read_jsonl_directory_in_name_order(tmp_path):
    write_jsonl(str(tmp_path / "b.jsonl"), [{"id": 2}])
    write_jsonl(str(tmp_path / "a.jsonl"), [{"id": 1}])
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    assert read_jsonl(str(tmp_path)) == [{"id": 1}, {"id": 2}]


@pytest.mark.parametrize("raw, expected", [("1", True), ("yes", True), ("0", False), ("False", False), ("", False)])
def test_getenv_bool(monkeypatch, raw, expected):
    monkeypatch.setenv("SOME_FLAG", raw)
    assert getenv_bool("SOME_FLAG", not expected) is expected


def test_retry_gives_up_with_last_error():
    calls = []

    @retry_with_backoff(max_retries=2, initial_delay=0.0)
    def flaky():
        calls.append(1)
        raise ConnectionError(f"attempt {len(calls)}")

    with patch("tabgroup.utils.time.sleep"):
        with pytest.raises(ConnectionError, match="attempt 3"):
            flaky()
    assert len(calls) == 3


def test_retry_stops_on_error_rejected_by_should_retry():
    calls = []

    @retry_with_backoff(max_retries=3, initial_delay=0.0, should_retry=lambda e: not isinstance(e, ValueError))
    def rejected():
        calls.append(1)
        raise ValueError("bad request")

    with patch("tabgroup.utils.time.sleep") as sleep:
        with pytest.raises(ValueError, match="bad request"):
            rejected()
    assert len(calls) == 1
    sleep.assert_not_called()


@pytest.mark.parametrize("raw, expected", [(None, None), ("", None), ("4", 4), ("x", None)])
def test_getenv_optional_int(monkeypatch, raw, expected):
    if raw is None:
        monkeypatch.delenv("TABGROUP_TEST_INT", raising=False)
    else:
        monkeypatch.setenv("TABGROUP_TEST_INT", raw)
    assert getenv_optional_int("TABGROUP_TEST_INT") == expected
