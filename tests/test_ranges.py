import pytest

from moviestream.streaming.ranges import (
    FullContent,
    PartialContent,
    RangeRequest,
    ResolvedWindow,
    Unsatisfiable,
    parse_range_header,
    plan_response,
    resolve_range,
)


def test_parse_range_basic():
    assert parse_range_header("bytes=0-99") == RangeRequest("bytes", 0, 99)


def test_parse_range_open_end():
    assert parse_range_header("bytes=100-") == RangeRequest("bytes", 100, None)


def test_parse_range_suffix():
    request = parse_range_header("bytes=-200")
    assert request == RangeRequest("bytes", None, 200)
    assert request.is_suffix


def test_parse_range_tolerates_whitespace_and_case():
    assert parse_range_header("  Bytes = 5 - 10 ") == RangeRequest("bytes", 5, 10)


def test_parse_range_takes_first_of_multiple():
    assert parse_range_header("bytes=0-1, 5-6") == RangeRequest("bytes", 0, 1)


@pytest.mark.parametrize("raw", [None, "", "nope", "bytes=", "bytes=-", "bytes=abc", "bytes=5", "bytes=1-2-3", "bytes=-5-10"])
def test_parse_range_unparseable_is_none(raw):
    assert parse_range_header(raw) is None


def test_resolve_without_range_is_full_content():
    assert resolve_range(None, 1000) == FullContent(1000)


def test_resolve_other_unit_is_full_content():
    assert plan_response("items=0-5", 1000) == FullContent(1000)


def test_malformed_range_policy_serves_full_file():
    # Нераспознанный Range игнорируется: отдаем весь файл, а не 416
    assert plan_response("bytes=oops", 1000) == FullContent(1000)


def test_resolve_start_end():
    outcome = plan_response("bytes=0-99", 1000)
    assert outcome == PartialContent(ResolvedWindow(0, 99, 1000))
    assert outcome.window.length == 100
    assert outcome.window.content_range == "bytes 0-99/1000"


def test_resolve_open_ended():
    outcome = plan_response("bytes=100-", 1000)
    assert outcome.window == ResolvedWindow(100, 999, 1000)
    assert outcome.window.length == 900


def test_resolve_clamps_end_to_size():
    assert plan_response("bytes=900-5000", 1000).window == ResolvedWindow(900, 999, 1000)


def test_resolve_suffix():
    assert plan_response("bytes=-200", 1000).window == ResolvedWindow(800, 999, 1000)


def test_resolve_suffix_longer_than_file_covers_whole_file():
    assert plan_response("bytes=-5000", 1000).window == ResolvedWindow(0, 999, 1000)


@pytest.mark.parametrize("raw", ["bytes=1000-", "bytes=1000-1200", "bytes=5000-6000"])
def test_resolve_start_beyond_size_is_unsatisfiable(raw):
    outcome = plan_response(raw, 1000)
    assert outcome == Unsatisfiable(1000)
    assert outcome.content_range == "bytes */1000"


def test_resolve_start_after_end_is_unsatisfiable():
    assert plan_response("bytes=500-100", 1000) == Unsatisfiable(1000)


def test_resolve_zero_suffix_is_unsatisfiable():
    assert plan_response("bytes=-0", 1000) == Unsatisfiable(1000)


def test_empty_file():
    assert plan_response(None, 0) == FullContent(0)
    assert plan_response("bytes=0-", 0) == Unsatisfiable(0)
    assert plan_response("bytes=-10", 0) == Unsatisfiable(0)


def test_window_invariant_is_enforced():
    with pytest.raises(ValueError):
        ResolvedWindow(10, 5, 100)
    with pytest.raises(ValueError):
        ResolvedWindow(0, 100, 100)
