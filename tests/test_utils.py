from datetime import datetime, timedelta, timezone

from tradematch.utils import current_timestamp, to_lower, to_upper


def test_timestamp_format():
    stamp = current_timestamp()
    assert len(stamp) == 27
    assert stamp[4] == "-"
    assert stamp[7] == "-"
    assert stamp[10] == "T"
    assert stamp[13] == ":"
    assert stamp[16] == ":"
    assert stamp[19] == "."
    assert stamp[-1] == "Z"
    assert stamp[20:26].isdigit()
    parsed = datetime.strptime(stamp, "%Y-%m-%dT%H:%M:%S.%fZ")
    assert parsed.strftime("%Y-%m-%dT%H:%M:%S.%fZ") == stamp


def test_timestamp_is_current_utc():
    stamp = current_timestamp()
    parsed = datetime.strptime(stamp, "%Y-%m-%dT%H:%M:%S.%fZ").replace(
        tzinfo=timezone.utc
    )
    assert abs(datetime.now(timezone.utc) - parsed) < timedelta(seconds=5)


def test_to_upper():
    assert to_upper("buy") == "BUY"
    assert to_upper("Limit") == "LIMIT"


def test_to_lower():
    assert to_lower("SELL") == "sell"


def test_case_round_trip_and_non_ascii_untouched():
    assert to_lower(to_upper("ioc")) == "ioc"
    assert to_upper("é-x1") == "é-X1"