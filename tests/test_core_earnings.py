from types import SimpleNamespace

import pytest

from carwash.core.earnings import estimated_duration, line_split, split_commission, validate_commission


def line(price, washer_pct=40.0, company_pct=60.0, duration=30, service=True):
    svc = SimpleNamespace(
        washer_commission_percentage=washer_pct,
        company_commission_percentage=company_pct,
    ) if service else None
    return SimpleNamespace(price=price, duration=duration, service=svc)


def test_line_split_uses_percentages():
    split = line_split(5000, 40, 60)
    assert split.washer_income == 2000
    assert split.company_income == 3000
    assert split.total == 5000


def test_line_split_without_price_earns_nothing():
    split = line_split(None, 40, 60)
    assert split.washer_income == 0.0
    assert split.company_income == 0.0


def test_split_commission_sums_lines_and_skips_deleted_services():
    split = split_commission([
        line(5000),
        line(2000, washer_pct=50, company_pct=50),
        line(9999, service=False),
    ])
    assert split.washer_income == 3000
    assert split.company_income == 4000


def test_split_commission_rounds_to_cents():
    split = split_commission([line(1000.01, washer_pct=33.3, company_pct=66.7)])
    assert split.washer_income == round(1000.01 * 33.3 / 100, 2)


def test_estimated_duration_falls_back_to_default():
    assert estimated_duration([line(1, duration=20), line(1, duration=25)]) == 45
    assert estimated_duration([line(1, duration=0)], default=30) == 30
    assert estimated_duration([], default=30) == 30


@pytest.mark.parametrize("washer_pct,company_pct,ok", [
    (40, 60, True),
    (0, 100, True),
    (50, 60, False),
    (-10, 110, False),
    (101, -1, False),
])
def test_validate_commission(washer_pct, company_pct, ok):
    assert (validate_commission(washer_pct, company_pct) is None) is ok


def test_validate_commission_message_for_bad_sum():
    assert validate_commission(30, 30) == "Washer and company commission percentages must equal 100%"
