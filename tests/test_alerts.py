import pytest

from domain_monitor.alerts import Alert


@pytest.mark.parametrize(
    ("alert", "label"),
    [
        (Alert.TWO_MONTHS, "2 month alert"),
        (Alert.ONE_MONTH, "1 month alert"),
        (Alert.TWO_WEEKS, "2 week alert"),
        (Alert.ONE_WEEK, "1 week alert"),
        (Alert.THREE_DAYS, "3 day alert"),
        (Alert.DAILY, "daily alert"),
    ],
)
def test_str_gives_label(alert, label):
    assert str(alert) == label


def test_alerts_are_ordered_from_furthest_to_nearest():
    assert list(Alert) == sorted(Alert)
    assert Alert(0) is Alert.TWO_MONTHS
    assert Alert(len(Alert) - 1) is Alert.DAILY


def test_format_uses_label():
    assert f"{Alert(4)}" == "3 day alert"


def test_unknown_value_rejected():
    with pytest.raises(ValueError):
        Alert(len(Alert))