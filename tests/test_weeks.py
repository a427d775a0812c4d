from datetime import date

from wagebook.weeks import is_week_start, recent_weeks, week_bounds, week_label


def test_week_bounds_run_sunday_to_saturday():
    # 2024-03-06 is a Wednesday
    start, end = week_bounds(date(2024, 3, 6))

    assert start == date(2024, 3, 3)
    assert end == date(2024, 3, 9)
    assert is_week_start(start)


def test_week_bounds_for_a_sunday_anchor_is_that_sunday():
    assert week_bounds(date(2024, 3, 3))[0] == date(2024, 3, 3)
    assert week_bounds(date(2024, 3, 9))[0] == date(2024, 3, 3)


def test_week_label_counts_weeks_in_month():
    assert week_label(date(2024, 3, 3)) == "Week 1 Mar 2024"
    assert week_label(date(2024, 3, 10)) == "Week 2 Mar 2024"
    assert week_label(date(2024, 3, 31)) == "Week 5 Mar 2024"


def test_recent_weeks_newest_first():
    options = recent_weeks(3, today=date(2024, 3, 6))

    assert [option.start for option in options] == [date(2024, 3, 3), date(2024, 2, 25), date(2024, 2, 18)]
    assert options[0].range_label == "3 Mar 2024 - 9 Mar 2024"
