from datetime import date, timedelta

from app.services.streak import attendance_grid, current_streak, longest_streak

D = date(2024, 5, 20)


def days_before(*offsets):
    return [D - timedelta(days=offset) for offset in offsets]


class TestCurrentStreak:
    """Racha actual anclada en hoy o ayer."""

    def test_three_consecutive_days_ending_today(self):
        assert current_streak(days_before(0, 1, 2), D) == 3

    def test_streak_ending_yesterday_still_counts(self):
        assert current_streak(days_before(1), D) == 1

    def test_gap_of_one_day_breaks_streak(self):
        assert current_streak(days_before(2), D) == 0

    def test_empty_history(self):
        assert current_streak([], D) == 0

    def test_order_and_duplicates_do_not_matter(self):
        dates = days_before(2, 0, 1, 1, 0)
        assert current_streak(dates, D) == 3

    def test_older_days_after_gap_are_ignored(self):
        assert current_streak(days_before(0, 1, 3, 4, 5), D) == 2

    def test_pure_same_input_same_output(self):
        dates = days_before(0, 1, 2)
        assert current_streak(dates, D) == current_streak(list(dates), D)

    def test_streak_across_month_boundary(self):
        today = date(2024, 3, 2)
        dates = [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1), date(2024, 3, 2)]
        assert current_streak(dates, today) == 4


class TestLongestStreak:

    def test_longest_run_in_history(self):
        dates = days_before(0, 1, 5, 6, 7, 8, 20)
        assert longest_streak(dates) == 4

    def test_single_day(self):
        assert longest_streak([D]) == 1

    def test_empty(self):
        assert longest_streak([]) == 0


class TestAttendanceGrid:

    def test_grid_covers_days_ending_today(self):
        grid = attendance_grid(days_before(0, 2), D, days=5)
        assert [day for day, _ in grid] == days_before(4, 3, 2, 1, 0)
        assert [present for _, present in grid] == [False, False, True, False, True]

    def test_default_length(self):
        grid = attendance_grid([], D)
        assert len(grid) == 30
        assert grid[-1] == (D, False)
