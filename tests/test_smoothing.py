import pytest

from headland_turns.geometry import path_length
from headland_turns.models import TurnBoundaryCheck, TurnPath, TurnStyle
from headland_turns.smoothing import catmull_rom, catmull_rom_path, smooth_turn_path


def make_turn(waypoints):
    return TurnPath(
        TurnStyle.OMEGA,
        waypoints[0],
        waypoints[-1],
        waypoints=waypoints,
        total_length=path_length(waypoints),
    )


zigzag = [(0, 0), (2, 1), (4, 0), (6, 1), (8, 0)]


class TestCatmullRom:
    def test_passes_through_control_points(self):
        assert catmull_rom((0, 0), (1, 1), (2, 0), (3, 1), 0.0) == pytest.approx((1, 1))
        assert catmull_rom((0, 0), (1, 1), (2, 0), (3, 1), 1.0) == pytest.approx((2, 0))

    def test_path_keeps_end_points(self):
        path = catmull_rom_path(zigzag, 3)
        assert len(path) == (len(zigzag) - 1) * 3 + 1
        assert path[0] == pytest.approx(zigzag[0])
        assert path[-1] == pytest.approx(zigzag[-1])


class TestSmoothTurnPath:
    def test_zero_factor_is_a_no_op(self):
        turn_path = make_turn(zigzag)
        assert smooth_turn_path(turn_path, 0.0) is turn_path

    def test_short_paths_are_unchanged(self):
        turn_path = make_turn(zigzag[:3])
        assert smooth_turn_path(turn_path, 1.0) is turn_path

    def test_full_smoothing(self):
        turn_path = make_turn(zigzag)
        smoothed = smooth_turn_path(turn_path, 1.0)

        assert len(smoothed.waypoints) == (len(zigzag) - 1) * 5 + 1
        assert len(smoothed.headings) == len(smoothed.waypoints)
        assert smoothed.total_length == pytest.approx(path_length(smoothed.waypoints))
        assert smoothed.waypoints[0] == pytest.approx(zigzag[0])
        assert smoothed.waypoints[-1] == pytest.approx(zigzag[-1])

    def test_original_untouched(self):
        turn_path = make_turn(zigzag)
        smooth_turn_path(turn_path, 0.5)
        assert turn_path.waypoints == zigzag
        assert turn_path.headings is None

    def test_boundary_check_not_carried_over(self):
        turn_path = make_turn(zigzag)
        turn_path.boundary_check = TurnBoundaryCheck.valid(3.0)
        smoothed = smooth_turn_path(turn_path, 1.0)
        assert smoothed.boundary_check is None
        assert turn_path.boundary_check.is_valid

    def test_low_factor_still_gives_one_segment_per_span(self):
        smoothed = smooth_turn_path(make_turn(zigzag), 0.05)
        assert len(smoothed.waypoints) == len(zigzag)
