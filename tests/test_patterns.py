from math import dist, pi

import pytest

from conftest import (
    BrokenDubinsProvider,
    entry_heading,
    entry_point,
    exit_heading,
    exit_point,
)
from headland_turns.dubins_paths import DubinsPathProvider, dubins_path_types
from headland_turns.errors import AlgorithmError
from headland_turns.geometry import offset_point
from headland_turns.models import TurnParameters, TurnStyle
from headland_turns.patterns import (
    all_turn_styles,
    generate_all_turn_options,
    generate_turn,
    remove_close_waypoints,
    sample_segment,
    semicircle_waypoints,
    turn_generators,
)


def assert_spacing(turn_path, spacing):
    # the final waypoint is always kept, so only pairs before it are bound by the spacing
    waypoints = turn_path.waypoints
    for i in range(1, len(waypoints) - 1):
        assert dist(waypoints[i - 1], waypoints[i]) >= spacing - 1e-6


def generate(style, parameters, dubins_provider=None):
    return generate_turn(
        entry_point,
        entry_heading,
        exit_point,
        exit_heading,
        parameters.with_style(style),
        dubins_provider,
    )


class TestWaypointFunctions:
    def test_remove_close_waypoints_keeps_ends(self):
        waypoints = [(0, 0), (0.1, 0), (0.2, 0), (1.0, 0), (1.1, 0)]
        assert remove_close_waypoints(waypoints, 0.5) == [(0, 0), (1.0, 0), (1.1, 0)]

    def test_remove_close_waypoints_short_list(self):
        assert remove_close_waypoints([(0, 0), (0.1, 0)], 0.5) == [(0, 0), (0.1, 0)]

    def test_sample_segment_ends_on_segment_end(self):
        points = sample_segment((0, 0), 0.0, 4.0, 0.5)
        assert len(points) == 8
        assert points[-1] == pytest.approx((4.0, 0.0))

    def test_sample_segment_shorter_than_spacing(self):
        points = sample_segment((0, 0), 0.0, 0.2, 0.5, include_start=True)
        assert len(points) == 2

    def test_semicircle_ends_opposite_entry(self):
        waypoints = semicircle_waypoints((0, 0), 0.0, 5.0, 0.5)
        assert waypoints[0] == pytest.approx((0.0, 0.0))
        assert waypoints[-1] == pytest.approx((0.0, 10.0))
        for waypoint in waypoints:
            assert dist(waypoint, (0.0, 5.0)) == pytest.approx(5.0)


class TestGenerateTurn:
    def test_every_style_has_a_generator(self):
        assert set(turn_generators) == set(TurnStyle)

    def test_omega_turn_length_from_dubins(self, parameters):
        turn_path = generate(TurnStyle.OMEGA, parameters)
        assert turn_path.turn_style == TurnStyle.OMEGA
        assert turn_path.total_length == pytest.approx(5 * pi, abs=1e-3)
        assert turn_path.waypoints[0] == pytest.approx(entry_point)
        assert turn_path.waypoints[-1] == pytest.approx(exit_point)
        assert turn_path.dubins_path is not None
        assert not turn_path.requires_reverse

    def test_omega_falls_back_to_semicircle(self, parameters, no_path_provider):
        turn_path = generate(TurnStyle.OMEGA, parameters, no_path_provider)
        assert no_path_provider.calls == 1
        assert turn_path.total_length == pytest.approx(5 * pi)
        assert turn_path.dubins_path is None
        assert turn_path.waypoints[-1] == pytest.approx(exit_point)

    def test_k_turn_length_is_closed_form(self, parameters):
        turn_path = generate(TurnStyle.K, parameters)
        assert turn_path.total_length == 11.0
        assert turn_path.requires_reverse

    def test_t_turn_length(self, parameters):
        turn_path = generate(TurnStyle.T, parameters)
        assert turn_path.total_length == pytest.approx(3.0 + 5.0 + 8.0)
        assert turn_path.requires_reverse

    def test_y_turn_length(self, parameters):
        turn_path = generate(TurnStyle.Y, parameters)
        assert turn_path.total_length == pytest.approx(7.5 + 2.5 + 7.5)

    def test_wide_turn_uses_scaled_radius(self, parameters, no_path_provider):
        turn_path = generate(TurnStyle.WIDE, parameters, no_path_provider)
        assert turn_path.total_length == pytest.approx(7.5 * pi)

    @pytest.mark.parametrize("style", all_turn_styles)
    def test_every_style_is_usable(self, parameters, style):
        turn_path = generate(style, parameters)
        assert len(turn_path.waypoints) >= 2
        assert turn_path.total_length > 0
        assert turn_path.computation_time >= 0
        assert_spacing(turn_path, parameters.waypoint_spacing)

    @pytest.mark.parametrize("style", [TurnStyle.K, TurnStyle.T, TurnStyle.Y])
    def test_spacing_coarser_than_segments(self, style):
        # every segment of these turns is shorter than or equal to the spacing
        parameters = TurnParameters(turning_radius=5.0, waypoint_spacing=5.0, smoothing_factor=0.0)
        turn_path = generate(style, parameters)
        assert len(turn_path.waypoints) >= 2
        assert_spacing(turn_path, parameters.waypoint_spacing)

    def test_k_turn_keeps_cusps(self, parameters):
        turn_path = generate(TurnStyle.K, parameters)
        first_cusp = offset_point(entry_point, entry_heading + pi / 4, 4.0)
        second_cusp = offset_point(first_cusp, entry_heading - pi / 4, 3.0)
        assert any(dist(w, first_cusp) < 1e-6 for w in turn_path.waypoints)
        assert any(dist(w, second_cusp) < 1e-6 for w in turn_path.waypoints)

    def test_spacing_with_fallback_arc(self, parameters, no_path_provider):
        turn_path = generate(TurnStyle.OMEGA, parameters, no_path_provider)
        assert_spacing(turn_path, parameters.waypoint_spacing)

    def test_broken_provider_propagates_from_single_turn(self, parameters):
        with pytest.raises(RuntimeError):
            generate(TurnStyle.OMEGA, parameters, BrokenDubinsProvider())

    def test_too_few_waypoints_is_an_algorithm_error(self, parameters, monkeypatch):
        k_turn = turn_generators[TurnStyle.K]
        monkeypatch.setitem(
            turn_generators,
            TurnStyle.K,
            lambda *args: k_turn(*args).copy(waypoints=[(0, 0)]),
        )
        with pytest.raises(AlgorithmError):
            generate(TurnStyle.K, parameters)


class TestGenerateAllTurnOptions:
    def test_sorted_by_length(self, parameters):
        options = generate_all_turn_options(
            entry_point, entry_heading, exit_point, exit_heading, parameters
        )
        assert len(options) == len(all_turn_styles)
        lengths = [option.total_length for option in options]
        assert lengths == sorted(lengths)

    def test_allowed_styles(self, parameters):
        options = generate_all_turn_options(
            entry_point,
            entry_heading,
            exit_point,
            exit_heading,
            parameters,
            allowed_styles=[TurnStyle.T, TurnStyle.OMEGA],
        )
        assert {option.turn_style for option in options} == {TurnStyle.T, TurnStyle.OMEGA}

    def test_failing_style_does_not_block_others(self, parameters):
        options = generate_all_turn_options(
            entry_point,
            entry_heading,
            exit_point,
            exit_heading,
            parameters,
            dubins_provider=BrokenDubinsProvider(),
        )
        # omega and wide need dubins, the three point turns don't
        assert {option.turn_style for option in options} == {TurnStyle.K, TurnStyle.T, TurnStyle.Y}

    def test_caller_parameters_unchanged(self, parameters):
        generate_all_turn_options(entry_point, entry_heading, exit_point, exit_heading, parameters)
        assert parameters.turn_style == TurnStyle.OMEGA


class TestDubinsPathProvider:
    def test_invalid_radius_gives_no_path(self):
        provider = DubinsPathProvider()
        assert provider.generate_path(0, 0, 0, 0, 10, pi, 0.0, 0.5) is None
        assert provider.generate_all_paths(0, 0, 0, 0, 10, pi, 5.0, 0.0) == list()

    def test_path_metadata(self):
        path = DubinsPathProvider().generate_path(0, 0, 0, 0, 10, pi, 5.0, 0.5)
        assert path.path_type in dubins_path_types
        assert len(path.segment_lengths) == 3
        assert path.total_length == pytest.approx(5 * pi, abs=1e-3)
        assert len(path.headings) == len(path.waypoints)
        assert path.waypoints[-1] == pytest.approx((0.0, 10.0))

    def test_all_paths_sorted(self):
        paths = DubinsPathProvider().generate_all_paths(0, 0, 0, 20, 5, pi / 2, 5.0, 0.5)
        assert len(paths) > 1
        lengths = [path.total_length for path in paths]
        assert lengths == sorted(lengths)
        assert len({path.path_type for path in paths}) == len(paths)


def test_parameters_fixture_has_no_smoothing(parameters):
    assert parameters == TurnParameters(turning_radius=5.0, smoothing_factor=0.0)
