import logging
from time import perf_counter

from headland_turns.boundary_guided import BoundaryGuidedPathProvider, default_max_iterations
from headland_turns.dubins_paths import DubinsPathProvider
from headland_turns.errors import ConfigurationError
from headland_turns.geometry import (
    distances_to_boundaries,
    make_boundary_lines,
    normalise_boundaries,
    to_position,
)
from headland_turns.models import TurnBoundaryCheck, TurnPath, TurnStyle
from headland_turns.patterns import generate_all_turn_options, remove_close_waypoints

logger = logging.getLogger(__name__)


"""
Boundary Checking
"""


# check every waypoint of a turn against the nearest edge of the field boundary and any obstacle polygons
def check_turn_boundary(turn_path, boundaries, min_distance):
    boundaries = normalise_boundaries(boundaries)
    if len(boundaries) == 0:
        raise ConfigurationError("At least one boundary polygon is required.")

    distances = distances_to_boundaries(
        turn_path.waypoints, make_boundary_lines(boundaries)
    )

    closest_distance = float("inf")
    violation_points = list()
    first_violation_index = None
    for i, dist in enumerate(distances):
        closest_distance = min(closest_distance, dist)
        if dist < min_distance:
            violation_points.append(turn_path.waypoints[i])
            if first_violation_index is None:
                first_violation_index = i

    if len(violation_points) > 0:
        return TurnBoundaryCheck.invalid(
            f"Turn path violates boundary: {len(violation_points)} waypoints within {min_distance}m",
            first_violation_index,
            violation_points,
            min_boundary_distance=closest_distance,
        )

    return TurnBoundaryCheck.valid(closest_distance)


"""
Boundary Safe Turns
"""


# find a turn that keeps the configured clearance from the boundaries, or None if no style can
# omega and wide turns first try a boundary guided dubins search, then every style is tried shortest first
def generate_boundary_safe_turn(
    entry_point,
    entry_heading,
    exit_point,
    exit_heading,
    boundaries,
    parameters,
    dubins_provider=None,
    guided_provider=None,
    max_iterations=default_max_iterations,
):
    if dubins_provider is None:
        dubins_provider = DubinsPathProvider()
    if guided_provider is None:
        guided_provider = BoundaryGuidedPathProvider(dubins_provider)

    start = perf_counter()
    entry_point = to_position(entry_point)
    exit_point = to_position(exit_point)
    boundaries = normalise_boundaries(boundaries)
    if len(boundaries) == 0:
        raise ConfigurationError("At least one boundary polygon is required.")

    if parameters.turn_style in (TurnStyle.OMEGA, TurnStyle.WIDE):
        guided_result = guided_provider.generate_boundary_aware_path(
            (entry_point[0], entry_point[1], entry_heading),
            (exit_point[0], exit_point[1], exit_heading),
            parameters.effective_radius,
            boundaries,
            parameters.boundary_min_distance,
            parameters.waypoint_spacing,
            max_iterations=max_iterations,
        )

        if guided_result.succeeded and guided_result.result_path is not None:
            turn_path = TurnPath(
                parameters.turn_style,
                entry_point,
                exit_point,
                entry_heading=entry_heading,
                exit_heading=exit_heading,
                waypoints=remove_close_waypoints(
                    guided_result.result_path.waypoints, parameters.waypoint_spacing
                ),
                total_length=guided_result.result_path.total_length,
                dubins_path=guided_result.result_path,
            )
            boundary_check = check_turn_boundary(
                turn_path, boundaries, parameters.boundary_min_distance
            )
            if boundary_check.is_valid:
                turn_path.boundary_check = boundary_check
                turn_path.computation_time = perf_counter() - start
                logger.debug(
                    "Boundary guided %s turn found with %s strategy after %s iterations",
                    parameters.turn_style.name,
                    guided_result.strategy.name,
                    guided_result.iteration_count,
                )
                return turn_path

    all_options = generate_all_turn_options(
        entry_point,
        entry_heading,
        exit_point,
        exit_heading,
        parameters,
        dubins_provider=dubins_provider,
    )
    for turn_path in all_options:
        boundary_check = check_turn_boundary(
            turn_path, boundaries, parameters.boundary_min_distance
        )
        if boundary_check.is_valid:
            turn_path.boundary_check = boundary_check
            turn_path.computation_time = perf_counter() - start
            return turn_path

    logger.warning(
        "No turn style keeps %sm clear of the boundary between %s and %s",
        parameters.boundary_min_distance,
        entry_point,
        exit_point,
    )
    return None
