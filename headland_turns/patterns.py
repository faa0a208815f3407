import logging
from math import floor, pi
from time import perf_counter

from headland_turns.dubins_paths import DubinsPathProvider
from headland_turns.errors import AlgorithmError
from headland_turns.geometry import offset_point, squared_dist, to_position
from headland_turns.models import TurnPath, TurnStyle

logger = logging.getLogger(__name__)

"""
Turn Pattern Config
"""


# K-turn segment lengths as factors of the turning radius: forward, reverse, forward
k_turn_forward_factor = 0.8
k_turn_reverse_factor = 0.6

# Y-turn segment lengths as factors of the turning radius: forward, reverse, forward
y_turn_forward_factor = 1.5
y_turn_reverse_factor = 0.5

# T-turn straight run before reversing, also added to the final forward run
t_turn_forward_m = 3.0

# K and Y turns start by angling away from the track by this much
angled_entry_offset_rad = pi / 4

# tolerance on spacing comparisons, so lengths that are exact multiples of the spacing aren't short a step from float error
spacing_tolerance = 1e-9

# every turn style, in the order they're evaluated when no subset is requested
all_turn_styles = (TurnStyle.OMEGA, TurnStyle.K, TurnStyle.WIDE, TurnStyle.T, TurnStyle.Y)


"""
Waypoint Functions
"""


# drop interior waypoints closer than the spacing to the last kept waypoint, always keeping the first and last
# clusters of near duplicate points break heading and curvature calculations downstream
def remove_close_waypoints(waypoints, spacing):
    if len(waypoints) < 3:
        return list(waypoints)

    min_dist_sq = spacing * spacing
    cleaned = [waypoints[0]]
    for i in range(1, len(waypoints) - 1):
        if squared_dist(cleaned[-1], waypoints[i]) >= min_dist_sq - spacing_tolerance:
            cleaned.append(waypoints[i])
    cleaned.append(waypoints[-1])
    return cleaned


# sample a straight segment in equal steps no shorter than the spacing, ending exactly at the segment end
def sample_segment(start, heading, length, spacing, include_start=False):
    count = max(1, floor(length / spacing + spacing_tolerance))
    step = length / count

    points = list()
    for i in range(0 if include_start else 1, count + 1):
        points.append(offset_point(start, heading, i * step))
    return points


# semicircle to the left of the entry heading, used when no dubins path can be found
def semicircle_waypoints(entry_point, entry_heading, radius, spacing):
    centre = offset_point(entry_point, entry_heading + pi / 2, radius)
    arc_length = pi * radius
    count = max(1, int(arc_length / spacing))

    # entry point sits 90° before the entry heading as seen from the centre
    start_angle = entry_heading - pi / 2

    waypoints = list()
    for i in range(count + 1):
        angle = start_angle + pi * i / count
        waypoints.append(offset_point(centre, angle, radius))
    return waypoints


"""
Turn Generators
-
Every generator is a pure function of its arguments, so candidates for different turns can be computed concurrently.
Headings are in radians, counter-clockwise from the easting axis.
"""


def generate_dubins_turn(
    turn_style,
    entry_point,
    entry_heading,
    exit_point,
    exit_heading,
    radius,
    spacing,
    dubins_provider,
):
    dubins_path = dubins_provider.generate_path(
        entry_point[0],
        entry_point[1],
        entry_heading,
        exit_point[0],
        exit_point[1],
        exit_heading,
        radius,
        spacing,
    )

    turn_path = TurnPath(
        turn_style,
        entry_point,
        exit_point,
        entry_heading=entry_heading,
        exit_heading=exit_heading,
        dubins_path=dubins_path,
    )

    if dubins_path is not None and len(dubins_path.waypoints) >= 2:
        turn_path.waypoints = remove_close_waypoints(dubins_path.waypoints, spacing)
        turn_path.total_length = dubins_path.total_length
    else:
        logger.warning(
            "No dubins path for %s turn from %s to %s, falling back to semicircle",
            turn_style.name,
            entry_point,
            exit_point,
        )
        turn_path.waypoints = remove_close_waypoints(
            semicircle_waypoints(entry_point, entry_heading, radius, spacing), spacing
        )
        turn_path.total_length = pi * radius

    return turn_path


def generate_omega_turn(
    entry_point, entry_heading, exit_point, exit_heading, parameters, dubins_provider
):
    return generate_dubins_turn(
        TurnStyle.OMEGA,
        entry_point,
        entry_heading,
        exit_point,
        exit_heading,
        parameters.turning_radius,
        parameters.waypoint_spacing,
        dubins_provider,
    )


# same as omega but with a scaled radius, for implements that need gentle turns and headlands with room for them
def generate_wide_turn(
    entry_point, entry_heading, exit_point, exit_heading, parameters, dubins_provider
):
    return generate_dubins_turn(
        TurnStyle.WIDE,
        entry_point,
        entry_heading,
        exit_point,
        exit_heading,
        parameters.turning_radius * parameters.wide_radius_multiplier,
        parameters.waypoint_spacing,
        dubins_provider,
    )


# build a three segment forward/reverse/forward path from (heading, length) pairs
# segments shorter than the spacing merge into the next one, so a cusp can be dropped when the spacing is coarse
def generate_three_point_turn(
    turn_style, entry_point, entry_heading, exit_point, exit_heading, segments, spacing
):
    waypoints = [entry_point]
    for heading, length in segments:
        waypoints = waypoints + sample_segment(waypoints[-1], heading, length, spacing)

    return TurnPath(
        turn_style,
        entry_point,
        exit_point,
        entry_heading=entry_heading,
        exit_heading=exit_heading,
        waypoints=remove_close_waypoints(waypoints, spacing),
        total_length=sum(length for _, length in segments),
        requires_reverse=True,
    )


# three point turn: angle forward, reverse back across, then forward onto the exit heading
def generate_k_turn(
    entry_point, entry_heading, exit_point, exit_heading, parameters, dubins_provider
):
    radius = parameters.turning_radius
    angle1 = entry_heading + angled_entry_offset_rad
    angle2 = angle1 - pi / 2
    segments = (
        (angle1, radius * k_turn_forward_factor),
        (angle2, radius * k_turn_reverse_factor),
        (exit_heading, radius * k_turn_forward_factor),
    )
    return generate_three_point_turn(
        TurnStyle.K,
        entry_point,
        entry_heading,
        exit_point,
        exit_heading,
        segments,
        parameters.waypoint_spacing,
    )


# short run straight on, reverse out square to the track, then forward onto the exit heading
# for headlands too narrow for an omega turn
def generate_t_turn(
    entry_point, entry_heading, exit_point, exit_heading, parameters, dubins_provider
):
    radius = parameters.turning_radius
    segments = (
        (entry_heading, t_turn_forward_m),
        (entry_heading + pi / 2, radius),
        (exit_heading, radius + t_turn_forward_m),
    )
    return generate_three_point_turn(
        TurnStyle.T,
        entry_point,
        entry_heading,
        exit_point,
        exit_heading,
        segments,
        parameters.waypoint_spacing,
    )


# like a K-turn with longer angled runs and a shorter reverse
def generate_y_turn(
    entry_point, entry_heading, exit_point, exit_heading, parameters, dubins_provider
):
    radius = parameters.turning_radius
    angle1 = entry_heading + angled_entry_offset_rad
    segments = (
        (angle1, radius * y_turn_forward_factor),
        (angle1 - pi / 2, radius * y_turn_reverse_factor),
        (exit_heading, radius * y_turn_forward_factor),
    )
    return generate_three_point_turn(
        TurnStyle.Y,
        entry_point,
        entry_heading,
        exit_point,
        exit_heading,
        segments,
        parameters.waypoint_spacing,
    )


turn_generators = {
    TurnStyle.OMEGA: generate_omega_turn,
    TurnStyle.K: generate_k_turn,
    TurnStyle.WIDE: generate_wide_turn,
    TurnStyle.T: generate_t_turn,
    TurnStyle.Y: generate_y_turn,
}


"""
Turn Generation
"""


# generate a turn of the style given in the parameters
def generate_turn(
    entry_point,
    entry_heading,
    exit_point,
    exit_heading,
    parameters,
    dubins_provider=None,
):
    if dubins_provider is None:
        dubins_provider = DubinsPathProvider()

    generator = turn_generators.get(parameters.turn_style)
    if generator is None:
        raise AlgorithmError(f"No generator for turn style {parameters.turn_style}.")

    start = perf_counter()
    turn_path = generator(
        to_position(entry_point),
        entry_heading,
        to_position(exit_point),
        exit_heading,
        parameters,
        dubins_provider,
    )
    turn_path.computation_time = perf_counter() - start

    if len(turn_path.waypoints) < 2:
        raise AlgorithmError(
            f"{parameters.turn_style.name} turn generated {len(turn_path.waypoints)} waypoints, at least 2 are required."
        )

    return turn_path


# generate every allowed style, shortest first
# a style that fails is logged and skipped so it can't block evaluation of the others
def generate_all_turn_options(
    entry_point,
    entry_heading,
    exit_point,
    exit_heading,
    parameters,
    allowed_styles=None,
    dubins_provider=None,
):
    if dubins_provider is None:
        dubins_provider = DubinsPathProvider()
    styles = allowed_styles if allowed_styles is not None else all_turn_styles

    turn_paths = list()
    for style in styles:
        try:
            turn_path = generate_turn(
                entry_point,
                entry_heading,
                exit_point,
                exit_heading,
                parameters.with_style(style),
                dubins_provider,
            )
        except Exception:
            logger.exception("Skipping %s turn option", style.name)
            continue
        turn_paths.append(turn_path)

    return sorted(turn_paths, key=lambda t: t.total_length)
