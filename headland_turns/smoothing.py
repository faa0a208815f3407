from headland_turns.geometry import Position2D, get_angle, path_length

"""
Smoothing Config
"""


# interpolated segments per original waypoint span at a smoothing factor of 1
max_segments_per_span = 5

# catmull-rom needs a point either side of every span
min_smoothing_waypoints = 4


"""
Catmull-Rom Functions
"""


# uniform catmull-rom point between p1 and p2 at t in [0, 1]
def catmull_rom(p0, p1, p2, p3, t):
    t2 = t * t
    t3 = t2 * t
    return Position2D(
        0.5
        * (
            2 * p1[0]
            + (-p0[0] + p2[0]) * t
            + (2 * p0[0] - 5 * p1[0] + 4 * p2[0] - p3[0]) * t2
            + (-p0[0] + 3 * p1[0] - 3 * p2[0] + p3[0]) * t3
        ),
        0.5
        * (
            2 * p1[1]
            + (-p0[1] + p2[1]) * t
            + (2 * p0[1] - 5 * p1[1] + 4 * p2[1] - p3[1]) * t2
            + (-p0[1] + 3 * p1[1] - 3 * p2[1] + p3[1]) * t3
        ),
    )


# interpolate through every control point, duplicating the end points so the curve starts and finishes on them
def catmull_rom_path(control_points, segments_per_span):
    if len(control_points) < 2:
        return list(control_points)

    padded = [control_points[0]] + list(control_points) + [control_points[-1]]
    path = list()
    for i in range(1, len(padded) - 2):
        for j in range(segments_per_span):
            path.append(
                catmull_rom(
                    padded[i - 1],
                    padded[i],
                    padded[i + 1],
                    padded[i + 2],
                    j / segments_per_span,
                )
            )
    path.append(Position2D(*control_points[-1]))
    return path


# heading at every point, one sided at the ends and across both neighbours elsewhere
def waypoint_headings(waypoints):
    count = len(waypoints)
    if count < 2:
        return [0.0] * count

    headings = [get_angle(waypoints[0], waypoints[1])]
    for i in range(1, count - 1):
        headings.append(get_angle(waypoints[i - 1], waypoints[i + 1]))
    headings.append(get_angle(waypoints[-2], waypoints[-1]))
    return headings


"""
Turn Smoothing
"""


# smoothed copy of a turn, the given turn is left untouched
# any boundary check was made against the unsmoothed waypoints, so the copy has none
def smooth_turn_path(turn_path, smoothing_factor):
    if smoothing_factor <= 0 or len(turn_path.waypoints) < min_smoothing_waypoints:
        return turn_path

    segments_per_span = max(1, round(min(smoothing_factor, 1.0) * max_segments_per_span))
    waypoints = catmull_rom_path(turn_path.waypoints, segments_per_span)

    return turn_path.copy(
        waypoints=waypoints,
        headings=waypoint_headings(waypoints),
        total_length=path_length(waypoints),
        boundary_check=None,
    )
