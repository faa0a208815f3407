import logging

import dubins

from headland_turns.geometry import Position2D, normalise_angle, point_approx_equals
from headland_turns.models import DubinsPath

logger = logging.getLogger(__name__)

"""
Dubins Config
"""


# word names in the order of the dubins library path type constants
dubins_path_types = ("LSL", "LSR", "RSL", "RSR", "RLR", "LRL")


"""
Dubins Functions
"""


def path_type_name(path_type):
    if 0 <= path_type < len(dubins_path_types):
        return dubins_path_types[path_type]
    return str(path_type)


# sample a dubins library path at the given spacing into a DubinsPath
def sample_dubins_path(path, end_point, end_heading, spacing):
    configurations, _ = path.sample_many(spacing)

    waypoints = list()
    headings = list()
    for configuration in configurations:
        waypoints.append(Position2D(configuration[0], configuration[1]))
        headings.append(normalise_angle(configuration[2]))

    # sampling doesn't include the destination pose, so append that
    if len(waypoints) == 0 or not point_approx_equals(waypoints[-1], end_point):
        waypoints.append(Position2D(*end_point))
        headings.append(normalise_angle(end_heading))

    return DubinsPath(
        path_type_name(path.path_type()),
        [path.segment_length(i) for i in range(3)],
        waypoints,
        headings,
    )


# produces minimal length constant-curvature paths between two oriented points
# any failure of the underlying library is reported as no path, callers decide how to recover
class DubinsPathProvider:
    def generate_path(
        self,
        start_easting,
        start_northing,
        start_heading,
        end_easting,
        end_northing,
        end_heading,
        radius,
        spacing,
    ):
        if radius <= 0 or spacing <= 0:
            logger.warning(
                "Cannot generate dubins path with radius %s and spacing %s",
                radius,
                spacing,
            )
            return None

        start = (start_easting, start_northing, start_heading)
        end = (end_easting, end_northing, end_heading)
        try:
            path = dubins.shortest_path(start, end, radius)
            if path is None:
                return None
            dubins_path = sample_dubins_path(
                path, (end_easting, end_northing), end_heading, spacing
            )
        except (RuntimeError, ValueError, ZeroDivisionError) as e:
            logger.warning("Dubins path generation failed from %s to %s: %s", start, end, e)
            return None

        if len(dubins_path.waypoints) < 2:
            return None
        return dubins_path

    # every feasible dubins word between the poses, shortest first
    def generate_all_paths(
        self,
        start_easting,
        start_northing,
        start_heading,
        end_easting,
        end_northing,
        end_heading,
        radius,
        spacing,
    ):
        if radius <= 0 or spacing <= 0:
            return list()

        start = (start_easting, start_northing, start_heading)
        end = (end_easting, end_northing, end_heading)

        paths = list()
        for path_type in range(len(dubins_path_types)):
            try:
                path = dubins.path(start, end, radius, path_type)
                if path is None:
                    continue
                dubins_path = sample_dubins_path(
                    path, (end_easting, end_northing), end_heading, spacing
                )
            except (RuntimeError, ValueError, ZeroDivisionError):
                # word is infeasible for this pose pair
                continue
            if len(dubins_path.waypoints) >= 2:
                paths.append(dubins_path)

        return sorted(paths, key=lambda p: p.total_length)
