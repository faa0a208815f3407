from collections import namedtuple
from math import atan2, cos, pi, sin, sqrt
from math import dist as dist_2d

from shapely import MultiLineString, distance, points

from headland_turns.errors import ConfigurationError

"""
General Geometric Config
"""


# segments shorter than this (squared length, m^2) are treated as a single point when projecting onto them
degenerate_segment_length_sq_m2 = 1e-10

# default tolerance for comparing coordinates to handle floating point error
coordinate_tolerance_m = 0.001


"""
Position Type
"""


# planar position in a local projection, easting and northing in metres
# being a tuple it can be handed straight to shapely, dubins and math.dist
Position2D = namedtuple("Position2D", ["easting", "northing"])


def to_position(coord):
    if isinstance(coord, Position2D):
        return coord
    return Position2D(float(coord[0]), float(coord[1]))


def to_positions(coords):
    return [to_position(coord) for coord in coords]


"""
Basic Utility Functions
"""


# check if equal with tolerance to handle floating point error
def approx_equals(a, b, tol=coordinate_tolerance_m):
    return abs(a - b) <= tol


def point_approx_equals(p1, p2, tol=coordinate_tolerance_m):
    return approx_equals(p1[0], p2[0], tol) and approx_equals(p1[1], p2[1], tol)


# wrap an angle in radians into (-pi, pi]
def normalise_angle(angle):
    angle = angle % (2 * pi)
    if angle > pi:
        angle = angle - 2 * pi
    return angle


# bearing from p1 to p2, counter-clockwise from the easting axis
def get_angle(p1, p2):
    return normalise_angle(atan2(p2[1] - p1[1], p2[0] - p1[0]))


# point reached by travelling dist along heading from origin, negative dist travels backwards
def offset_point(origin, heading, dist):
    return Position2D(origin[0] + dist * cos(heading), origin[1] + dist * sin(heading))


def squared_dist(p1, p2):
    de = p2[0] - p1[0]
    dn = p2[1] - p1[1]
    return de * de + dn * dn


# total length travelled along consecutive points
def path_length(points):
    length = 0.0
    for i in range(len(points) - 1):
        length = length + dist_2d(points[i], points[i + 1])
    return length


"""
Segment Functions
"""


# project point onto the segment start -> end, clamped to the segment
def closest_point_on_segment(point, start, end):
    de = end[0] - start[0]
    dn = end[1] - start[1]
    length_sq = de * de + dn * dn

    # segment is actually a point
    if length_sq < degenerate_segment_length_sq_m2:
        return to_position(start)

    t = ((point[0] - start[0]) * de + (point[1] - start[1]) * dn) / length_sq
    t = min(max(t, 0.0), 1.0)

    return Position2D(start[0] + t * de, start[1] + t * dn)


def distance_to_segment(point, start, end):
    closest = closest_point_on_segment(point, start, end)
    return sqrt(squared_dist(point, closest))


# iterate over the edges of a polygon given as an open or closed ring of coordinates
def polygon_edges(polygon):
    count = len(polygon)
    if count > 1 and point_approx_equals(polygon[0], polygon[-1], 0):
        count = count - 1
    for i in range(count):
        yield polygon[i], polygon[(i + 1) % count]


# minimum distance from a point to any edge of a polygon
def distance_to_polygon(point, polygon):
    min_dist = float("inf")
    for start, end in polygon_edges(polygon):
        min_dist = min(min_dist, distance_to_segment(point, start, end))
    return min_dist


"""
Boundary Functions
-
Boundaries are the field polygon and any inner obstacle polygons, each given as a ring of planar coordinates.
Clearance is always measured to the nearest edge of any boundary, regardless of which side of it a point is on.
"""


# accept a single polygon or a list of polygons, and return a list of polygons as position lists
def normalise_boundaries(boundaries):
    if boundaries is None or len(boundaries) == 0:
        return list()

    # a single polygon has coordinate pairs as elements, rather than lists of coordinate pairs
    if isinstance(boundaries[0][0], (int, float)):
        boundaries = [boundaries]

    normalised = list()
    for boundary in boundaries:
        if len(boundary) < 3:
            raise ConfigurationError(
                f"Boundary polygons must have at least 3 points, got {len(boundary)}."
            )
        normalised.append(to_positions(boundary))
    return normalised


# close every boundary ring and combine them so distances can be measured to all edges at once
def make_boundary_lines(boundaries):
    rings = list()
    for boundary in boundaries:
        ring = list(boundary)
        if not point_approx_equals(ring[0], ring[-1], 0):
            ring.append(ring[0])
        rings.append(ring)
    return MultiLineString(rings)


# distance from each coordinate to the nearest boundary edge
def distances_to_boundaries(coords, boundary_lines):
    if len(coords) == 0:
        return list()
    return [float(d) for d in distance(boundary_lines, points(coords))]
