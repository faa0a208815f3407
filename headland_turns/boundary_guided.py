import logging
from math import sqrt
from time import perf_counter

from headland_turns.dubins_paths import DubinsPathProvider
from headland_turns.errors import AlgorithmError
from headland_turns.geometry import (
    Position2D,
    closest_point_on_segment,
    distance_to_polygon,
    distances_to_boundaries,
    get_angle,
    make_boundary_lines,
    normalise_boundaries,
    point_approx_equals,
    polygon_edges,
)
from headland_turns.models import BoundaryGuidedResult, DubinsPath, PathGenerationStrategy

logger = logging.getLogger(__name__)

"""
Guided Sampling Config
"""


# max number of refinement iterations when sampling intermediate waypoints, the whole search is meant to fit within a single steering cycle
default_max_iterations = 8

# wall clock budget for guided sampling, checked before each iteration so at least one iteration always runs
# None disables the budget, e.g. for offline planning where determinism matters more than latency
default_time_budget_s = 0.009

# number of intermediate waypoints initially placed evenly along the straight line between the poses
initial_intermediate_waypoints = 3

# boundary edges further than this from an intermediate waypoint don't push it
default_influence_radius_m = 3.0

# distance a waypoint is pushed by a single edge at full strength, strength falls off linearly to 0 at the influence radius
repulsion_push_m = 0.5

# edges closer than this are ignored for repulsion, as the direction away from them is numerically meaningless
repulsion_min_dist_m = 0.01


"""
Boundary Repulsion Functions
"""


# sum of pushes away from every boundary edge within the influence radius of the point
def calculate_boundary_repulsion(point, boundaries, influence_radius):
    repulsion_e = 0.0
    repulsion_n = 0.0

    for boundary in normalise_boundaries(boundaries):
        for start, end in polygon_edges(boundary):
            closest = closest_point_on_segment(point, start, end)
            de = point[0] - closest[0]
            dn = point[1] - closest[1]
            dist = sqrt(de * de + dn * dn)

            if repulsion_min_dist_m < dist < influence_radius:
                strength = (influence_radius - dist) / influence_radius
                repulsion_e = repulsion_e + de / dist * strength * repulsion_push_m
                repulsion_n = repulsion_n + dn / dist * strength * repulsion_push_m

    return Position2D(repulsion_e, repulsion_n)


# return if the point keeps the minimum distance from every boundary
def is_point_valid(point, boundaries, min_distance):
    for boundary in normalise_boundaries(boundaries):
        if distance_to_polygon(point, boundary) < min_distance:
            return False
    return True


# evenly spaced points strictly between start and goal
def sample_initial_waypoints(start, goal, count):
    waypoints = list()
    for i in range(1, count + 1):
        t = i / (count + 1)
        waypoints.append(
            Position2D(
                start[0] + t * (goal[0] - start[0]),
                start[1] + t * (goal[1] - start[1]),
            )
        )
    return waypoints


# keep existing intermediate waypoints and add a midpoint in every gap, including the gaps to start and goal
def refine_waypoints(waypoints, start, goal):
    all_points = [start] + list(waypoints) + [goal]

    refined = list()
    for i in range(len(all_points) - 1):
        if i > 0:
            refined.append(all_points[i])
        refined.append(
            Position2D(
                (all_points[i][0] + all_points[i + 1][0]) / 2,
                (all_points[i][1] + all_points[i + 1][1]) / 2,
            )
        )
    return refined


# join consecutive dubins segments into a single path, dropping the repeated joining waypoints
def combine_segments(segments):
    if len(segments) == 0:
        raise AlgorithmError("No dubins segments to combine.")
    if len(segments) == 1:
        return segments[0]

    waypoints = list()
    headings = list()
    for segment in segments:
        for waypoint, heading in zip(segment.waypoints, segment.headings):
            if len(waypoints) > 0 and point_approx_equals(waypoints[-1], waypoint):
                continue
            waypoints.append(waypoint)
            headings.append(heading)

    path_type = "-".join(segment.path_type for segment in segments)
    segment_lengths = [segment.total_length for segment in segments]
    return DubinsPath(path_type, segment_lengths, waypoints, headings)


"""
Boundary Guided Provider
"""


# generates dubins paths that keep a minimum distance from a set of boundaries
# first tries the standard dubins words, then chains dubins segments through intermediate waypoints repelled from the boundaries
class BoundaryGuidedPathProvider:
    def __init__(
        self,
        dubins_provider=None,
        influence_radius=default_influence_radius_m,
        time_budget_s=default_time_budget_s,
    ):
        self.dubins_provider = (
            dubins_provider if dubins_provider is not None else DubinsPathProvider()
        )
        self.influence_radius = influence_radius
        self.time_budget_s = time_budget_s

    def is_path_valid(self, path, boundary_lines, min_distance):
        if path is None or len(path.waypoints) == 0:
            return False
        if boundary_lines is None:
            return True
        return min(distances_to_boundaries(path.waypoints, boundary_lines)) >= min_distance

    def generate_boundary_aware_path(
        self,
        start_pose,
        end_pose,
        radius,
        boundaries,
        min_distance,
        spacing,
        max_iterations=default_max_iterations,
    ):
        start_time = perf_counter()
        result = BoundaryGuidedResult(False)

        boundaries = normalise_boundaries(boundaries)
        boundary_lines = make_boundary_lines(boundaries) if boundaries else None

        # fast path, handles most turns in open headlands
        standard_path = self.try_standard_dubins(
            start_pose, end_pose, radius, boundary_lines, min_distance, spacing
        )
        if standard_path is not None:
            result.succeeded = True
            result.result_path = standard_path
            result.segments = [standard_path]
            result.strategy = PathGenerationStrategy.STANDARD_DUBINS
            result.iteration_count = 0
            result.min_boundary_distance = self.min_boundary_distance(
                standard_path, boundary_lines
            )
            result.computation_time = perf_counter() - start_time
            return result

        guided = self.try_guided_sampling(
            start_pose,
            end_pose,
            radius,
            boundaries,
            boundary_lines,
            min_distance,
            spacing,
            max_iterations,
            start_time,
        )
        if guided is not None:
            path, intermediate_waypoints, segments, iteration = guided
            result.succeeded = True
            result.result_path = path
            result.intermediate_waypoints = intermediate_waypoints
            result.segments = segments
            result.strategy = PathGenerationStrategy.GUIDED_SAMPLING
            result.iteration_count = iteration
            result.min_boundary_distance = self.min_boundary_distance(
                path, boundary_lines
            )
            result.computation_time = perf_counter() - start_time
            return result

        result.strategy = PathGenerationStrategy.FALLBACK
        result.computation_time = perf_counter() - start_time
        logger.debug(
            "No boundary aware dubins path found in %.4f seconds", result.computation_time
        )
        return result

    def try_standard_dubins(
        self, start_pose, end_pose, radius, boundary_lines, min_distance, spacing
    ):
        all_paths = self.dubins_provider.generate_all_paths(
            *start_pose, *end_pose, radius, spacing
        )
        for path in all_paths:
            if self.is_path_valid(path, boundary_lines, min_distance):
                return path
        return None

    def try_guided_sampling(
        self,
        start_pose,
        end_pose,
        radius,
        boundaries,
        boundary_lines,
        min_distance,
        spacing,
        max_iterations,
        start_time,
    ):
        start = Position2D(start_pose[0], start_pose[1])
        goal = Position2D(end_pose[0], end_pose[1])

        waypoints = sample_initial_waypoints(start, goal, initial_intermediate_waypoints)

        for iteration in range(1, max_iterations + 1):
            if (
                self.time_budget_s is not None
                and iteration > 1
                and perf_counter() - start_time > self.time_budget_s
            ):
                logger.debug("Guided sampling out of time after %s iterations", iteration - 1)
                break

            # push waypoints away from nearby edges, keeping the original where the push makes it worse
            adjusted_waypoints = list()
            for waypoint in waypoints:
                repulsion = calculate_boundary_repulsion(
                    waypoint, boundaries, self.influence_radius
                )
                adjusted = Position2D(
                    waypoint[0] + repulsion[0], waypoint[1] + repulsion[1]
                )
                if is_point_valid(adjusted, boundaries, min_distance):
                    adjusted_waypoints.append(adjusted)
                else:
                    adjusted_waypoints.append(waypoint)

            segments = self.connect_waypoints(
                start_pose,
                end_pose,
                adjusted_waypoints,
                radius,
                boundary_lines,
                min_distance,
                spacing,
            )
            if segments is None:
                logger.debug(
                    "Guided sampling iteration %s failed with %s waypoints",
                    iteration,
                    len(adjusted_waypoints),
                )
                waypoints = refine_waypoints(waypoints, start, goal)
                continue

            return combine_segments(segments), adjusted_waypoints, segments, iteration

        return None

    # chain dubins segments from the start pose through each waypoint to the end pose, None if any segment is invalid
    def connect_waypoints(
        self,
        start_pose,
        end_pose,
        waypoints,
        radius,
        boundary_lines,
        min_distance,
        spacing,
    ):
        segments = list()
        prev_point = Position2D(start_pose[0], start_pose[1])
        prev_heading = start_pose[2]

        for waypoint in waypoints:
            # aim each intermediate pose at the waypoint from the previous one
            target_heading = get_angle(prev_point, waypoint)
            segment = self.dubins_provider.generate_path(
                prev_point[0],
                prev_point[1],
                prev_heading,
                waypoint[0],
                waypoint[1],
                target_heading,
                radius,
                spacing,
            )
            if not self.is_path_valid(segment, boundary_lines, min_distance):
                return None
            segments.append(segment)
            prev_point = waypoint
            prev_heading = target_heading

        final_segment = self.dubins_provider.generate_path(
            prev_point[0],
            prev_point[1],
            prev_heading,
            end_pose[0],
            end_pose[1],
            end_pose[2],
            radius,
            spacing,
        )
        if not self.is_path_valid(final_segment, boundary_lines, min_distance):
            return None
        segments.append(final_segment)

        return segments

    def min_boundary_distance(self, path, boundary_lines):
        if boundary_lines is None:
            return float("inf")
        return min(distances_to_boundaries(path.waypoints, boundary_lines))
