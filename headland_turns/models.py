from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from math import isfinite

from shapely import LineString

from headland_turns.errors import ConfigurationError
from headland_turns.geometry import to_position, to_positions

"""
Turn Parameter Defaults
"""


# spacing between generated waypoints, as a factor of the turning radius, used when no explicit spacing is configured
default_waypoint_spacing_factor = 0.1

default_turning_radius_m = 5.0

# width between adjacent guidance tracks
default_row_skip_width_m = 6.0

# clearance that turn paths must keep from any field boundary or obstacle edge
default_boundary_min_distance_m = 1.0

default_smoothing_factor = 0.5

# wide turns trade headland space for gentler curvature by scaling the turning radius
default_wide_radius_multiplier = 1.5

# tracks jumped over in alternative row skip mode
default_tracks_to_skip = 1


"""
Enums
"""


class TurnStyle(Enum):
    OMEGA = 0
    K = 1
    WIDE = 2
    T = 3
    Y = 4


class RowSkipMode(Enum):
    # next adjacent track
    NORMAL = 0

    # skip a configured number of tracks
    ALTERNATIVE = 1

    # skip forward to the nearest track that has not been worked yet
    IGNORE_WORKED_TRACKS = 2


class PathGenerationStrategy(Enum):
    # shortest dubins word that respects the boundaries
    STANDARD_DUBINS = 0

    # dubins segments chained through intermediate waypoints pushed away from the boundaries
    GUIDED_SAMPLING = 1

    # nothing found, the caller falls back to the other turn styles
    FALLBACK = 2


# look up an enum member by name, accepting the camelCase or upper case spellings a settings payload may use
def enum_from_name(enum_type, name):
    if isinstance(name, enum_type):
        return name
    key = "".join(
        "_" + char if char.isupper() and i > 0 and name[i - 1].islower() else char
        for i, char in enumerate(str(name))
    ).upper()
    try:
        return enum_type[key]
    except KeyError:
        options = ", ".join(member.name for member in enum_type)
        raise ConfigurationError(
            f"Unknown {enum_type.__name__} '{name}', must be one of {options}."
        ) from None


# nan and inf compare false against everything, so they must be rejected explicitly
def is_positive(value):
    return isfinite(value) and value > 0


"""
Turn Parameters
"""


@dataclass(frozen=True)
class TurnParameters:
    turn_style: TurnStyle = TurnStyle.OMEGA
    turning_radius: float = default_turning_radius_m
    row_skip_mode: RowSkipMode = RowSkipMode.NORMAL
    row_skip_width: float = default_row_skip_width_m
    waypoint_spacing: float = None
    boundary_min_distance: float = default_boundary_min_distance_m
    smoothing_factor: float = default_smoothing_factor
    wide_radius_multiplier: float = default_wide_radius_multiplier
    tracks_to_skip: int = default_tracks_to_skip

    def __post_init__(self):
        if self.turning_radius is None or not is_positive(self.turning_radius):
            raise ConfigurationError(
                f"Turning radius must be positive, got {self.turning_radius}."
            )

        # spacing defaults to a tenth of the radius so waypoint density scales with the turn
        if self.waypoint_spacing is None:
            object.__setattr__(
                self,
                "waypoint_spacing",
                self.turning_radius * default_waypoint_spacing_factor,
            )
        if not is_positive(self.waypoint_spacing):
            raise ConfigurationError(
                f"Waypoint spacing must be positive, got {self.waypoint_spacing}."
            )

        if not isfinite(self.smoothing_factor) or not 0 <= self.smoothing_factor <= 1:
            raise ConfigurationError(
                f"Smoothing factor must be between 0 and 1, got {self.smoothing_factor}."
            )
        if not isfinite(self.wide_radius_multiplier) or self.wide_radius_multiplier <= 1:
            raise ConfigurationError(
                f"Wide radius multiplier must be greater than 1, got {self.wide_radius_multiplier}."
            )
        if not isfinite(self.boundary_min_distance) or self.boundary_min_distance < 0:
            raise ConfigurationError(
                f"Boundary minimum distance must be finite and not negative, got {self.boundary_min_distance}."
            )
        if self.tracks_to_skip < 0:
            raise ConfigurationError(
                f"Tracks to skip cannot be negative, got {self.tracks_to_skip}."
            )

    @property
    def effective_radius(self):
        if self.turn_style == TurnStyle.WIDE:
            return self.turning_radius * self.wide_radius_multiplier
        return self.turning_radius

    def with_style(self, turn_style):
        return replace(self, turn_style=turn_style)

    # build parameters from a camelCase settings payload, only the turning radius is required
    @classmethod
    def from_settings(cls, settings):
        if settings is None:
            raise ConfigurationError("Missing turn settings.")
        if "turningRadius" not in settings:
            raise ConfigurationError("Missing 'turningRadius' in turn settings.")

        kwargs = dict()
        kwargs["turning_radius"] = float(settings["turningRadius"])
        if "turnStyle" in settings:
            kwargs["turn_style"] = enum_from_name(TurnStyle, settings["turnStyle"])
        if "rowSkipMode" in settings:
            kwargs["row_skip_mode"] = enum_from_name(
                RowSkipMode, settings["rowSkipMode"]
            )

        optional_floats = {
            "rowSkipWidth": "row_skip_width",
            "waypointSpacing": "waypoint_spacing",
            "boundaryMinDistance": "boundary_min_distance",
            "smoothingFactor": "smoothing_factor",
            "wideRadiusMultiplier": "wide_radius_multiplier",
        }
        for key, name in optional_floats.items():
            if settings.get(key) is not None:
                kwargs[name] = float(settings[key])
        if settings.get("tracksToSkip") is not None:
            kwargs["tracks_to_skip"] = int(settings["tracksToSkip"])

        return cls(**kwargs)


"""
Dubins Results
"""


# a sampled constant-curvature path between two poses
class DubinsPath:
    def __init__(self, path_type, segment_lengths, waypoints, headings):
        self.path_type = path_type
        self.segment_lengths = tuple(segment_lengths)
        self.waypoints = to_positions(waypoints)
        self.headings = list(headings)

    @property
    def total_length(self):
        return sum(self.segment_lengths)

    def __repr__(self):
        return f"DubinsPath({self.path_type}, length={self.total_length:.3f}, waypoints={len(self.waypoints)})"


class BoundaryGuidedResult:
    def __init__(self, succeeded=False):
        self.succeeded = succeeded
        self.result_path = None
        self.intermediate_waypoints = list()
        self.segments = list()

        # 0 when a standard dubins path worked, otherwise the guided sampling iteration that succeeded
        self.iteration_count = 0
        self.computation_time = 0.0
        self.strategy = PathGenerationStrategy.FALLBACK
        self.min_boundary_distance = None

    @property
    def used_guided_sampling(self):
        return self.iteration_count > 0


"""
Turn Paths
"""


class TurnBoundaryCheck:
    def __init__(self, is_valid):
        self.is_valid = is_valid
        self.min_boundary_distance = None
        self.violation_points = list()
        self.first_violation_index = None
        self.violation_reason = None

    @classmethod
    def valid(cls, min_boundary_distance):
        check = cls(True)
        check.min_boundary_distance = min_boundary_distance
        return check

    @classmethod
    def invalid(
        cls,
        violation_reason,
        first_violation_index=None,
        violation_points=None,
        min_boundary_distance=None,
    ):
        check = cls(False)
        check.violation_reason = violation_reason
        check.first_violation_index = first_violation_index
        if violation_points is not None:
            check.violation_points = to_positions(violation_points)
        check.min_boundary_distance = min_boundary_distance
        return check

    def __repr__(self):
        if self.is_valid:
            return f"TurnBoundaryCheck(valid, min_boundary_distance={self.min_boundary_distance:.3f})"
        return f"TurnBoundaryCheck(invalid, {len(self.violation_points)} violations from index {self.first_violation_index})"


class TurnPath:
    def __init__(
        self,
        turn_style,
        entry_point,
        exit_point,
        entry_heading=0.0,
        exit_heading=0.0,
        waypoints=None,
        total_length=0.0,
        requires_reverse=False,
        dubins_path=None,
    ):
        self.turn_style = turn_style
        self.entry_point = to_position(entry_point)
        self.exit_point = to_position(exit_point)
        self.entry_heading = entry_heading
        self.exit_heading = exit_heading
        self.waypoints = to_positions(waypoints) if waypoints is not None else list()
        self.total_length = total_length
        self.requires_reverse = requires_reverse
        self.dubins_path = dubins_path

        # per waypoint headings, only known once a path has been smoothed
        self.headings = None

        self.computation_time = 0.0
        self.created_at = datetime.now(timezone.utc)
        self.boundary_check = None

        # filled in by track selection, None if it was not performed
        self.next_track_index = None
        self.tracks_skipped = 0
        self.is_direction_reversal = False

    # shallow copy with some attributes replaced, waypoint lists are copied so the original is never shared
    def copy(self, **changes):
        new_path = TurnPath.__new__(TurnPath)
        new_path.__dict__.update(self.__dict__)
        new_path.waypoints = list(self.waypoints)
        if self.headings is not None:
            new_path.headings = list(self.headings)
        for name, value in changes.items():
            if name not in new_path.__dict__:
                raise AttributeError(f"TurnPath has no attribute '{name}'")
            setattr(new_path, name, value)
        return new_path

    def as_line_string(self):
        return LineString(self.waypoints)

    def __len__(self):
        return len(self.waypoints)

    def __repr__(self):
        return f"TurnPath({self.turn_style.name}, length={self.total_length:.3f}, waypoints={len(self.waypoints)})"


"""
Lifecycle Events
"""


@dataclass(frozen=True)
class TurnStarted:
    turn_style: TurnStyle
    start_position: tuple
    waypoints: list = field(default_factory=list)


@dataclass(frozen=True)
class TurnCompleted:
    turn_style: TurnStyle
    end_position: tuple
    duration_seconds: float
