import logging
import threading
from math import pi
from time import monotonic

from headland_turns.boundary import generate_boundary_safe_turn
from headland_turns.boundary_guided import BoundaryGuidedPathProvider
from headland_turns.dubins_paths import DubinsPathProvider
from headland_turns.errors import ConfigurationError
from headland_turns.geometry import offset_point, squared_dist, to_position
from headland_turns.models import TurnCompleted, TurnParameters, TurnStarted, is_positive
from headland_turns.patterns import generate_all_turn_options, generate_turn
from headland_turns.smoothing import smooth_turn_path

logger = logging.getLogger(__name__)


"""
Turn Execution
-
One engine is owned per vehicle. Configuration and turn start/complete come from the UI thread, progress updates from the position feed.
All execution state is guarded by a single lock, which is never held while generating paths or calling event handlers.
"""


# exit pose for the next parallel track when the caller doesn't supply one
# heading reversed, offset two turning radii to the left of the current heading
def default_exit_pose(position, heading, turning_radius):
    exit_point = offset_point(position, heading + pi / 2, 2 * turning_radius)
    return exit_point, heading + pi


# index of the nearest waypoint at or after start_index, so progress can never move backwards
def nearest_waypoint_forward(waypoints, position, start_index):
    nearest_index = start_index
    nearest_dist_sq = float("inf")
    for i in range(start_index, len(waypoints)):
        dist_sq = squared_dist(waypoints[i], position)
        if dist_sq < nearest_dist_sq:
            nearest_dist_sq = dist_sq
            nearest_index = i
    return nearest_index


class TurnEngine:
    def __init__(self, parameters=None, dubins_provider=None, guided_provider=None):
        self.lock = threading.Lock()

        self.dubins_provider = (
            dubins_provider if dubins_provider is not None else DubinsPathProvider()
        )
        self.guided_provider = (
            guided_provider
            if guided_provider is not None
            else BoundaryGuidedPathProvider(self.dubins_provider)
        )

        self.parameters = parameters if parameters is not None else TurnParameters()
        self.current_turn = None
        self.in_turn = False
        self.turn_progress = 0.0
        self.current_waypoint_index = 0
        self.turn_start_time = None
        self.turn_start_position = None

        self.turn_started_handlers = list()
        self.turn_completed_handlers = list()

    """
    Configuration
    """

    def configure_turn(self, parameters):
        if not isinstance(parameters, TurnParameters):
            raise ConfigurationError(
                f"Turn parameters must be TurnParameters, got {type(parameters).__name__}."
            )
        if not is_positive(parameters.turning_radius):
            raise ConfigurationError(
                f"Turning radius must be positive, got {parameters.turning_radius}."
            )

        with self.lock:
            self.parameters = parameters
        logger.info(
            "Turn configured: %s, radius %sm",
            parameters.turn_style.name,
            parameters.turning_radius,
        )

    def get_turn_parameters(self):
        with self.lock:
            return self.parameters

    def on_turn_started(self, handler):
        self.turn_started_handlers.append(handler)

    def on_turn_completed(self, handler):
        self.turn_completed_handlers.append(handler)

    """
    Path Generation
    -
    These snapshot the configuration and then compute without holding the lock.
    """

    def generate_turn(self, entry_point, entry_heading, exit_point, exit_heading):
        return generate_turn(
            entry_point,
            entry_heading,
            exit_point,
            exit_heading,
            self.get_turn_parameters(),
            self.dubins_provider,
        )

    def generate_all_turn_options(
        self, entry_point, entry_heading, exit_point, exit_heading, allowed_styles=None
    ):
        return generate_all_turn_options(
            entry_point,
            entry_heading,
            exit_point,
            exit_heading,
            self.get_turn_parameters(),
            allowed_styles=allowed_styles,
            dubins_provider=self.dubins_provider,
        )

    def generate_boundary_safe_turn(
        self, entry_point, entry_heading, exit_point, exit_heading, boundaries
    ):
        return generate_boundary_safe_turn(
            entry_point,
            entry_heading,
            exit_point,
            exit_heading,
            boundaries,
            self.get_turn_parameters(),
            dubins_provider=self.dubins_provider,
            guided_provider=self.guided_provider,
        )

    """
    Turn Lifecycle
    """

    # generate a turn from the current pose and start executing it
    # without an explicit exit pose, the turn goes onto the adjacent parallel track
    def start_turn(self, position, heading, exit_point=None, exit_heading=None):
        parameters = self.get_turn_parameters()
        position = to_position(position)

        if exit_point is None or exit_heading is None:
            default_point, default_heading = default_exit_pose(
                position, heading, parameters.turning_radius
            )
            exit_point = default_point if exit_point is None else exit_point
            exit_heading = default_heading if exit_heading is None else exit_heading

        turn_path = generate_turn(
            position, heading, exit_point, exit_heading, parameters, self.dubins_provider
        )

        # reversing manoeuvres keep their sharp direction changes
        if parameters.smoothing_factor > 0 and not turn_path.requires_reverse:
            turn_path = smooth_turn_path(turn_path, parameters.smoothing_factor)

        return self.start_planned_turn(turn_path)

    # start executing a turn that was already generated, e.g. a boundary safe turn
    # an active turn is abandoned without a completed event, since it was never finished
    def start_planned_turn(self, turn_path):
        if turn_path is None or len(turn_path.waypoints) < 2:
            raise ConfigurationError("A turn needs at least 2 waypoints to be started.")

        with self.lock:
            replaced_turn = self.current_turn if self.in_turn else None
            self.current_turn = turn_path
            self.in_turn = True
            self.turn_progress = 0.0
            self.current_waypoint_index = 0
            self.turn_start_time = monotonic()
            self.turn_start_position = turn_path.entry_point

        if replaced_turn is not None:
            logger.warning(
                "Abandoning active %s turn to start a new one", replaced_turn.turn_style.name
            )

        logger.info(
            "Started %s turn with %s waypoints, length %.2fm",
            turn_path.turn_style.name,
            len(turn_path.waypoints),
            turn_path.total_length,
        )
        event = TurnStarted(
            turn_path.turn_style, turn_path.entry_point, list(turn_path.waypoints)
        )
        for handler in list(self.turn_started_handlers):
            handler(event)

        return turn_path

    def update_turn_progress(self, position):
        with self.lock:
            if not self.in_turn or self.current_turn is None:
                return

            waypoints = self.current_turn.waypoints
            self.current_waypoint_index = nearest_waypoint_forward(
                waypoints, position, self.current_waypoint_index
            )
            if len(waypoints) > 1:
                progress = self.current_waypoint_index / (len(waypoints) - 1)
            else:
                progress = 1.0
            self.turn_progress = min(max(progress, 0.0), 1.0)

    def complete_turn(self):
        with self.lock:
            if not self.in_turn or self.current_turn is None:
                return None

            turn_path = self.current_turn
            duration = max(0.0, monotonic() - self.turn_start_time)
            self.current_turn = None
            self.in_turn = False
            self.turn_progress = 0.0
            self.current_waypoint_index = 0
            self.turn_start_time = None
            self.turn_start_position = None

        logger.info(
            "Completed %s turn in %.1f seconds", turn_path.turn_style.name, duration
        )
        event = TurnCompleted(turn_path.turn_style, turn_path.waypoints[-1], duration)
        for handler in list(self.turn_completed_handlers):
            handler(event)

        return event

    """
    Queries
    """

    def is_in_turn(self):
        with self.lock:
            return self.in_turn

    def get_current_turn(self):
        with self.lock:
            return self.current_turn

    def get_current_turn_style(self):
        with self.lock:
            if self.current_turn is None:
                return None
            return self.current_turn.turn_style

    def get_turn_progress(self):
        with self.lock:
            return self.turn_progress

    def get_turn_start_position(self):
        with self.lock:
            return self.turn_start_position
