from math import pi

from headland_turns.errors import ConfigurationError
from headland_turns.geometry import normalise_angle
from headland_turns.models import RowSkipMode

"""
Track Selection
-
Tracks are indexed 0 to total_tracks - 1 across the field, and are always selected moving forward.
"""


def validate_track_inputs(current_index, total_tracks, tracks_to_skip):
    if total_tracks <= 0:
        raise ConfigurationError(f"Total tracks must be positive, got {total_tracks}.")
    if not 0 <= current_index < total_tracks:
        raise ConfigurationError(
            f"Current track index {current_index} is out of range for {total_tracks} tracks."
        )
    if tracks_to_skip < 0:
        raise ConfigurationError(
            f"Tracks to skip cannot be negative, got {tracks_to_skip}."
        )


# index of the track to turn onto, or None once the last track of the field has been reached
def find_next_track(
    current_index,
    total_tracks,
    worked_tracks=None,
    skip_mode=RowSkipMode.NORMAL,
    tracks_to_skip=1,
):
    validate_track_inputs(current_index, total_tracks, tracks_to_skip)

    if skip_mode == RowSkipMode.ALTERNATIVE:
        next_index = current_index + tracks_to_skip + 1
        return next_index if next_index < total_tracks else None

    if skip_mode == RowSkipMode.IGNORE_WORKED_TRACKS and worked_tracks is not None:
        worked_tracks = set(worked_tracks)
        for next_index in range(current_index + 1, total_tracks):
            if next_index not in worked_tracks:
                return next_index
        return None

    next_index = current_index + 1
    return next_index if next_index < total_tracks else None


# copy of the turn annotated with the track it leads onto
def assign_next_track(turn_path, current_index, next_index):
    if next_index is None:
        return turn_path.copy(next_track_index=None, tracks_skipped=0)

    # heading changes of more than 90° mean the implement comes back down the field
    is_direction_reversal = (
        abs(normalise_angle(turn_path.exit_heading - turn_path.entry_heading)) > pi / 2
    )
    return turn_path.copy(
        next_track_index=next_index,
        tracks_skipped=max(0, next_index - current_index - 1),
        is_direction_reversal=is_direction_reversal,
    )
