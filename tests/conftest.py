from math import pi

import pytest

from headland_turns.models import TurnParameters

# unconstrained u-turn used throughout: entry heading east, exit one turn diameter north heading west
entry_point = (0.0, 0.0)
entry_heading = 0.0
exit_point = (0.0, 10.0)
exit_heading = pi

# square field centred on the origin, far enough from the u-turn to never be touched
open_field = [(-50.0, -50.0), (50.0, -50.0), (50.0, 50.0), (-50.0, 50.0)]


# dubins provider that can never find a path, to force the fallback arc
class NoPathDubinsProvider:
    def __init__(self):
        self.calls = 0

    def generate_path(self, *args):
        self.calls = self.calls + 1
        return None

    def generate_all_paths(self, *args):
        return list()


# dubins provider that fails outright
class BrokenDubinsProvider:
    def generate_path(self, *args):
        raise RuntimeError("provider exploded")

    def generate_all_paths(self, *args):
        raise RuntimeError("provider exploded")


@pytest.fixture
def parameters():
    return TurnParameters(turning_radius=5.0, smoothing_factor=0.0)


@pytest.fixture
def no_path_provider():
    return NoPathDubinsProvider()
