import pytest

from headland_turns.errors import ConfigurationError
from headland_turns.models import TurnPath, TurnStyle
from headland_turns.projection import FieldProjection, utm_zone

# small paddock near Emerald, Queensland
field_geopoints = [
    (148.1600, -23.5200),
    (148.1650, -23.5200),
    (148.1650, -23.5160),
    (148.1600, -23.5160),
    (148.1600, -23.5200),
]

reference_point = {"type": "Point", "coordinates": [148.1625, -23.5180]}

projections = [
    {"type": "TOPCON", "zone": 55, "hemisphere": "SOUTH"},
    {"type": "UTM", "referencePoint": reference_point},
    {"type": "JOHN_DEERE", "referencePoint": reference_point},
    {"type": "TRIMBLE", "referencePoint": reference_point, "elevation": 180},
]


class TestFieldProjection:
    @pytest.mark.parametrize("projection", projections, ids=lambda p: p["type"])
    def test_round_trip(self, projection):
        field_projection = FieldProjection(projection)
        coords = field_projection.to_local(field_geopoints)
        geopoints = field_projection.to_geopoints(coords)
        for expected, actual in zip(field_geopoints, geopoints):
            assert actual == pytest.approx(expected, abs=1e-7)

    def test_local_frame_is_in_metres(self):
        coords = FieldProjection(projections[0]).to_local(field_geopoints[:2])
        # 0.005° of longitude at this latitude is roughly 510m
        assert coords[1].easting - coords[0].easting == pytest.approx(510, abs=5)

    def test_utm_zone(self):
        assert utm_zone(148.16) == 55
        assert utm_zone(-0.1) == 30

    def test_boundaries_from_geojson(self):
        hole = [(148.1620, -23.5190), (148.1630, -23.5190), (148.1630, -23.5180), (148.1620, -23.5190)]
        boundaries = FieldProjection(projections[0]).boundaries_from_geojson(
            {"type": "Polygon", "coordinates": [field_geopoints, hole]}
        )
        assert len(boundaries) == 2
        assert len(boundaries[0]) == len(field_geopoints)

    def test_boundaries_must_be_polygons(self):
        with pytest.raises(ConfigurationError):
            FieldProjection(projections[0]).boundaries_from_geojson(
                {"type": "LineString", "coordinates": field_geopoints}
            )

    @pytest.mark.parametrize(
        "projection",
        [None, {"type": "MERCATOR"}, {"type": "TOPCON", "zone": 55}, {"type": "TRIMBLE"}],
    )
    def test_bad_projection_settings(self, projection):
        with pytest.raises(ConfigurationError):
            FieldProjection(projection)

    def test_turn_path_to_geojson(self):
        field_projection = FieldProjection(projections[0])
        waypoints = field_projection.to_local(field_geopoints[:3])
        turn_path = TurnPath(TurnStyle.OMEGA, waypoints[0], waypoints[-1], waypoints=waypoints)

        geojson = field_projection.turn_path_to_geojson(turn_path)
        assert geojson["type"] == "LineString"
        assert geojson["coordinates"][0] == pytest.approx(list(field_geopoints[0]), abs=1e-7)

        collection = field_projection.turn_path_to_feature_collection(turn_path)
        assert collection["type"] == "FeatureCollection"
        assert len(collection["features"]) == 1
