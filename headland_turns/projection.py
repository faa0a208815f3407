import json

from pyproj import Proj
from shapely import LineString, MultiPoint, to_geojson

from headland_turns.errors import ConfigurationError, make_feature_collection
from headland_turns.geometry import Position2D

"""
Projection Config
"""


# WGS84 ellipsoid axes, trimble projections raise both by the field elevation
wgs84_major_axis_m = 6378137
wgs84_minor_axis_m = 6356752.3142

projection_types = ("TOPCON", "JOHN_DEERE", "TRIMBLE", "UTM")


"""
Field Projection
-
Turns are planned in a local planar frame in metres. Field boundaries arrive as lat/long geojson, and turns are passed back out the same way.
"""


def utm_zone(longitude):
    return int((longitude + 180) / 6) % 60 + 1


# make a pyproj converter from the projection block of a field's settings
def make_proj_converter(projection):
    if projection is None or "type" not in projection:
        raise ConfigurationError("Missing projection type in field settings.")

    project_type = projection["type"].lower()
    try:
        if project_type == "topcon":
            zone = projection["zone"]
            hemisphere = projection["hemisphere"]
            return Proj(
                f"+proj=utm +ellps=WGS84 +datum=WGS84 +units=m +no_defs +zone={zone} +{hemisphere.lower()}"
            )

        if project_type == "utm":
            # utm zone can be given directly or worked out from a reference point
            if "zone" in projection:
                zone = projection["zone"]
                hemisphere = projection.get("hemisphere", "north")
            else:
                longitude, latitude = projection["referencePoint"]["coordinates"][:2]
                zone = utm_zone(longitude)
                hemisphere = "south" if latitude < 0 else "north"
            return Proj(
                f"+proj=utm +ellps=WGS84 +datum=WGS84 +units=m +no_defs +zone={zone} +{hemisphere.lower()}"
            )

        if project_type == "john_deere":
            reference_point = projection["referencePoint"]
            return Proj(
                f"+proj=merc +ellps=WGS84 +lat_ts={reference_point['coordinates'][1]} +lon_0={reference_point['coordinates'][0]}"
            )

        if project_type == "trimble":
            reference_point = projection["referencePoint"]
            elevation = int(projection["elevation"])
            return Proj(
                f"+proj=tmerc +lat_0={reference_point['coordinates'][1]} +lon_0={reference_point['coordinates'][0]}"
                f" +a={wgs84_major_axis_m + elevation} +b={wgs84_minor_axis_m + elevation}"
            )
    except KeyError as e:
        raise ConfigurationError(
            f"Projection data malformed in field settings, missing {e}."
        ) from e

    raise ConfigurationError(
        f"Projection type must be one of {', '.join(projection_types)}, got '{projection['type']}'."
    )


class FieldProjection:
    def __init__(self, projection):
        self.proj_converter = make_proj_converter(projection)

    # convert from lat/long to local x/y
    def to_local(self, geopoints):
        coords = list()
        for point in geopoints:
            easting, northing = self.proj_converter(point[0], point[1])
            coords.append(Position2D(easting, northing))
        return coords

    # convert from local x/y to lat/long
    def to_geopoints(self, coords):
        geopoints = list()
        for coord in coords:
            geopoints.append(self.proj_converter(coord[0], coord[1], inverse=True))
        return geopoints

    # planar boundary rings from a geojson polygon, exterior first then any holes as obstacles
    def boundaries_from_geojson(self, polygon):
        if polygon is None or polygon.get("type") != "Polygon":
            raise ConfigurationError("Field boundary must be a geojson Polygon.")
        if len(polygon["coordinates"]) == 0:
            raise ConfigurationError("Field boundary has no exterior ring.")

        boundaries = list()
        for ring in polygon["coordinates"]:
            boundaries.append(self.to_local(ring))
        return boundaries

    # turn waypoints as a lat/long geojson line
    def turn_path_to_geojson(self, turn_path):
        return json.loads(to_geojson(LineString(self.to_geopoints(turn_path.waypoints))))

    # feature collection with the turn line and, if any, its boundary violations in lat/long
    def turn_path_to_feature_collection(self, turn_path):
        geojsons = [self.turn_path_to_geojson(turn_path)]
        boundary_check = turn_path.boundary_check
        if boundary_check is not None and len(boundary_check.violation_points) > 0:
            geojsons.append(
                json.loads(
                    to_geojson(
                        MultiPoint(self.to_geopoints(boundary_check.violation_points))
                    )
                )
            )
        return make_feature_collection(geojsons)
