import json
from enum import Enum

from shapely import LineString, MultiPoint, to_geojson

"""
Error Handling
"""


# enum for different types of errors, which should be handled differently
class ErrorType(Enum):
    # invalid turn configuration or call arguments, rejected at the call that introduced them and passed onto the operator as a validation failure
    BAD_INPUT_DATA = 0

    # unexpected logic error in the turn algorithms, should not be passed onto front end
    ALGORITHM_ERROR = 1

    # no turn style could be generated that keeps the required clearance from the field boundaries
    # this is an expected outcome in tight headlands, so it is only a warning that the operator must resolve, possibly along with the offending geometry
    BOUNDARY_INFEASIBLE = 2


# data struct for errors
class Error:
    def __init__(self, error_type, message, geometry=None):
        self.error_type = error_type
        self.message = message
        self.geometry = geometry  # optional

    def as_dict(self):
        error_dict = dict()
        error_dict["errorType"] = self.error_type.name
        error_dict["message"] = self.message
        if self.geometry is not None:  # optional
            error_dict["geometry"] = self.geometry
        return error_dict


# exception for configuration that must never be silently clamped, since that would hide an operator mistake affecting vehicle safety
class ConfigurationError(ValueError):
    def __init__(self, message, geometry=None):
        super().__init__(message)
        self.error = Error(ErrorType.BAD_INPUT_DATA, message, geometry)


# exception for internal logic errors that should not, if the algorithms are functioning as expected, ever be raised
# if raised, they should not be passed on to the front end as they are not meaningful to the end user
class AlgorithmError(Exception):
    def __init__(self, message, geometry=None):
        super().__init__(message)
        self.error = Error(ErrorType.ALGORITHM_ERROR, message, geometry)


# function to transform error objects into a list of dictionaries in the format the caller is expecting output
# all places constructing returns should use this for streamlining to make sure the structure is always correct
def make_error_list_return(errors):
    if isinstance(errors, Exception):
        errors = [errors.error]

    errors_dict = dict()
    error_list = list()
    for error in errors:
        error_list.append(error.as_dict())
    errors_dict["errors"] = error_list

    return errors_dict


"""
GeoJSON Functions
"""


# assemble a list of individual geojson geometry objects into a dictionary of structure that can be directly converted to a geojson feature collection object
def make_feature_collection(geojsons):
    features = list()
    for geojson in geojsons:
        feature = dict()
        feature["type"] = "Feature"
        feature["geometry"] = geojson
        feature["properties"] = dict()

        features.append(feature)

    feature_collection = dict()
    feature_collection["type"] = "FeatureCollection"
    feature_collection["features"] = features

    return feature_collection


# warning for a turn that could not be kept clear of the boundaries, with the turn line and its violating waypoints as geometry
# geometry is in the planar frame of the turn, callers with a projection can convert it before passing it on
def boundary_violation_error(turn_path, boundary_check):
    geojsons = list()
    geojsons.append(json.loads(to_geojson(LineString(turn_path.waypoints))))
    if len(boundary_check.violation_points) > 0:
        geojsons.append(
            json.loads(to_geojson(MultiPoint(boundary_check.violation_points)))
        )

    if boundary_check.violation_reason is not None:
        message = f"WARNING: {turn_path.turn_style.name} turn cannot keep clear of the field boundary. {boundary_check.violation_reason}"
    else:
        message = f"WARNING: {turn_path.turn_style.name} turn cannot keep clear of the field boundary."

    return Error(
        ErrorType.BOUNDARY_INFEASIBLE,
        message,
        geometry=make_feature_collection(geojsons),
    )
