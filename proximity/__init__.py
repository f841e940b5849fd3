#Marks proximity as a package.
#Re-exports clean public APIs (MatchingBackendClient, haversine_meters,
#heading_difference) so other modules import from proximity without knowing internal file names.
#No business logic.

from .geo import haversine_meters, heading_difference, distance_between
from .backend_client import MatchingBackendClient, BackendError

__all__ = [
           "haversine_meters",
           "heading_difference",
             "distance_between",
             "MatchingBackendClient",
             "BackendError",
             ]
