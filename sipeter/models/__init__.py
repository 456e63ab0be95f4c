# Import all models so that SQLAlchemy registers them for metadata.create_all
from sipeter.models.service_request import (
    Priority,
    RequestStatus,
    ResourceType,
    ServiceCategory,
    ServiceRequest,
)
from sipeter.models.venue import Venue

__all__ = [
    "Priority",
    "RequestStatus",
    "ResourceType",
    "ServiceCategory",
    "ServiceRequest",
    "Venue",
]
