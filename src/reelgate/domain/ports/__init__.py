from .catalog import CatalogMetadataPort, CrossReferencePort
from .stream_source import StreamSourcePort

__all__ = [
    "CatalogMetadataPort",
    "CrossReferencePort",
    "StreamSourcePort",
]
