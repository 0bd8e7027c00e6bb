from .manifest_verifier import ManifestVerifierPort
from .page_fetcher import PageFetcherPort

__all__ = [
    "ManifestVerifierPort",
    "PageFetcherPort",
]
