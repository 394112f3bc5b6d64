"""Federation view-model: identity normalization, handle classification,
debounced resolution, follow-state reconciliation and listing assembly."""

from event_federation.federation.classifier import looks_like_remote_handle, parse_handle
from event_federation.federation.follow_state import FollowResult, FollowStateReconciler
from event_federation.federation.listing import (
    DiscoverFilters,
    FollowFilter,
    ProfileListing,
    SortOrder,
    SourceFilter,
    assemble_profiles,
    build_listing,
    sort_profiles,
)
from event_federation.federation.normalizer import Avatar, NormalizedProfile, normalize
from event_federation.federation.resolver import DebouncedResolver, ResolverState

__all__ = [
    # Classifier
    "looks_like_remote_handle",
    "parse_handle",
    # Normalizer
    "Avatar",
    "NormalizedProfile",
    "normalize",
    # Resolver
    "DebouncedResolver",
    "ResolverState",
    # Follow state
    "FollowResult",
    "FollowStateReconciler",
    # Listing
    "DiscoverFilters",
    "FollowFilter",
    "ProfileListing",
    "SortOrder",
    "SourceFilter",
    "assemble_profiles",
    "build_listing",
    "sort_profiles",
]
