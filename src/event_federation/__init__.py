"""Client-side federation view-model for a federated event calendar.

Resolves remote actors, merges local accounts and remote actors into one
profile model, and keeps the viewer's follow state in sync across both.
"""

__version__ = "0.1.0"
