"""Stream selection policy.

Providers rank their own candidates, so the first one wins. There is no
scoring and no fallback to later candidates.
"""

from __future__ import annotations

from collections.abc import Sequence

from reelgate.domain.entities.playback import StreamCandidate


def select_stream(candidates: Sequence[StreamCandidate]) -> StreamCandidate:
    """Return the provider's preferred candidate (index 0)."""
    if not candidates:
        raise ValueError("select_stream() requires at least one candidate")
    return candidates[0]
