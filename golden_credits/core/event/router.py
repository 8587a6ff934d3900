"""
Wildcard pattern matching for event names.

Patterns may contain `*` anywhere: "wallet.*", "*.claimed",
"wheel.*.claimed", or "*" for everything. A pattern without `*` is an exact
match.
"""

from __future__ import annotations


class EventRouter:
    """
    Stateless matcher for event names.

    Examples
    --------
    >>> router = EventRouter()
    >>> router.matches("wallet.credited", "wallet.*")
    True
    >>> router.matches("wallet.credited", "wheel.*")
    False
    >>> router.matches("daily_login.claimed", "*.claimed")
    True
    """

    def matches(self, event_name: str, pattern: str) -> bool:
        if pattern == "*":
            return True

        if "*" not in pattern:
            return event_name == pattern

        while "**" in pattern:
            pattern = pattern.replace("**", "*")

        parts = pattern.split("*")

        if parts[0] and not event_name.startswith(parts[0]):
            return False

        if parts[-1] and not event_name.endswith(parts[-1]):
            return False

        idx = len(parts[0])
        for mid in parts[1:-1]:
            if not mid:
                continue
            next_idx = event_name.find(mid, idx)
            if next_idx == -1:
                return False
            idx = next_idx + len(mid)

        # Prefix and suffix must not overlap.
        return len(parts[0]) + len(parts[-1]) <= len(event_name)
