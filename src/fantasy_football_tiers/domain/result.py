"""Explicit success/failure values for upstream calls.

Sources return ``Ok(players)`` or ``Err(UpstreamError(...))`` instead of
raising, and callers branch with ``match``:

    match source.fetch_players(position, scoring_format):
        case Ok(players):
            ...
        case Err(error):
            ...
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    value: T


@dataclass(frozen=True, slots=True)
class Err[E]:
    error: E


type Result[T, E] = Ok[T] | Err[E]
