"""Structured fan-out over independent async sub-queries.

Each call runs concurrently under its own timeout. One call failing never
cancels the others; every name in the input maps to either ``Succeeded`` or
``Failed`` in the result.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Succeeded(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failed:
    error: str
    timed_out: bool = False


Outcome = Succeeded[Any] | Failed


async def _run_one(name: str, call: Callable[[], Awaitable[Any]], timeout: float | None) -> Outcome:
    try:
        return Succeeded(await asyncio.wait_for(call(), timeout=timeout))
    except asyncio.TimeoutError:
        logger.warning("fan-out %s timed out after %.1fs", name, timeout or 0)
        return Failed(error=f"{name} timed out", timed_out=True)
    except Exception as exc:
        logger.warning("fan-out %s failed: %s", name, exc)
        return Failed(error=str(exc) or exc.__class__.__name__)


async def fan_out(
    calls: Mapping[str, Callable[[], Awaitable[Any]]],
    timeout: float | None = None,
) -> dict[str, Outcome]:
    """Run ``calls`` concurrently; return one outcome per name, in input order."""
    names = list(calls)
    outcomes = await asyncio.gather(*(_run_one(n, calls[n], timeout) for n in names))
    return dict(zip(names, outcomes))


def value_or(outcome: Outcome, default: T) -> T:
    return outcome.value if isinstance(outcome, Succeeded) else default


def failed_names(outcomes: Mapping[str, Outcome]) -> list[str]:
    return [name for name, outcome in outcomes.items() if isinstance(outcome, Failed)]
