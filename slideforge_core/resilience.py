"""
Resilience - Ordered fallback across alternative collaborators

A ``FallbackChain`` tries labelled operations in a fixed preference order.
A per-attempt classifier decides whether a failure moves on to the next
alternative or aborts the chain immediately.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class FailureAction(str, Enum):
    """What the chain does after a failed attempt."""
    NEXT = "next"      # try the next alternative
    ABORT = "abort"    # re-raise immediately, skip remaining alternatives


@dataclass
class Attempt:
    """Record of one failed attempt."""
    label: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.label}: {self.error}"


class ChainExhausted(Exception):
    """Raised when every operation in a chain failed."""

    def __init__(self, attempts: List[Attempt]):
        self.attempts = attempts
        if attempts:
            summary = "; ".join(str(a) for a in attempts)
            super().__init__(f"All {len(attempts)} alternatives failed ({summary})")
        else:
            super().__init__("No operations in fallback chain")


def next_on_any_error(exc: Exception) -> FailureAction:
    """Default classifier: every failure falls through to the next alternative."""
    return FailureAction.NEXT


@dataclass
class FallbackChain:
    """
    Chain of labelled fallback operations.

    Tries operations in order until one succeeds.

    Example:
        chain = FallbackChain(
            operations=[
                ("gpt-4", lambda: llm.generate_with("gpt-4")),
                ("gpt-4o-mini", lambda: llm.generate_with("gpt-4o-mini")),
            ],
            classifier=classify,
        )
        label, result = chain.execute()
    """
    operations: List[Tuple[str, Callable[[], Any]]]
    classifier: Callable[[Exception], FailureAction] = next_on_any_error
    on_fallback: Optional[Callable[[str, Exception], None]] = None
    attempts: List[Attempt] = field(default_factory=list)

    def execute(self) -> Tuple[str, Any]:
        """Execute operations until one succeeds; return (label, result)."""
        self.attempts = []

        for i, (label, operation) in enumerate(self.operations):
            try:
                return label, operation()
            except Exception as e:
                self.attempts.append(Attempt(label, e))
                if self.classifier(e) == FailureAction.ABORT:
                    logger.debug(f"Alternative '{label}' aborted the chain: {e}")
                    raise
                if self.on_fallback and i < len(self.operations) - 1:
                    self.on_fallback(label, e)
                logger.debug(f"Alternative '{label}' failed: {e}")

        raise ChainExhausted(self.attempts)
