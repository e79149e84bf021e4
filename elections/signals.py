"""
Election lifecycle signals
==========================

Subscription seam for the presentation layer. Sent only after the
surrounding transaction commits, so receivers never observe state that
could still roll back.

- cycle_went_live(sender=VotingCycle, cycle, superseded)
- cycle_ended(sender=VotingCycle, cycle, superseded_by)
- vote_cast(sender=Vote, vote, cycle)

Clients that cannot receive pushes poll ``/api/cycles/active/`` instead.
"""

import logging

from django.db import transaction  # pyright: ignore[reportMissingModuleSource]
from django.dispatch import Signal, receiver  # pyright: ignore[reportMissingModuleSource]

logger = logging.getLogger(__name__)

cycle_went_live = Signal()
cycle_ended = Signal()
vote_cast = Signal()


def send_on_commit(signal, sender, **kwargs):
    """Queue ``signal`` to be sent once the current transaction commits."""
    transaction.on_commit(lambda: signal.send(sender=sender, **kwargs))


@receiver(cycle_went_live)
def log_cycle_went_live(sender, cycle, superseded=(), **kwargs):
    logger.info(f"Voting cycle is live: {cycle.name} ({cycle.id}) | "
                f"superseded: {[str(c.id) for c in superseded]}")


@receiver(cycle_ended)
def log_cycle_ended(sender, cycle, superseded_by=None, **kwargs):
    reason = f"superseded by {superseded_by.id}" if superseded_by else "ended by admin"
    logger.info(f"Voting cycle ended: {cycle.name} ({cycle.id}) | {reason}")
