"""
Backoffice Command Layer - Command Dispatcher
===============================================
Accept Command → Evaluate Policies → Produce Outcome.

The Dispatcher is the DECISION MAKER. It decides ACCEPTED or REJECTED.

The Dispatcher DOES NOT:
- Mutate stores
- Notify listeners
- Execute business logic

Policies are callables that return Optional[RejectionReason]. They
may be scoped to a set of command types. If any policy rejects, the
command is REJECTED with the first rejection reason. A policy that
raises ValidationError rejects with VALIDATION_FAILED.
"""

from __future__ import annotations

import logging
from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple

from core.commands.base import Command
from core.commands.outcomes import CommandOutcome
from core.commands.rejection import RejectionReason, ReasonCode
from core.errors import ValidationError
from core.time.clock import Clock, get_default_clock

logger = logging.getLogger("backoffice.commands")


# A policy is a callable:
#   (Command) → Optional[RejectionReason]
#   Returns None if policy passes, RejectionReason if it rejects.
PolicyEvaluator = Callable[[Command], Optional[RejectionReason]]


def _policy_name(policy: PolicyEvaluator) -> str:
    return getattr(policy, "__qualname__", None) or type(policy).__name__


class CommandDispatcher:
    """
    Evaluate a command through its policies.

    Usage:
        dispatcher = CommandDispatcher(clock=clock)
        dispatcher.register_policy(
            ProductExistsPolicy(store),
            command_types={"inventory.stock.move.request"},
        )

        outcome = dispatcher.dispatch(command)

    Policies are evaluated in registration order.
    First rejection wins; remaining policies are skipped.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock
        self._policies: List[Tuple[PolicyEvaluator, Optional[FrozenSet[str]]]] = []

    @property
    def clock(self) -> Clock:
        return self._clock or get_default_clock()

    def register_policy(
        self,
        policy: PolicyEvaluator,
        command_types: Optional[Iterable[str]] = None,
    ) -> None:
        """
        Register a policy evaluator.

        command_types=None applies the policy to every command.
        """
        if not callable(policy):
            raise TypeError(
                f"Policy must be callable, got {type(policy).__name__}."
            )
        scope = frozenset(command_types) if command_types is not None else None
        self._policies.append((policy, scope))
        logger.debug(f"Policy registered: {_policy_name(policy)}")

    def policies_for(self, command_type: str) -> List[PolicyEvaluator]:
        return [
            policy for policy, scope in self._policies
            if scope is None or command_type in scope
        ]

    # ══════════════════════════════════════════════════════════
    # DISPATCH
    # ══════════════════════════════════════════════════════════

    def dispatch(self, command: Command) -> CommandOutcome:
        """
        Evaluate command and produce outcome.

        Returns:
            CommandOutcome, never None, never ambiguous.
        """
        now = self.clock.now_utc()

        for policy in self.policies_for(command.command_type):
            try:
                rejection = policy(command)
            except ValidationError as exc:
                rejection = RejectionReason(
                    code=ReasonCode.VALIDATION_FAILED,
                    message=str(exc),
                    policy_name=_policy_name(policy),
                )

            if rejection is None:
                continue

            if not isinstance(rejection, RejectionReason):
                raise TypeError(
                    f"Policy must return RejectionReason or None, "
                    f"got {type(rejection).__name__}."
                )

            log = logger.warning if rejection.code == ReasonCode.NOT_FOUND else logger.info
            log(
                f"Command {command.command_id} ({command.command_type}) "
                f"rejected by policy '{rejection.policy_name}': "
                f"[{rejection.code}] {rejection.message}"
            )
            return CommandOutcome.rejected(command.command_id, rejection, now)

        logger.debug(f"Command {command.command_id} ACCEPTED")
        return CommandOutcome.accepted(command.command_id, now)
