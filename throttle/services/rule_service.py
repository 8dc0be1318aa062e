"""Rule resolution.

The engine treats whatever a rule service returns (or raises) as
authoritative. Whether an unknown API gets a default rule or is rejected as
not configured is a policy of the rule service, chosen at construction.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Mapping

from throttle.core.config import RuleSettings
from throttle.core.errors import RuleNotFoundAppError
from throttle.schemas.rule import Rule

logger = logging.getLogger(__name__)


class AbstractRuleService(ABC):
    """Resolves an API identifier to its rule."""

    @abstractmethod
    def get_rule(self, api: str) -> Rule:
        """Return the rule governing ``api``.

        Raises:
            RuleNotFoundAppError: If ``api`` is not configured and the service
                has no default rule.
        """
        raise NotImplementedError


class StaticRuleService(AbstractRuleService):
    """In-memory rule table with an optional default rule.

    Rules can be replaced at runtime; the next lookup sees the new value.
    """

    def __init__(self, rules: Mapping[str, Rule] | None = None, *, default: Rule | None = None) -> None:
        self._rules: dict[str, Rule] = dict(rules or {})
        self._default = default

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"StaticRuleService(apis={sorted(self._rules)}, default={self._default!r})"

    def get_rule(self, api: str) -> Rule:
        rule = self._rules.get(api)
        if rule is not None:
            return rule
        if self._default is not None:
            return self._default

        logger.error("rule.not_found", extra={"api": api})
        raise RuleNotFoundAppError(
            code="rule_not_found",
            message=f"No rate limit rule configured for API '{api}'",
            details={"api": api, "hint": "Add the API to RULE_APIS or set RULE_UNKNOWN_API_POLICY=default"},
        )

    def set_rule(self, api: str, rule: Rule) -> None:
        """Install or replace the rule for ``api``."""
        self._rules[api] = rule
        logger.info(
            "rule.updated",
            extra={
                "api": api,
                "window_s": rule.window_seconds,
                "quota": rule.quota,
                "algorithm": rule.algorithm.value,
            },
        )

    def remove_rule(self, api: str) -> None:
        """Forget the rule for ``api``; later lookups fall back to the default."""
        self._rules.pop(api, None)


def build_rule_service(rule_settings: RuleSettings) -> StaticRuleService:
    """Build a rule service from settings.

    Args:
        rule_settings: Rule table and unknown-API policy.

    Returns:
        StaticRuleService: Service applying the configured policy.

    Raises:
        ConfigurationAppError: If the default rule is invalid.
    """

    default = rule_settings.default_rule() if rule_settings.unknown_api_policy == "default" else None
    return StaticRuleService(rule_settings.apis, default=default)
