from __future__ import annotations

import os
from dataclasses import dataclass
from typing import FrozenSet, Optional


DEFAULT_TRIGGER_TYPES: FrozenSet[str] = frozenset(
	{
		"manual-trigger",
		"webhook-trigger",
		"schedule-trigger",
		"event-trigger",
	}
)


def _parse_trigger_types(raw: Optional[str]) -> FrozenSet[str]:
	if not raw:
		return DEFAULT_TRIGGER_TYPES
	parsed = frozenset(item.strip() for item in raw.split(",") if item.strip())
	return parsed or DEFAULT_TRIGGER_TYPES


@dataclass(frozen=True)
class Settings:
	"""Environment-driven configuration for the validator surfaces."""

	# validation
	trigger_types: FrozenSet[str] = DEFAULT_TRIGGER_TYPES
	unreachable_as_error: bool = False

	# ops
	log_level: str = "info"
	audit_log_path: Optional[str] = None

	@staticmethod
	def load_from_env() -> "Settings":
		trigger_types = _parse_trigger_types(os.getenv("WORKFLOW_TRIGGER_TYPES"))
		unreachable_as_error = os.getenv("UNREACHABLE_AS_ERROR", "false").lower() == "true"
		log_level = os.getenv("LOG_LEVEL", "info")
		audit_log_path = os.getenv("AUDIT_LOG_PATH")

		return Settings(
			trigger_types=trigger_types,
			unreachable_as_error=unreachable_as_error,
			log_level=log_level,
			audit_log_path=audit_log_path,
		)
