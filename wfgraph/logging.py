from __future__ import annotations

import copy
import json
import sys
import time
from typing import Any, Dict, Optional

from loguru import logger


# Keys redacted before a submitted workflow reaches the audit log.
# Node parameters are free-form and routinely carry credentials.
SENSITIVE_FIELDS = {
	"password",
	"api_key",
	"apiKey",
	"secret",
	"token",
	"accessToken",
	"refreshToken",
	"privateKey",
	"clientSecret",
	"credentials",
	"authorization",
	"Authorization",
}

MAX_SANITIZE_DEPTH = 10


def _sanitize_dict(obj: Any, depth: int = 0) -> Any:
	"""
	Recursively redact sensitive keys from a workflow payload.

	Args:
		obj: The object to sanitize (dict, list, or primitive)
		depth: Current recursion depth

	Returns:
		A sanitized copy of the object
	"""
	if depth > MAX_SANITIZE_DEPTH:
		return "[MAX_DEPTH_EXCEEDED]"

	if isinstance(obj, dict):
		return {
			key: "[REDACTED]" if key in SENSITIVE_FIELDS else _sanitize_dict(value, depth + 1)
			for key, value in obj.items()
		}
	elif isinstance(obj, list):
		return [_sanitize_dict(item, depth + 1) for item in obj]
	else:
		return obj


def configure_logging(level: str = "info", audit_log_path: Optional[str] = None) -> None:
	logger.remove()
	logger.add(sys.stderr, level=level.upper(), serialize=True, enqueue=True)
	if audit_log_path:
		# audit records are flagged through logger.bind(audit=True)
		logger.add(
			audit_log_path,
			level=level.upper(),
			serialize=True,
			enqueue=True,
			filter=lambda record: record["extra"].get("audit", False),
		)


def audit_log(event: str, actor: str, details: Dict[str, Any], status: str = "ok") -> None:
	"""
	Write one audit record with sensitive values redacted.

	Args:
		event: The event name (e.g., "validate_workflow")
		actor: Which surface handled the request ("mcp" or "http")
		details: Event details; sanitized before logging
		status: Outcome, "ok" or "invalid"
	"""
	sanitized_details = _sanitize_dict(copy.deepcopy(details))

	logger.bind(audit=True).info(
		json.dumps(
			{
				"event": event,
				"actor": actor,
				"status": status,
				"details": sanitized_details,
				"timestamp": int(time.time() * 1000),
			},
			default=str,
		)
	)
