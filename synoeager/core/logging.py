"""Structured logging for Syno-Eager."""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from synoeager.core.security import redact_sensitive_info


class StructuredLogger:
    """Structured JSON logger for dictionary API requests."""

    def __init__(self, name: str = "synoeager"):
        self.logger = logging.getLogger(name)

    def log_request(
        self,
        request_id: str,
        endpoint: str,
        outcome: str = "success",  # "success", "rejected" or "error"
        status: int = 200,
        error_code: Optional[str] = None,
        upstream_status: Optional[int] = None,
        latency_ms: int = 0,
        model: Optional[str] = None,
        client_ip: Optional[str] = None,
        level: str = "INFO",
    ):
        """Log a request summary as structured JSON.

        Args:
            request_id: Unique request identifier
            endpoint: Endpoint name ("lookup" or "connotation")
            outcome: "success", "rejected" (handled before upstream) or "error"
            status: HTTP status returned to the client
            error_code: Error code if outcome is not "success"
            upstream_status: Upstream HTTP status code, when the gateway failed
            latency_ms: Request latency in milliseconds
            model: Upstream model identifier, once the call was attempted
            client_ip: Client IP used for rate limiting
            level: Log level (INFO, WARNING, ERROR)
        """
        log_entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "request_id": request_id,
            "endpoint": endpoint,
            "outcome": outcome,
            "status": status,
            "latency_ms": latency_ms,
        }

        if model:
            log_entry["model"] = model
        if client_ip:
            log_entry["client_ip"] = client_ip

        if outcome != "success":
            if error_code:
                log_entry["error_code"] = error_code
            if upstream_status:
                log_entry["upstream_status"] = upstream_status

        log_message = json.dumps(redact_sensitive_info(log_entry), ensure_ascii=False)

        if level == "ERROR":
            self.logger.error(log_message)
        elif level == "WARNING":
            self.logger.warning(log_message)
        else:
            self.logger.info(log_message)


# Global structured logger instance
structured_logger = StructuredLogger()
