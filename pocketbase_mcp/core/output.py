# =============================================================================
# core/output.py  —  Tool output formatting
# =============================================================================
#
# Every tool returns a STRING: the envelope rendered either as pretty JSON
# (default) or as YAML when MCP_OUTPUT_FORMAT=yaml.  YAML drops the braces,
# quotes and commas, which noticeably shrinks large record lists in the
# model's context window.
#
# JSON is the universal fallback: if YAML encoding fails for any value,
# the failure is logged and the JSON rendering is returned instead.
# =============================================================================

import json
import logging
from typing import Any

import yaml

from pocketbase_mcp.core.config import get_output_format

logger = logging.getLogger(__name__)


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def to_yaml(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)


def format_output(data: Any) -> str:
    """Render ``data`` in the configured output format."""
    if get_output_format() == "yaml":
        try:
            return to_yaml(data)
        except yaml.YAMLError as exc:
            logger.error("YAML encoding failed, falling back to JSON: %s", exc)
    return to_json(data)
