"""
Calculator configuration.

Configuration is read from a YAML or JSON file, or from environment
variables:

    XPARSER_NULL_POLICY - drop_null, null_as_zero or throw_error
    XPARSER_INTERNATIONAL_FORMAT - swap ',' and '.' before tokenizing (true/false)
    XPARSER_MAX_TREE_NODES - maximum number of expression tree nodes
    XPARSER_MAX_NESTING_DEPTH - maximum nesting of parentheses and calls (1-128)
    XPARSER_LOG_LEVEL - log level (debug, info, warning, error)
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator

from .evaluator import NullHandling, resolve_null_policy
from .limits import DEFAULT_EXPRESSION_LIMITS, MAX_NESTING_DEPTH_CEILING, ExpressionLimits

ENV_VAR_LOG_LEVEL = "XPARSER_LOG_LEVEL"
ENV_VAR_NULL_POLICY = "XPARSER_NULL_POLICY"
ENV_VAR_INTERNATIONAL_FORMAT = "XPARSER_INTERNATIONAL_FORMAT"
ENV_VAR_MAX_TREE_NODES = "XPARSER_MAX_TREE_NODES"
ENV_VAR_MAX_NESTING_DEPTH = "XPARSER_MAX_NESTING_DEPTH"

_TRUE_VALUES = ("1", "true", "yes", "on")

logger = logging.getLogger("xparser.config")


class CalculatorConfig(BaseModel):
    """Settings shared by every calculation of one Calculator."""

    null_policy: NullHandling = Field(
        NullHandling.NULL_AS_ZERO, description="Default policy for missing operands"
    )
    international_format: bool = Field(
        False, description="Swap ',' and '.' before tokenizing"
    )
    max_expression_length: int = Field(
        DEFAULT_EXPRESSION_LIMITS.max_expression_length, gt=0
    )
    max_nesting_depth: int = Field(
        DEFAULT_EXPRESSION_LIMITS.max_nesting_depth, gt=0, le=MAX_NESTING_DEPTH_CEILING
    )
    max_tree_nodes: int = Field(DEFAULT_EXPRESSION_LIMITS.max_tree_nodes, gt=0)
    max_function_args: int = Field(DEFAULT_EXPRESSION_LIMITS.max_function_args, gt=0)

    model_config = {"extra": "forbid"}

    @field_validator("null_policy", mode="before")
    @classmethod
    def _coerce_null_policy(cls, value: Any) -> NullHandling:
        return resolve_null_policy(value)

    def to_limits(self) -> ExpressionLimits:
        return ExpressionLimits(
            max_expression_length=self.max_expression_length,
            max_nesting_depth=self.max_nesting_depth,
            max_tree_nodes=self.max_tree_nodes,
            max_function_args=self.max_function_args,
        )


def load_config(path: Union[str, Path]) -> CalculatorConfig:
    """
    Loads configuration from a ``.json`` file, or YAML for any other suffix.

    An empty file yields the defaults.
    """
    file_path = Path(path)
    content = file_path.read_text(encoding="utf-8")

    if file_path.suffix.lower() == ".json":
        data = json.loads(content) if content.strip() else {}
    else:
        data = yaml.safe_load(content) or {}

    config = CalculatorConfig.model_validate(data)
    logger.debug("config_loaded", extra={"path": str(file_path)})
    return config


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> CalculatorConfig:
    """Builds configuration from ``XPARSER_*`` environment variables."""
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if env.get(ENV_VAR_NULL_POLICY):
        data["null_policy"] = env[ENV_VAR_NULL_POLICY].strip().lower()
    if env.get(ENV_VAR_INTERNATIONAL_FORMAT):
        data["international_format"] = (
            env[ENV_VAR_INTERNATIONAL_FORMAT].strip().lower() in _TRUE_VALUES
        )
    if env.get(ENV_VAR_MAX_TREE_NODES):
        data["max_tree_nodes"] = env[ENV_VAR_MAX_TREE_NODES]
    if env.get(ENV_VAR_MAX_NESTING_DEPTH):
        data["max_nesting_depth"] = env[ENV_VAR_MAX_NESTING_DEPTH]

    return CalculatorConfig.model_validate(data)


def enable_logging(log_level: str = "warning") -> None:
    """Routes ``xparser`` log records to stderr at the given level."""
    level = log_level.upper()
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s"
    )
    logging.getLogger("xparser").setLevel(level)
