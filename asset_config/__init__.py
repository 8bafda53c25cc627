"""
asset_config -- single public entrypoint for approval-flow configuration.

Responsibility:
    ``get_approval_flows()`` is the only way runtime code obtains approval
    chains.  It loads the YAML file, compiles it, and returns an
    ``ApprovalFlowSet``.

Architecture position:
    Configuration -- sits above ``asset_kernel`` and below
    ``asset_modules``.  The kernel MUST NEVER import from this package.

Failure modes:
    - ``FileNotFoundError`` / ``yaml.YAMLError`` from the loader.
    - ``FlowConfigError`` when validation fails.

Audit relevance:
    Every call emits an ``ASSET_CONFIG_TRACE`` log record with the config
    id, version, checksum and flow codes, tying each submitted request's
    approval chain to the exact configuration that produced it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from asset_config.compiler import (
    ApprovalFlowSet,
    FlowConfigError,
    FlowConfigIssue,
    compile_approval_flows,
)
from asset_config.loader import load_yaml_file, parse_approval_flow_config

_logger = logging.getLogger("asset_kernel.config")

DEFAULT_FLOWS_PATH = Path(__file__).parent / "defaults" / "approval_flows.yaml"


def get_approval_flows(path: Path | str | None = None) -> ApprovalFlowSet:
    """Load and compile approval flows (defaults to the bundled file)."""
    source = Path(path) if path is not None else DEFAULT_FLOWS_PATH
    config = parse_approval_flow_config(load_yaml_file(source))
    flow_set = compile_approval_flows(config)

    _logger.info(
        "ASSET_CONFIG_TRACE",
        extra={
            "trace_type": "ASSET_CONFIG_TRACE",
            "config_id": flow_set.config_id,
            "config_version": flow_set.version,
            "checksum": flow_set.checksum,
            "flow_codes": [f.flow_code for f in flow_set.flows],
            "source": str(source),
        },
    )
    return flow_set


__all__ = [
    "ApprovalFlowSet",
    "DEFAULT_FLOWS_PATH",
    "FlowConfigError",
    "FlowConfigIssue",
    "compile_approval_flows",
    "get_approval_flows",
]
