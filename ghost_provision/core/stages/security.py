"""
Firewall baseline — deny everything except loopback.

Leaves the link state alone; taking interfaces down is the network
isolation controller's job once verification has run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ghost_provision.core.models.stage import StageResult
from ghost_provision.core.stages.common import ensure, require_tool, stage_action

if TYPE_CHECKING:
    from ghost_provision.core.context import RunContext

FIREWALL_RULES: tuple[tuple[str, ...], ...] = (
    ("ufw", "--force", "enable"),
    ("ufw", "default", "deny", "incoming"),
    ("ufw", "default", "deny", "outgoing"),
    ("ufw", "allow", "from", "127.0.0.1"),
    ("ufw", "allow", "to", "127.0.0.1"),
)


@stage_action
def configure_firewall(ctx: RunContext) -> StageResult:
    require_tool(ctx, "ufw")
    for rule in FIREWALL_RULES:
        ensure(ctx.runner.run(list(rule), timeout=60), " ".join(rule))
    return StageResult.success("Firewall enabled, loopback only")
