import re
from pathlib import Path
from typing import List

from agent_audit.common.core.constants import BUNDLE_NAME_INFIX, BUNDLE_NAME_PREFIX
from agent_audit.common.core.exceptions import UnrecognizedBundleNameError
from agent_audit.common.core.telemetry import get_logger
from agent_audit.packages.audit.models.summary import AgentBundle

logger = get_logger(__name__)

# The slug is greedy so slugs containing "-audit-" still resolve to the last run id
_BUNDLE_NAME_PATTERN = re.compile(
    rf"^{re.escape(BUNDLE_NAME_PREFIX)}(?P<slug>.+){re.escape(BUNDLE_NAME_INFIX)}(?P<run_id>\d+)$"
)


def parse_bundle_name(name: str) -> AgentBundle:
    """
    Map a bundle directory name to its agent slug and run id.

    Raises:
        UnrecognizedBundleNameError: If the name does not follow
            ``agent-{slug}-audit-{run_id}``
    """
    match = _BUNDLE_NAME_PATTERN.match(name)
    if not match:
        raise UnrecognizedBundleNameError(name)
    return AgentBundle(agent_slug=match.group("slug"), run_id=match.group("run_id"))


def discover_bundles(bundles_dir: str | Path) -> List[AgentBundle]:
    """List agent bundles in a directory, in name order.

    Entries that are not directories or not named like bundles are skipped.
    A missing directory has no bundles.
    """
    directory = Path(bundles_dir)
    if not directory.is_dir():
        logger.info(f"Bundles directory {directory} does not exist")
        return []

    bundles = []
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if not entry.is_dir():
            continue
        try:
            bundle = parse_bundle_name(entry.name)
        except UnrecognizedBundleNameError:
            logger.debug(f"Skipping {entry.name}: not an agent bundle")
            continue
        bundles.append(bundle.model_copy(update={"path": entry}))
    return bundles
