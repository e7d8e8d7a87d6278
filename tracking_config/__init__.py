"""
tracking_config -- YAML-driven production-line configuration.

Responsibility:
    Builds a ``StepConfigRegistry`` from the YAML fragments in a
    configuration directory.  Each ``*.yaml`` file describes one
    production-line type: its ordered steps, serial prefixes, table columns
    and unit fields.

Architecture position:
    Configuration -- above ``tracking_kernel``, below ``tracking_services``.
    The kernel never imports this package.

Failure modes:
    - ``FileNotFoundError`` -- configuration directory missing or empty.
    - ``yaml.YAMLError`` / ``KeyError`` / ``ValueError`` -- malformed fragment.
    - ``InvalidStepConfigError`` -- step orders not dense 1..N or duplicate ids.
    - ``DuplicateConfigError`` -- two fragments declare the same type.

Every successful load emits a ``tracking_config_loaded`` log entry per
fragment carrying the type, step count and checksum.
"""

from __future__ import annotations

from pathlib import Path

from tracking_config.loader import load_project_type_file
from tracking_kernel.domain.step_registry import StepConfigRegistry
from tracking_kernel.logging_config import get_logger

logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def load_registry(config_dir: Path | None = None) -> StepConfigRegistry:
    """Load every fragment in ``config_dir`` into a new registry.

    Args:
        config_dir: Directory of ``*.yaml`` fragments.  Defaults to
            tracking_config/sets/.

    Raises:
        FileNotFoundError: if the directory is missing or holds no fragments.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    if not sets_dir.is_dir():
        raise FileNotFoundError(f"Configuration directory not found: {sets_dir}")

    paths = sorted(sets_dir.glob("*.yaml"))
    if not paths:
        raise FileNotFoundError(f"No configuration fragments in {sets_dir}")

    registry = StepConfigRegistry()
    for path in paths:
        config, checksum = load_project_type_file(path)
        registry.register(config)
        logger.info(
            "tracking_config_loaded",
            extra={
                "type_id": config.type_id.value,
                "step_count": len(config.steps),
                "checksum": checksum,
                "source": path.name,
            },
        )
    return registry


def get_default_registry() -> StepConfigRegistry:
    """Registry of the production-line types shipped with the package."""
    return load_registry(_DEFAULT_CONFIG_DIR)


__all__ = ["get_default_registry", "load_registry"]
