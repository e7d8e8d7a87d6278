"""StepConfigRegistry -- Production-line type to step configuration lookup."""

from tracking_kernel.domain.types import ProductionLineType, ProjectTypeConfig
from tracking_kernel.exceptions import (
    ConfigNotFoundError,
    DuplicateConfigError,
    InvalidStepConfigError,
)
from tracking_kernel.logging_config import get_logger

logger = get_logger("domain.step_registry")


def validate_step_config(config: ProjectTypeConfig) -> None:
    """Check step ordering and identity rules for one configuration.

    Raises:
        InvalidStepConfigError: empty sequence, duplicate step ids, or
            orders that are not exactly 1..N.
    """
    type_id = config.type_id.value
    if not config.steps:
        raise InvalidStepConfigError(type_id, "no steps defined")

    ids = [s.step_id for s in config.steps]
    dupes = sorted({i for i in ids if ids.count(i) > 1})
    if dupes:
        raise InvalidStepConfigError(type_id, f"duplicate step ids {dupes}")

    orders = sorted(s.order for s in config.steps)
    expected = list(range(1, len(config.steps) + 1))
    if orders != expected:
        raise InvalidStepConfigError(
            type_id, f"step orders {orders} are not the dense sequence 1..{len(expected)}"
        )


class StepConfigRegistry:
    """Registry of immutable step configurations keyed by production-line type.

    Lookups have no side effects.  Configurations are validated once at
    registration and then handed out unchanged for the registry's lifetime.
    """

    def __init__(self, configs: tuple[ProjectTypeConfig, ...] = ()):
        self._configs: dict[ProductionLineType, ProjectTypeConfig] = {}
        for config in configs:
            self.register(config)

    def register(self, config: ProjectTypeConfig) -> None:
        """Register a configuration after validating its step sequence."""
        validate_step_config(config)
        if config.type_id in self._configs:
            raise DuplicateConfigError(config.type_id.value)
        self._configs[config.type_id] = config
        logger.info(
            "step_config_registered",
            extra={
                "type_id": config.type_id.value,
                "step_count": len(config.steps),
            },
        )

    def lookup(self, type_id: str | ProductionLineType) -> ProjectTypeConfig:
        """Return the configuration for a type key.

        Raises:
            ConfigNotFoundError: if the key names no supported or no
                registered production-line type.
        """
        try:
            key = ProductionLineType.parse(type_id)
        except ValueError:
            raise ConfigNotFoundError(str(type_id), self.types()) from None
        config = self._configs.get(key)
        if config is None:
            raise ConfigNotFoundError(key.value, self.types())
        return config

    def types(self) -> tuple[str, ...]:
        """Registered type keys, sorted."""
        return tuple(sorted(t.value for t in self._configs))

    def __contains__(self, type_id: object) -> bool:
        try:
            return ProductionLineType.parse(type_id) in self._configs  # type: ignore[arg-type]
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._configs)
