import decimal
import logging
import os
from typing import Optional
from typing_extensions import TypedDict

from dotenv import find_dotenv, load_dotenv

from pm_pricing.engine.numeric import DEFAULT_PRECISION, DEFAULT_ROUNDING, configure_context

logger = logging.getLogger(__name__)

# Below this the 1e-9 fixed-point slack stops dominating rounding error on
# 18-decimal collateral amounts.
MIN_PRECISION = 28

ROUNDING_MODES = {
    'ROUND_CEILING', 'ROUND_DOWN', 'ROUND_FLOOR', 'ROUND_HALF_DOWN',
    'ROUND_HALF_EVEN', 'ROUND_HALF_UP', 'ROUND_UP', 'ROUND_05UP',
}

ENV_PRECISION = 'LMSR_DECIMAL_PRECISION'
ENV_ROUNDING = 'LMSR_ROUNDING'
ENV_STABILIZE_ALL = 'LMSR_STABILIZE_ALL'


class PricingConfig(TypedDict):
    precision: int
    rounding: str
    stabilize_all: bool  # shift log-sum-exp in cost/profit/inverse too; breaks bit-compatibility


def get_default_pricing_config() -> PricingConfig:
    return PricingConfig(
        precision=DEFAULT_PRECISION,
        rounding=DEFAULT_ROUNDING,
        stabilize_all=False,
    )


def load_env() -> dict[str, str]:
    # Try to load from .env file (for local development)
    load_dotenv(find_dotenv(usecwd=True))

    env_vars = {}
    for key in [ENV_PRECISION, ENV_ROUNDING, ENV_STABILIZE_ALL]:
        value = os.getenv(key)
        if value is not None and value.strip():
            env_vars[key] = value.strip()
    return env_vars


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"Invalid boolean for {key}: {value!r}")


def load_pricing_config() -> PricingConfig:
    """Defaults overlaid with LMSR_* environment variables."""
    config = get_default_pricing_config()
    env = load_env()

    if ENV_PRECISION in env:
        try:
            config['precision'] = int(env[ENV_PRECISION])
        except ValueError:
            raise ValueError(f"Invalid integer for {ENV_PRECISION}: {env[ENV_PRECISION]!r}") from None
    if ENV_ROUNDING in env:
        config['rounding'] = env[ENV_ROUNDING].upper()
    if ENV_STABILIZE_ALL in env:
        config['stabilize_all'] = _parse_bool(ENV_STABILIZE_ALL, env[ENV_STABILIZE_ALL])

    validate_pricing_config(config)
    return config


def validate_pricing_config(config: PricingConfig) -> None:
    if isinstance(config['precision'], bool) or not isinstance(config['precision'], int):
        raise ValueError("precision must be an int")
    if config['precision'] < MIN_PRECISION:
        raise ValueError(f"precision must be >= {MIN_PRECISION}")
    if config['rounding'] not in ROUNDING_MODES:
        raise ValueError(f"rounding must be one of {sorted(ROUNDING_MODES)}")
    if not isinstance(config['stabilize_all'], bool):
        raise ValueError("stabilize_all must be a bool")


_active_config: PricingConfig = get_default_pricing_config()


def apply_pricing_config(config: Optional[PricingConfig] = None) -> PricingConfig:
    """
    Installs config (or the environment-derived one) as the process-wide
    pricing context. Call at startup, before quoting begins.
    """
    global _active_config
    if config is None:
        config = load_pricing_config()
    validate_pricing_config(config)

    configure_context(config['precision'], getattr(decimal, config['rounding']))
    _active_config = PricingConfig(**config)
    logger.info(
        f"Pricing context set: precision={config['precision']}, rounding={config['rounding']}, "
        f"stabilize_all={config['stabilize_all']}"
    )
    return PricingConfig(**_active_config)


def get_active_pricing_config() -> PricingConfig:
    return PricingConfig(**_active_config)
