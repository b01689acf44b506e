"""Model tiers and friendly model names."""

import logging

from src.config import settings

logger = logging.getLogger(__name__)

MODEL_MAP: dict[str, str] = {
    "haiku": "claude-haiku-4-5-20251001",
    "sonnet": "claude-sonnet-4-5-20250929",
    "opus": "claude-opus-4-6-20250612",
}

# Reverse lookup: full model string → friendly name
FRIENDLY_NAMES: dict[str, str] = {v: k for k, v in MODEL_MAP.items()}

SMALL = "small"
LARGE = "large"


def _resolve(name_or_id: str) -> str | None:
    """Resolve a friendly name or full model ID. Returns full ID or None."""
    if name_or_id in MODEL_MAP:
        return MODEL_MAP[name_or_id]
    if name_or_id in FRIENDLY_NAMES:
        return name_or_id
    return None


def friendly(model_id: str) -> str:
    """Return the friendly name for a model ID, or the ID itself."""
    return FRIENDLY_NAMES.get(model_id, model_id)


class ModelManager:
    """Resolves a model tier (``small`` / ``large``) to a concrete model ID."""

    def __init__(self, small: str | None = None, large: str | None = None) -> None:
        self._tiers = {
            SMALL: _resolve(small or settings.small_model) or MODEL_MAP["haiku"],
            LARGE: _resolve(large or settings.large_model) or MODEL_MAP["sonnet"],
        }
        logger.info(
            "Models: small=%s, large=%s",
            friendly(self._tiers[SMALL]),
            friendly(self._tiers[LARGE]),
        )

    def model_for(self, tier: str) -> str:
        """Return the model ID for *tier*; unknown tiers fall back to ``large``."""
        return self._tiers.get(tier, self._tiers[LARGE])
