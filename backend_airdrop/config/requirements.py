"""
Eligibility requirements loading.

Thresholds come from AIRDROP_* environment variables, optionally overridden
by a JSON object at AIRDROP_REQUIREMENTS_PATH. Both are re-read on every
call so operators can change the rules without a restart. Malformed values
raise RequirementsConfigError instead of being silently replaced.
"""

from __future__ import annotations

import json
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping

from backend_airdrop.analytics.models import EligibilityRequirements
from backend_airdrop.config.env import env_bool, env_int, env_str, load_airdrop_env
from backend_airdrop.core.exceptions import RequirementsConfigError

_DEFAULTS = EligibilityRequirements()
_FIELD_NAMES = frozenset(f.name for f in fields(EligibilityRequirements))


def requirements_from_mapping(
    data: Mapping[str, Any],
    base: EligibilityRequirements | None = None,
) -> EligibilityRequirements:
    """Overlay `data` onto `base` (defaults when None). Unknown keys are rejected."""
    unknown = sorted(set(data) - _FIELD_NAMES)
    if unknown:
        raise RequirementsConfigError(f"Unknown requirement keys: {', '.join(unknown)}")
    values = (base or _DEFAULTS).as_dict()
    values.update(data)
    if isinstance(values.get("min_token_balance"), (int, float)) and not isinstance(
        values["min_token_balance"], bool
    ):
        values["min_token_balance"] = str(values["min_token_balance"])
    return EligibilityRequirements(**values)


def _requirements_from_env() -> EligibilityRequirements:
    try:
        return EligibilityRequirements(
            min_reference_transactions=env_int("AIRDROP_MIN_REFERENCE_TXS", _DEFAULTS.min_reference_transactions),
            min_target_transactions=env_int("AIRDROP_MIN_TARGET_TXS", _DEFAULTS.min_target_transactions),
            min_token_balance=env_str("AIRDROP_MIN_TOKEN_BALANCE", _DEFAULTS.min_token_balance),
            require_nft=env_bool("AIRDROP_REQUIRE_NFT", _DEFAULTS.require_nft),
            require_early_adopter=env_bool("AIRDROP_REQUIRE_EARLY_ADOPTER", _DEFAULTS.require_early_adopter),
            early_adopter_cutoff=env_int("AIRDROP_EARLY_ADOPTER_CUTOFF", _DEFAULTS.early_adopter_cutoff),
            reference_chain_name=env_str("AIRDROP_REFERENCE_CHAIN_NAME", _DEFAULTS.reference_chain_name),
            target_chain_name=env_str("AIRDROP_TARGET_CHAIN_NAME", _DEFAULTS.target_chain_name),
            token_symbol=env_str("AIRDROP_TOKEN_SYMBOL", _DEFAULTS.token_symbol),
            nft_name=env_str("AIRDROP_NFT_NAME", _DEFAULTS.nft_name),
        )
    except RequirementsConfigError:
        raise
    except ValueError as e:
        raise RequirementsConfigError(str(e)) from e


def load_requirements(path: Path | str | None = None) -> EligibilityRequirements:
    """
    Return the requirements currently in force.

    Order: defaults < AIRDROP_* env < JSON file (path argument or AIRDROP_REQUIREMENTS_PATH).
    """
    load_airdrop_env()
    requirements = _requirements_from_env()
    raw_path = path if path is not None else (os.getenv("AIRDROP_REQUIREMENTS_PATH") or "").strip()
    if not raw_path:
        return requirements
    file_path = Path(raw_path)
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise RequirementsConfigError(f"Cannot read requirements file {file_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise RequirementsConfigError(f"Requirements file {file_path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise RequirementsConfigError("Requirements file must contain a JSON object")
    return requirements_from_mapping(data, base=requirements)
