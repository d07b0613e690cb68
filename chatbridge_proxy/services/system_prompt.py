# -*- coding: utf-8 -*-
"""
System instruction asset for the Gemini variant.

The instruction text (persona, identity-disclosure rules, answer formatting) is
shipped as package data in `assets/system_instruction.txt` and is treated as an
opaque string. `SYSTEM_INSTRUCTION_FILE` can point at a replacement file.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Optional

logger = logging.getLogger("ChatBridge.Services.SystemPrompt")

_ASSET_PACKAGE = "chatbridge_proxy.assets"
_ASSET_NAME = "system_instruction.txt"


@lru_cache(maxsize=4)
def load_system_instruction(override_path: Optional[str] = None) -> str:
    if override_path:
        path = Path(override_path)
        logger.info(f"Loading system instruction from {path}")
        return path.read_text(encoding="utf-8").strip()
    return resources.files(_ASSET_PACKAGE).joinpath(_ASSET_NAME).read_text(encoding="utf-8").strip()
