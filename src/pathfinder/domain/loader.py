from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pathfinder.domain.models import SymbolModel

logger = logging.getLogger(__name__)


class SymbolModelError(ValueError):
    """The extractor dump could not be turned into a SymbolModel."""


def parse_symbol_model(payload: Any) -> SymbolModel:
    """
    Accepts either {"classes": [...]} or a bare list of class records.
    """
    if isinstance(payload, list):
        payload = {"classes": payload}
    if not isinstance(payload, dict):
        raise SymbolModelError(f"expected an object or a list, got {type(payload).__name__}")
    try:
        return SymbolModel.model_validate(payload)
    except ValidationError as e:
        raise SymbolModelError(f"invalid symbol model: {e}") from e


def load_symbol_model(path: Path) -> SymbolModel:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SymbolModelError(f"cannot read {path}: {e}") from e

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise SymbolModelError(f"{path} is not valid JSON: {e}") from e

    model = parse_symbol_model(payload)
    logger.info("Loaded %d class declarations from %s", len(model.classes), path)
    return model
