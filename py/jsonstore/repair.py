"""Best-effort repair of malformed store files."""

import json
import logging
import re
from typing import Any, Dict

from json_repair import repair_json

from .errors import RepairError

logger = logging.getLogger(__name__)

_EMPTY_OBJECT = re.compile(r'\s*\{\s*\}?\s*')


def repair(text: str) -> Dict[str, Any]:
    """Repair malformed JSON text into a document.

    Fixes what json_repair can fix (trailing commas, unquoted keys, single
    quotes, truncated structures, ...). The result must be a JSON object,
    and may only be empty when the text itself is an empty object.

    Args:
        text: Raw file contents

    Returns:
        The repaired document

    Raises:
        RepairError: If no JSON object can be recovered from the text
    """
    if '{' not in text:
        raise RepairError('no JSON object found')

    try:
        repaired = repair_json(text)
    except Exception as e:
        raise RepairError(f'json_repair failed: {e}') from e

    try:
        document = json.loads(repaired)
    except (TypeError, ValueError) as e:
        raise RepairError(f'repaired text is still invalid: {e}') from e

    if not isinstance(document, dict):
        raise RepairError(f'repaired text is a {type(document).__name__}, not an object')

    # json_repair turns stray braces ('}{', 'garbage {') into {}.
    if not document and _EMPTY_OBJECT.fullmatch(text) is None:
        raise RepairError('no keys could be recovered')

    logger.debug('Repaired %d chars into %d keys', len(text), len(document))
    return document
