"""
Utility functions for the chat API.
"""

import json
import logging
from typing import Any, Optional

from fastapi import Request

logger = logging.getLogger(__name__)


async def read_json_body(request: Request) -> Optional[Any]:
    """
    Read and decode the JSON body of a request.

    Args:
        request: Incoming FastAPI request

    Returns:
        The decoded body, or None if the body is empty or not valid JSON
    """
    raw_body = await request.body()
    logger.debug(f"Request body size: {len(raw_body)} bytes")

    if not raw_body:
        return None

    try:
        return json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.debug(f"Request body is not valid JSON: {e}")
        return None
