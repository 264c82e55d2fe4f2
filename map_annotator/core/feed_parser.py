"""Live feed polling and message parsing.

The feed endpoint serves JSON text messages shaped like {"nodes": [...]}. Each raw node
carries userId, longitude, latitude, snr, rssi, distance, hopCount and
connectedNodeIds. Malformed messages and nodes are logged and dropped; the
map simply shows no overlay for that update.
"""

import json
import logging
from typing import Any

import requests

from map_annotator.constants import FeedConfig
from map_annotator.model.network_overlay import NodeRecord

logger = logging.getLogger(__name__)


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)


def node_from_raw(raw: dict[str, Any]) -> NodeRecord:
    """Convert one raw feed node into a NodeRecord.

    Raises:
        KeyError: If a required field is missing.
        TypeError, ValueError: If a field has the wrong type.
    """
    hop_count = raw.get("hopCount")
    return NodeRecord(
        id=str(raw["userId"]),
        position=(float(raw["longitude"]), float(raw["latitude"])),
        signal_metric=float(raw["snr"]),
        connections=tuple(str(c) for c in raw.get("connectedNodeIds") or ()),
        rssi=_optional_float(raw.get("rssi")),
        distance=_optional_float(raw.get("distance")),
        hop_count=None if hop_count is None else int(hop_count),
    )


def parse_nodes(payload: Any) -> list[NodeRecord] | None:
    """Parse the node list from a decoded payload.

    Returns None when the payload has no node sequence.
    """
    if not isinstance(payload, dict):
        return None
    raw_nodes = payload.get(FeedConfig.NODES_KEY)
    if not isinstance(raw_nodes, list):
        return None

    records = []
    for raw in raw_nodes:
        if not isinstance(raw, dict):
            logger.warning(f"[FEED] Skipping non-object node {raw!r}")
            continue
        try:
            records.append(node_from_raw(raw=raw))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"[FEED] Skipping malformed node {raw!r}: {e}")
    return records


def parse_feed_message(text: str | bytes) -> list[NodeRecord] | None:
    """Decode a feed text message into node records, or None if unusable."""
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"[FEED] Ignoring non-JSON message: {e}")
        return None
    records = parse_nodes(payload=payload)
    if records is None:
        logger.debug("[FEED] Message carried no node list")
    return records


def fetch_feed_snapshot(
    url: str = FeedConfig.DEFAULT_URL, timeout: float = FeedConfig.TIMEOUT_S
) -> list[NodeRecord] | None:
    """Poll the feed endpoint once and parse its node list.

    Raises:
        requests.RequestException: If the endpoint is unreachable or errors.
    """
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    records = parse_feed_message(text=response.text)
    logger.info(f"[FEED] Polled {url}: {0 if records is None else len(records)} node(s)")
    return records
