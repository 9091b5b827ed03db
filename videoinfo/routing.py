"""
Legacy request parameter decoding.

Older clients smuggle the continuation token and depth inside the video id
path segment instead of the query string:

    <id>====token==i==<T>==p==depth==i==<D>
    <id>==p==token==i==<T>
    <id>&depth=<D>&token=<T>

Values found in the id override the query string ones.
"""
from typing import Optional, Tuple

from .utils.helpers import safe_int

PARAMS_MARKER = "===="
PAIR_SEPARATOR = "==p=="
KV_SEPARATOR = "==i=="


def parse_legacy_video_param(
    raw_id: str,
    token: Optional[str] = None,
    depth: Optional[str] = None,
) -> Tuple[str, Optional[str], int]:
    """
    Split a raw id path segment into (video_id, token, depth).

    Args:
        raw_id: Path segment as received
        token: Token from the query string, if any
        depth: Depth from the query string, if any

    Returns:
        Tuple of (video_id, token or None, depth as int; invalid depth -> 0)
    """
    video_id = raw_id
    custom = ""

    if PARAMS_MARKER in video_id:
        video_id, custom = video_id.split(PARAMS_MARKER, 1)
    elif PAIR_SEPARATOR in video_id:
        index = video_id.index(PAIR_SEPARATOR)
        custom = video_id[index + len(PAIR_SEPARATOR):]
        video_id = video_id[:index]
    elif "&" in video_id:
        parts = video_id.split("&")
        video_id = parts[0]
        for part in parts[1:]:
            if part.startswith("depth="):
                depth = part.split("=", 1)[1]
            elif part.startswith("token="):
                token = part.split("=", 1)[1]

    for pair in filter(None, custom.split(PAIR_SEPARATOR)):
        key, _, value = pair.partition(KV_SEPARATOR)
        if key == "token":
            token = value
        elif key == "depth":
            depth = value

    return video_id.strip(), token or None, max(0, safe_int(depth))
