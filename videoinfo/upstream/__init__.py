"""
Upstream platform access: client protocol, innertube client, lifecycle.
"""
from .client import InnertubeClient, UpstreamClient, VideoInfo
from .lifecycle import ClientLifecycleManager

__all__ = [
    "InnertubeClient",
    "UpstreamClient",
    "VideoInfo",
    "ClientLifecycleManager",
]
