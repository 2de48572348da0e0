"""Outbound delivery: the Poster protocol and its retrying sender."""

from banshee.transport.base import Poster
from banshee.transport.http import HttpxPoster
from banshee.transport.sender import RetryingSender

__all__ = ["Poster", "HttpxPoster", "RetryingSender"]
