"""Durable storage for tracked channels and their history."""

from subtrack.storage.channel_store import ChannelStore

__all__ = ["ChannelStore"]
