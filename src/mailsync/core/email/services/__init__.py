"""Folder-level services on top of the local store and mail source."""

from .fetch import FolderCacheReader, RemoteRefreshFetcher

__all__ = ["FolderCacheReader", "RemoteRefreshFetcher"]
