"""
Onetime Downloader

Upload files and hand them out through links that can be downloaded
exactly once, on Redis or PostgreSQL storage.
"""

__version__ = "0.1.0"
