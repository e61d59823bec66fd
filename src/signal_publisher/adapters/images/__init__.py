"""Stock image search adapters."""

from signal_publisher.adapters.images.pexels import PexelsSearch
from signal_publisher.adapters.images.unsplash import UnsplashSearch

__all__ = ["PexelsSearch", "UnsplashSearch"]
