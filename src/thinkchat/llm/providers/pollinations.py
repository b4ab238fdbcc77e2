"""Pollinations image provider.

A keyless backend: the image is addressed by a URL derived from the prompt
and fetched by whatever renders it. No request is made here.
"""

import random
from typing import Any
from urllib.parse import quote, urlencode

from ..base import ImageProvider
from ..models import ImageReference

POLLINATIONS_BASE_URL = "https://image.pollinations.ai/prompt/"


class PollinationsImageProvider(ImageProvider):
    """URL-based image provider that needs no API key."""

    def __init__(
        self,
        base_url: str = POLLINATIONS_BASE_URL,
        width: int = 1024,
        height: int = 1024,
        seed: int | None = None,
    ):
        """Initialize the provider.

        Args:
            base_url: Prompt endpoint; the quoted prompt is appended
            width: Requested image width in pixels
            height: Requested image height in pixels
            seed: Fixed seed for reproducible URLs (random per request if None)
        """
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._width = width
        self._height = height
        self._seed = seed

    async def generate_image(self, prompt: str, **kwargs: Any) -> ImageReference:
        prompt = prompt.strip()
        if not prompt:
            raise ValueError("Image prompt must not be empty")

        params = {
            "width": self._width,
            "height": self._height,
            "seed": self._seed if self._seed is not None else random.randint(0, 2**31 - 1),
            "nologo": "true",
            **kwargs,
        }
        url = f"{self._base_url}{quote(prompt, safe='')}?{urlencode(params)}"
        return ImageReference(url=url)

    async def close(self) -> None:
        pass
