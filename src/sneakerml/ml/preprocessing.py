"""Image preprocessing: decode uploads and build classifier input tensors."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

if TYPE_CHECKING:
    from numpy.typing import NDArray


class PillowPreprocessor:
    """Decodes image bytes with Pillow and prepares them for the model."""

    def __init__(self, max_image_pixels: int) -> None:
        self._max_image_pixels = max_image_pixels

    def decode_image(self, image_bytes: bytes) -> NDArray[np.uint8]:
        """Decode raw image bytes into an upright RGB uint8 numpy array.

        EXIF orientation is applied so the pixels match what the user saw
        when taking the photo.

        Args:
            image_bytes: Raw file bytes (any format Pillow can open).

        Returns:
            HxWx3 RGB uint8 numpy array.

        Raises:
            ValueError: If the image cannot be decoded or exceeds size limits.
        """
        try:
            with Image.open(io.BytesIO(image_bytes)) as img:
                width, height = img.size
                if width * height > self._max_image_pixels:
                    raise ValueError(
                        f"Image is {width}x{height} pixels, limit is {self._max_image_pixels} pixels"
                    )
                upright = ImageOps.exif_transpose(img)
                rgb = upright.convert("RGB")
        except (UnidentifiedImageError, OSError, SyntaxError, Image.DecompressionBombError) as exc:
            raise ValueError(f"Cannot decode image: {exc}") from exc

        return np.asarray(rgb, dtype=np.uint8)

    @staticmethod
    def preprocess_for_classification(
        image: NDArray[np.uint8],
        input_size: int,
        mean: tuple[float, float, float],
        std: tuple[float, float, float],
    ) -> NDArray[np.float32]:
        """Center-crop, scale and normalize an image for the classifier.

        Args:
            image: HxWx3 RGB uint8 array.
            input_size: Side length of the square model input.
            mean: Per-channel mean in [0, 1] space.
            std: Per-channel standard deviation in [0, 1] space.

        Returns:
            1x3xSxS float32 tensor.
        """
        cropped = ImageOps.fit(
            Image.fromarray(image),
            (input_size, input_size),
            method=Image.Resampling.BILINEAR,
        )
        pixels = np.asarray(cropped, dtype=np.float32) / 255.0
        pixels = (pixels - np.asarray(mean, dtype=np.float32)) / np.asarray(std, dtype=np.float32)
        return np.ascontiguousarray(pixels.transpose(2, 0, 1)[np.newaxis, ...], dtype=np.float32)
