"""Image decoding and tensor preparation for the classifier.

The model takes a float32 batch shaped (1, 224, 224, 3) with pixel values
in [0, 1]. The input resolution is fixed by the model and is not
configurable.
"""

import io

import numpy as np
from PIL import Image, UnidentifiedImageError

from asclepius.errors import DecodeError

MODEL_INPUT_SIZE = (224, 224)  # width, height


def decode_image(data: bytes) -> Image.Image:
    """Decode raw bytes into an RGB Pillow image.

    Raises:
        DecodeError: If the bytes are not a readable image
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
        return image.convert("RGB")
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
        SyntaxError,
        EOFError,
    ) as e:
        raise DecodeError(f"Cannot decode image: {e}") from e


def resize_bilinear(
    image: Image.Image, size: tuple[int, int] = MODEL_INPUT_SIZE
) -> np.ndarray:
    """Resize with bilinear interpolation and return an HxWxC uint8 array."""
    resized = image.resize(size, Image.Resampling.BILINEAR)
    return np.asarray(resized)


def normalize(pixels: np.ndarray) -> np.ndarray:
    """Map [0, 255] pixel values onto [0.0, 1.0]."""
    return pixels.astype(np.float32) / 255.0


def ensure_batch_dimension(tensor: np.ndarray) -> np.ndarray:
    """Prepend a batch axis to a single HxWxC image.

    A tensor that is already batched is returned as is. Other ranks are
    passed through untouched and left for the model to reject.
    """
    if tensor.ndim == 3:
        return np.expand_dims(tensor, axis=0)
    return tensor


def prepare_image(data: bytes) -> np.ndarray:
    """Decode, resize, normalize and batch an uploaded image."""
    image = decode_image(data)
    pixels = resize_bilinear(image)
    return ensure_batch_dimension(normalize(pixels))
