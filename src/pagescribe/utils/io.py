from pathlib import Path
from typing import Union

import cv2
import numpy as np
from PIL import Image

ImageLike = Union[str, Path, bytes, np.ndarray, Image.Image]


def _decode(buffer: np.ndarray) -> Union[np.ndarray, None]:
    img = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if img is None:
        return None
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


def _as_rgb(arr: np.ndarray) -> np.ndarray:
    if arr.ndim == 2:
        return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGB)
    if arr.ndim == 3 and arr.shape[2] == 4:
        return cv2.cvtColor(arr, cv2.COLOR_RGBA2RGB)
    if arr.ndim == 3 and arr.shape[2] == 3:
        return arr
    raise ValueError(f"Unsupported image array shape: {arr.shape}")


def read_image(source: ImageLike) -> np.ndarray:
    """
    Load a page photo as an RGB array.

    Parameters
    ----------
    source : str, Path, bytes, np.ndarray, or PIL.Image
        - File path (str or Path), Unicode paths included
        - Encoded image bytes (e.g. a downloaded page photo)
        - NumPy array: grayscale (H, W), RGB (H, W, 3) or RGBA (H, W, 4)
        - PIL Image object

    Returns
    -------
    np.ndarray
        RGB image with shape (H, W, 3) and dtype uint8.

    Raises
    ------
    FileNotFoundError
        If the file cannot be read with either OpenCV or PIL.
    ValueError
        If bytes cannot be decoded or the array shape is not an image.
    TypeError
        If the input type is not supported.

    Examples
    --------
    >>> img = read_image("page_01.jpg")
    >>> img.shape
    (3024, 4032, 3)
    """
    if isinstance(source, (str, Path)):
        # np.fromfile handles non-ASCII paths on Windows
        img = _decode(np.fromfile(str(source), dtype=np.uint8))
        if img is None:
            # HEIC/TIFF and friends that OpenCV can't decode
            try:
                with Image.open(str(source)) as pil_img:
                    img = np.array(pil_img.convert("RGB"))
            except Exception as e:
                raise FileNotFoundError(
                    f"Cannot read image with cv2 or PIL: {source}. Error: {e}"
                ) from e
        return img

    if isinstance(source, bytes):
        img = _decode(np.frombuffer(source, dtype=np.uint8))
        if img is None:
            raise ValueError("Failed to decode image from bytes")
        return img

    if isinstance(source, np.ndarray):
        return _as_rgb(source)

    if isinstance(source, Image.Image):
        return np.array(source.convert("RGB"))

    raise TypeError(
        f"Unsupported type for image input: {type(source)}. "
        f"Expected str, Path, bytes, numpy.ndarray, or PIL.Image"
    )
