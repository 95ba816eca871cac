"""
Image resizing with Pillow.
"""

import io
import logging
from concurrent.futures import ThreadPoolExecutor

from PIL import Image as PILImage, UnidentifiedImageError

logger = logging.getLogger(__name__)

RESOLUTIONS = {
    'tiny': {'width': 150, 'quality': 80},
    'medium': {'width': 600, 'quality': 85},
    'large': {'width': 1200, 'quality': 90},
}

ORIGINAL = 'original'
RESOLUTION_NAMES = (ORIGINAL, 'large', 'medium', 'tiny')

ALLOWED_MIME_TYPES = (
    'image/jpeg',
    'image/jpg',
    'image/png',
    'image/gif',
    'image/webp',
    'image/svg+xml',
)

MAX_FILE_SIZE = 10 * 1024 * 1024

# source MIME -> (Pillow format, MIME of the encoded output)
OUTPUT_FORMATS = {
    'image/jpeg': ('JPEG', 'image/jpeg'),
    'image/jpg': ('JPEG', 'image/jpeg'),
    'image/png': ('PNG', 'image/png'),
    'image/webp': ('WEBP', 'image/webp'),
    'image/gif': ('PNG', 'image/png'),
}


def output_mime_type(mime_type):
    return OUTPUT_FORMATS.get(mime_type, (None, mime_type))[1]


def resize_image(data, mime_type, width, quality):
    """
    Scale `data` to fit `width` (never enlarging) and re-encode it.
    Formats Pillow should not touch (SVG) come back unchanged.
    """
    if mime_type not in OUTPUT_FORMATS:
        return data

    pil_format, _ = OUTPUT_FORMATS[mime_type]
    with PILImage.open(io.BytesIO(data)) as img:
        img.load()
        if img.width > width:
            height = max(1, round(img.height * width / img.width))
            img = img.resize((width, height), PILImage.Resampling.LANCZOS)

        if pil_format == 'JPEG' and img.mode not in ('RGB', 'L'):
            img = img.convert('RGB')
        elif pil_format == 'PNG' and img.mode == 'P':
            img = img.convert('RGBA')

        buffer = io.BytesIO()
        save_kwargs = {'optimize': True}
        if pil_format in ('JPEG', 'WEBP'):
            save_kwargs['quality'] = quality
        img.save(buffer, pil_format, **save_kwargs)
        return buffer.getvalue()


def derive_resolutions(data, mime_type, resizer=resize_image, max_workers=3):
    """
    Build every profile in RESOLUTIONS concurrently.
    A profile that fails is logged and left out of the result.
    """
    results = {}
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {
            name: pool.submit(resizer, data, mime_type, config['width'], config['quality'])
            for name, config in RESOLUTIONS.items()
        }
        for name, future in futures.items():
            try:
                results[name] = future.result()
            except Exception as e:
                logger.error(f"[IMAGES] Failed to create {name} resolution: {e}")
    return results


def read_dimensions(data):
    """Return (width, height), or (None, None) when Pillow cannot read the data"""
    try:
        with PILImage.open(io.BytesIO(data)) as img:
            return img.width, img.height
    except (UnidentifiedImageError, PILImage.DecompressionBombError, OSError, ValueError) as e:
        logger.warning(f"[IMAGES] Could not read image dimensions: {e}")
        return None, None
