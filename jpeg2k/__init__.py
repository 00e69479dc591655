"""jpeg2k - decode JPEG 2000 images into canonical pixel buffers."""

__all__ = [
    'get_option', 'set_option', 'reset_option',
    'DecodeConfig', 'decode', 'decode_file', 'read_header',
    'ColorSpace', 'DecodedImage', 'ImageInfo', 'RawComponent',
    'CanonicalPixelBuffer', 'ChannelLayout', 'assemble', 'to_pixels',
    'to_pil_image', 'Jpeg2kAssetLoader', 'Jpeg2kPlugin', 'TexturePayload',
]

# Standard library imports
import logging

# Local imports
from jpeg2k import version
from .options import get_option, set_option, reset_option
from .decoder import DecodeConfig, decode, decode_file, read_header
from .image import ColorSpace, DecodedImage, ImageInfo, RawComponent
from .pixels import CanonicalPixelBuffer, ChannelLayout, assemble, to_pixels
from .adapters import (
    Jpeg2kAssetLoader, Jpeg2kPlugin, TexturePayload, to_pil_image
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = version.version
