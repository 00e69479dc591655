"""Hand canonical pixel buffers to image consumers.

Two consumers are served:  Pillow, and asset pipelines that upload textures
and register loaders by file extension.
"""
# Standard library imports
from collections import namedtuple
from enum import Enum
import logging

# Third party library imports
import numpy as np
from PIL import Image

# Local imports
from . import core
from .pixels import ChannelLayout, to_pixels


logger = logging.getLogger(__name__)


_PIL_MODES = {
    (ChannelLayout.GRAY, 8): 'L',
    (ChannelLayout.GRAY_ALPHA, 8): 'LA',
    (ChannelLayout.RGB, 8): 'RGB',
    (ChannelLayout.RGBA, 8): 'RGBA',
    (ChannelLayout.GRAY, 16): 'I;16',
}


def to_pil_image(buffer):
    """Convert a canonical pixel buffer into a Pillow image.

    Parameters
    ----------
    buffer : CanonicalPixelBuffer
        Pixels to convert.  8-bit buffers of any layout and 16-bit gray
        buffers are accepted.

    Returns
    -------
    PIL.Image.Image
        Image in mode L, LA, RGB, RGBA or I;16.

    Raises
    ------
    ValueError
        Pillow has no mode for the buffer, e.g. 16-bit RGB.
    """
    key = (buffer.layout, buffer.bits)
    try:
        mode = _PIL_MODES[key]
    except KeyError:
        msg = (
            f"Pillow has no image mode for {buffer.bits}-bit "
            f"{buffer.layout.name} pixels, use 8-bit output instead."
        )
        raise ValueError(msg) from None

    if mode == 'I;16':
        # I;16 is little-endian whatever the platform.
        data = buffer.samples.astype('<u2').tobytes()
    else:
        data = buffer.tobytes()

    return Image.frombytes(mode, (buffer.width, buffer.height), data)


class TextureFormat(Enum):
    """GPU texture formats, named as in WebGPU."""

    R8_UNORM = 'r8unorm'
    RG8_UNORM = 'rg8unorm'
    RGBA8_UNORM_SRGB = 'rgba8unorm-srgb'
    R16_UNORM = 'r16unorm'
    RG16_UNORM = 'rg16unorm'
    RGBA16_UNORM = 'rgba16unorm'


_TEXTURE_FORMATS = {
    (ChannelLayout.GRAY, 8): TextureFormat.R8_UNORM,
    (ChannelLayout.GRAY_ALPHA, 8): TextureFormat.RG8_UNORM,
    (ChannelLayout.RGBA, 8): TextureFormat.RGBA8_UNORM_SRGB,
    (ChannelLayout.GRAY, 16): TextureFormat.R16_UNORM,
    (ChannelLayout.GRAY_ALPHA, 16): TextureFormat.RG16_UNORM,
    (ChannelLayout.RGBA, 16): TextureFormat.RGBA16_UNORM,
}


TexturePayload = namedtuple(
    'TexturePayload', ['width', 'height', 'format', 'layout', 'data']
)
TexturePayload.__doc__ = """2D texture ready for upload.

width, height : int
    Dimensions in pixels.
format : TextureFormat
    Texel format.
layout : ChannelLayout
    Channel order of data.
data : bytes
    Tightly packed texels, rows top-down, native byte order.
"""


def to_texture(buffer):
    """Convert a canonical pixel buffer into a texture payload.

    Textures have no 3-channel format, so RGB pixels are widened to RGBA with
    an opaque alpha channel.
    """
    layout = buffer.layout
    samples = buffer.samples
    if layout == ChannelLayout.RGB:
        maxval = np.iinfo(samples.dtype).max
        alpha = np.full(samples.shape[:2] + (1,), maxval, dtype=samples.dtype)
        samples = np.concatenate((samples, alpha), axis=2)
        layout = ChannelLayout.RGBA

    return TexturePayload(
        width=buffer.width,
        height=buffer.height,
        format=_TEXTURE_FORMATS[(layout, buffer.bits)],
        layout=layout,
        data=samples.tobytes(),
    )


class Jpeg2kAssetLoader(object):
    """Turn JPEG 2000 file contents into textures.

    The loader only ever sees bytes handed to it by the host; it does no
    file discovery or I/O of its own.

    Parameters
    ----------
    config : DecodeConfig, optional
        Decoder settings used for every load.
    bits : int, optional
        Texel depth, 8 or 16.  Defaults to the assembly.bits option.
    """

    def __init__(self, config=None, bits=None):
        self.config = config
        self.bits = bits

    def __repr__(self):
        return f"Jpeg2kAssetLoader(config={self.config!r}, bits={self.bits})"

    def extensions(self):
        """File extensions this loader handles."""
        return core.EXTENSIONS

    def load(self, data, extension=None):
        """Decode file contents into a texture.

        Parameters
        ----------
        data : bytes-like
            File contents.
        extension : str, optional
            Extension of the asset, with or without the leading dot.  It
            must be one of the loader's extensions.  The format itself is
            detected from the data.

        Returns
        -------
        TexturePayload

        Raises
        ------
        ValueError
            If the extension is not handled by this loader.
        """
        if extension is not None:
            extension = extension.lstrip('.').lower()
            if extension not in core.EXTENSIONS:
                msg = (
                    f"The extension '{extension}' is not handled by this "
                    f"loader, it must be one of {', '.join(core.EXTENSIONS)}."
                )
                raise ValueError(msg)

        logger.debug(f"Loading a {len(data)}-byte .{extension} asset.")
        buffer = to_pixels(bytes(data), config=self.config, bits=self.bits)
        return to_texture(buffer)


class Jpeg2kPlugin(object):
    """Register the JPEG 2000 asset loader with a host application.

    The host is expected to provide ``add_asset_loader(loader)``.
    """

    def __init__(self, loader=None):
        self.loader = loader if loader is not None else Jpeg2kAssetLoader()

    def __repr__(self):
        return f"Jpeg2kPlugin(loader={self.loader!r})"

    def build(self, app):
        app.add_asset_loader(self.loader)
        return app
