"""Assemble decoded components into an interleaved pixel buffer.

The canonical buffer is row-major, top-down, with channels interleaved as
Gray, GrayAlpha, RGB or RGBA.  Rows can be filled by several threads working
on disjoint bands; the result is identical to filling them in one pass.
"""
# Standard library imports
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor
from enum import IntEnum
import logging
import os

# Third party library imports
import numpy as np

# Local imports
from . import core, normalize
from .decoder import DecodeConfig, decode
from .errors import ComponentCountMismatchError
from .image import ColorSpace
from .options import get_option


logger = logging.getLogger(__name__)


class ChannelLayout(IntEnum):
    """Channel order of the canonical buffer.  The value is the number of
    interleaved channels.
    """

    GRAY = 1
    GRAY_ALPHA = 2
    RGB = 3
    RGBA = 4

    @property
    def channels(self):
        return int(self)

    @property
    def has_alpha(self):
        return self in (ChannelLayout.GRAY_ALPHA, ChannelLayout.RGBA)

    @classmethod
    def from_counts(cls, num_color, has_alpha):
        if num_color == 1:
            return cls.GRAY_ALPHA if has_alpha else cls.GRAY
        return cls.RGBA if has_alpha else cls.RGB


ComponentMap = namedtuple('ComponentMap', ['color', 'alpha'])
ComponentMap.__doc__ = """Indices of the components that make up the output.

color : tuple
    Color component indices in channel order (1 or 3 of them).
alpha : int or None
    Index of the alpha component, if any.
"""


def map_components(color_space, components):
    """Decide which components are color and which one is alpha.

    A component flagged as alpha by the decoder takes the alpha role.  When
    no component is flagged, the single component following the color
    components is used as alpha.  Further components are ignored.  When the
    color space is unknown, one or two components are taken as gray (plus
    alpha), three or more as RGB (plus alpha).

    Parameters
    ----------
    color_space : ColorSpace
        Color space reported by the decoder.
    components : list
        RawComponent or ComponentInfo-like objects with an is_alpha
        attribute, in decoder order.

    Returns
    -------
    ComponentMap

    Raises
    ------
    ComponentCountMismatchError
        Fewer components than the color space requires.
    """
    flagged = [k for k, c in enumerate(components) if c.is_alpha]
    plain = [k for k, c in enumerate(components) if not c.is_alpha]

    roles = color_space.roles
    if roles is None:
        num_color = 1 if len(plain) <= 2 else 3
    else:
        num_color = len(roles)

    if len(plain) < num_color:
        msg = (
            f"The {color_space.name} color space requires {num_color} color "
            f"component(s), but the image only has {len(plain)}."
        )
        raise ComponentCountMismatchError(msg)

    if len(flagged) > 0:
        alpha = flagged[0]
    elif len(plain) > num_color:
        alpha = plain[num_color]
    else:
        alpha = None

    return ComponentMap(color=tuple(plain[:num_color]), alpha=alpha)


class CanonicalPixelBuffer(object):
    """Interleaved, row-major pixel data.

    Attributes
    ----------
    width, height : int
        Dimensions in pixels.
    layout : ChannelLayout
        Channel order.
    samples : ndarray
        Read-only array with shape (height, width, channels), uint8 or
        uint16.
    """

    def __init__(self, width, height, layout, samples):
        expected = (height, width, layout.channels)
        if samples.shape != expected:
            msg = (
                f"The sample array has shape {samples.shape}, expected "
                f"{expected}."
            )
            raise ValueError(msg)

        self.width = width
        self.height = height
        self.layout = layout
        self.samples = samples

    def __repr__(self):
        return (
            f"CanonicalPixelBuffer(width={self.width}, height={self.height}, "
            f"layout={self.layout.name}, bits={self.bits})"
        )

    def __array__(self, dtype=None, copy=None):
        if dtype is None or np.dtype(dtype) == self.samples.dtype:
            return self.samples.copy() if copy else self.samples
        if copy is False:
            msg = (
                f"A {np.dtype(dtype)} array cannot be made from "
                f"{self.samples.dtype} samples without a copy."
            )
            raise ValueError(msg)
        return self.samples.astype(dtype)

    @property
    def channels(self):
        return self.layout.channels

    @property
    def bits(self):
        return self.samples.dtype.itemsize * 8

    @property
    def stride(self):
        """Bytes per row."""
        return self.width * self.channels * self.samples.dtype.itemsize

    def tobytes(self):
        """Samples as a contiguous byte string, native byte order."""
        return self.samples.tobytes()


_Plane = namedtuple('_Plane', ['samples', 'precision', 'is_signed'])


def _resolve_num_threads(num_threads):
    if num_threads == 0:
        num_threads = os.cpu_count() or 1
    return num_threads


def _row_bands(height, num_threads):
    """Split [0, height) into contiguous bands, one per work unit."""
    rows_per_band = max(core.MIN_ROWS_PER_TASK, -(-height // num_threads))
    return [
        (start, min(start + rows_per_band, height))
        for start in range(0, height, rows_per_band)
    ]


def _fill_rows(out, color_space, color, alpha, alpha_default, bits, start,
               stop):
    height, width, _ = out.shape

    planes = [
        normalize.normalize_rows(
            p.samples, p.precision, p.is_signed, height, width, start, stop,
            bits=bits
        )
        for p in color
    ]
    if color_space == ColorSpace.SYCC:
        planes = normalize.ycc_to_rgb(*planes, bits=bits)

    for channel, plane in enumerate(planes):
        out[start:stop, :, channel] = plane

    if alpha is not None:
        out[start:stop, :, -1] = normalize.normalize_rows(
            alpha.samples, alpha.precision, alpha.is_signed, height, width,
            start, stop, bits=bits
        )
    elif alpha_default is not None:
        out[start:stop, :, -1] = alpha_default


def assemble(image, bits=None, alpha_default=None, num_threads=1):
    """Produce the canonical pixel buffer of a decoded image.

    Parameters
    ----------
    image : DecodedImage
        Image to read.  It must not be released while this runs.
    bits : int, optional
        Output depth, 8 or 16.  Defaults to the assembly.bits option.
    alpha_default : int, optional
        If given and the image has no alpha component, an alpha channel with
        this constant value is added.
    num_threads : int, optional
        Number of threads filling the buffer, one by default.  Zero means
        one per CPU.

    Returns
    -------
    CanonicalPixelBuffer

    Raises
    ------
    InvalidPrecisionError, ComponentCountMismatchError, DimensionMismatchError
        The components cannot be normalized.  No partial buffer is returned.
    ReleasedImageError
        The image has been released.

    Examples
    --------
    >>> import jpeg2k
    >>> with jpeg2k.decode(data) as image:  # doctest: +SKIP
    ...     pixels = jpeg2k.assemble(image)
    >>> pixels.layout, pixels.samples.shape  # doctest: +SKIP
    (<ChannelLayout.RGB: 3>, (480, 800, 3))
    """
    if bits is None:
        bits = get_option('assembly.bits')
    dtype = normalize.output_dtype(bits)

    if alpha_default is not None:
        maxval = (1 << bits) - 1
        if not 0 <= alpha_default <= maxval:
            msg = f"The default alpha must lie in [0, {maxval}]."
            raise ValueError(msg)

    color_space = image.color_space
    components = image.components
    cmap = map_components(color_space, components)

    color = [components[k] for k in cmap.color]
    alpha = components[cmap.alpha] if cmap.alpha is not None else None
    used = color if alpha is None else color + [alpha]

    for component in used:
        normalize.check_precision(component)

    # Chroma planes of sYCC may be subsampled relative to luma.
    if color_space == ColorSpace.SYCC:
        groups = [color[1:]]
    else:
        groups = [color]
    height, width = color[0].height, color[0].width
    normalize.check_dimensions((height, width), groups, used)

    layout = ChannelLayout.from_counts(
        len(color), alpha is not None or alpha_default is not None
    )

    def as_plane(component):
        return _Plane(component.view(), component.precision,
                      component.is_signed)

    color_planes = [as_plane(c) for c in color]
    alpha_plane = as_plane(alpha) if alpha is not None else None

    out = np.empty((height, width, layout.channels), dtype=dtype)

    num_threads = _resolve_num_threads(num_threads)
    bands = _row_bands(height, num_threads)
    args = (out, color_space, color_planes, alpha_plane, alpha_default, bits)

    if num_threads > 1 and len(bands) > 1 and len(color) > 1:
        logger.debug(
            f"Assembling {height} x {width} {layout.name} pixels in "
            f"{len(bands)} bands with {num_threads} threads."
        )
        with ThreadPoolExecutor(max_workers=num_threads) as executor:
            futures = [
                executor.submit(_fill_rows, *args, start, stop)
                for start, stop in bands
            ]
            # re-raises the first failure of any band
            for future in futures:
                future.result()
    else:
        _fill_rows(*args, 0, height)

    out.flags.writeable = False
    return CanonicalPixelBuffer(width, height, layout, out)


def to_pixels(source, config=None, bits=None, alpha_default=None):
    """Decode an image straight into a canonical pixel buffer.

    The decoded image is released before returning, whatever happens.

    Parameters
    ----------
    source : bytes, bytearray, memoryview, str or path
        Encoded image, or the path of a file holding one.
    config : DecodeConfig, optional
        Decoder settings.  Its num_threads also bounds the assembly threads.
    bits, alpha_default : optional
        See assemble.

    Returns
    -------
    CanonicalPixelBuffer
    """
    if config is None:
        config = DecodeConfig()

    with decode(source, config) as image:
        return assemble(
            image, bits=bits, alpha_default=alpha_default,
            num_threads=config.num_threads
        )
