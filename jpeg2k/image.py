"""Decoded JPEG 2000 images.

A DecodedImage owns the image structure allocated by OpenJPEG.  The native
memory is released exactly once, either explicitly with ``release``, when a
``with`` block exits, or, failing both, when the handle is garbage collected.
"""
# Standard library imports
from collections import namedtuple
from enum import IntEnum
import ctypes
import operator
import textwrap
import weakref

# Third party library imports
import numpy as np

# Local imports
from .errors import (
    IndexOutOfRangeError, ReleasedImageError, UnsupportedFeatureError
)
from .lib import openjp2 as opj2


class ColorSpace(IntEnum):
    """Color space reported by the decoder.

    The values are those of OpenJPEG's OPJ_CLRSPC_* enumeration.
    """

    UNKNOWN = opj2.CLRSPC_UNKNOWN
    SRGB = opj2.CLRSPC_SRGB
    GRAY = opj2.CLRSPC_GRAY
    SYCC = opj2.CLRSPC_SYCC

    @classmethod
    def from_openjpeg(cls, value):
        """Map an OPJ_CLRSPC_* value onto a ColorSpace.

        Raises
        ------
        UnsupportedFeatureError
            eYCC, CMYK, or anything else outside of the model.
        """
        if value in (opj2.CLRSPC_UNKNOWN, opj2.CLRSPC_UNSPECIFIED):
            return cls.UNKNOWN

        try:
            return cls(value)
        except ValueError:
            names = {opj2.CLRSPC_EYCC: 'eYCC', opj2.CLRSPC_CMYK: 'CMYK'}
            name = names.get(value, str(value))
            msg = f"The {name} color space is not supported."
            raise UnsupportedFeatureError(msg) from None

    @property
    def roles(self):
        """Names of the color components, in decoder order.  None if the
        color space does not say.
        """
        return _ROLES[self]


_ROLES = {
    ColorSpace.UNKNOWN: None,
    ColorSpace.GRAY: ('gray',),
    ColorSpace.SRGB: ('red', 'green', 'blue'),
    ColorSpace.SYCC: ('luma', 'cb', 'cr'),
}


ComponentInfo = namedtuple(
    'ComponentInfo',
    ['width', 'height', 'precision', 'is_signed', 'is_alpha', 'dx', 'dy']
)

ImageInfo = namedtuple(
    'ImageInfo',
    ['width', 'height', 'color_space', 'components', 'has_icc_profile']
)
ImageInfo.__doc__ = """Image description read from the main header only."""


def describe(raw_image):
    """Produce an ImageInfo from an OpenJPEG image structure.

    Parameters
    ----------
    raw_image : pointer to ImageType
        Image structure, possibly without sample data.
    """
    image = raw_image.contents
    components = [
        ComponentInfo(
            width=comp.w,
            height=comp.h,
            precision=comp.prec,
            is_signed=bool(comp.sgnd),
            is_alpha=comp.alpha == 1,
            dx=comp.dx,
            dy=comp.dy,
        )
        for comp in image.comps[:image.numcomps]
    ]
    if len(components) > 0:
        width, height = components[0].width, components[0].height
    else:
        width, height = 0, 0

    return ImageInfo(
        width=width,
        height=height,
        color_space=ColorSpace.from_openjpeg(image.color_space),
        components=tuple(components),
        has_icc_profile=bool(image.icc_profile_buf),
    )


class RawComponent(object):
    """One decoded color or alpha plane.

    Metadata is copied out of the native structure when the component is
    created.  Sample data is only reachable while the owning image is alive.

    Attributes
    ----------
    index : int
        Position of the component in the decoded image.
    width, height : int
        Dimensions of the sample grid.
    precision : int
        Bits per sample.
    is_signed : bool
        Whether or not the samples are signed.
    is_alpha : bool
        Whether or not the decoder flags the component as an alpha channel.
    dx, dy : int
        Horizontal and vertical subsampling factors.
    """

    def __init__(self, owner, index, comp):
        self._owner = owner
        self.index = index
        self.width = comp.w
        self.height = comp.h
        self.precision = comp.prec
        self.is_signed = bool(comp.sgnd)
        self.is_alpha = comp.alpha == 1
        self.dx = comp.dx
        self.dy = comp.dy
        self.x0 = comp.x0
        self.y0 = comp.y0
        self.factor = comp.factor

    def __repr__(self):
        return (
            f"RawComponent(index={self.index}, "
            f"width={self.width}, height={self.height}, "
            f"precision={self.precision}, is_signed={self.is_signed}, "
            f"is_alpha={self.is_alpha}, dx={self.dx}, dy={self.dy})"
        )

    def view(self):
        """Read-only view of the native samples.

        The returned array shares memory with the decoder's buffer and must
        not be used once the owning image is released.  Use the samples
        property to get an independent copy.

        Returns
        -------
        ndarray
            int32 array with shape (height, width).

        Raises
        ------
        ReleasedImageError
            The owning image has been released.
        UnsupportedFeatureError
            The decoder did not produce sample data for this component.
        """
        comp = self._owner._comp(self.index)
        if not comp.data:
            msg = f"Component {self.index} has no decoded sample data."
            raise UnsupportedFeatureError(msg)

        if comp.w == 0 or comp.h == 0:
            return np.empty((comp.h, comp.w), dtype=np.int32)

        array = np.ctypeslib.as_array(comp.data, shape=(comp.h, comp.w))
        array.flags.writeable = False
        return array

    @property
    def samples(self):
        """Copy of the samples, int32 array with shape (height, width)."""
        return np.array(self.view())


class DecodedImage(object):
    """Exclusive owner of an OpenJPEG image structure.

    Instances cannot be copied or pickled.  All accessors raise
    ReleasedImageError once the image has been released.

    Parameters
    ----------
    raw_image : pointer to ImageType
        Image allocated by the OpenJPEG library.  Ownership passes to the
        new instance.
    destroy : callable, optional
        Releases raw_image, opj_image_destroy by default.

    Examples
    --------
    >>> import jpeg2k
    >>> with jpeg2k.decode(data) as image:  # doctest: +SKIP
    ...     image.width, image.height, image.color_space
    (480, 800, <ColorSpace.SRGB: 1>)
    """

    def __init__(self, raw_image, destroy=opj2.image_destroy):
        if not raw_image:
            raise ValueError("Cannot take ownership of a NULL image.")

        self._raw_image = raw_image
        self._finalizer = weakref.finalize(self, destroy, raw_image)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.release()

    def __copy__(self):
        raise TypeError("A DecodedImage cannot be copied.")

    def __deepcopy__(self, memo):
        raise TypeError("A DecodedImage cannot be copied.")

    def __reduce__(self):
        raise TypeError("A DecodedImage cannot be pickled.")

    def __repr__(self):
        if self.is_released:
            return "DecodedImage(<released>)"
        return (
            f"DecodedImage(width={self.width}, height={self.height}, "
            f"color_space={self.color_space.name}, "
            f"num_components={self.component_count})"
        )

    def __str__(self):
        if self.is_released:
            return "Decoded image:  released"

        lines = [
            "Decoded image:",
            f"    Offset:  ({self.y_offset}, {self.x_offset})",
            f"    Reference grid height, width:  "
            f"({self.orig_height} x {self.orig_width})",
            f"    Height, width:  ({self.height} x {self.width})",
            f"    Color space:  {self.color_space.name}",
            f"    ICC profile:  {self.has_icc_profile}",
            f"    Components:  {self.component_count}",
        ]
        for component in self.components:
            lines.append(textwrap.indent(repr(component), ' ' * 8))
        return '\n'.join(lines)

    def release(self):
        """Free the native image.  Calling it again does nothing."""
        self._finalizer()

    @property
    def is_released(self):
        """True once the native image has been freed."""
        return not self._finalizer.alive

    def _image(self):
        if not self._finalizer.alive:
            raise ReleasedImageError("The decoded image has been released.")
        return self._raw_image.contents

    def _comp(self, index):
        image = self._image()
        try:
            index = operator.index(index)
        except TypeError:
            index = -1
        if not 0 <= index < image.numcomps:
            msg = (
                f"Component index {index} is out of range, the image has "
                f"{image.numcomps} component(s)."
            )
            raise IndexOutOfRangeError(msg)
        return image.comps[index]

    @property
    def x_offset(self):
        """Horizontal offset of the image area on the reference grid."""
        return self._image().x0

    @property
    def y_offset(self):
        """Vertical offset of the image area on the reference grid."""
        return self._image().y0

    @property
    def orig_width(self):
        """Full resolution width, not reduced by the resolution factor."""
        image = self._image()
        return image.x1 - image.x0

    @property
    def orig_height(self):
        """Full resolution height, not reduced by the resolution factor."""
        image = self._image()
        return image.y1 - image.y0

    @property
    def width(self):
        """Decoded width, that of the first component."""
        image = self._image()
        return image.comps[0].w if image.numcomps > 0 else 0

    @property
    def height(self):
        """Decoded height, that of the first component."""
        image = self._image()
        return image.comps[0].h if image.numcomps > 0 else 0

    @property
    def color_space(self):
        return ColorSpace.from_openjpeg(self._image().color_space)

    @property
    def component_count(self):
        return self._image().numcomps

    def component(self, index):
        """Return the component at the given position.

        Raises
        ------
        IndexOutOfRangeError
            index is not in [0, component_count).
        ReleasedImageError
            The image has been released.
        """
        return RawComponent(self, index, self._comp(index))

    @property
    def components(self):
        return [self.component(k) for k in range(self.component_count)]

    @property
    def has_icc_profile(self):
        return bool(self._image().icc_profile_buf)

    @property
    def icc_profile(self):
        """Raw bytes of the restricted ICC profile, or None."""
        image = self._image()
        if not image.icc_profile_buf:
            return None
        return ctypes.string_at(image.icc_profile_buf, image.icc_profile_len)

    @property
    def info(self):
        """ImageInfo summary of the image."""
        self._image()
        return describe(self._raw_image)
