"""Bring decoded component samples onto a common scale and grid.

Samples of any precision in [1, 16], signed or not, are linearly rescaled to
8 (or 16) bit unsigned samples.  Subsampled components are brought up to the
size of the first color component by nearest-neighbor replication; no other
resampling is done.  sYCC triples are converted to RGB after rescaling.
"""
# Third party library imports
import numpy as np

# Local imports
from . import core
from .errors import (
    DimensionMismatchError, InvalidPrecisionError
)


def output_dtype(bits):
    """numpy datatype of samples with the given output depth."""
    if bits not in core.OUTPUT_BITS:
        msg = f"The output depth must be one of {core.OUTPUT_BITS}, not {bits}."
        raise ValueError(msg)
    return np.uint8 if bits == 8 else np.uint16


def check_precision(component):
    """The precision must lie in [1, 16].

    Parameters
    ----------
    component : RawComponent
        The component to check.

    Raises
    ------
    InvalidPrecisionError
    """
    if not core.MIN_PRECISION <= component.precision <= core.MAX_PRECISION:
        msg = (
            f"Component {component.index} has a precision of "
            f"{component.precision} bits, only "
            f"{core.MIN_PRECISION} to {core.MAX_PRECISION} bits are handled."
        )
        raise InvalidPrecisionError(msg)


def check_dimensions(target, groups, components):
    """Verify component dimensions against the target grid.

    Parameters
    ----------
    target : tuple
        (height, width) of the canonical buffer.
    groups : list
        Lists of components that share a role and so must share dimensions,
        e.g. the three planes of an RGB image or both chroma planes of sYCC.
    components : list
        Every component taking part in the output.

    Raises
    ------
    DimensionMismatchError
        A component is empty or larger than the target, or components of
        the same role differ.
    """
    height, width = target
    for component in components:
        if component.width == 0 or component.height == 0:
            msg = (
                f"Component {component.index} has dimensions "
                f"{component.height} x {component.width}"
            )
            raise DimensionMismatchError(msg)

        if component.height > height or component.width > width:
            msg = (
                f"Component {component.index} "
                f"({component.height} x {component.width}) is larger than "
                f"the image ({height} x {width})."
            )
            raise DimensionMismatchError(msg)

    for group in groups:
        shapes = {(c.height, c.width) for c in group}
        if len(shapes) > 1:
            indices = [c.index for c in group]
            msg = (
                f"Components {indices} have the same role but different "
                f"dimensions {sorted(shapes)}."
            )
            raise DimensionMismatchError(msg)


def rescale(samples, precision, is_signed, bits=8):
    """Rescale samples from their native range onto [0, 2**bits - 1].

    out = round(u * (2**bits - 1) / (2**precision - 1)), rounding half up,
    where u is the sample shifted by 2**(precision - 1) if signed.  The
    result is clamped, which absorbs samples outside of the native range.

    Parameters
    ----------
    samples : ndarray
        Integer samples.
    precision : int
        Native bits per sample.
    is_signed : bool
        Whether or not the samples are signed.
    bits : int, optional
        Output depth, 8 or 16.

    Returns
    -------
    ndarray
        uint8 or uint16 array, same shape as samples.

    Examples
    --------
    >>> import numpy as np
    >>> rescale(np.array([0, 1, 1, 0]), 1, False)
    array([  0, 255, 255,   0], dtype=uint8)
    """
    dtype = output_dtype(bits)
    maxval = (1 << bits) - 1
    denom = (1 << precision) - 1

    u = samples.astype(np.int64)
    if is_signed:
        u += 1 << (precision - 1)

    if precision == bits:
        out = u
    else:
        # floor(x + 1/2) in exact integer arithmetic
        out = (2 * maxval * u + denom) // (2 * denom)

    np.clip(out, 0, maxval, out=out)
    return out.astype(dtype)


def source_indices(start, stop, target, source):
    """Nearest-neighbor source indices for target positions [start, stop)."""
    return (np.arange(start, stop, dtype=np.int64) * source) // target


def upsample(plane, height, width, row_start=0, row_stop=None):
    """Replicate samples of a subsampled plane up to height x width.

    Only the rows in [row_start, row_stop) of the upsampled plane are
    produced.  A plane that already has the target size is sliced, not
    copied.
    """
    if row_stop is None:
        row_stop = height

    nrows, ncols = plane.shape
    if (nrows, ncols) == (height, width):
        return plane[row_start:row_stop]

    rows = source_indices(row_start, row_stop, height, nrows)
    cols = source_indices(0, width, width, ncols)
    return plane[np.ix_(rows, cols)]


def normalize_rows(
    plane, precision, is_signed, height, width, row_start, row_stop, bits=8
):
    """Rescale and upsample one band of rows of a component.

    The result depends only on the output rows requested, never on how the
    image is split into bands.
    """
    band = upsample(plane, height, width, row_start, row_stop)
    return rescale(band, precision, is_signed, bits)


def ycc_to_rgb(y, cb, cr, bits=8):
    """Full range YCbCr to RGB, ITU-R BT.601 (JFIF) coefficients.

    Parameters
    ----------
    y, cb, cr : ndarray
        Normalized samples of the same shape.
    bits : int, optional
        Depth of the samples, 8 or 16.  The chroma offset is 2**(bits - 1).

    Returns
    -------
    tuple
        Red, green and blue planes, rounded half up and clamped.
    """
    dtype = output_dtype(bits)
    maxval = (1 << bits) - 1
    offset = 1 << (bits - 1)

    y = y.astype(np.float64)
    cb = cb.astype(np.float64) - offset
    cr = cr.astype(np.float64) - offset

    red = y + 1.402 * cr
    green = y - 0.344136 * cb - 0.714136 * cr
    blue = y + 1.772 * cb

    planes = []
    for plane in (red, green, blue):
        plane = np.floor(plane + 0.5)
        np.clip(plane, 0, maxval, out=plane)
        planes.append(plane.astype(dtype))
    return tuple(planes)
