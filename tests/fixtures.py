"""
Test fixtures common to more than one test point.
"""

# Standard library imports
import ctypes
import io
import pathlib
import shutil
import tempfile
import unittest

# 3rd party library imports
import numpy as np
from PIL import Image, features

# Local imports
import jpeg2k
from jpeg2k.image import DecodedImage
from jpeg2k.lib import openjp2 as opj2

# Require at least a certain version of openjpeg for running most tests.
if (
    opj2.OPENJP2 is None
    or jpeg2k.version.openjpeg_version_tuple < (2, 3, 0)
):  # pragma: no cover
    OPENJPEG_NOT_AVAILABLE = True
    OPENJPEG_NOT_AVAILABLE_MSG = (
        "A version of OPENJPEG of at least v2.3.0 must be installed."
    )
else:
    OPENJPEG_NOT_AVAILABLE = False
    OPENJPEG_NOT_AVAILABLE_MSG = None

# Test images are written with Pillow's own JPEG 2000 encoder.
if not features.check('jpg_2000'):  # pragma: no cover
    ENCODER_NOT_AVAILABLE = True
    ENCODER_NOT_AVAILABLE_MSG = "Pillow must be built with JPEG 2000 support."
else:
    ENCODER_NOT_AVAILABLE = False
    ENCODER_NOT_AVAILABLE_MSG = None

CANNOT_DECODE = OPENJPEG_NOT_AVAILABLE or ENCODER_NOT_AVAILABLE
CANNOT_DECODE_MSG = OPENJPEG_NOT_AVAILABLE_MSG or ENCODER_NOT_AVAILABLE_MSG


def encode(array, mode=None, no_jp2=False, **kwargs):
    """Losslessly encode an array with Pillow.

    Parameters
    ----------
    array : ndarray
        uint8 samples, shape (h, w) or (h, w, c).
    mode : str, optional
        Pillow mode of the image, inferred from the array by default.
    no_jp2 : bool
        If True, write a raw codestream instead of a JP2 file.

    Returns
    -------
    bytes
    """
    image = Image.fromarray(array, mode) if mode else Image.fromarray(array)
    b = io.BytesIO()
    image.save(b, format='JPEG2000', no_jp2=no_jp2, **kwargs)
    return b.getvalue()


def gradient(height, width, channels=None):
    """Deterministic uint8 test pattern."""
    shape = (height, width) if channels is None else (height, width, channels)
    return (np.arange(np.prod(shape)) * 7 % 256).astype(np.uint8).reshape(shape)


class SyntheticImage(object):
    """An opj_image_t assembled in Python memory.

    Stands in for an image produced by the decoder, so that the ownership
    and normalization code can be run without the native library.

    Parameters
    ----------
    planes : list
        2D integer arrays, one per component.
    color_space : int
        One of the opj2.CLRSPC_* values.
    precision : int or list
        Bits per sample, for all components or per component.
    is_signed : bool
        Whether or not the samples are signed.
    alpha : list, optional
        Indices of the components flagged as alpha.
    """

    def __init__(self, planes, color_space=opj2.CLRSPC_SRGB, precision=8,
                 is_signed=False, alpha=()):
        self.arrays = [np.ascontiguousarray(p, dtype=np.int32) for p in planes]
        if isinstance(precision, int):
            precision = [precision] * len(planes)

        self.comps = (opj2.ImageCompType * len(planes))()
        for k, (comp, array) in enumerate(zip(self.comps, self.arrays)):
            comp.h, comp.w = array.shape
            comp.dx = comp.dy = 1
            comp.prec = comp.bpp = precision[k]
            comp.sgnd = 1 if is_signed else 0
            comp.alpha = 1 if k in alpha else 0
            comp.data = array.ctypes.data_as(ctypes.POINTER(ctypes.c_int32))

        self.image = opj2.ImageType()
        self.image.x0 = self.image.y0 = 0
        if len(planes) > 0:
            self.image.y1, self.image.x1 = self.arrays[0].shape
        self.image.numcomps = len(planes)
        self.image.color_space = color_space
        self.image.comps = ctypes.cast(
            self.comps, ctypes.POINTER(opj2.ImageCompType)
        )
        self.pointer = ctypes.pointer(self.image)

        self.destroyed = 0

    def destroy(self, raw_image):
        self.destroyed += 1

    def decoded(self):
        """Hand the structure to a DecodedImage."""
        return DecodedImage(self.pointer, destroy=self.destroy)


class TestCommon(unittest.TestCase):
    """
    Common setup for many if not all tests.
    """

    def setUp(self):
        jpeg2k.reset_option('all')

        # Create a temporary directory to be cleaned up following each test, as
        # well as names for a JP2 and a J2K file.
        self.test_dir = tempfile.mkdtemp()
        self.test_dir_path = pathlib.Path(self.test_dir)
        self.temp_jp2_filename = self.test_dir_path / "test.jp2"
        self.temp_j2k_filename = self.test_dir_path / "test.j2k"

    def tearDown(self):
        jpeg2k.reset_option('all')
        shutil.rmtree(self.test_dir)
