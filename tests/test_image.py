"""
Tests for ownership of decoded images.
"""
# Standard library imports ...
import copy
import ctypes
import gc
import pickle
import unittest

# Third party library imports ...
import numpy as np

# Local imports ...
from jpeg2k.errors import (
    AccessError, IndexOutOfRangeError, ReleasedImageError,
    UnsupportedFeatureError
)
from jpeg2k.image import ColorSpace, DecodedImage, describe
from jpeg2k.lib import openjp2 as opj2
from . import fixtures


class TestDecodedImage(unittest.TestCase):

    def setUp(self):
        planes = [
            np.arange(6).reshape(2, 3),
            np.arange(6).reshape(2, 3) + 10,
            np.arange(6).reshape(2, 3) + 20,
        ]
        self.synthetic = fixtures.SyntheticImage(planes)

    def test_accessors(self):
        with self.synthetic.decoded() as image:
            self.assertEqual(image.width, 3)
            self.assertEqual(image.height, 2)
            self.assertEqual(image.color_space, ColorSpace.SRGB)
            self.assertEqual(image.component_count, 3)
            self.assertEqual(image.orig_width, 3)
            self.assertEqual(image.orig_height, 2)
            self.assertEqual((image.x_offset, image.y_offset), (0, 0))
            self.assertFalse(image.has_icc_profile)
            self.assertIsNone(image.icc_profile)

            component = image.component(1)
            self.assertEqual(component.precision, 8)
            self.assertFalse(component.is_signed)
            self.assertFalse(component.is_alpha)
            np.testing.assert_array_equal(
                component.samples, np.arange(6).reshape(2, 3) + 10
            )

    def test_component_view_is_not_a_copy(self):
        """
        SCENARIO:  Read a component through its view.

        EXPECTED RESULT:  The view shares the native buffer and is read-only.
        """
        with self.synthetic.decoded() as image:
            view = image.component(0).view()
            self.assertTrue(np.shares_memory(view, self.synthetic.arrays[0]))
            self.assertFalse(view.flags.writeable)

    def test_numpy_integer_index(self):
        with self.synthetic.decoded() as image:
            component = image.component(np.int64(2))
        self.assertEqual(component.index, 2)

    def test_index_out_of_range(self):
        """
        SCENARIO:  Ask for a component that does not exist.

        EXPECTED RESULT:  IndexOutOfRangeError, which is also an IndexError
        """
        with self.synthetic.decoded() as image:
            for index in (3, -1, 'zero'):
                with self.subTest(index=index):
                    with self.assertRaises(IndexOutOfRangeError):
                        image.component(index)
            with self.assertRaises(IndexError):
                image.component(99)

    def test_release_is_idempotent(self):
        """
        SCENARIO:  Release an image twice, then let a with block release it
        a third time.

        EXPECTED RESULT:  The native memory is freed exactly once.
        """
        image = self.synthetic.decoded()
        with image:
            image.release()
            image.release()
        self.assertEqual(self.synthetic.destroyed, 1)
        self.assertTrue(image.is_released)

    def test_access_after_release(self):
        """
        SCENARIO:  Use accessors after the image has been released.

        EXPECTED RESULT:  ReleasedImageError, which is an AccessError
        """
        image = self.synthetic.decoded()
        component = image.component(0)
        image.release()

        accessors = [
            lambda: image.width,
            lambda: image.height,
            lambda: image.color_space,
            lambda: image.component_count,
            lambda: image.components,
            lambda: image.component(0),
            lambda: image.icc_profile,
            lambda: image.info,
            lambda: component.view(),
            lambda: component.samples,
        ]
        for accessor in accessors:
            with self.assertRaises(ReleasedImageError):
                accessor()
        self.assertTrue(issubclass(ReleasedImageError, AccessError))

    def test_release_on_exception(self):
        """
        SCENARIO:  An exception leaves a with block.

        EXPECTED RESULT:  The image is released.
        """
        with self.assertRaises(RuntimeError):
            with self.synthetic.decoded() as image:
                raise RuntimeError('fail')
        self.assertTrue(image.is_released)
        self.assertEqual(self.synthetic.destroyed, 1)

    def test_release_on_garbage_collection(self):
        image = self.synthetic.decoded()
        del image
        gc.collect()
        self.assertEqual(self.synthetic.destroyed, 1)

    def test_cannot_copy(self):
        with self.synthetic.decoded() as image:
            for func in (copy.copy, copy.deepcopy, pickle.dumps):
                with self.subTest(func=func.__name__):
                    with self.assertRaises(TypeError):
                        func(image)

    def test_null_image(self):
        with self.assertRaises(ValueError):
            DecodedImage(ctypes.POINTER(opj2.ImageType)())

    def test_repr_and_str(self):
        image = self.synthetic.decoded()
        self.assertIn('SRGB', repr(image))
        self.assertIn('Components:  3', str(image))
        image.release()
        self.assertEqual(repr(image), 'DecodedImage(<released>)')
        self.assertEqual(str(image), 'Decoded image:  released')

    def test_info(self):
        with self.synthetic.decoded() as image:
            info = image.info
        self.assertEqual((info.width, info.height), (3, 2))
        self.assertEqual(info.color_space, ColorSpace.SRGB)
        self.assertEqual(len(info.components), 3)
        self.assertEqual(info.components[0].precision, 8)


class TestNoSampleData(unittest.TestCase):

    def test_null_component_data(self):
        """
        SCENARIO:  The decoder left a component without sample data.

        EXPECTED RESULT:  UnsupportedFeatureError
        """
        synthetic = fixtures.SyntheticImage(
            [np.zeros((2, 2))], color_space=opj2.CLRSPC_GRAY
        )
        synthetic.comps[0].data = None
        with synthetic.decoded() as image:
            with self.assertRaises(UnsupportedFeatureError):
                image.component(0).view()


class TestColorSpace(unittest.TestCase):

    def test_unspecified_is_unknown(self):
        actual = ColorSpace.from_openjpeg(opj2.CLRSPC_UNSPECIFIED)
        self.assertEqual(actual, ColorSpace.UNKNOWN)
        self.assertIsNone(actual.roles)

    def test_roles(self):
        self.assertEqual(ColorSpace.GRAY.roles, ('gray',))
        self.assertEqual(len(ColorSpace.SRGB.roles), 3)
        self.assertEqual(ColorSpace.SYCC.roles, ('luma', 'cb', 'cr'))

    def test_unsupported(self):
        """
        SCENARIO:  eYCC and CMYK color spaces.

        EXPECTED RESULT:  UnsupportedFeatureError
        """
        for value in (opj2.CLRSPC_EYCC, opj2.CLRSPC_CMYK, 42):
            with self.subTest(value=value):
                with self.assertRaises(UnsupportedFeatureError):
                    ColorSpace.from_openjpeg(value)

    def test_describe_flags_alpha(self):
        synthetic = fixtures.SyntheticImage(
            [np.zeros((2, 2)), np.zeros((2, 2))],
            color_space=opj2.CLRSPC_GRAY, alpha=(1,)
        )
        info = describe(synthetic.pointer)
        self.assertFalse(info.components[0].is_alpha)
        self.assertTrue(info.components[1].is_alpha)
