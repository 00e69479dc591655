"""
Tests for libopenjp2 wrapping functions.
"""
# Standard library imports ...
from contextlib import ExitStack
import unittest
from unittest.mock import patch

# Local imports ...
from jpeg2k.lib import openjp2
from jpeg2k.stream import BufferStream
from . import fixtures
from .fixtures import CANNOT_DECODE, CANNOT_DECODE_MSG


class TestNoLibrary(unittest.TestCase):

    def test_no_openjp2_library(self):
        """
        SCENARIO:  There is no openjp2 library.

        EXPECTED RESPONSE:  The version method should return "0.0.0"
        """
        with patch.object(openjp2, 'OPENJP2', new=None):
            actual = openjp2.version()
        self.assertEqual(actual, '0.0.0')

    def test_check_error(self):
        openjp2.check_error(openjp2.TRUE)
        with self.assertRaises(openjp2.OpenJPEGLibraryError):
            openjp2.check_error(openjp2.FALSE)


@unittest.skipIf(
    fixtures.OPENJPEG_NOT_AVAILABLE, fixtures.OPENJPEG_NOT_AVAILABLE_MSG
)
class TestOpenJP2(unittest.TestCase):
    """Test openjp2 library functionality."""

    def test_default_decoder_parameters(self):
        """Tests that the structure is clean upon initialization"""
        dparams = openjp2.set_default_decoder_parameters()

        self.assertEqual(dparams.DA_x0, 0)
        self.assertEqual(dparams.DA_y0, 0)
        self.assertEqual(dparams.DA_x1, 0)
        self.assertEqual(dparams.DA_y1, 0)
        self.assertEqual(dparams.cp_reduce, 0)
        self.assertEqual(dparams.cp_layer, 0)

    def test_str(self):
        dparams = openjp2.set_default_decoder_parameters()
        self.assertIn('cp_reduce', str(dparams))

    @unittest.skipIf(CANNOT_DECODE, CANNOT_DECODE_MSG)
    def test_read_header(self):
        """
        SCENARIO:  Read the header of a 3-component raw codestream through
        the memory stream.

        EXPECTED RESULT:  The image structure describes the components.
        """
        data = fixtures.encode(fixtures.gradient(16, 24, 3), no_jp2=True)
        buffer_stream = BufferStream(data)

        with ExitStack() as stack:
            stream = buffer_stream.create()
            stack.callback(openjp2.stream_destroy, stream)
            codec = openjp2.create_decompress(openjp2.CODEC_J2K)
            stack.callback(openjp2.destroy_codec, codec)

            dparams = openjp2.set_default_decoder_parameters()
            openjp2.setup_decoder(codec, dparams)

            status, image = openjp2.read_header(stream, codec)
            stack.callback(openjp2.image_destroy, image)

            self.assertEqual(status, openjp2.TRUE)
            self.assertEqual(image.contents.numcomps, 3)
            self.assertEqual(image.contents.comps[0].w, 24)
            self.assertEqual(image.contents.comps[0].h, 16)
            self.assertEqual(image.contents.comps[0].prec, 8)
