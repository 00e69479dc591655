"""Decode JPEG 2000 codestreams with the OpenJPEG library.

Every call builds its own codec, stream and message collector, so decoding
from several threads at once is safe.
"""
# Standard library imports
from contextlib import ExitStack
import logging
import os
import pathlib

# Local imports
from . import core, version
from .errors import (
    DecodeError, DecodeIOError, InvalidCodestreamError,
    StrictModeWarningError, UnsupportedFeatureError
)
from .format import detect_format, format_name
from .image import ColorSpace, DecodedImage, describe
from .lib import openjp2 as opj2
from .options import get_option
from .stream import BufferStream


logger = logging.getLogger(__name__)

# opj_decoder_set_strict_mode and the alpha flag of opj_image_comp_t are
# relied upon, and older libraries have known decoding flaws.
MIN_OPENJPEG_VERSION = (2, 3, 0)


class DecodeConfig(object):
    """Per-call decoder settings.

    Parameters
    ----------
    reduce : int, optional
        Number of highest resolution levels to discard, zero meaning full
        resolution.  Defaults to the decode.reduce option.
    strict : bool, optional
        If True, any warning from the decoder is an error.  Defaults to the
        decode.strict option.
    num_threads : int, optional
        Number of decoder threads, zero leaving the choice to OpenJPEG.
        Defaults to the lib.num_threads option.
    layer : int, optional
        Maximum number of quality layers to decode, zero meaning all of
        them.  Defaults to the decode.layer option.
    area : tuple, optional
        Decode only this region, (first_row, first_col, last_row, last_col)
        on the reference grid.

    Raises
    ------
    ValueError
        If any of the settings is out of range.
    """

    def __init__(
        self, reduce=None, strict=None, num_threads=None, layer=None, area=None
    ):
        if reduce is None:
            reduce = get_option('decode.reduce')
        if strict is None:
            strict = get_option('decode.strict')
        if num_threads is None:
            num_threads = get_option('lib.num_threads')
        if layer is None:
            layer = get_option('decode.layer')

        for name, value in (
            ('reduce', reduce), ('num_threads', num_threads), ('layer', layer)
        ):
            if isinstance(value, bool) or not isinstance(value, int):
                msg = f"{name} must be an integer, not {value!r}."
                raise ValueError(msg)
            if value < 0:
                msg = f"{name} must be non-negative, not {value}."
                raise ValueError(msg)

        if area is not None:
            area = tuple(area)
            if len(area) != 4:
                msg = (
                    f"The area must be given as (first_row, first_col, "
                    f"last_row, last_col), not {area}."
                )
                raise ValueError(msg)
            if area[0] < 0 or area[1] < 0 or area[2] <= 0 or area[3] <= 0:
                msg = (
                    f"The upper left corner coordinates must be nonnegative "
                    f"and the lower right corner coordinates must be "
                    f"positive.  The specified upper left and lower right "
                    f"coordinates are ({area[0]}, {area[1]}) and "
                    f"({area[2]}, {area[3]})."
                )
                raise ValueError(msg)
            if area[2] <= area[0] or area[3] <= area[1]:
                msg = f"The area {area} is empty."
                raise ValueError(msg)

        self.reduce = reduce
        self.strict = bool(strict)
        self.num_threads = num_threads
        self.layer = layer
        self.area = area

    def __repr__(self):
        return (
            f"DecodeConfig(reduce={self.reduce}, strict={self.strict}, "
            f"num_threads={self.num_threads}, layer={self.layer}, "
            f"area={self.area})"
        )


class _LibraryMessages(object):
    """Collect the messages OpenJPEG emits for one codec.

    Messages are logged as they arrive.  The callbacks are attributes of the
    instance, which must outlive the codec.
    """

    def __init__(self):
        self.errors = []
        self.warnings = []

        self._info_callback = opj2.MSG_CALLBACK_TYPE(self._info)
        self._warning_callback = opj2.MSG_CALLBACK_TYPE(self._warning)
        self._error_callback = opj2.MSG_CALLBACK_TYPE(self._error)

    def install(self, codec):
        opj2.set_info_handler(codec, self._info_callback)
        opj2.set_warning_handler(codec, self._warning_callback)
        opj2.set_error_handler(codec, self._error_callback)

    def describe(self, msg):
        """Append the collected error messages to msg."""
        if len(self.errors) == 0:
            return msg
        return msg + "  OpenJPEG reported:  " + "  ".join(self.errors)

    @staticmethod
    def _decode(msg):
        return msg.decode('utf-8', errors='replace').rstrip()

    def _info(self, msg, _):
        logger.info(f"OpenJPEG library info:  {self._decode(msg)}")

    def _warning(self, msg, _):
        msg = self._decode(msg)
        self.warnings.append(msg)
        logger.warning(f"OpenJPEG library warning:  {msg}")

    def _error(self, msg, _):
        msg = self._decode(msg)
        self.errors.append(msg)
        logger.error(f"OpenJPEG library error:  {msg}")


def _check_library():
    if opj2.OPENJP2 is None:
        msg = (
            "The OpenJPEG library could not be loaded, so JPEG 2000 images "
            "cannot be decoded.  See the jpeg2krc configuration file."
        )
        raise UnsupportedFeatureError(msg)

    if version.openjpeg_version_tuple < MIN_OPENJPEG_VERSION:
        msg = (
            f"OpenJPEG {version.openjpeg_version} is too old, decoding "
            f"requires version "
            f"{'.'.join(str(x) for x in MIN_OPENJPEG_VERSION)} or higher."
        )
        raise UnsupportedFeatureError(msg)


def _populate_dparams(codec_format, config):
    """Decompression parameters for the codec."""
    dparams = opj2.set_default_decoder_parameters()
    dparams.decod_format = codec_format
    dparams.cp_reduce = config.reduce
    dparams.cp_layer = config.layer
    return dparams


def _setup_codec(stack, codec_format, config, messages):
    codec = opj2.create_decompress(codec_format)
    if not codec:
        msg = f"No {format_name(codec_format)} decoder is available."
        raise UnsupportedFeatureError(msg)
    stack.callback(opj2.destroy_codec, codec)

    messages.install(codec)

    dparams = _populate_dparams(codec_format, config)
    try:
        opj2.setup_decoder(codec, dparams)
    except opj2.OpenJPEGLibraryError as err:
        msg = messages.describe("Unable to set up the decoder.")
        raise DecodeError(msg) from err

    if config.strict and version.openjpeg_version_tuple >= (2, 5, 0):
        opj2.decoder_set_strict_mode(codec, True)

    if config.num_threads > 0:
        if opj2.has_thread_support():
            opj2.codec_set_threads(codec, config.num_threads)
        else:
            logger.warning(
                f"The OpenJPEG library is not configured with thread "
                f"support, ignoring num_threads={config.num_threads}."
            )

    return codec


def _read_header(stack, stream, codec, messages):
    """Read the main header.  The image is destroyed when the stack exits."""
    status, raw_image = opj2.read_header(stream, codec)
    if raw_image:
        stack.callback(opj2.image_destroy, raw_image)

    if status != opj2.TRUE or not raw_image:
        msg = messages.describe("Unable to read the JPEG 2000 header.")
        raise InvalidCodestreamError(msg)

    return raw_image


def _check_header(raw_image):
    image = raw_image.contents
    if image.numcomps == 0:
        raise InvalidCodestreamError("The image has no components.")

    # raises UnsupportedFeatureError for eYCC and CMYK
    ColorSpace.from_openjpeg(image.color_space)

    for k, comp in enumerate(image.comps[:image.numcomps]):
        if comp.prec > core.MAX_PRECISION:
            msg = (
                f"Component {k} has a precision of {comp.prec} bits, more "
                f"than the {core.MAX_PRECISION} bits that can be decoded."
            )
            raise UnsupportedFeatureError(msg)


def _check_samples(raw_image):
    image = raw_image.contents
    for k, comp in enumerate(image.comps[:image.numcomps]):
        if not comp.data:
            msg = f"The decoder produced no sample data for component {k}."
            raise UnsupportedFeatureError(msg)


def _check_strict(config, messages):
    if config.strict and len(messages.warnings) > 0:
        msg = (
            f"Strict mode is on and the decoder reported "
            f"{len(messages.warnings)} warning(s):  "
            + "  ".join(messages.warnings)
        )
        raise StrictModeWarningError(msg, warnings=messages.warnings)


def _run(data, config, header_only):
    """Decode data, returning either an ImageInfo or a DecodedImage."""
    codec_format = detect_format(data)
    _check_library()

    if config is None:
        config = DecodeConfig()

    messages = _LibraryMessages()
    buffer_stream = BufferStream(data)

    # The image guard is the outer stack, so codec and stream are gone by
    # the time the image is either destroyed or handed over.
    with ExitStack() as image_guard:
        with ExitStack() as stack:
            stream = buffer_stream.create()
            if not stream:
                raise DecodeError("Unable to create an OpenJPEG stream.")
            stack.callback(opj2.stream_destroy, stream)

            codec = _setup_codec(stack, codec_format, config, messages)
            raw_image = _read_header(image_guard, stream, codec, messages)
            _check_header(raw_image)

            if header_only:
                _check_strict(config, messages)
                return describe(raw_image)

            try:
                if config.area is not None:
                    first_row, first_col, last_row, last_col = config.area
                    opj2.set_decode_area(
                        codec, raw_image,
                        first_col, first_row, last_col, last_row
                    )
            except opj2.OpenJPEGLibraryError as err:
                msg = messages.describe(
                    f"The decode area {config.area} is not valid for this "
                    f"image."
                )
                raise ValueError(msg) from err

            try:
                opj2.decode(codec, stream, raw_image)
                opj2.end_decompress(codec, stream)
            except opj2.OpenJPEGLibraryError as err:
                msg = messages.describe(
                    f"Unable to decode the {format_name(codec_format)} "
                    f"codestream."
                )
                raise InvalidCodestreamError(msg) from err

        _check_samples(raw_image)
        _check_strict(config, messages)

        image = DecodedImage(raw_image)
        image_guard.pop_all()

    logger.debug(f"Decoded {image!r}")
    return image


def decode(source, config=None):
    """Decode a JPEG 2000 image.

    Parameters
    ----------
    source : bytes, bytearray, memoryview, str or path
        Encoded image, or the path of a file holding one.  Raw codestreams
        and JP2 files are told apart by their magic bytes.
    config : DecodeConfig, optional
        Decoder settings.  Defaults are taken from the options.

    Returns
    -------
    DecodedImage
        Owner of the decoded components.  Release it with ``release`` or a
        ``with`` block.

    Raises
    ------
    InvalidCodestreamError
        The input is not JPEG 2000, or is corrupt.
    UnsupportedFeatureError
        The image cannot be represented, or OpenJPEG is not available.
    DecodeIOError
        The file could not be read.
    StrictModeWarningError
        Strict mode is on and the decoder issued warnings.

    Examples
    --------
    >>> import jpeg2k
    >>> with jpeg2k.decode('nemo.jp2') as image:  # doctest: +SKIP
    ...     print(image.width, image.height, image.color_space.name)
    2592 1456 SRGB
    """
    if isinstance(source, (str, os.PathLike)):
        return decode_file(source, config)
    return _run(bytes(source), config, header_only=False)


def decode_file(path, config=None):
    """Read a file in one go and decode it.

    See decode for the parameters and errors.
    """
    return _run(_read_file(path), config, header_only=False)


def read_header(source, config=None):
    """Describe an image from its main header, decoding no samples.

    Parameters
    ----------
    source : bytes, bytearray, memoryview, str or path
        Encoded image, or the path of a file holding one.
    config : DecodeConfig, optional
        Only the strict and num_threads settings play a part.

    Returns
    -------
    ImageInfo
    """
    if isinstance(source, (str, os.PathLike)):
        data = _read_file(source)
    else:
        data = bytes(source)
    return _run(data, config, header_only=True)


def _read_file(path):
    path = pathlib.Path(path)
    try:
        return path.read_bytes()
    except OSError as err:
        msg = f"Unable to read {path}:  {err.strerror or err}"
        raise DecodeIOError(msg) from err
