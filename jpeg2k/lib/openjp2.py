"""
Wraps individual functions in openjp2 library.

Only the decompression half of the library is wrapped.
"""

import ctypes

from ..config import load_library

OPENJP2 = load_library('openjp2')


class OpenJPEGLibraryError(IOError):
    """
    Issue when the OpenJPEG library signals an error.
    """
    pass


def version():
    """Wrapper for opj_version library routine."""
    try:
        OPENJP2.opj_version.restype = ctypes.c_char_p
    except AttributeError:
        # no library was loaded
        return "0.0.0"

    library_version = OPENJP2.opj_version()
    return library_version.decode('utf-8')


# Map certain atomic OpenJPEG datatypes to the ctypes equivalents.
BOOL_TYPE = ctypes.c_int32
CODEC_TYPE = ctypes.c_void_p
STREAM_TYPE_P = ctypes.c_void_p
OFF_TYPE = ctypes.c_int64
SIZE_TYPE = ctypes.c_size_t

PATH_LEN = 4096

TRUE = 1
FALSE = 0

# supported color spaces
CLRSPC_UNKNOWN = -1
CLRSPC_UNSPECIFIED = 0
CLRSPC_SRGB = 1
CLRSPC_GRAY = 2
CLRSPC_SYCC = 3
CLRSPC_EYCC = 4
CLRSPC_CMYK = 5
COLOR_SPACE_TYPE = ctypes.c_int

# supported codec
CODEC_FORMAT_TYPE = ctypes.c_int
CODEC_UNKNOWN = -1
CODEC_J2K = 0
CODEC_JPT = 1
CODEC_JP2 = 2

# Message handlers receive the message and the client data pointer.
MSG_CALLBACK_TYPE = ctypes.CFUNCTYPE(
    ctypes.c_void_p, ctypes.c_char_p, ctypes.c_void_p
)

# Stream callbacks.  A read callback returns (OPJ_SIZE_T) -1 at the end of
# the stream, a skip callback returns the number of bytes skipped or -1,
# a seek callback returns OPJ_TRUE on success.
STREAM_READ_TYPE = ctypes.CFUNCTYPE(
    SIZE_TYPE, ctypes.c_void_p, SIZE_TYPE, ctypes.c_void_p
)
STREAM_SKIP_TYPE = ctypes.CFUNCTYPE(OFF_TYPE, OFF_TYPE, ctypes.c_void_p)
STREAM_SEEK_TYPE = ctypes.CFUNCTYPE(BOOL_TYPE, OFF_TYPE, ctypes.c_void_p)

STREAM_READ_EOF = SIZE_TYPE(-1).value


class DecompressionParametersType(ctypes.Structure):
    """Decompression parameters.

    Corresponds to dparameters_t type in openjp2 headers.
    """
    _fields_ = [
        # Set the number of highest resolution levels to be discarded.  The
        # image resolution is effectively divided by 2 to the power of
        # discarded levels.  The reduce factor is limited by the smallest
        # total number of decomposition levels among tiles.
        ("cp_reduce",         ctypes.c_uint32),

        # Set the maximum number of quality layers to decode.
        # If != 0, then only the first cp_layer layers are decoded.
        # If == 0 or not used, all the quality layers are decoded.
        ("cp_layer",          ctypes.c_uint32),

        # input file name
        ("infile",            ctypes.c_char * PATH_LEN),

        # output file name
        ("outfile",           ctypes.c_char * PATH_LEN),

        # input file format 0: J2K, 1: JP2, 2: JPT
        ("decod_format",      ctypes.c_int),
        ("cod_format",        ctypes.c_int),

        # Decoding area left and right boundary.
        # Decoding area upper and lower boundary.
        ("DA_x0",             ctypes.c_uint32),
        ("DA_x1",             ctypes.c_uint32),
        ("DA_y0",             ctypes.c_uint32),
        ("DA_y1",             ctypes.c_uint32),

        # verbose mode
        ("m_verbose",         BOOL_TYPE),

        # tile number of the decoded tile
        ("tile_index",        ctypes.c_uint32),

        # number of tiles to decode
        ("nb_tile_to_decode", ctypes.c_uint32),

        # activates the JPWL correction capabilities
        ("jpwl_correct",      BOOL_TYPE),

        # expected number of components
        ("jpwl_exp_comps",    ctypes.c_int32),

        # maximum number of tiles
        ("jpwl_max_tiles",    ctypes.c_int32),

        # OPJ_DPARAMETERS_IGNORE_PCLR_CMAP_CDEF_FLAG and friends
        ("flags",             ctypes.c_uint32)]

    def __str__(self):
        msg = f"{self.__class__}:\n"
        for field_name, _ in self._fields_:
            if field_name in ('infile', 'outfile'):
                continue
            msg += f"    {field_name}: {getattr(self, field_name)}\n"
        return msg


class ImageCompType(ctypes.Structure):
    """Defines a single image component.

    Corresponds to image_comp_t type in openjp2 headers.
    """
    _fields_ = [
        # XRsiz, YRsiz:  horizontal, vertical separation of ith component with
        # respect to the reference grid
        ("dx",                  ctypes.c_uint32),
        ("dy",                  ctypes.c_uint32),

        # data width and height
        ("w",                   ctypes.c_uint32),
        ("h",                   ctypes.c_uint32),

        # x, y component offset compared to the whole image
        ("x0",                  ctypes.c_uint32),
        ("y0",                  ctypes.c_uint32),

        # component depth in bits
        ("prec",                ctypes.c_uint32),

        # deprecated alias of prec, kept for the structure layout
        ("bpp",                 ctypes.c_uint32),

        # signed (1) or unsigned (0)
        ("sgnd",                ctypes.c_uint32),

        # number of decoded resolution
        ("resno_decoded",       ctypes.c_uint32),

        # number of division by 2 of the out image component as compared to
        # the original size of the image
        ("factor",              ctypes.c_uint32),

        # image component data
        ("data",                ctypes.POINTER(ctypes.c_int32)),

        # alpha channel
        ("alpha",               ctypes.c_uint16)]

    def __str__(self):
        msg = f"{self.__class__}:\n"
        for field_name, _ in self._fields_:
            msg += f"    {field_name}: {getattr(self, field_name)}\n"
        return msg


class ImageType(ctypes.Structure):
    """Defines image data and characteristics.

    Corresponds to image_t type in openjp2 headers.
    """
    _fields_ = [
        # XOsiz, YOsiz:  horizontal and vertical offset from the origin of the
        # reference grid to the left side of the image area
        ("x0",                  ctypes.c_uint32),
        ("y0",                  ctypes.c_uint32),

        # Xsiz, Ysiz:  width and height of the reference grid.
        ("x1",                  ctypes.c_uint32),
        ("y1",                  ctypes.c_uint32),

        # number of components in the image
        ("numcomps",            ctypes.c_uint32),

        # color space:  should be sRGB, greyscale, or YUV
        ("color_space",         COLOR_SPACE_TYPE),

        # image components
        ("comps",               ctypes.POINTER(ImageCompType)),

        # restricted ICC profile buffer
        ("icc_profile_buf",     ctypes.POINTER(ctypes.c_uint8)),

        # restricted ICC profile buffer length
        ("icc_profile_len",     ctypes.c_uint32)]

    def __str__(self):
        msg = f"{self.__class__}:\n"
        for field_name, _ in self._fields_:

            if field_name == "numcomps":
                msg += f"    numcomps: {self.numcomps}\n"
                for j in range(self.numcomps):
                    msg += f"        comps[#{j}]:\n"
                    for name, _ in ImageCompType._fields_:
                        value = getattr(self.comps[j], name)
                        msg += f"            {name}: {value}\n"

            elif field_name == "comps":
                # handled above
                pass

            else:
                msg += f"    {field_name}: {getattr(self, field_name)}\n"

        return msg


def check_error(status):
    """Set a generic function as the restype attribute of all OpenJPEG
    functions that return a BOOL_TYPE value.  This way we do not have to check
    for error status in each wrapping function and an exception will always be
    appropriately raised.

    The library's own messages are delivered to the handlers installed on the
    codec, so the caller is responsible for attaching them to the exception.
    """
    if status != 1:
        raise OpenJPEGLibraryError("OpenJPEG function failure.")


def codec_set_threads(codec, num_threads):
    """Allocates worker threads for the compressor/decompressor.

    Wraps the openjp2 library function opj_codec_set_threads.

    Parameters
    ----------
    codec : CODEC_TYPE
        The JPEG2000 codec
    num_threads : int
        Number of threads.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_codec_set_threads fails.
    """
    OPENJP2.opj_codec_set_threads.argtypes = [CODEC_TYPE, ctypes.c_int]
    OPENJP2.opj_codec_set_threads.restype = check_error
    OPENJP2.opj_codec_set_threads(codec, ctypes.c_int(num_threads))


def create_decompress(codec_format):
    """Creates a J2K/JP2 decompress structure.

    Wraps the openjp2 library function opj_create_decompress.

    Parameters
    ----------
    codec_format : int
        Specifies codec to select.  Should be one of CODEC_J2K or CODEC_JP2.

    Returns
    -------
    codec : Reference to CODEC_TYPE instance.
    """
    OPENJP2.opj_create_decompress.argtypes = [CODEC_FORMAT_TYPE]
    OPENJP2.opj_create_decompress.restype = CODEC_TYPE

    codec = OPENJP2.opj_create_decompress(codec_format)
    return codec


def decode(codec, stream, image):
    """Reads an entire image.

    Wraps the openjp2 library function opj_decode.

    Parameters
    ----------
    codec : CODEC_TYPE
        The JPEG2000 codec
    stream : STREAM_TYPE_P
        The stream to decode.
    image : ImageType
        Output image structure.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_decode fails.
    """
    OPENJP2.opj_decode.argtypes = [CODEC_TYPE, STREAM_TYPE_P,
                                   ctypes.POINTER(ImageType)]
    OPENJP2.opj_decode.restype = check_error

    OPENJP2.opj_decode(codec, stream, image)


def decoder_set_strict_mode(codec, strict):
    """Set strict decoding mode.

    Wraps the openjp2 library function opj_decoder_set_strict_mode, new in
    version 2.5.0.  In strict mode a truncated codestream is an error instead
    of a partially decoded image.

    Parameters
    ----------
    codec : CODEC_TYPE
        The JPEG2000 codec
    strict : bool
        Whether or not to enable strict mode.
    """
    OPENJP2.opj_decoder_set_strict_mode.argtypes = [CODEC_TYPE, BOOL_TYPE]
    OPENJP2.opj_decoder_set_strict_mode.restype = check_error
    OPENJP2.opj_decoder_set_strict_mode(codec, TRUE if strict else FALSE)


def destroy_codec(codec):
    """Destroy a decompressor handle.

    Wraps the openjp2 library function opj_destroy_codec.

    Parameters
    ----------
    codec : CODEC_TYPE
        Decompressor handle to destroy.
    """
    OPENJP2.opj_destroy_codec.argtypes = [CODEC_TYPE]
    OPENJP2.opj_destroy_codec.restype = ctypes.c_void_p
    OPENJP2.opj_destroy_codec(codec)


def end_decompress(codec, stream):
    """End of decompressing the current image.

    Wraps the openjp2 library function opj_end_decompress.

    Parameters
    ----------
    codec : CODEC_TYPE
        Compressor handle.
    stream : STREAM_TYPE_P
        Input stream.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_end_decompress fails.
    """
    OPENJP2.opj_end_decompress.argtypes = [CODEC_TYPE, STREAM_TYPE_P]
    OPENJP2.opj_end_decompress.restype = check_error
    OPENJP2.opj_end_decompress(codec, stream)


def has_thread_support():
    """Is the library configured with thread support?

    Wraps the openjp2 library function opj_has_thread_support.
    """
    OPENJP2.opj_has_thread_support.restype = BOOL_TYPE
    return OPENJP2.opj_has_thread_support() == TRUE


def image_destroy(image):
    """Deallocate any resources associated with an image.

    Wraps the openjp2 library function opj_image_destroy.

    Parameters
    ----------
    image : ImageType pointer
        Image resource to be disposed.
    """
    OPENJP2.opj_image_destroy.argtypes = [ctypes.POINTER(ImageType)]
    OPENJP2.opj_image_destroy.restype = ctypes.c_void_p

    OPENJP2.opj_image_destroy(image)


def read_header(stream, codec):
    """Decodes an image header.

    Wraps the openjp2 library function opj_read_header.

    Parameters
    ----------
    stream: STREAM_TYPE_P
        The JPEG2000 stream.
    codec:  codec_t
        The JPEG2000 codec to read.

    Returns
    -------
    imagep : reference to ImageType instance
        The image structure initialized with image characteristics.  The
        pointer may be non-NULL even when the call fails, so the caller must
        destroy it either way.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_read_header fails.
    """
    ARGTYPES = [STREAM_TYPE_P, CODEC_TYPE,
                ctypes.POINTER(ctypes.POINTER(ImageType))]
    OPENJP2.opj_read_header.argtypes = ARGTYPES
    OPENJP2.opj_read_header.restype = BOOL_TYPE

    imagep = ctypes.POINTER(ImageType)()
    status = OPENJP2.opj_read_header(stream, codec, ctypes.byref(imagep))
    return status, imagep


def set_decode_area(codec, image, start_x=0, start_y=0, end_x=0, end_y=0):
    """Wraps openjp2 library function opj_set_decode area.

    Sets the given area to be decoded.  This function should be called right
    after read_header and before any tile header reading.

    Parameters
    ----------
    codec : CODEC_TYPE
        Codec initialized by create_decompress function.
    image : ImageType pointer
        The decoded image previously set by read_header.
    start_x, start_y : optional, int
        The left and upper position of the rectangle to decode.
    end_x, end_y : optional, int
        The right and lower position of the rectangle to decode.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_set_decode_area fails.
    """
    OPENJP2.opj_set_decode_area.argtypes = [CODEC_TYPE,
                                            ctypes.POINTER(ImageType),
                                            ctypes.c_int32,
                                            ctypes.c_int32,
                                            ctypes.c_int32,
                                            ctypes.c_int32]
    OPENJP2.opj_set_decode_area.restype = check_error

    OPENJP2.opj_set_decode_area(codec, image,
                                ctypes.c_int32(start_x),
                                ctypes.c_int32(start_y),
                                ctypes.c_int32(end_x),
                                ctypes.c_int32(end_y))


def set_default_decoder_parameters():
    """Wraps openjp2 library function opj_set_default_decoder_parameters.

    Sets decoding parameters to default values.

    Returns
    -------
    dparam : DecompressionParametersType
        Decompression parameters.
    """
    ARGTYPES = [ctypes.POINTER(DecompressionParametersType)]
    OPENJP2.opj_set_default_decoder_parameters.argtypes = ARGTYPES
    OPENJP2.opj_set_default_decoder_parameters.restype = ctypes.c_void_p

    dparams = DecompressionParametersType()
    OPENJP2.opj_set_default_decoder_parameters(ctypes.byref(dparams))
    return dparams


def set_error_handler(codec, handler, data=None):
    """Wraps openjp2 library function opj_set_error_handler.

    Set the error handler use by openjpeg.

    Parameters
    ----------
    codec : CODEC_TYPE
        Codec initialized by create_decompress function.
    handler : MSG_CALLBACK_TYPE
        The callback function to be used.
    user_data : anything
        User/client data.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_set_error_handler fails.
    """
    OPENJP2.opj_set_error_handler.argtypes = [CODEC_TYPE,
                                              ctypes.c_void_p,
                                              ctypes.c_void_p]
    OPENJP2.opj_set_error_handler.restype = check_error
    OPENJP2.opj_set_error_handler(codec, handler, data)


def set_info_handler(codec, handler, data=None):
    """Wraps openjp2 library function opj_set_info_handler.

    Set the info handler use by openjpeg.

    Parameters
    ----------
    codec : CODEC_TYPE
        Codec initialized by create_decompress function.
    handler : MSG_CALLBACK_TYPE
        The callback function to be used.
    user_data : anything
        User/client data.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_set_info_handler fails.
    """
    OPENJP2.opj_set_info_handler.argtypes = [CODEC_TYPE,
                                             ctypes.c_void_p,
                                             ctypes.c_void_p]
    OPENJP2.opj_set_info_handler.restype = check_error
    OPENJP2.opj_set_info_handler(codec, handler, data)


def set_warning_handler(codec, handler, data=None):
    """Wraps openjp2 library function opj_set_warning_handler.

    Set the warning handler use by openjpeg.

    Parameters
    ----------
    codec : CODEC_TYPE
        Codec initialized by create_decompress function.
    handler : MSG_CALLBACK_TYPE
        The callback function to be used.
    user_data : anything
        User/client data.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_set_warning_handler fails.
    """
    OPENJP2.opj_set_warning_handler.argtypes = [CODEC_TYPE,
                                                ctypes.c_void_p,
                                                ctypes.c_void_p]
    OPENJP2.opj_set_warning_handler.restype = check_error

    OPENJP2.opj_set_warning_handler(codec, handler, data)


def setup_decoder(codec, dparams):
    """Wraps openjp2 library function opj_setup_decoder.

    Setup the decoder with decompression parameters.

    Parameters
    ----------
    codec:  CODEC_TYPE
        Codec initialized by create_decompress function.
    dparams:  DecompressionParametersType
        Decompression parameters.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_setup_decoder fails.
    """
    ARGTYPES = [CODEC_TYPE, ctypes.POINTER(DecompressionParametersType)]
    OPENJP2.opj_setup_decoder.argtypes = ARGTYPES
    OPENJP2.opj_setup_decoder.restype = check_error

    OPENJP2.opj_setup_decoder(codec, ctypes.byref(dparams))


def stream_default_create(isa_read_stream):
    """Wraps openjp2 library function opj_stream_default_create.

    Creates an abstract stream whose reading is delegated to the callbacks
    installed with the stream_set_*_function wrappers.

    Parameters
    ----------
    isa_read_stream:  bool
        True (read) or False (write)

    Returns
    -------
    stream : stream_t
        An OpenJPEG stream.
    """
    OPENJP2.opj_stream_default_create.argtypes = [BOOL_TYPE]
    OPENJP2.opj_stream_default_create.restype = STREAM_TYPE_P
    read_stream = TRUE if isa_read_stream else FALSE
    stream = OPENJP2.opj_stream_default_create(read_stream)
    return stream


def stream_destroy(stream):
    """Wraps openjp2 library function opj_stream_destroy.

    Destroys the stream created by create_stream.

    Parameters
    ----------
    stream : STREAM_TYPE_P
        The file stream.
    """
    OPENJP2.opj_stream_destroy.argtypes = [STREAM_TYPE_P]
    OPENJP2.opj_stream_destroy.restype = ctypes.c_void_p
    OPENJP2.opj_stream_destroy(stream)


def stream_set_read_function(stream, read_function):
    """Wraps openjp2 library function opj_stream_set_read_function.

    Parameters
    ----------
    stream : STREAM_TYPE_P
        The stream.
    read_function : STREAM_READ_TYPE
        Copies at most nb_bytes of input into the library buffer.
    """
    ARGTYPES = [STREAM_TYPE_P, STREAM_READ_TYPE]
    OPENJP2.opj_stream_set_read_function.argtypes = ARGTYPES
    OPENJP2.opj_stream_set_read_function.restype = ctypes.c_void_p
    OPENJP2.opj_stream_set_read_function(stream, read_function)


def stream_set_seek_function(stream, seek_function):
    """Wraps openjp2 library function opj_stream_set_seek_function.

    Parameters
    ----------
    stream : STREAM_TYPE_P
        The stream.
    seek_function : STREAM_SEEK_TYPE
        Moves the read position to an absolute offset.
    """
    ARGTYPES = [STREAM_TYPE_P, STREAM_SEEK_TYPE]
    OPENJP2.opj_stream_set_seek_function.argtypes = ARGTYPES
    OPENJP2.opj_stream_set_seek_function.restype = ctypes.c_void_p
    OPENJP2.opj_stream_set_seek_function(stream, seek_function)


def stream_set_skip_function(stream, skip_function):
    """Wraps openjp2 library function opj_stream_set_skip_function.

    Parameters
    ----------
    stream : STREAM_TYPE_P
        The stream.
    skip_function : STREAM_SKIP_TYPE
        Advances the read position by a relative amount.
    """
    ARGTYPES = [STREAM_TYPE_P, STREAM_SKIP_TYPE]
    OPENJP2.opj_stream_set_skip_function.argtypes = ARGTYPES
    OPENJP2.opj_stream_set_skip_function.restype = ctypes.c_void_p
    OPENJP2.opj_stream_set_skip_function(stream, skip_function)


def stream_set_user_data_length(stream, length):
    """Wraps openjp2 library function opj_stream_set_user_data_length.

    The length is needed for JP2 boxes whose length runs to the end of the
    stream.

    Parameters
    ----------
    stream : STREAM_TYPE_P
        The stream.
    length : int
        Total number of bytes available to the stream.
    """
    ARGTYPES = [STREAM_TYPE_P, ctypes.c_uint64]
    OPENJP2.opj_stream_set_user_data_length.argtypes = ARGTYPES
    OPENJP2.opj_stream_set_user_data_length.restype = ctypes.c_void_p
    OPENJP2.opj_stream_set_user_data_length(stream, ctypes.c_uint64(length))
