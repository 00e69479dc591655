"""Detect the JPEG 2000 flavor of a byte buffer."""

# Local imports
from . import core
from .errors import InvalidCodestreamError
from .lib import openjp2 as opj2


def detect_format(data):
    """Determine the codec from the magic bytes.

    The file extension plays no part in this; a .j2k file holding a JP2
    container is decoded as JP2.

    Parameters
    ----------
    data : bytes-like
        Start of the input, at least 12 bytes for a JP2 file.

    Returns
    -------
    int
        Either CODEC_J2K (raw codestream, .j2k or .j2c) or CODEC_JP2.

    Raises
    ------
    InvalidCodestreamError
        The magic bytes are not those of a JPEG 2000 codestream or file.

    Examples
    --------
    >>> from jpeg2k.format import detect_format
    >>> detect_format(b'\\xff\\x4f\\xff\\x51\\x00\\x2f')
    0
    """
    header = bytes(data[:12])

    if header.startswith(core.J2K_SIGNATURE):
        return opj2.CODEC_J2K

    if header == core.JP2_SIGNATURE:
        return opj2.CODEC_JP2

    msg = (
        f"The input is not JPEG 2000, the leading bytes "
        f"{header[:4].hex(' ')} match neither a raw codestream nor a JP2 "
        f"signature box."
    )
    raise InvalidCodestreamError(msg)


def format_name(codec_format):
    """Short name of a codec format, as used in messages."""
    return {
        opj2.CODEC_J2K: 'J2K',
        opj2.CODEC_JP2: 'JP2',
    }.get(codec_format, 'unknown')
