"""
Manage jpeg2k configuration settings.
"""
# Standard library imports
import copy

# Local imports
from . import version
from .lib import openjp2 as opj2


_original_options = {
    'lib.num_threads': 0,
    'decode.strict': False,
    'decode.reduce': 0,
    'decode.layer': 0,
    'assembly.bits': 8,
}
_options = copy.deepcopy(_original_options)


def set_option(key, value):
    """Set the value of the specified option.

    Available options:

        lib.num_threads
        decode.strict
        decode.reduce
        decode.layer
        assembly.bits

    Parameters
    ----------
    key : str
        Name of a single option.
    value :
        New value of option.

    Option Descriptions
    -------------------
    lib.num_threads : int
        Number of threads used to decode an image and to assemble the pixel
        buffer.  Zero leaves the choice to the OpenJPEG library.  Values
        greater than one require OpenJPEG 2.2.0 or higher, built with thread
        support. [default: 0]
    decode.strict : bool
        When True, any warning issued by the OpenJPEG library while decoding
        is turned into an error. [default: False]
    decode.reduce : int
        Number of highest resolution levels to discard. [default: 0]
    decode.layer : int
        Maximum number of quality layers to decode, zero meaning all of them.
        [default: 0]
    assembly.bits : int
        Sample depth of the canonical pixel buffer, either 8 or 16.
        [default: 8]

    See also
    --------
    get_option
    """
    if key not in _options.keys():
        raise KeyError(f'{key} not valid.')

    if key == 'lib.num_threads':
        _validate_nonnegative_int(key, value)
        if value > 1:
            if version.openjpeg_version_tuple < (2, 2, 0):
                msg = (
                    f'Thread support is not available on versions of '
                    f'OpenJPEG prior to 2.2.0.  Your version is '
                    f'{version.openjpeg_version}.'
                )
                raise RuntimeError(msg)
            if not opj2.has_thread_support():
                msg = (
                    'The OpenJPEG library is not configured with thread '
                    'support.'
                )
                raise RuntimeError(msg)

    elif key in ('decode.reduce', 'decode.layer'):
        _validate_nonnegative_int(key, value)

    elif key == 'decode.strict':
        value = bool(value)

    elif key == 'assembly.bits':
        if value not in (8, 16):
            raise ValueError(f'{key} must be either 8 or 16, not {value}.')

    _options[key] = value


def get_option(key):
    """Return the value of the specified option

    Parameter
    ---------
    key : str
        Name of a single option.

    Returns
    -------
    result : the value of the option.

    See also
    --------
    set_option
    """
    return _options[key]


def reset_option(key):
    """
    Reset one or more options to their default value.

    Pass "all" as argument to reset all options.

    Parameter
    ---------
    key : str
        Name of a single option.
    """
    global _options
    if key == 'all':
        _options = copy.deepcopy(_original_options)
    else:
        if key not in _options.keys():
            raise KeyError(f'{key} not valid.')
        _options[key] = _original_options[key]


def _validate_nonnegative_int(key, value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f'{key} must be a non-negative integer, not {value}.')
