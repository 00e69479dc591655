"""
Configure jpeg2k to use installed libraries if possible.
"""
from configparser import ConfigParser, NoOptionError, NoSectionError
import ctypes
from ctypes.util import find_library
import importlib.util
import os
import pathlib
import platform
import warnings


def jpeg2krc_fname():
    """Return the path to the configuration file.

    Search order:
        1) current working directory
        2) environ var XDG_CONFIG_HOME
        3) $HOME/.config/jpeg2k/jpeg2krc
    """

    # Current directory.
    path = pathlib.Path.cwd() / 'jpeg2krc'
    if path.exists():
        return path

    confdir_path = get_configdir()
    if confdir_path is not None:
        path = confdir_path / 'jpeg2krc'
        if path.exists():
            return path

    # didn't find a configuration file.
    return None


def _pillow_bundled_library(libname):
    """
    Binary wheels of Pillow ship their own copy of openjp2.  Look for it
    next to the PIL package.

    Parameters
    ----------
    libname : str
        short name for library (openjp2)

    Returns
    -------
    path to the bundled library or None
    """
    try:
        spec = importlib.util.find_spec('PIL')
    except (ImportError, ValueError):
        return None
    if spec is None or spec.origin is None:
        return None

    package_dir = pathlib.Path(spec.origin).parent
    candidates = [
        # linux wheels
        package_dir.parent / 'pillow.libs',
        package_dir.parent / 'Pillow.libs',
        # macos wheels
        package_dir / '.dylibs',
    ]
    for directory in candidates:
        if not directory.is_dir():
            continue
        matches = sorted(directory.glob(f'lib{libname}*'))
        if len(matches) > 0:
            return matches[0]

    return None


def _determine_full_path(libname):
    """
    Try to determine the path to the library.

    Parameters
    ----------
    libname : str
        short name for library (openjp2)

    Returns
    -------
    path to openjp2 library or None if openjp2 library not found
    """

    # A location specified by the configuration file has precedence.
    path = read_config_file(libname)
    if path is not None:
        return path

    # No joy on config file.  Cygwin?  Cygwin is a bit of an odd case.
    if platform.system().startswith('CYGWIN'):
        g = pathlib.Path('/usr/bin').glob(f'cyg{libname}*.dll')
        try:
            path = list(g)[0]
        except IndexError:
            # openjpeg possibly not installed
            pass
        else:
            if path.exists():
                return path

    # No joy on config file and not Cygwin.  Can ctypes find it anyway?
    path = find_library(libname)
    if path is not None:
        return pathlib.Path(path)

    # Last stand, the copy that comes with Pillow.
    return _pillow_bundled_library(libname)


def read_config_file(libname):
    """
    Extract library locations from a configuration file.

    Parameters
    ----------
    libname : str
        Currently only 'openjp2'

    Returns
    -------
    path : None or path
        None if no location is specified, otherwise a path to the library
    """
    filename = jpeg2krc_fname()
    if filename is None:
        # There's no library file path to return in this case.
        return None

    # Read the configuration file for the library location.
    parser = ConfigParser()
    parser.read(filename)
    try:
        path = parser.get('library', libname)
    except (NoOptionError, NoSectionError):
        path = None
    else:
        # Turn it into a pathlib object.
        path = pathlib.Path(path)
    return path


def load_library(libname):
    """
    Try to ascertain the location of a shared library and load it.

    Parameters
    ----------
    libname : str
        Currently only 'openjp2'

    Returns
    -------
    loaded shared library or None
    """
    path = _determine_full_path(libname)

    if path is None or str(path) in ['None', 'none']:
        # Either could not find a library via ctypes or
        # user-configuration-file, or we could not find it in any of the
        # default locations, or possibly the user intentionally does not want
        # the library to load.
        return None

    loader = ctypes.windll.LoadLibrary if os.name == 'nt' else ctypes.CDLL
    try:
        lib = loader(str(path))
    except OSError:
        msg = f'The {libname} library at {path} could not be loaded.'
        warnings.warn(msg, UserWarning)
        lib = None

    return lib


def get_configdir():
    """Return string representing the configuration directory.

    Default is $HOME/.config/jpeg2k.  You can override this with the
    XDG_CONFIG_HOME environment variable.
    """
    if 'XDG_CONFIG_HOME' in os.environ:
        return pathlib.Path(os.environ['XDG_CONFIG_HOME']) / 'jpeg2k'

    if 'HOME' in os.environ and platform.system() != 'Windows':
        # HOME is set by WinPython to something unusual, so we don't
        # necessarily want that.
        return pathlib.Path(os.environ['HOME']) / '.config' / 'jpeg2k'

    # Last stand.  Should handle windows... others?
    return pathlib.Path.home() / 'jpeg2k'
