"""These tests are for locating and loading the openjp2 library.
"""
# Standard library imports ...
import contextlib
import os
import pathlib
import platform
import unittest
from unittest.mock import patch
import warnings

# Local imports ...
import jpeg2k
from jpeg2k import config
from . import fixtures


@contextlib.contextmanager
def chdir(dirname=None):
    """
    This context manager restores the value of the current working directory
    (cwd) after the enclosed code block completes or raises an exception.  If a
    directory name is supplied to the context manager then the cwd is changed
    prior to running the code block.
    """
    curdir = os.getcwd()
    try:
        if dirname is not None:
            os.chdir(dirname)
        yield
    finally:
        os.chdir(curdir)


@patch('jpeg2k.config.jpeg2krc_fname', lambda: None)
class TestSuitePathToLibrary(fixtures.TestCommon):
    """
    Test the path determined for the openjp2 library.

    This test suite assumes NO rc config file, so we have to force that code
    path to not run in case we are actively using it.
    """

    @patch('jpeg2k.config.find_library')
    @patch('jpeg2k.config.platform.system')
    def test_via_ctypes(self, mock_platform_system, mock_find_library):
        """
        SCENARIO:  ctypes finds the library.

        EXPECTED RESULT:  the path of the openjp2 library is on standard
        system paths
        """
        mock_platform_system.return_value = 'Linux'
        mock_find_library.return_value = '/usr/lib/libopenjp2.so'

        actual = config._determine_full_path('openjp2')
        expected = pathlib.Path('/usr/lib/libopenjp2.so')

        self.assertEqual(actual, expected)

    @patch('jpeg2k.config._pillow_bundled_library')
    @patch('jpeg2k.config.find_library')
    @patch('jpeg2k.config.platform.system')
    def test_via_pillow(
        self, mock_platform_system, mock_find_library, mock_pillow
    ):
        """
        SCENARIO:  ctypes does not find the library, but Pillow ships one.

        EXPECTED RESULT:  the path of the copy bundled with Pillow
        """
        mock_platform_system.return_value = 'Linux'
        mock_find_library.return_value = None
        expected = pathlib.Path('/site-packages/pillow.libs/libopenjp2-1.so')
        mock_pillow.return_value = expected

        actual = config._determine_full_path('openjp2')
        self.assertEqual(actual, expected)
        mock_pillow.assert_called_once_with('openjp2')

    @patch('jpeg2k.config._pillow_bundled_library', lambda x: None)
    @patch('jpeg2k.config.find_library')
    @patch('jpeg2k.config.platform.system')
    def test_not_found(self, mock_platform_system, mock_find_library):
        """
        SCENARIO:  the library is nowhere to be found.

        EXPECTED RESULT:  None is loaded
        """
        mock_platform_system.return_value = 'Linux'
        mock_find_library.return_value = None

        self.assertIsNone(config.load_library('openjp2'))

    def test_pillow_libs_directory(self):
        """
        SCENARIO:  a Linux wheel layout, PIL next to pillow.libs

        EXPECTED RESULT:  the library inside pillow.libs is found
        """
        pil_dir = self.test_dir_path / 'PIL'
        pil_dir.mkdir()
        (pil_dir / '__init__.py').touch()
        libs_dir = self.test_dir_path / 'pillow.libs'
        libs_dir.mkdir()
        expected = libs_dir / 'libopenjp2-05423b53.so.2.5.0'
        expected.touch()

        spec = unittest.mock.Mock(origin=str(pil_dir / '__init__.py'))
        with patch('jpeg2k.config.importlib.util.find_spec') as mock_spec:
            mock_spec.return_value = spec
            actual = config._pillow_bundled_library('openjp2')

        self.assertEqual(actual, expected)

    @patch('jpeg2k.config._determine_full_path')
    def test_unloadable_library(self, mock_determine_full_path):
        """
        SCENARIO:  the library path exists but the library cannot be loaded

        EXPECTED RESULT:  a UserWarning is issued and None is returned
        """
        path = self.test_dir_path / 'libopenjp2.so'
        path.write_bytes(b'not a shared library')
        mock_determine_full_path.return_value = path

        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter('always')
            lib = config.load_library('openjp2')

        self.assertIsNone(lib)
        self.assertEqual(len(w), 1)
        self.assertTrue(issubclass(w[0].category, UserWarning))

    @unittest.skipIf(platform.system() == 'Windows', 'nonsensical on windows')
    @patch('jpeg2k.config.platform.system')
    @patch('pathlib.Path.home')
    def test_config_dir_on_windows(
        self, mock_pathlib_path_home, mock_platform_system
    ):
        """
        SCENARIO:  the XDG_CONFIG_HOME environment variable is not present, the
        platform *IS* Windows.

        EXPECTED RESULT:  the path to the configuration directory should be
        under the home directory
        """
        mock_platform_system.return_value = 'Windows'

        expected_path = pathlib.Path('/neither/here/nor/there')
        mock_pathlib_path_home.return_value = expected_path

        with patch.dict('os.environ', values=(), clear=True):
            actual = config.get_configdir()
        self.assertEqual(actual, expected_path / 'jpeg2k')

    def test_xdg_config_home(self):
        with patch.dict('os.environ', {'XDG_CONFIG_HOME': self.test_dir}):
            actual = config.get_configdir()
        self.assertEqual(actual, self.test_dir_path / 'jpeg2k')


class TestSuiteConfigFile(fixtures.TestCommon):

    def test_config_file_in_current_directory(self):
        """
        SCENARIO:  A jpeg2krc file in the current directory names a library.

        EXPECTED RESULT:  That path is used, ahead of any other.
        """
        rcfile = self.test_dir_path / 'jpeg2krc'
        rcfile.write_text('[library]\nopenjp2: /opt/lib/libopenjp2.so\n')

        with chdir(self.test_dir):
            with patch('jpeg2k.config.find_library') as mock_find_library:
                actual = config._determine_full_path('openjp2')

        self.assertEqual(actual, pathlib.Path('/opt/lib/libopenjp2.so'))
        mock_find_library.assert_not_called()

    def test_config_file_without_library_section(self):
        rcfile = self.test_dir_path / 'jpeg2krc'
        rcfile.write_text('[testing]\nopenjp2: /opt/lib/libopenjp2.so\n')

        with chdir(self.test_dir):
            actual = config.read_config_file('openjp2')

        self.assertIsNone(actual)

    def test_version_info(self):
        self.assertIn(jpeg2k.version.version, jpeg2k.version.info)
        self.assertEqual(jpeg2k.__version__, jpeg2k.version.version)
