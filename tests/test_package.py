#!/usr/bin/env python3
"""
Package-level tests for mcifreg
"""

import sys

import pytest

# ============================================================================
# Basic Import and Structure Tests
# ============================================================================

def test_package_imports():
    """Test that the main modules can be imported"""
    try:
        import mcifreg
        from mcifreg import errors, registry, ifshow
        assert mcifreg.__version__ == "1.0.0"
    except ImportError as e:
        pytest.fail(f"Failed to import mcifreg modules: {e}")

def test_cffi_import():
    """Test that CFFI is available"""
    try:
        from cffi import FFI
        ffi = FFI()
        assert ffi is not None
    except ImportError:
        pytest.fail("CFFI not available - required dependency")

def test_package_metadata():
    """Test package metadata"""
    import mcifreg

    assert hasattr(mcifreg, '__version__')
    assert hasattr(mcifreg, '__author__')
    assert hasattr(mcifreg, '__email__')
    assert hasattr(mcifreg, '__license__')

    assert mcifreg.__license__ == "MIT"

def test_python_version():
    """Test that Python version is 3.8+"""
    assert sys.version_info >= (3, 8), "Python 3.8+ required"

def test_command_main_functions():
    """Test that the command modules have main() functions"""
    from mcifreg import ifshow

    assert callable(ifshow.main)

def test_error_hierarchy():
    """Test that all errors derive from the package base class"""
    from mcifreg.errors import McifregError, EnumerationError, ResourceError

    assert issubclass(EnumerationError, McifregError)
    assert issubclass(ResourceError, McifregError)

    err = EnumerationError(1, 'Operation not permitted')
    assert err.errno == 1
    assert 'Operation not permitted' in str(err)

def test_module_has_docstrings():
    """Test that modules document themselves"""
    from mcifreg import registry, ifshow, errors

    for module in (registry, ifshow, errors):
        assert module.__doc__, f"{module.__name__} missing docstring"
