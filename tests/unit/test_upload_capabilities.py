"""Tests for capability detection."""
import aiohttp

from mwupload.core.upload import BinaryFile, Environment, form_data_available


class _UnsliceableFile:
    name = 'x'


def test_default_environment_is_capable():
    """Test the default environment supports multipart uploads."""
    env = Environment.default()

    assert env.form_data is aiohttp.FormData
    assert env.file_type is BinaryFile
    assert form_data_available(env)


def test_legacy_environment_is_not_capable():
    """Test the legacy environment forces frame uploads."""
    assert not form_data_available(Environment.legacy())


def test_missing_form_data():
    """Test missing form-data builder disables multipart."""
    assert not form_data_available(Environment(form_data=None))


def test_missing_file_type():
    """Test missing binary file type disables multipart."""
    assert not form_data_available(Environment(file_type=None))


def test_file_type_without_slice():
    """Test a file type that cannot be sliced disables multipart."""
    assert not form_data_available(Environment(file_type=_UnsliceableFile))


def test_is_pure():
    """Test repeated queries give the same answer."""
    env = Environment.default()

    assert [form_data_available(env) for _ in range(3)] == [True, True, True]
