"""Tests for package version and public imports."""

from __future__ import annotations

import re

import pytest

import pytest_hotpath
from pytest_hotpath import __version__
from pytest_hotpath import instrumentation, reporting, runtime


@pytest.mark.small
def test_version_follows_semver_pattern():
    semver_pattern = r'^\d+\.\d+\.\d+(-[a-zA-Z]+\.\d+)?$'
    assert re.match(semver_pattern, __version__), f'Version {__version__} does not match semver pattern'


@pytest.mark.small
@pytest.mark.parametrize('package', [instrumentation, reporting, runtime])
def test_public_names_are_importable(package):
    for name in package.__all__:
        assert hasattr(package, name), f'{package.__name__} does not export {name}'


@pytest.mark.small
def test_top_level_package_has_docstring():
    assert pytest_hotpath.__doc__
