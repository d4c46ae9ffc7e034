#  Copyright 2025 Hathor Labs
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from structshape.conf import DEFAULT_SETTINGS_FILEPATH, StructShapeSettings
from structshape.conf import get_settings as get_settings_module

FIXTURES = Path(__file__).parent / 'fixtures'


def test_default_settings_match_field_defaults() -> None:
    assert StructShapeSettings.from_yaml(filepath=DEFAULT_SETTINGS_FILEPATH) == StructShapeSettings()


def test_valid_settings_from_yaml() -> None:
    settings = StructShapeSettings.from_yaml(filepath=str(FIXTURES / 'valid_settings_fixture.yml'))
    assert settings == StructShapeSettings(MAX_DEPTH=8, MAX_FIELDS=16, MAX_ARRAY_COUNT=100, MAX_SCHEMA_BYTES=4096)


def test_extended_settings_from_yaml() -> None:
    settings = StructShapeSettings.from_yaml(filepath=str(FIXTURES / 'extended_settings_fixture.yml'))
    assert settings == StructShapeSettings(MAX_DEPTH=8, MAX_FIELDS=4, MAX_ARRAY_COUNT=100, MAX_SCHEMA_BYTES=4096)


@pytest.mark.parametrize(
    ['filepath', 'error'],
    [
        ('invalid_key_settings_fixture.yml', 'MAX_NAME_LENGTH'),
        ('invalid_value_settings_fixture.yml', 'MAX_DEPTH'),
    ],
)
def test_invalid_settings_from_yaml(filepath: str, error: str) -> None:
    with pytest.raises(ValidationError) as cm:
        StructShapeSettings.from_yaml(filepath=str(FIXTURES / filepath))
    assert error in str(cm.value)


def test_missing_settings_file() -> None:
    with pytest.raises(ValueError):
        StructShapeSettings.from_yaml(filepath=str(FIXTURES / 'missing.yml'))


def test_settings_are_frozen() -> None:
    settings = StructShapeSettings()
    with pytest.raises(ValidationError):
        settings.MAX_DEPTH = 1  # type: ignore[misc]


def test_global_settings_from_env_var() -> None:
    filepath = str(FIXTURES / 'valid_settings_fixture.yml')
    get_settings_module._reset_settings_singleton()
    try:
        with patch.dict(os.environ, {get_settings_module.CONFIG_YAML_ENV_VAR: filepath}):
            settings = get_settings_module.get_global_settings()
            assert settings.MAX_FIELDS == 16
            assert get_settings_module.get_global_settings() is settings
            assert get_settings_module.get_settings_source() == filepath

        # a different file after the first load is refused
        with patch.dict(os.environ, {get_settings_module.CONFIG_YAML_ENV_VAR: DEFAULT_SETTINGS_FILEPATH}):
            with pytest.raises(Exception, match='different file'):
                get_settings_module.get_global_settings()
    finally:
        get_settings_module._reset_settings_singleton()


def test_global_settings_are_loaded_once_across_threads() -> None:
    filepath = str(FIXTURES / 'valid_settings_fixture.yml')
    get_settings_module._reset_settings_singleton()
    try:
        with patch.dict(os.environ, {get_settings_module.CONFIG_YAML_ENV_VAR: filepath}):
            with patch.object(StructShapeSettings, 'from_yaml', wraps=StructShapeSettings.from_yaml) as from_yaml:
                with ThreadPoolExecutor(max_workers=8) as executor:
                    loaded = list(executor.map(lambda _: get_settings_module.get_global_settings(), range(32)))
        assert from_yaml.call_count == 1
        assert all(settings is loaded[0] for settings in loaded)
    finally:
        get_settings_module._reset_settings_singleton()
