# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

import json
import warnings
import pytest

from keras_cntk import config


def test_floatx():
    config.set_floatx('float64')
    assert config.floatx() == 'float64'
    with pytest.raises(ValueError):
        config.set_floatx('int32')
    assert config.floatx() == 'float64'


def test_epsilon():
    config.set_epsilon(1e-5)
    assert config.epsilon() == 1e-5
    with pytest.raises(ValueError):
        config.set_epsilon(-1)


def test_image_data_format():
    config.set_image_data_format('channels_first')
    assert config.image_data_format() == 'channels_first'
    with pytest.raises(ValueError):
        config.set_image_data_format('channels_middle')


@pytest.mark.parametrize("value, expected", [
    ('auto', None),
    ('cpu', -1),
    ('CPU', -1),
    ('gpu', 0),
    (-1, -1),
    (2, 2),
    ('1', 1),
])
def test_parse_device(value, expected):
    assert config.parse_device(value) == expected


@pytest.mark.parametrize("value", ['tpu', -2, True, '1.5'])
def test_parse_invalid_device(value):
    with pytest.raises(ValueError):
        config.parse_device(value)


def test_set_device():
    config.set_device('cpu')
    assert config.device() == -1
    with pytest.raises(ValueError):
        config.set_device('quantum')
    assert config.device() == -1


def test_config_path(tmpdir, monkeypatch):
    monkeypatch.setenv('KERAS_HOME', str(tmpdir))
    assert config.config_path() == str(tmpdir.join('keras.json'))


def test_load_config(tmpdir, monkeypatch):
    monkeypatch.delenv(config.DEVICE_ENV_VARIABLE, raising=False)
    path = tmpdir.join('keras.json')
    path.write(json.dumps({'floatx': 'float64', 'epsilon': 1e-4,
                           'image_data_format': 'channels_first',
                           'backend': 'cntk', 'device': 'cpu'}))
    loaded = config.load_config(str(path))

    assert loaded['floatx'] == 'float64'
    assert config.floatx() == 'float64'
    assert config.epsilon() == 1e-4
    assert config.image_data_format() == 'channels_first'
    assert config.device() == -1


def test_load_missing_config(tmpdir, monkeypatch):
    monkeypatch.delenv(config.DEVICE_ENV_VARIABLE, raising=False)
    assert config.load_config(str(tmpdir.join('missing.json'))) == {}
    assert config.floatx() == 'float32'


def test_load_malformed_config(tmpdir, monkeypatch):
    monkeypatch.delenv(config.DEVICE_ENV_VARIABLE, raising=False)
    path = tmpdir.join('keras.json')
    path.write('{not json')
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter('always')
        assert config.load_config(str(path)) == {}
    assert any('malformed' in str(x.message) for x in w)


def test_load_config_other_backend(tmpdir, monkeypatch):
    monkeypatch.delenv(config.DEVICE_ENV_VARIABLE, raising=False)
    path = tmpdir.join('keras.json')
    path.write(json.dumps({'backend': 'tensorflow'}))
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter('always')
        config.load_config(str(path))
    assert any('tensorflow' in str(x.message) for x in w)


def test_load_invalid_config_value(tmpdir, monkeypatch):
    monkeypatch.delenv(config.DEVICE_ENV_VARIABLE, raising=False)
    path = tmpdir.join('keras.json')
    path.write(json.dumps({'floatx': 'float8'}))
    with pytest.raises(ValueError):
        config.load_config(str(path))


def test_device_environment_override(tmpdir, monkeypatch):
    path = tmpdir.join('keras.json')
    path.write(json.dumps({'device': 'cpu'}))
    monkeypatch.setenv(config.DEVICE_ENV_VARIABLE, '1')
    config.load_config(str(path))
    assert config.device() == 1
