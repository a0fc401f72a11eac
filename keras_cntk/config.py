# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

'''
Process-wide settings of the backend: default float type, epsilon, image
data format and compute device. Settings are read from ``keras.json`` the
same way Keras reads them, i.e. ``$KERAS_HOME/keras.json`` or
``~/.keras/keras.json``.
'''

import os
import json
import numbers
import warnings

_FLOATX = 'float32'
_EPSILON = 1e-7
_IMAGE_DATA_FORMAT = 'channels_last'
_DEVICE = 'auto'

_FLOATX_VALUES = ('float16', 'float32', 'float64')
_IMAGE_DATA_FORMATS = ('channels_first', 'channels_last')

DEVICE_MAP = {
    'auto': None,
    'cpu': -1,
    'gpu': 0
}

DEVICE_ENV_VARIABLE = 'KERAS_CNTK_DEVICE'


def floatx():
    '''
    Returns the default float type, as a string
    (e.g. ``'float16'``, ``'float32'``, ``'float64'``).
    '''
    return _FLOATX


def set_floatx(value):
    '''
    Sets the default float type.

    Args:
        value (str): ``'float16'``, ``'float32'``, or ``'float64'``.
    '''
    global _FLOATX
    value = str(value)
    if value not in _FLOATX_VALUES:
        raise ValueError('Unknown floatx type: "%s"' % value)
    _FLOATX = value


def epsilon():
    '''
    Returns the value of the fuzz factor used in numeric expressions.
    '''
    return _EPSILON


def set_epsilon(value):
    global _EPSILON
    if not isinstance(value, numbers.Real) or value < 0:
        raise ValueError('epsilon must be a non-negative number, got "%s"'
                         % str(value))
    _EPSILON = float(value)


def image_data_format():
    return _IMAGE_DATA_FORMAT


def set_image_data_format(data_format):
    global _IMAGE_DATA_FORMAT
    if data_format not in _IMAGE_DATA_FORMATS:
        raise ValueError('Unknown data_format: "%s"' % str(data_format))
    _IMAGE_DATA_FORMAT = str(data_format)


def parse_device(value):
    '''
    Converts a device specification to a device id.

    Args:
        value (`str` or `int`): ``'auto'``, ``'cpu'``, ``'gpu'`` or an
         integer id (-1 for CPU, 0 or higher for GPU). Strings holding an
         integer are accepted too.

    Returns:
        `int` or None: -1 for the CPU, the GPU id, or None to let the
        runtime pick its default device.
    '''
    if isinstance(value, bool):
        raise ValueError('invalid device value "%s"' % value)
    if isinstance(value, numbers.Integral):
        device_id = int(value)
    else:
        key = str(value).strip().lower()
        if key in DEVICE_MAP:
            return DEVICE_MAP[key]
        try:
            device_id = int(key)
        except ValueError:
            raise ValueError('invalid device value "%s", please use integer '
                             'values, "cpu", "gpu" or "auto"' % value)

    if device_id < -1:
        raise ValueError('invalid device id %i' % device_id)
    return device_id


def device():
    '''
    Returns the device id the backend runs its computations on, see
    :func:`parse_device`.
    '''
    return parse_device(_DEVICE)


def set_device(value):
    global _DEVICE
    parse_device(value)
    _DEVICE = value


def config_path():
    '''
    Returns the location of ``keras.json``.
    '''
    if 'KERAS_HOME' in os.environ:
        keras_dir = os.environ['KERAS_HOME']
    else:
        base_dir = os.path.expanduser('~')
        if not os.access(base_dir, os.W_OK):
            base_dir = '/tmp'
        keras_dir = os.path.join(base_dir, '.keras')
    return os.path.join(keras_dir, 'keras.json')


def load_config(path=None):
    '''
    Applies the settings found in ``keras.json``. A missing file leaves the
    current settings untouched and an unreadable one is skipped with a
    warning. The device can be overridden with the ``KERAS_CNTK_DEVICE``
    environment variable.

    Args:
        path (str, default None): file to read, :func:`config_path` if None

    Returns:
        dict: the settings read from the file
    '''
    if path is None:
        path = config_path()

    config = {}
    if os.path.exists(path):
        try:
            with open(path) as f:
                config = json.load(f)
        except ValueError:
            warnings.warn('ignoring malformed Keras config file "%s"' % path)
            config = {}
        if not isinstance(config, dict):
            warnings.warn('ignoring Keras config file "%s", expected a JSON '
                          'object' % path)
            config = {}

    backend_name = config.get('backend', 'cntk')
    if backend_name != 'cntk':
        warnings.warn('Keras config file "%s" selects backend "%s", '
                      'keras_cntk always runs on "cntk"' % (path, backend_name))

    if 'floatx' in config:
        set_floatx(config['floatx'])
    if 'epsilon' in config:
        set_epsilon(config['epsilon'])
    if 'image_data_format' in config:
        set_image_data_format(config['image_data_format'])
    if 'device' in config:
        set_device(config['device'])

    if os.environ.get(DEVICE_ENV_VARIABLE):
        set_device(os.environ[DEVICE_ENV_VARIABLE])

    return config
