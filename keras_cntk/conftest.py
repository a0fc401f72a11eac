# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

import sys
import numpy
import pytest

from keras_cntk import config

_DEFAULT_DEVICE_ID = -1


def pytest_addoption(parser):
    parser.addoption("--deviceid", action="append", default=[_DEFAULT_DEVICE_ID],
                     help="list of device ids to pass to test functions")


def pytest_generate_tests(metafunc):
    if 'device_id' in metafunc.fixturenames:
        if (len(metafunc.config.option.deviceid)) > 1:
            del metafunc.config.option.deviceid[0]

        devices = set()
        for elem in metafunc.config.option.deviceid:
            try:
                devices.add(config.parse_device(elem))
            except ValueError:
                raise RuntimeError("invalid deviceid value '{0}', please "
                                   "use integer values or 'auto'".format(elem))

        metafunc.parametrize("device_id", devices)


# Because of difference in precision across platforms, we restrict the output
# precision and don't write in scientific notation
numpy.set_printoptions(precision=6, suppress=True)


@pytest.fixture(autouse=True)
def restore_config():
    saved = (config.floatx(), config.epsilon(), config.image_data_format(),
             config._DEVICE)
    yield
    config.set_floatx(saved[0])
    config.set_epsilon(saved[1])
    config.set_image_data_format(saved[2])
    config._DEVICE = saved[3]


@pytest.fixture(autouse=True)
def reset_session():
    yield
    # only touch the runtime if a test imported it
    backend = sys.modules.get('keras_cntk.backend')
    if backend is not None:
        backend.clear_session()


@pytest.fixture(autouse=True)
def add_namespace(doctest_namespace):
    doctest_namespace['np'] = numpy
