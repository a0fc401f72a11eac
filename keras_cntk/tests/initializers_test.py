# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

import numpy as np
import pytest

from keras_cntk import initializers


def test_constant_initializers():
    assert np.array_equal(initializers.get('zeros')((2, 3)), np.zeros((2, 3)))
    assert np.array_equal(initializers.get('ones')((4,)), np.ones(4))
    assert initializers.get('zeros')((2,)).dtype == np.float32
    assert initializers.Ones()((2,), dtype=np.float64).dtype == np.float64


def test_glorot_uniform_limit():
    values = initializers.GlorotUniform(seed=1)((20, 30))
    limit = np.sqrt(6. / 50)
    assert values.shape == (20, 30)
    assert np.all(np.abs(values) <= limit)
    assert np.array_equal(values, initializers.GlorotUniform(seed=1)((20, 30)))


def test_random_initializers():
    normal = initializers.RandomNormal(mean=1., stddev=0.01, seed=0)((1000,))
    assert abs(normal.mean() - 1.) < 0.01
    uniform = initializers.RandomUniform(minval=2., maxval=3., seed=0)((100,))
    assert uniform.min() >= 2. and uniform.max() <= 3.
    assert initializers.RandomUniform(seed=3).get_config()['seed'] == 3


def test_get():
    instance = initializers.Zeros()
    assert initializers.get(instance) is instance
    assert isinstance(initializers.get('glorot_uniform'),
                      initializers.GlorotUniform)
    with pytest.raises(ValueError):
        initializers.get('he_normal')
    with pytest.raises(ValueError):
        initializers.get('get')
    with pytest.raises(ValueError):
        initializers.get('Initializer')
    with pytest.raises(ValueError):
        initializers.get(42)
