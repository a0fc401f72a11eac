# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

'''
Initial values of weights, computed with NumPy before the parameters are
created.
'''

import numpy as np

from .internal import is_string


def _compute_fans(shape):
    if len(shape) == 0:
        return 1, 1
    if len(shape) == 1:
        return shape[0], shape[0]
    if len(shape) == 2:
        return shape[0], shape[1]
    receptive_field_size = int(np.prod(shape[:-2]))
    return shape[-2] * receptive_field_size, shape[-1] * receptive_field_size


class Initializer(object):

    def __call__(self, shape, dtype=None):
        raise NotImplementedError

    def get_config(self):
        return {}


class Zeros(Initializer):

    def __call__(self, shape, dtype=None):
        return np.zeros(shape, dtype=dtype or np.float32)


class Ones(Initializer):

    def __call__(self, shape, dtype=None):
        return np.ones(shape, dtype=dtype or np.float32)


class RandomNormal(Initializer):

    def __init__(self, mean=0., stddev=0.05, seed=None):
        self.mean = mean
        self.stddev = stddev
        self.seed = seed

    def __call__(self, shape, dtype=None):
        rng = np.random.RandomState(self.seed)
        return rng.normal(self.mean, self.stddev,
                          size=shape).astype(dtype or np.float32)

    def get_config(self):
        return {'mean': self.mean, 'stddev': self.stddev, 'seed': self.seed}


class RandomUniform(Initializer):

    def __init__(self, minval=-0.05, maxval=0.05, seed=None):
        self.minval = minval
        self.maxval = maxval
        self.seed = seed

    def __call__(self, shape, dtype=None):
        rng = np.random.RandomState(self.seed)
        return rng.uniform(self.minval, self.maxval,
                           size=shape).astype(dtype or np.float32)

    def get_config(self):
        return {'minval': self.minval, 'maxval': self.maxval,
                'seed': self.seed}


class GlorotUniform(Initializer):
    '''
    Uniform in ``[-limit, limit]`` with ``limit = sqrt(6 / (fan_in + fan_out))``.
    '''

    def __init__(self, seed=None):
        self.seed = seed

    def __call__(self, shape, dtype=None):
        fan_in, fan_out = _compute_fans(tuple(shape))
        limit = np.sqrt(6. / float(fan_in + fan_out))
        rng = np.random.RandomState(self.seed)
        return rng.uniform(-limit, limit,
                           size=shape).astype(dtype or np.float32)

    def get_config(self):
        return {'seed': self.seed}


zeros = Zeros
ones = Ones
random_normal = RandomNormal
random_uniform = RandomUniform
glorot_uniform = GlorotUniform


def get(identifier):
    if isinstance(identifier, Initializer):
        return identifier
    if is_string(identifier):
        initializer = globals().get(identifier)
        if not (isinstance(initializer, type) and
                issubclass(initializer, Initializer)) or \
                initializer is Initializer:
            raise ValueError('Unknown initializer: %s' % identifier)
        return initializer()
    if callable(identifier):
        return identifier
    raise ValueError('Could not interpret initializer identifier: %s'
                     % str(identifier))
