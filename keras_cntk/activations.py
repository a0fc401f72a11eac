# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

from . import backend as K
from .internal import is_string


def linear(x):
    return x


def relu(x, alpha=0., max_value=None):
    return K.relu(x, alpha=alpha, max_value=max_value)


def sigmoid(x):
    return K.sigmoid(x)


def tanh(x):
    return K.tanh(x)


def softmax(x, axis=-1):
    ndim = K.ndim(x)
    if ndim < 2:
        raise ValueError('Cannot apply softmax to a tensor that is 1D')
    return K.softmax(x, axis=axis)


_ACTIVATIONS = {
    'linear': linear,
    'relu': relu,
    'sigmoid': sigmoid,
    'tanh': tanh,
    'softmax': softmax,
}


def get(identifier):
    '''
    Looks up an activation function by name. None stands for
    :func:`linear`, callables are returned as they are.
    '''
    if identifier is None:
        return linear
    if is_string(identifier):
        if identifier not in _ACTIVATIONS:
            raise ValueError('Unknown activation function: %s' % identifier)
        return _ACTIVATIONS[identifier]
    if callable(identifier):
        return identifier
    raise ValueError('Could not interpret activation function identifier: '
                     '%s' % str(identifier))
