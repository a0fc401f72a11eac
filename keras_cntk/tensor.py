# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

'''
Keras metadata carried by runtime graph nodes. Variables and functions
created through :mod:`keras_cntk.backend` remember their Keras shape
(batch dimension included) and whether they depend on the learning phase.
'''

import numpy as np


def _dtype_name(x):
    dtype = getattr(x, 'dtype', None)
    if dtype is None:
        return 'unknown'
    try:
        return np.dtype(dtype).name
    except TypeError:
        return str(dtype)


def int_shape(x):
    '''
    Returns the Keras shape of ``x`` as a tuple, with None for every
    dynamic axis (batch axis first).
    '''
    if hasattr(x, '_keras_shape'):
        return x._keras_shape
    shape = tuple(getattr(x, 'shape', ()))
    dynamic_axes = getattr(x, 'dynamic_axes', ())
    return tuple(None for _ in dynamic_axes) + shape


def uses_learning_phase(x):
    return bool(getattr(x, '_uses_learning_phase', False))


def is_keras_tensor(x):
    '''
    Tests whether ``x`` was created or annotated by the Keras layer API.
    '''
    return hasattr(x, '_keras_shape')


def tensor_repr(x):
    '''
    Describes ``x`` by its uid, Keras shape and data type.
    '''
    return "<keras_cntk.Tensor '%s' shape=%s dtype=%s>" % (
        getattr(x, 'uid', getattr(x, 'name', '')), str(int_shape(x)),
        _dtype_name(x))
