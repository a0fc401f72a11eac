# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

import warnings
import numpy as np
from scipy import sparse

from .. import config

__all__ = ['sanitize_dtype', 'sanitize_shape', 'sanitize_feed_value',
           'is_shape_compatible', 'sanitize_updates', 'is_string']

_FLOAT_TYPES = (np.float16, np.float32, np.float64)


def is_string(s):
    return isinstance(s, str)


def _as_tuple(x):
    '''
    Convert an argument to a tuple.

    Args:
        x: if scalar, it returns ``(x,)``. If iterable, it converts it to
        tuple.

    Returns:
        Tuple of ``x``.
    '''
    if np.isscalar(x):
        x = (x,)
    return tuple(x)


def sanitize_dtype(dtype):
    '''
    Converts ``dtype`` to the NumPy float type the runtime computes with.

    Args:
        dtype (str, NumPy dtype or None): requested type. None stands for
         :func:`~keras_cntk.config.floatx`. Integer and boolean types are
         mapped to `np.float32`, as the runtime only computes on floats.

    Returns:
        `np.float16`, `np.float32` or `np.float64`
    '''
    if dtype is None:
        dtype = config.floatx()
    try:
        np_dtype = np.dtype(dtype)
    except TypeError:
        raise ValueError('data type "%s" is not supported' % str(dtype))

    if np_dtype.type in _FLOAT_TYPES:
        return np_dtype.type
    if np_dtype.kind in 'iub':
        warnings.warn('data type "%s" is not supported by the runtime, '
                      'using float32 instead' % np_dtype.name)
        return np.float32
    raise ValueError('data type "%s" is not supported' % np_dtype.name)


def sanitize_shape(shape):
    """
    If shape is scalar, it creates a tuple out of it.
    """
    if shape is None:
        return ()
    return _as_tuple(shape)


def sanitize_feed_value(value, dtype=None):
    '''
    Prepares ``value`` for being fed into the graph. The runtime only
    computes on float32 and float64, so everything else is cast.

    Args:
        value: NumPy array, number, nested list or SciPy sparse matrix
        dtype: type to cast non-float data to, defaults to
         :func:`~keras_cntk.config.floatx`

    Returns:
        NumPy array, or a CSR matrix if ``value`` is sparse
    '''
    if dtype is None:
        dtype = config.floatx()
    if sparse.issparse(value):
        if value.dtype != np.float32 and value.dtype != np.float64:
            value = value.astype(dtype)
        if not sparse.isspmatrix_csr(value):
            value = value.tocsr()
        return value
    if not isinstance(value, np.ndarray):
        value = np.asarray(value)
    if value.dtype != np.float32 and value.dtype != np.float64:
        value = value.astype(dtype)
    return value


def is_shape_compatible(value_shape, static_shape, num_dynamic_axes=1):
    '''
    Checks whether data of shape ``value_shape`` can be fed into a
    placeholder with the given static shape. The first ``num_dynamic_axes``
    dimensions of the data belong to the dynamic axes (batch, sequence) and
    are not checked. Negative static dimensions (inferred or free) match
    anything.
    '''
    value_shape = tuple(value_shape)[num_dynamic_axes:]
    static_shape = tuple(static_shape)
    if len(value_shape) != len(static_shape):
        return False
    for v, s in zip(value_shape, static_shape):
        if s is not None and s >= 0 and v != s:
            return False
    return True


def sanitize_updates(updates):
    '''
    Normalizes a list of updates. An update is either an op, a list or tuple
    holding just the op, or a pair ``(variable, new_value)``.

    Returns:
        list where every entry is an op or a ``(variable, new_value)`` tuple
    '''
    if updates is None:
        return []
    if not isinstance(updates, (list, tuple)):
        raise TypeError('updates must be a list, got "%s"' % type(updates))

    result = []
    for update in updates:
        if isinstance(update, (list, tuple)):
            if len(update) == 1:
                result.append(update[0])
            elif len(update) == 2:
                result.append(tuple(update))
            else:
                raise NotImplementedError('updates with %i elements are not '
                                          'supported, expected an op or a '
                                          '(variable, new_value) pair'
                                          % len(update))
        else:
            result.append(update)
    return result
