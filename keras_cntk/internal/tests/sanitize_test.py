# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

import warnings
import numpy as np
import pytest
from scipy import sparse

from keras_cntk import config
from keras_cntk.internal import sanitize_dtype, sanitize_shape, \
        sanitize_feed_value, is_shape_compatible, sanitize_updates, _as_tuple


@pytest.mark.parametrize("dtype, expected", [
    ('float32', np.float32),
    ('float64', np.float64),
    ('float16', np.float16),
    (np.float64, np.float64),
    (np.dtype('float32'), np.float32),
])
def test_sanitize_dtype(dtype, expected):
    assert sanitize_dtype(dtype) == expected


def test_sanitize_dtype_default():
    config.set_floatx('float64')
    assert sanitize_dtype(None) == np.float64


def test_sanitize_dtype_integers_become_float32():
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter('always')
        assert sanitize_dtype('int64') == np.float32
    assert len(w) == 1


@pytest.mark.parametrize("dtype", ['complex64', 'str', 'not_a_type'])
def test_sanitize_dtype_unsupported(dtype):
    with pytest.raises(ValueError):
        sanitize_dtype(dtype)


def test_sanitize_shape():
    assert sanitize_shape(3) == (3,)
    assert sanitize_shape([2, 3]) == (2, 3)
    assert sanitize_shape(None) == ()
    assert _as_tuple(np.float32(1)) == (np.float32(1),)


def test_sanitize_feed_value():
    value = sanitize_feed_value([[1, 2], [3, 4]])
    assert value.dtype == np.float32
    assert value.shape == (2, 2)

    value = sanitize_feed_value(np.arange(3), np.float64)
    assert value.dtype == np.float64

    original = np.ones(3, dtype=np.float64)
    assert sanitize_feed_value(original, np.float32) is original

    value = sanitize_feed_value(np.array([True, False]))
    assert value.dtype == np.float32
    assert value.tolist() == [1.0, 0.0]


@pytest.mark.parametrize("value_shape, static_shape, num_dynamic, expected", [
    ((5, 3), (3,), 1, True),
    ((5, 4), (3,), 1, False),
    ((5, 3, 2), (3,), 1, False),
    ((5, 7, 3), (-3, 3), 1, True),
    ((5, 7, 3), (-1, 3), 1, True),
    ((5, 2, 3), (3,), 2, True),
    ((3,), (3,), 0, True),
])
def test_is_shape_compatible(value_shape, static_shape, num_dynamic, expected):
    assert is_shape_compatible(value_shape, static_shape, num_dynamic) == expected


def test_sanitize_updates():
    op = object()
    x, new_x = object(), object()
    assert sanitize_updates(None) == []
    assert sanitize_updates([op, [op], (x, new_x), [x, new_x]]) == \
        [op, op, (x, new_x), (x, new_x)]


def test_sanitize_updates_invalid():
    with pytest.raises(NotImplementedError):
        sanitize_updates([(1, 2, 3)])
    with pytest.raises(NotImplementedError):
        sanitize_updates([[]])
    with pytest.raises(TypeError):
        sanitize_updates(object())


def test_sanitize_feed_value_sparse():
    identity = sparse.csr_matrix(np.eye(3, dtype=np.float32))
    assert sanitize_feed_value(identity, np.float32) is identity

    counts = sparse.coo_matrix(np.array([[0, 2, 0], [1, 0, 0]],
                                        dtype=np.int64))
    value = sanitize_feed_value(counts, np.float32)
    assert sparse.isspmatrix_csr(value)
    assert value.dtype == np.float32
    assert value.shape == (2, 3)
    assert np.array_equal(value.toarray(), [[0, 2, 0], [1, 0, 0]])
