# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================
"""
Evaluation metrics, one value per sample.
"""

from . import backend as K
from .internal import is_string
from .losses import mean_squared_error, mean_absolute_error, \
        binary_crossentropy, categorical_crossentropy, mse, mae


def binary_accuracy(y_true, y_pred):
    return K.mean(K.equal(y_true, K.round(y_pred)), axis=-1)


def categorical_accuracy(y_true, y_pred):
    return K.cast(K.equal(K.argmax(y_true, axis=-1),
                          K.argmax(y_pred, axis=-1)),
                  K.floatx())


_METRICS = {
    'binary_accuracy': binary_accuracy,
    'categorical_accuracy': categorical_accuracy,
    'mean_squared_error': mean_squared_error,
    'mse': mse,
    'mean_absolute_error': mean_absolute_error,
    'mae': mae,
    'binary_crossentropy': binary_crossentropy,
    'categorical_crossentropy': categorical_crossentropy,
}


def get(identifier):
    if is_string(identifier):
        metric = _METRICS.get(identifier)
        if metric is None:
            raise ValueError('Unknown metric function: %s' % identifier)
        return metric
    if callable(identifier):
        return identifier
    raise ValueError('Could not interpret metric function identifier: %s'
                     % str(identifier))
