# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================
"""
Loss functions. They keep the batch axis and return one value per sample,
the trainer averages them over the minibatch.
"""

from . import backend as K
from .internal import is_string


def mean_squared_error(y_true, y_pred):
    return K.mean(K.square(y_pred - y_true), axis=-1)


def mean_absolute_error(y_true, y_pred):
    return K.mean(K.abs(y_pred - y_true), axis=-1)


def binary_crossentropy(y_true, y_pred):
    return K.mean(K.binary_crossentropy(y_true, y_pred), axis=-1)


def categorical_crossentropy(y_true, y_pred):
    return K.categorical_crossentropy(y_true, y_pred)


mse = MSE = mean_squared_error
mae = MAE = mean_absolute_error

_LOSSES = {
    'mean_squared_error': mean_squared_error,
    'mse': mean_squared_error,
    'MSE': mean_squared_error,
    'mean_absolute_error': mean_absolute_error,
    'mae': mean_absolute_error,
    'MAE': mean_absolute_error,
    'binary_crossentropy': binary_crossentropy,
    'categorical_crossentropy': categorical_crossentropy,
}


def get(identifier):
    if is_string(identifier):
        loss = _LOSSES.get(identifier)
        if loss is None:
            raise ValueError('Unknown loss function: %s' % identifier)
        return loss
    if callable(identifier):
        return identifier
    raise ValueError('Could not interpret loss function identifier: %s'
                     % str(identifier))
