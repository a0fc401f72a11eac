# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

'''
Core layers. A layer owns its weights (CNTK parameters) and maps input
tensors to output tensors; the Keras shape of every output is recorded on
the resulting CNTK function.
'''

import numpy as np

from . import backend as K
from . import activations
from . import initializers
from .tensor import uses_learning_phase, is_keras_tensor, tensor_repr


def Input(shape, dtype=None, name=None, sparse=False):
    '''
    Creates the input placeholder of a model.

    Args:
        shape (tuple): shape of one sample, without the batch dimension
    '''
    if np.isscalar(shape):
        shape = (shape,)
    return K.placeholder(shape=(None,) + tuple(shape), dtype=dtype,
                         sparse=sparse, name=name)


class Layer(object):
    '''
    Abstract base layer.

    Args:
        name (str, optional): name of the layer
        trainable (bool): whether the weights are updated during training
        input_shape (tuple, optional): shape of one input sample, needed by
         the first layer of a :class:`~keras_cntk.models.Sequential` model
    '''

    def __init__(self, name=None, trainable=True, input_shape=None,
                 dtype=None):
        if not name:
            prefix = self.__class__.__name__.lower()
            name = prefix + '_' + str(K.get_uid(prefix))
        self.name = name
        self.trainable = trainable
        self.dtype = dtype or K.floatx()
        if input_shape is not None:
            self.batch_input_shape = (None,) + tuple(input_shape)
        self.built = False
        self._trainable_weights = []
        self._non_trainable_weights = []

    @property
    def trainable_weights(self):
        if not self.trainable:
            return []
        return self._trainable_weights

    @property
    def non_trainable_weights(self):
        if not self.trainable:
            return self._trainable_weights + self._non_trainable_weights
        return self._non_trainable_weights

    @property
    def weights(self):
        return self.trainable_weights + self.non_trainable_weights

    def add_weight(self, name, shape, initializer='glorot_uniform',
                   trainable=True):
        initializer = initializers.get(initializer)
        value = initializer(tuple(shape), dtype=np.dtype(self.dtype).type)
        weight = K.variable(value, dtype=self.dtype,
                            name=self.name + '_' + name)
        if trainable:
            self._trainable_weights.append(weight)
        else:
            self._non_trainable_weights.append(weight)
        return weight

    def build(self, input_shape):
        self.built = True

    def call(self, inputs, training=None):
        return inputs

    def compute_output_shape(self, input_shape):
        return input_shape

    def __call__(self, inputs, training=None):
        if not is_keras_tensor(inputs):
            raise ValueError('Layer "%s" was called with an input that is not '
                             'a Keras tensor: %s. Use `Input` or the output '
                             'of another layer.'
                             % (self.name, tensor_repr(inputs)))
        input_shape = K.int_shape(inputs)
        if not self.built:
            self.build(input_shape)
            self.built = True
        output = self.call(inputs, training=training)
        if output is inputs:
            return output
        output._keras_shape = tuple(self.compute_output_shape(input_shape))
        output._uses_learning_phase = uses_learning_phase(output) or \
            uses_learning_phase(inputs)
        return output

    def get_weights(self):
        return K.batch_get_value(self.weights)

    def set_weights(self, weights):
        params = self.weights
        if len(params) != len(weights):
            raise ValueError('You called `set_weights(weights)` on layer "%s" '
                             'with a weight list of length %i, but the layer '
                             'was expecting %i weights.'
                             % (self.name, len(weights), len(params)))
        K.batch_set_value(zip(params, weights))

    def count_params(self):
        return int(sum(K.count_params(p) for p in self.weights))

    def get_config(self):
        return {'name': self.name, 'trainable': self.trainable}


class Dense(Layer):
    '''
    Densely-connected layer: ``output = activation(dot(input, kernel) + bias)``.
    '''

    def __init__(self, units, activation=None, use_bias=True,
                 kernel_initializer='glorot_uniform',
                 bias_initializer='zeros', **kwargs):
        super(Dense, self).__init__(**kwargs)
        self.units = int(units)
        self.activation = activations.get(activation)
        self.use_bias = use_bias
        self.kernel_initializer = kernel_initializer
        self.bias_initializer = bias_initializer

    def build(self, input_shape):
        if len(input_shape) < 2:
            raise ValueError('Dense layer "%s" expects inputs with at least '
                             '2 dimensions, got shape %s'
                             % (self.name, str(input_shape)))
        input_dim = input_shape[-1]
        self.kernel = self.add_weight('kernel', (input_dim, self.units),
                                      self.kernel_initializer)
        if self.use_bias:
            self.bias = self.add_weight('bias', (self.units,),
                                        self.bias_initializer)
        else:
            self.bias = None
        self.built = True

    def call(self, inputs, training=None):
        output = K.dot(inputs, self.kernel)
        if self.use_bias:
            output = K.bias_add(output, self.bias)
        return self.activation(output)

    def compute_output_shape(self, input_shape):
        return tuple(input_shape[:-1]) + (self.units,)

    def get_config(self):
        config = {'units': self.units,
                  'activation': self.activation.__name__,
                  'use_bias': self.use_bias}
        config.update(super(Dense, self).get_config())
        return config


class Activation(Layer):

    def __init__(self, activation, **kwargs):
        super(Activation, self).__init__(**kwargs)
        self.activation = activations.get(activation)

    def call(self, inputs, training=None):
        return self.activation(inputs)


class Dropout(Layer):
    '''
    Sets a fraction ``rate`` of the inputs to 0 during training.
    '''

    def __init__(self, rate, seed=None, **kwargs):
        super(Dropout, self).__init__(**kwargs)
        self.rate = min(1., max(0., rate))
        self.seed = seed

    def call(self, inputs, training=None):
        if 0. < self.rate < 1.:
            def dropped_inputs():
                return K.dropout(inputs, self.rate, seed=self.seed)
            return K.in_train_phase(dropped_inputs, inputs, training=training)
        return inputs

    def get_config(self):
        config = {'rate': self.rate}
        config.update(super(Dropout, self).get_config())
        return config
