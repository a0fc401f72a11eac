# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

from __future__ import division

__doc__ = '''\
Sequential models: a linear stack of layers compiled into CNTK training,
evaluation and prediction functions.
'''

import numpy as np

from . import backend as K
from . import losses as losses_module
from . import metrics as metrics_module
from . import optimizers
from .layers import Input, Layer
from .logging import ProgressPrinter
from .tensor import uses_learning_phase


class History(object):
    '''
    Per-epoch averages recorded by :meth:`Sequential.fit`.
    '''

    def __init__(self):
        self.epoch = []
        self.history = {}

    def record(self, epoch, logs):
        self.epoch.append(epoch)
        for k, v in logs.items():
            self.history.setdefault(k, []).append(v)


def _slice_arrays(arrays, start, stop=None):
    if isinstance(start, np.ndarray):
        return [a[start] for a in arrays]
    return [a[start:stop] for a in arrays]


def _standardize(x):
    if isinstance(x, (list, tuple)):
        return [np.asarray(a) for a in x]
    return [np.asarray(x)]


def _num_samples(arrays):
    num_samples = arrays[0].shape[0] if arrays[0].ndim > 0 else 0
    if num_samples == 0:
        raise ValueError('Expected at least one sample, got arrays of shapes '
                         '%s' % str([a.shape for a in arrays]))
    return num_samples


class Sequential(object):
    '''
    Linear stack of layers.

    Example:
        >>> from keras_cntk.layers import Dense
        >>> model = Sequential([Dense(8, input_shape=(4,), activation='relu'),
        ...                     Dense(3, activation='softmax')])
        >>> model.compile('sgd', 'categorical_crossentropy', ['accuracy'])

    Args:
        layers (list, optional): initial layers
        name (str, optional): name of the model
    '''

    def __init__(self, layers=None, name=None):
        if not name:
            name = 'sequential_' + str(K.get_uid('sequential'))
        self.name = name
        self.layers = []
        self.inputs = []
        self.outputs = []
        self.optimizer = None
        self.loss = None
        self.train_function = None
        self.test_function = None
        self.predict_function = None
        self.stop_training = False
        for layer in layers or []:
            self.add(layer)

    def add(self, layer):
        if not isinstance(layer, Layer):
            raise TypeError('The added layer must be an instance of class '
                            'Layer. Found: ' + str(layer))
        if not self.outputs:
            if not hasattr(layer, 'batch_input_shape'):
                raise ValueError('The first layer in a Sequential model must '
                                 'get an `input_shape` argument.')
            x = Input(layer.batch_input_shape[1:], dtype=layer.dtype,
                      name=self.name + '_input')
            self.inputs = [x]
            self.outputs = [layer(x)]
        else:
            self.outputs = [layer(self.outputs[0])]
        self.layers.append(layer)
        # the loss and metrics of an earlier compile refer to the old output
        self.optimizer = None
        self.train_function = None
        self.test_function = None
        self.predict_function = None

    @property
    def output(self):
        return self.outputs[0]

    @property
    def trainable_weights(self):
        weights = []
        for layer in self.layers:
            weights += layer.trainable_weights
        return weights

    @property
    def weights(self):
        weights = []
        for layer in self.layers:
            weights += layer.weights
        return weights

    @property
    def uses_learning_phase(self):
        return any(uses_learning_phase(x) for x in self.outputs)

    def get_weights(self):
        return K.batch_get_value(self.weights)

    def set_weights(self, weights):
        for layer in self.layers:
            num_param = len(layer.weights)
            layer.set_weights(weights[:num_param])
            weights = weights[num_param:]

    def count_params(self):
        return int(sum(layer.count_params() for layer in self.layers))

    def compile(self, optimizer, loss, metrics=None):
        '''
        Configures the model for training.

        Args:
            optimizer: name or :class:`~keras_cntk.optimizers.Optimizer`
            loss: name of a loss function or a callable
             ``loss(y_true, y_pred)`` returning one value per sample
            metrics (list, optional): names or callables, ``'accuracy'``
             picks binary or categorical accuracy from the output width
        '''
        if not self.outputs:
            raise RuntimeError('You must add at least one layer before '
                               'compiling the model.')
        self.optimizer = optimizers.get(optimizer)
        self.loss = loss
        loss_function = losses_module.get(loss)

        output = self.output
        self.targets = [K.placeholder(shape=K.int_shape(output),
                                      name=self.name + '_target')]
        self.total_loss = loss_function(self.targets[0], output)

        self.metrics_names = ['loss']
        self.metrics_tensors = []
        for metric in metrics or []:
            if metric in ('accuracy', 'acc'):
                if K.int_shape(output)[-1] == 1 or \
                        loss == 'binary_crossentropy':
                    metric_fn = metrics_module.binary_accuracy
                else:
                    metric_fn = metrics_module.categorical_accuracy
                name = 'acc'
            else:
                metric_fn = metrics_module.get(metric)
                name = metric_fn.__name__
            self.metrics_names.append(name)
            self.metrics_tensors.append(metric_fn(self.targets[0], output))

        self.train_function = None
        self.test_function = None
        self.predict_function = None

    def _check_compiled(self):
        if self.optimizer is None:
            raise RuntimeError('You must compile your model before using it.')

    def _feeds_learning_phase(self):
        # a phase fixed with set_learning_phase is not fed
        return self.uses_learning_phase and \
            not isinstance(K.learning_phase(), int)

    def _feed_inputs(self):
        inputs = self.inputs + self.targets
        if self._feeds_learning_phase():
            inputs = inputs + [K.learning_phase()]
        return inputs

    def _make_train_function(self):
        self._check_compiled()
        if self.train_function is None:
            updates = self.optimizer.get_updates(
                loss=self.total_loss, params=self.trainable_weights)
            self.train_function = K.function(
                self._feed_inputs(),
                [self.total_loss] + self.metrics_tensors,
                updates=updates,
                name='train_function')

    def _make_test_function(self):
        self._check_compiled()
        if self.test_function is None:
            self.test_function = K.function(
                self._feed_inputs(),
                [self.total_loss] + self.metrics_tensors,
                name='test_function')

    def _make_predict_function(self):
        if self.predict_function is None:
            inputs = self.inputs
            if self._feeds_learning_phase():
                inputs = inputs + [K.learning_phase()]
            self.predict_function = K.function(inputs, self.outputs,
                                               name='predict_function')

    def _ins(self, x, y, learning_phase):
        ins = _standardize(x) + _standardize(y)
        if self._feeds_learning_phase():
            ins.append(learning_phase)
        return ins

    @staticmethod
    def _scalars(outs):
        return [float(np.mean(o)) for o in outs]

    def train_on_batch(self, x, y):
        '''
        Runs a single gradient update on one minibatch.

        Returns:
            scalar training loss, or the list of loss and metric values if
            the model has metrics (see ``metrics_names``)
        '''
        self._make_train_function()
        outs = self._scalars(self.train_function(self._ins(x, y, 1.)))
        return outs[0] if len(outs) == 1 else outs

    def test_on_batch(self, x, y):
        self._make_test_function()
        outs = self._scalars(self.test_function(self._ins(x, y, 0.)))
        return outs[0] if len(outs) == 1 else outs

    def predict_on_batch(self, x):
        self._make_predict_function()
        ins = _standardize(x)
        if self._feeds_learning_phase():
            ins.append(0.)
        return self.predict_function(ins)[0]

    def fit(self, x, y, batch_size=32, epochs=1, verbose=1, shuffle=True,
            validation_data=None, log_to_file=None):
        '''
        Trains the model for a fixed number of epochs.

        Args:
            x, y: training data and targets (NumPy arrays)
            batch_size (int): number of samples per gradient update
            epochs (int): number of passes over the data
            verbose (int): 0 = silent, 1 = one line per epoch, 2 = also one
             line per minibatch
            shuffle (bool): shuffle the samples before each epoch
            validation_data (tuple, optional): ``(x_val, y_val)`` evaluated
             at the end of each epoch
            log_to_file (str, optional): write progress to this file instead
             of stdout

        Returns:
            :class:`History`
        '''
        self._make_train_function()
        xs = _standardize(x)
        ys = _standardize(y)
        num_samples = _num_samples(xs)
        for a in xs + ys:
            if a.shape[0] != num_samples:
                raise ValueError('All input arrays and the target array '
                                 'should have the same number of samples.')

        progress = None
        if verbose:
            progress = ProgressPrinter(freq=1 if verbose > 1 else None,
                                       tag=self.name, log_to_file=log_to_file,
                                       num_epochs=epochs)
        history = History()
        self.stop_training = False
        for epoch in range(epochs):
            if progress is not None:
                progress.on_epoch_begin(epoch)
            index_array = np.arange(num_samples)
            if shuffle:
                np.random.shuffle(index_array)

            totals = np.zeros(len(self.metrics_names))
            for start in range(0, num_samples, batch_size):
                batch_ids = index_array[start:start + batch_size]
                outs = self.train_on_batch(_slice_arrays(xs, batch_ids),
                                           _slice_arrays(ys, batch_ids))
                if not isinstance(outs, list):
                    outs = [outs]
                totals += np.asarray(outs) * len(batch_ids)
                if progress is not None:
                    progress.update(self.metrics_names, outs, len(batch_ids))

            logs = dict(zip(self.metrics_names, totals / num_samples))
            val_logs = {}
            if validation_data is not None:
                val_outs = self.evaluate(validation_data[0],
                                         validation_data[1],
                                         batch_size=batch_size)
                if not isinstance(val_outs, list):
                    val_outs = [val_outs]
                val_logs = dict(('val_' + n, v)
                                for n, v in zip(self.metrics_names, val_outs))
                logs.update(val_logs)
            if progress is not None:
                progress.on_epoch_end(val_logs)
            history.record(epoch, logs)
            if self.stop_training:
                break
        return history

    def evaluate(self, x, y, batch_size=32):
        '''
        Returns the loss (and metric values) averaged over all samples.
        '''
        self._make_test_function()
        xs = _standardize(x)
        ys = _standardize(y)
        num_samples = _num_samples(xs)
        totals = np.zeros(len(self.metrics_names))
        for start in range(0, num_samples, batch_size):
            stop = min(start + batch_size, num_samples)
            outs = self.test_on_batch(_slice_arrays(xs, start, stop),
                                      _slice_arrays(ys, start, stop))
            if not isinstance(outs, list):
                outs = [outs]
            totals += np.asarray(outs) * (stop - start)
        outs = list(totals / num_samples)
        return outs[0] if len(outs) == 1 else outs

    def predict(self, x, batch_size=32):
        xs = _standardize(x)
        num_samples = _num_samples(xs)
        results = []
        for start in range(0, num_samples, batch_size):
            batch = _slice_arrays(xs, start, start + batch_size)
            results.append(self.predict_on_batch(batch))
        return np.concatenate(results, axis=0)
