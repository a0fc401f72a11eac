# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

import numpy as np
import pytest

C = pytest.importorskip('cntk')

from keras_cntk import backend as K
from keras_cntk import activations, losses, metrics, optimizers
from keras_cntk.layers import Input, Dense, Dropout, Activation
from keras_cntk.models import Sequential


def classification_data(num_samples=64, seed=0):
    rng = np.random.RandomState(seed)
    x = rng.normal(size=(num_samples, 4)).astype(np.float32)
    labels = (x[:, 0] + x[:, 1] > 0).astype(np.int64)
    y = np.eye(2, dtype=np.float32)[labels]
    return x, y


def test_lookups():
    assert activations.get(None) is activations.linear
    assert activations.get('relu') is activations.relu
    assert losses.get('mse') is losses.mean_squared_error
    assert metrics.get('categorical_accuracy') is metrics.categorical_accuracy
    assert isinstance(optimizers.get('Adam'), optimizers.Adam)
    with pytest.raises(ValueError):
        activations.get('swish')
    with pytest.raises(ValueError):
        losses.get('hinge')
    with pytest.raises(ValueError):
        metrics.get('get')
    with pytest.raises(ValueError):
        optimizers.get('nadam')
    with pytest.raises(TypeError):
        optimizers.SGD(momentum_decay=1)


def test_dense_layer_shapes():
    x = Input((4,))
    layer = Dense(3, activation='relu', name='dense')
    y = layer(x)
    assert K.int_shape(y) == (None, 3)
    assert [K.int_shape(w) for w in layer.weights] == [(4, 3), (3,)]
    assert layer.count_params() == 15

    with pytest.raises(ValueError):
        layer.set_weights([np.zeros((4, 3))])


def test_dropout_uses_learning_phase():
    x = Input((4,))
    y = Dropout(0.5)(x)
    assert y._uses_learning_phase
    assert Dropout(0.)(x) is x


def test_sequential_requires_input_shape():
    with pytest.raises(ValueError):
        Sequential([Dense(2)])
    with pytest.raises(TypeError):
        Sequential([object()])


def test_uncompiled_model():
    model = Sequential([Dense(2, input_shape=(4,))])
    with pytest.raises(RuntimeError):
        model.train_on_batch(np.zeros((1, 4)), np.zeros((1, 2)))
    assert model.predict(np.zeros((3, 4))).shape == (3, 2)


@pytest.mark.parametrize("optimizer", [
    'sgd',
    'rmsprop', 'adagrad', 'adam',
])
def test_train_on_batch_decreases_loss(optimizer):
    x, y = classification_data()
    model = Sequential([Dense(8, input_shape=(4,), activation='tanh'),
                        Dense(2, activation='softmax')])
    model.compile(optimizers.get(optimizer), 'categorical_crossentropy',
                  metrics=['accuracy', 'mse'])
    assert model.metrics_names == ['loss', 'acc', 'mean_squared_error']

    before = model.test_on_batch(x, y)
    for _ in range(50):
        outs = model.train_on_batch(x, y)
    after = model.test_on_batch(x, y)

    assert len(outs) == 3
    assert after[0] < before[0]
    assert 0. <= after[1] <= 1.


def test_fit_evaluate_predict(capsys):
    x, y = classification_data(128)
    model = Sequential()
    model.add(Dense(16, input_shape=(4,), activation='relu'))
    model.add(Dropout(0.1))
    model.add(Dense(2))
    model.add(Activation('softmax'))
    model.compile(optimizers.Adam(lr=0.02), 'categorical_crossentropy',
                  metrics=['accuracy'])

    history = model.fit(x, y, batch_size=16, epochs=10, verbose=1,
                        validation_data=(x, y))
    out = capsys.readouterr().out
    assert 'Epoch 1/10' in out
    assert 'Finished Epoch[10]' in out

    assert history.epoch == list(range(10))
    assert set(history.history.keys()) == set(['loss', 'acc', 'val_loss',
                                               'val_acc'])
    assert history.history['loss'][-1] < history.history['loss'][0]

    loss, acc = model.evaluate(x, y, batch_size=50)
    assert acc > 0.7
    predictions = model.predict(x, batch_size=50)
    assert predictions.shape == (128, 2)
    assert np.allclose(predictions.sum(axis=1), 1., atol=1e-5)


def test_weights_roundtrip():
    model = Sequential([Dense(3, input_shape=(2,)), Dense(1)])
    weights = model.get_weights()
    assert [w.shape for w in weights] == [(2, 3), (3,), (3, 1), (1,)]
    assert model.count_params() == 13

    zeros = [np.zeros_like(w) for w in weights]
    model.set_weights(zeros)
    assert np.array_equal(model.predict(np.ones((2, 2))), np.zeros((2, 1)))


def test_binary_accuracy_and_clipnorm():
    x, y = classification_data()
    y = y[:, 1:]
    model = Sequential([Dense(1, input_shape=(4,), activation='sigmoid')])
    model.compile(optimizers.SGD(lr=0.5, clipnorm=1.), 'binary_crossentropy',
                  metrics=['acc'])
    first = model.train_on_batch(x, y)
    for _ in range(30):
        last = model.train_on_batch(x, y)
    assert last[0] < first[0]
    assert model.metrics_names == ['loss', 'acc']


def test_optimizer_weights():
    model = Sequential([Dense(2, input_shape=(3,))])
    opt = optimizers.SGD(lr=0.1, momentum=0.5)
    model.compile(opt, 'mse')
    model.train_on_batch(np.ones((4, 3)), np.zeros((4, 2)))
    weights = opt.get_weights()
    assert float(weights[0]) == 1.
    assert opt.get_config()['momentum'] == pytest.approx(0.5)
    with pytest.raises(ValueError):
        opt.set_weights(weights[:1])


def test_learning_phase_is_fed_unless_fixed():
    x = np.ones((4, 3), dtype=np.float32)
    y = np.zeros((4, 2), dtype=np.float32)

    model = Sequential([Dense(2, input_shape=(3,)), Dropout(0.5)])
    model.compile('sgd', 'mse')
    assert model.uses_learning_phase
    inputs = model._feed_inputs()
    assert len(inputs) == 3
    assert inputs[-1] is K.learning_phase()
    assert model._ins(x, y, 1.)[-1] == 1.

    K.set_learning_phase(0)
    fixed = Sequential([Dense(2, input_shape=(3,)), Dropout(0.5)])
    fixed.compile('sgd', 'mse')
    assert len(fixed._feed_inputs()) == 2
    assert len(fixed._ins(x, y, 1.)) == 2
    fixed.train_on_batch(x, y)
    # dropout is off for good, predictions are deterministic
    assert np.array_equal(fixed.predict(x), fixed.predict(x))


def test_add_after_compile_requires_recompile():
    x, y = classification_data(16)
    model = Sequential([Dense(4, input_shape=(4,), activation='relu')])
    model.compile('sgd', 'mse')
    model.add(Dense(2, activation='softmax'))

    with pytest.raises(RuntimeError):
        model.train_on_batch(x, y)
    with pytest.raises(RuntimeError):
        model.evaluate(x, y)

    model.compile('sgd', 'categorical_crossentropy')
    assert K.int_shape(model.targets[0]) == (None, 2)
    assert np.isfinite(model.train_on_batch(x, y))


def test_empty_inputs():
    model = Sequential([Dense(2, input_shape=(4,))])
    model.compile('sgd', 'mse')
    x = np.zeros((0, 4), dtype=np.float32)
    y = np.zeros((0, 2), dtype=np.float32)
    with pytest.raises(ValueError):
        model.predict(x)
    with pytest.raises(ValueError):
        model.fit(x, y, verbose=0)
    with pytest.raises(ValueError):
        model.evaluate(x, y)


def test_layer_rejects_plain_arrays():
    with pytest.raises(ValueError) as excinfo:
        Dense(2)(np.ones((1, 3)))
    assert 'not a Keras tensor' in str(excinfo.value)
