# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

'''
Keras backend functions on top of CNTK. Keras tensors are plain CNTK
variables and functions annotated with their Keras shape.

Dimension 0 of a Keras shape is the batch dimension, which CNTK models as
a dynamic axis. Keras axis ``k > 0`` of a batched tensor is therefore CNTK
static axis ``k - 1``.
'''

from __future__ import division

import warnings
from collections import defaultdict

import numpy as np
import cntk as C

from . import config
from .config import floatx, set_floatx, epsilon, set_epsilon, \
        image_data_format, set_image_data_format
from .function import Function
from .internal import sanitize_dtype, sanitize_shape
from . import tensor as _tensor

GRAD_PLACEHOLDER_NAME = 'keras_grad_placeholder'

# gradient placeholder uid -> parameter it stands for
grad_parameter_dict = {}

_UID_PREFIXES = defaultdict(int)

# -1 means the phase is decided per call by feeding the placeholder
_LEARNING_PHASE = -1
_LEARNING_PHASE_PLACEHOLDER = C.constant(shape=(), dtype=np.float32, value=1.0,
                                         name='_keras_learning_phase')


def backend():
    return 'cntk'


def get_uid(prefix=''):
    '''
    Returns a counter of the names created with ``prefix`` so far, starting
    at 1.
    '''
    _UID_PREFIXES[prefix] += 1
    return _UID_PREFIXES[prefix]


def reset_uids():
    _UID_PREFIXES.clear()


def _prepare_name(name, default):
    if name is None or name == '':
        return default + '_' + str(get_uid(default))
    return name


def clear_session():
    '''
    Forgets the gradient placeholders, resets the naming counters and the
    learning phase.
    '''
    global _LEARNING_PHASE
    grad_parameter_dict.clear()
    reset_uids()
    _LEARNING_PHASE = -1
    _LEARNING_PHASE_PLACEHOLDER.value = np.asarray(1.0, dtype=np.float32)


def learning_phase():
    '''
    Returns the learning phase: 0 (test) or 1 (train) if it was set with
    :func:`set_learning_phase`, otherwise the placeholder that is fed
    together with the inputs.
    '''
    if _LEARNING_PHASE in (0, 1):
        return _LEARNING_PHASE
    return _LEARNING_PHASE_PLACEHOLDER


def set_learning_phase(value):
    global _LEARNING_PHASE
    if value not in (0, 1):
        raise ValueError('CNTK Backend: Set learning phase with value %s is '
                         'not supported, expected 0 or 1.' % str(value))
    _LEARNING_PHASE = int(value)
    _LEARNING_PHASE_PLACEHOLDER.value = np.asarray(value, dtype=np.float32)


def _is_learning_phase_placeholder(x):
    return getattr(x, 'uid', None) == _LEARNING_PHASE_PLACEHOLDER.uid


def in_train_phase(x, alt, training=None):
    '''
    Selects ``x`` in training phase and ``alt`` otherwise. Either may be a
    callable returning the tensor.
    '''
    if training is None:
        training = learning_phase()
        uses_learning_phase = True
    else:
        uses_learning_phase = False

    if callable(x) and not isinstance(x, C.cntk_py.Function):
        x = x()
    if callable(alt) and not isinstance(alt, C.cntk_py.Function):
        alt = alt()

    if training is True:
        x._uses_learning_phase = uses_learning_phase
        return x

    # CNTK has no conditional op, both branches are computed
    if isinstance(training, (int, bool)):
        result = x if training == 1 else alt
    else:
        result = C.element_select(training, x, alt)
    result._uses_learning_phase = uses_learning_phase
    return result


def in_test_phase(x, alt, training=None):
    return in_train_phase(alt, x, training=training)


# Variables

def placeholder(shape=None, ndim=None, dtype=None, sparse=False, name=None,
                dynamic_axis_num=1):
    '''
    Creates an input variable. The first ``dynamic_axis_num`` dimensions of
    ``shape`` are dynamic axes (the batch axis).

    Args:
        shape (tuple): Keras shape, including the batch dimension
        ndim (int): number of dimensions, if ``shape`` is not given
        dtype (str): placeholder type, defaults to :func:`floatx`
        sparse (bool): whether the placeholder takes sparse data
        name (str, optional): the name of the variable
    '''
    if dtype is None:
        dtype = floatx()
    if not shape:
        if ndim:
            shape = tuple([None for _ in range(ndim)])
        else:
            shape = ()
    shape = sanitize_shape(shape)

    if dynamic_axis_num > len(shape):
        raise ValueError('CNTK backend: creating placeholder with '
                         '%d dimension is not supported, at least '
                         '%d dimensions are needed.'
                         % (len(shape), dynamic_axis_num))

    cntk_shape = tuple(C.FreeDimension if s is None else s
                       for s in shape[dynamic_axis_num:])
    x = C.input_variable(shape=cntk_shape,
                         dtype=sanitize_dtype(dtype),
                         is_sparse=sparse,
                         name=_prepare_name(name, 'placeholder'))
    x._keras_shape = shape
    x._uses_learning_phase = False
    x._cntk_placeholder = True
    return x


def is_placeholder(x):
    return hasattr(x, '_cntk_placeholder') and x._cntk_placeholder


def variable(value, dtype=None, name=None, constraint=None):
    '''
    Creates a parameter initialized with ``value``.
    '''
    if dtype is None:
        dtype = floatx()

    if isinstance(value, (C.variables.Constant, C.variables.Parameter)):
        value = value.value
    # parameters can not be initialized with a symbolic op, evaluate it first
    if isinstance(value, C.cntk_py.Function):
        value = eval(value)

    np_dtype = sanitize_dtype(dtype)
    value = np.asarray(value, dtype=np_dtype)

    v = C.parameter(shape=value.shape,
                    init=value,
                    dtype=np_dtype,
                    name=_prepare_name(name, 'variable'))
    v._keras_shape = v.shape
    v._uses_learning_phase = False
    v.constraint = constraint
    return v


def constant(value, dtype=None, shape=None, name=None):
    if dtype is None:
        dtype = floatx()
    if shape is None:
        shape = ()
    np_value = value * np.ones(shape, dtype=sanitize_dtype(dtype))
    const = C.constant(np_value,
                       dtype=sanitize_dtype(dtype),
                       name=_prepare_name(name, 'constant'))
    const._keras_shape = const.shape
    const._uses_learning_phase = False
    return const


def zeros(shape, dtype=None, name=None):
    if dtype is None:
        dtype = floatx()
    return variable(np.zeros(shape, sanitize_dtype(dtype)), dtype, name)


def ones(shape, dtype=None, name=None):
    if dtype is None:
        dtype = floatx()
    return variable(np.ones(shape, sanitize_dtype(dtype)), dtype, name)


def zeros_like(x, dtype=None, name=None):
    return C.zeros_like(x)


def ones_like(x, dtype=None, name=None):
    return C.ones_like(x)


def random_uniform_variable(shape, low, high, dtype=None, name=None, seed=None):
    if seed is None:
        seed = np.random.randint(10e6)
    rng = np.random.RandomState(seed)
    return variable(rng.uniform(low, high, size=shape), dtype, name)


def random_normal_variable(shape, mean, scale, dtype=None, name=None,
                           seed=None):
    if seed is None:
        seed = np.random.randint(10e6)
    rng = np.random.RandomState(seed)
    return variable(rng.normal(mean, scale, size=shape), dtype, name)


def count_params(x):
    for dim in x.shape:
        if dim == C.InferredDimension or dim == C.FreeDimension:
            raise ValueError('CNTK backend: `count_params` with dynamic '
                             'shape is not supported. Please provide '
                             'fixed dimension instead of `None`.')
    return int(np.prod(int_shape(x)))


# Queries

def int_shape(x):
    return _tensor.int_shape(x)


def ndim(x):
    return len(int_shape(x))


def dtype(x):
    return np.dtype(x.dtype).name


def _num_dynamic_axes(x):
    return len(getattr(x, 'dynamic_axes', ()))


def eval(x):
    '''
    Evaluates ``x``, which must not depend on any placeholder.
    '''
    if isinstance(x, C.cntk_py.Function):
        return x.eval()
    elif isinstance(x, (C.variables.Constant, C.variables.Parameter)):
        return x.value
    raise ValueError('CNTK Backend: `eval` method on `%s` type is not '
                     'supported. CNTK only supports `eval` with `Function`, '
                     '`Constant` or `Parameter`.' % type(x))


def get_value(x):
    if isinstance(x, (C.variables.Parameter, C.variables.Constant)):
        return x.value
    return eval(x)


def batch_get_value(xs):
    return [get_value(x) for x in xs]


def set_value(x, value):
    if not isinstance(x, C.variables.Parameter):
        raise ValueError('CNTK backend: assigning value to a tensor that is '
                         'not a parameter (`%s`) is not supported.' % type(x))
    if isinstance(value, (float, int)):
        value = np.full(x.shape, value, dtype=x.dtype)
    value = np.asarray(value, dtype=x.dtype)
    if value.shape != tuple(x.shape):
        raise ValueError('CNTK backend: can not assign a value of shape %s '
                         'to a parameter of shape %s'
                         % (str(value.shape), str(x.shape)))
    x.value = value


def batch_set_value(tuples):
    for x, value in tuples:
        set_value(x, value)


# Axis handling

def _normalize_axis(axis, x):
    '''
    Converts Keras axes of ``x`` to CNTK axes. Axis 0 of a batched tensor is
    the batch axis, the remaining ones are shifted to static axes.
    '''
    num_dynamic = _num_dynamic_axes(x)
    rank = len(x.shape) + num_dynamic
    if axis is None:
        axis = list(range(rank))
    elif not isinstance(axis, (list, tuple)):
        axis = [axis]

    result = []
    for a in axis:
        if a < 0:
            a += rank
        if a < 0 or a >= rank:
            raise ValueError('CNTK backend: axis %i is out of range for a '
                             'tensor of rank %i' % (a, rank))
        if a < num_dynamic:
            result.append(C.Axis.default_batch_axis())
        else:
            result.append(a - num_dynamic)
    return result


def _reduce(x, axis, keepdims, reduce_fun):
    axes = _normalize_axis(axis, x)
    static_axes = [a for a in axes if not isinstance(a, C.Axis)]
    output = x
    if static_axes:
        output = reduce_fun(output, axis=static_axes, keepdims=keepdims)
    if len(static_axes) < len(axes):
        output = reduce_fun(output, axis=C.Axis.default_batch_axis())
    return output


def sum(x, axis=None, keepdims=False):
    return _reduce(x, axis, keepdims, C.reduce_sum)


def mean(x, axis=None, keepdims=False):
    return _reduce(x, axis, keepdims, C.reduce_mean)


def max(x, axis=None, keepdims=False):
    return _reduce(x, axis, keepdims, C.reduce_max)


def min(x, axis=None, keepdims=False):
    return _reduce(x, axis, keepdims, C.reduce_min)


def argmax(x, axis=-1):
    axes = _normalize_axis(axis, x)
    if isinstance(axes[0], C.Axis):
        raise ValueError('CNTK backend: `argmax` over the batch axis is '
                         'not supported.')
    output = C.argmax(x, axis=axes[0])
    return C.squeeze(output, axes=[axes[0]])


# Element-wise and linear algebra ops

def dot(x, y):
    return C.times(x, y)


def bias_add(x, bias):
    return C.plus(x, bias)


def square(x):
    return C.square(x)


def sqrt(x):
    return C.sqrt(C.element_max(x, 0.))


def abs(x):
    return C.abs(x)


def exp(x):
    return C.exp(x)


def log(x):
    return C.log(x)


def pow(x, a):
    return C.pow(x, a)


def round(x):
    return C.round(x)


def clip(x, min_value, max_value):
    if max_value is not None and max_value < min_value:
        max_value = min_value
    if max_value is None:
        max_value = np.inf
    if min_value is None:
        min_value = -np.inf
    return C.clip(x, min_value, max_value)


def maximum(x, y):
    return C.element_max(x, y)


def minimum(x, y):
    return C.element_min(x, y)


def equal(x, y):
    return C.equal(x, y)


def cast(x, dtype):
    # the runtime computes on floats only, casting is a no-op
    return x


def stop_gradient(x):
    return C.stop_gradient(x)


def relu(x, alpha=0., max_value=None):
    if alpha != 0.:
        negative_part = C.relu(-x)
    x = C.relu(x)
    if max_value is not None:
        x = C.clip(x, 0.0, max_value)
    if alpha != 0.:
        x -= alpha * negative_part
    return x


def sigmoid(x):
    return C.sigmoid(x)


def tanh(x):
    return C.tanh(x)


def softmax(x, axis=-1):
    return C.softmax(x, axis=_normalize_axis(axis, x)[0])


def dropout(x, level, noise_shape=None, seed=None):
    if level < 0. or level >= 1:
        raise ValueError('CNTK Backend: Invalid dropout level %s, '
                         'must be in interval [0, 1].' % level)
    if seed is None:
        return C.dropout(x, level)
    return C.dropout(x, level, seed=seed)


def categorical_crossentropy(target, output, from_logits=False):
    if from_logits:
        output = C.softmax(output)
    else:
        output /= C.reduce_sum(output, axis=-1)
    output = C.clip(output, epsilon(), 1.0 - epsilon())
    return -sum(target * C.log(output), axis=-1)


def binary_crossentropy(target, output, from_logits=False):
    if from_logits:
        output = C.sigmoid(output)
    output = C.clip(output, epsilon(), 1.0 - epsilon())
    output = -target * C.log(output) - (1.0 - target) * C.log(1.0 - output)
    return output


# Gradients and updates

def gradients(loss, variables):
    '''
    CNTK computes gradients inside its learners only. Every variable gets a
    constant placeholder that the learner fills with the gradient during
    training; :class:`~keras_cntk.function.Function` looks the placeholders
    up to find the parameters to train.
    '''
    if not isinstance(variables, (list, tuple)):
        variables = [variables]
    grads = []
    for v in variables:
        g = C.constant(0, shape=v.shape, dtype=v.dtype,
                       name=GRAD_PLACEHOLDER_NAME)
        grads.append(g)
        grad_parameter_dict[g.uid] = v
    return grads


def update(x, new_x):
    return C.assign(x, new_x)


def update_add(x, increment):
    return C.assign(x, x + increment)


def update_sub(x, decrement):
    return C.assign(x, x - decrement)


class CNTKRuntime(object):
    '''
    Bridge between :class:`~keras_cntk.function.Function` and CNTK: graph
    combination, assign ops, learners, trainers, the learning phase and the
    compute device.
    '''

    def assign(self, x, new_x):
        return C.assign(x, new_x)

    def combine(self, ops):
        return C.combine([op.output if isinstance(op, C.cntk_py.Function)
                          else op for op in ops])

    def gradient_placeholders(self, func):
        return func.find_all_with_name(GRAD_PLACEHOLDER_NAME)

    def parameter_for_gradient(self, g):
        return grad_parameter_dict.get(g.uid)

    def create_trainer(self, loss, metric, parameters, gradients, update_func):
        learner = C.cntk_py.universal_learner(parameters, gradients,
                                              update_func)
        criterion = (loss, metric) if metric is not None else (loss, None)
        return C.Trainer(loss, criterion, [learner])

    def is_learning_phase(self, x):
        return _is_learning_phase_placeholder(x)

    def set_learning_phase_value(self, value):
        _LEARNING_PHASE_PLACEHOLDER.value = np.asarray(value, dtype=np.float32)

    def in_training_phase(self):
        if _LEARNING_PHASE != -1:
            return _LEARNING_PHASE == 1
        return float(_LEARNING_PHASE_PLACEHOLDER.value) == 1.0

    def num_dynamic_axes(self, x):
        return _num_dynamic_axes(x)

    def device(self):
        device_id = config.device()
        if device_id is None:
            return None
        elif device_id == -1:
            return C.device.cpu()
        return C.device.gpu(device_id)


_runtime = CNTKRuntime()


def function(inputs, outputs, updates=[], **kwargs):
    '''
    Instantiates a :class:`~keras_cntk.function.Function`.

    Args:
        inputs (list): placeholders
        outputs (list): output tensors
        updates (list): update ops or ``(variable, new_value)`` pairs
        name (str, optional): name of the function
    '''
    unknown = set(kwargs) - set(['name'])
    if unknown:
        warnings.warn('CNTK backend: `function` ignores the arguments %s'
                      % ', '.join(sorted(unknown)))
    return Function(inputs, outputs, updates=updates, runtime=_runtime,
                    name=kwargs.get('name'))
