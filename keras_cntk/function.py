# Copyright (c) Microsoft. All rights reserved.

# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

__doc__ = '''\
A Keras function bundles the placeholders, outputs and updates of a model
into a callable that takes a list of input arrays. Updates that depend on
gradients are handed to a runtime learner and driven by a trainer, the
remaining outputs are evaluated directly, and updates that do not depend on
gradients (e.g. running statistics) are evaluated for their side effects.
'''

from .internal import sanitize_feed_value, sanitize_updates, \
        is_shape_compatible
from .tensor import tensor_repr


class Function(object):
    '''
    Callable that trains or evaluates a slice of the graph.

    Args:
        inputs (list): placeholders, in the order the values are passed to
         :meth:`__call__`. May contain the learning phase placeholder.
        outputs (list): tensors to compute. If ``updates`` is not empty,
         ``outputs[0]`` is the loss and ``outputs[1]`` (if given) the metric
         the trainer reports.
        updates (list): update ops or ``(variable, new_value)`` pairs
        runtime: bridge to the runtime that creates assign ops, combined
         functions, learners and trainers (see
         :class:`keras_cntk.backend.CNTKRuntime`)
        name (str, optional): name of the function, e.g. ``train_function``
    '''

    def __init__(self, inputs, outputs, updates=None, runtime=None, name=None):
        if runtime is None:
            raise ValueError('CNTK backend: a runtime is required to build '
                             'a function')
        if not isinstance(inputs, (list, tuple)):
            raise TypeError('`inputs` to a function should be a list or '
                            'tuple, got "%s"' % type(inputs))
        if not isinstance(outputs, (list, tuple)):
            outputs = [outputs]

        self.runtime = runtime
        self.name = name
        self.placeholders = list(inputs)
        self.trainer = None
        self.metric = None
        self.unrelated_updates = None
        self.updates = sanitize_updates(updates)
        outputs = list(outputs)

        if len(self.updates) > 0:
            if len(outputs) == 0:
                raise ValueError('CNTK backend: a function with updates needs '
                                 'at least one output, the loss.')
            self.loss = outputs[0]
            # group the updates by whether they are driven by gradients
            u_ops = []
            unrelated_updates = []
            for update in self.updates:
                if isinstance(update, tuple):
                    u = runtime.assign(update[0], update[1])
                else:
                    u = update

                if len(u.arguments) == 0:
                    u_ops.append(u)
                else:
                    unrelated_updates.append(u)

            u_list = []
            p_list = []
            update_func = None
            if len(u_ops) > 0:
                update_func = runtime.combine(u_ops)
                for g in runtime.gradient_placeholders(update_func):
                    p = runtime.parameter_for_gradient(g)
                    if p is None:
                        raise ValueError(
                            'CNTK backend: when constructing trainer, found '
                            'gradient node `%s` which is not related to any '
                            'parameters in the model. Please double check '
                            'how the gradient node is constructed.' % str(g))
                    p_list.append(p)
                    u_list.append(g)

            if len(u_list) > 0:
                if len(outputs) > 1:
                    self.metric = outputs[1]
                self.trainer = runtime.create_trainer(
                    self.loss, self.metric, p_list, u_list, update_func)
            elif len(u_ops) > 0:
                unrelated_updates.extend(u_ops)

            if len(unrelated_updates) > 0:
                self.unrelated_updates = runtime.combine(unrelated_updates)

        # the trainer reports the loss and one metric, anything beyond that
        # is evaluated separately
        if self.trainer is None:
            metrics = outputs
        else:
            metrics = outputs[2:]

        if len(metrics) > 0:
            self.metrics_func = runtime.combine(metrics)
            self.metrics_outputs = list(self.metrics_func.outputs)
        else:
            self.metrics_func = None
            self.metrics_outputs = []

    def _feed_dict(self, inputs):
        if not isinstance(inputs, (list, tuple)):
            raise TypeError('`inputs` should be a list or tuple, got "%s"'
                            % type(inputs))
        if len(inputs) != len(self.placeholders):
            raise ValueError('CNTK backend: the function expects %i inputs, '
                             'but received %i.'
                             % (len(self.placeholders), len(inputs)))

        feed_dict = {}
        for tensor, value in zip(self.placeholders, inputs):
            if self.runtime.is_learning_phase(tensor):
                self.runtime.set_learning_phase_value(value)
                continue

            value = sanitize_feed_value(value, getattr(tensor, 'dtype', None))
            num_dynamic = self.runtime.num_dynamic_axes(tensor)
            if not is_shape_compatible(value.shape, tensor.shape, num_dynamic):
                raise ValueError('CNTK backend: The placeholder %s has been '
                                 'resolved to shape `%s`, but input shape is '
                                 '`%s`. Currently CNTK can not take variable '
                                 'length inputs. Please pass inputs that have '
                                 'a static shape.'
                                 % (tensor_repr(tensor), str(tensor.shape),
                                    str(value.shape)))
            feed_dict[tensor] = value
        return feed_dict

    @staticmethod
    def _bind(arguments, feed_dict, message):
        input_dict = {}
        for argument in arguments:
            if argument in feed_dict:
                input_dict[argument] = feed_dict[argument]
            else:
                raise ValueError(message % getattr(argument, 'name', argument))
        return input_dict

    def __call__(self, inputs):
        '''
        Runs one step on the given input arrays.

        Args:
            inputs (list): one value per placeholder given at construction

        Returns:
            list: if training, the average loss (and metric) of the
            minibatch, followed by one NumPy array per evaluated output
        '''
        feed_dict = self._feed_dict(inputs)
        device = self.runtime.device()

        updated = []
        if self.trainer is not None:
            input_dict = self._bind(self.loss.arguments, feed_dict,
                                    'CNTK backend: argument %s is not found in '
                                    'inputs. Please double check the model and '
                                    'inputs in `train_function`.')
            self.trainer.train_minibatch(input_dict, device=device)
            updated.append(self.trainer.previous_minibatch_loss_average)
            if self.metric is not None:
                updated.append(
                    self.trainer.previous_minibatch_evaluation_average)

        if self.metrics_func is not None:
            input_dict = self._bind(self.metrics_func.arguments, feed_dict,
                                    'CNTK backend: metrics argument %s is not '
                                    'found in inputs. Please double check the '
                                    'model and inputs.')
            # training-only ops such as dropout are only active in forward
            # mode, which in turn does not execute assign ops
            if (self.unrelated_updates is None and
                    self.runtime.in_training_phase()):
                _, output_values = self.metrics_func.forward(
                    input_dict, self.metrics_outputs,
                    (self.metrics_outputs[0],), device=device)
            else:
                output_values = self.metrics_func.eval(input_dict,
                                                       device=device)
            if isinstance(output_values, dict):
                for o in self.metrics_outputs:
                    updated.append(output_values[o])
            else:
                for o in self.metrics_outputs:
                    updated.append(output_values)

        if self.unrelated_updates is not None:
            input_dict = self._bind(self.unrelated_updates.arguments,
                                    feed_dict,
                                    'CNTK backend: assign ops argument %s is '
                                    'not found in inputs. Please double check '
                                    'the model and inputs.')
            self.unrelated_updates.eval(input_dict, device=device)

        return updated
