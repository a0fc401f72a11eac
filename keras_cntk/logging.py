# ==============================================================================
# Copyright (c) Microsoft. All rights reserved.
# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================
"""
Utilities for logging: verbosity of the runtime and progress of training.
"""
from __future__ import print_function
from __future__ import division

import sys
import time

TRACE_LEVELS = ('error', 'warning', 'info')


def _cntk_trace_level(value):
    if isinstance(value, str):
        value = value.lower()
        if value not in TRACE_LEVELS:
            raise ValueError('unknown trace level "%s", expected one of %s'
                             % (value, ', '.join(TRACE_LEVELS)))
        import cntk
        return getattr(cntk.logging.TraceLevel, value.capitalize())
    return value


def set_trace_level(value):
    '''
    Specifies the logging verbosity of the runtime.

    Args:
        value (`str` or :class:`cntk.logging.TraceLevel`): ``'error'``,
         ``'warning'`` or ``'info'``
    '''
    import cntk
    cntk.logging.set_trace_level(_cntk_trace_level(value))


def get_trace_level():
    '''
    Returns the current logging verbosity level of the runtime.
    '''
    import cntk
    return cntk.logging.get_trace_level()


def _avg(numerator, denominator):
    return (numerator / denominator) if denominator > 0 else 0.0


class ProgressPrinter(object):
    '''
    Prints loss and metrics as training progresses.

    Args:
        freq (`int` or `None`, default `None`): determines how often the
          minibatch results are printed. A value of 0 means a geometric
          schedule (1,2,4,...). A value > 0 means every ``freq`` minibatches.
          A value of None means no per-minibatch log.
        tag (`string`, default EmptyString): prepend log lines with your own
          string
        log_to_file (`string` or `None`, default `None`): if None, output
          log data to stdout. If a string is passed, the string is path to a
          file for log data.
        num_epochs (`int`, default None): total number of epochs, shown in
          the epoch header.
    '''

    def __init__(self, freq=None, tag='', log_to_file=None, num_epochs=None):
        if freq is None:
            freq = sys.maxsize
        if freq < 0:
            raise ValueError('freq must be None, 0 or a positive number of '
                             'minibatches, got %s' % str(freq))
        self.freq = freq
        self.tag = '' if not tag else "[{}] ".format(tag)
        self.log_to_file = log_to_file
        self.num_epochs = num_epochs
        self.epochs = 0
        self.epoch_start_time = time.time()
        self._reset()

        if self.log_to_file is not None:
            print("Redirecting log to file " + self.log_to_file)
            with open(self.log_to_file, "w") as logfile:
                logfile.write(self.log_to_file + "\n")

    def _reset(self):
        self.updates = 0
        self.samples = 0
        self.sums = None
        self.names = None

    def _logprint(self, logline):
        if self.log_to_file is None:
            print(logline)
        else:
            with open(self.log_to_file, "a") as logfile:
                logfile.write(logline + "\n")

    def _should_print(self, updates):
        if self.freq == 0:
            # geometric schedule: 1, 2, 4, 8, ...
            return (updates & (updates - 1)) == 0
        return updates % self.freq == 0

    def _format(self, names, values):
        return ', '.join('%s = %.6g' % (n, v) for n, v in zip(names, values))

    def on_epoch_begin(self, epoch):
        self.epoch_start_time = time.time()
        total = '?' if self.num_epochs is None else str(self.num_epochs)
        self._logprint('{}Epoch {}/{}'.format(self.tag, epoch + 1, total))

    def update(self, names, values, samples):
        '''
        Records the result of one minibatch.

        Args:
            names (list of str): metric names, e.g. ``['loss', 'acc']``
            values (list of float): per-sample averages for the minibatch
            samples (int): number of samples in the minibatch
        '''
        if self.sums is None:
            self.names = list(names)
            self.sums = [0.0] * len(self.names)
        for i, v in enumerate(values):
            self.sums[i] += float(v) * samples
        self.samples += samples
        self.updates += 1

        if self._should_print(self.updates):
            self._logprint(' {}Minibatch[{:4d}]: {}; {} samples'.format(
                self.tag, self.updates, self._format(names, values), samples))

    def averages(self):
        if self.sums is None:
            return {}
        return dict((n, _avg(s, self.samples))
                    for n, s in zip(self.names, self.sums))

    def on_epoch_end(self, extra=None):
        '''
        Prints the averages since the start of the epoch and starts a new
        epoch.

        Args:
            extra (dict, optional): additional values to print, e.g.
             validation results

        Returns:
            dict: per-sample averages of the epoch
        '''
        averages = self.averages()
        names = list(self.names or [])
        values = [averages[n] for n in names]
        if extra:
            names += list(extra.keys())
            values += list(extra.values())
        elapsed = time.time() - self.epoch_start_time
        self._logprint('{}Finished Epoch[{}]: {}; {} samples {:.3f}s'.format(
            self.tag, self.epochs + 1, self._format(names, values),
            self.samples, elapsed))
        self.epochs += 1
        self._reset()
        return averages
