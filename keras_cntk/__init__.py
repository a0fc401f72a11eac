# Copyright (c) Microsoft. All rights reserved.
# Licensed under the MIT license. See LICENSE.md file in the project root
# for full license information.
# ==============================================================================

import os

# Read version information
version_file = open(os.path.join(os.path.dirname(__file__), 'VERSION'), 'r')
__version__ = version_file.read().strip()
version_file.close()
del version_file

from . import config
config.load_config()

from .config import floatx, set_floatx, epsilon, set_epsilon, \
        image_data_format, set_image_data_format
from .function import Function

# The runtime bound modules (backend, layers, models, ...) import cntk and
# are imported explicitly, e.g. ``from keras_cntk import backend as K``.
