""" Extra util methods
"""

# Copyright 2019 Richard Sanger, Wand Network Research Group
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#  http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import bz2
import functools
import gzip


def open_compressed(f_name, mode="r"):
    """ open() a text file which might be compressed

        The compression is picked based on the extension, .gz or .bz2
    """
    if 'b' not in mode and 't' not in mode:
        mode += 't'
    if f_name.endswith(".gz"):
        return gzip.open(f_name, mode)
    if f_name.endswith(".bz2"):
        return bz2.open(f_name, mode)
    return open(f_name, mode)


def as_file_handle(mode):
    """ Ensures the first argument to a function is a file handle

        If passed a path, the file is opened (and decompressed if
        required) for the duration of the call. A file handle is passed
        through as is.

        mode: The file mode such as 'r'

        Example Usage:
        @as_file_handle('r')
        def read_file(file):
            print(file.read())
    """
    def _as_file_handle(func):
        @functools.wraps(func)
        def wrapper(_file, *args, **kwargs):
            if hasattr(_file, 'read') or hasattr(_file, 'write'):
                return func(_file, *args, **kwargs)
            with open_compressed(_file, mode) as f_handle:
                return func(f_handle, *args, **kwargs)
        return wrapper
    return _as_file_handle
