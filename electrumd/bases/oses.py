__all__ = [
    'assert_root_privilege',
    'has_root_privilege',
]

import os

from .assertions import ASSERT


def assert_root_privilege():
    ASSERT(has_root_privilege(), 'expect root privilege')


def has_root_privilege():
    return os.geteuid() == 0
