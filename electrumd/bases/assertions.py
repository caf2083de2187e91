"""Assertions.

Use the ``ASSERT`` object for stating program states; unlike the assert
statement, it cannot be turned off, and it returns the checked value so
that it can be used inline.

Examples:
>>> from electrumd.bases.assertions import ASSERT
>>> port = ASSERT.greater(port, 0)
"""

__all__ = [
    'ASSERT',
    'Assertions',
]

import builtins
import operator
from collections import abc
from functools import partialmethod


def _not_empty(collection):
    return isinstance(collection, abc.Collection) and collection


def _is_not_none(x):
    return x is not None


def _not_contains(xs, x):
    return x not in xs


class Assertions:
    """Assertions.

    By convention, all assertion methods return the first argument on
    success.  Messages are ``{}``-formatted, where the first argument is
    the actual input and the second one is what you expect.
    """

    def __init__(self, make_exc):
        self._make_exc = make_exc

    def __call__(self, cond, message, *args):
        if not cond:
            raise self._make_exc(message.format(*args), cond)
        return cond

    def unreachable(self, message, *args):
        raise self._make_exc(message.format(*args))

    def _assert_1(self, predicate, arg, *, message):
        if not predicate(arg):
            raise self._make_exc(message.format(arg), arg)
        return arg

    true = partialmethod(
        _assert_1, bool, message='expect true-value, not {!r}'
    )
    false = partialmethod(
        _assert_1, operator.not_, message='expect false-value, not {!r}'
    )
    not_empty = partialmethod(
        _assert_1, _not_empty, message='expect non-empty collection, not {!r}'
    )
    not_none = partialmethod(
        _assert_1, _is_not_none, message='expect non-None value'
    )

    def predicate(self, arg, predicate, *, message='expect {1}, not {0!r}'):
        if not predicate(arg):
            raise self._make_exc(message.format(arg, predicate), arg)
        return arg

    def getitem(self, collection, key):
        try:
            return collection[key]
        except (IndexError, KeyError):
            raise self._make_exc(
                'expect {!r} in {!r}'.format(key, collection), collection
            ) from None

    def _assert_2(self, predicate, actual, expect, *, message):
        if not predicate(actual, expect):
            msg = message.format(actual, expect)
            raise self._make_exc(msg, actual, expect)
        return actual

    isinstance = partialmethod(
        _assert_2,
        builtins.isinstance,
        message='expect {1}-typed value, not {0!r}',
    )
    not_contains = partialmethod(
        _assert_2,
        _not_contains,
        message='expect {0!r} not containing {1!r}',
    )
    greater = partialmethod(
        _assert_2, operator.gt, message='expect x > {1!r}, not {0!r}'
    )


ASSERT = Assertions(AssertionError)
