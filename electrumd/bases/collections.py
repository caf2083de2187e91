__all__ = [
    'Namespace',
]


class Namespace:
    """Read-only namespace.

    Entries are given as (name, value) pairs and/or keyword arguments;
    names may not start with an underscore, which is reserved for
    private attributes of subclasses.
    """

    def __init__(self, *pairs, **entries):
        for name, value in pairs:
            if name in entries:
                raise ValueError('duplicated entry: %r' % name)
            entries[name] = value
        bad_names = [name for name in entries if name.startswith('_')]
        if bad_names:
            raise ValueError('expect public names: %r' % bad_names)
        super().__setattr__('_entries', entries)

    def __iter__(self):
        return iter(self._entries)

    def __getattr__(self, name):
        entries = self.__dict__.get('_entries', {})
        if name not in entries:
            raise AttributeError(
                '%s has no entry %r' % (self.__class__.__name__, name)
            )
        return entries[name]

    def __setattr__(self, name, value):
        raise TypeError('%s is read-only' % self.__class__.__name__)
