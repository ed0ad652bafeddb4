# Copyright European Space Agency, 2013

import threading
from functools import wraps

def lazy_property(fn):
    """
    Caches the result of a property.
    
    The value is computed at most once per instance. Concurrent first
    accesses are serialized by a lock owned by the instance and scoped
    to this single property, so the first computed value is the one
    which every caller gets.
    """
    attr_name = '_lazy_' + fn.__name__
    lock_name = '_lock_' + fn.__name__
    @property
    @wraps(fn)
    def _lazyprop(self):
        try:
            return self.__dict__[attr_name]
        except KeyError:
            pass
        # dict.setdefault is atomic, all threads end up with the same lock
        lock = self.__dict__.setdefault(lock_name, threading.RLock())
        with lock:
            if attr_name not in self.__dict__:
                self.__dict__[attr_name] = fn(self)
            return self.__dict__[attr_name]
    return _lazyprop

def preset_lazy(obj, name, value):
    """
    Sets the value of the :func:`lazy_property` `name` of `obj`
    unless it was already computed.
    
    :return: the value which is now cached
    """
    return obj.__dict__.setdefault('_lazy_' + name, value)

def clear_lazy(state):
    """
    Removes cached values and their locks from an instance dictionary,
    e.g. before pickling.
    """
    return {k: v for k, v in state.items() 
            if not k.startswith('_lazy_') and not k.startswith('_lock_')}

def inherit_docs(cls):
    """
    Inherits docstrings from base classes
    for all overridden methods and properties in `cls` which lack a docstring.
    """
    # see https://stackoverflow.com/a/23964187
    for name in dir(cls):
        func = getattr(cls, name)
        if func.__doc__: 
            continue
        for parent in cls.mro()[1:]:
            if not hasattr(parent, name):
                continue
            doc = getattr(parent, name).__doc__
            if not doc: 
                continue
            try:
                # __doc__'s of properties are read-only.
                # The work-around below wraps the property into a new property.
                if isinstance(func, property):
                    # We don't want to introduce new properties, therefore check
                    # if cls owns it or search where it's coming from.
                    clss = [c for c in cls.mro() if name in vars(c) and not getattr(c, name).__doc__]
                    if clss:
                        setattr(clss[0], name, property(func.fget, func.fset, func.fdel, doc))
                else:
                    func = getattr(func, '__func__', func)
                    func.__doc__ = doc
            except (AttributeError, TypeError): # some __doc__'s are not writable
                pass
            break
    return cls
