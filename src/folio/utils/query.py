"""Filter criteria for structured queries, and the lookups executors evaluate them with"""

import copy
import inspect
import logging

logger = logging.getLogger(__name__)


class RegisterLookupMixin:
    """Lets each executor class carry its own set of lookups.

    Lookups are registered per class with the `register_lookup` decorator. An executor sees
    the lookups registered on its class and on every base class, with its own taking
    precedence over those it inherits.
    """

    @classmethod
    def register_lookup(cls, lookup, lookup_name=None):
        """Register `lookup` on this class, under its `lookup_name` unless one is given"""
        if lookup_name is None:
            lookup_name = lookup.lookup_name
        if "class_lookups" not in cls.__dict__:
            cls.class_lookups = {}

        cls.class_lookups[lookup_name] = lookup
        return lookup

    @classmethod
    def get_lookups(cls):
        lookups = {}
        for parent in reversed(inspect.getmro(cls)):
            lookups.update(parent.__dict__.get("class_lookups", {}))
        return lookups

    def get_lookup(self, lookup_name):
        """Fetch Lookup by name"""
        from folio.port.executor import BaseLookup

        lookup = self.get_lookups().get(lookup_name)
        if lookup is None or not issubclass(lookup, BaseLookup):
            raise NotImplementedError(f"Lookup `{lookup_name}` is not supported")

        return lookup

    def _extract_lookup(self, key):
        """Split `price__lt` into the field name and its lookup class.

        Keys without an explicit operator, like `name`, use the `exact` lookup.
        """
        field, _, op = key.partition("__")
        return field, self.get_lookup(op or "exact")


class Q:
    """A node of a criteria tree, combined with `&`, `|` and `~`.

    Children are either `(key, value)` conditions like `("price__lt", 100)` or nested `Q`
    objects. A node matches when all (`AND`) or any (`OR`) of its children match, inverted
    when the node is negated::

        >>> Q(active=True) & (Q(name="Fig") | ~Q(price__lt=10))

    An empty `Q()` places no constraint on results.
    """

    AND = "AND"
    OR = "OR"
    default = AND

    def __init__(self, *args, _connector=None, _negated=False, **kwargs):
        self.children = [*args, *sorted(kwargs.items())]
        self.connector = _connector or self.default
        self.negated = _negated

    def _add(self, other):
        # A plain node with one condition, or with our connector, folds into this one
        if not other.negated and (other.connector == self.connector or len(other.children) == 1):
            self.children.extend(other.children)
        else:
            self.children.append(other)

    def _combine(self, other, conn):
        if not isinstance(other, Q):
            raise TypeError(other)

        if not other:
            return copy.deepcopy(self)
        elif not self:
            return copy.deepcopy(other)

        obj = type(self)(_connector=conn)
        obj._add(self)
        obj._add(other)
        return obj

    def __or__(self, other):
        return self._combine(other, self.OR)

    def __and__(self, other):
        return self._combine(other, self.AND)

    def __invert__(self):
        obj = type(self)()
        obj._add(self)
        obj.negated = not obj.negated
        return obj

    def __bool__(self):
        return bool(self.children)

    def __eq__(self, other):
        return (
            self.__class__ == other.__class__
            and (self.connector, self.negated) == (other.connector, other.negated)
            and self.children == other.children
        )

    def __hash__(self):
        return hash((self.__class__, self.connector, self.negated, str(self.children)))

    def __str__(self):
        template = "(NOT (%s: %s))" if self.negated else "(%s: %s)"
        return template % (self.connector, ", ".join(str(c) for c in self.children))

    def __repr__(self):
        return "<%s: %s>" % (self.__class__.__name__, self)

    def deconstruct(self):
        """Return the import path and the arguments that rebuild this criteria tree"""
        path = "%s.%s" % (self.__class__.__module__, self.__class__.__name__)
        args, kwargs = (), {}

        if len(self.children) == 1 and not isinstance(self.children[0], Q):
            child = self.children[0]
            kwargs = {child[0]: child[1]}
        else:
            args = tuple(self.children)
            if self.connector != self.default:
                kwargs = {"_connector": self.connector}
        if self.negated:
            kwargs["_negated"] = True
        return path, args, kwargs
