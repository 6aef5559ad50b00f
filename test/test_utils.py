"""
Tests for the internal utilities.

This module verifies:
- The Unset sentinel (singleton identity, falsy semantics, representation, finality).
- coalesce() and rename().
- mirror() properties handing out detached containers.
- The Introspective metaclass (type names, mirrored properties, representations).
"""
import copy
import pickle
import unittest
from unittest import TestCase

from helmsman.utils import Introspective, Unset, UnsetType, coalesce, mirror, rename


class Sample(metaclass=Introspective):
    __introspectable__ = (
        "items",
        "table",
        "label",
    )

    def __init__(self):
        self._items = ["a", "b"]
        self._table = {"key": 1}
        self._label = "sample"


class SampleDisplay(metaclass=Introspective):
    __introspectable__ = (
        "visible",
        "secret",
    )
    __displayable__ = (
        "visible",
    )

    def __init__(self):
        self._visible = 1
        self._secret = 2


class UnsetTest(TestCase):
    """The Unset sentinel."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFalsy(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, 0)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testUnions(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("text", str | Unset)
        self.assertNotIsInstance(1, str | Unset)

    def testFinal(self):
        with self.assertRaises(TypeError):
            class Subclass(UnsetType):
                pass


class HelpersTest(TestCase):
    """coalesce() and rename()."""

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)

    def testRename(self):
        @rename("renamed")
        def function():
            pass

        self.assertEqual((function.__name__, function.__qualname__), ("renamed", "renamed"))

    def testRenameRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            rename(42)
        with self.assertRaises(TypeError):
            rename("name")(42)


class IntrospectiveTest(TestCase):
    """Mirrored properties and representations."""

    def testTypename(self):
        self.assertEqual(SampleDisplay.__typename__, "sample-display")

    def testMirroredPropertiesAreReadOnly(self):
        sample = Sample()
        with self.assertRaises(AttributeError):
            sample.label = "other"

    def testContainersAreDetached(self):
        sample = Sample()
        self.assertEqual(sample.items, ("a", "b"))
        sample.table["key"] = 2
        self.assertEqual(sample.table, {"key": 1})

    def testMirrorRequiresAString(self):
        with self.assertRaises(TypeError):
            mirror(1)

    def testDisplayableDefaultsToUnset(self):
        self.assertIs(Sample.__displayable__, Unset)
        self.assertEqual(SampleDisplay.__displayable__, ("visible",))

    def testRepr(self):
        self.assertEqual(repr(Sample()), "sample(items=('a', 'b'), table={'key': 1}, label='sample')")
        self.assertEqual(repr(SampleDisplay()), "sample-display(visible=1)")


if __name__ == "__main__":
    unittest.main()
