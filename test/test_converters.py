"""
Converters module tests (built-in parsers, enums, registration).

Scope
- Validate the built-in string parsers and their display names.
- Validate Enum lookup by member name, then by value.
- Validate extra converters (bare parser and (parser, name) pairs) and errors.

Conventions
- Test method names follow CamelCase per project convention.
"""
import decimal
import enum
import pathlib
import unittest
from unittest import TestCase

from helmsman import Converter, Converters


class Color(enum.Enum):
    RED = "r"
    GREEN = "g"


class Level(enum.IntEnum):
    LOW = 1
    HIGH = 2


class Celsius(float):
    pass


class Point:
    def __init__(self, x, y):
        self.x, self.y = x, y


def point(value):
    x, _, y = value.partition(",")
    return Point(int(x), int(y))


class TestBuiltins(TestCase):
    """Built-in converter entries."""

    def setUp(self):
        self.converters = Converters()

    def testTypenames(self):
        self.assertEqual(self.converters.resolve(str).typename, "TEXT")
        self.assertEqual(self.converters.resolve(int).typename, "NUMBER")
        self.assertEqual(self.converters.resolve(float).typename, "DECIMAL")
        self.assertEqual(self.converters.resolve(decimal.Decimal).typename, "DECIMAL")
        self.assertEqual(self.converters.resolve(bool).typename, "BOOLEAN")
        self.assertEqual(self.converters.resolve(pathlib.Path).typename, "PATH")

    def testNumbers(self):
        self.assertEqual(self.converters.resolve(int).parse("42"), 42)
        self.assertEqual(self.converters.resolve(int).parse("-7"), -7)
        self.assertEqual(self.converters.resolve(float).parse("2.5"), 2.5)
        self.assertEqual(self.converters.resolve(decimal.Decimal).parse("0.10"), decimal.Decimal("0.10"))

    def testNumberErrorsCarryAReason(self):
        with self.assertRaisesRegex(ValueError, "expected a whole number"):
            self.converters.resolve(int).parse("abc")
        with self.assertRaisesRegex(ValueError, "expected a decimal number"):
            self.converters.resolve(decimal.Decimal).parse("abc")

    def testBooleans(self):
        parse = self.converters.resolve(bool).parse
        for literal in ("true", "Yes", "ON", "1"):
            self.assertIs(parse(literal), True)
        for literal in ("false", "no", "Off", "0"):
            self.assertIs(parse(literal), False)
        with self.assertRaises(ValueError):
            parse("maybe")

    def testPaths(self):
        self.assertEqual(self.converters.resolve(pathlib.Path).parse("a/b.txt"), pathlib.Path("a/b.txt"))
        with self.assertRaises(ValueError):
            self.converters.resolve(pathlib.Path).parse("")

    def testEnumsByNameThenValue(self):
        converter = self.converters.resolve(Color)
        self.assertEqual(converter.typename, "COLOR")
        self.assertIs(converter.parse("RED"), Color.RED)
        self.assertIs(converter.parse("g"), Color.GREEN)
        with self.assertRaisesRegex(ValueError, "RED, GREEN"):
            converter.parse("blue")

    def testIntEnumsAreEnums(self):
        converter = self.converters.resolve(Level)
        self.assertIs(converter.parse("HIGH"), Level.HIGH)
        self.assertIs(converter.parse("1"), Level.LOW)

    def testSubclassesUseTheirRegisteredBase(self):
        self.assertEqual(self.converters.resolve(Celsius).typename, "DECIMAL")
        self.assertIn(Celsius, self.converters)

    def testUnknownTypes(self):
        self.assertNotIn(Point, self.converters)
        with self.assertRaises(KeyError):
            self.converters.resolve(Point)


class TestRegistration(TestCase):
    """Extra converter entries."""

    def testBareParserUsesUpperCasedTypeName(self):
        converters = Converters({Point: point})
        converter = converters.resolve(Point)
        self.assertEqual(converter.typename, "POINT")
        self.assertEqual(converter.parse("1,2").y, 2)

    def testNamedParser(self):
        converters = Converters({Point: (point, "X,Y")})
        self.assertEqual(converters.resolve(Point), Converter(point, "X,Y"))

    def testExtraEntriesOverrideBuiltins(self):
        converters = Converters({int: (lambda value: int(value, 16), "HEX")})
        self.assertEqual(converters.resolve(int).parse("ff"), 255)

    def testInvalidEntries(self):
        with self.assertRaises(TypeError):
            Converters({Point: "point"})
        with self.assertRaises(TypeError):
            Converters({"point": point})


if __name__ == "__main__":
    unittest.main()
