"""
Tests for the matcher and the result accessor.
"""

import unittest
from datetime import date, datetime, time

import fieldparse
from fieldparse import (
    InvalidFormat, Matcher, NoMatch, TypeConversionFailed, ValueKind,
    compile, compile_with_types, find_all, parse, search, with_pattern
)
from tests.test_data.samples import RECONSTRUCTION_SAMPLES


def reconstruct(template, result):
    """Rebuild the matched text from the template literals and raw captures."""
    out = []
    i = 0
    field_no = 0
    while i < len(template):
        char = template[i]
        if template.startswith('{{', i) or template.startswith('}}', i):
            out.append(char)
            i += 2
        elif char == '{':
            i = template.index('}', i) + 1
            out.append(result.raw[field_no])
            field_no += 1
        else:
            out.append(char)
            i += 1
    return ''.join(out)


class TestParse(unittest.TestCase):
    """Test exact matching."""

    def test_anonymous_fields(self):
        result = parse("{} {}", "hello world")

        self.assertEqual(result.values, ["hello", "world"])
        self.assertEqual(result.get(0, str), "hello")
        self.assertEqual(result.get(1, str), "world")

    def test_escaped_braces(self):
        result = parse("{{hello}} {}", "{hello} world")

        self.assertEqual(len(result), 1)
        self.assertEqual(result.get(0), "world")

    def test_integer_field(self):
        self.assertEqual(parse("{:d}", "42").get(0, int), 42)
        self.assertIsNone(parse("{:d}", "abc"))

    def test_named_and_positional_access(self):
        result = parse("Name: {name:w}, Age: {age:d}", "Name: Alice, Age: 25")

        self.assertEqual(result.named("name", str), "Alice")
        self.assertEqual(result.named("age", int), 25)
        self.assertEqual(result.get(0, str), "Alice")
        self.assertEqual(result.get(1, int), 25)
        self.assertEqual(result["age"], 25)
        self.assertIn("name", result)

    def test_typed_lookup_guards(self):
        """Lookups of the wrong type return None instead of the value."""
        result = parse("Name: {name:w}, Age: {age:d}, Score: {score:f}",
                       "Name: Alice, Age: 25, Score: 95.5")

        self.assertEqual(result.named("score", float), 95.5)
        self.assertIsNone(result.named("name", int))
        self.assertIsNone(result.named("age", str))
        self.assertIsNone(result.named("age", float))
        self.assertIsNone(result.named("score", int))
        self.assertIsNone(result.named("nonexistent", str))
        self.assertIsNone(result.get(7))

    def test_datetime_is_not_a_date(self):
        """A datetime value is only handed out for a datetime request."""
        result = parse("{:tg}", "27/12/2024 19:57:55")

        self.assertIsNone(result.get(0, date))
        self.assertIsNone(result.get(0, time))
        self.assertEqual(result.get(0, datetime), datetime(2024, 12, 27, 19, 57, 55))
        self.assertIs(result.kind(0), ValueKind.DATETIME)

    def test_date_and_time_only_values(self):
        self.assertEqual(parse("{:tg}", "27/12/2024").get(0, date), date(2024, 12, 27))
        self.assertEqual(parse("at {:tg}", "at 12:15 AM").get(0, time), time(0, 15))

    def test_dotted_names(self):
        """Flattened names are reachable in both spellings."""
        result = parse("User {user.name:w} ({user.id:d}) - Role: {user.role:w}",
                       "User admin (123) - Role: superuser")

        self.assertEqual(result.named("user.name", str), "admin")
        self.assertEqual(result.named("user__name", str), "admin")
        self.assertEqual(result.named("user.id", int), 123)
        self.assertIsNone(result.named("user", str))

    def test_indexed_names(self):
        result = parse("{a[0]:d},{a[1]:d}", "1, 2")

        self.assertEqual(result.named("a[0]", int), 1)
        self.assertEqual(result.named("a__1", int), 2)

    def test_mixed_named_and_anonymous(self):
        result = parse("The {} is {color}", "The sky is blue")

        self.assertEqual(result.get(0), "sky")
        self.assertEqual(result.named("color"), "blue")
        self.assertEqual(result.named("0"), "sky")

    def test_untyped_fields_are_strings(self):
        result = parse("The {} who {} {}", "The knights who say Ni!")

        self.assertEqual(result.values, ["knights", "say", "Ni!"])
        self.assertEqual([result.kind(i) for i in range(3)], [ValueKind.TEXT] * 3)

    def test_whole_text_required(self):
        self.assertIsNone(parse("hello", "hello world"))
        self.assertIsNone(parse("Hello {:w}!", "Hello World!\n"))
        self.assertIsNotNone(parse("", ""))

    def test_untyped_field_may_be_empty(self):
        self.assertEqual(parse("Name: {}", "Name: ").get(0, str), "")
        self.assertEqual(parse("[{}]", "[]").get(0), "")

    def test_untyped_field_stops_at_line_break(self):
        self.assertIsNone(parse("{}", "a\nb"))
        self.assertIsNone(parse("Name: {}", "Name: Rufus\nAge: 42"))
        self.assertEqual(search("Name: {}\n", "Name: Rufus\nAge: 42\n").get(0), "Rufus")

    def test_empty_fields_do_not_match(self):
        matcher = compile("Name: {name:w}, Age: {age:d}", case_sensitive=True)

        self.assertIsNone(matcher.parse("Name: , Age: 25"))
        self.assertIsNone(matcher.parse("Name: Alice, Age: "))

    def test_special_characters(self):
        self.assertEqual(parse("Price: ${price:f}", "Price: $123.45").named("price", float), 123.45)
        self.assertEqual(parse("({value:w})", "(test)").named("value"), "test")
        self.assertEqual(parse("[{value:w}]", "[test]").named("value"), "test")

    def test_optional_whitespace(self):
        for text in ["hello,world", "hello, world"]:
            with self.subTest(text=text):
                result = parse("{a:w},{b:w}", text)
                self.assertEqual((result.named("a"), result.named("b")), ("hello", "world"))

    def test_arithmetic_delimiters(self):
        result = parse("{x:d} + {y:d} = {sum:d}", "5 + 7 = 12")

        self.assertEqual([result.named(n, int) for n in ("x", "y", "sum")], [5, 7, 12])

    def test_conversion_failure_fails_whole_match(self):
        """One bad field means no result at all."""
        @with_pattern(r'\d+')
        def small(text):
            value = int(text)
            if value > 10:
                raise ValueError("too big")
            return value

        matcher = compile_with_types("{a:small} {b:small}", extra_converters={'small': small})

        self.assertEqual(matcher.parse("3 4").values, [3, 4])
        self.assertIsNone(matcher.parse("3 40"))
        self.assertIsNone(matcher.search("x 3 40 y"))

    def test_integer_overflow_is_no_result(self):
        self.assertIsNone(parse("{:d}", str(2 ** 64)))

    def test_spans(self):
        result = parse("{key}={value:d}", "retries=3")

        self.assertEqual(result.span(0), (0, 7))
        self.assertEqual(result.span("value"), (8, 9))
        self.assertEqual(result.raw_value("value"), "3")

    def test_reconstruction(self):
        """Literals plus raw captures rebuild the matched text exactly."""
        for template, text in RECONSTRUCTION_SAMPLES:
            with self.subTest(template=template):
                result = parse(template, text)
                self.assertIsNotNone(result)
                self.assertEqual(reconstruct(template, result), text)

    def test_to_dict(self):
        result = parse("{name:w} born {when:ti}", "ada born 1815-12-10")

        self.assertEqual(result.to_dict(), {"name": "ada", "when": "1815-12-10"})


class TestCaseSensitivity(unittest.TestCase):
    """Test the construction-time case sensitivity switch."""

    def test_literal_text(self):
        self.assertIsNone(compile("HELLO {}", case_sensitive=True).parse("hello world"))
        self.assertIsNotNone(compile("HELLO {}", case_sensitive=False).parse("hello world"))

    def test_default_is_insensitive(self):
        self.assertIsNotNone(parse("Hello, {name:w}!", "HELLO, World!"))

    def test_fragments_follow_the_switch(self):
        """Field fragments are subject to the same setting as literals."""
        self.assertIsNotNone(compile("{:tg}").parse("12:15 pm"))
        self.assertIsNone(compile("{:tg}", case_sensitive=True).parse("12:15 pm"))

    def test_find_all(self):
        self.assertEqual([r.get(0) for r in find_all("x({:w})x", "X(hi)X")], ["hi"])
        self.assertEqual(list(compile("x({:w})x", case_sensitive=True).find_all("X(hi)X")), [])


class TestSearchAndFindAll(unittest.TestCase):
    """Test unanchored matching."""

    def test_search(self):
        self.assertEqual(search("Age: {:d}", "Age: 42").get(0, int), 42)
        self.assertEqual(search("age={:d}", "name=John age=42 color=blue").get(0, int), 42)
        self.assertEqual(search("Age: {:d}\n", "Name: Rufus\nAge: 42\nColor: red\n").get(0, int), 42)

    def test_search_no_match(self):
        self.assertIsNone(search("Age: {:d}", "no numbers here"))

    def test_search_positions(self):
        matcher = compile("{:d}")

        self.assertEqual(matcher.search("1 2 3", pos=1).get(0), 2)
        self.assertIsNone(matcher.search("1 2 3", endpos=0))

    def test_find_all_integers(self):
        results = find_all("{:d}", "1 2 3")

        self.assertEqual([r.get(0, int) for r in results], [1, 2, 3])

    def test_find_all_is_non_overlapping(self):
        results = find_all("{:d}", "Scores: 85, 92, 78, 95, 88")

        self.assertEqual([r.get(0, int) for r in results], [85, 92, 78, 95, 88])
        spans = [r.span(0) for r in results]
        self.assertEqual(spans, sorted(spans))
        for (_, end), (start, _) in zip(spans, spans[1:]):
            self.assertLessEqual(end, start)

    def test_find_all_between_delimiters(self):
        results = find_all(">{}<", "<p>the <b>bold</b> text</p>")

        self.assertEqual("".join(r.get(0) for r in results), "the bold text")

    def test_find_all_pairs(self):
        results = find_all("{key:w}={value:w}", "name=John age=42 color=blue")

        self.assertEqual([(r.named("key"), r.named("value")) for r in results],
                         [("name", "John"), ("age", "42"), ("color", "blue")])

    def test_find_all_dates(self):
        matcher = compile("{:tg}", case_sensitive=True)
        text = "Events: 27/12/2024 19:57:55, 28/12/2024 10:30:00, 29/12/2024 15:45:00"

        values = [r.get(0, datetime) for r in matcher.find_all(text)]
        self.assertEqual(values, [
            datetime(2024, 12, 27, 19, 57, 55),
            datetime(2024, 12, 28, 10, 30),
            datetime(2024, 12, 29, 15, 45),
        ])

    def test_find_all_skips_failed_conversions(self):
        """Non-convertible occurrences are dropped, the rest are kept."""
        matcher = compile("{:tg}")
        text = "a 27/12/2024 b 31/02/2024 c 01/01/2025"

        self.assertEqual([r.get(0) for r in matcher.find_all(text)],
                         [date(2024, 12, 27), date(2025, 1, 1)])

    def test_find_all_is_lazy(self):
        matcher = compile("{:d}")
        iterator = matcher.find_all("1 2 3")

        self.assertEqual(next(iterator).get(0), 1)
        self.assertEqual(next(iterator).get(0), 2)
        self.assertEqual([r.get(0) for r in matcher.findall("4 5")], [4, 5])


class TestMatcher(unittest.TestCase):
    """Test matcher construction and strict variants."""

    def test_invalid_templates_raise(self):
        for template in ["a{b", "a}b"]:
            with self.subTest(template=template):
                with self.assertRaises(InvalidFormat):
                    compile(template)

    def test_convenience_functions_swallow_invalid_templates(self):
        self.assertIsNone(parse("a{b", "ab"))
        self.assertIsNone(search("a}b", "ab"))
        self.assertEqual(find_all("{:nosuch}", "ab"), [])

    def test_strict_variants(self):
        matcher = compile("{:d} items")

        self.assertEqual(matcher.parse_or_raise("3 items").get(0), 3)
        with self.assertRaises(NoMatch):
            matcher.parse_or_raise("three items")
        with self.assertRaises(NoMatch):
            matcher.search_or_raise("nothing")

    def test_strict_conversion_failure(self):
        matcher = compile("{:d}")

        with self.assertRaises(TypeConversionFailed):
            matcher.parse_or_raise(str(2 ** 70))

    def test_determinism(self):
        """Two matchers from one template behave identically."""
        first = compile("{name:w}: {count:d}")
        second = compile("{name:w}: {count:d}")

        self.assertEqual(first.fields, second.fields)
        for text in ["apples: 3", "pears: x", "", "a: -1", "a:1"]:
            with self.subTest(text=text):
                a, b = first.parse(text), second.parse(text)
                self.assertEqual(a is None, b is None)
                if a is not None:
                    self.assertEqual(a.values, b.values)

    def test_pattern_is_a_copy(self):
        """Changing the returned pattern leaves the matcher untouched."""
        matcher = compile("{name:w}: {count:d}")
        pattern = matcher.pattern
        pattern.fields.clear()
        pattern.name_index.clear()
        pattern.exact_regex = ''

        self.assertEqual(matcher.field_names, ["name", "count"])
        self.assertEqual(matcher.pattern.name_index, {"name": 1, "count": 2})
        self.assertEqual(matcher.parse("apples: 3").named("count"), 3)

    def test_reuse(self):
        matcher = compile("{:w}={:d}")

        for i in range(5):
            self.assertEqual(matcher.parse(f"k={i}").get(1), i)

    def test_introspection(self):
        matcher = compile_with_types("{when:tg} {n:d}", True, {'n': int})

        self.assertIsInstance(matcher, Matcher)
        self.assertEqual(matcher.field_names, ["when", "n"])
        self.assertTrue(matcher.case_sensitive)
        self.assertIn('n', matcher.registry)
        self.assertEqual(repr(compile("{}")), "<Matcher '{}'>")

    def test_with_types_helpers(self):
        converters = {'yn': with_pattern(r'[yn]')(lambda text: text == 'y')}

        self.assertIs(fieldparse.parse_with_types("ok? {:yn}", "ok? y", converters).get(0), True)
        self.assertIs(fieldparse.search_with_types("{:yn}!", "answer n!", converters).get(0), False)
        self.assertEqual([r.get(0) for r in fieldparse.find_all_with_types("{:yn}", "y n", converters)],
                         [True, False])

    def test_custom_value_kind(self):
        class Money:
            def __init__(self, cents):
                self.cents = cents

        @with_pattern(r'\d+\.\d{2}')
        def money(text):
            return Money(int(text.replace('.', '')))

        result = compile_with_types("{:money}", extra_converters={'money': money}).parse("12.34")

        self.assertIs(result.kind(0), ValueKind.CUSTOM)
        self.assertEqual(result.get(0, Money).cents, 1234)
        self.assertIsNone(result.get(0, int))


if __name__ == '__main__':
    unittest.main()
