#!/usr/bin/env python3
"""
Demo script for the template field extraction library.
"""

from fieldparse import compile, compile_with_types, find_all, parse, search, with_pattern


def sample_messages():
    """Sample log lines for the extraction demo."""
    return [
        "27/12/2024 19:57:55 INFO  User alice performed action: login",
        "27/12/2024 19:57:56 DEBUG Processing 50 items for user alice",
        "27/12/2024 19:58:02 WARN  Large batch detected: user=bob, count=150",
        "27/12/2024 19:58:07 ERROR Processing failed for user charlie: Database connection failed",
        "27/12/2024 19:58:09 INFO  Some unrelated log message",
    ]


@with_pattern(r'INFO|DEBUG|WARN|ERROR')
def log_level(text):
    return text.upper()


def main():
    """Run the demo."""
    print("Template Field Extraction Demo")
    print("=" * 50)

    # 1. One-off calls
    print("\n1. One-off parse / search / find_all")
    result = parse("Name: {name:w}, Age: {age:d}", "Name: Alice, Age: 25")
    print(f"   parse    -> name={result.named('name', str)!r} age={result.named('age', int)!r}")

    result = search("age: {:d}", "User profile - name: John, age: 30, city: New York")
    print(f"   search   -> age={result.get(0, int)!r}")

    scores = [r.get(0, int) for r in find_all("{:d}", "Scores: 85, 92, 78, 95, 88")]
    print(f"   find_all -> {scores}")

    # 2. Date/time layouts
    print("\n2. Date/time layouts")
    examples = [
        ("Event time: {:tg}", "Event time: 27/12/2024 19:57:55"),
        ("Meeting at {:ta}", "Meeting at 12/27/2024 07:57:55 PM"),
        ("Sent: {:te}", "Sent: Fri, 27 Dec 2024 19:57:55 +0000"),
        ("Timestamp: {:ti}", "Timestamp: 2024-12-27T19:57:55.000+00:00"),
    ]
    for template, text in examples:
        result = compile(template, case_sensitive=True).parse(text)
        print(f"   {template:20} -> {result.get(0)!r} ({result.kind(0)})")

    # 3. A reusable matcher with a custom type
    print("\n3. Reusable matcher over log lines")
    matcher = compile_with_types(
        "{when:tg} {level:lvl} {message}",
        case_sensitive=True,
        extra_converters={'lvl': log_level},
    )
    print(f"   Fields: {', '.join(str(spec) for spec in matcher.fields)}")

    for line in sample_messages():
        result = matcher.parse(line)
        if result is None:
            print(f"   no match: {line}")
            continue
        print(f"   [{result.named('level', str)}] {result.named('when')} :: {result.named('message', str).strip()}")

    # 4. Key/value pairs
    print("\n4. Key/value pairs")
    pairs = find_all("{key:w}={value:w}", "user=bob, count=150, retry=3")
    for pair in pairs:
        print(f"   {pair.named('key')} -> {pair.named('value')}")

    print("\nDemo completed!")


if __name__ == '__main__':
    main()
