#!/usr/bin/env python3
"""
CLI tool for extracting typed fields from a text file with a template.

Usage:
    python match_fields.py --template "{ip} - - [{ts:th}] {status:d}" --in access.log --out fields.csv
"""

import click
import csv
import sys
import os
from pathlib import Path
from typing import Iterator, List, Optional, Tuple
from collections import defaultdict
from tqdm import tqdm

# Add the package to Python path
sys.path.insert(0, os.path.dirname(__file__))

from fieldparse import InvalidFormat, Matcher, MatchResult
from fieldparse import compile as compile_template
from fieldparse.io_utils import JSONLWriter, count_lines, iter_lines


class ExtractionReport:
    """
    Collects statistics while a file is being matched.
    """

    def __init__(self):
        self.total_lines = 0
        self.matched_lines = 0
        self.total_matches = 0
        self.kind_stats = defaultdict(int)
        self.unmatched_samples = []
        self.max_unmatched_samples = 100

    def add_matches(self, line: str, results: List[MatchResult]):
        """Record the matches found on one line."""
        self.total_lines += 1
        if not results:
            if len(self.unmatched_samples) < self.max_unmatched_samples:
                self.unmatched_samples.append(line[:200])
            return

        self.matched_lines += 1
        self.total_matches += len(results)
        for result in results:
            for typed in result.converted:
                self.kind_stats[str(typed.kind)] += 1

    def get_summary(self) -> dict:
        """Get summary statistics."""
        match_rate = (self.matched_lines / self.total_lines * 100) if self.total_lines > 0 else 0

        return {
            'total_lines': self.total_lines,
            'matched_lines': self.matched_lines,
            'unmatched_lines': self.total_lines - self.matched_lines,
            'total_matches': self.total_matches,
            'match_rate': match_rate,
            'kind_distribution': dict(self.kind_stats),
            'unmatched_samples': self.unmatched_samples[:20]
        }


def _match_line(matcher: Matcher, line: str, mode: str) -> List[MatchResult]:
    if mode == 'exact':
        result = matcher.parse(line)
        return [result] if result else []
    if mode == 'search':
        result = matcher.search(line)
        return [result] if result else []
    return list(matcher.find_all(line))


def _scan(input_file: str, matcher: Matcher, mode: str, report: ExtractionReport,
          progress: bool, sample_lines: Optional[int]) -> Iterator[Tuple[int, List[MatchResult]]]:
    """Match every input line, feeding the report as it goes."""
    total = count_lines(input_file, sample_lines) if progress else None
    lines = tqdm(iter_lines(input_file, sample_lines), total=total,
                 desc="Matching lines", disable=not progress)
    for line_num, line in lines:
        results = _match_line(matcher, line, mode)
        report.add_matches(line, results)
        yield line_num, results


@click.command()
@click.option('--template', '-t',
              required=True,
              help='Template describing the text, e.g. "Age: {age:d}"')
@click.option('--input', '--in', 'input_file',
              required=True,
              type=click.Path(exists=True),
              help='Input text file to match line by line')
@click.option('--output', '--out', 'output_file',
              required=True,
              type=click.Path(),
              help='Output file for extracted fields')
@click.option('--mode',
              type=click.Choice(['exact', 'search', 'findall']),
              default='search',
              help='Match whole lines, the first occurrence, or every occurrence (default: search)')
@click.option('--format',
              type=click.Choice(['csv', 'jsonl', 'summary']),
              default='csv',
              help='Output format (default: csv)')
@click.option('--case-sensitive',
              is_flag=True,
              help='Match literal text and fields case sensitively')
@click.option('--show-pattern',
              is_flag=True,
              help='Print the compiled field table and expressions before matching')
@click.option('--progress',
              is_flag=True,
              help='Show a progress bar (also shown with --verbose)')
@click.option('--verbose', '-v',
              is_flag=True,
              help='Enable verbose output')
@click.option('--sample-lines',
              type=int,
              help='Process only first N lines (for testing)')
def match_fields(template: str,
                 input_file: str,
                 output_file: str,
                 mode: str,
                 format: str,
                 case_sensitive: bool,
                 show_pattern: bool,
                 progress: bool,
                 verbose: bool,
                 sample_lines: int):
    """
    Extract typed fields from each line of a text file.

    Examples:

    \b
    # Every integer on every line, as CSV
    python match_fields.py -t "{:d}" --in data.txt --out numbers.csv --mode findall

    \b
    # Whole-line matches of an HTTP log layout, as JSONL
    python match_fields.py -t '{ip} - - [{ts:th}] "{request}" {status:d} {size:d}' \\
        --in access.log --out requests.jsonl --mode exact --format jsonl

    \b
    # Match rate summary
    python match_fields.py -t "ERROR {code:d}: {message}" --in app.log \\
        --out summary.txt --format summary
    """

    try:
        matcher = compile_template(template, case_sensitive=case_sensitive)
    except InvalidFormat as e:
        click.echo(f"Error: invalid template: {e}")
        sys.exit(1)

    if verbose or show_pattern:
        click.echo(f"Template: {template}")
        click.echo(f"Fields: {', '.join(str(spec) for spec in matcher.fields) or '(none)'}")
    if show_pattern:
        click.echo(matcher.pattern.to_json(indent=2))

    try:
        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        report = ExtractionReport()
        show_progress = progress or verbose

        if format == 'csv':
            _write_csv(input_file, matcher, mode, report, output_path, show_progress, sample_lines)
        elif format == 'jsonl':
            _write_jsonl(input_file, matcher, mode, report, output_path, show_progress, sample_lines)
        elif format == 'summary':
            _write_summary(input_file, matcher, mode, report, output_path, show_progress, sample_lines)

        summary = report.get_summary()
        click.echo(f"\nMatching completed")
        click.echo(f"   Total lines processed: {summary['total_lines']}")
        click.echo(f"   Matched lines: {summary['matched_lines']}")
        click.echo(f"   Total matches: {summary['total_matches']}")
        click.echo(f"   Match rate: {summary['match_rate']:.1f}%")
        click.echo(f"   Output file: {output_path.absolute()}")

        if verbose and summary['unmatched_lines'] > 0:
            click.echo(f"\nSample unmatched lines:")
            for i, sample in enumerate(summary['unmatched_samples'][:5], 1):
                click.echo(f"   {i}. {sample}")
            if len(summary['unmatched_samples']) > 5:
                click.echo(f"   ... and {len(summary['unmatched_samples']) - 5} more")

    except KeyboardInterrupt:
        click.echo("\nMatching cancelled by user")
        sys.exit(1)
    except OSError as e:
        click.echo(f"\nError during matching: {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


def _write_csv(input_file: str, matcher: Matcher, mode: str, report: ExtractionReport,
               output_path: Path, progress: bool, sample_lines: Optional[int]):
    """Write one CSV row per match, one column per field."""
    names = matcher.field_names

    with open(output_path, 'w', newline='', encoding='utf-8') as outfile:
        writer = csv.writer(outfile)
        writer.writerow(['line_number', 'match_index', 'start', 'end'] + names)

        for line_num, results in _scan(input_file, matcher, mode, report, progress, sample_lines):
            for index, result in enumerate(results):
                values = result.to_dict()
                start = result.spans[0][0] if result.spans else ''
                end = result.spans[-1][1] if result.spans else ''
                writer.writerow([line_num, index, start, end] + [values[n] for n in names])


def _write_jsonl(input_file: str, matcher: Matcher, mode: str, report: ExtractionReport,
                 output_path: Path, progress: bool, sample_lines: Optional[int]):
    """Write one JSON record per match."""
    with JSONLWriter(str(output_path)) as writer:
        for line_num, results in _scan(input_file, matcher, mode, report, progress, sample_lines):
            for result in results:
                writer.write_result(line_num, result)


def _write_summary(input_file: str, matcher: Matcher, mode: str, report: ExtractionReport,
                   output_path: Path, progress: bool, sample_lines: Optional[int]):
    """Match everything, then write a text summary."""
    for _ in _scan(input_file, matcher, mode, report, progress, sample_lines):
        pass

    summary = report.get_summary()

    with open(output_path, 'w', encoding='utf-8') as outfile:
        outfile.write("FIELD EXTRACTION SUMMARY REPORT\n")
        outfile.write("=" * 50 + "\n\n")

        outfile.write(f"Input file: {input_file}\n")
        outfile.write(f"Template: {matcher.template}\n")
        outfile.write(f"Mode: {mode}\n")
        outfile.write(f"Total lines processed: {summary['total_lines']}\n")
        outfile.write(f"Matched lines: {summary['matched_lines']}\n")
        outfile.write(f"Unmatched lines: {summary['unmatched_lines']}\n")
        outfile.write(f"Total matches: {summary['total_matches']}\n")
        outfile.write(f"Match rate: {summary['match_rate']:.1f}%\n\n")

        if summary['kind_distribution']:
            outfile.write("VALUE KIND DISTRIBUTION:\n")
            outfile.write("-" * 25 + "\n")
            for kind, count in sorted(summary['kind_distribution'].items()):
                outfile.write(f"{kind:8}: {count:8}\n")
            outfile.write("\n")

        if summary['unmatched_samples']:
            outfile.write("SAMPLE UNMATCHED LINES:\n")
            outfile.write("-" * 25 + "\n")
            for i, sample in enumerate(summary['unmatched_samples'], 1):
                outfile.write(f"{i:2}. {sample}\n")


if __name__ == '__main__':
    match_fields()
