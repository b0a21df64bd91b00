# -*- coding: utf-8 -*-
"""Main application: wires together listing, tokenization, generation, validation and grouping.

The ``PatternEngine`` class sequences the pipeline:

    list_image_files → analyze → build_configuration → validate → group
"""

from __future__ import annotations

import sys
import logging
import argparse
from pathlib import Path
from typing import Iterable, Optional

from pattern_builder import __version__
from pattern_builder.config import Settings, load_settings
from pattern_builder.generator import InvalidGroupTypeError, PatternGenerator
from pattern_builder.matcher import GroupingReport, group_files
from pattern_builder.models import PatternConfiguration, RoleRule, RuleType
from pattern_builder.pattern_inference import extract_group_ids
from pattern_builder.scanner import AnalysisFailure, list_image_files
from pattern_builder.tasks import CancellationToken
from pattern_builder.tokenizer import FilenameTokenizer
from pattern_builder.tokens import ImageRole, TokenAnalysis, TokenType, display_name
from pattern_builder.validator import PatternValidator, ValidationResult

logger = logging.getLogger(__name__)

# Preferred group ID types, most specific first
_GROUP_ID_PREFERENCE = (TokenType.GROUP_ID, TokenType.INDEX, TokenType.UNKNOWN, TokenType.DATE)


class PatternEngine:
    """Orchestrates pattern building for one editing session."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or load_settings()
        self._tokenizer = FilenameTokenizer()
        self._generator = PatternGenerator()
        self._validator = PatternValidator()

    def list_files(self, directory: str | Path, cancel: Optional[CancellationToken] = None) -> list[str]:
        return list_image_files(
            directory,
            limit=self.settings.sample_limit,
            extensions=tuple(self.settings.image_extensions),
            cancel=cancel,
        )

    def analyze_filenames(
        self,
        filenames: Iterable[str],
        cancel: Optional[CancellationToken] = None,
    ) -> TokenAnalysis:
        return self._tokenizer.analyze(filenames, cancel)

    def analyze_directory(
        self,
        directory: str | Path,
        cancel: Optional[CancellationToken] = None,
    ) -> tuple[list[str], TokenAnalysis]:
        """List *directory* and tokenize its image filenames.

        Raises:
            AnalysisFailure: If the directory cannot be read.
        """
        filenames = self.list_files(directory, cancel)
        logger.info(f"Analysing {len(filenames)} image(s) in {directory}")
        return filenames, self.analyze_filenames(filenames, cancel)

    def suggest_group_id_type(self, analysis: TokenAnalysis) -> Optional[TokenType]:
        for token_type in _GROUP_ID_PREFERENCE:
            if analysis.has_type(token_type):
                return token_type
        return None

    def build_configuration(
        self,
        analysis: TokenAnalysis,
        group_id_type: Optional[TokenType] = None,
        role_rules: Optional[list[RoleRule]] = None,
        optional_types: Iterable[TokenType] = (),
        extension_matching: Optional[bool] = None,
    ) -> PatternConfiguration:
        """Generate a configuration, filling unset choices from the analysis.

        Raises:
            InvalidGroupTypeError: If no usable group ID type exists.
        """
        if group_id_type is None:
            group_id_type = self.suggest_group_id_type(analysis)
        if role_rules is None:
            role_rules = self._generator.suggest_role_rules(analysis)
        if extension_matching is None:
            extension_matching = self.settings.extension_matching
        return self._generator.generate_configuration(
            analysis,
            group_id_type,
            role_rules,
            optional_types,
            extension_matching,
            tuple(self.settings.image_extensions),
        )

    def validate(
        self,
        config: PatternConfiguration,
        sample_filenames: Optional[list[str]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> ValidationResult:
        return self._validator.validate(config, sample_filenames, cancel)

    def group(
        self,
        config: PatternConfiguration,
        filenames: Iterable[str],
        cancel: Optional[CancellationToken] = None,
    ) -> GroupingReport:
        return group_files(config, filenames, cancel=cancel, limit=self.settings.sample_limit)

    # -- Qt session objects ----------------------------------------------------

    def create_validation_model(self, parent=None):
        """Live validation model using this engine's validator and debounce window."""
        from pattern_builder.live_validation import ValidationModel

        return ValidationModel(self._validator, debounce_ms=self.settings.debounce_ms, parent=parent)

    def create_analysis_controller(self, parent=None):
        """Background analysis controller honouring the listing settings."""
        from pattern_builder.workers import AnalysisController

        return AnalysisController(
            sample_limit=self.settings.sample_limit,
            extensions=tuple(self.settings.image_extensions),
            parent=parent,
        )


# -- CLI ---------------------------------------------------------------------

def _token_type(name: str) -> TokenType:
    try:
        return TokenType[name.strip().upper().replace("-", "_")]
    except KeyError:
        raise argparse.ArgumentTypeError(
            f"unknown token type '{name}' (choose from {', '.join(t.value for t in TokenType)})"
        ) from None


def _role_rule(text: str) -> RoleRule:
    """Parse ``ROLE:TYPE:VALUE`` (e.g. ``front:contains:front``)."""
    parts = text.split(":", 2)
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"rule '{text}' must look like ROLE:TYPE:VALUE")
    role, rule_type, value = parts
    try:
        return RoleRule(
            target_role=ImageRole[role.strip().upper()],
            rule_type=RuleType[rule_type.strip().upper().replace("-", "_")],
            value=value,
        )
    except KeyError as exc:
        raise argparse.ArgumentTypeError(f"rule '{text}': unknown name {exc}") from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pattern_builder",
        description="Infer group and role patterns from the image filenames in a folder.",
    )
    parser.add_argument("directory", type=Path, help="Folder of sample images")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--group-type", type=_token_type, metavar="TYPE",
                        help="Token type holding the group ID (default: best detected)")
    parser.add_argument("--rule", type=_role_rule, action="append", metavar="ROLE:TYPE:VALUE",
                        help="Role rule, repeatable (default: derived from camera tokens)")
    parser.add_argument("--optional", type=_token_type, action="append", default=[], metavar="TYPE",
                        help="Token type that may be missing from some filenames, repeatable")
    parser.add_argument("--extension-matching", action="store_true", default=None,
                        help="Accept any common image extension")
    parser.add_argument("--settings", type=Path, metavar="FILE", help="YAML settings file")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def _print_analysis(analysis: TokenAnalysis) -> None:
    print(f"Analysed {len(analysis.filenames)} file(s)")
    for s in analysis.suggestions:
        values = ", ".join(s.values[:5]) + (", ..." if len(s.values) > 5 else "")
        print(f"  [{s.position}] {display_name(s.token_type):<12} {s.confidence:.2f}  {values}")
        print(f"       {s.rationale}")


def _print_configuration(config: PatternConfiguration) -> None:
    print("Patterns:")
    print(f"  group:    {config.group_pattern}")
    for role in ImageRole:
        print(f"  {role.value + ':':<9} {config.pattern_for(role) or '-'}")


def _print_group_id_preview(config: PatternConfiguration, filenames: list[str], count: int = 5) -> None:
    sample = filenames[:count]
    print("Group ID preview:")
    for name, group_id in zip(sample, extract_group_ids(config.group_pattern, sample)):
        print(f"  {name} -> {group_id if group_id is not None else '(no match)'}")


def _print_validation(result: ValidationResult) -> None:
    print(result.summary())
    for e in result.errors:
        print(f"  ERROR   {e.kind.name}: {e.message}" + (f" ({e.hint})" if e.hint else ""))
    for w in result.warnings:
        print(f"  WARNING {w.kind.name}: {w.message}")


def _print_report(report: GroupingReport) -> None:
    print(f"Groups: {len(report.groups)}")
    for group_id, files in report.groups.items():
        print(f"  {group_id}")
        for f in files:
            if f.ambiguous:
                label = "ambiguous (" + ", ".join(r.value for r in f.roles) + ")"
            else:
                label = f.role.value if f.role else "no role"
            print(f"    {f.filename}  [{label}]")
    if report.unmatched:
        print(f"Unmatched: {len(report.unmatched)}")
        for u in report.unmatched:
            print(f"  {u.filename}  ({u.reason})")


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point. Returns 0 for a valid configuration, 1 if invalid, 2 on read errors."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    engine = PatternEngine(load_settings(args.settings))
    try:
        filenames, analysis = engine.analyze_directory(args.directory)
    except AnalysisFailure as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if analysis.is_empty:
        print(f"No image files found in {args.directory}")
        return 1
    _print_analysis(analysis)

    try:
        config = engine.build_configuration(
            analysis,
            group_id_type=args.group_type,
            role_rules=args.rule,
            optional_types=args.optional,
            extension_matching=args.extension_matching,
        )
    except InvalidGroupTypeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    _print_configuration(config)
    _print_group_id_preview(config, filenames)

    result = engine.validate(config, filenames)
    _print_validation(result)
    if not result.valid:
        return 1

    _print_report(engine.group(config, filenames))
    return 0
