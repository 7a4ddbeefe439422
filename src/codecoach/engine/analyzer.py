"""Line-based heuristic analysis of submitted source text.

Nothing here parses or runs the submission. Each line is fed through a fixed,
ordered table of independent rules; a rule applies to every language or only
to the syntax families it names.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from codecoach.engine.languages import Language, LanguageClass, language_class


class DiagnosticKind(str, Enum):
    SYNTAX_ERROR = "SyntaxError"
    REFERENCE_ERROR = "ReferenceError"


@dataclass(frozen=True)
class Diagnostic:
    line: int  # 1-based
    message: str
    kind: DiagnosticKind = DiagnosticKind.SYNTAX_ERROR


# check(line, source) -> (kind, message) or None
Check = Callable[[str, str], Optional[tuple[DiagnosticKind, str]]]


@dataclass(frozen=True)
class Rule:
    name: str
    classes: Optional[frozenset[LanguageClass]]  # None applies to every language
    check: Check

    def applies_to(self, cls: LanguageClass) -> bool:
        return self.classes is None or cls in self.classes


MISSPELLINGS = ("printt", "printff")
STATEMENT_EXEMPT_PREFIXES = ("//", "#", "if", "for", "while")
DECLARATION_KEYWORDS = ("let", "var", "const")

_CONSOLE_LOG_RE = re.compile(r"console\.log\((\w+)\)", re.ASCII)


def _misspelled_output_call(line: str, source: str):
    if any(word in line for word in MISSPELLINGS):
        return DiagnosticKind.SYNTAX_ERROR, "Function name misspelled"
    return None


def _print_without_parentheses(line: str, source: str):
    if line.strip().startswith("print") and "(" not in line:
        return DiagnosticKind.SYNTAX_ERROR, "Python 3 requires parentheses for print()"
    return None


def _select_without_semicolon(line: str, source: str):
    stripped = line.strip()
    if stripped and stripped.upper().startswith("SELECT") and ";" not in line:
        return DiagnosticKind.SYNTAX_ERROR, "SQL statements should end with semicolon"
    return None


def _property_without_semicolon(line: str, source: str):
    if ":" in line and ";" not in line and "{" not in line and line.strip():
        return DiagnosticKind.SYNTAX_ERROR, "CSS properties should end with semicolon"
    return None


def _missing_statement_semicolon(line: str, source: str):
    stripped = line.strip()
    if not stripped:
        return None
    if stripped.endswith((";", "{", "}")):
        return None
    if stripped.startswith(STATEMENT_EXEMPT_PREFIXES) or "(" in line:
        return None
    return DiagnosticKind.SYNTAX_ERROR, "Missing semicolon at end of statement"


def _unmatched_brackets(line: str, source: str):
    # Local to the line: a block opened on one line and closed on another is flagged.
    if line.count("{") != line.count("}") and line.strip():
        return DiagnosticKind.SYNTAX_ERROR, "Unmatched brackets"
    return None


def _undeclared_identifier(line: str, source: str):
    if "console.log" not in line:
        return None
    m = _CONSOLE_LOG_RE.search(line)
    if not m:
        return None
    name = m.group(1)
    if any(f"{keyword} {name}" in source for keyword in DECLARATION_KEYWORDS):
        return None
    return DiagnosticKind.REFERENCE_ERROR, f"Variable '{name}' may not be defined"


_BRACE_FAMILY = frozenset({LanguageClass.BRACE, LanguageClass.SCRIPT})

RULES: tuple[Rule, ...] = (
    Rule("misspelled-output-call", None, _misspelled_output_call),
    Rule("print-parentheses", frozenset({LanguageClass.INDENTATION}), _print_without_parentheses),
    Rule("select-semicolon", frozenset({LanguageClass.QUERY}), _select_without_semicolon),
    Rule("property-semicolon", frozenset({LanguageClass.STYLESHEET}), _property_without_semicolon),
    Rule("statement-semicolon", _BRACE_FAMILY, _missing_statement_semicolon),
    Rule("unmatched-brackets", None, _unmatched_brackets),
    Rule("undeclared-identifier", frozenset({LanguageClass.SCRIPT}), _undeclared_identifier),
)


def rules_for(cls: LanguageClass) -> list[Rule]:
    """Return the rules that run for a syntax family, in evaluation order."""
    return [rule for rule in RULES if rule.applies_to(cls)]


def analyze(source: str, language: Language | LanguageClass) -> list[Diagnostic]:
    """Scan every line of ``source`` and return all findings in discovery order.

    An empty list means the submission is accepted. The whole source is always
    scanned; a single line may produce several diagnostics.
    """
    cls = language if isinstance(language, LanguageClass) else language_class(language)
    rules = rules_for(cls)
    diagnostics: list[Diagnostic] = []

    for lineno, line in enumerate(source.split("\n"), start=1):
        for rule in rules:
            found = rule.check(line, source)
            if found is not None:
                kind, message = found
                diagnostics.append(Diagnostic(line=lineno, message=message, kind=kind))

    return diagnostics


def has_errors(diagnostics: list[Diagnostic]) -> bool:
    return len(diagnostics) > 0


def format_diagnostic(diagnostic: Diagnostic) -> str:
    return f"Line {diagnostic.line}: {diagnostic.kind.value}: {diagnostic.message}"
