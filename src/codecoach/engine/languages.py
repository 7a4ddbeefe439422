"""Languages, difficulty tiers and the syntax families used by the analyzer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

ROSTER_SIZE = 20


class Language(str, Enum):
    C = "C"
    C_PLUS = "C+"
    CPP = "C++"
    JAVA = "Java"
    JAVASCRIPT = "JavaScript"
    HTML = "HTML"
    PHP = "PHP"
    DATA_STRUCTURE = "Data Structure"
    ML = "ML"
    MYSQL = "MySQL"
    PYTHON = "Python"
    CSS = "CSS"

    @classmethod
    def parse(cls, text: str) -> "Language":
        wanted = text.strip().lower()
        for language in cls:
            if wanted in (language.value.lower(), language.name.lower()):
                return language
        raise ValueError(f"Unknown language: {text}")


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXTREME = "extreme"

    @classmethod
    def parse(cls, text: str) -> "Difficulty":
        try:
            return cls(text.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown difficulty: {text}") from None


class LanguageClass(str, Enum):
    """Syntax family selecting which lexical rules apply to a submission."""

    BRACE = "brace"
    SCRIPT = "script"  # brace rules plus the undeclared-identifier check
    QUERY = "query"
    STYLESHEET = "stylesheet"
    INDENTATION = "indentation"
    GENERIC = "generic"


LANGUAGE_CLASSES: dict[Language, LanguageClass] = {
    Language.C: LanguageClass.BRACE,
    Language.C_PLUS: LanguageClass.BRACE,
    Language.CPP: LanguageClass.BRACE,
    Language.JAVA: LanguageClass.BRACE,
    Language.PHP: LanguageClass.BRACE,
    Language.JAVASCRIPT: LanguageClass.SCRIPT,
    Language.MYSQL: LanguageClass.QUERY,
    Language.CSS: LanguageClass.STYLESHEET,
    Language.PYTHON: LanguageClass.INDENTATION,
    Language.HTML: LanguageClass.GENERIC,
    Language.DATA_STRUCTURE: LanguageClass.GENERIC,
    Language.ML: LanguageClass.GENERIC,
}


def language_class(language: Language) -> LanguageClass:
    return LANGUAGE_CLASSES[language]


@dataclass(frozen=True)
class ExerciseRef:
    """Identifies one exercise slot: (language, difficulty, index)."""

    language: Language
    difficulty: Difficulty
    index: int

    def __post_init__(self) -> None:
        if not 0 <= self.index < ROSTER_SIZE:
            raise ValueError(f"Exercise index {self.index} out of range")

    def with_index(self, index: int) -> "ExerciseRef":
        return ExerciseRef(self.language, self.difficulty, index)

    def __str__(self) -> str:
        return f"{self.language.value}/{self.difficulty.value}/{self.index + 1}"
