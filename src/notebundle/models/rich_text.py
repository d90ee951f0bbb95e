"""Formatted text values."""

from dataclasses import dataclass, replace

from notebundle.config import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE


@dataclass(frozen=True)
class TextAttributes:
    """Character formatting applied to a run of text."""

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    font_family: str = DEFAULT_FONT_FAMILY
    font_size: float = DEFAULT_FONT_SIZE


@dataclass(frozen=True)
class TextRun:
    """A stretch of text sharing one set of attributes."""

    text: str
    attributes: TextAttributes = TextAttributes()


def _normalize(runs: tuple[TextRun, ...]) -> tuple[TextRun, ...]:
    result: list[TextRun] = []
    for run in runs:
        if not run.text:
            continue
        if result and result[-1].attributes == run.attributes:
            result[-1] = TextRun(result[-1].text + run.text, run.attributes)
        else:
            result.append(run)
    return tuple(result)


@dataclass(frozen=True)
class RichText:
    """Immutable formatted text.

    Runs are normalized on construction: empty runs are dropped and adjacent
    runs with equal attributes are merged, so equality compares characters
    and formatting only.
    """

    runs: tuple[TextRun, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "runs", _normalize(tuple(self.runs)))

    @classmethod
    def plain(cls, text: str, attributes: TextAttributes | None = None) -> "RichText":
        return cls((TextRun(text, attributes or TextAttributes()),))

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)

    def __len__(self) -> int:
        return len(self.text)

    def __str__(self) -> str:
        return self.text

    def __add__(self, other: "RichText") -> "RichText":
        if not isinstance(other, RichText):
            return NotImplemented
        return RichText(self.runs + other.runs)

    def append(self, text: str, **attributes: bool | str | float) -> "RichText":
        """Return a copy with text appended, formatted with the given attributes."""
        return self + RichText.plain(text, replace(TextAttributes(), **attributes))
