"""Encode and decode RichText as RTF.

The encoder writes a small, deterministic subset of RTF 1.x: a font table,
then one group per run carrying ``\\f``, ``\\fs``, ``\\b``, ``\\i``, ``\\ul`` and
``\\strike``. Non-ASCII characters are written as ``\\uN?`` escapes, so the
output is plain ASCII.

The decoder accepts that subset plus what common word processors emit
(Cocoa/TextEdit, WordPad, Word). Unknown control words are ignored and
ignorable or metadata destinations are skipped. ``\\'hh`` escapes and raw
8-bit text use the document's ``\\ansicpg`` code page (cp1252 if absent).
"""

import codecs
import math
import re
from dataclasses import dataclass, replace

from loguru import logger

from notebundle.config import DEFAULT_FONT_FAMILY
from notebundle.models.rich_text import RichText, TextAttributes, TextRun


class RtfDecodeError(ValueError):
    """Raised when bytes are not a well-formed RTF document."""


_TOKEN = re.compile(
    r"\\([a-zA-Z]{1,32})(-?\d{1,10})? ?"  # control word
    r"|((?:\\'[0-9a-fA-F]{2})+)"  # hex escapes, decoded together
    r"|\\([^a-zA-Z'])"  # control symbol
    r"|([{}])"  # group
    r"|([\r\n]+)"  # ignored line breaks
    r"|([^\\{}\r\n]+)",  # text
    re.DOTALL,
)

# Destinations whose content is never body text.
_SKIP_DESTINATIONS = frozenset(
    {
        "author",
        "colortbl",
        "comment",
        "datastore",
        "expandedcolortbl",
        "footer",
        "footerf",
        "footerl",
        "footerr",
        "footnote",
        "generator",
        "header",
        "headerf",
        "headerl",
        "headerr",
        "info",
        "latentstyles",
        "listoverridetable",
        "listtable",
        "object",
        "operator",
        "pict",
        "revtbl",
        "rsidtbl",
        "stylesheet",
        "subject",
        "themedata",
        "title",
        "xmlnstbl",
    }
)

_TOGGLES = {"b": "bold", "i": "italic", "ul": "underline", "strike": "strikethrough"}

_SYMBOLS = {"~": "\u00a0", "_": "\u2011", "-": "", "\n": "\n", "\r": "\n", "\t": "\t"}


def _codec_for_codepage(codepage: int) -> str:
    try:
        return codecs.lookup(f"cp{codepage}").name
    except LookupError:
        logger.debug("Unknown RTF code page {}, reading as cp1252", codepage)
        return "cp1252"


@dataclass(frozen=True)
class _GroupState:
    attributes: TextAttributes
    destination: str = "body"  # "body", "fonttbl" or "skip"
    unicode_skip: int = 1


class _Decoder:
    def __init__(self, source: str) -> None:
        self.source = source
        self.fonts: dict[int, str] = {}
        self.default_font = 0
        self.pieces: list[TextRun] = []
        self._font_number: int | None = None
        self._font_name: list[str] = []
        self._pending_skip = 0
        self.codec = "cp1252"

    def _default_attributes(self) -> TextAttributes:
        return TextAttributes(font_family=self.fonts.get(self.default_font, DEFAULT_FONT_FAMILY))

    def _emit(self, state: _GroupState, text: str) -> None:
        if self._pending_skip:
            dropped = min(self._pending_skip, len(text))
            text = text[dropped:]
            self._pending_skip -= dropped
        if not text:
            return
        if state.destination == "body":
            self.pieces.append(TextRun(text, state.attributes))
        elif state.destination == "fonttbl":
            self._font_text(text)

    def _font_text(self, text: str) -> None:
        for ch in text:
            if ch == ";":
                if self._font_number is not None:
                    self.fonts[self._font_number] = "".join(self._font_name).strip()
                self._font_number = None
                self._font_name = []
            else:
                self._font_name.append(ch)

    def _control_word(
        self, state: _GroupState, word: str, param: int | None, ignorable: bool
    ) -> _GroupState:
        if word == "u" and param is not None:
            self._emit(state, chr(param + 65536 if param < 0 else param))
            self._pending_skip = state.unicode_skip
            return state
        self._pending_skip = 0

        if state.destination == "skip":
            return state
        if word in _SKIP_DESTINATIONS or (ignorable and word != "fonttbl"):
            return replace(state, destination="skip")
        if word == "fonttbl":
            return replace(state, destination="fonttbl")
        if state.destination == "fonttbl":
            if word == "f" and param is not None:
                self._font_number = param
                self._font_name = []
            return state

        attrs = state.attributes
        if word in ("par", "line", "sect", "page"):
            self._emit(state, "\n")
        elif word == "tab":
            self._emit(state, "\t")
        elif word == "uc" and param is not None:
            return replace(state, unicode_skip=max(param, 0))
        elif word == "deff" and param is not None:
            self.default_font = param
        elif word == "ansicpg" and param is not None:
            self.codec = _codec_for_codepage(param)
        elif word == "plain":
            return replace(state, attributes=self._default_attributes())
        elif word == "f" and param is not None:
            family = self.fonts.get(param, attrs.font_family)
            return replace(state, attributes=replace(attrs, font_family=family))
        elif word == "fs" and param is not None and param > 0:
            return replace(state, attributes=replace(attrs, font_size=param / 2))
        elif word in _TOGGLES:
            on = param is None or param != 0
            return replace(state, attributes=replace(attrs, **{_TOGGLES[word]: on}))
        elif word == "ulnone":
            return replace(state, attributes=replace(attrs, underline=False))
        return state

    def decode(self) -> RichText:
        stripped = self.source.lstrip()
        if not stripped.startswith("{\\rtf"):
            msg = "Missing {\\rtf header"
            raise RtfDecodeError(msg)

        stack: list[_GroupState] = []
        state = _GroupState(attributes=self._default_attributes())
        ignorable_next = False
        pos = len(self.source) - len(stripped)
        closed = False

        while pos < len(self.source):
            m = _TOKEN.match(self.source, pos)
            if m is None:
                msg = f"Malformed RTF at offset {pos}"
                raise RtfDecodeError(msg)
            pos = m.end()
            word, param, hex_code, symbol, brace, _newline, text = m.groups()

            if closed:
                if (text or "").strip("\0 \t") or word or hex_code or symbol or brace:
                    msg = f"Data after end of RTF document at offset {m.start()}"
                    raise RtfDecodeError(msg)
                continue

            if brace == "{":
                stack.append(state)
                ignorable_next = False
            elif brace == "}":
                if not stack:
                    msg = f"Unbalanced '}}' at offset {m.start()}"
                    raise RtfDecodeError(msg)
                state = stack.pop()
                self._pending_skip = 0
                closed = not stack
            elif word is not None:
                state = self._control_word(
                    state, word, int(param) if param is not None else None, ignorable_next
                )
                ignorable_next = False
            elif hex_code is not None:
                raw = bytes.fromhex(hex_code.replace("\\'", ""))
                # Each escaped byte counts once against a \uN fallback.
                dropped = min(self._pending_skip, len(raw))
                self._pending_skip -= dropped
                self._emit(state, raw[dropped:].decode(self.codec, errors="replace"))
            elif symbol is not None:
                if symbol == "*":
                    ignorable_next = True
                    continue
                self._pending_skip = 0
                self._emit(state, _SYMBOLS.get(symbol, symbol))
            elif text is not None:
                if state.destination == "body" and not text.isascii():
                    text = text.encode("latin-1", errors="replace").decode(
                        self.codec, errors="replace"
                    )
                self._emit(state, text)

        if not closed:
            msg = "Unexpected end of RTF document (unclosed group)"
            raise RtfDecodeError(msg)

        merged = RichText(tuple(self.pieces))
        runs = [TextRun(_join_surrogates(run.text), run.attributes) for run in merged.runs]
        return RichText(tuple(runs))


def _join_surrogates(text: str) -> str:
    if not any("\ud800" <= ch <= "\udfff" for ch in text):
        return text
    return text.encode("utf-16-le", errors="surrogatepass").decode("utf-16-le", errors="replace")


def decode_rtf(data: bytes) -> RichText:
    """Parse RTF bytes into RichText.

    Raises:
        RtfDecodeError: data is not a well-formed RTF document.
    """
    text = decode_rtf_source(data.decode("latin-1"))
    logger.debug("Decoded {} bytes of RTF into {} characters", len(data), len(text))
    return text


def decode_rtf_source(source: str) -> RichText:
    return _Decoder(source).decode()


def _escape(text: str) -> str:
    out: list[str] = []
    for ch in text:
        code = ord(ch)
        if ch in "\\{}":
            out.append("\\" + ch)
        elif ch == "\n":
            out.append("\\par\n")
        elif ch == "\t":
            out.append("\\tab ")
        elif 0x20 <= code < 0x7F:
            out.append(ch)
        elif code < 0x20 or code == 0x7F:
            msg = f"Cannot encode control character {ch!r} as RTF"
            raise ValueError(msg)
        else:
            for unit in _utf16_units(ch):
                out.append(f"\\u{unit - 65536 if unit >= 32768 else unit}?")
    return "".join(out)


def _utf16_units(ch: str) -> list[int]:
    raw = ch.encode("utf-16-le")
    return [int.from_bytes(raw[i : i + 2], "little") for i in range(0, len(raw), 2)]


def _check_font_family(name: str) -> str:
    if (
        not isinstance(name, str)
        or not name
        or name != name.strip()
        or not name.isprintable()
        or any(c in name for c in ";{}\\")
    ):
        msg = f"Font family {name!r} cannot be written to an RTF font table"
        raise ValueError(msg)
    return name


def encode_rtf(text: RichText) -> bytes:
    """Serialize RichText to RTF bytes.

    The output depends only on the value, so equal texts encode identically.

    Raises:
        ValueError: the text holds characters or attributes RTF cannot carry
            (control characters, bad font names, non-positive font sizes).
    """
    fonts: list[str] = [DEFAULT_FONT_FAMILY]
    for run in text.runs:
        family = _check_font_family(run.attributes.font_family)
        if family not in fonts:
            fonts.append(family)

    parts = ["{\\rtf1\\ansi\\ansicpg1252\\uc1\\deff0\n{\\fonttbl"]
    parts.extend(
        f"{{\\f{i}\\fnil\\fcharset0 {_escape(name)};}}" for i, name in enumerate(fonts)
    )
    parts.append("}\n\\pard\\plain ")

    for run in text.runs:
        attrs = run.attributes
        size = attrs.font_size
        if not isinstance(size, int | float) or not math.isfinite(size) or size <= 0:
            msg = f"Invalid font size {size!r}"
            raise ValueError(msg)
        words = [f"\\f{fonts.index(attrs.font_family)}", f"\\fs{round(size * 2)}"]
        if attrs.bold:
            words.append("\\b")
        if attrs.italic:
            words.append("\\i")
        if attrs.underline:
            words.append("\\ul")
        if attrs.strikethrough:
            words.append("\\strike")
        parts.append("{" + "".join(words) + " " + _escape(run.text) + "}")

    parts.append("}\n")
    return "".join(parts).encode("ascii")
