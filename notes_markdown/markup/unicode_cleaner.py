"""Unicode cleanup for text extracted from rich markup.

Notes exported from the notes database routinely carry byte-order marks,
zero-width joiners and stray C0/C1 control characters. They render as question
marks in most Markdown viewers, so every text extraction path runs through
UnicodeCleaner before emitting anything.
"""

import html
import re
from typing import Iterable, List

ZERO_WIDTH_CHARS = (
    '\ufeff'  # byte order mark
    '\u200b\u200c\u200d\u200e\u200f'
    '\u2060\u2061\u2062\u2063\u2064'
    '\u180e'  # mongolian vowel separator
    '\u17b4\u17b5'
)

_ZERO_WIDTH_RE = re.compile(f'[{ZERO_WIDTH_CHARS}]')
# Tab, newline and carriage return survive
_CONTROL_RE = re.compile('[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]')

_ZERO_WIDTH_AROUND_RE = re.compile(
    '[\ufeff\u200b-\u200f\u2060]+(.?)[\ufeff\u200b-\u200f\u2060]+'
)
_MULTI_SPACE_RE = re.compile(r'[ \t]{2,}')
_SPACE_BEFORE_PUNCT_RE = re.compile(r'[ \t]+([.,;:!?])')
_EMPTY_BRACKETS_RE = re.compile(r'\(\s*\)|\[\s*\]|\{\s*\}')


class UnicodeCleaner:
    """Strips invisible and control characters from extracted text.

    Args:
        remove_zero_width: Remove zero-width and other invisible code points
        remove_control_chars: Remove C0/C1 control characters except tab, LF, CR
        advanced_cleaning: Also collapse runs of spaces, drop spaces before
            punctuation and remove empty brackets left behind by footnote removal
    """

    def __init__(
        self,
        remove_zero_width: bool = True,
        remove_control_chars: bool = True,
        advanced_cleaning: bool = False,
    ):
        self.remove_zero_width = remove_zero_width
        self.remove_control_chars = remove_control_chars
        self.advanced_cleaning = advanced_cleaning

    def clean_text(self, text: str) -> str:
        """Remove problematic code points. Idempotent: clean(clean(x)) == clean(x)."""
        if not text:
            return text

        cleaned = text
        if self.advanced_cleaning:
            cleaned = _ZERO_WIDTH_AROUND_RE.sub(r'\1', cleaned)
        if self.remove_zero_width:
            cleaned = _ZERO_WIDTH_RE.sub('', cleaned)
        if self.remove_control_chars:
            cleaned = _CONTROL_RE.sub('', cleaned)
        if self.advanced_cleaning:
            cleaned = self._apply_advanced_cleaning(cleaned)
        return cleaned

    def strip_control_chars(self, text: str) -> str:
        """Remove C0/C1 control characters (except tab, LF, CR) unconditionally.

        Used on raw markup before XML parsing, where these characters are
        illegal regardless of the cleaner settings.
        """
        return _CONTROL_RE.sub('', text)

    def _apply_advanced_cleaning(self, text: str) -> str:
        cleaned = _EMPTY_BRACKETS_RE.sub('', text)
        cleaned = _MULTI_SPACE_RE.sub(' ', cleaned)
        cleaned = _SPACE_BEFORE_PUNCT_RE.sub(r'\1', cleaned)
        return cleaned.strip()

    def clean_markup_text(self, markup_text: str) -> str:
        """Decode character references in an attribute value, then clean it."""
        if not markup_text:
            return markup_text
        return self.clean_text(html.unescape(markup_text))

    def clean_extracted_text(self, texts: Iterable[str]) -> List[str]:
        """Clean a batch of extracted values, dropping the ones left blank."""
        cleaned = (self.clean_markup_text(text) for text in texts)
        return [text for text in cleaned if text and text.strip()]


_default_cleaner = UnicodeCleaner()


def clean_text(text: str) -> str:
    """Clean text with the default cleaner settings."""
    return _default_cleaner.clean_text(text)
