# mcp-code-annotations - Line annotations and bookmarks with MCP server
# Copyright (C) 2026 Michael Doyle
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing available. See COMMERCIAL-LICENSE.md for details.

"""Hashtag keyword extraction for annotation text."""

# Opening delimiter -> closing delimiter for grouped tags like #(two words)
PAIRED_DELIMITERS: dict[str, str] = {
    "'": "'",
    "(": ")",
    "[": "]",
    "{": "}",
    '"': '"',
    "*": "*",
}

# Characters that end an ungrouped tag. '#' is included so "#a#b" yields two tags.
CUTOFF_CHARS: frozenset[str] = frozenset(" \t\n\r\v.#")


def extract_keywords(text: str) -> list[str]:
    """Extract hashtag keywords from annotation text, in order of appearance.

    Rules, applied at every '#':
      1. Grouped after: '#' followed by an opening delimiter (one of ' ( [ { " *)
         takes everything up to the matching close, e.g. "#(two words)".
      2. Grouped around: '#' preceded by an opening delimiter takes everything
         from after '#' to the matching close, e.g. "(#two words)".
      3. Otherwise the tag runs up to the first whitespace, '.', or '#'.

    An unclosed group runs to the end of the text. Empty tags are dropped and
    duplicates are kept.
    """
    keywords: list[str] = []
    length = len(text)

    hash_pos = text.find("#")
    while hash_pos != -1:
        start = hash_pos + 1

        closer: str | None = None
        if start < length and text[start] in PAIRED_DELIMITERS:
            closer = PAIRED_DELIMITERS[text[start]]
            start += 1
        elif hash_pos > 0 and text[hash_pos - 1] in PAIRED_DELIMITERS:
            closer = PAIRED_DELIMITERS[text[hash_pos - 1]]

        if closer is not None:
            end = text.find(closer, start)
            if end == -1:
                end = length
            resume = end + 1  # skip past the closing delimiter
        else:
            end = start
            while end < length and text[end] not in CUTOFF_CHARS:
                end += 1
            resume = end  # the cutoff may itself be the next '#'

        token = text[start:end]
        if token:
            keywords.append(token)

        hash_pos = text.find("#", resume)

    return keywords
