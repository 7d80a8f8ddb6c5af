import re


_BOLD = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_STAR = re.compile(r"(?<!\*)\*(?=\S)([^*\n]+?)(?<=\S)\*(?!\*)")
_ITALIC_UNDERSCORE = re.compile(r"(?<!\w)_(?=\S)([^_\n]+?)(?<=\S)_(?!\w)")
_CODE_FENCE = re.compile(r"```[\s\S]*?```")
_CODE_SPAN = re.compile(r"`([^`]+)`")
_HEADING = re.compile(r"^#{1,6}\s+", re.MULTILINE)
_EXTRA_BREAKS = re.compile(r"\n{3,}")


def clean_markdown(text: str) -> str:
    if not text:
        return ""
    cleaned = _BOLD.sub(r"\1", text)
    cleaned = _ITALIC_STAR.sub(r"\1", cleaned)
    cleaned = _ITALIC_UNDERSCORE.sub(r"\1", cleaned)
    cleaned = _CODE_FENCE.sub("", cleaned)
    cleaned = _CODE_SPAN.sub(r"\1", cleaned)
    cleaned = _HEADING.sub("", cleaned)
    cleaned = _EXTRA_BREAKS.sub("\n\n", cleaned)
    return cleaned.strip()
