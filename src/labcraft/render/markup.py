"""HTML fragments for the print path."""

from __future__ import annotations

from html import escape

from labcraft.db.models import Collection, Entry

PRINT_STYLES = """
body { font-family: Georgia, serif; color: #111827; }
h1, h2 { font-family: Helvetica, Arial, sans-serif; }
h2 { border-bottom: 1px solid #9ca3af; padding-bottom: 2px; }
pre { background: #f3f4f6; padding: 8px; white-space: pre-wrap; }
img { max-width: 100%; }
"""


def entry_markup(entry: Entry, collection: Collection, images: dict[str, str] | None = None) -> str:
    """Return the printable HTML fragment for *entry*.

    *images* maps asset ids to data URLs; unknown attachments are omitted.
    """
    parts = [f"<h1>{escape(collection.subject)}: Entry {entry.ordinal}. {escape(entry.title)}</h1>"]
    for label, body in (("Aim", entry.aim), ("Theory", entry.theory), ("Steps", entry.steps)):
        if body.strip():
            parts.append(f"<h2>{label}</h2><p>{_paragraphs(body)}</p>")
    if entry.code.strip():
        parts.append(
            f'<h2>Code</h2><pre class="language-{escape(entry.language)}">'
            f"<code>{escape(entry.code)}</code></pre>"
        )
    sources = [images[a] for a in entry.attachments if images and a in images]
    if sources:
        parts.append("<h2>Output</h2>")
        parts.extend(f'<img src="{escape(src, quote=True)}" alt="output">' for src in sources)
    if entry.conclusion.strip():
        parts.append(f"<h2>Conclusion</h2><p>{_paragraphs(entry.conclusion)}</p>")
    return "\n".join(parts)


def _paragraphs(text: str) -> str:
    return "<br>".join(escape(line) for line in text.splitlines())
