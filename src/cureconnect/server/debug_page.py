"""Self-contained debug error page renderer.

Renders the 500 page shown when ``debug`` is on, without depending on
either template renderer: plain f-strings, so a broken template cannot
prevent error reporting.

The page renders:
- Exception type and message
- Traceback with source context and app-frame highlighting
- Template location for template syntax errors
- Request context (method, URI, masked headers, query, form)
"""

import html
import linecache
import os
import sys
import types
from typing import Any

from cureconnect.errors import TemplateNotFound, TemplateSyntaxError

_SENSITIVE_HEADERS = frozenset({
    "authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "proxy-authorization",
})

_CSS = """\
* { margin: 0; padding: 0; box-sizing: border-box; }
body {
    font-family: ui-monospace, Menlo, Consolas, 'DejaVu Sans Mono', monospace;
    background: #1a1b26; color: #a9b1d6; line-height: 1.6;
    padding: 2rem; font-size: 14px;
}
.error-page { max-width: 960px; margin: 0 auto; }
h1 { color: #f7768e; font-size: 1.4rem; margin-bottom: .5rem; }
h2 { color: #7aa2f7; font-size: 1.05rem; margin: 1.5rem 0 .5rem; }
.exc-message { background: #24283b; padding: 1rem; border-left: 3px solid #f7768e;
    white-space: pre-wrap; }
.frame { background: #24283b; margin: .5rem 0; border-radius: 4px; overflow: hidden; }
.frame-header { padding: .4rem .8rem; background: #1f2335; display: flex;
    justify-content: space-between; }
.app-frame .frame-header { border-left: 3px solid #9ece6a; }
.func { color: #bb9af7; }
.source-line { display: flex; padding: 0 .8rem; white-space: pre; }
.error-line { background: #3b2030; }
.lineno { color: #565f89; width: 3.5rem; flex-shrink: 0; }
.panel { background: #24283b; padding: .8rem; }
.label { color: #7dcfff; display: inline-block; width: 9rem; }
"""


def _esc(text: Any) -> str:
    """HTML-escape a value."""
    return html.escape(str(text), quote=True)


def _is_app_frame(filename: str) -> bool:
    """True if the frame is from the application (not stdlib/site-packages)."""
    if "site-packages" in filename or filename.startswith("<"):
        return False
    stdlib_prefix = os.path.dirname(os.__file__)
    return not filename.startswith(stdlib_prefix)


def _extract_frames(tb: types.TracebackType | None) -> list[dict[str, Any]]:
    """Walk a traceback and collect frame info with two lines of context."""
    frames: list[dict[str, Any]] = []
    while tb is not None:
        frame = tb.tb_frame
        lineno = tb.tb_lineno
        filename = frame.f_code.co_filename
        source_lines: list[tuple[int, str]] = []
        for i in range(max(1, lineno - 2), lineno + 3):
            line = linecache.getline(filename, i, frame.f_globals)
            if line:
                source_lines.append((i, line.rstrip()))
        frames.append({
            "filename": filename,
            "lineno": lineno,
            "func_name": frame.f_code.co_name,
            "source_lines": source_lines,
            "is_app": _is_app_frame(filename),
        })
        tb = tb.tb_next
    return frames


def _render_frame(frame: dict[str, Any]) -> str:
    lines = "".join(
        f'<div class="source-line{" error-line" if lineno == frame["lineno"] else ""}">'
        f'<span class="lineno">{lineno}</span><span>{_esc(code)}</span></div>'
        for lineno, code in frame["source_lines"]
    )
    frame_cls = "frame app-frame" if frame["is_app"] else "frame"
    return (
        f'<div class="{frame_cls}">'
        f'<div class="frame-header"><span>{_esc(frame["filename"])}:{frame["lineno"]}</span>'
        f'<span class="func">{_esc(frame["func_name"])}</span></div>'
        f"<div>{lines}</div>"
        f"</div>"
    )


def _render_template_panel(exc: BaseException) -> str:
    if isinstance(exc, TemplateSyntaxError):
        location = exc.name or "<string>"
        if exc.lineno is not None:
            location = f"{location}, line {exc.lineno}"
        return f'<h2>Template</h2><div class="panel"><span class="label">Location</span>{_esc(location)}</div>'
    if isinstance(exc, TemplateNotFound):
        kind = "Parent template" if exc.parent else "Template"
        return f'<h2>Template</h2><div class="panel"><span class="label">{kind}</span>{_esc(exc.path)}</div>'
    return ""


def _render_request_panel(request: Any) -> str:
    if request is None:
        return '<div class="panel">No request context</div>'
    rows: list[tuple[str, str]] = [
        ("Method", getattr(request, "method", "?")),
        ("URI", getattr(request, "uri", getattr(request, "path", "?"))),
    ]
    headers = getattr(request, "headers", None)
    if headers:
        for name, value in headers.items():
            shown = "••••••••" if name.lower() in _SENSITIVE_HEADERS else value
            rows.append((name, shown))
    for label in ("query", "form"):
        params = getattr(request, label, None)
        if params:
            rows.extend((f"{label}:{key}", value) for key, value in params.items())
    body = "".join(
        f'<div><span class="label">{_esc(name)}</span>{_esc(value)}</div>' for name, value in rows
    )
    return f'<div class="panel">{body}</div>'


def render_debug_page(exc: BaseException, request: Any = None) -> str:
    """Render a full HTML debug page for *exc*.

    Every interpolated value is escaped; the exception message may
    contain user input.
    """
    exc_type = type(exc).__name__
    exc_module = type(exc).__module__ or ""
    qualified = f"{exc_module}.{exc_type}" if exc_module and exc_module != "builtins" else exc_type
    message = str(exc)

    sections: list[str] = [
        f"<h1>{_esc(qualified)}</h1>",
        f'<div class="exc-message">{_esc(message)}</div>',
    ]

    template_panel = _render_template_panel(exc)
    if not template_panel and exc.__cause__ is not None:
        template_panel = _render_template_panel(exc.__cause__)
    if template_panel:
        sections.append(template_panel)

    frames = _extract_frames(exc.__traceback__)
    if frames:
        sections.append("<h2>Traceback</h2>")
        sections.extend(_render_frame(f) for f in frames)

    sections.append("<h2>Request</h2>")
    sections.append(_render_request_panel(request))
    sections.append("<h2>Environment</h2>")
    sections.append(f'<div class="panel"><span class="label">Python</span>{_esc(sys.version)}</div>')

    body_html = "\n".join(sections)
    return (
        "<!DOCTYPE html>"
        '<html lang="en"><head>'
        '<meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1">'
        f"<title>{_esc(qualified)}: {_esc(message[:80])}</title>"
        f"<style>{_CSS}</style>"
        "</head><body>"
        f'<div class="error-page">{body_html}</div>'
        "</body></html>"
    )
