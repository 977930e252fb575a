"""FastAPI web service for Markdown to BBCode conversion.

Endpoints::

    POST /convert       Upload a .md file and receive .bbcode back.
    POST /convert/text  Send raw Markdown text, receive BBCode text.
    GET  /health        Health check.
    GET  /presets       List available rule presets.

Run::

    uvicorn doc2bbcode.server:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from urllib.parse import quote

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import PlainTextResponse

from doc2bbcode import __version__
from doc2bbcode.converter import Converter
from doc2bbcode.rules import RuleTable

app = FastAPI(
    title="doc2bbcode",
    description="Markdown to BBCode conversion service",
    version=__version__,
)


def _content_disposition(filename: str) -> str:
    """Build Content-Disposition header, RFC 5987 for non-ASCII names."""
    try:
        filename.encode("ascii")
        return f'attachment; filename="{filename}"'
    except UnicodeEncodeError:
        encoded = quote(filename)
        return f"attachment; filename*=UTF-8''{encoded}"


def _converter(preset: str) -> Converter:
    if preset not in RuleTable.PRESETS:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown preset {preset!r}; expected one of {RuleTable.PRESETS}",
        )
    return Converter(preset=preset)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@app.get("/presets")
async def list_presets() -> dict[str, list[str]]:
    """List available rule presets."""
    return {"presets": list(RuleTable.PRESETS)}


@app.post("/convert")
async def convert_file(
    file: UploadFile = File(...),
    preset: str = Form("phpbb"),
    encoding: str = Form("utf-8"),
) -> PlainTextResponse:
    """Upload a Markdown file and receive BBCode back.

    - **file**: Markdown file (.md)
    - **preset**: Rule preset name (phpbb, extended)
    - **encoding**: Source file encoding
    """
    converter = _converter(preset)
    raw = await file.read()
    try:
        md_text = raw.decode(encoding)
    except (UnicodeDecodeError, LookupError) as exc:
        raise HTTPException(status_code=400, detail=f"Cannot decode upload: {exc}") from exc

    bbcode = converter.convert_text(md_text)
    filename = (file.filename or "document.md").rsplit(".", 1)[0] + ".bbcode"

    return PlainTextResponse(
        content=bbcode,
        headers={"Content-Disposition": _content_disposition(filename)},
    )


@app.post("/convert/text")
async def convert_text(
    markdown: str = Form(...),
    preset: str = Form("phpbb"),
) -> PlainTextResponse:
    """Send raw Markdown text and receive BBCode.

    - **markdown**: Markdown source text
    - **preset**: Rule preset name
    """
    converter = _converter(preset)
    return PlainTextResponse(content=converter.convert_text(markdown))
