"""Render the copyediting prompts in copyeditor/prompt/promptFiles using pystache.

``load_system_prompt`` returns the style instructions held by the provider:
the bundled ``system_prompt.md`` (rendered with its partials) or a file the
user supplies. ``render_context_header`` renders the per-document header that
opens every request.

Usage:
    python -m copyeditor.prompt.render_prompt [template_filename] [context.json]
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pystache

PROMPTS_DIR = Path(__file__).parent / "promptFiles"

SYSTEM_PROMPT_TEMPLATE = "system_prompt.md"
CONTEXT_HEADER_TEMPLATE = "context_header.md"

# Map of template to required partials
TEMPLATE_PARTIALS: dict[str, list[str]] = {
    SYSTEM_PROMPT_TEMPLATE: ["style_guide", "output_format"],
    CONTEXT_HEADER_TEMPLATE: [],
}


def _read_prompt(name: str) -> str:
    p = PROMPTS_DIR / name
    if not p.exists():
        raise FileNotFoundError(f"Prompt file not found: {p}")
    return p.read_text(encoding="utf-8")


def _strip_code_fences(s: str) -> str:
    """Strip a single leading and trailing code-fence block if present.

    Handles fences like ``` or ```` optionally followed by a language tag.
    """
    lines = s.splitlines()
    if not lines:
        return s
    first = lines[0].lstrip()
    last = lines[-1].lstrip()
    if first.startswith("```"):
        lines = lines[1:]
    if lines and last.startswith("```"):
        lines = lines[:-1]
    return "\n".join(lines).strip()


def render_template(template_name: str, context: dict | None = None) -> str:
    template = _read_prompt(template_name)

    partials = {}
    for partial_name in TEMPLATE_PARTIALS.get(template_name, []):
        partial_content = _read_prompt(f"{partial_name}.md")
        partials[partial_name] = _strip_code_fences(partial_content)

    renderer = pystache.Renderer(partials=partials, missing_tags="strict")
    return renderer.render(template, context or {}).strip()


def load_system_prompt(path: str | Path | None = None) -> str:
    """Return the copyediting instructions sent as the system prompt.

    Args:
        path: Optional file with custom instructions. Defaults to the bundled
            ``system_prompt.md`` rendered with its partials.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the instructions are empty.
    """
    if path is None:
        prompt = render_template(SYSTEM_PROMPT_TEMPLATE)
        source = str(PROMPTS_DIR / SYSTEM_PROMPT_TEMPLATE)
    else:
        prompt_path = Path(path)
        if not prompt_path.is_file():
            raise FileNotFoundError(f"System prompt file not found: {prompt_path}")
        prompt = _strip_code_fences(prompt_path.read_text(encoding="utf-8"))
        source = str(prompt_path)

    if not prompt.strip():
        raise ValueError(f"System prompt is empty: {source}")
    return prompt


def render_context_header(document_type: str, audience: str) -> str:
    """Render the document-type/audience header that opens each request."""
    document_type = (document_type or "").strip()
    audience = (audience or "").strip()
    if not document_type:
        raise ValueError("document_type must be a non-empty string")
    if not audience:
        raise ValueError("audience must be a non-empty string")
    return render_template(
        CONTEXT_HEADER_TEMPLATE,
        {"document_type": document_type, "audience": audience},
    )


def _load_context(path: str) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


if __name__ == "__main__":
    tpl = sys.argv[1] if len(sys.argv) > 1 else SYSTEM_PROMPT_TEMPLATE
    ctx = None
    if len(sys.argv) > 2:
        ctx = _load_context(sys.argv[2])
    print(render_template(tpl, ctx))
